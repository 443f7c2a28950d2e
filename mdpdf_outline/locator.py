#!/usr/bin/env python3
"""
Map heading offsets in the continuous layout onto pages of the printed PDF.

The mapping assumes every page holds exactly one printable height of
content; reflow introduced by pagination (avoid-break rules, headers and
footers) is ignored, so a bookmark lands on or next to its heading.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import math
from typing import List

from .config import CSS_DPI, PDF_DPI, PageGeometry
from .models import BookmarkEntry, HeadingPosition, HeadingRecord


def locate(position: HeadingPosition, page_height_px: float, page_count: int) -> int:
    """Page index holding position: floor(offset / page height), clamped to [0, page_count - 1]."""
    if page_count < 1:
        raise ValueError(f"page_count must be at least 1, got {page_count}")
    if page_height_px <= 0:
        raise ValueError(f"page_height_px must be positive, got {page_height_px}")

    offset = position.vertical_offset_px
    if math.isnan(offset):
        return 0
    if math.isinf(offset):
        return page_count - 1 if offset > 0 else 0

    index = math.floor(offset / page_height_px)
    return min(max(index, 0), page_count - 1)


def y_on_page(offset_px: float, geometry: PageGeometry, page_height_pt: float, precise: bool = False) -> float:
    """Destination Y in PDF user space (origin bottom-left).

    By default the top of the page. With precise=True the heading's offset
    within its page is converted to points below the top margin.
    """
    if not precise or not math.isfinite(offset_px):
        return page_height_pt

    in_page_px = max(offset_px, 0.0) % geometry.printable_height_px
    y = page_height_pt - geometry.margin_top_pt - in_page_px * PDF_DPI / CSS_DPI
    return round(min(max(y, 0.0), page_height_pt), 2)


def build_entries(headings: List[HeadingRecord], positions: List[HeadingPosition], geometry: PageGeometry,
                  page_count: int, precise: bool = False) -> List[BookmarkEntry]:
    """Combine headings with measured positions into bookmark entries, in document order.

    Headings without a measured position are dropped. When several headings
    share an anchor id only the first one is kept, since only one element
    with that id can be located in the page.
    """
    offsets = {}
    for position in positions:
        offsets.setdefault(position.anchor_id, position)

    page_height_px = geometry.printable_height_px
    page_height_pt = geometry.page_height_pt

    entries = []
    used = set()
    for heading in headings:
        position = offsets.get(heading.anchor_id)
        if position is None or heading.anchor_id in used:
            continue
        used.add(heading.anchor_id)

        entries.append(BookmarkEntry(
            title=heading.text,
            level=heading.level,
            page_index=locate(position, page_height_px, page_count),
            y_on_page=y_on_page(position.vertical_offset_px, geometry, page_height_pt, precise),
        ))
    return entries
