#!/usr/bin/env python3
"""
Records passed between pipeline stages.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class HeadingRecord:
    """A heading captured while rendering Markdown, in document order."""

    level: int
    text: str
    anchor_id: str
    sequence_index: int


@dataclass(frozen=True)
class HeadingPosition:
    """Top offset of a heading anchor in the continuous (unpaginated) layout."""

    anchor_id: str
    vertical_offset_px: float


@dataclass(frozen=True)
class BookmarkEntry:
    """One outline node before it is written into the PDF object graph."""

    title: str
    level: int
    page_index: int
    y_on_page: float


@dataclass
class RenderedMarkdown:
    html: str
    headings: List[HeadingRecord] = field(default_factory=list)


@dataclass
class MeasuredLayout:
    """Output of the layout engine: the paginated PDF plus heading offsets."""

    pdf_bytes: bytes
    page_count: int
    positions: List[HeadingPosition] = field(default_factory=list)
