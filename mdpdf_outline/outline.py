#!/usr/bin/env python3
"""
Outline (bookmark) synthesis on the object graph of an already printed PDF.

The outline is wired by hand from pypdf generic objects rather than through
a bookmark convenience API: destinations must point at the page objects
the engine produced, and every node references its siblings and parent
before those objects are populated.

Resulting structure for N entries::

    Catalog /Outlines -> root {/Type /Outlines /First n0 /Last nN-1 /Count N}
    node i {/Title /Parent root /Dest [page /XYZ null y null] /Prev n(i-1) /Next n(i+1)}

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import io
from typing import List, NamedTuple, Optional, Tuple

from pypdf import PdfReader, PdfWriter
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NullObject,
    NumberObject,
    TextStringObject,
)

from .errors import OutlineBuildFailed
from .logger import ConsoleLogger
from .models import BookmarkEntry


class _PendingEntry(NamedTuple):
    title: str
    page_index: int
    y_on_page: float


class OutlineBuilder:
    """Collect flat outline entries, then write them into a PdfWriter in one pass.

    Usage::

        builder = OutlineBuilder(writer)
        builder.add_entry("Intro", 0, 841.89)
        root_ref = builder.finish()
    """

    def __init__(self, writer: PdfWriter):
        self.writer = writer
        self.root_ref: Optional[IndirectObject] = None
        self._pending: List[_PendingEntry] = []

    def __len__(self) -> int:
        return len(self._pending)

    def add_entry(self, title: str, page_index: int, y_on_page: float) -> int:
        """Queue an entry; returns its handle (position in the sibling chain)."""
        if self.root_ref is not None:
            raise OutlineBuildFailed("Cannot add entries after the outline was finished")
        page_count = len(self.writer.pages)
        if not 0 <= page_index < page_count:
            raise OutlineBuildFailed(f"Page index {page_index} outside document of {page_count} page(s)")

        self._pending.append(_PendingEntry(title, page_index, float(y_on_page)))
        return len(self._pending) - 1

    def _allocate(self) -> Tuple[IndirectObject, List[IndirectObject]]:
        """Reserve the root and every entry reference before any of them is populated."""
        root_ref = self.writer._add_object(DictionaryObject())
        item_refs = [self.writer._add_object(DictionaryObject()) for _ in self._pending]

        if len(item_refs) != len(self._pending):
            raise OutlineBuildFailed(f"Allocated {len(item_refs)} references for {len(self._pending)} entries")
        for ref in [root_ref, *item_refs]:
            if not isinstance(ref, IndirectObject) or not isinstance(ref.get_object(), DictionaryObject):
                raise OutlineBuildFailed(f"Reference {ref!r} does not resolve to an outline dictionary")
        return root_ref, item_refs

    def _page_ref(self, page_index: int) -> IndirectObject:
        page_ref = self.writer.pages[page_index].indirect_reference
        if page_ref is None:
            raise OutlineBuildFailed(f"Page {page_index} has no indirect reference")
        return page_ref

    def finish(self) -> Optional[IndirectObject]:
        """Write nodes, sibling links and the root, and register the root in the catalog.

        Returns the root reference, or None when no entries were added (the
        document is then left untouched).
        """
        if self.root_ref is not None:
            raise OutlineBuildFailed("Outline already finished")
        if not self._pending:
            return None

        root_ref, item_refs = self._allocate()
        last = len(item_refs) - 1

        for i, entry in enumerate(self._pending):
            node = item_refs[i].get_object()
            node[NameObject("/Title")] = TextStringObject(entry.title)
            node[NameObject("/Parent")] = root_ref
            node[NameObject("/Dest")] = ArrayObject([
                self._page_ref(entry.page_index),
                NameObject("/XYZ"),
                NullObject(),
                FloatObject(entry.y_on_page),
                NullObject(),
            ])
            if i > 0:
                node[NameObject("/Prev")] = item_refs[i - 1]
            if i < last:
                node[NameObject("/Next")] = item_refs[i + 1]

        root = root_ref.get_object()
        root[NameObject("/Type")] = NameObject("/Outlines")
        root[NameObject("/First")] = item_refs[0]
        root[NameObject("/Last")] = item_refs[last]
        # Positive count: viewers show the outline expanded
        root[NameObject("/Count")] = NumberObject(len(item_refs))

        catalog = self.writer.root_object
        catalog[NameObject("/Outlines")] = root_ref
        catalog[NameObject("/PageMode")] = NameObject("/UseOutlines")

        self.root_ref = root_ref
        return root_ref


def attach_outline(pdf_bytes: bytes, entries: List[BookmarkEntry], logger: Optional[ConsoleLogger] = None) -> bytes:
    """Return pdf_bytes with a flat outline built from entries.

    With no entries the input bytes are returned as they are.
    """
    logger = logger or ConsoleLogger()
    if not entries:
        logger.log_debug("No bookmark entries, leaving document unchanged")
        return pdf_bytes

    writer = PdfWriter(clone_from=PdfReader(io.BytesIO(pdf_bytes)))
    builder = OutlineBuilder(writer)
    for entry in entries:
        builder.add_entry(entry.title, entry.page_index, entry.y_on_page)
    builder.finish()

    output = io.BytesIO()
    writer.write(output)
    logger.log_debug(f"Injected {len(builder)} bookmark(s)")
    return output.getvalue()


def read_outline(pdf_bytes: bytes) -> List[Tuple[str, int]]:
    """Top-level outline entries of a PDF as (title, zero-based page index) pairs."""
    reader = PdfReader(io.BytesIO(pdf_bytes))
    result = []
    for item in reader.outline:
        if isinstance(item, list):
            continue
        result.append((item.title, reader.get_destination_page_number(item)))
    return result
