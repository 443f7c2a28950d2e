"""Shared fixtures: blank PDFs, page geometry and a browser-free layout driver."""

import asyncio
import io

import pytest
from pypdf import PdfWriter

from mdpdf_outline.config import PageGeometry
from mdpdf_outline.logger import ConsoleLogger
from mdpdf_outline.models import HeadingPosition, MeasuredLayout

A4_WIDTH_PT = 595.28
A4_HEIGHT_PT = 841.89


def _make_pdf(page_count: int = 3) -> bytes:
    writer = PdfWriter()
    for _ in range(page_count):
        writer.add_blank_page(width=A4_WIDTH_PT, height=A4_HEIGHT_PT)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class FakeLayoutDriver:
    """Stands in for LayoutEngineDriver: returns a blank PDF and scripted offsets.

    offsets maps anchor id -> px; anchors not listed are "missing" from the page.
    When offsets is None every distinct anchor is placed 50px below the previous one.
    """

    def __init__(self, page_count=3, offsets=None, delay=0.0, error=None):
        self.page_count = page_count
        self.offsets = offsets
        self.delay = delay
        self.error = error
        self.html = None
        self.pdf_bytes = None
        self.started = False
        self.closed = False

    async def measure(self, html, headings):
        self.html = html
        self.started = True
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error

            positions = []
            seen = set()
            for heading in headings:
                if heading.anchor_id in seen:
                    continue
                seen.add(heading.anchor_id)
                if self.offsets is None:
                    offset = len(positions) * 50.0
                elif heading.anchor_id in self.offsets:
                    offset = self.offsets[heading.anchor_id]
                else:
                    continue
                positions.append(HeadingPosition(heading.anchor_id, offset))
            self.pdf_bytes = _make_pdf(self.page_count)
            return MeasuredLayout(self.pdf_bytes, self.page_count, positions)
        finally:
            self.closed = True

    def factory(self, options, logger):
        return self


@pytest.fixture
def make_pdf():
    return _make_pdf


@pytest.fixture
def logger():
    return ConsoleLogger(debug=True)


@pytest.fixture
def geometry():
    return PageGeometry.from_strings("A4", "2cm")


@pytest.fixture
def fake_driver():
    """Factory fixture: fake_driver(page_count=..., offsets=..., delay=..., error=...)."""
    return FakeLayoutDriver
