"""Unit tests for mapping heading offsets onto PDF pages."""

import math

import pytest

from mdpdf_outline.locator import build_entries, locate, y_on_page
from mdpdf_outline.models import HeadingPosition, HeadingRecord


def _heading(text, anchor, level=1, index=0):
    return HeadingRecord(level=level, text=text, anchor_id=anchor, sequence_index=index)


@pytest.mark.unit
@pytest.mark.parametrize("offset, expected", [
    (0.0, 0),
    (999.9, 0),
    (1000.0, 1),
    (2500.0, 2),
    (4999.0, 4),
])
def test_locate_floors_offset(offset, expected):
    assert locate(HeadingPosition("a", offset), 1000.0, 5) == expected


@pytest.mark.unit
def test_locate_clamps_to_document():
    """Test that offsets past either end of the document land on the first or last page."""
    assert locate(HeadingPosition("a", -250.0), 1000.0, 3) == 0
    assert locate(HeadingPosition("a", 10_000.0), 1000.0, 3) == 2


@pytest.mark.unit
def test_locate_non_finite_offsets():
    assert locate(HeadingPosition("a", math.inf), 1000.0, 4) == 3
    assert locate(HeadingPosition("a", -math.inf), 1000.0, 4) == 0
    assert locate(HeadingPosition("a", math.nan), 1000.0, 4) == 0


@pytest.mark.unit
def test_locate_is_monotonic():
    offsets = [0, 12.5, 400, 971, 972, 1943, 3000, 8000, 20000]
    pages = [locate(HeadingPosition("a", o), 971.34, 6) for o in offsets]

    assert pages == sorted(pages)
    assert all(0 <= p <= 5 for p in pages)


@pytest.mark.unit
@pytest.mark.parametrize("page_height, page_count", [(0.0, 3), (-1.0, 3), (1000.0, 0)])
def test_locate_rejects_invalid_arguments(page_height, page_count):
    with pytest.raises(ValueError):
        locate(HeadingPosition("a", 10.0), page_height, page_count)


@pytest.mark.unit
def test_y_on_page_defaults_to_page_top(geometry):
    assert y_on_page(1234.0, geometry, geometry.page_height_pt) == geometry.page_height_pt


@pytest.mark.unit
def test_y_on_page_precise(geometry):
    """Test that precise mode places the destination below the top margin."""
    page_height_pt = geometry.page_height_pt

    top = y_on_page(0.0, geometry, page_height_pt, precise=True)
    assert top == pytest.approx(page_height_pt - geometry.margin_top_pt, abs=0.01)

    lower = y_on_page(96.0, geometry, page_height_pt, precise=True)
    assert lower == pytest.approx(top - 72.0, abs=0.01)

    # Same spot on the second page
    second = y_on_page(geometry.printable_height_px + 96.0, geometry, page_height_pt, precise=True)
    assert second == pytest.approx(lower, abs=0.01)


@pytest.mark.unit
def test_y_on_page_precise_non_finite(geometry):
    assert y_on_page(math.nan, geometry, 842.0, precise=True) == 842.0


@pytest.mark.unit
def test_build_entries_scenario(geometry):
    """Test "# Title" on the first page and "## Sub" pushed onto the second."""
    headings = [_heading("Title", "title", 1, 0), _heading("Sub", "sub", 2, 1)]
    positions = [
        HeadingPosition("title", 0.0),
        HeadingPosition("sub", geometry.printable_height_px + 40.0),
    ]

    entries = build_entries(headings, positions, geometry, page_count=2)

    assert [(e.title, e.level, e.page_index) for e in entries] == [("Title", 1, 0), ("Sub", 2, 1)]
    assert all(e.y_on_page == geometry.page_height_pt for e in entries)


@pytest.mark.unit
def test_build_entries_keeps_first_duplicate(geometry):
    headings = [
        _heading("Notes", "notes", 2, 0),
        _heading("Other", "other", 2, 1),
        _heading("Notes", "notes", 2, 2),
    ]
    positions = [HeadingPosition("notes", 10.0), HeadingPosition("other", 20.0)]

    entries = build_entries(headings, positions, geometry, page_count=1)

    assert [e.title for e in entries] == ["Notes", "Other"]


@pytest.mark.unit
def test_build_entries_drops_unmeasured_headings(geometry):
    headings = [_heading("A", "a", 1, 0), _heading("B", "b", 1, 1), _heading("C", "c", 1, 2)]
    positions = [HeadingPosition("a", 0.0), HeadingPosition("c", 5000.0)]

    entries = build_entries(headings, positions, geometry, page_count=2)

    assert [(e.title, e.page_index) for e in entries] == [("A", 0), ("C", 1)]


@pytest.mark.unit
def test_build_entries_empty(geometry):
    assert build_entries([], [], geometry, page_count=1) == []
