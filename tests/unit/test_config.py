"""Unit tests for margins, page geometry, style profiles and layered config."""

import pytest

from mdpdf_outline.config import (
    STYLE_PROFILES,
    Config,
    PageGeometry,
    convert_margin_to_cm,
    get_style_profile,
    margin_to_inches,
    parse_margins,
    validate_margin,
)


@pytest.mark.unit
@pytest.mark.parametrize("margin, inches", [
    ("1in", 1.0),
    ("1", 1.0),
    ("2.54cm", 1.0),
    ("25.4mm", 1.0),
    ("72pt", 1.0),
    ("96px", 1.0),
])
def test_margin_to_inches(margin, inches):
    assert margin_to_inches(margin) == pytest.approx(inches)


@pytest.mark.unit
@pytest.mark.parametrize("margin", ["abc", "2 cm cm", "1ft", ""])
def test_margin_to_inches_rejects_garbage(margin):
    with pytest.raises(ValueError, match="Invalid margin format"):
        margin_to_inches(margin)


@pytest.mark.unit
def test_validate_margin_range():
    assert validate_margin("2cm") == "2.0cm"
    assert validate_margin("0") == "0.0in"
    with pytest.raises(ValueError, match="negative"):
        validate_margin("-1cm")
    with pytest.raises(ValueError, match="too large"):
        validate_margin("8cm")


@pytest.mark.unit
def test_parse_margins_shorthand():
    assert parse_margins("1in") == {"top": "1.0in", "right": "1.0in", "bottom": "1.0in", "left": "1.0in"}
    assert parse_margins("1in 2cm") == {"top": "1.0in", "right": "2.0cm", "bottom": "1.0in", "left": "2.0cm"}
    assert parse_margins("1cm 2cm 3cm 4cm") == {"top": "1.0cm", "right": "2.0cm", "bottom": "3.0cm", "left": "4.0cm"}
    with pytest.raises(ValueError, match="1, 2, or 4"):
        parse_margins("1cm 2cm 3cm")


@pytest.mark.unit
def test_convert_margin_to_cm():
    assert convert_margin_to_cm("1in") == pytest.approx(2.54)
    assert convert_margin_to_cm("15mm") == pytest.approx(1.5)


@pytest.mark.unit
def test_a4_geometry(geometry):
    assert geometry.page_height_pt == pytest.approx(841.89, abs=0.01)
    assert geometry.margin_top_pt == pytest.approx(56.69, abs=0.01)
    # 210mm - 4cm = 17cm wide, 297mm - 4cm = 25.7cm high, at 96 px/in
    assert geometry.printable_width_px == pytest.approx(17 / 2.54 * 96)
    assert geometry.printable_height_px == pytest.approx(25.7 / 2.54 * 96)
    assert geometry.margins_cm() == {"top": "2.0cm", "right": "2.0cm", "bottom": "2.0cm", "left": "2.0cm"}


@pytest.mark.unit
def test_letter_geometry():
    geometry = PageGeometry.from_strings("Letter", "1in")

    assert geometry.page_height_pt == pytest.approx(792.0)
    assert geometry.printable_height_px == pytest.approx(9 * 96)


@pytest.mark.unit
def test_unknown_page_format():
    with pytest.raises(ValueError, match="Unsupported page format"):
        PageGeometry.from_strings("A3", "2cm")


@pytest.mark.unit
def test_style_profiles():
    assert get_style_profile("document").numbered_headings is True
    assert get_style_profile("notes").base_font_size == "12px"
    assert get_style_profile("notes-large").font_scale == pytest.approx(1.3)
    assert set(STYLE_PROFILES) == {"document", "notes", "notes-large"}

    with pytest.raises(ValueError, match="Available profiles"):
        get_style_profile("fancy")


@pytest.mark.unit
def test_config_defaults(monkeypatch):
    for key in Config.DEFAULTS:
        monkeypatch.delenv(f"MDPDF_{key.upper()}", raising=False)
    config = Config()

    assert config.get_timeout() == 60.0
    assert config.get_render_timeout() == 30.0
    assert config.get_max_workers() == 4
    assert config.get_style_profile() is STYLE_PROFILES["document"]
    assert config.get_geometry().page_format == "A4"


@pytest.mark.unit
def test_config_precedence(monkeypatch):
    """Test that CLI values beat environment values, which beat defaults."""
    monkeypatch.setenv("MDPDF_TIMEOUT", "12.5")
    monkeypatch.setenv("MDPDF_MAX_WORKERS", "8")
    monkeypatch.setenv("MDPDF_PAGE_FORMAT", "Letter")

    config = Config({"max_workers": 2, "page_format": None})

    assert config.get_timeout() == 12.5
    assert config.get_max_workers() == 2
    assert config.get_geometry().page_format == "Letter"


@pytest.mark.unit
def test_config_invalid_env_value(monkeypatch):
    monkeypatch.setenv("MDPDF_RENDER_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="MDPDF_RENDER_TIMEOUT"):
        Config().get_render_timeout()


@pytest.mark.unit
def test_config_unknown_key():
    with pytest.raises(KeyError):
        Config().get("colour")
