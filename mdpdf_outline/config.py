#!/usr/bin/env python3
"""
Configuration for the markdown to PDF pipeline: style profiles, page
geometry, margin parsing and the layered Config (CLI > env > defaults).

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

CSS_DPI = 96
PDF_DPI = 72

_MARGIN_RE = re.compile(r'^(-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*(cm|in|mm|pt|px)?$')

# Physical page sizes in inches (width, height), portrait
PAGE_FORMATS = {
    "A4": (210 / 25.4, 297 / 25.4),
    "Letter": (8.5, 11.0),
}

_DOCUMENT_FOOTER = (
    '<div style="font-size: 10px; font-family: sans-serif; color: #999; margin: 0 2cm; '
    'width: 100%; text-align: center; border-top: 1px solid #eee; padding-top: 5px;">'
    'Page <span class="pageNumber"></span> of <span class="totalPages"></span></div>'
)

_NOTES_FOOTER = (
    '<div style="font-size: 10px; text-align: center; width: 100%; margin: 0 auto;">'
    '<span class="pageNumber"></span></div>'
)


@dataclass(frozen=True)
class StyleProfile:
    """Visual settings for one rendering flavour."""

    name: str
    description: str
    base_font_size: str = "14px"
    font_scale: float = 1.0
    numbered_headings: bool = False
    footer_template: str = _NOTES_FOOTER
    header_template: str = "<div></div>"


STYLE_PROFILES: Dict[str, StyleProfile] = {
    "document": StyleProfile(
        name="Document (Default)",
        description="Numbered headings with a 'Page N of M' footer",
        base_font_size="14px",
        numbered_headings=True,
        footer_template=_DOCUMENT_FOOTER,
    ),
    "notes": StyleProfile(
        name="Notes",
        description="Print-optimized notes styling with 12px base font",
        base_font_size="12px",
    ),
    "notes-large": StyleProfile(
        name="Notes (Large)",
        description="Screen-optimized notes styling with 30% larger fonts",
        base_font_size="15.6px",
        font_scale=1.3,
    ),
}


def get_style_profile(name: str) -> StyleProfile:
    """Look up a style profile by key, raising ValueError for unknown names."""
    if name not in STYLE_PROFILES:
        available_profiles = ", ".join(STYLE_PROFILES.keys())
        raise ValueError(f"Invalid style profile '{name}'. Available profiles: {available_profiles}")
    return STYLE_PROFILES[name]


def margin_to_inches(margin_str: str) -> float:
    """Convert a single CSS length ('2cm', '0.75in', '10mm') to inches."""
    match = _MARGIN_RE.match(margin_str.strip())
    if not match:
        raise ValueError(f"Invalid margin format: '{margin_str}'. Use format like '1in', '2.5cm', '10mm', etc.")

    value_str, unit = match.groups()
    value = float(value_str)

    # Set default unit to 'in' if not specified
    if not unit or unit == 'in':
        return value
    if unit == 'cm':
        return value / 2.54
    if unit == 'mm':
        return value / 25.4
    if unit == 'pt':
        return value / PDF_DPI
    return value / CSS_DPI  # 'px'


def validate_margin(margin_str: str) -> str:
    """Validate and normalize a single margin value."""
    value_inches = margin_to_inches(margin_str)

    # Validate range: minimum 0 inches, maximum 3 inches
    if value_inches < 0:
        raise ValueError(f"Margin cannot be negative: '{margin_str}'. Minimum value is 0.")
    elif value_inches > 3:
        raise ValueError(f"Margin too large: '{margin_str}'. Maximum value is 3 inches (7.62cm).")

    value_str, unit = _MARGIN_RE.match(margin_str.strip()).groups()
    return f"{float(value_str)}{unit or 'in'}"


def parse_margins(page_margins: str) -> Dict[str, str]:
    """Parse margin string into individual margin values."""
    margin_parts = page_margins.split()

    if len(margin_parts) == 1:
        # All margins same
        margin = validate_margin(margin_parts[0])
        return {'top': margin, 'right': margin, 'bottom': margin, 'left': margin}
    elif len(margin_parts) == 2:
        # Vertical and horizontal
        vertical = validate_margin(margin_parts[0])
        horizontal = validate_margin(margin_parts[1])
        return {'top': vertical, 'right': horizontal, 'bottom': vertical, 'left': horizontal}
    elif len(margin_parts) == 4:
        # Top, right, bottom, left
        return {
            'top': validate_margin(margin_parts[0]),
            'right': validate_margin(margin_parts[1]),
            'bottom': validate_margin(margin_parts[2]),
            'left': validate_margin(margin_parts[3])
        }
    else:
        raise ValueError(f"Invalid margin format: '{page_margins}'. Use 1, 2, or 4 values.")


def convert_margin_to_cm(margin_str: str) -> float:
    """Convert margin string to centimeters for the PDF printer."""
    return round(margin_to_inches(margin_str) * 2.54, 4)


@dataclass(frozen=True)
class PageGeometry:
    """Fixed page size plus margins, with derived sizes in CSS px and PDF points."""

    page_format: str = "A4"
    margins: Dict[str, str] = field(default_factory=lambda: parse_margins("2cm"))

    @classmethod
    def from_strings(cls, page_format: str = "A4", page_margins: str = "2cm") -> "PageGeometry":
        if page_format not in PAGE_FORMATS:
            raise ValueError(f"Unsupported page format '{page_format}'. Available: {', '.join(PAGE_FORMATS)}")
        return cls(page_format=page_format, margins=parse_margins(page_margins))

    def _margin_in(self, side: str) -> float:
        return margin_to_inches(self.margins[side])

    @property
    def page_width_in(self) -> float:
        return PAGE_FORMATS[self.page_format][0]

    @property
    def page_height_in(self) -> float:
        return PAGE_FORMATS[self.page_format][1]

    @property
    def page_height_pt(self) -> float:
        return self.page_height_in * PDF_DPI

    @property
    def margin_top_pt(self) -> float:
        return self._margin_in('top') * PDF_DPI

    @property
    def printable_width_px(self) -> float:
        """Width of the content box in CSS pixels."""
        return (self.page_width_in - self._margin_in('left') - self._margin_in('right')) * CSS_DPI

    @property
    def printable_height_px(self) -> float:
        """Height of the content box in CSS pixels; one page of continuous layout."""
        return (self.page_height_in - self._margin_in('top') - self._margin_in('bottom')) * CSS_DPI

    def margins_cm(self) -> Dict[str, str]:
        """Margins formatted for the engine's print options."""
        return {side: f"{convert_margin_to_cm(value)}cm" for side, value in self.margins.items()}


class Config:
    """Layered configuration: explicit (CLI) values, then MDPDF_* env vars, then defaults.

    A .env file in the working directory is loaded on construction.
    """

    ENV_PREFIX = "MDPDF_"

    DEFAULTS: Dict[str, Any] = {
        "source_dir": "docs",
        "output_dir": "output",
        "timeout": 60.0,
        "render_timeout": 30.0,
        "max_workers": 4,
        "margins": "2cm",
        "page_format": "A4",
        "style_profile": "document",
    }

    def __init__(self, cli_config: Optional[Dict[str, Any]] = None):
        load_dotenv()
        self._cli = {k: v for k, v in (cli_config or {}).items() if v is not None}

    def get(self, key: str) -> Any:
        if key not in self.DEFAULTS:
            raise KeyError(f"Unknown configuration key: {key}")
        if key in self._cli:
            return self._cli[key]

        default = self.DEFAULTS[key]
        env_value = os.environ.get(f"{self.ENV_PREFIX}{key.upper()}")
        if env_value is None or env_value == "":
            return default
        try:
            return type(default)(env_value)
        except ValueError:
            raise ValueError(f"Invalid value for {self.ENV_PREFIX}{key.upper()}: '{env_value}'")

    def get_source_dir(self) -> Path:
        return Path(self.get("source_dir"))

    def get_output_dir(self) -> Path:
        return Path(self.get("output_dir"))

    def get_timeout(self) -> float:
        return float(self.get("timeout"))

    def get_render_timeout(self) -> float:
        return float(self.get("render_timeout"))

    def get_max_workers(self) -> int:
        return max(1, int(self.get("max_workers")))

    def get_geometry(self) -> PageGeometry:
        return PageGeometry.from_strings(self.get("page_format"), self.get("margins"))

    def get_style_profile(self) -> StyleProfile:
        return get_style_profile(self.get("style_profile"))
