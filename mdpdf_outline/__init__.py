"""
Markdown to PDF conversion with heading bookmarks.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

from .config import Config, PageGeometry, StyleProfile, STYLE_PROFILES
from .errors import (
    ConversionError,
    EngineLaunchFailed,
    ErrorKind,
    InternalConversionError,
    MarkdownRenderFailed,
    OutlineBuildFailed,
    RenderTimeout,
)
from .layout import LayoutEngineDriver
from .locator import build_entries, locate
from .models import BookmarkEntry, HeadingPosition, HeadingRecord, MeasuredLayout, RenderedMarkdown
from .outline import OutlineBuilder, attach_outline
from .pipeline import (
    Conversion,
    ConversionOptions,
    ConversionResult,
    ConversionState,
    convert_markdown,
    convert_markdown_async,
)
from .renderer import render_markdown
from .template import build_document

__version__ = "1.0.0"

__all__ = [
    "BookmarkEntry",
    "Config",
    "Conversion",
    "ConversionError",
    "ConversionOptions",
    "ConversionResult",
    "ConversionState",
    "EngineLaunchFailed",
    "ErrorKind",
    "HeadingPosition",
    "HeadingRecord",
    "InternalConversionError",
    "LayoutEngineDriver",
    "MarkdownRenderFailed",
    "MeasuredLayout",
    "OutlineBuildFailed",
    "OutlineBuilder",
    "PageGeometry",
    "RenderTimeout",
    "RenderedMarkdown",
    "STYLE_PROFILES",
    "StyleProfile",
    "attach_outline",
    "build_document",
    "build_entries",
    "convert_markdown",
    "convert_markdown_async",
    "locate",
    "render_markdown",
]
