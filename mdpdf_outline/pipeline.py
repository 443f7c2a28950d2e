#!/usr/bin/env python3
"""
Conversion orchestrator: one Markdown document to one bookmarked PDF.

    Pending -> Rendering -> Measuring -> Synthesizing -> Done
                      \\____________\\_____________\\__> Failed

A Conversion is a single-use unit of work. It owns every intermediate
object it creates, so any number of conversions may run concurrently.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from .config import STYLE_PROFILES, PageGeometry, StyleProfile
from .errors import ConversionError, InternalConversionError, MarkdownRenderFailed, RenderTimeout
from .layout import LayoutEngineDriver
from .locator import build_entries
from .logger import ConsoleLogger
from .outline import attach_outline
from .renderer import extract_title, render_markdown
from .template import build_document


class ConversionState(str, Enum):
    PENDING = "Pending"
    RENDERING = "Rendering"
    MEASURING = "Measuring"
    SYNTHESIZING = "Synthesizing"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class ConversionOptions:
    """Per-conversion settings. Picklable, so it can be shipped to worker processes."""

    geometry: PageGeometry = field(default_factory=PageGeometry)
    style: StyleProfile = STYLE_PROFILES["document"]
    timeout: float = 60.0
    render_timeout: float = 30.0
    precise_bookmarks: bool = False
    offline: bool = False
    base_dir: Optional[Path] = None


@dataclass
class ConversionResult:
    state: ConversionState
    title: str = ""
    pdf_bytes: Optional[bytes] = None
    html: Optional[str] = None
    bookmark_count: int = 0
    error: Optional[ConversionError] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.state is ConversionState.DONE


def default_driver_factory(options: ConversionOptions, logger: ConsoleLogger) -> LayoutEngineDriver:
    return LayoutEngineDriver(options.geometry, options.style, options.render_timeout, logger,
                              offline=options.offline)


class Conversion:
    """Drive one document through render, measure and outline synthesis under a time budget."""

    def __init__(self, markdown: Union[str, bytes], title: Optional[str] = None,
                 options: Optional[ConversionOptions] = None, logger: Optional[ConsoleLogger] = None,
                 source_name: str = "", driver_factory: Optional[Callable] = None):
        self.markdown = markdown
        self.title = title
        self.options = options or ConversionOptions()
        self.logger = logger or ConsoleLogger()
        self.source_name = source_name
        self.driver_factory = driver_factory or default_driver_factory
        self.state = ConversionState.PENDING
        self._html = None
        self._bookmark_count = 0

    def _enter(self, state: ConversionState) -> None:
        self.logger.log_debug(f"{self.state.value} -> {state.value}")
        self.state = state

    async def run(self) -> ConversionResult:
        """Run the conversion. Never raises ConversionError; failures are reported in the result."""
        if self.state is not ConversionState.PENDING:
            raise RuntimeError("A Conversion can only be run once")

        started = time.monotonic()
        try:
            pdf_bytes = await asyncio.wait_for(self._run_stages(), timeout=self.options.timeout)
        except asyncio.TimeoutError as e:
            error = RenderTimeout(
                f"Conversion exceeded its {self.options.timeout:g}s budget while {self.state.value}"
            )
            error.__cause__ = e
            return self._fail(error, started)
        except ConversionError as e:
            return self._fail(e, started)
        except Exception as e:
            error = InternalConversionError(f"{type(e).__name__}: {e}")
            error.__cause__ = e
            return self._fail(error, started)

        self._enter(ConversionState.DONE)
        return ConversionResult(
            state=self.state,
            title=self.title,
            pdf_bytes=pdf_bytes,
            html=self._html,
            bookmark_count=self._bookmark_count,
            elapsed=time.monotonic() - started,
        )

    def _fail(self, error: ConversionError, started: float) -> ConversionResult:
        self.logger.log_error(f"Conversion failed while {self.state.value}: {error}")
        self._enter(ConversionState.FAILED)
        return ConversionResult(
            state=self.state,
            title=self.title or "",
            error=error,
            elapsed=time.monotonic() - started,
        )

    async def _run_stages(self) -> bytes:
        options = self.options

        self._enter(ConversionState.RENDERING)
        source = self.markdown
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MarkdownRenderFailed(f"Input is not valid UTF-8: {e}") from e

        # Run off the event loop so the budget can expire mid-render and other conversions keep going
        rendered = await asyncio.to_thread(
            render_markdown,
            source,
            base_dir=options.base_dir,
            max_image_width_px=round(options.geometry.printable_width_px * 2),
            logger=self.logger,
        )
        self.title = self.title or extract_title(rendered.headings, self.source_name)
        self._html = build_document(rendered.html, self.title, options.style, options.geometry)

        self._enter(ConversionState.MEASURING)
        driver = self.driver_factory(options, self.logger)
        layout = await driver.measure(self._html, rendered.headings)

        self._enter(ConversionState.SYNTHESIZING)
        entries = build_entries(
            rendered.headings,
            layout.positions,
            options.geometry,
            layout.page_count,
            precise=options.precise_bookmarks,
        )
        dropped = len(rendered.headings) - len(entries)
        if dropped:
            self.logger.log_debug(f"{dropped} heading(s) could not be located and have no bookmark")

        pdf_bytes = await asyncio.to_thread(attach_outline, layout.pdf_bytes, entries, self.logger)
        self._bookmark_count = len(entries)
        return pdf_bytes


async def convert_markdown_async(markdown: Union[str, bytes], title: Optional[str] = None,
                                 options: Optional[ConversionOptions] = None,
                                 logger: Optional[ConsoleLogger] = None, source_name: str = "") -> ConversionResult:
    """Convert one document; the result carries either the PDF or the error."""
    return await Conversion(markdown, title, options, logger, source_name).run()


def convert_markdown(markdown: Union[str, bytes], title: Optional[str] = None,
                     options: Optional[ConversionOptions] = None, logger: Optional[ConsoleLogger] = None) -> bytes:
    """Synchronous entry point: Markdown in, PDF bytes out.

    Raises:
        ConversionError: with ``kind`` describing why the conversion failed
    """
    result = asyncio.run(convert_markdown_async(markdown, title, options, logger))
    if not result.ok:
        raise result.error
    return result.pdf_bytes
