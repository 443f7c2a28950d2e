#!/usr/bin/env python3
"""
Layout engine driver: loads the document into headless Chromium (Playwright),
waits for the in-page render-complete flag, measures heading anchors in the
continuous layout and prints the paginated PDF.

Every call launches its own browser, so concurrent conversions never share
engine state and a hung page can be torn down without touching the others.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import asyncio
import io
import re
from typing import List, Optional

from playwright.async_api import async_playwright, Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError
from pypdf import PdfReader

from .config import PageGeometry, StyleProfile
from .errors import EngineLaunchFailed, RenderTimeout
from .logger import ConsoleLogger
from .models import HeadingPosition, HeadingRecord, MeasuredLayout
from .template import READY_EXPRESSION

_ANCHOR_OFFSET_JS = """
(id) => {
    const element = document.getElementById(id);
    if (!element) return null;
    const rect = element.getBoundingClientRect();
    return rect.top + window.scrollY;
}
"""

_REMOTE_URL = re.compile(r"^https?://")


async def _abort_request(route) -> None:
    await route.abort()


# Upper bound for tearing down a browser that no longer responds
_CLOSE_TIMEOUT_S = 10.0


class LayoutEngineDriver:
    """Drive one isolated Chromium instance through load, wait, measure and print."""

    LAUNCH_ARGS = [
        '--disable-dev-shm-usage',  # Use /tmp instead of /dev/shm (prevents OOM crashes)
        '--disable-gpu',             # No GPU in headless mode
        '--no-sandbox',              # Required in some environments
    ]

    def __init__(self, geometry: PageGeometry, style: StyleProfile, render_timeout: float = 30.0,
                 logger: Optional[ConsoleLogger] = None, offline: bool = False):
        self.geometry = geometry
        self.style = style
        self.render_timeout = render_timeout
        self.offline = offline
        self.logger = logger or ConsoleLogger()
        self.engine_running = False

    async def measure(self, html: str, headings: List[HeadingRecord]) -> MeasuredLayout:
        """Render html, locate each heading anchor, and print to the configured page geometry.

        Raises:
            EngineLaunchFailed: Chromium could not be started
            RenderTimeout: the render-complete flag was not raised within render_timeout
        """
        playwright = None
        browser = None
        try:
            try:
                playwright = await async_playwright().start()
                browser = await playwright.chromium.launch(headless=True, args=self.LAUNCH_ARGS)
            except Exception as e:
                raise EngineLaunchFailed(f"Could not launch Chromium: {e}") from e
            self.engine_running = True
            self.logger.log_debug("Chromium instance launched")

            page = await browser.new_page(viewport={
                "width": round(self.geometry.printable_width_px),
                "height": round(self.geometry.printable_height_px),
            })
            # Measure with print rules applied so line wrapping matches the printed pages
            await page.emulate_media(media="print")
            if self.offline:
                await page.route(_REMOTE_URL, _abort_request)

            timeout_ms = self.render_timeout * 1000
            try:
                await page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
                self.logger.log_debug("Waiting for rendering logic (math + syntax highlighting)")
                await page.wait_for_function(READY_EXPRESSION, timeout=timeout_ms)
            except PlaywrightTimeoutError as e:
                raise RenderTimeout(f"Render-complete signal not received within {self.render_timeout:g}s") from e

            positions = await self._measure_headings(page, headings)

            self.logger.log_debug("Printing PDF")
            pdf_bytes = await page.pdf(
                format=self.geometry.page_format,
                margin=self.geometry.margins_cm(),
                print_background=True,
                prefer_css_page_size=True,
                display_header_footer=True,
                header_template=self.style.header_template,
                footer_template=self.style.footer_template,
                scale=1.0,
            )
        finally:
            await self._shutdown(browser, playwright)

        page_count = len(PdfReader(io.BytesIO(pdf_bytes)).pages)
        self.logger.log_debug(f"Printed {page_count} page(s), {len(positions)} heading anchor(s) located")
        return MeasuredLayout(pdf_bytes=pdf_bytes, page_count=page_count, positions=positions)

    async def _measure_headings(self, page, headings: List[HeadingRecord]) -> List[HeadingPosition]:
        """Top offset of each distinct anchor, in document order. Missing anchors are dropped."""
        positions = []
        seen = set()
        for heading in headings:
            if heading.anchor_id in seen:
                continue
            seen.add(heading.anchor_id)

            try:
                offset = await page.evaluate(_ANCHOR_OFFSET_JS, heading.anchor_id)
            except PlaywrightError as e:
                self.logger.log_warning(f"Lookup failed for heading '{heading.text}': {e}")
                continue

            if offset is None:
                self.logger.log_debug(f"Anchor '{heading.anchor_id}' not found in rendered page, skipping")
                continue
            positions.append(HeadingPosition(anchor_id=heading.anchor_id, vertical_offset_px=float(offset)))
        return positions

    async def _shutdown(self, browser, playwright) -> None:
        """Close browser and stop Playwright; runs on success, failure and cancellation."""
        try:
            if browser is not None:
                await asyncio.wait_for(browser.close(), _CLOSE_TIMEOUT_S)
        except (PlaywrightError, asyncio.TimeoutError) as e:
            self.logger.log_warning(f"Browser did not close cleanly: {e}")
        try:
            if playwright is not None:
                await asyncio.wait_for(playwright.stop(), _CLOSE_TIMEOUT_S)
        except (PlaywrightError, asyncio.TimeoutError) as e:
            self.logger.log_warning(f"Playwright did not stop cleanly: {e}")

        if self.engine_running:
            self.logger.log_debug("Chromium instance closed")
        self.engine_running = False
