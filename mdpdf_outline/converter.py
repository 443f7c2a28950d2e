#!/usr/bin/env python3
"""
Markdown to PDF converter with heading bookmarks, rendered through headless Chromium.
File and batch level driver plus the command line interface.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import asyncio
import multiprocessing
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Sequence

from tqdm import tqdm

from .config import Config, PageGeometry, get_style_profile, STYLE_PROFILES, PAGE_FORMATS
from .dependencies import check_dependencies
from .logger import ConsoleLogger
from .outline import read_outline
from .pipeline import Conversion, ConversionOptions, ConversionResult

MARKDOWN_SUFFIXES = ('.md', '.markdown')

# --- Module-level worker infrastructure for ProcessPoolExecutor ---
# ProcessPoolExecutor requires picklable callables. Each worker process builds
# its own converter, so every conversion there launches its own browser and
# event loop, isolated from other workers.
_worker_converter = None


def _init_worker_process(converter_kwargs: dict) -> None:
    """Initializer called once per worker process. Creates a process-local converter."""
    global _worker_converter
    _worker_converter = MarkdownToPDFConverter(**converter_kwargs)


def _worker_convert_file(md_file: Path) -> tuple:
    """Top-level function executed in worker process. Converts a single file."""
    return _worker_converter._convert_single_file(md_file)


class MarkdownToPDFConverter:
    """Convert Markdown files (or uploaded Markdown bytes) into bookmarked PDFs."""

    def __init__(self, output_dir: str = "output", page_margins: str = "2cm", page_format: str = "A4",
                 debug: bool = False, style_profile: str = "document", max_workers: int = 4,
                 timeout: float = 60.0, render_timeout: float = 30.0, precise_bookmarks: bool = False,
                 save_html: bool = False, offline: bool = False):
        """Initialize the converter.

        Args:
            output_dir: Directory receiving <stem>.pdf for batch and file conversions
            page_margins: CSS margin shorthand (1, 2 or 4 values, 0-3 inches each)
            timeout: Wall-clock budget for one conversion, in seconds
            render_timeout: Maximum wait for the page's render-complete signal, in seconds
            precise_bookmarks: Point bookmarks at the heading's position instead of the page top
            save_html: If True, save the intermediate HTML alongside the PDF
            offline: Block CDN requests; math and code highlighting are then left unrendered
        """
        self.output_dir = Path(output_dir)
        self.page_margins = page_margins
        self.page_format = page_format
        self.debug = debug
        self.style_profile = style_profile
        self.max_workers = max_workers
        self.timeout = timeout
        self.render_timeout = render_timeout
        self.precise_bookmarks = precise_bookmarks
        self.save_html = save_html
        self.offline = offline
        self.logger = ConsoleLogger(debug)

        # Validate settings up front so bad margins or profiles fail before any browser starts
        self.style = get_style_profile(style_profile)
        self.geometry = PageGeometry.from_strings(page_format, page_margins)

        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.logger.log_debug(f"Using style profile: {self.style.name} - {self.style.description}")
        self.logger.log_debug(f"Page geometry: {page_format}, margins {self.geometry.margins}")

    def _options(self, base_dir: Optional[Path] = None) -> ConversionOptions:
        return ConversionOptions(
            geometry=self.geometry,
            style=self.style,
            timeout=self.timeout,
            render_timeout=self.render_timeout,
            precise_bookmarks=self.precise_bookmarks,
            offline=self.offline,
            base_dir=base_dir,
        )

    def convert_bytes(self, markdown: bytes, title: Optional[str] = None) -> ConversionResult:
        """Convert uploaded Markdown bytes. Relative images are not resolved (no base directory)."""
        conversion = Conversion(markdown, title, self._options(), self.logger, source_name=title or "")
        return asyncio.run(conversion.run())

    def convert_file(self, md_file: Path, output_pdf: Optional[Path] = None,
                     title: Optional[str] = None) -> ConversionResult:
        """Convert one Markdown file and write the PDF (and optionally the HTML)."""
        md_file = Path(md_file)
        output_pdf = Path(output_pdf) if output_pdf else self.output_dir / f"{md_file.stem}.pdf"
        logger = self.logger.child(md_file.name)

        logger.log_info(f"Converting {md_file.name}")
        conversion = Conversion(
            md_file.read_bytes(),
            title,
            self._options(base_dir=md_file.parent.resolve()),
            logger,
            source_name=md_file.stem,
        )
        result = asyncio.run(conversion.run())
        if not result.ok:
            return result

        output_pdf.parent.mkdir(parents=True, exist_ok=True)
        output_pdf.write_bytes(result.pdf_bytes)
        if self.save_html:
            output_html = output_pdf.with_suffix(".html")
            output_html.write_text(result.html, encoding="utf-8")
            logger.log_debug(f"Saved HTML to {output_html}")

        if self.debug:
            for title_text, page_index in read_outline(result.pdf_bytes):
                logger.log_debug(f"Bookmark '{title_text}' -> page {page_index + 1}")
        logger.log_success(
            f"Converted {md_file.name} to {output_pdf.name} "
            f"({result.bookmark_count} bookmark(s), {result.elapsed:.1f}s)"
        )
        return result

    def _convert_single_file(self, md_file: Path) -> tuple:
        """Convert a single markdown file to PDF. Returns (status, filename).

        Status is one of: 'converted', 'failed'.
        """
        try:
            result = self.convert_file(md_file)
        except OSError as e:
            self.logger.log_error(f"Error processing {md_file.name}: {e}")
            return "failed", md_file.name
        return ("converted" if result.ok else "failed"), md_file.name

    @staticmethod
    def collect_inputs(paths: Sequence[Path]) -> List[Path]:
        """Expand files and directories into the markdown files to convert.

        Directories contribute their *.md / *.markdown files, excluding README.md.
        """
        md_files = []
        for path in map(Path, paths):
            if path.is_dir():
                md_files.extend(
                    sorted(f for f in path.iterdir()
                           if f.suffix.lower() in MARKDOWN_SUFFIXES and f.name != "README.md")
                )
            else:
                md_files.append(path)
        return md_files

    def convert_all(self, md_files: List[Path], parallel: bool = True) -> int:
        """Convert all given markdown files. Returns the number of failures."""
        if not md_files:
            self.logger.log_warning("No markdown files found.")
            return 0

        self.logger.log_info("Starting markdown to PDF conversion...")
        self.logger.log_info(f"Output directory: {self.output_dir.absolute()}")
        self.logger.log_info(f"Found {len(md_files)} markdown files: {[f.name for f in md_files]}")

        if parallel and len(md_files) > 1 and self.max_workers > 1:
            self.logger.log_info(f"Using parallel processing with {self.max_workers} workers")
            return self._convert_all_parallel(md_files)
        self.logger.log_info("Using sequential processing")
        return self._convert_all_sequential(md_files)

    def _get_constructor_kwargs(self) -> dict:
        """Return the kwargs needed to reconstruct this converter in a worker process."""
        return {
            'output_dir': str(self.output_dir),
            'page_margins': self.page_margins,
            'page_format': self.page_format,
            'debug': self.debug,
            'style_profile': self.style_profile,
            'max_workers': 1,  # Workers don't spawn sub-workers
            'timeout': self.timeout,
            'render_timeout': self.render_timeout,
            'precise_bookmarks': self.precise_bookmarks,
            'save_html': self.save_html,
            'offline': self.offline,
        }

    def _convert_all_parallel(self, md_files: List[Path]) -> int:
        """Convert files in parallel using ProcessPoolExecutor.

        Each worker runs in its own OS process with a separate Chromium instance,
        so a browser crash in one worker cannot corrupt other workers or the main process.
        """
        success_count = 0
        failed_count = 0

        # Use 'spawn' context to get clean processes (no forked Playwright state)
        mp_context = multiprocessing.get_context('spawn')

        with ProcessPoolExecutor(
            max_workers=self.max_workers,
            mp_context=mp_context,
            initializer=_init_worker_process,
            initargs=(self._get_constructor_kwargs(),)
        ) as executor:
            future_to_file = {executor.submit(_worker_convert_file, md_file): md_file for md_file in md_files}

            with tqdm(total=len(md_files), desc="Converting files", unit="file") as pbar:
                for future in as_completed(future_to_file):
                    md_file = future_to_file[future]
                    try:
                        status, filename = future.result()
                    except Exception as e:
                        self.logger.log_error(f"Worker process error for {md_file.name}: {e}")
                        status, filename = "failed", md_file.name

                    if status == "converted":
                        success_count += 1
                        pbar.set_postfix_str(f"Converted: {filename}")
                    else:
                        failed_count += 1
                        pbar.set_postfix_str(f"Failed: {filename}")
                    pbar.update(1)

        self.logger.log_success(
            f"Parallel conversion complete: {success_count} files converted, {failed_count} files failed "
            f"({success_count + failed_count}/{len(md_files)} total)"
        )
        return failed_count

    def _convert_all_sequential(self, md_files: List[Path]) -> int:
        """Convert files one after another."""
        success_count = 0
        failed_count = 0

        for md_file in tqdm(md_files, desc="Converting files", unit="file"):
            status, _ = self._convert_single_file(md_file)
            if status == "converted":
                success_count += 1
            else:
                failed_count += 1

        self.logger.log_success(
            f"Sequential conversion complete: {success_count} files converted, {failed_count} files failed "
            f"({success_count + failed_count}/{len(md_files)} total)"
        )
        return failed_count


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Convert markdown files to PDF with clickable bookmarks generated from headings"
    )
    parser.add_argument("inputs", nargs="*", help="Markdown files or directories (default: source dir from config/env)")
    parser.add_argument("-o", "--output", default=None, help="Output PDF path (single input only)")
    parser.add_argument("--title", default=None, help="Document title (default: first H1 or file name)")
    parser.add_argument("--output-dir", default=None, help="Output directory (default: from config/env/output)")
    parser.add_argument("--margins", default=None, help="Page margins in CSS format (default: '2cm'). Range: 0-3 inches. Use 1, 2, or 4 values. Units: in, cm, mm, pt, px")
    parser.add_argument("--format", dest="page_format", default=None, choices=sorted(PAGE_FORMATS), help="Page format (default: A4)")
    parser.add_argument("--profile", default=None, choices=list(STYLE_PROFILES), help="Style profile (default: 'document')")
    parser.add_argument("--timeout", type=float, default=None, help="Wall-clock budget per conversion in seconds (default: 60)")
    parser.add_argument("--render-timeout", type=float, default=None, help="Maximum wait for math/highlighting to finish in seconds (default: 30)")
    parser.add_argument("--max-workers", type=int, default=None, help="Maximum number of parallel workers (default: 4)")
    parser.add_argument("--no-parallel", action="store_true", help="Disable parallel processing and use sequential conversion")
    parser.add_argument("--precise-bookmarks", action="store_true", help="Point bookmarks at the heading instead of the top of its page")
    parser.add_argument("--save-html", action="store_true", help="Save the intermediate HTML next to each PDF")
    parser.add_argument("--offline", action="store_true", help="Do not fetch CDN assets (KaTeX, Prism); math and highlighting stay unrendered")
    parser.add_argument("--install-browsers", action="store_true", help="Install Playwright's Chromium if it is missing")
    parser.add_argument("--skip-dependency-check", action="store_true", help="Do not check for Playwright/Chromium before converting")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for detailed output")

    args = parser.parse_args(argv)

    config = Config({
        "output_dir": args.output_dir,
        "margins": args.margins,
        "page_format": args.page_format,
        "style_profile": args.profile,
        "timeout": args.timeout,
        "render_timeout": args.render_timeout,
        "max_workers": args.max_workers,
    })
    logger = ConsoleLogger(args.debug)

    if not args.skip_dependency_check and not check_dependencies(install_missing=args.install_browsers):
        return 1

    try:
        converter = MarkdownToPDFConverter(
            output_dir=str(config.get_output_dir()),
            page_margins=config.get("margins"),
            page_format=config.get("page_format"),
            debug=args.debug,
            style_profile=config.get("style_profile"),
            max_workers=config.get_max_workers(),
            timeout=config.get_timeout(),
            render_timeout=config.get_render_timeout(),
            precise_bookmarks=args.precise_bookmarks,
            save_html=args.save_html,
            offline=args.offline,
        )
    except ValueError as e:
        logger.log_error(str(e))
        return 2

    md_files = converter.collect_inputs(args.inputs or [config.get_source_dir()])

    if args.output or args.title:
        if len(md_files) != 1:
            logger.log_error("--output and --title require exactly one input file")
            return 2
        try:
            result = converter.convert_file(md_files[0], args.output, args.title)
        except OSError as e:
            logger.log_error(f"Error processing {md_files[0]}: {e}")
            return 1
        return 0 if result.ok else 1

    failed = converter.convert_all(md_files, parallel=not args.no_parallel)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
