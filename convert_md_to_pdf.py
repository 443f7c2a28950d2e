#!/usr/bin/env python3
"""
Convert markdown files to PDF with bookmarks generated from headings.

Usage:
    python convert_md_to_pdf.py input.md [-o output.pdf] [--title TITLE]
    python convert_md_to_pdf.py docs/ --output-dir output

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import sys

from mdpdf_outline.converter import main

if __name__ == "__main__":
    sys.exit(main())
