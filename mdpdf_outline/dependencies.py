#!/usr/bin/env python3
"""
Runtime dependency checks: Playwright and its Chromium build.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import importlib.util
import subprocess
import sys
from pathlib import Path

from colorama import Fore, Style


def _report(ok: bool, message: str) -> bool:
    mark = f"{Fore.GREEN}✓" if ok else f"{Fore.RED}✗"
    print(f"{mark}{Style.RESET_ALL} {message}")
    return ok


def run_command(cmd: list, description: str) -> bool:
    """Run a command and return success status."""
    print(f"Installing {description}...")
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        stderr = getattr(e, 'stderr', None) or str(e)
        return _report(False, f"Failed to install {description}: {stderr}")
    return _report(True, f"{description} installed successfully")


def install_browsers() -> bool:
    """Download the Chromium build Playwright drives."""
    return run_command([sys.executable, "-m", "playwright", "install", "chromium"], "Playwright Chromium")


def chromium_installed() -> bool:
    """Whether Playwright's Chromium executable is present on disk."""
    from playwright.sync_api import Error as PlaywrightError, sync_playwright

    try:
        with sync_playwright() as playwright:
            executable = playwright.chromium.executable_path
    except PlaywrightError:
        return False
    return bool(executable) and Path(executable).exists()


def check_dependencies(install_missing: bool = False) -> bool:
    """Check (and optionally install) everything a conversion needs. Prints one line per check."""
    if importlib.util.find_spec("playwright") is None:
        _report(False, "Error: playwright is required but not found. Please install playwright.")
        print("Run: pip install playwright && playwright install chromium")
        return False
    _report(True, "Playwright is available")

    if chromium_installed():
        return _report(True, "Chromium is available")

    if install_missing and install_browsers():
        return _report(chromium_installed(), "Chromium is available")

    _report(False, "Chromium is not installed for Playwright")
    print(f"Run: {sys.executable} -m playwright install chromium")
    return False
