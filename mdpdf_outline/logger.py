#!/usr/bin/env python3
"""
Coloured console logging shared by every pipeline component.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import threading

from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class ConsoleLogger:
    """Level-tagged console logger. A lock keeps lines from concurrent work whole."""

    def __init__(self, debug: bool = False, prefix: str = ""):
        self.debug = debug
        self.prefix = prefix
        self._lock = threading.Lock()

    def child(self, prefix: str) -> "ConsoleLogger":
        """Return a logger sharing this one's lock, tagging lines with prefix."""
        child = ConsoleLogger(self.debug, prefix)
        child._lock = self._lock
        return child

    def _emit(self, tag: str, message: str) -> None:
        label = f"[{self.prefix}] " if self.prefix else ""
        with self._lock:
            print(f"{tag}{Style.RESET_ALL} {label}{message}")

    def log_debug(self, message: str) -> None:
        """Log debug message with color (only if debug mode is enabled)."""
        if self.debug:
            self._emit(f"{Fore.CYAN}[DEBUG]", message)

    def log_info(self, message: str) -> None:
        """Log info message with color."""
        self._emit(f"{Fore.GREEN}[INFO]", message)

    def log_warning(self, message: str) -> None:
        """Log warning message with color."""
        self._emit(f"{Fore.YELLOW}[WARNING]", message)

    def log_error(self, message: str) -> None:
        """Log error message with color."""
        self._emit(f"{Fore.RED}[ERROR]", message)

    def log_success(self, message: str) -> None:
        """Log success message with color."""
        self._emit(f"{Fore.GREEN}[OK]", message)
