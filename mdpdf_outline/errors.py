#!/usr/bin/env python3
"""
Error kinds raised by the conversion pipeline.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers of the pipeline."""

    MARKDOWN_RENDER_FAILED = "MarkdownRenderFailed"
    ENGINE_LAUNCH_FAILED = "EngineLaunchFailed"
    RENDER_TIMEOUT = "RenderTimeout"
    OUTLINE_BUILD_FAILED = "OutlineBuildFailed"
    INTERNAL = "Internal"

    @property
    def retryable(self) -> bool:
        """Whether re-running the whole conversion may succeed."""
        return self is ErrorKind.RENDER_TIMEOUT


class ConversionError(Exception):
    """Base class for every pipeline failure. Carries an ErrorKind."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class MarkdownRenderFailed(ConversionError):
    kind = ErrorKind.MARKDOWN_RENDER_FAILED


class EngineLaunchFailed(ConversionError):
    kind = ErrorKind.ENGINE_LAUNCH_FAILED


class RenderTimeout(ConversionError):
    kind = ErrorKind.RENDER_TIMEOUT


class OutlineBuildFailed(ConversionError):
    kind = ErrorKind.OUTLINE_BUILD_FAILED


class InternalConversionError(ConversionError):
    kind = ErrorKind.INTERNAL
