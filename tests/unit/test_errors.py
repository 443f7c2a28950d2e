"""Unit tests for the error kinds."""

import pytest

from mdpdf_outline.errors import (
    ConversionError,
    EngineLaunchFailed,
    ErrorKind,
    InternalConversionError,
    MarkdownRenderFailed,
    OutlineBuildFailed,
    RenderTimeout,
)


@pytest.mark.unit
@pytest.mark.parametrize("error_class, kind", [
    (MarkdownRenderFailed, ErrorKind.MARKDOWN_RENDER_FAILED),
    (EngineLaunchFailed, ErrorKind.ENGINE_LAUNCH_FAILED),
    (RenderTimeout, ErrorKind.RENDER_TIMEOUT),
    (OutlineBuildFailed, ErrorKind.OUTLINE_BUILD_FAILED),
    (InternalConversionError, ErrorKind.INTERNAL),
])
def test_error_classes_carry_kind(error_class, kind):
    error = error_class("boom")

    assert isinstance(error, ConversionError)
    assert error.kind is kind
    assert str(error) == f"{kind.value}: boom"
    assert error.message == "boom"


@pytest.mark.unit
def test_explicit_kind_overrides_default():
    error = ConversionError("late", kind=ErrorKind.RENDER_TIMEOUT)

    assert error.kind is ErrorKind.RENDER_TIMEOUT


@pytest.mark.unit
def test_only_timeouts_are_retryable():
    assert [k for k in ErrorKind if k.retryable] == [ErrorKind.RENDER_TIMEOUT]


@pytest.mark.unit
def test_omitted_kind_keeps_class_default():
    assert ConversionError("plain").kind is ErrorKind.INTERNAL
    assert RenderTimeout("slow", kind=None).kind is ErrorKind.RENDER_TIMEOUT
