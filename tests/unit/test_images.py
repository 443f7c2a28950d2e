"""Unit tests for inlining local images."""

import base64
import io

import pytest
from PIL import Image

from mdpdf_outline.images import ImageEmbedder
from mdpdf_outline.renderer import render_markdown


def _write_png(path, width, height):
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(path, format="PNG")


def _decode(uri):
    header, payload = uri.split(",", 1)
    return header, base64.b64decode(payload)


@pytest.mark.unit
@pytest.mark.parametrize("src", [
    "https://example.com/a.png",
    "http://example.com/a.png",
    "//cdn.example.com/a.png",
    "data:image/png;base64,AAAA",
])
def test_remote_sources_untouched(tmp_path, logger, src):
    assert ImageEmbedder(tmp_path, logger=logger).embed(src) == src


@pytest.mark.unit
def test_missing_image_left_as_is(tmp_path, logger):
    assert ImageEmbedder(tmp_path, logger=logger).embed("nope.png") == "nope.png"


@pytest.mark.unit
def test_small_image_embedded_verbatim(tmp_path, logger):
    _write_png(tmp_path / "dot.png", 10, 10)

    uri = ImageEmbedder(tmp_path, max_width_px=100, logger=logger).embed("dot.png")
    header, data = _decode(uri)

    assert header == "data:image/png;base64"
    assert data == (tmp_path / "dot.png").read_bytes()


@pytest.mark.unit
def test_wide_image_downscaled(tmp_path, logger):
    _write_png(tmp_path / "wide.png", 400, 100)

    uri = ImageEmbedder(tmp_path, max_width_px=200, logger=logger).embed("wide.png")
    _, data = _decode(uri)

    with Image.open(io.BytesIO(data)) as img:
        assert img.size == (200, 50)


@pytest.mark.unit
def test_svg_embedded_raw(tmp_path, logger):
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"></svg>'
    (tmp_path / "icon.svg").write_bytes(svg)

    header, data = _decode(ImageEmbedder(tmp_path, max_width_px=10, logger=logger).embed("icon.svg"))

    assert header == "data:image/svg+xml;base64"
    assert data == svg


@pytest.mark.unit
def test_url_encoded_path(tmp_path, logger):
    (tmp_path / "my images").mkdir()
    _write_png(tmp_path / "my images" / "a b.png", 4, 4)

    uri = ImageEmbedder(tmp_path, logger=logger).embed("my%20images/a%20b.png")

    assert uri.startswith("data:image/png;base64,")


@pytest.mark.unit
def test_render_markdown_inlines_images(tmp_path, logger):
    _write_png(tmp_path / "pic.png", 4, 4)

    rendered = render_markdown("# Pic\n\n![alt text](pic.png)\n", base_dir=tmp_path, logger=logger)

    assert 'src="data:image/png;base64,' in rendered.html
    assert 'alt="alt text"' in rendered.html


@pytest.mark.unit
def test_render_markdown_without_base_dir_keeps_src():
    rendered = render_markdown("![x](pic.png)")

    assert 'src="pic.png"' in rendered.html
