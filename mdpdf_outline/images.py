#!/usr/bin/env python3
"""
Inline local images as data URIs so the rendered page needs no filesystem base.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import base64
import io
import mimetypes
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from PIL import Image

from .logger import ConsoleLogger

_PASSTHROUGH_PREFIXES = ('http://', 'https://', 'data:', '//')


class ImageEmbedder:
    """Resolve image references against a base directory and inline them."""

    def __init__(self, base_dir: Path, max_width_px: Optional[int] = None, logger: Optional[ConsoleLogger] = None):
        self.base_dir = Path(base_dir)
        self.max_width_px = max_width_px
        self.logger = logger or ConsoleLogger()
        self._cache = {}

    def embed(self, src: str) -> str:
        """Return a data URI for a local image, or src unchanged when it cannot be inlined."""
        if not src or src.startswith(_PASSTHROUGH_PREFIXES):
            return src
        if src in self._cache:
            return self._cache[src]

        img_path = Path(unquote(src))
        if not img_path.is_absolute():
            img_path = self.base_dir / img_path

        if not img_path.is_file():
            self.logger.log_warning(f"Image not found: {img_path}")
            return src

        mime_type = mimetypes.guess_type(img_path.name)[0] or 'application/octet-stream'
        try:
            if mime_type == 'image/svg+xml':
                data = img_path.read_bytes()
            else:
                data, mime_type = self._read_scaled(img_path, mime_type)
        except (OSError, ValueError) as e:
            self.logger.log_warning(f"Failed to embed image {src}: {e}")
            return src

        uri = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        self._cache[src] = uri
        self.logger.log_debug(f"Embedded image: {src} ({len(data)} bytes)")
        return uri

    def _read_scaled(self, image_path: Path, mime_type: str) -> tuple:
        """Read an image, downscaling it when wider than max_width_px.

        Returns:
            Tuple of (image bytes, mime type)
        """
        raw = image_path.read_bytes()
        if not self.max_width_px:
            return raw, mime_type

        with Image.open(io.BytesIO(raw)) as img:
            orig_width, orig_height = img.size
            if orig_width <= self.max_width_px:
                return raw, mime_type

            if img.mode not in ('RGB', 'RGBA'):
                # Preserve transparency if present
                if img.mode in ('P', 'PA', 'LA') and 'transparency' in img.info:
                    img = img.convert('RGBA')
                else:
                    img = img.convert('RGB')

            scale_factor = self.max_width_px / orig_width
            new_size = (self.max_width_px, max(1, int(orig_height * scale_factor)))
            resized = img.resize(new_size, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            if mime_type == 'image/jpeg' and resized.mode == 'RGB':
                resized.save(buffer, format='JPEG', quality=95, subsampling=0)
            else:
                resized.save(buffer, format='PNG', compress_level=6)
                mime_type = 'image/png'

        self.logger.log_debug(
            f"Resized image {image_path.name} from {orig_width}x{orig_height} to {new_size[0]}x{new_size[1]}"
        )
        return buffer.getvalue(), mime_type
