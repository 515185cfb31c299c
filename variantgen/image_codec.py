"""
ImageCodec - Pillow-backed decode, resize and encode of image variants.
"""

import logging
import os
import tempfile
from typing import Optional

from PIL import Image


class ImageCodec:
    """
    Reads image metadata and writes resized copies using Pillow.
    """

    PIL_FORMATS = {
        '.jpg': 'JPEG',
        '.jpeg': 'JPEG',
        '.png': 'PNG',
        '.gif': 'GIF',
        '.webp': 'WEBP',
        '.avif': 'AVIF',
    }

    def __init__(self, quality: int = 85, logger: Optional[logging.Logger] = None):
        """
        Initialize codec.

        Args:
            quality: Quality for lossy output formats (default: 85)
            logger: Optional logger instance
        """
        self.quality = quality
        self.logger = logger or logging.getLogger(__name__)

    def width_of(self, path: str) -> int:
        """Natural pixel width of an image (header read only)."""
        with Image.open(path) as img:
            return img.size[0]

    def resize(self, source: str, dest: str, width: int, fmt: str) -> None:
        """
        Resize source to `width` keeping aspect ratio and encode to dest.

        Args:
            source: Source image path
            dest: Output file path (parent directory must exist)
            width: Output width in pixels
            fmt: Output extension (e.g. '.webp')

        Raises:
            ValueError: If the format is not supported
        """
        output_format = self.PIL_FORMATS.get(fmt.lower())
        if output_format is None:
            raise ValueError(f"Unsupported output format: {fmt}")

        with Image.open(source) as img:
            img.load()
            src_width, src_height = img.size
            height = max(1, round(src_height * width / src_width))
            resized = img.resize((width, height), Image.Resampling.LANCZOS)

        directory = os.path.dirname(dest) or '.'
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{os.path.basename(dest)}.", suffix='.tmp'
        )
        os.close(fd)
        try:
            if output_format == 'JPEG':
                resized = self._convert_color_mode(resized)
                resized.save(tmp_path, format='JPEG', quality=self.quality, optimize=True)
            elif output_format == 'PNG':
                resized.save(tmp_path, format='PNG', optimize=True)
            elif output_format in ('WEBP', 'AVIF'):
                resized.save(tmp_path, format=output_format, quality=self.quality)
            else:
                resized.save(tmp_path, format=output_format)
            # An existing variant is only ever replaced by a complete file
            os.replace(tmp_path, dest)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        self.logger.debug(f"Wrote {dest} ({width}x{height}, {os.path.getsize(dest)} bytes)")

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Flatten transparency onto white for formats without alpha."""
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            if img.mode == 'LA':
                img = img.convert('RGBA')
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode == 'P':
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
