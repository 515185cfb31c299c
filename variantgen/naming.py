"""
NamingConvention - Encodes and decodes derived image file names.

Derived files are named ``{stem}@{scale}x{format}``, e.g. ``logo@2x.webp``.
The grammar decoded here is::

    name   := stem "@" scale "x" format
    stem   := any non-empty text
    scale  := digit+ ("." digit+)?
    format := one of the known extensions, leading dot included
"""

import os
import posixpath
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, List, Optional, Tuple

from .config import SyncConfig


def normalize_format(ext: str) -> str:
    """Map a source extension to the format its own-format variant uses."""
    return '.jpeg' if ext == '.jpg' else ext


def format_scale(scale: float) -> str:
    """Render a scale without a trailing '.0' for whole numbers."""
    if float(scale).is_integer():
        return str(int(scale))
    return repr(float(scale))


def relative_posix(root: str, path: str) -> str:
    """Path of `path` relative to `root` using '/' separators."""
    return PurePath(os.path.relpath(path, root)).as_posix()


def _is_scale(text: str) -> bool:
    whole, dot, fraction = text.partition('.')
    if not whole.isdigit() or not whole.isascii():
        return False
    if dot:
        return fraction.isdigit() and fraction.isascii()
    return True


@dataclass(frozen=True)
class DerivedName:
    """Identity of one derived artifact."""
    stem: str
    scale: float
    format: str

    @property
    def filename(self) -> str:
        return f"{self.stem}@{format_scale(self.scale)}x{self.format}"


class NamingConvention:
    """
    Maps between source files and their derived variants.
    """

    def __init__(self, config: SyncConfig):
        self.config = config
        known = set(config.origin.formats) | set(config.target.formats)
        known |= {normalize_format(fmt) for fmt in config.origin.formats}
        # Longest first so '.jpeg' wins over a hypothetical '.eg'
        self.known_formats: Tuple[str, ...] = tuple(
            sorted(known, key=lambda fmt: (-len(fmt), fmt))
        )

    @staticmethod
    def encode(stem: str, scale: float, fmt: str) -> str:
        return DerivedName(stem, scale, fmt).filename

    def decode(self, filename: str) -> Optional[DerivedName]:
        """
        Parse a derived file name.

        Returns:
            DerivedName, or None when the name is not a derived artifact
        """
        for fmt in self.known_formats:
            if not filename.endswith(fmt):
                continue
            head = filename[:-len(fmt)]
            if not head.endswith('x'):
                continue
            stem, at, scale_text = head[:-1].rpartition('@')
            if not at or not stem or not _is_scale(scale_text):
                continue
            number = float(scale_text)
            scale = int(number) if number.is_integer() else number
            return DerivedName(stem=stem, scale=scale, format=fmt)
        return None

    def output_formats(self, source_ext: str) -> List[str]:
        """Target formats plus the source's own normalized format."""
        formats = list(self.config.target.formats)
        own = normalize_format(source_ext)
        if own not in formats:
            formats.append(own)
        return formats

    def variants(self, source_ext: str) -> List[Tuple[float, str]]:
        """Every (scale, format) pair to produce for one source file."""
        return [
            (scale, fmt)
            for scale in self.config.target.scales
            for fmt in self.output_formats(source_ext)
        ]

    def derived_path(self, source_path: str, scale: float, fmt: str) -> str:
        """Absolute derived path mirroring the source's relative directory."""
        rel = os.path.relpath(source_path, self.config.source_root)
        directory, basename = os.path.split(rel)
        stem = os.path.splitext(basename)[0]
        return os.path.join(self.config.derived_root, directory, self.encode(stem, scale, fmt))

    def candidate_source_paths(self, derived_relative_path: str) -> List[str]:
        """
        Every source path that could justify a derived file.

        One candidate per configured origin format. Empty when the name
        does not decode as a derived artifact.
        """
        directory, filename = posixpath.split(derived_relative_path)
        name = self.decode(filename)
        if name is None:
            return []
        return [
            os.path.normpath(
                os.path.join(self.config.source_root, directory, f"{name.stem}{fmt}")
            )
            for fmt in self.config.origin.formats
        ]

    def srcset(self, stem: str, fmt: str = '.jpeg', base_url: str = '') -> str:
        """
        Build an HTML srcset value over the configured scales.

        Args:
            stem: Image name without extension
            fmt: Variant format to reference
            base_url: URL prefix of the derived tree
        """
        prefix = base_url.rstrip('/')
        return ','.join(
            f"{prefix}/{self.encode(stem, scale, fmt)} {format_scale(scale)}x"
            for scale in self.config.target.scales
        )

    def matching_stems(self, filenames: Iterable[str], stems: Iterable[str]) -> List[str]:
        """Filter filenames down to derived names whose stem is in stems."""
        wanted = set(stems)
        matched = []
        for filename in filenames:
            name = self.decode(filename)
            if name is not None and name.stem in wanted:
                matched.append(filename)
        return matched
