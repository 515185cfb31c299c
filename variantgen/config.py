"""
SyncConfig - Configuration for source/derived image tree synchronisation.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple


DEFAULT_SOURCE_ROOT = 'src/assets/images'
DEFAULT_DERIVED_ROOT = 'src/assets/.images'
DEFAULT_CACHE_PATH = 'src/assets/.cacheimages.json'
DEFAULT_ORIGIN_FORMATS = ('.png', '.jpg', '.jpeg')
DEFAULT_ORIGIN_SCALE = 3.0
DEFAULT_TARGET_FORMATS = ('.webp', '.avif')
DEFAULT_TARGET_SCALES = (1, 2, 3)
DEFAULT_WORKERS = 4


def parse_formats(value: str) -> Tuple[str, ...]:
    """Parse a comma separated list of extensions, adding the leading dot."""
    formats = []
    for item in value.split(','):
        item = item.strip().lower()
        if not item:
            continue
        if not item.startswith('.'):
            item = f'.{item}'
        if item not in formats:
            formats.append(item)
    return tuple(formats)


def parse_scales(value: str) -> Tuple[float, ...]:
    """Parse a comma separated list of scale multipliers."""
    scales = []
    for item in value.split(','):
        item = item.strip().lower().rstrip('x')
        if not item:
            continue
        number = float(item)
        scale = int(number) if number.is_integer() else number
        if scale not in scales:
            scales.append(scale)
    return tuple(scales)


@dataclass
class OriginSpec:
    """
    Recognised source images.

    Attributes:
        formats: Extensions accepted as source images (e.g. '.png')
        scale_divisor: The density the sources are authored at; the natural
            width divided by this is the 1x base width
    """
    formats: Tuple[str, ...]
    scale_divisor: float


@dataclass
class TargetSpec:
    """
    Variants to derive from every source image.

    Attributes:
        formats: Extensions to encode each variant into
        scales: Multipliers of the base width, one variant set per scale
    """
    formats: Tuple[str, ...]
    scales: Tuple[float, ...]


@dataclass
class SyncConfig:
    """
    Configuration for one engine run.

    All fields are required by the engine; defaults are supplied by
    from_env() and the command line, never by the engine itself.
    """
    source_root: str
    derived_root: str
    cache_path: str
    origin: OriginSpec
    target: TargetSpec
    type_path: Optional[str] = None
    workers: int = DEFAULT_WORKERS

    def __post_init__(self):
        self.source_root = os.path.abspath(self.source_root)
        self.derived_root = os.path.abspath(self.derived_root)
        self.cache_path = os.path.abspath(self.cache_path)
        if self.type_path:
            self.type_path = os.path.abspath(self.type_path)

    @classmethod
    def from_env(cls) -> 'SyncConfig':
        """Create configuration from VARIANTGEN_* environment variables."""
        return cls(
            source_root=os.environ.get('VARIANTGEN_SOURCE_ROOT', DEFAULT_SOURCE_ROOT),
            derived_root=os.environ.get('VARIANTGEN_DERIVED_ROOT', DEFAULT_DERIVED_ROOT),
            cache_path=os.environ.get('VARIANTGEN_CACHE_PATH', DEFAULT_CACHE_PATH),
            type_path=os.environ.get('VARIANTGEN_TYPE_PATH') or None,
            origin=OriginSpec(
                formats=parse_formats(
                    os.environ.get('VARIANTGEN_ORIGIN_FORMATS', ','.join(DEFAULT_ORIGIN_FORMATS))
                ),
                scale_divisor=float(os.environ.get('VARIANTGEN_ORIGIN_SCALE', DEFAULT_ORIGIN_SCALE)),
            ),
            target=TargetSpec(
                formats=parse_formats(
                    os.environ.get('VARIANTGEN_TARGET_FORMATS', ','.join(DEFAULT_TARGET_FORMATS))
                ),
                scales=parse_scales(
                    os.environ.get(
                        'VARIANTGEN_TARGET_SCALES',
                        ','.join(str(s) for s in DEFAULT_TARGET_SCALES),
                    )
                ),
            ),
            workers=int(os.environ.get('VARIANTGEN_WORKERS', DEFAULT_WORKERS)),
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.origin.formats:
            errors.append("At least one origin format is required")
        if not self.target.scales:
            errors.append("At least one target scale is required")
        for fmt in list(self.origin.formats) + list(self.target.formats):
            if not fmt.startswith('.') or len(fmt) < 2:
                errors.append(f"Invalid format extension: {fmt!r}")
        if self.origin.scale_divisor <= 0:
            errors.append("Origin scale divisor must be positive")
        for scale in self.target.scales:
            if scale <= 0:
                errors.append(f"Target scale must be positive: {scale}")
        if self.workers < 1:
            errors.append("Workers must be at least 1")
        if self.source_root == self.derived_root:
            errors.append("Source and derived roots must differ")
        elif self._roots_nested():
            errors.append("Source and derived roots must not contain each other")

        return errors

    def _roots_nested(self) -> bool:
        try:
            common = os.path.commonpath([self.source_root, self.derived_root])
        except ValueError:
            return False
        return common in (self.source_root, self.derived_root)
