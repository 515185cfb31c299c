"""
TransformPipeline - Produces every configured variant of one changed source image.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .config import SyncConfig
from .hash_store import HashStore
from .image_codec import ImageCodec
from .naming import NamingConvention, format_scale, relative_posix


@dataclass
class TransformResult:
    """
    Outcome of transforming one source file.

    Attributes:
        relative_path: Source path relative to the source root
        status: One of UNSUPPORTED, SKIPPED, DONE, PARTIAL, FAILED
        written: Derived paths written successfully
        errors: One message per failed output (or per failed file)
    """
    UNSUPPORTED = 'unsupported'
    SKIPPED = 'skipped'
    DONE = 'done'
    PARTIAL = 'partial'
    FAILED = 'failed'

    relative_path: str
    status: str
    written: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status in (self.DONE, self.PARTIAL)


class TransformPipeline:
    """
    Resizes one source image into every (scale, format) variant.

    The caller decides whether the file changed; the pipeline does not
    re-check the cache. Each variant is written independently, so a codec
    failure for one pair never aborts its siblings. The new hash is stored
    when at least one variant was written.
    """

    def __init__(
        self,
        config: SyncConfig,
        codec: ImageCodec,
        store: HashStore,
        naming: Optional[NamingConvention] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pipeline.

        Args:
            config: Engine configuration
            codec: Image codec (Pillow adapter or a test double)
            store: Hash store updated after a successful transform
            naming: Naming convention (built from config if omitted)
            logger: Optional logger instance
        """
        self.config = config
        self.codec = codec
        self.store = store
        self.naming = naming or NamingConvention(config)
        self.logger = logger or logging.getLogger(__name__)

    def accepts(self, path: str) -> bool:
        """True if the file's extension is a configured origin format."""
        return os.path.splitext(path)[1] in self.config.origin.formats

    def transform(self, path: str, digest: str) -> TransformResult:
        """
        Generate all variants for one source file.

        Args:
            path: Absolute source file path
            digest: Content hash to record on success

        Returns:
            TransformResult describing what was written
        """
        rel = relative_posix(self.config.source_root, path)

        if not self.accepts(path):
            self.logger.info(f"Skipping unsupported format: {rel}")
            return TransformResult(rel, TransformResult.UNSUPPORTED)

        ext = os.path.splitext(path)[1]
        try:
            base_width = self.codec.width_of(path) / self.config.origin.scale_divisor
        except Exception as e:
            error_msg = f"Error reading {rel}: {e}"
            self.logger.error(error_msg)
            return TransformResult(rel, TransformResult.FAILED, errors=[error_msg])

        result = TransformResult(rel, TransformResult.FAILED)
        for scale, fmt in self.naming.variants(ext):
            dest = self.naming.derived_path(path, scale, fmt)
            width = max(1, round(scale * base_width))
            try:
                os.makedirs(os.path.dirname(dest), exist_ok=True)
                self.codec.resize(path, dest, width, fmt)
                result.written.append(dest)
            except Exception as e:
                error_msg = f"Error generating {rel} @{format_scale(scale)}x{fmt}: {e}"
                self.logger.error(error_msg)
                result.errors.append(error_msg)

        if result.written:
            result.status = TransformResult.PARTIAL if result.errors else TransformResult.DONE
            self.store.set(rel, digest)
        else:
            self.logger.warning(f"No variants written for {rel}; hash not recorded")

        return result
