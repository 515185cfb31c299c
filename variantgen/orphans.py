"""
OrphanReconciler - Deletes derived files whose source image is gone.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .config import SyncConfig
from .hash_store import HashStore
from .naming import NamingConvention, relative_posix


@dataclass
class OrphanResult:
    """
    Outcome of checking one derived file.

    Attributes:
        relative_path: Derived path relative to the derived root
        derived: False when the name is not a derived artifact
        deleted: True if the file was an orphan and was removed
        removed_keys: Cache keys dropped by this check
    """
    relative_path: str
    derived: bool = True
    deleted: bool = False
    removed_keys: List[str] = field(default_factory=list)


class OrphanReconciler:
    """
    Decides whether a derived file is still justified by a live source.

    A derived file survives if a source exists under any configured origin
    format. Cache entries of the candidate sources are dropped once, even
    when several derived files of the same source are checked concurrently.
    """

    def __init__(
        self,
        config: SyncConfig,
        store: HashStore,
        naming: Optional[NamingConvention] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config
        self.store = store
        self.naming = naming or NamingConvention(config)
        self.logger = logger or logging.getLogger(__name__)

    def check(self, derived_path: str) -> OrphanResult:
        """
        Delete derived_path if none of its candidate sources exist.

        Args:
            derived_path: Absolute path of a file in the derived tree

        Returns:
            OrphanResult for the file
        """
        rel = relative_posix(self.config.derived_root, derived_path)
        candidates = self.naming.candidate_source_paths(rel)

        if not candidates:
            self.logger.debug(f"Ignoring non-derived file: {rel}")
            return OrphanResult(rel, derived=False)

        if any(os.path.exists(candidate) for candidate in candidates):
            return OrphanResult(rel)

        try:
            os.unlink(derived_path)
        except FileNotFoundError:
            self.logger.debug(f"Orphan already gone: {rel}")
        result = OrphanResult(rel, deleted=True)
        self.logger.info(f"Removed orphaned file: {rel}")

        for candidate in candidates:
            key = relative_posix(self.config.source_root, candidate)
            if self.store.discard(key):
                result.removed_keys.append(key)
                self.logger.info(f"Dropped cache entry: {key}")

        return result
