"""
ReconcileProgress - Per-file reporting for reconciliation passes.
"""

import logging
from typing import Optional

from .orphans import OrphanResult
from .pipeline import TransformResult
from .reconcile_stats import ReconcileStats


class ReconcileProgress:
    """
    Reports every per-file outcome, printing one line per file when
    show_files is set and logging otherwise.
    """

    def __init__(
        self,
        show_files: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress reporter.

        Args:
            show_files: If True, print each file as it's processed
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.logger = logger or logging.getLogger(__name__)

    def on_pass_start(self, mode: str) -> None:
        self.logger.info(f"Image sync started ({mode})")

    def on_source_processed(self, result: TransformResult) -> None:
        """Called when a source file has been considered."""
        if result.status == TransformResult.SKIPPED:
            self._emit('SKIP', f"{result.relative_path} -> up to date")
        elif result.status == TransformResult.UNSUPPORTED:
            self._emit('SKIP', f"{result.relative_path} -> unsupported format")
        elif result.status == TransformResult.FAILED:
            error = result.errors[0] if result.errors else 'failed'
            self._emit('ERROR', f"{result.relative_path} -> {error}")
        else:
            suffix = f", {len(result.errors)} failed" if result.errors else ""
            self._emit(
                'OK',
                f"{result.relative_path} -> {len(result.written)} variants{suffix}"
            )

    def on_derived_checked(self, result: OrphanResult) -> None:
        """Called when a derived file has been checked."""
        if result.deleted:
            self._emit('DELETE', f"{result.relative_path} -> orphaned")

    def on_pass_complete(self, stats: ReconcileStats) -> None:
        self.logger.info(
            f"Image sync finished ({stats.mode}): {stats.transformed} transformed, "
            f"{stats.skipped} up to date, {stats.unsupported} unsupported, "
            f"{stats.failed} failed, {stats.orphans_deleted} orphans removed "
            f"({stats.elapsed_seconds:.1f}s)"
        )

    def _emit(self, tag: str, message: str) -> None:
        # Pipeline and orphan checks already log outcomes at INFO/ERROR
        if self.show_files:
            print(f"  [{tag}] {message}")
        else:
            self.logger.debug(f"[{tag}] {message}")
