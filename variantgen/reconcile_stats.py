"""
ReconcileStats - Statistics for a reconciliation pass.
"""

import time
from dataclasses import dataclass, field
from typing import List


@dataclass
class ReconcileStats:
    """
    Statistics for a reconciliation pass.

    Attributes:
        mode: 'full', 'add' or 'remove'
        transformed: Source files with at least one variant written
        skipped: Source files already up to date
        unsupported: Source files with an unrecognised extension
        failed: Source files where no variant could be written
        outputs_written: Variant files written
        output_errors: Variant files that failed
        orphans_deleted: Derived files removed
        cache_entries_removed: Cache keys dropped
        start_time: Start timestamp
        error_details: List of error messages
    """
    mode: str = 'full'
    transformed: int = 0
    skipped: int = 0
    unsupported: int = 0
    failed: int = 0
    outputs_written: int = 0
    output_errors: int = 0
    orphans_deleted: int = 0
    cache_entries_removed: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0
    error_details: List[str] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        end = self.end_time or time.time()
        return end - self.start_time

    @property
    def sources_seen(self) -> int:
        """Source files considered in this pass."""
        return self.transformed + self.skipped + self.unsupported + self.failed

    @property
    def has_failures(self) -> bool:
        """True if any file or variant failed."""
        return self.failed > 0 or self.output_errors > 0

    def finish(self) -> 'ReconcileStats':
        self.end_time = time.time()
        return self
