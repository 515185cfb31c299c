"""
Change sets selecting incremental reconciliation.
"""

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class AddPaths:
    """Source files that were created or modified."""
    paths: Tuple[str, ...]

    kind = 'add'


@dataclass(frozen=True)
class RemovePaths:
    """Source files that were deleted."""
    paths: Tuple[str, ...]

    kind = 'remove'


Change = Union[AddPaths, RemovePaths]
