"""
TreeWalker - Recursive file enumeration for the source and derived trees.
"""

import logging
import os
from typing import Callable, Iterator, Optional


def walk_files(root: str) -> Iterator[str]:
    """
    Yield the absolute path of every regular file under root.

    Each directory is listed exactly once; empty directories yield
    nothing and a missing root yields nothing. Order is unspecified.
    """
    stack = [root]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except FileNotFoundError:
            continue

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                stack.append(entry.path)
            elif entry.is_file():
                yield os.path.abspath(entry.path)


class TreeWalker:
    """Visits every file under a root with a callback."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def walk(self, root: str, visit: Callable[[str], None]) -> int:
        """
        Call visit(path) for each file under root.

        Returns:
            Number of files visited
        """
        count = 0
        for path in walk_files(root):
            visit(path)
            count += 1
        self.logger.debug(f"Walked {count} files under {root}")
        return count
