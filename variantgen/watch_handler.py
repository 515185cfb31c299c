"""
SourceTreeHandler - Feeds watchdog file events into an EventAggregator.
"""

import logging
import os
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .aggregator import EventAggregator


class SourceTreeHandler(FileSystemEventHandler):
    """
    Forwards file created/modified/deleted events under the source root.

    Paths outside the source root are dropped. A move is recorded as a
    delete of the old path and a create of the new one.

    Directory events are not forwarded. A directory moved out of the tree
    (or renamed within it) arrives as a single directory event, so the
    variants of the files it held stay in the derived tree until the next
    full pass.
    """

    def __init__(
        self,
        source_root: str,
        aggregator: EventAggregator,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__()
        self.source_root = os.path.abspath(source_root)
        self.aggregator = aggregator
        self.logger = logger or logging.getLogger(__name__)

    def accepts(self, path) -> bool:
        """True if path lies under the source root."""
        path = os.path.abspath(os.fsdecode(path))
        try:
            return path != self.source_root and \
                os.path.commonpath([self.source_root, path]) == self.source_root
        except ValueError:
            return False

    def _forward(self, kind: str, path) -> None:
        if not self.accepts(path):
            return
        self.aggregator.record(kind, os.fsdecode(path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward('created', event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward('modified', event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward('deleted', event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._forward('deleted', event.src_path)
        self._forward('created', event.dest_path)


def start_observer(handler: SourceTreeHandler) -> Observer:
    """Schedule handler recursively on its source root and start watching."""
    os.makedirs(handler.source_root, exist_ok=True)
    observer = Observer()
    observer.schedule(handler, handler.source_root, recursive=True)
    observer.start()
    handler.logger.info(f"Watching {handler.source_root}")
    return observer
