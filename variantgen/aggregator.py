"""
EventAggregator - Coalesces raw watch events into debounced incremental passes.
"""

import logging
import os
import threading
from typing import Dict, List, Optional, Set

from .changes import AddPaths, RemovePaths


class EventAggregator:
    """
    Collects changed source paths and flushes them after a quiet period.

    Every path is pending as either an add or a remove, never both; the
    latest classification wins. Each event cancels and replaces the
    debounce timer, so a flush happens only once events stop arriving for
    `delay` seconds. Recording an event is cheap and never waits on a
    running flush.
    """

    EVENT_KINDS: Dict[str, str] = {
        'created': 'add',
        'modified': 'add',
        'deleted': 'remove',
    }

    def __init__(
        self,
        reconciler,
        delay: float = 1.0,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize aggregator.

        Args:
            reconciler: Object with run(change) called for each flushed set
            delay: Debounce window in seconds
            logger: Optional logger instance
        """
        self.reconciler = reconciler
        self.delay = delay
        self.logger = logger or logging.getLogger(__name__)
        self.to_add: Set[str] = set()
        self.to_remove: Set[str] = set()
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._closed = False

    def record(self, kind: str, path: str) -> None:
        """
        Classify a raw watch event.

        Args:
            kind: 'created', 'modified' or 'deleted'
            path: Absolute path of the changed file
        """
        action = self.EVENT_KINDS.get(kind)
        if action is None:
            self.logger.debug(f"Ignoring {kind} event: {path}")
            return
        if action == 'add':
            self.add(path)
        else:
            self.remove(path)

    def add(self, path: str) -> None:
        self._classify(os.path.abspath(path), self.to_add, self.to_remove)

    def remove(self, path: str) -> None:
        self._classify(os.path.abspath(path), self.to_remove, self.to_add)

    def pending(self) -> Dict[str, List[str]]:
        """Snapshot of the pending sets."""
        with self._lock:
            return {'add': sorted(self.to_add), 'remove': sorted(self.to_remove)}

    def _classify(self, path: str, target: Set[str], opposite: Set[str]) -> None:
        with self._lock:
            if self._closed:
                self.logger.debug(f"Aggregator closed, dropping event: {path}")
                return
            opposite.discard(path)
            target.add(path)
            self._restart_timer()

    def _restart_timer(self) -> None:
        # Caller holds self._lock
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(self.delay, self.flush)
        self._timer.daemon = True
        self._timer.start()

    def reconcile_all(self):
        """
        Run a full pass with flushes held off.

        Events recorded while the pass runs stay pending and are flushed
        by the next debounce window.
        """
        with self._flush_lock:
            return self.reconciler.run()

    def flush(self) -> None:
        """
        Hand pending paths to the reconciler.

        Adds are flushed before removes; empty sets are skipped. Flushes
        never overlap, and events recorded meanwhile wait for the next one.
        A failing pass is logged and re-raised once both sets were tried.
        """
        with self._flush_lock:
            with self._lock:
                to_add = sorted(self.to_add)
                to_remove = sorted(self.to_remove)
                self.to_add.clear()
                self.to_remove.clear()

            error = None
            if to_add:
                self.logger.info(f"Flushing {len(to_add)} added/changed files")
                try:
                    self.reconciler.run(AddPaths(tuple(to_add)))
                except Exception as e:
                    self.logger.exception(f"Reconciling {len(to_add)} added/changed files failed: {e}")
                    error = e
            if to_remove:
                self.logger.info(f"Flushing {len(to_remove)} removed files")
                try:
                    self.reconciler.run(RemovePaths(tuple(to_remove)))
                except Exception as e:
                    self.logger.exception(f"Reconciling {len(to_remove)} removed files failed: {e}")
                    error = error or e
            if error is not None:
                raise error

    def close(self, flush: bool = True) -> None:
        """
        Stop the debounce timer.

        Args:
            flush: If True, hand any pending paths to the reconciler now
        """
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if flush:
            self.flush()
