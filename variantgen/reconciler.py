"""
Reconciler - Brings the derived tree in line with the source tree.
"""

import logging
import os
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Set

from .changes import AddPaths, Change, RemovePaths
from .config import SyncConfig
from .hash_store import HashStore
from .image_codec import ImageCodec
from .naming import NamingConvention, relative_posix
from .orphans import OrphanReconciler, OrphanResult
from .pipeline import TransformPipeline, TransformResult
from .progress import ReconcileProgress
from .reconcile_stats import ReconcileStats
from .tree_walker import TreeWalker
from .type_manifest import TypeManifest


class Reconciler:
    """
    Runs full or incremental reconciliation passes.

    Full mode (no change supplied) transforms every changed source file,
    then removes every orphaned derived file. Incremental mode touches only
    the files named by an AddPaths or RemovePaths change. Per-file work
    fans out on a thread pool and the pass returns once every file has
    completed or failed.
    """

    def __init__(
        self,
        config: SyncConfig,
        store: Optional[HashStore] = None,
        codec: Optional[ImageCodec] = None,
        progress: Optional[ReconcileProgress] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reconciler.

        Args:
            config: Engine configuration
            store: Hash store (loaded from config.cache_path if omitted)
            codec: Image codec (Pillow adapter if omitted)
            progress: Optional per-file progress reporter
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        if store is None:
            manifest = TypeManifest(config.type_path, self.logger) if config.type_path else None
            store = HashStore(config.cache_path, manifest, self.logger).load()
        self.store = store

        self.naming = NamingConvention(config)
        self.pipeline = TransformPipeline(
            config, codec or ImageCodec(logger=self.logger), store, self.naming, self.logger
        )
        self.orphans = OrphanReconciler(config, store, self.naming, self.logger)
        self.walker = TreeWalker(self.logger)
        self.progress = progress or ReconcileProgress(logger=self.logger)

    def run(self, change: Optional[Change] = None) -> ReconcileStats:
        """
        Run one reconciliation pass.

        Args:
            change: None for a full pass, otherwise AddPaths or RemovePaths

        Returns:
            ReconcileStats for the pass
        """
        if change is None:
            mode = 'full'
        elif isinstance(change, (AddPaths, RemovePaths)):
            mode = change.kind
        else:
            raise TypeError(f"Unknown change type: {type(change).__name__}")

        os.makedirs(self.config.source_root, exist_ok=True)
        os.makedirs(self.config.derived_root, exist_ok=True)

        stats = ReconcileStats(mode=mode)
        self.progress.on_pass_start(mode)

        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            if change is None:
                self._drain(self._submit_tree(pool, self.config.source_root, self.reconcile_source),
                            lambda result: self._record_source(stats, result))
                self._drain(self._submit_tree(pool, self.config.derived_root, self.orphans.check),
                            lambda result: self._record_derived(stats, result))
                stats.cache_entries_removed += self._prune_cache()
            elif isinstance(change, AddPaths):
                futures = [pool.submit(self.reconcile_source, path)
                           for path in self._existing_sources(change.paths)]
                self._drain(futures, lambda result: self._record_source(stats, result))
            else:
                futures = [pool.submit(self.orphans.check, path)
                           for path in self.related_derived_files(change.paths)]
                self._drain(futures, lambda result: self._record_derived(stats, result))

        stats.finish()
        self.progress.on_pass_complete(stats)
        return stats

    def reconcile_source(self, path: str) -> TransformResult:
        """Transform a source file if its content hash changed."""
        digest = ''
        if self.pipeline.accepts(path):
            rel = relative_posix(self.config.source_root, path)
            digest = self.store.hash_of(path)
            if digest and self.store.get(rel) == digest:
                self.logger.info(f"Skipping up-to-date file: {rel}")
                return TransformResult(rel, TransformResult.SKIPPED)

        result = self.pipeline.transform(path, digest)
        if result.success:
            self.logger.info(f"Processed: {result.relative_path} ({len(result.written)} variants)")
        return result

    def related_derived_files(self, source_paths: Iterable[str]) -> List[str]:
        """
        Find existing derived files of the given source paths.

        Each source's mirrored derived directory is listed once and the
        names whose decoded stem matches a supplied stem are returned.
        """
        stems_by_dir: Dict[str, Set[str]] = defaultdict(set)
        for path in source_paths:
            if not self._under_source_root(path):
                self.logger.debug(f"Ignoring path outside source root: {path}")
                continue
            directory, basename = os.path.split(os.path.relpath(path, self.config.source_root))
            stems_by_dir[directory].add(os.path.splitext(basename)[0])

        related = []
        for directory, stems in stems_by_dir.items():
            derived_dir = os.path.join(self.config.derived_root, directory)
            try:
                names = os.listdir(derived_dir)
            except (FileNotFoundError, NotADirectoryError):
                continue
            for name in self.naming.matching_stems(names, stems):
                related.append(os.path.join(derived_dir, name))
        return related

    def _submit_tree(
        self,
        pool: ThreadPoolExecutor,
        root: str,
        fn: Callable[[str], object]
    ) -> List[Future]:
        futures: List[Future] = []
        self.walker.walk(root, lambda path: futures.append(pool.submit(fn, path)))
        return futures

    @staticmethod
    def _drain(futures: List[Future], record: Callable) -> None:
        # Results are recorded on the calling thread; worker errors propagate.
        for future in as_completed(futures):
            record(future.result())

    def _existing_sources(self, paths: Iterable[str]) -> List[str]:
        existing = []
        for path in dict.fromkeys(os.path.abspath(p) for p in paths):
            if not self._under_source_root(path):
                self.logger.debug(f"Ignoring path outside source root: {path}")
            elif not os.path.isfile(path):
                self.logger.info(f"Skipping missing file: {path}")
            else:
                existing.append(path)
        return existing

    def _under_source_root(self, path: str) -> bool:
        root = self.config.source_root
        path = os.path.abspath(path)
        try:
            return path != root and os.path.commonpath([root, path]) == root
        except ValueError:
            return False

    def _prune_cache(self) -> int:
        """Drop cache keys whose source file no longer exists."""
        removed = 0
        for key in self.store.keys():
            if os.path.exists(os.path.join(self.config.source_root, key)):
                continue
            if self.store.discard(key):
                removed += 1
                self.logger.info(f"Dropped stale cache entry: {key}")
        return removed

    def _record_source(self, stats: ReconcileStats, result: TransformResult) -> None:
        if result.status == TransformResult.SKIPPED:
            stats.skipped += 1
        elif result.status == TransformResult.UNSUPPORTED:
            stats.unsupported += 1
        elif result.status == TransformResult.FAILED:
            stats.failed += 1
        else:
            stats.transformed += 1
        stats.outputs_written += len(result.written)
        stats.output_errors += len(result.errors)
        stats.error_details.extend(result.errors)
        self.progress.on_source_processed(result)

    def _record_derived(self, stats: ReconcileStats, result: OrphanResult) -> None:
        if result.deleted:
            stats.orphans_deleted += 1
        stats.cache_entries_removed += len(result.removed_keys)
        self.progress.on_derived_checked(result)
