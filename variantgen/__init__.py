"""
Incremental image variant generation.

Derives {stem}@{scale}x{format} variants of every image in a source tree
and keeps the derived tree in step with it:
    1. Full pass: transform changed sources, then remove orphaned variants
    2. Incremental pass: process only the paths reported by a file watcher

A persisted content-hash cache decides which sources changed.
"""

__version__ = "1.0.0"

from .config import OriginSpec, TargetSpec, SyncConfig
from .hash_store import HashStore
from .type_manifest import TypeManifest
from .tree_walker import TreeWalker, walk_files
from .naming import DerivedName, NamingConvention
from .image_codec import ImageCodec
from .pipeline import TransformPipeline, TransformResult
from .orphans import OrphanReconciler, OrphanResult
from .changes import AddPaths, RemovePaths
from .reconcile_stats import ReconcileStats
from .progress import ReconcileProgress
from .reconciler import Reconciler
from .aggregator import EventAggregator

__all__ = [
    "OriginSpec",
    "TargetSpec",
    "SyncConfig",
    "HashStore",
    "TypeManifest",
    "TreeWalker",
    "walk_files",
    "DerivedName",
    "NamingConvention",
    "ImageCodec",
    "TransformPipeline",
    "TransformResult",
    "OrphanReconciler",
    "OrphanResult",
    "AddPaths",
    "RemovePaths",
    "ReconcileStats",
    "ReconcileProgress",
    "Reconciler",
    "EventAggregator",
]
