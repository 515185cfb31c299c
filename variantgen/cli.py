"""
Command Line Interface for image variant synchronisation.
"""

import argparse
import dataclasses
import logging
import time
from typing import List, Optional

from .aggregator import EventAggregator
from .changes import AddPaths, RemovePaths
from .config import SyncConfig, parse_formats, parse_scales
from .naming import NamingConvention
from .progress import ReconcileProgress
from .reconciler import Reconciler


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('watchdog').setLevel(logging.WARNING)

    return logging.getLogger('variantgen')


def get_config(args: argparse.Namespace) -> SyncConfig:
    """Get configuration from environment and CLI overrides."""
    config = SyncConfig.from_env()
    overrides = {}

    if getattr(args, 'source', None):
        overrides['source_root'] = args.source
    if getattr(args, 'derived', None):
        overrides['derived_root'] = args.derived
    if getattr(args, 'cache', None):
        overrides['cache_path'] = args.cache
    if getattr(args, 'type_path', None):
        overrides['type_path'] = args.type_path
    if getattr(args, 'origin_format', None):
        config.origin.formats = parse_formats(args.origin_format)
    if getattr(args, 'origin_scale', None) is not None:
        config.origin.scale_divisor = args.origin_scale
    if getattr(args, 'target_format', None):
        config.target.formats = parse_formats(args.target_format)
    if getattr(args, 'target_scale', None):
        config.target.scales = parse_scales(args.target_scale)
    if getattr(args, 'workers', None) is not None:
        overrides['workers'] = args.workers

    return dataclasses.replace(config, **overrides)


def load_config(args: argparse.Namespace, logger: logging.Logger) -> Optional[SyncConfig]:
    """Build and validate configuration, logging every problem."""
    try:
        config = get_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return None

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return None
    return config


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Add tree and variant configuration arguments to a parser."""
    trees = parser.add_argument_group('Trees')
    trees.add_argument('--source', metavar='DIR', help='Source image directory')
    trees.add_argument('--derived', metavar='DIR', help='Derived image directory')
    trees.add_argument('--cache', metavar='FILE', help='Hash cache JSON file')
    trees.add_argument('--type-path', metavar='FILE',
                       help='Write an ImageName TypeScript declaration here')

    variants = parser.add_argument_group('Variants')
    variants.add_argument('--origin-format', metavar='EXTS',
                          help='Comma separated source extensions (e.g. .png,.jpg)')
    variants.add_argument('--origin-scale', type=float, metavar='N',
                          help='Density the sources are authored at')
    variants.add_argument('--target-format', metavar='EXTS',
                          help='Comma separated output extensions (e.g. .webp,.avif)')
    variants.add_argument('--target-scale', metavar='SCALES',
                          help='Comma separated output scales (e.g. 1,2,3)')
    variants.add_argument('-w', '--workers', type=int, metavar='N',
                          help='Files processed concurrently')


def make_reconciler(args: argparse.Namespace, config: SyncConfig, logger: logging.Logger) -> Reconciler:
    progress = ReconcileProgress(show_files=args.show_files, logger=logger)
    return Reconciler(config, progress=progress, logger=logger)


def cmd_sync(args: argparse.Namespace) -> int:
    """Execute sync command (one full or incremental pass)."""
    logger = setup_logging(args.verbose)

    config = load_config(args, logger)
    if config is None:
        return 1

    logger.info(f"Source: {config.source_root}")
    logger.info(f"Derived: {config.derived_root}")
    logger.info(f"Cache: {config.cache_path}")

    change = None
    if args.add:
        change = AddPaths(tuple(args.add))
    elif args.remove:
        change = RemovePaths(tuple(args.remove))

    try:
        reconciler = make_reconciler(args, config, logger)
        stats = reconciler.run(change)

        if not args.quiet:
            print()
            print(f"Transformed: {stats.transformed}")
            print(f"Up to date: {stats.skipped}")
            print(f"Orphans removed: {stats.orphans_deleted}")
            print(f"Errors: {stats.failed + stats.output_errors}")
            print(f"Time: {stats.elapsed_seconds:.1f}s")

        return 1 if stats.has_failures else 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        return 1


def cmd_watch(args: argparse.Namespace) -> int:
    """Execute watch command (full pass, then debounced incremental passes)."""
    from .watch_handler import SourceTreeHandler, start_observer

    logger = setup_logging(args.verbose)

    config = load_config(args, logger)
    if config is None:
        return 1

    try:
        reconciler = make_reconciler(args, config, logger)
    except Exception as e:
        logger.exception(f"Failed to initialise: {e}")
        return 1

    aggregator = EventAggregator(reconciler, delay=args.debounce, logger=logger)
    handler = SourceTreeHandler(config.source_root, aggregator, logger)
    # Watch before the initial pass so changes made during it are not missed
    observer = start_observer(handler)
    logger.info(f"Debounce: {args.debounce}s")

    try:
        aggregator.reconcile_all()
    except Exception as e:
        logger.exception(f"Initial sync failed: {e}")
        observer.stop()
        observer.join()
        aggregator.close(flush=False)
        return 1

    try:
        while observer.is_alive():
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        observer.stop()
        observer.join()

    try:
        aggregator.close(flush=True)
    except Exception:
        return 1

    return 0


def cmd_srcset(args: argparse.Namespace) -> int:
    """Print a srcset attribute value for an image name."""
    logger = setup_logging(args.verbose)

    config = load_config(args, logger)
    if config is None:
        return 1

    fmt = parse_formats(args.format)[0] if args.format else '.jpeg'
    print(NamingConvention(config).srcset(args.name, fmt, args.base_url))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='variantgen',
        description='Derive resized/reformatted image variants from a source tree',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Workflow:
  One-off:     python -m variantgen sync
  Live:        python -m variantgen watch
  Targeted:    python -m variantgen sync --add src/assets/images/logo.png

Variants are named {stem}@{scale}x{format}, e.g. logo@2x.webp.
Settings may also come from VARIANTGEN_* environment variables.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Sync command
    sync_parser = subparsers.add_parser('sync', help='Run one reconciliation pass')
    targets = sync_parser.add_mutually_exclusive_group()
    targets.add_argument('--add', action='append', metavar='PATH',
                         help='Only process these added/changed source files')
    targets.add_argument('--remove', action='append', metavar='PATH',
                         help='Only reconcile variants of these removed source files')
    sync_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress summary output')
    sync_parser.add_argument('--show-files', action='store_true',
                             help='Print each file as processed with result')
    sync_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(sync_parser)

    # Watch command
    watch_parser = subparsers.add_parser('watch', help='Sync, then keep syncing on file changes')
    watch_parser.add_argument('-d', '--debounce', type=float, default=1.0,
                              help='Seconds of quiet before changes are processed (default: 1.0)')
    watch_parser.add_argument('--show-files', action='store_true',
                              help='Print each file as processed with result')
    watch_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(watch_parser)

    # Srcset command
    srcset_parser = subparsers.add_parser('srcset', help='Print a srcset value for an image')
    srcset_parser.add_argument('name', help='Image name without extension')
    srcset_parser.add_argument('-f', '--format', help='Variant format (default: .jpeg)')
    srcset_parser.add_argument('--base-url', default='', help='URL prefix of the derived tree')
    srcset_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(srcset_parser)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'sync':
        return cmd_sync(parsed_args)
    elif parsed_args.command == 'watch':
        return cmd_watch(parsed_args)
    elif parsed_args.command == 'srcset':
        return cmd_srcset(parsed_args)

    return 1
