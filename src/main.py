# src/main.py — v1
"""Admin CLI — metrics and invalidation against the configured cache store.

Usage:
    ragcache metrics
    ragcache invalidate --video <video_id> [--video <video_id> ...]
    ragcache invalidate --all

Connection settings come from .env / environment (CACHE_BACKEND, CACHE_REDIS_URL...).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

from ragcache.version import __version__

if TYPE_CHECKING:
    from ragcache.api.facade import SearchCacheService
    from ragcache.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from pydantic import ValidationError

    from ragcache.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ragcache",
        description=f"ragcache v{__version__} — transcript search cache administration",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- metrics ---
    p_metrics = subparsers.add_parser(
        "metrics", help="Print cache hit/miss counters as JSON",
    )
    p_metrics.set_defaults(func=_cmd_metrics)

    # --- invalidate ---
    p_invalidate = subparsers.add_parser(
        "invalidate", help="Delete cached search results",
    )
    target = p_invalidate.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--video", action="append", dest="video_ids", metavar="VIDEO_ID",
        help="Invalidate entries that may contain this video (repeatable)",
    )
    target.add_argument(
        "--all", action="store_true", dest="flush_all",
        help="Flush every cached search result",
    )
    p_invalidate.set_defaults(func=_cmd_invalidate)

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    from ragcache.api.facade import SearchCacheService

    service = SearchCacheService.from_settings(settings)
    try:
        return await args.func(args, service)
    finally:
        await service.close()


async def _cmd_metrics(args: argparse.Namespace, service: SearchCacheService) -> int:
    """Print the metrics snapshot."""
    snapshot = await service.get_metrics_snapshot()
    print(json.dumps(snapshot.as_dict(), indent=2))
    return 0


async def _cmd_invalidate(args: argparse.Namespace, service: SearchCacheService) -> int:
    """Invalidate per video, or flush everything."""
    if args.flush_all:
        deleted = await service.invalidate_all()
        print(json.dumps({"deleted": deleted}))
        return 0

    per_video: dict[str, int] = {}
    for video_id in args.video_ids:
        per_video[video_id] = await service.invalidate_for_video(video_id)
    print(json.dumps({"deleted": sum(per_video.values()), "videos": per_video}))
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage; stdout is reserved for command output."""
    from ragcache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format="text",
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
        library_level="DEBUG" if verbose else "WARNING",
    )


if __name__ == "__main__":
    sys.exit(main())
