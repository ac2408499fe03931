"""
Tieba Widget - cached forum posts with image prefetch

Usage:
    python main.py                      # Refresh every tracked forum
    python main.py [--force] NAME ...   # Refresh the given forums
    python main.py add NAME             # Track a forum
    python main.py remove INDEX         # Stop tracking the forum at INDEX
    python main.py list                 # Show tracked forums
    python main.py pref KEY [VALUE]     # Read or set a preference

Examples:
    python main.py --force 李毅          # Fetch even if the cache is fresh
    python main.py pref refresh-circle 15
"""
import argparse
import asyncio
import json
import logging
import sys

from src.app import EntryOrchestrator
from src.config import Config
from src.diagnostics import FileDiagnostics, NullDiagnostics
from src.downloader import HttpFetcher, ImageDownloader
from src.fs import DirectoryHousekeeper
from src.log import setup_logger
from src.source import TiebaClient
from src.storage import CacheStore, OptionsStore, PreferencesStore, init_database


COMMANDS = ("add", "remove", "list", "pref")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cache forum posts and prefetch their images.")
    sub = parser.add_subparsers(dest="command")

    add = sub.add_parser("add", help="Track a forum")
    add.add_argument("name")

    remove = sub.add_parser("remove", help="Stop tracking a forum")
    remove.add_argument("index", type=int)

    sub.add_parser("list", help="Show tracked forums")

    pref = sub.add_parser("pref", help="Read or set a preference")
    pref.add_argument("key")
    pref.add_argument("value", nargs="?")

    return parser


def build_refresh_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refresh forum posts.")
    parser.add_argument("--force", action="store_true", help="Fetch even if the cache is fresh")
    parser.add_argument("names", nargs="*", help="Forums to refresh (default: all tracked)")
    return parser


async def refresh(names: list[str], force: bool, logger: logging.Logger) -> int:
    """Refresh forums and log a summary. Returns the process exit code."""
    conn = init_database(Config.DB_PATH)
    diagnostics = FileDiagnostics(Config.LOGS_DIR, logger) if Config.DEBUG else NullDiagnostics()

    try:
        async with HttpFetcher(
            timeout=Config.REQUEST_TIMEOUT,
            per_host_limit=Config.PER_HOST_LIMIT,
            logger=logger
        ) as fetcher:
            orchestrator = EntryOrchestrator(
                cache_store=CacheStore(conn, logger=logger),
                prefs=PreferencesStore(conn, logger=logger),
                source_client=TiebaClient(fetcher, Config.TIEBA_BASE_URL, logger=logger),
                downloader=ImageDownloader(
                    fetcher,
                    max_image_bytes=Config.MAX_IMAGE_BYTES,
                    abstract_threshold=Config.ABSTRACT_LEN_TWO_IMAGES,
                    diagnostics=diagnostics,
                    logger=logger
                ),
                housekeeper=DirectoryHousekeeper(
                    Config.IMG_DIR,
                    clear_interval=Config.IMAGE_CLEAR_INTERVAL,
                    diagnostics=diagnostics,
                    logger=logger
                ),
                diagnostics=diagnostics,
                post_info_timeout=Config.POST_INFO_TIMEOUT,
                image_timeout=Config.IMAGE_TIMEOUT,
                max_items_per_fetch=Config.MAX_ITEMS_PER_FETCH,
                default_refresh_minutes=Config.DEFAULT_REFRESH_MINUTES,
                logger=logger
            )
            results = await orchestrator.refresh_all(names, force_reload=force)
    finally:
        conn.close()

    logger.info("=" * 60)
    for name, entry in results.items():
        if entry.info is None:
            logger.info(f"{name}: nothing available")
            continue
        images_done = all(item.images_downloaded is True for item in entry.info)
        logger.info(
            f"{name}\n"
            f"  Posts: {len(entry.info)}\n"
            f"  Captured at: {entry.captured_at:%Y-%m-%d %H:%M:%S}\n"
            f"  Images complete: {images_done}"
        )
    logger.info("=" * 60)

    return 0 if all(entry.info is not None for entry in results.values()) else 1


def run_command(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Handle the tracked-forum and preference commands."""
    options = OptionsStore(Config.OPTIONS_PATH, logger=logger)

    if args.command == "add":
        if not options.add(args.name):
            logger.error(f"Cannot add '{args.name}': empty or already tracked")
            return 1
        return 0

    if args.command == "remove":
        if options.remove(args.index) is None:
            logger.error(f"No tracked forum at index {args.index}")
            return 1
        return 0

    if args.command == "list":
        for index, source in enumerate(options.load()):
            print(f"{index}: {source.name}")
        return 0

    conn = init_database(Config.DB_PATH)
    try:
        prefs = PreferencesStore(conn, logger=logger)
        if args.value is None:
            print(json.dumps(prefs.get(args.key), ensure_ascii=False))
        else:
            try:
                value = json.loads(args.value)
            except json.JSONDecodeError:
                value = args.value
            prefs.set(args.key, value)
    finally:
        conn.close()
    return 0


def main() -> int:
    """Main entry point."""
    logger = setup_logger(
        name="widget",
        log_dir=Config.LOGS_DIR,
        level=Config.get_log_level(),
        max_bytes=Config.LOG_MAX_BYTES,
        backup_count=Config.LOG_BACKUP_COUNT
    )

    errors = Config.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 2

    argv = sys.argv[1:]
    try:
        if argv and argv[0] in COMMANDS:
            return run_command(build_parser().parse_args(argv), logger)

        args = build_refresh_parser().parse_args(argv)
        names = args.names or OptionsStore(Config.OPTIONS_PATH, logger=logger).names()
        if not names:
            logger.warning("No forums to refresh; add one with 'python main.py add NAME'")
            return 0

        if Config.DEBUG:
            Config.display()
        return asyncio.run(refresh(names, args.force, logger))

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
