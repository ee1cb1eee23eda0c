#!/usr/bin/env python3
"""YouTube Playlist Export - Entry Point"""

import argparse
import logging
import os
import sys

from clients.auth import TokenManager, token_cache_path
from clients.youtube import YouTubeClient
from core.config import SINKS, load_client_config, load_config
from core.enumerator import PlaylistEnumerator
from core.models import ExportError, ExportResult
from core.sinks import open_sink

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    handlers = [logging.StreamHandler()]
    log_file = os.environ.get("LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export the playlists of a YouTube channel to stdout or a database."
    )
    parser.add_argument("--env-file", default=".env",
                        help="Path of the .env file to load (default: .env)")
    parser.add_argument("--sink", choices=SINKS,
                        help="Where to write track records (overrides SINK)")
    parser.add_argument("--username",
                        help="YouTube channel username (overrides USERNAME)")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> ExportResult:
    config = load_config(args.env_file, {"SINK": args.sink, "USERNAME": args.username})
    client_config = load_client_config(config.credential_filepath)

    tokens = TokenManager(config.token_cache or token_cache_path(), client_config)
    token = tokens.acquire()

    youtube = YouTubeClient(tokens.credentials(token))
    enumerator = PlaylistEnumerator(youtube)

    sink = open_sink(config)
    try:
        return enumerator.export(config.username, sink)
    finally:
        sink.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        result = run(args)
        logger.info(f"Export completed: {result.tracks} tracks from "
                    f"{result.playlists} playlists in {result.duration:.1f}s")
        return 0
    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
