"""
Command-line entry point.

Usage:
    http-cat-cache -h 127.0.0.1 -p 8080 -c ./cache
    python -m cat_cache --host 127.0.0.1 --port 8080 --cache ./cache
"""

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from .app import create_app
from .cache_manager import ImageCacheStore
from .config import Settings
from .errors import CacheStorageError, ConfigurationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # -h is taken by --host, so help is only available as --help
    parser = argparse.ArgumentParser(
        prog="http-cat-cache",
        description="Caching proxy server for https://http.cat images",
        add_help=False,
    )
    parser.add_argument("-h", "--host", required=True, help="Host to bind the server")
    parser.add_argument("-p", "--port", required=True, type=int, help="Port to bind the server")
    parser.add_argument("-c", "--cache", required=True, help="Cache directory path")
    parser.add_argument("--help", action="help", help="Show this message and exit")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> Settings:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return Settings.from_args(host=args.host, port=args.port, cache=args.cache)
    except ConfigurationError as e:
        parser.error(e.message)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )


def main(argv: Optional[List[str]] = None) -> int:
    settings = parse_args(argv)
    configure_logging(settings.log_level)

    cache_store = ImageCacheStore(settings.cache_dir)
    try:
        cache_store.ensure_cache_dir()
    except CacheStorageError as e:
        logger.error(f"Failed to start server: {e.message}")
        return 1

    app = create_app(settings, cache_store=cache_store)
    logger.info(f"Server started at http://{settings.host}:{settings.port}/ - cache: {settings.cache_dir}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0
