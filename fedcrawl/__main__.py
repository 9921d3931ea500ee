"""fedcrawl entry point.

Usage::

    python -m fedcrawl [--target-dir PATH] [--seed HOST] [-v]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from fedcrawl.config import CrawlerConfig
from fedcrawl.engine import crawl
from fedcrawl.errors import PersistenceError

logger = logging.getLogger("fedcrawl")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m fedcrawl",
        description="Crawl the Fediverse peer graph and save NodeInfo descriptors",
    )
    parser.add_argument(
        "--target-dir",
        metavar="PATH",
        default=None,
        help="Output directory (default: ./output or TARGET_DIR env var)",
    )
    parser.add_argument(
        "--seed",
        metavar="HOST",
        default=None,
        help="Hostname to start from (default: chaos.social or FEDCRAWL_SEED env var)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every dropped hostname",
    )
    args = parser.parse_args(argv)

    try:
        config = CrawlerConfig.from_env()
    except ValueError as exc:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
        logger.error("Invalid configuration: %s", exc)
        return 1
    if args.target_dir is not None:
        config.target_dir = Path(args.target_dir)
    if args.seed is not None:
        config.seed = args.seed

    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        asyncio.run(crawl(config))
    except PersistenceError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        print("\n\nCrawl cancelled.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
