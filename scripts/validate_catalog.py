"""
Check that every configured recipe pattern compiles.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from recipes.catalog import load_catalog
from scripts.logging_utils import configure_logging
from schemas.config import TabfyConfig


ROOT_DIR = Path(__file__).resolve().parents[1]
RUNTIME_LOG_DIR = ROOT_DIR / "logs"
LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Validate the recipe catalog and report rejected patterns."
    )
    parser.add_argument(
        "--config",
        default=str(ROOT_DIR / "configs" / "tabfy_config.yaml"),
        help="Path to tabfy configuration YAML.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when any schema is rejected.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to logs/ with timestamped filenames.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(RUNTIME_LOG_DIR, args.debug, "validate_catalog", quiet=True)

    config = TabfyConfig.from_yaml(args.config)
    build = load_catalog(config.schemas)

    print(f"Active schemas: {len(build.catalog)}")
    for schema in build.catalog:
        print(f"  OK    {schema.name or schema.pattern}")
    for rejected in build.rejected:
        print(f"  DROP  {rejected.definition.display_name()}: {rejected.error}")

    if args.strict and build.rejected:
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        LOGGER.exception("Catalog validation failed.")
        raise
