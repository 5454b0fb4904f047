"""
Run one pipeline line through tabfy and print the resulting table.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from recipes.catalog import Catalog
from schemas.config import TabfyConfig
from schemas.request import PipelineRequest
from schemas.response import TableValue
from scripts.logging_utils import configure_logging
from tabfy.errors import LabeledError
from tabfy.orchestrator import RequestOrchestrator


ROOT_DIR = Path(__file__).resolve().parents[1]
RUNTIME_LOG_DIR = ROOT_DIR / "logs"
DEFAULT_CONFIG = ROOT_DIR / "configs" / "tabfy_config.yaml"
LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Turn the output of a recognized shell command into a table."
    )
    parser.add_argument(
        "--line",
        help="Pipeline source text, e.g. 'git status | tabfy'. Read from stdin when omitted.",
    )
    parser.add_argument(
        "--head",
        type=int,
        default=None,
        help="Offset of the tabfy call within the line (defaults to the end).",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG),
        help="Path to tabfy configuration YAML.",
    )
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format: markdown table or one JSON object per row.",
    )
    parser.add_argument(
        "--list-schemas",
        action="store_true",
        help="Print the active recipe catalog and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to logs/ with timestamped filenames.",
    )
    return parser.parse_args(argv)


def load_config(path: Path) -> TabfyConfig:
    """Load configuration, falling back to built-in defaults if absent."""
    if not path.exists():
        LOGGER.info("Config %s not found; using built-in defaults.", path)
        return TabfyConfig()
    return TabfyConfig.from_yaml(path)


def escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def render_markdown(table: TableValue) -> str:
    """Render rows as a markdown table; missing cells stay empty."""
    columns = table.columns()
    if not columns:
        return "(empty table)"
    lines = [
        "| " + " | ".join(escape_cell(column) for column in columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    for row in table.rows:
        cells = [escape_cell(row.get(column, "")) for column in columns]
        lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines)


def render_json_lines(table: TableValue) -> str:
    return "\n".join(json.dumps(row, ensure_ascii=False) for row in table.rows)


def render_catalog(catalog: Catalog) -> str:
    lines = []
    for index, schema in enumerate(catalog):
        lines.append(f"{index:>3}  {schema.name or '-':<16} {schema.pattern}  =>  {schema.recipe}")
    return "\n".join(lines)


def render_diagnostic(error: LabeledError, source: str) -> str:
    """Format a labeled failure with a caret marker under its span."""
    lines = [f"Error: [{error.kind.value}] {error.message}"]
    if error.span is None or "\n" in source:
        lines.append(f"  {error.label}")
        return "\n".join(lines)
    start, end = error.span
    start = min(max(start, 0), len(source))
    width = max(end - start, 1)
    lines.append(f"  {source}")
    lines.append("  " + " " * start + "^" * width + f" {error.label}")
    return "\n".join(lines)


def write_failure(error: LabeledError, source: str, output_format: str, stream: TextIO) -> None:
    if output_format == "json":
        stream.write(error.to_report().model_dump_json() + "\n")
    else:
        stream.write(render_diagnostic(error, source) + "\n")


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    log_file = configure_logging(RUNTIME_LOG_DIR, args.debug, "run_tabfy")
    if log_file:
        LOGGER.info("Debug log file: %s", log_file)

    config = load_config(Path(args.config))
    orchestrator = RequestOrchestrator.from_config(config)

    if args.list_schemas:
        print(render_catalog(orchestrator.catalog))
        return 0

    line = args.line if args.line is not None else sys.stdin.read().rstrip("\n")
    request = PipelineRequest(source=line, head=args.head)

    try:
        table = orchestrator.handle(line, request)
    except LabeledError as exc:
        LOGGER.debug("Request failed: %s", exc.kind.value)
        write_failure(exc, line, args.format, sys.stderr)
        return 1

    if args.format == "json":
        output = render_json_lines(table)
    else:
        output = render_markdown(table)
    if output:
        print(output)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        LOGGER.exception("tabfy run failed.")
        raise
