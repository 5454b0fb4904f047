"""
Conversion of recipe JSON output into a TableValue.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Literal

from schemas.response import TableValue
from tabfy.errors import MalformedOutputError, UnexpectedShapeError

LOGGER = logging.getLogger(__name__)

RowMode = Literal["record", "per_key"]
NonObjectPolicy = Literal["warn", "skip", "strict"]

ROW_MODES = ("record", "per_key")
NON_OBJECT_POLICIES = ("warn", "skip", "strict")


def parse_document(raw: bytes) -> Any:
    """
    Parse recipe output as JSON.

    Output from a failed interpreter run carries its stderr tail, which is
    appended to the failure message.
    """
    detail = getattr(raw, "stderr", "")
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedOutputError(
            "Recipe output is not valid UTF-8",
            label="output could not be decoded",
        ) from exc
    if not text.strip():
        raise MalformedOutputError(
            with_detail("Recipe produced no output", detail),
            label="expected JSON, got nothing",
        )
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(
            with_detail(
                f"Recipe output is not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
                detail,
            ),
            label="output could not be parsed as JSON",
        ) from exc


def with_detail(message: str, detail: str) -> str:
    return f"{message}: {detail}" if detail else message


def cell_text(value: Any) -> str:
    """Coerce a JSON value to its table text."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    # Numbers, booleans and null keep their JSON spelling.
    return json.dumps(value)


class TableMaterializer:
    """
    Turns a parsed JSON document into table rows.

    Only a top-level array is accepted. ``row_mode="record"`` emits one row
    per object with one column per key; ``"per_key"`` emits a single-column
    row for every key/value pair. Non-object elements are skipped with a
    warning (``"warn"``), skipped silently (``"skip"``), or rejected
    (``"strict"``).
    """

    def __init__(self, row_mode: RowMode = "record", non_object: NonObjectPolicy = "warn") -> None:
        if row_mode not in ROW_MODES:
            raise ValueError(f"Unknown row mode: {row_mode}")
        if non_object not in NON_OBJECT_POLICIES:
            raise ValueError(f"Unknown non-object policy: {non_object}")
        self.row_mode = row_mode
        self.non_object = non_object

    def materialize(self, doc: Any) -> TableValue:
        if not isinstance(doc, list):
            raise UnexpectedShapeError(
                f"Expected a top-level JSON array, got {json_type_name(doc)}",
                label="recipe output is not a list",
            )

        rows: list[dict[str, str]] = []
        warnings: list[str] = []
        for index, element in enumerate(doc):
            if not isinstance(element, dict):
                self._reject_element(index, element, warnings)
                continue
            if self.row_mode == "per_key":
                rows.extend({key: cell_text(value)} for key, value in element.items())
            else:
                rows.append({key: cell_text(value) for key, value in element.items()})
        return TableValue(rows=rows, warnings=warnings)

    def materialize_bytes(self, raw: bytes) -> TableValue:
        return self.materialize(parse_document(raw))

    def _reject_element(self, index: int, element: Any, warnings: list[str]) -> None:
        if self.non_object == "strict":
            raise UnexpectedShapeError(
                f"Element {index} is {json_type_name(element)}, expected object",
                label="recipe output contains a non-object element",
            )
        if self.non_object == "warn":
            type_name = json_type_name(element)
            LOGGER.warning("Skipped element %s: %s is not an object", index, type_name)
            warnings.append(f"Skipped element {index}: {type_name} is not an object")


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
