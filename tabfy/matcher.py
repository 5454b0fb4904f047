"""
Command fragment extraction and catalog lookup.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from recipes.catalog import Catalog, Schema
from tabfy.errors import InvalidEncodingError, MissingDelimiterError

DEFAULT_DELIMITER = "|"


@dataclass(frozen=True)
class MatchResult:
    """Fragment chosen for a request and the schema it matched, if any."""

    fragment: str
    schema: Optional[Schema] = None

    @property
    def matched(self) -> bool:
        return self.schema is not None


def decode_span(raw: Union[str, bytes]) -> str:
    """Decode host-supplied span contents as UTF-8."""
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncodingError(
            "Invalid UTF-8 sequence",
            label="span contents are not valid UTF-8",
        ) from exc


def extract_command(raw_text: str, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Return everything before the first delimiter, whitespace included."""
    position = raw_text.find(delimiter)
    if position < 0:
        raise MissingDelimiterError(
            f"Expected '{delimiter}' in input string",
            label=f"input string does not contain '{delimiter}'",
        )
    return raw_text[:position]


def match_command(
    raw_text: str,
    catalog: Catalog,
    delimiter: str = DEFAULT_DELIMITER,
) -> MatchResult:
    """Extract the leading fragment and look it up in the catalog."""
    fragment = extract_command(raw_text, delimiter)
    return MatchResult(fragment=fragment, schema=catalog.find(fragment))
