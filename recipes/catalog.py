"""
Recipe catalog: command patterns mapped to tabulation recipes.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, NamedTuple, Optional

from schemas.catalog import SchemaDefinition

LOGGER = logging.getLogger(__name__)

DEFAULT_SCHEMAS = [
    # git
    SchemaDefinition(
        name="git-status",
        pattern=r"^\s*git\s+status\b",
        recipe="lines | skip 4 | parse --regex '(?<status>modified|deleted)'",
    ),
    SchemaDefinition(
        name="git-branch",
        pattern=r"^\s*git\s+branch\b",
        recipe="lines | parse --regex '^(?<current>[* ]) (?<branch>\\S+)'",
    ),
    SchemaDefinition(
        name="git-stash-list",
        pattern=r"^\s*git\s+stash\s+list\b",
        recipe="lines | parse '{ref}: {message}'",
    ),
    # Column-aligned tool output
    SchemaDefinition(
        name="docker-ps",
        pattern=r"^\s*docker\s+ps\b",
        recipe="detect columns",
    ),
    SchemaDefinition(
        name="df",
        pattern=r"^\s*df\b",
        recipe="detect columns",
    ),
]


@dataclass(frozen=True)
class Schema:
    """A catalog entry whose pattern compiled successfully."""

    pattern: str
    recipe: str
    regex: re.Pattern
    name: Optional[str] = None

    def matches(self, fragment: str) -> bool:
        return self.regex.search(fragment) is not None


class RejectedSchema(NamedTuple):
    definition: SchemaDefinition
    error: str


class Catalog:
    """Ordered, read-only schema collection; earlier entries win."""

    def __init__(self, schemas: Iterable[Schema] = ()) -> None:
        self._schemas = tuple(schemas)

    def find(self, fragment: str) -> Optional[Schema]:
        """Return the first schema whose pattern matches anywhere in fragment."""
        for schema in self._schemas:
            if schema.matches(fragment):
                return schema
        return None

    def __iter__(self) -> Iterator[Schema]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)


class CatalogBuild(NamedTuple):
    catalog: Catalog
    rejected: list[RejectedSchema]


def compile_schema(definition: SchemaDefinition) -> Schema:
    """Compile one definition (raises re.error on a bad pattern)."""
    return Schema(
        pattern=definition.pattern,
        recipe=definition.recipe,
        regex=re.compile(definition.pattern),
        name=definition.name,
    )


def load_catalog(definitions: Optional[Iterable[SchemaDefinition]] = None) -> CatalogBuild:
    """
    Build the catalog from definitions (built-in schemas when None).

    Entries whose pattern fails to compile are dropped and reported in
    ``rejected``; building never fails because of a single bad pattern.
    """
    if definitions is None:
        definitions = DEFAULT_SCHEMAS

    schemas: list[Schema] = []
    rejected: list[RejectedSchema] = []
    for definition in definitions:
        try:
            schemas.append(compile_schema(definition))
        except re.error as exc:
            LOGGER.warning(
                "Dropping schema %s: invalid pattern %r (%s)",
                definition.display_name(),
                definition.pattern,
                exc,
            )
            rejected.append(RejectedSchema(definition, str(exc)))

    LOGGER.debug("Loaded %s schemas (%s rejected)", len(schemas), len(rejected))
    return CatalogBuild(Catalog(schemas), rejected)
