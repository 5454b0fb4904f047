"""
Request orchestration: matcher, executor and materializer in sequence.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from recipes.catalog import Catalog, load_catalog
from schemas.config import TabfyConfig
from schemas.request import PipelineRequest
from schemas.response import TableValue
from tabfy.errors import LabeledError, NoSchemaError, TypeMismatchError
from tabfy.executor import (
    ProgramRunner,
    RecipeExecutor,
    SubprocessProgramRunner,
    SubprocessRecipeRunner,
)
from tabfy.materializer import TableMaterializer
from tabfy.matcher import DEFAULT_DELIMITER, decode_span, extract_command

LOGGER = logging.getLogger(__name__)


def value_type_name(value: Any) -> str:
    if isinstance(value, bytes):
        return "binary"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, dict):
        return "record"
    if value is None:
        return "nothing"
    return type(value).__name__


def source_length(text: str, request: PipelineRequest) -> int:
    """Length of text in the units of the request source (bytes or characters)."""
    if isinstance(request.source, bytes):
        return len(text.encode("utf-8"))
    return len(text)


class RequestOrchestrator:
    """Runs one pipeline request end to end; the first failure aborts it."""

    def __init__(
        self,
        catalog: Catalog,
        program_runner: ProgramRunner,
        executor: RecipeExecutor,
        materializer: Optional[TableMaterializer] = None,
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        self.catalog = catalog
        self.program_runner = program_runner
        self.executor = executor
        self.materializer = materializer or TableMaterializer()
        self.delimiter = delimiter

    @classmethod
    def from_config(cls, config: TabfyConfig) -> "RequestOrchestrator":
        build = load_catalog(config.schemas)
        recipe_runner = SubprocessRecipeRunner(
            command=config.interpreter.command,
            timeout_seconds=config.interpreter.timeout_seconds,
        )
        return cls(
            catalog=build.catalog,
            program_runner=SubprocessProgramRunner(config.program.timeout_seconds),
            executor=RecipeExecutor(recipe_runner, config.interpreter.serializer_step),
            materializer=TableMaterializer(
                row_mode=config.materializer.row_mode,
                non_object=config.materializer.non_object_elements,
            ),
            delimiter=config.delimiter,
        )

    def handle(self, value: Any, request: Optional[PipelineRequest] = None) -> TableValue:
        """
        Turn the pipeline that produced ``value`` into a table.

        ``request`` locates the pipeline source around the call; when omitted,
        ``value`` itself is taken as the whole source text.
        """
        if not isinstance(value, str):
            raise TypeMismatchError(
                "Expected String input from pipeline",
                label=f"requires string input; got {value_type_name(value)}",
                # No source text: label the start of the call.
                span=request.head_span() if request else (0, 0),
            )
        if request is None:
            request = PipelineRequest(source=value)

        try:
            return self._run(request)
        except LabeledError as exc:
            exc.with_span(request.head_span())
            raise

    def _run(self, request: PipelineRequest) -> TableValue:
        raw_text = decode_span(request.span_contents())
        fragment = extract_command(raw_text, self.delimiter)
        LOGGER.debug("Extracted command fragment: %r", fragment)

        schema = self.catalog.find(fragment)
        if schema is None:
            start = request.input_start
            raise NoSchemaError(
                f"No recipe matches command {fragment.strip()!r}",
                label="unrecognized command",
                span=(start, start + source_length(fragment, request)),
            )
        LOGGER.debug("Matched schema %s", schema.name or schema.pattern)

        program_output = self.program_runner.run(fragment)
        document = self.executor.execute(schema.recipe, program_output)
        table = self.materializer.materialize_bytes(document)
        LOGGER.debug("Materialized %s rows", len(table))
        return table
