"""
Unit tests for request orchestration with fake process runners.
"""
from typing import Optional

import pytest

from recipes.catalog import load_catalog
from schemas.catalog import SchemaDefinition
from schemas.config import TabfyConfig
from schemas.request import PipelineRequest
from tabfy.errors import (
    ErrorKind,
    ExecutionFailedError,
    InvalidEncodingError,
    MalformedOutputError,
    MissingDelimiterError,
    NoSchemaError,
    TypeMismatchError,
    UnexpectedShapeError,
)
from tabfy.executor import (
    ProcessOutput,
    RecipeExecutor,
    SubprocessProgramRunner,
    SubprocessRecipeRunner,
)
from tabfy.materializer import TableMaterializer
from tabfy.orchestrator import RequestOrchestrator

GIT_STATUS_OUTPUT = b"""On branch main
Changes not staged for commit:
  (use "git add <file>..." to update what will be committed)
  (use "git restore <file>..." to discard changes in working directory)
\tmodified:   README.md
\tdeleted:    old.txt
"""


class FakeProgramRunner:
    def __init__(self, output: bytes = b"", error: Optional[Exception] = None) -> None:
        self.output = output
        self.error = error
        self.commands: list[str] = []

    def run(self, command: str) -> bytes:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        return self.output


class FakeRecipeRunner:
    def __init__(self, output: bytes = b"[]") -> None:
        self.output = output
        self.calls: list[tuple[str, bytes]] = []

    def run(self, script: str, input_bytes: bytes) -> bytes:
        self.calls.append((script, input_bytes))
        return self.output


def build_orchestrator(
    program: Optional[FakeProgramRunner] = None,
    recipe: Optional[FakeRecipeRunner] = None,
    **kwargs,
) -> RequestOrchestrator:
    return RequestOrchestrator(
        catalog=load_catalog().catalog,
        program_runner=program or FakeProgramRunner(),
        executor=RecipeExecutor(recipe or FakeRecipeRunner()),
        **kwargs,
    )


def test_git_status_scenario() -> None:
    program = FakeProgramRunner(output=GIT_STATUS_OUTPUT)
    recipe = FakeRecipeRunner(output=b'[{"status": "modified"}, {"status": "deleted"}]')
    orchestrator = build_orchestrator(program, recipe)

    table = orchestrator.handle("git status | columns")

    assert table.rows == [{"status": "modified"}, {"status": "deleted"}]
    assert program.commands == ["git status "]
    assert recipe.calls == [
        (
            "lines | skip 4 | parse --regex '(?<status>modified|deleted)' | to json",
            GIT_STATUS_OUTPUT,
        )
    ]


def test_missing_delimiter_runs_no_process() -> None:
    program = FakeProgramRunner()
    recipe = FakeRecipeRunner()
    orchestrator = build_orchestrator(program, recipe)

    with pytest.raises(MissingDelimiterError) as excinfo:
        orchestrator.handle("git status")

    assert excinfo.value.kind is ErrorKind.MISSING_DELIMITER
    assert excinfo.value.span == (10, 10)
    assert program.commands == []
    assert recipe.calls == []


def test_unmatched_fragment_reports_position() -> None:
    program = FakeProgramRunner()
    orchestrator = build_orchestrator(program)

    with pytest.raises(NoSchemaError, match="ls -la") as excinfo:
        orchestrator.handle("ls -la | tabfy")

    assert excinfo.value.span == (0, 7)
    assert excinfo.value.to_report().kind == "NoSchema"
    assert program.commands == []


@pytest.mark.parametrize("value,type_name", [(42, "int"), (b"git", "binary"), (["a"], "list"), (None, "nothing")])
def test_non_text_input_rejected(value, type_name: str) -> None:
    program = FakeProgramRunner()
    orchestrator = build_orchestrator(program)

    with pytest.raises(TypeMismatchError) as excinfo:
        orchestrator.handle(value)

    assert excinfo.value.label == f"requires string input; got {type_name}"
    assert program.commands == []


def test_request_span_limits_source_text() -> None:
    program = FakeProgramRunner(output=b"a=1\n")
    recipe = FakeRecipeRunner(output=b'[{"key": "a", "value": "1"}]')
    orchestrator = build_orchestrator(program, recipe)
    source = "df -h | lines | tabfy"
    request = PipelineRequest(source=source, head=source.index("tabfy"))

    table = orchestrator.handle("ignored", request)

    assert program.commands == ["df -h "]
    assert table.rows == [{"key": "a", "value": "1"}]


def test_request_span_with_input_offset() -> None:
    program = FakeProgramRunner()
    orchestrator = build_orchestrator(program)
    source = "let t = (git branch | tabfy)"
    request = PipelineRequest(source=source, input_start=9, head=source.index("tabfy"))

    orchestrator.handle("value", request)

    assert program.commands == ["git branch "]


def test_invalid_utf8_source_rejected() -> None:
    request = PipelineRequest(source=b"git status \xff| tabfy")
    with pytest.raises(InvalidEncodingError) as excinfo:
        build_orchestrator().handle("value", request)
    assert excinfo.value.span == (len(request.source), len(request.source))


def test_program_failure_stops_pipeline() -> None:
    program = FakeProgramRunner(error=ExecutionFailedError("Failed to start program 'git'"))
    recipe = FakeRecipeRunner()
    orchestrator = build_orchestrator(program, recipe)

    with pytest.raises(ExecutionFailedError, match="Failed to start"):
        orchestrator.handle("git status | tabfy")
    assert recipe.calls == []


def test_malformed_recipe_output() -> None:
    orchestrator = build_orchestrator(recipe=FakeRecipeRunner(output=b"Error: nu::parser"))
    with pytest.raises(MalformedOutputError) as excinfo:
        orchestrator.handle("git status | tabfy")
    assert excinfo.value.span == (18, 18)


def test_top_level_object_output() -> None:
    orchestrator = build_orchestrator(recipe=FakeRecipeRunner(output=b'{"status": "modified"}'))
    with pytest.raises(UnexpectedShapeError):
        orchestrator.handle("git status | tabfy")


def test_empty_result_is_empty_table() -> None:
    orchestrator = build_orchestrator(recipe=FakeRecipeRunner(output=b"[]"))
    assert orchestrator.handle("git status | tabfy").rows == []


def test_legacy_per_key_materializer() -> None:
    orchestrator = build_orchestrator(
        recipe=FakeRecipeRunner(output=b'[{"current": "*", "branch": "main"}]'),
        materializer=TableMaterializer(row_mode="per_key"),
    )
    table = orchestrator.handle("git branch | tabfy")
    assert table.rows == [{"current": "*"}, {"branch": "main"}]


def test_from_config_wires_subprocess_runners() -> None:
    config = TabfyConfig(
        delimiter=";",
        schemas=[
            SchemaDefinition(name="bad", pattern="(", recipe="lines"),
            SchemaDefinition(name="ls", pattern=r"^\s*ls\b", recipe="ls-recipe"),
        ],
        materializer={"row_mode": "per_key", "non_object_elements": "strict"},
        interpreter={"command": ["nu", "-c"], "timeout_seconds": 5},
    )
    orchestrator = RequestOrchestrator.from_config(config)

    assert orchestrator.delimiter == ";"
    assert [schema.name for schema in orchestrator.catalog] == ["ls"]
    assert isinstance(orchestrator.program_runner, SubprocessProgramRunner)
    assert isinstance(orchestrator.executor.runner, SubprocessRecipeRunner)
    assert orchestrator.executor.runner.command == ["nu", "-c"]
    assert orchestrator.executor.runner.timeout_seconds == 5
    assert orchestrator.materializer.row_mode == "per_key"
    assert orchestrator.materializer.non_object == "strict"


def failed_run_output(stdout: bytes, stderr: str) -> ProcessOutput:
    output = ProcessOutput(stdout)
    output.returncode = 1
    output.stderr = stderr
    return output


def test_failing_recipe_is_malformed_output() -> None:
    output = failed_run_output(b"Error: nu::parser::parse_mismatch", "expected table")
    orchestrator = build_orchestrator(recipe=FakeRecipeRunner(output=output))
    with pytest.raises(MalformedOutputError, match="not valid JSON.*expected table") as excinfo:
        orchestrator.handle("git status | tabfy")
    assert excinfo.value.kind is ErrorKind.MALFORMED_OUTPUT


def test_failing_recipe_without_output_reports_stderr() -> None:
    output = failed_run_output(b"", "Error: nu::shell::command_not_found")
    orchestrator = build_orchestrator(recipe=FakeRecipeRunner(output=output))
    with pytest.raises(MalformedOutputError, match="no output: Error: nu::shell"):
        orchestrator.handle("git status | tabfy")


def test_byte_source_span_counts_bytes() -> None:
    request = PipelineRequest(source="café | tabfy".encode("utf-8"))
    with pytest.raises(NoSchemaError) as excinfo:
        build_orchestrator().handle("value", request)
    assert excinfo.value.span == (0, 6)


def test_text_source_span_counts_characters() -> None:
    with pytest.raises(NoSchemaError) as excinfo:
        build_orchestrator().handle("café | tabfy")
    assert excinfo.value.span == (0, 5)


def test_type_mismatch_without_request_has_span() -> None:
    with pytest.raises(TypeMismatchError) as excinfo:
        build_orchestrator().handle(42)
    assert excinfo.value.span == (0, 0)
    assert excinfo.value.to_report().span == (0, 0)
