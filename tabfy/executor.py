"""
Recipe execution through external processes.
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Optional, Protocol, Sequence

from tabfy.errors import ExecutionFailedError

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERPRETER = ("nu", "--no-config-file", "--stdin", "-c")
DEFAULT_SERIALIZER_STEP = "to json"
DEFAULT_TIMEOUT_SECONDS = 30.0
STDERR_TAIL_CHARS = 400


class RecipeRunner(Protocol):
    def run(self, script: str, input_bytes: bytes) -> bytes:
        ...


class ProgramRunner(Protocol):
    def run(self, command: str) -> bytes:
        ...


def stderr_tail(stderr: Optional[bytes]) -> str:
    """Decode the last part of a process's stderr for diagnostics."""
    if not stderr:
        return ""
    text = stderr.decode("utf-8", errors="replace").strip()
    return text[-STDERR_TAIL_CHARS:]


class ProcessOutput(bytes):
    """Stdout bytes that also carry the exit code and stderr tail."""

    returncode: int = 0
    stderr: str = ""


class SubprocessRecipeRunner:
    """Runs a recipe script through the interpreter, feeding input on stdin."""

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_INTERPRETER,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not command:
            raise ValueError("Interpreter command must not be empty.")
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    def run(self, script: str, input_bytes: bytes) -> bytes:
        argv = [*self.command, script]
        LOGGER.debug("Running interpreter: %s", argv)
        try:
            result = subprocess.run(
                argv,
                input=input_bytes,
                capture_output=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExecutionFailedError(
                f"Interpreter timed out after {self.timeout_seconds:g}s",
                label=f"recipe did not finish: {script}",
            ) from exc
        except OSError as exc:
            raise ExecutionFailedError(
                f"Failed to start interpreter {self.command[0]!r}: {exc}",
                label="recipe interpreter could not be started",
            ) from exc

        output = ProcessOutput(result.stdout)
        output.returncode = result.returncode
        output.stderr = stderr_tail(result.stderr)
        if result.returncode != 0:
            LOGGER.warning(
                "Interpreter exited with code %s: %s",
                result.returncode,
                output.stderr,
            )
        return output


class SubprocessProgramRunner:
    """Runs the wrapped program named by the command fragment."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds

    def run(self, command: str) -> bytes:
        try:
            argv = shlex.split(command)
        except ValueError as exc:
            raise ExecutionFailedError(
                f"Could not split command {command.strip()!r}: {exc}",
                label="command could not be tokenized",
            ) from exc
        if not argv:
            raise ExecutionFailedError(
                "Empty command before delimiter",
                label="no program to run",
            )

        LOGGER.debug("Running program: %s", argv)
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExecutionFailedError(
                f"Program {argv[0]!r} timed out after {self.timeout_seconds:g}s",
                label="program did not finish",
            ) from exc
        except OSError as exc:
            raise ExecutionFailedError(
                f"Failed to start program {argv[0]!r}: {exc}",
                label="program could not be started",
            ) from exc

        if result.returncode != 0:
            LOGGER.warning(
                "Program %r exited with code %s: %s",
                argv[0],
                result.returncode,
                stderr_tail(result.stderr),
            )
        return result.stdout


class RecipeExecutor:
    """Stitches a recipe into a serializing script and runs it."""

    def __init__(
        self,
        runner: RecipeRunner,
        serializer_step: str = DEFAULT_SERIALIZER_STEP,
    ) -> None:
        self.runner = runner
        self.serializer_step = serializer_step

    def build_script(self, recipe: str) -> str:
        return f"{recipe.strip()} | {self.serializer_step}"

    def execute(self, recipe: str, program_output: bytes) -> bytes:
        """Run recipe against program_output; returns serialized JSON bytes."""
        script = self.build_script(recipe)
        try:
            output = self.runner.run(script, program_output)
        except OSError as exc:
            # BrokenPipeError included: the channel failed mid-write.
            raise ExecutionFailedError(
                f"Recipe channel failed: {exc}",
                label=f"recipe failed: {script}",
            ) from exc
        LOGGER.debug("Recipe produced %s bytes", len(output))
        return output
