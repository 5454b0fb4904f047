"""
Runtime configuration schemas loaded from YAML.
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field

from .catalog import SchemaDefinition


class InterpreterConfig(BaseModel):
    """Nested structured-data pipeline interpreter."""

    command: list[str] = Field(
        default_factory=lambda: ["nu", "--no-config-file", "--stdin", "-c"],
        min_length=1,
    )
    serializer_step: str = Field(default="to json", min_length=1)
    timeout_seconds: float = Field(default=30.0, gt=0)


class ProgramConfig(BaseModel):
    """Wrapped program invocation."""

    timeout_seconds: float = Field(default=30.0, gt=0)


class MaterializerConfig(BaseModel):
    """Table materialization behaviour."""

    row_mode: Literal["record", "per_key"] = "record"
    non_object_elements: Literal["warn", "skip", "strict"] = "warn"


class TabfyConfig(BaseModel):
    """Top-level tabfy configuration."""

    delimiter: str = Field(default="|", min_length=1, max_length=1)
    interpreter: InterpreterConfig = Field(default_factory=InterpreterConfig)
    program: ProgramConfig = Field(default_factory=ProgramConfig)
    materializer: MaterializerConfig = Field(default_factory=MaterializerConfig)
    # None means the built-in catalog.
    schemas: Optional[list[SchemaDefinition]] = None

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TabfyConfig":
        """Load and validate configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise RuntimeError(f"Config file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        if not isinstance(payload, dict):
            raise RuntimeError(f"Config file must contain a mapping: {path}")
        return cls(**payload)
