"""
Pydantic schemas for type-safe data structures.
"""
from .request import PipelineRequest
from .response import TableValue, FailureReport
from .catalog import SchemaDefinition
from .config import TabfyConfig, InterpreterConfig, ProgramConfig, MaterializerConfig

__all__ = [
    "PipelineRequest",
    "TableValue",
    "FailureReport",
    "SchemaDefinition",
    "TabfyConfig",
    "InterpreterConfig",
    "ProgramConfig",
    "MaterializerConfig",
]
