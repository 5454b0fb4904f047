"""
tabfy: turn recognized shell command output into tables.
"""
from .errors import (
    ErrorKind,
    LabeledError,
    TypeMismatchError,
    MissingDelimiterError,
    NoSchemaError,
    ExecutionFailedError,
    MalformedOutputError,
    UnexpectedShapeError,
    InvalidEncodingError,
)
from .matcher import MatchResult, decode_span, extract_command, match_command
from .executor import RecipeExecutor, SubprocessProgramRunner, SubprocessRecipeRunner
from .materializer import TableMaterializer, parse_document
from .orchestrator import RequestOrchestrator

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "LabeledError",
    "TypeMismatchError",
    "MissingDelimiterError",
    "NoSchemaError",
    "ExecutionFailedError",
    "MalformedOutputError",
    "UnexpectedShapeError",
    "InvalidEncodingError",
    "MatchResult",
    "decode_span",
    "extract_command",
    "match_command",
    "RecipeExecutor",
    "SubprocessProgramRunner",
    "SubprocessRecipeRunner",
    "TableMaterializer",
    "parse_document",
    "RequestOrchestrator",
]
