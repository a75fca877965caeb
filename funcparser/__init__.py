"""
funcparser: compile one-line function strings into callable units.

    >>> fn = from_string("double(Double x, y) -> x + y")
    >>> fn.evaluate_to_double([4.0, 6.0])
    10.0

Pipeline:
  signature: split `returnType(params) -> body`, resolve and bind parameters
  substitute: rewrite parameter names into typed argument-array accesses
  body: wrap expression bodies and pick the live entry point
  backend: parse, check and interpret the finalized body
"""

import logging

from .backend import BackendError, CompileRequest, EvaluationBackend, InterpreterBackend
from .errors import (
    EvaluationError,
    FunctionCompilationError,
    FunctionParserError,
    MalformedSignature,
    MissingType,
    SignatureError,
    TooManyTokens,
    UnsupportedOperation,
)
from .function_parser import FunctionParser, from_string
from .parsed_function import ParsedFunction
from .types import DEFAULT_RETURN_TYPE, TYPE_TABLE, TypeTable

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BackendError",
    "CompileRequest",
    "DEFAULT_RETURN_TYPE",
    "EvaluationBackend",
    "EvaluationError",
    "FunctionCompilationError",
    "FunctionParser",
    "FunctionParserError",
    "InterpreterBackend",
    "MalformedSignature",
    "MissingType",
    "ParsedFunction",
    "SignatureError",
    "TYPE_TABLE",
    "TooManyTokens",
    "TypeTable",
    "UnsupportedOperation",
    "from_string",
]
