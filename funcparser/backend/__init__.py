"""
Evaluation backends: turn finalized body source into an executable.

The contract is deliberately small. A backend receives a `CompileRequest`
and returns a callable taking the argument sequence; any failure is reported
as a single `BackendError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Protocol, Sequence, Tuple

from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from ..signature import VariableBinding
from .checker import CheckError, Checker
from .interp import Interpreter
from .parser import parse_body
from .resolver import TypeResolver

logger = logging.getLogger(__name__)

Executable = Callable[[Sequence[object]], object]

NESTED_TOO_DEEPLY = "body is nested too deeply to compile"


@dataclass(frozen=True)
class CompileRequest:
    source: str
    return_type: str
    entry_point: str
    bindings: Tuple[VariableBinding, ...]
    function_string: str
    args_name: str


class BackendError(Exception):
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class EvaluationBackend(Protocol):
    def compile(self, request: CompileRequest) -> Executable:
        ...


class InterpreterBackend:
    """Parses the body with lark, checks it and interprets it on every call."""

    def __init__(self, namespace: Optional[Mapping[str, object]] = None) -> None:
        self.resolver = TypeResolver(namespace)

    def compile(self, request: CompileRequest) -> Executable:
        try:
            body = parse_body(request.source)
        except UnexpectedInput as exc:
            raise BackendError(_syntax_message(exc), exc) from exc
        except ValueError as exc:
            raise BackendError(str(exc), exc) from exc
        except RecursionError as exc:
            raise BackendError(NESTED_TOO_DEEPLY, exc) from exc
        try:
            checked = Checker(self.resolver).check(body, request.args_name, request.return_type)
        except CheckError as exc:
            raise BackendError(str(exc), exc) from exc
        except RecursionError as exc:
            raise BackendError(NESTED_TOO_DEEPLY, exc) from exc
        logger.debug(
            "Compiled %d statement(s) for %s via %s",
            len(body.statements),
            request.entry_point,
            type(self).__name__,
        )
        return Interpreter(checked)


def _syntax_message(exc: UnexpectedInput) -> str:
    where = f"{exc.line}:{exc.column}"
    if isinstance(exc, UnexpectedToken):
        if exc.token.type == "$END":
            return f"{where}: reached end of body while parsing"
        return f"{where}: illegal start of expression near '{exc.token.value}'"
    if isinstance(exc, UnexpectedCharacters):
        return f"{where}: illegal character '{exc.char}'"
    return f"{where}: syntax error"


__all__ = [
    "BackendError",
    "CompileRequest",
    "EvaluationBackend",
    "Executable",
    "InterpreterBackend",
]
