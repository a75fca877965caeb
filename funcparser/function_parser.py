from __future__ import annotations

import logging
import time
from typing import Mapping, Optional

from .backend import BackendError, CompileRequest, EvaluationBackend, InterpreterBackend
from .body import entry_point_for, resolve_body
from .errors import FunctionCompilationError
from .parsed_function import ParsedFunction
from .signature import bind_variables, resolve_parameters, split_signature
from .substitute import substitute_variables
from .types import TYPE_TABLE, TypeTable

logger = logging.getLogger(__name__)


def _fresh_args_name() -> str:
    return "o" + str(time.time_ns())


class FunctionParser:
    """
    Turns function strings such as `double(Double x, y) -> x + y` into
    ParsedFunction instances.

    Either pass a `backend`, or a `namespace` of host names for the default
    interpreter backend.
    """

    def __init__(
        self,
        backend: Optional[EvaluationBackend] = None,
        *,
        namespace: Optional[Mapping[str, object]] = None,
        table: TypeTable = TYPE_TABLE,
    ) -> None:
        if backend is not None and namespace is not None:
            raise ValueError("namespace only configures the default backend; pass one or the other")
        self.backend = backend if backend is not None else InterpreterBackend(namespace)
        self.table = table

    def parse(self, function_string: str) -> ParsedFunction:
        raw = split_signature(function_string)
        declarations = resolve_parameters(raw.param_tokens)
        bindings = bind_variables(declarations)
        logger.debug(
            "Parsed signature of %r: return type %s, parameters %s",
            function_string,
            raw.return_type,
            [(decl.type_name, decl.name) for decl in declarations],
        )

        args_name = _fresh_args_name()
        substituted = substitute_variables(raw.body, declarations, args_name, self.table)
        compiled = resolve_body(substituted, raw.return_type)
        entry_point = entry_point_for(raw.return_type, self.table)
        logger.debug("Final source for %s (%s): %s", entry_point, raw.return_type, compiled.source)

        request = CompileRequest(
            source=compiled.source,
            return_type=raw.return_type,
            entry_point=entry_point,
            bindings=tuple(bindings.values()),
            function_string=function_string,
            args_name=args_name,
        )
        try:
            executable = self.backend.compile(request)
        except BackendError as exc:
            raise FunctionCompilationError(function_string, exc.message, compiled.source) from exc
        return ParsedFunction(function_string, list(bindings), entry_point, executable)


def from_string(
    function_string: str,
    *,
    namespace: Optional[Mapping[str, object]] = None,
    backend: Optional[EvaluationBackend] = None,
) -> ParsedFunction:
    return FunctionParser(backend, namespace=namespace).parse(function_string)
