"""
Splitting of function strings into return type, parameters and body, and
resolution of the parameter list into positional variable bindings.

    returnType(Type a, b, Other c) -> body

The parameter list is everything between the first `(` and the first `)`
after it; the body is everything after the first `->` that follows it.
Anything between the `)` and the `->` is ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .errors import MalformedSignature, MissingType, TooManyTokens
from .types import DEFAULT_RETURN_TYPE

logger = logging.getLogger(__name__)

ARROW = "->"


@dataclass(frozen=True)
class RawSignature:
    return_type: str
    param_tokens: Tuple[str, ...]
    body: str


@dataclass(frozen=True)
class ParameterDeclaration:
    index: int
    name: str
    type_name: str


@dataclass(frozen=True)
class VariableBinding:
    index: int
    name: str
    type_name: str


def split_signature(function_string: str) -> RawSignature:
    open_idx = function_string.find("(")
    if open_idx < 0:
        raise MalformedSignature(f"Missing '(' in '{function_string}'")
    close_idx = function_string.find(")", open_idx + 1)
    if close_idx < 0:
        raise MalformedSignature(f"Missing ')' in '{function_string}'")
    params_text = function_string[open_idx + 1 : close_idx]
    if "(" in params_text:
        raise MalformedSignature(
            f"Nested parentheses are not supported in the parameter list of '{function_string}'"
        )
    rest = function_string[close_idx + 1 :]
    arrow_idx = rest.find(ARROW)
    if arrow_idx < 0:
        raise MalformedSignature(f"Missing '{ARROW}' in '{function_string}'")
    ignored = rest[:arrow_idx].strip()
    if ignored:
        logger.warning("ignoring '%s' between parameters and '%s' in %r", ignored, ARROW, function_string)
    return_type = function_string[:open_idx].strip() or DEFAULT_RETURN_TYPE
    return RawSignature(
        return_type=return_type,
        param_tokens=_split_params(params_text, function_string),
        body=rest[arrow_idx + len(ARROW) :],
    )


def _split_params(params_text: str, function_string: str) -> Tuple[str, ...]:
    if not params_text.strip():
        # a single empty token, which has no type
        return ("",)
    tokens = tuple(piece.strip() for piece in params_text.split(","))
    if any(not token for token in tokens):
        raise MalformedSignature(f"Empty parameter in '{function_string}'")
    return tokens


def resolve_parameters(tokens: Sequence[str]) -> List[ParameterDeclaration]:
    """Assign indices in raw token order; a bare name inherits the last explicit type."""
    declarations: List[ParameterDeclaration] = []
    current_type = None
    for index, token in enumerate(tokens):
        words = token.split() or [token]
        if len(words) == 2:
            current_type, name = words
        elif len(words) == 1:
            name = words[0]
        else:
            raise TooManyTokens(token)
        if current_type is None:
            raise MissingType(token)
        declarations.append(ParameterDeclaration(index=index, name=name, type_name=current_type))
    return declarations


def bind_variables(declarations: Sequence[ParameterDeclaration]) -> Dict[str, VariableBinding]:
    bindings: Dict[str, VariableBinding] = {}
    for decl in declarations:
        existing = bindings.get(decl.name)
        if existing is not None:
            logger.warning(
                "parameter '%s' declared again at position %d; keeping position %d",
                decl.name,
                decl.index,
                existing.index,
            )
            continue
        bindings[decl.name] = VariableBinding(index=decl.index, name=decl.name, type_name=decl.type_name)
    return bindings
