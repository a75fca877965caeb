from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .substitute import contains_free_standing
from .types import TYPE_TABLE, TypeTable

RETURN_KEYWORD = "return"
OBJECT_ENTRY_POINT = "evaluate_to_object"

ENTRY_POINTS: Mapping[str, str] = MappingProxyType(
    {prim: f"evaluate_to_{prim}" for prim in TYPE_TABLE.primitive_to_boxed}
)


@dataclass(frozen=True)
class CompiledBody:
    source: str
    explicit_return: bool


def resolve_body(substituted_body: str, return_type: str) -> CompiledBody:
    """A body that already returns is kept as a statement block; anything else is one expression."""
    if contains_free_standing(substituted_body, RETURN_KEYWORD):
        return CompiledBody(source=substituted_body, explicit_return=True)
    return CompiledBody(source=f"return ({return_type})({substituted_body});", explicit_return=False)


def entry_point_for(return_type: str, table: TypeTable = TYPE_TABLE) -> str:
    if table.is_primitive(return_type):
        return f"evaluate_to_{return_type}"
    return OBJECT_ENTRY_POINT
