from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_RETURN_TYPE = "Object"

_PRIMITIVE_TO_BOXED: Mapping[str, str] = MappingProxyType(
    {
        "double": "Double",
        "float": "Float",
        "int": "Integer",
        "long": "Long",
        "boolean": "Boolean",
        "short": "Short",
    }
)


@dataclass(frozen=True)
class TypeTable:
    """Bidirectional primitive/boxed name mapping for the supported return kinds."""

    primitive_to_boxed: Mapping[str, str]
    boxed_to_primitive: Mapping[str, str] = field(init=False)

    def __post_init__(self) -> None:
        reverse = MappingProxyType({boxed: prim for prim, boxed in self.primitive_to_boxed.items()})
        object.__setattr__(self, "boxed_to_primitive", reverse)

    @property
    def primitives(self) -> frozenset[str]:
        return frozenset(self.primitive_to_boxed)

    def boxed_name(self, primitive: str) -> Optional[str]:
        return self.primitive_to_boxed.get(primitive)

    def primitive_name(self, boxed: str) -> Optional[str]:
        return self.boxed_to_primitive.get(boxed)

    def is_primitive(self, name: str) -> bool:
        return name in self.primitive_to_boxed

    def is_boxed(self, name: str) -> bool:
        return name in self.boxed_to_primitive


TYPE_TABLE = TypeTable(_PRIMITIVE_TO_BOXED)

SUPPORTED_PRIMITIVES = TYPE_TABLE.primitives
