from __future__ import annotations

import importlib
import logging
from typing import Dict, Mapping, Optional

from .runtime import BUILTIN_TYPES, PRIMITIVES, HostType, RuntimeType

logger = logging.getLogger(__name__)

_MISSING = object()


def host_type(name: str, target: object) -> RuntimeType:
    if isinstance(target, RuntimeType):
        return target
    return HostType(name, target)


class TypeResolver:
    """
    Maps type names used in bodies to runtime types.

    Lookup order: primitive keywords, the caller's namespace (keys may be
    dotted, e.g. "java.awt.Point"), the built-in java.lang/java.util names and
    finally dotted paths importable with importlib ("fractions.Fraction").
    """

    def __init__(self, namespace: Optional[Mapping[str, object]] = None) -> None:
        self.namespace: Dict[str, object] = dict(namespace or {})

    def resolve(self, name: str) -> Optional[RuntimeType]:
        if name in PRIMITIVES:
            return PRIMITIVES[name]
        if name in self.namespace:
            return host_type(name, self.namespace[name])
        if name in BUILTIN_TYPES:
            return BUILTIN_TYPES[name]
        if "." in name:
            return self._import(name)
        return None

    def _import(self, name: str) -> Optional[RuntimeType]:
        parts = name.split(".")
        for split in range(len(parts), 0, -1):
            module_name = ".".join(parts[:split])
            try:
                target = importlib.import_module(module_name)
            except ImportError:
                continue
            for attr in parts[split:]:
                target = getattr(target, attr, _MISSING)
                if target is _MISSING:
                    return None
            logger.debug("Resolved %s from module %s", name, module_name)
            return host_type(name, target)
        return None
