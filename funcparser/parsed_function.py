from __future__ import annotations

from typing import Generic, Sequence, Tuple, TypeVar

from .backend import Executable
from .body import ENTRY_POINTS, OBJECT_ENTRY_POINT
from .errors import UnsupportedOperation

T = TypeVar("T")


class ParsedFunction(Generic[T]):
    """
    A compiled function string.

    Exactly one `evaluate_to_*` entry point is live, chosen by the declared
    return type; the others raise UnsupportedOperation. Instances hold no
    mutable state and may be shared between threads.
    """

    def __init__(
        self,
        function_string: str,
        variables: Sequence[str],
        entry_point: str,
        executable: Executable,
    ) -> None:
        self._function_string = function_string
        self._variables: Tuple[str, ...] = tuple(variables)
        self._entry_point = entry_point
        self._executable = executable

    @property
    def function_string(self) -> str:
        return self._function_string

    @property
    def variables(self) -> Tuple[str, ...]:
        return self._variables

    @property
    def entry_point(self) -> str:
        return self._entry_point

    def evaluate_to_double(self, args: Sequence[object]) -> float:
        return self._dispatch(ENTRY_POINTS["double"], args)

    def evaluate_to_float(self, args: Sequence[object]) -> float:
        return self._dispatch(ENTRY_POINTS["float"], args)

    def evaluate_to_int(self, args: Sequence[object]) -> int:
        return self._dispatch(ENTRY_POINTS["int"], args)

    def evaluate_to_long(self, args: Sequence[object]) -> int:
        return self._dispatch(ENTRY_POINTS["long"], args)

    def evaluate_to_boolean(self, args: Sequence[object]) -> bool:
        return self._dispatch(ENTRY_POINTS["boolean"], args)

    def evaluate_to_short(self, args: Sequence[object]) -> int:
        return self._dispatch(ENTRY_POINTS["short"], args)

    def evaluate_to_object(self, args: Sequence[object]) -> T:
        return self._dispatch(OBJECT_ENTRY_POINT, args)

    def evaluate(self, args: Sequence[object]) -> T:
        return self.evaluate_to_object(args)

    def get_function_string(self) -> str:
        return self._function_string

    def get_variable_set(self) -> Tuple[str, ...]:
        return self._variables

    def __call__(self, *values: object) -> object:
        return self._dispatch(self._entry_point, values)

    def _dispatch(self, entry_point: str, args: Sequence[object]) -> object:
        if entry_point != self._entry_point:
            raise UnsupportedOperation(
                f"{entry_point} is not available for {self}; its return type selects {self._entry_point}"
            )
        return self._executable(args)

    def __str__(self) -> str:
        return f"ParsedFunction[{self._function_string}]"

    __repr__ = __str__
