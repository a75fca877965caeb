from __future__ import annotations

from typing import Optional


class FunctionParserError(Exception):
    pass


class SignatureError(FunctionParserError, ValueError):
    """Raised while splitting or resolving a function string, before compilation."""


class MalformedSignature(SignatureError):
    pass


class MissingType(SignatureError):
    def __init__(self, token: str) -> None:
        super().__init__(f"No parameter type found in '{token}'")
        self.token = token


class TooManyTokens(SignatureError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Too many tokens near '{token}'")
        self.token = token


class FunctionCompilationError(FunctionParserError):
    """The evaluation backend rejected the finalized source of a function string."""

    def __init__(self, function_string: str, message: str, source: Optional[str] = None) -> None:
        text = f"cannot compile '{function_string}': {message}"
        if source is not None:
            # body positions count from the start of the rewritten source
            text += f" (positions refer to: {source})"
        super().__init__(text)
        self.function_string = function_string
        self.message = message
        self.source = source


class UnsupportedOperation(FunctionParserError, NotImplementedError):
    pass


class EvaluationError(FunctionParserError, RuntimeError):
    pass
