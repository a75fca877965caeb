"""
Rewriting of parameter names in a body into typed argument-array accesses.

A word is *free-standing* when the character before it (or start of text) and
the character after it (or end of text) are boundary characters. The boundary
set is deliberately narrow: `x` is not touched inside `xb.get()` or `Matx()`,
and neither is it touched before `[`, `=`, `<` or `>`.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from .signature import ParameterDeclaration
from .types import TYPE_TABLE, TypeTable

WHITESPACE = frozenset(" \t\n\x0b\f\r")
BOUNDARY_CHARS = frozenset("().*+-/%?;{},") | WHITESPACE


def find_free_standing(text: str, word: str) -> Iterator[int]:
    """Yield the start offsets of non-overlapping free-standing occurrences of `word`."""
    if not word:
        return
    width = len(word)
    end = len(text) - width
    pos = 0
    while pos <= end:
        if (
            text.startswith(word, pos)
            and (pos == 0 or text[pos - 1] in BOUNDARY_CHARS)
            and (pos + width == len(text) or text[pos + width] in BOUNDARY_CHARS)
        ):
            yield pos
            pos += width
        else:
            pos += 1


def contains_free_standing(text: str, word: str) -> bool:
    return next(find_free_standing(text, word), None) is not None


def replace_free_standing(text: str, word: str, replacement: str) -> str:
    pieces = []
    last = 0
    for start in find_free_standing(text, word):
        pieces.append(text[last:start])
        pieces.append(replacement)
        last = start + len(word)
    if not pieces:
        return text
    pieces.append(text[last:])
    return "".join(pieces)


def access_expression(
    decl: ParameterDeclaration, args_name: str, table: TypeTable = TYPE_TABLE
) -> str:
    slot = f"{args_name}[{decl.index}]"
    primitive = table.primitive_name(decl.type_name)
    if primitive is not None:
        return f"((({decl.type_name}) {slot}).{primitive}Value())"
    return f"(({decl.type_name}) {slot})"


def substitute_variables(
    body: str,
    declarations: Sequence[ParameterDeclaration],
    args_name: str,
    table: TypeTable = TYPE_TABLE,
) -> str:
    """
    Apply one rewrite pass per declaration, in declaration order.

    Later passes run over the output of earlier ones, so a parameter whose name
    also appears in an earlier replacement (a type name, say) is rewritten there
    too. Repeated names get their own pass with their own index.
    """
    for decl in declarations:
        body = replace_free_standing(body, decl.name, access_expression(decl, args_name, table))
    return body
