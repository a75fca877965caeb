from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from .ast import (
    Assign,
    Binary,
    Block,
    Body,
    BreakStmt,
    Cast,
    Conditional,
    ContinueStmt,
    Declarator,
    DoStmt,
    EmptyStmt,
    Expr,
    ExprStmt,
    FieldAccess,
    ForEachStmt,
    ForStmt,
    FuncCall,
    IfStmt,
    IncDec,
    Index,
    InstanceOf,
    Literal,
    LocalDecl,
    Located,
    Logical,
    MethodCall,
    Name,
    New,
    ReturnStmt,
    Stmt,
    TypeExpr,
    Unary,
    WhileStmt,
)
from .runtime import JavaChar, JavaFloat, JavaLong, to_float32, wrap_integral

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()


class CastDeclInserter:
    """
    Fold type names into single tokens so the grammar stays LALR(1).

    `( a.b.C )` followed by the start of an operand becomes one CAST_TYPE token,
    and `a.b.C name` becomes a DECL_TYPE token followed by the name. The basic
    lexer does not depend on parser state, so the whole stream can be buffered.
    """

    always_accept = ()

    OPERAND_TYPES = frozenset({"NAME", "INT_LIT", "FLOAT_LIT", "STRING", "CHAR_LIT"})
    OPERAND_VALUES = frozenset({"(", "!", "~", "new", "true", "false", "null"})
    # `if (ready) count++;` is a condition, not a cast
    NOT_CAST_AFTER = frozenset({"if", "while", "for", "switch", "synchronized", "catch"})

    def process(self, stream):
        tokens = list(stream)
        idx = 0
        while idx < len(tokens):
            token = tokens[idx]
            if token.value == "(" and self._cast_allowed_after(tokens, idx):
                end = self._qualified_end(tokens, idx + 1)
                if (
                    end is not None
                    and end < len(tokens)
                    and tokens[end].value == ")"
                    and self._starts_operand(tokens, end + 1)
                ):
                    yield self._merge("CAST_TYPE", tokens[idx + 1 : end])
                    idx = end + 1
                    continue
            if token.type == "NAME":
                end = self._qualified_end(tokens, idx)
                if end is not None and end < len(tokens) and tokens[end].type == "NAME":
                    yield self._merge("DECL_TYPE", tokens[idx:end])
                    idx = end
                    continue
            yield token
            idx += 1

    def _cast_allowed_after(self, tokens: List[Token], idx: int) -> bool:
        if idx == 0:
            return True
        prev = tokens[idx - 1]
        return prev.type != "NAME" and prev.value not in self.NOT_CAST_AFTER

    def _starts_operand(self, tokens: List[Token], idx: int) -> bool:
        if idx >= len(tokens):
            return False
        token = tokens[idx]
        return token.type in self.OPERAND_TYPES or token.value in self.OPERAND_VALUES

    @staticmethod
    def _qualified_end(tokens: List[Token], start: int) -> Optional[int]:
        if start >= len(tokens) or tokens[start].type != "NAME":
            return None
        idx = start + 1
        while (
            idx + 1 < len(tokens)
            and tokens[idx].value == "."
            and tokens[idx + 1].type == "NAME"
        ):
            idx += 2
        return idx

    @staticmethod
    def _merge(kind: str, parts: List[Token]) -> Token:
        value = "".join(part.value for part in parts)
        return Token.new_borrow_pos(kind, value, parts[0])


_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="basic",
    start="start",
    propagate_positions=True,
    maybe_placeholders=False,
    postlex=CastDeclInserter(),
)


def parse_body(source: str) -> Body:
    tree = _PARSER.parse(source)
    return Body(statements=[_build_stmt(child) for child in tree.children if isinstance(child, Tree)])


def _build_stmt(tree: Tree) -> Stmt:
    kind = _name(tree)
    loc = _loc(tree)
    children = [child for child in tree.children if isinstance(child, Tree)]
    if kind == "block":
        return Block(loc=loc, statements=[_build_stmt(child) for child in children])
    if kind == "empty_stmt":
        return EmptyStmt(loc=loc)
    if kind == "local_decl":
        return _build_local_decl(tree)
    if kind == "expr_stmt":
        return ExprStmt(loc=loc, value=_build_expr(children[0]))
    if kind == "if_stmt":
        else_branch = _build_stmt(children[2]) if len(children) > 2 else None
        return IfStmt(
            loc=loc,
            condition=_build_expr(children[0]),
            then_branch=_build_stmt(children[1]),
            else_branch=else_branch,
        )
    if kind == "while_stmt":
        return WhileStmt(loc=loc, condition=_build_expr(children[0]), body=_build_stmt(children[1]))
    if kind == "do_stmt":
        return DoStmt(loc=loc, body=_build_stmt(children[0]), condition=_build_expr(children[1]))
    if kind == "for_stmt":
        return _build_for_stmt(tree)
    if kind == "foreach_stmt":
        name_token = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
        return ForEachStmt(
            loc=loc,
            type_expr=_build_type(children[0]),
            name=name_token.value,
            iterable=_build_expr(children[1]),
            body=_build_stmt(children[2]),
        )
    if kind == "return_stmt":
        return ReturnStmt(loc=loc, value=_build_expr(children[0]) if children else None)
    if kind == "break_stmt":
        return BreakStmt(loc=loc)
    if kind == "continue_stmt":
        return ContinueStmt(loc=loc)
    raise ValueError(f"Unsupported statement node: {kind}")


def _build_local_decl(tree: Tree) -> LocalDecl:
    children = [child for child in tree.children if isinstance(child, Tree)]
    type_expr = _build_type(children[0])
    declarators: List[Declarator] = []
    for node in children[1:]:
        name_token = node.children[0]
        init_nodes = [child for child in node.children[1:] if isinstance(child, Tree)]
        init = _build_expr(init_nodes[0]) if init_nodes else None
        declarators.append(Declarator(loc=_loc_from_token(name_token), name=name_token.value, init=init))
    return LocalDecl(loc=_loc(tree), type_expr=type_expr, declarators=declarators)


def _build_for_stmt(tree: Tree) -> ForStmt:
    init: List[Stmt] = []
    condition = None
    update: List[Expr] = []
    body = None
    for child in tree.children:
        if not isinstance(child, Tree):
            continue
        name = _name(child)
        if name == "for_init":
            inner = child.children[0]
            if _name(inner) == "local_decl":
                init.append(_build_local_decl(inner))
            else:
                init.extend(ExprStmt(loc=_loc(node), value=_build_expr(node)) for node in inner.children)
        elif name == "for_cond":
            condition = _build_expr(child.children[0])
        elif name == "for_update":
            update = [_build_expr(node) for node in child.children[0].children]
        else:
            body = _build_stmt(child)
    if body is None:
        raise ValueError("for statement missing body")
    return ForStmt(loc=_loc(tree), init=init, condition=condition, update=update, body=body)


def _build_type(tree: Tree) -> TypeExpr:
    token = tree.children[0]
    return TypeExpr(loc=_loc_from_token(token), name=token.value)


def _build_expr(node) -> Expr:
    if isinstance(node, Tree):
        name = _name(node)
    else:
        raise TypeError(f"Unexpected node type: {type(node)}")
    loc = _loc(node)
    children = node.children

    if name == "assign":
        return Assign(loc=loc, op=children[1].children[0].value, target=_build_expr(children[0]), value=_build_expr(children[2]))
    if name == "conditional":
        cond, then_value, else_value = (_build_expr(child) for child in children)
        return Conditional(loc=loc, condition=cond, then_value=then_value, else_value=else_value)
    if name == "logical":
        return Logical(loc=loc, op=_op(children[1]), left=_build_expr(children[0]), right=_build_expr(children[2]))
    if name == "binary":
        op_node = children[1]
        return Binary(
            loc=_loc(op_node),
            op=_op(op_node),
            left=_build_expr(children[0]),
            right=_build_expr(children[2]),
        )
    if name == "instanceof":
        return InstanceOf(loc=loc, value=_build_expr(children[0]), type_expr=_build_qualified(children[1]))
    if name == "unary_op":
        return Unary(loc=loc, op=_op(children[0]), operand=_build_expr(children[1]))
    if name == "pre_incdec":
        return IncDec(loc=loc, op=_op(children[0]), target=_build_expr(children[1]), prefix=True)
    if name == "post_incdec":
        return IncDec(loc=loc, op=_op(children[1]), target=_build_expr(children[0]), prefix=False)
    if name == "ref_cast":
        token = children[0]
        return Cast(loc=loc, type_expr=TypeExpr(loc=_loc_from_token(token), name=token.value), operand=_build_expr(children[1]))
    if name == "prim_cast":
        return Cast(loc=loc, type_expr=_build_type(children[0]), operand=_build_expr(children[1]))
    if name == "field_access":
        return FieldAccess(loc=_loc_from_token(children[1]), value=_build_expr(children[0]), attr=children[1].value)
    if name == "method_call":
        return MethodCall(
            loc=_loc_from_token(children[1]),
            receiver=_build_expr(children[0]),
            name=children[1].value,
            args=_build_args(children[2:]),
        )
    if name == "index":
        return Index(loc=loc, value=_build_expr(children[0]), index=_build_expr(children[1]))
    if name == "var":
        return Name(loc=loc, ident=children[0].value)
    if name == "func_call":
        token = children[0]
        callee = TypeExpr(loc=_loc_from_token(token), name=token.value)
        return FuncCall(loc=loc, callee=callee, args=_build_args(children[1:]))
    if name == "new_expr":
        return New(loc=loc, type_expr=_build_qualified(children[0]), args=_build_args(children[1:]))
    if name == "int_lit":
        return Literal(loc=loc, value=_parse_int(children[0].value))
    if name == "float_lit":
        return Literal(loc=loc, value=_parse_float(children[0].value))
    if name == "string_lit":
        return Literal(loc=loc, value=_decode_escapes(children[0].value[1:-1]))
    if name == "char_lit":
        return Literal(loc=loc, value=JavaChar(_decode_escapes(children[0].value[1:-1])))
    if name == "true_lit":
        return Literal(loc=loc, value=True)
    if name == "false_lit":
        return Literal(loc=loc, value=False)
    if name == "null_lit":
        return Literal(loc=loc, value=None)
    raise ValueError(f"Unsupported expression node: {name}")


def _build_args(nodes) -> List[Expr]:
    for node in nodes:
        if isinstance(node, Tree) and _name(node) == "args":
            return [_build_expr(child) for child in node.children]
    return []


def _build_qualified(tree: Tree) -> TypeExpr:
    parts = [child.value for child in tree.children if isinstance(child, Token)]
    return TypeExpr(loc=_loc(tree), name=".".join(parts))


def _op(tree: Tree) -> str:
    return tree.children[0].value


def _parse_int(text: str) -> int:
    is_long = text[-1] in "lL"
    digits = text.rstrip("lL")
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif len(digits) > 1 and digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits)
        return JavaLong(value) if is_long else value
    # hex and octal literals spell out the two's complement bits
    if is_long:
        return JavaLong(wrap_integral(value, 64))
    return wrap_integral(value, 32)


def _parse_float(text: str) -> float:
    if text[-1] in "fF":
        return JavaFloat(to_float32(float(text[:-1])))
    return float(text.rstrip("dD"))


_ESCAPES = {"b": "\b", "t": "\t", "n": "\n", "f": "\f", "r": "\r", '"': '"', "'": "'", "\\": "\\", "s": " "}
_ESCAPE_RE = re.compile(r"\\(u+[0-9a-fA-F]{4}|[0-3][0-7]{0,2}|[4-7][0-7]?|.)")


def _decode_escapes(content: str) -> str:
    def _replace(match: re.Match) -> str:
        esc = match.group(1)
        if esc[0] == "u":
            return chr(int(esc.lstrip("u"), 16))
        if esc[0].isdigit():
            return chr(int(esc, 8))
        if esc in _ESCAPES:
            return _ESCAPES[esc]
        raise ValueError(f"illegal escape character '\\{esc}'")

    return _ESCAPE_RE.sub(_replace, content)


def _loc(tree: Tree) -> Located:
    meta = tree.meta
    if meta.empty:
        return Located(line=0, column=0)
    return Located(line=meta.line, column=meta.column)


def _loc_from_token(token: Token) -> Located:
    return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    if isinstance(node, Token):
        return node.type
    return str(node)
