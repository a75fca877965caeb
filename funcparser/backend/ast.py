from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Located:
    line: int
    column: int


@dataclass
class TypeExpr:
    loc: Located
    name: str
    # filled in by the checker
    resolved: Optional[object] = None


@dataclass
class Declarator:
    loc: Located
    name: str
    init: Optional["Expr"] = None


class Stmt:
    loc: Located


@dataclass
class Block(Stmt):
    loc: Located
    statements: List[Stmt]


@dataclass
class EmptyStmt(Stmt):
    loc: Located


@dataclass
class LocalDecl(Stmt):
    loc: Located
    type_expr: TypeExpr
    declarators: List[Declarator]


@dataclass
class ExprStmt(Stmt):
    loc: Located
    value: "Expr"


@dataclass
class IfStmt(Stmt):
    loc: Located
    condition: "Expr"
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass
class WhileStmt(Stmt):
    loc: Located
    condition: "Expr"
    body: Stmt


@dataclass
class DoStmt(Stmt):
    loc: Located
    body: Stmt
    condition: "Expr"


@dataclass
class ForStmt(Stmt):
    loc: Located
    init: List[Stmt]
    condition: Optional["Expr"]
    update: List["Expr"]
    body: Stmt


@dataclass
class ForEachStmt(Stmt):
    loc: Located
    type_expr: TypeExpr
    name: str
    iterable: "Expr"
    body: Stmt


@dataclass
class ReturnStmt(Stmt):
    loc: Located
    value: Optional["Expr"]


@dataclass
class BreakStmt(Stmt):
    loc: Located


@dataclass
class ContinueStmt(Stmt):
    loc: Located


@dataclass
class Body:
    statements: List[Stmt] = field(default_factory=list)


class Expr:
    loc: Located


@dataclass
class Literal(Expr):
    loc: Located
    value: object


@dataclass
class Name(Expr):
    loc: Located
    ident: str


@dataclass
class TypeName(Expr):
    """A name (or dotted prefix of a member chain) that resolved to a type or host object."""

    loc: Located
    type_expr: TypeExpr


@dataclass
class FieldAccess(Expr):
    loc: Located
    value: Expr
    attr: str


@dataclass
class MethodCall(Expr):
    loc: Located
    receiver: Expr
    name: str
    args: List[Expr]


@dataclass
class FuncCall(Expr):
    loc: Located
    callee: TypeExpr
    args: List[Expr]


@dataclass
class Index(Expr):
    loc: Located
    value: Expr
    index: Expr


@dataclass
class Unary(Expr):
    loc: Located
    op: str
    operand: Expr


@dataclass
class IncDec(Expr):
    loc: Located
    op: str
    target: Expr
    prefix: bool


@dataclass
class Binary(Expr):
    loc: Located
    op: str
    left: Expr
    right: Expr


@dataclass
class Logical(Expr):
    loc: Located
    op: str
    left: Expr
    right: Expr


@dataclass
class Conditional(Expr):
    loc: Located
    condition: Expr
    then_value: Expr
    else_value: Expr


@dataclass
class Assign(Expr):
    loc: Located
    op: str
    target: Expr
    value: Expr


@dataclass
class Cast(Expr):
    loc: Located
    type_expr: TypeExpr
    operand: Expr


@dataclass
class InstanceOf(Expr):
    loc: Located
    value: Expr
    type_expr: TypeExpr


@dataclass
class New(Expr):
    loc: Located
    type_expr: TypeExpr
    args: List[Expr]
