from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Type as PyType

from . import ast
from .resolver import TypeResolver
from .runtime import OBJECT, PrimitiveType, RuntimeType

RESERVED_IDENTIFIERS = frozenset(
    {
        "abstract",
        "assert",
        "case",
        "catch",
        "class",
        "const",
        "default",
        "enum",
        "extends",
        "final",
        "finally",
        "goto",
        "implements",
        "import",
        "interface",
        "native",
        "package",
        "private",
        "protected",
        "public",
        "static",
        "strictfp",
        "super",
        "switch",
        "synchronized",
        "this",
        "throw",
        "throws",
        "transient",
        "try",
        "void",
        "volatile",
    }
)

_STATEMENT_EXPRESSIONS = (ast.Assign, ast.IncDec, ast.MethodCall, ast.FuncCall, ast.New)


@dataclass
class VarInfo:
    type: RuntimeType


@dataclass
class CheckedBody:
    body: ast.Body
    args_name: str
    return_type: RuntimeType


class CheckError(Exception):
    pass


def _error(loc: ast.Located, message: str) -> CheckError:
    return CheckError(f"{loc.line}:{loc.column}: {message}")


class Scope:
    def __init__(self, parent: Optional[Scope] = None) -> None:
        self.parent = parent
        self.vars: Dict[str, VarInfo] = {}

    def define(self, name: str, info: VarInfo, loc: ast.Located) -> None:
        # locals may not shadow each other, even across nested blocks
        if self.lookup(name) is not None:
            raise _error(loc, f"variable '{name}' is already defined")
        if name in RESERVED_IDENTIFIERS:
            raise _error(loc, f"'{name}' is a reserved keyword")
        self.vars[name] = info

    def lookup(self, name: str) -> Optional[VarInfo]:
        if name in self.vars:
            return self.vars[name]
        if self.parent:
            return self.parent.lookup(name)
        return None


class Checker:
    """
    Static pass over a parsed body.

    Resolves every type name, rewrites dotted chains that start with a type or
    host object into TypeName nodes, rejects misplaced statements and verifies
    that the body cannot fall off its end without returning a value.
    """

    def __init__(self, resolver: TypeResolver) -> None:
        self.resolver = resolver

    def check(self, body: ast.Body, args_name: str, return_type: str) -> CheckedBody:
        resolved_return = self.resolver.resolve(return_type)
        if resolved_return is None:
            raise CheckError(f"0:0: cannot find symbol: class {return_type}")
        scope = Scope()
        scope.define(args_name, VarInfo(type=OBJECT), ast.Located(line=0, column=0))
        for stmt in body.statements:
            self._check_stmt(stmt, scope, in_loop=False)
        if self._can_complete(body.statements):
            loc = body.statements[-1].loc if body.statements else ast.Located(line=1, column=1)
            raise _error(loc, "missing return statement")
        return CheckedBody(body=body, args_name=args_name, return_type=resolved_return)

    # Statements

    def _check_stmt(self, stmt: ast.Stmt, scope: Scope, in_loop: bool) -> None:
        if isinstance(stmt, ast.Block):
            block_scope = Scope(parent=scope)
            for inner in stmt.statements:
                self._check_stmt(inner, block_scope, in_loop)
            return
        if isinstance(stmt, ast.EmptyStmt):
            return
        if isinstance(stmt, ast.LocalDecl):
            declared = self._resolve_type(stmt.type_expr)
            for declarator in stmt.declarators:
                if declarator.init is not None:
                    declarator.init = self._check_expr(declarator.init, scope)
                scope.define(declarator.name, VarInfo(type=declared), declarator.loc)
            return
        if isinstance(stmt, ast.ExprStmt):
            if not isinstance(stmt.value, _STATEMENT_EXPRESSIONS):
                raise _error(stmt.loc, "not a statement")
            stmt.value = self._check_expr(stmt.value, scope)
            return
        if isinstance(stmt, ast.IfStmt):
            stmt.condition = self._check_expr(stmt.condition, scope)
            self._check_nested(stmt.then_branch, scope, in_loop)
            if stmt.else_branch is not None:
                self._check_nested(stmt.else_branch, scope, in_loop)
            return
        if isinstance(stmt, ast.WhileStmt):
            stmt.condition = self._check_expr(stmt.condition, scope)
            self._check_nested(stmt.body, scope, in_loop=True)
            return
        if isinstance(stmt, ast.DoStmt):
            self._check_nested(stmt.body, scope, in_loop=True)
            stmt.condition = self._check_expr(stmt.condition, scope)
            return
        if isinstance(stmt, ast.ForStmt):
            loop_scope = Scope(parent=scope)
            for init in stmt.init:
                if isinstance(init, ast.LocalDecl):
                    self._check_stmt(init, loop_scope, in_loop)
                else:
                    init.value = self._check_expr(init.value, loop_scope)
            if stmt.condition is not None:
                stmt.condition = self._check_expr(stmt.condition, loop_scope)
            stmt.update = [self._check_expr(update, loop_scope) for update in stmt.update]
            self._check_nested(stmt.body, loop_scope, in_loop=True)
            return
        if isinstance(stmt, ast.ForEachStmt):
            stmt.iterable = self._check_expr(stmt.iterable, scope)
            loop_scope = Scope(parent=scope)
            loop_scope.define(stmt.name, VarInfo(type=self._resolve_type(stmt.type_expr)), stmt.loc)
            self._check_nested(stmt.body, loop_scope, in_loop=True)
            return
        if isinstance(stmt, ast.ReturnStmt):
            if stmt.value is None:
                raise _error(stmt.loc, "missing return value")
            stmt.value = self._check_expr(stmt.value, scope)
            return
        if isinstance(stmt, ast.BreakStmt):
            if not in_loop:
                raise _error(stmt.loc, "break outside switch or loop")
            return
        if isinstance(stmt, ast.ContinueStmt):
            if not in_loop:
                raise _error(stmt.loc, "continue outside of loop")
            return
        raise _error(stmt.loc, f"Unsupported statement {type(stmt).__name__}")

    def _check_nested(self, stmt: ast.Stmt, scope: Scope, in_loop: bool) -> None:
        if isinstance(stmt, ast.LocalDecl):
            raise _error(stmt.loc, "variable declaration not allowed here")
        self._check_stmt(stmt, Scope(parent=scope), in_loop)

    # Reachability

    def _can_complete(self, statements: List[ast.Stmt]) -> bool:
        return all(self._completes(stmt) for stmt in statements)

    def _completes(self, stmt: ast.Stmt) -> bool:
        if isinstance(stmt, ast.Block):
            return self._can_complete(stmt.statements)
        if isinstance(stmt, (ast.ReturnStmt, ast.BreakStmt, ast.ContinueStmt)):
            return False
        if isinstance(stmt, ast.IfStmt):
            if stmt.else_branch is None:
                return True
            return self._completes(stmt.then_branch) or self._completes(stmt.else_branch)
        if isinstance(stmt, ast.WhileStmt):
            return not _is_constant_true(stmt.condition) or _has_jump(stmt.body, ast.BreakStmt)
        if isinstance(stmt, ast.DoStmt):
            body_ends = self._completes(stmt.body) or _has_jump(stmt.body, ast.ContinueStmt)
            return (body_ends and not _is_constant_true(stmt.condition)) or _has_jump(stmt.body, ast.BreakStmt)
        if isinstance(stmt, ast.ForStmt):
            if stmt.condition is None or _is_constant_true(stmt.condition):
                return _has_jump(stmt.body, ast.BreakStmt)
            return True
        return True

    # Expressions

    def _check_expr(self, expr: ast.Expr, scope: Scope) -> ast.Expr:
        if isinstance(expr, ast.Literal):
            return expr
        if isinstance(expr, (ast.Name, ast.FieldAccess)):
            chain = _dotted_chain(expr)
            if chain is not None and scope.lookup(chain[0].ident) is None:
                return self._rewrite_static_chain(chain)
            if isinstance(expr, ast.FieldAccess):
                expr.value = self._check_expr(expr.value, scope)
            return expr
        if isinstance(expr, ast.TypeName):
            self._resolve_type(expr.type_expr)
            return expr
        if isinstance(expr, ast.MethodCall):
            expr.receiver = self._check_expr(expr.receiver, scope)
            expr.args = [self._check_expr(arg, scope) for arg in expr.args]
            return expr
        if isinstance(expr, ast.FuncCall):
            if scope.lookup(expr.callee.name) is not None:
                raise _error(expr.loc, f"cannot call variable '{expr.callee.name}'")
            resolved = self.resolver.resolve(expr.callee.name)
            if resolved is None or isinstance(resolved, PrimitiveType):
                raise _error(expr.loc, f"cannot find symbol: method {expr.callee.name}")
            expr.callee.resolved = resolved
            expr.args = [self._check_expr(arg, scope) for arg in expr.args]
            return expr
        if isinstance(expr, ast.Index):
            expr.value = self._check_expr(expr.value, scope)
            expr.index = self._check_expr(expr.index, scope)
            return expr
        if isinstance(expr, ast.Unary):
            expr.operand = self._check_expr(expr.operand, scope)
            return expr
        if isinstance(expr, ast.IncDec):
            expr.target = self._check_target(expr.target, scope)
            return expr
        if isinstance(expr, (ast.Binary, ast.Logical)):
            expr.left = self._check_expr(expr.left, scope)
            expr.right = self._check_expr(expr.right, scope)
            return expr
        if isinstance(expr, ast.Conditional):
            expr.condition = self._check_expr(expr.condition, scope)
            expr.then_value = self._check_expr(expr.then_value, scope)
            expr.else_value = self._check_expr(expr.else_value, scope)
            return expr
        if isinstance(expr, ast.Assign):
            expr.target = self._check_target(expr.target, scope)
            expr.value = self._check_expr(expr.value, scope)
            return expr
        if isinstance(expr, ast.Cast):
            self._resolve_type(expr.type_expr)
            expr.operand = self._check_expr(expr.operand, scope)
            return expr
        if isinstance(expr, ast.InstanceOf):
            expr.value = self._check_expr(expr.value, scope)
            if isinstance(self._resolve_type(expr.type_expr), PrimitiveType):
                raise _error(expr.loc, f"unexpected type: required reference, found {expr.type_expr.name}")
            return expr
        if isinstance(expr, ast.New):
            if isinstance(self._resolve_type(expr.type_expr), PrimitiveType):
                raise _error(expr.loc, f"cannot instantiate primitive type {expr.type_expr.name}")
            expr.args = [self._check_expr(arg, scope) for arg in expr.args]
            return expr
        raise _error(expr.loc, f"Unsupported expression {type(expr).__name__}")

    def _check_target(self, target: ast.Expr, scope: Scope) -> ast.Expr:
        checked = self._check_expr(target, scope)
        if isinstance(checked, (ast.Name, ast.FieldAccess, ast.Index)):
            return checked
        raise _error(target.loc, "unexpected type: required variable, found value")

    def _rewrite_static_chain(self, chain: List[ast.Expr]) -> ast.Expr:
        """`java.lang.Math.PI` becomes FieldAccess(TypeName(java.lang.Math), PI)."""
        parts = [node.ident if isinstance(node, ast.Name) else node.attr for node in chain]
        for split in range(len(parts), 0, -1):
            name = ".".join(parts[:split])
            resolved = self.resolver.resolve(name)
            if resolved is None or isinstance(resolved, PrimitiveType):
                continue
            result: ast.Expr = ast.TypeName(
                loc=chain[0].loc, type_expr=ast.TypeExpr(loc=chain[0].loc, name=name, resolved=resolved)
            )
            for node in chain[split:]:
                node.value = result
                result = node
            return result
        raise _error(chain[0].loc, f"cannot find symbol: variable {parts[0]}")

    def _resolve_type(self, type_expr: ast.TypeExpr) -> RuntimeType:
        if type_expr.resolved is None:
            resolved = self.resolver.resolve(type_expr.name)
            if resolved is None:
                raise _error(type_expr.loc, f"cannot find symbol: class {type_expr.name}")
            type_expr.resolved = resolved
        return type_expr.resolved


def _dotted_chain(expr: ast.Expr) -> Optional[List[ast.Expr]]:
    """[Name, FieldAccess, ...] for a pure `a.b.c` chain, root first."""
    chain: List[ast.Expr] = []
    while isinstance(expr, ast.FieldAccess):
        chain.append(expr)
        expr = expr.value
    if not isinstance(expr, ast.Name):
        return None
    chain.append(expr)
    chain.reverse()
    return chain


def _is_constant_true(expr: Optional[ast.Expr]) -> bool:
    return isinstance(expr, ast.Literal) and expr.value is True


def _has_jump(stmt: ast.Stmt, kind: PyType[ast.Stmt]) -> bool:
    """Whether `stmt` holds a break/continue that targets the loop enclosing it."""
    if isinstance(stmt, kind):
        return True
    if isinstance(stmt, ast.Block):
        return any(_has_jump(inner, kind) for inner in stmt.statements)
    if isinstance(stmt, ast.IfStmt):
        if _has_jump(stmt.then_branch, kind):
            return True
        return stmt.else_branch is not None and _has_jump(stmt.else_branch, kind)
    return False
