from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..errors import EvaluationError
from . import ast
from .checker import CheckedBody
from .runtime import (
    OBJECT,
    BoxedType,
    PrimitiveType,
    RuntimeType,
    binary_op,
    get_field,
    index_value,
    invoke_member,
    require_bool,
    set_field,
    store_index,
    unary_op,
)

_UNSET = object()


class ReturnSignal(Exception):
    def __init__(self, value: object) -> None:
        self.value = value


class BreakSignal(Exception):
    pass


class ContinueSignal(Exception):
    pass


class Environment:
    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self.values: Dict[str, object] = {}
        self.types: Dict[str, RuntimeType] = {}

    def define(self, name: str, value: object, declared: RuntimeType) -> None:
        self.values[name] = value
        self.types[name] = declared

    def _owner(self, name: str) -> Environment:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        raise EvaluationError(f"Unknown variable '{name}'")

    def get(self, name: str) -> object:
        value = self._owner(name).values[name]
        if value is _UNSET:
            raise EvaluationError(f"variable {name} might not have been initialized")
        return value

    def set(self, name: str, value: object) -> None:
        self._owner(name).values[name] = value

    def declared_type(self, name: str) -> RuntimeType:
        return self._owner(name).types[name]


class _Reference:
    """An assignable location; `declared` is set for locals only."""

    declared: Optional[RuntimeType] = None

    def get(self) -> object:
        raise NotImplementedError

    def set(self, value: object) -> None:
        raise NotImplementedError


class _LocalRef(_Reference):
    def __init__(self, env: Environment, name: str) -> None:
        self.env = env
        self.name = name
        self.declared = env.declared_type(name)

    def get(self) -> object:
        return self.env.get(self.name)

    def set(self, value: object) -> None:
        self.env.set(self.name, value)


class _FieldRef(_Reference):
    def __init__(self, receiver: object, attr: str) -> None:
        self.receiver = receiver
        self.attr = attr

    def get(self) -> object:
        return get_field(self.receiver, self.attr)

    def set(self, value: object) -> None:
        set_field(self.receiver, self.attr, value)


class _IndexRef(_Reference):
    def __init__(self, container: object, index: object) -> None:
        self.container = container
        self.index = index

    def get(self) -> object:
        return index_value(self.container, self.index)

    def set(self, value: object) -> None:
        store_index(self.container, self.index, value)


class Interpreter:
    """
    Executes a checked body against an argument sequence.

    Every call gets a fresh Environment, so one Interpreter may be shared by
    concurrent callers.
    """

    def __init__(self, checked: CheckedBody) -> None:
        self.body = checked.body
        self.args_name = checked.args_name
        self.return_type = checked.return_type

    def __call__(self, args: Sequence[object]) -> object:
        return self.run(args)

    def run(self, args: Sequence[object]) -> object:
        env = Environment()
        env.define(self.args_name, args, OBJECT)
        try:
            self._execute_block(self.body.statements, env)
        except ReturnSignal as signal:
            return self._returned(signal.value)
        raise EvaluationError("missing return statement")

    def _returned(self, value: object) -> object:
        if isinstance(self.return_type, (PrimitiveType, BoxedType)):
            return self.return_type.convert(value)
        return self.return_type.cast(value)

    def _execute_block(self, statements: List[ast.Stmt], env: Environment) -> None:
        for stmt in statements:
            self._exec_stmt(stmt, env)

    def _exec_stmt(self, stmt: ast.Stmt, env: Environment) -> None:
        if isinstance(stmt, ast.Block):
            self._execute_block(stmt.statements, Environment(parent=env))
            return
        if isinstance(stmt, ast.EmptyStmt):
            return
        if isinstance(stmt, ast.LocalDecl):
            declared = stmt.type_expr.resolved
            for declarator in stmt.declarators:
                if declarator.init is None:
                    value = _UNSET
                else:
                    value = declared.convert(self._eval_expr(declarator.init, env))
                env.define(declarator.name, value, declared)
            return
        if isinstance(stmt, ast.ExprStmt):
            self._eval_expr(stmt.value, env)
            return
        if isinstance(stmt, ast.IfStmt):
            if self._condition(stmt.condition, env):
                self._exec_stmt(stmt.then_branch, env)
            elif stmt.else_branch is not None:
                self._exec_stmt(stmt.else_branch, env)
            return
        if isinstance(stmt, ast.WhileStmt):
            while self._condition(stmt.condition, env):
                try:
                    self._exec_stmt(stmt.body, env)
                except BreakSignal:
                    break
                except ContinueSignal:
                    continue
            return
        if isinstance(stmt, ast.DoStmt):
            while True:
                try:
                    self._exec_stmt(stmt.body, env)
                except BreakSignal:
                    break
                except ContinueSignal:
                    pass
                if not self._condition(stmt.condition, env):
                    break
            return
        if isinstance(stmt, ast.ForStmt):
            loop_env = Environment(parent=env)
            for init in stmt.init:
                self._exec_stmt(init, loop_env)
            while stmt.condition is None or self._condition(stmt.condition, loop_env):
                try:
                    self._exec_stmt(stmt.body, loop_env)
                except BreakSignal:
                    break
                except ContinueSignal:
                    pass
                for update in stmt.update:
                    self._eval_expr(update, loop_env)
            return
        if isinstance(stmt, ast.ForEachStmt):
            self._exec_foreach(stmt, env)
            return
        if isinstance(stmt, ast.ReturnStmt):
            raise ReturnSignal(self._eval_expr(stmt.value, env))
        if isinstance(stmt, ast.BreakStmt):
            raise BreakSignal()
        if isinstance(stmt, ast.ContinueStmt):
            raise ContinueSignal()
        raise EvaluationError(f"Unsupported statement {type(stmt).__name__}")

    def _exec_foreach(self, stmt: ast.ForEachStmt, env: Environment) -> None:
        iterable = self._eval_expr(stmt.iterable, env)
        if iterable is None:
            raise EvaluationError("NullPointerException: cannot iterate over null")
        try:
            items = iter(iterable)
        except TypeError as exc:
            raise EvaluationError("for-each not applicable to expression type") from exc
        declared = stmt.type_expr.resolved
        for item in items:
            loop_env = Environment(parent=env)
            loop_env.define(stmt.name, declared.convert(item), declared)
            try:
                self._exec_stmt(stmt.body, loop_env)
            except BreakSignal:
                break
            except ContinueSignal:
                continue

    def _condition(self, expr: ast.Expr, env: Environment) -> bool:
        return require_bool(self._eval_expr(expr, env))

    def _eval_expr(self, expr: ast.Expr, env: Environment) -> object:
        if isinstance(expr, ast.Literal):
            return expr.value
        if isinstance(expr, ast.Name):
            return env.get(expr.ident)
        if isinstance(expr, ast.TypeName):
            return expr.type_expr.resolved.as_value()
        if isinstance(expr, ast.FieldAccess):
            if isinstance(expr.value, ast.TypeName):
                return expr.value.type_expr.resolved.get_static(expr.attr)
            return get_field(self._eval_expr(expr.value, env), expr.attr)
        if isinstance(expr, ast.MethodCall):
            if isinstance(expr.receiver, ast.TypeName):
                args = self._eval_args(expr.args, env)
                return expr.receiver.type_expr.resolved.call_static(expr.name, args)
            receiver = self._eval_expr(expr.receiver, env)
            return invoke_member(receiver, expr.name, self._eval_args(expr.args, env))
        if isinstance(expr, ast.FuncCall):
            return expr.callee.resolved.invoke(self._eval_args(expr.args, env))
        if isinstance(expr, ast.Index):
            container = self._eval_expr(expr.value, env)
            return index_value(container, self._eval_expr(expr.index, env))
        if isinstance(expr, ast.Unary):
            return unary_op(expr.op, self._eval_expr(expr.operand, env))
        if isinstance(expr, ast.IncDec):
            ref = self._reference(expr.target, env)
            old = ref.get()
            new = self._store(ref, binary_op(expr.op[0], old, 1), narrowing=True)
            return new if expr.prefix else old
        if isinstance(expr, ast.Binary):
            left = self._eval_expr(expr.left, env)
            right = self._eval_expr(expr.right, env)
            return binary_op(expr.op, left, right)
        if isinstance(expr, ast.Logical):
            left = require_bool(self._eval_expr(expr.left, env))
            if expr.op == "&&" and not left:
                return False
            if expr.op == "||" and left:
                return True
            return require_bool(self._eval_expr(expr.right, env))
        if isinstance(expr, ast.Conditional):
            if self._condition(expr.condition, env):
                return self._eval_expr(expr.then_value, env)
            return self._eval_expr(expr.else_value, env)
        if isinstance(expr, ast.Assign):
            ref = self._reference(expr.target, env)
            if expr.op == "=":
                return self._store(ref, self._eval_expr(expr.value, env), narrowing=False)
            current = ref.get()
            result = binary_op(expr.op[:-1], current, self._eval_expr(expr.value, env))
            return self._store(ref, result, narrowing=True)
        if isinstance(expr, ast.Cast):
            return expr.type_expr.resolved.cast(self._eval_expr(expr.operand, env))
        if isinstance(expr, ast.InstanceOf):
            value = self._eval_expr(expr.value, env)
            return value is not None and expr.type_expr.resolved.is_instance(value)
        if isinstance(expr, ast.New):
            return expr.type_expr.resolved.instantiate(self._eval_args(expr.args, env))
        raise EvaluationError(f"Unsupported expression {type(expr).__name__}")

    def _eval_args(self, args: List[ast.Expr], env: Environment) -> List[object]:
        return [self._eval_expr(arg, env) for arg in args]

    def _reference(self, target: ast.Expr, env: Environment) -> _Reference:
        if isinstance(target, ast.Name):
            return _LocalRef(env, target.ident)
        if isinstance(target, ast.FieldAccess):
            if isinstance(target.value, ast.TypeName):
                return _FieldRef(target.value.type_expr.resolved.as_value(), target.attr)
            return _FieldRef(self._eval_expr(target.value, env), target.attr)
        if isinstance(target, ast.Index):
            container = self._eval_expr(target.value, env)
            return _IndexRef(container, self._eval_expr(target.index, env))
        raise EvaluationError("unexpected type: required variable, found value")

    @staticmethod
    def _store(ref: _Reference, value: object, narrowing: bool) -> object:
        # compound assignment and ++/-- carry an implicit cast back to the declared type
        if ref.declared is not None:
            value = ref.declared.cast(value) if narrowing else ref.declared.convert(value)
        ref.set(value)
        return value
