"""Lambda capturing and parameter substitution for dynq expressions."""

import inspect
from typing import Any, Callable, List, Optional

from ..schema import get_schema
from .base import Expr
from .proxy import SchemaProxy
from .types import (
    BinOpExpr,
    CallExpr,
    LambdaExpr,
    LiteralExpr,
    MemberExpr,
    ParameterExpr,
    UnaryOpExpr,
)


def _parameter_names(fn: Callable, count: int) -> List[str]:
    try:
        params = list(inspect.signature(fn).parameters)
    except (TypeError, ValueError):
        params = []
    if len(params) != count:
        return [f"p{i}" for i in range(count)]
    return params


def capture(fn: Callable, *types: Any) -> LambdaExpr:
    """
    Execute a lambda with proxies to capture its expression tree.

    One argument is passed per entry in types: a SchemaProxy for record types,
    a bare ParameterExpr where the entry is None (a scalar argument).

    Args:
        fn: Lambda function, e.g. lambda r, v: r.Age > v
        *types: Record type or Schema per parameter, None for scalars

    Returns:
        LambdaExpr with the captured body

    Raises:
        TypeError: If the lambda doesn't return an Expr
        UnknownMember: If the lambda references a non-existent member

    Example:
        >>> pred = capture(lambda r, v: r.Age > v, User, None)
        >>> pred.serialize()["body"]["op"]
        'Gt'
    """
    names = _parameter_names(fn, len(types))
    params = []
    args = []
    for index, (name, tp) in enumerate(zip(names, types)):
        schema = None if tp is None else get_schema(tp)
        param = ParameterExpr(name, index, schema)
        params.append(param)
        args.append(param if schema is None else SchemaProxy(schema, param))

    result = fn(*args)
    if not isinstance(result, Expr):
        raise TypeError(
            f"Lambda must return an Expr, got {type(result).__name__}. "
            "Did you forget to use the 'r' parameter?"
        )
    return LambdaExpr(tuple(params), result)


def substitute(expr: Expr, parameter: ParameterExpr, value: Any) -> Expr:
    """
    Replace every reference to a parameter with a constant.

    Bare parameter references become LiteralExpr(value). Member chains read
    from the parameter become LiteralExpr(chain value read from value).
    Nodes that don't reference the parameter are returned as they are; the
    input tree is never mutated.

    Args:
        expr: Expression tree to rewrite
        parameter: The ParameterExpr to replace
        value: The constant bound to the parameter

    Returns:
        The rewritten expression tree
    """
    if expr is parameter:
        return LiteralExpr(value)
    if isinstance(expr, MemberExpr):
        if expr.param is parameter:
            return LiteralExpr(expr.accessor(value))
        return expr
    if isinstance(expr, BinOpExpr):
        left = substitute(expr.left, parameter, value)
        right = substitute(expr.right, parameter, value)
        if left is expr.left and right is expr.right:
            return expr
        return BinOpExpr(expr.op, left, right)
    if isinstance(expr, UnaryOpExpr):
        operand = substitute(expr.operand, parameter, value)
        if operand is expr.operand:
            return expr
        return UnaryOpExpr(expr.op, operand)
    if isinstance(expr, CallExpr):
        on = None if expr.on is None else substitute(expr.on, parameter, value)
        args = tuple(_substitute_value(a, parameter, value) for a in expr.args)
        kwargs = {k: _substitute_value(v, parameter, value) for k, v in expr.kwargs.items()}
        unchanged = (
            on is expr.on
            and all(a is b for a, b in zip(args, expr.args))
            and all(kwargs[k] is expr.kwargs[k] for k in kwargs)
        )
        if unchanged:
            return expr
        return CallExpr(expr.func, args, kwargs, on=on)
    return expr


def _substitute_value(item: Any, parameter: ParameterExpr, value: Any) -> Any:
    if isinstance(item, Expr):
        return substitute(item, parameter, value)
    return item


def references(expr: Expr, parameter: ParameterExpr) -> bool:
    """Return True if any node of the tree reads the parameter."""
    if expr is parameter:
        return True
    if isinstance(expr, MemberExpr):
        return expr.param is parameter
    if isinstance(expr, BinOpExpr):
        return references(expr.left, parameter) or references(expr.right, parameter)
    if isinstance(expr, UnaryOpExpr):
        return references(expr.operand, parameter)
    if isinstance(expr, CallExpr):
        children: List[Optional[Any]] = [expr.on, *expr.args, *expr.kwargs.values()]
        return any(isinstance(c, Expr) and references(c, parameter) for c in children)
    return False
