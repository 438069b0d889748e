"""Evaluate captured expression trees against bound parameter values."""

from typing import Any, Dict

from .base import Expr
from .types import (
    BinOpExpr,
    CallExpr,
    LiteralExpr,
    MemberExpr,
    ParameterExpr,
    UnaryOpExpr,
)

# Ordering and arithmetic with a null operand yield null, like SQL
_NULLABLE_OPS = {
    "Add": lambda a, b: a + b,
    "Sub": lambda a, b: a - b,
    "Mul": lambda a, b: a * b,
    "Lt": lambda a, b: a < b,
    "Le": lambda a, b: a <= b,
    "Gt": lambda a, b: a > b,
    "Ge": lambda a, b: a >= b,
}


def evaluate(expr: Expr, env: Dict[str, Any]) -> Any:
    """
    Evaluate an expression tree.

    Args:
        expr: The expression to evaluate
        env: Mapping of parameter name -> bound value

    Returns:
        The result of evaluating the expression

    Raises:
        ValueError: If the tree holds an unknown node or operator
    """
    if isinstance(expr, LiteralExpr):
        return expr.value

    elif isinstance(expr, MemberExpr):
        return expr.accessor(env[expr.param.name])

    elif isinstance(expr, ParameterExpr):
        return env[expr.name]

    elif isinstance(expr, BinOpExpr):
        op = expr.op
        left = evaluate(expr.left, env)
        right = evaluate(expr.right, env)

        if op == "Eq":
            return left == right
        elif op == "Ne":
            return left != right
        elif op == "And":
            return bool(left) and bool(right)
        elif op == "Or":
            return bool(left) or bool(right)
        elif op in _NULLABLE_OPS:
            if left is None or right is None:
                return None
            return _NULLABLE_OPS[op](left, right)
        elif op == "Div":
            if left is None or right is None or right == 0:
                return None
            return left / right
        elif op == "Mod":
            if left is None or right is None or right == 0:
                return None
            return left % right
        else:
            raise ValueError(f"Unknown binary operator: {op}")

    elif isinstance(expr, UnaryOpExpr):
        operand = evaluate(expr.operand, env)

        if expr.op == "Not":
            return None if operand is None else not operand
        else:
            raise ValueError(f"Unknown unary operator: {expr.op}")

    elif isinstance(expr, CallExpr):
        return _evaluate_call(expr, env)

    else:
        raise ValueError(f"Unknown expression type: {type(expr).__name__}")


def _evaluate_call(expr: CallExpr, env: Dict[str, Any]) -> Any:
    target = evaluate(expr.on, env) if expr.on is not None else None
    args = [_value(a, env) for a in expr.args]

    if expr.func == "is_null":
        return target is None
    if expr.func == "is_not_null":
        return target is not None
    if expr.func == "is_in":
        return target in args

    if target is None:
        return None
    kwargs = {k: _value(v, env) for k, v in expr.kwargs.items()}
    return getattr(target, expr.func)(*args, **kwargs)


def _value(item: Any, env: Dict[str, Any]) -> Any:
    if isinstance(item, Expr):
        return evaluate(item, env)
    return item
