"""
Expression system for dynq: Captures Python lambdas as expression trees.

The classes here intercept Python operators and member access without
executing them, building a tree that can be evaluated per row, serialized,
or rewritten (for example to bind a lambda parameter to a constant).

Core Classes:
  - Expr: Abstract base class for all expressions
  - ParameterExpr: Lambda parameter (e.g., the v in lambda r, v: ...)
  - MemberExpr: Member-chain read on a parameter (e.g., r.Address.City)
  - LiteralExpr: Constant value (e.g., 42, "hello")
  - BinOpExpr: Binary operation (e.g., r.Age + 5, r.Price > 10)
  - UnaryOpExpr: Unary operation (e.g., ~r.Active)
  - CallExpr: Method call (e.g., r.Name.startswith("A"))
  - LambdaExpr: Captured lambda, callable like the captured function
  - SchemaProxy: Row proxy for capturing expressions in lambdas

Example:
  >>> pred = capture(lambda r, v: r.Age > v, User, None)
  >>> adults = pred.bind(1, 18)
  >>> adults(User(Age=30))
  True
"""

from .base import Expr
from .types import (
    BinOpExpr,
    CallExpr,
    LambdaExpr,
    LiteralExpr,
    MemberExpr,
    ParameterExpr,
    UnaryOpExpr,
)
from .proxy import SchemaProxy
from .transforms import capture, references, substitute
from .evaluate import evaluate

__all__ = [
    "Expr",
    "ParameterExpr",
    "MemberExpr",
    "LiteralExpr",
    "BinOpExpr",
    "UnaryOpExpr",
    "CallExpr",
    "LambdaExpr",
    "SchemaProxy",
    "capture",
    "substitute",
    "references",
    "evaluate",
]
