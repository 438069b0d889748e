"""Base expression class for dynq."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict


def _binary(op: str, reflected: bool = False) -> Callable[["Expr", Any], "Expr"]:
    """Build an operator method that records `op` instead of computing it."""

    def method(self: "Expr", other: Any) -> "Expr":
        from .types import BinOpExpr

        other = self._coerce(other)
        if reflected:
            return BinOpExpr(op, other, self)
        return BinOpExpr(op, self, other)

    method.__doc__ = f"Capture a {op} node."
    return method


class Expr(ABC):
    """
    Node of a captured expression tree.

    Python operators applied to an Expr build new nodes rather than values,
    so `r.Age >= v` inside a captured lambda yields BinOpExpr("Ge", ...).
    Comparisons return nodes too, which is why Expr has no truth value:
    combine conditions with & | ~ instead of and / or / not.
    """

    @abstractmethod
    def serialize(self) -> Dict[str, Any]:
        """Nested-dict form of the node; every dict has a 'type' key."""

    __add__ = _binary("Add")
    __sub__ = _binary("Sub")
    __mul__ = _binary("Mul")
    __truediv__ = _binary("Div")
    __mod__ = _binary("Mod")
    __radd__ = _binary("Add", reflected=True)
    __rsub__ = _binary("Sub", reflected=True)
    __rmul__ = _binary("Mul", reflected=True)

    __eq__ = _binary("Eq")  # type: ignore[assignment]
    __ne__ = _binary("Ne")  # type: ignore[assignment]
    __lt__ = _binary("Lt")
    __le__ = _binary("Le")
    __gt__ = _binary("Gt")
    __ge__ = _binary("Ge")

    __and__ = _binary("And")
    __or__ = _binary("Or")

    # __eq__ is overridden, so identity hashing has to be restored explicitly
    __hash__ = object.__hash__

    def __invert__(self) -> "Expr":
        from .types import UnaryOpExpr

        return UnaryOpExpr("Not", self)

    def __bool__(self):
        raise TypeError(
            "Expressions have no truth value while being captured. "
            "Use & | ~ instead of and/or/not."
        )

    def is_null(self) -> "Expr":
        """
        True where the value is None.

        Example:
            >>> capture(lambda r: r.Address.is_null(), User)
        """
        from .types import CallExpr

        return CallExpr("is_null", (), {}, on=self)

    def is_not_null(self) -> "Expr":
        from .types import CallExpr

        return CallExpr("is_not_null", (), {}, on=self)

    def is_in(self, values: list) -> "Expr":
        """
        True where the value equals one of `values`.

        Example:
            >>> capture(lambda r: r.Status.is_in(["active", "pending"]), User)
        """
        from .types import CallExpr

        return CallExpr("is_in", tuple(self._coerce(v) for v in values), {}, on=self)

    def between(self, low: Any, high: Any) -> "Expr":
        """Inclusive range check, captured as (self >= low) & (self <= high)."""
        return (self >= low) & (self <= high)

    @staticmethod
    def _coerce(value: Any) -> "Expr":
        # Plain Python values enter the tree as literals
        if isinstance(value, Expr):
            return value
        from .types import LiteralExpr

        return LiteralExpr(value)
