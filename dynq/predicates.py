"""
Conditional filters: apply a predicate only when a condition or value allows it.

    query.where_if(only_active, lambda u: u.Active)
    query.where_if_not_null(min_age, capture(lambda u, v: u.Age >= v, User, None))

A two-parameter predicate given to the *_not_null helpers has its second
parameter bound to the value, producing a one-parameter row predicate.
"""

import inspect
from typing import TYPE_CHECKING, Any, Callable

from .expr import LambdaExpr, capture

if TYPE_CHECKING:
    from .query.base import Queryable


def _arity(predicate: Callable) -> int:
    if isinstance(predicate, LambdaExpr):
        return predicate.arity
    try:
        params = inspect.signature(predicate).parameters.values()
    except (TypeError, ValueError):
        return 1
    positional = [
        p
        for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        and p.default is p.empty
    ]
    return len(positional)


def bind_second(predicate2: Callable, value: Any) -> Callable:
    """
    Turn a (row, value) predicate into a row predicate with value fixed.

    Captured LambdaExprs are rewritten so every reference to the second
    parameter becomes a constant; plain callables are closed over value.
    """
    if isinstance(predicate2, LambdaExpr):
        return predicate2.bind(1, value)

    def bound(row):
        return predicate2(row, value)

    return bound


def where_if(query: "Queryable", condition: Any, predicate: Callable) -> "Queryable":
    """
    Filter by predicate only if condition is truthy.

    The predicate is neither called nor inspected when condition is falsy.
    """
    if condition:
        return query._apply_filter(predicate)
    return query


def where_if_bound(query: "Queryable", value: Any, predicate2: Callable) -> "Queryable":
    """
    Bind the second parameter of predicate2 to value and filter by it.

    Args:
        query: Query to filter
        value: Value for the predicate's second parameter
        predicate2: (row, value) -> bool, plain or captured with capture()

    Returns:
        The filtered query, or query unchanged if value is None
    """
    if value is None:
        return query
    return query._apply_filter(bind_second(predicate2, value))


def where_if_not_null(query: "Queryable", value: Any, predicate: Callable) -> "Queryable":
    """
    Filter only if value is not None.

    A one-parameter predicate is applied as it is; a two-parameter predicate
    receives value as its second argument (see where_if_bound). When value
    is None the predicate is not inspected at all.
    """
    if value is not None and _arity(predicate) >= 2:
        return where_if_bound(query, value, predicate)
    return where_if(query, value is not None, predicate)


def where_if_not_null_or_empty(
    query: "Queryable", value: str, predicate: Callable
) -> "Queryable":
    """
    Filter only if value is neither None nor an empty string.

    With a two-parameter predicate "" is treated as None before binding.
    """
    if value == "":
        value = None
    if value is not None and _arity(predicate) >= 2:
        return where_if_bound(query, value, predicate)
    return where_if(query, value is not None, predicate)


class FilterMixin:
    """Filtering methods shared by every Queryable."""

    def where(self, predicate: Callable) -> "Queryable":
        """
        Keep rows for which predicate returns a truthy value.

        Args:
            predicate: Row predicate, a plain callable or a captured LambdaExpr

        Example:
            >>> users.where(lambda u: u.Age >= 18)
        """
        return self._apply_filter(predicate)

    def where_if(self, condition: Any, predicate: Callable) -> "Queryable":
        """Filter by predicate only if condition is truthy."""
        return where_if(self, condition, predicate)

    def where_if_not_null(self, value: Any, predicate: Callable) -> "Queryable":
        """Filter only if value is not None; see where_if_not_null()."""
        return where_if_not_null(self, value, predicate)

    def where_if_not_null_or_empty(self, value: str, predicate: Callable) -> "Queryable":
        """Filter only if value is neither None nor ""."""
        return where_if_not_null_or_empty(self, value, predicate)

    def where_if_bound(self, value: Any, predicate2: Callable) -> "Queryable":
        """Bind predicate2's second parameter to value and filter, unless value is None."""
        return where_if_bound(self, value, predicate2)

    def capture(self, fn: Callable, *others: Any) -> LambdaExpr:
        """
        Capture a lambda whose first parameter is a row of this query.

        Args:
            fn: Lambda, e.g. lambda r, v: r.Age > v
            *others: Type or Schema per further parameter, None for scalars

        Example:
            >>> older = users.capture(lambda r, v: r.Age > v, None)
            >>> users.where_if_bound(min_age, older)
        """
        return capture(fn, self.schema, *others)
