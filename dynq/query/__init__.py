"""Query pipelines the DSL compiles onto."""

from .base import OrderedQueryable, Queryable
from .memory import ListQuery, OrderedListQuery
from .arrow import ArrowQuery, OrderedArrowQuery

__all__ = [
    "Queryable",
    "OrderedQueryable",
    "ListQuery",
    "OrderedListQuery",
    "ArrowQuery",
    "OrderedArrowQuery",
]
