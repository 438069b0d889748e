"""Pipeline primitives every query implementation provides."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, List, Tuple

from ..ordering import Direction, OrderingMixin, ThenByMixin
from ..predicates import FilterMixin
from ..projection import ProjectionMixin, ProjectionPlan
from ..schema import Schema


class Queryable(FilterMixin, OrderingMixin, ProjectionMixin, ABC):
    """
    A query pipeline over records of one Schema.

    Subclasses implement the primitives (_apply_filter, _apply_sort,
    _apply_projection); the mixins build the string DSL, conditional filters
    and projections on top of them. Every operation returns a new query.
    """

    @property
    @abstractmethod
    def schema(self) -> Schema:
        """Schema of the rows this query yields."""

    @abstractmethod
    def _apply_filter(self, predicate: Callable[[Any], Any]) -> "Queryable":
        """Keep rows for which predicate returns a truthy value."""

    @abstractmethod
    def _apply_sort(self, key: Callable[[Any], Any], direction: str) -> "OrderedQueryable":
        """Sort by key as the primary (most significant) sort key."""

    @abstractmethod
    def _apply_projection(self, plan: ProjectionPlan) -> "Queryable":
        """Build one target record per row with plan.apply()."""

    @abstractmethod
    def __iter__(self) -> Iterator[Any]:
        pass

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def first(self, default: Any = None) -> Any:
        """Return the first row, or default when the query is empty."""
        return next(iter(self), default)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.schema.name})"


class OrderedQueryable(ThenByMixin, Queryable):
    """
    A query with at least one sort key.

    Attributes:
        _keys (list): (key, direction) pairs, most significant first
    """

    _keys: List[Tuple[Callable[[Any], Any], str]]

    @abstractmethod
    def _apply_then_sort(
        self, key: Callable[[Any], Any], direction: str
    ) -> "OrderedQueryable":
        """Append key as the least significant sort key."""

    @property
    def sort_keys(self) -> List[Tuple[str, bool]]:
        """
        Sort keys as (member path, descending) pairs, most significant first.

        Key callables that are not resolved member chains are reported by
        their function name.
        """
        keys = []
        for key, direction in self._keys:
            name = getattr(key, "path", None) or getattr(key, "__name__", repr(key))
            keys.append((name, direction == Direction.DESCENDING))
        return keys
