"""In-memory query pipeline over Python objects or dicts."""

from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from ..ordering import Direction
from ..projection import ProjectionPlan
from ..schema import Schema, get_schema
from .base import OrderedQueryable, Queryable


def _null_first(key: Callable[[Any], Any]) -> Callable[[Any], Tuple[bool, Any]]:
    # (False, None) sorts before every (True, value)
    def wrapped(row):
        value = key(row)
        return (value is not None, value)

    return wrapped


class ListQuery(Queryable):
    """
    Query pipeline over an in-memory sequence of records.

    Each operation returns a new ListQuery; the source sequence is never
    modified. Rows are read through the Schema, so dataclass instances,
    plain objects and dicts (TypedDict schemas) all work.

    Example:
        >>> users = ListQuery([User(1, "Ann", 30), User(2, "Bob", 25)], User)
        >>> users.order_by("Age desc").to_list()
    """

    def __init__(self, rows: Iterable[Any], schema: Any):
        self._rows: List[Any] = list(rows)
        self._schema: Schema = get_schema(schema)

    @property
    def schema(self) -> Schema:
        return self._schema

    def __iter__(self) -> Iterator[Any]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def _apply_filter(self, predicate: Callable[[Any], Any]) -> "ListQuery":
        return ListQuery([row for row in self if predicate(row)], self._schema)

    def _apply_sort(self, key: Callable[[Any], Any], direction: str) -> "OrderedListQuery":
        return OrderedListQuery(list(self), self._schema, [(key, direction)])

    def _apply_projection(self, plan: ProjectionPlan) -> "ListQuery":
        return ListQuery([plan.apply(row) for row in self], plan.target)


class OrderedListQuery(OrderedQueryable, ListQuery):
    """
    ListQuery with pending sort keys.

    Sorting happens when the rows are read, as a stable sort per key from the
    least to the most significant one. None keys sort first ascending and last
    descending.
    """

    def __init__(
        self,
        rows: Iterable[Any],
        schema: Any,
        keys: Optional[List[Tuple[Callable[[Any], Any], str]]] = None,
    ):
        super().__init__(rows, schema)
        self._keys = list(keys or [])

    def __iter__(self) -> Iterator[Any]:
        rows = list(self._rows)
        for key, direction in reversed(self._keys):
            try:
                rows.sort(key=_null_first(key), reverse=direction == Direction.DESCENDING)
            except TypeError as e:
                label = getattr(key, "path", None) or getattr(key, "__name__", repr(key))
                raise TypeError(f"Sort key '{label}' is not sortable: {e}") from e
        return iter(rows)

    def _apply_then_sort(
        self, key: Callable[[Any], Any], direction: str
    ) -> "OrderedListQuery":
        return OrderedListQuery(self._rows, self._schema, self._keys + [(key, direction)])
