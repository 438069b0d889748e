"""Query pipeline over a pyarrow.Table."""

from typing import Any, Callable, Iterator, List, Optional, Tuple

import pyarrow as pa
import pyarrow.compute as pc

from ..ordering import Direction
from ..projection import ProjectionPlan
from ..schema import Schema, schema_from_arrow
from .base import OrderedQueryable, Queryable
from .memory import ListQuery

NULL_PLACEMENTS = ("at_start", "at_end")


class ArrowQuery(Queryable):
    """
    Query pipeline over an Arrow table.

    Rows are exposed as dicts (Table.to_pylist()), so member chains read
    struct columns as nested records: "address.city" reads the city field of
    the address struct column.

    Args:
        table: The pyarrow.Table to query
        null_placement: Where null sort keys go, "at_start" or "at_end"
        name: Record name used in error messages

    Example:
        >>> import pyarrow as pa
        >>> t = ArrowQuery(pa.table({"id": [2, 1], "age": [30, 40]}))
        >>> t.order_by("age desc").to_arrow()["id"].to_pylist()
        [1, 2]
    """

    def __init__(
        self,
        table,
        null_placement: str = "at_start",
        name: str = "Row",
        schema: Optional[Schema] = None,
    ):
        if not isinstance(table, pa.Table):
            raise TypeError(f"Expected pyarrow.Table, got {type(table).__name__}")
        if null_placement not in NULL_PLACEMENTS:
            raise ValueError(
                f"null_placement must be one of {NULL_PLACEMENTS}, got {null_placement!r}"
            )
        self._table = table
        self._null_placement = null_placement
        self._schema = schema if schema is not None else schema_from_arrow(table.schema, name)

    @classmethod
    def from_pandas(cls, df, **kwargs) -> "ArrowQuery":
        """
        Create an ArrowQuery from a pandas DataFrame.

        Example:
            >>> import pandas as pd
            >>> t = ArrowQuery.from_pandas(pd.DataFrame({"x": [1, 2, 3]}))
        """
        try:
            import pandas as pd
        except ImportError:
            raise RuntimeError(
                "from_pandas() requires pandas. Install it with: pip install pandas"
            )

        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"Expected pandas.DataFrame, got {type(df).__name__}")

        return cls(pa.Table.from_pandas(df, preserve_index=False), **kwargs)

    @property
    def schema(self) -> Schema:
        return self._schema

    def to_arrow(self):
        """Return the rows as a pyarrow.Table."""
        return self._table

    def to_pandas(self):
        """
        Convert the rows to a pandas DataFrame.

        Requires pandas to be installed.
        """
        try:
            import pandas  # noqa: F401
        except ImportError:
            raise RuntimeError(
                "to_pandas() requires pandas. Install it with: pip install pandas"
            )
        return self.to_arrow().to_pandas()

    def __iter__(self) -> Iterator[dict]:
        return iter(self.to_arrow().to_pylist())

    def __len__(self) -> int:
        return self._table.num_rows

    def _derive(self, table) -> "ArrowQuery":
        return ArrowQuery(table, self._null_placement, schema=self._schema)

    def _apply_filter(self, predicate: Callable[[Any], Any]) -> "ArrowQuery":
        mask = pa.array([bool(predicate(row)) for row in self], type=pa.bool_())
        return self._derive(self.to_arrow().filter(mask))

    def _apply_sort(self, key: Callable[[Any], Any], direction: str) -> "OrderedArrowQuery":
        return OrderedArrowQuery(
            self.to_arrow(), self._null_placement, schema=self._schema, keys=[(key, direction)]
        )

    def _apply_projection(self, plan: ProjectionPlan) -> Queryable:
        records = [plan.apply(row) for row in self]
        target = plan.target
        if not target.is_mapping:
            return ListQuery(records, target)

        arrow_fields = [
            (f.name, f.declared_type)
            for f in target
            if f.writable and isinstance(f.declared_type, pa.DataType)
        ]
        if len(arrow_fields) == len([f for f in target if f.writable]):
            table = pa.Table.from_pylist(records, schema=pa.schema(arrow_fields))
        else:
            table = pa.Table.from_pylist(records)
        return ArrowQuery(table, self._null_placement, schema=target)


class OrderedArrowQuery(OrderedQueryable, ArrowQuery):
    """
    ArrowQuery with pending sort keys.

    Key values are computed per row into a key table which is sorted with
    pyarrow.compute.sort_indices (a stable sort), then the rows are taken in
    that order.
    """

    def __init__(
        self,
        table,
        null_placement: str = "at_start",
        name: str = "Row",
        schema: Optional[Schema] = None,
        keys: Optional[List[Tuple[Callable[[Any], Any], str]]] = None,
    ):
        super().__init__(table, null_placement, name, schema)
        self._keys = list(keys or [])

    def to_arrow(self):
        table = self._table
        if table.num_rows == 0:
            return table

        rows = table.to_pylist()
        columns = {}
        sort_keys = []
        for i, (key, direction) in enumerate(self._keys):
            label = getattr(key, "path", f"key_{i}")
            try:
                column = pa.array([key(row) for row in rows])
            except (pa.ArrowInvalid, pa.ArrowTypeError) as e:
                raise TypeError(f"Sort key '{label}' has no sortable Arrow type: {e}") from e
            if pa.types.is_null(column.type):
                # Every key is null; the column cannot change the order
                continue
            name = f"key_{i}"
            columns[name] = column
            order = "descending" if direction == Direction.DESCENDING else "ascending"
            sort_keys.append((name, order))

        if not sort_keys:
            return table
        try:
            indices = pc.sort_indices(
                pa.table(columns), sort_keys=sort_keys, null_placement=self._null_placement
            )
        except pa.ArrowNotImplementedError as e:
            raise TypeError(f"Sort keys are not sortable: {e}") from e
        return table.take(indices)

    def _apply_then_sort(
        self, key: Callable[[Any], Any], direction: str
    ) -> "OrderedArrowQuery":
        return OrderedArrowQuery(
            self._table,
            self._null_placement,
            schema=self._schema,
            keys=self._keys + [(key, direction)],
        )
