"""Schema proxy class for expression capturing."""

from typing import Optional

from ..errors import UnknownMember
from ..resolver import ResolvedAccessor
from ..schema import Schema
from .types import MemberExpr, ParameterExpr


class SchemaProxy:
    """
    Represents the row proxy ('r') passed into lambda functions.

    When user accesses r.Age, this returns a MemberExpr for the Age member.
    Members are looked up the same way member chains are resolved: exact case
    first, then the first case-insensitive match.

    This allows lambdas like: lambda r, v: r.Age > v to build an Expr tree
    instead of executing Python code.

    Attributes:
        _schema (Schema): Schema of the record the proxy stands for
        _param (ParameterExpr): Parameter the proxy stands for
    """

    def __init__(self, schema: Schema, param: Optional[ParameterExpr] = None):
        self._schema = schema
        self._param = param if param is not None else ParameterExpr("r", 0, schema)

    def __getattr__(self, name: str) -> MemberExpr:
        """
        Return a MemberExpr for the given member name.

        Raises:
            AttributeError: If name is private
            UnknownMember: If the schema has no such member
        """
        if name.startswith("_"):
            # Avoid issues with internal attributes like _schema
            raise AttributeError(f"No attribute {name}")
        return self[name]

    def __getitem__(self, name: str) -> MemberExpr:
        field = self._schema.lookup(name)
        if field is None:
            raise UnknownMember(self._schema.name, name, 0)
        return MemberExpr(self._param, ResolvedAccessor(self._schema, (field,)))

    def get_schema(self) -> Schema:
        """Return the Schema this proxy stands for."""
        return self._schema

    def __repr__(self) -> str:
        return f"SchemaProxy({self._schema.name})"
