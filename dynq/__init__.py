# dynq: compile ordering text, conditional filters and projections onto query pipelines.

from .errors import (
    CoercionFailure,
    DynqError,
    EmptyMemberChain,
    InvalidDirection,
    MalformedSegment,
    MissingOrderingText,
    UnknownMember,
)
from .schema import FieldDescriptor, Schema, get_schema, schema_from_arrow
from .resolver import MemberChain, ResolvedAccessor, resolve, split_member_chain
from .ordering import Direction, OrderingSpec, order_by, parse_ordering, then_by
from .projection import Binding, Coercion, ProjectionPlan, map_to, synthesize, to_list
from .predicates import (
    where_if,
    where_if_bound,
    where_if_not_null,
    where_if_not_null_or_empty,
)
from .expr import LambdaExpr, SchemaProxy, capture
from .query import ArrowQuery, ListQuery, OrderedQueryable, Queryable

__version__ = "0.1.0"

__all__ = [
    "DynqError",
    "MissingOrderingText",
    "MalformedSegment",
    "InvalidDirection",
    "EmptyMemberChain",
    "UnknownMember",
    "CoercionFailure",
    "FieldDescriptor",
    "Schema",
    "get_schema",
    "schema_from_arrow",
    "MemberChain",
    "ResolvedAccessor",
    "resolve",
    "split_member_chain",
    "Direction",
    "OrderingSpec",
    "parse_ordering",
    "order_by",
    "then_by",
    "Binding",
    "Coercion",
    "ProjectionPlan",
    "synthesize",
    "map_to",
    "to_list",
    "where_if",
    "where_if_bound",
    "where_if_not_null",
    "where_if_not_null_or_empty",
    "LambdaExpr",
    "SchemaProxy",
    "capture",
    "Queryable",
    "OrderedQueryable",
    "ListQuery",
    "ArrowQuery",
]
