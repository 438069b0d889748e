"""
Projection synthesis: copy same-named members from a source type into a target type.

    plan = synthesize(User, UserModel)
    model = plan.apply(user)          # UserModel(Id=user.Id, Name=user.Name, ...)

Only flat member-to-member copies are planned. Target members that are not
writable, or that have no source member of exactly the same name, are left
out of the plan and keep their default value.
"""

import sys
import types
import typing
from functools import lru_cache
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Union
import warnings

from .errors import CoercionFailure
from .schema import FieldDescriptor, Schema, get_schema, type_name, unwrap_optional

if TYPE_CHECKING:
    from .query.base import Queryable

CACHE_SIZE = 256


class Coercion:
    """A single type conversion step between a source and a target member."""

    def __init__(self, source_type: Any, target_type: Any):
        self.source_type = source_type
        self.target_type = target_type

    def apply(self, field: str, value: Any) -> Any:
        """
        Convert value to the target type.

        Raises:
            CoercionFailure: If the value cannot be converted
        """
        if value is None:
            return None
        target = unwrap_optional(self.target_type)
        if target is Any:
            return value
        try:
            if _is_arrow_type(target):
                return _arrow_cast(value, target)
            origin = typing.get_origin(target) or target
            if _is_union(origin):
                members = [typing.get_origin(a) or a for a in typing.get_args(target)]
                if any(isinstance(m, type) and isinstance(value, m) for m in members):
                    return value
            elif isinstance(origin, type):
                if isinstance(value, origin):
                    return value
                if origin is not target:
                    # Parameterised generics (List[int]) cannot be constructed
                    raise TypeError(f"{type(value).__name__} is not {type_name(target)}")
                return origin(value)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise CoercionFailure(field, self.source_type, self.target_type, value) from e
        raise CoercionFailure(field, self.source_type, self.target_type, value)

    def __repr__(self) -> str:
        return f"Coercion({type_name(self.source_type)} -> {type_name(self.target_type)})"


def _is_union(origin: Any) -> bool:
    if origin is typing.Union:
        return True
    return sys.version_info >= (3, 10) and origin is types.UnionType


def _is_arrow_type(tp: Any) -> bool:
    module = type(tp).__module__ or ""
    return module.startswith("pyarrow")


def _arrow_cast(value: Any, target) -> Any:
    import pyarrow as pa

    try:
        return pa.scalar(value).cast(target).as_py()
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
        raise TypeError(str(e)) from e


class Binding:
    """Assignment of one target member from one source member."""

    def __init__(
        self,
        target: FieldDescriptor,
        source: FieldDescriptor,
        coercion: Optional[Coercion] = None,
    ):
        self.target = target
        self.source = source
        self.coercion = coercion

    @property
    def name(self) -> str:
        return self.target.name

    def value_from(self, instance: Any) -> Any:
        value = self.source.read(instance)
        if self.coercion is not None:
            value = self.coercion.apply(self.target.name, value)
        return value

    def __repr__(self) -> str:
        suffix = f" via {self.coercion!r}" if self.coercion else ""
        return f"Binding({self.target.name}{suffix})"


class ProjectionPlan:
    """
    How to build a target record from a source record.

    Attributes:
        source (Schema): Source record schema
        target (Schema): Target record schema
        bindings (tuple): Binding per planned target member, in target order
    """

    def __init__(self, source: Schema, target: Schema, bindings: List[Binding]):
        self.source = source
        self.target = target
        self.bindings: Tuple[Binding, ...] = tuple(bindings)

    def names(self) -> List[str]:
        return [b.name for b in self.bindings]

    def apply(self, instance: Any) -> Any:
        """
        Construct a new target record from a source instance.

        Raises:
            CoercionFailure: If a planned coercion fails for this instance
        """
        values = {b.name: b.value_from(instance) for b in self.bindings}
        return self.target.new(**values)

    __call__ = apply

    def __repr__(self) -> str:
        return f"ProjectionPlan({self.source.name} -> {self.target.name}, {self.names()})"


def synthesize(source: Any, target: Any) -> ProjectionPlan:
    """
    Plan a projection from a source type into a target type.

    Args:
        source: Source type or Schema
        target: Target type or Schema

    Returns:
        ProjectionPlan binding every writable target member that has a
        readable source member with exactly the same name

    Example:
        >>> plan = synthesize(User, UserModel)
        >>> plan.names()
        ['Id', 'Name']
    """
    return _synthesize_cached(get_schema(source), get_schema(target))


@lru_cache(maxsize=CACHE_SIZE)
def _synthesize_cached(source: Schema, target: Schema) -> ProjectionPlan:
    if not len(target):
        warnings.warn(
            f"Projection target '{target.name}' exposes no members; "
            "every projected record will be empty",
            UserWarning,
            stacklevel=3,
        )

    bindings = []
    for target_field in target:
        if not target_field.writable:
            continue
        source_field = source.get(target_field.name)
        if source_field is None or not source_field.readable:
            continue
        coercion = None
        if source_field.declared_type != target_field.declared_type:
            coercion = Coercion(source_field.declared_type, target_field.declared_type)
        bindings.append(Binding(target_field, source_field, coercion))
    return ProjectionPlan(source, target, bindings)


def map_to(query: "Queryable", target: Any) -> "Queryable":
    """Project every row of a query into the target type."""
    if query is None:
        raise ValueError("query must not be None")
    return query._apply_projection(synthesize(query.schema, target))


def to_list(query: "Queryable", target: Any) -> list:
    """Project a query into the target type and materialise the rows."""
    return list(map_to(query, target))


def clear_cache() -> None:
    """Drop every cached projection plan."""
    _synthesize_cached.cache_clear()


class ProjectionMixin:
    """Projection methods shared by every Queryable."""

    def select(self, plan: Union[ProjectionPlan, Any]) -> "Queryable":
        """
        Project rows with a ProjectionPlan, or into a target type.

        Raises:
            ValueError: If the plan was built for rows with different members
        """
        if not isinstance(plan, ProjectionPlan):
            return map_to(self, plan)
        if not plan.source.matches(self.schema):
            raise ValueError(
                f"Projection plan reads {plan.source!r} rows, "
                f"but the query yields {self.schema!r} rows"
            )
        return self._apply_projection(plan)

    def map_to(self, target: Any) -> "Queryable":
        """
        Copy every same-named member into new instances of target.

        Example:
            >>> users.map_to(UserModel).to_list()
        """
        return map_to(self, target)

    def to_list(self, target: Any = None) -> list:
        """Materialise the rows, projecting into target first if given."""
        if target is None:
            return list(self)
        return to_list(self, target)
