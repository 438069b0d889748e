"""
Schema introspection for dynq.

A Schema is an immutable, ordered table of the members a record type exposes.
Member-chain resolution, expression capture and projection synthesis only ever
consume Schemas; this module is the one place that looks at Python types.

Supported record shapes:
  - dataclasses (fields in declaration order, then properties)
  - plain classes (annotated attributes along the MRO, then properties)
  - TypedDicts and Arrow schemas (mapping records, read and written by key)

Example:
  >>> @dataclass
  ... class Address:
  ...     City: str
  >>> schema = get_schema(Address)
  >>> schema.names()
  ['City']
"""

import dataclasses
import sys
import types
import typing
from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence
import warnings

# How a member is read and written on an instance
ATTRIBUTE = "attribute"
ITEM = "item"

_NoneType = type(None)


class FieldDescriptor:
    """
    One accessible member of a record type.

    Attributes:
        name (str): Member name as declared
        declared_type: Python type, typing construct or pyarrow.DataType
        readable (bool): Whether the member can be read
        writable (bool): Whether the member can be assigned
        access (str): ATTRIBUTE for objects, ITEM for mapping records
    """

    def __init__(
        self,
        name: str,
        declared_type: Any = Any,
        readable: bool = True,
        writable: bool = True,
        access: str = ATTRIBUTE,
        schema: Optional["Schema"] = None,
    ):
        self.name = name
        self.declared_type = declared_type
        self.readable = readable
        self.writable = writable
        self.access = access
        self._schema = schema

    def read(self, instance: Any) -> Any:
        """Read this member from an instance of the owning type."""
        if self.access == ITEM:
            return instance.get(self.name)
        return getattr(instance, self.name)

    def write(self, instance: Any, value: Any) -> None:
        """Assign this member on an instance of the owning type."""
        if self.access == ITEM:
            instance[self.name] = value
        else:
            setattr(instance, self.name, value)

    def member_schema(self) -> "Schema":
        """
        Schema of the value this member holds.

        Used to continue a member chain past this member. Optional[X] is
        unwrapped to X; scalar types yield a Schema with no members.
        """
        if self._schema is not None:
            return self._schema
        return get_schema(unwrap_optional(self.declared_type))

    def __repr__(self) -> str:
        flags = ("r" if self.readable else "-") + ("w" if self.writable else "-")
        return f"FieldDescriptor({self.name!r}, {type_name(self.declared_type)}, {flags})"


class Schema:
    """
    Immutable, ordered view of a type's accessible members.

    Schemas compare by identity; get_schema() caches one Schema per type so
    the resolver and projection caches can key on them.
    """

    def __init__(
        self,
        name: str,
        fields: Sequence[FieldDescriptor],
        record_type: Any = None,
        factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ):
        self.name = name
        self.record_type = record_type
        self._fields = tuple(fields)
        self._by_name: Dict[str, FieldDescriptor] = {}
        for field in self._fields:
            self._by_name.setdefault(field.name, field)
        self._factory = factory

    @property
    def fields(self) -> tuple:
        return self._fields

    @property
    def is_mapping(self) -> bool:
        """True when records of this schema are dicts read by key."""
        return bool(self._fields) and all(f.access == ITEM for f in self._fields)

    def names(self) -> List[str]:
        return [f.name for f in self._fields]

    def get(self, name: str) -> Optional[FieldDescriptor]:
        """Exact-name member lookup, regardless of readability."""
        return self._by_name.get(name)

    def candidates(self, name: str) -> List[FieldDescriptor]:
        """
        Readable members `name` may refer to, best match first.

        An exact-case match is the only candidate. Otherwise every member
        equal to name case-insensitively is returned in declaration order.
        """
        field = self._by_name.get(name)
        if field is not None and field.readable:
            return [field]
        folded = name.casefold()
        return [f for f in self._fields if f.readable and f.name.casefold() == folded]

    def lookup(self, name: str) -> Optional[FieldDescriptor]:
        """
        Find a readable member by name.

        An exact-case match wins. Otherwise the first case-insensitive match
        in declaration order is used; if several members differ only by case
        a UserWarning names the candidates.

        Args:
            name: Member name as written by the caller

        Returns:
            The matching FieldDescriptor, or None
        """
        found = self.candidates(name)
        if not found:
            return None
        if len(found) > 1:
            warn_ambiguous(self.name, name, found, stacklevel=3)
        return found[0]

    def matches(self, other: "Schema") -> bool:
        """
        True when both schemas expose the same members, read the same way.

        Members are compared by name, declared type and access kind, so two
        Schemas built separately for the same table or type match.
        """
        if self is other:
            return True
        if not isinstance(other, Schema) or len(self) != len(other):
            return False
        return all(
            a.name == b.name
            and a.access == b.access
            and a.declared_type == b.declared_type
            for a, b in zip(self._fields, other._fields)
        )

    def new(self, **values: Any) -> Any:
        """
        Construct a record of this schema with the given member values.

        Members not given keep the record type's default value.

        Raises:
            TypeError: If the schema has no record type to construct
        """
        if self._factory is None:
            raise TypeError(f"Schema '{self.name}' does not describe a constructible record")
        return self._factory(values)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, {self.names()})"


def type_name(tp: Any) -> str:
    """Readable name for a declared type, used in error messages."""
    if isinstance(tp, Schema):
        return tp.name
    name = getattr(tp, "__name__", None)
    if name and not typing.get_args(tp):
        return name
    return str(tp).replace("typing.", "")


def warn_ambiguous(
    owner: str, name: str, candidates: Sequence[FieldDescriptor], stacklevel: int = 2
) -> None:
    """Warn that name matched several members case-insensitively."""
    warnings.warn(
        f"Member '{name}' on '{owner}' matches "
        f"{[f.name for f in candidates]} case-insensitively; "
        f"using '{candidates[0].name}'",
        UserWarning,
        stacklevel=stacklevel + 1,
    )


def unwrap_optional(tp: Any) -> Any:
    """Return X for Optional[X] / X | None, otherwise tp unchanged."""
    origin = typing.get_origin(tp)
    if origin is typing.Union or (
        sys.version_info >= (3, 10) and origin is types.UnionType
    ):
        args = [a for a in typing.get_args(tp) if a is not _NoneType]
        if len(args) == 1:
            return args[0]
    return tp


def get_schema(tp: Any) -> Schema:
    """
    Return the Schema for a type, building and caching it on first use.

    Args:
        tp: A dataclass, plain class, TypedDict, or an existing Schema

    Returns:
        The Schema describing tp. Types without members (int, str, ...)
        produce an empty Schema.
    """
    if isinstance(tp, Schema):
        return tp
    return _schema_for_type(tp)


@lru_cache(maxsize=None)
def _schema_for_type(tp: Any) -> Schema:
    if not isinstance(tp, type):
        return Schema(type_name(tp), ())
    if dataclasses.is_dataclass(tp):
        return _dataclass_schema(tp)
    if _is_typeddict(tp):
        return _typeddict_schema(tp)
    if tp.__module__ == "builtins":
        return Schema(tp.__name__, (), record_type=tp)
    return _class_schema(tp)


def _is_typeddict(tp: type) -> bool:
    if sys.version_info >= (3, 10):
        return typing.is_typeddict(tp)
    return issubclass(tp, dict) and hasattr(tp, "__total__")


def _type_hints(obj: Any) -> Dict[str, Any]:
    # Unresolvable forward references leave the raw annotations in place
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError):
        hints: Dict[str, Any] = {}
        for klass in reversed(getattr(obj, "__mro__", (obj,))):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def _property_fields(cls: type, seen: set) -> List[FieldDescriptor]:
    fields = []
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if not isinstance(attr, property) or name.startswith("_") or name in seen:
                continue
            seen.add(name)
            declared = Any
            if attr.fget is not None:
                declared = _type_hints(attr.fget).get("return", Any)
            fields.append(
                FieldDescriptor(
                    name,
                    declared,
                    readable=attr.fget is not None,
                    writable=attr.fset is not None,
                )
            )
    return fields


def _dataclass_schema(cls: type) -> Schema:
    hints = _type_hints(cls)
    frozen = cls.__dataclass_params__.frozen
    dc_fields = dataclasses.fields(cls)

    # Init fields are assigned through the constructor, so frozen only
    # affects the ones that would need setattr
    fields = [
        FieldDescriptor(
            f.name, hints.get(f.name, f.type), writable=f.init or not frozen
        )
        for f in dc_fields
    ]
    fields.extend(_property_fields(cls, {f.name for f in dc_fields}))

    def factory(values: Dict[str, Any]) -> Any:
        kwargs = {}
        for f in dc_fields:
            if not f.init:
                continue
            if f.name in values:
                kwargs[f.name] = values[f.name]
            elif (
                f.default is dataclasses.MISSING
                and f.default_factory is dataclasses.MISSING
            ):
                kwargs[f.name] = None
        obj = cls(**kwargs)
        for name, value in values.items():
            if name not in kwargs:
                setattr(obj, name, value)
        return obj

    return Schema(cls.__name__, fields, record_type=cls, factory=factory)


def _typeddict_schema(cls: type) -> Schema:
    hints = _type_hints(cls)
    fields = [FieldDescriptor(name, tp, access=ITEM) for name, tp in hints.items()]
    return Schema(cls.__name__, fields, record_type=cls, factory=_mapping_factory(fields))


def _class_schema(cls: type) -> Schema:
    hints = _type_hints(cls)
    fields = []
    seen = set()
    for name, tp in hints.items():
        if name.startswith("_") or typing.get_origin(tp) is typing.ClassVar:
            continue
        seen.add(name)
        fields.append(FieldDescriptor(name, tp))
    fields.extend(_property_fields(cls, seen))

    def factory(values: Dict[str, Any]) -> Any:
        obj = cls()
        for name, value in values.items():
            setattr(obj, name, value)
        return obj

    return Schema(cls.__name__, fields, record_type=cls, factory=factory)


def _mapping_factory(fields: Sequence[FieldDescriptor]):
    writable = [f.name for f in fields if f.writable]

    def factory(values: Dict[str, Any]) -> Dict[str, Any]:
        record = dict.fromkeys(writable)
        record.update(values)
        return record

    return factory


def schema_from_arrow(arrow_schema, name: str = "Row") -> Schema:
    """
    Build a mapping-record Schema from a pyarrow.Schema.

    Struct columns become nested Schemas so member chains such as
    "address.city" resolve through them. Declared types are pyarrow DataTypes.

    Args:
        arrow_schema: A pyarrow.Schema (or any iterable of pyarrow.Field)
        name: Display name used in error messages

    Returns:
        A Schema whose records are dicts, as produced by Table.to_pylist()

    Example:
        >>> import pyarrow as pa
        >>> s = schema_from_arrow(pa.schema([("id", pa.int64())]))
        >>> s.names()
        ['id']
    """
    import pyarrow as pa

    fields = []
    for arrow_field in arrow_schema:
        nested = None
        if pa.types.is_struct(arrow_field.type):
            struct_type = arrow_field.type
            nested = schema_from_arrow(
                [struct_type.field(i) for i in range(struct_type.num_fields)],
                name=f"{name}.{arrow_field.name}",
            )
        fields.append(
            FieldDescriptor(arrow_field.name, arrow_field.type, access=ITEM, schema=nested)
        )
    return Schema(name, fields, record_type=dict, factory=_mapping_factory(fields))
