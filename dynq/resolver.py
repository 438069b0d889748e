"""Member-chain resolution: turn "Address.City" into a typed accessor on a root type."""

from functools import lru_cache
from typing import Any, Sequence, Tuple, Union

from .errors import EmptyMemberChain, UnknownMember
from .schema import FieldDescriptor, Schema, get_schema, type_name, warn_ambiguous

CACHE_SIZE = 1024

MemberChain = Tuple[str, ...]


def split_member_chain(text: str) -> MemberChain:
    """
    Split dotted member-chain text into its names, dropping empty parts.

    Example:
        >>> split_member_chain("Address..City")
        ('Address', 'City')
    """
    return tuple(part.strip() for part in text.split(".") if part.strip())


class ResolvedAccessor:
    """
    A member chain resolved against a root Schema.

    Calling the accessor with a root instance reads through every member in
    order. A None anywhere along the way short-circuits to None, so rows with
    missing intermediate records still yield a (null) sort key.

    Attributes:
        root (Schema): Schema the chain was resolved against
        chain (tuple): Declared member names, as found on each type
        fields (tuple): FieldDescriptor per step
        result_type: Declared type of the last member
    """

    def __init__(self, root: Schema, fields: Sequence[FieldDescriptor]):
        self.root = root
        self.fields = tuple(fields)
        self.chain: MemberChain = tuple(f.name for f in self.fields)
        self.result_type = self.fields[-1].declared_type

    @property
    def path(self) -> str:
        return ".".join(self.chain)

    def __call__(self, instance: Any) -> Any:
        value = instance
        for field in self.fields:
            if value is None:
                return None
            value = field.read(value)
        return value

    def __repr__(self) -> str:
        return (
            f"ResolvedAccessor({self.root.name}.{self.path} -> "
            f"{type_name(self.result_type)})"
        )


def resolve(root: Any, chain: Union[str, Sequence[str]]) -> ResolvedAccessor:
    """
    Resolve a member chain against a root type.

    Each step looks the name up on the current type: exact case first, then
    the first case-insensitive match in declaration order. The declared type
    of a matched member becomes the type the next step is looked up on.

    Args:
        root: A type or Schema the chain starts from
        chain: Dotted text ("Address.City") or a sequence of names

    Returns:
        ResolvedAccessor for the chain

    Raises:
        EmptyMemberChain: If the chain names no members
        UnknownMember: If a step matches nothing on its owning type

    Example:
        >>> accessor = resolve(User, "address.city")
        >>> accessor(user)
        'Paris'
    """
    schema = get_schema(root)
    if isinstance(chain, str):
        names = split_member_chain(chain)
    else:
        names = tuple(chain)
    if not names:
        raise EmptyMemberChain(chain if isinstance(chain, str) else None)
    accessor, ambiguities = _resolve_cached(schema, names)
    # Warned on every call, cached or not
    for owner, name, candidates in ambiguities:
        warn_ambiguous(owner, name, candidates)
    return accessor


@lru_cache(maxsize=CACHE_SIZE)
def _resolve_cached(schema: Schema, names: MemberChain):
    fields = []
    ambiguities = []
    current = schema
    for position, name in enumerate(names):
        found = current.candidates(name)
        if not found:
            raise UnknownMember(current.name, name, position)
        if len(found) > 1:
            ambiguities.append((current.name, name, tuple(found)))
        fields.append(found[0])
        if position < len(names) - 1:
            current = found[0].member_schema()
    return ResolvedAccessor(schema, fields), tuple(ambiguities)


def clear_cache() -> None:
    """Drop every cached accessor."""
    _resolve_cached.cache_clear()
