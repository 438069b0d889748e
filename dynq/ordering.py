"""
Ordering text parsing and emission.

Ordering text is a comma-separated list of segments; each segment is a member
chain optionally followed by one direction token:

    "Id asc, Address.City desc, Age"

The first segment becomes the primary sort key, every later one a secondary
(then-by) key, so the leftmost segment is the most significant.
"""

from typing import TYPE_CHECKING, Any, Callable, List, Optional, Union

from .errors import EmptyMemberChain, InvalidDirection, MalformedSegment, MissingOrderingText
from .resolver import MemberChain, ResolvedAccessor, resolve, split_member_chain

if TYPE_CHECKING:
    from .query.base import OrderedQueryable, Queryable


class Direction:
    """Sort direction names accepted in ordering text."""

    ASCENDING = "asc"
    DESCENDING = "desc"


class OrderingSpec:
    """
    One parsed ordering segment: a member chain and a direction.

    The chain is not resolved yet; resolution needs the query's root type.
    """

    def __init__(self, chain: MemberChain, direction: str = Direction.ASCENDING):
        self.chain = chain
        self.direction = direction

    @property
    def descending(self) -> bool:
        return self.direction == Direction.DESCENDING

    def resolve(self, root) -> ResolvedAccessor:
        """Resolve this ordering's chain against a root type or Schema."""
        return resolve(root, self.chain)

    def __eq__(self, other):
        if not isinstance(other, OrderingSpec):
            return NotImplemented
        return self.chain == other.chain and self.direction == other.direction

    def __hash__(self):
        return hash((self.chain, self.direction))

    def __repr__(self) -> str:
        return f"OrderingSpec({'.'.join(self.chain)!r}, {self.direction!r})"


def _parse_segment(segment: str) -> OrderingSpec:
    tokens = segment.split()
    if len(tokens) == 1:
        direction = Direction.ASCENDING
    elif len(tokens) == 2:
        token = tokens[1].lower()
        if token == Direction.ASCENDING:
            direction = Direction.ASCENDING
        elif token == Direction.DESCENDING:
            direction = Direction.DESCENDING
        else:
            raise InvalidDirection(tokens[1])
    else:
        raise MalformedSegment(segment.strip())

    chain = split_member_chain(tokens[0])
    if not chain:
        raise EmptyMemberChain(tokens[0])
    return OrderingSpec(chain, direction)


def parse_ordering(text: Optional[str]) -> List[OrderingSpec]:
    """
    Parse ordering text into OrderingSpecs, preserving left-to-right order.

    Empty segments (leading, trailing or doubled commas) are skipped.

    Args:
        text: Ordering text, e.g. "Id asc,Age desc"

    Returns:
        One OrderingSpec per non-empty segment

    Raises:
        MissingOrderingText: If text is None, empty or whitespace-only
        MalformedSegment: If a segment has more than two tokens
        InvalidDirection: If a direction token is not asc/desc
        EmptyMemberChain: If a segment's chain has no member names

    Example:
        >>> parse_ordering("Id asc,Age desc")
        [OrderingSpec('Id', 'asc'), OrderingSpec('Age', 'desc')]
    """
    if text is None or not text.strip():
        raise MissingOrderingText()
    return [_parse_segment(segment) for segment in text.split(",") if segment.strip()]


def order_by(query: "Queryable", text: str) -> "OrderedQueryable":
    """
    Sort a query by ordering text.

    Args:
        query: Query to sort; its schema is the root type for every chain
        text: Ordering text, e.g. "Address.City asc, Age desc"

    Returns:
        An ordered query with the first segment as primary key and the rest
        as then-by keys

    Raises:
        ValueError: If query is None
        UnknownMember: If a chain does not resolve on the query's schema
    """
    if query is None:
        raise ValueError("query must not be None")
    orderings = parse_ordering(text)
    if not orderings:
        # Only separators, e.g. ",,"
        raise MissingOrderingText()

    head, rest = orderings[0], orderings[1:]
    ordered = query._apply_sort(head.resolve(query.schema), head.direction)
    for ordering in rest:
        ordered = ordered._apply_then_sort(ordering.resolve(query.schema), ordering.direction)
    return ordered


def then_by(query: "OrderedQueryable", text: str) -> "OrderedQueryable":
    """
    Append the keys of ordering text to an already-ordered query.

    Raises:
        ValueError: If query is None
        TypeError: If query has not been ordered yet
    """
    if query is None:
        raise ValueError("query must not be None")
    if not hasattr(query, "_apply_then_sort"):
        raise TypeError(
            f"then_by() requires an ordered query, got {type(query).__name__}. "
            "Call order_by() first."
        )
    ordered = query
    for ordering in parse_ordering(text):
        ordered = ordered._apply_then_sort(ordering.resolve(query.schema), ordering.direction)
    return ordered


def _sort_key(schema, key) -> Callable[[Any], Any]:
    if isinstance(key, (str, tuple)):
        return resolve(schema, key)
    if callable(key):
        return key
    raise TypeError(
        f"Sort key must be a member chain or callable, got {type(key).__name__}"
    )


class OrderingMixin:
    """Ordering methods shared by every Queryable."""

    def order_by(self, key: Union[str, Callable], desc: bool = False) -> "OrderedQueryable":
        """
        Sort rows by ordering text or by a key function.

        Args:
            key: Ordering text ("Address.City asc, Age desc") or a key
                 callable such as a ResolvedAccessor or lambda u: u.Age
            desc: Sort a callable key descending. Ordering text carries its
                  own directions, so desc must be False with text.

        Returns:
            An ordered query; use then_by() to add secondary keys

        Example:
            >>> users.order_by("Id asc,Age desc")
            >>> users.order_by(lambda u: u.Age, desc=True).then_by("Name")
        """
        if isinstance(key, str):
            if desc:
                raise ValueError(
                    "desc cannot be combined with ordering text; "
                    f"write '{key.strip()} desc' instead"
                )
            return order_by(self, key)
        direction = Direction.DESCENDING if desc else Direction.ASCENDING
        return self._apply_sort(_sort_key(self.schema, key), direction)

    def order_by_desc(self, key: Union[str, Callable]) -> "OrderedQueryable":
        """
        Sort rows descending by a member chain ("Address.City") or key callable.
        """
        return self._apply_sort(_sort_key(self.schema, key), Direction.DESCENDING)


class ThenByMixin:
    """Secondary-key methods of an ordered query."""

    def then_by(self, key: Union[str, Callable], desc: bool = False) -> "OrderedQueryable":
        """
        Add secondary sort keys from ordering text or a key function.

        Example:
            >>> users.order_by("Age").then_by("Name desc, Id")
        """
        if isinstance(key, str):
            if desc:
                raise ValueError(
                    "desc cannot be combined with ordering text; "
                    f"write '{key.strip()} desc' instead"
                )
            return then_by(self, key)
        direction = Direction.DESCENDING if desc else Direction.ASCENDING
        return self._apply_then_sort(_sort_key(self.schema, key), direction)

    def then_by_desc(self, key: Union[str, Callable]) -> "OrderedQueryable":
        """Add a descending secondary key from a member chain or key callable."""
        return self._apply_then_sort(_sort_key(self.schema, key), Direction.DESCENDING)
