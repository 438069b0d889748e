"""Error kinds raised while compiling ordering text, member chains and projections."""

from typing import Any, Optional


class DynqError(Exception):
    """Base class for every error raised by dynq."""


class MissingOrderingText(DynqError, ValueError):
    """Ordering text was None, empty or whitespace-only."""

    def __init__(self):
        super().__init__("Ordering text must not be None, empty or whitespace-only")


class MalformedSegment(DynqError, ValueError):
    """An ordering segment did not split into one or two tokens."""

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__(f"Invalid order text '{segment}'")


class InvalidDirection(DynqError, ValueError):
    """An ordering direction token was neither 'asc' nor 'desc'."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(
            f"Invalid order type '{token}'. Expected 'asc' or 'desc'"
        )


class EmptyMemberChain(DynqError, ValueError):
    """A member chain contained no member names."""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        if text is None:
            message = "Member chain must name at least one member"
        else:
            message = f"Member chain '{text}' must name at least one member"
        super().__init__(message)


class UnknownMember(DynqError, AttributeError):
    """
    A member chain step matched no field or property on the owning type.

    Attributes:
        type_name: Name of the type the lookup ran against
        member: The segment that failed to match
        position: Zero-based index of the segment within the chain
    """

    def __init__(self, type_name: str, member: str, position: int = 0):
        self.type_name = type_name
        self.member = member
        self.position = position
        super().__init__(
            f"The type '{type_name}' doesn't define property or field '{member}'"
        )


class CoercionFailure(DynqError, TypeError):
    """
    A projection coercion could not convert a value to the target type.

    Attributes:
        field: Target field name
        source_type: Declared type of the source field
        target_type: Declared type of the target field
        value: The value that failed to convert
    """

    def __init__(self, field: str, source_type: Any, target_type: Any, value: Any):
        self.field = field
        self.source_type = source_type
        self.target_type = target_type
        self.value = value
        super().__init__(
            f"Cannot convert field '{field}' from {_type_label(source_type)} "
            f"to {_type_label(target_type)}: {value!r}"
        )


def _type_label(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp)
