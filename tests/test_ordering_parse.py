"""
Tests for ordering text parsing.

Covers:
- Segment splitting and order preservation
- Direction tokens (default, case-insensitive, invalid)
- Error kinds for empty text, malformed segments and empty chains
"""

import pytest

from dynq import (
    Direction,
    EmptyMemberChain,
    InvalidDirection,
    MalformedSegment,
    MissingOrderingText,
    OrderingSpec,
    parse_ordering,
)


class TestParseOrderingBasic:
    """Well-formed ordering text."""

    def test_single_member_defaults_to_ascending(self):
        specs = parse_ordering("Id")
        assert len(specs) == 1
        assert specs[0].chain == ("Id",)
        assert specs[0].direction == Direction.ASCENDING
        assert not specs[0].descending

    def test_two_segments_keep_order(self):
        specs = parse_ordering("Id asc,Age desc")
        assert specs == [
            OrderingSpec(("Id",), Direction.ASCENDING),
            OrderingSpec(("Age",), Direction.DESCENDING),
        ]

    def test_direction_is_case_insensitive(self):
        assert parse_ordering("Id ASC")[0].direction == Direction.ASCENDING
        assert parse_ordering("Id Desc")[0].direction == Direction.DESCENDING

    def test_member_chain_is_split_on_dots(self):
        parsed = parse_ordering("Address.City desc")[0]
        assert parsed.chain == ("Address", "City")
        assert parsed.descending

    def test_empty_chain_parts_are_dropped(self):
        assert parse_ordering("Address..City")[0].chain == ("Address", "City")

    def test_empty_segments_are_skipped(self):
        specs = parse_ordering(",Id,, Age desc ,")
        assert [s.chain for s in specs] == [("Id",), ("Age",)]

    def test_length_matches_non_empty_segments(self):
        text = "A, B desc, C.D asc, E"
        assert len(parse_ordering(text)) == 4

    def test_extra_whitespace_between_tokens(self):
        parsed = parse_ordering("  Age\t  desc  ")[0]
        assert parsed.chain == ("Age",)
        assert parsed.descending

    def test_repeated_member_is_allowed(self):
        specs = parse_ordering("Id, Id desc")
        assert [s.chain for s in specs] == [("Id",), ("Id",)]


class TestParseOrderingErrors:
    """Malformed ordering text."""

    @pytest.mark.parametrize("text", [None, "", "   ", "\t\n"])
    def test_missing_text(self, text):
        with pytest.raises(MissingOrderingText):
            parse_ordering(text)

    def test_missing_text_message(self):
        with pytest.raises(MissingOrderingText, match="must not be None, empty or whitespace-only"):
            parse_ordering("  ")

    def test_only_commas_parses_to_nothing(self):
        assert parse_ordering(",,") == []

    def test_three_tokens_is_malformed(self):
        with pytest.raises(MalformedSegment) as exc_info:
            parse_ordering("Id asc desc")
        assert exc_info.value.segment == "Id asc desc"
        assert "Id asc desc" in str(exc_info.value)

    def test_malformed_segment_reported_among_others(self):
        with pytest.raises(MalformedSegment) as exc_info:
            parse_ordering("Id, Name asc x, Age")
        assert exc_info.value.segment == "Name asc x"

    def test_invalid_direction(self):
        with pytest.raises(InvalidDirection) as exc_info:
            parse_ordering("Id up")
        assert exc_info.value.token == "up"

    def test_chain_without_names(self):
        with pytest.raises(EmptyMemberChain):
            parse_ordering(". desc")

    def test_errors_are_value_errors(self):
        for text in ("", "a b c", "a sideways", "."):
            with pytest.raises(ValueError):
                parse_ordering(text)
