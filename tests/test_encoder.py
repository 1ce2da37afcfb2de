"""Tests for quizembed.encoder module."""

import datetime
import json
import tomllib

import pytest

from quizembed.encoder import decode_metadata, encode_metadata
from quizembed.errors import EncodeError


class TestEncodeMetadata:
    """Tests for encode_metadata function."""

    def test_output_is_valid_json(self):
        """Test output parses with the standard JSON decoder."""
        value = {"name": "Capitals", "questions": [{"prompt": "?", "answer": "Paris"}]}

        assert json.loads(encode_metadata(value)) == value

    def test_preserves_scalar_types(self):
        """Test strings, integers, floats and booleans survive encoding."""
        value = {"s": "text", "i": 42, "f": 1.5, "t": True, "n": False}

        decoded = decode_metadata(encode_metadata(value))

        assert decoded == value
        assert isinstance(decoded["i"], int)
        assert isinstance(decoded["f"], float)
        assert decoded["t"] is True

    def test_nested_and_empty_containers(self):
        """Test deep nesting and empty tables and arrays are kept."""
        value = {
            "empty_table": {},
            "empty_array": [],
            "deep": {"a": [{"b": [[1, 2], []]}, {"c": {}}]},
        }

        assert decode_metadata(encode_metadata(value)) == value

    def test_toml_document_round_trip(self):
        """Test a parsed TOML document is reproduced exactly."""
        source = """
title = "Ownership"

[settings]
shuffle = false
passing = 0.75

[[questions]]
type = "MultipleChoice"
prompt.prompt = "What does \\"move\\" mean?"
answer.answer = "Transfer of ownership"
prompt.distractors = ["Copy", "Borrow"]
"""
        value = tomllib.loads(source)

        assert decode_metadata(encode_metadata(value)) == value

    def test_unicode_kept_verbatim(self):
        """Test non-ASCII text is not escaped."""
        encoded = encode_metadata({"q": "Qu'est-ce que c'est ? é"})

        assert "é" in encoded

    def test_compact_single_line(self):
        """Test the encoding has no newlines, even for multi-line strings."""
        encoded = encode_metadata({"prompt": "line one\nline two", "list": [1, 2]})

        assert "\n" not in encoded
        assert ", " not in encoded

    def test_toml_datetime_as_iso_string(self):
        """Test date/time values are encoded as ISO 8601 strings."""
        value = tomllib.loads("due = 2024-05-01\nat = 2024-05-01T10:30:00Z\n")

        decoded = decode_metadata(encode_metadata(value))

        assert decoded["due"] == "2024-05-01"
        assert decoded["at"] == "2024-05-01T10:30:00+00:00"

    def test_time_value(self):
        """Test local time values are encoded."""
        encoded = encode_metadata({"t": datetime.time(8, 15)})

        assert decode_metadata(encoded) == {"t": "08:15:00"}

    def test_nan_rejected(self):
        """Test NaN, which TOML allows, raises EncodeError."""
        value = tomllib.loads("x = nan\n")

        with pytest.raises(EncodeError):
            encode_metadata(value)

    def test_infinity_rejected(self):
        """Test infinities raise EncodeError."""
        with pytest.raises(EncodeError):
            encode_metadata({"x": float("inf")})

    def test_set_rejected(self):
        """Test unrepresentable types raise EncodeError."""
        with pytest.raises(EncodeError, match="set"):
            encode_metadata({"x": {1, 2}})

    def test_non_string_key_rejected(self):
        """Test non-string keys raise instead of being coerced."""
        with pytest.raises(EncodeError, match="not a string"):
            encode_metadata({"answers": {1: "one"}})


class TestDecodeMetadata:
    """Tests for decode_metadata function."""

    def test_invalid_json(self):
        """Test malformed input raises EncodeError."""
        with pytest.raises(EncodeError):
            decode_metadata("{not json")
