"""JSON encoding of quiz definitions for the placeholder's data attribute."""

import datetime
import json
from typing import Any

from .errors import EncodeError

_TEMPORAL_TYPES = (datetime.datetime, datetime.date, datetime.time)


def _default(value: Any) -> Any:
    # TOML and YAML both produce native date/time objects
    if isinstance(value, _TEMPORAL_TYPES):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_metadata(value: Any) -> str:
    """Encode a structured value as compact JSON.

    Args:
        value: Mapping, list or scalar loaded from a definition file.

    Returns:
        JSON text.

    Raises:
        EncodeError: If the value contains something JSON cannot represent,
            such as NaN, infinities, sets, bytes or non-string keys.
    """
    _check_keys(value)
    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
            default=_default,
        )
    except (TypeError, ValueError) as e:
        raise EncodeError(f"Cannot encode quiz metadata: {e}") from e


def decode_metadata(text: str) -> Any:
    """Decode JSON produced by :func:`encode_metadata`."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise EncodeError(f"Invalid quiz metadata: {e}") from e


def _check_keys(value: Any) -> None:
    """Reject non-string mapping keys, which json would silently coerce."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeError(
                    f"Cannot encode quiz metadata: mapping key {key!r} is not a string"
                )
            _check_keys(item)
    elif isinstance(value, list):
        for item in value:
            _check_keys(item)
