"""Request payload value objects and their JSON deserialization."""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class Source:
    """An uploaded source, as the bytes of its base64 encoding."""

    source: bytes


@dataclass(frozen=True)
class Flags:
    """Additional flags passed to a verification step."""

    flags: bytes


def _read_bytes_field(subject: str, name: str) -> bytes:
    document = json.loads(subject)
    if not isinstance(document, dict):
        raise ValueError(f"expected a JSON object with a `{name}` field")
    if name not in document:
        raise ValueError(f"missing field `{name}`")
    value = document[name]
    if not isinstance(value, str):
        raise ValueError(f"field `{name}` must be a string")
    return value.encode("utf-8")


def deserialize_source(subject: str) -> Source:
    """Parse a JSON document holding a `source` string."""
    return Source(_read_bytes_field(subject, "source"))


def deserialize_flags(subject: str) -> Flags:
    """Parse a JSON document holding a `flags` string."""
    return Flags(_read_bytes_field(subject, "flags"))