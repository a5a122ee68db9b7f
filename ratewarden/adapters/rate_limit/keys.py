"""Lookup key encoding for (resource, caller) pairs."""

from __future__ import annotations


def encode_key(resource: str, caller: str) -> str:
    """Build the store key for a resource/caller pair.

    The resource is length-prefixed, so the mapping stays injective even
    when either part contains ``:`` or is empty.

    Examples:
        >>> encode_key("/api/login", "10.0.0.1")
        '10:/api/login10.0.0.1'
        >>> encode_key("a:b", "c") != encode_key("a", "b:c")
        True
    """

    return f"{len(resource)}:{resource}{caller}"
