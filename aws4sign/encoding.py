# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Deterministic text helpers for canonicalization.

URI encoding follows the strict RFC 3986 profile SigV4 requires: only
unreserved characters survive unescaped, everything else is encoded from
its UTF-8 bytes as ``%XX`` with uppercase hex.
"""

import re
from collections.abc import Iterable, Mapping


_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)

_WHITESPACE_RE = re.compile(r"\s+")


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """URI-encode a value using SigV4's rules.

    - Unreserved characters are not encoded: A-Z, a-z, 0-9, -, _, ., ~
    - All other characters are percent-encoded per UTF-8 byte as %XX
      (uppercase hex)
    - Forward slashes (/) are optionally preserved

    Args:
        value: String to encode.
        encode_slash: If True, encode '/'; if False, preserve '/'.

    Returns:
        URI-encoded string.
    """
    result: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _UNRESERVED:
            result.append(chr(byte))
        elif byte == 0x2F and not encode_slash:
            result.append("/")
        else:
            result.append(f"%{byte:02X}")
    return "".join(result)


def compress_whitespace(value: str) -> str:
    """Trim ``value`` and collapse internal whitespace runs to one space."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def ordinal_sorted(keys: Iterable[str]) -> list[str]:
    """Sort strings by code point, independent of locale.

    Code point order is identical to the byte order of the UTF-8
    encodings, which is what the receiving side compares.
    """
    return sorted(keys, key=lambda k: k.encode("utf-8"))


def form_encode(parameters: Mapping[str, str | None]) -> str:
    """Encode parameters as an ``application/x-www-form-urlencoded`` body.

    Used as the implicit payload when a request carries its parameters
    in the body.  Keys are emitted in ordinal order so the body (and its
    hash) is stable; parameters without a value are omitted.
    """
    pairs = [
        f"{uri_encode(name)}={uri_encode(parameters[name])}"
        for name in ordinal_sorted(parameters)
        if parameters[name] is not None
    ]
    return "&".join(pairs)
