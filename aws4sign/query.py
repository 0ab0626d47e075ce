# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Canonical query string construction.

Parameters are sorted by their raw (unencoded) name in ordinal order,
then both name and value are URI-encoded with the strict profile.  A
parameter without a value canonicalizes as ``name=``.

Duplicate names resolve by last write wins, both when merging the
parameter sources of a request and when parsing a raw query string.
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Mapping

from aws4sign.encoding import ordinal_sorted, uri_encode
from aws4sign.errors import MalformedQueryError
from aws4sign.request import SignableRequest


_DELIMITERS = "&;"


def get_parameters_to_canonicalize(
    request: SignableRequest,
) -> dict[str, str | None]:
    """Merge the parameters that travel on the query string.

    Sources, lowest precedence first (a later one overrides a name set
    by an earlier one):

    1. the raw query on the endpoint URL
    2. the raw query after ``?`` in the resource path
    3. sub-resources
    4. request parameters, only when the request uses the query string

    Raises:
        MalformedQueryError: A raw query string is malformed.
    """
    merged: dict[str, str | None] = {}
    for raw_query in request.raw_queries:
        merged.update(parse_query_string(raw_query, strip_prefix=False))
    merged.update(request.sub_resources)
    if request.use_query_string:
        merged.update(request.parameters)
    return merged


def _split_tokens(qs: str) -> list[str]:
    """Split on ``&``/``;`` unless the delimiter is followed by a space.

    Values such as ``attachment; filename=x`` keep their embedded
    delimiter.
    """
    tokens: list[str] = []
    start = 0
    for i, ch in enumerate(qs):
        if ch not in _DELIMITERS:
            continue
        if i + 1 < len(qs) and qs[i + 1] == " ":
            continue
        tokens.append(qs[start:i])
        start = i + 1
    tokens.append(qs[start:])
    return tokens


def parse_query_string(
    query_string: str, *, strip_prefix: bool = True
) -> dict[str, str | None]:
    """Parse a raw query string into a parameter mapping.

    By default anything up to and including the first ``?`` is ignored,
    so a full URL or path may be passed.  Tokens are percent-decoded;
    ``+`` is left alone.  A token without ``=`` yields a None value.

    Args:
        query_string: Raw query string.
        strip_prefix: Drop everything up to the first ``?``.  Pass False
            for a bare query, which may itself contain ``?``.

    Returns:
        Mapping of decoded name to decoded value (or None).

    Raises:
        MalformedQueryError: A delimiter is left dangling (empty token)
            or a parameter has an empty name.
    """
    qs = query_string
    if strip_prefix and "?" in qs:
        qs = qs.split("?", 1)[1]
    if not qs:
        return {}

    params: dict[str, str | None] = {}
    for token in _split_tokens(qs):
        if not token:
            raise MalformedQueryError(
                f"Dangling delimiter in query string: {query_string!r}"
            )
        name, sep, value = token.partition("=")
        if not name:
            raise MalformedQueryError(
                f"Parameter without a name in query string: {token!r}"
            )
        params[urllib.parse.unquote(name)] = (
            urllib.parse.unquote(value) if sep else None
        )
    return params


def canonicalize_query_parameters(
    parameters: Mapping[str, str | None],
    *,
    uri_encode_parameters: bool = True,
) -> str:
    """Build the canonical query string from a parameter mapping.

    Args:
        parameters: Parameter name to value (None for no value).
        uri_encode_parameters: Set to False only when names and values
            were already encoded by the caller.

    Returns:
        ``name=value`` pairs joined by ``&``, or an empty string.
    """
    pairs: list[str] = []
    for name in ordinal_sorted(parameters):
        value = parameters[name] or ""
        if uri_encode_parameters:
            pairs.append(f"{uri_encode(name)}={uri_encode(value)}")
        else:
            pairs.append(f"{name}={value}")
    return "&".join(pairs)


def canonicalize_query_string(query_string: str) -> str:
    """Canonicalize a raw query string.

    Applying this to its own output returns the output unchanged.
    """
    return canonicalize_query_parameters(parse_query_string(query_string))
