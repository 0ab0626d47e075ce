# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Header preparation and header canonicalization.

``initialize_headers`` mutates the request's header map: it removes
artifacts of a previous signing pass, then adds ``host`` and
``X-Amz-Date``.  The canonicalization helpers are pure and work on a
snapshot of the headers.  ``parse_authorization_header`` reads a
formatted SigV4 ``Authorization`` value back into its parts.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from werkzeug.datastructures import Headers

from aws4sign.encoding import compress_whitespace, ordinal_sorted
from aws4sign.timeutil import corrected_utc_now, iso8601_basic, to_utc


logger = logging.getLogger(__name__)

HOST = "host"
X_AMZ_DATE = "X-Amz-Date"
AUTHORIZATION = "Authorization"
CONTENT_LENGTH = "Content-Length"
CONTENT_ENCODING = "Content-Encoding"
X_AMZ_CONTENT_SHA256 = "X-Amz-Content-SHA256"
X_AMZ_DECODED_CONTENT_LENGTH = "X-Amz-Decoded-Content-Length"
X_AMZN_TRACE_ID = "X-Amzn-Trace-Id"

#: Lower-cased names of headers that never take part in the signature.
#: Intermediaries may add or rewrite these in flight.
HEADERS_TO_IGNORE_WHEN_SIGNING = frozenset({X_AMZN_TRACE_ID.lower()})


# ---------------------------------------------------------------------------
# Authorization header
# ---------------------------------------------------------------------------


_AUTHORIZATION_RE = re.compile(
    r"AWS4-HMAC-SHA256\s+"
    r"Credential=(?P<access_key>[^/\s]+)/"
    r"(?P<date>\d{8})/(?P<region>[^/]+)/(?P<service>[^/]+)/aws4_request,\s*"
    r"SignedHeaders=(?P<signed_headers>[a-z0-9;-]+),\s*"
    r"Signature=(?P<signature>[0-9a-f]{64})"
)


@dataclass(frozen=True)
class ParsedAuthorization:
    """A SigV4 ``Authorization`` header split into its components."""

    access_key: str
    date: str
    region: str
    service: str
    signed_headers: tuple[str, ...]
    signature: str

    @property
    def scope(self) -> str:
        return f"{self.date}/{self.region}/{self.service}/aws4_request"


def parse_authorization_header(value: str) -> ParsedAuthorization | None:
    """Read a formatted SigV4 ``Authorization`` value back.

    Returns:
        The parsed header, or None for any other authorization scheme or
        a malformed value.
    """
    m = _AUTHORIZATION_RE.fullmatch(value.strip())
    if not m:
        return None
    return ParsedAuthorization(
        access_key=m["access_key"],
        date=m["date"],
        region=m["region"],
        service=m["service"],
        signed_headers=tuple(m["signed_headers"].split(";")),
        signature=m["signature"],
    )


# ---------------------------------------------------------------------------
# Header preparation
# ---------------------------------------------------------------------------


def clean_headers(headers: Headers) -> None:
    """Remove signing artifacts left by a previous signing pass.

    A content-hash header is only treated as stale when the request also
    carries an ``Authorization`` header; on a request that was never
    signed it is the caller's pre-computed payload hash and is kept.  An
    ``Authorization`` value that is not a SigV4 signature is replaced
    all the same, with a warning.
    """
    if AUTHORIZATION in headers:
        previous = parse_authorization_header(headers[AUTHORIZATION])
        if previous is None:
            logger.warning(
                "Replacing an %s header that is not a SigV4 signature",
                AUTHORIZATION,
            )
        else:
            logger.debug(
                "Removing stale signature by %s for scope %s",
                previous.access_key,
                previous.scope,
            )
        del headers[AUTHORIZATION]
        if X_AMZ_CONTENT_SHA256 in headers:
            del headers[X_AMZ_CONTENT_SHA256]

    if X_AMZ_DECODED_CONTENT_LENGTH in headers:
        headers[CONTENT_LENGTH] = headers[X_AMZ_DECODED_CONTENT_LENGTH]
        del headers[X_AMZ_DECODED_CONTENT_LENGTH]


def initialize_headers(
    headers: Headers,
    host: str,
    signed_at: datetime | None = None,
    *,
    clock_offset_seconds: float = 0,
) -> datetime:
    """Set the mandatory ``host`` and ``X-Amz-Date`` headers.

    Args:
        headers: Request headers, mutated in place.
        host: Host header value (host plus non-default port).  Only used
            when the request has no host header yet.
        signed_at: Signing instant.  Defaults to the current time
            corrected by ``clock_offset_seconds``.
        clock_offset_seconds: Correction applied to the local clock.

    Returns:
        The signing instant as an aware UTC datetime.  Every later stage
        must use this exact value.
    """
    clean_headers(headers)

    if HOST not in headers:
        headers[HOST] = host

    if signed_at is None:
        signed_at = corrected_utc_now(clock_offset_seconds)
    signed_at = to_utc(signed_at)
    headers[X_AMZ_DATE] = iso8601_basic(signed_at)
    return signed_at


# ---------------------------------------------------------------------------
# Header canonicalization
# ---------------------------------------------------------------------------


def sort_and_prune_headers(
    headers: Headers | Mapping[str, str] | Iterable[tuple[str, str]],
) -> dict[str, str]:
    """Select the headers to sign and put them in canonical order.

    Args:
        headers: Request headers.  Repeated names are allowed; the last
            value wins.

    Returns:
        Ordered mapping of lower-cased name to value, sorted by name in
        ordinal order, without ignored headers.
    """
    items = headers.items() if hasattr(headers, "items") else headers
    lowered: dict[str, str] = {}
    for name, value in items:
        key = name.lower()
        if key in HEADERS_TO_IGNORE_WHEN_SIGNING:
            continue
        lowered[key] = value
    return {key: lowered[key] for key in ordinal_sorted(lowered)}


def canonicalize_headers(sorted_headers: Mapping[str, str]) -> str:
    """Build the canonical header block.

    Args:
        sorted_headers: Output of ``sort_and_prune_headers``.

    Returns:
        One ``name:value`` line per header, each terminated by a newline.
    """
    return "".join(
        f"{name}:{compress_whitespace(value)}\n"
        for name, value in sorted_headers.items()
    )


def canonicalize_header_names(sorted_headers: Mapping[str, str]) -> str:
    """Semicolon-separated list of the signed header names."""
    return ";".join(sorted_headers)
