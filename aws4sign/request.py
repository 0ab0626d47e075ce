# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Request description and credential types handed to the signer.

The signer borrows a ``SignableRequest`` for the duration of one call and
mutates its headers in place (host, timestamp, content hash and, in
chunked mode, content length and encoding).  The caller owns the object:
it must not sign or modify the same instance from two threads at once,
and should rebuild the headers before reusing a request whose signing
call failed.
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import BinaryIO

from werkzeug.datastructures import Headers


# ---------------------------------------------------------------------------
# Body variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Buffered:
    """A body held fully in memory."""

    data: bytes


@dataclass(frozen=True)
class Streamed:
    """A body read from a binary stream.

    The stream must be binary.  When the payload has to be hashed, it is
    read to EOF once and then rewound to where it started, so the stream
    must be seekable.  A non-seekable stream is only accepted when the
    hash is not needed: chunked uploads, a caller-supplied
    ``content_sha256`` or a pre-set ``X-Amz-Content-SHA256`` header.
    """

    stream: BinaryIO


@dataclass(frozen=True)
class Absent:
    """No explicit body.

    Requests that carry their parameters in the body (``use_query_string``
    false) are signed over the form-encoded parameters instead.
    """


Body = Buffered | Streamed | Absent


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credentials:
    """Clear-text credentials for one signing call.

    Attributes:
        access_key: Access key ID, included verbatim in the credential.
        secret_key: Secret access key.  Never shown in ``repr``.
    """

    access_key: str
    secret_key: str = field(repr=False)


# ---------------------------------------------------------------------------
# Request description
# ---------------------------------------------------------------------------


_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(eq=False)
class SignableRequest:
    """An outgoing request, described for signing.

    Attributes:
        method: HTTP method, upper case as it will be sent.
        endpoint: Base URL, e.g. ``https://example.amazonaws.com:8443``.
            A path on the endpoint is prepended to ``resource_path``; a
            query on it is signed as raw query parameters.
        resource_path: Path of the resource, not URI-encoded.  Anything
            after a ``?`` is a raw query string, not part of the path.
        headers: Header map.  Lookups are case-insensitive; a plain
            mapping is converted on construction.
        parameters: Request parameters, not URI-encoded.  Sent on the
            query string when ``use_query_string`` is set, otherwise as a
            form-encoded body.
        sub_resources: Parameters that always travel on the query string.
        body: Request payload.
        use_query_string: Parameters belong on the query string.
        use_chunk_encoding: Upload the body with ``aws-chunked`` framing.
        content_sha256: Payload hash computed by the caller.  Used
            verbatim instead of hashing the body, across re-signs.
    """

    method: str
    endpoint: str
    resource_path: str = "/"
    headers: Headers = field(default_factory=Headers)
    parameters: dict[str, str | None] = field(default_factory=dict)
    sub_resources: dict[str, str | None] = field(default_factory=dict)
    body: Body = field(default_factory=Absent)
    use_query_string: bool = True
    use_chunk_encoding: bool = False
    content_sha256: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(
                list(self.headers.items())
                if isinstance(self.headers, Mapping)
                else self.headers
            )

    @property
    def endpoint_url(self) -> urllib.parse.SplitResult:
        """The endpoint split into its URL components."""
        return urllib.parse.urlsplit(self.endpoint)

    @property
    def raw_queries(self) -> list[str]:
        """Raw query strings carried by the endpoint and the resource path.

        Returned in that order; empty queries are skipped.
        """
        queries = []
        if self.endpoint_url.query:
            queries.append(self.endpoint_url.query)
        query = self.resource_path.partition("?")[2]
        if query:
            queries.append(query)
        return queries

    @property
    def host_header(self) -> str:
        """Value for the ``host`` header derived from the endpoint.

        The port is only included when it is explicit and differs from
        the default for the endpoint's scheme.
        """
        url = self.endpoint_url
        host = url.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        port = url.port
        if port is not None and port != _DEFAULT_PORTS.get(url.scheme):
            host = f"{host}:{port}"
        return host
