# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""AWS Signature Version 4 (HMAC-SHA256) request signing.

Pipeline for one signing call::

    initialize_headers        host, X-Amz-Date; strip stale signature
    set_request_body_hash     payload hash (+ chunked length rewrite)
    canonical query/headers   sorted, encoded, pruned
    canonicalize_request      six-line canonical request
    compose_signing_key       HMAC ladder over date/region/service
    compute_signature         string to sign -> signature

Only ``initialize_headers`` and ``set_request_body_hash`` touch the
request; both mutate its header map in place.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime

from aws4sign.canonical import canonicalize_request
from aws4sign.config import SignerConfig
from aws4sign.errors import SigningError
from aws4sign.hashing import (
    compute_keyed_hash,
    scrubbed,
    sha256_hex,
    sign_blob,
)
from aws4sign.headers import (
    AUTHORIZATION,
    canonicalize_header_names,
    initialize_headers,
    sort_and_prune_headers,
)
from aws4sign.payload import set_request_body_hash
from aws4sign.query import (
    canonicalize_query_parameters,
    get_parameters_to_canonicalize,
)
from aws4sign.request import Credentials, SignableRequest
from aws4sign.timeutil import iso8601_basic, iso8601_date, to_utc


logger = logging.getLogger(__name__)

SCHEME = "AWS4"
ALGORITHM = "HMAC-SHA256"
AWS4_ALGORITHM_TAG = f"{SCHEME}-{ALGORITHM}"
TERMINATOR = "aws4_request"

CREDENTIAL = "Credential"
SIGNED_HEADERS = "SignedHeaders"
SIGNATURE = "Signature"


# ---------------------------------------------------------------------------
# Signing result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SigningResult:
    """Everything produced by one signing call.

    Attributes:
        access_key: Access key ID that signed the request.
        signed_at: Signing instant (aware UTC).
        signed_headers: Semicolon-separated signed header names.
        scope: Credential scope (date/region/service/aws4_request).
        signing_key: Derived signing key.  Sensitive; discard after use.
        signature: Raw HMAC-SHA256 signature.
    """

    access_key: str
    signed_at: datetime
    signed_headers: str
    scope: str
    signing_key: bytes = field(repr=False)
    signature: bytes = field(repr=False)

    @property
    def iso8601_datetime(self) -> str:
        """Signing instant as ``YYYYMMDDThhmmssZ``."""
        return iso8601_basic(self.signed_at)

    @property
    def iso8601_date(self) -> str:
        """Signing date as ``YYYYMMDD``."""
        return iso8601_date(self.signed_at)

    @property
    def signature_hex(self) -> str:
        """Signature as lowercase hex."""
        return self.signature.hex()

    @property
    def for_authorization_header(self) -> str:
        """Value for the ``Authorization`` header."""
        return (
            f"{AWS4_ALGORITHM_TAG} "
            f"{CREDENTIAL}={self.access_key}/{self.scope}, "
            f"{SIGNED_HEADERS}={self.signed_headers}, "
            f"{SIGNATURE}={self.signature_hex}"
        )


# ---------------------------------------------------------------------------
# Key derivation and signature computation
# ---------------------------------------------------------------------------


def format_scope(date: str, region: str, service: str) -> str:
    """Credential scope ``date/region/service/aws4_request``."""
    return f"{date}/{region}/{service}/{TERMINATOR}"


def compose_signing_key(
    secret_key: str, date: str, region: str, service: str
) -> bytes:
    """Derive the scoped signing key.

    ``HMAC(HMAC(HMAC(HMAC("AWS4" + secret, date), region), service),
    "aws4_request")``.  The ``"AWS4" + secret`` buffer and each
    intermediate key are zeroed before returning, whether or not the
    derivation succeeds.

    Args:
        secret_key: Secret access key, in clear text.
        date: Date string (YYYYMMDD).
        region: Region name.
        service: Service name.

    Returns:
        Derived signing key bytes.
    """
    with ExitStack() as stack:
        key = stack.enter_context(
            scrubbed(bytearray(SCHEME + secret_key, "utf-8"))
        )
        for part in (date, region, service):
            key = stack.enter_context(
                scrubbed(bytearray(compute_keyed_hash(key, part)))
            )
        return compute_keyed_hash(key, TERMINATOR)


def build_string_to_sign(
    timestamp: str, scope: str, canonical_request: str
) -> str:
    """Build the string to sign.

    Args:
        timestamp: ISO8601 basic timestamp (the X-Amz-Date value).
        scope: Credential scope (date/region/service/aws4_request).
        canonical_request: The canonical request string.

    Returns:
        String to sign.
    """
    return "\n".join(
        [
            AWS4_ALGORITHM_TAG,
            timestamp,
            scope,
            sha256_hex(canonical_request),
        ]
    )


def compute_signature(
    credentials: Credentials,
    region: str,
    signed_at: datetime,
    service: str,
    signed_headers: str,
    canonical_request: str,
) -> SigningResult:
    """Sign a canonical request.

    Args:
        credentials: Credentials to sign with.
        region: Region for the credential scope.
        signed_at: Signing instant; must match X-Amz-Date.
        service: Service for the credential scope.
        signed_headers: Semicolon-separated signed header names.
        canonical_request: Canonical request string.

    Returns:
        SigningResult carrying the signature and derived key.
    """
    signed_at = to_utc(signed_at)
    date_stamp = iso8601_date(signed_at)
    scope = format_scope(date_stamp, region, service)

    string_to_sign = build_string_to_sign(
        iso8601_basic(signed_at), scope, canonical_request
    )
    logger.debug("String to sign:\n%s", string_to_sign)

    key = compose_signing_key(
        credentials.secret_key, date_stamp, region, service
    )
    signature = sign_blob(key, string_to_sign)
    return SigningResult(
        access_key=credentials.access_key,
        signed_at=signed_at,
        signed_headers=signed_headers,
        scope=scope,
        signing_key=key,
        signature=signature,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class AWS4Signer:
    """Signs requests for one region/service client context.

    The signer holds no per-request state and may be shared between
    threads.  Each request must only be signed by one thread at a time.
    """

    def __init__(self, config: SignerConfig) -> None:
        self.config = config

    def sign(
        self,
        request: SignableRequest,
        credentials: Credentials,
        *,
        signed_at: datetime | None = None,
    ) -> SigningResult:
        """Sign ``request`` and set its ``Authorization`` header.

        See ``sign_request`` for arguments and failure behaviour.
        """
        result = self.sign_request(request, credentials, signed_at=signed_at)
        request.headers[AUTHORIZATION] = result.for_authorization_header
        return result

    def sign_request(
        self,
        request: SignableRequest,
        credentials: Credentials,
        *,
        signed_at: datetime | None = None,
    ) -> SigningResult:
        """Compute the signature for ``request``.

        Mutates ``request.headers``: host, X-Amz-Date and the payload hash
        are added, stale signing headers are removed, and chunked uploads
        get their length and encoding headers rewritten.  The
        Authorization header itself is not set.

        Args:
            request: Request to sign.
            credentials: Credentials to sign with.
            signed_at: Signing instant.  Defaults to the current time
                corrected by the configured clock offset.

        Returns:
            SigningResult for building the Authorization header.

        Raises:
            SigningError: Signing failed.  Headers may already have been
                modified; rebuild them before retrying.
        """
        try:
            return self._sign_request(request, credentials, signed_at)
        except SigningError:
            raise
        except ValueError as e:
            raise SigningError(f"Failed to sign request: {e}") from e

    def _sign_request(
        self,
        request: SignableRequest,
        credentials: Credentials,
        signed_at: datetime | None,
    ) -> SigningResult:
        config = self.config

        signed_at = initialize_headers(
            request.headers,
            request.host_header,
            signed_at,
            clock_offset_seconds=config.clock_offset_seconds,
        )

        body_hash = set_request_body_hash(
            request,
            chunk_size=config.chunk_size,
            write_header=config.content_sha256_header,
        )

        canonical_parameters = canonicalize_query_parameters(
            get_parameters_to_canonicalize(request)
        )
        sorted_headers = sort_and_prune_headers(request.headers)

        canonical_request = canonicalize_request(
            endpoint=request.endpoint,
            resource_path=request.resource_path,
            http_method=request.method,
            sorted_headers=sorted_headers,
            canonical_query_string=canonical_parameters,
            precomputed_body_hash=body_hash,
        )
        logger.debug("Canonical request:\n%s", canonical_request)

        return compute_signature(
            credentials,
            config.region,
            signed_at,
            config.service,
            canonicalize_header_names(sorted_headers),
            canonical_request,
        )
