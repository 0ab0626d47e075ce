# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Payload hash resolution and aws-chunked length accounting.

The payload is represented in the canonical request by a hash that is
decided once per signing call:

1. chunked upload -> fixed streaming marker (content length inflated
   to include the chunk framing)
2. caller-supplied hash -> used verbatim
3. streamed body -> SHA-256 over the stream, which must be seekable
4. buffered body, or the form-encoded parameters -> SHA-256 of the bytes

The resolved hash is also written to ``X-Amz-Content-SHA256``.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from aws4sign.encoding import form_encode
from aws4sign.errors import InvalidHeaderValueError, UnreadableBodyError
from aws4sign.hashing import hash_stream, sha256_hex
from aws4sign.headers import (
    CONTENT_ENCODING,
    CONTENT_LENGTH,
    X_AMZ_CONTENT_SHA256,
    X_AMZ_DECODED_CONTENT_LENGTH,
)
from aws4sign.request import Absent, Buffered, SignableRequest, Streamed


logger = logging.getLogger(__name__)

#: SHA-256 of zero bytes.
EMPTY_BODY_SHA256 = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)

#: Payload hash placeholder announcing a chunk-signed streaming upload.
STREAMING_BODY_SHA256 = "STREAMING-AWS4-HMAC-SHA256-PAYLOAD"

#: Content-Encoding token for chunk-signed framing.
AWS_CHUNKED_ENCODING = "aws-chunked"

#: Data bytes per chunk unless configured otherwise.
DEFAULT_CHUNK_SIZE = 81920

# Chunk frame: {hex size};chunk-signature={64 hex}\r\n{data}\r\n
CHUNK_SIGNATURE_HEADER = ";chunk-signature="
SIGNATURE_LENGTH = 64
CRLF = "\r\n"


# ---------------------------------------------------------------------------
# Chunk framing arithmetic
# ---------------------------------------------------------------------------


def chunk_frame_length(data_size: int) -> int:
    """Total bytes on the wire for one chunk carrying ``data_size`` bytes."""
    return (
        len(f"{data_size:x}")
        + len(CHUNK_SIGNATURE_HEADER)
        + SIGNATURE_LENGTH
        + len(CRLF)
        + data_size
        + len(CRLF)
    )


def compute_chunked_content_length(
    original_length: int, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """Content length of a body once framed as signed chunks.

    Args:
        original_length: Decoded body length in bytes.
        chunk_size: Data bytes per full chunk.

    Returns:
        Length including every chunk header, the trailing CRLFs and the
        terminal zero-length chunk.

    Raises:
        InvalidHeaderValueError: If ``original_length`` is negative.
    """
    if original_length < 0:
        raise InvalidHeaderValueError(
            f"Content length must be non-negative: {original_length}"
        )
    full_chunks, remainder = divmod(original_length, chunk_size)
    length = full_chunks * chunk_frame_length(chunk_size)
    if remainder:
        length += chunk_frame_length(remainder)
    return length + chunk_frame_length(0)


def framing_overhead(
    original_length: int, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """Bytes added by chunk framing on top of the decoded body."""
    return (
        compute_chunked_content_length(original_length, chunk_size)
        - original_length
    )


def _parse_content_length(value: str) -> int:
    stripped = value.strip()
    if not stripped.isascii() or not stripped.isdigit():
        raise InvalidHeaderValueError(
            f"{CONTENT_LENGTH} is not a non-negative integer: {value!r}"
        )
    return int(stripped)


# ---------------------------------------------------------------------------
# Payload hash resolution
# ---------------------------------------------------------------------------


def _prepare_chunked_headers(
    request: SignableRequest, chunk_size: int
) -> None:
    """Rewrite length and encoding headers for an aws-chunked upload."""
    headers = request.headers

    if CONTENT_LENGTH in headers:
        declared = headers[CONTENT_LENGTH]
        original_length = _parse_content_length(declared)
        headers[X_AMZ_DECODED_CONTENT_LENGTH] = declared
        headers[CONTENT_LENGTH] = str(
            compute_chunked_content_length(original_length, chunk_size)
        )

    if CONTENT_ENCODING in headers:
        original_encoding = headers[CONTENT_ENCODING]
        if AWS_CHUNKED_ENCODING not in original_encoding:
            headers[CONTENT_ENCODING] = (
                f"{original_encoding}, {AWS_CHUNKED_ENCODING}"
            )
    else:
        headers[CONTENT_ENCODING] = AWS_CHUNKED_ENCODING


def _hash_streamed_body(stream: BinaryIO) -> str:
    """Hash a binary body stream and rewind it to where it started.

    Raises:
        UnreadableBodyError: The stream cannot be rewound, fails while
            being read, or yields text instead of bytes.
    """
    try:
        if not stream.seekable():
            raise UnreadableBodyError(
                "Request body stream is not seekable; it would be consumed "
                "by hashing.  Supply content_sha256 or use chunked encoding"
            )
        start = stream.tell()
        digest = hash_stream(stream)
        stream.seek(start)
    except (OSError, ValueError, TypeError) as e:
        raise UnreadableBodyError(f"Failed to read request body: {e}") from e
    return digest


def get_request_payload_bytes(request: SignableRequest) -> bytes:
    """Bytes that make up a non-streamed request payload.

    Explicit content wins.  Without it, a request that sends its
    parameters in the body is signed over their form encoding.
    """
    if isinstance(request.body, Buffered):
        return request.body.data
    if isinstance(request.body, Absent) and not request.use_query_string:
        return form_encode(request.parameters).encode("utf-8")
    return b""


def set_request_body_hash(
    request: SignableRequest,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    write_header: bool = True,
) -> str:
    """Resolve the payload hash and record it on the request.

    Side effect: mutates ``request.headers``.  In chunked mode the
    declared content length moves to ``X-Amz-Decoded-Content-Length`` and
    ``Content-Length`` is inflated by the framing overhead; the
    ``aws-chunked`` encoding token is added once.

    Args:
        request: Request being signed.
        chunk_size: Data bytes per chunk in chunked mode.
        write_header: Add or update ``X-Amz-Content-SHA256``.  The
            streaming marker is written regardless, since the receiver
            needs it to parse the framing.

    Returns:
        The payload hash.

    Raises:
        InvalidHeaderValueError: Chunked mode with a malformed
            ``Content-Length``.
        UnreadableBodyError: The body stream has to be hashed but is
            not seekable, is not binary, or failed while being read.
    """
    headers = request.headers
    header_value = headers.get(X_AMZ_CONTENT_SHA256)

    if request.use_chunk_encoding:
        content_hash = STREAMING_BODY_SHA256
        _prepare_chunked_headers(request, chunk_size)
        write_header = True
    elif request.content_sha256 is not None:
        content_hash = request.content_sha256
    elif header_value is not None:
        return header_value
    elif isinstance(request.body, Streamed):
        content_hash = _hash_streamed_body(request.body.stream)
    else:
        content_hash = sha256_hex(get_request_payload_bytes(request))

    if write_header:
        headers[X_AMZ_CONTENT_SHA256] = content_hash

    logger.debug("Resolved payload hash: %s", content_hash)
    return content_hash
