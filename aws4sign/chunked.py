# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Framing and signing of aws-chunked request bodies.

A chunked upload is signed in two steps: the request itself is signed
with the ``STREAMING-AWS4-HMAC-SHA256-PAYLOAD`` placeholder (the seed
signature), then each chunk is signed with a signature chained from the
previous one.  Every chunk goes on the wire as::

    {hex size};chunk-signature={signature}\\r\\n{data}\\r\\n

and the body ends with a zero-length chunk.  The total length equals
``compute_chunked_content_length`` of the decoded body, which is what the
signer declared in Content-Length.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

from aws4sign.errors import SigningError, UnreadableBodyError
from aws4sign.hashing import sha256_hex, sign_blob
from aws4sign.payload import (
    CHUNK_SIGNATURE_HEADER,
    CRLF,
    DEFAULT_CHUNK_SIZE,
    EMPTY_BODY_SHA256,
)
from aws4sign.signer import AWS4_ALGORITHM_TAG, SigningResult


CHUNK_ALGORITHM_TAG = f"{AWS4_ALGORITHM_TAG}-PAYLOAD"


def chunk_string_to_sign(
    timestamp: str,
    scope: str,
    previous_signature: str,
    chunk_data: bytes,
) -> str:
    """Build the string to sign for one chunk.

    Args:
        timestamp: ISO8601 timestamp of the seed request.
        scope: Credential scope of the seed request.
        previous_signature: Previous chunk's (or seed) signature.
        chunk_data: Raw chunk data bytes.

    Returns:
        String to sign for this chunk.
    """
    return "\n".join(
        [
            CHUNK_ALGORITHM_TAG,
            timestamp,
            scope,
            previous_signature,
            EMPTY_BODY_SHA256,
            sha256_hex(chunk_data),
        ]
    )


class ChunkedPayloadSigner:
    """Produces signed aws-chunked frames for a body.

    Seeded with the ``SigningResult`` of the request that announced the
    chunked upload; each signed chunk advances the signature chain.
    """

    def __init__(
        self,
        seed: SigningResult,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the signer.

        Args:
            seed: Result of signing the request headers.
            chunk_size: Data bytes per full chunk.  Must match the size
                used to compute the declared Content-Length.
        """
        self._signing_key = seed.signing_key
        self._timestamp = seed.iso8601_datetime
        self._scope = seed.scope
        self._current_sig = seed.signature_hex
        self._chunk_size = chunk_size
        self._done = False

    @property
    def current_signature(self) -> str:
        """Signature of the most recently framed chunk (or the seed)."""
        return self._current_sig

    def sign_chunk(self, data: bytes) -> bytes:
        """Frame and sign one chunk.

        An empty ``data`` produces the terminal chunk, after which no
        further chunks may be signed.

        Raises:
            SigningError: The terminal chunk was already produced.
        """
        if self._done:
            raise SigningError("Chunked payload already terminated")

        string_to_sign = chunk_string_to_sign(
            self._timestamp, self._scope, self._current_sig, data
        )
        self._current_sig = sign_blob(self._signing_key, string_to_sign).hex()
        if not data:
            self._done = True

        header = f"{len(data):x}{CHUNK_SIGNATURE_HEADER}{self._current_sig}"
        return (header + CRLF).encode("ascii") + data + CRLF.encode("ascii")

    def _read_chunk(self, stream: BinaryIO) -> bytes:
        """Read up to one full chunk, tolerating short reads."""
        parts: list[bytes] = []
        remaining = self._chunk_size
        while remaining:
            block = stream.read(remaining)
            if not block:
                break
            parts.append(block)
            remaining -= len(block)
        return b"".join(parts)

    def iter_chunks(self, stream: BinaryIO) -> Iterator[bytes]:
        """Yield signed frames for ``stream``, ending with the terminal chunk.

        Raises:
            UnreadableBodyError: The stream failed while being read.
        """
        while True:
            try:
                data = self._read_chunk(stream)
            except (OSError, ValueError, TypeError) as e:
                raise UnreadableBodyError(
                    f"Failed to read chunked body: {e}"
                ) from e
            if not data:
                break
            yield self.sign_chunk(data)
        yield self.sign_chunk(b"")
