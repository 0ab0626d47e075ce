# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""SHA-256 and HMAC-SHA256 primitives used by the signer."""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO


#: Block size used when hashing a body stream.
STREAM_READ_SIZE = 64 * 1024


def _to_bytes(data: str | bytes | bytearray) -> bytes | bytearray:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def compute_keyed_hash(
    key: bytes | bytearray, data: str | bytes | bytearray
) -> bytes:
    """Return the raw HMAC-SHA256 of ``data`` under ``key``."""
    return hmac.new(key, _to_bytes(data), hashlib.sha256).digest()


def sign_blob(key: bytes | bytearray, data: str | bytes) -> bytes:
    """HMAC an arbitrary blob with a derived signing key."""
    return compute_keyed_hash(key, data)


def sha256_hex(data: str | bytes | bytearray) -> str:
    """Lowercase hex SHA-256 of ``data``."""
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def hash_stream(stream: BinaryIO, block_size: int = STREAM_READ_SIZE) -> str:
    """Hash a readable binary stream to lowercase hex SHA-256.

    The stream is consumed block by block so the body never has to be
    held in memory at once.  Read errors propagate to the caller.

    Args:
        stream: Readable binary stream positioned at the body start.
        block_size: Number of bytes requested per read.

    Returns:
        Hex-encoded digest of everything read until EOF.
    """
    digest = hashlib.sha256()
    while True:
        block = stream.read(block_size)
        if not block:
            break
        digest.update(block)
    return digest.hexdigest()


@contextmanager
def scrubbed(buffer: bytearray) -> Iterator[bytearray]:
    """Yield ``buffer`` and overwrite it with zeros on every exit path.

    Best effort only: Python may still hold copies of the data (e.g. the
    ``str`` the buffer was encoded from), so this narrows the lifetime of
    sensitive bytes rather than guaranteeing erasure.
    """
    try:
        yield buffer
    finally:
        for i in range(len(buffer)):
            buffer[i] = 0
