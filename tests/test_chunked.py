# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for aws4sign/chunked.py."""

import io
import re
from unittest.mock import MagicMock

import pytest

from aws4sign.chunked import ChunkedPayloadSigner, chunk_string_to_sign
from aws4sign.config import SignerConfig
from aws4sign.errors import SigningError, UnreadableBodyError
from aws4sign.payload import EMPTY_BODY_SHA256, compute_chunked_content_length
from aws4sign.request import Credentials, SignableRequest, Streamed
from aws4sign.signer import AWS4Signer, SigningResult
from tests.vectors import (
    S3_ACCESS_KEY,
    S3_CHUNK_SIGNATURES,
    S3_CHUNK_SIZE,
    S3_CHUNKED_LENGTH,
    S3_DECODED_LENGTH,
    S3_SECRET_KEY,
    S3_SEED_SIGNATURE,
    S3_SIGNED_AT,
    SUITE_SIGNED_AT,
)


_FRAME_RE = re.compile(rb"([0-9a-f]+);chunk-signature=([0-9a-f]{64})\r\n")


def _seed() -> SigningResult:
    return SigningResult(
        access_key="AKID",
        signed_at=SUITE_SIGNED_AT,
        signed_headers="host;x-amz-content-sha256;x-amz-date",
        scope="20150830/us-east-1/s3/aws4_request",
        signing_key=b"\x07" * 32,
        signature=b"\x00" * 32,
    )


def _parse_frames(body: bytes) -> list[tuple[bytes, str]]:
    """Split an aws-chunked body into (data, signature) pairs."""
    frames = []
    pos = 0
    while pos < len(body):
        m = _FRAME_RE.match(body, pos)
        assert m is not None, f"bad frame header at {pos}"
        size = int(m.group(1), 16)
        start = m.end()
        data = body[start : start + size]
        assert body[start + size : start + size + 2] == b"\r\n"
        frames.append((data, m.group(2).decode()))
        pos = start + size + 2
    return frames


class _ShortReader:
    """Stream that returns at most ``limit`` bytes per read."""

    def __init__(self, data: bytes, limit: int) -> None:
        self._buf = io.BytesIO(data)
        self._limit = limit

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = self._limit
        return self._buf.read(min(size, self._limit))


class TestChunkStringToSign:
    """Tests for chunk_string_to_sign."""

    def test_layout(self) -> None:
        """Six lines: tag, time, scope, previous, empty hash, data hash."""
        sts = chunk_string_to_sign("T", "S", "prev", b"")
        assert sts.split("\n") == [
            "AWS4-HMAC-SHA256-PAYLOAD",
            "T",
            "S",
            "prev",
            EMPTY_BODY_SHA256,
            EMPTY_BODY_SHA256,
        ]


class TestChunkedPayloadSigner:
    """Tests for ChunkedPayloadSigner."""

    @pytest.mark.parametrize("length", [0, 1, 8191, 8192, 8193, 20000])
    def test_body_length_matches_declared(self, length: int) -> None:
        """Framed bytes equal the inflated Content-Length."""
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        body = b"".join(signer.iter_chunks(io.BytesIO(b"z" * length)))
        assert len(body) == compute_chunked_content_length(length, 8192)

    def test_frames_round_trip_data(self) -> None:
        """Frames carry the data in order and end with an empty chunk."""
        data = bytes(range(256)) * 100
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        frames = _parse_frames(b"".join(signer.iter_chunks(io.BytesIO(data))))

        assert [len(d) for d, _ in frames] == [8192, 8192, 8192, 1024, 0]
        assert b"".join(d for d, _ in frames) == data
        assert len({sig for _, sig in frames}) == len(frames)
        assert frames[-1][1] == signer.current_signature

    def test_signature_chain(self) -> None:
        """Each signature chains from the previous one."""
        a = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        b = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        a.sign_chunk(b"first")
        b.sign_chunk(b"other")
        assert a.sign_chunk(b"same") != b.sign_chunk(b"same")

    def test_hex_size_lowercase(self) -> None:
        """Chunk sizes are written as lowercase hex."""
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        frame = signer.sign_chunk(b"x" * 0xABC)
        assert frame.startswith(b"abc;chunk-signature=")

    def test_no_chunks_after_terminal(self) -> None:
        """The terminal chunk ends the body."""
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        list(signer.iter_chunks(io.BytesIO(b"data")))
        with pytest.raises(SigningError):
            signer.sign_chunk(b"more")

    def test_short_reads_fill_chunks(self) -> None:
        """Partial reads are accumulated into full chunks."""
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        stream = _ShortReader(b"q" * 10000, limit=100)
        frames = _parse_frames(b"".join(signer.iter_chunks(stream)))
        assert [len(d) for d, _ in frames] == [8192, 1808, 0]

    def test_read_error(self) -> None:
        """A failing stream raises UnreadableBodyError."""
        stream = MagicMock()
        stream.read.side_effect = OSError("reset")
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        with pytest.raises(UnreadableBodyError, match="reset"):
            list(signer.iter_chunks(stream))

    def test_text_stream(self) -> None:
        """A text stream raises UnreadableBodyError."""
        signer = ChunkedPayloadSigner(_seed(), chunk_size=8192)
        stream = io.StringIO("text")
        with pytest.raises(UnreadableBodyError):
            list(signer.iter_chunks(stream))  # type: ignore[arg-type]


class TestS3ChunkedUpload:
    """End-to-end against the documented S3 chunked upload."""

    def test_seed_and_chunk_signatures(self) -> None:
        """Seed and every chunk signature match the published values."""
        data = b"a" * S3_DECODED_LENGTH
        request = SignableRequest(
            method="PUT",
            endpoint="https://s3.amazonaws.com",
            resource_path="/examplebucket/chunkObject.txt",
            headers={
                "Content-Length": str(S3_DECODED_LENGTH),
                "x-amz-storage-class": "REDUCED_REDUNDANCY",
            },
            body=Streamed(io.BytesIO(data)),
            use_chunk_encoding=True,
        )
        signer = AWS4Signer(
            SignerConfig(
                region="us-east-1", service="s3", chunk_size=S3_CHUNK_SIZE
            )
        )
        seed = signer.sign(
            request,
            Credentials(S3_ACCESS_KEY, S3_SECRET_KEY),
            signed_at=S3_SIGNED_AT,
        )

        assert request.headers["Content-Length"] == str(S3_CHUNKED_LENGTH)
        assert seed.signed_headers == (
            "content-encoding;content-length;host;x-amz-content-sha256;"
            "x-amz-date;x-amz-decoded-content-length;x-amz-storage-class"
        )
        assert seed.signature_hex == S3_SEED_SIGNATURE

        chunk_signer = ChunkedPayloadSigner(seed, chunk_size=S3_CHUNK_SIZE)
        body = b"".join(chunk_signer.iter_chunks(request.body.stream))
        frames = _parse_frames(body)

        assert len(body) == S3_CHUNKED_LENGTH
        assert [len(d) for d, _ in frames] == [65536, 1024, 0]
        assert tuple(sig for _, sig in frames) == S3_CHUNK_SIGNATURES
