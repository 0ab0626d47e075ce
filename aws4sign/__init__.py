# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""AWS Signature Version 4 request signing.

Provides:
- Request description types (SignableRequest, Credentials, body variants)
- The signer (AWS4Signer) and its signing result
- Chunk signing for aws-chunked uploads (ChunkedPayloadSigner)
- Configuration loading (SignerConfig)
"""

from aws4sign.chunked import ChunkedPayloadSigner
from aws4sign.config import ConfigError, SignerConfig
from aws4sign.errors import (
    FormattingError,
    InvalidHeaderValueError,
    MalformedQueryError,
    SigningError,
    UnreadableBodyError,
)
from aws4sign.headers import ParsedAuthorization, parse_authorization_header
from aws4sign.payload import (
    EMPTY_BODY_SHA256,
    STREAMING_BODY_SHA256,
    compute_chunked_content_length,
)
from aws4sign.request import (
    Absent,
    Body,
    Buffered,
    Credentials,
    SignableRequest,
    Streamed,
)
from aws4sign.signer import (
    AWS4_ALGORITHM_TAG,
    AWS4Signer,
    SigningResult,
    compose_signing_key,
)


__all__ = [
    # request
    "Absent",
    "Body",
    "Buffered",
    "Credentials",
    "SignableRequest",
    "Streamed",
    # signer
    "AWS4_ALGORITHM_TAG",
    "AWS4Signer",
    "SigningResult",
    "compose_signing_key",
    # chunked
    "ChunkedPayloadSigner",
    "EMPTY_BODY_SHA256",
    "STREAMING_BODY_SHA256",
    "compute_chunked_content_length",
    # config
    "ConfigError",
    "SignerConfig",
    # errors
    "FormattingError",
    "InvalidHeaderValueError",
    "MalformedQueryError",
    "SigningError",
    "UnreadableBodyError",
    # headers
    "ParsedAuthorization",
    "parse_authorization_header",
]
