# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across the signer tests."""

from datetime import datetime

import pytest

from aws4sign.config import SignerConfig
from aws4sign.request import Credentials, SignableRequest
from aws4sign.signer import AWS4Signer
from tests.vectors import (
    SUITE_ACCESS_KEY,
    SUITE_REGION,
    SUITE_SECRET_KEY,
    SUITE_SERVICE,
    SUITE_SIGNED_AT,
)


@pytest.fixture
def credentials() -> Credentials:
    """Test suite credentials."""
    return Credentials(SUITE_ACCESS_KEY, SUITE_SECRET_KEY)


@pytest.fixture
def signed_at() -> datetime:
    """Fixed signing instant (2015-08-30T12:36:00Z)."""
    return SUITE_SIGNED_AT


@pytest.fixture
def suite_config() -> SignerConfig:
    """Client context matching the SigV4 test suite.

    The suite does not sign X-Amz-Content-SHA256.
    """
    return SignerConfig(
        region=SUITE_REGION,
        service=SUITE_SERVICE,
        content_sha256_header=False,
    )


@pytest.fixture
def signer(suite_config: SignerConfig) -> AWS4Signer:
    """Signer for the test suite client context."""
    return AWS4Signer(suite_config)


@pytest.fixture
def s3_signer() -> AWS4Signer:
    """Signer that adds X-Amz-Content-SHA256, as S3 requires."""
    return AWS4Signer(SignerConfig(region="us-east-1", service="s3"))


@pytest.fixture
def vanilla_request() -> SignableRequest:
    """GET / against example.amazonaws.com with no query and no body."""
    return SignableRequest(
        method="GET",
        endpoint="https://example.amazonaws.com",
        resource_path="/",
    )
