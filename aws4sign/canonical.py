# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Canonical request assembly."""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Mapping

from aws4sign.encoding import uri_encode
from aws4sign.headers import canonicalize_header_names, canonicalize_headers


logger = logging.getLogger(__name__)


def canonicalize_resource_path(endpoint: str | None, resource_path: str) -> str:
    """Build the canonical URI for a resource.

    The endpoint's own path (if any) is prefixed to ``resource_path``.
    Runs of ``/`` collapse to one, a leading ``/`` is always present and a
    trailing ``/`` is kept.  Each segment is URI-encoded once.  A query
    after ``?`` in ``resource_path`` is dropped; it is signed with the
    query parameters.

    Args:
        endpoint: Endpoint URL, or None to use ``resource_path`` alone.
        resource_path: Unencoded resource path.

    Returns:
        Canonical path; ``/`` when both paths are empty.
    """
    resource_path = resource_path.partition("?")[0]
    base = urllib.parse.urlsplit(endpoint).path if endpoint else ""
    path = f"{base}/{resource_path}" if base else resource_path

    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return "/"

    canonical = "/" + "/".join(uri_encode(segment) for segment in segments)
    if path.endswith("/"):
        canonical += "/"
    return canonical


def canonicalize_request(
    *,
    endpoint: str | None,
    resource_path: str,
    http_method: str,
    sorted_headers: Mapping[str, str],
    canonical_query_string: str,
    precomputed_body_hash: str | None,
) -> str:
    """Assemble the canonical request string.

    Layout, one component per line::

        METHOD
        CANONICAL_PATH
        CANONICAL_QUERY
        CANONICAL_HEADERS   (each header already newline-terminated)
        SIGNED_HEADER_NAMES
        BODY_HASH

    Args:
        endpoint: Endpoint URL (its path prefixes the resource path).
        resource_path: Unencoded resource path.
        http_method: Method exactly as sent; not normalized.
        sorted_headers: Output of ``sort_and_prune_headers``.
        canonical_query_string: Output of the query canonicalizer.
        precomputed_body_hash: Payload hash.  When None the last line is
            left empty, which most receivers will reject.

    Returns:
        Canonical request string.
    """
    if precomputed_body_hash is None:
        logger.warning(
            "No payload hash available; signing with an empty body hash"
        )
        precomputed_body_hash = ""

    return "\n".join(
        [
            http_method,
            canonicalize_resource_path(endpoint, resource_path),
            canonical_query_string,
            canonicalize_headers(sorted_headers),
            canonicalize_header_names(sorted_headers),
            precomputed_body_hash,
        ]
    )
