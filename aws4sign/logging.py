# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging configuration with secret redaction.

The signer logs canonical requests and strings to sign at DEBUG level.
Those never contain the secret key, but they can contain header values
an application considers sensitive (session tokens, for instance), and
the Authorization header carries a live signature.

Usage:
    # In applications
    from aws4sign.logging import configure_logging
    configure_logging(level=logging.DEBUG)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.debug("Canonical request:\\n%s", canonical_request)
"""

import logging
import re
from typing import ClassVar


_SIGNATURE_RE = re.compile(r"(Signature=)[0-9a-fA-F]+")


class SecretFilter(logging.Filter):
    """Logging filter that redacts secrets from log output.

    Registered secrets are replaced with ``[REDACTED]`` wherever they
    appear.  Signatures following ``Signature=`` are always redacted.

    Example:
        filter = SecretFilter()
        filter.register_secret("session-token-value")
        handler.addFilter(filter)
        logger.info("Using token: session-token-value")
        # Output: "Using token: [REDACTED]"
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def _redact(self, text: str) -> str:
        if self._pattern is not None:
            text = self._pattern.sub("[REDACTED]", text)
        return _SIGNATURE_RE.sub(r"\1[REDACTED]", text)

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter log record by redacting secrets.

        Args:
            record: The log record to filter.

        Returns:
            Always True (record is never suppressed, only modified).
        """
        record.msg = self._redact(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self._redact(arg) if isinstance(arg, str) else arg
                    for key, arg in record.args.items()
                }
            else:
                record.args = tuple(
                    self._redact(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )
        return True

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Register a secret to be redacted from all log output.

        Args:
            secret: The secret string to redact. Empty strings are ignored.
        """
        if secret:
            cls._secrets.add(secret)
            cls._rebuild_pattern()

    @classmethod
    def clear_secrets(cls) -> None:
        """Clear all registered secrets. Primarily for testing."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        """Rebuild the compiled regex pattern from registered secrets."""
        if cls._secrets:
            # Longest first so a secret containing another is fully masked
            ordered = sorted(cls._secrets, key=len, reverse=True)
            escaped = [re.escape(s) for s in ordered]
            cls._pattern = re.compile("|".join(escaped))
        else:
            cls._pattern = None


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Configure the root logger.

    Args:
        level: The logging level (e.g., logging.INFO, logging.DEBUG).
        format_string: Custom format string. If None, uses default format.
        add_secret_filter: Whether to add the SecretFilter to redact secrets.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))

    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)
