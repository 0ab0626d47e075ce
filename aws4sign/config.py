# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Signer configuration.

A ``SignerConfig`` carries the client context a signing call needs: the
region and service the credential scope is narrowed to, plus a few knobs
for chunked uploads and clock correction.  It can be built directly or
loaded from a YAML file.  The default location follows the XDG Base
Directory Specification:

    ``$XDG_CONFIG_HOME/aws4sign/signer.yaml``
    (typically ``~/.config/aws4sign/signer.yaml``)

``!env`` tags resolve values from environment variables; a ``.env`` file
in the config directory or the working directory is loaded first.

Example::

    region: !env AWS_REGION
    service: execute-api
    chunk_size: 65536
    content_sha256_header: false
"""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_path

from aws4sign.payload import DEFAULT_CHUNK_SIZE


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "aws4sign"

#: Smallest chunk size receivers accept for aws-chunked uploads.
MIN_CHUNK_SIZE = 8 * 1024

_BOOL_TRUTHY = frozenset({"true", "1", "yes", "on"})
_BOOL_FALSY = frozenset({"false", "0", "no", "off"})

_dotenv_loaded = False


class ConfigError(Exception):
    """Base exception for configuration errors."""


def get_config_path() -> Path:
    """Return the default signer config file path.

    Returns:
        ``$XDG_CONFIG_HOME/aws4sign/signer.yaml``.
    """
    return user_config_path(_APP_NAME) / "signer.yaml"


def load_dotenv_once() -> None:
    """Load ``.env`` files once per process.

    The XDG config directory is read first, then the current working
    directory.  Existing environment variables are never overwritten.
    """
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    from dotenv import load_dotenv

    for env_path in (
        user_config_path(_APP_NAME) / ".env",
        Path.cwd() / ".env",
    ):
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug("Loaded .env from %s", env_path)

    _dotenv_loaded = True


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnvRef:
    """Value of an ``!env NAME`` tag, looked up when the config is built."""

    name: str

    def lookup(self) -> str | None:
        """Current value of the variable; unset and empty both give None."""
        return os.environ.get(self.name) or None


class _ConfigLoader(yaml.SafeLoader):
    """Safe YAML loader that understands ``!env``."""


def _construct_env_ref(loader: yaml.SafeLoader, node: yaml.Node) -> EnvRef:
    return EnvRef(str(loader.construct_scalar(node)))  # type: ignore[arg-type]


_ConfigLoader.add_constructor("!env", _construct_env_ref)


# ---------------------------------------------------------------------------
# Field conversion
# ---------------------------------------------------------------------------


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _BOOL_TRUTHY:
        return True
    if lowered in _BOOL_FALSY:
        return False
    raise ValueError(f"not a boolean: {text!r}")


#: Config keys and how their text form is parsed.  Scalars written as
#: plain YAML go through the same parser as ``!env`` values, so ``1.5``
#: is rejected for an integer field instead of being truncated.
_FIELD_PARSERS: dict[str, Callable[[str], Any]] = {
    "region": str,
    "service": str,
    "chunk_size": int,
    "clock_offset_seconds": float,
    "content_sha256_header": _parse_bool,
}

_REQUIRED_FIELDS = frozenset({"region", "service"})

_UNSET = object()


def _field_value(name: str, value: object) -> Any:
    """Convert one entry of a raw config mapping.

    Returns:
        The parsed value, or ``_UNSET`` when an optional entry is absent,
        null, or an ``!env`` tag whose variable is not set.

    Raises:
        ConfigError: A required entry is missing or the value does not
            parse.
    """
    if isinstance(value, EnvRef):
        text = value.lookup()
        if text is None:
            if name in _REQUIRED_FIELDS:
                raise ConfigError(
                    f"Required config '{name}': environment variable "
                    f"'{value.name}' is not set"
                )
            return _UNSET
    elif value is None:
        if name in _REQUIRED_FIELDS:
            raise ConfigError(f"Required config '{name}' is missing")
        return _UNSET
    elif isinstance(value, (list, dict)):
        raise ConfigError(f"Config '{name}' must be a scalar: {value!r}")
    else:
        text = str(value)

    try:
        return _FIELD_PARSERS[name](text)
    except ValueError as e:
        raise ConfigError(f"Invalid value for '{name}': {text!r}") from e


# ---------------------------------------------------------------------------
# Signer configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignerConfig:
    """Client context for signing requests.

    Attributes:
        region: Region the credential scope is narrowed to.
        service: Service name the credential scope is narrowed to.
        chunk_size: Data bytes per chunk for aws-chunked uploads.
        clock_offset_seconds: Correction added to the local clock when
            no explicit signing time is given.
        content_sha256_header: Add ``X-Amz-Content-SHA256`` (and thus
            sign it).  Chunked uploads always carry it.
    """

    region: str
    service: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    clock_offset_seconds: float = 0
    content_sha256_header: bool = True

    def __post_init__(self) -> None:
        """Validate configuration.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if not self.region:
            raise ConfigError("Region must not be empty")
        if not self.service:
            raise ConfigError("Service must not be empty")
        if "/" in self.region or "/" in self.service:
            raise ConfigError(
                f"Region and service must not contain '/': "
                f"{self.region!r}, {self.service!r}"
            )
        if self.chunk_size < MIN_CHUNK_SIZE:
            raise ConfigError(
                f"Chunk size must be >= {MIN_CHUNK_SIZE}: {self.chunk_size}"
            )

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "SignerConfig":
        """Load configuration from a YAML file.

        Values tagged with ``!env VAR_NAME`` are resolved from the
        environment at load time.  A ``.env`` file is loaded first if
        present.

        Args:
            config_path: Path to YAML config file.  Defaults to
                ``~/.config/aws4sign/signer.yaml`` (XDG).

        Returns:
            SignerConfig instance.

        Raises:
            ConfigError: If the file is missing or required values are
                absent or invalid.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            raw = yaml.load(f, Loader=_ConfigLoader)

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls.from_raw(raw)
        logger.info(
            "Signer config loaded: region=%s, service=%s",
            config.region,
            config.service,
        )
        return config

    @classmethod
    def from_raw(cls, raw: dict) -> "SignerConfig":
        """Build config from a parsed (but unresolved) mapping.

        Absent optional entries keep the dataclass defaults.

        Raises:
            ConfigError: On unknown keys, missing required entries or
                values that do not parse.
        """
        unknown = sorted(str(key) for key in raw if key not in _FIELD_PARSERS)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        fields: dict[str, Any] = {}
        for name in _FIELD_PARSERS:
            value = _field_value(name, raw.get(name))
            if value is not _UNSET:
                fields[name] = value
        return cls(**fields)
