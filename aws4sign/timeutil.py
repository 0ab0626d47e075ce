# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Timestamp helpers for the ISO 8601 basic formats used in signing."""

from datetime import UTC, datetime, timedelta


#: ``YYYYMMDDThhmmssZ``, used for X-Amz-Date and the string to sign.
ISO8601_BASIC_DATETIME_FORMAT = "%Y%m%dT%H%M%SZ"

#: ``YYYYMMDD``, used for the credential scope.
ISO8601_BASIC_DATE_FORMAT = "%Y%m%d"


def to_utc(dt: datetime) -> datetime:
    """Normalize ``dt`` to an aware UTC datetime with whole seconds.

    Naive datetimes are taken to already be in UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt.replace(microsecond=0)


def corrected_utc_now(offset_seconds: float = 0) -> datetime:
    """Current UTC time shifted by a known clock offset.

    Args:
        offset_seconds: Seconds to add to the local clock, e.g. the
            measured difference between server time and local time.
    """
    return to_utc(datetime.now(UTC) + timedelta(seconds=offset_seconds))


def format_date_time(dt: datetime, format_string: str) -> str:
    """Format ``dt`` in UTC using ``format_string``."""
    return to_utc(dt).strftime(format_string)


def iso8601_basic(dt: datetime) -> str:
    """Format as ``YYYYMMDDThhmmssZ``."""
    return format_date_time(dt, ISO8601_BASIC_DATETIME_FORMAT)


def iso8601_date(dt: datetime) -> str:
    """Format as ``YYYYMMDD``."""
    return format_date_time(dt, ISO8601_BASIC_DATE_FORMAT)
