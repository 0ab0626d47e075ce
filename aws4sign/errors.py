# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Exceptions raised while signing a request.

Every failure surfaced by the signing pipeline derives from
``SigningError``.  Nothing here is retried; a failed signing call may
leave the request's headers partially mutated.
"""


class SigningError(Exception):
    """Base exception for request signing failures."""


class UnreadableBodyError(SigningError):
    """The request body stream could not be read while hashing it."""


class FormattingError(SigningError):
    """A request component could not be put into canonical form."""


class MalformedQueryError(FormattingError):
    """A raw query string could not be tokenized consistently."""


class InvalidHeaderValueError(FormattingError):
    """A header carries a value the signer cannot interpret."""
