from __future__ import annotations


class MonoidError(Exception):
    """Base class for engine errors."""


class InvalidContributionError(MonoidError, TypeError):
    """A contribution value does not match the monoid's identity type."""


class UnknownMonoidError(MonoidError, LookupError):
    """No monoid is registered under the requested name."""
