"""
common.exceptions

Exception hierarchy for canlog-decoder.

Everything raised on purpose by the decoder descends from ``CanLogError``.
Run-level failures (``ConfigError``, ``InputError``, ``OutputError``) abort
a decode run; ``DecodeError`` and ``RangeError`` are scoped to a single
(message, record) pair and are also ``ValueError`` subclasses, so library
callers that only care about bad input can catch them generically.
"""


class CanLogError(Exception):
    """Root of the canlog-decoder exception hierarchy."""


class ConfigError(CanLogError):
    """The YAML configuration is unreadable, unparsable or invalid."""


class InputError(CanLogError):
    """The record source cannot be opened or read."""


class OutputError(CanLogError):
    """The output destination cannot be created or written."""


class DecodeError(CanLogError, ValueError):
    """A payload or bit string is not valid hex / binary text."""


class RangeError(CanLogError, ValueError):
    """A requested bit span does not fit inside the available bits."""
