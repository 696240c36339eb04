from __future__ import annotations


class CurlCountError(Exception):
    """Base class for every error raised by the counter core."""


class InvalidStateError(CurlCountError):
    """Operation not allowed in the current state (e.g. relabeling while recording)."""


class EmptyDataError(CurlCountError):
    """Nothing has been collected yet."""


class MalformedInputError(CurlCountError):
    """Input could not be parsed into joints or samples."""
