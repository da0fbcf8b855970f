from __future__ import annotations


class FahrplanError(Exception):
    pass


class InputDataError(FahrplanError):
    """The schedule source is missing, unreadable or structurally broken."""


class EmptyInputError(FahrplanError, ValueError):
    """A nearest-match was requested over an empty set of timestamps."""


class OutOfBoundsError(FahrplanError, IndexError):
    """A grid cell was addressed outside the configured matrix."""
