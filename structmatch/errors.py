"""
structmatch.errors — Exception types raised by the library.
"""

from typing import Any


class StructMatchError(Exception):
    """Base class for errors raised by structmatch."""


class NormalizationError(StructMatchError, ValueError):
    """
    A value could not be coerced into the canonical model.

    Raised when the serialization fallback rejects a value (a function,
    a generator, a dict with tuple keys, a reference cycle, ...).  The
    underlying ``json`` error is chained as ``__cause__``.
    """

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class StopTransform(Exception):
    """
    Raised by a transform function to end the walk early.

    Not an error: ``transform()`` catches it and returns the tree as
    transformed so far.
    """
