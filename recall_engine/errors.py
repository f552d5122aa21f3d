"""
Exception types raised by the recall engine.

Core functions are total over well-typed input, so most of these are raised
at the boundary: parsing ratings and stored records, or talking to a store.
"""

from __future__ import annotations


class RecallEngineError(Exception):
    """Base class for all recall engine errors."""


class InvalidRatingError(RecallEngineError, ValueError):
    """A rating outside forgot / remembered / perfect."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid rating {value!r}: expected 'forgot', 'remembered' or 'perfect'"
        )


class InvalidCardStateError(RecallEngineError, ValueError):
    """A stored lifecycle state outside New / Learning / Review / Relearning."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid card state {value!r}: expected 'New', 'Learning', 'Review' or 'Relearning'"
        )


class EmptyPoolError(RecallEngineError, ValueError):
    """A study set was requested from an empty item pool."""


class UnknownItemError(RecallEngineError, KeyError):
    """An answer was recorded for a key that is not part of the study set."""


class StorageError(RecallEngineError):
    """Progress could not be read from or written to the store."""


class StorageQuotaExceededError(StorageError):
    """The store has no room left for the write."""


class DataCorruptionError(RecallEngineError):
    """Stored or imported data failed validation."""
