"""Exceptions raised by the scoring engine and its stores."""


class GreenScoreError(Exception):
    """Base class for all GreenScore errors."""

    pass


class InvalidArgumentError(GreenScoreError, ValueError):
    """Raised when a caller violates an input contract (negative count, unknown vote type)."""

    pass


class CatalogError(GreenScoreError):
    """Raised when a badge catalog file is malformed or has the wrong shape."""

    pass


class StoreError(GreenScoreError):
    """Raised when a tally store cannot complete a write after retries."""

    pass


class DuplicateVoteError(GreenScoreError):
    """Raised by a store when a user has already voted on this (shop, badge)."""

    pass
