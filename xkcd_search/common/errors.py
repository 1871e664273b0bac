"""
Exceptions raised by the xkcd search tool.

Errors that compromise a whole update or search propagate to the caller.
Errors scoped to a single comic (ComicNotFoundError, RateLimiterCancelled)
are logged and the comic is skipped.
"""


class XKCDSearchError(Exception):
    """Base class for all xkcd search errors."""


class RemoteUnavailableError(XKCDSearchError):
    """The latest comic metadata could not be fetched."""


class ComicNotFoundError(XKCDSearchError):
    """The remote API has no comic with the requested number."""

    def __init__(self, num):
        super().__init__(f"comic {num} not found")
        self.num = num


class RateLimiterCancelled(XKCDSearchError):
    """A rate limiter wait was cancelled before a slot was granted."""


class StoreOpenError(XKCDSearchError):
    """The index could not be opened or created."""


class BatchCommitError(XKCDSearchError):
    """Committing a batch of documents to the index failed."""


class QueryError(XKCDSearchError):
    """The underlying index query failed."""


class DataIntegrityError(XKCDSearchError):
    """The best matching document is missing its image URL."""
