"""Domain errors raised by services and mapped to HTTP codes in main.py.

UnknownSiteError (sites.py) → 400, NotFoundError → 404, StoreWriteError → 500.
Store read failures never reach here; the record store swallows them.
"""

from .sites import UnknownSiteError

__all__ = ["UnknownSiteError", "NotFoundError", "StoreWriteError"]


class NotFoundError(LookupError):
    """A record the caller named does not exist in the site's sheet."""


class StoreWriteError(RuntimeError):
    """The store refused a write the operation cannot continue without."""
