"""Errors raised while reading watched directories and their entries."""


class DirectoryListingError(OSError):
    """Raised when a directory cannot be enumerated.

    Listing failures are fatal to the directory's rule pass for the current tick
    but never to the scheduler itself.
    """


class ContentDetectionError(Exception):
    """Base exception for content sniffing."""


class UnknownContentError(ContentDetectionError):
    """Raised when no known file signature matches."""
