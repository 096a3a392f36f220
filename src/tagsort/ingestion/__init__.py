"""Filesystem views consumed by the rule engine."""

from .detectors import ContentKind, TypeDetector
from .discovery import DirectoryScanner, list_directory, sort_for_display
from .errors import ContentDetectionError, DirectoryListingError, UnknownContentError
from .models import EntryType, ItemSnapshot, measure_size

__all__ = [
    "ContentDetectionError",
    "ContentKind",
    "DirectoryListingError",
    "DirectoryScanner",
    "EntryType",
    "ItemSnapshot",
    "TypeDetector",
    "UnknownContentError",
    "list_directory",
    "measure_size",
    "sort_for_display",
]
