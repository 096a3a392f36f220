"""State management errors."""


class StateError(Exception):
    """Base exception for state repository operations."""
