"""Errors raised while evaluating rules."""


class RuleError(Exception):
    """Base exception for rule evaluation."""


class PredicateError(RuleError):
    """Raised when a predicate cannot be evaluated for an item.

    The original filesystem or content-detection error is kept as ``__cause__``.
    The item is excluded from the batch; its siblings are still evaluated.
    """
