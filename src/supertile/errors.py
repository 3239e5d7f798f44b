"""Contains the exception types raised by the solving core."""


class SupertileError(Exception):
    """Base class for all errors raised by the solving core."""


class MalformedRuleError(SupertileError, ValueError):
    """Raised when a pattern, score or adjacency record cannot be turned into a valid rule."""


class EmptyDomainError(SupertileError, RuntimeError):
    """Raised when a weighted draw is requested from an empty (or weightless) set of candidates."""
