"""Exceptions raised by h3accel."""

from typing import Optional


class H3AccelError(Exception):
    """Base error for all h3accel operations."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class EmptyArrayError(H3AccelError, ValueError):
    """Raised when an array with a zero-sized dimension is given."""
    pass


class InvalidResolutionError(H3AccelError, ValueError):
    """Raised when a resolution is outside the range supported by the grid."""
    pass


class NoMatchingResolutionError(H3AccelError):
    """Raised when no resolution satisfies the requested search mode."""
    pass


class InsufficientNumberOfEdgesError(H3AccelError, ValueError):
    """Raised when fewer than two distinct edges are given for a long edge."""
    pass


class SegmentedPathError(H3AccelError):
    """Raised when an edge path does not form one connected line."""
    pass


class SpatialIndexError(H3AccelError):
    """Raised when the spatial index can not be built."""
    pass


class EdgeEndpointInvalidError(H3AccelError, ValueError):
    """Raised when the origin or destination of a directed edge can not be decoded."""
    pass
