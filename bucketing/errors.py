"""
Error taxonomy for the bucketing engines.

All errors are raised synchronously at the point of detection and
propagate through the recursive evaluation unhandled. A malformed tree
or bad input aborts the whole run.
"""


class BucketingError(Exception):
    """Base class for all bucketing errors."""
    pass


class UnsupportedOperation(BucketingError, ValueError):
    """Raised when a tree carries an unknown op tag."""

    def __init__(self, op, path: str = "root"):
        self.op = op
        self.path = path
        super().__init__(f"{path}: unsupported op '{op}'")


class TreeValidationError(BucketingError, ValueError):
    """Raised when a tree node is missing fields or has the wrong shape."""
    pass


class TypeMismatch(BucketingError, TypeError):
    """Raised when an operand evaluates to the wrong kind of value."""
    pass


class InvalidArgument(BucketingError, ValueError):
    """Raised for out-of-domain values (probabilities, empty choices, ...)."""
    pass


__all__ = [
    "BucketingError",
    "UnsupportedOperation",
    "TreeValidationError",
    "TypeMismatch",
    "InvalidArgument",
]
