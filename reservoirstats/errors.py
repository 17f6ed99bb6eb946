"""Exception types raised by reservoirstats.

Every failure in this library is a caller-input violation detected
synchronously at the call boundary. Such failures raise
InvalidArgumentError, which subclasses ValueError so existing
``except ValueError`` handlers keep working.
"""

from __future__ import annotations

__all__ = ["InvalidArgumentError"]


class InvalidArgumentError(ValueError):
    """An argument violates the contract of the operation it was passed to.

    Raised before any state is mutated: a failed construction leaves no
    instance behind and a failed restore leaves the target untouched.
    """
