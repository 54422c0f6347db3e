from typing import Any


class AVLMapError(Exception):
    """Base class for errors raised by avlmap."""


class InvariantError(AVLMapError):
    """Raised by the strict validator when a structural invariant is broken."""

    def __init__(self, key: Any, reason: str):
        super().__init__(f"invariant violated at key {key!r}: {reason}")
        self.key = key
        self.reason = reason


class KeyCoercionError(AVLMapError, ValueError):
    """Raised when a raw key cannot be converted to the configured key type."""

    def __init__(self, raw: str, key_type: str):
        super().__init__(f"cannot convert {raw!r} to {key_type}")
        self.raw = raw
        self.key_type = key_type
