"""Core data models for the chat overlay engine."""

from enum import Enum


class CasingPolicy(str, Enum):
    """How a sender's handle is turned into a display name."""

    ALL_CAPS = "all_caps"
    ALL_LOWER = "all_lower"
    FIRST_CAP = "first_cap"
    REMOTE_LOOKUP = "remote_lookup"
    NONE = "none"

    def apply(self, handle: str) -> str:
        """Derive a display form locally.

        REMOTE_LOOKUP cannot be derived locally and returns the handle unchanged;
        the resolver performs the lookup itself.
        """
        if self is CasingPolicy.ALL_CAPS:
            return handle.upper()
        if self is CasingPolicy.ALL_LOWER:
            return handle.lower()
        if self is CasingPolicy.FIRST_CAP:
            return handle[:1].upper() + handle[1:].lower()
        return handle

    @classmethod
    def from_value(cls, value: object, default: "CasingPolicy | None" = None) -> "CasingPolicy":
        """Parse a stored value, falling back to the default on anything unknown."""
        if default is None:
            default = cls.NONE
        if isinstance(value, cls):
            return value
        if value is None:
            return default
        try:
            return cls(str(value).lower())
        except ValueError:
            return default
