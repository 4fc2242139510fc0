"""HTTP clients used by the engine."""

from .base import BaseHttpClient, run_blocking, safe_json
from .identity import IdentityLookupClient, IdentityLookupError

__all__ = [
    "BaseHttpClient",
    "IdentityLookupClient",
    "IdentityLookupError",
    "run_blocking",
    "safe_json",
]
