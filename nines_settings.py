"""
Runtime switches for the nines layout math.

Both switches come from environment variables with the ``NINES_`` prefix:

    NINES_DEBUG=1             extra asserts on the trusted construction path
    NINES_UNSIGNED_SCALAR=1   accept underflow-prone unsigned scalars
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class NinesSettings(BaseSettings):
    """Frozen settings object, read from the environment once per cache."""

    model_config = {
        "frozen": True,
        "env_prefix": "NINES_",
    }

    # Re-check invariants that are already guaranteed by construction.
    debug: bool = False
    # Unsigned integers are trivial to underflow in UI layout.
    unsigned_scalar: bool = False


@lru_cache(maxsize=None)
def get_settings() -> NinesSettings:
    """Return the process-wide settings.  Call ``get_settings.cache_clear()`` to re-read."""
    return NinesSettings()
