"""
qvledger.version — semantic version string.

Kept tiny and dependency-free so packaging and hosts can import it early.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict

# Bump this when making a tagged release (semver).
__version__ = "0.1.0"

# Version of the snapshot encoding produced by qvledger.state.snapshot.
SNAPSHOT_FORMAT = 1


@lru_cache(maxsize=1)
def version_metadata() -> Dict[str, str]:
    """Structured version info for logs and diagnostics."""
    return {"version": __version__, "snapshot_format": str(SNAPSHOT_FORMAT)}


__all__ = ["__version__", "SNAPSHOT_FORMAT", "version_metadata"]
