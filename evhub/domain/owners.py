"""EV owner identifiers."""
from __future__ import annotations


def normalize_nic(value: str | None) -> str | None:
    """Canonical NIC form (trimmed, upper-cased); blank values become None."""
    cleaned = (value or "").strip().upper()
    return cleaned or None
