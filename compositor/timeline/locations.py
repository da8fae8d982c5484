"""Helpers for source location handles."""

from __future__ import annotations

import os


def get_base_url() -> str:
    return os.environ.get("COMPOSITOR_BASE_URL", "")


def normalize_location(location: str, base_url: str | None = None) -> str:
    """Prefix relative locations with ``base_url``.

    Locations that already carry an ``http`` scheme, and every location when no
    base URL is configured, are returned unchanged apart from surrounding
    whitespace.
    """

    value = (location or "").strip()
    if not value or value.startswith("http"):
        return value
    prefix = base_url if base_url is not None else get_base_url()
    if not prefix:
        return value
    cleaned_prefix = prefix.rstrip("/")
    cleaned_path = value if value.startswith("/") else f"/{value}"
    return f"{cleaned_prefix}{cleaned_path}"


__all__ = ["get_base_url", "normalize_location"]
