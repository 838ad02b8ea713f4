"""URL helpers."""

from __future__ import annotations


def join_url(base: str, path: str) -> str:
    """Join two URL parts with exactly one slash between them."""
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"
