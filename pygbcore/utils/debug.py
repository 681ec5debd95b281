"""Category-based debug logging controlled by ``PYGBCORE_DEBUG``.

``PYGBCORE_DEBUG`` holds category names separated by commas or spaces, for
example ``cpu,bus``. ``all`` turns on every category; ``all,-bus`` turns on
everything except the bus. Messages go to stdout as ``[cpu] message``.
"""

from __future__ import annotations

import os

ENV_VAR = "PYGBCORE_DEBUG"
CATEGORIES = frozenset({"cpu", "bus", "loader", "trace"})

_enabled: frozenset[str] | None = None


def parse_categories(value: str) -> frozenset[str]:
    """Resolve an environment value into the set of enabled categories."""

    enabled: set[str] = set()
    excluded: set[str] = set()
    for token in value.replace(",", " ").lower().split():
        if token.startswith("-"):
            excluded.add(token[1:])
        elif token == "all":
            enabled |= CATEGORIES
        else:
            enabled.add(token)
    return frozenset(enabled - excluded)


def reset_debug_categories() -> None:
    """Forget the cached categories so the environment is read again."""

    global _enabled
    _enabled = None


def debug_enabled(category: str) -> bool:
    global _enabled
    if _enabled is None:
        _enabled = parse_categories(os.environ.get(ENV_VAR, ""))
    return category.lower() in _enabled


def debug_log(category: str, message: str, *args) -> None:
    if not debug_enabled(category):
        return
    if args:
        try:
            message = message % args
        except (TypeError, ValueError):
            message = f"{message} {args!r}"
    print(f"[{category}] {message}")
