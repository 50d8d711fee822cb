"""Utility helpers for normalising resource names."""

from __future__ import annotations

_NAME_SEPARATORS = str.maketrans({"/": "-", ":": "-", "_": "-", "#": "-"})


def normalize_name(value: str) -> str:
    """Return ``value`` with every ``/``, ``:``, ``_`` and ``#`` replaced by ``-``.

    Used to turn branch names such as ``feature/login`` into valid channel
    ids. Everything else, letter case included, is left untouched, so the
    transformation is idempotent and defined for the empty string.
    """

    return value.translate(_NAME_SEPARATORS)
