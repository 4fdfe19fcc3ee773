"""Utility helpers for core modules."""

from __future__ import annotations

import os
import re


def sanitize_identifier(identifier: str) -> str:
    """Return a filesystem-safe version of ``identifier``.

    The input string is reduced to its basename and any character outside the
    ``[A-Za-z0-9_]`` set is replaced with an underscore.  If the sanitized value
    would be empty, ``"unknown"`` is returned.
    """
    base = os.path.basename(identifier)
    sanitized = re.sub(r"[^A-Za-z0-9_]", "_", base)
    return sanitized or "unknown"


def normalize_sensor(sensor: str) -> str:
    """Return the canonical upper-case sensor key (``"l8"`` -> ``"L8"``)."""
    if not isinstance(sensor, str) or not sensor.strip():
        raise ValueError("Sensor must be a non-empty string such as 'L8' or 'S2'")
    return sensor.strip().upper()
