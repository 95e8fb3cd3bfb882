"""Connection strength matrix.

Databases are treated as sources of truth: edges leaving a DB are strong,
edges pointing back into a DB are weak dependency signals.
"""

from __future__ import annotations

DEFAULT_STRENGTH = 0.5

STRENGTH_MATRIX: dict[str, dict[str, float]] = {
    "DB": {"API": 0.9, "APP": 0.8, "STORAGE": 0.7, "PIPES": 0.6},
    "STORAGE": {"DB": 0.8, "API": 0.7, "APP": 0.6, "PIPES": 0.9},
    "API": {"APP": 0.6, "PIPES": 0.7, "STORAGE": 0.5, "DB": 0.4},
    "APP": {"API": 0.8, "PIPES": 0.6, "STORAGE": 0.5, "DB": 0.3},
    "PIPES": {"API": 0.7, "APP": 0.5, "STORAGE": 0.8, "DB": 0.4},
}


def strength(source_kind: str, target_kind: str) -> float:
    """Return the weight for a *source_kind* → *target_kind* edge (0.5 if unlisted)."""
    return STRENGTH_MATRIX.get(source_kind, {}).get(target_kind, DEFAULT_STRENGTH)
