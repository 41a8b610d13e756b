"""Descriptive statistics that ignore missing values."""

from __future__ import annotations

from typing import Any, Iterable

import numpy as np

from exprcheck.errors import NoValidDataError


def pool_values(chunks: Iterable[Iterable[Any]]) -> np.ndarray:
    """Flatten several value sequences into one float array.

    ``None`` entries become NaN; anything that cannot be read as a number
    raises ``ValueError``.
    """
    arrays = [np.asarray(list(chunk), dtype=float).ravel() for chunk in chunks]
    if not arrays:
        return np.empty(0, dtype=float)
    return np.concatenate(arrays)


def drop_missing(values: np.ndarray) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    return arr[~np.isnan(arr)]


def min_median_max(values: np.ndarray) -> tuple[float, float, float]:
    """Return ``(min, median, max)`` over the non-missing entries."""
    kept = drop_missing(values)
    if kept.size == 0:
        raise NoValidDataError("No non-missing values to summarize.")
    return float(np.min(kept)), float(np.median(kept)), float(np.max(kept))
