"""Statistical helpers for exprcheck."""

from exprcheck.stats.descriptive import drop_missing, min_median_max, pool_values

__all__ = ["drop_missing", "min_median_max", "pool_values"]
