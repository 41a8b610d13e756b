"""Heuristic check of whether expression values are already log-transformed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from exprcheck.core.types import SampleVector, Scale, ScaleVerdict, VerdictKind
from exprcheck.errors import EmptyInputError
from exprcheck.stats.descriptive import min_median_max, pool_values

logger = logging.getLogger(__name__)

# Heuristic thresholds carried over unchanged from the platform's scaling
# check. They have no documented derivation; do not tune without domain review.
NARROW_RANGE = 10.0
LARGE_VALUE = 50.0
SMALL_VALUE = 1.0

_DECLARED_KINDS: dict[Scale, VerdictKind] = {
    Scale.LOG2: VerdictKind.DECLARED_LOG2,
    Scale.LOG10: VerdictKind.DECLARED_LOG10,
    Scale.LOG_UNKNOWN_BASE: VerdictKind.DECLARED_LOG_UNKNOWN_BASE,
}


@dataclass(frozen=True)
class Declared:
    """Metadata says the data is on a log scale; trust it."""

    scale: Scale


@dataclass(frozen=True)
class Inferred:
    """No usable declaration; inspect the values."""


ScaleEvidence = Union[Declared, Inferred]


def resolve_evidence(declared_scale: Scale | str | None) -> ScaleEvidence:
    scale = Scale.parse(declared_scale)
    if scale in _DECLARED_KINDS:
        return Declared(scale)
    return Inferred()


def declared_scale_of(vectors: Sequence[SampleVector]) -> Scale | None:
    """First scale declared by any of the vectors' quantitation types."""
    for v in vectors:
        if v.quantitation_type.scale is not None:
            return v.quantitation_type.scale
    return None


def infer_from_statistics(minimum: float, median: float, maximum: float) -> ScaleVerdict:
    """Apply the range / magnitude rules to precomputed statistics."""
    stats = {"minimum": minimum, "median": median, "maximum": maximum}
    if maximum - minimum < NARROW_RANGE:
        logger.info("Range is narrow, could be log scaled")
        return ScaleVerdict(VerdictKind.POSSIBLY_LOG, **stats)
    if maximum > LARGE_VALUE:
        logger.info("Data has large values, doesn't look log transformed: %s", maximum)
        return ScaleVerdict(VerdictKind.NOT_LOG, **stats)
    if minimum < SMALL_VALUE:
        logger.info("Data has very small values, doesn't look log transformed: %s", minimum)
        return ScaleVerdict(VerdictKind.NOT_LOG, **stats)
    logger.info("Can't rule out possibility of log scale")
    return ScaleVerdict(VerdictKind.POSSIBLY_LOG, **stats)


def classify(
    vectors: Sequence[SampleVector],
    declared_scale: Scale | str | None = None,
) -> ScaleVerdict:
    """Classify the measurement scale of one experiment's vectors.

    Args:
        vectors: Sample vectors from a single experiment / quantitation type.
        declared_scale: Scale declared by the platform metadata, if any.

    Returns:
        A `ScaleVerdict`. Declared log scales win outright and carry no
        statistics; otherwise the pooled min/median/max decide.

    Raises:
        EmptyInputError: ``vectors`` is empty.
        NoValidDataError: every pooled value is missing.
    """
    if len(vectors) == 0:
        raise EmptyInputError("No vectors!")

    evidence = resolve_evidence(declared_scale)
    if isinstance(evidence, Declared):
        return ScaleVerdict(_DECLARED_KINDS[evidence.scale])

    pooled = pool_values(v.values for v in vectors)
    minimum, median, maximum = min_median_max(pooled)
    return infer_from_statistics(minimum, median, maximum)
