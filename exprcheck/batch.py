"""Batch drivers that run the analyzers over experiments and vector groups."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from exprcheck.config import DEFAULT_MAX_VECTORS
from exprcheck.core.types import (
    CheckMode,
    EncodedVector,
    IntegrityReport,
    IntegrityStatus,
    PrimitiveType,
    QuantitationTypeInfo,
    SampleVector,
    ScaleVerdict,
)
from exprcheck.integrity import check_group
from exprcheck.scale import classify, declared_scale_of

WriteBack = Callable[[list[EncodedVector]], None]


@dataclass
class BatchSummary:
    """Per-run tallies, keyed failures included."""

    processed: int = 0
    succeeded: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record_success(self) -> None:
        self.processed += 1
        self.succeeded += 1

    def record_failure(self, key: object, message: str) -> None:
        self.processed += 1
        self.failures.append((str(key), str(message)))

    def merge(self, other: BatchSummary) -> BatchSummary:
        return BatchSummary(
            processed=self.processed + other.processed,
            succeeded=self.succeeded + other.succeeded,
            failures=[*self.failures, *other.failures],
        )

    def log(self, logger: logging.Logger) -> None:
        logger.info(
            "Processed %d; succeeded %d; failed %d",
            self.processed,
            self.succeeded,
            self.failed,
        )
        for key, message in self.failures:
            logger.info("  failed %s: %s", key, message)


@dataclass(frozen=True)
class ExperimentSamples:
    experiment_id: int | str
    short_name: str
    vectors: Sequence[SampleVector]


@dataclass(frozen=True)
class ScaleRecord:
    """One row of the scale summary."""

    experiment_id: int | str
    short_name: str
    quantitation_type: QuantitationTypeInfo | None
    verdict: ScaleVerdict


@dataclass(frozen=True)
class QuantitationTypeGroup:
    label: str
    representation: PrimitiveType
    vectors: Sequence[EncodedVector]


class GroupLocks:
    """One lock per quantitation type, so a group is written back by one worker at a time."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def for_group(self, label: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(label)
            if lock is None:
                lock = threading.Lock()
                self._locks[label] = lock
            return lock


def run_scale_check(
    experiments: Iterable[ExperimentSamples],
    *,
    max_vectors: int | None = DEFAULT_MAX_VECTORS,
    logger: logging.Logger | None = None,
    summary: BatchSummary | None = None,
) -> tuple[list[ScaleRecord], BatchSummary]:
    """Classify each experiment; bad experiments are recorded and skipped."""
    log = logger or logging.getLogger(__name__)
    if max_vectors is not None and int(max_vectors) <= 0:
        raise ValueError("max_vectors must be positive.")

    records: list[ScaleRecord] = []
    summary = summary if summary is not None else BatchSummary()
    for exp in experiments:
        vectors = list(exp.vectors)
        if max_vectors is not None:
            vectors = vectors[: int(max_vectors)]
        try:
            verdict = classify(vectors, declared_scale_of(vectors))
        except (ValueError, TypeError) as exc:
            log.warning(
                "Scale check skipped: experiment=%s reason=%s",
                exp.experiment_id,
                exc,
            )
            summary.record_failure(exp.experiment_id, str(exc))
            continue
        qt = vectors[-1].quantitation_type
        log.info("%s %s: %s", exp.experiment_id, exp.short_name, verdict.label)
        records.append(ScaleRecord(exp.experiment_id, exp.short_name, qt, verdict))
        summary.record_success()
    return records, summary


def run_vector_check(
    groups: Iterable[QuantitationTypeGroup],
    *,
    mode: CheckMode = CheckMode.STRING_ONLY,
    write_back: WriteBack | None = None,
    locks: GroupLocks | None = None,
    logger: logging.Logger | None = None,
    summary: BatchSummary | None = None,
) -> tuple[list[IntegrityReport], BatchSummary]:
    """Check vector groups and write back the repaired members of each group.

    ``write_back`` receives the repaired vectors of a group once, after every
    member of that group has been examined, and only when at least one was
    repaired. Exceptions it raises propagate to the caller.
    """
    log = logger or logging.getLogger(__name__)
    locks = locks or GroupLocks()
    if mode is CheckMode.FULL:
        log.info("A full check of all vectors will be done")

    reports: list[IntegrityReport] = []
    summary = summary if summary is not None else BatchSummary()
    for group in groups:
        if not group.representation.is_textual and mode is not CheckMode.FULL:
            continue
        log.info("Processing %s", group.label)
        result = check_group(group.label, group.vectors, mode)

        for vector_id, message in result.errors:
            summary.record_failure(vector_id, message)
        for report in result.reports:
            reports.append(report)
            if report.status is IntegrityStatus.SIZE_MISMATCH:
                summary.record_failure(
                    report.vector_id,
                    f"expected {report.expected_count} values, got {report.observed_count}",
                )
            else:
                summary.record_success()

        if not result.needs_write_back:
            continue
        repaired = result.repaired_vectors()
        with locks.for_group(group.label):
            log.info("Updating %d vectors that contained 'tab'.", len(repaired))
            if write_back is not None:
                write_back(repaired)
    return reports, summary
