"""Size checks and tab-artifact repair for encoded measurement vectors."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from exprcheck.codec import bytes_to_array, bytes_to_strings, strings_to_bytes
from exprcheck.core.types import (
    CheckMode,
    EncodedVector,
    IntegrityReport,
    IntegrityStatus,
)
from exprcheck.errors import DecodingError

logger = logging.getLogger(__name__)

TAB_ARTIFACT = "\t"
PROGRESS_EVERY = 10_000


def _check_strings(vector: EncodedVector) -> IntegrityReport:
    raw = bytes_to_strings(vector.data)
    kept = [s for s in raw if s != TAB_ARTIFACT]
    dropped = len(raw) - len(kept)

    if len(kept) != vector.expected_count:
        logger.error(
            "Vector %s did not have right number of values after 'tab' removal for %s; "
            "expected %d got %d; %s",
            vector.vector_id,
            vector.quantitation_type,
            vector.expected_count,
            len(kept),
            vector.experiment,
        )
        return IntegrityReport(
            vector_id=vector.vector_id,
            quantitation_type=vector.quantitation_type,
            status=IntegrityStatus.SIZE_MISMATCH,
            expected_count=vector.expected_count,
            observed_count=len(kept),
            dropped=dropped,
            source=vector,
        )

    if dropped:
        return IntegrityReport(
            vector_id=vector.vector_id,
            quantitation_type=vector.quantitation_type,
            status=IntegrityStatus.REPAIRED,
            expected_count=vector.expected_count,
            observed_count=len(kept),
            dropped=dropped,
            data=strings_to_bytes(kept),
            source=vector,
        )

    return IntegrityReport(
        vector_id=vector.vector_id,
        quantitation_type=vector.quantitation_type,
        status=IntegrityStatus.OK,
        expected_count=vector.expected_count,
        observed_count=len(kept),
        source=vector,
    )


def _check_primitive(vector: EncodedVector) -> IntegrityReport:
    values = bytes_to_array(vector.data, vector.representation)
    status = IntegrityStatus.OK
    if len(values) != vector.expected_count:
        status = IntegrityStatus.SIZE_MISMATCH
        logger.error(
            "Vector %s did not have right number of values %s; expected %d got %d; %s",
            vector.vector_id,
            vector.quantitation_type,
            vector.expected_count,
            len(values),
            vector.experiment,
        )
        logger.debug("Values:\n%s", ",".join(str(v) for v in values))
    return IntegrityReport(
        vector_id=vector.vector_id,
        quantitation_type=vector.quantitation_type,
        status=status,
        expected_count=vector.expected_count,
        observed_count=len(values),
        source=vector,
    )


def check(vector: EncodedVector, mode: CheckMode = CheckMode.STRING_ONLY) -> IntegrityReport | None:
    """Check one encoded vector against its expected sample count.

    String vectors have bare tab elements stripped; when the remainder has the
    expected size the report carries the re-encoded payload. Non-string
    vectors are only examined in ``CheckMode.FULL``; otherwise ``None`` is
    returned.

    Raises:
        DecodingError: the payload cannot be decoded at all.
    """
    if vector.representation.is_textual:
        return _check_strings(vector)
    if mode is CheckMode.FULL:
        return _check_primitive(vector)
    return None


@dataclass
class GroupResult:
    """Accumulated outcomes for all vectors of one quantitation type."""

    quantitation_type: str
    reports: list[IntegrityReport] = field(default_factory=list)
    errors: list[tuple[int | str, str]] = field(default_factory=list)

    @property
    def repaired(self) -> list[IntegrityReport]:
        return [r for r in self.reports if r.status is IntegrityStatus.REPAIRED]

    @property
    def mismatched(self) -> list[IntegrityReport]:
        return [r for r in self.reports if r.status is IntegrityStatus.SIZE_MISMATCH]

    @property
    def needs_write_back(self) -> bool:
        return bool(self.repaired)

    def repaired_vectors(self) -> list[EncodedVector]:
        return [r.repaired_vector() for r in self.repaired]


def check_group(
    quantitation_type: str,
    vectors: Iterable[EncodedVector],
    mode: CheckMode = CheckMode.STRING_ONLY,
) -> GroupResult:
    """Check every vector of one quantitation type.

    Each vector is judged on its own; a size mismatch or an undecodable
    payload is recorded and the remaining vectors are still examined.
    """
    result = GroupResult(quantitation_type=quantitation_type)
    count = 0
    for vector in vectors:
        try:
            report = check(vector, mode)
        except DecodingError as exc:
            logger.error(
                "Vector %s of %s could not be decoded: %s",
                vector.vector_id,
                quantitation_type,
                exc,
            )
            result.errors.append((vector.vector_id, str(exc)))
        else:
            if report is not None:
                result.reports.append(report)
        count += 1
        if count % PROGRESS_EVERY == 0:
            logger.info("Processed %d vectors for %s", count, quantitation_type)
    return result
