"""Typed containers shared by the scale classifier and the integrity checker."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Sequence


class Scale(str, Enum):
    """Declared transform applied to raw measurements before storage."""

    LOG2 = "LOG2"
    LOG10 = "LOG10"
    LOG_UNKNOWN_BASE = "LOG_UNKNOWN_BASE"
    LINEAR = "LINEAR"

    @classmethod
    def parse(cls, value: str | Scale | None) -> Scale | None:
        if value is None or isinstance(value, Scale):
            return value
        key = str(value).strip().upper()
        if key == "":
            return None
        # Older platform exports spell the unknown base without underscores.
        if key == "LOGBASEUNKNOWN":
            key = "LOG_UNKNOWN_BASE"
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"Unknown scale '{value}'.") from exc


@dataclass(frozen=True)
class QuantitationTypeInfo:
    name: str
    description: str = ""
    scale: Scale | None = None


@dataclass(frozen=True)
class SampleVector:
    """One design element's values across the samples of an experiment.

    ``values`` is kept exactly as supplied; it is only coerced to floats when
    the classifier has to look at the numbers.
    """

    name: str
    values: Sequence[Any]
    quantitation_type: QuantitationTypeInfo


class VerdictKind(str, Enum):
    DECLARED_LOG2 = "DeclaredLog2"
    DECLARED_LOG10 = "DeclaredLog10"
    DECLARED_LOG_UNKNOWN_BASE = "DeclaredLogUnknownBase"
    POSSIBLY_LOG = "PossiblyLog"
    NOT_LOG = "NotLog"


_VERDICT_LABELS: dict[VerdictKind, str] = {
    VerdictKind.DECLARED_LOG2: "SUPPOSEDLY LOG2 SCALED",
    VerdictKind.DECLARED_LOG10: "SUPPOSEDLY LOG10 SCALED",
    VerdictKind.DECLARED_LOG_UNKNOWN_BASE: "SUPPOSEDLY LOGBASEUNKNOWN SCALED",
    VerdictKind.POSSIBLY_LOG: "POSSIBLY LOG SCALED",
    VerdictKind.NOT_LOG: "NOT LOG SCALED",
}


@dataclass(frozen=True)
class ScaleVerdict:
    """Outcome of `classify`.

    - `minimum`, `median`, `maximum`: pooled statistics, ``None`` when the
      verdict came straight from declared metadata.
    """

    kind: VerdictKind
    minimum: float | None = None
    median: float | None = None
    maximum: float | None = None

    @property
    def declared(self) -> bool:
        return self.kind not in (
            VerdictKind.POSSIBLY_LOG,
            VerdictKind.NOT_LOG,
        )

    @property
    def is_log_scale(self) -> bool:
        return self.kind is not VerdictKind.NOT_LOG

    @property
    def label(self) -> str:
        return _VERDICT_LABELS[self.kind]


class PrimitiveType(str, Enum):
    """Element representation of an encoded vector."""

    STRING = "STRING"
    DOUBLE = "DOUBLE"
    FLOAT = "FLOAT"
    INT = "INT"
    LONG = "LONG"
    BOOLEAN = "BOOLEAN"
    CHAR = "CHAR"

    @property
    def is_textual(self) -> bool:
        return self is PrimitiveType.STRING


@dataclass(frozen=True)
class EncodedVector:
    vector_id: int | str
    data: bytes
    representation: PrimitiveType
    quantitation_type: str
    expected_count: int
    experiment: str | None = None


class CheckMode(str, Enum):
    STRING_ONLY = "StringOnly"
    FULL = "Full"


class IntegrityStatus(str, Enum):
    OK = "Ok"
    REPAIRED = "Repaired"
    SIZE_MISMATCH = "SizeMismatch"


@dataclass(frozen=True)
class IntegrityReport:
    """Terminal per-vector outcome of an integrity check."""

    vector_id: int | str
    quantitation_type: str
    status: IntegrityStatus
    expected_count: int
    observed_count: int
    dropped: int = 0
    data: bytes | None = None
    source: EncodedVector | None = field(default=None, repr=False, compare=False)

    def repaired_vector(self) -> EncodedVector:
        if self.status is not IntegrityStatus.REPAIRED or self.data is None:
            raise ValueError(
                f"Vector {self.vector_id} was not repaired (status={self.status.value})."
            )
        if self.source is None:
            raise ValueError(f"Vector {self.vector_id} report has no source vector.")
        return replace(self.source, data=self.data)
