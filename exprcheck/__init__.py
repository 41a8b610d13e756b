"""exprcheck public API."""

from exprcheck._version import __version__
from exprcheck.batch import BatchSummary, run_scale_check, run_vector_check
from exprcheck.core.types import (
    CheckMode,
    EncodedVector,
    IntegrityReport,
    IntegrityStatus,
    PrimitiveType,
    QuantitationTypeInfo,
    SampleVector,
    Scale,
    ScaleVerdict,
    VerdictKind,
)
from exprcheck.errors import DecodingError, EmptyInputError, NoValidDataError
from exprcheck.integrity import check, check_group
from exprcheck.scale import classify

__all__ = [
    "__version__",
    "classify",
    "check",
    "check_group",
    "run_scale_check",
    "run_vector_check",
    "BatchSummary",
    "Scale",
    "QuantitationTypeInfo",
    "SampleVector",
    "VerdictKind",
    "ScaleVerdict",
    "PrimitiveType",
    "EncodedVector",
    "CheckMode",
    "IntegrityStatus",
    "IntegrityReport",
    "EmptyInputError",
    "NoValidDataError",
    "DecodingError",
]
