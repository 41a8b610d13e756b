"""Core data model subpackage."""

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

__all__ = [
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
]
