"""Readers and writers for the on-disk inputs of the exprcheck commands.

Expression matrices are tab-separated, one row per design element and one
column per sample. Encoded vectors live in a tab-separated table with one row
per vector and the payload in base64::

    vector_id  quantitation_type  representation  expected_count  experiment  data
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Iterator

import pandas as pd

from exprcheck.batch import BatchSummary, ExperimentSamples, QuantitationTypeGroup
from exprcheck.config import ExperimentSource
from exprcheck.core.types import EncodedVector, PrimitiveType, SampleVector

VECTOR_COLUMNS = [
    "vector_id",
    "quantitation_type",
    "representation",
    "expected_count",
    "experiment",
    "data",
]


def read_expression_matrix(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Expression matrix '{path}' not found.")
    return pd.read_csv(path, sep="\t", index_col=0)


def load_experiment(source: ExperimentSource) -> ExperimentSamples:
    """Read one experiment's matrix.

    Cells are passed through untouched so that non-numeric entries surface
    when the classifier pools them, inside the per-experiment error boundary.
    """
    matrix = read_expression_matrix(source.data_path)
    vectors = [
        SampleVector(name=str(name), values=row.tolist(), quantitation_type=source.quantitation_type)
        for name, row in matrix.iterrows()
    ]
    return ExperimentSamples(source.experiment_id, source.short_name, vectors)


def iter_experiments(
    sources: tuple[ExperimentSource, ...] | list[ExperimentSource],
    summary: BatchSummary,
    logger: logging.Logger,
) -> Iterator[ExperimentSamples]:
    """Yield readable experiments; unreadable ones are recorded in ``summary``.

    A missing matrix is a configuration error and propagates.
    """
    for source in sources:
        try:
            experiment = load_experiment(source)
        except ValueError as exc:
            logger.warning(
                "Matrix unreadable: experiment=%s path=%s reason=%s",
                source.experiment_id,
                source.data_path,
                exc,
            )
            summary.record_failure(source.experiment_id, f"unreadable matrix: {exc}")
            continue
        yield experiment


def _decode_payload(raw: object) -> bytes:
    text = "" if pd.isna(raw) else str(raw)
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"payload is not valid base64: {exc}") from exc


def read_vector_groups(
    path: Path,
    summary: BatchSummary,
    logger: logging.Logger,
) -> list[QuantitationTypeGroup]:
    """Group the rows of a vector table by quantitation type.

    Rows that cannot be turned into an `EncodedVector` are recorded in
    ``summary`` by vector id; a quantitation type whose rows disagree on the
    representation is recorded by its label and skipped.
    """
    if not path.exists():
        raise FileNotFoundError(f"Vector table '{path}' not found.")
    table = pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)
    missing = [c for c in VECTOR_COLUMNS if c not in table.columns]
    if missing:
        raise ValueError(f"Vector table '{path}' is missing columns: {', '.join(missing)}")

    groups: list[QuantitationTypeGroup] = []
    for label, rows in table.groupby("quantitation_type", sort=False):
        kinds = rows["representation"].str.strip().str.upper().unique()
        if len(kinds) != 1:
            msg = f"mixed representations {sorted(kinds)}"
            logger.error("Quantitation type %s skipped: %s", label, msg)
            summary.record_failure(label, msg)
            continue
        try:
            representation = PrimitiveType(kinds[0])
        except ValueError:
            logger.error("Quantitation type %s skipped: unknown representation %s", label, kinds[0])
            summary.record_failure(label, f"unknown representation {kinds[0]!r}")
            continue

        vectors: list[EncodedVector] = []
        for row in rows.itertuples(index=False):
            try:
                vectors.append(
                    EncodedVector(
                        vector_id=row.vector_id,
                        data=_decode_payload(row.data),
                        representation=representation,
                        quantitation_type=str(label),
                        expected_count=int(row.expected_count),
                        experiment=row.experiment or None,
                    )
                )
            except ValueError as exc:
                logger.error("Vector %s of %s skipped: %s", row.vector_id, label, exc)
                summary.record_failure(row.vector_id, str(exc))
        groups.append(QuantitationTypeGroup(str(label), representation, vectors))
    return groups


class VectorTableWriter:
    """Appends repaired vectors to a vector table, one call per group."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.written = 0

    def __call__(self, vectors: list[EncodedVector]) -> None:
        rows = [
            {
                "vector_id": v.vector_id,
                "quantitation_type": v.quantitation_type,
                "representation": v.representation.value,
                "expected_count": v.expected_count,
                "experiment": v.experiment or "",
                "data": base64.b64encode(v.data).decode("ascii"),
            }
            for v in vectors
        ]
        header = not self.path.exists()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(rows, columns=VECTOR_COLUMNS).to_csv(
            self.path.as_posix(), sep="\t", index=False, mode="a", header=header
        )
        self.written += len(rows)
