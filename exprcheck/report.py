"""Tabular views of scale verdicts, integrity reports and batch summaries."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from exprcheck.batch import BatchSummary, ScaleRecord
from exprcheck.core.types import IntegrityReport

SCALE_COLUMNS = ["State", "EEID", "EENAME", "QT", "QTDESC", "MIN", "MED", "MAX"]


def _fmt(value: float | None) -> str:
    return "" if value is None else f"{value:.2f}"


def scale_frame(records: Iterable[ScaleRecord]) -> pd.DataFrame:
    rows = []
    for rec in records:
        v = rec.verdict
        qt = rec.quantitation_type
        # Declared verdicts only identify the experiment.
        rows.append(
            {
                "State": v.label,
                "EEID": rec.experiment_id,
                "EENAME": rec.short_name,
                "QT": "" if v.declared or qt is None else qt.name,
                "QTDESC": "" if v.declared or qt is None else qt.description,
                "MIN": _fmt(v.minimum),
                "MED": _fmt(v.median),
                "MAX": _fmt(v.maximum),
            }
        )
    return pd.DataFrame(rows, columns=SCALE_COLUMNS)


def write_scale_summary(path: str | Path, records: Iterable[ScaleRecord]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    scale_frame(records).to_csv(out.as_posix(), sep="\t", index=False)
    return out


def integrity_frame(reports: Iterable[IntegrityReport]) -> pd.DataFrame:
    rows = [
        {
            "vector_id": r.vector_id,
            "quantitation_type": r.quantitation_type,
            "status": r.status.value,
            "expected": r.expected_count,
            "observed": r.observed_count,
            "dropped": r.dropped,
        }
        for r in reports
    ]
    return pd.DataFrame(
        rows,
        columns=["vector_id", "quantitation_type", "status", "expected", "observed", "dropped"],
    )


def summary_frame(summary: BatchSummary) -> pd.DataFrame:
    return pd.DataFrame(summary.failures, columns=["key", "message"])
