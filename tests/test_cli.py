from __future__ import annotations

import base64
import json
from pathlib import Path

import pandas as pd
import pytest

from exprcheck.batch import BatchSummary, ScaleRecord
from exprcheck.cli import main
from exprcheck.codec import array_to_bytes, bytes_to_strings, strings_to_bytes
from exprcheck.core.types import PrimitiveType, QuantitationTypeInfo, ScaleVerdict, VerdictKind
from exprcheck.report import SCALE_COLUMNS, scale_frame, summary_frame
from exprcheck.sources import VECTOR_COLUMNS


def _write_matrix(path: Path, rows: dict[str, list[float]]) -> None:
    df = pd.DataFrame.from_dict(rows, orient="index", columns=["s1", "s2", "s3"])
    df.to_csv(path, sep="\t")


def _config(tmp_path: Path, experiments: list[dict]) -> Path:
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"experiments": experiments}), encoding="utf-8")
    return cfg


def test_scale_check_writes_summary(tmp_path: Path):
    _write_matrix(tmp_path / "raw.tsv", {"p1": [10.0, 200.0, 5000.0], "p2": [12.0, 40.0, 80.0]})
    _write_matrix(tmp_path / "logged.tsv", {"p1": [6.1, 7.2, 8.3], "p2": [float("nan"), 9.0, 10.5]})
    cfg = _config(
        tmp_path,
        [
            {"id": 1, "short_name": "GSE1", "data_path": "raw.tsv", "quantitation_type": {"name": "signal"}},
            {"id": 2, "short_name": "GSE2", "data_path": "logged.tsv", "quantitation_type": {"name": "rma"}},
            {
                "id": 3,
                "short_name": "GSE3",
                "data_path": "raw.tsv",
                "quantitation_type": {"name": "log", "scale": "LOG10"},
            },
        ],
    )
    outdir = tmp_path / "out"
    rc = main(["scale-check", "--config", str(cfg), "--outdir", str(outdir)])
    assert rc == 0

    table = pd.read_csv(outdir / "scale.info.txt", sep="\t", dtype=str, keep_default_na=False)
    assert list(table.columns) == SCALE_COLUMNS
    assert table["State"].tolist() == [
        "NOT LOG SCALED",
        "POSSIBLY LOG SCALED",
        "SUPPOSEDLY LOG10 SCALED",
    ]
    assert table.loc[0, "MAX"] == "5000.00"
    assert table.loc[1, "MIN"] == "6.10"
    assert table.loc[2, "MIN"] == ""
    assert (outdir / "logs" / "scale_check.log").exists()


def test_scale_check_nonzero_exit_on_failures(tmp_path: Path):
    _write_matrix(tmp_path / "empty.tsv", {"p1": [float("nan")] * 3})
    cfg = _config(
        tmp_path,
        [{"id": 9, "data_path": "empty.tsv", "quantitation_type": {"name": "signal"}}],
    )
    rc = main(["scale-check", "--config", str(cfg), "--outdir", str(tmp_path / "out")])
    assert rc == 1
    log_text = (tmp_path / "out" / "logs" / "scale_check.log").read_text(encoding="utf-8")
    assert "failed 9" in log_text


def test_scale_frame_formats_statistics():
    qt = QuantitationTypeInfo(name="signal", description="desc")
    rec = ScaleRecord(1, "GSE1", qt, ScaleVerdict(VerdictKind.POSSIBLY_LOG, 0.5, 1.234, 3.5))
    frame = scale_frame([rec])
    assert frame.loc[0, "MED"] == "1.23"
    assert frame.loc[0, "QT"] == "signal"


def test_summary_frame_lists_failures():
    summary = BatchSummary()
    summary.record_failure("v1", "expected 4 values, got 3")
    frame = summary_frame(summary)
    assert frame.to_dict("records") == [{"key": "v1", "message": "expected 4 values, got 3"}]


def _read_summary(outdir: Path) -> pd.DataFrame:
    return pd.read_csv(outdir / "scale.info.txt", sep="\t", dtype=str, keep_default_na=False)


def test_scale_check_non_numeric_matrix_does_not_stop_later_experiments(tmp_path: Path):
    (tmp_path / "bad.tsv").write_text("id\ts1\ts2\np1\t1.0\tabc\n", encoding="utf-8")
    _write_matrix(tmp_path / "good.tsv", {"p1": [10.0, 200.0, 5000.0]})
    cfg = _config(
        tmp_path,
        [
            {"id": 1, "short_name": "BAD", "data_path": "bad.tsv", "quantitation_type": {"name": "signal"}},
            {"id": 2, "short_name": "GOOD", "data_path": "good.tsv", "quantitation_type": {"name": "signal"}},
        ],
    )
    outdir = tmp_path / "out"
    rc = main(["scale-check", "--config", str(cfg), "--outdir", str(outdir)])
    assert rc == 1

    table = _read_summary(outdir)
    assert table["EENAME"].tolist() == ["GOOD"]
    assert table["State"].tolist() == ["NOT LOG SCALED"]
    log_text = (outdir / "logs" / "scale_check.log").read_text(encoding="utf-8")
    assert "failed 1" in log_text
    assert "abc" in log_text


def test_scale_check_header_only_and_empty_matrices_are_recorded(tmp_path: Path):
    (tmp_path / "header.tsv").write_text("id\ts1\ts2\ts3\n", encoding="utf-8")
    (tmp_path / "blank.tsv").write_text("", encoding="utf-8")
    _write_matrix(tmp_path / "good.tsv", {"p1": [2.0, 3.0, 4.0]})
    cfg = _config(
        tmp_path,
        [
            {"id": 1, "short_name": "HEAD", "data_path": "header.tsv", "quantitation_type": {"name": "q"}},
            {"id": 2, "short_name": "BLANK", "data_path": "blank.tsv", "quantitation_type": {"name": "q"}},
            {"id": 3, "short_name": "GOOD", "data_path": "good.tsv", "quantitation_type": {"name": "q"}},
        ],
    )
    outdir = tmp_path / "out"
    rc = main(["scale-check", "--config", str(cfg), "--outdir", str(outdir)])
    assert rc == 1
    assert _read_summary(outdir)["EENAME"].tolist() == ["GOOD"]
    log_text = (outdir / "logs" / "scale_check.log").read_text(encoding="utf-8")
    assert "Processed 3; succeeded 1; failed 2" in log_text
    assert "failed 1: No vectors!" in log_text
    assert "failed 2: unreadable matrix" in log_text


def test_scale_check_rejects_non_positive_max_vectors(tmp_path: Path, capsys):
    _write_matrix(tmp_path / "good.tsv", {"p1": [2.0, 3.0, 4.0]})
    cfg = _config(
        tmp_path,
        [{"id": 1, "data_path": "good.tsv", "quantitation_type": {"name": "q"}}],
    )
    with pytest.raises(SystemExit) as excinfo:
        main(["scale-check", "--config", str(cfg), "--outdir", str(tmp_path), "--max-vectors", "0"])
    assert excinfo.value.code == 2
    assert "--max-vectors must be positive" in capsys.readouterr().err


def _b64_strings(values: list[str]) -> str:
    return base64.b64encode(strings_to_bytes(values)).decode("ascii")


def _write_vector_table(path: Path, rows: list[dict]) -> None:
    pd.DataFrame(rows, columns=VECTOR_COLUMNS).to_csv(path, sep="\t", index=False)


def _vector_config(tmp_path: Path) -> Path:
    cfg = tmp_path / "vectors.json"
    cfg.write_text(json.dumps({"vectors_path": "vectors.tsv", "outdir": "out"}), encoding="utf-8")
    return cfg


def _vector_rows() -> list[dict]:
    doubles = base64.b64encode(array_to_bytes([1.0, 2.0], PrimitiveType.DOUBLE)).decode("ascii")
    return [
        {"vector_id": "v1", "quantitation_type": "call", "representation": "STRING",
         "expected_count": 4, "experiment": "GSE1", "data": _b64_strings(["P", "\t", "A", "M", "P"])},
        {"vector_id": "v2", "quantitation_type": "call", "representation": "STRING",
         "expected_count": 5, "experiment": "GSE1", "data": _b64_strings(["P", "\t", "A", "M", "P"])},
        {"vector_id": "v3", "quantitation_type": "call", "representation": "STRING",
         "expected_count": 2, "experiment": "GSE1", "data": _b64_strings(["P", "A"])},
        {"vector_id": "v4", "quantitation_type": "signal", "representation": "DOUBLE",
         "expected_count": 3, "experiment": "GSE1", "data": doubles},
    ]


def test_vector_check_repairs_strings_and_reports(tmp_path: Path):
    _write_vector_table(tmp_path / "vectors.tsv", _vector_rows())
    rc = main(["vector-check", "--config", str(_vector_config(tmp_path))])
    assert rc == 1

    outdir = tmp_path / "out"
    integrity = pd.read_csv(outdir / "integrity.tsv", sep="\t", dtype=str)
    assert integrity["vector_id"].tolist() == ["v1", "v2", "v3"]
    assert integrity["status"].tolist() == ["Repaired", "SizeMismatch", "Ok"]

    failures = pd.read_csv(outdir / "failures.tsv", sep="\t", dtype=str)
    assert failures["key"].tolist() == ["v2"]

    repaired = pd.read_csv(outdir / "repaired_vectors.tsv", sep="\t", dtype=str)
    assert repaired["vector_id"].tolist() == ["v1"]
    payload = base64.b64decode(repaired.loc[0, "data"])
    assert bytes_to_strings(payload) == ["P", "A", "M", "P"]


def test_vector_check_full_flag_checks_numeric_vectors(tmp_path: Path):
    _write_vector_table(tmp_path / "vectors.tsv", _vector_rows())
    rc = main(["vector-check", "--config", str(_vector_config(tmp_path)), "--full"])
    assert rc == 1

    integrity = pd.read_csv(tmp_path / "out" / "integrity.tsv", sep="\t", dtype=str)
    row = integrity[integrity["vector_id"] == "v4"].iloc[0]
    assert (row["status"], row["expected"], row["observed"]) == ("SizeMismatch", "3", "2")
    failures = pd.read_csv(tmp_path / "out" / "failures.tsv", sep="\t", dtype=str)
    assert failures["key"].tolist() == ["v2", "v4"]


def test_vector_check_clean_table_exits_zero_without_repairs(tmp_path: Path):
    rows = [r for r in _vector_rows() if r["vector_id"] == "v3"]
    _write_vector_table(tmp_path / "vectors.tsv", rows)
    rc = main(["vector-check", "--config", str(_vector_config(tmp_path))])
    assert rc == 0
    assert not (tmp_path / "out" / "repaired_vectors.tsv").exists()
