"""Command-line interface for exprcheck."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable

from exprcheck.batch import BatchSummary, run_scale_check, run_vector_check
from exprcheck.config import (
    DEFAULT_MAX_VECTORS,
    load_scale_check_config,
    load_vector_check_config,
)
from exprcheck.core.types import CheckMode
from exprcheck.pipeline_utils import ensure_dir, setup_logger
from exprcheck.report import integrity_frame, summary_frame, write_scale_summary
from exprcheck.sources import VectorTableWriter, iter_experiments, read_vector_groups


def _pick_outdir(cli_value: str | None, cfg_value: Path | None) -> Path:
    if cli_value is not None:
        return Path(cli_value)
    return cfg_value if cfg_value is not None else Path(".")


def scale_check_main(argv: Iterable[str] | None = None) -> int:
    """Run the log-scale check over configured experiments.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 when every experiment was classified).
    """
    parser = argparse.ArgumentParser(description="exprcheck log-scale check")
    parser.add_argument("--config", required=True, help="Path to JSON config")
    parser.add_argument("--outdir", default=None, help="Output directory (overrides config)")
    parser.add_argument(
        "--max-vectors",
        type=int,
        default=None,
        help=f"Vectors sampled per experiment (default {DEFAULT_MAX_VECTORS})",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.max_vectors is not None and args.max_vectors <= 0:
        parser.error(f"--max-vectors must be positive, got {args.max_vectors}")

    cfg = load_scale_check_config(args.config)
    max_vectors = args.max_vectors if args.max_vectors is not None else cfg.max_vectors
    outdir = _pick_outdir(args.outdir, cfg.outdir)

    logger = setup_logger(outdir / "logs" / "scale_check.log", "exprcheck")
    summary = BatchSummary()
    records, summary = run_scale_check(
        iter_experiments(cfg.experiments, summary, logger),
        max_vectors=max_vectors,
        logger=logger,
        summary=summary,
    )
    out = write_scale_summary(outdir / "scale.info.txt", records)
    logger.info("New file: %s", out.resolve().as_posix())
    summary.log(logger)
    return 0 if summary.failed == 0 else 1


def vector_check_main(argv: Iterable[str] | None = None) -> int:
    """Check stored vectors for size errors and strip 'tab' artifacts.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 when no vector failed).
    """
    parser = argparse.ArgumentParser(description="exprcheck stored vector check")
    parser.add_argument("--config", required=True, help="Path to JSON config")
    parser.add_argument("--outdir", default=None, help="Output directory (overrides config)")
    parser.add_argument(
        "-f",
        "--full",
        action="store_true",
        help="Examine ALL vectors for correct sizes, not just string types. "
        "Slow but useful check of the integrity of the system",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    cfg = load_vector_check_config(args.config)
    outdir = _pick_outdir(args.outdir, cfg.outdir)
    ensure_dir(outdir)
    logger = setup_logger(outdir / "logs" / "vector_check.log", "exprcheck")

    summary = BatchSummary()
    groups = read_vector_groups(cfg.vectors_path, summary, logger)
    repaired_path = outdir / "repaired_vectors.tsv"
    if repaired_path.exists():
        repaired_path.unlink()
    writer = VectorTableWriter(repaired_path)
    reports, summary = run_vector_check(
        groups,
        mode=CheckMode.FULL if args.full else CheckMode.STRING_ONLY,
        write_back=writer,
        logger=logger,
        summary=summary,
    )

    integrity_frame(reports).to_csv((outdir / "integrity.tsv").as_posix(), sep="\t", index=False)
    summary_frame(summary).to_csv((outdir / "failures.tsv").as_posix(), sep="\t", index=False)
    logger.info("Repaired vectors written: %d", writer.written)
    summary.log(logger)
    return 0 if summary.failed == 0 else 1


def main(argv: Iterable[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(description="exprcheck CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("scale-check", help="Check whether experiments look log-transformed")
    sub.add_parser("vector-check", help="Check stored vector sizes and remove 'tab' artifacts")

    args, remainder = parser.parse_known_args(list(argv) if argv is not None else None)
    if args.command == "scale-check":
        return scale_check_main(remainder)
    if args.command == "vector-check":
        return vector_check_main(remainder)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
