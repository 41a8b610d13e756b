"""Run configuration for the exprcheck commands.

Both commands read a JSON object. Relative paths inside it resolve against
the directory holding the config file, and every structural problem is
reported before any data is read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from exprcheck.core.types import QuantitationTypeInfo, Scale

DEFAULT_MAX_VECTORS = 100


@dataclass(frozen=True)
class ExperimentSource:
    experiment_id: int | str
    short_name: str
    data_path: Path
    quantitation_type: QuantitationTypeInfo


@dataclass(frozen=True)
class ScaleCheckConfig:
    experiments: tuple[ExperimentSource, ...]
    max_vectors: int = DEFAULT_MAX_VECTORS
    outdir: Path | None = None


@dataclass(frozen=True)
class VectorCheckConfig:
    vectors_path: Path
    outdir: Path | None = None


def read_config_object(path: str | Path) -> dict[str, Any]:
    """Read a ``.json`` file whose root must be an object."""
    config_path = Path(path)
    if config_path.suffix.lower() != ".json":
        raise ValueError(f"Config '{config_path}' must be a .json file.")
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file not found: {config_path}") from None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Config '{config_path}' is not valid JSON (line {exc.lineno}, "
            f"column {exc.colno}): {exc.msg}"
        ) from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Config '{config_path}' must hold a JSON object, not {type(data).__name__}."
        )
    return data


def require_keys(section: dict[str, Any], keys: tuple[str, ...], where: str) -> None:
    if not isinstance(section, dict):
        raise ValueError(f"{where} must be a JSON object.")
    missing = [k for k in keys if k not in section]
    if missing:
        raise KeyError(f"{where} is missing required keys: {', '.join(missing)}")


def positive_int(value: Any, where: str) -> int:
    # bool is an int subclass; "true" is never a vector count.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{where} must be a positive integer, got {value!r}.")
    return value


def _resolve(base_dir: Path, raw: Any) -> Path:
    p = Path(str(raw))
    return p if p.is_absolute() else base_dir / p


def _outdir(cfg: dict[str, Any], base_dir: Path) -> Path | None:
    return None if cfg.get("outdir") is None else _resolve(base_dir, cfg["outdir"])


def _quantitation_type(section: Any, where: str) -> QuantitationTypeInfo:
    require_keys(section, ("name",), where)
    try:
        scale = Scale.parse(section.get("scale"))
    except ValueError as exc:
        raise ValueError(f"{where}.scale: {exc}") from exc
    return QuantitationTypeInfo(
        name=str(section["name"]),
        description=str(section.get("description", "")),
        scale=scale,
    )


def load_scale_check_config(path: str | Path) -> ScaleCheckConfig:
    """Load and validate a scale-check config.

    Expected shape::

        {"experiments": [{"id": 1, "short_name": "GSE1", "data_path": "a.tsv",
                          "quantitation_type": {"name": "...", "scale": "LOG2"}}],
         "max_vectors": 100, "outdir": "out"}
    """
    config_path = Path(path)
    cfg = read_config_object(config_path)
    experiments = cfg.get("experiments")
    if not isinstance(experiments, list) or not experiments:
        raise ValueError(f"Config '{config_path}' needs a non-empty 'experiments' list.")

    sources = []
    for i, exp in enumerate(experiments):
        where = f"experiments[{i}]"
        require_keys(exp, ("id", "data_path", "quantitation_type"), where)
        sources.append(
            ExperimentSource(
                experiment_id=exp["id"],
                short_name=str(exp.get("short_name", exp["id"])),
                data_path=_resolve(config_path.parent, exp["data_path"]),
                quantitation_type=_quantitation_type(
                    exp["quantitation_type"], f"{where}.quantitation_type"
                ),
            )
        )
    return ScaleCheckConfig(
        experiments=tuple(sources),
        max_vectors=positive_int(cfg.get("max_vectors", DEFAULT_MAX_VECTORS), "max_vectors"),
        outdir=_outdir(cfg, config_path.parent),
    )


def load_vector_check_config(path: str | Path) -> VectorCheckConfig:
    """Load a vector-check config: ``{"vectors_path": "vectors.tsv", "outdir": "out"}``."""
    config_path = Path(path)
    cfg = read_config_object(config_path)
    require_keys(cfg, ("vectors_path",), f"Config '{config_path}'")
    return VectorCheckConfig(
        vectors_path=_resolve(config_path.parent, cfg["vectors_path"]),
        outdir=_outdir(cfg, config_path.parent),
    )
