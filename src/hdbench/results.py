"""
Batch aggregation, persistence and tabular views of the results.

The batch is persisted once, after every trial has finished, as canonical JSON
(sorted keys, fixed indentation). The file is written to a temporary sibling
and renamed into place, so the destination either holds the complete batch or
is left untouched.
"""
from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from .errors import PersistError
from .records import Failure, TrialRecord


@dataclass(frozen=True)
class BatchResult:
    records: tuple[TrialRecord, ...]
    train_fraction: float
    repetitions: int
    metadata: dict[str, Any] = field(default_factory=dict)


def aggregate(
    records: Sequence[TrialRecord],
    train_fraction: float,
    repetitions: int,
    **metadata: Any,
) -> BatchResult:
    """Bundle the trial records with run-level metadata."""
    return BatchResult(
        records=tuple(records),
        train_fraction=float(train_fraction),
        repetitions=int(repetitions),
        metadata=dict(metadata),
    )


def to_dict(result: BatchResult) -> dict[str, Any]:
    return {
        "sim_results": [r.to_dict() for r in result.records],
        "train_fraction": result.train_fraction,
        "repetitions": result.repetitions,
        "metadata": result.metadata,
    }


def serialize(result: BatchResult) -> bytes:
    return (json.dumps(to_dict(result), indent=2, sort_keys=True, allow_nan=False) + "\n").encode("utf-8")


def persist(result: BatchResult, destination: str | Path) -> Path:
    """
    Atomically write ``result`` to ``destination``.

    Args:
        result: The batch to persist.
        destination: Target file path; parent directories are created.

    Returns:
        Path: The destination path.

    Raises:
        PersistError: If the batch cannot be serialized or written. No partial
            file is left at ``destination``.
    """
    path = Path(destination)
    try:
        payload = serialize(result)
    except (TypeError, ValueError) as exc:
        raise PersistError(f"Cannot serialize batch result: {exc}") from exc

    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistError(f"Cannot write batch result to {path}: {exc}") from exc
    return path


def load_result(path: str | Path) -> dict[str, Any]:
    """Read a persisted batch back as plain JSON data."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def to_frame(result: BatchResult) -> pd.DataFrame:
    """
    Long-format table: one row per (trial, classifier).

    A wholly failed trial contributes a single row with ``classifier`` None.
    """
    rows: list[dict[str, Any]] = []
    for rec in result.records:
        base = {"dataset": rec.dataset, "repetition": rec.repetition, "seed": rec.seed}
        if rec.failure is not None:
            rows.append({**base, "classifier": None, "error_rate": float("nan"),
                         "failed": True, "failure_kind": rec.failure.kind})
            continue
        for name, rate in rec.error_rates.items():
            failed = isinstance(rate, Failure)
            rows.append({
                **base,
                "classifier": name,
                "error_rate": float("nan") if failed else float(rate),
                "failed": failed,
                "failure_kind": rate.kind if failed else None,
            })
    return pd.DataFrame(
        rows, columns=["dataset", "repetition", "seed", "classifier", "error_rate", "failed", "failure_kind"]
    )


def summarize(result: BatchResult) -> pd.DataFrame:
    """Mean and standard deviation of the error rate plus failure count per dataset and classifier."""
    df = to_frame(result).dropna(subset=["classifier"])
    return (
        df.groupby(["dataset", "classifier"])
        .agg(mean_error=("error_rate", "mean"), sd_error=("error_rate", "std"), failures=("failed", "sum"))
        .reset_index()
    )
