from __future__ import annotations

import argparse
import sys

import yaml

from .config import load_config
from .core import BenchmarkRunner
from .errors import PersistError
from .logging_utils import setup_logging
from .results import summarize


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hdbench",
        description="Repeated-holdout benchmark of classifiers on high-dimensional datasets.",
    )
    p.add_argument("--config", "-c", action="append", required=True,
                   help="YAML config file; repeat to merge several (later files win)")
    p.add_argument("--workers", type=int, default=None, help="override worker_count")
    p.add_argument("--repetitions", type=int, default=None, help="override repetitions")
    p.add_argument("--output", default=None, help="override output_path")
    p.add_argument("--backend", default="loky", choices=["loky", "multiprocessing", "threading"])
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides: dict = {}
    if args.workers is not None:
        overrides["worker_count"] = args.workers
    if args.repetitions is not None:
        overrides["repetitions"] = args.repetitions
    if args.output is not None:
        overrides["output_path"] = args.output

    try:
        cfg = load_config(args.config, overrides)
    except (ValueError, TypeError, OSError, yaml.YAMLError) as exc:
        print(f"hdbench: invalid configuration: {exc}", file=sys.stderr)
        return 2

    log = setup_logging(cfg.log_level, cfg.log_file)
    runner = BenchmarkRunner(cfg, backend=args.backend)
    try:
        summary = runner.run()
    except PersistError as exc:
        log.error("%s", exc)
        return 1

    table = summarize(runner.result)
    print(table.to_string(index=False))
    log.info("Done: %s trials, %s failed -> %s", summary["n_trials"], summary["n_failed"], summary["out"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
