# BenchmarkRunner: configs -> scheduler -> aggregate -> persist
from __future__ import annotations
import logging
from typing import Any

from .config import BenchmarkConfig
from .results import BatchResult, aggregate, persist
from .scheduler import build_trial_configs, run_trials

logger = logging.getLogger(__name__)

class BenchmarkRunner:
    def __init__(self, cfg: BenchmarkConfig, *, backend: str = "loky"):
        self.cfg = cfg
        self.backend = backend
        self.result: BatchResult | None = None

    def run(self) -> dict[str, Any]:
        cfg = self.cfg
        configs = build_trial_configs(cfg.datasets, cfg.repetitions, base_seed=cfg.base_seed)
        log_settings = {"level": cfg.log_level, "log_file": cfg.log_file}

        records = run_trials(
            configs, cfg.settings, cfg.worker_count,
            backend=self.backend, log_settings=log_settings,
        )

        self.result = aggregate(
            records, cfg.train_fraction, cfg.repetitions,
            exp_name=cfg.exp_name,
            datasets=cfg.datasets,
            classifiers=list(cfg.settings.classifiers),
            top_k_variables=cfg.settings.top_k_variables,
            base_seed=cfg.base_seed,
        )
        out = persist(self.result, cfg.output_path)
        # keep the exact cfg next to the results
        used = out.with_name(f"{out.stem}.config_used.yaml")
        used.write_text(cfg.source_yaml, encoding="utf-8")
        logger.info("Saved %s trial records to %s", len(records), out)

        return {
            "n_trials": len(records),
            "n_failed": sum(1 for r in records if not r.ok),
            "out": str(out),
            "config_used": str(used),
        }
