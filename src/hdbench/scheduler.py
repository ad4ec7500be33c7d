"""
Fan trials out over a bounded joblib worker pool.

Every trial derives its randomness from its own seed, so the records do not
depend on which worker ran a trial or when. ``joblib.Parallel`` returns results
in submission order, which keeps ``records[i]`` aligned with ``configs[i]``.
"""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from joblib import Parallel, delayed

from .errors import TrialError
from .logging_utils import setup_logging
from .records import Failure, TrialConfig, TrialRecord
from .trial import TrialSettings, run_trial

_log = logging.getLogger(__name__)

TrialFn = Callable[..., TrialRecord]


def build_trial_configs(datasets: Sequence[str], repetitions: int, base_seed: int = 1) -> list[TrialConfig]:
    """
    Dataset-major list of trial configurations.

    The seed of the i-th trial (0-based, across all datasets) is
    ``base_seed + i``, so every trial of a batch has its own seed.

    Examples:
        >>> [(c.dataset, c.repetition, c.seed) for c in build_trial_configs(["a", "b"], 2)]
        [('a', 0, 1), ('a', 1, 2), ('b', 0, 3), ('b', 1, 4)]
    """
    if repetitions < 1:
        raise ValueError(f"repetitions must be >= 1; got {repetitions}")
    configs: list[TrialConfig] = []
    for dataset in datasets:
        for rep in range(repetitions):
            configs.append(TrialConfig(dataset=dataset, repetition=rep, seed=base_seed + len(configs)))
    return configs


def execute_trial(
    config: TrialConfig,
    settings: TrialSettings,
    logger: logging.Logger | None = None,
    trial_fn: TrialFn = run_trial,
    log_settings: dict | None = None,
) -> TrialRecord:
    """Run one trial; any exception becomes a wholly failed record."""
    if log_settings is not None and not logging.getLogger("hdbench").handlers:
        # fresh worker process
        setup_logging(**log_settings)
    log = logger if logger is not None else _log
    try:
        return trial_fn(config, settings, logger=log)
    except Exception as exc:
        log.exception("Trial failed -- Data Set: %s -- Seed: %s", config.dataset, config.seed)
        return TrialRecord.failed(config, Failure.from_exception(exc, kind=TrialError.__name__))


def run_trials(
    configs: Sequence[TrialConfig],
    settings: TrialSettings,
    worker_count: int | None = None,
    *,
    logger: logging.Logger | None = None,
    backend: str = "loky",
    trial_fn: TrialFn = run_trial,
    log_settings: dict | None = None,
) -> list[TrialRecord]:
    """
    Run every trial on a pool of ``worker_count`` workers.

    Args:
        configs: Trials to run.
        settings: Run-level settings passed to every trial.
        worker_count: Pool size; None uses every host core.
        logger: Log sink handed to each trial.
        backend: joblib backend (``"loky"`` processes, ``"threading"``, ...).
        trial_fn: Trial implementation, ``run_trial`` unless overridden.
        log_settings: ``setup_logging`` kwargs applied in fresh worker processes.

    Returns:
        list[TrialRecord]: One record per config, in input order.
    """
    if worker_count is not None and worker_count < 1:
        raise ValueError(f"worker_count must be a positive int or None; got {worker_count}")
    n_jobs = -1 if worker_count is None else worker_count
    log = logger if logger is not None else _log
    log.info("Running %s trials on %s workers (%s backend)", len(configs),
             "all" if worker_count is None else worker_count, backend)

    records = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(execute_trial)(config, settings, logger, trial_fn, log_settings)
        for config in configs
    )
    failed = sum(1 for r in records if not r.ok)
    log.info("Finished %s trials (%s failed)", len(records), failed)
    return list(records)
