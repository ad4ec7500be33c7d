"""
One trial: load -> partition -> select variables -> fit/score every classifier.

Variable selection sees training rows only; the selected columns are then
applied unchanged to both training and test data. Each classifier's outcome is
a :class:`Success` or a :class:`Failure`, so one algorithm failing never hides
the error rates of the others.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .classifiers.adapters import DEFAULT_CLASSIFIERS, build_adapter
from .classifiers.base import ClassifierAdapter, uniform_prior
from .datasets import microarray as _microarray, synthetic as _synthetic  # noqa: F401  (register loaders)
from .errors import PredictError
from .logging_utils import TrialLoggerAdapter
from .partition import rand_partition
from .records import Failure, Outcome, Success, TrialConfig, TrialRecord
from .registry import create_dataset
from .selection import select_variables

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrialSettings:
    """Run-level settings shared (read-only) by every trial."""
    loader: str = "microarray"
    loader_params: dict[str, Any] = field(default_factory=dict)
    train_fraction: float = 2 / 3
    top_k_variables: int = 1000
    selection_score: str = "dudoit"
    classifiers: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {name: {} for name in DEFAULT_CLASSIFIERS}
    )


def error_rate(predicted: NDArray, truth: NDArray) -> float:
    """Fraction of test observations whose predicted label differs from the truth."""
    predicted = np.asarray(predicted)
    truth = np.asarray(truth)
    if predicted.shape != truth.shape:
        raise PredictError(f"expected {truth.shape[0]} predictions; got shape {predicted.shape}")
    if truth.size == 0:
        raise PredictError("empty test set")
    return float(np.mean(predicted != truth))


def evaluate_classifier(
    adapter: ClassifierAdapter,
    train_x: NDArray,
    train_y: NDArray,
    test_x: NDArray,
    test_y: NDArray,
    prior: NDArray | None,
    seed: int | None,
) -> Outcome:
    """
    Fit, predict and score one classifier.

    Any exception raised by the classifier becomes its :class:`Failure`; the
    kind is the exception class name.
    """
    try:
        fitted = adapter.fit(train_x, train_y, prior, random_state=seed)
        predicted = adapter.predict(fitted.model, test_x)
        return Success(error_rate(predicted, test_y), fitted.hyperparameters)
    except Exception as exc:
        return Failure.from_exception(exc)


def prepare_data(config: TrialConfig, settings: TrialSettings) -> tuple[NDArray, NDArray, NDArray, NDArray]:
    """Load, partition and select variables; returns ``(train_x, train_y, test_x, test_y)``."""
    X, y = create_dataset(settings.loader, name=config.dataset, **settings.loader_params).load()
    split = rand_partition(y, settings.train_fraction, num_partitions=1, seed=config.seed)[0]
    train_x, train_y = X[split.training], y[split.training]
    test_x, test_y = X[split.test], y[split.test]

    top = select_variables(train_x, train_y, settings.top_k_variables, score=settings.selection_score)
    return train_x[:, top], train_y, test_x[:, top], test_y


def run_trial(
    config: TrialConfig,
    settings: TrialSettings,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> TrialRecord:
    """
    Run one trial end to end.

    Args:
        config: Dataset, repetition index and seed of this trial.
        settings: Run-level settings.
        logger: Log sink; defaults to this module's logger. Messages are tagged
            with the dataset, repetition and seed.

    Returns:
        TrialRecord: Error rate or failure marker for every configured
        classifier, plus the hyperparameters chosen by tuning classifiers.

    Raises:
        Exception: Dataset, partition and selection errors propagate; the
            scheduler records them as a failed trial.
    """
    log = TrialLoggerAdapter(
        logger if logger is not None else _log,
        {"dataset": config.dataset, "repetition": config.repetition, "seed": config.seed},
    )

    # only the selected columns outlive this call; the full dataset is released here
    train_x, train_y, test_x, test_y = prepare_data(config, settings)

    log.info("Training Data: (Observations, Dimension): (%s, %s)", *train_x.shape)
    log.info("Test Data: (Observations, Dimension): (%s, %s)", *test_x.shape)

    prior = uniform_prior(train_y)

    error_rates: dict[str, float | Failure] = {}
    hyperparameters: dict[str, dict[str, float] | None] = {}
    for name, spec in settings.classifiers.items():
        adapter = build_adapter(name, spec)
        outcome = evaluate_classifier(adapter, train_x, train_y, test_x, test_y, prior, config.seed)
        if isinstance(outcome, Success):
            error_rates[name] = outcome.value
            log.info("%s Error Rate: %s", name, outcome.value)
            if adapter.tunes:
                hyperparameters[name] = outcome.hyperparameters
                log.info("%s. Lambda: %s. Gamma: %s", name,
                         outcome.hyperparameters["lambda"], outcome.hyperparameters["gamma"])
        else:
            error_rates[name] = outcome
            log.warning("%s failed: %s: %s", name, outcome.kind, outcome.message)
            if adapter.tunes:
                hyperparameters[name] = None

    return TrialRecord(
        dataset=config.dataset,
        repetition=config.repetition,
        seed=config.seed,
        error_rates=error_rates,
        hyperparameters=hyperparameters,
        n_train=int(train_x.shape[0]),
        n_test=int(test_x.shape[0]),
        n_variables=int(train_x.shape[1]),
    )
