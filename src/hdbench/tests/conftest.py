from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pytest
from sklearn.base import BaseEstimator, ClassifierMixin

from hdbench.classifiers.base import FitResult
from hdbench.errors import FitError, PredictError
from hdbench.registry import register_classifier, register_dataset


# --------------------
# Test-only registrations
# --------------------

@register_dataset("in_memory")
@dataclass
class InMemoryDataset:
    """Serves arrays handed over through the loader params."""
    name: str = ""
    X: Any = None
    y: Any = None

    def load(self):
        return np.array(self.X, dtype=float), np.asarray(self.y).copy()


@dataclass
class BrokenAdapter:
    name: str = "Broken"
    tunes: bool = False
    stage: str = "fit"
    calls: list = field(default_factory=list)

    def fit(self, train_x, train_y, prior=None, *, random_state=None):
        if self.stage == "fit":
            raise FitError("singular covariance")
        return FitResult(model=None)

    def predict(self, model, test_x):
        raise PredictError("no model")


@register_classifier("Broken_Fit")
def broken_fit(**params):
    return BrokenAdapter(name="Broken_Fit", stage="fit")


@register_classifier("Broken_Predict")
def broken_predict(**params):
    return BrokenAdapter(name="Broken_Predict", stage="predict")


class ExplodingClassifier(BaseEstimator, ClassifierMixin):
    """Estimator whose solver always blows up."""

    def __init__(self, max_iter=10):
        self.max_iter = max_iter

    def fit(self, X, y):
        raise RuntimeError("solver did not converge")

    def predict(self, X):
        raise RuntimeError("not fitted")


@dataclass
class CrashingAdapter:
    """Adapter that raises a plain exception from predict, bypassing the error mapping."""
    name: str = "Crashing"
    tunes: bool = False

    def fit(self, train_x, train_y, prior=None, *, random_state=None):
        return FitResult(model=None)

    def predict(self, model, test_x):
        raise IndexError("index 3 is out of bounds for axis 0 with size 2")


@register_classifier("Crashing")
def crashing(**params):
    return CrashingAdapter()


# --------------------
# Fixtures
# --------------------

def make_separable(n_per_class: int = 20, p: int = 30, informative: int = 5,
                   shift: float = 3.0, seed: int = 0) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(2 * n_per_class, p))
    y = np.array(["a"] * n_per_class + ["b"] * n_per_class)
    X[n_per_class:, :informative] += shift
    return X, y


@pytest.fixture
def separable() -> tuple[np.ndarray, np.ndarray]:
    return make_separable()


@pytest.fixture
def separable_test() -> tuple[np.ndarray, np.ndarray]:
    return make_separable(n_per_class=25, seed=1)


@pytest.fixture(autouse=True)
def reset_hdbench_logging():
    yield
    root = logging.getLogger("hdbench")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = True
    root.setLevel(logging.NOTSET)
