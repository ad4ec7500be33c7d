from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from sklearn.base import BaseEstimator, clone

from ..errors import FitError, PredictError


@dataclass(frozen=True)
class FitResult:
    model: Any
    hyperparameters: dict[str, float] | None = None


@runtime_checkable
class ClassifierAdapter(Protocol):
    """Uniform fit/predict contract around one classification algorithm."""
    name: str
    tunes: bool

    def fit(
        self,
        train_x: NDArray[np.floating],
        train_y: NDArray,
        prior: NDArray[np.floating] | None = None,
        *,
        random_state: int | None = None,
    ) -> FitResult: ...

    def predict(self, model: Any, test_x: NDArray[np.floating]) -> NDArray: ...


def uniform_prior(y: ArrayLike) -> NDArray[np.floating]:
    """Equal prior probability for every class observed in ``y``."""
    k = len(np.unique(np.asarray(y)))
    return np.full(k, 1.0 / k)


class EstimatorAdapter:
    """
    Adapter for any scikit-learn style classifier.

    The template estimator is cloned for every fit, so no model state is shared
    between trials. When ``uses_prior`` is set, the prior is passed as the
    estimator's ``prior`` parameter; when ``seeded`` is set, the trial seed is
    passed as ``random_state``.
    """

    tunes = False

    def __init__(
        self,
        name: str,
        estimator: BaseEstimator,
        *,
        uses_prior: bool = False,
        seeded: bool = False,
    ):
        self.name = name
        self.estimator = estimator
        self.uses_prior = uses_prior
        self.seeded = seeded

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, estimator={self.estimator!r})"

    def _build(self, train_y: NDArray, prior: NDArray | None, random_state: int | None) -> BaseEstimator:
        est = clone(self.estimator)
        params: dict[str, Any] = {}
        if self.uses_prior:
            params["prior"] = uniform_prior(train_y) if prior is None else np.asarray(prior, dtype=float)
        if self.seeded and random_state is not None:
            params["random_state"] = random_state
        if params:
            est.set_params(**params)
        return est

    def hyperparameters(self, model: Any) -> dict[str, float] | None:
        return None

    def fit(self, train_x, train_y, prior=None, *, random_state=None) -> FitResult:
        est = self._build(np.asarray(train_y), prior, random_state)
        try:
            model = est.fit(train_x, train_y)
        except FitError:
            raise
        except Exception as exc:
            raise FitError(f"{self.name}: {type(exc).__name__}: {exc}") from exc
        return FitResult(model=model, hyperparameters=self.hyperparameters(model))

    def predict(self, model, test_x) -> NDArray:
        try:
            return np.asarray(model.predict(test_x))
        except PredictError:
            raise
        except Exception as exc:
            raise PredictError(f"{self.name}: {type(exc).__name__}: {exc}") from exc
