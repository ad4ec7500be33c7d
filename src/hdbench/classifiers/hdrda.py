"""
High-dimensional regularized discriminant analysis (Ramey, Stein & Young).

For each class ``k`` the covariance estimate is

    ridge:   S_k(lam) + gamma I
    convex:  (1 - gamma) S_k(lam) + gamma I

with ``S_k(lam) = (1 - lam) S_k + lam S`` blending the class covariance and the
pooled covariance ``S``. Both ``S_k`` and ``S`` live in the column space of the
class-centered data (rank <= n - K), so the quadratic discriminant is evaluated
in that q-dimensional basis. The orthogonal complement contributes a plain
``||x - mu_k||^2 / gamma`` term (identical log-determinant for every class);
with ``gamma == 0`` it is dropped, which is the generalized-inverse rule.

:class:`HDRDACV` chooses ``(lam, gamma)`` on a grid by stratified K-fold
cross-validation.
"""
from __future__ import annotations

import warnings
from typing import Literal

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.exceptions import FitFailedWarning
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.utils.validation import check_is_fitted, check_X_y

from ..errors import FitError
from .discriminant import _DiscriminantBase

Shrinkage = Literal["ridge", "convex"]


class HDRDA(_DiscriminantBase):
    """HDRDA with fixed ``lam`` and ``gamma``.

    Args:
        lam: Pooling parameter in [0, 1]; 1 means every class uses the pooled covariance.
        gamma: Shrinkage toward the identity; >= 0 for ridge, in [0, 1] for convex.
        shrinkage_type: ``"ridge"`` or ``"convex"``.
        prior: Class prior probabilities; uniform if None.
        tol: Relative tolerance for rank and positive-definiteness decisions.
    """

    def __init__(self, lam: float = 1.0, gamma: float = 0.0,
                 shrinkage_type: Shrinkage = "ridge", prior=None, tol: float = 1e-8):
        self.lam = lam
        self.gamma = gamma
        self.shrinkage_type = shrinkage_type
        self.prior = prior
        self.tol = tol

    def _check_params(self) -> None:
        if self.shrinkage_type not in ("ridge", "convex"):
            raise ValueError(f"shrinkage_type must be one of ['ridge', 'convex']; got {self.shrinkage_type!r}")
        if not 0.0 <= float(self.lam) <= 1.0:
            raise ValueError(f"lam must be in [0, 1]; got {self.lam!r}")
        if float(self.gamma) < 0:
            raise ValueError(f"gamma must be >= 0; got {self.gamma!r}")
        if self.shrinkage_type == "convex" and float(self.gamma) > 1:
            raise ValueError(f"gamma must be in [0, 1] for convex shrinkage; got {self.gamma!r}")

    def fit(self, X, y):
        self._check_params()
        X, codes, counts, means = self._fit_classes(X, y)
        n = X.shape[0]
        lam, gamma = float(self.lam), float(self.gamma)

        resid = X - means[codes]
        _, s, vt = np.linalg.svd(resid / np.sqrt(n), full_matrices=False)
        if s.size == 0 or s[0] <= 0:
            raise FitError("pooled covariance is zero")
        keep = s > self.tol * s[0]
        basis = vt[keep].T
        pooled = s[keep] ** 2
        q = basis.shape[1]

        inverses, logdets = [], []
        for k, label in enumerate(self.classes_):
            Rk = resid[codes == k] @ basis
            Sk = (1.0 - lam) * (Rk.T @ Rk) / counts[k] + lam * np.diag(pooled)
            if self.shrinkage_type == "ridge":
                G = Sk + gamma * np.eye(q)
            else:
                G = (1.0 - gamma) * Sk + gamma * np.eye(q)
            w, U = np.linalg.eigh(G)
            if w[0] <= self.tol * max(w[-1], np.finfo(float).tiny):
                raise FitError(
                    f"regularized covariance of class {label!r} is singular (lam={lam}, gamma={gamma})"
                )
            inverses.append((U / w) @ U.T)
            logdets.append(float(np.sum(np.log(w))))

        self.means_ = means
        self.basis_ = basis
        self.inverses_ = np.stack(inverses)
        self.logdets_ = np.asarray(logdets)
        self.null_scale_ = gamma
        return self

    def _discriminant(self, X):
        out = np.empty((X.shape[0], len(self.classes_)))
        log_prior = np.log(self.priors_)
        for k in range(len(self.classes_)):
            diff = X - self.means_[k]
            red = diff @ self.basis_
            quad = np.einsum("ij,jk,ik->i", red, self.inverses_[k], red)
            if self.null_scale_ > 0:
                null = (diff ** 2).sum(axis=1) - (red ** 2).sum(axis=1)
                quad = quad + np.maximum(null, 0.0) / self.null_scale_
            out[:, k] = quad + self.logdets_[k] - 2.0 * log_prior[k]
        return out


def gamma_grid(num_gamma: int, shrinkage_type: Shrinkage) -> list[float]:
    """Candidate gamma values.

    >>> gamma_grid(3, "convex")
    [0.0, 0.5, 1.0]
    >>> len(gamma_grid(8, "ridge"))
    8
    """
    if num_gamma < 1:
        raise ValueError(f"num_gamma must be >= 1; got {num_gamma}")
    if shrinkage_type == "convex":
        return [float(g) for g in np.linspace(0.0, 1.0, num_gamma)]
    if num_gamma == 1:
        return [0.0]
    return [0.0] + [float(g) for g in np.logspace(-1, 4, num_gamma - 1)]


class HDRDACV(ClassifierMixin, BaseEstimator):
    """
    HDRDA with ``(lam, gamma)`` chosen by stratified K-fold cross-validation.

    Grid points whose fit fails score NaN. Ties go to the first grid point in
    scikit-learn's grid order (smallest gamma, then smallest lam).

    Attributes:
        lambda_: Selected pooling parameter.
        gamma_: Selected shrinkage parameter.
        best_estimator_: HDRDA refitted on all training data.
        cv_results_: Grid search results.
    """

    def __init__(self, num_lambda: int = 21, num_gamma: int = 8,
                 shrinkage_type: Shrinkage = "ridge", prior=None,
                 num_folds: int = 10, random_state: int | None = None):
        self.num_lambda = num_lambda
        self.num_gamma = num_gamma
        self.shrinkage_type = shrinkage_type
        self.prior = prior
        self.num_folds = num_folds
        self.random_state = random_state

    def fit(self, X, y):
        X, y = check_X_y(X, y, dtype=np.float64)
        _, counts = np.unique(y, return_counts=True)
        if counts.size < 2:
            raise FitError("at least two classes are required")
        n_splits = int(min(self.num_folds, counts.min()))
        if n_splits < 2:
            raise FitError("cross-validation needs at least two training observations per class")
        if self.num_lambda < 1:
            raise ValueError(f"num_lambda must be >= 1; got {self.num_lambda}")

        search = GridSearchCV(
            HDRDA(shrinkage_type=self.shrinkage_type, prior=self.prior),
            param_grid={
                "lam": [float(v) for v in np.linspace(0.0, 1.0, self.num_lambda)],
                "gamma": gamma_grid(self.num_gamma, self.shrinkage_type),
            },
            cv=StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=self.random_state),
            error_score=np.nan,
            refit=True,
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=FitFailedWarning)
            warnings.simplefilter("ignore", category=UserWarning)
            try:
                search.fit(X, y)
            except FitError:
                raise
            except ValueError as exc:
                raise FitError(f"every grid point failed: {exc}") from exc

        self.cv_results_ = search.cv_results_
        self.best_estimator_ = search.best_estimator_
        self.lambda_ = float(search.best_params_["lam"])
        self.gamma_ = float(search.best_params_["gamma"])
        self.classes_ = self.best_estimator_.classes_
        return self

    def predict(self, X):
        check_is_fitted(self, "best_estimator_")
        return self.best_estimator_.predict(X)
