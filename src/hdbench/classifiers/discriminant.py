"""
Diagonal and regularized discriminant classifiers for p >> n data.

All estimators follow the scikit-learn estimator API (``fit``/``predict``,
``get_params``/``set_params``) so they can be cloned, grid-searched and wrapped
by :class:`hdbench.classifiers.base.EstimatorAdapter`.

Estimators
----------
- :class:`DiagonalLDA`: diagonal LDA, optionally with James-Stein shrunken
  class means (``est_mean="tong"``).
- :class:`ShrinkageDLDA`: diagonal LDA whose variances are shrunk toward
  their geometric mean.
- :class:`SCRDA`: shrunken-centroid regularized discriminant analysis.
- :class:`PenalizedLDA`: L1-penalized Fisher discriminant vectors followed by
  nearest-centroid classification in the projected space.

Degenerate training data (a single class, zero within-class variance, too few
observations) raises :class:`hdbench.errors.FitError`.
"""
from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import NDArray
from scipy.special import polygamma
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_array, check_is_fitted, check_X_y

from ..errors import FitError

FloatArray = NDArray[np.floating]


# -----------------------------------------------------------------------------
# Shared helpers
# -----------------------------------------------------------------------------

def _soft_threshold(x: FloatArray, t: float) -> FloatArray:
    return np.sign(x) * np.maximum(np.abs(x) - t, 0.0)


def _pooled_variance(resid: FloatArray, n_classes: int) -> FloatArray:
    n = resid.shape[0]
    if n <= n_classes:
        raise FitError(f"need more observations ({n}) than classes ({n_classes})")
    return (resid ** 2).sum(axis=0) / (n - n_classes)


class _DiscriminantBase(ClassifierMixin, BaseEstimator):
    """Class bookkeeping shared by the estimators below.

    Subclasses implement ``_discriminant(X) -> (n, K)`` where the smallest
    column wins.
    """

    def _fit_classes(self, X, y):
        X, y = check_X_y(X, y, dtype=np.float64)
        self.classes_, codes = np.unique(y, return_inverse=True)
        n_classes = len(self.classes_)
        if n_classes < 2:
            raise FitError("at least two classes are required")
        self.n_features_in_ = X.shape[1]
        self.priors_ = self._resolve_prior(n_classes)
        counts = np.bincount(codes, minlength=n_classes)
        means = np.vstack([X[codes == k].mean(axis=0) for k in range(n_classes)])
        return X, codes, counts, means

    def _resolve_prior(self, n_classes: int) -> FloatArray:
        prior = getattr(self, "prior", None)
        if prior is None:
            return np.full(n_classes, 1.0 / n_classes)
        prior = np.asarray(prior, dtype=float)
        if prior.shape != (n_classes,):
            raise ValueError(f"prior must have {n_classes} entries; got shape {prior.shape}")
        if np.any(prior <= 0) or not np.isclose(prior.sum(), 1.0):
            raise ValueError("prior must be positive and sum to 1")
        return prior

    def _discriminant(self, X: FloatArray) -> FloatArray:
        raise NotImplementedError

    def predict(self, X):
        check_is_fitted(self, "classes_")
        X = check_array(X, dtype=np.float64)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(
                f"X has {X.shape[1]} features, but {type(self).__name__} was fitted with {self.n_features_in_}"
            )
        scores = self._discriminant(X)
        return self.classes_[np.argmin(scores, axis=1)]


def _diagonal_distances(X: FloatArray, means: FloatArray, var: FloatArray) -> FloatArray:
    # sum_j (x_j - m_kj)^2 / var_j for every row and class, without an (n, K, p) temporary
    Xs = X / var
    return (
        (X * Xs).sum(axis=1)[:, None]
        - 2.0 * Xs @ means.T
        + ((means ** 2) / var).sum(axis=1)[None, :]
    )


# -----------------------------------------------------------------------------
# Diagonal LDA (Dudoit et al. 2002; Tong, Chen & Zhao 2012)
# -----------------------------------------------------------------------------

def james_stein_means(means: FloatArray, var: FloatArray, counts: NDArray[np.integer]) -> FloatArray:
    """Positive-part James-Stein shrinkage of each class mean toward zero."""
    p = means.shape[1]
    if p <= 2:
        return means.copy()
    shrunk = np.empty_like(means)
    for k, m in enumerate(means):
        z2 = float(np.sum(counts[k] * m ** 2 / var))
        factor = max(0.0, 1.0 - (p - 2) / z2) if z2 > 0 else 0.0
        shrunk[k] = factor * m
    return shrunk


class DiagonalLDA(_DiscriminantBase):
    """
    Diagonal linear discriminant analysis.

    Args:
        prior: Class prior probabilities in sorted class order; uniform if None.
        est_mean: ``"mle"`` uses the sample class means; ``"tong"`` shrinks
            them with a positive-part James-Stein estimator.
    """

    def __init__(self, prior=None, est_mean: Literal["mle", "tong"] = "mle"):
        self.prior = prior
        self.est_mean = est_mean

    def fit(self, X, y):
        if self.est_mean not in ("mle", "tong"):
            raise ValueError(f"est_mean must be one of ['mle', 'tong']; got {self.est_mean!r}")
        X, codes, counts, means = self._fit_classes(X, y)
        var = _pooled_variance(X - means[codes], len(self.classes_))
        if np.any(var <= 0):
            raise FitError(f"{int(np.sum(var <= 0))} variables have zero within-class variance")
        self.var_ = var
        self.means_ = james_stein_means(means, var, counts) if self.est_mean == "tong" else means
        return self

    def _discriminant(self, X):
        return _diagonal_distances(X, self.means_, self.var_) - 2.0 * np.log(self.priors_)


# -----------------------------------------------------------------------------
# Shrinkage-based diagonal LDA (Pang, Tong & Zhao 2009)
# -----------------------------------------------------------------------------

class ShrinkageDLDA(_DiscriminantBase):
    """
    Diagonal LDA with variances shrunk toward their geometric mean.

    The shrinkage happens on the log scale:
    ``log v_j = (1 - alpha) log s2_j + alpha mean(log s2)``. When ``alpha`` is
    None it is estimated as the ratio between the sampling variance of
    ``log s2`` under ``nu = n - K`` degrees of freedom (``trigamma(nu / 2)``)
    and the observed spread of ``log s2`` across variables, clipped to [0, 1].
    """

    def __init__(self, prior=None, alpha: float | None = None):
        self.prior = prior
        self.alpha = alpha

    def fit(self, X, y):
        X, codes, counts, means = self._fit_classes(X, y)
        n_classes = len(self.classes_)
        s2 = _pooled_variance(X - means[codes], n_classes)
        if np.any(s2 <= 0):
            raise FitError(f"{int(np.sum(s2 <= 0))} variables have zero within-class variance")
        log_s2 = np.log(s2)

        if self.alpha is not None:
            if not 0.0 <= float(self.alpha) <= 1.0:
                raise ValueError(f"alpha must be in [0, 1]; got {self.alpha!r}")
            alpha = float(self.alpha)
        elif log_s2.size < 2:
            alpha = 0.0
        else:
            nu = X.shape[0] - n_classes
            spread = float(np.var(log_s2, ddof=1))
            alpha = 1.0 if spread == 0 else float(np.clip(polygamma(1, nu / 2.0) / spread, 0.0, 1.0))

        self.alpha_ = alpha
        self.var_ = np.exp((1.0 - alpha) * log_s2 + alpha * log_s2.mean())
        self.means_ = means
        return self

    def _discriminant(self, X):
        return _diagonal_distances(X, self.means_, self.var_) - 2.0 * np.log(self.priors_)


# -----------------------------------------------------------------------------
# Shrunken centroids RDA (Guo, Hastie & Tibshirani 2007)
# -----------------------------------------------------------------------------

class SCRDA(_DiscriminantBase):
    """
    Shrunken-centroid regularized discriminant analysis.

    Data are centered on the overall mean and scaled by the pooled within-class
    standard deviation. The within-class correlation matrix ``R`` is regularized
    to ``alpha R + (1 - alpha) I`` and ``R~^-1 m_k`` is soft-thresholded by
    ``delta`` for every standardized class centroid ``m_k``. The inverse is
    applied through the SVD of the residual matrix, so no p x p matrix is formed.

    Args:
        prior: Class prior probabilities; uniform if None.
        alpha: Correlation regularization in [0, 1).
        delta: Soft-threshold applied to the regularized centroids, >= 0.
    """

    def __init__(self, prior=None, alpha: float = 0.5, delta: float = 0.5):
        self.prior = prior
        self.alpha = alpha
        self.delta = delta

    def fit(self, X, y):
        if not 0.0 <= float(self.alpha) < 1.0:
            raise ValueError(f"alpha must be in [0, 1); got {self.alpha!r}")
        if float(self.delta) < 0:
            raise ValueError(f"delta must be >= 0; got {self.delta!r}")
        X, codes, counts, means = self._fit_classes(X, y)
        n_classes = len(self.classes_)
        resid = X - means[codes]
        var = _pooled_variance(resid, n_classes)
        if np.any(var <= 0):
            raise FitError(f"{int(np.sum(var <= 0))} variables have zero within-class variance")
        scale = np.sqrt(var)
        center = X.mean(axis=0)

        W = resid / scale / np.sqrt(X.shape[0] - n_classes)
        _, s, vt = np.linalg.svd(W, full_matrices=False)
        a = float(self.alpha)
        shrink = a * s ** 2 / (a * s ** 2 + 1.0 - a)

        centroids = (means - center) / scale
        # R~^-1 m for each centroid
        reg_inv = (centroids - ((centroids @ vt.T) * shrink) @ vt) / (1.0 - a)
        shrunk = _soft_threshold(reg_inv, float(self.delta))

        self.center_ = center
        self.scale_ = scale
        self.centroids_ = centroids
        self.shrunken_ = shrunk
        self.n_active_ = int(np.count_nonzero(np.any(shrunk != 0, axis=0)))
        return self

    def _discriminant(self, X):
        Z = (X - self.center_) / self.scale_
        score = (
            Z @ self.shrunken_.T
            - 0.5 * np.sum(self.centroids_ * self.shrunken_, axis=1)[None, :]
            + np.log(self.priors_)[None, :]
        )
        return -score


# -----------------------------------------------------------------------------
# Penalized LDA (Witten & Tibshirani 2011)
# -----------------------------------------------------------------------------

class PenalizedLDA(_DiscriminantBase):
    """
    Penalized LDA with an L1 penalty and diagonal within-class covariance.

    Each discriminant vector maximizes ``b' S_b b - lam ||b||_1`` subject to
    ``||b|| <= 1`` on standardized data, found by minorization-maximization
    (``b <- S(S_b b, lam / 2) / ||.||``) from the leading eigenvector of the
    between-class covariance ``S_b``. Later vectors use ``S_b`` deflated by the
    earlier ones. Observations are then assigned to the nearest projected
    class centroid, adjusted by the log prior.

    Args:
        lam: L1 penalty, >= 0.
        n_components: Number of discriminant vectors; ``K - 1`` if None.
        max_iter: Maximum minorization-maximization iterations per vector.
        tol: Convergence tolerance on the change of the vector.
        prior: Class prior probabilities; uniform if None.
    """

    def __init__(self, lam: float = 0.1, n_components: int | None = None,
                 max_iter: int = 50, tol: float = 1e-6, prior=None):
        self.lam = lam
        self.n_components = n_components
        self.max_iter = max_iter
        self.tol = tol
        self.prior = prior

    def fit(self, X, y):
        if float(self.lam) < 0:
            raise ValueError(f"lam must be >= 0; got {self.lam!r}")
        X, codes, counts, means = self._fit_classes(X, y)
        n, n_classes = X.shape[0], len(self.classes_)
        var = _pooled_variance(X - means[codes], n_classes)
        if np.any(var <= 0):
            raise FitError(f"{int(np.sum(var <= 0))} variables have zero within-class variance")
        center = X.mean(axis=0)
        scale = np.sqrt(var)
        centroids = (means - center) / scale

        q = n_classes - 1 if self.n_components is None else int(self.n_components)
        if q < 1:
            raise ValueError(f"n_components must be >= 1; got {q}")

        # S_b = M'M
        M = np.sqrt(counts / n)[:, None] * centroids
        vectors: list[FloatArray] = []
        for _ in range(q):
            _, sv, vt = np.linalg.svd(M, full_matrices=False)
            if sv[0] <= np.finfo(float).eps:
                break
            beta = self._maximize(M, vt[0])
            if not beta.any():
                break
            vectors.append(beta)
            M = M - np.outer(M @ beta, beta)

        if not vectors:
            raise FitError(f"penalty lam={self.lam} removes every variable; no discriminant vector left")

        self.center_ = center
        self.scale_ = scale
        self.discriminant_vectors_ = np.column_stack(vectors)
        self.projected_centroids_ = centroids @ self.discriminant_vectors_
        self.n_active_ = int(np.count_nonzero(np.any(self.discriminant_vectors_ != 0, axis=1)))
        return self

    def _maximize(self, M: FloatArray, beta: FloatArray) -> FloatArray:
        half = float(self.lam) / 2.0
        for _ in range(self.max_iter):
            update = _soft_threshold(M.T @ (M @ beta), half)
            norm = np.linalg.norm(update)
            if norm == 0:
                return update
            update /= norm
            done = np.linalg.norm(update - beta) < self.tol
            beta = update
            if done:
                break
        return beta

    def _discriminant(self, X):
        proj = ((X - self.center_) / self.scale_) @ self.discriminant_vectors_
        diff = proj[:, None, :] - self.projected_centroids_[None, :, :]
        return (diff ** 2).sum(axis=2) - 2.0 * np.log(self.priors_)[None, :]
