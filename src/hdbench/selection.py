"""Univariate variable selection (Dudoit, Fridlyand & Speed, 2002)."""
from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from sklearn.feature_selection import f_classif

from .errors import VariableSelectionError

Score = Literal["dudoit", "anova"]


def _bss_wss_ratio(X: NDArray[np.floating], y: NDArray) -> NDArray[np.floating]:
    classes, codes = np.unique(y, return_inverse=True)
    overall = X.mean(axis=0)
    bss = np.zeros(X.shape[1])
    wss = np.zeros(X.shape[1])
    for k in range(len(classes)):
        Xk = X[codes == k]
        mk = Xk.mean(axis=0)
        bss += Xk.shape[0] * (mk - overall) ** 2
        wss += ((Xk - mk) ** 2).sum(axis=0)
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = bss / wss
    # 0/0: constant variable
    ratio[(wss == 0) & (bss == 0)] = 0.0
    return ratio


def variable_scores(train_x: ArrayLike, train_y: ArrayLike, score: Score = "dudoit") -> NDArray[np.floating]:
    """
    Class-separation score of every variable.

    Args:
        train_x: Training features, shape ``(n, p)``.
        train_y: Training labels, shape ``(n,)``.
        score: ``"dudoit"`` for the between/within sum-of-squares ratio,
            ``"anova"`` for the one-way ANOVA F statistic. Both rank variables
            identically for a fixed number of classes.

    Returns:
        np.ndarray: Scores of shape ``(p,)``; larger separates better.
    """
    X = np.asarray(train_x, dtype=float)
    y = np.asarray(train_y)
    if X.ndim != 2 or X.shape[0] != y.shape[0]:
        raise ValueError(f"train_x must be 2-D with {y.shape[0]} rows; got shape {X.shape}")
    if score == "dudoit":
        return _bss_wss_ratio(X, y)
    if score == "anova":
        with np.errstate(divide="ignore", invalid="ignore"):
            F, _ = f_classif(X, y)
        return np.nan_to_num(F, nan=0.0, posinf=np.inf)
    raise ValueError(f"score must be one of ['dudoit', 'anova']; got {score!r}")


def select_variables(
    train_x: ArrayLike,
    train_y: ArrayLike,
    num_variables: int,
    score: Score = "dudoit",
) -> NDArray[np.int64]:
    """
    Indices of the ``num_variables`` best separating variables.

    Only the rows passed in are used, so callers must pass training rows only.

    Returns:
        np.ndarray: Column indices ordered by descending score; ties keep the
        lower index first.

    Raises:
        VariableSelectionError: If ``num_variables`` is below 1 or exceeds the
            number of variables.
    """
    X = np.asarray(train_x, dtype=float)
    p = X.shape[1] if X.ndim == 2 else 0
    if num_variables < 1:
        raise VariableSelectionError(f"num_variables must be >= 1; got {num_variables}")
    if num_variables > p:
        raise VariableSelectionError(
            f"k exceeds variable count: requested {num_variables} of {p} variables"
        )
    scores = variable_scores(X, train_y, score=score)
    order = np.argsort(-scores, kind="stable")
    return order[:num_variables].astype(np.int64)
