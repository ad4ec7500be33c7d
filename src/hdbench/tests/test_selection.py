import numpy as np
import pytest

from hdbench.errors import VariableSelectionError
from hdbench.selection import select_variables, variable_scores


def test_returns_k_indices_in_descending_score_order(separable):
    X, y = separable
    idx = select_variables(X, y, 10)
    scores = variable_scores(X, y)

    assert idx.shape == (10,)
    assert idx.dtype == np.int64
    assert np.all((idx >= 0) & (idx < X.shape[1]))
    assert len(set(idx.tolist())) == 10
    assert np.all(np.diff(scores[idx]) <= 0)
    # nothing left out scores higher than the last one kept
    rest = np.setdiff1d(np.arange(X.shape[1]), idx)
    assert scores[rest].max() <= scores[idx].min()


def test_informative_variables_rank_first(separable):
    X, y = separable
    assert set(select_variables(X, y, 5).tolist()) == {0, 1, 2, 3, 4}


def test_k_equal_to_variable_count_is_allowed(separable):
    X, y = separable
    assert sorted(select_variables(X, y, X.shape[1]).tolist()) == list(range(X.shape[1]))


def test_k_exceeding_variable_count_raises(separable):
    X, y = separable
    with pytest.raises(VariableSelectionError, match="k exceeds variable count"):
        select_variables(X, y, X.shape[1] + 1)


def test_k_below_one_raises(separable):
    X, y = separable
    with pytest.raises(VariableSelectionError):
        select_variables(X, y, 0)


def test_dudoit_ratio_by_hand():
    X = np.array([[1.0, 0.0], [3.0, 0.0], [5.0, 1.0], [7.0, 1.0]])
    y = np.array(["a", "a", "b", "b"])
    scores = variable_scores(X, y)
    # column 0: BSS = 2*(2-4)^2 + 2*(6-4)^2 = 16, WSS = 4*1 = 4
    assert scores[0] == pytest.approx(4.0)
    # column 1: perfectly separated with no within-class spread
    assert np.isinf(scores[1])


def test_constant_variable_scores_zero():
    X = np.column_stack([np.ones(6), np.arange(6.0)])
    y = np.array([0, 0, 0, 1, 1, 1])
    assert variable_scores(X, y)[0] == 0.0


def test_anova_ranks_like_dudoit(separable):
    X, y = separable
    assert np.array_equal(select_variables(X, y, 12, score="anova"),
                          select_variables(X, y, 12, score="dudoit"))


def test_unknown_score_raises(separable):
    X, y = separable
    with pytest.raises(ValueError):
        variable_scores(X, y, score="t-test")


def test_ties_keep_lower_index_first():
    X = np.tile(np.array([[0.0], [1.0], [2.0], [3.0]]), (1, 4))
    y = np.array([0, 0, 1, 1])
    assert select_variables(X, y, 4).tolist() == [0, 1, 2, 3]


def test_selection_ignores_rows_not_passed_in(separable):
    X, y = separable
    train = np.arange(0, 40, 2)
    before = select_variables(X[train], y[train], 8)
    X2, y2 = X.copy(), y.copy()
    test = np.setdiff1d(np.arange(40), train)
    X2[test] = np.random.default_rng(9).normal(scale=50.0, size=(test.size, X.shape[1]))
    y2[test] = y2[test][::-1]
    after = select_variables(X2[train], y2[train], 8)
    assert np.array_equal(before, after)
