"""
The seven benchmarked classifiers, registered under the names used as keys in
every trial record.

Importing this module populates the classifier registry.
"""
from __future__ import annotations

import importlib
from typing import Any

from sklearn.ensemble import RandomForestClassifier

from ..registry import register_classifier, create_classifier
from .base import EstimatorAdapter, ClassifierAdapter
from .discriminant import DiagonalLDA, PenalizedLDA, SCRDA, ShrinkageDLDA
from .hdrda import HDRDACV

# Order of the classifiers in a trial when the configuration does not list them.
DEFAULT_CLASSIFIERS: tuple[str, ...] = (
    "Random_Forest",
    "Witten",
    "Guo",
    "HDRDA_Ridge",
    "HDRDA_Convex",
    "Tong",
    "Pang",
)


def _import_object(dotted: str) -> Any:
    """
    Resolve ``"package.module.Name"`` to the object it names.

    Import errors (``ModuleNotFoundError``, ``AttributeError``) propagate.

    >>> _import_object("sklearn.svm.SVC").__name__
    'SVC'
    """
    module_name, sep, attr = dotted.rpartition(".")
    if not sep or not module_name:
        raise ValueError(f"expected a dotted path like 'sklearn.svm.SVC'; got {dotted!r}")
    return getattr(importlib.import_module(module_name), attr)


def _make_estimator(spec: dict[str, Any]) -> Any:
    """Build a classifier from a ``{"class": dotted.path, "params": {...}}`` entry."""
    if not isinstance(spec, dict) or "class" not in spec:
        raise TypeError(f"estimator entry must be a mapping with a 'class' key; got {spec!r}")
    estimator_cls = _import_object(spec["class"])
    return estimator_cls(**(spec.get("params") or {}))


class TuningAdapter(EstimatorAdapter):
    """Adapter for :class:`HDRDACV`; reports the selected (lambda, gamma)."""

    tunes = True

    def hyperparameters(self, model: HDRDACV) -> dict[str, float]:
        return {"lambda": model.lambda_, "gamma": model.gamma_}


# ---------- Registered variants ----------

@register_classifier("Random_Forest")
def random_forest(n_estimators: int = 250, max_leaf_nodes: int = 100, **params: Any) -> EstimatorAdapter:
    est = RandomForestClassifier(n_estimators=n_estimators, max_leaf_nodes=max_leaf_nodes, n_jobs=1, **params)
    return EstimatorAdapter("Random_Forest", est, seeded=True)

@register_classifier("Witten")
def witten(**params: Any) -> EstimatorAdapter:
    return EstimatorAdapter("Witten", PenalizedLDA(**params))

@register_classifier("Guo")
def guo(**params: Any) -> EstimatorAdapter:
    return EstimatorAdapter("Guo", SCRDA(**params), uses_prior=True)

def _hdrda(name: str, shrinkage_type: str, num_gamma_grid_points: int, **params: Any) -> TuningAdapter:
    est = HDRDACV(shrinkage_type=shrinkage_type, num_gamma=num_gamma_grid_points, **params)
    return TuningAdapter(name, est, uses_prior=True, seeded=True)

@register_classifier("HDRDA_Ridge")
def hdrda_ridge(num_gamma_grid_points: int = 8, **params: Any) -> TuningAdapter:
    return _hdrda("HDRDA_Ridge", "ridge", num_gamma_grid_points, **params)

@register_classifier("HDRDA_Convex")
def hdrda_convex(num_gamma_grid_points: int = 21, **params: Any) -> TuningAdapter:
    return _hdrda("HDRDA_Convex", "convex", num_gamma_grid_points, **params)

@register_classifier("Tong")
def tong(**params: Any) -> EstimatorAdapter:
    return EstimatorAdapter("Tong", DiagonalLDA(est_mean="tong", **params), uses_prior=True)

@register_classifier("Pang")
def pang(**params: Any) -> EstimatorAdapter:
    return EstimatorAdapter("Pang", ShrinkageDLDA(**params), uses_prior=True)


def build_adapter(name: str, spec: dict[str, Any] | None = None) -> ClassifierAdapter:
    """
    Adapter for one ``classifiers:`` config entry.

    ``spec`` is either keyword parameters for a registered classifier, or an
    estimator spec ``{"class": ..., "params": ..., "uses_prior": bool,
    "seeded": bool}`` for any scikit-learn style classifier.
    """
    spec = dict(spec or {})
    if "class" in spec:
        est = _make_estimator({"class": spec["class"], "params": spec.get("params")})
        return EstimatorAdapter(
            name,
            est,
            uses_prior=bool(spec.get("uses_prior", False)),
            seeded=bool(spec.get("seeded", False)),
        )
    return create_classifier(name, **spec)
