# dataset loader and classifier adapter registries
from __future__ import annotations
from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from .classifiers.base import ClassifierAdapter
    from .datasets.base import Dataset

# ---------- Registries ----------
_DATASETS: dict[str, Callable[..., "Dataset"]] = {}
_CLASSIFIERS: dict[str, Callable[..., "ClassifierAdapter"]] = {}

# ---------- Dataset API ----------
def register_dataset(name: str):
    def deco(factory): _DATASETS[name] = factory; return factory
    return deco

def create_dataset(loader: str, **kw: Any) -> "Dataset":
    if loader not in _DATASETS:
        raise KeyError(f"Unknown dataset loader '{loader}'. Available: {sorted(_DATASETS)}")
    return _DATASETS[loader](**kw)

def available_datasets() -> list[str]:
    return sorted(_DATASETS)

# ---------- Classifier API ----------
def register_classifier(name: str):
    """Register a classifier adapter factory under `name`.

    The factory is called as ``factory(**params)`` with the keyword parameters
    found under ``classifiers.<name>`` in the run configuration and must return
    an object satisfying :class:`hdbench.classifiers.base.ClassifierAdapter`.
    """
    def deco(factory: Callable[..., "ClassifierAdapter"]):
        _CLASSIFIERS[name] = factory
        return factory
    return deco

def create_classifier(name: str, **params: Any) -> "ClassifierAdapter":
    if name not in _CLASSIFIERS:
        raise KeyError(f"Unknown classifier '{name}'. Available: {sorted(_CLASSIFIERS)}")
    return _CLASSIFIERS[name](**params)

def available_classifiers() -> list[str]:
    return sorted(_CLASSIFIERS)
