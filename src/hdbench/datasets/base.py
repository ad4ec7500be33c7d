from __future__ import annotations
from typing import Protocol
import numpy as np

# Dataset Protocol + common utils

class Dataset(Protocol):
    name: str

    def load(self) -> tuple[np.ndarray, np.ndarray]: ...


def check_dataset(X: np.ndarray, y: np.ndarray, name: str) -> tuple[np.ndarray, np.ndarray]:
    """Validate the loader invariants: 2-D features, one label per row, >= 2 classes."""
    if X.ndim != 2:
        raise ValueError(f"{name}: features must be 2-D; got shape {X.shape}")
    if y.ndim != 1 or y.shape[0] != X.shape[0]:
        raise ValueError(f"{name}: expected {X.shape[0]} labels; got shape {y.shape}")
    if np.unique(y).size < 2:
        raise ValueError(f"{name}: at least two classes are required")
    return X, y
