from __future__ import annotations

import zlib
from dataclasses import dataclass

import numpy as np
from sklearn.datasets import make_classification

from hdbench.registry import register_dataset
from .base import check_dataset


@register_dataset("synthetic")
@dataclass(slots=True)
class SyntheticMicroarray:
    """Small-n, large-p classification data from ``make_classification``.

    The generator seed mixes ``random_state`` with a CRC of ``name`` so each
    dataset name gives different, but reproducible, data.
    """
    name: str = "synthetic"
    n_samples: int = 100
    n_features: int = 2000
    n_informative: int = 20
    n_classes: int = 2
    class_sep: float = 1.0
    weights: list[float] | None = None
    random_state: int = 0

    def load(self) -> tuple[np.ndarray, np.ndarray]:
        seed = (self.random_state + zlib.crc32(self.name.encode("utf-8"))) % (2**32)
        X, y = make_classification(
            n_samples=self.n_samples,
            n_features=self.n_features,
            n_informative=self.n_informative,
            n_redundant=0,
            n_classes=self.n_classes,
            weights=self.weights,
            class_sep=self.class_sep,
            flip_y=0.0,
            shuffle=True,
            random_state=seed,
        )
        labels = np.array([f"class_{k}" for k in y])
        return check_dataset(X.astype(np.float64), labels, self.name)
