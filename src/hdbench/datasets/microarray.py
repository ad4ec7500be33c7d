"""
Microarray dataset loader.

Each dataset lives in its own CSV file ``<data_dir>/<name>.csv`` with one row
per observation, one label column and one numeric column per variable (probe
or gene). Any column name is accepted for the variables.

Quickstart
----------

    >>> from hdbench.datasets.microarray import MicroarrayCSV
    >>> X, y = MicroarrayCSV(name="shipp", data_dir="data").load()
    >>> X.shape  # (observations, variables)
    (77, 7129)

Registry integration
--------------------
The class is registered as ``"microarray"``; the harness builds it with
``create_dataset("microarray", name=<dataset id>, data_dir=...)``.

Raises
------
- ``FileNotFoundError``: when the CSV does not exist.
- ``ValueError``: when the label column is missing, a variable column is not
  numeric, or the file has fewer than two classes.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from hdbench.registry import register_dataset
from .base import check_dataset

Float64Array = NDArray[np.float64]


@register_dataset("microarray")
@dataclass(slots=True)
class MicroarrayCSV:
    """
    Attributes:
      name: Dataset identifier; also the CSV file stem.
      data_dir: Directory containing the CSV files.
      label_column: Name of the class label column.
    """
    name: str = ""
    data_dir: str | Path = "data"
    label_column: str = "label"

    @property
    def path(self) -> Path:
        return Path(self.data_dir) / f"{self.name}.csv"

    def load(self) -> tuple[Float64Array, NDArray]:
        """Load ``(X, y)``: ``X`` float64 ``(n, p)``, ``y`` labels as strings ``(n,)``."""
        csv_path = self.path
        if not csv_path.exists():
            raise FileNotFoundError(f"Path does not exist: {csv_path}")
        return self._process_frame(pd.read_csv(csv_path))

    def _process_frame(self, df: pd.DataFrame) -> tuple[Float64Array, NDArray]:
        if self.label_column not in df.columns:
            raise ValueError(f"Expected a '{self.label_column}' column in {self.path}")

        y = df[self.label_column].astype(str).to_numpy()
        features = df.drop(columns=[self.label_column])
        non_numeric = [c for c in features.columns if not pd.api.types.is_numeric_dtype(features[c])]
        if non_numeric:
            raise ValueError(f"Non-numeric variable columns in {self.path}: {non_numeric[:5]}")
        X = features.to_numpy(dtype=np.float64)
        return check_dataset(X, y, self.name)
