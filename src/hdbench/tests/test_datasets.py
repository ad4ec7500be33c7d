from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from hdbench.datasets.base import check_dataset
from hdbench.datasets.microarray import MicroarrayCSV
from hdbench.datasets.synthetic import SyntheticMicroarray
from hdbench.registry import available_datasets, create_dataset


def write_csv(tmp_path: Path, name: str, frame: pd.DataFrame) -> Path:
    path = tmp_path / f"{name}.csv"
    frame.to_csv(path, index=False)
    return path


def small_frame() -> pd.DataFrame:
    rng = np.random.default_rng(0)
    frame = pd.DataFrame(rng.normal(size=(6, 4)), columns=["g1", "g2", "AFFX-3", "g4"])
    frame.insert(0, "label", ["ALL", "ALL", "AML", "AML", "ALL", "AML"])
    return frame


# --------------------
# MicroarrayCSV
# --------------------

def test_loads_features_and_string_labels(tmp_path: Path):
    frame = small_frame()
    write_csv(tmp_path, "golub", frame)
    X, y = MicroarrayCSV(name="golub", data_dir=tmp_path).load()
    assert X.shape == (6, 4)
    assert X.dtype == np.float64
    np.testing.assert_allclose(X, frame.drop(columns=["label"]).to_numpy())
    assert y.tolist() == ["ALL", "ALL", "AML", "AML", "ALL", "AML"]


def test_numeric_labels_become_strings(tmp_path: Path):
    frame = small_frame()
    frame["label"] = [0, 0, 1, 1, 0, 1]
    write_csv(tmp_path, "coded", frame)
    _, y = MicroarrayCSV(name="coded", data_dir=tmp_path).load()
    assert y.tolist() == ["0", "0", "1", "1", "0", "1"]


def test_custom_label_column(tmp_path: Path):
    frame = small_frame().rename(columns={"label": "class"})
    write_csv(tmp_path, "renamed", frame)
    X, _ = MicroarrayCSV(name="renamed", data_dir=tmp_path, label_column="class").load()
    assert X.shape == (6, 4)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError, match="Path does not exist"):
        MicroarrayCSV(name="absent", data_dir=tmp_path).load()


def test_missing_label_column_raises(tmp_path: Path):
    write_csv(tmp_path, "nolabel", small_frame().drop(columns=["label"]))
    with pytest.raises(ValueError, match="'label' column"):
        MicroarrayCSV(name="nolabel", data_dir=tmp_path).load()


def test_non_numeric_variable_raises(tmp_path: Path):
    frame = small_frame()
    frame["g2"] = ["x", "y", "z", "x", "y", "z"]
    write_csv(tmp_path, "mixed", frame)
    with pytest.raises(ValueError, match="Non-numeric"):
        MicroarrayCSV(name="mixed", data_dir=tmp_path).load()


def test_single_class_file_raises(tmp_path: Path):
    frame = small_frame()
    frame["label"] = "ALL"
    write_csv(tmp_path, "oneclass", frame)
    with pytest.raises(ValueError, match="two classes"):
        MicroarrayCSV(name="oneclass", data_dir=tmp_path).load()


def test_registered_as_microarray(tmp_path: Path):
    write_csv(tmp_path, "golub", small_frame())
    ds = create_dataset("microarray", name="golub", data_dir=str(tmp_path))
    assert isinstance(ds, MicroarrayCSV)
    assert ds.path == tmp_path / "golub.csv"
    assert ds.load()[0].shape == (6, 4)


# --------------------
# SyntheticMicroarray
# --------------------

def test_synthetic_shape_and_labels():
    X, y = SyntheticMicroarray(name="s", n_samples=30, n_features=120, n_informative=5).load()
    assert X.shape == (30, 120)
    assert set(y) == {"class_0", "class_1"}


def test_synthetic_is_reproducible_per_name():
    a = SyntheticMicroarray(name="s", n_samples=20, n_features=50, n_informative=5).load()
    b = SyntheticMicroarray(name="s", n_samples=20, n_features=50, n_informative=5).load()
    c = SyntheticMicroarray(name="t", n_samples=20, n_features=50, n_informative=5).load()
    np.testing.assert_array_equal(a[0], b[0])
    np.testing.assert_array_equal(a[1], b[1])
    assert not np.array_equal(a[0], c[0])


def test_synthetic_multiclass():
    _, y = SyntheticMicroarray(name="m", n_samples=60, n_features=40, n_informative=6, n_classes=3).load()
    assert len(np.unique(y)) == 3


# --------------------
# registry / checks
# --------------------

def test_available_loaders():
    assert {"microarray", "synthetic"} <= set(available_datasets())


def test_unknown_loader_raises():
    with pytest.raises(KeyError, match="Unknown dataset loader"):
        create_dataset("nope", name="x")


def test_check_dataset_rejects_bad_shapes():
    with pytest.raises(ValueError, match="2-D"):
        check_dataset(np.zeros(4), np.array([0, 1, 0, 1]), "d")
    with pytest.raises(ValueError, match="labels"):
        check_dataset(np.zeros((4, 2)), np.array([0, 1, 0]), "d")
