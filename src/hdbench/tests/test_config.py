from pathlib import Path
import textwrap

import pytest
import yaml

import hdbench.config as cfg
from hdbench.classifiers.adapters import DEFAULT_CLASSIFIERS


# --------------------
# Helpers for tests
# --------------------

def write_yaml(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def minimal_cfg(**overrides):
    base = {
        "exp_name": "unit",
        "datasets": {"loader": "synthetic", "params": {"n_features": 50}, "names": ["a", "b"]},
        "train_fraction": 0.67,
        "repetitions": 3,
        "top_k_variables": 10,
        "output_path": "results/${exp_name}.json",
    }
    base.update(overrides)
    return base


# --------------------
# YAML loading and merging
# --------------------

def test_load_yaml_reads_nested_mapping(tmp_path: Path):
    path = write_yaml(tmp_path, "run.yaml", """
        repetitions: 100
        datasets: {loader: microarray, names: [shipp, singh]}
    """)
    assert cfg._load_yaml(path) == {
        "repetitions": 100,
        "datasets": {"loader": "microarray", "names": ["shipp", "singh"]},
    }


def test_empty_yaml_is_an_empty_mapping(tmp_path: Path):
    assert cfg._load_yaml(write_yaml(tmp_path, "blank.yaml", "")) == {}


def test_yaml_list_at_top_level_is_rejected(tmp_path: Path):
    path = write_yaml(tmp_path, "names.yaml", "- shipp\n- singh\n")
    with pytest.raises(TypeError, match="mapping"):
        cfg._load_yaml(path)


def test_malformed_yaml_raises(tmp_path: Path):
    path = write_yaml(tmp_path, "broken.yaml", "datasets: {names: [shipp\n")
    with pytest.raises(yaml.YAMLError):
        cfg._load_yaml(path)


def test_missing_yaml_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        cfg._load_yaml(tmp_path / "absent.yaml")


def test_deep_update_merges_nested_blocks_without_mutating():
    base = {"datasets": {"loader": "microarray", "params": {"data_dir": "data"}}, "repetitions": 100}
    override = {"datasets": {"params": {"label_column": "class"}}, "repetitions": 5}
    merged = cfg._deep_update(base, override)
    assert merged == {
        "datasets": {"loader": "microarray", "params": {"data_dir": "data", "label_column": "class"}},
        "repetitions": 5,
    }
    assert base["repetitions"] == 100
    assert base["datasets"]["params"] == {"data_dir": "data"}


def test_deep_update_scalar_replaces_mapping():
    assert cfg._deep_update({"random_seed": {"base": 1}}, {"random_seed": None}) == {"random_seed": None}


def test_later_files_win(tmp_path: Path):
    first = write_yaml(tmp_path, "base.yaml", "worker_count: 16\nrandom_seed: {base: 1}\n")
    second = write_yaml(tmp_path, "local.yaml", "worker_count: 2\n")
    assert cfg.load_and_merge([first, second]) == {"worker_count": 2, "random_seed": {"base": 1}}
    assert cfg.load_and_merge([]) == {}


# --------------------
# Placeholders / seed
# --------------------

def test_placeholders_expand_in_paths():
    template = "data/results-${exp_name}-${now}.json"
    assert cfg._substitute_placeholders(template, {"exp_name": "microarray", "now": "20240101_000000"}) \
        == "data/results-microarray-20240101_000000.json"


def test_placeholder_value_must_be_text():
    with pytest.raises(TypeError):
        cfg._substitute_placeholders("reps-${n}", {"n": 3})


def test_base_seed_defaults_to_one():
    assert cfg._base_seed({}) == 1
    assert cfg._base_seed({"random_seed": {"base": None}}) == 1
    assert cfg._base_seed({"random_seed": {"base": 42}}) == 42


# --------------------
# Validation
# --------------------

def test_validate_config_accepts_minimal():
    cfg._validate_config(minimal_cfg())


@pytest.mark.parametrize("key", ["exp_name", "datasets", "train_fraction", "repetitions",
                                 "top_k_variables", "output_path"])
def test_validate_config_missing_key_raises(key):
    raw = minimal_cfg()
    del raw[key]
    with pytest.raises(ValueError, match=key):
        cfg._validate_config(raw)


@pytest.mark.parametrize("value", [0, 1, 1.5, -0.2, "0.5", True])
def test_train_fraction_out_of_range_raises(value):
    with pytest.raises(ValueError):
        cfg._validate_config(minimal_cfg(train_fraction=value))


@pytest.mark.parametrize("key", ["repetitions", "top_k_variables", "worker_count"])
@pytest.mark.parametrize("value", [0, -3, 2.5, True])
def test_positive_ints_enforced(key, value):
    with pytest.raises(ValueError):
        cfg._validate_config(minimal_cfg(**{key: value}))


def test_worker_count_null_means_all_cores():
    cfg._validate_config(minimal_cfg(worker_count=None))
    assert cfg.resolve_config(minimal_cfg(worker_count=None)).worker_count is None


def test_unknown_loader_raises():
    raw = minimal_cfg(datasets={"loader": "nope", "names": ["a"]})
    with pytest.raises(ValueError, match="datasets.loader"):
        cfg._validate_config(raw)


def test_duplicate_dataset_names_raise():
    raw = minimal_cfg(datasets={"loader": "synthetic", "names": ["a", "a"]})
    with pytest.raises(ValueError, match="duplicates"):
        cfg._validate_config(raw)


def test_selection_must_be_known():
    with pytest.raises(ValueError, match="selection"):
        cfg._validate_config(minimal_cfg(selection="t-test"))


def test_unknown_classifier_without_class_raises():
    with pytest.raises(ValueError, match="classifiers.Mystery"):
        cfg._validate_config(minimal_cfg(classifiers={"Mystery": {}}))


def test_custom_classifier_spec_validated():
    ok = {"SVM": {"class": "sklearn.svm.SVC", "params": {"C": 1.0}, "seeded": True}}
    cfg._validate_config(minimal_cfg(classifiers=ok))
    with pytest.raises(ValueError, match="unknown keys"):
        cfg._validate_config(minimal_cfg(classifiers={"SVM": {"class": "sklearn.svm.SVC", "typo": 1}}))
    with pytest.raises(ValueError, match="must be str"):
        cfg._validate_config(minimal_cfg(classifiers={"SVM": {"class": 5}}))


@pytest.mark.parametrize("value", [0, -3, 2.5, True, "8"])
def test_num_gamma_grid_points_must_be_positive_int(value):
    with pytest.raises(ValueError, match="classifiers.HDRDA_Ridge.num_gamma_grid_points"):
        cfg._validate_config(minimal_cfg(classifiers={"HDRDA_Ridge": {"num_gamma_grid_points": value}}))


def test_random_seed_base_must_be_int():
    with pytest.raises(ValueError):
        cfg._validate_config(minimal_cfg(random_seed={"base": "abc"}))


# --------------------
# resolve_config / load_config
# --------------------

def test_resolve_config_builds_settings():
    out = cfg.resolve_config(minimal_cfg(classifiers={"Tong": None, "HDRDA_Convex": {"num_gamma_grid_points": 5}}))
    assert out.exp_name == "unit"
    assert out.datasets == ["a", "b"]
    assert out.repetitions == 3
    assert out.base_seed == 1
    assert out.output_path == Path("results/unit.json")
    assert out.log_file is None
    assert out.settings.loader == "synthetic"
    assert out.settings.loader_params == {"n_features": 50}
    assert out.settings.top_k_variables == 10
    assert out.settings.classifiers == {"Tong": {}, "HDRDA_Convex": {"num_gamma_grid_points": 5}}
    assert out.train_fraction == pytest.approx(0.67)


def test_resolve_config_rejects_misspelled_classifier_param():
    with pytest.raises(ValueError, match="classifiers.Witten") as info:
        cfg.resolve_config(minimal_cfg(classifiers={"Tong": {}, "Witten": {"lamda": 0.1}}))
    assert "lamda" in str(info.value)


def test_resolve_config_rejects_bad_custom_estimator_params():
    with pytest.raises(ValueError, match="classifiers.SVM"):
        cfg.resolve_config(minimal_cfg(classifiers={"SVM": {"class": "sklearn.svm.SVC", "params": {"kernal": "rbf"}}}))
    with pytest.raises(ValueError, match="classifiers.Ghost"):
        cfg.resolve_config(minimal_cfg(classifiers={"Ghost": {"class": "sklearn.svm.NoSuchClassifier"}}))


def test_resolve_config_defaults_to_all_seven_classifiers():
    out = cfg.resolve_config(minimal_cfg())
    assert tuple(out.settings.classifiers) == DEFAULT_CLASSIFIERS


def test_resolve_config_now_placeholder():
    out = cfg.resolve_config(minimal_cfg(output_path="r/${now}.json", log_file="logs/${exp_name}.log"))
    assert "${now}" not in str(out.output_path)
    assert out.log_file == Path("logs/unit.log")


def test_load_config_applies_overrides(tmp_path: Path):
    p = write_yaml(tmp_path, "run.yaml", yaml.safe_dump(minimal_cfg()))
    out = cfg.load_config([p], {"worker_count": 2, "repetitions": 7})
    assert out.worker_count == 2
    assert out.repetitions == 7


def test_shipped_configs_are_valid():
    root = Path(__file__).resolve().parents[3] / "configs"
    for name in ("microarray.yaml", "smoke.yaml"):
        out = cfg.load_config([root / name])
        assert out.repetitions >= 1
