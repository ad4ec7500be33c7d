"""
Run configuration for hdbench.

A run is described by one or more YAML files (later files win, nested mappings
are merged key by key). The merged mapping is validated before any trial runs
and resolved into a :class:`BenchmarkConfig`. See ``configs/microarray.yaml``
for the full benchmark.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import datetime as dt
import logging
import yaml

from .classifiers.adapters import DEFAULT_CLASSIFIERS, build_adapter
from .registry import available_classifiers, available_datasets
from .trial import TrialSettings

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
REQUIRED_KEYS = ["exp_name", "datasets", "train_fraction", "repetitions", "top_k_variables", "output_path"]


#########
# Loading
#########

def _load_yaml(path: str | Path) -> dict[str, Any]:
    """
    Read one YAML config file.

    An empty file counts as an empty mapping.

    Raises:
        OSError: If the file cannot be read (missing, directory, permissions).
        yaml.YAMLError: On malformed YAML.
        TypeError: If the top level of the document is not a mapping.
    """
    with open(path, encoding="utf-8") as fh:
        doc = yaml.safe_load(fh)
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise TypeError(f"{path}: top level must be a mapping; got {type(doc).__name__}")
    return doc

def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay ``override`` on ``base`` and return a new mapping.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the one in ``base``. Neither argument is modified.

    >>> _deep_update({"datasets": {"loader": "microarray"}}, {"datasets": {"names": ["shipp"]}})
    {'datasets': {'loader': 'microarray', 'names': ['shipp']}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_update(current, value)
        else:
            merged[key] = value
    return merged

def load_and_merge(paths: Sequence[str | Path]) -> dict[str, Any]:
    """Merge the YAML files in ``paths``, in order; ``{}`` for no files."""
    merged: dict[str, Any] = {}
    for path in paths:
        merged = _deep_update(merged, _load_yaml(path))
    return merged

def _substitute_placeholders(s: str, vars: dict[str, str]) -> str:
    """
    Expand ``${name}`` placeholders in a path template.

    >>> _substitute_placeholders("data/results-${exp_name}.json", {"exp_name": "microarray"})
    'data/results-microarray.json'
    """
    for name, text in vars.items():
        s = s.replace("${" + name + "}", text)
    return s

def _base_seed(cfg: dict[str, Any]) -> int:
    """
    Seed of the first trial; trial ``i`` (0-based, over all datasets) uses ``base + i``.

    >>> _base_seed({})
    1
    """
    base = (cfg.get("random_seed") or {}).get("base")
    return 1 if base is None else base

#########
# Validation
#########

def _validate_config(cfg: dict[str, Any]) -> None:
    """
    Check a merged configuration before it is resolved.

    Raises:
        ValueError: On a missing key or an invalid value.
    """
    _require_keys(cfg, REQUIRED_KEYS)

    _validate_exp(cfg["exp_name"])
    _validate_datasets(cfg["datasets"])
    _validate_fraction(cfg["train_fraction"], "train_fraction")
    _ensure_positive_int(cfg["repetitions"], "repetitions")
    _ensure_positive_int(cfg["top_k_variables"], "top_k_variables")
    _validate_workers(cfg.get("worker_count"))
    _ensure_one_of(cfg.get("selection", "dudoit"), ["dudoit", "anova"], "selection")
    _validate_random_seed(cfg.get("random_seed"))
    _validate_classifiers(cfg.get("classifiers"))
    _validate_paths(cfg["output_path"], cfg.get("log_file"))
    _ensure_one_of(str(cfg.get("log_level", "INFO")).upper(), LOG_LEVELS, "log_level")

# ----- validation helpers

def _require_keys(mapping: dict[str, Any], keys: Sequence[str]) -> None:
    missing = [key for key in keys if key not in mapping]
    if missing:
        raise ValueError(f"config is missing required key(s): {', '.join(missing)}")

def _ensure_type(value: Any, expected_type: type[Any], context: str) -> None:
    """
    >>> _ensure_type("shipp", int, "repetitions")
    Traceback (most recent call last):
        ...
    ValueError: repetitions must be int; got str
    """
    if not isinstance(value, expected_type):
        raise ValueError(f"{context} must be {expected_type.__name__}; got {type(value).__name__}")

def _ensure_one_of(value: Any, allowed: Sequence[Any], context: str) -> None:
    if value not in allowed:
        raise ValueError(f"{context} must be one of {list(allowed)}; got {value!r}")

def _ensure_positive_int(value: Any, context: str) -> None:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{context} must be a positive int; got {value!r}")

def _validate_fraction(value: Any, context: str) -> None:
    """
    A number strictly between 0 and 1.

    >>> _validate_fraction(1, "train_fraction")
    Traceback (most recent call last):
        ...
    ValueError: train_fraction must be in (0,1); got 1
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{context} must be a number in (0,1); got {type(value).__name__}")
    if not (0.0 < float(value) < 1.0):
        raise ValueError(f"{context} must be in (0,1); got {value!r}")

def _validate_estimator_spec(spec: dict[str, Any], context: str) -> None:
    """
    Custom classifier entry::

        SVM:
          class: sklearn.svm.SVC      # dotted path, required
          params: {C: 1.0}            # constructor kwargs
          uses_prior: false           # pass the class prior as ``prior``
          seeded: true                # pass the trial seed as ``random_state``
    """
    unknown = set(spec) - {"class", "params", "uses_prior", "seeded"}
    if unknown:
        raise ValueError(f"{context} has unknown keys: {sorted(unknown)}")
    _ensure_type(spec["class"], str, f"{context}.class")
    params = spec.get("params")
    if params is not None:
        _ensure_type(params, dict, f"{context}.params")
    for flag in ("uses_prior", "seeded"):
        if flag in spec:
            _ensure_type(spec[flag], bool, f"{context}.{flag}")

def _validate_datasets(datasets: dict[str, Any]) -> None:
    """
    The ``datasets`` block: a registered ``loader``, optional loader ``params``
    and a non-empty list of unique dataset ``names``.
    """
    _ensure_type(datasets, dict, "datasets")
    _require_keys(datasets, ["loader", "names"])
    _ensure_type(datasets["loader"], str, "datasets.loader")
    _ensure_one_of(datasets["loader"], available_datasets(), "datasets.loader")

    params = datasets.get("params")
    if params is not None:
        _ensure_type(params, dict, "datasets.params")
        if "name" in params:
            raise ValueError("datasets.params must not set 'name'; list datasets under datasets.names")

    names = datasets["names"]
    _ensure_type(names, list, "datasets.names")
    if not names:
        raise ValueError("datasets.names must be a non-empty list")
    for i, name in enumerate(names):
        _ensure_type(name, str, f"datasets.names[{i}]")
    if len(set(names)) != len(names):
        raise ValueError("datasets.names contains duplicates")

def _validate_workers(worker_count: Any) -> None:
    # null means every host core
    if worker_count is not None:
        _ensure_positive_int(worker_count, "worker_count")

def _validate_random_seed(seed_cfg: Any) -> None:
    if seed_cfg is None:
        return
    _ensure_type(seed_cfg, dict, "random_seed")
    base = seed_cfg.get("base")
    if base is None:
        return
    if isinstance(base, bool) or not isinstance(base, int):
        raise ValueError(f"random_seed.base must be a non-negative int or null; got {base!r}")
    if base < 0:
        raise ValueError(f"random_seed.base must be a non-negative int or null; got {base!r}")

def _validate_classifiers(classifiers: Any) -> None:
    """
    The ``classifiers`` block, in run order.

    Each entry maps a name to keyword parameters for a registered classifier
    (null for the defaults), or to a custom estimator entry with a ``class`` key.
    """
    if classifiers is None:
        return
    _ensure_type(classifiers, dict, "classifiers")
    if not classifiers:
        raise ValueError("classifiers must list at least one classifier")
    known = available_classifiers()
    for name, spec in classifiers.items():
        context = f"classifiers.{name}"
        spec = {} if spec is None else spec
        _ensure_type(spec, dict, context)
        if "class" in spec:
            _validate_estimator_spec(spec, context)
        elif name not in known:
            raise ValueError(f"{context} is not a registered classifier {known} and has no 'class'")
        if "num_gamma_grid_points" in spec:
            _ensure_positive_int(spec["num_gamma_grid_points"], f"{context}.num_gamma_grid_points")


def _check_classifier_params(classifiers: dict[str, dict[str, Any]]) -> None:
    """Build every configured adapter once so bad parameters fail before any trial runs."""
    for name, spec in classifiers.items():
        try:
            build_adapter(name, spec)
        except (TypeError, ValueError, ImportError, AttributeError) as exc:
            raise ValueError(f"classifiers.{name}: {exc}") from exc


def _validate_paths(output_path: Any, log_file: Any) -> None:
    _ensure_type(output_path, str, "output_path")
    if log_file is not None:
        _ensure_type(log_file, str, "log_file")

def _validate_exp(exp_name: Any) -> None:
    _ensure_type(exp_name, str, "exp_name")
    if not exp_name:
        raise ValueError("exp_name must be a non-empty string")

@dataclass
class BenchmarkConfig:
    """
    A validated, resolved run configuration.

    Attributes:
        cfg: The merged configuration mapping it was resolved from.
        exp_name: Experiment name.
        datasets: Dataset identifiers, in run order.
        repetitions: Trials per dataset.
        worker_count: Pool size, or None for every host core.
        base_seed: Seed of the first trial.
        settings: Per-trial settings handed to every trial.
        output_path: Destination of the persisted batch result.
        log_file: Log file path, or None for console only.
        log_level: Logging level name.
    """
    cfg: dict[str, Any]
    exp_name: str
    datasets: list[str]
    repetitions: int
    worker_count: int | None
    base_seed: int
    settings: TrialSettings
    output_path: Path
    log_file: Path | None
    log_level: str

    @property
    def train_fraction(self) -> float:
        return self.settings.train_fraction

    @property
    def source_yaml(self) -> str:
        return yaml.safe_dump(self.cfg, sort_keys=False)

def resolve_config(raw_cfg: dict[str, Any]) -> BenchmarkConfig:
    """
    Validate ``raw_cfg`` and turn it into a :class:`BenchmarkConfig`.

    ``${exp_name}`` and ``${now}`` are expanded in ``output_path`` and
    ``log_file``. Without a ``classifiers`` block all seven default
    classifiers run with their default parameters.

    Raises:
        ValueError: If the configuration is invalid.
    """
    _validate_config(raw_cfg)
    cfg: dict[str, Any] = dict(raw_cfg)

    stamp = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    placeholders = {"exp_name": cfg["exp_name"], "now": stamp}
    output_path = Path(_substitute_placeholders(cfg["output_path"], placeholders))
    log_file = cfg.get("log_file")
    log_path = None if log_file is None else Path(_substitute_placeholders(log_file, placeholders))

    datasets = cfg["datasets"]
    classifiers_cfg = cfg.get("classifiers") or {name: {} for name in DEFAULT_CLASSIFIERS}
    settings = TrialSettings(
        loader=datasets["loader"],
        loader_params=dict(datasets.get("params") or {}),
        train_fraction=float(cfg["train_fraction"]),
        top_k_variables=cfg["top_k_variables"],
        selection_score=cfg.get("selection", "dudoit"),
        classifiers={name: dict(spec or {}) for name, spec in classifiers_cfg.items()},
    )
    _check_classifier_params(settings.classifiers)

    return BenchmarkConfig(
        cfg=cfg,
        exp_name=cfg["exp_name"],
        datasets=list(datasets["names"]),
        repetitions=cfg["repetitions"],
        worker_count=cfg.get("worker_count"),
        base_seed=_base_seed(cfg),
        settings=settings,
        output_path=output_path,
        log_file=log_path,
        log_level=str(cfg.get("log_level", "INFO")).upper(),
    )

def load_config(paths: Sequence[str | Path], overrides: dict[str, Any] | None = None) -> BenchmarkConfig:
    """Load, merge (files then ``overrides``) and resolve a configuration."""
    raw = load_and_merge(list(paths))
    if overrides:
        raw = _deep_update(raw, overrides)
    logging.getLogger(__name__).debug("Merged configuration: %s", raw)
    return resolve_config(raw)
