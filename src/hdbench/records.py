"""
Value types exchanged between the trial runner, the scheduler and the
aggregator.

Every classifier evaluation ends in exactly one of two outcomes:

    * :class:`Success` carrying the error rate (and tuned hyperparameters, if any)
    * :class:`Failure` carrying the failure kind and a message

A :class:`TrialRecord` stores the error rate of each classifier or its
:class:`Failure`, never an omitted field, so "error rate 0" and "classifier
failed" stay distinguishable downstream.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class TrialConfig:
    """One unit of work: a dataset, its repetition index and the trial seed."""
    dataset: str
    repetition: int
    seed: int


@dataclass(frozen=True, slots=True)
class Failure:
    """Failure marker recorded in place of a value."""
    kind: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException, kind: str | None = None) -> "Failure":
        """Build a marker from an exception.

        Args:
            exc: The exception that ended the step.
            kind: Failure kind. Defaults to the exception's class name.

        Examples:
            >>> Failure.from_exception(ValueError("bad"), kind="TrialError")
            Failure(kind='TrialError', message='ValueError: bad')
        """
        if kind is None:
            return cls(kind=type(exc).__name__, message=str(exc))
        return cls(kind=kind, message=f"{type(exc).__name__}: {exc}")

    def to_dict(self) -> dict[str, Any]:
        return {"failed": True, "kind": self.kind, "message": self.message}


@dataclass(frozen=True, slots=True)
class Success:
    value: float
    hyperparameters: dict[str, float] | None = None


Outcome = Union[Success, Failure]
ErrorRate = Union[float, Failure]


@dataclass(frozen=True)
class TrialRecord:
    """
    Result of one trial.

    Attributes:
        dataset: Dataset identifier.
        repetition: Repetition index within the dataset.
        seed: Seed that drove the partition and randomized classifiers.
        error_rates: Classifier name -> error rate in [0, 1] or Failure.
        hyperparameters: Tuning classifier name -> selected values, or None
            when that classifier failed.
        n_train: Training rows.
        n_test: Test rows.
        n_variables: Variables kept after selection.
        failure: Set when the whole trial failed; the mappings are then empty.
    """
    dataset: str
    repetition: int
    seed: int
    error_rates: dict[str, ErrorRate] = field(default_factory=dict)
    hyperparameters: dict[str, dict[str, float] | None] = field(default_factory=dict)
    n_train: int = 0
    n_test: int = 0
    n_variables: int = 0
    failure: Failure | None = None

    @classmethod
    def failed(cls, config: TrialConfig, failure: Failure) -> "TrialRecord":
        return cls(
            dataset=config.dataset,
            repetition=config.repetition,
            seed=config.seed,
            failure=failure,
        )

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_dict(self) -> dict[str, Any]:
        """Plain-JSON view of the record (failure markers become mappings)."""
        return {
            "dataset": self.dataset,
            "repetition": self.repetition,
            "seed": self.seed,
            "error_rates": {
                name: rate.to_dict() if isinstance(rate, Failure) else float(rate)
                for name, rate in self.error_rates.items()
            },
            "hyperparameters": {
                name: None if hp is None else {k: float(v) for k, v in hp.items()}
                for name, hp in self.hyperparameters.items()
            },
            "n_train": self.n_train,
            "n_test": self.n_test,
            "n_variables": self.n_variables,
            "failure": None if self.failure is None else self.failure.to_dict(),
        }
