"""Exception taxonomy for the benchmarking harness."""
from __future__ import annotations


class HarnessError(Exception):
    """Base class for every error raised by hdbench."""


class FitError(HarnessError):
    """A classifier could not produce a model for the given training data."""


class PredictError(HarnessError):
    """A fitted classifier could not produce predictions."""


class PartitionError(HarnessError):
    """A class cannot be split under the requested train fraction."""


class VariableSelectionError(HarnessError, ValueError):
    """Invalid request to the variable selector (e.g. k exceeds variable count)."""


class TrialError(HarnessError):
    """Unrecoverable failure inside a single trial."""


class PersistError(HarnessError):
    """The batch result could not be written to its destination."""
