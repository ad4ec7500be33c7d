"""
Stratified random train/test partitioning.

Each class is split on its own: ``round(train_fraction * class_size)`` of its
rows are drawn uniformly without replacement into training and the remaining
rows go to test. Splitting per class keeps the class proportions of both sides
close to the overall proportions, so a small class is never starved from
training by chance.

Randomness comes only from the ``seed`` argument, which makes the partition a
pure function of ``(labels, train_fraction, num_partitions, seed)``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import PartitionError

logger = logging.getLogger(__name__)

IndexArray = NDArray[np.int64]


@dataclass(frozen=True)
class Partition:
    """Sorted row indices of the training and test sides."""
    training: IndexArray
    test: IndexArray


def _class_train_size(class_size: int, train_fraction: float) -> int:
    # rint rounds half to even
    size = int(np.rint(train_fraction * class_size))
    if class_size < 2:
        return class_size
    return min(max(size, 1), class_size - 1)


def rand_partition(
    y: ArrayLike,
    train_fraction: float,
    num_partitions: int = 1,
    seed: int | None = None,
    *,
    strict: bool = False,
) -> list[Partition]:
    """
    Draw stratified random train/test partitions of the rows of ``y``.

    Args:
        y: Class label of every observation.
        train_fraction: Fraction of each class assigned to training, in (0, 1).
        num_partitions: Number of independent partitions to draw.
        seed: Seed for ``numpy.random.default_rng``. ``None`` draws fresh entropy.
        strict: If True, a class with a single member raises
            :class:`PartitionError`. Otherwise that member is put in training
            and the class has no test representation.

    Returns:
        list[Partition]: ``num_partitions`` partitions. Every class with at
        least two members appears on both sides; training and test are
        disjoint and together cover every row.

    Raises:
        ValueError: If ``train_fraction`` is not in (0, 1), ``num_partitions``
            is below 1 or ``y`` is empty.
        PartitionError: If ``strict`` and some class has a single member.

    Examples:
        >>> parts = rand_partition(["a"] * 6 + ["b"] * 3, train_fraction=2/3, seed=1)
        >>> len(parts[0].training), len(parts[0].test)
        (6, 3)
    """
    if not 0.0 < float(train_fraction) < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1); got {train_fraction!r}")
    if num_partitions < 1:
        raise ValueError(f"num_partitions must be >= 1; got {num_partitions!r}")

    labels = np.asarray(y)
    if labels.ndim != 1 or labels.size == 0:
        raise ValueError("y must be a non-empty 1-D array of labels")

    classes, codes = np.unique(labels, return_inverse=True)
    members = [np.flatnonzero(codes == k) for k in range(len(classes))]

    singletons = [str(classes[k]) for k, idx in enumerate(members) if idx.size < 2]
    if singletons:
        if strict:
            raise PartitionError(
                f"Classes with a single member cannot be split: {singletons}"
            )
        logger.warning(
            "Classes %s have a single member; assigned to training only", singletons
        )

    rng = np.random.default_rng(seed)
    partitions: list[Partition] = []
    for _ in range(num_partitions):
        training: list[IndexArray] = []
        test: list[IndexArray] = []
        for idx in members:
            n_train = _class_train_size(idx.size, train_fraction)
            shuffled = rng.permutation(idx)
            training.append(shuffled[:n_train])
            test.append(shuffled[n_train:])
        partitions.append(
            Partition(
                training=np.sort(np.concatenate(training)).astype(np.int64),
                test=np.sort(np.concatenate(test)).astype(np.int64),
            )
        )
    return partitions
