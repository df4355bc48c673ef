"""
Genetic distance matrices.

Distance matrices are the input for phylogenetic tree software like
PHYLIP (https://en.wikipedia.org/wiki/PHYLIP).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from ystrdist.distance import DistanceFunc, DistanceMetric, NoComparableMarkersError
from ystrdist.markers import MarkerVector, Person

logger = logging.getLogger(__name__)

# Per-process state for parallel builds, set by _init_worker
_worker_markers: list[MarkerVector] = []
_worker_rates: MarkerVector | None = None
_worker_metric: DistanceFunc | None = None


def _init_worker(markers: list[MarkerVector], rates: MarkerVector, metric: DistanceFunc) -> None:
    global _worker_markers, _worker_rates, _worker_metric
    _worker_markers = markers
    _worker_rates = rates
    _worker_metric = metric


def _upper_row(row: int) -> list[float]:
    """Distances from person `row` to persons `row`, `row + 1`, ..."""
    if _worker_metric is None or _worker_rates is None:
        raise RuntimeError("Worker process was not initialized")
    return _row_distances(row, _worker_markers, _worker_rates, _worker_metric)


def _row_distances(
    row: int,
    markers: Sequence[MarkerVector],
    rates: MarkerVector,
    metric: DistanceFunc,
) -> list[float]:
    return [metric(markers[row], markers[col], rates) for col in range(row, len(markers))]


@dataclass(frozen=True)
class DistanceMatrix:
    """
    Symmetric matrix of pairwise genetic distances.

    Attributes:
        labels: Labels of the persons, in row order
        values: Rows of distances; values[i][j] == values[j][i]
    """

    labels: tuple[str, ...]
    values: tuple[tuple[float, ...], ...]

    @property
    def size(self) -> int:
        return len(self.values)

    @classmethod
    def build(
        cls,
        persons: Sequence[Person],
        rates: MarkerVector,
        metric: DistanceFunc | None = None,
        workers: int = 1,
    ) -> DistanceMatrix:
        """
        Create the distance matrix for a list of persons.

        Only the upper triangle (including the diagonal) is calculated;
        the lower triangle is a mirror of it.

        Args:
            persons: Persons to compare
            rates: Mutation-rate table
            metric: Distance function [default: stepwise DistanceMetric]
            workers: Number of worker processes for the upper triangle

        Returns:
            DistanceMatrix

        Raises:
            NoComparableMarkersError: If a pair of persons has no comparable markers
        """
        if metric is None:
            metric = DistanceMetric()
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        markers = [p.markers for p in persons]
        size = len(markers)
        logger.info("Building distance matrix for %d persons", size)

        try:
            if workers == 1 or size < 2:
                upper = [_row_distances(row, markers, rates, metric) for row in range(size)]
            else:
                from concurrent.futures import ProcessPoolExecutor

                with ProcessPoolExecutor(
                    max_workers=workers,
                    initializer=_init_worker,
                    initargs=(markers, rates, metric),
                ) as executor:
                    upper = list(executor.map(_upper_row, range(size)))
        except NoComparableMarkersError:
            raise NoComparableMarkersError(_find_incomparable(persons, rates, metric)) from None

        values = [[0.0] * size for _ in range(size)]
        for i in range(size):
            for offset, value in enumerate(upper[i]):
                values[i][i + offset] = value
        for i in range(1, size):
            for j in range(i):
                values[i][j] = values[j][i]

        return cls(
            labels=tuple(p.label for p in persons),
            values=tuple(tuple(row) for row in values),
        )

    def rescale(self, generation_length: float, calibration_factor: float = 1.0) -> DistanceMatrix:
        """
        Convert distances to years.

        Every entry is multiplied by generation_length * calibration_factor
        and truncated toward zero.

        Args:
            generation_length: Years per generation, usually 20 to 35
            calibration_factor: Factor to fit the data to historical events

        Returns:
            New DistanceMatrix with integer-valued entries
        """
        factor = generation_length * calibration_factor
        values = tuple(tuple(float(math.trunc(factor * v)) for v in row) for row in self.values)
        return DistanceMatrix(labels=self.labels, values=values)

    def row(self, index: int) -> tuple[float, ...]:
        return self.values[index]

    def __getitem__(self, key: tuple[int, int]) -> float:
        i, j = key
        return self.values[i][j]

    def __len__(self) -> int:
        return self.size


def _find_incomparable(
    persons: Sequence[Person],
    rates: MarkerVector,
    metric: DistanceFunc,
) -> str:
    """Describe the first pair of persons without comparable markers."""
    for i in range(len(persons)):
        for j in range(i, len(persons)):
            try:
                metric(persons[i].markers, persons[j].markers, rates)
            except NoComparableMarkersError:
                return (
                    f"No comparable markers between {persons[i].label!r} "
                    f"and {persons[j].label!r}"
                )
    return "No comparable markers"
