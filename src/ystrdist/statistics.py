"""
Marker statistics for a population.

Summarizes how often each marker was tested and which values occur, and
selects markers suited for a purpose: slowly mutating markers with few
distinct values for deep ancestry, fast markers with many values for
fine resolution.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerVector, Person


@dataclass(frozen=True)
class MarkerFrequency:
    """
    Statistics for one marker.

    Attributes:
        index: Marker position
        name: Marker name
        count: Number of persons with a positive value
        frequency: count / population size
        values: (value, number of occurrences) pairs, sorted by value
    """

    index: int
    name: str
    count: int
    frequency: float
    values: tuple[tuple[float, int], ...] = ()

    @property
    def n_values(self) -> int:
        """Number of distinct values observed."""
        return len(self.values)


@dataclass(frozen=True)
class MarkerStatistics:
    """Per-marker statistics for a population of a given size."""

    population: int
    markers: tuple[MarkerFrequency, ...] = ()

    def __len__(self) -> int:
        return len(self.markers)

    def __iter__(self) -> Iterator[MarkerFrequency]:
        return iter(self.markers)

    @property
    def indices(self) -> list[int]:
        return [m.index for m in self.markers]


def marker_statistics(
    persons: Sequence[Person],
    layout: MarkerLayout = FTDNA_LAYOUT,
) -> MarkerStatistics:
    """
    Count tested persons and value occurrences for every layout position.

    Only positive values are counted.
    """
    population = len(persons)
    markers = []
    for marker in layout:
        counts = Counter(p.markers[marker.index] for p in persons if p.markers[marker.index] > 0)
        count = sum(counts.values())
        markers.append(
            MarkerFrequency(
                index=marker.index,
                name=marker.name,
                count=count,
                frequency=count / population if population else 0.0,
                values=tuple(sorted(counts.items())),
            )
        )
    return MarkerStatistics(population=population, markers=tuple(markers))


def select_markers(
    stats: MarkerStatistics,
    min_frequency: float = 0.0,
    min_values: int = 0,
    max_values: int | None = None,
) -> MarkerStatistics:
    """
    Keep markers that meet all thresholds.

    Args:
        stats: Statistics to filter
        min_frequency: Minimum fraction of persons tested for the marker
        min_values: Minimum number of distinct values
        max_values: Maximum number of distinct values [default: no limit]

    Returns:
        Filtered statistics for the same population
    """
    selected = tuple(
        m
        for m in stats.markers
        if m.frequency >= min_frequency
        and m.n_values >= min_values
        and (max_values is None or m.n_values <= max_values)
    )
    return MarkerStatistics(population=stats.population, markers=selected)


def counting_rates(stats: MarkerStatistics, layout: MarkerLayout = FTDNA_LAYOUT) -> MarkerVector:
    """
    Mutation rates that average mutation counts over the selected markers.

    Every selected marker gets weight 1 / number of selected markers; all
    other markers get 0 and are excluded.

    Raises:
        ValueError: If no marker is selected
    """
    if not stats.markers:
        raise ValueError("No markers selected")
    weight = 1.0 / len(stats.markers)
    return layout.empty_vector().replace({m.index: weight for m in stats.markers})
