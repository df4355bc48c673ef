"""
Genetic distance between two sets of Y-STR values.

Uses a hybrid mutation model (http://nitro.biosci.arizona.edu/ftDNA/models.html):
- Stepwise model for ordinary markers: distance is the repeat-count difference
- Infinite-alleles model for YCAII-like regions: distance is same/different
- Palindromic markers (DYS464, CDY, DYF395S1, DYS413) are compared as
  unordered multisets, following the Family Tree DNA approach

A marker is only compared when both persons have a positive value and its
mutation rate is positive. The result is the sum of per-marker distances
divided by the number of markers actually compared.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerRegion, MarkerVector

DistanceMode = Literal["stepwise", "infinite"]

DISTANCE_MODES = ("stepwise", "infinite")

# (markers of person 1, markers of person 2, mutation rates) -> distance
DistanceFunc = Callable[[MarkerVector, MarkerVector, MarkerVector], float]


class NoComparableMarkersError(ValueError):
    """Two persons share no marker that can be compared under the given rates."""


@dataclass(frozen=True)
class Comparison:
    """
    Raw result of comparing two marker vectors.

    Attributes:
        total: Sum of rate-weighted marker distances
        n_compared: Number of markers that contributed
    """

    total: float
    n_compared: int

    @property
    def distance(self) -> float:
        """
        Average distance per compared marker.

        Raises:
            NoComparableMarkersError: If no marker was compared
        """
        if self.n_compared == 0:
            raise NoComparableMarkersError("No comparable markers")
        return self.total / self.n_compared


def _stepwise(value1: float, value2: float) -> float:
    return abs(value1 - value2)


def _infinite(value1: float, value2: float) -> float:
    return 0.0 if value1 == value2 else 1.0


def palindromic_distance(values1: Sequence[float], values2: Sequence[float]) -> float:
    """
    Count mismatches between two unordered sets of repeat values.

    Only positive values take part. Sets of different size add a flat
    distance of 1, then every value of the smaller set that finds no
    equal partner in the larger set adds 1. Each partner is used once.

    Args:
        values1: Region values of the first person
        values2: Region values of the second person

    Returns:
        Unweighted distance for the region
    """
    list1 = [v for v in values1 if v > 0]
    list2 = [v for v in values2 if v > 0]

    distance = 0.0
    if len(list1) != len(list2):
        distance = 1.0
        if len(list1) > len(list2):
            list1, list2 = list2, list1

    for value in list1:
        if value in list2:
            list2.remove(value)
        else:
            distance += 1
    return distance


class DistanceMetric:
    """
    Hybrid stepwise / infinite-alleles distance for one marker layout.

    In "infinite" mode every non-palindromic marker uses the infinite-alleles
    model. Palindromic regions are always compared as multisets.

    Instances are callable and match DistanceFunc.
    """

    def __init__(
        self,
        layout: MarkerLayout = FTDNA_LAYOUT,
        mode: DistanceMode = "stepwise",
    ):
        if mode not in DISTANCE_MODES:
            raise ValueError(f"Unknown distance mode: {mode}")
        self.layout = layout
        self.mode = mode

    def __call__(self, markers1: MarkerVector, markers2: MarkerVector, rates: MarkerVector) -> float:
        comparison = self.compare(markers1, markers2, rates)
        return comparison.distance

    def compare(
        self,
        markers1: MarkerVector,
        markers2: MarkerVector,
        rates: MarkerVector,
    ) -> Comparison:
        """
        Sum up marker distances without averaging.

        Raises:
            ValueError: If a vector does not fit the layout
        """
        for vector in (markers1, markers2, rates):
            self.layout.check(vector)

        marker_distance = _stepwise if self.mode == "stepwise" else _infinite
        total = 0.0
        n_compared = 0

        for i in self.layout.ordinary_indices:
            value1, value2, rate = markers1[i], markers2[i], rates[i]
            if value1 > 0 and value2 > 0 and rate > 0:
                total += marker_distance(value1, value2) / rate
                n_compared += 1

        # Compound markers: compare the part not covered by the sub-marker
        for compound in self.layout.compounds:
            i, j = compound.index, compound.base_index
            rate = rates[i]
            if rate > 0 and min(markers1[i], markers1[j], markers2[i], markers2[j]) > 0:
                total += marker_distance(markers1[i] - markers1[j], markers2[i] - markers2[j]) / rate
                n_compared += 1

        for region in self.layout.regions:
            if region.kind == "palindromic":
                region_total, region_compared = self._compare_palindromic(
                    region, markers1, markers2, rates
                )
            else:
                region_total, region_compared = self._compare_infinite(
                    region, markers1, markers2, rates
                )
            total += region_total
            n_compared += region_compared

        return Comparison(total=total, n_compared=n_compared)

    @staticmethod
    def _compare_palindromic(
        region: MarkerRegion,
        markers1: MarkerVector,
        markers2: MarkerVector,
        rates: MarkerVector,
    ) -> tuple[float, int]:
        rate = rates[region.rate_index]
        if rate <= 0:
            return 0.0, 0
        values1 = [markers1[p] for p in region.positions]
        values2 = [markers2[p] for p in region.positions]
        if any(v < 0 for v in values1) or any(v < 0 for v in values2):
            return 0.0, 0
        if not any(v > 0 for v in values1) or not any(v > 0 for v in values2):
            return 0.0, 0
        return palindromic_distance(values1, values2) / rate, region.canonical_width

    @staticmethod
    def _compare_infinite(
        region: MarkerRegion,
        markers1: MarkerVector,
        markers2: MarkerVector,
        rates: MarkerVector,
    ) -> tuple[float, int]:
        # Only used when every position is present for both persons
        if any(markers1[p] <= 0 or markers2[p] <= 0 for p in region.positions):
            return 0.0, 0
        total = 0.0
        n_compared = 0
        for p in region.positions:
            if rates[p] > 0:
                total += _infinite(markers1[p], markers2[p]) / rates[p]
                n_compared += 1
        return total, n_compared


def distance(
    markers1: MarkerVector,
    markers2: MarkerVector,
    rates: MarkerVector,
    layout: MarkerLayout = FTDNA_LAYOUT,
    mode: DistanceMode = "stepwise",
) -> float:
    """
    Calculate the genetic distance between two sets of Y-STR values.

    Args:
        markers1: Y-STR values of the first person
        markers2: Y-STR values of the second person
        rates: Mutation-rate table
        layout: Marker layout the vectors follow
        mode: "stepwise" or "infinite"

    Returns:
        Average rate-weighted distance per compared marker

    Raises:
        NoComparableMarkersError: If no marker can be compared
    """
    return DistanceMetric(layout, mode)(markers1, markers2, rates)


def marker_count_distance(
    markers1: MarkerVector,
    markers2: MarkerVector,
    layout: MarkerLayout = FTDNA_LAYOUT,
) -> float:
    """
    Average absolute difference over canonical markers present in both.

    Applies no special handling to compound or palindromic markers and
    ignores mutation rates. Useful for debugging only.
    """
    total = 0.0
    n_compared = 0
    for i in range(layout.n_canonical):
        if markers1[i] > 0 and markers2[i] > 0:
            total += abs(markers1[i] - markers2[i])
            n_compared += 1
    return Comparison(total=total, n_compared=n_compared).distance
