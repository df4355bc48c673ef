"""
ystrdist: Genetic distances from Y-STR values.

Calculates genetic distance matrices between persons from Y-chromosome
short tandem repeat results for use with phylogenetic tree software.
"""

__version__ = "0.1.0"

from ystrdist.distance import DistanceMetric, NoComparableMarkersError, distance
from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerVector, Person
from ystrdist.matrix import DistanceMatrix
from ystrdist.population import InsufficientDataError, modal_haplotype

__all__ = [
    "DistanceMatrix",
    "DistanceMetric",
    "FTDNA_LAYOUT",
    "InsufficientDataError",
    "MarkerLayout",
    "MarkerVector",
    "NoComparableMarkersError",
    "Person",
    "distance",
    "modal_haplotype",
    "__version__",
]
