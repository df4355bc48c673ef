"""
Operations on groups of persons.

Covers the modal haplotype, reduction of large or mixed data sets, and
anonymization. Input persons are never modified; new persons are returned.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import replace

from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, Person

MODAL_ID = "modal"
MODAL_LABEL = "_____modal"

# Labels must be exactly 10 characters for PHYLIP and Newick
LABEL_WIDTH = 10


class InsufficientDataError(ValueError):
    """An operation left fewer persons or values than it needs."""


def modal_haplotype(persons: Sequence[Person], layout: MarkerLayout = FTDNA_LAYOUT) -> Person:
    """
    Calculate the modal haplotype for a group of persons.

    The modal value for a marker is the positive value with the highest
    occurrence. If several values share the highest count, the lowest one
    is chosen. Markers nobody has tested stay 0. Overflow slots are not
    tallied.

    Args:
        persons: Population
        layout: Marker layout of the persons' vectors

    Returns:
        Synthetic person with the modal values
    """
    updates: dict[int, float] = {}
    for marker in range(layout.n_canonical):
        counts = Counter(p.markers[marker] for p in persons if p.markers[marker] > 0)
        if counts:
            # Highest count first, lowest value among equal counts
            updates[marker] = min(counts.items(), key=lambda item: (-item[1], item[0]))[0]

    return Person(
        id=MODAL_ID,
        label=MODAL_LABEL,
        markers=layout.empty_vector().replace(updates),
        name=MODAL_ID,
        ancestor=MODAL_ID,
        origin=MODAL_ID,
    )


def _reduce_person(person: Person, n_markers: int, layout: MarkerLayout) -> tuple[Person, bool]:
    """
    Clear all markers from n_markers on.

    Overflow slots go with their region: they are kept only when all of the
    region's canonical positions lie inside the marker set.

    Returns the reduced person and whether all of its first n_markers
    markers are tested. Multi-copy regions (DYS464) may be missing without
    making the person incomplete.
    """
    cleared = set(range(n_markers, layout.n_canonical))
    for region in layout.regions:
        if region.rate_index >= n_markers:
            cleared.update(region.positions[region.canonical_width :])
    reduced = person.markers.replace({i: 0.0 for i in cleared})
    exempt = layout.multi_copy_positions
    is_complete = all(reduced[i] > 0 for i in range(n_markers) if i not in exempt)
    return replace(person, markers=reduced), is_complete


def reduce_to_marker_set(
    persons: Sequence[Person],
    n_markers: int,
    layout: MarkerLayout = FTDNA_LAYOUT,
) -> list[Person]:
    """
    Keep only persons tested for at least the first n_markers markers.

    Markers beyond the set are cleared so that all persons are compared
    on the same markers.

    Args:
        persons: Population
        n_markers: Size of the marker set (e.g. 37, 67, 111)
        layout: Marker layout

    Returns:
        Reduced persons

    Raises:
        ValueError: If n_markers is outside the canonical range
        InsufficientDataError: If fewer than two persons remain
    """
    if not 0 < n_markers <= layout.n_canonical:
        raise ValueError(f"Marker set size must be between 1 and {layout.n_canonical}")

    result = []
    for person in persons:
        reduced, is_complete = _reduce_person(person, n_markers, layout)
        if is_complete:
            result.append(reduced)

    if len(result) < 2:
        raise InsufficientDataError(
            f"Not enough persons who have tested for {n_markers} markers ({len(result)} found)"
        )
    return result


def reduce_count(persons: Sequence[Person], factor: int) -> list[Person]:
    """
    Keep every factor-th person.

    Intended for large data sets that take a long time to process.
    Returns len(persons) // factor persons, starting with the first.

    Raises:
        ValueError: If factor is smaller than 1
        InsufficientDataError: If fewer than two persons remain
    """
    if factor < 1:
        raise ValueError(f"Reduction factor must be at least 1, got {factor}")
    n_kept = len(persons) // factor
    if n_kept < 2:
        raise InsufficientDataError(f"Reduction too large: {n_kept} persons left")
    return [persons[i * factor] for i in range(n_kept)]


def anonymize(persons: Sequence[Person]) -> list[Person]:
    """
    Remove personal data, keeping only the Y-STR values.

    Labels are replaced by zero-padded sequence numbers ("0000000001", ...).
    """
    return [
        Person(id="", label=str(i).zfill(LABEL_WIDTH), markers=p.markers)
        for i, p in enumerate(persons, start=1)
    ]


def average(values: Sequence[float]) -> tuple[float, float]:
    """
    Calculate mean and sample standard deviation.

    The standard deviation uses the estimate s = sqrt(1/(N-1) * sum((x_i - m)^2)).

    Raises:
        InsufficientDataError: If fewer than two values are given
    """
    if len(values) < 2:
        raise InsufficientDataError("Too few values")
    n = len(values)
    mean = sum(values) / n
    deviation = sum((v - mean) ** 2 for v in values)
    return mean, math.sqrt(deviation / (n - 1))
