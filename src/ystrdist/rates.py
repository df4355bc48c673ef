"""
Mutation-rate tables.

A mutation-rate table is a marker vector used as per-marker weights.
A rate of 0 excludes the marker from distance calculation; all ones
turns the distance into a plain average mutation count.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerVector

logger = logging.getLogger(__name__)


class MutationRateError(ValueError):
    """Malformed mutation-rate data."""


def default_mutation_rates(layout: MarkerLayout = FTDNA_LAYOUT) -> MarkerVector:
    """Return a table with every rate set to 1 (mutation counting)."""
    return MarkerVector((1.0,) * layout.size)


def mutation_rates_from_mapping(
    rates: Mapping[str, object],
    layout: MarkerLayout = FTDNA_LAYOUT,
) -> MarkerVector:
    """
    Build a mutation-rate table from a marker name -> rate mapping.

    Markers missing from the mapping get rate 0 and are excluded.

    Args:
        rates: Mapping of marker name (or alias) to rate
        layout: Marker layout

    Returns:
        Mutation-rate table

    Raises:
        MutationRateError: On unknown marker names or invalid rates
    """
    updates: dict[int, float] = {}
    for name, value in rates.items():
        if name not in layout:
            raise MutationRateError(f"Unknown marker in mutation rates: {name}")
        # bool is an int subclass but never a valid rate
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MutationRateError(f"Invalid mutation rate for {name}: {value!r}")
        if value < 0:
            raise MutationRateError(f"Negative mutation rate for {name}: {value}")
        updates[layout.index(name)] = float(value)
    return layout.empty_vector().replace(updates)


def read_mutation_rates(path: Path | str, layout: MarkerLayout = FTDNA_LAYOUT) -> MarkerVector:
    """
    Read mutation rates from a JSON file.

    The file must contain a single JSON object mapping marker names to numbers.

    Raises:
        FileNotFoundError: If the file doesn't exist
        MutationRateError: If the content is not a valid rate mapping
    """
    path = Path(path)
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MutationRateError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise MutationRateError(f"Mutation rate file must contain a JSON object: {path}")

    rates = mutation_rates_from_mapping(data, layout)
    logger.debug("Read %d mutation rates from %s", len(data), path)
    return rates


def write_mutation_rates(
    path: Path | str,
    rates: MarkerVector,
    layout: MarkerLayout = FTDNA_LAYOUT,
) -> None:
    """Write mutation rates for every layout marker as a JSON object."""
    layout.check(rates)
    data = {marker.name: rates[marker.index] for marker in layout}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
