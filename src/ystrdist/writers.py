"""
Output of distance matrices and persons' data.
"""

from __future__ import annotations

import html
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, Person
from ystrdist.matrix import DistanceMatrix

# Colors from far below the modal value (index 0) to far above it (index 10)
DEVIATION_COLORS = (
    "rgb(0,0,200)",
    "rgb(50,255,255)",
    "rgb(50,255,200)",
    "rgb(50,255,50)",
    "rgb(180,255,180)",
    "rgb(255,255,255)",
    "rgb(255,255,200)",
    "rgb(255,255,100)",
    "rgb(255,200,0)",
    "rgb(255,100,0)",
    "rgb(255,0,0)",
)

UNTESTED_COLOR = "rgb(242,242,242)"


def format_value(value: float) -> str:
    """Shortest text for a value; whole numbers have no decimal point."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def write_distance_matrix(file: TextIO, matrix: DistanceMatrix) -> None:
    """
    Write a distance matrix in PHYLIP compatible format.

    The first line holds the number of entries; each following line holds
    a label and the tab-separated distances.
    """
    file.write(f"{matrix.size}\n")
    for label, row in zip(matrix.labels, matrix.values):
        file.write(label)
        for value in row:
            file.write("\t" + format_value(value))
        file.write("\n")


def save_distance_matrix(path: Path | str, matrix: DistanceMatrix) -> None:
    with open(path, "w") as f:
        write_distance_matrix(f, matrix)


def write_persons_txt(path: Path | str, persons: Sequence[Person], n_markers: int) -> None:
    """
    Write the first n_markers values of each person, tab separated.

    Each line starts with the person's label, so that the file can be pasted
    into a spreadsheet or read back with read_persons_txt.
    """
    with open(path, "w") as f:
        for person in persons:
            values = [format_value(person.markers[i]) for i in range(n_markers)]
            f.write("\t".join([person.label, *values]) + "\n")


def deviation_color(value: float, modal: float) -> str:
    """CSS color for a value depending on its distance to the modal value."""
    if value == 0:
        return UNTESTED_COLOR
    step = int(value - modal) + len(DEVIATION_COLORS) // 2
    step = max(0, min(step, len(DEVIATION_COLORS) - 1))
    return DEVIATION_COLORS[step]


def write_persons_html(
    path: Path | str,
    persons: Sequence[Person],
    n_markers: int,
    layout: MarkerLayout = FTDNA_LAYOUT,
    modal: Person | None = None,
) -> None:
    """
    Write persons' values as an HTML table.

    Cells are colored by their deviation from the modal person, which
    defaults to the first person.
    """
    if not persons:
        raise ValueError("No persons to write")
    reference = modal if modal is not None else persons[0]

    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head><title>Y-STR Values</title></head>",
        "<body>",
        "<table>",
    ]
    header = "".join(f"<td>{html.escape(layout[i].name)}</td>" for i in range(n_markers))
    lines.append(f"<tr><td></td>{header}</tr>")
    for person in persons:
        cells = []
        for i in range(n_markers):
            value = person.markers[i]
            color = deviation_color(value, reference.markers[i])
            cells.append(f'<td style="background-color:{color};">{format_value(value)}</td>')
        lines.append(f"<tr><td>{html.escape(person.label)}</td>{''.join(cells)}</tr>")
    lines.extend(["</table>", "</body>", "</html>"])

    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")
