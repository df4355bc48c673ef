"""
Readers for persons' Y-STR data.

Supports three sources:
- Spreadsheet CSV exports in Family Tree DNA order, either with one column
  per multi-value marker ("15-16", "11-15-15-17") or one column per value
- Plain text files with a label followed by the values
- YFull STR result files (semicolon separated name;value lines)
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from ystrdist.labels import string_to_label
from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerVector, Person

logger = logging.getLogger(__name__)

# A sample row needs an ID and at least 12 Y-STR values
MIN_SAMPLE_FIELDS = 13

# The first value in Family Tree DNA order is DYS393, which lies in this range
DYS393_RANGE = (9.0, 17.0)

# YFull reports some values with a trailing allele, e.g. "12.a"
ALLELE_SUFFIXES = (".a", ".c", ".g", ".t")


def _parse_value(text: str) -> float:
    """Convert a Y-STR value to a number; empty and "O" mean not tested."""
    text = text.strip()
    if text in ("", "O"):
        return 0.0
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Invalid Y-STR value: {text!r}") from None


def _parse_multi_value(text: str, n_values: int) -> list[float]:
    """Split a dash-separated field into at most n_values numbers."""
    parts = text.split("-")[:n_values]
    return [_parse_value(p) for p in parts]


def _str_start(fields: list[str]) -> int | None:
    """
    Find the first Y-STR column of a CSV row.

    Returns None if the row does not look like sample data.
    """
    if len(fields) < MIN_SAMPLE_FIELDS:
        return None
    low, high = DYS393_RANGE
    # Column 0 always holds the ID
    for i, field in enumerate(fields[1:], start=1):
        try:
            value = float(field)
        except ValueError:
            continue
        if low <= value < high:
            return i
    return None


def read_persons_csv(
    path: Path | str,
    layout: MarkerLayout = FTDNA_LAYOUT,
    label_column: int = 1,
) -> list[Person]:
    """
    Read persons from a spreadsheet CSV export.

    The file may contain comments or other non-data rows; they are skipped.
    The first field of each sample row must be a unique ID. Values must be
    in layout order. Rows that cannot be parsed are logged and skipped.

    Args:
        path: Path to CSV file
        layout: Marker layout
        label_column: 0-based column used for the person's label

    Returns:
        List of persons
    """
    path = Path(path)
    with open(path, newline="", encoding="utf-8") as f:
        records = list(csv.reader(f))

    sample_records = []
    str_index: int | None = None
    for record in records:
        start = _str_start(record)
        if start is not None:
            sample_records.append(record)
            if str_index is None:
                str_index = start

    if str_index is None:
        logger.warning("No sample rows found in %s", path)
        return []

    # Family Tree DNA stores multi-value markers in one dash-separated column
    grouped_columns = [i for i, c in enumerate(layout.columns) if len(c) > 1]
    is_ftdna = any(
        "-" in record[str_index + i]
        for record in sample_records
        for i in grouped_columns
        if str_index + i < len(record)
    )

    persons = []
    for line_no, record in enumerate(sample_records, start=1):
        try:
            persons.append(_person_from_fields(record, label_column, str_index, is_ftdna, layout))
        except (ValueError, IndexError) as e:
            logger.warning("Skipping sample row %d in %s: %s", line_no, path, e)
    logger.info("Read %d persons from %s", len(persons), path)
    return persons


def _person_from_fields(
    fields: list[str],
    label_index: int,
    str_index: int,
    is_ftdna: bool,
    layout: MarkerLayout,
) -> Person:
    person_id = fields[0].strip()
    if not person_id:
        raise ValueError("Could not determine person ID")

    name = fields[label_index].strip()
    values = [f.strip() for f in fields[str_index:]]
    if is_ftdna:
        markers = _markers_from_columns(values, layout)
    else:
        numbers = [_parse_value(v) for v in values[: layout.n_canonical]]
        markers = MarkerVector.from_values(numbers, layout.size)
    return Person(id=person_id, label=string_to_label(name), markers=markers, name=name)


def _markers_from_columns(values: list[str], layout: MarkerLayout) -> MarkerVector:
    """Map one-column-per-marker fields to the layout, filling overflow slots."""
    updates: dict[int, float] = {}
    for text, positions in zip(values, layout.columns):
        numbers = _parse_multi_value(text, len(positions))
        updates.update(zip(positions, numbers))
    return layout.empty_vector().replace(updates)


def read_persons_txt(path: Path | str, layout: MarkerLayout = FTDNA_LAYOUT) -> list[Person]:
    """
    Read persons from a text file.

    Each line holds a label followed by whitespace-separated values.
    Lines starting with "//" and lines of 10 characters or less are ignored.

    Raises:
        ValueError: If a value cannot be parsed
    """
    path = Path(path)
    persons = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if len(line) <= 10 or line.startswith("//"):
                continue
            fields = line.split()
            try:
                numbers = [float(v) for v in fields[1 : layout.n_canonical + 1]]
            except ValueError as e:
                raise ValueError(f"{path}, line {line_no}: {e}") from e
            persons.append(
                Person(
                    id=fields[0],
                    label=fields[0],
                    markers=MarkerVector.from_values(numbers, layout.size),
                )
            )
    return persons


def id_from_filename(filename: str) -> str:
    """
    Extract the YFull ID from a results file name.

    A typical name looks like STR_for_YF01234_20160216.csv. Other names
    have their ".csv" extension stripped.
    """
    if filename.startswith("STR_for_"):
        return filename[len("STR_for_") :].split("_")[0]
    if filename.endswith(".csv"):
        return filename[: -len(".csv")]
    return filename


def read_person_yfull(path: Path | str, layout: MarkerLayout = FTDNA_LAYOUT) -> Person:
    """
    Read a person from a YFull STR results file.

    Unknown markers and unreadable values are logged and skipped.

    Raises:
        ValueError: If the file holds no data or has the wrong format
    """
    path = Path(path)
    with open(path, newline="", encoding="utf-8") as f:
        records = list(csv.reader(f, delimiter=";"))

    if not records:
        raise ValueError(f"No data found in {path}")
    if len(records[0]) < 2:
        raise ValueError(f"Invalid file format for {path}")

    updates: dict[int, float] = {}
    for record in records:
        if len(record) < 2:
            continue
        marker_name, text = record[0].strip(), record[1].strip()
        if text in ("", "n/a"):
            continue
        if text.endswith(ALLELE_SUFFIXES):
            text = text[:-2]
        try:
            value = float(text)
        except ValueError:
            logger.warning("Invalid value %r for %s in %s", text, marker_name, path)
            continue
        if marker_name not in layout:
            logger.warning("Unknown marker %s in %s", marker_name, path)
            continue
        updates[layout.index(marker_name)] = value

    person_id = id_from_filename(path.name)
    logger.info("Number of markers for %s: %d", person_id, len(updates))
    return Person(
        id=person_id,
        label=string_to_label(person_id),
        markers=layout.empty_vector().replace(updates),
        name=path.name,
    )


def read_persons_dir(path: Path | str, layout: MarkerLayout = FTDNA_LAYOUT) -> list[Person]:
    """
    Read all YFull results files (*.csv) from a directory.

    A file that cannot be read is logged and skipped.

    Raises:
        NotADirectoryError: If path is not a directory
    """
    path = Path(path)
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")

    persons = []
    for file in sorted(path.glob("*.csv")):
        try:
            persons.append(read_person_yfull(file, layout))
        except (OSError, ValueError) as e:
            logger.warning("Could not read person from %s: %s", file, e)
    return persons


def read_persons(
    path: Path | str,
    layout: MarkerLayout = FTDNA_LAYOUT,
    label_column: int = 1,
) -> list[Person]:
    """Read persons from a YFull directory, a CSV export or a text file."""
    path = Path(path)
    if path.is_dir():
        return read_persons_dir(path, layout)
    if path.suffix.lower() == ".csv":
        return read_persons_csv(path, layout, label_column)
    return read_persons_txt(path, layout)
