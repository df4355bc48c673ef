"""
Command-line interface for ystrdist.

Provides pipeline-friendly CLI with proper exit codes.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn, TextIO

import click

from ystrdist import __version__
from ystrdist.distance import DistanceMetric
from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerVector
from ystrdist.matrix import DistanceMatrix
from ystrdist.population import (
    InsufficientDataError,
    anonymize,
    average,
    modal_haplotype,
    reduce_count,
    reduce_to_marker_set,
)
from ystrdist.rates import default_mutation_rates, read_mutation_rates, write_mutation_rates
from ystrdist.readers import read_persons
from ystrdist.statistics import (
    MarkerStatistics,
    counting_rates,
    marker_statistics,
    select_markers,
)
from ystrdist.writers import (
    format_value,
    save_distance_matrix,
    write_distance_matrix,
    write_persons_html,
    write_persons_txt,
)

EXIT_FILE_NOT_FOUND = 10
EXIT_INVALID_INPUT = 11
EXIT_INSUFFICIENT_DATA = 12
EXIT_ERROR = 99


class _EchoHandler(logging.Handler):
    """Log handler writing through click.echo to the current stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def _configure_logging(verbose: bool) -> None:
    """Send ystrdist log records to stderr."""
    logger = logging.getLogger("ystrdist")
    if not any(isinstance(h, _EchoHandler) for h in logger.handlers):
        handler = _EchoHandler()
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)


def _load_layout(layout_path: Path | None) -> MarkerLayout:
    if layout_path is None:
        return FTDNA_LAYOUT
    click.echo(f"Loading marker layout from {layout_path}...", err=True)
    return MarkerLayout.from_csv(layout_path)


def _load_rates(rates_path: Path | None, layout: MarkerLayout) -> MarkerVector:
    if rates_path is None:
        return default_mutation_rates(layout)
    click.echo(f"Loading mutation rates from {rates_path}...", err=True)
    return read_mutation_rates(rates_path, layout)


def _exit_with_error(e: Exception) -> NoReturn:
    """Report an error and exit with the matching code."""
    if isinstance(e, FileNotFoundError):
        click.echo(f"Error: File not found: {e}", err=True)
        sys.exit(EXIT_FILE_NOT_FOUND)
    elif isinstance(e, InsufficientDataError):
        click.echo(f"Error: Insufficient data: {e}", err=True)
        sys.exit(EXIT_INSUFFICIENT_DATA)
    elif isinstance(e, (ValueError, KeyError)):
        click.echo(f"Error: Invalid input: {e}", err=True)
        sys.exit(EXIT_INVALID_INPUT)
    click.echo(f"Error: {e}", err=True)
    sys.exit(EXIT_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="ystrdist")
def main() -> None:
    """
    ystrdist: Genetic distances from Y-STR values.

    Calculates distance matrices for phylogenetic tree software
    like PHYLIP from Y-STR marker results.
    """
    pass


@main.command()
@click.argument("persons_path", metavar="PERSONS", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--rates",
    "-r",
    "rates_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="JSON file with mutation rates [default: all 1]",
)
@click.option(
    "--layout",
    "layout_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Marker layout CSV [default: Family Tree DNA 111 markers]",
)
@click.option(
    "--label-column",
    type=click.IntRange(min=1),
    default=2,
    help="CSV column (1-based) used for labels [default: 2, the name]",
)
@click.option(
    "--markers",
    "n_markers",
    type=int,
    default=None,
    help="Only use persons tested for this many markers (e.g. 37, 67, 111)",
)
@click.option(
    "--reduce",
    "reduce_factor",
    type=int,
    default=1,
    help="Only use every n-th person [default: 1]",
)
@click.option("--anonymize", "anonymize_persons", is_flag=True, help="Replace labels by numbers")
@click.option("--modal", is_flag=True, help="Append the modal haplotype as last person")
@click.option(
    "--mode",
    type=click.Choice(["stepwise", "infinite"]),
    default="stepwise",
    help="Mutation model for non-palindromic markers [default: stepwise]",
)
@click.option(
    "--workers",
    type=int,
    default=1,
    help="Number of parallel processes [default: 1]",
)
@click.option(
    "--gendist",
    type=float,
    default=25.0,
    help="Generation length in years [default: 25]",
)
@click.option(
    "--cal",
    type=float,
    default=1.0,
    help="Calibration factor [default: 1]",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="PHYLIP distance matrix file [default: stdout]",
)
@click.option(
    "--txt-out",
    type=click.Path(path_type=Path),
    default=None,
    help="Write persons' values as tab-separated text",
)
@click.option(
    "--html-out",
    type=click.Path(path_type=Path),
    default=None,
    help="Write persons' values as color-coded HTML table",
)
@click.option(
    "--n-values",
    type=int,
    default=67,
    help="Number of values in text and HTML output [default: 67]",
)
@click.option("--verbose", "-v", is_flag=True, help="Show progress details")
def matrix(
    persons_path: Path,
    rates_path: Path | None,
    layout_path: Path | None,
    label_column: int,
    n_markers: int | None,
    reduce_factor: int,
    anonymize_persons: bool,
    modal: bool,
    mode: str,
    workers: int,
    gendist: float,
    cal: float,
    output: Path | None,
    txt_out: Path | None,
    html_out: Path | None,
    n_values: int,
    verbose: bool,
) -> None:
    """
    Calculate a genetic distance matrix.

    PERSONS is a CSV export, a text file or a directory of YFull results.
    Distances are written in years (distance * gendist * cal).
    """
    _configure_logging(verbose)
    try:
        layout = _load_layout(layout_path)
        rates = _load_rates(rates_path, layout)

        click.echo(f"Loading persons from {persons_path}...", err=True)
        persons = read_persons(persons_path, layout, label_column - 1)
        if not persons:
            raise ValueError(f"No persons found in {persons_path}")

        if n_markers is not None:
            persons = reduce_to_marker_set(persons, n_markers, layout)
        if reduce_factor != 1:
            persons = reduce_count(persons, reduce_factor)
        if anonymize_persons:
            persons = anonymize(persons)

        modal_person = modal_haplotype(persons, layout)
        if modal:
            persons = [*persons, modal_person]

        n_written = min(n_values, layout.n_canonical)
        if txt_out:
            write_persons_txt(txt_out, persons, n_written)
            click.echo(f"Persons written to {txt_out}", err=True)
        if html_out:
            write_persons_html(html_out, persons, n_written, layout, modal=modal_person)
            click.echo(f"HTML table written to {html_out}", err=True)

        click.echo(f"Calculating distances for {len(persons)} persons...", err=True)
        metric = DistanceMetric(layout, mode)  # type: ignore[arg-type]
        distances = DistanceMatrix.build(persons, rates, metric, workers=workers)

        if modal and len(persons) > 2:
            mean, sd = average(distances.row(len(persons) - 1)[:-1])
            click.echo(f"Distance from modal: {mean:.4f} +/- {sd:.4f}", err=True)

        years = distances.rescale(gendist, cal)
        if output:
            save_distance_matrix(output, years)
            click.echo(f"Distance matrix written to {output}", err=True)
        else:
            write_distance_matrix(sys.stdout, years)

    except Exception as e:
        _exit_with_error(e)


@main.command()
@click.option(
    "--rates",
    "-r",
    "rates_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="JSON file with mutation rates [default: all 1]",
)
@click.option(
    "--layout",
    "layout_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Marker layout CSV [default: Family Tree DNA 111 markers]",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    required=True,
    help="Output JSON file",
)
def rates(rates_path: Path | None, layout_path: Path | None, output: Path) -> None:
    """
    Export a mutation-rate table.

    Writes the rate of every marker of the layout, so that the file can
    be edited and passed back with --rates.
    """
    _configure_logging(False)
    try:
        layout = _load_layout(layout_path)
        table = _load_rates(rates_path, layout)
        write_mutation_rates(output, table, layout)
        click.echo(f"Mutation rates written to {output}", err=True)
    except Exception as e:
        _exit_with_error(e)


def _write_statistics(stats: MarkerStatistics, file: TextIO) -> None:
    """Write marker statistics as TSV."""
    header = ["marker", "count", "frequency", "n_values", "values"]
    file.write("\t".join(header) + "\n")
    for marker in stats:
        values = ",".join(f"{format_value(v)}:{n}" for v, n in marker.values)
        row = [
            marker.name,
            str(marker.count),
            f"{marker.frequency:.4f}",
            str(marker.n_values),
            values,
        ]
        file.write("\t".join(row) + "\n")


@main.command()
@click.argument("persons_path", metavar="PERSONS", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--layout",
    "layout_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Marker layout CSV [default: Family Tree DNA 111 markers]",
)
@click.option(
    "--label-column",
    type=click.IntRange(min=1),
    default=2,
    help="CSV column (1-based) used for labels [default: 2, the name]",
)
@click.option(
    "--min-frequency",
    type=float,
    default=0.0,
    help="Minimum fraction of persons tested for a marker [default: 0]",
)
@click.option(
    "--min-values",
    type=int,
    default=0,
    help="Minimum number of distinct values [default: 0]",
)
@click.option(
    "--max-values",
    type=int,
    default=None,
    help="Maximum number of distinct values [default: no limit]",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output TSV file [default: stdout]",
)
@click.option(
    "--rates-out",
    type=click.Path(path_type=Path),
    default=None,
    help="Write mutation rates that count mutations on the selected markers",
)
@click.option("--verbose", "-v", is_flag=True, help="Show progress details")
def stats(
    persons_path: Path,
    layout_path: Path | None,
    label_column: int,
    min_frequency: float,
    min_values: int,
    max_values: int | None,
    output: Path | None,
    rates_out: Path | None,
    verbose: bool,
) -> None:
    """
    Show marker statistics for a group of persons.

    Lists how many persons tested each marker and which values occur.
    """
    _configure_logging(verbose)
    try:
        layout = _load_layout(layout_path)
        persons = read_persons(persons_path, layout, label_column - 1)
        if not persons:
            raise ValueError(f"No persons found in {persons_path}")

        selected = select_markers(
            marker_statistics(persons, layout),
            min_frequency=min_frequency,
            min_values=min_values,
            max_values=max_values,
        )
        click.echo(f"{len(selected)} markers selected for {len(persons)} persons", err=True)

        if output:
            with open(output, "w") as f:
                _write_statistics(selected, f)
            click.echo(f"Statistics written to {output}", err=True)
        else:
            _write_statistics(selected, sys.stdout)

        if rates_out:
            write_mutation_rates(rates_out, counting_rates(selected, layout), layout)
            click.echo(f"Mutation rates written to {rates_out}", err=True)

    except Exception as e:
        _exit_with_error(e)


if __name__ == "__main__":
    main()
