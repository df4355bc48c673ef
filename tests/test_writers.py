"""
Tests for matrix and person output.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path

import pytest

from ystrdist.markers import Person
from ystrdist.matrix import DistanceMatrix
from ystrdist.readers import read_persons_txt
from ystrdist.writers import (
    DEVIATION_COLORS,
    UNTESTED_COLOR,
    deviation_color,
    format_value,
    save_distance_matrix,
    write_distance_matrix,
    write_persons_html,
    write_persons_txt,
)


@pytest.fixture
def matrix() -> DistanceMatrix:
    return DistanceMatrix(
        labels=("_____Smith", "_____Jones"),
        values=((0.0, 43.0), (43.0, 0.0)),
    )


class TestFormatValue:
    @pytest.mark.parametrize(
        "value,expected",
        [(13.0, "13"), (0.0, "0"), (17.2, "17.2"), (0.25, "0.25")],
    )
    def test_format(self, value: float, expected: str) -> None:
        assert format_value(value) == expected


class TestDistanceMatrixOutput:
    """Tests for the PHYLIP distance matrix format."""

    def test_write(self, matrix: DistanceMatrix) -> None:
        out = io.StringIO()
        write_distance_matrix(out, matrix)
        assert out.getvalue() == "2\n_____Smith\t0\t43\n_____Jones\t43\t0\n"

    def test_fractional_distances(self) -> None:
        out = io.StringIO()
        write_distance_matrix(out, DistanceMatrix(labels=("A",), values=((0.5,),)))
        assert out.getvalue() == "1\nA\t0.5\n"

    def test_save(self, tmp_path: Path, matrix: DistanceMatrix) -> None:
        path = tmp_path / "matrix.txt"
        save_distance_matrix(path, matrix)
        assert path.read_text().splitlines()[0] == "2"


class TestPersonsTxt:
    """Tests for write_persons_txt."""

    def test_write(self, tmp_path: Path, make_person: Callable[..., Person]) -> None:
        path = tmp_path / "persons.txt"
        persons = [make_person("person_001", {"DYS393": 13, "DYS390": 24, "DYS19": 14.2})]
        write_persons_txt(path, persons, 4)
        assert path.read_text() == "person_001\t13\t24\t14.2\t0\n"

    def test_reads_back(self, tmp_path: Path, make_person: Callable[..., Person]) -> None:
        path = tmp_path / "persons.txt"
        persons = [
            make_person("person_001", {"DYS393": 13, "DYS390": 24}),
            make_person("person_002", {"DYS393": 14, "DYS390": 23}),
        ]
        write_persons_txt(path, persons, 111)
        assert read_persons_txt(path) == persons


class TestDeviationColor:
    """Tests for deviation_color."""

    def test_untested(self) -> None:
        assert deviation_color(0.0, 13.0) == UNTESTED_COLOR

    def test_modal_value(self) -> None:
        assert deviation_color(13.0, 13.0) == "rgb(255,255,255)"

    def test_above_and_below(self) -> None:
        assert deviation_color(14.0, 13.0) == DEVIATION_COLORS[6]
        assert deviation_color(12.0, 13.0) == DEVIATION_COLORS[4]

    def test_clamped(self) -> None:
        assert deviation_color(40.0, 13.0) == DEVIATION_COLORS[-1]
        assert deviation_color(1.0, 13.0) == DEVIATION_COLORS[0]


class TestPersonsHtml:
    """Tests for write_persons_html."""

    def test_write(self, tmp_path: Path, make_person: Callable[..., Person]) -> None:
        path = tmp_path / "persons.html"
        persons = [
            make_person("<Smith>", {"DYS393": 13, "DYS390": 24}),
            make_person("_____Jones", {"DYS393": 14}),
        ]
        write_persons_html(path, persons, 3)

        content = path.read_text()
        assert content.startswith("<!DOCTYPE html>")
        assert "<td>DYS393</td><td>DYS390</td><td>DYS19</td>" in content
        assert "&lt;Smith&gt;" in content
        assert f'<td style="background-color:{UNTESTED_COLOR};">0</td>' in content
        assert f'<td style="background-color:{DEVIATION_COLORS[6]};">14</td>' in content

    def test_modal_reference(self, tmp_path: Path, make_person: Callable[..., Person]) -> None:
        path = tmp_path / "persons.html"
        modal = make_person("_____modal", {"DYS393": 12})
        write_persons_html(path, [make_person("A", {"DYS393": 13})], 1, modal=modal)
        assert f'<td style="background-color:{DEVIATION_COLORS[6]};">13</td>' in path.read_text()

    def test_no_persons(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="No persons"):
            write_persons_html(tmp_path / "persons.html", [], 3)
