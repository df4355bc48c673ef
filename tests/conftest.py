"""
Pytest configuration and fixtures for ystrdist tests.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from ystrdist.markers import FTDNA_LAYOUT, MarkerLayout, MarkerVector, Person
from ystrdist.rates import default_mutation_rates


@pytest.fixture
def layout() -> MarkerLayout:
    """Return the built-in Family Tree DNA layout."""
    return FTDNA_LAYOUT


@pytest.fixture
def rates() -> MarkerVector:
    """Return the default mutation rates (all 1)."""
    return default_mutation_rates()


@pytest.fixture
def make_person() -> Callable[..., Person]:
    """
    Return a factory for persons from sparse marker values.

    Example:
        make_person("A", {"DYS393": 13, "DYS390": 24})
    """

    def _make(label: str, values: dict[str, float], **kwargs: str) -> Person:
        return Person(id=label, label=label, markers=FTDNA_LAYOUT.vector(values), **kwargs)

    return _make


@pytest.fixture
def sample_txt(tmp_path: Path) -> Path:
    """
    Create a persons text file with three persons.

    Pairwise distances with all rates 1:
        person_001 - person_002: 1/3
        person_001 - person_003: 1
        person_002 - person_003: 2/3
    """
    content = """// Y-STR values in Family Tree DNA order
// DYS393 DYS390 DYS19
person_001\t13\t24\t14
person_002\t13\t24\t15

person_003\t13\t25\t16
"""
    path = tmp_path / "persons.txt"
    path.write_text(content)
    return path


@pytest.fixture
def sample_ftdna_csv(tmp_path: Path) -> Path:
    """Create a Family Tree DNA style CSV with dash-separated multi-value columns."""
    header = (
        "Kit,Name,DYS393,DYS390,DYS19,DYS391,DYS385,DYS426,DYS388,DYS439,"
        "DYS389i,DYS392,DYS389ii,DYS458,DYS459,DYS455,DYS454,DYS447,DYS437,"
        "DYS448,DYS449,DYS464"
    )
    rows = [
        "123456,Smith,13,24,14,11,11-14,12,12,12,13,13,29,17,9-10,11,11,25,15,19,29,15-15-17-17-18",
        "234567,Jones,13,24,14,10,11-15,12,12,12,13,13,29,17,9-10,11,11,25,15,19,29,15-15-17-17",
        "345678,Müller,13,23,14,11,11-14,12,12,12,13,13,30,18,9-10,11,11,25,15,19,29,15-15-16-17",
    ]
    content = "Y-DNA results export\n" + header + "\n" + "\n".join(rows) + "\n"
    path = tmp_path / "ftdna.csv"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def yfull_dir(tmp_path: Path) -> Path:
    """Create a directory with two YFull STR result files."""
    directory = tmp_path / "yfull"
    directory.mkdir()
    (directory / "STR_for_YF01234_20160216.csv").write_text(
        "DYS393;13;\nDYS390;24;\nDYS19;14;\nDYS391;n/a;\nDYS389I;13;\nYCAIIa;19.a;\nDYS999;12;\n"
    )
    (directory / "STR_for_YF05678_20160301.csv").write_text(
        "DYS393;13;\nDYS390;23;\nDYS19;15;\nDYS391;10;\n"
    )
    return directory
