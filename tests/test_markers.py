"""
Unit tests for ystrdist.markers module.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ystrdist.markers import (
    FTDNA_LAYOUT,
    CompoundMarker,
    Marker,
    MarkerLayout,
    MarkerVector,
    Person,
)


class TestFTDNALayout:
    """Tests for the built-in Family Tree DNA layout."""

    def test_layout_size(self) -> None:
        """111 canonical markers plus 4 DYS464 overflow slots."""
        assert FTDNA_LAYOUT.n_canonical == 111
        assert FTDNA_LAYOUT.n_overflow == 4
        assert FTDNA_LAYOUT.size == 115
        assert len(FTDNA_LAYOUT) == 115

    @pytest.mark.parametrize(
        "name,index",
        [
            ("DYS393", 0),
            ("DYS385a", 4),
            ("DYS389i", 9),
            ("DYS389ii", 11),
            ("DYS464a", 21),
            ("DYS464d", 24),
            ("YCAIIa", 27),
            ("CDYa", 33),
            ("DYS438", 36),
            ("DYF395S1a", 39),
            ("DYS413a", 48),
            ("DYS565", 66),
            ("DYS435", 110),
            ("DYS464e", 111),
            ("DYS464h", 114),
        ],
    )
    def test_marker_positions(self, name: str, index: int) -> None:
        """Markers are in Family Tree DNA order."""
        assert FTDNA_LAYOUT.index(name) == index

    def test_lookup_case_insensitive(self) -> None:
        """Names are matched regardless of case."""
        assert FTDNA_LAYOUT.index("dys389I") == 9
        assert FTDNA_LAYOUT.index("ycaiib") == 28

    def test_lookup_alias(self) -> None:
        """Alternate vendor names resolve to the same position."""
        assert FTDNA_LAYOUT.index("GATA-H4") == FTDNA_LAYOUT.index("Y-GATA-H4")
        assert FTDNA_LAYOUT.index("DYS394") == FTDNA_LAYOUT.index("DYS19")
        assert "YGATAA10" in FTDNA_LAYOUT

    def test_unknown_marker(self) -> None:
        """Unknown names raise KeyError."""
        with pytest.raises(KeyError, match="Unknown marker"):
            FTDNA_LAYOUT.index("DYS999")
        assert "DYS999" not in FTDNA_LAYOUT

    def test_regions(self) -> None:
        """Palindromic and YCAII regions are derived from the table."""
        regions = {r.name: r for r in FTDNA_LAYOUT.regions}
        assert set(regions) == {"DYS464", "YCAII", "CDY", "DYF395S1", "DYS413"}

        dys464 = regions["DYS464"]
        assert dys464.kind == "palindromic"
        assert dys464.positions == (21, 22, 23, 24, 111, 112, 113, 114)
        assert dys464.canonical_width == 4
        assert dys464.rate_index == 24
        assert dys464.has_overflow
        assert dys464.multi_copy

        cdy = regions["CDY"]
        assert cdy.positions == (33, 34)
        assert cdy.rate_index == 34
        assert not cdy.has_overflow
        assert not cdy.multi_copy

        assert regions["YCAII"].kind == "infinite"

    def test_compounds(self) -> None:
        """DYS389ii includes DYS389i."""
        assert FTDNA_LAYOUT.compounds == (CompoundMarker(index=11, base_index=9),)

    def test_ordinary_indices(self) -> None:
        """Region and compound positions are not compared one by one."""
        ordinary = FTDNA_LAYOUT.ordinary_indices
        assert 0 in ordinary
        assert 9 in ordinary  # DYS389i itself is stepwise
        assert 4 in ordinary and 5 in ordinary  # DYS385 is not palindromic
        assert 11 not in ordinary
        assert 21 not in ordinary
        assert 27 not in ordinary
        assert 111 not in ordinary
        assert len(ordinary) == 98

    def test_columns(self) -> None:
        """Multi-value markers share one export column."""
        columns = FTDNA_LAYOUT.columns
        assert len(columns) == 102
        assert columns[4] == (4, 5)
        assert columns[12] == (13, 14)
        assert columns[19] == (21, 22, 23, 24, 111, 112, 113, 114)

    def test_multi_copy_positions(self) -> None:
        """Only DYS464 owns overflow slots."""
        assert FTDNA_LAYOUT.multi_copy_positions == frozenset(
            [21, 22, 23, 24, 111, 112, 113, 114]
        )

    def test_vector_from_names(self) -> None:
        """Sparse name mappings fill the named positions only."""
        vector = FTDNA_LAYOUT.vector({"DYS393": 13, "dys464e": 18})
        assert len(vector) == 115
        assert vector[0] == 13.0
        assert vector[111] == 18.0
        assert vector.n_measured == 2

    def test_vector_unknown_name(self) -> None:
        with pytest.raises(KeyError):
            FTDNA_LAYOUT.vector({"DYS999": 12})


class TestMarkerLayout:
    """Tests for custom layouts."""

    def test_from_csv(self, tmp_path: Path) -> None:
        """Layouts can be loaded from CSV."""
        content = """name,aliases,role,group,base,overflow
A,"A1,A-1",ordinary,,,
B,,ordinary,,,
C,,compound,,B,
P1,,palindromic,P,,
P2,,palindromic,P,,
P3,,palindromic,P,,yes
"""
        path = tmp_path / "layout.csv"
        path.write_text(content)

        layout = MarkerLayout.from_csv(path)

        assert layout.n_canonical == 5
        assert layout.n_overflow == 1
        assert layout.index("A-1") == 0
        assert layout.compounds == (CompoundMarker(index=2, base_index=1),)
        assert layout.regions[0].positions == (3, 4, 5)
        assert layout.regions[0].canonical_width == 2
        assert layout.regions[0].multi_copy
        assert layout.ordinary_indices == (0, 1)

    def test_from_csv_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "layout.csv"
        path.write_text("name,aliases,role,group,base,overflow\n")
        with pytest.raises(ValueError, match="No markers"):
            MarkerLayout.from_csv(path)

    def test_wrong_index(self) -> None:
        with pytest.raises(ValueError, match="expected 0"):
            MarkerLayout([Marker(name="A", index=1)])

    def test_unknown_role(self) -> None:
        with pytest.raises(ValueError, match="Unknown role"):
            MarkerLayout([Marker(name="A", index=0, role="weird")])  # type: ignore[arg-type]

    def test_duplicate_names(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            MarkerLayout([Marker(name="A", index=0), Marker(name="a", index=1)])

    def test_canonical_after_overflow(self) -> None:
        markers = [
            Marker(name="P1", index=0, role="palindromic", group="P"),
            Marker(name="P2", index=1, role="palindromic", group="P", overflow=True),
            Marker(name="A", index=2),
        ]
        with pytest.raises(ValueError, match="follows overflow"):
            MarkerLayout(markers)

    def test_overflow_must_be_palindromic(self) -> None:
        markers = [Marker(name="A", index=0), Marker(name="B", index=1, overflow=True)]
        with pytest.raises(ValueError, match="palindromic group"):
            MarkerLayout(markers)

    def test_group_not_contiguous(self) -> None:
        markers = [
            Marker(name="P1", index=0, role="palindromic", group="P"),
            Marker(name="A", index=1),
            Marker(name="P2", index=2, role="palindromic", group="P"),
        ]
        with pytest.raises(ValueError, match="not contiguous"):
            MarkerLayout(markers)

    def test_compound_unknown_base(self) -> None:
        markers = [Marker(name="A", index=0), Marker(name="B", index=1, role="compound", base="X")]
        with pytest.raises(ValueError, match="unknown base"):
            MarkerLayout(markers)

    def test_region_without_group(self) -> None:
        with pytest.raises(ValueError, match="needs a group"):
            MarkerLayout([Marker(name="P", index=0, role="palindromic")])


class TestMarkerVector:
    """Tests for MarkerVector."""

    def test_zeros(self) -> None:
        vector = MarkerVector.zeros(5)
        assert len(vector) == 5
        assert list(vector) == [0.0] * 5

    def test_from_values_pads(self) -> None:
        vector = MarkerVector.from_values([13, 24], 4)
        assert vector.values == (13.0, 24.0, 0.0, 0.0)

    def test_from_values_too_long(self) -> None:
        with pytest.raises(ValueError):
            MarkerVector.from_values([1, 2, 3], 2)

    def test_replace_returns_new_vector(self) -> None:
        """Vectors are immutable; replace makes a copy."""
        vector = MarkerVector((1.0, 2.0, 3.0))
        changed = vector.replace({1: 5.0})
        assert changed.values == (1.0, 5.0, 3.0)
        assert vector.values == (1.0, 2.0, 3.0)

    def test_n_measured_ignores_invalid(self) -> None:
        """Zero and negative values are not measured."""
        assert MarkerVector((13.0, 0.0, -1.0, 15.2)).n_measured == 2

    def test_layout_check(self) -> None:
        with pytest.raises(ValueError, match="layout expects 115"):
            FTDNA_LAYOUT.check(MarkerVector.zeros(37))


class TestPerson:
    """Tests for Person dataclass."""

    def test_person_defaults(self) -> None:
        person = Person(id="123", label="_____Smith", markers=MarkerVector.zeros(3))
        assert person.name == ""
        assert person.ancestor == ""
        assert person.origin == ""

    def test_person_is_frozen(self) -> None:
        person = Person(id="123", label="_____Smith", markers=MarkerVector.zeros(3))
        with pytest.raises(AttributeError):
            person.label = "other"  # type: ignore[misc]
