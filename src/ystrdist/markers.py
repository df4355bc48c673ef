"""
Y-STR marker layout, marker vectors and persons.

The layout maps every position of a marker vector to a marker name, its
alternate spellings and the role the distance metric gives it. Canonical
positions follow Family Tree DNA order. Extra DYS464 copies that do not fit
the four canonical DYS464 slots are stored in overflow slots after the
canonical range.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

MarkerRole = Literal["ordinary", "compound", "palindromic", "infinite"]

MARKER_ROLES = frozenset(["ordinary", "compound", "palindromic", "infinite"])

# Roles whose positions are compared as one unit
REGION_ROLES = frozenset(["palindromic", "infinite"])


def _normalize(name: str) -> str:
    return name.strip().upper()


def _is_true(text: str | None) -> bool:
    return (text or "").strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Marker:
    """
    A Y-STR marker position.

    Attributes:
        name: Canonical marker name (e.g. "DYS389ii")
        index: Position in the marker vector
        role: How the distance metric treats this position
        aliases: Alternate names used by vendor export formats
        group: Multi-value marker this position belongs to (e.g. "DYS464")
        base: For compound markers, the name of the included sub-marker
        overflow: True for extra copies stored after the canonical range
        multi_copy: True if the group varies in copy number between persons
    """

    name: str
    index: int
    role: MarkerRole = "ordinary"
    aliases: tuple[str, ...] = ()
    group: str = ""
    base: str = ""
    overflow: bool = False
    multi_copy: bool = False

    @property
    def all_names(self) -> list[str]:
        """Return canonical name plus all aliases."""
        return [self.name, *self.aliases]


@dataclass(frozen=True)
class MarkerRegion:
    """
    Contiguous positions compared as a unit.

    Attributes:
        name: Group name (e.g. "DYS464")
        kind: "palindromic" (unordered multiset) or "infinite" (YCAII-like)
        positions: Canonical positions followed by overflow positions
        canonical_width: Number of canonical positions
        rate_index: Position holding the mutation rate for the region
        multi_copy: Copy number varies; a missing region does not make a
            person incomplete for a marker set
    """

    name: str
    kind: MarkerRole
    positions: tuple[int, ...]
    canonical_width: int
    rate_index: int
    multi_copy: bool = False

    @property
    def has_overflow(self) -> bool:
        return len(self.positions) > self.canonical_width


@dataclass(frozen=True)
class CompoundMarker:
    """A marker whose reported count includes the count of a sub-marker."""

    index: int
    base_index: int


class MarkerLayout:
    """
    Immutable table of marker positions.

    Markers must be given in index order. Overflow markers come after all
    canonical markers and must belong to a palindromic group.
    """

    def __init__(self, markers: Sequence[Marker]) -> None:
        self._markers: tuple[Marker, ...] = tuple(markers)
        self._by_name: dict[str, int] = {}  # normalized name or alias -> index

        n_canonical = 0
        for i, marker in enumerate(self._markers):
            if marker.index != i:
                raise ValueError(f"Marker {marker.name} has index {marker.index}, expected {i}")
            if marker.role not in MARKER_ROLES:
                raise ValueError(f"Unknown role for {marker.name}: {marker.role}")
            if marker.overflow:
                if marker.role != "palindromic" or not marker.group:
                    raise ValueError(
                        f"Overflow marker {marker.name} must belong to a palindromic group"
                    )
            else:
                if n_canonical != i:
                    raise ValueError(f"Canonical marker {marker.name} follows overflow markers")
                n_canonical += 1
            for name in marker.all_names:
                key = _normalize(name)
                if key in self._by_name:
                    raise ValueError(f"Duplicate marker name: {name}")
                self._by_name[key] = i

        self._n_canonical = n_canonical
        self._compounds = self._build_compounds()
        self._regions = self._build_regions()
        self._columns = self._build_columns()

        in_region = {p for region in self._regions for p in region.positions}
        self._ordinary = tuple(
            m.index for m in self._markers if m.role == "ordinary" and m.index not in in_region
        )

    def _build_compounds(self) -> tuple[CompoundMarker, ...]:
        compounds = []
        for marker in self._markers:
            if marker.role != "compound":
                continue
            if not marker.base or _normalize(marker.base) not in self._by_name:
                raise ValueError(f"Compound marker {marker.name} has unknown base: {marker.base!r}")
            base_index = self._by_name[_normalize(marker.base)]
            if base_index == marker.index or self._markers[base_index].overflow:
                raise ValueError(f"Invalid base for compound marker {marker.name}")
            compounds.append(CompoundMarker(index=marker.index, base_index=base_index))
        return tuple(compounds)

    def _build_regions(self) -> tuple[MarkerRegion, ...]:
        members: dict[str, list[Marker]] = {}
        for marker in self._markers:
            if marker.role in REGION_ROLES:
                if not marker.group:
                    raise ValueError(f"Marker {marker.name} with role {marker.role} needs a group")
                members.setdefault(marker.group, []).append(marker)

        regions = []
        for name, group in members.items():
            kinds = {m.role for m in group}
            if len(kinds) != 1:
                raise ValueError(f"Mixed roles in marker group {name}: {sorted(kinds)}")
            canonical = [m.index for m in group if not m.overflow]
            overflow = [m.index for m in group if m.overflow]
            if not canonical:
                raise ValueError(f"Marker group {name} has no canonical positions")
            for run in (canonical, overflow):
                if run and run != list(range(run[0], run[0] + len(run))):
                    raise ValueError(f"Marker group {name} is not contiguous")
            regions.append(
                MarkerRegion(
                    name=name,
                    kind=group[0].role,
                    positions=tuple(canonical + overflow),
                    canonical_width=len(canonical),
                    rate_index=canonical[-1],
                    multi_copy=any(m.multi_copy or m.overflow for m in group),
                )
            )
        return tuple(sorted(regions, key=lambda r: r.positions[0]))

    def _build_columns(self) -> tuple[tuple[int, ...], ...]:
        """Positions filled by each column of a one-column-per-marker export."""
        overflow_by_group: dict[str, list[int]] = {}
        for marker in self._markers:
            if marker.overflow:
                overflow_by_group.setdefault(marker.group, []).append(marker.index)

        columns: list[list[int]] = []
        last_group = ""
        for marker in self._markers[: self._n_canonical]:
            if marker.group and marker.group == last_group:
                columns[-1].append(marker.index)
            else:
                columns.append([marker.index])
            last_group = marker.group

        result = []
        for column in columns:
            group = self._markers[column[0]].group
            result.append(tuple(column + overflow_by_group.get(group, [])))
        return tuple(result)

    @classmethod
    def from_csv(cls, path: Path | str) -> MarkerLayout:
        """
        Load a layout from CSV.

        Expected columns: name, aliases, role, group, base, overflow and,
        optionally, multi_copy. Rows are taken in file order; overflow rows
        must come last. A region counts as multi-copy if any of its rows has
        multi_copy or overflow set, so a layout without overflow slots keeps
        the completeness exemption by marking the group multi_copy.

        Args:
            path: Path to CSV file

        Returns:
            MarkerLayout instance

        Raises:
            ValueError: If the layout is malformed
        """
        path = Path(path)
        markers = []
        with open(path, newline="") as f:
            reader = csv.DictReader(f)
            for i, row in enumerate(reader):
                markers.append(cls._parse_row(row, i))
        if not markers:
            raise ValueError(f"No markers found in layout file: {path}")
        return cls(markers)

    @staticmethod
    def _parse_row(row: dict[str, str], index: int) -> Marker:
        """Parse a CSV row into a Marker."""
        name = (row.get("name") or "").strip()
        if not name:
            raise ValueError(f"Missing marker name in layout row {index + 1}")
        aliases: tuple[str, ...] = ()
        if row.get("aliases"):
            aliases = tuple(a.strip() for a in row["aliases"].split(",") if a.strip())
        overflow = _is_true(row.get("overflow"))
        return Marker(
            name=name,
            index=index,
            role=(row.get("role") or "ordinary").strip() or "ordinary",  # type: ignore[arg-type]
            aliases=aliases,
            group=(row.get("group") or "").strip(),
            base=(row.get("base") or "").strip(),
            overflow=overflow,
            multi_copy=_is_true(row.get("multi_copy")),
        )

    @property
    def size(self) -> int:
        """Length of a marker vector: canonical plus overflow slots."""
        return len(self._markers)

    @property
    def n_canonical(self) -> int:
        return self._n_canonical

    @property
    def n_overflow(self) -> int:
        return len(self._markers) - self._n_canonical

    @property
    def names(self) -> list[str]:
        return [m.name for m in self._markers]

    @property
    def regions(self) -> tuple[MarkerRegion, ...]:
        return self._regions

    @property
    def compounds(self) -> tuple[CompoundMarker, ...]:
        return self._compounds

    @property
    def ordinary_indices(self) -> tuple[int, ...]:
        """Positions compared one by one (ordinary role, not in a region)."""
        return self._ordinary

    @property
    def columns(self) -> tuple[tuple[int, ...], ...]:
        return self._columns

    @property
    def multi_copy_positions(self) -> frozenset[int]:
        """Positions of multi-copy regions, including their overflow slots."""
        return frozenset(p for r in self._regions if r.multi_copy for p in r.positions)

    def index(self, name: str) -> int:
        """
        Get the position of a marker by name or alias (case-insensitive).

        Raises:
            KeyError: If the marker is unknown
        """
        try:
            return self._by_name[_normalize(name)]
        except KeyError:
            raise KeyError(f"Unknown marker: {name}") from None

    def get(self, name: str) -> Marker:
        return self._markers[self.index(name)]

    def empty_vector(self) -> MarkerVector:
        return MarkerVector.zeros(self.size)

    def vector(self, values: Mapping[str, float]) -> MarkerVector:
        """
        Build a marker vector from a sparse name -> value mapping.

        Absent markers are 0 (not measured).
        """
        updates = {self.index(name): value for name, value in values.items()}
        return self.empty_vector().replace(updates)

    def check(self, vector: MarkerVector) -> None:
        """Raise ValueError if the vector does not fit this layout."""
        if len(vector) != self.size:
            raise ValueError(
                f"Marker vector has {len(vector)} slots, layout expects {self.size}"
            )

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(self._markers)

    def __getitem__(self, index: int) -> Marker:
        return self._markers[index]

    def __contains__(self, name: str) -> bool:
        return _normalize(name) in self._by_name


@dataclass(frozen=True)
class MarkerVector:
    """
    Measured values for every slot of a layout.

    0 means "not measured". Negative values are invalid readings and are
    never compared.
    """

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    @classmethod
    def zeros(cls, size: int) -> MarkerVector:
        return cls((0.0,) * size)

    @classmethod
    def from_values(cls, values: Iterable[float], size: int) -> MarkerVector:
        """Build a vector of the given size, padding missing slots with 0."""
        values = list(values)
        if len(values) > size:
            raise ValueError(f"Got {len(values)} values for a vector of size {size}")
        return cls(tuple(values) + (0.0,) * (size - len(values)))

    def replace(self, updates: Mapping[int, float]) -> MarkerVector:
        """Return a copy with some positions changed."""
        values = list(self.values)
        for index, value in updates.items():
            values[index] = value
        return MarkerVector(tuple(values))

    @property
    def n_measured(self) -> int:
        return sum(1 for v in self.values if v > 0)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]


@dataclass(frozen=True)
class Person:
    """
    A tested person.

    Attributes:
        id: Identifier, usually the kit number
        label: Display label used in distance matrices
        markers: Y-STR values
        name: Full name
        ancestor: Earliest known paternal ancestor
        origin: Geographic origin
    """

    id: str
    label: str
    markers: MarkerVector
    name: str = ""
    ancestor: str = ""
    origin: str = ""


# Family Tree DNA Y-111 order. Positions not listed in _FTDNA_ROLES are ordinary.
FTDNA_MARKER_NAMES: tuple[str, ...] = (
    # Y-12
    "DYS393", "DYS390", "DYS19", "DYS391", "DYS385a", "DYS385b",
    "DYS426", "DYS388", "DYS439", "DYS389i", "DYS392", "DYS389ii",
    # Y-25
    "DYS458", "DYS459a", "DYS459b", "DYS455", "DYS454", "DYS447", "DYS437",
    "DYS448", "DYS449", "DYS464a", "DYS464b", "DYS464c", "DYS464d",
    # Y-37
    "DYS460", "Y-GATA-H4", "YCAIIa", "YCAIIb", "DYS456", "DYS607",
    "DYS576", "DYS570", "CDYa", "CDYb", "DYS442", "DYS438",
    # Y-67
    "DYS531", "DYS578", "DYF395S1a", "DYF395S1b", "DYS590", "DYS537",
    "DYS641", "DYS472", "DYF406S1", "DYS511", "DYS425", "DYS413a",
    "DYS413b", "DYS557", "DYS594", "DYS436", "DYS490", "DYS534",
    "DYS450", "DYS444", "DYS481", "DYS520", "DYS446", "DYS617",
    "DYS568", "DYS487", "DYS572", "DYS640", "DYS492", "DYS565",
    # Y-111
    "DYS710", "DYS485", "DYS632", "DYS495", "DYS540", "DYS714",
    "DYS716", "DYS717", "DYS505", "DYS556", "DYS549", "DYS589",
    "DYS522", "DYS494", "DYS533", "DYS636", "DYS575", "DYS638",
    "DYS462", "DYS452", "DYS445", "Y-GATA-A10", "DYS463", "DYS441",
    "Y-GGAAT-1B07", "DYS525", "DYS712", "DYS593", "DYS650", "DYS532",
    "DYS715", "DYS504", "DYS513", "DYS561", "DYS552", "DYS726",
    "DYS635", "DYS587", "DYS643", "DYS497", "DYS510", "DYS434",
    "DYS461", "DYS435",
)

# Marker whose number of copies varies between persons
MULTI_COPY_GROUP = "DYS464"

# Extra DYS464 copies beyond the four canonical slots
FTDNA_OVERFLOW_NAMES: tuple[str, ...] = ("DYS464e", "DYS464f", "DYS464g", "DYS464h")

# name -> (role, group, base)
_FTDNA_ROLES: dict[str, tuple[MarkerRole, str, str]] = {
    "DYS385a": ("ordinary", "DYS385", ""),
    "DYS385b": ("ordinary", "DYS385", ""),
    "DYS389ii": ("compound", "", "DYS389i"),
    "DYS459a": ("ordinary", "DYS459", ""),
    "DYS459b": ("ordinary", "DYS459", ""),
    "YCAIIa": ("infinite", "YCAII", ""),
    "YCAIIb": ("infinite", "YCAII", ""),
    "CDYa": ("palindromic", "CDY", ""),
    "CDYb": ("palindromic", "CDY", ""),
    "DYF395S1a": ("palindromic", "DYF395S1", ""),
    "DYF395S1b": ("palindromic", "DYF395S1", ""),
    "DYS413a": ("palindromic", "DYS413", ""),
    "DYS413b": ("palindromic", "DYS413", ""),
}
for _name in ("DYS464a", "DYS464b", "DYS464c", "DYS464d"):
    _FTDNA_ROLES[_name] = ("palindromic", "DYS464", "")

_FTDNA_ALIASES: dict[str, tuple[str, ...]] = {
    "DYS19": ("DYS394",),
    "DYS389i": ("DYS389-1", "DYS389.1"),
    "DYS389ii": ("DYS389-2", "DYS389.2"),
    "Y-GATA-H4": ("YGATAH4", "GATA-H4", "GATAH4"),
    "Y-GATA-A10": ("YGATAA10", "GATA-A10", "GATAA10"),
    "Y-GGAAT-1B07": ("YGGAAT1B07", "GGAAT-1B07", "GGAAT1B07"),
}


def _build_ftdna_layout() -> MarkerLayout:
    markers = []
    for i, name in enumerate(FTDNA_MARKER_NAMES):
        role, group, base = _FTDNA_ROLES.get(name, ("ordinary", "", ""))
        markers.append(
            Marker(
                name=name,
                index=i,
                role=role,
                aliases=_FTDNA_ALIASES.get(name, ()),
                group=group,
                base=base,
                multi_copy=group == MULTI_COPY_GROUP,
            )
        )
    for name in FTDNA_OVERFLOW_NAMES:
        markers.append(
            Marker(
                name=name,
                index=len(markers),
                role="palindromic",
                group=MULTI_COPY_GROUP,
                overflow=True,
            )
        )
    return MarkerLayout(markers)


FTDNA_LAYOUT = _build_ftdna_layout()
