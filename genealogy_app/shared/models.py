"""
Shared data models for genealogy import and graph conversion
"""

from dataclasses import asdict, dataclass, field
import datetime


# Date modifiers
EXACT = 'exact'
ABOUT = 'about'
BEFORE = 'before'
AFTER = 'after'
BETWEEN = 'between'
DATE_MODIFIERS = (EXACT, ABOUT, BEFORE, AFTER, BETWEEN)

# Source formats
FORMAT_GEDCOM_551 = 'gedcom-5.5.1'
FORMAT_GEDCOM_70 = 'gedcom-7.0'
FORMAT_GENEWEB = 'geneweb'

# Layout directions
TOP_TO_BOTTOM = 'top-to-bottom'
BOTTOM_TO_TOP = 'bottom-to-top'

# Edge directions
DIRECTION_NONE = 'none'
DIRECTION_FORWARD = 'forward'
DIRECTION_BACKWARD = 'backward'
DIRECTION_BOTH = 'both'


def _json_dict_factory(items: list[tuple]) -> dict:
    """dict_factory for asdict() that renders dates as ISO strings"""
    return {key: value.isoformat() if isinstance(value, datetime.date) else value for key, value in items}


@dataclass
class GenealogyDate:
    """A partially known calendar date as written in the source file"""
    raw: str
    day: int | None = None
    month: int | None = None
    year: int | None = None
    modifier: str = EXACT
    end_year: int | None = None  # only meaningful for 'between'

    @property
    def is_empty(self) -> bool:
        """True when no numeric component could be recovered"""
        return self.day is None and self.month is None and self.year is None


@dataclass
class GenealogyPlace:
    """A place name, optionally geocoded"""
    name: str
    latitude: float | None = None
    longitude: float | None = None

    def __post_init__(self):
        # A place is never half-geocoded
        if self.latitude is None or self.longitude is None:
            self.latitude = None
            self.longitude = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None


@dataclass
class GenealogyResidence:
    """A residence interval"""
    start_date: GenealogyDate | None = None
    end_date: GenealogyDate | None = None
    place: GenealogyPlace | None = None


@dataclass
class GenealogyPerson:
    """One individual extracted from a source file"""
    id: str
    first_name: str = ""
    last_name: str = ""
    sex: str = "U"  # M, F or U (unknown)

    # Life events
    birth_date: GenealogyDate | None = None
    birth_place: GenealogyPlace | None = None
    death_date: GenealogyDate | None = None
    death_place: GenealogyPlace | None = None

    # Additional info
    occupation: str | None = None
    nickname: str | None = None
    title: str | None = None
    notes: str | None = None
    residences: list[GenealogyResidence] = field(default_factory=list)

    # Family references
    family_as_child: str | None = None
    families_as_spouse: list[str] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        """Get "First Last" display name"""
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class GenealogyFamily:
    """Represents a family unit (up to two parents + children)"""
    id: str
    husband_id: str | None = None
    wife_id: str | None = None
    child_ids: list[str] = field(default_factory=list)
    marriage_date: GenealogyDate | None = None
    marriage_place: GenealogyPlace | None = None
    divorce_date: GenealogyDate | None = None
    notes: str | None = None

    @property
    def parent_ids(self) -> list[str]:
        return [parent_id for parent_id in (self.husband_id, self.wife_id) if parent_id]


@dataclass
class GenealogyMetadata:
    """File level header information"""
    source: str | None = None
    version: str | None = None
    language: str | None = None
    encoding: str | None = None


@dataclass
class GenealogyData:
    """Result of parsing one genealogy file"""
    format: str
    file_name: str
    persons: list[GenealogyPerson] = field(default_factory=list)
    families: list[GenealogyFamily] = field(default_factory=list)
    metadata: GenealogyMetadata = field(default_factory=GenealogyMetadata)
    warnings: list[str] = field(default_factory=list)

    def get_person(self, person_id: str) -> GenealogyPerson | None:
        """Look up a person by document-local identifier"""
        for person in self.persons:
            if person.id == person_id:
                return person
        return None


_TRUE_STRINGS = {'true', '1', 'yes', 'on'}
_FALSE_STRINGS = {'false', '0', 'no', 'off', ''}
_DIRECTION_ALIASES = {
    'tb': TOP_TO_BOTTOM,
    TOP_TO_BOTTOM: TOP_TO_BOTTOM,
    'bt': BOTTOM_TO_TOP,
    BOTTOM_TO_TOP: BOTTOM_TO_TOP,
}


def _as_bool(name: str, value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Option {name} expects a boolean, got {value!r}")


@dataclass
class ImportOptions:
    """Recognized import configuration"""
    add_genealogy_tag: bool = True
    import_occupation: bool = True
    import_notes: bool = True
    color_by_gender: bool = True
    create_sibling_links: bool = False
    auto_layout: bool = True
    layout_direction: str = TOP_TO_BOTTOM

    def __post_init__(self):
        self.layout_direction = self.normalize_direction(self.layout_direction)

    @staticmethod
    def normalize_direction(direction: str) -> str:
        """Accept the long names and the TB/BT aliases"""
        normalized = _DIRECTION_ALIASES.get(str(direction).strip().lower())
        if normalized is None:
            raise ValueError(f"Unknown layout direction: {direction!r}")
        return normalized

    @classmethod
    def from_dict(cls, data) -> 'ImportOptions':
        """Build options from a mapping such as form fields; unknown keys are ignored"""
        kwargs = {}
        for name in ('add_genealogy_tag', 'import_occupation', 'import_notes',
                     'color_by_gender', 'create_sibling_links', 'auto_layout'):
            if name in data:
                kwargs[name] = _as_bool(name, data[name])
        if 'layout_direction' in data:
            kwargs['layout_direction'] = data['layout_direction']
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# Graph output records
# =============================================================================

@dataclass
class Property:
    """Typed key/value property on a node or edge"""
    key: str
    value: str
    type: str = 'text'  # text, choice or date


@dataclass
class GeoPoint:
    lat: float
    lng: float


@dataclass
class DateRange:
    start: datetime.date | None = None
    end: datetime.date | None = None


@dataclass
class NodeEvent:
    """A point-in-time or ranged life event on a node timeline"""
    id: str
    label: str
    date: datetime.date | None
    date_end: datetime.date | None = None
    geo: GeoPoint | None = None
    properties: list[Property] = field(default_factory=list)


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class NodeVisual:
    color: str
    border_color: str
    border_width: int = 2
    border_style: str = 'solid'
    shape: str = 'rectangle'
    size: str = 'medium'
    icon: str = 'user'
    image: str | None = None


@dataclass
class EdgeVisual:
    color: str
    style: str = 'solid'
    thickness: int = 2


@dataclass
class GraphNode:
    """Partial node record handed to the graph store"""
    id: str
    label: str
    visual: NodeVisual
    tags: list[str] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    events: list[NodeEvent] = field(default_factory=list)
    position: Position = field(default_factory=Position)
    notes: str = ""
    source: str = ""
    confidence: int = 80
    date: datetime.date | None = None
    date_range: DateRange | None = None

    def get_property(self, key: str) -> str | None:
        for prop in self.properties:
            if prop.key == key:
                return prop.value
        return None

    def to_dict(self) -> dict:
        return asdict(self, dict_factory=_json_dict_factory)


@dataclass
class GraphEdge:
    """Partial edge record handed to the graph store"""
    id: str
    from_id: str
    to_id: str
    label: str
    visual: EdgeVisual
    direction: str = DIRECTION_NONE
    directed: bool = False
    tags: list[str] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    notes: str = ""
    source: str = ""
    confidence: int = 80
    date: datetime.date | None = None
    date_range: DateRange | None = None

    def get_property(self, key: str) -> str | None:
        for prop in self.properties:
            if prop.key == key:
                return prop.value
        return None

    def to_dict(self) -> dict:
        return asdict(self, dict_factory=_json_dict_factory)


@dataclass
class ImportResult:
    """Summary returned with the converted graph"""
    node_count: int
    edge_count: int
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class ImportPreview:
    """Lightweight statistics shown before committing an import"""
    format: str
    person_count: int
    family_count: int
    has_coordinates: bool
    earliest_year: int | None = None
    latest_year: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)
