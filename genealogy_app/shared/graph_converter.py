"""
Convert parsed genealogy data into generic graph nodes and edges
"""

import itertools
import uuid
from dataclasses import dataclass, field

from .date_utils import format_date, to_calendar_date
from .logging_config import get_project_logger
from .models import (
    DIRECTION_FORWARD,
    DIRECTION_NONE,
    DateRange,
    EdgeVisual,
    GenealogyData,
    GenealogyDate,
    GenealogyFamily,
    GenealogyPerson,
    GenealogyPlace,
    GeoPoint,
    GraphEdge,
    GraphNode,
    ImportOptions,
    NodeEvent,
    NodeVisual,
    Property,
)


logger = get_project_logger(__name__)

GENEALOGY_TAG = 'Genealogy'
SEX_LABELS = {'M': 'Male', 'F': 'Female', 'U': 'Unknown'}

LABEL_MARRIAGE = 'married to'
LABEL_PARENT = 'parent of'
LABEL_SIBLING = 'sibling of'

EVENT_BIRTH = 'Birth'
EVENT_DEATH = 'Death'
EVENT_RESIDENCE = 'Residence'

# Property keys shared with the layout engine
PROP_FAMILY_ID = 'family_id'
PROP_RELATION = 'relation'
PROP_PARENT_ROLE = 'parent_role'
RELATION_MARRIAGE = 'marriage'
RELATION_PARENT = 'parent'
RELATION_SIBLING = 'sibling'

PERSON_CONFIDENCE = 80
MARRIAGE_CONFIDENCE = 80
FILIATION_CONFIDENCE = 90

# (fill, border) per sex
GENDER_COLORS = {
    'M': ('#93c5fd', '#3b82f6'),
    'F': ('#f9a8d4', '#ec4899'),
}
NEUTRAL_COLORS = ('#d4d4d4', '#737373')

MARRIAGE_VISUAL = ('#f59e0b', 'solid', 3)
PARENT_VISUAL = ('#10b981', 'solid', 2)
SIBLING_VISUAL = ('#3b82f6', 'dashed', 1)


@dataclass
class ConversionResult:
    """Nodes and edges produced from one GenealogyData"""
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    id_mapping: dict[str, str] = field(default_factory=dict)  # source person id -> node id
    warnings: list[str] = field(default_factory=list)


def new_id() -> str:
    return str(uuid.uuid4())


def get_node_visual(sex: str, color_by_gender: bool) -> NodeVisual:
    """Visual style for a person node, a pure function of sex and the option"""
    color, border_color = GENDER_COLORS.get(sex, NEUTRAL_COLORS) if color_by_gender else NEUTRAL_COLORS
    return NodeVisual(color=color, border_color=border_color)


def compute_marriage_end_date(family: GenealogyFamily, husband: GenealogyPerson | None,
                              wife: GenealogyPerson | None) -> GenealogyDate | None:
    """
    The divorce date when known, otherwise the earlier of the spouses' death
    dates, otherwise None.
    """
    if family.divorce_date is not None:
        return family.divorce_date

    deaths = []
    for spouse in (husband, wife):
        if spouse is not None and spouse.death_date is not None:
            calendar_date = to_calendar_date(spouse.death_date)
            if calendar_date is not None:
                deaths.append((calendar_date, spouse.death_date))

    if not deaths:
        return None
    return min(deaths, key=lambda item: item[0])[1]


def _place_properties(place: GenealogyPlace | None) -> list[Property]:
    return [Property('place', place.name)] if place else []


def _place_geo(place: GenealogyPlace | None) -> GeoPoint | None:
    if place is None or not place.has_coordinates:
        return None
    return GeoPoint(lat=place.latitude, lng=place.longitude)


def _date_range(start: GenealogyDate | None, end: GenealogyDate | None) -> DateRange | None:
    start_date = to_calendar_date(start)
    end_date = to_calendar_date(end)
    if start_date is None and end_date is None:
        return None
    return DateRange(start=start_date, end=end_date)


def build_person_events(person: GenealogyPerson) -> list[NodeEvent]:
    """Birth, death and residence events; point-in-time events share start and end"""
    events = []

    for label, gdate, place in ((EVENT_BIRTH, person.birth_date, person.birth_place),
                                (EVENT_DEATH, person.death_date, person.death_place)):
        calendar_date = to_calendar_date(gdate)
        if calendar_date is None:
            continue
        events.append(NodeEvent(
            id=new_id(),
            label=label,
            date=calendar_date,
            date_end=calendar_date,
            geo=_place_geo(place),
            properties=_place_properties(place),
        ))

    for residence in person.residences:
        if residence.start_date is None and residence.place is None:
            continue
        events.append(NodeEvent(
            id=new_id(),
            label=EVENT_RESIDENCE,
            date=to_calendar_date(residence.start_date),
            date_end=to_calendar_date(residence.end_date),
            geo=_place_geo(residence.place),
            properties=_place_properties(residence.place),
        ))

    return events


def convert_person(person: GenealogyPerson, options: ImportOptions, source: str) -> GraphNode:
    """Map one person onto a graph node"""
    properties = [
        Property('first_name', person.first_name),
        Property('last_name', person.last_name),
        Property('sex', SEX_LABELS.get(person.sex, SEX_LABELS['U']), 'choice'),
    ]
    if options.import_occupation and person.occupation:
        properties.append(Property('occupation', person.occupation))
    if person.nickname:
        properties.append(Property('nickname', person.nickname))
    if person.title:
        properties.append(Property('title', person.title))
    if person.birth_date is not None:
        properties.append(Property('birth_date', format_date(person.birth_date), 'date'))
    if person.death_date is not None:
        properties.append(Property('death_date', format_date(person.death_date), 'date'))
    properties.append(Property('source_id', person.id))

    tags = []
    if options.add_genealogy_tag:
        tags.append(GENEALOGY_TAG)
    if person.sex in ('M', 'F'):
        tags.append(SEX_LABELS[person.sex])

    return GraphNode(
        id=new_id(),
        label=person.full_name,
        visual=get_node_visual(person.sex, options.color_by_gender),
        tags=tags,
        properties=properties,
        events=build_person_events(person),
        notes=person.notes if options.import_notes and person.notes else "",
        source=source,
        confidence=PERSON_CONFIDENCE,
        date=to_calendar_date(person.birth_date),
        date_range=_date_range(person.birth_date, person.death_date),
    )


def _edge_tags(kind: str, options: ImportOptions) -> list[str]:
    return [kind, GENEALOGY_TAG] if options.add_genealogy_tag else [kind]


def convert_family(family: GenealogyFamily, id_mapping: dict[str, str], persons: dict[str, GenealogyPerson],
                   options: ImportOptions, source: str) -> list[GraphEdge]:
    """Marriage, parent and optional sibling edges for one family"""
    edges = []
    husband_node = id_mapping.get(family.husband_id) if family.husband_id else None
    wife_node = id_mapping.get(family.wife_id) if family.wife_id else None

    if husband_node and wife_node:
        properties = [Property(PROP_RELATION, RELATION_MARRIAGE)]
        if family.marriage_date is not None:
            properties.append(Property('marriage_date', format_date(family.marriage_date), 'date'))
        if family.marriage_place is not None:
            properties.append(Property('marriage_place', family.marriage_place.name))
        if family.divorce_date is not None:
            properties.append(Property('divorce_date', format_date(family.divorce_date), 'date'))
        properties.append(Property(PROP_FAMILY_ID, family.id))

        end_date = compute_marriage_end_date(family, persons.get(family.husband_id), persons.get(family.wife_id))
        color, style, thickness = MARRIAGE_VISUAL
        edges.append(GraphEdge(
            id=new_id(),
            from_id=husband_node,
            to_id=wife_node,
            label=LABEL_MARRIAGE,
            visual=EdgeVisual(color, style, thickness),
            direction=DIRECTION_NONE,
            directed=False,
            tags=_edge_tags('Marriage', options),
            properties=properties,
            notes=family.notes if options.import_notes and family.notes else "",
            source=source,
            confidence=MARRIAGE_CONFIDENCE,
            date=to_calendar_date(family.marriage_date),
            date_range=_date_range(family.marriage_date, end_date),
        ))

    child_nodes = [id_mapping[child_id] for child_id in family.child_ids if child_id in id_mapping]

    for role, parent_node in (('father', husband_node), ('mother', wife_node)):
        if not parent_node:
            continue
        color, style, thickness = PARENT_VISUAL
        for child_node in child_nodes:
            edges.append(GraphEdge(
                id=new_id(),
                from_id=parent_node,
                to_id=child_node,
                label=LABEL_PARENT,
                visual=EdgeVisual(color, style, thickness),
                direction=DIRECTION_FORWARD,
                directed=True,
                tags=_edge_tags('Parentage', options),
                properties=[
                    Property(PROP_RELATION, RELATION_PARENT),
                    Property(PROP_PARENT_ROLE, role),
                    Property(PROP_FAMILY_ID, family.id),
                ],
                source=source,
                confidence=FILIATION_CONFIDENCE,
            ))

    if options.create_sibling_links:
        color, style, thickness = SIBLING_VISUAL
        for first, second in itertools.combinations(child_nodes, 2):
            edges.append(GraphEdge(
                id=new_id(),
                from_id=first,
                to_id=second,
                label=LABEL_SIBLING,
                visual=EdgeVisual(color, style, thickness),
                direction=DIRECTION_NONE,
                directed=False,
                tags=_edge_tags('Siblings', options),
                properties=[
                    Property(PROP_RELATION, RELATION_SIBLING),
                    Property(PROP_FAMILY_ID, family.id),
                ],
                source=source,
                confidence=FILIATION_CONFIDENCE,
            ))

    return edges


def convert_to_graph(data: GenealogyData, options: ImportOptions | None = None) -> ConversionResult:
    """Map a parsed file onto graph nodes and edges; positions are left at the origin"""
    options = options or ImportOptions()
    result = ConversionResult(warnings=list(data.warnings))
    persons = {person.id: person for person in data.persons}

    for person in data.persons:
        node = convert_person(person, options, data.file_name)
        result.nodes.append(node)
        result.id_mapping[person.id] = node.id

    for family in data.families:
        result.edges.extend(convert_family(family, result.id_mapping, persons, options, data.file_name))

    logger.debug(f"Converted {len(result.nodes)} nodes and {len(result.edges)} edges from {data.file_name}")
    return result
