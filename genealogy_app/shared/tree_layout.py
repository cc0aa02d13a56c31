"""
Generation based family tree layout for converted genealogy graphs
"""

from collections import deque
from dataclasses import dataclass, field

import networkx as nx

from .graph_converter import (
    LABEL_MARRIAGE,
    LABEL_PARENT,
    PROP_FAMILY_ID,
    PROP_PARENT_ROLE,
    PROP_RELATION,
    RELATION_MARRIAGE,
    RELATION_PARENT,
)
from .logging_config import get_project_logger
from .models import BOTTOM_TO_TOP, TOP_TO_BOTTOM, GraphEdge, GraphNode, ImportOptions, Position


logger = get_project_logger(__name__)

# Distance between y = 0 and the topmost row after centering
TOP_MARGIN = 100


class LayoutCycleError(Exception):
    """Family recursion went deeper than the number of families"""


@dataclass(frozen=True)
class LayoutProfile:
    """Spacing used by every layout computation"""
    name: str
    node_width: int
    node_height: int
    level_height: int
    sibling_gap: int
    couple_gap: int
    branch_gap: int


DEFAULT_PROFILE = LayoutProfile('default', 160, 60, 120, 20, 60, 40)
COMPACT_PROFILE = LayoutProfile('compact', 130, 50, 100, 8, 50, 20)
VERY_COMPACT_PROFILE = LayoutProfile('very-compact', 100, 40, 80, 4, 40, 12)
ULTRA_COMPACT_PROFILE = LayoutProfile('ultra-compact', 80, 35, 65, 2, 30, 8)

# (minimum node count, profile), largest first
PROFILE_THRESHOLDS = [
    (1500, ULTRA_COMPACT_PROFILE),
    (500, VERY_COMPACT_PROFILE),
    (100, COMPACT_PROFILE),
]


def select_profile(node_count: int) -> LayoutProfile:
    """Pick the spacing profile for a graph of the given size"""
    for threshold, profile in PROFILE_THRESHOLDS:
        if node_count >= threshold:
            return profile
    return DEFAULT_PROFILE


@dataclass
class FamilyUnit:
    """Up to two parents and their children, rebuilt from converted edges"""
    id: str
    husband: str | None = None
    wife: str | None = None
    children: list[str] = field(default_factory=list)

    @property
    def parents(self) -> list[str]:
        return [parent for parent in (self.husband, self.wife) if parent]


@dataclass
class SubtreeInfo:
    width: float
    anchor_offset: float  # x of the couple's center within the subtree


@dataclass
class TreeLayout:
    """Everything computed by one layout run"""
    profile: LayoutProfile
    positions: dict[str, Position]
    generations: dict[str, int]
    family_units: dict[str, FamilyUnit]
    subtrees: dict[str, SubtreeInfo]
    root_families: list[str]
    family_anchors: dict[str, float] = field(default_factory=dict)  # x of each couple center


@dataclass
class BoundingBox:
    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def _edge_relation(edge: GraphEdge) -> str | None:
    relation = edge.get_property(PROP_RELATION)
    if relation:
        return relation
    if edge.label == LABEL_MARRIAGE:
        return RELATION_MARRIAGE
    if edge.label == LABEL_PARENT:
        return RELATION_PARENT
    return None


def build_family_units(edges: list[GraphEdge]) -> dict[str, FamilyUnit]:
    """
    Rebuild family units from marriage and parent edges, grouped by the
    family identifier they carry. Parent edges alone are enough to form a
    single-parent unit.
    """
    units: dict[str, FamilyUnit] = {}

    for edge in edges:
        if _edge_relation(edge) != RELATION_MARRIAGE:
            continue
        family_id = edge.get_property(PROP_FAMILY_ID) or f"marriage:{edge.id}"
        unit = units.setdefault(family_id, FamilyUnit(id=family_id))
        unit.husband = edge.from_id
        unit.wife = edge.to_id

    for edge in edges:
        if _edge_relation(edge) != RELATION_PARENT:
            continue
        family_id = edge.get_property(PROP_FAMILY_ID)
        if not family_id:
            continue
        unit = units.setdefault(family_id, FamilyUnit(id=family_id))

        if edge.from_id not in unit.parents:
            if edge.get_property(PROP_PARENT_ROLE) == 'mother' and unit.wife is None:
                unit.wife = edge.from_id
            elif unit.husband is None:
                unit.husband = edge.from_id
            elif unit.wife is None:
                unit.wife = edge.from_id

        if edge.to_id not in unit.children:
            unit.children.append(edge.to_id)

    return units


def build_parent_graph(node_ids: list[str], units: dict[str, FamilyUnit]) -> nx.DiGraph:
    """Directed parent -> child graph over every node"""
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    for unit in units.values():
        for parent in unit.parents:
            for child in unit.children:
                graph.add_edge(parent, child)
    return graph


def assign_generations(node_ids: list[str], units: dict[str, FamilyUnit]) -> dict[str, int]:
    """
    Generation 0 for every node without parents, then breadth-first: a child
    ends at the deepest generation reached by any of its parents plus one.
    Spouses are then pulled to the same (higher) row and descendants pushed
    down again until nothing changes.
    """
    graph = build_parent_graph(node_ids, units)
    if not nx.is_directed_acyclic_graph(graph):
        logger.warning("Parent relations contain a cycle, generations are approximate")

    # No acyclic path is longer than the node count
    ceiling = max(len(node_ids) - 1, 0)

    generations: dict[str, int] = {}
    roots = [node for node in graph.nodes if graph.in_degree(node) == 0]
    for root in roots:
        generations[root] = 0

    queue = deque(roots)
    while queue:
        current = queue.popleft()
        child_generation = generations[current] + 1
        if child_generation > ceiling:
            continue
        for child in graph.successors(current):
            if child not in generations or child_generation > generations[child]:
                generations[child] = child_generation
                queue.append(child)

    for node in graph.nodes:
        generations.setdefault(node, 0)

    couples = [unit for unit in units.values() if unit.husband and unit.wife]
    for _ in range(len(node_ids) + 1):
        changed = False
        for unit in couples:
            row = max(generations[unit.husband], generations[unit.wife])
            if generations[unit.husband] != row or generations[unit.wife] != row:
                generations[unit.husband] = generations[unit.wife] = row
                changed = True
        for parent, child in graph.edges:
            if generations[child] <= generations[parent] and generations[parent] < ceiling:
                generations[child] = generations[parent] + 1
                changed = True
        if not changed:
            break

    return generations


def find_root_families(units: dict[str, FamilyUnit], graph: nx.DiGraph) -> list[str]:
    """Families whose parents have no parents; every family when there is none"""
    roots = [family_id for family_id, unit in units.items()
             if not any(graph.in_degree(parent) for parent in unit.parents)]
    if not roots and units:
        logger.warning("No root family found, treating every family as a root")
        return list(units)
    return roots


class _LayoutForest:
    """
    Decides which family places which descendants: each family is laid out
    once, under the first family that reaches it.

    Walks use explicit stacks so deep pedigrees stay within the
    interpreter recursion limit.
    """

    def __init__(self, units: dict[str, FamilyUnit], profile: LayoutProfile):
        self.units = units
        self.profile = profile
        self.parent_to_families: dict[str, list[str]] = {}
        for family_id, unit in units.items():
            for parent in unit.parents:
                self.parent_to_families.setdefault(parent, []).append(family_id)

        self.items: dict[str, list[tuple[str, str]]] = {}
        self.subtrees: dict[str, SubtreeInfo] = {}
        self.roots: list[str] = []
        self._claimed_families: set[str] = set()
        self._claimed_leaves: set[str] = set()

    def build(self, root_families: list[str], nested: bool = True):
        # Families never reached from a root become extra roots
        for family_id in list(root_families) + list(self.units):
            if family_id in self._claimed_families:
                continue
            self._claimed_families.add(family_id)
            self.roots.append(family_id)
            self._expand(family_id, nested)

    def _entries(self, family_id: str, nested: bool):
        """Candidate items of a family; claims are checked as they are consumed"""
        for child in self.units[family_id].children:
            child_families = self.parent_to_families.get(child, []) if nested else []
            if child_families:
                # A child married into a family placed elsewhere is drawn there
                for child_family in child_families:
                    yield 'family', child_family
            else:
                yield 'leaf', child

    def _expand(self, root_id: str, nested: bool):
        stack = [(root_id, self._entries(root_id, nested), [])]
        self.items[root_id] = stack[0][2]

        while stack:
            family_id, entries, items = stack[-1]
            entry = next(entries, None)
            if entry is None:
                stack.pop()
                continue

            kind, key = entry
            if kind == 'family':
                if key in self._claimed_families:
                    continue
                if len(stack) >= len(self.units):
                    raise LayoutCycleError(f"Family {key} nested deeper than {len(self.units)} levels")
                self._claimed_families.add(key)
                items.append(('family', key))
                child_items = []
                self.items[key] = child_items
                stack.append((key, self._entries(key, nested), child_items))
            elif key not in self._claimed_leaves:
                self._claimed_leaves.add(key)
                items.append(('leaf', key))

    def subtree(self, family_id: str) -> SubtreeInfo:
        """Width of a family's subtree, memoized per family and computed children first"""
        stack = [family_id]
        while stack:
            current = stack[-1]
            if current in self.subtrees:
                stack.pop()
                continue

            pending = [key for kind, key in self.items.get(current, [])
                       if kind == 'family' and key not in self.subtrees]
            if pending:
                stack.extend(pending)
                continue

            self.subtrees[current] = self._measure(current)
            stack.pop()

        return self.subtrees[family_id]

    def _measure(self, family_id: str) -> SubtreeInfo:
        profile = self.profile
        parent_count = len(self.units[family_id].parents)
        couple_width = profile.node_width * 2 + profile.couple_gap if parent_count == 2 else profile.node_width

        items = self.items.get(family_id, [])
        children_width = sum(self.item_width(item) for item in items)
        if items:
            children_width += (len(items) - 1) * profile.sibling_gap

        width = max(couple_width, children_width)
        return SubtreeInfo(width=width, anchor_offset=width / 2)

    def item_width(self, item: tuple[str, str]) -> float:
        kind, key = item
        return self.subtree(key).width if kind == 'family' else self.profile.node_width


def _flat_forest(units: dict[str, FamilyUnit], profile: LayoutProfile) -> _LayoutForest:
    forest = _LayoutForest(units, profile)
    forest.build(list(units), nested=False)
    return forest


def compute_layout(nodes: list[GraphNode], edges: list[GraphEdge],
                   direction: str = TOP_TO_BOTTOM) -> TreeLayout:
    """
    Compute a position for every node. Deterministic for a given input and
    never raises on inconsistent family data.
    """
    direction = ImportOptions.normalize_direction(direction)
    profile = select_profile(len(nodes))
    logger.debug(f"Layout of {len(nodes)} nodes with {profile.name} profile")

    node_ids = [node.id for node in nodes]
    known = set(node_ids)
    units = build_family_units([edge for edge in edges if edge.from_id in known and edge.to_id in known])

    generations = assign_generations(node_ids, units)
    max_generation = max(generations.values(), default=0)
    graph = build_parent_graph(node_ids, units)
    root_families = find_root_families(units, graph)

    try:
        forest = _LayoutForest(units, profile)
        forest.build(root_families)
    except LayoutCycleError as e:
        logger.warning(f"{e}, laying out every family as a root")
        forest = _flat_forest(units, profile)

    def row_y(generation: int) -> float:
        if direction == BOTTOM_TO_TOP:
            return (max_generation - generation) * profile.level_height
        return generation * profile.level_height

    positions: dict[str, Position] = {}
    anchors: dict[str, float] = {}

    def place(node_id: str, x: float):
        positions[node_id] = Position(x=x, y=row_y(generations.get(node_id, 0)))

    def position_family(root_id: str, root_center: float):
        # Pre-order over an explicit stack, child families in left to right order
        stack = [(root_id, root_center)]
        while stack:
            family_id, center_x = stack.pop()
            anchors[family_id] = center_x
            unit = units[family_id]
            if unit.husband and unit.wife:
                place(unit.husband, center_x - profile.node_width - profile.couple_gap / 2)
                place(unit.wife, center_x + profile.couple_gap / 2)
            else:
                for parent in unit.parents:
                    place(parent, center_x - profile.node_width / 2)

            items = forest.items.get(family_id, [])
            children_width = sum(forest.item_width(item) for item in items)
            children_width += max(len(items) - 1, 0) * profile.sibling_gap

            child_x = center_x - children_width / 2
            child_families = []
            for kind, key in items:
                if kind == 'family':
                    info = forest.subtree(key)
                    child_families.append((key, child_x + info.anchor_offset))
                    child_x += info.width + profile.sibling_gap
                else:
                    place(key, child_x)
                    child_x += profile.node_width + profile.sibling_gap
            stack.extend(reversed(child_families))

    current_x = 0.0
    for family_id in forest.roots:
        info = forest.subtree(family_id)
        position_family(family_id, current_x + info.anchor_offset)
        current_x += info.width + profile.branch_gap

    # Orphans, and anyone the family walk could not reach
    for node_id in node_ids:
        if node_id not in positions:
            place(node_id, current_x)
            current_x += profile.node_width + profile.sibling_gap

    offset_x = _center(positions, profile)

    return TreeLayout(
        profile=profile,
        positions=positions,
        generations=generations,
        family_units=units,
        subtrees=dict(forest.subtrees),
        root_families=list(forest.roots),
        family_anchors={family_id: x + offset_x for family_id, x in anchors.items()},
    )


def _center(positions: dict[str, Position], profile: LayoutProfile) -> float:
    """
    Center horizontally on x = 0 and put the top row TOP_MARGIN below y = 0.
    Returns the horizontal offset applied.
    """
    if not positions:
        return 0.0
    min_x = min(position.x for position in positions.values())
    max_x = max(position.x + profile.node_width for position in positions.values())
    min_y = min(position.y for position in positions.values())

    offset_x = -(min_x + max_x) / 2
    offset_y = TOP_MARGIN - min_y
    for position in positions.values():
        position.x += offset_x
        position.y += offset_y
    return offset_x


def apply_layout(nodes: list[GraphNode], edges: list[GraphEdge],
                 direction: str = TOP_TO_BOTTOM) -> TreeLayout:
    """Compute the layout and write positions onto the nodes"""
    layout = compute_layout(nodes, edges, direction)
    for node in nodes:
        position = layout.positions[node.id]
        node.position = Position(x=position.x, y=position.y)
    return layout


def calculate_bounding_box(nodes: list[GraphNode], node_width: float = DEFAULT_PROFILE.node_width,
                           node_height: float = DEFAULT_PROFILE.node_height) -> BoundingBox:
    """Extent of the nodes including their size; all zero for an empty list"""
    if not nodes:
        return BoundingBox()
    return BoundingBox(
        min_x=min(node.position.x for node in nodes),
        min_y=min(node.position.y for node in nodes),
        max_x=max(node.position.x + node_width for node in nodes),
        max_y=max(node.position.y + node_height for node in nodes),
    )


def offset_positions(nodes: list[GraphNode], offset_x: float, offset_y: float):
    for node in nodes:
        node.position = Position(x=node.position.x + offset_x, y=node.position.y + offset_y)
