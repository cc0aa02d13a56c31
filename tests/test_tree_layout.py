"""
Tests for the generation based tree layout
"""

import pytest

from genealogy_app.shared.graph_converter import LABEL_MARRIAGE, LABEL_PARENT, convert_to_graph
from genealogy_app.shared.models import (
    BOTTOM_TO_TOP,
    GenealogyData,
    GenealogyFamily,
    GenealogyPerson,
    Position,
)
from genealogy_app.shared.tree_layout import (
    COMPACT_PROFILE,
    DEFAULT_PROFILE,
    TOP_MARGIN,
    ULTRA_COMPACT_PROFILE,
    VERY_COMPACT_PROFILE,
    apply_layout,
    build_family_units,
    calculate_bounding_box,
    compute_layout,
    offset_positions,
    select_profile,
)


def _graph(persons, families):
    data = GenealogyData(
        format='gedcom-5.5.1',
        file_name='t.ged',
        persons=[GenealogyPerson(id=person_id, first_name=person_id) for person_id in persons],
        families=families,
    )
    return convert_to_graph(data)


@pytest.fixture
def three_generations():
    """A+B have C and D; C+E have G and H"""
    return _graph(
        ['A', 'B', 'C', 'D', 'E', 'G', 'H'],
        [
            GenealogyFamily(id='F1', husband_id='A', wife_id='B', child_ids=['C', 'D']),
            GenealogyFamily(id='F2', husband_id='C', wife_id='E', child_ids=['G', 'H']),
        ],
    )


class TestProfiles:
    """Test spacing profile selection"""

    @pytest.mark.parametrize("count,profile", [
        (0, DEFAULT_PROFILE),
        (99, DEFAULT_PROFILE),
        (100, COMPACT_PROFILE),
        (499, COMPACT_PROFILE),
        (500, VERY_COMPACT_PROFILE),
        (1500, ULTRA_COMPACT_PROFILE),
        (10000, ULTRA_COMPACT_PROFILE),
    ])
    def test_select_profile(self, count, profile):
        assert select_profile(count) is profile


class TestFamilyUnits:
    """Test rebuilding families from edges"""

    def test_units_from_edges(self, three_generations):
        units = build_family_units(three_generations.edges)
        mapping = three_generations.id_mapping

        assert set(units) == {'F1', 'F2'}
        assert units['F1'].husband == mapping['A']
        assert units['F1'].wife == mapping['B']
        assert units['F1'].children == [mapping['C'], mapping['D']]

    def test_single_parent_unit(self):
        """Test a mother-only family forms a unit from parent edges"""
        result = _graph(['M', 'K'], [GenealogyFamily(id='F1', wife_id='M', child_ids=['K'])])
        units = build_family_units(result.edges)

        assert units['F1'].husband is None
        assert units['F1'].wife == result.id_mapping['M']
        assert units['F1'].parents == [result.id_mapping['M']]


class TestComputeLayout:
    """Test generations, widths and positions"""

    def test_generation_invariants(self, three_generations):
        """Test children below parents and spouses on one row"""
        layout = compute_layout(three_generations.nodes, three_generations.edges)
        generations = layout.generations

        for edge in three_generations.edges:
            if edge.label == LABEL_PARENT:
                assert generations[edge.to_id] > generations[edge.from_id]
            elif edge.label == LABEL_MARRIAGE:
                assert generations[edge.from_id] == generations[edge.to_id]

        mapping = three_generations.id_mapping
        assert generations[mapping['E']] == generations[mapping['C']] == 1

    def test_subtree_width(self, three_generations):
        """Test the root width is the child family plus the leaf plus a gap"""
        layout = compute_layout(three_generations.nodes, three_generations.edges)
        profile = layout.profile

        child_family = layout.subtrees['F2'].width
        assert child_family == profile.node_width * 2 + profile.couple_gap
        assert layout.subtrees['F1'].width == child_family + profile.node_width + profile.sibling_gap
        assert layout.subtrees['F1'].width == 560
        assert layout.root_families == ['F1']

    def test_no_overlap_within_rows(self, three_generations):
        """Test nodes on the same row never overlap"""
        layout = compute_layout(three_generations.nodes, three_generations.edges)
        rows = {}
        for position in layout.positions.values():
            rows.setdefault(position.y, []).append(position.x)

        for xs in rows.values():
            xs.sort()
            for left, right in zip(xs, xs[1:]):
                assert right - left >= layout.profile.node_width

    def test_positions(self, three_generations):
        """Test couple placement, centering and top margin"""
        layout = compute_layout(three_generations.nodes, three_generations.edges)
        positions = layout.positions
        mapping = three_generations.id_mapping

        assert positions[mapping['A']] == Position(x=-190, y=TOP_MARGIN)
        assert positions[mapping['B']] == Position(x=30, y=TOP_MARGIN)
        assert positions[mapping['D']].x == 120
        assert positions[mapping['G']].y == TOP_MARGIN + 2 * layout.profile.level_height
        xs = [position.x for position in positions.values()]
        assert min(xs) + max(xs) + layout.profile.node_width == 0

    def test_deterministic(self, three_generations):
        """Test two runs give identical positions"""
        first = compute_layout(three_generations.nodes, three_generations.edges)
        second = compute_layout(three_generations.nodes, three_generations.edges)
        assert first.positions == second.positions

    def test_bottom_to_top(self, three_generations):
        """Test older generations drawn lower"""
        layout = compute_layout(three_generations.nodes, three_generations.edges, BOTTOM_TO_TOP)
        mapping = three_generations.id_mapping

        assert layout.positions[mapping['G']].y == TOP_MARGIN
        assert layout.positions[mapping['A']].y > layout.positions[mapping['C']].y

    def test_direction_alias(self, three_generations):
        """Test the BT shorthand"""
        long_name = compute_layout(three_generations.nodes, three_generations.edges, BOTTOM_TO_TOP)
        alias = compute_layout(three_generations.nodes, three_generations.edges, 'BT')
        assert long_name.positions == alias.positions

    def test_orphans(self):
        """Test persons without families are laid out in a row"""
        result = _graph(['X', 'Y', 'Z'], [])
        layout = compute_layout(result.nodes, result.edges)

        xs = sorted(position.x for position in layout.positions.values())
        assert xs == [-260, -80, 100]
        assert all(position.y == TOP_MARGIN for position in layout.positions.values())

    def test_cycle_does_not_raise(self):
        """Test inconsistent parent data still yields positions for everyone"""
        result = _graph(['A', 'B'], [
            GenealogyFamily(id='F1', husband_id='A', child_ids=['B']),
            GenealogyFamily(id='F2', husband_id='B', child_ids=['A']),
        ])
        layout = compute_layout(result.nodes, result.edges)
        assert set(layout.positions) == {node.id for node in result.nodes}

    def test_child_takes_deepest_parent_generation(self):
        """Test a child of parents on rows 0 and 1 lands on row 2"""
        result = _graph(['A', 'M', 'P', 'K'], [
            GenealogyFamily(id='F1', husband_id='A', child_ids=['M']),
            GenealogyFamily(id='F2', husband_id='P', child_ids=['K']),
            GenealogyFamily(id='F3', wife_id='M', child_ids=['K']),
        ])
        layout = compute_layout(result.nodes, result.edges)
        generations = layout.generations
        mapping = result.id_mapping

        assert generations[mapping['K']] == 2
        assert generations[mapping['P']] == 0
        assert generations[mapping['M']] == 1
        assert generations[mapping['A']] == 0

    def test_remarried_parent_subtrees_do_not_overlap(self):
        """Test sibling subtrees of a parent with two families keep apart"""
        result = _graph(['A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'I'], [
            GenealogyFamily(id='F1', husband_id='A', wife_id='B', child_ids=['C', 'D']),
            GenealogyFamily(id='F2', husband_id='C', wife_id='E', child_ids=['G', 'H']),
            GenealogyFamily(id='F3', husband_id='C', wife_id='F', child_ids=['I']),
        ])
        layout = compute_layout(result.nodes, result.edges)
        profile = layout.profile

        footprints = []
        for family_id in ('F2', 'F3'):
            half = layout.subtrees[family_id].width / 2
            anchor = layout.family_anchors[family_id]
            footprints.append((anchor - half, anchor + half))
        leaf_x = layout.positions[result.id_mapping['D']].x
        footprints.append((leaf_x, leaf_x + profile.node_width))

        footprints.sort()
        for (_, left_end), (right_start, _) in zip(footprints, footprints[1:]):
            assert right_start - left_end >= profile.sibling_gap

        rows = {}
        for position in layout.positions.values():
            rows.setdefault(position.y, []).append(position.x)
        for xs in rows.values():
            xs.sort()
            for left, right in zip(xs, xs[1:]):
                assert right - left >= profile.node_width

    def test_deep_single_parent_chain(self):
        """Test a long pedigree lays out without exhausting the call stack"""
        count = 600
        person_ids = [f"P{index}" for index in range(count)]
        families = [
            GenealogyFamily(id=f"F{index}", husband_id=person_ids[index], child_ids=[person_ids[index + 1]])
            for index in range(count - 1)
        ]
        result = _graph(person_ids, families)
        layout = compute_layout(result.nodes, result.edges)
        mapping = result.id_mapping

        assert layout.profile is VERY_COMPACT_PROFILE
        assert layout.root_families == ['F0']
        assert layout.generations[mapping['P0']] == 0
        assert layout.generations[mapping['P599']] == 599
        assert len({position.x for position in layout.positions.values()}) == 1

    def test_empty_graph(self):
        layout = compute_layout([], [])
        assert layout.positions == {}

    def test_apply_layout(self, three_generations):
        """Test positions are written onto the nodes"""
        layout = apply_layout(three_generations.nodes, three_generations.edges)
        for node in three_generations.nodes:
            assert node.position == layout.positions[node.id]
            assert node.position is not layout.positions[node.id]


class TestBoundingBox:
    """Test bounding box and offsets"""

    def test_bounding_box(self, three_generations):
        apply_layout(three_generations.nodes, three_generations.edges)
        box = calculate_bounding_box(three_generations.nodes)

        assert box.min_x == -280
        assert box.width == 560
        assert box.min_y == TOP_MARGIN
        assert box.height == 2 * DEFAULT_PROFILE.level_height + DEFAULT_PROFILE.node_height

    def test_empty_bounding_box(self):
        box = calculate_bounding_box([])
        assert (box.width, box.height) == (0, 0)

    def test_offset_positions(self, three_generations):
        apply_layout(three_generations.nodes, three_generations.edges)
        box = calculate_bounding_box(three_generations.nodes)
        offset_positions(three_generations.nodes, -box.min_x, -box.min_y)

        moved = calculate_bounding_box(three_generations.nodes)
        assert (moved.min_x, moved.min_y) == (0, 0)
        assert moved.width == box.width
