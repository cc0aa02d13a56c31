"""
Tests for genealogy data models
"""

import datetime

import pytest

from genealogy_app.shared.models import (
    BOTTOM_TO_TOP,
    TOP_TO_BOTTOM,
    EdgeVisual,
    GenealogyData,
    GenealogyDate,
    GenealogyFamily,
    GenealogyPerson,
    GenealogyPlace,
    GraphEdge,
    GraphNode,
    ImportOptions,
    NodeVisual,
    Property,
)


def test_person_full_name():
    """Test full name construction"""
    assert GenealogyPerson(id="@I1@", first_name="Jean", last_name="Dupont").full_name == "Jean Dupont"
    assert GenealogyPerson(id="@I2@", last_name="Dupont").full_name == "Dupont"

def test_person_defaults():
    """Test a person with only an identifier"""
    person = GenealogyPerson(id="@I1@")
    assert person.sex == "U"
    assert person.residences == []
    assert person.families_as_spouse == []

def test_place_is_never_half_geocoded():
    """Test that a single coordinate is discarded"""
    place = GenealogyPlace("Lyon", latitude=45.7)
    assert place.latitude is None
    assert not place.has_coordinates

    geocoded = GenealogyPlace("Lyon", 45.7, 4.8)
    assert geocoded.has_coordinates

def test_date_is_empty():
    assert GenealogyDate(raw="sometime").is_empty
    assert not GenealogyDate(raw="1900", year=1900).is_empty

def test_family_parent_ids():
    family = GenealogyFamily(id="@F1@", wife_id="@I2@")
    assert family.parent_ids == ["@I2@"]

def test_get_person():
    data = GenealogyData(format="geneweb", file_name="t.gw", persons=[GenealogyPerson(id="@I1@")])
    assert data.get_person("@I1@") is data.persons[0]
    assert data.get_person("@I9@") is None


class TestImportOptions:
    """Test import option parsing"""

    def test_defaults(self):
        options = ImportOptions()
        assert options.add_genealogy_tag
        assert options.import_occupation
        assert options.import_notes
        assert options.color_by_gender
        assert not options.create_sibling_links
        assert options.auto_layout
        assert options.layout_direction == TOP_TO_BOTTOM

    def test_from_dict(self):
        """Test string booleans and direction aliases"""
        options = ImportOptions.from_dict({
            'create_sibling_links': 'true',
            'import_notes': 'off',
            'auto_layout': False,
            'layout_direction': 'BT',
            'unknown_key': 'ignored',
        })
        assert options.create_sibling_links
        assert not options.import_notes
        assert not options.auto_layout
        assert options.layout_direction == BOTTOM_TO_TOP

    def test_invalid_boolean(self):
        with pytest.raises(ValueError, match="create_sibling_links"):
            ImportOptions.from_dict({'create_sibling_links': 'maybe'})

    def test_invalid_direction(self):
        with pytest.raises(ValueError, match="layout direction"):
            ImportOptions(layout_direction='left-to-right')

    def test_to_dict(self):
        assert ImportOptions().to_dict()['layout_direction'] == TOP_TO_BOTTOM


class TestGraphRecords:
    """Test node and edge records"""

    def test_node_to_dict(self):
        """Test dates are rendered as ISO strings"""
        node = GraphNode(
            id='n1',
            label='Jean Dupont',
            visual=NodeVisual(color='#fff', border_color='#000'),
            properties=[Property('first_name', 'Jean')],
            date=datetime.date(1920, 3, 12),
        )
        payload = node.to_dict()

        assert payload['date'] == '1920-03-12'
        assert payload['position'] == {'x': 0.0, 'y': 0.0}
        assert payload['properties'] == [{'key': 'first_name', 'value': 'Jean', 'type': 'text'}]
        assert node.get_property('first_name') == 'Jean'
        assert node.get_property('missing') is None

    def test_edge_defaults(self):
        edge = GraphEdge(id='e1', from_id='a', to_id='b', label='parent of', visual=EdgeVisual('#000'))
        assert not edge.directed
        assert edge.to_dict()['visual'] == {'color': '#000', 'style': 'solid', 'thickness': 2}
