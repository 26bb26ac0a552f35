"""Tests for cascade deletion, placement and graph checks"""

from pytest import raises

from buildings import Direction
from config import EditorConfig
from connections import counterparts, find_link, find_slot
from errors import NodeNotFound
from flow import connect_product
from graph_store import Edge
from maintenance import (
    building_dimensions,
    check_graph,
    delete_node,
    edge_anchors,
    find_suitable_y,
    rectangles_intersect,
    related_position,
)


def test_delete_node_dissolves_every_connection(graph, place):
    """deleting a hub with three links leaves no reference to it"""
    place("OreMine", "mine")
    place("CoalMine", "coal")
    place("Furnace", "furnace")
    place("Sink", "sink")
    connect_product(graph, "mine", "furnace", "Iron Ore")
    connect_product(graph, "coal", "furnace", "Coal")
    connect_product(graph, "furnace", "sink", "Iron")

    dissolved = delete_node(graph, "furnace")

    assert dissolved == 3
    assert "furnace" not in graph
    assert graph.list_links() == []
    assert graph.list_edges() == []
    for node in graph.list_nodes():
        assert "furnace" not in counterparts(node)
    assert check_graph(graph) == []


def test_delete_node_redistributes_to_siblings(graph, place):
    """a deleted consumer's share goes to the supplier's other consumers"""
    place("Furnace", "furnace")
    place("SmallSink", "small")
    place("Sink", "sink")
    connect_product(graph, "furnace", "small", "Iron")
    connect_product(graph, "furnace", "sink", "Iron")

    delete_node(graph, "small")

    output = find_slot(graph.get_node("furnace"), Direction.OUTPUT, "Iron")
    assert find_link(output, "sink").amount == 10
    assert len(output.links) == 1


def test_delete_node_missing(graph):
    """deleting an unknown node raises NodeNotFound"""
    with raises(NodeNotFound):
        delete_node(graph, "ghost")


def test_rectangles_intersect_open_intervals():
    """touching edges are not an overlap"""
    assert rectangles_intersect((0, 0, 10, 10), (5, 5, 10, 10))
    assert not rectangles_intersect((0, 0, 10, 10), (10, 0, 10, 10))
    assert not rectangles_intersect((0, 0, 10, 10), (0, 10, 10, 10))
    assert not rectangles_intersect((0, 0, 10, 10), (30, 30, 5, 5))


def test_find_suitable_y_free_spot(graph):
    """an empty canvas keeps the requested Y"""
    assert find_suitable_y(graph, 0, 40, 400, 260) == 40


def test_find_suitable_y_below_column(graph, place):
    """an overlapping card is pushed below the lowest card in its column"""
    place("Furnace", "a", x=0, y=0)
    place("Furnace", "b", x=200, y=400)
    place("Furnace", "far", x=2000, y=5000)
    a = graph.get_node("a")
    b = graph.get_node("b")

    y = find_suitable_y(graph, 100, 0, 400, 260, gap=50)

    assert y == max(a.y + a.h, b.y + b.h) + 50


def test_building_dimensions(catalog):
    """card height follows the busiest side of the recipe"""
    config = EditorConfig()
    width, height = building_dimensions(catalog.get_building("Furnace"), 0, config)
    assert width == config.card_width
    assert height == config.card_height(2)


def test_related_position(graph, catalog, place):
    """consumers go one column right, suppliers one column left"""
    config = EditorConfig()
    origin = place("Furnace", "furnace", x=1000, y=100)

    x, y = related_position(graph, origin, Direction.OUTPUT, catalog.get_building("Sink"), 0, config)
    assert x == 1000 + origin.w + config.cards_horizontal_gap
    assert y == 100

    x, y = related_position(graph, origin, Direction.INPUT, catalog.get_building("OreMine"), 0, config)
    assert x == 1000 - origin.w - config.cards_horizontal_gap


def test_edge_anchors(graph, place):
    """anchors sit on the supplier's right and consumer's left border at their slot rows"""
    config = EditorConfig()
    coal = place("CoalMine", "coal")
    furnace = place("Furnace", "furnace", x=600)
    edge = Edge("coal", "furnace", "Coal")

    start, end = edge_anchors(graph, edge, config)

    assert start == (1.0, config.anchor_offset(0) / coal.h)
    assert end == (0.0, config.anchor_offset(1) / furnace.h)
    assert edge_anchors(graph, Edge("coal", "ghost", "Coal"), config) is None


def test_check_graph_reports_problems(graph, place):
    """check_graph flags over-capacity and unmirrored links"""
    place("Furnace", "furnace")
    place("Sink", "sink")
    link = connect_product(graph, "furnace", "sink", "Iron")

    link.amount = 15
    problems = check_graph(graph)
    assert any("uses 15 of 10" in p for p in problems)

    link.amount = 5
    graph.get_node("sink").inputs[0].links.clear()
    problems = check_graph(graph)
    assert any("not mirrored" in p for p in problems)
    assert any("attached to 1 slot" in p for p in problems)
