"""Tests for tier migration"""

from pytest import raises

from buildings import Direction
from connections import find_link, find_slot
from errors import NodeNotFound, TemplateNotFound
from flow import connect_product, prioritize
from maintenance import check_graph
from tiers import best_recipe_index, change_tier, decrease_tier, increase_tier


def _build_chain(graph, place):
    """mine + coal -> furnace -> sink, with a spare furnace also fed by the mine"""
    place("OreMine", "mine")
    place("CoalMine", "coal")
    place("Furnace", "furnace")
    place("Furnace", "spare")
    place("BigSink", "sink")
    connect_product(graph, "mine", "furnace", "Iron Ore")
    connect_product(graph, "mine", "spare", "Iron Ore")
    connect_product(graph, "coal", "furnace", "Coal")
    connect_product(graph, "furnace", "sink", "Iron")


def _amount(graph, supplier_id, consumer_id, product):
    link = find_link(find_slot(graph.get_node(supplier_id), Direction.OUTPUT, product), consumer_id)
    return None if link is None else link.amount


def test_best_recipe_index_prefers_most_shared_products(catalog, place):
    """the recipe sharing the most product names should win"""
    node = place("Furnace", "furnace")
    assert best_recipe_index(node, catalog.get_building("FurnaceT2")) == 1

    copper = place("Furnace", "copper", recipe_index=1)
    assert best_recipe_index(copper, catalog.get_building("FurnaceT2")) == 0


def test_best_recipe_index_tie_keeps_first(catalog, place):
    """with no shared products the first recipe is chosen"""
    node = place("OreMine", "mine")
    assert best_recipe_index(node, catalog.get_building("Furnace")) == 0


def test_change_tier_cancels_incompatible_connections(graph, catalog, place):
    """Iron Ore is dropped by the new recipe, the mine's ore moves to the spare furnace"""
    _build_chain(graph, place)
    assert _amount(graph, "mine", "furnace", "Iron Ore") == 10
    assert _amount(graph, "mine", "spare", "Iron Ore") == 0

    node = change_tier(graph, catalog, "furnace", "FurnaceT2")

    assert node.building.id == "FurnaceT2"
    assert node.recipe.id == "IronFromScrapT2"
    assert [slot.product for slot in node.inputs] == ["Iron Scrap", "Coal"]
    assert find_slot(node, Direction.INPUT, "Iron Ore") is None
    assert _amount(graph, "mine", "furnace", "Iron Ore") is None
    assert _amount(graph, "mine", "spare", "Iron Ore") == 10


def test_change_tier_keeps_and_resettles_surviving_connections(graph, catalog, place):
    """kept links move to the new slots and counterparts are re-settled against the new rates"""
    _build_chain(graph, place)
    assert _amount(graph, "coal", "furnace", "Coal") == 5
    assert _amount(graph, "furnace", "sink", "Iron") == 10

    change_tier(graph, catalog, "furnace", "FurnaceT2")

    assert _amount(graph, "coal", "furnace", "Coal") == 10
    assert _amount(graph, "furnace", "sink", "Iron") == 20
    assert check_graph(graph) == []
    edges = {(e.supplier_id, e.consumer_id) for e in graph.list_edges()}
    assert edges == {("mine", "spare"), ("coal", "furnace"), ("furnace", "sink")}


def test_change_tier_carries_priority(graph, catalog, place):
    """a kept slot should keep its prioritized counterpart"""
    _build_chain(graph, place)
    prioritize(graph, "furnace", Direction.OUTPUT, "Iron", "sink")

    node = change_tier(graph, catalog, "furnace", "FurnaceT2")

    assert node.outputs[0].prioritized == "sink"


def test_change_tier_unknown_template_changes_nothing(graph, catalog, place):
    """an unknown or empty template raises TemplateNotFound and leaves the node alone"""
    _build_chain(graph, place)
    before = {link.id: link.amount for link in graph.list_links()}

    with raises(TemplateNotFound):
        change_tier(graph, catalog, "furnace", "Nope")
    with raises(TemplateNotFound):
        change_tier(graph, catalog, "furnace", "Broken")

    assert graph.get_node("furnace").building.id == "Furnace"
    assert {link.id: link.amount for link in graph.list_links()} == before


def test_change_tier_missing_node(graph, catalog):
    """change_tier on an unknown node raises NodeNotFound"""
    with raises(NodeNotFound):
        change_tier(graph, catalog, "ghost", "FurnaceT2")


def test_increase_and_decrease_tier(graph, catalog, place):
    """upgrade follows next_tier, downgrade follows previous_tier"""
    place("Furnace", "furnace")

    upgraded = increase_tier(graph, catalog, "furnace")
    assert upgraded.building.id == "FurnaceT2"
    assert [slot.rate for slot in upgraded.outputs] == [20]

    downgraded = decrease_tier(graph, catalog, "furnace")
    assert downgraded.building.id == "Furnace"
    assert downgraded.recipe.id == "IronFromOre"


def test_tier_without_neighbour_raises(graph, catalog, place):
    """a building at the end of its tier line cannot move further"""
    place("Furnace", "furnace")
    with raises(TemplateNotFound):
        decrease_tier(graph, catalog, "furnace")

    place("FurnaceT2", "t2")
    with raises(TemplateNotFound):
        increase_tier(graph, catalog, "t2")
