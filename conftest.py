"""Pytest fixtures: a small catalog where every recipe runs once per minute"""

import pytest

from catalog import Catalog
from graph_store import GraphStore


def _recipe(recipe_id, inputs, outputs):
    return {
        "id": recipe_id,
        "name": recipe_id,
        "duration": 60,
        "inputs": [{"name": name, "quantity": qty} for name, qty in inputs.items()],
        "outputs": [{"name": name, "quantity": qty} for name, qty in outputs.items()],
    }


CHAIN_CATALOG = {
    "products": [
        {"id": "IronOre", "name": "Iron Ore", "type": "Loose"},
        {"id": "IronScrap", "name": "Iron Scrap", "type": "Countable"},
        {"id": "CopperOre", "name": "Copper Ore", "type": "Loose"},
        {"id": "Coal", "name": "Coal", "type": "Loose"},
        {"id": "Iron", "name": "Iron", "type": "Countable"},
        {"id": "Copper", "name": "Copper", "type": "Countable"},
    ],
    "machines_and_buildings": [
        {
            "id": "OreMine",
            "name": "Ore Mine",
            "workers": 2,
            "recipes": [_recipe("MineIronOre", {}, {"Iron Ore": 10})],
        },
        {
            "id": "CoalMine",
            "name": "Coal Mine",
            "workers": 2,
            "recipes": [_recipe("MineCoal", {}, {"Coal": 10})],
        },
        {
            "id": "Furnace",
            "name": "Furnace",
            "next_tier": "FurnaceT2",
            "workers": 4,
            "electricity_consumed": 100,
            "maintenance_cost_units": "Maintenance I",
            "maintenance_cost_quantity": 1,
            "build_costs": [{"product": "Iron", "quantity": 5}],
            "recipes": [
                _recipe("IronFromOre", {"Iron Ore": 10, "Coal": 5}, {"Iron": 10}),
                _recipe("CopperFromOre", {"Copper Ore": 10, "Coal": 5}, {"Copper": 10}),
            ],
        },
        {
            "id": "FurnaceT2",
            "name": "Furnace II",
            "previous_tier": "Furnace",
            "workers": 6,
            "recipes": [
                _recipe("CopperT2", {"Copper Ore": 20, "Coal": 10}, {"Copper": 20}),
                _recipe("IronFromScrapT2", {"Iron Scrap": 20, "Coal": 10}, {"Iron": 20}),
            ],
        },
        {
            "id": "SmallSink",
            "name": "Small Sink",
            "recipes": [_recipe("EatIronSmall", {"Iron": 4}, {})],
        },
        {
            "id": "Sink",
            "name": "Sink",
            "recipes": [_recipe("EatIron", {"Iron": 10}, {})],
        },
        {
            "id": "BigSink",
            "name": "Big Sink",
            "recipes": [_recipe("EatIronBig", {"Iron": 20}, {})],
        },
        {
            "id": "Broken",
            "name": "Broken",
            "recipes": [],
        },
    ],
}


@pytest.fixture
def catalog():
    return Catalog.from_dict(CHAIN_CATALOG)


@pytest.fixture
def graph():
    return GraphStore()


@pytest.fixture
def place(graph, catalog):
    """Place a building by template id, optionally with an explicit node id"""
    def _place(building_id, node_id=None, recipe_index=0, x=0.0, y=0.0):
        return graph.create_node(
            catalog.get_building(building_id), x=x, y=y,
            recipe_index=recipe_index, catalog=catalog, node_id=node_id,
        )
    return _place
