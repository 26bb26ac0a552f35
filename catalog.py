"""Read-only catalog of products and building templates.

The catalog file has the shape ``{"products": [...], "machines_and_buildings": [...]}``.
All recipe quantities are "per cycle"; a recipe's duration is in seconds.
"""

import json
import logging
from dataclasses import dataclass
from functools import cache
from pathlib import Path
from typing import Optional

from frozendict import frozendict

_LOGGER = logging.getLogger("chaindraft")

DEFAULT_CATALOG_PATH = Path(__file__).parent / "catalog.json"

# Accounting units that are never offered as placeable goods
_HIDDEN_PRODUCTS = frozenset({"Computing", "Unity"})

_SEARCH_LIMIT = 10


@dataclass(frozen=True)
class Product:
    """a tradeable good"""

    id: str
    name: str
    type: str
    icon_path: str


@dataclass(frozen=True)
class RecipeTemplate:
    """a recipe as stored in the catalog"""

    id: str
    name: str
    duration: float
    inputs: dict[str, float]
    outputs: dict[str, float]

    def rate_per_minute(self, quantity: float) -> float:
        """Convert a per-cycle quantity into a per-minute rate.

        Precondition:
            quantity is a non-negative float

        Postcondition:
            returns quantity * 60 / duration
            returns 0.0 when duration is not positive

        Args:
            quantity: amount consumed or produced per cycle

        Returns:
            amount per minute for one building
        """
        if self.duration <= 0:
            return 0.0
        return quantity * 60 / self.duration

    def input_rates(self) -> dict[str, float]:
        """Per-minute input rates for one building, in declaration order"""
        return {name: self.rate_per_minute(qty) for name, qty in self.inputs.items()}

    def output_rates(self) -> dict[str, float]:
        """Per-minute output rates for one building, in declaration order"""
        return {name: self.rate_per_minute(qty) for name, qty in self.outputs.items()}


@dataclass(frozen=True)
class BuildingTemplate:
    """a placeable building with its descriptive attributes and recipe variants"""

    id: str
    name: str
    recipes: tuple[RecipeTemplate, ...]
    category: str = ""
    previous_tier: str = ""
    next_tier: str = ""
    workers: float = 0
    maintenance_cost_units: str = ""
    maintenance_cost_quantity: float = 0
    electricity_consumed: float = 0
    electricity_generated: float = 0
    computing_consumed: float = 0
    computing_generated: float = 0
    product_type: str = ""
    storage_capacity: float = 0
    unity_cost: float = 0
    research_speed: float = 0
    icon_path: str = ""
    build_costs: dict[str, float] = frozendict()

    def find_recipe(self, recipe_id: str) -> Optional[RecipeTemplate]:
        """Look up one of this building's recipes by id"""
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None


def _parse_io_list(items: list[dict]) -> frozendict:
    """Convert a list of {"name", "quantity"} entries into an ordered frozendict.

    Precondition:
        items is a list of dicts with "name" and "quantity" keys

    Postcondition:
        returns frozendict mapping name -> float quantity
        declaration order is preserved
        repeated names are summed

    Args:
        items: raw recipe inputs or outputs

    Returns:
        frozen mapping of product name to quantity per cycle
    """
    result: dict[str, float] = {}
    for item in items:
        result[item["name"]] = result.get(item["name"], 0.0) + float(item["quantity"])
    return frozendict(result)


def _parse_recipe(data: dict) -> RecipeTemplate:
    """Build a RecipeTemplate from its raw catalog entry"""
    return RecipeTemplate(
        id=data["id"],
        name=data.get("name", data["id"]),
        duration=float(data["duration"]),
        inputs=_parse_io_list(data.get("inputs", [])),
        outputs=_parse_io_list(data.get("outputs", [])),
    )


def _parse_building(data: dict) -> BuildingTemplate:
    """Build a BuildingTemplate from its raw catalog entry"""
    build_costs = frozendict(
        {cost["product"]: float(cost["quantity"]) for cost in data.get("build_costs", [])}
    )
    return BuildingTemplate(
        id=data["id"],
        name=data.get("name", data["id"]),
        recipes=tuple(_parse_recipe(r) for r in data.get("recipes", [])),
        category=data.get("category", ""),
        previous_tier=data.get("previous_tier") or "",
        next_tier=data.get("next_tier") or "",
        workers=data.get("workers", 0),
        maintenance_cost_units=data.get("maintenance_cost_units", ""),
        maintenance_cost_quantity=data.get("maintenance_cost_quantity", 0),
        electricity_consumed=data.get("electricity_consumed", 0),
        electricity_generated=data.get("electricity_generated", 0),
        computing_consumed=data.get("computing_consumed", 0),
        computing_generated=data.get("computing_generated", 0),
        product_type=data.get("product_type", ""),
        storage_capacity=data.get("storage_capacity", 0),
        unity_cost=data.get("unity_cost", 0),
        research_speed=data.get("research_speed", 0),
        icon_path=data.get("icon_path", ""),
        build_costs=build_costs,
    )


class Catalog:
    """Indexed, read-only view over products and building templates"""

    def __init__(self, products: list[Product], buildings: list[BuildingTemplate]):
        self._products: dict[str, Product] = {p.name: p for p in products}
        self._buildings: dict[str, BuildingTemplate] = {b.id: b for b in buildings}

    @classmethod
    def from_dict(cls, data: dict) -> "Catalog":
        """Build a catalog from the parsed JSON document.

        Precondition:
            data has optional "products" and "machines_and_buildings" lists

        Postcondition:
            returns Catalog indexing every product by name and building by id

        Args:
            data: raw catalog document

        Returns:
            Catalog instance
        """
        products = [
            Product(
                id=p.get("id", p["name"]),
                name=p["name"],
                type=p.get("type", ""),
                icon_path=p.get("icon_path", ""),
            )
            for p in data.get("products", [])
        ]
        buildings = [_parse_building(b) for b in data.get("machines_and_buildings", [])]
        return cls(products, buildings)

    @property
    def products(self) -> list[Product]:
        return list(self._products.values())

    @property
    def buildings(self) -> list[BuildingTemplate]:
        return list(self._buildings.values())

    def get_product(self, name: str) -> Optional[Product]:
        """Product metadata by name, None when unknown"""
        return self._products.get(name)

    def get_building(self, building_id: str) -> Optional[BuildingTemplate]:
        """Building template by id, None when unknown"""
        if not building_id:
            return None
        return self._buildings.get(building_id)

    def product_type(self, name: str) -> str:
        product = self._products.get(name)
        return product.type if product else ""

    def icon_path(self, name: str) -> str:
        product = self._products.get(name)
        return product.icon_path if product else ""

    def search_products(self, text: str, limit: int = _SEARCH_LIMIT) -> list[Product]:
        """Find products whose name, or any word of it, starts with text.

        Precondition:
            text is a string (case is ignored)
            limit is a positive integer

        Postcondition:
            returns at most limit products in catalog order
            accounting units (Computing, Unity) are never returned
            "flu" matches "Hydrogen Fluoride"

        Args:
            text: search prefix
            limit: maximum number of results

        Returns:
            list of matching products
        """
        prefix = text.strip().lower()
        found = []
        for product in self._products.values():
            if product.name in _HIDDEN_PRODUCTS:
                continue
            name = product.name.lower()
            if name.startswith(prefix) or any(word.startswith(prefix) for word in name.split()):
                found.append(product)
                if len(found) >= limit:
                    break
        return found

    def related_buildings(
        self, product: str
    ) -> tuple[list[tuple[BuildingTemplate, RecipeTemplate]], list[tuple[BuildingTemplate, RecipeTemplate]]]:
        """Find every (building, recipe) pair consuming or producing a product.

        Precondition:
            product is a product name

        Postcondition:
            returns (consumers, producers)
            consumers lists pairs whose recipe has product among its inputs
            producers lists pairs whose recipe has product among its outputs
            one building may appear several times, once per matching recipe

        Args:
            product: product name

        Returns:
            tuple of (consumers, producers) lists
        """
        consumers = []
        producers = []
        for building in self._buildings.values():
            for recipe in building.recipes:
                if product in recipe.inputs:
                    consumers.append((building, recipe))
                if product in recipe.outputs:
                    producers.append((building, recipe))
        return consumers, producers


def load_catalog(path: Path = DEFAULT_CATALOG_PATH) -> Catalog:
    """Load a catalog from a JSON file.

    Precondition:
        path points to a readable UTF-8 JSON catalog document

    Postcondition:
        returns Catalog built from the file contents

    Args:
        path: catalog file location

    Returns:
        Catalog instance
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    catalog = Catalog.from_dict(data)
    _LOGGER.debug(
        "Loaded %s products and %s buildings from %s",
        len(catalog.products), len(catalog.buildings), path,
    )
    return catalog


@cache
def get_default_catalog() -> Catalog:
    """The catalog shipped next to this module, loaded once"""
    return load_catalog(DEFAULT_CATALOG_PATH)
