"""Placed buildings: nodes, their input/output slots and the links between them.

A link is stored once. The supplier's output slot and the consumer's input slot
both hold a reference to the same Link object, so both sides always observe
the same amount.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from catalog import BuildingTemplate, Catalog, RecipeTemplate
from config import DEFAULT_CONFIG, EditorConfig


class Direction(Enum):
    """side of a building a slot sits on"""

    INPUT = "input"
    OUTPUT = "output"

    @property
    def opposite(self) -> "Direction":
        return Direction.OUTPUT if self is Direction.INPUT else Direction.INPUT

    @classmethod
    def parse(cls, text: str) -> "Direction":
        """Parse "input"/"output" (also "in"/"out"), case-insensitive.

        Raises:
            ValueError: if text names neither direction
        """
        value = text.strip().lower()
        if value in ("in", "input", "inputs"):
            return cls.INPUT
        if value in ("out", "output", "outputs"):
            return cls.OUTPUT
        raise ValueError(f"Invalid direction '{text}'. Must be input or output.")


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class Link:
    """Committed flow of one product from a supplier to a consumer"""

    supplier_id: str
    consumer_id: str
    product: str
    amount: float = 0.0
    id: str = field(default_factory=_new_id)

    def counterpart(self, node_id: str) -> str:
        """The other end of this link as seen from node_id"""
        return self.consumer_id if node_id == self.supplier_id else self.supplier_id

    def binds(self, node_id: str) -> bool:
        return node_id in (self.supplier_id, self.consumer_id)


@dataclass(eq=False)
class Slot:
    """One input or output line of a placed building"""

    direction: Direction
    product: str
    rate: float  # per building per minute
    product_type: str = ""
    icon_path: str = ""
    links: list[Link] = field(default_factory=list)
    prioritized: Optional[str] = None  # counterpart node id served first

    def counterpart_of(self, link: Link) -> str:
        return link.consumer_id if self.direction is Direction.OUTPUT else link.supplier_id


@dataclass(frozen=True)
class Connection:
    """A slot's view of one of its links"""

    counterpart_id: str
    amount: float
    is_prioritized: bool
    link: Link = field(compare=False, hash=False, repr=False)


@dataclass(eq=False)
class Node:
    """A placed building standing for `multiplier` physical instances"""

    id: str
    building: BuildingTemplate
    recipe: RecipeTemplate
    inputs: list[Slot] = field(default_factory=list)
    outputs: list[Slot] = field(default_factory=list)
    multiplier: int = 1
    x: float = 0.0
    y: float = 0.0
    w: float = DEFAULT_CONFIG.card_width
    h: float = DEFAULT_CONFIG.card_heights[0]

    @property
    def name(self) -> str:
        return self.building.name

    def slots(self, direction: Direction) -> list[Slot]:
        return self.inputs if direction is Direction.INPUT else self.outputs

    def links(self) -> list[Link]:
        """Every link bound to this node, inputs first, without duplicates"""
        seen = set()
        result = []
        for slot in self.inputs + self.outputs:
            for link in slot.links:
                if link.id not in seen:
                    seen.add(link.id)
                    result.append(link)
        return result


def make_slots(
    recipe: RecipeTemplate, direction: Direction, catalog: Optional[Catalog] = None
) -> list[Slot]:
    """Create fresh, unconnected slots for one side of a recipe.

    Precondition:
        recipe is a RecipeTemplate

    Postcondition:
        returns one Slot per recipe entry, in declaration order
        each slot rate is quantity * 60 / duration
        product type and icon come from the catalog when one is given

    Args:
        recipe: recipe to read quantities from
        direction: which side to build
        catalog: optional product metadata source

    Returns:
        list of empty slots
    """
    rates = recipe.input_rates() if direction is Direction.INPUT else recipe.output_rates()
    return [
        Slot(
            direction=direction,
            product=product,
            rate=rate,
            product_type=catalog.product_type(product) if catalog else "",
            icon_path=catalog.icon_path(product) if catalog else "",
        )
        for product, rate in rates.items()
    ]


def create_node(
    template: BuildingTemplate,
    recipe_index: int = 0,
    catalog: Optional[Catalog] = None,
    x: float = 0.0,
    y: float = 0.0,
    node_id: Optional[str] = None,
    config: EditorConfig = DEFAULT_CONFIG,
) -> Node:
    """Instantiate a node from a building template.

    Precondition:
        template has at least one recipe
        0 <= recipe_index < len(template.recipes)

    Postcondition:
        returns a Node with multiplier 1 and empty slot link lists
        card height follows the busiest side of the chosen recipe

    Args:
        template: building template to place
        recipe_index: which recipe variant to use
        catalog: optional product metadata source
        x, y: top-left position
        node_id: explicit id, a random one is generated otherwise
        config: layout geometry

    Returns:
        new Node

    Raises:
        IndexError: if recipe_index does not name a recipe
    """
    recipe = template.recipes[recipe_index]
    return Node(
        id=node_id or _new_id(),
        building=template,
        recipe=recipe,
        inputs=make_slots(recipe, Direction.INPUT, catalog),
        outputs=make_slots(recipe, Direction.OUTPUT, catalog),
        multiplier=1,
        x=x,
        y=y,
        w=config.card_width,
        h=config.card_height(max(len(recipe.inputs), len(recipe.outputs))),
    )
