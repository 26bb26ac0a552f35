"""Controller for production chain editing - no GUI dependencies"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import graphviz

import flow
import maintenance
import tiers
from buildings import Connection, Direction, Link, Node
from catalog import BuildingTemplate, Catalog, Product, get_default_catalog
from config import DEFAULT_CONFIG, EditorConfig
from connections import get_connections, require_slot, sort_by_priority
from errors import FlowError, TemplateNotFound
from graph_store import GraphStore
from render import to_graphviz
from summary import GraphTotals, SlotThroughput, node_throughput, summarize

_LOGGER = logging.getLogger("chaindraft")


@dataclass
class ValidationResult:
    """Result of graph validation"""
    is_valid: bool
    warnings: List[str]
    errors: List[str]


class EditorController:
    """Stateful controller for one production chain - single entry point for UI actions"""

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        graph: Optional[GraphStore] = None,
        config: Optional[EditorConfig] = None,
    ):
        """Initialize controller.

        Precondition:
            catalog, graph and config are either None or instances of their types

        Postcondition:
            self.catalog is the given catalog or the bundled default
            self.graph is the given store or a new empty one
            self.config is the given geometry or DEFAULT_CONFIG

        Args:
            catalog: template source
            graph: store to edit
            config: layout geometry
        """
        self.catalog = catalog if catalog is not None else get_default_catalog()
        self.graph = graph if graph is not None else GraphStore()
        self.config = config if config is not None else DEFAULT_CONFIG

    # ========== State Getters ==========

    def get_node(self, node_id: str) -> Node:
        """Get a placed building, raising NodeNotFound when missing"""
        return self.graph.require_node(node_id)

    def get_nodes(self) -> List[Node]:
        return self.graph.list_nodes()

    def get_connections(self, node_id: str, direction: Direction, product: str) -> List[Connection]:
        """Connections of one slot, in the order they are served.

        Precondition:
            node_id names a stored node

        Postcondition:
            returns Connection views, prioritized first, then insertion order

        Args:
            node_id: placed building
            direction: side of the slot
            product: slot product

        Returns:
            list of Connection views

        Raises:
            NodeNotFound: if node_id is missing
            SlotNotFound: if the node has no such slot
        """
        node = self.graph.require_node(node_id)
        return sort_by_priority(get_connections(require_slot(node, direction, product)))

    def get_throughput(self, node_id: str) -> List[SlotThroughput]:
        return node_throughput(self.graph.require_node(node_id))

    # ========== Catalog Queries ==========

    def search_products(self, text: str) -> List[Product]:
        return self.catalog.search_products(text)

    def related_buildings(self, product: str, direction: Direction) -> List[BuildingTemplate]:
        """Buildings that could be attached to a slot of the given side.

        An output slot needs consumers of its product, an input slot needs
        producers. Each building is listed once, in catalog order.
        """
        consumers, producers = self.catalog.related_buildings(product)
        pairs = consumers if direction is Direction.OUTPUT else producers
        return list({building.id: building for building, _ in pairs}.values())

    def find_existing_with_recipe(self, recipe_id: str) -> Optional[Node]:
        """First placed building already running recipe_id, None if there is none"""
        for node in self.graph.list_nodes():
            if node.recipe.id == recipe_id:
                return node
        return None

    def _require_template(self, building_id: str) -> BuildingTemplate:
        template = self.catalog.get_building(building_id)
        if template is None or not template.recipes:
            raise TemplateNotFound(f"Building template '{building_id}' not found")
        return template

    # ========== Actions ==========

    def place_building(
        self,
        building_id: str,
        x: float = 0.0,
        y: float = 0.0,
        recipe_index: int = 0,
        node_id: Optional[str] = None,
    ) -> Node:
        """Place a new building card.

        Precondition:
            building_id names a template with at least one recipe

        Postcondition:
            a node with multiplier 1 and no connections is stored
            its Y is pushed down until it overlaps no other card

        Args:
            building_id: template to place
            x, y: requested top-left corner
            recipe_index: which recipe variant to run
            node_id: explicit id, generated when None

        Returns:
            the new node

        Raises:
            TemplateNotFound: if the template is unknown
            ValueError: if recipe_index does not name a recipe
        """
        template = self._require_template(building_id)
        if not 0 <= recipe_index < len(template.recipes):
            raise ValueError(
                f"Invalid recipe index {recipe_index} for {template.name}. "
                f"Must be between 0 and {len(template.recipes) - 1}."
            )
        width, height = maintenance.building_dimensions(template, recipe_index, self.config)
        y = maintenance.find_suitable_y(self.graph, x, y, width, height, self.config.card_vertical_gap)
        node = self.graph.create_node(
            template, x=x, y=y, recipe_index=recipe_index,
            catalog=self.catalog, node_id=node_id, config=self.config,
        )
        _LOGGER.info("Placed %s (%s)", template.name, node.recipe.name)
        return node

    def add_related_building(
        self,
        origin_id: str,
        direction: Direction,
        product: str,
        building_id: str,
        recipe_id: Optional[str] = None,
        reuse_existing: bool = False,
    ) -> Node:
        """Attach a supplier or consumer to one slot of an existing building.

        Precondition:
            origin_id names a stored node with a `direction` slot for product

        Postcondition:
            for an output slot the new node consumes product, for an input slot
            it produces it
            the recipe is recipe_id when given, otherwise the template's first
            recipe handling product on the needed side
            with reuse_existing, a building already running that recipe is
            connected instead of placing a new one
            a new node sits one column beside origin, below any overlap
            origin and the node are connected with a bounded transfer

        Args:
            origin_id: building the user started from
            direction: side of origin's slot
            product: product of origin's slot
            building_id: template of the building to attach
            recipe_id: recipe to run on it
            reuse_existing: connect an existing building with the same recipe

        Returns:
            the attached node

        Raises:
            NodeNotFound: if origin_id is missing
            SlotNotFound: if origin has no such slot
            TemplateNotFound: if the template is unknown
            ValueError: if no recipe of the template handles product
        """
        origin = self.graph.require_node(origin_id)
        require_slot(origin, direction, product)
        template = self._require_template(building_id)

        recipe_index = self._find_related_recipe(template, direction, product, recipe_id)
        recipe = template.recipes[recipe_index]

        node = self.find_existing_with_recipe(recipe.id) if reuse_existing else None
        if node is None or node.id == origin_id:
            x, y = maintenance.related_position(
                self.graph, origin, direction, template, recipe_index, self.config
            )
            node = self.graph.create_node(
                template, x=x, y=y, recipe_index=recipe_index,
                catalog=self.catalog, config=self.config,
            )
            _LOGGER.info("Placed %s (%s) next to %s", template.name, recipe.name, origin.name)

        if direction is Direction.OUTPUT:
            self.connect(origin_id, node.id, product)
        else:
            self.connect(node.id, origin_id, product)
        return node

    @staticmethod
    def _find_related_recipe(
        template: BuildingTemplate, direction: Direction, product: str, recipe_id: Optional[str]
    ) -> int:
        """Index of the recipe that can sit across from a `direction` slot of product"""
        for index, recipe in enumerate(template.recipes):
            side = recipe.inputs if direction is Direction.OUTPUT else recipe.outputs
            if recipe_id is not None and recipe.id != recipe_id:
                continue
            if product in side:
                return index
        wanted = "consume" if direction is Direction.OUTPUT else "produce"
        raise ValueError(f"No recipe of {template.name} can {wanted} '{product}'")

    def connect(self, supplier_id: str, consumer_id: str, product: str) -> Link:
        """Connect two buildings for a product.

        Raises:
            FlowError: if the nodes, slots or pairing are invalid; also logged
        """
        try:
            link = flow.connect_product(self.graph, supplier_id, consumer_id, product)
        except FlowError as e:
            _LOGGER.error("Cannot connect: %s", e)
            raise
        _LOGGER.info(
            "Connected %s -> %s: %s %g/min",
            self.graph.get_node(supplier_id).name, self.graph.get_node(consumer_id).name,
            product, link.amount,
        )
        return link

    def disconnect(self, supplier_id: str, consumer_id: str, product: str) -> float:
        """Remove the link between two buildings, rebalancing the supplier's output.

        Returns:
            amount the link carried, 0.0 when the buildings were not connected
        """
        amount = flow.disconnect(self.graph, supplier_id, consumer_id, product, Direction.OUTPUT)
        _LOGGER.info("Disconnected %s from %s (%s)", supplier_id, consumer_id, product)
        return amount

    def rescale(self, node_id: str, multiplier: int) -> Node:
        """Change the number of buildings a card stands for.

        Raises:
            ValueError: if multiplier is not a positive integer; also logged
            NodeNotFound: if node_id is missing
        """
        try:
            node = flow.rescale(self.graph, node_id, multiplier)
        except ValueError as e:
            _LOGGER.error("%s", e)
            raise
        _LOGGER.info("%s now stands for %s building(s)", node.name, multiplier)
        return node

    def change_tier(self, node_id: str, building_id: str) -> bool:
        """Switch a building to another template.

        Returns:
            True when the tier changed, False when the template does not exist
        """
        try:
            tiers.change_tier(self.graph, self.catalog, node_id, building_id, self.config)
        except TemplateNotFound as e:
            _LOGGER.info("%s", e)
            return False
        return True

    def increase_tier(self, node_id: str) -> bool:
        """Upgrade a building; False when it has no next tier"""
        try:
            tiers.increase_tier(self.graph, self.catalog, node_id, self.config)
        except TemplateNotFound:
            _LOGGER.info("%s has no next tier", self.graph.require_node(node_id).name)
            return False
        return True

    def decrease_tier(self, node_id: str) -> bool:
        """Downgrade a building; False when it has no previous tier"""
        try:
            tiers.decrease_tier(self.graph, self.catalog, node_id, self.config)
        except TemplateNotFound:
            _LOGGER.info("%s has no previous tier", self.graph.require_node(node_id).name)
            return False
        return True

    def prioritize(
        self, node_id: str, direction: Direction, product: str, counterpart_id: str
    ) -> bool:
        """Serve counterpart_id first on one of node_id's slots"""
        changed = flow.prioritize(self.graph, node_id, direction, product, counterpart_id)
        if changed:
            _LOGGER.info("%s now serves %s first for %s", node_id, counterpart_id, product)
        return changed

    def clear_priority(self, node_id: str, direction: Direction, product: str) -> None:
        flow.clear_priority(self.graph, node_id, direction, product)

    def claim_priority(self, node_id: str, direction: Direction, product: str) -> List[str]:
        """Make node_id the first one served by every building linked to its slot"""
        updated = flow.claim_priority(self.graph, node_id, direction, product)
        _LOGGER.info("%s claimed priority on %s building(s)", node_id, len(updated))
        return updated

    def delete_building(self, node_id: str) -> int:
        return maintenance.delete_node(self.graph, node_id)

    # ========== Derived State / Queries ==========

    def summary(self) -> GraphTotals:
        return summarize(self.graph)

    def validate(self) -> ValidationResult:
        """Check the graph for broken invariants and loose ends.

        Precondition:
            none

        Postcondition:
            errors list every violated flow invariant
            warnings list products with unmet input or idle output

        Returns:
            ValidationResult with any warnings or errors
        """
        errors = maintenance.check_graph(self.graph)
        totals = summarize(self.graph)
        warnings = [f"Unmet input: {product} {amount:g}/min" for product, amount in totals.unmet_input.items()]
        warnings += [f"Idle output: {product} {amount:g}/min" for product, amount in totals.idle_output.items()]
        return ValidationResult(is_valid=len(errors) == 0, warnings=warnings, errors=errors)

    def to_graphviz(self) -> graphviz.Digraph:
        """Diagram of the current chain.

        Raises:
            ValueError: if the graph violates a flow invariant
        """
        validation = self.validate()
        if not validation.is_valid:
            raise ValueError("; ".join(validation.errors))
        return to_graphviz(self.graph)
