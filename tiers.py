"""Swapping a placed building for another tier of itself"""

import logging

from buildings import Direction, Node, make_slots
from catalog import BuildingTemplate, Catalog
from config import DEFAULT_CONFIG, EditorConfig
from connections import counterparts, find_slot
from errors import TemplateNotFound
from flow import recompute_many, release

_LOGGER = logging.getLogger("chaindraft")


def best_recipe_index(node: Node, template: BuildingTemplate) -> int:
    """Pick the template recipe sharing the most product names with the node's recipe.

    Precondition:
        template has at least one recipe

    Postcondition:
        score = matching input names + matching output names
        returns the index of the highest score
        ties keep the recipe declared first

    Args:
        node: node whose current recipe is compared
        template: candidate building template

    Returns:
        index into template.recipes
    """
    current_inputs = {slot.product for slot in node.inputs}
    current_outputs = {slot.product for slot in node.outputs}

    best_index = 0
    best_score = -1
    for index, recipe in enumerate(template.recipes):
        score = sum(1 for name in recipe.inputs if name in current_inputs)
        score += sum(1 for name in recipe.outputs if name in current_outputs)
        if score > best_score:
            best_score = score
            best_index = index
    return best_index


def change_tier(
    graph,
    catalog: Catalog,
    node_id: str,
    target_template_id: str,
    config: EditorConfig = DEFAULT_CONFIG,
) -> Node:
    """Replace a node's building template, keeping the connections that still fit.

    Precondition:
        node_id names a stored node

    Postcondition:
        the best matching recipe of the target template is selected
        links for products the new recipe lacks (per side) are released from the
        counterpart's side, with redistribution, and their edges deleted
        links for products the new recipe keeps move to the new slots with their
        amounts and priority, without being clamped to the new rates
        slot rates, descriptive attributes and card height follow the new template
        every remaining counterpart is re-settled with recompute_all

    Args:
        graph: graph store
        catalog: template source
        node_id: node to migrate
        target_template_id: id of the building template to switch to
        config: layout geometry

    Returns:
        the migrated node

    Raises:
        NodeNotFound: if node_id is missing
        TemplateNotFound: if the template is unknown or has no recipes; nothing changes
    """
    node = graph.require_node(node_id)
    template = catalog.get_building(target_template_id)
    if template is None or not template.recipes:
        raise TemplateNotFound(f"Building template '{target_template_id}' not found")

    recipe = template.recipes[best_recipe_index(node, template)]

    cancelled = [
        link
        for slot in node.inputs
        if slot.product not in recipe.inputs
        for link in list(slot.links)
    ] + [
        link
        for slot in node.outputs
        if slot.product not in recipe.outputs
        for link in list(slot.links)
    ]
    for link in cancelled:
        release(graph, node_id, link)

    inputs = make_slots(recipe, Direction.INPUT, catalog)
    outputs = make_slots(recipe, Direction.OUTPUT, catalog)
    for slot in inputs + outputs:
        previous = find_slot(node, slot.direction, slot.product)
        if previous is not None:
            slot.links = previous.links
            slot.prioritized = previous.prioritized

    graph.update_node(
        node_id,
        building=template,
        recipe=recipe,
        inputs=inputs,
        outputs=outputs,
        h=config.card_height(max(len(recipe.inputs), len(recipe.outputs))),
    )

    recompute_many(graph, counterparts(node))
    _LOGGER.info(
        "Changed %s to %s (%s), %s connection(s) cancelled",
        node_id, template.name, recipe.name, len(cancelled),
    )
    return node


def increase_tier(graph, catalog: Catalog, node_id: str, config: EditorConfig = DEFAULT_CONFIG) -> Node:
    """change_tier to the node's next tier"""
    node = graph.require_node(node_id)
    return change_tier(graph, catalog, node_id, node.building.next_tier, config)


def decrease_tier(graph, catalog: Catalog, node_id: str, config: EditorConfig = DEFAULT_CONFIG) -> Node:
    """change_tier to the node's previous tier"""
    node = graph.require_node(node_id)
    return change_tier(graph, catalog, node_id, node.building.previous_tier, config)
