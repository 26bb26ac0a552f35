"""Graph upkeep: cascade deletion, card placement and consistency checks"""

import logging
from typing import Optional

from buildings import Direction, Node
from capacity import total_capacity, used_capacity
from catalog import BuildingTemplate
from config import DEFAULT_CONFIG, EditorConfig
from connections import find_slot, find_slot_index
from flow import release
from graph_store import Edge

_LOGGER = logging.getLogger("chaindraft")

# Tolerance for float comparisons of accumulated amounts
_EPSILON = 1e-9


def delete_node(graph, node_id: str) -> int:
    """Remove a node after dissolving all of its links.

    Precondition:
        node_id names a stored node

    Postcondition:
        every input link, then every output link, was released from the
        counterpart's side with redistribution
        no surviving node references node_id
        edges bound to the node are deleted, then the node itself

    Args:
        graph: graph store
        node_id: node to delete

    Returns:
        number of links dissolved

    Raises:
        NodeNotFound: if node_id is missing
    """
    node = graph.require_node(node_id)
    doomed = [link for slot in node.inputs for link in list(slot.links)]
    doomed += [link for slot in node.outputs for link in list(slot.links)]
    for link in doomed:
        release(graph, node_id, link)

    graph.delete_edges_bound_to(node_id)
    graph.delete_node(node_id)
    _LOGGER.info("Deleted %s (%s), %s connection(s) dissolved", node.name, node_id, len(doomed))
    return len(doomed)


def rectangles_intersect(
    a: tuple[float, float, float, float], b: tuple[float, float, float, float]
) -> bool:
    """Axis-aligned overlap of two (x, y, w, h) boxes; touching edges do not count"""
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return not (ax + aw <= bx or bx + bw <= ax or ay + ah <= by or by + bh <= ay)


def building_dimensions(
    template: BuildingTemplate, recipe_index: int = 0, config: EditorConfig = DEFAULT_CONFIG
) -> tuple[float, float]:
    """(width, height) of the card a template would be placed as"""
    recipe = template.recipes[recipe_index]
    return config.card_width, config.card_height(max(len(recipe.inputs), len(recipe.outputs)))


def find_suitable_y(
    graph,
    x: float,
    y: float,
    width: float,
    height: float,
    gap: float = DEFAULT_CONFIG.card_vertical_gap,
) -> float:
    """Find a Y coordinate where a new card will not overlap existing ones.

    Precondition:
        width and height are positive

    Postcondition:
        returns y unchanged when the box at (x, y) overlaps no node
        otherwise returns the lowest bottom edge among nodes sharing the
        column (horizontal overlap with [x, x + width)) plus gap

    Args:
        graph: graph store
        x, y: desired top-left corner
        width, height: footprint of the new card
        gap: vertical spacing below the lowest card

    Returns:
        Y coordinate to place the card at
    """
    target = (x, y, width, height)
    nodes = graph.list_nodes()
    if not any(rectangles_intersect(target, (n.x, n.y, n.w, n.h)) for n in nodes):
        return y

    column = [n for n in nodes if not (x + width <= n.x or n.x + n.w <= x)]
    if not column:
        return y
    return max(n.y + n.h for n in column) + gap


def related_position(
    graph,
    origin: Node,
    direction: Direction,
    template: BuildingTemplate,
    recipe_index: int = 0,
    config: EditorConfig = DEFAULT_CONFIG,
) -> tuple[float, float]:
    """Where to put a card feeding or fed by origin.

    Consumers of origin's outputs go one column to the right, suppliers of its
    inputs one column to the left, starting at origin's Y and pushed down
    past any overlap.
    """
    sign = 1 if direction is Direction.OUTPUT else -1
    x = origin.x + sign * (origin.w + config.cards_horizontal_gap)
    width, height = building_dimensions(template, recipe_index, config)
    return x, find_suitable_y(graph, x, origin.y, width, height, config.card_vertical_gap)


def edge_anchors(
    graph, edge: Edge, config: EditorConfig = DEFAULT_CONFIG
) -> Optional[tuple[tuple[float, float], tuple[float, float]]]:
    """Normalized anchor points of an edge on its two cards.

    The start sits on the supplier's right border at its output row, the end on
    the consumer's left border at its input row. Returns None when either card
    or row no longer exists.
    """
    supplier = graph.get_node(edge.supplier_id)
    consumer = graph.get_node(edge.consumer_id)
    if supplier is None or consumer is None:
        return None
    output_index = find_slot_index(supplier, Direction.OUTPUT, edge.product)
    input_index = find_slot_index(consumer, Direction.INPUT, edge.product)
    if output_index < 0 or input_index < 0:
        return None
    return (
        (1.0, config.anchor_offset(output_index) / supplier.h),
        (0.0, config.anchor_offset(input_index) / consumer.h),
    )


def check_graph(graph) -> list[str]:
    """List every violated flow invariant in the graph.

    Checks, for every node and slot:
        committed amounts never exceed rate * multiplier
        no link amount is negative
        every link points at a stored counterpart that holds the same link
        every stored link is attached to exactly its two slots

    Args:
        graph: graph store

    Returns:
        human-readable problems, empty when the graph is consistent
    """
    problems = []
    attached: dict[str, int] = {}

    for node in graph.list_nodes():
        for direction in (Direction.INPUT, Direction.OUTPUT):
            for slot in node.slots(direction):
                used = used_capacity(slot)
                total = total_capacity(slot, node.multiplier)
                if used > total + _EPSILON:
                    problems.append(
                        f"{node.name} ({node.id}) {direction.value} '{slot.product}' "
                        f"uses {used:g} of {total:g}"
                    )
                for link in slot.links:
                    attached[link.id] = attached.get(link.id, 0) + 1
                    if link.amount < -_EPSILON:
                        problems.append(f"Link {link.id} has negative amount {link.amount:g}")
                    if graph.get_link(link.id) is not link:
                        problems.append(f"Link {link.id} on {node.id} is not in the link table")
                    counterpart = graph.get_node(slot.counterpart_of(link))
                    if counterpart is None:
                        problems.append(f"Link {link.id} on {node.id} points at a missing node")
                        continue
                    other = find_slot(counterpart, direction.opposite, slot.product)
                    if other is None or link not in other.links:
                        problems.append(f"Link {link.id} is not mirrored on {counterpart.id}")

    for link in graph.list_links():
        if attached.get(link.id, 0) != 2:
            problems.append(f"Link {link.id} is attached to {attached.get(link.id, 0)} slot(s)")

    return problems
