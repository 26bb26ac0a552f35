"""Flow allocation engine.

Every public function runs one user-level change to completion: it mutates the
links held by the graph store and re-settles every node the change touched.
Amounts are handed out greedily in priority order; nothing here searches for an
optimal distribution.
"""

import logging
from typing import Iterable, Optional

from buildings import Connection, Direction, Link, Node, Slot
from capacity import available_capacity, max_transfer, redistribution_delta, total_capacity
from connections import (
    add_connection,
    detach_link,
    find_link,
    find_slot,
    find_slot_index,
    get_connections,
    get_slot,
    remove_connection,
    require_slot,
    sort_by_priority,
)
from errors import InvalidConnection, NodeNotFound, SlotNotFound

_LOGGER = logging.getLogger("chaindraft")


def connect(graph, supplier_id: str, output_index: int, consumer_id: str, input_index: int) -> Link:
    """Link a supplier's output slot to a consumer's input slot.

    Precondition:
        both nodes are stored in graph

    Postcondition:
        a new Link carries min(free supply, free demand), never below 0
        existing links are left untouched, no room is made for the new one
        both slots reference the new link and an edge is drawn between the nodes
        if the pair is already linked for this product the existing link is returned
        on error nothing is mutated

    Args:
        graph: graph store
        supplier_id: node producing the product
        output_index: position of the supplier's output slot
        consumer_id: node consuming the product
        input_index: position of the consumer's input slot

    Returns:
        the link between the two slots

    Raises:
        InvalidConnection: if supplier and consumer are the same node
        NodeNotFound: if either node is missing
        SlotNotFound: if an index is out of range or the slot products differ
    """
    if supplier_id == consumer_id:
        raise InvalidConnection(f"Node '{supplier_id}' cannot supply itself")

    supplier = graph.require_node(supplier_id)
    consumer = graph.require_node(consumer_id)
    output = get_slot(supplier, Direction.OUTPUT, output_index)
    input_slot = get_slot(consumer, Direction.INPUT, input_index)
    if output.product != input_slot.product:
        raise SlotNotFound(
            f"Output '{output.product}' of {supplier.name} does not match "
            f"input '{input_slot.product}' of {consumer.name}"
        )

    existing = find_link(output, consumer_id)
    if existing is not None:
        _LOGGER.debug("%s already supplies %s with %s", supplier.name, consumer.name, output.product)
        return existing

    free_supply = available_capacity(output, supplier.multiplier)
    free_demand = available_capacity(input_slot, consumer.multiplier)
    amount = max(0.0, min(free_supply, free_demand))

    link = graph.add_link(Link(supplier_id, consumer_id, output.product, amount))
    add_connection(supplier, Direction.OUTPUT, output_index, link)
    add_connection(consumer, Direction.INPUT, input_index, link)
    graph.create_edge(supplier_id, consumer_id, output.product)

    _LOGGER.debug(
        "Connected %s -> %s: %s %.4g/min", supplier.name, consumer.name, output.product, amount
    )
    return link


def connect_product(graph, supplier_id: str, consumer_id: str, product: str) -> Link:
    """connect() with slot positions looked up by product name"""
    if supplier_id == consumer_id:
        raise InvalidConnection(f"Node '{supplier_id}' cannot supply itself")

    supplier = graph.require_node(supplier_id)
    consumer = graph.require_node(consumer_id)
    output_index = find_slot_index(supplier, Direction.OUTPUT, product)
    if output_index < 0:
        raise SlotNotFound(f"{supplier.name} does not produce '{product}'")
    input_index = find_slot_index(consumer, Direction.INPUT, product)
    if input_index < 0:
        raise SlotNotFound(f"{consumer.name} does not consume '{product}'")
    return connect(graph, supplier_id, output_index, consumer_id, input_index)


def redistribute(
    graph,
    node: Node,
    direction: Direction,
    product: str,
    amount: float,
    connections: Iterable[Connection],
) -> float:
    """Hand a freed amount to a slot's remaining connections.

    Precondition:
        connections are views of links still attached to node's slot
        amount is what a removed link on that slot used to carry

    Postcondition:
        connections are served prioritized first, then in insertion order
        each link grows by at most its counterpart's headroom, where headroom
        is the counterpart slot's free capacity ignoring its link to node
        amounts only increase and never exceed that headroom
        missing counterparts are skipped

    Args:
        graph: graph store
        node: node whose slot lost a link
        direction: side of that slot on node
        product: slot product
        amount: amount to hand out
        connections: remaining connections of the slot

    Returns:
        total amount moved, min(amount, total headroom)
    """
    if amount <= 0:
        return 0.0

    remaining = amount
    for connection in sort_by_priority(connections):
        counterpart = graph.get_node(connection.counterpart_id)
        if counterpart is None:
            _LOGGER.debug("Skipping missing counterpart %s", connection.counterpart_id)
            continue
        other = find_slot(counterpart, direction.opposite, product)
        if other is None:
            continue

        link = connection.link
        limit = available_capacity(other, counterpart.multiplier, exclude_counterpart_id=node.id)
        if link.amount < limit:
            delta = redistribution_delta(link.amount, limit, remaining)
            link.amount += delta
            remaining -= delta
            if remaining <= 0:
                break

    return amount - max(remaining, 0.0)


def disconnect(graph, node_id: str, counterpart_id: str, product: str, direction: Direction) -> float:
    """Remove a link and rebalance every node it touched.

    Precondition:
        direction is the side of node_id's slot the link is attached to

    Postcondition:
        the link and its edge are gone
        its amount was offered to the slot's other connections (redistribute)
        the node and each remaining counterpart were re-settled with recompute_all
        a missing link is a silent no-op returning 0.0

    Args:
        graph: graph store
        node_id: node owning the slot
        counterpart_id: node on the other end of the link
        product: slot product
        direction: side of the slot on node_id

    Returns:
        amount the removed link carried

    Raises:
        NodeNotFound: if node_id is missing
        SlotNotFound: if node_id has no slot for product on that side
    """
    node = graph.require_node(node_id)
    slot = require_slot(node, direction, product)
    link = find_link(slot, counterpart_id)
    if link is None:
        return 0.0

    rest = [connection for connection in get_connections(slot) if connection.link is not link]
    amount = remove_connection(graph, node, direction, counterpart_id, product)
    if direction is Direction.OUTPUT:
        graph.delete_edges_between(node_id, counterpart_id, product)
    else:
        graph.delete_edges_between(counterpart_id, node_id, product)

    moved = redistribute(graph, node, direction, product, amount, rest)
    _LOGGER.debug(
        "Disconnected %s from %s (%s): freed %.4g, redistributed %.4g",
        node.name, counterpart_id, product, amount, moved,
    )

    recompute_many(graph, [connection.counterpart_id for connection in rest] + [node_id])
    return amount


def release(graph, node_id: str, link: Link) -> float:
    """Dissolve one of node_id's links from the counterpart's side.

    The counterpart's slot redistributes the freed amount among its other
    connections, as if the user had disconnected it there. When the
    counterpart is gone the link is simply dropped.

    Returns:
        amount the link carried
    """
    counterpart_id = link.counterpart(node_id)
    far_side = Direction.OUTPUT if link.consumer_id == node_id else Direction.INPUT
    try:
        return disconnect(graph, counterpart_id, node_id, link.product, far_side)
    except (NodeNotFound, SlotNotFound) as exc:
        _LOGGER.debug("Dropping link %s without redistribution: %s", link.id, exc)

    node = graph.get_node(node_id)
    if node is not None:
        slot = find_slot(node, far_side.opposite, link.product)
        if slot is not None:
            detach_link(slot, link)
    graph.remove_link(link.id)
    graph.delete_edges_between(link.supplier_id, link.consumer_id, link.product)
    return link.amount


def _settle_slot(graph, node: Node, slot: Slot, multiplier: int) -> None:
    """Water-fill one slot's capacity over its connections in priority order.

    A link whose counterpart is unreachable keeps its amount, cut down to the
    capacity still left when its turn comes.
    """
    remaining = total_capacity(slot, multiplier)
    for connection in sort_by_priority(get_connections(slot)):
        link = connection.link
        counterpart = graph.get_node(connection.counterpart_id)
        other = find_slot(counterpart, slot.direction.opposite, slot.product) if counterpart else None
        if other is None:
            _LOGGER.debug("Skipping unreachable counterpart %s", connection.counterpart_id)
            link.amount = max(0.0, min(link.amount, remaining))
            remaining -= link.amount
            continue

        headroom = available_capacity(other, counterpart.multiplier, exclude_counterpart_id=node.id)
        amount = max(0.0, max_transfer(headroom, remaining))
        link.amount = amount
        remaining -= amount


def recompute_all(graph, node_id: str, multiplier: Optional[int] = None) -> Node:
    """Recompute every link amount of a node.

    Precondition:
        multiplier, when given, is a positive integer

    Postcondition:
        outputs, then inputs, are settled slot by slot: capacity rate * multiplier
        is handed out prioritized first, then in insertion order, each link getting
        min(counterpart headroom ignoring this node, capacity left), floored at 0
        both ends of every link observe the new amount immediately
        leftover capacity stays idle
        the node's multiplier is written once, after all slots are settled
        calling it again with the same multiplier changes nothing

    Args:
        graph: graph store
        node_id: node to settle
        multiplier: new number of building instances, current one when None

    Returns:
        the settled node

    Raises:
        NodeNotFound: if node_id is missing
    """
    node = graph.require_node(node_id)
    if multiplier is None:
        multiplier = node.multiplier

    for direction in (Direction.OUTPUT, Direction.INPUT):
        for slot in node.slots(direction):
            _settle_slot(graph, node, slot, multiplier)

    return graph.update_node(node_id, multiplier=multiplier)


def recompute_many(graph, node_ids: Iterable[str]) -> list[Node]:
    """recompute_all for each id once, in order, skipping missing nodes"""
    settled = []
    for node_id in dict.fromkeys(node_ids):
        try:
            settled.append(recompute_all(graph, node_id))
        except NodeNotFound:
            _LOGGER.debug("Skipping recompute of missing node %s", node_id)
    return settled


def rescale(graph, node_id: str, multiplier: int) -> Node:
    """Change how many building instances a node stands for.

    Raises:
        ValueError: if multiplier is not a positive integer
        NodeNotFound: if node_id is missing
    """
    if isinstance(multiplier, bool) or not isinstance(multiplier, int) or multiplier < 1:
        raise ValueError(f"Invalid multiplier '{multiplier}'. Must be a positive integer.")
    node = recompute_all(graph, node_id, multiplier)
    _LOGGER.debug("Rescaled %s to x%s", node.name, multiplier)
    return node


def prioritize(
    graph, node_id: str, direction: Direction, product: str, preferred_counterpart_id: str
) -> bool:
    """Make one counterpart the first one served by a slot.

    Precondition:
        preferred_counterpart_id is linked to the slot

    Postcondition:
        the slot has exactly one prioritized counterpart, replacing any previous one
        the node is re-settled so the preferred counterpart is served first
        returns False without changes when the counterpart is not linked

    Raises:
        NodeNotFound: if node_id is missing
        SlotNotFound: if the node has no slot for product on that side
    """
    node = graph.require_node(node_id)
    slot = require_slot(node, direction, product)
    if find_link(slot, preferred_counterpart_id) is None:
        _LOGGER.debug("%s is not linked to %s for %s", node.name, preferred_counterpart_id, product)
        return False

    slot.prioritized = preferred_counterpart_id
    recompute_all(graph, node_id)
    return True


def clear_priority(graph, node_id: str, direction: Direction, product: str) -> None:
    """Drop a slot's prioritized counterpart and re-settle the node"""
    node = graph.require_node(node_id)
    require_slot(node, direction, product).prioritized = None
    recompute_all(graph, node_id)


def claim_priority(graph, node_id: str, direction: Direction, product: str) -> list[str]:
    """Make this node the prioritized counterpart on every node linked to one of its slots.

    Each counterpart's reciprocal slot now serves node_id first and is re-settled.

    Returns:
        ids of the counterparts that were updated

    Raises:
        NodeNotFound: if node_id is missing
        SlotNotFound: if the node has no slot for product on that side
    """
    node = graph.require_node(node_id)
    slot = require_slot(node, direction, product)
    updated = []
    for connection in get_connections(slot):
        counterpart = graph.get_node(connection.counterpart_id)
        if counterpart is None:
            continue
        other = find_slot(counterpart, direction.opposite, product)
        if other is None:
            continue
        other.prioritized = node_id
        recompute_all(graph, counterpart.id)
        updated.append(counterpart.id)
    return updated
