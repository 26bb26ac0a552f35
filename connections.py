"""Primitives over a single node's slots and their links"""

from typing import Iterable, Optional

from buildings import Connection, Direction, Link, Node, Slot
from errors import SlotNotFound


def find_slot(node: Node, direction: Direction, product: str) -> Optional[Slot]:
    """The node's slot for a product on one side, None when absent"""
    for slot in node.slots(direction):
        if slot.product == product:
            return slot
    return None


def find_slot_index(node: Node, direction: Direction, product: str) -> int:
    """Position of the product's slot on one side, -1 when absent"""
    for index, slot in enumerate(node.slots(direction)):
        if slot.product == product:
            return index
    return -1


def require_slot(node: Node, direction: Direction, product: str) -> Slot:
    """Like find_slot, but raises SlotNotFound"""
    slot = find_slot(node, direction, product)
    if slot is None:
        raise SlotNotFound(f"{node.name} ({node.id}) has no {direction.value} slot for '{product}'")
    return slot


def get_slot(node: Node, direction: Direction, index: int) -> Slot:
    """The slot at a position on one side.

    Raises:
        SlotNotFound: if index is out of range
    """
    slots = node.slots(direction)
    if not 0 <= index < len(slots):
        raise SlotNotFound(f"{node.name} ({node.id}) has no {direction.value} slot at index {index}")
    return slots[index]


def find_link(slot: Slot, counterpart_id: str) -> Optional[Link]:
    """The slot's link to a given counterpart, None when not connected"""
    for link in slot.links:
        if slot.counterpart_of(link) == counterpart_id:
            return link
    return None


def get_connections(slot: Slot) -> list[Connection]:
    """Per-side view of a slot's links, in insertion order"""
    return [
        Connection(
            counterpart_id=slot.counterpart_of(link),
            amount=link.amount,
            is_prioritized=slot.prioritized is not None
            and slot.counterpart_of(link) == slot.prioritized,
            link=link,
        )
        for link in slot.links
    ]


def sort_by_priority(connections: Iterable[Connection]) -> list[Connection]:
    """Prioritized connections first; relative order is otherwise preserved.

    Precondition:
        connections is an iterable of Connection views

    Postcondition:
        returns a new list, the input is not modified
        all is_prioritized entries precede all others
        the sort is stable, so ties keep insertion order

    Args:
        connections: connection views to order

    Returns:
        ordered list of connections
    """
    return sorted(connections, key=lambda connection: not connection.is_prioritized)


def counterparts(node: Node) -> list[str]:
    """Ids of every node linked to this one, first-seen order"""
    seen: dict[str, None] = {}
    for slot in node.inputs + node.outputs:
        for link in slot.links:
            seen.setdefault(slot.counterpart_of(link), None)
    return list(seen)


def add_connection(node: Node, direction: Direction, slot_index: int, link: Link) -> Slot:
    """Append a link to one of the node's slots.

    Precondition:
        link.product matches the slot product

    Postcondition:
        link is the last entry of the slot's links
        capacity is not checked here

    Args:
        node: node owning the slot
        direction: side of the slot
        slot_index: position of the slot on that side
        link: link to attach

    Returns:
        the slot the link was attached to

    Raises:
        SlotNotFound: if slot_index is out of range
    """
    slot = get_slot(node, direction, slot_index)
    slot.links.append(link)
    return slot


def detach_link(slot: Slot, link: Link) -> None:
    """Drop a link from a slot, clearing the slot's priority if it pointed there"""
    if link in slot.links:
        slot.links.remove(link)
        if slot.prioritized == slot.counterpart_of(link):
            slot.prioritized = None


def remove_connection(graph, node: Node, direction: Direction, counterpart_id: str, product: str) -> float:
    """Remove the link between a node's slot and a counterpart.

    Precondition:
        graph is the GraphStore holding node and its links

    Postcondition:
        the link is gone from both slots it was attached to and from the link table
        priority flags pointing at the removed counterpart are cleared
        returns the removed amount, 0.0 when no such link existed

    Args:
        graph: graph store
        node: node whose slot is edited
        direction: side of the slot on node
        counterpart_id: node on the other end
        product: product of the slot

    Returns:
        amount the removed link carried

    Raises:
        SlotNotFound: if node has no slot for product on that side
    """
    slot = require_slot(node, direction, product)
    link = find_link(slot, counterpart_id)
    if link is None:
        return 0.0

    detach_link(slot, link)
    counterpart = graph.get_node(counterpart_id)
    if counterpart is not None:
        other = find_slot(counterpart, direction.opposite, product)
        if other is not None:
            detach_link(other, link)
    graph.remove_link(link.id)
    return link.amount
