"""Graphviz export of a production chain"""

import graphviz

from buildings import Direction, Node
from capacity import total_capacity, used_capacity
from summary import format_amount, format_power

# Edge colours by product type
_TYPE_COLORS = {
    "Countable": "black",
    "Loose": "sienna",
    "Fluid": "royalblue",
    "Molten": "orangered",
    "Virtual": "gold3",
}
_DEFAULT_COLOR = "grey40"


def _get_edge_color(product_type: str, amount: float) -> str:
    """Get the edge color for a product type and committed amount.

    Precondition:
        amount is a non-negative float

    Postcondition:
        idle links (amount 0) are grey regardless of type
        known product types map to their colour, others to a neutral grey

    Args:
        product_type: catalog type of the product
        amount: committed amount per minute

    Returns:
        graphviz color string
    """
    if amount <= 0:
        return "grey70"
    return _TYPE_COLORS.get(product_type, _DEFAULT_COLOR)


def _node_label(node: Node) -> str:
    """Card title, multiplier and per-slot usage"""
    lines = [f"{node.name} x{node.multiplier}", node.recipe.name]
    for direction, arrow in ((Direction.INPUT, "in"), (Direction.OUTPUT, "out")):
        for slot in node.slots(direction):
            used = used_capacity(slot)
            total = total_capacity(slot, node.multiplier)
            lines.append(f"{arrow}: {slot.product} {format_amount(used)}/{format_amount(total)}")
    if node.building.electricity_consumed:
        lines.append(format_power(node.building.electricity_consumed * node.multiplier))
    return "\n".join(lines)


def to_graphviz(graph) -> graphviz.Digraph:
    """Build a left-to-right diagram of every node and link.

    Precondition:
        graph is a GraphStore

    Postcondition:
        one box per node, labelled with name, multiplier, recipe and slot usage
        one edge per link from supplier to consumer labelled "product\\namount/min"
        prioritized links are drawn bold, idle links dashed

    Args:
        graph: graph store

    Returns:
        graphviz Digraph
    """
    dot = graphviz.Digraph(comment="Production Chain")
    dot.attr(rankdir="LR")

    for node in graph.list_nodes():
        dot.node(node.id, _node_label(node), shape="box", style="filled", fillcolor="lightblue")

    for node in graph.list_nodes():
        for slot in node.outputs:
            for link in slot.links:
                if graph.get_node(link.consumer_id) is None:
                    continue
                attrs = {
                    "label": f"{link.product}\n{format_amount(link.amount)}/min",
                    "color": _get_edge_color(slot.product_type, link.amount),
                    "penwidth": "2",
                }
                if slot.prioritized == link.consumer_id:
                    attrs["style"] = "bold"
                    attrs["penwidth"] = "3"
                elif link.amount <= 0:
                    attrs["style"] = "dashed"
                dot.edge(link.supplier_id, link.consumer_id, **attrs)

    return dot
