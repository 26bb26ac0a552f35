"""Aggregate totals over every placed building"""

from collections import defaultdict
from dataclasses import dataclass, field

from buildings import Direction, Node
from capacity import total_capacity, used_capacity

# Below this magnitude a balance is treated as zero
_TOLERANCE = 0.001


def format_amount(value: float) -> str:
    """Integers as-is, otherwise at most two decimals without trailing zeros"""
    if float(value).is_integer():
        return str(int(value))
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_power(kilowatts: float) -> str:
    """Electricity for display: KW below 1000, MW above"""
    if kilowatts < 1000:
        return f"{format_amount(kilowatts)} KW"
    return f"{format_amount(kilowatts / 1000)} MW"


@dataclass
class SlotThroughput:
    """Usage of one slot of one node"""

    product: str
    direction: Direction
    used: float
    capacity: float

    @property
    def idle(self) -> float:
        return max(self.capacity - self.used, 0.0)


@dataclass
class GraphTotals:
    """Summary of a graph's flows and upkeep, all per minute and scaled by multipliers"""

    # Product -> output capacity of every node
    produced: dict[str, float] = field(default_factory=dict)

    # Product -> output amount committed to links
    supplied: dict[str, float] = field(default_factory=dict)

    # Product -> input capacity of every node
    consumed: dict[str, float] = field(default_factory=dict)

    # Product -> input amount received through links
    received: dict[str, float] = field(default_factory=dict)

    # Product -> produced minus consumed (negative = must be brought in)
    net_balance: dict[str, float] = field(default_factory=dict)

    # Product -> output capacity nobody takes
    idle_output: dict[str, float] = field(default_factory=dict)

    # Product -> input capacity nobody feeds
    unmet_input: dict[str, float] = field(default_factory=dict)

    # Building name -> number of physical buildings
    building_counts: dict[str, int] = field(default_factory=dict)

    # Maintenance product -> amount
    maintenance: dict[str, float] = field(default_factory=dict)

    # Product -> amount needed to construct everything
    build_costs: dict[str, float] = field(default_factory=dict)

    workers: float = 0.0
    electricity_consumed: float = 0.0
    electricity_generated: float = 0.0
    computing_consumed: float = 0.0
    computing_generated: float = 0.0
    unity_cost: float = 0.0


def node_throughput(node: Node) -> list[SlotThroughput]:
    """Used and total capacity of every slot of a node, inputs first"""
    return [
        SlotThroughput(
            product=slot.product,
            direction=direction,
            used=used_capacity(slot),
            capacity=total_capacity(slot, node.multiplier),
        )
        for direction in (Direction.INPUT, Direction.OUTPUT)
        for slot in node.slots(direction)
    ]


def _add_node_upkeep(node: Node, totals: GraphTotals) -> None:
    """Scale a node's building attributes by its multiplier and add them up"""
    building = node.building
    count = node.multiplier
    totals.building_counts[building.name] = totals.building_counts.get(building.name, 0) + count
    totals.workers += building.workers * count
    totals.electricity_consumed += building.electricity_consumed * count
    totals.electricity_generated += building.electricity_generated * count
    totals.computing_consumed += building.computing_consumed * count
    totals.computing_generated += building.computing_generated * count
    totals.unity_cost += building.unity_cost * count
    if building.maintenance_cost_units and building.maintenance_cost_quantity:
        units = building.maintenance_cost_units
        totals.maintenance[units] = (
            totals.maintenance.get(units, 0.0) + building.maintenance_cost_quantity * count
        )
    for product, quantity in building.build_costs.items():
        totals.build_costs[product] = totals.build_costs.get(product, 0.0) + quantity * count


def summarize(graph) -> GraphTotals:
    """Compute totals over every node in the graph.

    Precondition:
        graph is a GraphStore

    Postcondition:
        flows are summed per product from slot capacities and link amounts
        idle_output and unmet_input only list products above a small tolerance
        upkeep attributes are multiplied by each node's multiplier

    Args:
        graph: graph store

    Returns:
        GraphTotals for the whole graph
    """
    totals = GraphTotals()
    produced = defaultdict(float)
    supplied = defaultdict(float)
    consumed = defaultdict(float)
    received = defaultdict(float)

    for node in graph.list_nodes():
        for usage in node_throughput(node):
            if usage.direction is Direction.OUTPUT:
                produced[usage.product] += usage.capacity
                supplied[usage.product] += usage.used
            else:
                consumed[usage.product] += usage.capacity
                received[usage.product] += usage.used
        _add_node_upkeep(node, totals)

    totals.produced = dict(produced)
    totals.supplied = dict(supplied)
    totals.consumed = dict(consumed)
    totals.received = dict(received)

    for product in produced.keys() | consumed.keys():
        totals.net_balance[product] = produced[product] - consumed[product]
    for product, capacity in produced.items():
        if capacity - supplied[product] > _TOLERANCE:
            totals.idle_output[product] = capacity - supplied[product]
    for product, capacity in consumed.items():
        if capacity - received[product] > _TOLERANCE:
            totals.unmet_input[product] = capacity - received[product]

    return totals
