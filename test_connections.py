"""Tests for connection primitives and capacity math"""

from pytest import raises

from buildings import Connection, Direction, Link
from capacity import (
    available_capacity,
    max_transfer,
    redistribution_delta,
    total_capacity,
    used_capacity,
)
from connections import (
    add_connection,
    counterparts,
    find_link,
    find_slot,
    find_slot_index,
    get_connections,
    get_slot,
    remove_connection,
    require_slot,
    sort_by_priority,
)
from errors import SlotNotFound


def _attach(graph, supplier, consumer, product, amount):
    """Attach a link by hand, without any capacity logic"""
    link = graph.add_link(Link(supplier.id, consumer.id, product, amount))
    add_connection(supplier, Direction.OUTPUT, find_slot_index(supplier, Direction.OUTPUT, product), link)
    add_connection(consumer, Direction.INPUT, find_slot_index(consumer, Direction.INPUT, product), link)
    return link


def test_find_slot(place):
    """slots are found by product on one side only"""
    furnace = place("Furnace", "furnace")
    assert find_slot(furnace, Direction.INPUT, "Coal").product == "Coal"
    assert find_slot(furnace, Direction.OUTPUT, "Coal") is None
    assert find_slot_index(furnace, Direction.INPUT, "Coal") == 1
    assert find_slot_index(furnace, Direction.INPUT, "Water") == -1
    with raises(SlotNotFound):
        require_slot(furnace, Direction.OUTPUT, "Coal")
    with raises(SlotNotFound):
        get_slot(furnace, Direction.INPUT, 2)


def test_add_connection_skips_capacity_checks(graph, place):
    """add_connection appends even past capacity"""
    furnace = place("Furnace", "furnace")
    sink = place("Sink", "sink")

    link = _attach(graph, furnace, sink, "Iron", 50)

    assert furnace.outputs[0].links == [link]
    assert available_capacity(furnace.outputs[0], 1) == -40


def test_add_connection_bad_index(graph, place):
    """add_connection raises SlotNotFound for an out of range slot"""
    furnace = place("Furnace", "furnace")
    with raises(SlotNotFound):
        add_connection(furnace, Direction.OUTPUT, 4, Link("furnace", "x", "Iron"))


def test_remove_connection_detaches_both_sides(graph, place):
    """remove_connection returns the amount and clears the link everywhere"""
    furnace = place("Furnace", "furnace")
    sink = place("Sink", "sink")
    link = _attach(graph, furnace, sink, "Iron", 7)
    furnace.outputs[0].prioritized = "sink"

    removed = remove_connection(graph, furnace, Direction.OUTPUT, "sink", "Iron")

    assert removed == 7
    assert furnace.outputs[0].links == []
    assert sink.inputs[0].links == []
    assert furnace.outputs[0].prioritized is None
    assert graph.get_link(link.id) is None


def test_remove_connection_missing(graph, place):
    """removing an absent link returns 0; an absent slot raises"""
    furnace = place("Furnace", "furnace")
    assert remove_connection(graph, furnace, Direction.OUTPUT, "sink", "Iron") == 0.0
    with raises(SlotNotFound):
        remove_connection(graph, furnace, Direction.OUTPUT, "sink", "Water")


def test_get_connections_and_counterparts(graph, place):
    """connection views follow insertion order and mark the prioritized counterpart"""
    furnace = place("Furnace", "furnace")
    a = place("Sink", "a")
    b = place("Sink", "b")
    mine = place("OreMine", "mine")
    _attach(graph, furnace, a, "Iron", 3)
    _attach(graph, furnace, b, "Iron", 4)
    _attach(graph, mine, furnace, "Iron Ore", 5)
    furnace.outputs[0].prioritized = "b"

    views = get_connections(furnace.outputs[0])

    assert [(c.counterpart_id, c.amount, c.is_prioritized) for c in views] == [
        ("a", 3, False),
        ("b", 4, True),
    ]
    assert find_link(furnace.outputs[0], "b").amount == 4
    assert find_link(furnace.outputs[0], "mine") is None
    assert counterparts(furnace) == ["mine", "a", "b"]


def test_sort_by_priority_is_stable():
    """prioritized entries come first, the rest keep their order"""
    link = Link("s", "c", "Iron")
    views = [
        Connection("a", 1, False, link),
        Connection("b", 2, False, link),
        Connection("c", 3, True, link),
        Connection("d", 4, False, link),
    ]

    ordered = sort_by_priority(views)

    assert [c.counterpart_id for c in ordered] == ["c", "a", "b", "d"]
    assert [c.counterpart_id for c in views] == ["a", "b", "c", "d"]


def test_capacity_math(graph, place):
    """capacity helpers scale by multiplier and can ignore one counterpart"""
    furnace = place("Furnace", "furnace")
    a = place("Sink", "a")
    b = place("Sink", "b")
    _attach(graph, furnace, a, "Iron", 3)
    _attach(graph, furnace, b, "Iron", 4)
    output = furnace.outputs[0]

    assert total_capacity(output, 3) == 30
    assert used_capacity(output) == 7
    assert used_capacity(output, exclude_counterpart_id="a") == 4
    assert available_capacity(output, 1) == 3
    assert available_capacity(output, 1, exclude_counterpart_id="b") == 7


def test_redistribution_delta_and_max_transfer():
    """both helpers are plain minimums"""
    assert redistribution_delta(2, 10, 5) == 5
    assert redistribution_delta(8, 10, 5) == 2
    assert max_transfer(3, 9) == 3
    assert max_transfer(12, 9) == 9
