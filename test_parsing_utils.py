"""Tests for parsing_utils module"""

from pytest import raises

from buildings import Direction
from parsing_utils import parse_direction, parse_index, parse_multiplier, parse_script, split_command


def test_split_command_basic():
    """split_command should split words and lower-case the command"""
    assert split_command("PLACE furnace BlastFurnace") == ["place", "furnace", "BlastFurnace"]


def test_split_command_quotes():
    """quoted product names stay one word"""
    words = split_command('connect furnace caster "Molten Iron"')
    assert words == ["connect", "furnace", "caster", "Molten Iron"]

    print(f"✓ Split: {words}")


def test_split_command_comments_and_blank():
    """comments and blank lines give no words"""
    assert split_command("# just a comment") == []
    assert split_command("   ") == []
    assert split_command("scale furnace 2  # two of them") == ["scale", "furnace", "2"]


def test_split_command_unclosed_quote():
    """an unclosed quote should raise ValueError"""
    with raises(ValueError):
        split_command('connect a b "Iron Ore')


def test_parse_script_numbers_lines():
    """parse_script keeps the script line numbers"""
    text = """
# header
place mine OreMine

connect mine furnace "Iron Ore"
"""
    commands = parse_script(text)
    assert commands == [
        (3, ["place", "mine", "OreMine"]),
        (5, ["connect", "mine", "furnace", "Iron Ore"]),
    ]


def test_parse_script_reports_line():
    """parse errors mention the line number"""
    with raises(ValueError, match="Line 2"):
        parse_script('place a Sink\nconnect a b "oops')


def test_parse_multiplier():
    """multipliers must be positive integers"""
    assert parse_multiplier("3") == 3
    assert parse_multiplier(" 12 ") == 12
    for bad in ("0", "-2", "1.5", "two", ""):
        with raises(ValueError, match="Invalid multiplier"):
            parse_multiplier(bad)


def test_parse_index():
    """indices must be non-negative integers"""
    assert parse_index("0") == 0
    with raises(ValueError, match="recipe index"):
        parse_index("-1", "recipe index")
    with raises(ValueError):
        parse_index("x")


def test_parse_direction():
    """directions accept short and long names"""
    assert parse_direction("out") is Direction.OUTPUT
    assert parse_direction("INPUT") is Direction.INPUT
    with raises(ValueError):
        parse_direction("up")
