"""Utility functions for parsing editing scripts."""

import shlex

from buildings import Direction


def split_command(line: str) -> list[str]:
    """Split one script line into words, honouring quotes.

    Precondition:
        line is a non-None string

    Postcondition:
        returns [] for blank lines and comment-only lines
        quoted words keep their spaces ("Iron Ore" is one word)
        the command word is lower-cased, arguments are left untouched

    Args:
        line: String like 'connect furnace caster "Molten Iron"'

    Returns:
        list of words, command first

    Raises:
        ValueError: if a quote is left open
    """
    words = shlex.split(line, comments=True)
    if words:
        words[0] = words[0].lower()
    return words


def parse_script(text: str) -> list[tuple[int, list[str]]]:
    """Split a multi-line script into numbered commands.

    Precondition:
        text is a string (may be empty)

    Postcondition:
        returns (line_number, words) for every non-empty command line
        line numbers start at 1
        comments (# ...) and empty lines are skipped

    Args:
        text: script contents

    Returns:
        list of (line_number, words) tuples

    Raises:
        ValueError: if a line has an unclosed quote
    """
    commands = []
    for number, line in enumerate(text.splitlines(), start=1):
        try:
            words = split_command(line)
        except ValueError as exc:
            raise ValueError(f"Line {number}: {exc}") from exc
        if words:
            commands.append((number, words))
    return commands


def parse_multiplier(text: str) -> int:
    """Convert a building count to a positive integer.

    Precondition:
        text is a non-None string

    Postcondition:
        returns int(text) when it is a whole number >= 1

    Args:
        text: string like "3"

    Returns:
        number of buildings

    Raises:
        ValueError: if text is not a positive integer
    """
    try:
        value = int(text.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid multiplier '{text}'. Must be a positive integer.") from exc
    if value < 1:
        raise ValueError(f"Invalid multiplier '{text}'. Must be a positive integer.")
    return value


def parse_index(text: str, what: str = "index") -> int:
    """Convert a zero-based position to int.

    Raises:
        ValueError: if text is not a non-negative integer
    """
    try:
        value = int(text.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid {what} '{text}'. Must be a whole number.") from exc
    if value < 0:
        raise ValueError(f"Invalid {what} '{text}'. Must not be negative.")
    return value


def parse_direction(text: str) -> Direction:
    """'input'/'in' or 'output'/'out' to a Direction; raises ValueError otherwise"""
    return Direction.parse(text)
