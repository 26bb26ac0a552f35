#!/usr/bin/env python3
"""Command-line interface for editing production chains from a script."""

import argparse
import sys
import logging
from pathlib import Path

from catalog import DEFAULT_CATALOG_PATH, load_catalog
from editor_controller import EditorController
from errors import FlowError
from parsing_utils import parse_direction, parse_index, parse_multiplier, parse_script
from summary import GraphTotals, format_amount, format_power

# command -> (min args, max args, usage)
_COMMANDS = {
    "place": (2, 3, "place <alias> <building_id> [recipe_index]"),
    "attach": (5, 6, "attach <alias> <origin> input|output <product> <building_id> [recipe_id]"),
    "connect": (3, 3, "connect <supplier> <consumer> <product>"),
    "disconnect": (3, 3, "disconnect <supplier> <consumer> <product>"),
    "scale": (2, 2, "scale <alias> <count>"),
    "tier": (2, 2, "tier <alias> <building_id>"),
    "upgrade": (1, 1, "upgrade <alias>"),
    "downgrade": (1, 1, "downgrade <alias>"),
    "prioritize": (4, 4, "prioritize <alias> input|output <product> <counterpart>"),
    "claim": (3, 3, "claim <alias> input|output <product>"),
    "delete": (1, 1, "delete <alias>"),
}


class ScriptRunner:
    """Applies script commands to a controller, naming placed buildings by alias"""

    def __init__(self, controller: EditorController):
        self.controller = controller
        self.aliases: dict[str, str] = {}

    def node_id(self, alias: str) -> str:
        """Resolve an alias to the id of the building it names.

        Raises:
            ValueError: if the alias was never placed or was deleted
        """
        if alias not in self.aliases:
            raise ValueError(f"Unknown building '{alias}'")
        return self.aliases[alias]

    def _new_alias(self, alias: str) -> None:
        if alias in self.aliases:
            raise ValueError(f"Building '{alias}' already exists")

    def run(self, text: str) -> None:
        """Run every command of a script, stopping at the first failure.

        Precondition:
            text is the script contents

        Postcondition:
            commands ran in order until one failed
            the failing line number is prefixed to the error message

        Args:
            text: script contents

        Raises:
            ValueError: if a command is unknown, malformed or rejected
        """
        for number, words in parse_script(text):
            try:
                self.execute(words)
            except (ValueError, FlowError) as exc:
                raise ValueError(f"Line {number}: {exc}") from exc

    def execute(self, words: list[str]) -> None:
        """Run one already split command"""
        command, args = words[0], words[1:]
        if command not in _COMMANDS:
            raise ValueError(f"Unknown command '{command}'")
        low, high, usage = _COMMANDS[command]
        if not low <= len(args) <= high:
            raise ValueError(f"Usage: {usage}")
        getattr(self, f"_do_{command}")(*args)

    def _do_place(self, alias, building_id, recipe_index="0"):
        self._new_alias(alias)
        node = self.controller.place_building(
            building_id, recipe_index=parse_index(recipe_index, "recipe index")
        )
        self.aliases[alias] = node.id

    def _do_attach(self, alias, origin, direction, product, building_id, recipe_id=None):
        self._new_alias(alias)
        node = self.controller.add_related_building(
            self.node_id(origin), parse_direction(direction), product, building_id, recipe_id
        )
        self.aliases[alias] = node.id

    def _do_connect(self, supplier, consumer, product):
        self.controller.connect(self.node_id(supplier), self.node_id(consumer), product)

    def _do_disconnect(self, supplier, consumer, product):
        self.controller.disconnect(self.node_id(supplier), self.node_id(consumer), product)

    def _do_scale(self, alias, count):
        self.controller.rescale(self.node_id(alias), parse_multiplier(count))

    def _do_tier(self, alias, building_id):
        if not self.controller.change_tier(self.node_id(alias), building_id):
            raise ValueError(f"Building template '{building_id}' not found")

    def _do_upgrade(self, alias):
        if not self.controller.increase_tier(self.node_id(alias)):
            raise ValueError(f"'{alias}' has no next tier")

    def _do_downgrade(self, alias):
        if not self.controller.decrease_tier(self.node_id(alias)):
            raise ValueError(f"'{alias}' has no previous tier")

    def _do_prioritize(self, alias, direction, product, counterpart):
        if not self.controller.prioritize(
            self.node_id(alias), parse_direction(direction), product, self.node_id(counterpart)
        ):
            raise ValueError(f"'{alias}' is not connected to '{counterpart}' for {product}")

    def _do_claim(self, alias, direction, product):
        self.controller.claim_priority(self.node_id(alias), parse_direction(direction), product)

    def _do_delete(self, alias):
        self.controller.delete_building(self.node_id(alias))
        del self.aliases[alias]


def format_summary(totals: GraphTotals) -> str:
    """Render totals as indented text.

    Precondition:
        totals is a GraphTotals

    Postcondition:
        returns multi-line text with buildings, upkeep and per-product balance
        empty sections are omitted

    Args:
        totals: aggregate totals of a graph

    Returns:
        formatted string
    """
    lines = []

    if totals.building_counts:
        lines.append("Buildings:")
        for name, count in totals.building_counts.items():
            lines.append(f"  - {name}: {count}")

    lines.append(f"Workers: {format_amount(totals.workers)}")
    lines.append(
        f"Electricity: {format_power(totals.electricity_consumed)} consumed, "
        f"{format_power(totals.electricity_generated)} generated"
    )
    if totals.computing_consumed or totals.computing_generated:
        lines.append(
            f"Computing: {format_amount(totals.computing_consumed)} consumed, "
            f"{format_amount(totals.computing_generated)} generated"
        )
    for title, amounts in (("Maintenance", totals.maintenance), ("Build costs", totals.build_costs)):
        if amounts:
            lines.append(f"{title}:")
            for product, amount in amounts.items():
                lines.append(f"  - {product}: {format_amount(amount)}")

    if totals.net_balance:
        lines.append("Balance (/min):")
        for product in sorted(totals.net_balance):
            lines.append(
                f"  - {product}: {format_amount(totals.produced.get(product, 0.0))} produced, "
                f"{format_amount(totals.consumed.get(product, 0.0))} consumed"
            )
    for title, amounts in (("Unmet input", totals.unmet_input), ("Idle output", totals.idle_output)):
        if amounts:
            lines.append(f"{title} (/min):")
            for product in sorted(amounts):
                lines.append(f"  - {product}: {format_amount(amounts[product])}")

    return "\n".join(lines)


def _read_script(path: str) -> str:
    """Script contents from a file, or stdin for "-" """
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _output_graphviz(graphviz_source: str, output_file: str | None) -> None:
    """Write graphviz source to file or stdout.

    Precondition:
        graphviz_source is a non-empty string
        output_file is either None or a valid file path

    Postcondition:
        graphviz source is written to file or stdout
        success message is printed to stderr if file written

    Args:
        graphviz_source: graphviz source code to output
        output_file: optional file path to write to (None = stdout)
    """
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(graphviz_source)
        print(f"\nGraphviz written to {output_file}", file=sys.stderr)
    else:
        print(graphviz_source)


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser.

    Precondition:
        none

    Postcondition:
        returns configured ArgumentParser with all CLI arguments defined

    Returns:
        ArgumentParser instance ready to parse command-line arguments
    """
    parser = argparse.ArgumentParser(
        description="Edit a production chain from a script of editing commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Script commands (one per line, # starts a comment):
  place mine OreMine 0
  place furnace BlastFurnace
  connect mine furnace "Iron Ore"
  attach caster furnace output "Molten Iron" IronCaster
  scale furnace 2
  upgrade furnace
  delete mine

Examples:
  # Print graphviz source of the resulting chain
  %(prog)s --script chain.txt

  # Print totals only, with a custom catalog
  %(prog)s --script chain.txt --catalog my_catalog.json --summary --no-graph
        """,
    )

    parser.add_argument(
        "--script",
        "-s",
        required=True,
        help='Editing script to run, "-" reads from stdin',
    )

    parser.add_argument(
        "--catalog",
        "-c",
        default=str(DEFAULT_CATALOG_PATH),
        help="Catalog JSON file (default: bundled catalog.json)",
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print totals of the resulting chain to stderr",
    )

    parser.add_argument(
        "--no-graph",
        action="store_true",
        help="Do not output graphviz source",
    )

    parser.add_argument(
        "--output-file", "-f", help="Write graphviz output to file instead of stdout"
    )

    return parser


def main():
    """Main CLI function.

    Precondition:
        command-line arguments are available via sys.argv

    Postcondition:
        the script is applied to an empty chain
        returns 0 on success, 1 on error
        graphviz output is written to file or stdout unless --no-graph

    Returns:
        exit code (0=success, 1=error)
    """
    parser = _create_argument_parser()
    args = parser.parse_args()

    # Setup logging to capture controller messages
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    try:
        catalog = load_catalog(Path(args.catalog))
        controller = EditorController(catalog)
        ScriptRunner(controller).run(_read_script(args.script))

        if args.summary:
            print(format_summary(controller.summary()), file=sys.stderr)

        if not args.no_graph:
            _output_graphviz(controller.to_graphviz().source, args.output_file)

        return 0

    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
