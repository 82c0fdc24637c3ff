#!/usr/bin/env python3
"""Command-line interface for production flow planning."""

import argparse
import json
import sys
import logging

from catalog import get_default_catalog, load_catalog
from layout import graphviz_layout, layered_layout
from parsing_utils import parse_item_quality, parse_material_rate
from planner_controller import PlannerController
from render import to_dict, to_graphviz
from sources import OreQuality


def parse_source_list(text):
    """Parse comma-separated item:QUALITY pairs into ordered source lists.

    Precondition:
        text is a string (may be empty or whitespace-only)

    Postcondition:
        returns dict mapping item ids to lists of OreQuality
        empty/whitespace text returns empty dict
        repeated items accumulate sources in the order given
        quality strings are case-insensitive

    Args:
        text: String like "titanium_ore:PURE, titanium_ore:NORMAL"

    Returns:
        dict of {item_id: [OreQuality, ...]}

    Raises:
        ValueError: if any item has invalid format or quality
    """
    if not text or not text.strip():
        return {}

    result: dict[str, list[OreQuality]] = {}
    for item in [stripped for item in text.split(",") if (stripped := item.strip())]:
        item_id, quality = parse_item_quality(item)
        result.setdefault(item_id, []).append(quality)

    return result


def _print_plan_info(target_item_id: str, target_amount: float, sources: dict) -> None:
    """Print information about the requested plan to stderr."""
    print(f"Planning {target_item_id} at {target_amount}/min", file=sys.stderr)
    for item_id, qualities in sources.items():
        print(f"Sources for {item_id}: {', '.join(q.name for q in qualities)}", file=sys.stderr)


def _generate_output(args, target_item_id: str, target_amount: float, sources: dict) -> str:
    """Generate the flow graph and serialize it in the requested format.

    Precondition:
        args has catalog, layout and format attributes

    Postcondition:
        returns DOT source or indented JSON text

    Raises:
        ValueError: if the catalog, target or sources are invalid
    """
    catalog = load_catalog(args.catalog) if args.catalog else get_default_catalog()
    layout = graphviz_layout if args.layout == "dot" else layered_layout
    controller = PlannerController(catalog, layout=layout)
    controller.set_target_item(target_item_id)
    controller.set_target_amount(target_amount)
    controller.set_ore_sources(sources)

    flow_graph = controller.generate_flow_graph()
    if args.format == "json":
        return json.dumps(to_dict(flow_graph), indent=2)
    return to_graphviz(flow_graph, dict(catalog.items)).source


def _write_output(text: str, output_file: str | None) -> None:
    """Write text to file or stdout.

    Precondition:
        output_file is either None or a valid file path

    Postcondition:
        text is written to file or stdout
        success message is printed to stderr if file written
    """
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"\nFlow graph written to {output_file}", file=sys.stderr)
    else:
        print("\n" + "=" * 60, file=sys.stderr)
        print(text)


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser.

    Returns:
        ArgumentParser instance ready to parse command-line arguments
    """
    parser = argparse.ArgumentParser(
        description="Plan production flow graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Simple chain
  %(prog)s --target "titanium_beam:40"

  # Two titanium deposits of different quality
  %(prog)s --target "titanium_beam:40" --sources "titanium_ore:PURE, titanium_ore:IMPURE"

  # JSON output using a custom catalog
  %(prog)s --target "reinforced_frame:5" --catalog my_catalog.json --format json
        """,
    )

    parser.add_argument(
        "--target",
        "-t",
        required=True,
        help='Target as "item:rate"',
    )

    parser.add_argument(
        "--sources",
        "-s",
        default="",
        help='Ore sources as "item:QUALITY, item:QUALITY, ..." (optional)',
    )

    parser.add_argument(
        "--catalog",
        "-c",
        help="Catalog JSON file (default: bundled catalog)",
    )

    parser.add_argument(
        "--layout",
        "-l",
        choices=["layered", "dot"],
        default="layered",
        help="Layout engine (dot requires Graphviz to be installed)",
    )

    parser.add_argument(
        "--format",
        choices=["dot", "json"],
        default="dot",
        help="Output format",
    )

    parser.add_argument(
        "--output-file", "-f", help="Write output to file instead of stdout"
    )

    return parser


def main(argv=None):
    """Main CLI function.

    Precondition:
        argv is None (use sys.argv) or a list of argument strings

    Postcondition:
        flow graph is generated and output
        returns 0 on success, 1 on error

    Returns:
        exit code (0=success, 1=error)
    """
    parser = _create_argument_parser()
    args = parser.parse_args(argv)

    # Setup logging to capture controller messages
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    try:
        target_item_id, target_amount = parse_material_rate(args.target)
        sources = parse_source_list(args.sources)

        _print_plan_info(target_item_id, target_amount, sources)
        text = _generate_output(args, target_item_id, target_amount, sources)
        _write_output(text, args.output_file)

        return 0

    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
