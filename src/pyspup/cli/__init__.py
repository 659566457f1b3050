"""
pyspup command-line interface.

Usage:
    pyspup sample [options]        Generate a Monte Carlo sample from a configuration
    pyspup correlogram [options]   Tabulate or plot a correlogram model
    python -m pyspup <command>     Same as above
"""

from __future__ import annotations

import argparse
import logging

from pyspup import __version__


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="pyspup",
        description="Spatial uncertainty propagation: Monte Carlo sampling of uncertain inputs.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log sampling progress to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Register subcommands
    from pyspup.cli.correlogram import add_correlogram_parser
    from pyspup.cli.sample import add_sample_parser

    add_sample_parser(subparsers)
    add_correlogram_parser(subparsers)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Dispatch to the subcommand handler
    result: int = args.func(args)
    return result


__all__ = ["main"]
