"""
CLI subcommand for Monte Carlo sample generation.

Usage::

    pyspup sample --config dem.json --output dem_sample.csv --n 100 --seed 1
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def add_sample_parser(subparsers: argparse._SubParsersAction) -> None:  # type: ignore[type-arg]
    """Register the ``pyspup sample`` subcommand."""
    p = subparsers.add_parser(
        "sample",
        help="Generate a Monte Carlo sample from a JSON configuration",
    )
    p.add_argument(
        "--config",
        type=str,
        required=True,
        help="JSON configuration with 'sampling' and 'variables' sections",
    )
    p.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output CSV file (one file per variable for joint models)",
    )
    p.add_argument("--n", type=int, default=None, help="Number of realizations")
    p.add_argument(
        "--method",
        type=str,
        default=None,
        choices=["ugs", "randomSampling", "stratifiedSampling", "lhs"],
        help="Sampling method",
    )
    p.add_argument("--seed", type=int, default=None, help="Random seed")
    p.add_argument(
        "--neighborhood-limit",
        type=int,
        default=None,
        help="Maximum number of neighbours per location for 'ugs'",
    )
    p.add_argument(
        "--no-coordinates",
        action="store_true",
        help="Omit the x and y columns from the output",
    )
    p.set_defaults(func=run_sample)


def run_sample(args: argparse.Namespace) -> int:
    """Execute sample generation."""
    from pyspup.core.exceptions import PySpupError
    from pyspup.io.config import load_config
    from pyspup.io.surfaces import write_sample_csv
    from pyspup.sampling.orchestrator import gen_sample

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: configuration file not found: {config_path}", file=sys.stderr)
        return 1

    try:
        model, config = load_config(config_path)
        if args.n is not None:
            config.n = args.n
        if args.method is not None:
            config.method = args.method
        if args.seed is not None:
            config.seed = args.seed
        if args.neighborhood_limit is not None:
            config.neighborhood_limit = args.neighborhood_limit

        kwargs = config.sample_kwargs()
        kwargs["as_table"] = False
        sample = gen_sample(model, **kwargs)
        written = write_sample_csv(
            sample, args.output, include_coordinates=not args.no_coordinates
        )
    except PySpupError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for path in written:
        print(f"Wrote {config.n} realizations to: {path}")
    return 0
