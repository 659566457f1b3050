"""
CLI subcommand for correlogram inspection.

Usage::

    pyspup correlogram --sill 0.78 --range 321 --family Exp
    pyspup correlogram --sill 0.78 --range 321 --output dem_crm.png
"""

from __future__ import annotations

import argparse
import sys


def add_correlogram_parser(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
) -> None:
    """Register the ``pyspup correlogram`` subcommand."""
    p = subparsers.add_parser(
        "correlogram",
        help="Print a correlation table or plot a correlogram model",
    )
    p.add_argument("--sill", type=float, required=True, help="Correlation at distance 0+")
    p.add_argument("--range", type=float, required=True, help="Range parameter")
    p.add_argument("--family", type=str, default="Exp", help="Model family (default: Exp)")
    p.add_argument("--kappa", type=float, default=0.5, help="Matern smoothness")
    p.add_argument(
        "--max-distance",
        type=float,
        default=None,
        help="Largest distance (default: 1.5 x effective range)",
    )
    p.add_argument("--points", type=int, default=11, help="Number of table rows")
    p.add_argument("--output", type=str, default=None, help="Save a plot to this image file")
    p.set_defaults(func=run_correlogram)


def run_correlogram(args: argparse.Namespace) -> int:
    """Print or plot the correlogram."""
    from pyspup.core.correlogram import make_correlogram
    from pyspup.core.exceptions import PySpupError

    try:
        crm = make_correlogram(args.sill, args.range, family=args.family, kappa=args.kappa)
    except PySpupError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        from pyspup.visualization.correlogram import plot_correlogram

        plot_correlogram(crm, max_distance=args.max_distance, output=args.output)
        print(f"Saved correlogram plot to: {args.output}")
        return 0

    distances, correlations = crm.curve(max_distance=args.max_distance, n_points=args.points)
    print(f"{crm!r}")
    print(f"{'distance':>12}  {'correlation':>11}")
    for h, c in zip(distances, correlations):
        print(f"{h:12.2f}  {c:11.4f}")
    return 0
