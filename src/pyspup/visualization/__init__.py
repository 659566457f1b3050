"""Plotting of correlogram models."""

from __future__ import annotations

from pyspup.visualization.correlogram import plot_correlogram

__all__ = ["plot_correlogram"]
