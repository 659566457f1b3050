"""Correlogram plotting."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.axes import Axes  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from pyspup.core.correlogram import CorrelogramModel  # noqa: E402
from pyspup.visualization._plot_utils import CHART_STYLE, _save_figure, _with_style  # noqa: E402


@_with_style(CHART_STYLE)
def plot_correlogram(
    crm: CorrelogramModel | Sequence[CorrelogramModel],
    max_distance: float | None = None,
    ax: Axes | None = None,
    title: str | None = None,
    labels: Sequence[str] | None = None,
    show_range: bool = True,
    output: Path | str | None = None,
    figsize: tuple[float, float] = (8, 5),
) -> tuple[Figure, Axes]:
    """
    Plot correlation against separation distance.

    The discontinuity at the origin is drawn as a single point at
    correlation 1 (a location with itself), followed by the curve starting
    at the sill.

    Parameters
    ----------
    crm : CorrelogramModel or sequence of CorrelogramModel
        Correlogram(s) to plot.
    max_distance : float, optional
        Largest distance on the x-axis. Defaults to 1.5 times the largest
        effective range.
    ax : Axes, optional
        Existing axes to plot on. Creates new figure if None.
    title : str, optional
        Plot title.
    labels : sequence of str, optional
        Legend labels, one per correlogram.
    show_range : bool, default True
        Mark the range parameter with a vertical line.
    output : Path or str, optional
        Save the figure to this file.
    figsize : tuple, default (8, 5)
        Figure size in inches.

    Returns
    -------
    tuple
        (Figure, Axes) matplotlib objects.

    Examples
    --------
    >>> crm = make_correlogram(sill=0.78, range=321, family="Exp")
    >>> fig, ax = plot_correlogram(crm, output="dem_crm.png")
    """
    models = [crm] if isinstance(crm, CorrelogramModel) else list(crm)

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()  # type: ignore[assignment]

    if max_distance is None:
        max_distance = max(1.5 * m.to_variogram().effective_range for m in models)

    colors = plt.rcParams["axes.prop_cycle"].by_key()["color"]
    for i, model in enumerate(models):
        color = colors[i % len(colors)]
        distances, correlations = model.curve(max_distance=max_distance)
        if labels is not None and i < len(labels):
            label = labels[i]
        else:
            label = f"{model.family.value} (sill={model.sill:g}, range={model.range:g})"
        ax.plot(distances, correlations, color=color, label=label)
        ax.plot([0.0], [1.0], marker="o", color=color, linestyle="none")
        if show_range:
            ax.axvline(model.range, color=color, linestyle=":", linewidth=1.0)

    ax.set_xlim(0.0, max_distance)
    ax.set_ylim(0.0, 1.05)
    ax.set_xlabel("Distance")
    ax.set_ylabel("Correlation")
    ax.set_title(title or "Correlogram")
    ax.legend(loc="upper right")

    _save_figure(fig, output)
    return fig, ax

