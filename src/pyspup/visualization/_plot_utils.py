"""Shared plotting utilities for pyspup visualization modules."""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any, TypeVar

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for saving

from collections.abc import Callable  # noqa: E402

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

_STYLES_DIR = Path(__file__).parent / "styles"
CHART_STYLE = str(_STYLES_DIR / "pyspup-chart.mplstyle")

_F = TypeVar("_F", bound=Callable[..., Any])


def _with_style(style_path: str) -> Callable[[_F], _F]:
    """Decorator that wraps a plotting function in ``plt.style.context``."""

    def decorator(func: _F) -> _F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with plt.style.context(style_path):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def _save_figure(fig: Figure, output: Path | str | None) -> None:
    """Save a figure when an output path is given, creating parent directories."""
    if output is None:
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path)
