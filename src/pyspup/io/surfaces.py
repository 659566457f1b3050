"""
CSV reading and writing of surfaces and samples.

Surfaces are read from point tables with coordinate columns and one or
more value columns. Samples are written as wide tables with one row per
location and ``sim1..simN`` columns.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from pyspup.core.collection import JointSampleCollection, SampleCollection
from pyspup.core.exceptions import ConfigError, MisalignedSupportError
from pyspup.core.support import SpatialSupport, Surface

logger = logging.getLogger(__name__)


def _read_table(path: Path, columns: list[str]) -> pd.DataFrame:
    if not path.exists():
        raise ConfigError(f"Surface file not found: {path}", path=str(path))
    frame = pd.read_csv(path)
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise ConfigError(
            f"Columns {missing} not found in {path.name}; available: {list(frame.columns)}",
            path=str(path),
        )
    return frame


def _support_from_frame(
    frame: pd.DataFrame,
    x_column: str,
    y_column: str,
    support: SpatialSupport | None,
) -> SpatialSupport:
    new = SpatialSupport(
        x=frame[x_column].to_numpy(dtype=float),
        y=frame[y_column].to_numpy(dtype=float),
    )
    if support is None:
        return new
    # A grid support matches its cell centers listed row by row
    if support.n_locations != new.n_locations or not (
        np.allclose(support.x, new.x) and np.allclose(support.y, new.y)
    ):
        raise MisalignedSupportError(
            f"Coordinates do not match the given support of {support.n_locations} locations"
        )
    return support


def read_surface_csv(
    path: Path | str,
    value_column: str,
    x_column: str = "x",
    y_column: str = "y",
    support: SpatialSupport | None = None,
) -> Surface:
    """
    Read a surface from a CSV point table.

    Args:
        path: CSV file with coordinate and value columns
        value_column: Name of the value column
        x_column: Name of the x coordinate column
        y_column: Name of the y coordinate column
        support: Existing support to attach the values to (e.g. a grid);
            the file coordinates must match it

    Returns:
        Surface named after ``value_column``

    Raises:
        ConfigError: If the file or a column is missing
        MisalignedSupportError: If the coordinates do not match ``support``
    """
    path = Path(path)
    frame = _read_table(path, [x_column, y_column, value_column])
    surface_support = _support_from_frame(frame, x_column, y_column, support)
    values = frame[value_column].to_numpy()
    if values.dtype.kind in "fiu":
        values = values.astype(float)
    logger.debug("Read surface %s (%d locations) from %s", value_column, len(values), path)
    return Surface(support=surface_support, values=values, name=value_column)


def read_probability_table(
    path: Path | str,
    columns: list[str],
    x_column: str = "x",
    y_column: str = "y",
    support: SpatialSupport | None = None,
) -> tuple[pd.DataFrame, SpatialSupport]:
    """
    Read per-location category probabilities from a CSV point table.

    Returns:
        Tuple of (probability table with ``columns``, support)
    """
    path = Path(path)
    frame = _read_table(path, [x_column, y_column, *columns])
    table_support = _support_from_frame(frame, x_column, y_column, support)
    return frame[columns].astype(float).reset_index(drop=True), table_support


def write_sample_csv(
    collection: SampleCollection | JointSampleCollection,
    path: Path | str,
    include_coordinates: bool = True,
) -> list[Path]:
    """
    Write a sample as a wide CSV table.

    A joint sample is written as one file per variable, named
    ``<stem>_<variable id><suffix>``.

    Args:
        collection: Sample to write
        path: Output file
        include_coordinates: Add ``x`` and ``y`` columns for spatial samples

    Returns:
        Paths of the written files
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(collection, JointSampleCollection):
        written: list[Path] = []
        for key in collection.ids:
            member_path = path.with_name(f"{path.stem}_{key}{path.suffix}")
            written.extend(write_sample_csv(collection[key], member_path, include_coordinates))
        return written

    frame = collection.as_table(include_coordinates=include_coordinates)
    frame.to_csv(path, index=False)
    logger.info(
        "Wrote %d realizations of %s to %s",
        collection.n,
        collection.variable_id or "sample",
        path,
    )
    return [path]


def read_sample_csv(
    path: Path | str,
    variable_id: str | None = None,
    support: SpatialSupport | None = None,
) -> SampleCollection:
    """
    Read a wide sample table written by :func:`write_sample_csv`.

    Args:
        path: CSV file with ``sim1..simN`` columns and optional ``x``/``y``
        variable_id: Identifier of the variable
        support: Support of the sample; taken from ``x``/``y`` columns
            when omitted

    Returns:
        SampleCollection with one realization per ``simK`` column
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Sample file not found: {path}", path=str(path))
    frame = pd.read_csv(path)
    sim_columns = [
        c for c in frame.columns if str(c).startswith("sim") and str(c)[3:].isdigit()
    ]
    if not sim_columns:
        raise ConfigError(f"No sim columns found in {path.name}", path=str(path))
    sim_columns.sort(key=lambda c: int(str(c)[3:]))

    if "x" in frame.columns and "y" in frame.columns:
        support = _support_from_frame(frame, "x", "y", support)
    matrix = frame[sim_columns].to_numpy()
    if support is None and matrix.shape[0] == 1:
        realizations = matrix[0]
    else:
        realizations = matrix.T
    if realizations.dtype.kind in "iu":
        realizations = realizations.astype(np.float64)
    return SampleCollection(realizations=realizations, support=support, variable_id=variable_id)
