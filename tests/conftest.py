"""Pytest configuration and fixtures for pyspup tests."""

from __future__ import annotations

import numpy as np
import pytest

from pyspup.core.correlogram import CorrelogramModel, make_correlogram
from pyspup.core.support import SpatialSupport, Surface


@pytest.fixture
def grid_3x3() -> SpatialSupport:
    """3x3 grid with 100 m spacing."""
    return SpatialSupport.from_grid(nrows=3, ncols=3, cellsize=100.0)


@pytest.fixture
def small_grid() -> SpatialSupport:
    """4 rows x 5 columns grid with 30 m cells."""
    return SpatialSupport.from_grid(nrows=4, ncols=5, cellsize=30.0, xmin=1000.0, ymin=2000.0)


@pytest.fixture
def point_support() -> SpatialSupport:
    """Six scattered points."""
    coords = np.array(
        [
            [0.0, 0.0],
            [50.0, 10.0],
            [120.0, 40.0],
            [200.0, 200.0],
            [30.0, 180.0],
            [400.0, 0.0],
        ]
    )
    return SpatialSupport.from_coordinates(coords)


@pytest.fixture
def exp_crm() -> CorrelogramModel:
    """Exponential correlogram with sill 0.8 and range 200."""
    return make_correlogram(sill=0.8, range=200.0, family="Exp")


@pytest.fixture
def mean_surface(grid_3x3: SpatialSupport) -> Surface:
    """Mean surface of 10 on the 3x3 grid."""
    return Surface(grid_3x3, np.full(9, 10.0), name="mean")


@pytest.fixture
def sd_surface(grid_3x3: SpatialSupport) -> Surface:
    """Standard deviation surface of 2 on the 3x3 grid."""
    return Surface(grid_3x3, np.full(9, 2.0), name="sd")


@pytest.fixture
def dem_surfaces(small_grid: SpatialSupport) -> tuple[Surface, Surface]:
    """Sloping DEM and its standard deviation on the small grid."""
    n = small_grid.n_locations
    dem = Surface(small_grid, 100.0 + np.arange(n, dtype=float), name="dem")
    dem_sd = Surface(small_grid, np.linspace(1.0, 3.0, n), name="dem_sd")
    return dem, dem_sd
