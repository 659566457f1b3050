"""Spatial support and surfaces for uncertain inputs.

A spatial support is the ordered set of locations at which an uncertain
variable is defined. It is either a scattered point set or a dense regular
grid, which is stored as its cell centers in row-major order (top row
first, as in a raster) together with the grid shape.

A surface is a value array aligned on a spatial support, e.g. a mean or
standard deviation surface of a digital elevation model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.distance import cdist

from pyspup.core.exceptions import InvalidParameterError, MisalignedSupportError


@dataclass(frozen=True, eq=False)
class SpatialSupport:
    """Ordered set of locations.

    Parameters
    ----------
    x : NDArray
        X coordinates of the locations.
    y : NDArray
        Y coordinates of the locations.
    grid_shape : tuple[int, int] | None
        ``(nrows, ncols)`` when the locations are the cell centers of a
        regular grid, stored row by row.

    Examples
    --------
    >>> support = SpatialSupport.from_grid(nrows=3, ncols=4, cellsize=30.0)
    >>> support.n_locations, support.shape
    (12, (3, 4))
    """

    x: NDArray[np.float64]
    y: NDArray[np.float64]
    grid_shape: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        x = np.array(self.x, dtype=float).ravel()
        y = np.array(self.y, dtype=float).ravel()
        if x.size != y.size:
            raise MisalignedSupportError(
                f"x and y must have the same length: {x.size} != {y.size}"
            )
        if x.size == 0:
            raise InvalidParameterError("Spatial support must contain at least one location")
        if self.grid_shape is not None:
            nrows, ncols = (int(v) for v in self.grid_shape)
            if nrows * ncols != x.size:
                raise MisalignedSupportError(
                    f"Grid shape {nrows}x{ncols} does not match {x.size} locations"
                )
            object.__setattr__(self, "grid_shape", (nrows, ncols))
        x.setflags(write=False)
        y.setflags(write=False)
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @classmethod
    def from_grid(
        cls,
        nrows: int,
        ncols: int,
        cellsize: float,
        xmin: float = 0.0,
        ymin: float = 0.0,
    ) -> SpatialSupport:
        """Create the support of a regular grid from its geometry.

        Parameters
        ----------
        nrows, ncols : int
            Number of grid rows and columns.
        cellsize : float
            Cell size (square cells).
        xmin, ymin : float
            Lower-left corner of the grid.

        Returns
        -------
        SpatialSupport
            Support holding the cell centers, top row first.
        """
        if nrows < 1 or ncols < 1:
            raise InvalidParameterError(f"Grid must have at least one cell: {nrows}x{ncols}")
        if cellsize <= 0:
            raise InvalidParameterError(f"Cell size must be positive: {cellsize}")
        cols = xmin + (np.arange(ncols) + 0.5) * cellsize
        rows = ymin + (nrows - np.arange(nrows) - 0.5) * cellsize
        xx, yy = np.meshgrid(cols, rows)
        return cls(x=xx.ravel(), y=yy.ravel(), grid_shape=(nrows, ncols))

    @classmethod
    def from_coordinates(cls, coordinates: Any) -> SpatialSupport:
        """Create a point support from an ``(n, 2)`` coordinate array."""
        coords = np.asarray(coordinates, dtype=float)
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise InvalidParameterError(
                f"Coordinates must have shape (n, 2), got {coords.shape}"
            )
        return cls(x=coords[:, 0], y=coords[:, 1])

    @property
    def n_locations(self) -> int:
        """Number of locations."""
        return int(self.x.size)

    @property
    def is_grid(self) -> bool:
        """True when the support is a regular grid."""
        return self.grid_shape is not None

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of one realization over this support."""
        if self.grid_shape is not None:
            return self.grid_shape
        return (self.n_locations,)

    @property
    def coordinates(self) -> NDArray[np.float64]:
        """Location coordinates as an ``(n, 2)`` array."""
        return np.column_stack([self.x, self.y])

    def distance_matrix(self, other: SpatialSupport | None = None) -> NDArray[np.float64]:
        """Euclidean distances between locations.

        Parameters
        ----------
        other : SpatialSupport | None
            Second support. If None, compute self-distances.

        Returns
        -------
        NDArray
            Distance matrix (n x m).
        """
        coords2 = self.coordinates if other is None else other.coordinates
        return np.asarray(cdist(self.coordinates, coords2))

    def same_as(self, other: SpatialSupport) -> bool:
        """Check whether two supports hold identical locations."""
        if self is other:
            return True
        return (
            self.grid_shape == other.grid_shape
            and self.n_locations == other.n_locations
            and bool(np.array_equal(self.x, other.x))
            and bool(np.array_equal(self.y, other.y))
        )

    def __len__(self) -> int:
        return self.n_locations

    def __repr__(self) -> str:
        """Return string representation."""
        if self.grid_shape is not None:
            return f"SpatialSupport(grid={self.grid_shape[0]}x{self.grid_shape[1]})"
        return f"SpatialSupport(n_locations={self.n_locations})"


@dataclass(frozen=True, eq=False)
class Surface:
    """Values aligned on a spatial support.

    Parameters
    ----------
    support : SpatialSupport
        Locations of the values.
    values : NDArray
        One value per location, in support order. Grid-shaped arrays are
        flattened row by row.
    name : str
        Optional label, e.g. ``"dem"`` or ``"dem_sd"``.
    """

    support: SpatialSupport
    values: NDArray[Any]
    name: str = ""

    def __post_init__(self) -> None:
        values = np.array(self.values).ravel()
        if values.size != self.support.n_locations:
            raise MisalignedSupportError(
                f"Surface '{self.name}' has {values.size} values for "
                f"{self.support.n_locations} locations"
            )
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    def as_grid(self) -> NDArray[Any]:
        """Values reshaped to the support shape."""
        return self.values.reshape(self.support.shape)

    def aligned_with(self, other: Surface) -> bool:
        """Check whether both surfaces share the same support."""
        return self.support.same_as(other.support)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"Surface(name={self.name!r}, n_locations={self.support.n_locations})"


def check_aligned(surfaces: list[Surface] | tuple[Surface, ...]) -> SpatialSupport:
    """Return the common support of surfaces.

    Raises
    ------
    MisalignedSupportError
        If the surfaces are not all defined on identical support.
    """
    if not surfaces:
        raise InvalidParameterError("At least one surface is required")
    first = surfaces[0]
    for i, other in enumerate(surfaces[1:], start=2):
        if not first.aligned_with(other):
            raise MisalignedSupportError(
                f"Surface {i} ({other.name or 'unnamed'}) does not share the spatial "
                f"support of surface 1 ({first.name or 'unnamed'})"
            )
    return first.support
