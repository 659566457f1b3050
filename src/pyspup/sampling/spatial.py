"""Unconditional Gaussian simulation of spatially correlated error fields.

This module generates zero-mean, unit-variance random fields whose
covariance between two locations equals the correlogram covariance at
their separation distance. Two algorithms are available:

- Exact: the full covariance matrix is factorized (Cholesky, with an
  eigen-decomposition fallback) and applied to independent standard-normal
  vectors, one per realization.
- Neighborhood-limited: sequential Gaussian simulation along a random
  path. Each location is simple-kriged from at most ``neighborhood_limit``
  nearest previously simulated locations and receives a Normal residual
  with the kriging variance. This trades exactness for tractability on
  large grids.

In both cases the spatial operator is computed once and applied to all
realizations at the same time.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from scipy import linalg
from scipy.spatial.distance import cdist

from pyspup.core.correlogram import CorrelogramModel
from pyspup.core.exceptions import (
    InvalidParameterError,
    MissingCorrelogramError,
    UnsupportedDistributionError,
)
from pyspup.core.families import DistributionFamily, resolve_family
from pyspup.core.support import SpatialSupport
from pyspup.sampling.distributions import SeedLike, make_rng

logger = logging.getLogger(__name__)

_JITTER = 1e-10
_EXACT_SIZE_WARNING = 10_000


def covariance_factor(cov: NDArray) -> NDArray:
    """Lower factor ``L`` of a covariance matrix with ``L @ L.T ~= cov``.

    Uses a Cholesky decomposition with a small diagonal regularization.
    If the matrix is only positive semi-definite and Cholesky fails, the
    eigen-decomposition with negative eigenvalues clipped to zero is used.

    Parameters
    ----------
    cov : NDArray
        Symmetric covariance matrix (n x n).

    Returns
    -------
    NDArray
        Factor matrix (n x n).
    """
    n_points = cov.shape[0]
    regularized = cov + np.eye(n_points) * _JITTER
    try:
        return np.asarray(linalg.cholesky(regularized, lower=True))
    except linalg.LinAlgError:
        logger.warning(
            "Cholesky factorization failed for a %dx%d matrix; "
            "using eigen-decomposition instead",
            n_points,
            n_points,
        )
        eigvals, eigvecs = linalg.eigh(cov)
        eigvals = np.maximum(eigvals, 0.0)
        return np.asarray(eigvecs * np.sqrt(eigvals))


class SpatialFieldSimulator:
    """Simulates standard Gaussian fields for a correlogram.

    Parameters
    ----------
    correlogram : CorrelogramModel
        Spatial correlation structure of the field.
    neighborhood_limit : int | None
        Maximum number of previously simulated neighbours used per location.
        None (or a limit covering all locations) selects the exact method.

    Examples
    --------
    >>> crm = make_correlogram(sill=0.8, range=200.0, family="Exp")
    >>> sim = SpatialFieldSimulator(crm, neighborhood_limit=20)
    >>> fields = sim.simulate(SpatialSupport.from_grid(10, 10, 30.0), n=50, seed=1)
    >>> fields.shape
    (50, 100)
    """

    def __init__(
        self,
        correlogram: CorrelogramModel | None,
        neighborhood_limit: int | None = None,
    ):
        """Initialize the simulator.

        Raises
        ------
        MissingCorrelogramError
            If no correlogram is given.
        InvalidParameterError
            If the neighborhood limit is not a positive integer.
        """
        if correlogram is None:
            raise MissingCorrelogramError(
                "Correlogram model is required for unconditional Gaussian simulation"
            )
        if neighborhood_limit is not None and (
            int(neighborhood_limit) != neighborhood_limit or neighborhood_limit < 1
        ):
            raise InvalidParameterError(
                f"Neighborhood limit must be a positive integer: {neighborhood_limit}",
                parameter="neighborhood_limit",
            )
        self.correlogram = correlogram
        self.neighborhood_limit = None if neighborhood_limit is None else int(neighborhood_limit)
        self._variogram = correlogram.to_variogram()

    def uses_exact_method(self, n_locations: int) -> bool:
        """True when the full covariance matrix is factorized."""
        return self.neighborhood_limit is None or self.neighborhood_limit >= n_locations - 1

    def simulate(
        self,
        support: SpatialSupport,
        n: int,
        seed: SeedLike = None,
    ) -> NDArray[np.float64]:
        """Generate standard Gaussian fields.

        Parameters
        ----------
        support : SpatialSupport
            Locations at which the fields are simulated.
        n : int
            Number of realizations.
        seed : int | np.random.Generator | None
            Seed or generator for reproducibility.

        Returns
        -------
        NDArray
            Fields array (n x n_locations).
        """
        if n < 1:
            raise InvalidParameterError(
                f"Number of realizations must be positive: {n}", parameter="n"
            )
        rng = make_rng(seed)
        n_points = support.n_locations

        if self.uses_exact_method(n_points):
            if n_points > _EXACT_SIZE_WARNING:
                logger.warning(
                    "Exact simulation over %d locations builds a dense covariance matrix; "
                    "consider a neighborhood limit",
                    n_points,
                )
            logger.debug("Exact simulation: %d realizations over %d locations", n, n_points)
            return self._simulate_exact(support, n, rng)

        logger.debug(
            "Sequential simulation: %d realizations over %d locations, %d neighbours",
            n,
            n_points,
            self.neighborhood_limit,
        )
        return self._simulate_sequential(support, n, rng)

    def _simulate_exact(
        self,
        support: SpatialSupport,
        n: int,
        rng: np.random.Generator,
    ) -> NDArray[np.float64]:
        """Covariance factorization applied to independent normal vectors."""
        cov = self.correlogram.covariance_matrix(support)
        factor = covariance_factor(cov)
        z = rng.standard_normal((support.n_locations, n))
        return np.asarray((factor @ z).T)

    def _simulate_sequential(
        self,
        support: SpatialSupport,
        n: int,
        rng: np.random.Generator,
    ) -> NDArray[np.float64]:
        """Sequential Gaussian simulation along one random path."""
        limit = int(self.neighborhood_limit or 1)
        vario = self._variogram
        x_t, y_t = vario.transform_coordinates(support.x, support.y)
        points = np.column_stack([x_t, y_t])
        n_points = support.n_locations

        path = rng.permutation(n_points)
        fields = np.empty((n_points, n))
        fields[path[0]] = rng.standard_normal(n)

        for step in range(1, n_points):
            target = path[step]
            visited = path[:step]
            distances = np.hypot(
                points[visited, 0] - points[target, 0],
                points[visited, 1] - points[target, 1],
            )
            if step > limit:
                nearest = np.argpartition(distances, limit - 1)[:limit]
                neighbours = visited[nearest]
                distances = distances[nearest]
            else:
                neighbours = visited

            weights, variance = self._simple_kriging(points[neighbours], distances)
            fields[target] = weights @ fields[neighbours] + np.sqrt(variance) * rng.standard_normal(
                n
            )

        return np.asarray(fields.T)

    def _simple_kriging(
        self,
        neighbour_points: NDArray,
        target_distances: NDArray,
    ) -> tuple[NDArray, float]:
        """Simple kriging weights (known zero mean) and kriging variance."""
        vario = self._variogram
        c_nn = np.asarray(vario.covariance(cdist(neighbour_points, neighbour_points)))
        c_nt = np.asarray(vario.covariance(target_distances))
        c_nn += np.eye(len(c_nt)) * _JITTER
        try:
            weights = linalg.solve(c_nn, c_nt, assume_a="pos")
        except linalg.LinAlgError:
            weights = linalg.lstsq(c_nn, c_nt)[0]
        variance = max(vario.total_sill - float(weights @ c_nt), 0.0)
        return np.asarray(weights), variance

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"SpatialFieldSimulator(correlogram={self.correlogram!r}, "
            f"neighborhood_limit={self.neighborhood_limit})"
        )


def simulate_field(
    support: SpatialSupport,
    correlogram: CorrelogramModel | None,
    n: int,
    neighborhood_limit: int | None = None,
    distribution: str | DistributionFamily = DistributionFamily.NORMAL,
    seed: SeedLike = None,
) -> NDArray[np.float64]:
    """Simulate ``n`` zero-mean, unit-variance spatially correlated fields.

    Parameters
    ----------
    support : SpatialSupport
        Locations of the field.
    correlogram : CorrelogramModel | None
        Spatial correlation structure.
    n : int
        Number of realizations.
    neighborhood_limit : int | None
        Maximum number of neighbours per location (None = exact).
    distribution : str | DistributionFamily
        Marginal distribution of the residuals; must be Normal.
    seed : int | np.random.Generator | None
        Seed or generator.

    Returns
    -------
    NDArray
        Fields array (n x n_locations).

    Raises
    ------
    MissingCorrelogramError
        If ``correlogram`` is None.
    UnsupportedDistributionError
        If ``distribution`` is not Normal.
    """
    if resolve_family(distribution) != DistributionFamily.NORMAL:
        raise UnsupportedDistributionError(
            "Only normal distribution can be assumed in unconditional Gaussian simulation"
        )
    simulator = SpatialFieldSimulator(correlogram, neighborhood_limit=neighborhood_limit)
    return simulator.simulate(support, n, seed=seed)
