"""Stratified sampling of Normal variables.

The probability range is split into strata by a vector of quantile
boundaries ``p`` (e.g. ``[0, 0.25, 0.5, 0.75, 1]``). Every stratum receives
the same number of draws, each drawn uniformly within the stratum in
probability space and mapped through the Normal quantile function of the
location. Draws are returned stratum by stratum.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm

from pyspup.core.exceptions import InvalidParameterError, InvalidSampleSizeError
from pyspup.core.families import DistributionFamily, validate_parameters
from pyspup.sampling.distributions import SeedLike, make_rng

logger = logging.getLogger(__name__)

_TINY = np.finfo(float).tiny
_BELOW_ONE = np.nextafter(1.0, 0.0)


def validate_quantiles(p: Sequence[float] | None) -> NDArray[np.float64]:
    """Check a quantile-boundary vector.

    Raises
    ------
    InvalidParameterError
        If ``p`` has fewer than two entries, leaves [0, 1] or is not
        strictly increasing.
    """
    if p is None:
        raise InvalidParameterError(
            "Stratified sampling needs quantile boundaries p", parameter="p"
        )
    bounds = np.asarray(p, dtype=float).ravel()
    if bounds.size < 2:
        raise InvalidParameterError(
            f"p needs at least two boundaries, got {bounds.size}", parameter="p"
        )
    if np.any(np.isnan(bounds)) or bounds[0] < 0.0 or bounds[-1] > 1.0:
        raise InvalidParameterError(f"p must lie within [0, 1]: {bounds.tolist()}", parameter="p")
    if np.any(np.diff(bounds) <= 0):
        raise InvalidParameterError(
            f"p must be strictly increasing: {bounds.tolist()}", parameter="p"
        )
    return bounds


def draws_per_stratum(n: int, p: Sequence[float]) -> int:
    """Number of draws per stratum.

    Raises
    ------
    InvalidSampleSizeError
        If ``n`` is not divisible by the number of strata.
    """
    n_strata = len(p) - 1
    if n % n_strata != 0:
        raise InvalidSampleSizeError(
            f"n ({n}) should be divisible by the number of strata ({n_strata})",
            n=n,
            n_strata=n_strata,
        )
    return n // n_strata


def stratified_probabilities(
    n: int,
    p: Sequence[float],
    n_locations: int,
    seed: SeedLike = None,
) -> NDArray[np.float64]:
    """Stratified uniform probabilities.

    Returns
    -------
    NDArray
        Array ``(n_locations, n)``; columns hold ``n / (len(p) - 1)`` values
        from each stratum ``[p[j], p[j + 1]]``, stratum by stratum.
    """
    bounds = validate_quantiles(p)
    per_stratum = draws_per_stratum(n, bounds)
    rng = make_rng(seed)

    lower = np.repeat(bounds[:-1], per_stratum)
    width = np.repeat(np.diff(bounds), per_stratum)
    u = lower + width * rng.random((n_locations, n))
    # Keep the quantile function finite at the 0 and 1 boundaries
    return np.clip(u, np.maximum(lower, _TINY), np.minimum(lower + width, _BELOW_ONE))


def stratified_normal(
    n: int,
    mean: Any,
    sd: Any,
    p: Sequence[float],
    seed: SeedLike = None,
) -> NDArray[np.float64]:
    """Stratified sample of Normal variables.

    Parameters
    ----------
    n : int
        Number of draws; must be divisible by ``len(p) - 1``.
    mean, sd : float | array-like
        Normal parameters, scalars or one value per location.
    p : Sequence[float]
        Quantile boundaries, strictly increasing within [0, 1].
    seed : int | np.random.Generator | None
        Seed or generator.

    Returns
    -------
    NDArray
        ``(n,)`` for scalar parameters or ``(m, n)`` for ``m`` locations.

    Raises
    ------
    InvalidParameterError
        If ``p`` or the Normal parameters are invalid.
    InvalidSampleSizeError
        If ``n`` is not divisible by the number of strata.

    Examples
    --------
    >>> x = stratified_normal(100, 0.0, 1.0, p=[0, 0.25, 0.5, 0.75, 1.0], seed=3)
    >>> x.shape
    (100,)
    """
    if n < 1:
        raise InvalidParameterError(f"Number of draws must be positive: {n}", parameter="n")
    mu = np.asarray(mean, dtype=float)
    sigma = np.asarray(sd, dtype=float)
    validate_parameters(DistributionFamily.NORMAL, [mu, sigma])
    scalar = mu.ndim == 0 and sigma.ndim == 0
    mu_col = np.atleast_1d(mu).reshape(-1, 1)
    sigma_col = np.atleast_1d(sigma).reshape(-1, 1)
    if mu_col.shape[0] != sigma_col.shape[0] and 1 not in (mu_col.shape[0], sigma_col.shape[0]):
        raise InvalidParameterError(
            f"mean and sd differ in length: {mu_col.shape[0]} != {sigma_col.shape[0]}",
            parameter="distr_param",
        )
    m = max(mu_col.shape[0], sigma_col.shape[0])

    u = stratified_probabilities(n, p, m, seed=seed)
    logger.debug("Stratified Normal sample: %d locations, %d strata", m, len(p) - 1)
    draws = mu_col + sigma_col * norm.ppf(u)
    return draws[0] if scalar else draws
