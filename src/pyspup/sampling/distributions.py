"""Independent draws from parametric distributions.

Parameters may vary by location: each parameter is a scalar or an array
with one entry per location, and draws are independent at every location.
No spatial dependence is introduced here; see
:mod:`pyspup.sampling.spatial` for spatially correlated Normal fields.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyspup.core.exceptions import InvalidParameterError
from pyspup.core.families import DistributionFamily, resolve_family, validate_parameters

logger = logging.getLogger(__name__)

# Largest number of comparisons held in memory by the categorical inverse CDF
_CATEGORICAL_CHUNK = 2**22

SeedLike = int | np.random.Generator | None

_Drawer = Callable[[np.random.Generator, list[NDArray], tuple[int, ...]], NDArray]

_DRAWERS: dict[DistributionFamily, _Drawer] = {
    DistributionFamily.NORMAL: lambda rng, p, size: rng.normal(p[0], p[1], size),
    DistributionFamily.BETA: lambda rng, p, size: rng.beta(p[0], p[1], size),
    # R parameterizes gamma and exponential by rate, numpy by scale
    DistributionFamily.GAMMA: lambda rng, p, size: rng.gamma(p[0], 1.0 / p[1], size),
    DistributionFamily.EXPONENTIAL: lambda rng, p, size: rng.exponential(1.0 / p[0], size),
    DistributionFamily.UNIFORM: lambda rng, p, size: rng.uniform(p[0], p[1], size),
    DistributionFamily.CHISQ: lambda rng, p, size: rng.chisquare(p[0], size),
    DistributionFamily.CAUCHY: lambda rng, p, size: p[0] + p[1] * rng.standard_cauchy(size),
    DistributionFamily.LOGNORMAL: lambda rng, p, size: rng.lognormal(p[0], p[1], size),
    DistributionFamily.LOGISTIC: lambda rng, p, size: rng.logistic(p[0], p[1], size),
    DistributionFamily.STUDENT_T: lambda rng, p, size: rng.standard_t(p[0], size),
    DistributionFamily.WEIBULL: lambda rng, p, size: p[1] * rng.weibull(p[0], size),
    DistributionFamily.BINOMIAL: lambda rng, p, size: rng.binomial(
        p[0].astype(np.int64), p[1], size
    ).astype(float),
    DistributionFamily.POISSON: lambda rng, p, size: rng.poisson(p[0], size).astype(float),
}


def make_rng(seed: SeedLike = None) -> np.random.Generator:
    """Random generator from a seed, or the generator itself."""
    return np.random.default_rng(seed)


def _broadcast_parameters(params: Sequence[Any]) -> tuple[list[NDArray], int | None]:
    """Turn parameters into column vectors of one common length.

    Returns the parameters shaped ``(m, 1)`` and the number of locations
    ``m``, or the parameters as 0-d arrays and None for scalar input.
    """
    arrays = [np.asarray(p, dtype=float) for p in params]
    sizes = {a.size for a in arrays if a.ndim > 0}
    if not sizes:
        return arrays, None
    if len(sizes - {1}) > 1:
        raise InvalidParameterError(
            f"Parameter arrays differ in length: {sorted(sizes)}", parameter="distr_param"
        )
    m = max(sizes)
    return [np.broadcast_to(a.reshape(-1), (m,)).reshape(m, 1) for a in arrays], m


def sample_distribution(
    n: int,
    family: str | DistributionFamily,
    params: Sequence[Any],
    seed: SeedLike = None,
) -> NDArray[np.float64]:
    """Draw independent deviates from a parametric distribution.

    Parameters
    ----------
    n : int
        Number of draws (realizations).
    family : str | DistributionFamily
        Distribution family, e.g. ``"norm"`` or ``"beta"``.
    params : Sequence
        Family parameters in order (see ``DistributionFamily``). Each is a
        scalar or an array with one value per location.
    seed : int | np.random.Generator | None
        Seed or generator for reproducibility.

    Returns
    -------
    NDArray
        ``(n,)`` draws for scalar parameters, ``(m, n)`` draws for ``m``
        locations.

    Raises
    ------
    UnsupportedDistributionError
        If the family is unknown.
    InvalidParameterError
        If ``n < 1`` or parameters are out of domain.

    Examples
    --------
    >>> sample_distribution(5, "norm", [10, 2], seed=1).shape
    (5,)
    """
    if n < 1:
        raise InvalidParameterError(f"Number of draws must be positive: {n}", parameter="n")
    dist = resolve_family(family)
    arrays, m = _broadcast_parameters(params)
    validate_parameters(dist, arrays)
    rng = make_rng(seed)

    size: tuple[int, ...] = (n,) if m is None else (m, n)
    logger.debug("Drawing %s deviates of shape %s", dist.value, size)
    drawer = _DRAWERS[dist]
    if m is None:
        if any(np.isnan(a) for a in arrays):
            return np.full(size, np.nan)
        return np.asarray(drawer(rng, arrays, size), dtype=float)

    # Locations with a NaN parameter (no data) get NaN draws
    missing = np.zeros(m, dtype=bool)
    for a in arrays:
        missing |= np.isnan(a[:, 0])
    if not missing.any():
        return np.asarray(drawer(rng, arrays, size), dtype=float)
    logger.debug("Skipping %d of %d locations with missing parameters", missing.sum(), m)
    draws = np.full(size, np.nan)
    present = ~missing
    if present.any():
        subset = [a[present] for a in arrays]
        draws[present] = drawer(rng, subset, (int(present.sum()), n))
    return draws


def sample_categorical(
    n: int,
    categories: Sequence[Any],
    probabilities: Any,
    seed: SeedLike = None,
) -> NDArray[Any]:
    """Draw category labels independently per location.

    Parameters
    ----------
    n : int
        Number of draws (realizations).
    categories : Sequence
        Category labels.
    probabilities : array-like
        Probability vector ``(k,)`` or per-location table ``(m, k)``; rows
        must sum to 1.
    seed : int | np.random.Generator | None
        Seed or generator.

    Returns
    -------
    NDArray
        Labels of shape ``(n,)`` or ``(m, n)`` (object dtype).
    """
    if n < 1:
        raise InvalidParameterError(f"Number of draws must be positive: {n}", parameter="n")
    labels = np.empty(len(categories), dtype=object)
    labels[:] = list(categories)
    probs = np.asarray(probabilities, dtype=float)
    scalar = probs.ndim == 1
    table = probs.reshape(1, -1) if scalar else probs
    if table.ndim != 2 or table.shape[1] != labels.size:
        raise InvalidParameterError(
            f"Probability table of shape {probs.shape} does not match "
            f"{labels.size} categories",
            parameter="cat_prob",
        )
    if np.any(table < 0) or np.any(np.abs(table.sum(axis=1) - 1.0) > 1e-6):
        raise InvalidParameterError(
            "Category probabilities must be non-negative and sum to 1", parameter="cat_prob"
        )

    rng = make_rng(seed)
    cumulative = np.cumsum(table, axis=1)
    cumulative[:, -1] = 1.0
    m = table.shape[0]
    u = rng.random((m, n))
    # Inverse CDF per location: first category whose cumulative probability exceeds u
    index = np.empty((m, n), dtype=np.intp)
    rows = max(1, _CATEGORICAL_CHUNK // (n * labels.size))
    for start in range(0, m, rows):
        block = slice(start, start + rows)
        index[block] = (u[block, :, np.newaxis] >= cumulative[block, np.newaxis, :]).sum(axis=2)
    draws = labels[np.minimum(index, labels.size - 1)]
    return draws[0] if scalar else draws
