"""Monte Carlo sample generation for uncertainty models.

:func:`gen_sample` dispatches on the uncertainty model variant and the
sampling method:

- ``ugs``: unconditional Gaussian simulation of spatially correlated
  Normal errors, rescaled by the mean and standard deviation surfaces.
- ``randomSampling``: independent draws per location.
- ``stratifiedSampling``: equal numbers of Normal draws from each
  inter-quantile stratum.
- ``lhs``: stratified sampling of every member of a joint model, combined
  into a Latin hypercube by rank reordering.

All preconditions are checked before any draw is made.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pyspup.core.collection import JointSampleCollection, SampleCollection
from pyspup.core.exceptions import (
    InvalidParameterError,
    MissingCorrelogramError,
    UnsupportedDistributionError,
)
from pyspup.core.families import DistributionFamily
from pyspup.core.uncertainty import (
    JointUncertaintyModel,
    MarginalNumericSpatial,
    UMKind,
    UncertaintyModel,
)
from pyspup.sampling.crosscorr import assemble
from pyspup.sampling.distributions import (
    SeedLike,
    make_rng,
    sample_categorical,
    sample_distribution,
)
from pyspup.sampling.spatial import SpatialFieldSimulator
from pyspup.sampling.stratified import draws_per_stratum, stratified_normal, validate_quantiles

logger = logging.getLogger(__name__)

_CATEGORICAL_KINDS = (UMKind.CATEGORICAL, UMKind.CATEGORICAL_SPATIAL)


class SampleMethod(Enum):
    """Sampling methods."""

    UGS = "ugs"
    RANDOM = "randomSampling"
    STRATIFIED = "stratifiedSampling"
    LHS = "lhs"

    @classmethod
    def parse(cls, value: str | SampleMethod) -> SampleMethod:
        """Resolve a method name; snake-case aliases are accepted."""
        if isinstance(value, SampleMethod):
            return value
        key = str(value).strip().lower().replace("_", "")
        for member in cls:
            if key == member.value.lower():
                return member
        raise InvalidParameterError(
            f"Unknown sampling method: {value!r}. Expected one of {[m.value for m in cls]}",
            parameter="method",
        )


def _check_sample_size(n: Any) -> int:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
        raise InvalidParameterError(
            f"Number of realizations must be a positive integer: {n}", parameter="n"
        )
    return int(n)


def _check_marginal(
    um: UncertaintyModel,
    n: int,
    method: SampleMethod,
    p: Sequence[float] | None,
) -> None:
    """Raise if ``um`` cannot be sampled with ``method``."""
    if not um.uncertain:
        return
    label = um.key or um.kind.value

    if um.kind in _CATEGORICAL_KINDS:
        if method is not SampleMethod.RANDOM:
            raise UnsupportedDistributionError(
                f"Categorical variable {label!r} supports randomSampling only, "
                f"not {method.value}"
            )
        return

    distribution = getattr(um, "distribution", None)
    if method is SampleMethod.UGS:
        if um.kind is UMKind.SCALAR:
            raise MissingCorrelogramError(
                f"Variable {label!r} has no spatial support; ugs needs a spatial "
                "variable with a correlogram model"
            )
        if distribution != DistributionFamily.NORMAL:
            raise UnsupportedDistributionError(
                "Only normal distribution can be assumed in the 'ugs' method"
            )
        if getattr(um, "crm", None) is None:
            raise MissingCorrelogramError(
                f"Correlogram model is required for the 'ugs' method (variable {label!r})"
            )
    elif method in (SampleMethod.STRATIFIED, SampleMethod.LHS):
        if distribution != DistributionFamily.NORMAL:
            raise UnsupportedDistributionError(
                f"Stratified sampling supports the normal distribution only (variable {label!r})"
            )
        bounds = validate_quantiles(p)
        draws_per_stratum(n, bounds)


def _parameters(um: UncertaintyModel) -> list[Any]:
    if isinstance(um, MarginalNumericSpatial):
        return list(um.parameter_arrays())
    return list(um.distr_param)  # type: ignore[attr-defined]


def _standard_field(
    um: MarginalNumericSpatial,
    n: int,
    neighborhood_limit: int | None,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Standard Gaussian fields shaped ``(n_locations, n)``."""
    simulator = SpatialFieldSimulator(um.crm, neighborhood_limit=neighborhood_limit)
    return simulator.simulate(um.support, n, seed=rng).T


def _rescale(um: MarginalNumericSpatial, field: NDArray) -> NDArray[np.float64]:
    mean, sd = um.parameter_arrays()[:2]
    return mean[:, np.newaxis] + sd[:, np.newaxis] * field


def _draw_independent(
    um: UncertaintyModel,
    n: int,
    method: SampleMethod,
    p: Sequence[float] | None,
    rng: np.random.Generator,
) -> NDArray[Any]:
    """Draws with the realization axis last: ``(n,)`` or ``(n_locations, n)``."""
    if um.kind in _CATEGORICAL_KINDS:
        return sample_categorical(n, um.categories, um.cat_prob, seed=rng)  # type: ignore

    params = _parameters(um)
    if method is SampleMethod.RANDOM:
        if getattr(um, "crm", None) is not None:
            logger.debug("Correlogram of %s is ignored by random sampling", um.key)
        return sample_distribution(n, um.distribution, params, seed=rng)  # type: ignore
    return stratified_normal(n, params[0], params[1], p, seed=rng)  # type: ignore[arg-type]


def _constant_sample(um: UncertaintyModel, n: int) -> SampleCollection:
    """``n`` copies of the central value of a deterministic variable."""
    value = np.asarray(um.central_value())
    categorical = um.kind in _CATEGORICAL_KINDS
    dtype = object if categorical else float
    realizations = np.empty((n,) + value.shape, dtype=dtype)
    realizations[...] = value
    return SampleCollection(
        realizations=realizations,
        support=um.support,
        variable_id=um.key,
        categories=tuple(um.categories) if categorical else None,  # type: ignore
    )


def _to_collection(um: UncertaintyModel, draws: NDArray) -> SampleCollection:
    """Wrap draws shaped ``(n,)`` or ``(n_locations, n)``."""
    categorical = um.kind in _CATEGORICAL_KINDS
    return SampleCollection(
        realizations=np.asarray(draws).T,
        support=um.support,
        variable_id=um.key,
        categories=tuple(um.categories) if categorical else None,  # type: ignore
    )


def _sample_marginal(
    um: UncertaintyModel,
    n: int,
    method: SampleMethod,
    p: Sequence[float] | None,
    neighborhood_limit: int | None,
    rng: np.random.Generator,
) -> SampleCollection:
    if method is SampleMethod.LHS:
        raise InvalidParameterError(
            "Latin hypercube sampling needs a joint model of two or more variables",
            parameter="method",
        )
    _check_marginal(um, n, method, p)

    if not um.uncertain:
        logger.debug("Variable %s is deterministic; repeating its central value", um.key)
        return _constant_sample(um, n)

    if method is SampleMethod.UGS:
        spatial_um: MarginalNumericSpatial = um  # type: ignore[assignment]
        draws = _rescale(spatial_um, _standard_field(spatial_um, n, neighborhood_limit, rng))
    else:
        draws = _draw_independent(um, n, method, p, rng)
    return _to_collection(um, draws)


def _sample_joint(
    jum: JointUncertaintyModel,
    n: int,
    method: SampleMethod,
    p: Sequence[float] | None,
    neighborhood_limit: int | None,
    rng: np.random.Generator,
) -> JointSampleCollection:
    if method is SampleMethod.LHS and p is None:
        p = np.linspace(0.0, 1.0, n + 1)
    for member in jum.members:
        _check_marginal(member, n, method, p)

    uncertain = [m for m in jum.members if m.uncertain]
    keys = [str(m.key) for m in uncertain]
    logger.debug(
        "Joint sample of %s using %s (%d deterministic members)",
        keys,
        method.value,
        len(jum.members) - len(uncertain),
    )

    if method is SampleMethod.UGS:
        fields = [_standard_field(m, n, neighborhood_limit, rng) for m in uncertain]  # type: ignore
        if len(fields) > 1:
            fields = assemble(fields, jum.correlation_matrix(keys), marginals="moments")
        drawn = {
            key: _rescale(m, f)  # type: ignore[arg-type]
            for key, m, f in zip(keys, uncertain, fields)
        }
    else:
        member_method = SampleMethod.STRATIFIED if method is SampleMethod.LHS else method
        draws = [_draw_independent(m, n, member_method, p, rng) for m in uncertain]
        if len(draws) > 1:
            draws = assemble(draws, jum.correlation_matrix(keys), marginals="ranks")
        drawn = dict(zip(keys, draws))

    samples: dict[str, SampleCollection] = {}
    for member in jum.members:
        key = str(member.key)
        if key in drawn:
            samples[key] = _to_collection(member, drawn[key])
        else:
            samples[key] = _constant_sample(member, n)
    return JointSampleCollection(samples=samples)


def gen_sample(
    um: UncertaintyModel | JointUncertaintyModel,
    n: int,
    method: str | SampleMethod = SampleMethod.UGS,
    p: Sequence[float] | None = None,
    neighborhood_limit: int | None = None,
    as_table: bool = False,
    seed: SeedLike = None,
) -> SampleCollection | JointSampleCollection | pd.DataFrame:
    """Generate a Monte Carlo sample of an uncertain input.

    Parameters
    ----------
    um : UncertaintyModel | JointUncertaintyModel
        Model created with :func:`define_um` or :func:`define_mum`.
    n : int
        Number of realizations.
    method : str | SampleMethod
        ``"ugs"``, ``"randomSampling"``, ``"stratifiedSampling"`` or
        ``"lhs"`` (joint models only).
    p : Sequence[float] | None
        Quantile boundaries of the strata for stratified sampling and
        ``lhs``. ``lhs`` defaults to ``n`` equal-probability strata.
    neighborhood_limit : int | None
        Maximum number of neighbours used per location by ``ugs``. None
        uses the exact method.
    as_table : bool
        Return a wide ``DataFrame`` with ``sim1..simN`` columns instead of
        a collection.
    seed : int | np.random.Generator | None
        Seed or generator for reproducibility.

    Returns
    -------
    SampleCollection | JointSampleCollection | pd.DataFrame
        Realizations ``1..n``, aligned across the variables of a joint model.

    Raises
    ------
    InvalidParameterError
        If ``n < 1``, the method is unknown, or ``p`` is invalid.
    MissingCorrelogramError
        If ``ugs`` is requested for a variable without correlogram.
    UnsupportedDistributionError
        If the distribution cannot be sampled with the method.
    InvalidSampleSizeError
        If ``n`` is not divisible by the number of strata.

    Examples
    --------
    >>> dem_um = define_um(distribution="norm", distr_param=[dem, dem_sd], crm=dem_crm)
    >>> sample = gen_sample(dem_um, n=50, method="ugs", neighborhood_limit=20, seed=1)
    >>> len(sample.as_list())
    50
    """
    n = _check_sample_size(n)
    sample_method = SampleMethod.parse(method)
    rng = make_rng(seed)

    result: SampleCollection | JointSampleCollection
    if isinstance(um, JointUncertaintyModel):
        result = _sample_joint(um, n, sample_method, p, neighborhood_limit, rng)
        label = ", ".join(um.ids)
    else:
        result = _sample_marginal(um, n, sample_method, p, neighborhood_limit, rng)
        label = str(um.key or um.kind.value)

    logger.info("Generated %d realizations of %s using %s", n, label, sample_method.value)
    return result.as_table() if as_table else result
