"""Parametric distribution families for uncertain inputs.

Family names follow the R conventions used by spup (``norm``, ``beta``,
``gamma``, ...); longer names such as ``"normal"`` are accepted as aliases.
Each family has a fixed, ordered parameter list.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyspup.core.exceptions import InvalidParameterError, UnsupportedDistributionError


class DistributionFamily(Enum):
    """Supported distribution families (R names)."""

    NORMAL = "norm"
    BETA = "beta"
    GAMMA = "gamma"
    EXPONENTIAL = "exp"
    UNIFORM = "unif"
    CHISQ = "chisq"
    CAUCHY = "cauchy"
    LOGNORMAL = "lnorm"
    LOGISTIC = "logis"
    STUDENT_T = "t"
    WEIBULL = "weibull"
    BINOMIAL = "binom"
    POISSON = "pois"

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Ordered parameter names."""
        return PARAMETER_NAMES[self]

    @property
    def n_parameters(self) -> int:
        """Number of parameters."""
        return len(PARAMETER_NAMES[self])


PARAMETER_NAMES: dict[DistributionFamily, tuple[str, ...]] = {
    DistributionFamily.NORMAL: ("mean", "sd"),
    DistributionFamily.BETA: ("alpha", "beta"),
    DistributionFamily.GAMMA: ("shape", "rate"),
    DistributionFamily.EXPONENTIAL: ("rate",),
    DistributionFamily.UNIFORM: ("min", "max"),
    DistributionFamily.CHISQ: ("df",),
    DistributionFamily.CAUCHY: ("location", "scale"),
    DistributionFamily.LOGNORMAL: ("meanlog", "sdlog"),
    DistributionFamily.LOGISTIC: ("location", "scale"),
    DistributionFamily.STUDENT_T: ("df",),
    DistributionFamily.WEIBULL: ("shape", "scale"),
    DistributionFamily.BINOMIAL: ("size", "prob"),
    DistributionFamily.POISSON: ("lambda",),
}

_ALIASES: dict[str, DistributionFamily] = {
    "normal": DistributionFamily.NORMAL,
    "gaussian": DistributionFamily.NORMAL,
    "exponential": DistributionFamily.EXPONENTIAL,
    "uniform": DistributionFamily.UNIFORM,
    "chi-squared": DistributionFamily.CHISQ,
    "chisquared": DistributionFamily.CHISQ,
    "lognormal": DistributionFamily.LOGNORMAL,
    "logistic": DistributionFamily.LOGISTIC,
    "student": DistributionFamily.STUDENT_T,
    "binomial": DistributionFamily.BINOMIAL,
    "poisson": DistributionFamily.POISSON,
}

# (parameter index, predicate returning True for invalid entries, message)
_DOMAIN_RULES: dict[DistributionFamily, list[tuple[int, Any, str]]] = {
    DistributionFamily.NORMAL: [(1, lambda v: v < 0, "sd must be non-negative")],
    DistributionFamily.BETA: [
        (0, lambda v: v <= 0, "alpha must be positive"),
        (1, lambda v: v <= 0, "beta must be positive"),
    ],
    DistributionFamily.GAMMA: [
        (0, lambda v: v <= 0, "shape must be positive"),
        (1, lambda v: v <= 0, "rate must be positive"),
    ],
    DistributionFamily.EXPONENTIAL: [(0, lambda v: v <= 0, "rate must be positive")],
    DistributionFamily.CHISQ: [(0, lambda v: v <= 0, "df must be positive")],
    DistributionFamily.CAUCHY: [(1, lambda v: v <= 0, "scale must be positive")],
    DistributionFamily.LOGNORMAL: [(1, lambda v: v < 0, "sdlog must be non-negative")],
    DistributionFamily.LOGISTIC: [(1, lambda v: v <= 0, "scale must be positive")],
    DistributionFamily.STUDENT_T: [(0, lambda v: v <= 0, "df must be positive")],
    DistributionFamily.WEIBULL: [
        (0, lambda v: v <= 0, "shape must be positive"),
        (1, lambda v: v <= 0, "scale must be positive"),
    ],
    DistributionFamily.BINOMIAL: [
        (
            0,
            lambda v: (v < 0) | np.isinf(v) | (~np.isnan(v) & (v != np.floor(v))),
            "size must be a non-negative integer",
        ),
        (1, lambda v: (v < 0) | (v > 1), "prob must be in [0, 1]"),
    ],
    DistributionFamily.POISSON: [
        (0, lambda v: (v < 0) | np.isinf(v), "lambda must be finite and non-negative")
    ],
}


def resolve_family(name: str | DistributionFamily) -> DistributionFamily:
    """Resolve a family from its R name, enum name or alias.

    Raises
    ------
    UnsupportedDistributionError
        If the name is not a supported family.
    """
    if isinstance(name, DistributionFamily):
        return name
    key = str(name).strip()
    for member in DistributionFamily:
        if key == member.value or key.upper() == member.name:
            return member
    family = _ALIASES.get(key.lower())
    if family is None:
        raise UnsupportedDistributionError(
            f"Unsupported distribution: {name!r}. "
            f"Expected one of {[m.value for m in DistributionFamily]}"
        )
    return family


def validate_parameters(
    family: DistributionFamily,
    params: list[NDArray] | tuple[NDArray, ...],
) -> None:
    """Check parameter count and domain for a family.

    Parameters
    ----------
    family : DistributionFamily
        Distribution family.
    params : list[NDArray]
        One array (or scalar) per family parameter. NaN entries are
        accepted and propagate to the draws.

    Raises
    ------
    InvalidParameterError
        If the count is wrong or a value is out of domain.
    """
    if len(params) != family.n_parameters:
        raise InvalidParameterError(
            f"Distribution '{family.value}' takes {family.n_parameters} parameter(s) "
            f"{family.parameter_names}, got {len(params)}",
            parameter="distr_param",
        )

    arrays = [np.asarray(p, dtype=float) for p in params]
    with np.errstate(invalid="ignore"):
        for index, is_invalid, message in _DOMAIN_RULES.get(family, []):
            if np.any(is_invalid(arrays[index])):
                raise InvalidParameterError(
                    f"Invalid '{family.value}' parameters: {message}",
                    parameter=family.parameter_names[index],
                )
        if family == DistributionFamily.UNIFORM and np.any(arrays[0] > arrays[1]):
            raise InvalidParameterError(
                "Invalid 'unif' parameters: min must not exceed max", parameter="min"
            )
