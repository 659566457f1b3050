"""Variogram models behind the correlogram of a standardized error field.

A correlogram with correlation ``sill`` at distance 0+ is the covariance of
a unit-variance field whose variogram has partial sill ``sill`` and nugget
``1 - sill``. This module holds that variogram side:

- model families with gstat definitions, so a range ``a`` means the same
  here as in ``vgm(psill, model, range, nugget)``
- geometric anisotropy applied to coordinates before distances are taken
- empirical semivariograms for checking simulated fields
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray
from scipy import optimize, special
from scipy.spatial.distance import cdist

from pyspup.core.exceptions import InvalidParameterError

# Correlation left at the practical (effective) range
_PRACTICAL_CORRELATION = 0.05


class VariogramType(Enum):
    """Types of variogram models (gstat model codes)."""

    EXPONENTIAL = "Exp"
    SPHERICAL = "Sph"
    GAUSSIAN = "Gau"
    LINEAR = "Lin"
    MATERN = "Mat"
    CIRCULAR = "Cir"
    PENTASPHERICAL = "Pen"
    NUGGET = "Nug"

    @classmethod
    def parse(cls, value: str | VariogramType) -> VariogramType:
        """Resolve a model code or long name, case-insensitively."""
        if isinstance(value, VariogramType):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        raise InvalidParameterError(
            f"Unknown variogram model: {value!r}. "
            f"Expected one of {[m.value for m in cls]}",
            parameter="model",
        )


def correlation_structure(
    variogram_type: VariogramType,
    h: NDArray,
    a: float,
    kappa: float = 0.5,
) -> NDArray:
    """Unit correlation function rho(h) of a model family.

    rho(0) = 1 and rho decreases to 0 with distance. The nugget model is 0
    everywhere except at h = 0.
    """
    h = np.asarray(h, dtype=float)
    hr = h / a
    if variogram_type == VariogramType.EXPONENTIAL:
        return np.exp(-hr)
    if variogram_type == VariogramType.GAUSSIAN:
        return np.exp(-(hr**2))
    if variogram_type == VariogramType.SPHERICAL:
        return np.where(hr < 1, 1.0 - 1.5 * hr + 0.5 * hr**3, 0.0)
    if variogram_type == VariogramType.LINEAR:
        return np.where(hr < 1, 1.0 - hr, 0.0)
    if variogram_type == VariogramType.CIRCULAR:
        hc = np.minimum(hr, 1.0)
        rho = 1.0 - (2.0 / np.pi) * (hc * np.sqrt(1.0 - hc**2) + np.arcsin(hc))
        return np.where(hr < 1, rho, 0.0)
    if variogram_type == VariogramType.PENTASPHERICAL:
        rho = 1.0 - (15.0 / 8.0 * hr - 5.0 / 4.0 * hr**3 + 3.0 / 8.0 * hr**5)
        return np.where(hr < 1, rho, 0.0)
    if variogram_type == VariogramType.MATERN:
        # K_kappa diverges at 0, evaluate on a safe copy and patch rho(0) = 1
        safe = np.where(hr > 0, hr, 1.0)
        scale = 1.0 / (2.0 ** (kappa - 1.0) * special.gamma(kappa))
        rho = scale * safe**kappa * special.kv(kappa, safe)
        return np.where(hr > 0, np.clip(rho, 0.0, 1.0), 1.0)
    return np.where(h == 0, 1.0, 0.0)


@dataclass
class Variogram:
    """Variogram of a stationary field with a nugget and one structure.

    gamma(0) = 0 and, for h > 0,
    ``gamma(h) = nugget + sill * (1 - rho(h))``, so the covariance is
    ``nugget + sill`` at distance 0 and ``sill * rho(h)`` elsewhere.

    Parameters
    ----------
    variogram_type : str | VariogramType
        Model family (gstat code such as ``"Exp"``).
    a : float
        Range parameter.
    sill : float
        Partial sill of the structured component.
    nugget : float
        Nugget effect - discontinuity at the origin.
    kappa : float
        Smoothness parameter of the Matern model.
    anisotropy_ratio : float
        Ratio of major to minor range (1.0 = isotropic).
    anisotropy_angle : float
        Angle of major axis in degrees from east (counterclockwise).

    Examples
    --------
    >>> vario = Variogram("Exp", a=321, sill=0.78, nugget=0.22)
    >>> gamma = vario.evaluate(np.array([0, 100, 500]))
    """

    variogram_type: str | VariogramType
    a: float
    sill: float = 1.0
    nugget: float = 0.0
    kappa: float = 0.5
    anisotropy_ratio: float = 1.0
    anisotropy_angle: float = 0.0

    def __post_init__(self) -> None:
        self.variogram_type = VariogramType.parse(self.variogram_type)
        checks = [
            ("range", self.a > 0, f"Range must be positive: {self.a}"),
            ("sill", self.sill >= 0, f"Sill must be non-negative: {self.sill}"),
            ("nugget", self.nugget >= 0, f"Nugget must be non-negative: {self.nugget}"),
            ("kappa", self.kappa > 0, f"Kappa must be positive: {self.kappa}"),
            (
                "anisotropy_ratio",
                self.anisotropy_ratio > 0,
                f"Anisotropy ratio must be positive: {self.anisotropy_ratio}",
            ),
        ]
        for parameter, valid, message in checks:
            if not valid:
                raise InvalidParameterError(message, parameter=parameter)

    @property
    def model(self) -> VariogramType:
        """Model family as an enum member."""
        return VariogramType.parse(self.variogram_type)

    @property
    def total_sill(self) -> float:
        """Total sill (nugget + partial sill)."""
        return self.nugget + self.sill

    @property
    def effective_range(self) -> float:
        """Distance at which the structured correlation drops to 5%.

        Bounded families reach zero at ``a``. Exponential and Gaussian
        models have closed forms (``3a`` and ``sqrt(3) a``, the usual
        practical ranges); the Matern range is found numerically.
        """
        model = self.model
        if model == VariogramType.EXPONENTIAL:
            return float(3.0 * self.a)
        if model == VariogramType.GAUSSIAN:
            return float(np.sqrt(3.0) * self.a)
        if model == VariogramType.MATERN:

            def excess(h: float) -> float:
                rho = correlation_structure(model, np.array(h), self.a, self.kappa)
                return float(rho) - _PRACTICAL_CORRELATION

            upper = self.a
            while excess(upper) > 0:
                upper *= 2.0
            return float(optimize.brentq(excess, 0.0, upper))
        return float(self.a)

    def evaluate(self, h: NDArray | float) -> NDArray | float:
        """Semivariance gamma(h) at lag distance(s) ``h``."""
        lags = np.asarray(h, dtype=float)
        rho = correlation_structure(self.model, lags, self.a, self.kappa)
        gamma = np.where(lags == 0, 0.0, self.nugget + self.sill * (1.0 - rho))
        if lags.ndim == 0:
            return float(gamma)
        return np.asarray(gamma)

    def covariance(self, h: NDArray | float) -> NDArray | float:
        """Covariance ``C(h) = total_sill - gamma(h)`` at lag distance(s) ``h``."""
        return self.total_sill - self.evaluate(h)

    def _rotation(self) -> NDArray[np.float64]:
        """Rotate onto the major axis, then stretch the minor axis by the ratio."""
        theta = np.radians(self.anisotropy_angle)
        rotate = np.array(
            [[np.cos(theta), np.sin(theta)], [-np.sin(theta), np.cos(theta)]]
        )
        return np.diag([1.0, self.anisotropy_ratio]) @ rotate

    def transform_coordinates(
        self,
        x: NDArray,
        y: NDArray,
    ) -> tuple[NDArray, NDArray]:
        """Map coordinates to the isotropic space of the model.

        Euclidean distances between transformed coordinates are the
        anisotropic distances used by :meth:`covariance`.
        """
        if self.anisotropy_ratio == 1.0:
            return np.asarray(x, dtype=float), np.asarray(y, dtype=float)
        points = self._rotation() @ np.vstack([np.ravel(x), np.ravel(y)]).astype(float)
        return points[0], points[1]

    def compute_distance_matrix(
        self,
        x1: NDArray,
        y1: NDArray,
        x2: NDArray | None = None,
        y2: NDArray | None = None,
    ) -> NDArray:
        """Anisotropic distances between two sets of locations.

        Parameters
        ----------
        x1, y1 : NDArray
            First set of coordinates (rows).
        x2, y2 : NDArray | None
            Second set of coordinates (columns). If None, use the first set.

        Returns
        -------
        NDArray
            Distance matrix.
        """
        first = np.column_stack(self.transform_coordinates(x1, y1))
        if x2 is None or y2 is None:
            return np.asarray(cdist(first, first))
        second = np.column_stack(self.transform_coordinates(x2, y2))
        return np.asarray(cdist(first, second))

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"Variogram(type={self.model.value}, a={self.a:.2f}, "
            f"sill={self.sill:.4f}, nugget={self.nugget:.4f})"
        )


def compute_empirical_variogram(
    x: NDArray,
    y: NDArray,
    values: NDArray,
    n_lags: int = 15,
    max_lag: float | None = None,
) -> tuple[NDArray, NDArray, NDArray]:
    """Empirical semivariogram of one field or of a stack of realizations.

    Parameters
    ----------
    x, y : NDArray
        Coordinates of the locations.
    values : NDArray
        Field values, ``(n_locations,)``, or realizations
        ``(n_realizations, n_locations)`` whose semivariances are averaged.
    n_lags : int
        Number of lag bins.
    max_lag : float | None
        Largest lag. Defaults to half the largest separation.

    Returns
    -------
    tuple[NDArray, NDArray, NDArray]
        Lag centers, semivariances and pair counts per bin. Bins without
        pairs have semivariance 0.
    """
    fields = np.atleast_2d(np.asarray(values, dtype=float))
    coords = np.column_stack([np.ravel(x), np.ravel(y)])
    if fields.shape[1] != coords.shape[0]:
        raise InvalidParameterError(
            f"Values of shape {fields.shape} do not match {coords.shape[0]} locations",
            parameter="values",
        )

    i, j = np.triu_indices(coords.shape[0], k=1)
    lags = np.hypot(*(coords[i] - coords[j]).T)
    if max_lag is None:
        max_lag = float(lags.max()) / 2.0 if lags.size else 1.0
    edges = np.linspace(0.0, max_lag, n_lags + 1)

    half_sq = 0.5 * np.mean((fields[:, i] - fields[:, j]) ** 2, axis=0)
    counts, _ = np.histogram(lags, bins=edges)
    sums, _ = np.histogram(lags, bins=edges, weights=half_sq)
    gamma = np.divide(sums, counts, out=np.zeros(n_lags), where=counts > 0)
    return 0.5 * (edges[:-1] + edges[1:]), gamma, counts
