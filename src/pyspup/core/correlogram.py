"""Correlogram models describing spatial autocorrelation of errors.

A correlogram maps separation distance to the correlation between the
standardized errors at two locations. It is parameterized by the
correlation at distance 0+ (``sill``, called ``acf0`` in spup), a range
parameter and a model family. The remaining ``1 - sill`` of the unit
variance is a pure nugget, so the correlogram always describes a
zero-mean, unit-variance random field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyspup.core.exceptions import InvalidParameterError
from pyspup.core.support import SpatialSupport
from pyspup.core.variogram import Variogram, VariogramType, correlation_structure

CorrelogramFamily = VariogramType

_NUGGET_TOLERANCE = 1e-9


@dataclass(frozen=True)
class CorrelogramModel:
    """Spatial correlation structure of a standardized error field.

    Parameters
    ----------
    family : CorrelogramFamily
        Model family (``Exp``, ``Sph``, ``Gau``, ``Lin``, ``Mat``, ``Cir``,
        ``Pen``).
    sill : float
        Correlation at distance 0+, in (0, 1].
    range : float
        Range parameter (same units as the location coordinates).
    kappa : float
        Smoothness of the Matern family.
    anisotropy_ratio : float
        Ratio of major to minor range (1.0 = isotropic).
    anisotropy_angle : float
        Angle of the major axis in degrees from east (counterclockwise).

    Use :func:`make_correlogram` to build one from user input.
    """

    family: CorrelogramFamily
    sill: float
    range: float
    kappa: float = 0.5
    anisotropy_ratio: float = 1.0
    anisotropy_angle: float = 0.0
    _variogram: Variogram = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        family = CorrelogramFamily.parse(self.family)
        if family == CorrelogramFamily.NUGGET:
            raise InvalidParameterError(
                "A pure nugget carries no spatial correlation; use randomSampling instead",
                parameter="family",
            )
        object.__setattr__(self, "family", family)
        if not 0.0 < self.sill <= 1.0:
            raise InvalidParameterError(
                f"Correlogram sill (acf0) must be in (0, 1]: {self.sill}", parameter="sill"
            )
        if not self.range > 0:
            raise InvalidParameterError(
                f"Correlogram range must be positive: {self.range}", parameter="range"
            )
        object.__setattr__(self, "_variogram", self.to_variogram())

    @property
    def nugget(self) -> float:
        """Nugget share of the unit variance."""
        return 1.0 - self.sill

    def to_variogram(self) -> Variogram:
        """Variogram form of the correlogram.

        The variogram has partial sill ``sill``, nugget ``1 - sill`` and
        total sill 1, matching ``vgm(psill = acf0, nugget = 1 - acf0)``.
        """
        return Variogram(
            variogram_type=self.family,
            a=self.range,
            sill=self.sill,
            nugget=self.nugget,
            kappa=self.kappa,
            anisotropy_ratio=self.anisotropy_ratio,
            anisotropy_angle=self.anisotropy_angle,
        )

    def correlation(self, distance: NDArray | float) -> NDArray | float:
        """Correlation at separation distance(s).

        Equal to ``sill`` at distance 0 and non-increasing with distance.
        """
        h = np.asarray(distance, dtype=float)
        if np.any(h < 0):
            raise InvalidParameterError("Distances must be non-negative", parameter="distance")
        rho = self.sill * correlation_structure(self.family, h, self.range, self.kappa)
        if h.ndim == 0:
            return float(rho)
        return np.asarray(rho)

    def covariance(self, distance: NDArray | float) -> NDArray | float:
        """Covariance of the unit-variance field at separation distance(s).

        1 at distance exactly 0 (a location with itself), the correlation
        elsewhere.
        """
        return self._variogram.covariance(distance)

    def covariance_matrix(
        self,
        support: SpatialSupport,
        other: SpatialSupport | None = None,
    ) -> NDArray:
        """Covariance matrix between the locations of a support.

        Parameters
        ----------
        support : SpatialSupport
            Locations (rows).
        other : SpatialSupport | None
            Locations (columns). If None, use ``support``.

        Returns
        -------
        NDArray
            Covariance matrix (n x m), anisotropy applied.
        """
        vario = self._variogram
        if other is None:
            distances = vario.compute_distance_matrix(support.x, support.y)
        else:
            distances = vario.compute_distance_matrix(support.x, support.y, other.x, other.y)
        return np.asarray(vario.covariance(distances))

    def curve(
        self,
        max_distance: float | None = None,
        n_points: int = 200,
    ) -> tuple[NDArray, NDArray]:
        """Correlation-vs-distance curve for display.

        Parameters
        ----------
        max_distance : float | None
            Largest distance. Defaults to 1.5 times the effective range.
        n_points : int
            Number of curve points.

        Returns
        -------
        tuple[NDArray, NDArray]
            Distances and correlations.
        """
        if max_distance is None:
            max_distance = 1.5 * self._variogram.effective_range
        distances = np.linspace(0.0, max_distance, n_points)
        return distances, np.asarray(self.correlation(distances))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "family": self.family.value,
            "sill": self.sill,
            "range": self.range,
            "kappa": self.kappa,
            "anisotropy_ratio": self.anisotropy_ratio,
            "anisotropy_angle": self.anisotropy_angle,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CorrelogramModel:
        """Create from dictionary (keys as in :func:`make_correlogram`)."""
        d = dict(d)
        if "acf0" in d:
            d.setdefault("sill", d.pop("acf0"))
        if "model" in d:
            d.setdefault("family", d.pop("model"))
        try:
            sill = d.pop("sill")
            range_ = d.pop("range")
        except KeyError as exc:
            raise InvalidParameterError(
                f"Correlogram definition is missing {exc.args[0]!r}", parameter=exc.args[0]
            ) from exc
        return make_correlogram(sill, range_, **d)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"CorrelogramModel(family={self.family.value}, sill={self.sill:.4f}, "
            f"range={self.range:.2f})"
        )


def make_correlogram(
    sill: float,
    range: float,
    family: str | CorrelogramFamily = "Exp",
    nugget: float | None = None,
    kappa: float = 0.5,
    anisotropy_ratio: float = 1.0,
    anisotropy_angle: float = 0.0,
) -> CorrelogramModel:
    """Create a correlogram model.

    Parameters
    ----------
    sill : float
        Correlation at distance 0+ (acf0), in (0, 1].
    range : float
        Range parameter, positive.
    family : str | CorrelogramFamily
        Model family code or name. Default ``"Exp"``.
    nugget : float | None
        Nugget share of the unit variance. It is implied by the sill; when
        given it must equal ``1 - sill``.
    kappa : float
        Matern smoothness.
    anisotropy_ratio, anisotropy_angle : float
        Geometric anisotropy.

    Returns
    -------
    CorrelogramModel

    Raises
    ------
    InvalidParameterError
        If a parameter is out of domain.

    Examples
    --------
    >>> dem_crm = make_correlogram(sill=0.78, range=321, family="Exp")
    >>> dem_crm.correlation(0.0)
    0.78
    """
    if nugget is not None:
        if not 0.0 <= nugget < 1.0:
            raise InvalidParameterError(
                f"Nugget must be in [0, 1): {nugget}", parameter="nugget"
            )
        if abs(nugget - (1.0 - sill)) > _NUGGET_TOLERANCE:
            raise InvalidParameterError(
                f"Nugget {nugget} is inconsistent with sill {sill}; "
                f"a unit-variance field requires nugget = 1 - sill = {1.0 - sill}",
                parameter="nugget",
            )
    return CorrelogramModel(
        family=CorrelogramFamily.parse(family),
        sill=float(sill),
        range=float(range),
        kappa=float(kappa),
        anisotropy_ratio=float(anisotropy_ratio),
        anisotropy_angle=float(anisotropy_angle),
    )
