"""Uncertainty models for model inputs.

An uncertainty model (UM) describes the marginal uncertainty of one input
variable: a parametric distribution, or a set of category probabilities,
optionally attached to a spatial support and a correlogram. Variants:

- ``MarginalScalar``: distribution + parameter vector, no spatial support
- ``MarginalNumericSpatial``: distribution + parameter surfaces, optional
  correlogram (Normal only)
- ``MarginalCategorical``: categories + one probability vector
- ``MarginalCategoricalSpatial``: categories + per-location probabilities

``JointUncertaintyModel`` groups numeric UMs on a common support with a
cross-correlation matrix. Use :func:`define_um` and :func:`define_mum` to
build models from user input.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pyspup.core.correlogram import CorrelogramModel
from pyspup.core.exceptions import (
    InvalidParameterError,
    MisalignedSupportError,
    UnsupportedDistributionError,
)
from pyspup.core.families import DistributionFamily, resolve_family, validate_parameters
from pyspup.core.support import SpatialSupport, Surface, check_aligned

_PROBABILITY_TOLERANCE = 1e-6


class UMKind(Enum):
    """Uncertainty model variants."""

    SCALAR = "MarginalScalar"
    NUMERIC_SPATIAL = "MarginalNumericSpatial"
    CATEGORICAL = "MarginalCategorical"
    CATEGORICAL_SPATIAL = "MarginalCategoricalSpatial"
    JOINT = "JointNumeric"


class UncertaintyModel(ABC):
    """Common interface of all uncertainty model variants."""

    uncertain: bool
    id: str | None
    cross_group_id: str | None

    @property
    @abstractmethod
    def kind(self) -> UMKind:
        """Variant tag used for dispatch."""

    @property
    def support(self) -> SpatialSupport | None:
        """Spatial support, or None for non-spatial models."""
        return None

    @property
    def is_spatial(self) -> bool:
        """True when the model is defined over a spatial support."""
        return self.support is not None

    @property
    def key(self) -> str | None:
        """Key of the model in a cross-correlation matrix."""
        return self.cross_group_id or self.id

    @abstractmethod
    def central_value(self) -> Any:
        """Value used when the variable is treated as deterministic."""


@dataclass(frozen=True, eq=False)
class MarginalScalar(UncertaintyModel):
    """Single uncertain number."""

    distribution: DistributionFamily | None
    distr_param: tuple[float, ...]
    uncertain: bool = True
    id: str | None = None
    cross_group_id: str | None = None

    @property
    def kind(self) -> UMKind:
        return UMKind.SCALAR

    def central_value(self) -> float:
        return float(self.distr_param[0])


@dataclass(frozen=True, eq=False)
class MarginalNumericSpatial(UncertaintyModel):
    """Uncertain numeric surface, e.g. a DEM with a standard deviation map.

    ``distr_param`` holds one surface per distribution parameter, all on
    the same support. With a correlogram the distribution must be Normal
    and the surfaces are the mean and standard deviation.
    """

    distribution: DistributionFamily | None
    distr_param: tuple[Surface, ...]
    crm: CorrelogramModel | None = None
    uncertain: bool = True
    id: str | None = None
    cross_group_id: str | None = None

    @property
    def kind(self) -> UMKind:
        return UMKind.NUMERIC_SPATIAL

    @property
    def support(self) -> SpatialSupport:
        return self.distr_param[0].support

    def parameter_arrays(self) -> list[NDArray[np.float64]]:
        """Parameter surfaces as flat float arrays, in family order."""
        return [np.asarray(s.values, dtype=float) for s in self.distr_param]

    def central_value(self) -> NDArray[np.float64]:
        return np.asarray(self.distr_param[0].values, dtype=float)


@dataclass(frozen=True, eq=False)
class MarginalCategorical(UncertaintyModel):
    """Single uncertain category."""

    categories: tuple[Any, ...]
    cat_prob: NDArray[np.float64]
    uncertain: bool = True
    id: str | None = None
    cross_group_id: str | None = None

    @property
    def kind(self) -> UMKind:
        return UMKind.CATEGORICAL

    def central_value(self) -> Any:
        return self.categories[int(np.argmax(self.cat_prob))]


@dataclass(frozen=True, eq=False)
class MarginalCategoricalSpatial(UncertaintyModel):
    """Uncertain categorical map, e.g. land use with class probabilities."""

    categories: tuple[Any, ...]
    cat_prob: NDArray[np.float64]
    spatial_support: SpatialSupport
    uncertain: bool = True
    id: str | None = None
    cross_group_id: str | None = None

    @property
    def kind(self) -> UMKind:
        return UMKind.CATEGORICAL_SPATIAL

    @property
    def support(self) -> SpatialSupport:
        return self.spatial_support

    def central_value(self) -> NDArray[Any]:
        """Most probable category at each location."""
        labels = np.asarray(self.categories, dtype=object)
        return labels[np.argmax(self.cat_prob, axis=1)]


@dataclass(frozen=True, eq=False)
class JointUncertaintyModel:
    """Cross-correlated set of numeric uncertainty models.

    Attributes
    ----------
    members : tuple[UncertaintyModel, ...]
        Member models, in realization order.
    cormatrix : pd.DataFrame
        Cross-correlation matrix with index and columns keyed by member key
        (``cross_group_id`` or ``id``), ordered like ``members``.
    """

    members: tuple[UncertaintyModel, ...]
    cormatrix: pd.DataFrame

    @property
    def kind(self) -> UMKind:
        return UMKind.JOINT

    @property
    def ids(self) -> list[str]:
        """Member keys in order."""
        return [str(m.key) for m in self.members]

    @property
    def support(self) -> SpatialSupport | None:
        return self.members[0].support

    @property
    def uncertain(self) -> bool:
        return any(m.uncertain for m in self.members)

    def correlation_matrix(self, keys: Sequence[str] | None = None) -> NDArray[np.float64]:
        """Cross-correlation matrix, optionally restricted to some members."""
        if keys is None:
            keys = self.ids
        return self.cormatrix.loc[list(keys), list(keys)].to_numpy(dtype=float)

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self):
        return iter(self.members)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"JointUncertaintyModel(ids={self.ids})"


def _as_surface(value: Any, support: SpatialSupport | None, name: str) -> Surface:
    if isinstance(value, Surface):
        return value
    if support is None:
        raise InvalidParameterError(
            "Array parameters need a spatial support; pass Surface objects or support=",
            parameter="distr_param",
        )
    values = np.asarray(value)
    if values.ndim == 0:
        values = np.full(support.n_locations, values.item())
    return Surface(support=support, values=values, name=name)


def _is_spatial_param(distr_param: Sequence[Any]) -> bool:
    return any(isinstance(p, Surface) or np.ndim(p) > 0 for p in distr_param)


def _probability_table(
    cat_prob: Any,
    categories: tuple[Any, ...],
    support: SpatialSupport | None,
) -> tuple[NDArray[np.float64], SpatialSupport | None]:
    """Normalize category probabilities to an ``(m, k)`` array."""
    k = len(categories)
    if isinstance(cat_prob, (list, tuple)) and cat_prob and isinstance(cat_prob[0], Surface):
        support = check_aligned(list(cat_prob))
        table = np.column_stack([np.asarray(s.values, dtype=float) for s in cat_prob])
    elif isinstance(cat_prob, pd.DataFrame):
        labels = [str(c) for c in categories]
        columns = [str(c) for c in cat_prob.columns]
        if all(label in columns for label in labels):
            frame = cat_prob.set_axis(columns, axis=1)
            table = frame[labels].to_numpy(dtype=float)
        else:
            table = cat_prob.to_numpy(dtype=float)
    else:
        table = np.array(cat_prob, dtype=float)

    if table.ndim == 1:
        table = table.reshape(1, -1)
    if table.ndim != 2 or table.shape[1] < k:
        raise InvalidParameterError(
            f"Category probabilities need at least {k} columns, got shape {table.shape}",
            parameter="cat_prob",
        )
    table = table[:, :k]
    if support is not None and table.shape[0] != support.n_locations:
        raise MisalignedSupportError(
            f"Category probability table has {table.shape[0]} rows for "
            f"{support.n_locations} locations"
        )
    if np.any(table < 0) or np.any(np.isnan(table)):
        raise InvalidParameterError(
            "Category probabilities must be non-negative numbers", parameter="cat_prob"
        )
    row_sums = table.sum(axis=1)
    if np.any(np.abs(row_sums - 1.0) > _PROBABILITY_TOLERANCE):
        raise InvalidParameterError(
            "Category probabilities must sum to 1 at every location", parameter="cat_prob"
        )
    table.setflags(write=False)
    return table, support


def define_um(
    uncertain: bool = True,
    distribution: str | DistributionFamily | None = None,
    distr_param: Sequence[Any] | None = None,
    categories: Sequence[Any] | None = None,
    cat_prob: Any = None,
    crm: CorrelogramModel | None = None,
    id: str | None = None,
    cross_group_id: str | None = None,
    support: SpatialSupport | None = None,
) -> UncertaintyModel:
    """Define an uncertainty model.

    The variant is chosen from the arguments: ``distribution``/``distr_param``
    give a numeric model, ``categories``/``cat_prob`` a categorical one; the
    model is spatial when its parameters are surfaces (or arrays together
    with ``support``).

    Parameters
    ----------
    uncertain : bool
        If False the variable is deterministic and every realization equals
        its central value.
    distribution : str | DistributionFamily | None
        Distribution family (R name such as ``"norm"``). May be omitted for
        deterministic variables.
    distr_param : Sequence | None
        Distribution parameters: numbers for a scalar, surfaces for a
        spatial variable (e.g. ``[dem, dem_sd]``).
    categories : Sequence | None
        Category labels.
    cat_prob : Any
        Category probabilities: a vector, an ``(m, k)`` table, a DataFrame
        (columns named after the categories are preferred) or one surface
        per category.
    crm : CorrelogramModel | None
        Spatial correlogram of the standardized errors.
    id, cross_group_id : str | None
        Variable identifier and cross-correlation group.
    support : SpatialSupport | None
        Support for array-valued parameters.

    Returns
    -------
    UncertaintyModel
        The matching variant.

    Raises
    ------
    InvalidParameterError
        If both or neither kind of parameters is given, or values are invalid.
    UnsupportedDistributionError
        If the family is unknown, or not Normal while a correlogram is set.
    MisalignedSupportError
        If parameter surfaces do not share support.

    Examples
    --------
    >>> dem_crm = make_correlogram(sill=0.78, range=321, family="Exp")
    >>> dem_um = define_um(distribution="norm", distr_param=[dem, dem_sd], crm=dem_crm)
    """
    numeric = distr_param is not None
    categorical = categories is not None or cat_prob is not None
    if numeric == categorical:
        raise InvalidParameterError(
            "Specify exactly one of distr_param (numeric) or categories/cat_prob (categorical)"
        )

    if categorical:
        if categories is None or cat_prob is None:
            raise InvalidParameterError(
                "Categorical models need both categories and cat_prob", parameter="cat_prob"
            )
        if crm is not None:
            raise UnsupportedDistributionError(
                "Correlograms are only supported for Normal numeric variables"
            )
        labels = tuple(categories)
        if len(labels) == 0 or len(set(labels)) != len(labels):
            raise InvalidParameterError(
                "Categories must be a non-empty list of unique labels", parameter="categories"
            )
        table, table_support = _probability_table(cat_prob, labels, support)
        if table_support is None and table.shape[0] == 1:
            return MarginalCategorical(
                categories=labels,
                cat_prob=table[0],
                uncertain=uncertain,
                id=id,
                cross_group_id=cross_group_id,
            )
        if table_support is None:
            raise InvalidParameterError(
                "A per-location probability table needs a spatial support",
                parameter="support",
            )
        return MarginalCategoricalSpatial(
            categories=labels,
            cat_prob=table,
            spatial_support=table_support,
            uncertain=uncertain,
            id=id,
            cross_group_id=cross_group_id,
        )

    params = list(distr_param or [])
    if not params:
        raise InvalidParameterError("distr_param must not be empty", parameter="distr_param")

    family: DistributionFamily | None = None
    if distribution is not None:
        family = resolve_family(distribution)
    elif uncertain:
        raise InvalidParameterError(
            "An uncertain numeric variable needs a distribution", parameter="distribution"
        )

    if crm is not None and family != DistributionFamily.NORMAL:
        raise UnsupportedDistributionError(
            "Only the normal distribution can be combined with a correlogram model"
        )

    if _is_spatial_param(params) or support is not None:
        if support is None:
            support = next((p.support for p in params if isinstance(p, Surface)), None)
        names = family.parameter_names if family is not None else ()
        surfaces = [
            _as_surface(p, support, names[i] if i < len(names) else f"param{i + 1}")
            for i, p in enumerate(params)
        ]
        check_aligned(surfaces)
        if uncertain and family is not None:
            validate_parameters(family, [s.values for s in surfaces])
        return MarginalNumericSpatial(
            distribution=family,
            distr_param=tuple(surfaces),
            crm=crm,
            uncertain=uncertain,
            id=id,
            cross_group_id=cross_group_id,
        )

    if crm is not None:
        raise InvalidParameterError(
            "A correlogram needs spatial parameters (surfaces)", parameter="crm"
        )
    values = tuple(float(p) for p in params)
    if uncertain and family is not None:
        validate_parameters(family, values)
    return MarginalScalar(
        distribution=family,
        distr_param=values,
        uncertain=uncertain,
        id=id,
        cross_group_id=cross_group_id,
    )


def define_mum(
    ums: Sequence[UncertaintyModel],
    cormatrix: pd.DataFrame | NDArray | Sequence[Sequence[float]],
    ids: Sequence[str] | None = None,
) -> JointUncertaintyModel:
    """Define a joint uncertainty model of cross-correlated variables.

    Parameters
    ----------
    ums : Sequence[UncertaintyModel]
        Numeric member models, each with an ``id`` or ``cross_group_id``.
    cormatrix : pd.DataFrame | NDArray
        Cross-correlation matrix. A DataFrame is matched to the members by
        its index and column labels; a plain matrix by position, or by
        ``ids`` when given.
    ids : Sequence[str] | None
        Row/column labels of a plain matrix.

    Returns
    -------
    JointUncertaintyModel

    Raises
    ------
    InvalidParameterError
        If member keys are missing, duplicated or absent from the matrix.
    InvalidCorrelationMatrixError
        If the matrix is not a valid correlation matrix.
    MisalignedSupportError
        If members do not share support.
    UnsupportedDistributionError
        If a member is categorical.
    """
    from pyspup.sampling.crosscorr import validate_correlation_matrix

    members = tuple(ums)
    if len(members) < 2:
        raise InvalidParameterError("A joint model needs at least two variables", parameter="ums")

    keys: list[str] = []
    for i, um in enumerate(members, start=1):
        if um.kind in (UMKind.CATEGORICAL, UMKind.CATEGORICAL_SPATIAL):
            raise UnsupportedDistributionError(
                f"Joint models support numeric variables only; member {i} is categorical"
            )
        if not um.key:
            raise InvalidParameterError(
                f"Member {i} needs an id or cross_group_id", parameter="id"
            )
        keys.append(str(um.key))
    if len(set(keys)) != len(keys):
        raise InvalidParameterError(f"Member ids must be unique: {keys}", parameter="id")

    supports = [um.support for um in members]
    if any(s is None for s in supports) != all(s is None for s in supports):
        raise MisalignedSupportError("Joint models cannot mix scalar and spatial variables")
    first = supports[0]
    if first is not None:
        for i, other in enumerate(supports[1:], start=2):
            if other is None or not first.same_as(other):
                raise MisalignedSupportError(
                    f"Member {i} does not share the spatial support of member 1"
                )

    if isinstance(cormatrix, pd.DataFrame):
        frame = cormatrix.copy()
        frame.index = [str(i) for i in frame.index]
        frame.columns = [str(c) for c in frame.columns]
    else:
        matrix = np.asarray(cormatrix, dtype=float)
        labels = [str(i) for i in ids] if ids is not None else keys
        if matrix.ndim != 2 or matrix.shape[0] != len(labels) or matrix.shape[1] != len(labels):
            raise InvalidParameterError(
                f"Correlation matrix of shape {matrix.shape} does not match "
                f"{len(labels)} variables",
                parameter="cormatrix",
            )
        frame = pd.DataFrame(matrix, index=labels, columns=labels)

    missing = [k for k in keys if k not in frame.index or k not in frame.columns]
    if missing:
        raise InvalidParameterError(
            f"Correlation matrix has no row/column for {missing}", parameter="cormatrix"
        )
    frame = frame.loc[keys, keys].astype(float)
    validate_correlation_matrix(frame.to_numpy())
    return JointUncertaintyModel(members=members, cormatrix=frame)
