"""Core data structures for pyspup."""

from __future__ import annotations

from pyspup.core.collection import (
    JointSampleCollection,
    SampleCollection,
    SampleSummary,
    realization_names,
)
from pyspup.core.correlogram import CorrelogramFamily, CorrelogramModel, make_correlogram
from pyspup.core.exceptions import (
    ConfigError,
    InvalidCorrelationMatrixError,
    InvalidParameterError,
    InvalidSampleSizeError,
    MisalignedSupportError,
    MissingCorrelogramError,
    PySpupError,
    UnsupportedDistributionError,
)
from pyspup.core.families import DistributionFamily, resolve_family, validate_parameters
from pyspup.core.support import SpatialSupport, Surface, check_aligned
from pyspup.core.uncertainty import (
    JointUncertaintyModel,
    MarginalCategorical,
    MarginalCategoricalSpatial,
    MarginalNumericSpatial,
    MarginalScalar,
    UMKind,
    UncertaintyModel,
    define_mum,
    define_um,
)
from pyspup.core.variogram import Variogram, VariogramType, compute_empirical_variogram

__all__ = [
    # Support
    "SpatialSupport",
    "Surface",
    "check_aligned",
    # Correlograms
    "CorrelogramFamily",
    "CorrelogramModel",
    "make_correlogram",
    "Variogram",
    "VariogramType",
    "compute_empirical_variogram",
    # Distributions
    "DistributionFamily",
    "resolve_family",
    "validate_parameters",
    # Uncertainty models
    "UMKind",
    "UncertaintyModel",
    "MarginalScalar",
    "MarginalNumericSpatial",
    "MarginalCategorical",
    "MarginalCategoricalSpatial",
    "JointUncertaintyModel",
    "define_um",
    "define_mum",
    # Samples
    "SampleCollection",
    "JointSampleCollection",
    "SampleSummary",
    "realization_names",
    # Exceptions
    "PySpupError",
    "InvalidParameterError",
    "UnsupportedDistributionError",
    "MissingCorrelogramError",
    "InvalidSampleSizeError",
    "InvalidCorrelationMatrixError",
    "MisalignedSupportError",
    "ConfigError",
]
