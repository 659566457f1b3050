"""
pyspup - Spatial uncertainty propagation for environmental models.

This package provides tools for:
- Describing uncertain model inputs (numbers, surfaces, categorical maps)
- Parameterizing spatial autocorrelation with correlogram models
- Generating Monte Carlo realizations that respect spatial and
  cross-variable correlation
- Summarizing samples of model inputs and outputs
"""

from __future__ import annotations

__version__ = "0.1.0"

from pyspup.core.collection import JointSampleCollection, SampleCollection, SampleSummary
from pyspup.core.correlogram import CorrelogramModel, make_correlogram
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
from pyspup.core.support import SpatialSupport, Surface
from pyspup.core.uncertainty import JointUncertaintyModel, UMKind, define_mum, define_um
from pyspup.io.config import SamplingConfig, load_config
from pyspup.io.surfaces import read_surface_csv, write_sample_csv
from pyspup.sampling.orchestrator import SampleMethod, gen_sample

__all__ = [
    "__version__",
    # Support and models
    "SpatialSupport",
    "Surface",
    "CorrelogramModel",
    "make_correlogram",
    "UMKind",
    "JointUncertaintyModel",
    "define_um",
    "define_mum",
    # Sampling
    "SampleMethod",
    "gen_sample",
    "SampleCollection",
    "JointSampleCollection",
    "SampleSummary",
    # I/O
    "SamplingConfig",
    "load_config",
    "read_surface_csv",
    "write_sample_csv",
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
