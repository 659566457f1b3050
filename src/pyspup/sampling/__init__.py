"""Sampling engines: independent draws, stratification, spatial simulation."""

from __future__ import annotations

from pyspup.sampling.crosscorr import (
    CrossCorrelationAssembler,
    assemble,
    correlation_factor,
    validate_correlation_matrix,
)
from pyspup.sampling.distributions import make_rng, sample_categorical, sample_distribution
from pyspup.sampling.orchestrator import SampleMethod, gen_sample
from pyspup.sampling.spatial import SpatialFieldSimulator, covariance_factor, simulate_field
from pyspup.sampling.stratified import (
    draws_per_stratum,
    stratified_normal,
    stratified_probabilities,
    validate_quantiles,
)

__all__ = [
    "gen_sample",
    "SampleMethod",
    "sample_distribution",
    "sample_categorical",
    "make_rng",
    "stratified_normal",
    "stratified_probabilities",
    "draws_per_stratum",
    "validate_quantiles",
    "SpatialFieldSimulator",
    "simulate_field",
    "covariance_factor",
    "CrossCorrelationAssembler",
    "assemble",
    "correlation_factor",
    "validate_correlation_matrix",
]
