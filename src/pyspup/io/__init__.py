"""Configuration and CSV input/output."""

from __future__ import annotations

from pyspup.io.config import SamplingConfig, load_config, parse_config
from pyspup.io.surfaces import (
    read_probability_table,
    read_sample_csv,
    read_surface_csv,
    write_sample_csv,
)

__all__ = [
    "SamplingConfig",
    "load_config",
    "parse_config",
    "read_surface_csv",
    "read_probability_table",
    "read_sample_csv",
    "write_sample_csv",
]
