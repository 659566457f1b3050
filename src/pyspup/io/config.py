"""
Sampling configuration files.

A configuration is a JSON document with a ``sampling`` section and a list
of ``variables``. Spatial parameters refer to CSV point tables::

    {
      "sampling": {"n": 100, "method": "ugs", "neighborhood_limit": 20, "seed": 1},
      "variables": [
        {
          "id": "dem",
          "distribution": "norm",
          "distr_param": [
            {"file": "dem.csv", "column": "elevation"},
            {"file": "dem.csv", "column": "sd"}
          ],
          "crm": {"sill": 0.78, "range": 321, "family": "Exp"}
        }
      ]
    }

Two or more variables form a joint model and need a ``cormatrix``
(nested lists in variable order, or a mapping ``{id: {id: value}}``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import pandas as pd

from pyspup.core.correlogram import CorrelogramModel
from pyspup.core.exceptions import ConfigError, PySpupError
from pyspup.core.support import SpatialSupport, Surface
from pyspup.core.uncertainty import (
    JointUncertaintyModel,
    UncertaintyModel,
    define_mum,
    define_um,
)
from pyspup.io.surfaces import read_probability_table, read_surface_csv

logger = logging.getLogger(__name__)

_VARIABLE_KEYS = {
    "id",
    "cross_group_id",
    "uncertain",
    "distribution",
    "distr_param",
    "categories",
    "cat_prob",
    "crm",
}
_CRM_KEYS = {
    "sill",
    "acf0",
    "range",
    "family",
    "model",
    "nugget",
    "kappa",
    "anisotropy_ratio",
    "anisotropy_angle",
}


@dataclass
class SamplingConfig:
    """Options passed to :func:`pyspup.gen_sample`."""

    n: int = 100
    method: str = "ugs"
    p: list[float] | None = None
    neighborhood_limit: int | None = None
    as_table: bool = False
    seed: int | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SamplingConfig:
        """Create from the ``sampling`` section of a configuration."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigError(f"Unknown sampling options: {unknown}")
        return cls(**d)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def sample_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``gen_sample``."""
        return {
            "n": self.n,
            "method": self.method,
            "p": self.p,
            "neighborhood_limit": self.neighborhood_limit,
            "as_table": self.as_table,
            "seed": self.seed,
        }


class _SurfaceLoader:
    """Reads surface references relative to the configuration file.

    Surfaces from the same file share one support object.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self._supports: dict[Path, SpatialSupport] = {}

    def _resolve(self, ref: dict[str, Any]) -> tuple[Path, str, str]:
        if "file" not in ref:
            raise ConfigError(f"Surface reference needs a 'file': {ref}")
        path = Path(ref["file"])
        if not path.is_absolute():
            path = self.base_dir / path
        return path, ref.get("x", "x"), ref.get("y", "y")

    def surface(self, ref: dict[str, Any]) -> Surface:
        path, x_column, y_column = self._resolve(ref)
        if "column" not in ref:
            raise ConfigError(f"Surface reference needs a 'column': {ref}", path=str(path))
        surface = read_surface_csv(
            path, ref["column"], x_column, y_column, support=self._supports.get(path)
        )
        self._supports.setdefault(path, surface.support)
        return surface

    def probabilities(self, ref: dict[str, Any], categories: list[Any]) -> Any:
        path, x_column, y_column = self._resolve(ref)
        columns = [str(c) for c in ref.get("columns", categories)]
        table, support = read_probability_table(
            path, columns, x_column, y_column, support=self._supports.get(path)
        )
        self._supports.setdefault(path, support)
        return table, support


def _parse_variable(entry: Any, index: int, loader: _SurfaceLoader) -> UncertaintyModel:
    if not isinstance(entry, dict):
        raise ConfigError(f"Variable {index} must be an object, got {type(entry).__name__}")
    unknown = sorted(set(entry) - _VARIABLE_KEYS)
    if unknown:
        raise ConfigError(f"Variable {index}: unknown keys {unknown}")

    kwargs: dict[str, Any] = {
        "uncertain": bool(entry.get("uncertain", True)),
        "distribution": entry.get("distribution"),
        "id": entry.get("id"),
        "cross_group_id": entry.get("cross_group_id"),
    }

    if "distr_param" in entry:
        params = entry["distr_param"]
        if not isinstance(params, list):
            raise ConfigError(f"Variable {index}: distr_param must be a list")
        kwargs["distr_param"] = [
            loader.surface(p) if isinstance(p, dict) else p for p in params
        ]

    if "categories" in entry or "cat_prob" in entry:
        categories = entry.get("categories")
        kwargs["categories"] = categories
        cat_prob = entry.get("cat_prob")
        if isinstance(cat_prob, dict):
            table, support = loader.probabilities(cat_prob, list(categories or []))
            kwargs["cat_prob"] = table
            kwargs["support"] = support
        else:
            kwargs["cat_prob"] = cat_prob

    crm = entry.get("crm")
    if crm is not None:
        if not isinstance(crm, dict):
            raise ConfigError(f"Variable {index}: crm must be an object")
        unknown = sorted(set(crm) - _CRM_KEYS)
        if unknown:
            raise ConfigError(f"Variable {index}: unknown correlogram keys {unknown}")
        kwargs["crm"] = CorrelogramModel.from_dict(crm)

    return define_um(**kwargs)


def _correlation_frame(cormatrix: Any) -> Any:
    """Nested lists in variable order, or a nested mapping keyed by id."""
    if isinstance(cormatrix, dict):
        return pd.DataFrame(cormatrix).T
    return cormatrix


def parse_config(
    document: dict[str, Any],
    base_dir: Path | str | None = None,
) -> tuple[UncertaintyModel | JointUncertaintyModel, SamplingConfig]:
    """
    Build the uncertainty model and sampling options from a parsed document.

    Args:
        document: Parsed configuration
        base_dir: Directory that relative surface paths are resolved against

    Returns:
        Tuple of (model, sampling configuration)

    Raises:
        ConfigError: If the document is invalid
    """
    if not isinstance(document, dict):
        raise ConfigError("Configuration must be a JSON object")
    unknown = sorted(set(document) - {"sampling", "variables", "cormatrix"})
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {unknown}")

    sampling_section = document.get("sampling", {})
    if not isinstance(sampling_section, dict):
        raise ConfigError("'sampling' must be an object")
    variables = document.get("variables")
    if not isinstance(variables, list) or not variables:
        raise ConfigError("'variables' must be a non-empty list")

    loader = _SurfaceLoader(Path(base_dir) if base_dir is not None else Path.cwd())
    try:
        config = SamplingConfig.from_dict(sampling_section)
        ums = [_parse_variable(v, i, loader) for i, v in enumerate(variables, start=1)]
        if len(ums) == 1:
            if "cormatrix" in document:
                logger.warning("Ignoring cormatrix for a single variable")
            return ums[0], config
        if "cormatrix" not in document:
            raise ConfigError(
                f"{len(ums)} variables need a 'cormatrix' to form a joint model"
            )
        joint = define_mum(ums, _correlation_frame(document["cormatrix"]))
    except ConfigError:
        raise
    except (PySpupError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    return joint, config


def load_config(
    path: Path | str,
) -> tuple[UncertaintyModel | JointUncertaintyModel, SamplingConfig]:
    """
    Load a sampling configuration file.

    Args:
        path: JSON configuration file

    Returns:
        Tuple of (model, sampling configuration)

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration: {exc}", path=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON: {exc}", path=str(path)) from exc

    try:
        model, config = parse_config(document, base_dir=path.parent)
    except ConfigError as exc:
        if exc.path is None:
            raise ConfigError(str(exc), path=str(path)) from exc
        raise
    logger.debug("Loaded configuration %s: %s", path, model)
    return model, config
