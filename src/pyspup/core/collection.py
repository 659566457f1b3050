"""Monte Carlo sample collections.

A sample collection holds N realizations of one variable, each shaped like
the variable's spatial support (or a scalar). The realizations are stored
in one preallocated array of shape ``(n, *support.shape)`` so that
realization ``i`` of every variable in a joint sample refers to the same
joint draw.

Collections can be handed to a model driver as a list of realizations or
as a wide table with one ``simK`` column per realization, and summarized
per location.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pyspup.core.exceptions import InvalidParameterError, MisalignedSupportError
from pyspup.core.support import SpatialSupport


def realization_names(n: int) -> list[str]:
    """Column names of a wide sample table."""
    return [f"sim{i}" for i in range(1, n + 1)]


@dataclass
class SampleSummary:
    """Summary statistics of a sample, per location.

    Attributes
    ----------
    mean : NDArray
        Mean of the realizations.
    std : NDArray
        Standard deviations (ddof=1).
    median : NDArray
        Median values.
    quantiles : dict[float, NDArray]
        Requested quantiles.
    n_realizations : int
        Number of realizations in the sample.
    variable_id : str | None
        Variable identifier.
    frequencies : dict[Any, NDArray] | None
        Per-category relative frequencies, for categorical samples.
    """

    mean: NDArray | None
    std: NDArray | None
    median: NDArray | None
    quantiles: dict[float, NDArray]
    n_realizations: int
    variable_id: str | None = None
    frequencies: dict[Any, NDArray] | None = None

    def to_frame(self) -> pd.DataFrame:
        """Summary as a table with one row per location."""
        columns: dict[str, NDArray] = {}
        if self.frequencies is not None:
            for label, freq in self.frequencies.items():
                columns[f"p_{label}"] = np.ravel(freq)
        else:
            columns["mean"] = np.ravel(self.mean)
            columns["std"] = np.ravel(self.std)
            columns["median"] = np.ravel(self.median)
            for q, values in self.quantiles.items():
                columns[f"q{q * 100:g}"] = np.ravel(values)
        return pd.DataFrame(columns)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        d: dict[str, Any] = {
            "variable_id": self.variable_id,
            "n_realizations": self.n_realizations,
        }
        if self.frequencies is not None:
            d["frequencies"] = {str(k): np.asarray(v).tolist() for k, v in self.frequencies.items()}
        else:
            d["mean"] = np.asarray(self.mean).tolist()
            d["std"] = np.asarray(self.std).tolist()
            d["median"] = np.asarray(self.median).tolist()
            d["quantiles"] = {str(q): np.asarray(v).tolist() for q, v in self.quantiles.items()}
        return d


@dataclass(frozen=True, eq=False)
class SampleCollection:
    """Ordered Monte Carlo realizations of one variable.

    Parameters
    ----------
    realizations : NDArray
        Array of shape ``(n, *support.shape)``, or ``(n,)`` without support.
    support : SpatialSupport | None
        Spatial support of each realization.
    variable_id : str | None
        Variable identifier.
    categories : tuple | None
        Category labels for categorical samples.
    """

    realizations: NDArray[Any]
    support: SpatialSupport | None = None
    variable_id: str | None = None
    categories: tuple[Any, ...] | None = field(default=None)

    def __post_init__(self) -> None:
        data = np.array(self.realizations)
        if data.ndim == 0 or data.shape[0] < 1:
            raise InvalidParameterError("A sample needs at least one realization", parameter="n")
        expected = (data.shape[0],) + (self.support.shape if self.support is not None else ())
        if data.shape != expected:
            if self.support is not None and data.size == expected[0] * self.support.n_locations:
                data = data.reshape(expected)
            else:
                raise MisalignedSupportError(
                    f"Realizations of shape {data.shape} do not match expected {expected}"
                )
        data.setflags(write=False)
        object.__setattr__(self, "realizations", data)

    @classmethod
    def from_realizations(
        cls,
        realizations: Sequence[Any],
        support: SpatialSupport | None = None,
        variable_id: str | None = None,
    ) -> SampleCollection:
        """Wrap a list of realizations, e.g. model outputs per input realization.

        Parameters
        ----------
        realizations : Sequence
            One array (or scalar) per realization.
        support : SpatialSupport | None
            Common support of the realizations.
        variable_id : str | None
            Variable identifier.
        """
        items = list(realizations)
        if not items:
            raise InvalidParameterError("A sample needs at least one realization", parameter="n")
        first = np.asarray(items[0])
        dtype = object if first.dtype.kind in "USO" else first.dtype
        data = np.empty((len(items),) + first.shape, dtype=dtype)
        for i, item in enumerate(items):
            value = np.asarray(item)
            if value.shape != first.shape:
                raise MisalignedSupportError(
                    f"Realization {i + 1} has shape {value.shape}, expected {first.shape}"
                )
            data[i] = value
        return cls(realizations=data, support=support, variable_id=variable_id)

    @property
    def n(self) -> int:
        """Number of realizations."""
        return int(self.realizations.shape[0])

    @property
    def is_categorical(self) -> bool:
        """True for categorical samples."""
        return self.categories is not None

    def __len__(self) -> int:
        return self.n

    def __iter__(self) -> Iterator[NDArray[Any]]:
        return iter(self.as_list())

    def __getitem__(self, index: int) -> NDArray[Any]:
        return self.realizations[index]

    def as_list(self) -> list[Any]:
        """Realizations as a list (scalars for non-spatial samples)."""
        if self.support is None:
            return list(self.realizations.tolist())
        return [self.realizations[i] for i in range(self.n)]

    def as_matrix(self) -> NDArray[Any]:
        """Realizations as a ``(n_locations, n)`` matrix."""
        return self.realizations.reshape(self.n, -1).T

    def as_table(self, include_coordinates: bool = False) -> pd.DataFrame:
        """Wide table with one row per location and columns ``sim1..simN``.

        Parameters
        ----------
        include_coordinates : bool
            Prepend ``x`` and ``y`` columns (spatial samples only).
        """
        frame = pd.DataFrame(self.as_matrix(), columns=realization_names(self.n))
        if include_coordinates and self.support is not None:
            frame.insert(0, "y", self.support.y)
            frame.insert(0, "x", self.support.x)
        return frame

    def summarize(self, quantiles: Sequence[float] = (0.05, 0.95)) -> SampleSummary:
        """Summary statistics per location.

        Parameters
        ----------
        quantiles : Sequence[float]
            Quantile levels to compute, each in [0, 1].

        Returns
        -------
        SampleSummary
            Per-location statistics, shaped like one realization. For
            categorical samples, per-category frequencies.
        """
        if any(not 0.0 <= q <= 1.0 for q in quantiles):
            raise InvalidParameterError(
                f"Quantiles must be in [0, 1]: {list(quantiles)}", parameter="quantiles"
            )
        if self.categories is not None:
            frequencies = {
                label: np.mean(self.realizations == label, axis=0) for label in self.categories
            }
            return SampleSummary(
                mean=None,
                std=None,
                median=None,
                quantiles={},
                n_realizations=self.n,
                variable_id=self.variable_id,
                frequencies=frequencies,
            )

        data = np.asarray(self.realizations, dtype=float)
        ddof = 1 if self.n > 1 else 0
        return SampleSummary(
            mean=np.mean(data, axis=0),
            std=np.std(data, axis=0, ddof=ddof),
            median=np.median(data, axis=0),
            quantiles={float(q): np.quantile(data, q, axis=0) for q in quantiles},
            n_realizations=self.n,
            variable_id=self.variable_id,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"SampleCollection(variable_id={self.variable_id!r}, n={self.n}, "
            f"support={self.support!r})"
        )


@dataclass(frozen=True, eq=False)
class JointSampleCollection:
    """Matched realizations of several variables.

    Realization ``i`` of every member is one joint draw.
    """

    samples: dict[str, SampleCollection]

    def __post_init__(self) -> None:
        if not self.samples:
            raise InvalidParameterError("A joint sample needs at least one variable")
        sizes = {key: s.n for key, s in self.samples.items()}
        if len(set(sizes.values())) != 1:
            raise MisalignedSupportError(f"Joint sample members differ in size: {sizes}")

    @property
    def ids(self) -> list[str]:
        """Variable identifiers in order."""
        return list(self.samples)

    @property
    def n(self) -> int:
        """Number of joint realizations."""
        return next(iter(self.samples.values())).n

    def __len__(self) -> int:
        return self.n

    def __getitem__(self, key: str) -> SampleCollection:
        return self.samples[key]

    def realization(self, index: int) -> dict[str, Any]:
        """Joint draw ``index`` (0-based) as ``{variable_id: value}``."""
        return {key: s.as_list()[index] for key, s in self.samples.items()}

    def as_list(self) -> list[dict[str, Any]]:
        """All joint draws, in realization order."""
        lists = {key: s.as_list() for key, s in self.samples.items()}
        return [{key: values[i] for key, values in lists.items()} for i in range(self.n)]

    def as_table(self) -> pd.DataFrame:
        """Wide table with ``(variable, simK)`` columns."""
        return pd.concat(
            {key: s.as_table() for key, s in self.samples.items()},
            axis=1,
        )

    def summarize(self, quantiles: Sequence[float] = (0.05, 0.95)) -> dict[str, SampleSummary]:
        """Per-variable summaries."""
        return {key: s.summarize(quantiles) for key, s in self.samples.items()}

    def __repr__(self) -> str:
        """Return string representation."""
        return f"JointSampleCollection(ids={self.ids}, n={self.n})"
