"""Cross-correlation of independently sampled variables.

Independent per-variable draws are standardized, mixed with a factor ``L``
of the target correlation matrix (``L @ L.T == R``), and mapped back to
each variable's own marginal distribution:

- ``"moments"``: each variable is standardized by its overall mean and
  standard deviation and rescaled to them after mixing. The transform is
  linear, so spatially correlated Normal fields stay Normal, and their
  spatial structure is kept exactly when the variables share a correlogram.
- ``"ranks"``: each variable's draws are reordered, per location, to follow
  the ranks of the mixed normal scores (Iman-Conover). The marginal sample,
  including any stratification, is reproduced exactly.

Draw arrays have the realization axis last: ``(n,)`` for scalars or
``(n_locations, n)`` for spatial variables.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray
from scipy import linalg
from scipy.stats import norm, rankdata

from pyspup.core.exceptions import InvalidCorrelationMatrixError, MisalignedSupportError

logger = logging.getLogger(__name__)

MarginalMode = Literal["moments", "ranks"]

_TOLERANCE = 1e-8


def validate_correlation_matrix(R: Any, tol: float = _TOLERANCE) -> NDArray[np.float64]:
    """Check that a matrix is a valid correlation matrix.

    Parameters
    ----------
    R : array-like
        Candidate correlation matrix.
    tol : float
        Numerical tolerance.

    Returns
    -------
    NDArray
        The matrix as a float array.

    Raises
    ------
    InvalidCorrelationMatrixError
        If the matrix is not square, symmetric, unit-diagonal, bounded by
        [-1, 1] and positive semi-definite.
    """
    matrix = np.asarray(R, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1] or matrix.shape[0] == 0:
        raise InvalidCorrelationMatrixError(
            f"Correlation matrix must be square, got shape {matrix.shape}",
            errors=["not square"],
        )
    if not np.all(np.isfinite(matrix)):
        raise InvalidCorrelationMatrixError(
            "Correlation matrix contains non-finite values", errors=["not finite"]
        )

    errors: list[str] = []
    if not np.allclose(matrix, matrix.T, rtol=0.0, atol=tol):
        errors.append("not symmetric")
    if not np.allclose(np.diag(matrix), 1.0, rtol=0.0, atol=tol):
        errors.append("diagonal entries are not 1")
    if np.any(np.abs(matrix) > 1.0 + tol):
        errors.append("entries outside [-1, 1]")
    if not errors:
        min_eig = float(np.min(linalg.eigvalsh(matrix)))
        if min_eig < -tol:
            errors.append(f"not positive semi-definite (smallest eigenvalue {min_eig:.3g})")

    if errors:
        raise InvalidCorrelationMatrixError(
            "Invalid cross-correlation matrix: " + "; ".join(errors), errors=errors
        )
    return matrix


def correlation_factor(R: Any) -> NDArray[np.float64]:
    """Lower factor ``L`` with ``L @ L.T == R``.

    First try the Cholesky decomposition. If the matrix is only positive
    semi-definite and Cholesky fails, use the eigen-decomposition, which
    preserves as much as possible of the matrix.
    """
    matrix = validate_correlation_matrix(R)
    try:
        return np.asarray(linalg.cholesky(matrix, lower=True))
    except linalg.LinAlgError:
        logger.debug("Correlation matrix is singular; factorizing by eigen-decomposition")
        eigvals, eigvecs = linalg.eigh(matrix)
        return np.asarray(eigvecs * np.sqrt(np.maximum(eigvals, 0.0)))


def _normal_scores(draws: NDArray) -> NDArray:
    """Van der Waerden scores of the ranks along the realization axis."""
    n = draws.shape[-1]
    ranks = rankdata(draws, axis=-1, method="ordinal")
    return np.asarray(norm.ppf(ranks / (n + 1.0)))


class CrossCorrelationAssembler:
    """Imposes a cross-correlation structure on per-variable samples.

    Parameters
    ----------
    R : array-like
        Target ``k x k`` correlation matrix.

    Examples
    --------
    >>> assembler = CrossCorrelationAssembler([[1.0, 0.6], [0.6, 1.0]])
    >>> a, b = assembler.assemble([draws_a, draws_b], marginals="ranks")
    """

    def __init__(self, R: Any):
        """Initialize the assembler.

        Raises
        ------
        InvalidCorrelationMatrixError
            If ``R`` is not a valid correlation matrix.
        """
        self.R = validate_correlation_matrix(R)
        self._factor = correlation_factor(self.R)

    @property
    def n_variables(self) -> int:
        """Number of variables."""
        return int(self.R.shape[0])

    def assemble(
        self,
        per_variable_draws: Sequence[Any],
        marginals: MarginalMode = "moments",
    ) -> list[NDArray[np.float64]]:
        """Combine independent draws into cross-correlated series.

        Parameters
        ----------
        per_variable_draws : Sequence[array-like]
            One array per variable, all of the same shape, realization axis
            last.
        marginals : {"moments", "ranks"}
            How each variable's marginal distribution is restored.

        Returns
        -------
        list[NDArray]
            Correlated draws, same order and shapes as the input.

        Raises
        ------
        InvalidCorrelationMatrixError
            If the number of variables does not match the matrix.
        MisalignedSupportError
            If the draw arrays differ in shape.
        """
        draws = [np.asarray(d, dtype=float) for d in per_variable_draws]
        if len(draws) != self.n_variables:
            raise InvalidCorrelationMatrixError(
                f"Correlation matrix is {self.n_variables}x{self.n_variables} "
                f"but {len(draws)} variables were given",
                errors=["size mismatch"],
            )
        shapes = {d.shape for d in draws}
        if len(shapes) != 1:
            raise MisalignedSupportError(
                f"Per-variable draws differ in shape: {sorted(shapes)}"
            )
        if marginals not in ("moments", "ranks"):
            raise ValueError(f"Unknown marginals mode: {marginals!r}")

        stacked = np.stack(draws)

        if marginals == "ranks":
            scores = _normal_scores(stacked)
            mixed = np.tensordot(self._factor, scores, axes=1)
            ordered = np.sort(stacked, axis=-1)
            ranks = np.argsort(np.argsort(mixed, axis=-1), axis=-1)
            result = np.take_along_axis(ordered, ranks, axis=-1)
        else:
            means = stacked.reshape(len(draws), -1).mean(axis=1)
            stds = stacked.reshape(len(draws), -1).std(axis=1)
            scale = np.where(stds > 0, stds, 1.0)
            expand = (slice(None),) + (np.newaxis,) * (stacked.ndim - 1)
            standardized = (stacked - means[expand]) / scale[expand]
            mixed = np.tensordot(self._factor, standardized, axes=1)
            result = means[expand] + stds[expand] * mixed

        logger.debug(
            "Assembled %d variables of shape %s using %s", len(draws), draws[0].shape, marginals
        )
        return [np.asarray(r) for r in result]

    def __repr__(self) -> str:
        """Return string representation."""
        return f"CrossCorrelationAssembler(n_variables={self.n_variables})"


def assemble(
    per_variable_draws: Sequence[Any],
    R: Any,
    marginals: MarginalMode = "moments",
) -> list[NDArray[np.float64]]:
    """Combine independent per-variable draws into cross-correlated series.

    See :class:`CrossCorrelationAssembler`.
    """
    return CrossCorrelationAssembler(R).assemble(per_variable_draws, marginals=marginals)
