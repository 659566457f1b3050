"""Unit tests for cross-correlation assembly."""

from __future__ import annotations

import numpy as np
import pytest

from pyspup.core.exceptions import InvalidCorrelationMatrixError, MisalignedSupportError
from pyspup.sampling.crosscorr import (
    CrossCorrelationAssembler,
    assemble,
    correlation_factor,
    validate_correlation_matrix,
)

R2 = [[1.0, 0.6], [0.6, 1.0]]


class TestValidateCorrelationMatrix:
    """Tests for validate_correlation_matrix."""

    def test_valid(self) -> None:
        """Test a valid matrix is returned as float array."""
        matrix = validate_correlation_matrix(R2)
        assert matrix.dtype == np.float64

    @pytest.mark.parametrize(
        "R, error",
        [
            ([[1.0, 0.5, 0.2], [0.5, 1.0, 0.1]], "not square"),
            ([[1.0, 0.5], [0.4, 1.0]], "not symmetric"),
            ([[2.0, 0.5], [0.5, 1.0]], "diagonal entries are not 1"),
            ([[1.0, 1.5], [1.5, 1.0]], "entries outside [-1, 1]"),
            ([[1.0, np.nan], [np.nan, 1.0]], "not finite"),
        ],
    )
    def test_invalid(self, R, error: str) -> None:
        """Test invalid matrices raise error."""
        with pytest.raises(InvalidCorrelationMatrixError) as exc_info:
            validate_correlation_matrix(R)
        assert error in exc_info.value.errors

    def test_not_positive_semidefinite(self) -> None:
        """Test that an indefinite matrix raises error."""
        R = [[1.0, 0.9, -0.9], [0.9, 1.0, 0.9], [-0.9, 0.9, 1.0]]
        with pytest.raises(InvalidCorrelationMatrixError, match="positive semi-definite"):
            validate_correlation_matrix(R)

    def test_collects_errors(self) -> None:
        """Test all problems are reported together."""
        with pytest.raises(InvalidCorrelationMatrixError) as exc_info:
            validate_correlation_matrix([[1.0, 0.5], [0.1, 0.5]])
        assert len(exc_info.value.errors) == 2

    def test_empty(self) -> None:
        """Test that an empty matrix raises error."""
        with pytest.raises(InvalidCorrelationMatrixError):
            validate_correlation_matrix(np.zeros((0, 0)))


class TestCorrelationFactor:
    """Tests for correlation_factor."""

    def test_cholesky(self) -> None:
        """Test factor of a positive definite matrix."""
        factor = correlation_factor(R2)
        np.testing.assert_allclose(factor @ factor.T, R2)

    def test_singular(self) -> None:
        """Test factor of a singular matrix."""
        R = np.ones((3, 3))
        factor = correlation_factor(R)
        np.testing.assert_allclose(factor @ factor.T, R, atol=1e-10)


class TestCrossCorrelationAssembler:
    """Tests for CrossCorrelationAssembler."""

    def test_n_variables(self) -> None:
        """Test number of variables."""
        assembler = CrossCorrelationAssembler(R2)
        assert assembler.n_variables == 2
        assert repr(assembler) == "CrossCorrelationAssembler(n_variables=2)"

    def test_moments_scalar(self) -> None:
        """Test moments mode keeps mean and sd."""
        rng = np.random.default_rng(0)
        a = rng.normal(10.0, 2.0, 20000)
        b = rng.normal(-5.0, 0.5, 20000)
        out_a, out_b = CrossCorrelationAssembler(R2).assemble([a, b], marginals="moments")
        assert np.corrcoef(out_a, out_b)[0, 1] == pytest.approx(0.6, abs=0.03)
        assert out_b.mean() == pytest.approx(b.mean())
        assert out_b.std() == pytest.approx(b.std(), rel=0.02)
        np.testing.assert_allclose(out_a, a)

    def test_moments_spatial(self) -> None:
        """Test moments mode on spatial draws."""
        rng = np.random.default_rng(1)
        a = rng.standard_normal((4, 5000))
        b = rng.standard_normal((4, 5000))
        out_a, out_b = assemble([a, b], R2, marginals="moments")
        assert out_b.shape == (4, 5000)
        for i in range(4):
            assert np.corrcoef(out_a[i], out_b[i])[0, 1] == pytest.approx(0.6, abs=0.05)

    def test_ranks_preserves_marginals(self) -> None:
        """Test ranks mode reorders the original draws."""
        rng = np.random.default_rng(2)
        a = rng.normal(0.0, 1.0, 5000)
        b = rng.exponential(2.0, 5000)
        out_a, out_b = assemble([a, b], R2, marginals="ranks")
        np.testing.assert_array_equal(np.sort(out_a), np.sort(a))
        np.testing.assert_array_equal(np.sort(out_b), np.sort(b))
        ranks_a = np.argsort(np.argsort(out_a))
        ranks_b = np.argsort(np.argsort(out_b))
        assert np.corrcoef(ranks_a, ranks_b)[0, 1] == pytest.approx(0.6, abs=0.05)

    def test_ranks_per_location(self) -> None:
        """Test ranks mode keeps per-location values."""
        rng = np.random.default_rng(3)
        a = rng.normal(size=(3, 2000)) + np.array([[0.0], [10.0], [20.0]])
        b = rng.normal(size=(3, 2000))
        out_a, _ = assemble([a, b], R2, marginals="ranks")
        for i in range(3):
            np.testing.assert_array_equal(np.sort(out_a[i]), np.sort(a[i]))

    def test_negative_correlation(self) -> None:
        """Test negative target correlation."""
        rng = np.random.default_rng(4)
        draws = [rng.standard_normal(5000), rng.standard_normal(5000)]
        out_a, out_b = assemble(draws, [[1.0, -0.8], [-0.8, 1.0]], marginals="moments")
        assert np.corrcoef(out_a, out_b)[0, 1] == pytest.approx(-0.8, abs=0.03)

    def test_constant_variable(self) -> None:
        """Test a constant variable is left unchanged."""
        rng = np.random.default_rng(5)
        out_a, out_b = assemble([np.full(100, 3.0), rng.standard_normal(100)], R2)
        np.testing.assert_allclose(out_a, 3.0)

    def test_count_mismatch(self) -> None:
        """Test that a draw count not matching the matrix raises error."""
        with pytest.raises(InvalidCorrelationMatrixError, match="3 variables"):
            assemble([np.zeros(5)] * 3, R2)

    def test_shape_mismatch(self) -> None:
        """Test that differently shaped draws raise error."""
        with pytest.raises(MisalignedSupportError):
            assemble([np.zeros(5), np.zeros(6)], R2)

    def test_unknown_mode(self) -> None:
        """Test that an unknown marginals mode raises error."""
        with pytest.raises(ValueError, match="marginals"):
            assemble([np.zeros(5), np.zeros(5)], R2, marginals="copula")  # type: ignore
