"""Unit tests for stratified Normal sampling."""

from __future__ import annotations

import numpy as np
import pytest
from scipy.stats import norm

from pyspup.core.exceptions import InvalidParameterError, InvalidSampleSizeError
from pyspup.sampling.stratified import (
    draws_per_stratum,
    stratified_normal,
    stratified_probabilities,
    validate_quantiles,
)

QUARTILES = [0.0, 0.25, 0.5, 0.75, 1.0]


class TestValidateQuantiles:
    """Tests for validate_quantiles."""

    def test_valid(self) -> None:
        """Test valid quantile boundaries."""
        np.testing.assert_array_equal(validate_quantiles([0, 0.5, 1]), [0.0, 0.5, 1.0])

    @pytest.mark.parametrize(
        "p",
        [None, [0.5], [0.0, 1.5], [-0.1, 0.5], [0.0, 0.5, 0.5, 1.0], [0.0, 0.7, 0.3]],
    )
    def test_invalid(self, p) -> None:
        """Test invalid quantile boundaries raise error."""
        with pytest.raises(InvalidParameterError):
            validate_quantiles(p)


class TestDrawsPerStratum:
    """Tests for draws_per_stratum."""

    def test_divisible(self) -> None:
        """Test draws per quartile stratum."""
        assert draws_per_stratum(100, QUARTILES) == 25

    def test_not_divisible(self) -> None:
        """Test that n not divisible by the strata raises error."""
        with pytest.raises(InvalidSampleSizeError) as exc_info:
            draws_per_stratum(7, [0.0, 0.5, 1.0])
        assert exc_info.value.n == 7
        assert exc_info.value.n_strata == 2
        assert "divisible" in str(exc_info.value)


class TestStratifiedProbabilities:
    """Tests for stratified_probabilities."""

    def test_each_stratum_filled(self) -> None:
        """Test each stratum gets its share of probabilities."""
        u = stratified_probabilities(100, QUARTILES, n_locations=2, seed=0)
        assert u.shape == (2, 100)
        for j in range(4):
            block = u[:, 25 * j : 25 * (j + 1)]
            assert np.all(block >= QUARTILES[j])
            assert np.all(block <= QUARTILES[j + 1])

    def test_open_interval(self) -> None:
        """Test probabilities stay inside (0, 1)."""
        u = stratified_probabilities(10, [0.0, 1.0], n_locations=50, seed=1)
        assert np.all(u > 0.0)
        assert np.all(u < 1.0)


class TestStratifiedNormal:
    """Tests for stratified_normal."""

    def test_quartile_counts(self) -> None:
        """Test 25 draws in each quartile."""
        draws = stratified_normal(100, 0.0, 1.0, QUARTILES, seed=3)
        assert draws.shape == (100,)
        edges = norm.ppf(QUARTILES)
        counts = np.histogram(draws, bins=edges)[0]
        np.testing.assert_array_equal(counts, [25, 25, 25, 25])

    def test_uneven_strata(self) -> None:
        """Test unequal strata."""
        draws = stratified_normal(10, 5.0, 2.0, [0.0, 0.3, 1.0], seed=4)
        split = norm.ppf(0.3, loc=5.0, scale=2.0)
        assert np.sum(draws <= split) == 5
        assert np.sum(draws > split) == 5

    def test_per_location(self) -> None:
        """Test stratified draws per location."""
        mean = np.array([0.0, 10.0, 20.0])
        draws = stratified_normal(200, mean, 1.0, QUARTILES, seed=2)
        assert draws.shape == (3, 200)
        for i, mu in enumerate(mean):
            below = np.sum(draws[i] <= mu)
            assert below == 100

    def test_finite(self) -> None:
        """Test one draw per stratum stays finite."""
        draws = stratified_normal(40, 0.0, 1.0, np.linspace(0, 1, 41), seed=0)
        assert np.all(np.isfinite(draws))

    def test_invalid_size(self) -> None:
        """Test that n not divisible by the strata raises error."""
        with pytest.raises(InvalidSampleSizeError):
            stratified_normal(7, 0.0, 1.0, [0.0, 0.5, 1.0])

    def test_invalid_sd(self) -> None:
        """Test that negative sd raises error."""
        with pytest.raises(InvalidParameterError):
            stratified_normal(10, 0.0, -1.0, [0.0, 1.0])

    def test_mismatched_parameters(self) -> None:
        """Test that mean and sd of different lengths raise error."""
        with pytest.raises(InvalidParameterError, match="differ in length"):
            stratified_normal(10, np.zeros(3), np.ones(2), [0.0, 1.0])
