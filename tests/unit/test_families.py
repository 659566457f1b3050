"""Unit tests for distribution families."""

from __future__ import annotations

import numpy as np
import pytest

from pyspup.core.exceptions import InvalidParameterError, UnsupportedDistributionError
from pyspup.core.families import DistributionFamily, resolve_family, validate_parameters


class TestResolveFamily:
    """Tests for resolve_family."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("norm", DistributionFamily.NORMAL),
            ("normal", DistributionFamily.NORMAL),
            ("NORMAL", DistributionFamily.NORMAL),
            ("beta", DistributionFamily.BETA),
            ("unif", DistributionFamily.UNIFORM),
            ("lnorm", DistributionFamily.LOGNORMAL),
            ("t", DistributionFamily.STUDENT_T),
            ("pois", DistributionFamily.POISSON),
        ],
    )
    def test_names(self, name: str, expected: DistributionFamily) -> None:
        """Test resolving R names and aliases."""
        assert resolve_family(name) is expected

    def test_enum_passthrough(self) -> None:
        """Test an enum member is returned as is."""
        assert resolve_family(DistributionFamily.GAMMA) is DistributionFamily.GAMMA

    def test_unknown(self) -> None:
        """Test that an unknown name raises error."""
        with pytest.raises(UnsupportedDistributionError, match="Unsupported distribution"):
            resolve_family("frechet")


class TestParameterNames:
    """Tests for family parameter lists."""

    def test_normal(self) -> None:
        """Test normal parameter names."""
        assert DistributionFamily.NORMAL.parameter_names == ("mean", "sd")
        assert DistributionFamily.NORMAL.n_parameters == 2

    def test_every_family_has_parameters(self) -> None:
        """Test every family has parameter names."""
        for family in DistributionFamily:
            assert family.n_parameters >= 1


class TestValidateParameters:
    """Tests for validate_parameters."""

    def test_valid(self) -> None:
        """Test valid scalar and array parameters."""
        validate_parameters(DistributionFamily.NORMAL, [10.0, 2.0])
        validate_parameters(DistributionFamily.BETA, [np.ones(4), np.full(4, 2.0)])

    def test_wrong_count(self) -> None:
        """Test that a wrong parameter count raises error."""
        with pytest.raises(InvalidParameterError, match="takes 2 parameter"):
            validate_parameters(DistributionFamily.NORMAL, [10.0])

    def test_negative_sd(self) -> None:
        """Test that negative sd raises error."""
        with pytest.raises(InvalidParameterError, match="sd must be non-negative") as exc:
            validate_parameters(DistributionFamily.NORMAL, [0.0, np.array([1.0, -1.0])])
        assert exc.value.parameter == "sd"

    def test_zero_sd_allowed(self) -> None:
        """Test that zero sd is accepted."""
        validate_parameters(DistributionFamily.NORMAL, [0.0, 0.0])

    def test_beta_positive(self) -> None:
        """Test that non-positive beta shape raises error."""
        with pytest.raises(InvalidParameterError, match="alpha"):
            validate_parameters(DistributionFamily.BETA, [0.0, 1.0])

    def test_uniform_order(self) -> None:
        """Test that min above max raises error."""
        with pytest.raises(InvalidParameterError, match="min must not exceed max"):
            validate_parameters(DistributionFamily.UNIFORM, [2.0, 1.0])

    def test_binomial_size(self) -> None:
        """Test that a non-integer size raises error."""
        with pytest.raises(InvalidParameterError, match="size"):
            validate_parameters(DistributionFamily.BINOMIAL, [2.5, 0.5])

    def test_binomial_prob(self) -> None:
        """Test that a probability above 1 raises error."""
        with pytest.raises(InvalidParameterError, match="prob"):
            validate_parameters(DistributionFamily.BINOMIAL, [10, 1.5])

    def test_nan_accepted(self) -> None:
        """Test NaN entries are accepted."""
        validate_parameters(DistributionFamily.NORMAL, [np.array([1.0, np.nan]), np.ones(2)])

    def test_nan_accepted_for_binomial_size(self) -> None:
        """Test NaN binomial size is accepted."""
        validate_parameters(
            DistributionFamily.BINOMIAL, [np.array([5.0, np.nan]), np.array([0.5, 0.5])]
        )

    def test_binomial_infinite_size(self) -> None:
        """Test that an infinite size raises error."""
        with pytest.raises(InvalidParameterError, match="size"):
            validate_parameters(DistributionFamily.BINOMIAL, [np.inf, 0.5])
