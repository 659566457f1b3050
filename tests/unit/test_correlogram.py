"""Unit tests for correlogram models."""

from __future__ import annotations

import numpy as np
import pytest

from pyspup.core.correlogram import CorrelogramFamily, CorrelogramModel, make_correlogram
from pyspup.core.exceptions import InvalidParameterError
from pyspup.core.support import SpatialSupport

FAMILIES = ["Exp", "Sph", "Gau", "Lin", "Mat", "Cir", "Pen"]


class TestMakeCorrelogram:
    """Tests for make_correlogram validation."""

    def test_defaults(self) -> None:
        """Test default family and derived nugget."""
        crm = make_correlogram(sill=0.78, range=321)
        assert crm.family is CorrelogramFamily.EXPONENTIAL
        assert crm.sill == pytest.approx(0.78)
        assert crm.range == pytest.approx(321.0)
        assert crm.nugget == pytest.approx(0.22)

    @pytest.mark.parametrize("sill", [0.0, -0.1, 1.01])
    def test_sill_out_of_domain(self, sill: float) -> None:
        """Test that a sill outside (0, 1] raises error."""
        with pytest.raises(InvalidParameterError, match="sill"):
            make_correlogram(sill=sill, range=100)

    def test_sill_one(self) -> None:
        """Test that sill 1 has no nugget."""
        assert make_correlogram(sill=1.0, range=100).nugget == 0.0

    @pytest.mark.parametrize("range_", [0.0, -5.0])
    def test_range_out_of_domain(self, range_: float) -> None:
        """Test that non-positive range raises error."""
        with pytest.raises(InvalidParameterError, match="range"):
            make_correlogram(sill=0.5, range=range_)

    def test_unknown_family(self) -> None:
        """Test that an unknown family raises error."""
        with pytest.raises(InvalidParameterError, match="Unknown"):
            make_correlogram(sill=0.5, range=100, family="Wave")

    def test_nugget_family_rejected(self) -> None:
        """Test that the pure nugget family is rejected."""
        with pytest.raises(InvalidParameterError, match="nugget"):
            make_correlogram(sill=0.5, range=100, family="Nug")

    def test_consistent_nugget(self) -> None:
        """Test an explicit nugget matching the sill."""
        crm = make_correlogram(sill=0.8, range=100, nugget=0.2)
        assert crm.nugget == pytest.approx(0.2)

    def test_inconsistent_nugget(self) -> None:
        """Test that a nugget not equal to 1 - sill raises error."""
        with pytest.raises(InvalidParameterError, match="inconsistent"):
            make_correlogram(sill=0.8, range=100, nugget=0.3)

    def test_nugget_out_of_domain(self) -> None:
        """Test that a nugget of 1 raises error."""
        with pytest.raises(InvalidParameterError, match="Nugget"):
            make_correlogram(sill=0.8, range=100, nugget=1.0)

    def test_invalid_kappa(self) -> None:
        """Test that negative kappa raises error."""
        with pytest.raises(InvalidParameterError):
            make_correlogram(sill=0.8, range=100, family="Mat", kappa=-1.0)

    def test_immutable(self, exp_crm: CorrelogramModel) -> None:
        """Test that the model is frozen."""
        with pytest.raises(AttributeError):
            exp_crm.sill = 0.5  # type: ignore[misc]


class TestCorrelation:
    """Tests for correlation and covariance values."""

    @pytest.mark.parametrize("family", FAMILIES)
    def test_sill_at_zero(self, family: str) -> None:
        """Test correlation at distance 0 equals the sill."""
        crm = make_correlogram(sill=0.7, range=150, family=family)
        assert crm.correlation(0.0) == pytest.approx(0.7)

    @pytest.mark.parametrize("family", FAMILIES)
    def test_non_increasing(self, family: str) -> None:
        """Test correlation never increases with distance."""
        crm = make_correlogram(sill=0.9, range=150, family=family)
        rho = crm.correlation(np.linspace(0.0, 1000.0, 401))
        assert np.all(np.diff(rho) <= 1e-12)
        assert np.all((rho >= 0.0) & (rho <= 1.0))
        assert rho[-1] < 0.01

    @pytest.mark.parametrize("family", ["Sph", "Lin", "Cir", "Pen"])
    def test_bounded_families_zero_at_range(self, family: str) -> None:
        """Test bounded families reach zero at the range."""
        crm = make_correlogram(sill=0.9, range=150, family=family)
        assert crm.correlation(150.0) == pytest.approx(0.0, abs=1e-12)
        assert crm.correlation(400.0) == 0.0

    def test_exponential_value(self, exp_crm: CorrelogramModel) -> None:
        """Test exponential correlation at half the range."""
        assert exp_crm.correlation(100.0) == pytest.approx(0.8 * np.exp(-0.5))

    def test_negative_distance(self, exp_crm: CorrelogramModel) -> None:
        """Test that negative distance raises error."""
        with pytest.raises(InvalidParameterError):
            exp_crm.correlation(-1.0)

    def test_covariance_at_zero_is_one(self, exp_crm: CorrelogramModel) -> None:
        """Test covariance of a location with itself."""
        assert exp_crm.covariance(0.0) == pytest.approx(1.0)

    def test_covariance_elsewhere_is_correlation(self, exp_crm: CorrelogramModel) -> None:
        """Test covariance equals correlation away from the origin."""
        d = np.array([1.0, 50.0, 400.0])
        np.testing.assert_allclose(exp_crm.covariance(d), exp_crm.correlation(d))


class TestBridges:
    """Tests for the variogram and covariance matrix bridges."""

    def test_to_variogram(self, exp_crm: CorrelogramModel) -> None:
        """Test conversion to a variogram."""
        vario = exp_crm.to_variogram()
        assert vario.sill == pytest.approx(0.8)
        assert vario.nugget == pytest.approx(0.2)
        assert vario.a == pytest.approx(200.0)
        assert vario.total_sill == pytest.approx(1.0)

    def test_covariance_matrix(self, exp_crm: CorrelogramModel, grid_3x3: SpatialSupport) -> None:
        """Test covariance matrix over a grid."""
        cov = exp_crm.covariance_matrix(grid_3x3)
        assert cov.shape == (9, 9)
        np.testing.assert_allclose(np.diag(cov), 1.0)
        np.testing.assert_allclose(cov, cov.T)
        assert cov[0, 1] == pytest.approx(0.8 * np.exp(-0.5))

    def test_cross_covariance_matrix(self, exp_crm, grid_3x3, point_support) -> None:
        """Test covariance matrix between two supports."""
        assert exp_crm.covariance_matrix(grid_3x3, point_support).shape == (9, 6)

    def test_anisotropic_covariance_matrix(self) -> None:
        """Test anisotropy shortens correlation across the major axis."""
        crm = make_correlogram(sill=1.0, range=100, anisotropy_ratio=2.0)
        support = SpatialSupport(x=[0.0, 50.0, 0.0], y=[0.0, 0.0, 50.0])
        cov = crm.covariance_matrix(support)
        assert cov[0, 1] == pytest.approx(np.exp(-0.5))
        assert cov[0, 2] == pytest.approx(np.exp(-1.0))

    def test_curve(self, exp_crm: CorrelogramModel) -> None:
        """Test correlation curve for plotting."""
        distances, correlations = exp_crm.curve(n_points=50)
        assert distances.shape == correlations.shape == (50,)
        assert distances[-1] == pytest.approx(900.0)
        assert correlations[0] == pytest.approx(0.8)

    def test_dict_round_trip(self) -> None:
        """Test dict roundtrip preserves values."""
        crm = make_correlogram(sill=0.6, range=80, family="Mat", kappa=1.5)
        assert CorrelogramModel.from_dict(crm.to_dict()) == crm

    def test_from_dict_acf0_and_model_keys(self) -> None:
        """Test creating from acf0 and model keys."""
        crm = CorrelogramModel.from_dict({"acf0": 0.78, "range": 321, "model": "Sph"})
        assert crm.family is CorrelogramFamily.SPHERICAL
        assert crm.sill == pytest.approx(0.78)

    def test_from_dict_missing_key(self) -> None:
        """Test that a missing range raises error."""
        with pytest.raises(InvalidParameterError, match="range"):
            CorrelogramModel.from_dict({"sill": 0.5})

    def test_repr(self, exp_crm: CorrelogramModel) -> None:
        """Test string representation."""
        assert "family=Exp" in repr(exp_crm)
