"""
Test suite for stable.py module.

Tests cover:
- Dominant eigenpair selection, including periodic (imprimitive) operators
- Normalization of w and pi
- Degenerate inputs
- Growth rate and mean age at childbearing
"""

import warnings
import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from helpers import DegenerateEigensystem, DimensionMismatch
from operators import build_operators
from stable import (
    _dominant_eigenpair,
    _normalize_positive,
    stable_distribution,
    intrinsic_growth_rate,
    mean_age_at_childbearing,
)


def _smooth_rates(k=50):
    """Plausible single-year schedule: falling survival, bell-shaped fertility."""
    ages = np.arange(k)
    P = np.clip(0.995 - 0.0004 * ages - 0.00002 * ages ** 2, 0.0, 1.0)
    P[-1] = 0.3
    asfr = 0.12 * np.exp(-0.5 * ((ages - 28.0) / 6.0) ** 2)
    asfr[ages < 15] = 0.0
    return ages, P, asfr


# ============================================================================
# Eigenpair helpers
# ============================================================================
class TestDominantEigenpair:
    """Perron root selection."""

    def test_primitive_leslie(self):
        A = np.array([[0.0, 1.0, 1.5], [0.8, 0.0, 0.0], [0.0, 0.6, 0.0]])
        lam, vec = _dominant_eigenpair(A)
        assert lam == pytest.approx(np.max(np.abs(np.linalg.eigvals(A))))
        np.testing.assert_allclose(A @ vec, lam * vec, atol=1e-10)

    def test_periodic_picks_positive_root(self):
        """Eigenvalues +-sqrt(0.18) tie in modulus; the positive one wins."""
        A = np.array([[0.0, 0.2, 0.0], [0.9, 0.0, 0.0], [0.0, 0.8, 0.0]])
        lam, _ = _dominant_eigenpair(A)
        assert lam == pytest.approx(np.sqrt(0.18))

    def test_roundoff_imaginary_part_is_silent(self):
        """Complex spectra with a real Perron root emit no warnings."""
        ages, P, asfr = _smooth_rates()
        U, F = build_operators(P, asfr, 1 / 2.04)
        k = ages.size
        A = U[:k, :k] + F[:k, :k]
        assert np.iscomplexobj(np.linalg.eigvals(A))
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            lam, vec = _dominant_eigenpair(A)
            stable_distribution(U, F)
        assert lam > 0.0
        assert vec.dtype == float

    def test_nilpotent_raises(self):
        A = np.array([[0.0, 0.0], [0.9, 0.0]])
        with pytest.raises(DegenerateEigensystem):
            _dominant_eigenpair(A)


class TestNormalizePositive:
    """Sign normalization of eigenvectors."""

    def test_negative_vector_flipped(self):
        out = _normalize_positive(np.array([-1.0, -2.0, -1.0]), "w")
        np.testing.assert_allclose(out, [0.25, 0.5, 0.25])

    def test_mixed_sign_raises(self):
        with pytest.raises(DegenerateEigensystem, match="mixed sign"):
            _normalize_positive(np.array([1.0, -1.0, 0.5]), "w")

    def test_roundoff_negatives_clipped(self):
        out = _normalize_positive(np.array([1.0, -1e-15, 1.0]), "w")
        assert np.all(out >= 0.0)
        assert out.sum() == pytest.approx(1.0)

    def test_zero_vector_raises(self):
        with pytest.raises(DegenerateEigensystem, match="zero total"):
            _normalize_positive(np.zeros(3), "w")


# ============================================================================
# stable_distribution
# ============================================================================
class TestStableDistribution:
    """Stable growth rate, age structure and maternal age distribution."""

    def test_concrete_three_age_example(self):
        U, F = build_operators([0.9, 0.8, 0.0], [0.0, 0.5, 0.0], 0.5)
        lam, w, pi = stable_distribution(U, F)
        assert isinstance(lam, float)
        assert lam == pytest.approx(np.sqrt(0.18))
        raw = np.array([1.0, 0.9 / lam, 0.72 / lam ** 2])
        np.testing.assert_allclose(w, raw / raw.sum())
        np.testing.assert_allclose(pi, [0.0, 1.0, 0.0])

    def test_w_and_pi_sum_to_one(self):
        ages, P, asfr = _smooth_rates()
        U, F = build_operators(P, asfr, 1 / 2.04)
        lam, w, pi = stable_distribution(U, F)
        assert w.sum() == pytest.approx(1.0)
        assert pi.sum() == pytest.approx(1.0)
        assert np.all(w >= 0.0)
        assert np.all(pi >= 0.0)
        assert lam > 0.0

    def test_w_is_eigenvector(self):
        ages, P, asfr = _smooth_rates()
        U, F = build_operators(P, asfr, 1 / 2.04)
        lam, w, _ = stable_distribution(U, F)
        k = ages.size
        A = U[:k, :k] + F[:k, :k]
        np.testing.assert_allclose(A @ w, lam * w, atol=1e-12)

    def test_pi_zero_outside_fertile_ages(self):
        ages, P, asfr = _smooth_rates()
        U, F = build_operators(P, asfr, 1 / 2.04)
        _, _, pi = stable_distribution(U, F)
        assert np.all(pi[asfr == 0.0] == 0.0)

    def test_higher_fertility_faster_growth(self):
        _, P, asfr = _smooth_rates()
        lam_lo, _, _ = stable_distribution(*build_operators(P, asfr, 0.49))
        lam_hi, _, _ = stable_distribution(*build_operators(P, 2 * asfr, 0.49))
        assert lam_hi > lam_lo

    def test_single_age_class(self):
        U, F = build_operators([0.5], [1.0], 0.5)
        lam, w, pi = stable_distribution(U, F)
        assert lam == pytest.approx(0.75)
        np.testing.assert_allclose(w, [1.0])
        np.testing.assert_allclose(pi, [1.0])

    def test_no_fertility_raises(self):
        U, F = build_operators([0.9, 0.8, 0.0], [0.0, 0.0, 0.0], 0.5)
        with pytest.raises(DegenerateEigensystem):
            stable_distribution(U, F)

    def test_fertility_unreachable_from_stable_structure_raises(self):
        """Post-fertile open interval dominates: w lives where asfr is zero."""
        U, F = build_operators([0.9, 0.8, 1.0], [0.0, 0.1, 0.0], 0.5)
        with pytest.raises(DegenerateEigensystem):
            stable_distribution(U, F)


# ============================================================================
# Summaries
# ============================================================================
class TestSummaries:
    """Derived scalars."""

    def test_intrinsic_growth_rate(self):
        assert intrinsic_growth_rate(1.0) == 0.0
        assert intrinsic_growth_rate(np.e) == pytest.approx(1.0)

    def test_intrinsic_growth_rate_rejects_nonpositive(self):
        with pytest.raises(DegenerateEigensystem):
            intrinsic_growth_rate(0.0)

    def test_mean_age_at_childbearing(self):
        assert mean_age_at_childbearing([0.25, 0.5, 0.25], [20, 30, 40]) == pytest.approx(30.0)

    def test_mean_age_length_mismatch(self):
        with pytest.raises(DimensionMismatch):
            mean_age_at_childbearing([0.5, 0.5], [20, 30, 40])

    def test_mean_age_within_fertile_span(self):
        ages, P, asfr = _smooth_rates()
        _, _, pi = stable_distribution(*build_operators(P, asfr, 0.49))
        mac = mean_age_at_childbearing(pi, ages)
        assert 20.0 < mac < 35.0
