"""Unit tests for the :mod:`Source` package.

They cover input validation of the source and the limb-darkening lookup
grid: moments, cumulative flux and the equal-area annulus partition.
"""

import os
import sys

import numpy as np
import pytest

# Ensure the package root is on the path when running via ``pytest -q``.
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
)

from Errors import InvalidConfiguration
from Source import LimbDarkening, Source


def test_source_validation():
    assert Source(0.1, 0.2).rho == 0.0
    assert Source(0.1, 0.2, 0.01).zeta == complex(0.1, 0.2)
    with pytest.raises(InvalidConfiguration):
        Source(0.1, 0.2, -0.01)
    with pytest.raises(InvalidConfiguration):
        Source(np.inf, 0.2, 0.01)


def test_limb_points():
    source = Source(0.1, -0.2, 0.5)
    x, y = source.limb(np.array([0.0, 0.5 * np.pi]))
    assert np.allclose(x, [0.6, 0.1])
    assert np.allclose(y, [-0.2, 0.3])


def test_uniform_moments():
    """``<r^2> = 1/2`` and ``<r^4> = 1/3`` for a uniform disk."""
    profile = LimbDarkening.uniform()
    assert profile.is_uniform
    assert profile.moment(2) == pytest.approx(0.5, rel=1e-4)
    assert profile.moment(4) == pytest.approx(1.0 / 3.0, rel=1e-4)
    assert profile.cumulative(0.25) == pytest.approx(0.25, abs=1e-6)


def test_linear_moments_and_flux():
    """Linear law moments against their closed forms."""
    a1 = 0.51
    profile = LimbDarkening.linear(a1)
    assert not profile.is_uniform
    # flux-weighted <r^2> of I = 1 - a1 (1 - mu)
    flux = 1.0 - a1 / 3.0
    r2 = 0.5 * (1.0 - a1 * 7.0 / 15.0) / flux
    assert profile.moment(2) == pytest.approx(r2, rel=1e-4)
    assert profile.moment(2) < 0.5
    assert profile.cumulative(0.0) == pytest.approx(0.0)
    assert profile.cumulative(1.0) == pytest.approx(1.0)
    # limb darkening puts more flux near the centre
    assert profile.cumulative(0.5) > 0.5


def test_linear_zero_is_uniform():
    assert LimbDarkening.linear(0.0).is_uniform


@pytest.mark.parametrize("k", [2, 4, 16, 64])
def test_annulus_weights_sum_to_one(k):
    profile = LimbDarkening.square_root(0.51, 0.3)
    annuli = profile.annuli(k)
    assert len(annuli) == k
    assert sum(a.weight for a in annuli) == pytest.approx(1.0)
    assert annuli[-1].radius == pytest.approx(1.0)
    radii = [a.radius for a in annuli]
    assert np.all(np.diff(radii) > 0.0)
    assert np.allclose(np.array(radii) ** 2, np.arange(1, k + 1) / k)


def test_uniform_annuli_collapse_to_outer_disk():
    annuli = LimbDarkening.uniform().annuli(8)
    assert annuli[-1].weight == pytest.approx(1.0)
    assert np.allclose([a.weight for a in annuli[:-1]], 0.0, atol=1e-9)


def test_partition_of_uneven_boundaries():
    """Any ascending boundaries give weights that reproduce the profile."""
    profile = LimbDarkening.linear(0.51)
    u = [0.0, 0.1, 0.15, 0.5, 0.75, 0.875, 1.0]
    annuli = profile.partition(u)
    assert len(annuli) == 6
    assert sum(a.weight for a in annuli) == pytest.approx(1.0)
    assert [a.radius for a in annuli] == pytest.approx(np.sqrt(u[1:]))
    # linear darkening is brightest at the centre, so every weight is positive
    assert all(a.weight > 0.0 for a in annuli)
    assert profile.partition(np.arange(5) / 4) == profile.annuli(4)


def test_partition_rejects_unsorted_boundaries():
    with pytest.raises(InvalidConfiguration):
        LimbDarkening.linear(0.51).partition([0.0, 0.6, 0.4, 1.0])


def test_negative_profile_raises():
    with pytest.raises(InvalidConfiguration):
        LimbDarkening.linear(1.5)
    with pytest.raises(InvalidConfiguration):
        LimbDarkening(lambda mu: np.zeros_like(mu))
    with pytest.raises(InvalidConfiguration):
        LimbDarkening(lambda mu: np.full_like(mu, np.nan))


def test_from_law():
    a = LimbDarkening.from_law("quadratic", 0.4, 0.2)
    b = LimbDarkening.quadratic(0.4, 0.2)
    assert np.allclose(a.intensity, b.intensity)
    assert a.moment(2) == pytest.approx(b.moment(2))
    with pytest.raises(InvalidConfiguration):
        LimbDarkening.from_law("cubic", 0.4)


def test_from_radial_accepts_scalar_functions():
    """A scalar-only radial profile is evaluated point by point."""

    def step(r):
        if r < 0.5:
            return 2.0
        return 1.0

    profile = LimbDarkening.from_radial(step, npts=2000)
    # flux inside r = 0.5 is 2 * 0.25 out of 2 * 0.25 + 0.75
    assert profile.cumulative(0.25) == pytest.approx(0.5 / 1.25, abs=5e-3)


def test_from_radial_matches_linear():
    a1 = 0.6
    radial = LimbDarkening.from_radial(lambda r: 1.0 - a1 * (1.0 - np.sqrt(1.0 - r * r)))
    linear = LimbDarkening.linear(a1)
    assert radial.moment(2) == pytest.approx(linear.moment(2), rel=1e-6)


def test_logarithmic_profile_is_finite_at_the_limb():
    profile = LimbDarkening.logarithmic(0.5, 0.2)
    assert np.all(np.isfinite(profile.intensity))
    assert profile(0.0) == pytest.approx(0.5)
