"""Unit tests for the :mod:`Lens` package.

The tests check the polynomial form of the lens equation, the root solver
and the classification of roots into true images and ghosts.
"""

import os
import sys
import warnings

import numpy as np
import pytest

# Ensure the package root is on the path when running via ``pytest -q``.
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
)

from Errors import DegenerateRootSet, InvalidConfiguration, MagnificationError
from Lens import Lens
from Magnification import Magnification


def test_lens_geometry():
    """Masses sum to one and the centre of mass sits at the origin."""
    lens = Lens(0.8, 0.1)
    assert lens.m1 + lens.m2 == pytest.approx(1.0)
    assert lens.z2 - lens.z1 == pytest.approx(0.8)
    assert lens.m1 * lens.z1 + lens.m2 * lens.z2 == pytest.approx(0.0, abs=1e-15)
    assert lens.m2 / lens.m1 == pytest.approx(0.1)


@pytest.mark.parametrize("s, q", [(0.0, 0.1), (-1.0, 0.1), (1.0, 0.0), (1.0, np.nan)])
def test_invalid_lens(s, q):
    with pytest.raises(InvalidConfiguration):
        Lens(s, q)
    with pytest.raises(ValueError):
        Lens(s, q)


def test_polynomial_roots_solve_lens_equation():
    """Every true image maps back onto the source."""
    lens = Lens(0.8, 0.1)
    y1, y2 = 0.01, 0.01
    found = lens.images(y1, y2)
    assert len(found) in (3, 5)
    for r in found.images:
        assert abs(lens.lens_equation(r.z) - complex(y1, y2)) < lens.residual_tolerance

    coeffs = np.array(lens.polynomial(y1, y2))
    for z in lens.solve(y1, y2):
        value = np.polyval(coeffs[::-1], z)
        assert abs(value) < 1e-8 * np.max(np.abs(coeffs))


def test_polynomial_degree():
    lens = Lens(1.2, 0.5)
    assert len(lens.polynomial(0.3, -0.2)) == 6
    assert len(lens.solve(0.3, -0.2)) == 5


@pytest.mark.parametrize("s, q", [(0.5, 1.0), (0.8, 0.1), (1.0, 1e-3), (2.0, 0.3)])
def test_image_count_over_grid(s, q):
    """The true image count is always 3 or 5."""
    lens = Lens(s, q)
    for y1 in np.linspace(-1.05, 1.05, 9):
        for y2 in np.linspace(-0.93, 0.93, 6):
            found = lens.images(y1, y2)
            assert len(found) in (3, 5)
            assert len(found.images) + len(found.ghosts) == 5


def test_far_source_has_three_images():
    lens = Lens(1.0, 1.0)
    found = lens.images(3.0, 2.0)
    assert len(found) == 3
    # the point-lens limit
    u = np.hypot(3.0, 2.0)
    assert found.magnification == pytest.approx(
        (u * u + 2.0) / (u * np.sqrt(u * u + 4.0)), rel=1e-2
    )


def test_point_magnification_is_sum_of_inverse_jacobians():
    lens = Lens(0.8, 0.1)
    engine = Magnification()
    for y1, y2 in [(0.01, 0.01), (0.3, -0.1), (-0.5, 0.4)]:
        found = lens.images(y1, y2)
        expected = sum(1.0 / abs(lens.jacobian(r.z)) for r in found.images)
        assert engine.point_source(lens, y1, y2) == pytest.approx(expected)


def test_guesses_give_the_same_roots():
    lens = Lens(0.8, 0.1)
    first = lens.solve(0.01, 0.01)
    again = lens.solve(0.0101, 0.0099, guesses=first)
    assert len(again) == 5
    for z in again:
        assert min(abs(z - w) for w in first) < 1e-2


def test_centroid_weights_images():
    lens = Lens(0.8, 0.1)
    found = lens.images(0.2, 0.1)
    weights = np.array([1.0 / abs(r.jacobian) for r in found.images])
    z = np.array([r.z for r in found.images])
    cx, cy = found.centroid
    assert cx == pytest.approx(np.sum(weights * z.real) / np.sum(weights))
    assert cy == pytest.approx(np.sum(weights * z.imag) / np.sum(weights))


def _replacing_solver(pick, replacement):
    """Root solver that swaps one true image for ``replacement(z)``."""
    original = Lens.solve

    def solve(self, y1, y2, guesses=None):
        roots = list(original(self, y1, y2, guesses))
        zeta = complex(y1, y2)
        true = [
            k
            for k, z in enumerate(roots)
            if abs(self.lens_equation(z) - zeta) < self.residual_tolerance
        ]
        k = pick(self, [roots[i] for i in true])
        roots[true[k]] = replacement(roots[true[k]])
        return roots

    return solve


def _major(lens, zs):
    return int(np.argmax([abs(z) for z in zs]))


def _near_left_lens(lens, zs):
    return int(np.argmin([abs(z - lens.z1) for z in zs]))


def test_degenerate_root_set(monkeypatch):
    """An image that cannot be recovered raises in both modes."""
    lens = Lens(1.0, 1.0)
    monkeypatch.setattr(Lens, "solve", _replacing_solver(_major, lambda z: z + 5.0))

    with pytest.raises(DegenerateRootSet) as excinfo:
        lens.images(3.0, 2.0)
    assert excinfo.value.n_images == 2
    assert isinstance(excinfo.value, MagnificationError)
    assert isinstance(excinfo.value, ArithmeticError)

    with pytest.raises(DegenerateRootSet):
        lens.images(3.0, 2.0, strict=False)


def test_non_finite_root_raises(monkeypatch):
    lens = Lens(1.0, 1.0)
    monkeypatch.setattr(
        Lens, "solve", _replacing_solver(_major, lambda z: complex(np.nan, 0.0))
    )
    for strict in (True, False):
        with pytest.raises(DegenerateRootSet):
            lens.images(3.0, 2.0, strict=strict)


def test_lost_image_is_recovered_next_to_its_lens(monkeypatch):
    """An image missing from the polynomial roots is found from a lens seed."""
    lens = Lens(1.0, 1.0)
    expected = lens.images(3.0, 2.0)
    monkeypatch.setattr(
        Lens, "solve", _replacing_solver(_near_left_lens, lambda z: 10.0 + 10.0j)
    )
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        found = lens.images(3.0, 2.0)
    assert len(found) == 3
    assert found.magnification == pytest.approx(expected.magnification, rel=1e-8)
    assert min(abs(r.z - lens.z1) for r in found.images) < 0.3


def test_near_miss_root_is_polished(monkeypatch):
    lens = Lens(0.8, 0.1)
    expected = lens.images(0.2, 0.1)
    monkeypatch.setattr(
        Lens, "solve", _replacing_solver(_major, lambda z: z + 1e-4)
    )
    found = lens.images(0.2, 0.1)
    assert len(found) == len(expected)
    for r in found.images:
        assert r.residual <= lens.residual_tolerance
    assert found.magnification == pytest.approx(expected.magnification, rel=1e-6)


@pytest.mark.parametrize("q", [1e-6, 1e-8, 1e-10, 1e6, 1e8, 1e10])
def test_extreme_mass_ratio_reaches_point_lens_limit(q):
    """With one mass negligible the images are those of a single lens."""
    lens = Lens(1.0, q)
    u = np.hypot(0.1, 0.1)
    expected = (u * u + 2.0) / (u * np.sqrt(u * u + 4.0))
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        found = lens.images(0.1, 0.1)
        value = Magnification().point_source(lens, 0.1, 0.1)
    assert len(found) == 3
    assert value == pytest.approx(expected, rel=1e-3)


def test_find_roots_of_known_polynomial():
    from Lens._roots import find_roots

    known = [1.0, 2.0, -3j, 0.5 + 0.5j]
    coeffs = np.poly(known)[::-1].astype(complex)
    roots = find_roots(list(coeffs))
    assert len(roots) == 4
    for z in known:
        assert min(abs(z - r) for r in roots) < 1e-10
