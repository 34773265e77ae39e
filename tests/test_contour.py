"""Unit tests for the :mod:`Contour` package.

Polygon areas and centroids are checked on simple shapes, the tracer on a
source far from the caustics where the point-source limit holds, and the
plotting helpers with the ``Agg`` backend.
"""

import os
import sys

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

import numpy as np
import pytest

# Ensure the package root is on the path when running via ``pytest -q``.
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
)

from Contour import Contour, ContourTracer, integrate, plot_contours
from Errors import InvalidConfiguration
from Lens import Lens
from Magnification import Magnification, Tolerance
from Source import Source


def circle(center, radius, n=256, clockwise=False):
    theta = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
    if clockwise:
        theta = -theta
    z = center + radius * np.exp(1j * theta)
    return Contour(z, np.ones(n, dtype=int), np.zeros(n))


def test_polygon_area_and_centroid():
    n = 256
    c = circle(0.2 - 0.1j, 0.3, n)
    expected = 0.5 * n * 0.3**2 * np.sin(2.0 * np.pi / n)
    assert c.area() == pytest.approx(expected)
    cx, cy = c.centroid()
    assert cx == pytest.approx(0.2)
    assert cy == pytest.approx(-0.1)
    assert len(c) == n


def test_square():
    square = Contour([0.0, 1.0, 1.0 + 1.0j, 1.0j], [1, 1, 1, 1], [0.0] * 4)
    assert square.area() == pytest.approx(1.0)
    assert square.centroid() == pytest.approx((0.5, 0.5))


def test_orientation_sets_the_sign():
    c = circle(0.0, 1.0, clockwise=True)
    assert c.area() < 0.0
    total, mx, my = integrate([circle(0.0, 1.0), c])
    assert total == pytest.approx(0.0, abs=1e-12)


def test_corrections_are_added():
    square = Contour([0.0, 1.0, 1.0 + 1.0j, 1.0j], [1, 1, 1, 1], [0.1, 0.0, 0.0, 0.0])
    assert square.area() == pytest.approx(1.1)


def test_corrections_keep_the_centroid():
    """Curvature corrections scale the moments along with the area."""
    square = Contour([0.0, 1.0, 1.0 + 1.0j, 1.0j], [1, 1, 1, 1], [0.1, 0.0, 0.0, 0.0])
    assert square.centroid() == pytest.approx((0.5, 0.5))
    assert square.moments() == pytest.approx((0.55, 0.55))

    n = 64
    polygon = circle(3.2 + 1.1j, 0.4, n)
    # circular segments between the chords and the true circle
    segment = 0.5 * 0.4**2 * (2.0 * np.pi / n - np.sin(2.0 * np.pi / n))
    c = Contour(polygon.z, polygon.parity, np.full(n, segment))
    assert c.area() == pytest.approx(np.pi * 0.4**2)
    assert c.centroid() == pytest.approx((3.2, 1.1))
    total, mx, my = integrate([c])
    assert (mx / total, my / total) == pytest.approx((3.2, 1.1))


def test_mismatched_lengths():
    with pytest.raises(ValueError):
        Contour([0.0, 1.0, 1.0j], [1, 1], [0.0, 0.0, 0.0])


def test_tracer_far_from_caustics():
    """Away from the caustics the images are small ellipses."""
    lens = Lens(1.0, 1.0)
    rho = 0.05
    tracer = ContourTracer(lens, 3.0, 2.0, rho, Tolerance(1e-5))
    result = tracer.trace()
    point = Magnification().point_source(lens, 3.0, 2.0)

    assert result.converged
    assert result.n_points >= 32
    assert len(result.contours) == 3
    for contour in result.contours:
        assert contour.area() > 0.0
    assert result.magnification == pytest.approx(point, abs=1e-4)
    total, _, _ = integrate(result.contours)
    assert total / (np.pi * rho * rho) == pytest.approx(result.magnification)
    assert result.error <= 1.0001e-5


def test_tracer_rejects_point_source():
    with pytest.raises(InvalidConfiguration):
        ContourTracer(Lens(1.0, 1.0), 0.1, 0.1, 0.0, Tolerance())
    with pytest.raises(InvalidConfiguration):
        ContourTracer(Lens(1.0, 1.0), 0.1, 0.1, 0.01, Tolerance(), min_points=64, max_points=32)


def test_tracer_respects_the_sample_cap():
    tracer = ContourTracer(
        Lens(0.8, 0.1), 0.01, 0.01, 0.01, Tolerance(1e-12), min_points=16, max_points=64
    )
    result = tracer.trace()
    assert not result.converged
    assert result.n_points <= 64


def test_plot_contours(tmp_path):
    lens = Lens(0.8, 0.1)
    source = Source(0.01, 0.01, 0.05)
    contours = Magnification().contours(lens, source.y1, source.y2, source.rho)
    assert len(contours) >= 1

    path = tmp_path / "contours.png"
    assert plot_contours(contours, lens=lens, source=source, path=str(path)) is None
    assert path.exists()

    fig = plot_contours(contours, title="test")
    assert fig is not None
    plt.close(fig)
