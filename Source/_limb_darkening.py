from typing import NamedTuple

import numpy as np
from scipy.integrate import cumulative_trapezoid, trapezoid

from Errors import InvalidConfiguration
from . import _laws


class Annulus(NamedTuple):
    """Outer radius (as a fraction of rho) and weight of one annulus."""

    radius: float
    weight: float


class LimbDarkening:
    """Radial intensity profile of the source, stored as a lookup grid.

    The profile is sampled at ``npts`` points uniform in
    ``mu = sqrt(1 - r^2)``. From those samples the class tabulates the
    cumulative flux ``C(u)`` enclosed within ``u = r^2``, which is all the
    annulus integration needs.

    Parameters
    ----------
    intensity : callable
        Function of ``mu`` returning the (unnormalised) intensity.
    npts : int, optional
        Number of grid points. Default is ``1000``.
    name : str, optional
        Label used in ``repr`` and debug output.
    coefficients : tuple, optional
        Law coefficients, kept for reference only.
    uniform : bool, optional
        Marks a constant profile, which lets the annulus integration skip
        every radius but the outer one.

    Raises
    ------
    InvalidConfiguration
        If the intensity is negative or non-finite anywhere on the grid, or
        the total flux vanishes.
    """

    def __init__(
        self, intensity, npts=1000, name="custom", coefficients=(), uniform=False
    ):
        npts = int(npts)
        if npts < 2:
            raise InvalidConfiguration("need at least 2 grid points, got %d" % npts)

        mu = np.linspace(0.0, 1.0, npts)
        values = _sample(intensity, mu)
        if not np.all(np.isfinite(values)):
            raise InvalidConfiguration(
                "limb-darkening profile %r is not finite on [0, 1]" % name
            )
        if np.any(values < 0.0):
            raise InvalidConfiguration(
                "limb-darkening profile %r is negative at mu = %g"
                % (name, mu[np.argmax(values < 0.0)])
            )

        # flux enclosed between the limb (mu=0) and mu, as a function of mu
        outer = cumulative_trapezoid(2.0 * mu * values, mu, initial=0.0)
        total = outer[-1]
        if not total > 0.0:
            raise InvalidConfiguration(
                "limb-darkening profile %r has no flux" % name
            )

        self.name = name
        self.coefficients = tuple(coefficients)
        self.is_uniform = bool(uniform)
        self.npts = npts
        self.mu = mu
        self.intensity = values
        self.total_flux = float(total)
        # ascending in u = r^2
        self.u = (1.0 - mu**2)[::-1].copy()
        self.flux = (total - outer)[::-1].copy()
        self.u[0] = 0.0
        self.u[-1] = 1.0
        for arr in (self.mu, self.intensity, self.u, self.flux):
            arr.flags.writeable = False

        self._moments = {}
        for n in (2, 4):
            self._moments[n] = self._moment(n)

    def __repr__(self):
        if self.coefficients:
            return "LimbDarkening(%s, %s)" % (self.name, self.coefficients)
        return "LimbDarkening(%s)" % self.name

    def __call__(self, mu):
        """Interpolated intensity at ``mu``."""
        return np.interp(mu, self.mu, self.intensity)

    @classmethod
    def uniform(cls, npts=1000):
        return cls(np.ones_like, npts, name="uniform", uniform=True)

    @classmethod
    def linear(cls, a1, npts=1000):
        """Linear law ``I = 1 - a1 (1 - mu)``; ``a1 = 0`` is uniform."""
        return cls(
            lambda mu: _laws.linear(mu, a1),
            npts,
            name="linear",
            coefficients=(a1,),
            uniform=(a1 == 0.0),
        )

    @classmethod
    def square_root(cls, a1, a2, npts=1000):
        return cls(
            lambda mu: _laws.square_root(mu, a1, a2),
            npts,
            name="square_root",
            coefficients=(a1, a2),
        )

    @classmethod
    def quadratic(cls, a1, a2, npts=1000):
        return cls(
            lambda mu: _laws.quadratic(mu, a1, a2),
            npts,
            name="quadratic",
            coefficients=(a1, a2),
        )

    @classmethod
    def logarithmic(cls, a1, a2, npts=1000):
        return cls(
            lambda mu: _laws.logarithmic(mu, a1, a2),
            npts,
            name="logarithmic",
            coefficients=(a1, a2),
        )

    @classmethod
    def from_law(cls, law, *coefficients, npts=1000):
        """Build a named law from its name in :data:`_laws.LAWS`."""
        try:
            func = _laws.LAWS[law]
        except KeyError:
            raise InvalidConfiguration(
                "unknown limb-darkening law %r, choose from %s"
                % (law, sorted(_laws.LAWS))
            ) from None
        return cls(
            lambda mu: func(mu, *coefficients),
            npts,
            name=law,
            coefficients=coefficients,
        )

    @classmethod
    def from_radial(cls, func, npts=1000):
        """Sample an arbitrary radial profile ``r -> I(r)`` on ``npts`` points.

        Parameters
        ----------
        func : callable
            Intensity as a function of the fractional radius ``r`` in
            ``[0, 1]``. Scalar-only functions are accepted and evaluated
            point by point.
        npts : int, optional
            Number of grid points.
        """
        return cls(
            lambda mu: _sample(func, np.sqrt(np.clip(1.0 - mu**2, 0.0, 1.0))),
            npts,
            name="radial",
        )

    def cumulative(self, u):
        """Flux enclosed within ``u = r^2``, in units of the total flux."""
        return np.interp(u, self.u, self.flux) / self.total_flux

    def mean_intensity(self, u_lo, u_hi):
        """Mean intensity between ``u_lo`` and ``u_hi``, relative to the disk mean."""
        return (self.cumulative(u_hi) - self.cumulative(u_lo)) / (u_hi - u_lo)

    def moment(self, n):
        """Flux-weighted mean of ``r**n`` over the disk."""
        if n not in self._moments:
            return self._moment(n)
        return self._moments[n]

    def _moment(self, n):
        r2 = 1.0 - self.mu**2
        integrand = r2 ** (0.5 * n) * self.intensity * 2.0 * self.mu
        return float(trapezoid(integrand, self.mu) / self.total_flux)

    def annuli(self, k):
        """Partition the disk into ``k`` equal-area annuli.

        Parameters
        ----------
        k : int
            Number of annuli.

        Returns
        -------
        list of Annulus
        """
        return self.partition(np.arange(k + 1) / k)

    def partition(self, u):
        """Annuli bounded by the ascending values ``u = r^2``.

        The weight of annulus ``j`` multiplies the uniform-source
        magnification of the disk bounded by its outer radius, so that
        ``sum(w_j M(r_j))`` is the limb-darkened magnification. The weights
        always add up to one when ``u`` runs from 0 to 1.

        Parameters
        ----------
        u : array_like
            Boundaries, starting at 0 and ending at 1.

        Returns
        -------
        list of Annulus
        """
        u = np.asarray(u, dtype=float)
        if u.ndim != 1 or len(u) < 2 or np.any(np.diff(u) <= 0.0):
            raise InvalidConfiguration("annulus boundaries must be ascending")
        flux = self.cumulative(u)
        mean = np.diff(flux) / np.diff(u)
        following = np.append(mean[1:], 0.0)
        weights = u[1:] * (mean - following)
        return [Annulus(float(np.sqrt(uj)), float(w)) for uj, w in zip(u[1:], weights)]


def _sample(func, x):
    try:
        values = np.asarray(func(x), dtype=float)
    except (TypeError, ValueError):
        values = np.array([func(xi) for xi in x], dtype=float)
    return np.broadcast_to(values, x.shape).astype(float)
