"""Binary point-mass lens: lens equation, its polynomial form and images."""

from dataclasses import dataclass, field

import numpy as np
from numpy.polynomial import polynomial as P

from Errors import InvalidConfiguration
from ._images import Root, ImageSet


@dataclass(frozen=True)
class Lens:
    """Two point masses on the real axis of the centre-of-mass frame.

    Lengths are in units of the Einstein radius of the total mass. The
    left lens carries ``m1 = 1/(1+q)`` and sits at ``z1 = -s q/(1+q)``; the
    right lens carries ``m2 = q/(1+q)`` and sits at ``z2 = s/(1+q)``.

    Parameters
    ----------
    s : float
        Projected separation of the two masses.
    q : float
        Mass of the right lens divided by the mass of the left lens.
    debug : list of str, optional
        Debug keywords; ``"roots"`` prints every classification.

    Notes
    -----
    The lens equation is ``zeta = z - conj(f(z))`` with deflection
    ``f(z) = m1/(z - z1) + m2/(z - z2)``. Instances are immutable and are
    rebuilt whenever ``s`` or ``q`` changes along a trajectory.
    """

    s: float
    q: float
    debug: list = field(default_factory=list, compare=False, repr=False)

    from ._roots import solve
    from ._images import images

    def __post_init__(self):
        for name in ("s", "q"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0.0:
                raise InvalidConfiguration(
                    "lens parameter %s must be positive and finite, got %r"
                    % (name, value)
                )
        object.__setattr__(self, "s", float(self.s))
        object.__setattr__(self, "q", float(self.q))
        if self.debug is None:
            object.__setattr__(self, "debug", [])

    @property
    def m1(self):
        return 1.0 / (1.0 + self.q)

    @property
    def m2(self):
        return self.q / (1.0 + self.q)

    @property
    def z1(self):
        return -self.s * self.q / (1.0 + self.q)

    @property
    def z2(self):
        return self.s / (1.0 + self.q)

    @property
    def residual_tolerance(self):
        """Largest lens-equation residual accepted for a true image."""
        return 1e-6 * (1.0 + self.s * self.s)

    def deflection(self, z):
        """Return ``f(z) = m1/(z - z1) + m2/(z - z2)``."""
        return self.m1 / (z - self.z1) + self.m2 / (z - self.z2)

    def lens_equation(self, z):
        """Map an image-plane position ``z`` to the source plane."""
        return z - np.conj(self.deflection(z))

    def derivatives(self, z):
        """Return the first and second derivatives of the deflection.

        Parameters
        ----------
        z : complex or array_like
            Image-plane position(s).

        Returns
        -------
        fp, fpp : complex or ndarray
            ``f'(z)`` and ``f''(z)``.
        """
        w1 = z - self.z1
        w2 = z - self.z2
        fp = -(self.m1 / (w1 * w1) + self.m2 / (w2 * w2))
        fpp = 2.0 * (self.m1 / (w1 * w1 * w1) + self.m2 / (w2 * w2 * w2))
        return fp, fpp

    def jacobian(self, z):
        """Determinant of the lens mapping, ``1 - |f'(z)|^2``."""
        fp, _ = self.derivatives(z)
        return 1.0 - np.abs(fp) ** 2

    def polynomial(self, y1, y2):
        """Coefficients of the degree-5 image polynomial.

        The conjugate image position is eliminated by conjugating the lens
        equation, ``conj(z) = N(z)/D(z)``, and substituting back.

        Parameters
        ----------
        y1, y2 : float
            Source position in the centre-of-mass frame.

        Returns
        -------
        list of complex
            Coefficients in ascending order of power. Leading coefficients
            that vanish (source exactly on a lens) are dropped.
        """
        zeta = complex(y1, y2)
        zbar = zeta.conjugate()
        m1, m2, z1, z2 = self.m1, self.m2, self.z1, self.z2

        D = [z1 * z2 + 0j, -(z1 + z2) + 0j, 1.0 + 0j]
        N = [
            zbar * z1 * z2 - m1 * z2 - m2 * z1,
            -zbar * (z1 + z2) + m1 + m2,
            zbar,
        ]
        A = [n - z1 * d for n, d in zip(N, D)]
        B = [n - z2 * d for n, d in zip(N, D)]

        coeffs = list(
            P.polyadd(
                P.polymul([zeta, -1.0 + 0j], P.polymul(A, B)),
                P.polymul(D, [m1 * b + m2 * a for a, b in zip(A, B)]),
            )
        )

        scale = max(abs(c) for c in coeffs)
        while len(coeffs) > 1 and abs(coeffs[-1]) <= 1e-14 * scale:
            coeffs.pop()
        return coeffs

    def planetary_caustic(self):
        """Centre and half-size of the planetary caustic region.

        Returns
        -------
        center : complex
            Expected position of the planetary caustic, ``s - 1/s`` from
            the heavier lens along the lens axis.
        size : float
            ``3 sqrt(q)/s`` for the lighter mass ratio.
        """
        if self.q <= 1.0:
            q = self.q
            center = self.z1 + (self.s - 1.0 / self.s)
        else:
            q = 1.0 / self.q
            center = self.z2 - (self.s - 1.0 / self.s)
        return complex(center, 0.0), 3.0 * np.sqrt(q) / self.s


__all__ = ["Lens", "Root", "ImageSet"]
