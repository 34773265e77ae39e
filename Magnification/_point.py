"""Point-source magnification and the hexadecapole finite-source estimate.

The finite-source estimate follows Gould (2008): the magnification is
sampled at the source centre, at four points on a circle of radius
``rho/2`` and at eight points on the limb, and the azimuthally averaged
expansion ``A0 + A2 r^2 + A4 r^4`` is integrated against the source
profile. The estimate is trusted only away from caustics, which is checked
with the cusp and ghost-image tests of Bozza (2010) and a planetary-caustic
proximity test.
"""

from typing import NamedTuple

import numpy as np

from Errors import DegenerateRootSet
from Source import Source

# ghost-image test threshold
C_GHOST = 4.0
# planetary caustic test threshold
C_PLANET = 2.0
# weight of the cusp term in the error bound
GAMMA_CUSP = 0.02
# floor on the source size used by the proximity tests
RHO_MIN = 1e-3
# relative size of the source shifts tried on a degenerate root set
NUDGE = 1e-10

_PLUS = np.array([1.0, 1j, -1.0, -1j])
_CROSS = np.exp(0.25j * np.pi) * _PLUS


class MultipoleTerms(NamedTuple):
    """Profile-independent coefficients of the multipole expansion."""

    a0: float
    a2: float
    a4: float
    cusp: float
    safe: bool
    centroid: tuple


class MultipoleEstimate(NamedTuple):
    """Hexadecapole estimate of a finite-source magnification."""

    value: float
    error: float
    point: float
    quadrupole: float
    hexadecapole: float
    safe: bool
    centroid: tuple


def point_images(lens, y1, y2, guesses=None):
    """Images of a point source, shifting it slightly on a degenerate root set."""
    try:
        return lens.images(y1, y2, guesses)
    except DegenerateRootSet:
        scale = NUDGE * (1.0 + abs(complex(y1, y2)))
    for k in range(1, 4):
        for d in _CROSS:
            try:
                return lens.images(
                    y1 + k * scale * d.real, y2 + k * scale * d.imag, guesses
                )
            except DegenerateRootSet:
                continue
    return lens.images(y1, y2, guesses, strict=False)


def point_source(self, lens, y1, y2):
    """Point-source magnification, ``sum 1/|J|`` over the true images.

    Parameters
    ----------
    lens : Lens
        Binary lens.
    y1, y2 : float
        Source position in the centre-of-mass frame.

    Returns
    -------
    float
    """
    source = Source(y1, y2)
    found = point_images(lens, source.y1, source.y2)
    if "point" in self.debug:
        print("debug Magnification.point_source: n_images: ", len(found))
        print("debug Magnification.point_source: A: ", found.magnification)
    return found.magnification


def _cusp_term(lens, found, rho):
    mu = 0.0
    for r in found.images:
        g, h = lens.derivatives(r.z)
        mu += abs(6.0 * (3.0 * np.conj(g) ** 3 * h * h).imag / abs(r.jacobian) ** 5)
    return mu * (rho + RHO_MIN) ** 2


def _ghost_test(lens, found, rho):
    """``True`` unless a ghost root signals a nearby caustic."""
    ghosts = found.ghosts
    if not ghosts:
        return True
    zeta_bar = complex(found.y1, -found.y2)
    total = 0.0
    for r in ghosts:
        z = r.z
        g, h = lens.derivatives(z)
        gbar, hbar = lens.derivatives(np.conj(z))
        zhat = zeta_bar + lens.deflection(z)
        ghat, _ = lens.derivatives(zhat)
        J = 1.0 - abs(g * gbar)
        Jhat = 1.0 - abs(g * ghat)
        denom = Jhat * hbar * g - np.conj(Jhat) * h * gbar * ghat
        if denom == 0:
            return False
        total += abs(J * Jhat**2 / denom)
    return 0.5 * total > C_GHOST * (rho + RHO_MIN)


def _planetary_test(lens, y1, y2, rho):
    """``True`` unless the source is near a planetary caustic."""
    if min(lens.q, 1.0 / lens.q) >= 0.01:
        return True
    center, size = lens.planetary_caustic()
    return abs(complex(y1, y2) - center) ** 2 > C_PLANET * (rho**2 + size**2)


def expansion(self, lens, source):
    """Profile-independent terms of the hexadecapole expansion.

    The 13 point-source solves and the safety tests do not depend on the
    limb-darkening profile, so they are done once and shared by every
    profile evaluated at the same source.
    """
    zeta = source.zeta
    rho = source.rho

    center = point_images(lens, source.y1, source.y2)
    a0 = center.magnification
    guesses = center.positions
    counts = {len(center)}

    def ring(radius, directions):
        total = 0.0
        for d in directions:
            w = zeta + radius * d
            found = point_images(lens, w.real, w.imag, guesses)
            counts.add(len(found))
            total += found.magnification
        return total / len(directions) - a0

    half_plus = ring(0.5 * rho, _PLUS)
    full_plus = ring(rho, _PLUS)
    full_cross = ring(rho, _CROSS)

    a2 = (16.0 * half_plus - full_plus) / 3.0
    a4 = 0.5 * (full_plus + full_cross) - a2

    cusp = _cusp_term(lens, center, rho)
    ghost_ok = _ghost_test(lens, center, rho)
    planet_ok = _planetary_test(lens, source.y1, source.y2, rho)
    safe = ghost_ok and planet_ok and len(counts) == 1

    if "dispatch" in self.debug:
        print("debug Magnification.expansion: A0, A2, A4: ", a0, a2, a4)
        print("debug Magnification.expansion: mu_cusp: ", cusp)
        print(
            "debug Magnification.expansion: ghost, planet, counts: ",
            ghost_ok,
            planet_ok,
            sorted(counts),
        )

    return MultipoleTerms(a0, a2, a4, cusp, safe, center.centroid)


def weigh(terms, limb_darkening):
    """Apply a source profile to the expansion terms."""
    quadrupole = terms.a2 * limb_darkening.moment(2)
    hexadecapole = terms.a4 * limb_darkening.moment(4)
    value = terms.a0 + quadrupole + hexadecapole
    error = abs(hexadecapole) + GAMMA_CUSP * terms.cusp
    return MultipoleEstimate(
        value, error, terms.a0, quadrupole, hexadecapole, terms.safe, terms.centroid
    )


def multipole(self, lens, y1, y2, rho, limb_darkening=None):
    """Hexadecapole estimate of the finite-source magnification.

    Parameters
    ----------
    lens : Lens
        Binary lens.
    y1, y2 : float
        Source centre.
    rho : float
        Source radius.
    limb_darkening : LimbDarkening, optional
        Source profile; defaults to the engine's profile.

    Returns
    -------
    MultipoleEstimate
        ``safe`` is ``False`` when a proximity test fails or the image
        count differs between the sample points, in which case the value
        must not be used.
    """
    if limb_darkening is None:
        limb_darkening = self.limb_darkening
    source = Source(y1, y2, rho)
    return weigh(self.expansion(lens, source), limb_darkening)
