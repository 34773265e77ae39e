"""Limb-darkened magnification from a sum of uniform-disk integrations.

The source is split into annuli in ``u = (r/rho)^2``, starting from
``min_annuli`` of equal area. Each annulus is a uniform disk minus the disk
inside it, so the limb-darkened magnification is a weighted sum of
uniform-disk magnifications at the outer annulus radii. The annulus with
the largest local error is bisected until the combined error estimate
meets the tolerance or ``max_annuli`` is reached. Uniform-disk results are
cached by radius and tolerance, so each bisection traces one new disk and
several profiles at the same source share all their contour integrations.
"""

import numpy as np

from Source import Source
from ._result import AnnulusState, DispatchState, MagnificationResult

# annuli narrower than this in u are never bisected
MIN_WIDTH = 1e-12


def _local_errors(u, mags, profile):
    """Quadrature error of each annulus bounded by ``u``.

    Estimated from the variation of the mean intensity and of the mean
    ``d(u M)/du`` across neighbouring annuli.
    """
    u = np.asarray(u, dtype=float)
    du = np.diff(u)
    if len(du) < 2:
        return np.zeros(len(du))
    centres = 0.5 * (u[1:] + u[:-1])
    mean = profile.mean_intensity(u[:-1], u[1:])
    g = np.diff(np.append(0.0, np.asarray(mags) * u[1:])) / du
    slope = np.gradient(mean, centres) * np.gradient(g, centres)
    return np.abs(slope) * du**3 / 12.0


class _DiskCache:
    """Uniform-disk traces of one source, keyed by radius and tolerance."""

    def __init__(self, engine, lens, source):
        self.engine = engine
        self.lens = lens
        self.source = source
        self.traces = {}

    def __call__(self, radius, tolerance):
        key = (radius, tolerance)
        if key not in self.traces:
            self.traces[key] = self.engine._trace(
                self.lens,
                self.source.y1,
                self.source.y2,
                radius * self.source.rho,
                tolerance,
            )
        return self.traces[key]


def _integrate_profile(self, disks, profile, tolerance):
    source = disks.source
    astrometry = None

    if profile.is_uniform:
        res = disks(1.0, tolerance)
        if self.astrometry:
            astrometry = (res.centroid[0] - source.y1, res.centroid[1] - source.y2)
        if res.converged:
            state = AnnulusState.CONVERGED
        else:
            state = AnnulusState.CAPPED
        return MagnificationResult(
            res.magnification,
            res.error,
            1,
            res.n_points,
            mode=DispatchState.FULL_INTEGRATION,
            state=state,
            astrometry=astrometry,
            converged=res.converged,
        )

    sub_tolerance = tolerance.scaled(0.5)
    used = {}
    state = AnnulusState.INIT
    u = list(np.arange(self.min_annuli + 1) / self.min_annuli)
    previous = None
    while state in (AnnulusState.INIT, AnnulusState.REFINE):
        if state is AnnulusState.REFINE:
            previous = value
            j = int(np.argmax(np.where(np.diff(u) > MIN_WIDTH, local, -1.0)))
            u.insert(j + 1, 0.5 * (u[j] + u[j + 1]))
        annuli = profile.partition(u)
        traces = []
        for a in annuli:
            res = disks(a.radius, sub_tolerance)
            used[a.radius] = res
            traces.append(res)

        mags = [res.magnification for res in traces]
        value = sum(a.weight * m for a, m in zip(annuli, mags))
        contour_error = sum(abs(a.weight) * res.error for a, res in zip(annuli, traces))
        local = _local_errors(u, mags, profile)
        quadrature = float(np.sum(local))
        if previous is not None:
            quadrature = max(quadrature, abs(value - previous))
        error = quadrature + contour_error

        if "annuli" in self.debug:
            print("debug Magnification.limb_darkened: n_annuli: ", len(annuli))
            print("debug Magnification.limb_darkened: value: ", value)
            print(
                "debug Magnification.limb_darkened: quadrature, contours: ",
                quadrature,
                contour_error,
            )

        satisfied = tolerance.satisfied(value, error)
        if satisfied and previous is not None:
            state = AnnulusState.CONVERGED
        elif len(annuli) >= self.max_annuli or np.max(np.diff(u)) <= MIN_WIDTH:
            state = AnnulusState.CONVERGED if satisfied else AnnulusState.CAPPED
        else:
            state = AnnulusState.REFINE

    if self.astrometry:
        cx = sum(a.weight * r.magnification * r.centroid[0] for a, r in zip(annuli, traces))
        cy = sum(a.weight * r.magnification * r.centroid[1] for a, r in zip(annuli, traces))
        if value != 0.0:
            astrometry = (cx / value - source.y1, cy / value - source.y2)
        else:
            astrometry = (0.0, 0.0)

    return MagnificationResult(
        value,
        error,
        len(annuli),
        sum(res.n_points for res in used.values()),
        mode=DispatchState.FULL_INTEGRATION,
        state=state,
        astrometry=astrometry,
        converged=state is AnnulusState.CONVERGED,
    )


def _integrate_annuli(self, lens, source, profiles, tolerance):
    """Full integration of every profile, sharing one cache of disk traces."""
    disks = _DiskCache(self, lens, source)
    return [self._integrate_profile(disks, p, tolerance) for p in profiles]


def limb_darkened(self, lens, y1, y2, rho, limb_darkening=None, tol=None):
    """Limb-darkened magnification by annulus integration, without the fast path.

    Parameters
    ----------
    lens : Lens
        Binary lens.
    y1, y2 : float
        Source centre.
    rho : float
        Source radius.
    limb_darkening : LimbDarkening or float, optional
        Source profile, or a linear coefficient. Defaults to the engine's
        profile.
    tol : float or Tolerance, optional
        Overrides the engine tolerance.

    Returns
    -------
    MagnificationResult
    """
    source = Source(y1, y2, rho)
    tolerance = self._tolerance(tol)
    profile = self._profile(limb_darkening)
    if source.rho == 0.0:
        return self._point_result(lens, source)
    return self._integrate_annuli(lens, source, [profile], tolerance)[0]
