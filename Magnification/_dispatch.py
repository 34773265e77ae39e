from Source import Source
from ._point import weigh
from ._result import DispatchState, MagnificationResult


def _dispatch(self, lens, source, profiles, tolerance):
    """Fast path where it is trusted, annulus integration everywhere else."""
    if source.rho == 0.0:
        point = self._point_result(lens, source)
        return [point for _ in profiles]

    terms = self.expansion(lens, source)
    results = [None] * len(profiles)
    pending = []
    for i, profile in enumerate(profiles):
        estimate = weigh(terms, profile)
        if estimate.safe and tolerance.satisfied(estimate.value, estimate.error):
            astrometry = None
            if self.astrometry:
                astrometry = (
                    estimate.centroid[0] - source.y1,
                    estimate.centroid[1] - source.y2,
                )
            results[i] = MagnificationResult(
                estimate.value,
                estimate.error,
                0,
                13,
                mode=DispatchState.FAST_PATH,
                astrometry=astrometry,
            )
            continue
        pending.append(i)

    if "dispatch" in self.debug:
        print(
            "debug Magnification._dispatch: fast path: ",
            len(profiles) - len(pending),
            "of",
            len(profiles),
        )

    if pending:
        full = self._integrate_annuli(
            lens, source, [profiles[i] for i in pending], tolerance
        )
        for i, res in zip(pending, full):
            results[i] = res
    return results


def adaptive(self, lens, y1, y2, rho, tol=None, limb_darkening=None):
    """Magnification of a finite source to the requested tolerance.

    The hexadecapole estimate is used when the caustic proximity tests pass
    and its error bound meets the tolerance; otherwise the source is
    integrated annulus by annulus.

    Parameters
    ----------
    lens : Lens
        Binary lens.
    y1, y2 : float
        Source centre in the centre-of-mass frame.
    rho : float
        Source radius in Einstein radii.
    tol : float or Tolerance, optional
        Overrides the engine tolerance.
    limb_darkening : LimbDarkening or float, optional
        Overrides the engine profile. A float is a linear coefficient.

    Returns
    -------
    MagnificationResult
    """
    source = Source(y1, y2, rho)
    tolerance = self._tolerance(tol)
    profile = self._profile(limb_darkening)
    return self._dispatch(lens, source, [profile], tolerance)[0]


def multi_profile(self, lens, y1, y2, rho, profiles, tol=None, full_output=False):
    """Magnification of one source under several limb-darkening profiles.

    The point-source solves of the fast path and the contour integrations of
    every disk radius are shared between the profiles, and each value is
    identical to what :meth:`adaptive` returns for that profile alone.

    Parameters
    ----------
    profiles : sequence of float or LimbDarkening
        Floats are linear limb-darkening coefficients.
    full_output : bool, optional
        Return :class:`MagnificationResult` objects instead of values.

    Returns
    -------
    list
        One magnification (or result) per profile, in input order.
    """
    source = Source(y1, y2, rho)
    tolerance = self._tolerance(tol)
    profiles = [self._profile(p) for p in profiles]
    results = self._dispatch(lens, source, profiles, tolerance)
    if full_output:
        return results
    return [res.value for res in results]
