"""Uniform-source magnification by contour integration."""

from Contour import ContourTracer
from Source import Source
from ._point import point_images
from ._result import AnnulusState, DispatchState, MagnificationResult


def _trace(self, lens, y1, y2, rho, tolerance):
    tracer = ContourTracer(
        lens,
        y1,
        y2,
        rho,
        tolerance,
        min_points=self.min_points,
        max_points=self.max_points,
        debug=self.debug,
    )
    return tracer.trace()


def _point_result(self, lens, source):
    """Result for ``rho = 0``: the point-source value, exact by convention."""
    found = point_images(lens, source.y1, source.y2)
    astrometry = None
    if self.astrometry:
        cx, cy = found.centroid
        astrometry = (cx - source.y1, cy - source.y2)
    return MagnificationResult(
        found.magnification,
        0.0,
        0,
        1,
        mode=DispatchState.FAST_PATH,
        astrometry=astrometry,
    )


def uniform(self, lens, y1, y2, rho, tol=None):
    """Magnification of a uniform disk, from a single contour integration.

    Parameters
    ----------
    lens : Lens
        Binary lens.
    y1, y2 : float
        Source centre in the centre-of-mass frame.
    rho : float
        Source radius in Einstein radii. ``0`` returns the point-source
        magnification.
    tol : float or Tolerance, optional
        Overrides the engine tolerance.

    Returns
    -------
    MagnificationResult
    """
    source = Source(y1, y2, rho)
    tolerance = self._tolerance(tol)
    if source.rho == 0.0:
        return self._point_result(lens, source)

    res = self._trace(lens, source.y1, source.y2, source.rho, tolerance)
    astrometry = None
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


def contours(self, lens, y1, y2, rho, tol=None):
    """Image contours of a uniform disk.

    Returns
    -------
    list of Contour
        Closed, oriented image boundaries whose signed areas add up to the
        total image area.

    Raises
    ------
    InvalidConfiguration
        If ``rho`` is not positive; a point source has no contours.
    """
    source = Source(y1, y2, rho)
    res = self._trace(lens, source.y1, source.y2, source.rho, self._tolerance(tol))
    return res.contours
