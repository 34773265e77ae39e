"""Finite-source magnification of a binary lens."""

from numbers import Real

from Errors import InvalidConfiguration
from Source import Annulus, LimbDarkening
from ._point import MultipoleEstimate, MultipoleTerms
from ._result import AnnulusState, DispatchState, MagnificationResult, Tolerance


class Magnification:
    """Magnification engine for extended, optionally limb-darkened sources.

    Parameters
    ----------
    tol : float, optional
        Absolute error tolerance on the magnification.
    rel_tol : float, optional
        Relative error tolerance; a result is accepted when either bound is
        met. A zero disables the corresponding bound.
    limb_darkening : LimbDarkening or float, optional
        Default source profile. A float is a linear coefficient; ``None`` is
        a uniform disk.
    min_annuli, max_annuli : int, optional
        Initial number of annuli and the cap on their number.
    min_points, max_points : int, optional
        Initial number of limb samples per contour integration and the cap
        on their number.
    astrometry : bool, optional
        If ``True`` results carry the centroid shift of the images.
    debug : list of str, optional
        Debug keywords: ``"point"``, ``"dispatch"``, ``"annuli"``,
        ``"trace"`` and ``"roots"``.

    Attributes
    ----------
    tolerance : Tolerance
        Default stopping rule.
    limb_darkening : LimbDarkening
        Default source profile.

    Examples
    --------
    >>> lens = Lens(0.8, 0.1)
    >>> engine = Magnification(tol=1e-4, limb_darkening=0.51)
    >>> engine.adaptive(lens, 0.01, 0.01, 0.01).value  # doctest: +SKIP
    18.2753...
    """

    from ._point import point_source, multipole, expansion
    from ._uniform import uniform, contours, _trace, _point_result
    from ._annuli import limb_darkened, _integrate_annuli, _integrate_profile
    from ._dispatch import adaptive, multi_profile, _dispatch

    def __init__(
        self,
        tol=1e-2,
        rel_tol=0.0,
        limb_darkening=None,
        min_annuli=2,
        max_annuli=64,
        min_points=32,
        max_points=8192,
        astrometry=False,
        debug=None,
    ):
        self.tolerance = Tolerance(tol, rel_tol)
        if min_annuli < 2 or max_annuli < min_annuli:
            raise InvalidConfiguration(
                "need 2 <= min_annuli <= max_annuli, got %r and %r"
                % (min_annuli, max_annuli)
            )
        if min_points < 3 or max_points < min_points:
            raise InvalidConfiguration(
                "need 3 <= min_points <= max_points, got %r and %r"
                % (min_points, max_points)
            )
        self.min_annuli = int(min_annuli)
        self.max_annuli = int(max_annuli)
        self.min_points = int(min_points)
        self.max_points = int(max_points)
        self.astrometry = bool(astrometry)
        if debug is not None:
            self.debug = debug
        else:
            self.debug = []
        self.limb_darkening = LimbDarkening.uniform()
        self.limb_darkening = self._profile(limb_darkening)

    def _tolerance(self, tol):
        if tol is None:
            return self.tolerance
        if isinstance(tol, Tolerance):
            return tol
        return Tolerance(tol, 0.0)

    def _profile(self, limb_darkening):
        if limb_darkening is None:
            return self.limb_darkening
        if isinstance(limb_darkening, LimbDarkening):
            return limb_darkening
        if isinstance(limb_darkening, Real):
            return LimbDarkening.linear(limb_darkening)
        raise InvalidConfiguration(
            "limb darkening must be a LimbDarkening or a linear coefficient, got %r"
            % (limb_darkening,)
        )


__all__ = [
    "Annulus",
    "AnnulusState",
    "DispatchState",
    "Magnification",
    "MagnificationResult",
    "MultipoleEstimate",
    "MultipoleTerms",
    "Tolerance",
]
