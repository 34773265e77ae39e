from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from Errors import ConvergenceCapped, InvalidConfiguration


class DispatchState(str, Enum):
    """Which path produced a result."""

    FAST_PATH = "FAST_PATH"
    FULL_INTEGRATION = "FULL_INTEGRATION"


class AnnulusState(str, Enum):
    """States of the annulus refinement loop."""

    INIT = "INIT"
    REFINE = "REFINE"
    CONVERGED = "CONVERGED"
    CAPPED = "CAPPED"


@dataclass(frozen=True)
class Tolerance:
    """Stopping rule: absolute or relative error bound on the magnification.

    A result is accepted once its error estimate is below ``abs_tol`` or
    below ``rel_tol`` times the magnification. A zero disables that branch;
    at least one must be positive.
    """

    abs_tol: float = 1e-2
    rel_tol: float = 0.0

    def __post_init__(self):
        for name in ("abs_tol", "rel_tol"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0.0:
                raise InvalidConfiguration(
                    "%s must be finite and non-negative, got %r" % (name, value)
                )
        if self.abs_tol == 0.0 and self.rel_tol == 0.0:
            raise InvalidConfiguration("abs_tol and rel_tol cannot both be zero")

    def satisfied(self, value, error):
        if self.abs_tol > 0.0 and error <= self.abs_tol:
            return True
        return self.rel_tol > 0.0 and error <= self.rel_tol * abs(value)

    def scaled(self, factor):
        return Tolerance(self.abs_tol * factor, self.rel_tol * factor)


@dataclass(frozen=True)
class MagnificationResult:
    """Magnification with its error estimate and bookkeeping.

    Attributes
    ----------
    value : float
        Magnification.
    error : float
        Estimated absolute error of ``value``.
    n_annuli : int
        Annuli used; ``0`` for point-source and fast-path results, ``1``
        for a single uniform-source contour integration.
    n_points : int
        Limb samples used, summed over all contour integrations. Point
        sources count 1 and the fast path 13.
    mode : DispatchState
        Whether the fast path or the full integration produced the value.
    state : AnnulusState or None
        Terminal state of the annulus loop, ``None`` if it did not run.
    astrometry : tuple or None
        ``(dx1, dx2)`` centroid shift of the images relative to the source
        centre, when requested.
    converged : bool
        ``False`` if a refinement cap stopped the calculation before the
        tolerance was met.
    """

    value: float
    error: float
    n_annuli: int
    n_points: int
    mode: DispatchState = DispatchState.FULL_INTEGRATION
    state: Optional[AnnulusState] = None
    astrometry: Optional[tuple] = None
    converged: bool = True

    def __float__(self):
        return float(self.value)

    def raise_for_status(self):
        """Raise :class:`ConvergenceCapped` if the tolerance was not met."""
        if not self.converged:
            raise ConvergenceCapped(self)
        return self
