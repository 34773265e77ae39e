"""Image contours of a finite source and their enclosed areas."""

import numpy as np


class Contour:
    """Closed image boundary, ordered along its geometric orientation.

    Parameters
    ----------
    z : array_like of complex
        Boundary points. The closing edge from the last point back to the
        first is implicit.
    parity : array_like of int
        Jacobian sign of the image branch each point came from. Positive
        branches run with the source limb, negative ones against it.
    corrections : array_like of float
        Curvature correction to the shoelace area of each edge; entry ``i``
        belongs to the edge from point ``i`` to point ``i + 1``.

    Notes
    -----
    Contours are oriented so that their signed areas add up to the total
    image area: the boundary of the hole in an Einstein ring, for example,
    runs clockwise and contributes a negative area.
    """

    from ._area import area, moments, centroid
    from ._plot import plot

    def __init__(self, z, parity, corrections):
        self.z = np.asarray(z, dtype=complex)
        self.parity = np.asarray(parity, dtype=int)
        self.corrections = np.asarray(corrections, dtype=float)
        if not len(self.z) == len(self.parity) == len(self.corrections):
            raise ValueError(
                "contour has %d points, %d parities and %d edge corrections"
                % (len(self.z), len(self.parity), len(self.corrections))
            )

    def __len__(self):
        return len(self.z)

    def __repr__(self):
        return "Contour(%d points, area=%.6g)" % (len(self), self.area())


from ._area import integrate  # noqa: E402
from ._plot import plot_contours  # noqa: E402
from ._tracer import ContourTracer, TraceResult  # noqa: E402

__all__ = ["Contour", "ContourTracer", "TraceResult", "integrate", "plot_contours"]
