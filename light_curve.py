"""Binary-lens light curve of a static lens.

Usage::

    python light_curve.py s q rho u0 alpha t0 tE [output] [threads] [gamma]

``alpha`` is in degrees. Writes two columns, ``t`` and ``A``, to
``output`` (default ``light_curve.txt``) over ``t0 +/- 2 tE``.
"""

import os
import sys

import numpy as np

from Event import Event
from Magnification import Magnification


def light_curve(params, t, threads=1, gamma=0.0, eps=1e-3):
    """Magnification of a static binary lens at the epochs ``t``."""
    engine = Magnification(tol=0.0, rel_tol=eps, limb_darkening=gamma)
    event = Event(params, engine=engine, LOM_enabled=False)
    return event.get_magnification(t, threads=threads)


if __name__ == "__main__":
    if len(sys.argv) < 8:
        print(__doc__)
        sys.exit(1)

    s, q, rho, u0, alpha, t0, tE = [float(x) for x in sys.argv[1:8]]
    alpha = alpha * np.pi / 180.0

    if len(sys.argv) > 8:
        path = sys.argv[8]
    else:
        path = "light_curve.txt"
    if len(sys.argv) > 9:
        threads = int(sys.argv[9])
    else:
        threads = os.cpu_count() or 1
    if len(sys.argv) > 10:
        gamma = float(sys.argv[10])
    else:
        gamma = 0.0

    t = np.linspace(t0 - 2.0 * tE, t0 + 2.0 * tE, 1000)
    A = light_curve([s, q, rho, u0, alpha, t0, tE], t, threads=threads, gamma=gamma)

    np.savetxt(path, np.column_stack([t, A]), header="t A")
    print("light curve written to", path)
