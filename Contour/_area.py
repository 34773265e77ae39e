import numpy as np


def _polygon(z):
    """Shoelace area and first moments of the polygon through ``z``."""
    x, y = z.real, z.imag
    xn, yn = np.roll(x, -1), np.roll(y, -1)
    zc = z - z[0]
    area = 0.5 * np.sum((np.conj(zc) * np.roll(zc, -1)).imag)
    mx = np.sum((yn - y) * (x * x + x * xn + xn * xn)) / 6.0
    my = -np.sum((xn - x) * (y * y + y * yn + yn * yn)) / 6.0
    return float(area), float(mx), float(my)


def area(self):
    """Signed area enclosed by the contour.

    Shoelace sum over the edges plus the curvature corrections stored per
    edge. Counter-clockwise contours are positive.
    """
    polygon, _, _ = _polygon(self.z)
    return polygon + float(np.sum(self.corrections))


def moments(self):
    """First moments ``(int x dA, int y dA)`` of the enclosed region.

    Green's theorem over the polygon, rescaled to the corrected area so
    that ``moments() / area()`` is the polygon centroid.
    """
    polygon, mx, my = _polygon(self.z)
    if polygon == 0.0:
        return mx, my
    scale = (polygon + float(np.sum(self.corrections))) / polygon
    return mx * scale, my * scale


def centroid(self):
    a = self.area()
    mx, my = self.moments()
    return mx / a, my / a


def integrate(contours):
    """Sum the signed areas and first moments of a set of contours.

    Parameters
    ----------
    contours : list of Contour

    Returns
    -------
    area : float
        Total signed area, the image area of a uniform source.
    mx, my : float
        Total first moments.
    """
    total = 0.0
    mx = 0.0
    my = 0.0
    for contour in contours:
        total += contour.area()
        cx, cy = contour.moments()
        mx += cx
        my += cy
    return total, mx, my
