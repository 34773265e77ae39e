"""Limb samples and the linking of images between neighbouring samples.

A limb sample holds the true images of one point on the source boundary
together with their first and second derivatives with respect to the limb
angle, obtained analytically from the lens mapping. Linking two samples
pairs their images by position within each parity class; whatever cannot
be paired is an image pair born or destroyed on a caustic between the two
angles.
"""

import cmath
from itertools import permutations


class LimbSample:
    """True images at limb angle ``theta``.

    Attributes
    ----------
    theta : float
        Limb angle actually sampled.
    z, zp, zpp : list of complex
        Image positions and their first and second ``theta`` derivatives.
    parity : list of int
        Sign of the Jacobian at each image.
    c : list of float
        ``Im(conj(z') z'')``, the local curvature term of the area integral.
    roots : list of complex
        All polynomial roots, kept as starting guesses for neighbours.
    """

    __slots__ = ("theta", "z", "parity", "zp", "zpp", "c", "roots")

    def __init__(self, theta, z, parity, zp, zpp, c, roots):
        self.theta = theta
        self.z = z
        self.parity = parity
        self.zp = zp
        self.zpp = zpp
        self.c = c
        self.roots = roots

    def __len__(self):
        return len(self.z)


def limb_sample(lens, y1, y2, rho, theta, guesses=None, strict=True):
    """Solve for the images of the limb point at angle ``theta``.

    Raises
    ------
    DegenerateRootSet
        In strict mode, if the image count is not 3 or 5.
    """
    e = cmath.exp(1j * theta)
    zeta = complex(y1, y2) + rho * e
    found = lens.images(zeta.real, zeta.imag, guesses=guesses, strict=strict)

    dzeta = 1j * rho * e
    ddzeta = -rho * e
    m1, m2, z1, z2 = lens.m1, lens.m2, lens.z1, lens.z2

    z, parity, zp, zpp, c = [], [], [], [], []
    for r in found.images:
        w1 = r.z - z1
        w2 = r.z - z2
        g = -(m1 / (w1 * w1) + m2 / (w2 * w2))
        h = 2.0 * (m1 / (w1 * w1 * w1) + m2 / (w2 * w2 * w2))
        gbar = g.conjugate()
        d1 = (dzeta + gbar * dzeta.conjugate()) / r.jacobian
        w = ddzeta + (h * d1 * d1).conjugate()
        d2 = (w + gbar * w.conjugate()) / r.jacobian
        z.append(r.z)
        parity.append(r.parity)
        zp.append(d1)
        zpp.append(d2)
        c.append((d1.conjugate() * d2).imag)

    return LimbSample(theta, z, parity, zp, zpp, c, found.positions)


class Link:
    """Image correspondence and area contribution of one limb interval.

    ``area`` is the parity-weighted line integral over the interval, in
    order of increasing angle, including the chords that close created or
    annihilated pairs. ``error`` estimates its truncation error.
    """

    __slots__ = (
        "left",
        "right",
        "pairs",
        "created",
        "annihilated",
        "created_corr",
        "annihilated_corr",
        "dangling_a",
        "dangling_b",
        "area",
        "error",
    )

    def __init__(self, left, right):
        self.left = left
        self.right = right
        self.pairs = []
        self.created = None
        self.annihilated = None
        self.created_corr = 0.0
        self.annihilated_corr = 0.0
        self.dangling_a = []
        self.dangling_b = []
        self.area = 0.0
        self.error = 0.0

    @property
    def broken(self):
        return bool(self.dangling_a or self.dangling_b)


def _assign(za, ia, zb, jb):
    """Pair indices ``ia`` of ``za`` with ``jb`` of ``zb`` by least total distance."""
    if len(ia) <= len(jb):
        best = min(
            permutations(jb, len(ia)),
            key=lambda perm: sum(abs(za[i] - zb[j]) ** 2 for i, j in zip(ia, perm)),
        )
        return list(zip(ia, best))
    best = min(
        permutations(ia, len(jb)),
        key=lambda perm: sum(abs(za[i] - zb[j]) ** 2 for i, j in zip(perm, jb)),
    )
    return list(zip(best, jb))


def pair_correction(x, y, tx, ty, h, heads):
    """Area between the chord ``x -> y`` and the image path through the caustic.

    Near a fold the two images of a pair move as ``z_c +/- b sqrt(T)``, so
    the path from one through the critical point to the other is a
    parabola. Its apex distance ``T`` (in limb angle) is recovered from
    the endpoints and their tangents.

    Parameters
    ----------
    x, y : complex
        Start and end of the chord, in the direction of traversal.
    tx, ty : complex
        ``dz/dtheta`` at ``x`` and ``y``.
    h : float
        Width of the limb interval containing the caustic crossing.
    heads : bool
        ``True`` for a pair created at the right end of the interval,
        ``False`` for a pair annihilated at its left end.

    Returns
    -------
    corr : float
        Signed area to add to the chord term.
    err : float
        Error estimate of the correction.
    """
    diff = y - x if heads else x - y
    dt = ty - tx
    if dt == 0:
        return 0.0, abs(y - x) ** 2
    T = (diff / (2.0 * dt)).real
    consistent = -1e-3 * h <= T <= 1.001 * h
    T = min(max(T, 0.0), h)
    corr = T / 3.0 * (diff.conjugate() * (tx + ty)).imag
    err = 0.5 * abs(corr)
    if not consistent:
        err += abs(corr) + abs(y - x) ** 2
    return corr, err


def _nearest(z, others):
    if not others:
        return abs(z)
    return min(abs(z - o) for o in others)


def link(a, b, h):
    """Link the images of limb samples ``a`` and ``b``, ``h`` apart in angle.

    Returns
    -------
    Link
    """
    lk = Link(a.theta, b.theta)
    left_a = {}
    left_b = {}
    for p in (1, -1):
        ia = [i for i, s in enumerate(a.parity) if s == p]
        jb = [j for j, s in enumerate(b.parity) if s == p]
        matched = _assign(a.z, ia, b.z, jb)
        lk.pairs.extend(matched)
        used_a = {i for i, _ in matched}
        used_b = {j for _, j in matched}
        left_a[p] = [i for i in ia if i not in used_a]
        left_b[p] = [j for j in jb if j not in used_b]

    h3 = h * h * h
    area = 0.0
    err = 0.0
    for i, j in lk.pairs:
        za = a.z[i]
        zb = b.z[j]
        dz = zb - za
        area += a.parity[i] * (
            0.5 * (za.conjugate() * zb).imag + (a.c[i] + b.c[j]) * h3 / 24.0
        )
        err += abs(a.c[i] - b.c[j]) * h3 / 48.0
        # Hermite residual, large when the pairing is wrong
        resid = (
            dz
            - 0.5 * (a.zp[i] + b.zp[j]) * h
            + h * h / 12.0 * (b.zpp[j] - a.zpp[i])
        )
        err += abs(resid) * abs(dz)

    if left_b[1] or left_b[-1]:
        if len(left_b[1]) == 1 and len(left_b[-1]) == 1 and not (
            left_a[1] or left_a[-1]
        ):
            jp, jm = left_b[1][0], left_b[-1][0]
            lk.created = (jp, jm)
            corr, e = pair_correction(
                b.z[jm], b.z[jp], b.zp[jm], b.zp[jp], h, heads=True
            )
            lk.created_corr = corr
            area += 0.5 * (b.z[jm].conjugate() * b.z[jp]).imag + corr
            err += e
        else:
            lk.dangling_b = left_b[1] + left_b[-1]

    if left_a[1] or left_a[-1]:
        if len(left_a[1]) == 1 and len(left_a[-1]) == 1 and not lk.dangling_b:
            ip, im = left_a[1][0], left_a[-1][0]
            lk.annihilated = (ip, im)
            corr, e = pair_correction(
                a.z[ip], a.z[im], a.zp[ip], a.zp[im], h, heads=False
            )
            lk.annihilated_corr = corr
            area += 0.5 * (a.z[ip].conjugate() * a.z[im]).imag + corr
            err += e
        else:
            lk.dangling_a = left_a[1] + left_a[-1]

    for i in lk.dangling_a:
        err += _nearest(a.z[i], b.z) ** 2
    for j in lk.dangling_b:
        err += _nearest(b.z[j], a.z) ** 2

    lk.area = area
    lk.error = err
    return lk
