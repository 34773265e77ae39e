import warnings
from typing import NamedTuple

import numpy as np

from Errors import DegenerateRootSet


class Root(NamedTuple):
    """One root of the image polynomial."""

    z: complex
    true_image: bool
    jacobian: float
    residual: float

    @property
    def parity(self):
        return 1 if self.jacobian > 0.0 else -1


class ImageSet:
    """Classified roots for a single source position.

    Parameters
    ----------
    roots : list of Root
        Every polynomial root, true and spurious.
    y1, y2 : float
        Source position that produced the roots.
    """

    def __init__(self, roots, y1, y2):
        self.roots = roots
        self.y1 = y1
        self.y2 = y2

    def __len__(self):
        return len(self.images)

    @property
    def images(self):
        """True images."""
        return [r for r in self.roots if r.true_image]

    @property
    def ghosts(self):
        """Spurious roots introduced by the polynomial elimination."""
        return [r for r in self.roots if not r.true_image]

    @property
    def positions(self):
        return [r.z for r in self.roots]

    @property
    def magnification(self):
        """Point-source magnification, the sum of ``1/|J|`` over true images."""
        return sum(1.0 / abs(r.jacobian) for r in self.images)

    @property
    def centroid(self):
        """Magnification-weighted centroid of the true images."""
        weights = np.array([1.0 / abs(r.jacobian) for r in self.images])
        z = np.array([r.z for r in self.images])
        c = np.sum(weights * z) / np.sum(weights)
        return c.real, c.imag


# roots with residuals up to this multiple of (1 + s^2) are Newton polished
POLISH_WINDOW = 1e-2
NEWTON_STEPS = 8
SEED_STEPS = 30


def _evaluate(self, z, zeta):
    """Lens-equation mismatch ``F``, ``g = f'(z)`` and the Jacobian at ``z``."""
    w1 = z - self.z1
    w2 = z - self.z2
    if w1 == 0 or w2 == 0:
        return None, 0j, -np.inf
    F = z - (self.m1 / w1 + self.m2 / w2).conjugate() - zeta
    g = -(self.m1 / (w1 * w1) + self.m2 / (w2 * w2))
    return F, g, 1.0 - abs(g) ** 2


def _newton(self, z, zeta, steps):
    """Newton iteration on ``z - conj(f(z)) = zeta``.

    Returns the iterate with the smallest residual, that residual and
    its Jacobian.
    """
    best = (z, np.inf, -np.inf)
    for _ in range(steps + 1):
        F, g, jac = _evaluate(self, z, zeta)
        if F is None or not np.isfinite(jac):
            break
        residual = abs(F)
        if residual < best[1]:
            best = (z, residual, jac)
        if residual == 0.0 or jac == 0.0:
            break
        z = z - (F + g.conjugate() * F.conjugate()) / jac
        if not (np.isfinite(z.real) and np.isfinite(z.imag)):
            break
    return best


def _lens_seeds(self, zeta):
    """Starting points for the images hugging each lens."""
    seeds = []
    for mk, zk, mj, zj in (
        (self.m1, self.z1, self.m2, self.z2),
        (self.m2, self.z2, self.m1, self.z1),
    ):
        a = zk - (mj / (zk - zj)).conjugate() - zeta
        if a == 0:
            continue
        seeds.append(zk + mk / a.conjugate())
    return seeds


def images(self, y1, y2, guesses=None, strict=True):
    """Solve the lens equation and classify the roots.

    A root is a true image if substituting it into the lens equation
    reproduces the source position to within ``self.residual_tolerance``.
    When the count is not 3 or 5, roots that narrowly miss are polished by
    Newton steps on the lens equation itself. If the count is still wrong,
    Newton iterations started next to each lens recover images the polynomial lost to
    round-off, which happens at extreme mass ratios.

    Parameters
    ----------
    y1, y2 : float
        Source position in the centre-of-mass frame.
    guesses : sequence of complex, optional
        Starting estimates for the root solver.
    strict : bool, optional
        If ``True`` (default) raise :class:`DegenerateRootSet` when the
        number of true images is not 3 or 5. If ``False`` keep the 3 or 5
        roots with the smallest residuals and warn. A kept root whose
        residual is far above the threshold still raises.

    Returns
    -------
    ImageSet
    """
    zeta = complex(y1, y2)
    tol = self.residual_tolerance

    found = list(self.solve(y1, y2, guesses))
    if not all(np.isfinite(z.real) and np.isfinite(z.imag) for z in found):
        raise DegenerateRootSet(y1, y2, 0, "non-finite root")

    residuals = []
    jacobians = []
    for z in found:
        F, _, jac = _evaluate(self, z, zeta)
        residuals.append(np.inf if F is None else abs(F))
        jacobians.append(jac)

    def distinct(z):
        return all(
            abs(z - found[i]) > 1e-7 * (1.0 + abs(z))
            for i, r in enumerate(residuals)
            if r <= tol
        )

    window = POLISH_WINDOW * (1.0 + self.s * self.s)
    n_true = sum(r <= tol for r in residuals)
    if n_true not in (3, 5):
        for i in np.argsort(residuals):
            if not tol < residuals[i] <= window:
                continue
            z, res, jac = _newton(self, found[i], zeta, NEWTON_STEPS)
            if res <= tol and distinct(z):
                found[i], residuals[i], jacobians[i] = z, res, jac
                n_true += 1

    if n_true not in (3, 5):
        for seed in _lens_seeds(self, zeta):
            z, res, jac = _newton(self, seed, zeta, SEED_STEPS)
            if res > tol or not distinct(z):
                continue
            ghosts = [i for i, r in enumerate(residuals) if r > tol]
            if not ghosts:
                break
            i = max(ghosts, key=lambda k: residuals[k])
            found[i], residuals[i], jacobians[i] = z, res, jac
            n_true += 1
            if n_true in (3, 5):
                break

    if n_true in (3, 5):
        flags = [r <= tol for r in residuals]
    elif strict:
        raise DegenerateRootSet(y1, y2, n_true)
    else:
        order = np.argsort(residuals)
        keep = 3
        if len(order) == 5 and residuals[order[4]] <= 100.0 * tol:
            keep = 5
        if residuals[order[keep - 1]] > 100.0 * tol:
            raise DegenerateRootSet(
                y1, y2, n_true, "no consistent set of %d images" % keep
            )
        flags = [False] * len(found)
        for i in order[:keep]:
            flags[i] = True
        warnings.warn(
            "ambiguous image count %d at (%.10g, %.10g); keeping the %d "
            "roots with the smallest residuals" % (n_true, y1, y2, keep)
        )

    roots = [
        Root(z, flag, jac, res)
        for z, flag, jac, res in zip(found, flags, jacobians, residuals)
    ]

    if "roots" in self.debug:
        print("debug Lens.images: zeta: ", zeta)
        print("debug Lens.images: residuals: ", residuals)
        print("debug Lens.images: n_true: ", n_true)

    return ImageSet(roots, y1, y2)
