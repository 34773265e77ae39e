import heapq
from bisect import bisect_left, insort
from itertools import count
from typing import List, NamedTuple

import numpy as np

from Errors import DegenerateRootSet, InvalidConfiguration
from . import Contour
from ._area import integrate
from ._link import limb_sample, link

TWO_PI = 2.0 * np.pi
# intervals narrower than this are not bisected further
MIN_STEP = 1e-10
# limb-angle offsets, in units of the local step, tried on a degenerate root set
NUDGES = (1, -1, 2, -2, 3, -3)


class TraceResult(NamedTuple):
    """Outcome of one uniform-source contour integration."""

    contours: List[Contour]
    magnification: float
    error: float
    n_points: int
    converged: bool
    centroid: tuple


class ContourTracer:
    """Trace the image contours of a uniform circular source.

    The source limb is sampled adaptively. Every interval between two
    neighbouring limb samples carries an area contribution and an error
    estimate; the worst interval is bisected until the summed error meets
    the tolerance or ``max_points`` samples have been used. The images of
    the final samples are then stitched into closed contours.

    Parameters
    ----------
    lens : Lens
        Binary lens.
    y1, y2 : float
        Source centre.
    rho : float
        Source radius, must be positive.
    tolerance : Tolerance
        Stopping rule applied to the magnification and its error.
    min_points : int, optional
        Initial number of evenly spaced limb samples.
    max_points : int, optional
        Cap on the number of limb samples.
    debug : list of str, optional
        ``"trace"`` prints the refinement summary.
    """

    def __init__(
        self,
        lens,
        y1,
        y2,
        rho,
        tolerance,
        min_points=32,
        max_points=8192,
        debug=None,
    ):
        if not rho > 0.0:
            raise InvalidConfiguration("contour tracing needs rho > 0, got %r" % rho)
        if min_points < 3 or max_points < min_points:
            raise InvalidConfiguration(
                "need 3 <= min_points <= max_points, got %r and %r"
                % (min_points, max_points)
            )
        self.lens = lens
        self.y1 = float(y1)
        self.y2 = float(y2)
        self.rho = float(rho)
        self.tolerance = tolerance
        self.min_points = int(min_points)
        self.max_points = int(max_points)
        if debug is not None:
            self.debug = debug
        else:
            self.debug = []

    def sample(self, theta, guesses=None, step=1e-6):
        """Images of the limb point at ``theta``.

        A degenerate root set is retried at slightly shifted angles, then
        resolved by ranking the roots by residual.
        """
        try:
            return limb_sample(self.lens, self.y1, self.y2, self.rho, theta, guesses)
        except DegenerateRootSet as exc:
            if "trace" in self.debug:
                print("debug ContourTracer.sample: ", exc)
        for k in NUDGES:
            try:
                return limb_sample(
                    self.lens,
                    self.y1,
                    self.y2,
                    self.rho,
                    theta + k * step,
                    guesses,
                )
            except DegenerateRootSet as exc:
                if "trace" in self.debug:
                    print("debug ContourTracer.sample: ", exc)
        return limb_sample(
            self.lens, self.y1, self.y2, self.rho, theta, guesses, strict=False
        )

    @staticmethod
    def _interval(thetas, idx):
        left = thetas[idx]
        if idx + 1 < len(thetas):
            right = thetas[idx + 1]
            return left, right, right - left
        right = thetas[0]
        return left, right, right + TWO_PI - left

    def trace(self):
        """Sample the limb to tolerance and assemble the image contours.

        Returns
        -------
        TraceResult
            Contours, uniform-source magnification, its error estimate,
            number of limb samples, whether the tolerance was met, and the
            centroid of the images.
        """
        n0 = self.min_points
        thetas = []
        samples = {}
        guesses = None
        for k in range(n0):
            s = self.sample(TWO_PI * k / n0, guesses, step=1e-3 * TWO_PI / n0)
            if s.theta in samples:
                continue
            insort(thetas, s.theta)
            samples[s.theta] = s
            guesses = s.roots

        links = {}
        heap = []
        area = 0.0
        error = 0.0
        for idx in range(len(thetas)):
            left, right, h = self._interval(thetas, idx)
            lk = link(samples[left], samples[right], h)
            links[left] = lk
            area += lk.area
            error += lk.error
            heapq.heappush(heap, (-lk.error, left, right))

        scale = np.pi * self.rho * self.rho
        converged = False
        while True:
            if self.tolerance.satisfied(area / scale, error / scale):
                converged = True
                break
            if len(thetas) >= self.max_points or not heap:
                break

            neg, left, right = heapq.heappop(heap)
            lk = links.get(left)
            if lk is None or lk.right != right or lk.error != -neg:
                continue
            idx = bisect_left(thetas, left)
            _, _, h = self._interval(thetas, idx)
            if h < MIN_STEP:
                continue

            mid = left + 0.5 * h
            if mid >= TWO_PI:
                mid -= TWO_PI
            s = self.sample(mid, samples[left].roots, step=1e-3 * h)
            if s.theta in samples:
                continue

            area -= lk.area
            error -= lk.error
            del links[left]
            insort(thetas, s.theta)
            samples[s.theta] = s
            i = bisect_left(thetas, s.theta)
            for j in (i - 1, i):
                l, r, hj = self._interval(thetas, j % len(thetas))
                nl = link(samples[l], samples[r], hj)
                links[l] = nl
                area += nl.area
                error += nl.error
                heapq.heappush(heap, (-nl.error, l, r))

        error = sum(lk.error for lk in links.values())
        contours = self._assemble(thetas, samples, links)
        total, mx, my = integrate(contours)
        magnification = total / scale
        if total != 0.0:
            centroid = (mx / total, my / total)
        else:
            centroid = (self.y1, self.y2)

        if "trace" in self.debug:
            print("debug ContourTracer.trace: n_points: ", len(thetas))
            print("debug ContourTracer.trace: n_contours: ", len(contours))
            print("debug ContourTracer.trace: interval sum: ", area / scale)
            print("debug ContourTracer.trace: magnification: ", magnification)
            print("debug ContourTracer.trace: error: ", error / scale)

        return TraceResult(
            contours, magnification, error / scale, len(thetas), converged, centroid
        )

    def _assemble(self, thetas, samples, links):
        """Stitch the linked limb samples into closed contours.

        Every image branch gets a token when it appears (at the first
        sample, or where a pair is created) and keeps it while it is linked
        from sample to sample. Branch ends are joined by ``"wrap"`` (the
        same branch continuing past the first sample) or ``"pair"`` (the
        partner image of a created or annihilated pair, with the curvature
        correction of the closing chord). Unlinked ends dangle and are
        joined to the nearest free end.
        """
        n = len(thetas)
        tokens = count()
        points = {}
        parity = {}
        head = {}
        tail = {}

        def open_branch(theta, j, p):
            t = next(tokens)
            points[t] = [(theta, j)]
            parity[t] = p
            head[t] = None
            tail[t] = None
            return t

        s0 = samples[thetas[0]]
        first = {j: open_branch(thetas[0], j, p) for j, p in enumerate(s0.parity)}
        current = dict(first)

        for k in range(n):
            left = thetas[k]
            right = thetas[(k + 1) % n]
            lk = links[left]
            wrap = k == n - 1
            b = samples[right]
            following = {}

            for i, j in lk.pairs:
                t = current[i]
                if wrap:
                    tail[t] = ("wrap", first[j], 0.0)
                    head[first[j]] = ("wrap", t, 0.0)
                else:
                    points[t].append((right, j))
                    following[j] = t

            if lk.created is not None:
                jp, jm = lk.created
                if wrap:
                    tp, tm = first[jp], first[jm]
                else:
                    tp = open_branch(right, jp, 1)
                    tm = open_branch(right, jm, -1)
                    following[jp] = tp
                    following[jm] = tm
                head[tp] = ("pair", tm, lk.created_corr)
                head[tm] = ("pair", tp, lk.created_corr)

            if lk.annihilated is not None:
                ip, im = lk.annihilated
                tp, tm = current[ip], current[im]
                tail[tp] = ("pair", tm, lk.annihilated_corr)
                tail[tm] = ("pair", tp, lk.annihilated_corr)

            if not wrap:
                for j in lk.dangling_b:
                    following[j] = open_branch(right, j, b.parity[j])
            current = following

        def edge(p, q, d):
            (ta, i), (tb, j) = p, q
            h = ((tb - ta) if d > 0 else (ta - tb)) % TWO_PI
            return d * (samples[ta].c[i] + samples[tb].c[j]) * h**3 / 24.0

        def ordered(t, d):
            return points[t] if d > 0 else points[t][::-1]

        def position(p):
            theta, j = p
            return samples[theta].z[j]

        def nearest_free(z, visited):
            best = None
            best_distance = np.inf
            for t, pts in points.items():
                if t in visited:
                    continue
                ends = []
                if head[t] is None:
                    ends.append((pts[0], 1))
                if tail[t] is None:
                    ends.append((pts[-1], -1))
                for p, d in ends:
                    distance = abs(z - position(p))
                    if distance < best_distance:
                        best_distance = distance
                        best = (t, d)
            return best

        contours = []
        visited = set()
        for start in sorted(points):
            if start in visited:
                continue
            d0 = 1 if parity[start] > 0 else -1
            z, par, corr = [], [], []
            t, d = start, d0
            while True:
                visited.add(t)
                pts = ordered(t, d)
                for m, p in enumerate(pts):
                    if m:
                        corr.append(edge(pts[m - 1], p, d))
                    z.append(position(p))
                    par.append(parity[t])

                end = tail[t] if d > 0 else head[t]
                if end is None:
                    nxt = nearest_free(position(pts[-1]), visited)
                    if nxt is None:
                        corr.append(0.0)
                        break
                    other, nd = nxt
                    step = 0.0
                else:
                    kind, other, value = end
                    if kind == "wrap":
                        nd = d
                        step = edge(pts[-1], ordered(other, nd)[0], d)
                    else:
                        nd = -d
                        # stored for the path running from the negative branch
                        # at a creation and from the positive one at an
                        # annihilation
                        arriving = -1 if d < 0 else 1
                        step = value if parity[t] == arriving else -value

                if other == start and nd == d0:
                    corr.append(step)
                    break
                if other in visited:
                    corr.append(0.0)
                    break
                corr.append(step)
                t, d = other, nd

            contours.append(Contour(z, par, corr))
        return contours

