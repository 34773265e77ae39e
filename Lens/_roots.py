import cmath

EPS = 2.220446049250313e-16
MAX_ITER = 80
POLISH_ITER = 12
# fractional steps taken every tenth iteration to break limit cycles
FRACTIONS = (0.5, 0.25, 0.75, 0.13, 0.38, 0.62, 0.88, 1.0)


def laguerre(coeffs, x, max_iter=MAX_ITER):
    """Refine one root of a complex polynomial by Laguerre's method.

    Parameters
    ----------
    coeffs : list of complex
        Polynomial coefficients in ascending order of power.
    x : complex
        Starting estimate.
    max_iter : int, optional
        Iteration cap.

    Returns
    -------
    x : complex
        Root estimate.
    converged : bool
        ``False`` if the cap was reached before the step vanished or the
        polynomial value fell to the round-off level.
    """
    n = len(coeffs) - 1
    for it in range(1, max_iter + 1):
        b = coeffs[n]
        d = 0j
        f = 0j
        err = abs(b)
        ax = abs(x)
        for j in range(n - 1, -1, -1):
            f = x * f + d
            d = x * d + b
            b = x * b + coeffs[j]
            err = abs(b) + ax * err
        # b = p(x), d = p'(x), f = p''(x)/2
        if abs(b) <= EPS * err:
            return x, True

        g = d / b
        g2 = g * g
        h = g2 - 2.0 * f / b
        sq = cmath.sqrt((n - 1) * (n * h - g2))
        gp = g + sq
        gm = g - sq
        if abs(gp) < abs(gm):
            gp = gm
        if abs(gp) > 0.0:
            dx = n / gp
        else:
            dx = cmath.rect(1.0 + ax, float(it))

        x1 = x - dx
        if x1 == x:
            return x, True
        if it % 10:
            x = x1
        else:
            x = x - FRACTIONS[(it // 10) % len(FRACTIONS)] * dx
    return x, False


def deflate(coeffs, root):
    """Divide out ``(x - root)`` by synthetic division, dropping the remainder."""
    n = len(coeffs) - 1
    out = [0j] * n
    b = coeffs[n]
    for j in range(n - 1, -1, -1):
        out[j] = b
        b = coeffs[j] + root * b
    return out


def find_roots(coeffs, guesses=None, polish=True):
    """Return all roots of a complex polynomial.

    Each root is found by Laguerre iteration on the deflated polynomial and
    then polished against the full polynomial, which removes the error
    accumulated through deflation. A polished root is discarded in favour
    of its deflated estimate if polishing moved it onto another root.

    Parameters
    ----------
    coeffs : list of complex
        Coefficients in ascending order of power.
    guesses : sequence of complex, optional
        Starting estimates, typically the roots of a nearby source position.
        Ignored unless there is one per root.
    polish : bool, optional
        Polish against the undeflated polynomial.

    Returns
    -------
    list of complex
    """
    degree = len(coeffs) - 1
    if guesses is None or len(guesses) != degree:
        guesses = [0j] * degree

    work = list(coeffs)
    roots = []
    for k in range(degree):
        if len(work) == 2:
            x = -work[0] / work[1]
        else:
            x, _ = laguerre(work, complex(guesses[k]))
        roots.append(x)
        work = deflate(work, x)

    if not polish:
        return roots

    polished = [laguerre(coeffs, x, POLISH_ITER)[0] for x in roots]
    for i, x in enumerate(polished):
        scale = 1e-10 * (1.0 + abs(x))
        for j in range(i):
            if abs(polished[j] - x) < scale:
                polished[i] = roots[i]
                polished[j] = roots[j]
    return polished


def solve(self, y1, y2, guesses=None):
    """Return the five roots of the image polynomial for one source position.

    Parameters
    ----------
    y1, y2 : float
        Source position in the centre-of-mass frame.
    guesses : sequence of complex, optional
        Roots of a neighbouring source position used as starting points.

    Returns
    -------
    list of complex
        All roots, true and spurious, in the order they were isolated.
    """
    return find_roots(self.polynomial(y1, y2), guesses)
