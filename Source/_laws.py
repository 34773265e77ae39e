"""Named limb-darkening laws, written as functions of ``mu = cos(theta)``.

Each law is normalised so that ``I(mu=1) = 1`` at the disk centre, which
is the convention used for the linear coefficient ``a1``. Overall
normalisation does not matter: the annulus weights divide by total flux.
"""

import numpy as np


def linear(mu, a1):
    return 1.0 - a1 * (1.0 - mu)


def square_root(mu, a1, a2):
    return 1.0 - a1 * (1.0 - mu) - a2 * (1.0 - np.sqrt(mu))


def quadratic(mu, a1, a2):
    return 1.0 - a1 * (1.0 - mu) - a2 * (1.0 - mu) ** 2


def logarithmic(mu, a1, a2):
    # mu log(mu) -> 0 at the limb
    with np.errstate(divide="ignore", invalid="ignore"):
        mulog = np.where(mu > 0.0, mu * np.log(mu), 0.0)
    return 1.0 - a1 * (1.0 - mu) - a2 * mulog


LAWS = {
    "linear": linear,
    "square_root": square_root,
    "quadratic": quadratic,
    "logarithmic": logarithmic,
}
