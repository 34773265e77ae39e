"""Source disk and its limb-darkening profile."""

from dataclasses import dataclass

import numpy as np

from Errors import InvalidConfiguration
from ._limb_darkening import Annulus, LimbDarkening


@dataclass(frozen=True)
class Source:
    """Source centre and angular radius, in Einstein radii.

    ``rho = 0`` is a point source.
    """

    y1: float
    y2: float
    rho: float = 0.0

    def __post_init__(self):
        for name in ("y1", "y2", "rho"):
            if not np.isfinite(getattr(self, name)):
                raise InvalidConfiguration(
                    "source %s must be finite, got %r" % (name, getattr(self, name))
                )
        if self.rho < 0.0:
            raise InvalidConfiguration(
                "source radius must be non-negative, got %r" % self.rho
            )
        object.__setattr__(self, "y1", float(self.y1))
        object.__setattr__(self, "y2", float(self.y2))
        object.__setattr__(self, "rho", float(self.rho))

    @property
    def zeta(self):
        return complex(self.y1, self.y2)

    def limb(self, theta, scale=1.0):
        """Point on the circle of radius ``scale * rho`` at angle ``theta``."""
        r = scale * self.rho
        return self.y1 + r * np.cos(theta), self.y2 + r * np.sin(theta)


__all__ = ["Source", "LimbDarkening", "Annulus"]
