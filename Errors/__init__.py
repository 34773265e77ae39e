"""Exceptions raised by the magnification engine."""


class MagnificationError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfiguration(MagnificationError, ValueError):
    """Lens, source, tolerance or limb-darkening input that cannot be used.

    Raised eagerly, before any work is done, so that a bad configuration
    aborts only the call that received it.
    """


class DegenerateRootSet(MagnificationError, ArithmeticError):
    """The root solver could not isolate 3 or 5 true images.

    Parameters
    ----------
    y1, y2 : float
        Source position that produced the ambiguous classification.
    n_images : int
        Number of roots that passed the residual test.
    message : str, optional
        Extra detail appended to the default message.
    """

    def __init__(self, y1, y2, n_images, message=""):
        self.y1 = y1
        self.y2 = y2
        self.n_images = n_images
        text = "found %d true images at source position (%.17g, %.17g)" % (
            n_images,
            y1,
            y2,
        )
        if message:
            text += ": " + message
        super().__init__(text)


class ConvergenceCapped(MagnificationError, RuntimeError):
    """A result stopped at its refinement cap before meeting the tolerance.

    The engine never raises this itself; capped results are returned with
    their error estimate. It is raised by
    :meth:`Magnification.MagnificationResult.raise_for_status` for callers
    that prefer an exception.
    """

    def __init__(self, result):
        self.result = result
        super().__init__(
            "tolerance not met: value %.10g, error estimate %.3g "
            "(%d annuli, %d points)"
            % (result.value, result.error, result.n_annuli, result.n_points)
        )
