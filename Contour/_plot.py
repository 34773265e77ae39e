import numpy as np
import matplotlib.pyplot as plt


def plot(self, ax=None, **kwargs):
    """Draw the contour as a closed line, solid for positive parity images."""
    if ax is None:
        ax = plt.gca()
    z = np.append(self.z, self.z[:1])
    if "ls" not in kwargs and "linestyle" not in kwargs:
        kwargs["linestyle"] = "-" if self.parity.sum() >= 0 else "--"
    return ax.plot(z.real, z.imag, **kwargs)


def plot_contours(contours, lens=None, source=None, path=None, title=None):
    """Plot image contours with the lens positions and the source limb.

    Parameters
    ----------
    contours : list of Contour
        Output of :meth:`ContourTracer.trace`.
    lens : Lens, optional
        Marks the two lens positions when given.
    source : Source, optional
        Draws the source limb when given.
    path : str, optional
        File name to save the figure to. The figure is closed after saving.
    title : str, optional
        Figure title.

    Returns
    -------
    matplotlib.figure.Figure or None
        The figure if it was not saved, otherwise ``None``.
    """
    fig, ax = plt.subplots(figsize=(6, 6))
    for i, contour in enumerate(contours):
        contour.plot(ax, color="C%d" % (i % 10), lw=1)

    if lens is not None:
        ax.plot([lens.z1, lens.z2], [0.0, 0.0], "k+", ms=10)
    if source is not None:
        theta = np.linspace(0.0, 2.0 * np.pi, 200)
        x, y = source.limb(theta)
        ax.plot(x, y, "k:", lw=1)

    ax.set_aspect("equal")
    ax.set_xlabel(r"$x_1$")
    ax.set_ylabel(r"$x_2$")
    if title is not None:
        ax.set_title(title)

    if path is not None:
        fig.savefig(path)
        plt.close(fig)
        return None
    return fig
