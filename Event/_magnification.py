from multiprocessing import Pool
import multiprocessing as mp

import numpy as np

from Lens import Lens

_engine = None


def _set_engine(engine):
    global _engine
    _engine = engine


def _solve(engine, job):
    s, q, y1, y2, rho = job
    return engine.adaptive(Lens(s, q), y1, y2, rho).value


def _epoch(job):
    # worker processes only; each holds its own copy of _engine
    return _solve(_engine, job)


def magnification(self, ss, q, u1, u2, rho, threads=1):
    """Return the binary-lens magnification at every epoch.

    Parameters
    ----------
    ss : array_like
        Lens separation for each epoch in units of ``theta_E``.
    q : float
        Mass ratio ``m_2/m_1`` of the lens system.
    u1, u2 : array_like
        Source position in the centre-of-mass frame for each epoch, with
        the lens axis along ``u1``.
    rho : float
        Angular radius of the source in units of ``theta_E``.
    threads : int, optional
        Number of worker processes. Epochs are independent, so with
        ``threads > 1`` they are spread over a :class:`multiprocessing.Pool`.

    Returns
    -------
    ndarray
        Magnification for each value of ``ss``.
    """
    ss = np.atleast_1d(np.asarray(ss, dtype=float))
    u1 = np.broadcast_to(np.asarray(u1, dtype=float), ss.shape)
    u2 = np.broadcast_to(np.asarray(u2, dtype=float), ss.shape)
    jobs = [(ss[i], q, u1[i], u2[i], rho) for i in range(len(ss))]

    if threads > 1:
        if hasattr(mp, "set_start_method"):
            try:
                mp.set_start_method("fork")
            except RuntimeError:
                pass
        with Pool(threads, initializer=_set_engine, initargs=(self.engine,)) as pool:
            mag = pool.map(_epoch, jobs)
    else:
        mag = [_solve(self.engine, job) for job in jobs]

    if "lightcurve" in self.debug:
        print("debug Event.magnification: epochs: ", len(jobs))
        print("debug Event.magnification: max A: ", np.max(mag) if mag else None)

    return np.array(mag)
