"""Event model including parallax and orbital motion."""

import numpy as np

from Errors import InvalidConfiguration
from Magnification import Magnification

# s, q, rho, u0, alpha, t0, tE
N_STATIC = 7
# + piEE, piEN, i, phase, period
N_FULL = 12


class Event:
    """Microlensing event: source trajectory and light curve of a binary lens."""

    from ._magnification import magnification

    def __init__(
        self,
        params,
        t_ref=0.0,
        parallax=None,
        engine=None,
        eps=1e-4,
        gamma=0.36,
        LOM_enabled=True,
        debug=None,
    ):
        """Instantiate a microlensing event model.

        Parameters
        ----------
        params : array_like
            Model parameters in the order ``[s, q, rho, u0, alpha, t0, tE,
            piEE, piEN, i, phase, period]``. The last five may be omitted
            for a static lens without parallax.
        t_ref : float, optional
            Reference epoch of the orbital phase and the parallax frame.
        parallax : object, optional
            Parallax collaborator providing ``update_piE_NE(piEN, piEE)``
            and ``parallax_shift(t, obs)``, the latter returning the shifts
            ``(Delta_tau, Delta_beta)`` of the source trajectory. ``None``
            disables parallax.
        engine : Magnification, optional
            Magnification engine. If ``None`` one is built from ``eps`` and
            ``gamma``.
        eps : float, optional
            Relative precision of the magnification.
        gamma : float, optional
            Linear limb darkening coefficient.
        LOM_enabled : bool, optional
            If ``True`` include lens orbital motion parameters in the model.
        debug : list of str, optional
            ``"lightcurve"`` prints per-call summaries.

        Attributes
        ----------
        params : ndarray
            Current working parameter array.
        engine : Magnification
            Engine used for every epoch.
        traj_base_tau, traj_parallax_tau, traj_base_beta, traj_parallax_beta
            Dictionaries used to store trajectory components for each
            observatory.
        traj_base_u1, traj_base_u2, traj_parallax_u1, traj_parallax_u2
            More trajectory diagnostics keyed by observatory.
        traj_parallax_dalpha_u1, traj_parallax_dalpha_u2
            Rotated trajectory coordinates.
        ss, tau, dalpha : dict
            Separation, scaled time and rotation of the lens axis.
        """
        self.params = self._check(params)
        self.t_ref = float(t_ref)
        self.parallax = parallax
        if self.parallax is not None:
            self.parallax.update_piE_NE(*self._piE(self.params))
        self.eps = eps
        self.gamma = gamma
        if engine is None:
            engine = Magnification(tol=0.0, rel_tol=eps, limb_darkening=gamma)
        self.engine = engine
        self.LOM_enabled = LOM_enabled
        if debug is not None:
            self.debug = debug
        else:
            self.debug = []

        self.traj_base_tau = {}
        self.traj_parallax_tau = {}
        self.traj_base_beta = {}
        self.traj_parallax_beta = {}
        self.traj_base_u1 = {}
        self.traj_base_u2 = {}
        self.traj_parallax_u1 = {}
        self.traj_parallax_u2 = {}
        self.traj_parallax_dalpha_u1 = {}
        self.traj_parallax_dalpha_u2 = {}

        self.ss = {}
        self.tau = {}
        self.dalpha = {}

    @staticmethod
    def _check(params):
        p = np.array(params, dtype=float)
        if p.ndim != 1 or len(p) not in (N_STATIC, N_FULL):
            raise InvalidConfiguration(
                "expected %d or %d parameters, got shape %s"
                % (N_STATIC, N_FULL, p.shape)
            )
        if not np.all(np.isfinite(p)):
            raise InvalidConfiguration("event parameters must be finite")
        if p[0] <= 0.0 or p[1] <= 0.0 or p[2] < 0.0 or p[6] <= 0.0:
            raise InvalidConfiguration(
                "need s > 0, q > 0, rho >= 0 and tE > 0, got %r" % (p[[0, 1, 2, 6]],)
            )
        return p

    @staticmethod
    def _piE(p):
        """``(piEN, piEE)`` from a parameter array."""
        if len(p) < N_FULL:
            return 0.0, 0.0
        return p[8], p[7]

    def set_params(self, params):
        """Update the event parameters.

        The parallax components are forwarded to the parallax collaborator
        to keep it in sync with the current model parameters.
        """
        self.params = self._check(params)
        if self.parallax is not None:
            self.parallax.update_piE_NE(*self._piE(self.params))

    def projected_separation(
        self, i, period, t, phase_offset=0.0, t_start=None, a=1.0
    ):
        """Calculate the projected separation of the binary lens.

        Parameters
        ----------
        i : float or array_like
            Inclination of the orbit in radians.
        period : float or array_like
            Orbital period, in the same units as ``t``.
        t : float or array_like
            Time of evaluation.
        phase_offset : float, optional
            Phase at ``t_start`` in radians. Default is ``0.0``.
        t_start : float, optional
            Reference start time for the orbit. Defaults to ``self.t_ref``.
        a : float, optional
            Semimajor axis in units of ``theta_E``. Default is ``1.0``.

        Returns
        -------
        s : float or ndarray
            Projected separation in the plane of the sky.
        x, y : float or ndarray
            Coordinates of the companion relative to the orbit centre.
        """
        if t_start is None:
            t_start = self.t_ref

        phase = 2 * np.pi * (t - t_start) / period + phase_offset
        x = a * np.cos(phase)
        # an inclination of 0 is a face-on orbit
        y = a * np.sin(phase) * np.cos(i)
        s = np.sqrt(x**2 + y**2)
        return s, x, y

    def trajectory(self, t, obs=None, pp=None):
        """Lens separation and source position at each epoch.

        Parameters
        ----------
        t : float or array_like
            Times of evaluation.
        obs : str, optional
            Key under which trajectory diagnostics are stored.
        pp : array_like, optional
            Parameter vector overriding ``self.params`` when provided.

        Returns
        -------
        ss, u1, u2 : ndarray
            Separation and source position in the centre-of-mass frame
            whose real axis runs from the primary to the secondary.
        """
        if pp is None:
            p = self.params.copy()
        else:
            p = self._check(pp)

        t = np.atleast_1d(np.asarray(t, dtype=float))
        s = p[0]  # lens separation at t_ref
        q = p[1]
        u0 = p[3]  # impact parameter relative to L1
        alpha = p[4]
        t0 = p[5]  # time of closest approach to L1
        tE = p[6]

        tau = (t - t0) / tE
        self.tau[obs] = tau

        if self.LOM_enabled and len(p) == N_FULL:
            i = p[9]
            phase0 = p[10]  # phase at t_ref
            period = p[11]

            # semimajor axis in units of thetaE
            s_ref, _, _ = self.projected_separation(
                i, period, 0.0, phase_offset=phase0, t_start=0.0
            )
            a = s / s_ref

            # distances of the two lenses from the CoM
            a1 = q / (1.0 + q) * a
            a2 = a - a1

            _, x1, y1 = self.projected_separation(
                i, period, t, phase_offset=phase0 + np.pi, a=a1
            )
            _, x2, y2 = self.projected_separation(
                i, period, t, phase_offset=phase0, a=a2
            )
            ss = np.sqrt((x2 - x1) ** 2 + (y2 - y1) ** 2)

            rot = np.arctan2(y2, x2)
            _, x0, y0 = self.projected_separation(
                i, period, 0.0, t_start=0.0, phase_offset=phase0, a=a
            )
            dalpha = rot - np.arctan2(y0, x0)
        else:
            ss = np.ones_like(t) * s
            dalpha = np.zeros_like(t)
        self.ss[obs] = ss
        self.dalpha[obs] = dalpha

        if self.parallax is not None:
            self.parallax.update_piE_NE(*self._piE(p))
            Delta_tau, Delta_beta = self.parallax.parallax_shift(t, obs)
        else:
            Delta_tau = np.zeros_like(t)
            Delta_beta = np.zeros_like(t)

        tt = tau + Delta_tau
        beta = np.ones_like(tt) * u0
        uu = beta + Delta_beta
        self.traj_base_tau[obs] = tau
        self.traj_parallax_tau[obs] = tt
        self.traj_base_beta[obs] = beta
        self.traj_parallax_beta[obs] = uu

        # s, u0, t0 and alpha are defined relative to L1, so rotate first
        cosalpha = np.cos(alpha)
        sinalpha = np.sin(alpha)
        delta_x0_com = s * q / (1.0 + q)

        xsin = tt * cosalpha - uu * sinalpha - delta_x0_com
        ysin = tt * sinalpha + uu * cosalpha
        self.traj_parallax_u1[obs] = xsin
        self.traj_parallax_u2[obs] = ysin
        self.traj_base_u1[obs] = tau * cosalpha - beta * sinalpha - delta_x0_com
        self.traj_base_u2[obs] = tau * sinalpha + beta * cosalpha

        # orbital motion rotates the lens axis by dalpha
        cosrot = np.cos(-dalpha)
        sinrot = np.sin(-dalpha)
        xsrot = xsin * cosrot - ysin * sinrot
        ysrot = xsin * sinrot + ysin * cosrot
        self.traj_parallax_dalpha_u1[obs] = xsrot
        self.traj_parallax_dalpha_u2[obs] = ysrot

        return ss, xsrot, ysrot

    def lens_positions(self, pp=None):
        """Positions of the two lenses in the CoM frame at ``t_ref``."""
        if pp is None:
            p = self.params
        else:
            p = self._check(pp)
        s, q = p[0], p[1]
        s1 = q / (1.0 + q) * s
        return np.array([-s1, 0.0]), np.array([s - s1, 0.0])

    def get_magnification(self, t, obs=None, pp=None, threads=1):
        """Return the magnification for a set of epochs.

        Parameters
        ----------
        t : float or array_like
            Times of evaluation.
        obs : str, optional
            Observatory code used when storing trajectory diagnostics and
            passed to the parallax collaborator.
        pp : array_like, optional
            Parameter vector overriding ``self.params`` when provided.
        threads : int, optional
            Worker processes used for the epochs.

        Returns
        -------
        ndarray
            Magnification values corresponding to ``t``.
        """
        if pp is None:
            p = self.params
        else:
            p = self._check(pp)
        ss, u1, u2 = self.trajectory(t, obs=obs, pp=p)
        q = p[1]
        rho = p[2]

        if "lightcurve" in self.debug:
            print("debug Event.get_magnification: obs: ", obs)
            print("debug Event.get_magnification: s range: ", ss.min(), ss.max())

        return self.magnification(ss, q, u1, u2, rho, threads=threads)
