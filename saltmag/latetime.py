# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Analytic late-time extrapolation of model magnitudes."""

import numpy as np
from astropy.table import Table

from .constants import MAG_ZEROFLUX
from .io import read_latetime_file

__all__ = ['LateTimeModel']


class LateTimeModel(object):
    """Double exponential decline used past the end of the templates.

    The flux at ``t = day - daymin`` is proportional to
    ``exp(-t/tau1) + ratio * exp(-t/tau2)``, normalized to the flux at
    `daymin`. Parameters are linearly interpolated in wavelength and
    held constant beyond the first and last wavelength.

    Parameters
    ----------
    daymin : float
        Rest-frame phase where extrapolation starts. Must be >= 10.
    wave, tau1, tau2, ratio : list_like
        Per-wavelength decay times (days) and amplitude ratio of the
        second component.
    """

    def __init__(self, daymin, wave, tau1, tau2, ratio):
        self.daymin = float(daymin)
        self.wave = np.asarray(wave, dtype=np.float64)
        self.tau1 = np.asarray(tau1, dtype=np.float64)
        self.tau2 = np.asarray(tau2, dtype=np.float64)
        self.ratio = np.asarray(ratio, dtype=np.float64)

        if self.daymin < 10.:
            raise ValueError('Invalid DAYMIN={0:.2f} (too small): check '
                             'EXTRAP_DAYMIN key'.format(self.daymin))
        if len(self.wave) == 0:
            raise ValueError('late-time model needs at least one '
                             'wavelength bin')
        for i in range(len(self.wave)):
            if self.tau2[i] < self.tau1[i]:
                raise ValueError('Invalid TAU2({0:.2f}) < TAU1({1:.2f}): '
                                 'check EXTRAP_PARLIST with lam={2:.1f}'
                                 .format(self.tau2[i], self.tau1[i],
                                         self.wave[i]))

        self.magslope1 = 1.086 / self.tau1
        self.magslope2 = 1.086 / self.tau2
        with np.errstate(divide='ignore', invalid='ignore'):
            pivot = (np.log(1. / self.ratio) /
                     (1. / self.tau1 - 1. / self.tau2))
        ok = (self.ratio > 1.e-9) & (self.tau1 > 0.) & (self.tau2 > 0.)
        self.daypivot = np.where(ok, pivot, 1.e4)

    @classmethod
    def read(cls, fname):
        """Create from a file with ``EXTRAP_DAYMIN:`` and
        ``EXTRAP_PARLIST:`` keys."""
        daymin, parlist = read_latetime_file(fname)
        return cls(daymin, parlist[:, 0], parlist[:, 1], parlist[:, 2],
                   parlist[:, 3])

    def parameters(self, wave):
        """Return (tau1, tau2, ratio) at rest-frame wavelength `wave`."""
        return (np.interp(wave, self.wave, self.tau1),
                np.interp(wave, self.wave, self.tau2),
                np.interp(wave, self.wave, self.ratio))

    def extrapolate(self, mag_daymin, day, wave):
        """Magnitude at `day` given the magnitude `mag_daymin` at
        ``self.daymin``.

        Parameters
        ----------
        mag_daymin : float
        day : float
            Rest-frame phase, ``>= self.daymin``.
        wave : float
            Rest-frame wavelength of the filter.

        Returns
        -------
        mag : float
        """
        if day < self.daymin:
            raise ValueError('Invalid day={0:.2f} is < DAYMIN={1:.2f}'
                             .format(day, self.daymin))

        tau1, tau2, ratio = self.parameters(wave)
        t = day - self.daymin
        fnorm = 1. + ratio
        f = np.exp(-t / tau1) + ratio * np.exp(-t / tau2)
        mag = mag_daymin - 2.5 * np.log10(f / fnorm)

        if mag > 40.:
            mag = MAG_ZEROFLUX
        if mag < 0. or mag > 99.:
            raise RuntimeError(
                'Crazy extrapolated magnitude {0:e}: mag_daymin={1:.3f} '
                'day={2:.3f} lam={3:.1f} tau1={4:.3f} tau2={5:.3f} '
                'ratio={6:.5f}'.format(mag, mag_daymin, day, wave, tau1,
                                       tau2, ratio))
        return float(mag)

    def summary(self):
        """Table of parameters and derived slopes per wavelength bin."""
        return Table([self.wave, self.tau1, self.tau2, self.ratio,
                      self.magslope1, self.magslope2, self.daypivot],
                     names=('wave', 'tau1', 'tau2', 'ratio', 'magslope1',
                            'magslope2', 'daypivot'))
