# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Model magnitude errors and their covariance."""

import math

import numpy as np

from .constants import MAGERR_PER_FRACERR

__all__ = ['ErrorModel']

# fractional error beyond which the magnitude error saturates
_FRACERR_MAX = 0.999
_MAGERR_SATURATED = 5.0

# used when the combined variance is negative
_VARTOT_MIN = 0.01 * 0.01

# (2.5 / ln(10))**2: fractional variance to mag^2
_COVAR_FAC = 1.17882


class ErrorModel(object):
    """Magnitude error of the SALT2 model.

    Parameters
    ----------
    errmaps : `~saltmag.ErrorMapStore`
    floor : float, optional
        Minimum magnitude error.
    lamobs_fudge, lamrest_fudge : (float, float, float), optional
        ``(magerr, lammin, lammax)``. Inside the observer-frame (or
        rest-frame) wavelength window, `magerr` is added in quadrature to
        the model error.
    salt3 : bool, optional
        If True, ignore the stretch term in the denominator of the
        fractional error.
    """

    def __init__(self, errmaps, floor=0.005, lamobs_fudge=(0., 0., 0.),
                 lamrest_fudge=(0., 0., 0.), salt3=False):
        self.errmaps = errmaps
        self.floor = floor
        self.lamobs_fudge = tuple(lamobs_fudge)
        self.lamrest_fudge = tuple(lamrest_fudge)
        self.salt3 = salt3

    def fudge(self, magerr_model, wave_obs, wave_rest):
        """Apply the error floor and the wavelength-window fudges."""
        magerr = max(magerr_model, self.floor)

        add, lo, hi = self.lamobs_fudge
        if lo <= wave_obs <= hi:
            magerr = math.sqrt(magerr_model**2 + add**2)

        add, lo, hi = self.lamrest_fudge
        if lo <= wave_rest <= hi:
            magerr = math.sqrt(magerr_model**2 + add**2)

        return magerr

    def magerr(self, phase, wave_rest, z, x1, fratio, dump=False):
        """Magnitude error for one epoch.

        Parameters
        ----------
        phase : float
            Rest-frame phase. Clipped to the error map range.
        wave_rest : float
            Mean filter wavelength in the rest frame.
        z : float
            Redshift, used for the observer-frame fudge window.
        x1 : float
        fratio : float
            Ratio of the component-1 to component-0 integrated fluxes.
        dump : bool, optional
            Print intermediate values.

        Returns
        -------
        magerr : float
        """

        pmin, pmax = self.errmaps.phase_range
        p = min(max(phase, pmin), pmax)
        var0, var1, covar01, errscale = self.errmaps.lookup(p, wave_rest)

        relx1 = 0. if self.salt3 else x1 * fratio

        vartot = var0 + var1 * x1 * x1 + 2. * x1 * covar01
        if vartot < 0.:
            vartot = _VARTOT_MIN

        fracerr_snake = errscale * math.sqrt(vartot) / abs(1. + relx1)
        fracerr_kcor = self.errmaps.colordisp(wave_rest)
        fracerr_tot = math.hypot(fracerr_snake, fracerr_kcor)

        if fracerr_tot > _FRACERR_MAX:
            magerr_model = _MAGERR_SATURATED
        else:
            magerr_model = MAGERR_PER_FRACERR * fracerr_tot

        magerr = self.fudge(magerr_model, wave_rest * (1. + z), wave_rest)

        if dump:
            print('magerr dump: phase={0:6.2f} lamrest={1:6.0f} z={2:6.4f}'
                  .format(phase, wave_rest, z))
            print('  var0={0:e} var1={1:e} vartot={2:e} covar01={3:e} '
                  'scale={4:f}'.format(var0, var1, vartot, covar01,
                                       errscale))
            print('  fracerr[snake,kcor] = {0:f}, {1:f}  x1*S1/S0={2:f}'
                  .format(fracerr_snake, fracerr_kcor, relx1))
            print('  magerr(model,final) = {0:7.3f}, {1:7.3f}'
                  .format(magerr_model, magerr))

        return magerr

    def covariance(self, bands, tobs, z, x1, wave_mean, fratio):
        """Covariance matrix of model magnitudes, in mag^2.

        Epochs in the same band share a correlated term from the colour
        dispersion at the band's mean rest-frame wavelength; the diagonal
        holds the squared epoch magnitude errors.

        Parameters
        ----------
        bands : list_like
            Band identifier of each epoch.
        tobs : list_like
            Observer-frame time of each epoch.
        z, x1 : float
        wave_mean : callable
            ``wave_mean(band)`` returns the observer-frame mean wavelength.
        fratio : callable
            ``fratio(band, tobs)`` returns the component flux ratio.

        Returns
        -------
        cov : `~numpy.ndarray`
            Array of shape ``(len(tobs), len(tobs))``.
        """

        n = len(tobs)
        if len(bands) != n:
            raise ValueError('bands and tobs must have the same length')

        z1 = 1. + z
        pmin, pmax = self.errmaps.phase_range

        cdisp = {}
        for band in bands:
            if band not in cdisp:
                cdisp[band] = self.errmaps.colordisp(wave_mean(band) / z1)

        cov = np.zeros((n, n))
        for i in range(n):
            for j in range(n):
                if bands[i] == bands[j]:
                    cov[i, j] = _COVAR_FAC * cdisp[bands[i]]**2

        for i in range(n):
            trest = min(max(tobs[i] / z1, pmin), pmax)
            r = fratio(bands[i], trest * z1)
            err = self.magerr(trest, wave_mean(bands[i]) / z1, z, x1, r)
            cov[i, i] = err**2

        return cov
