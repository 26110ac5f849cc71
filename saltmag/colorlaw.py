# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""SALT2 colour laws and the tabulated colour correction."""

import numpy as np

from .constants import B_WAVELENGTH, V_WAVELENGTH, COLOR_MIN, COLOR_MAX, \
    COLOR_STEP
from .utils import check_uniform_bins, uniform_index

__all__ = ['SALT2ColorLaw', 'SALT2ColorLaw0', 'get_colorlaw',
           'ColorLawTable']


class SALT2ColorLaw(object):
    """Version 1 of the SALT2 colour law.

    A polynomial in the reduced wavelength
    ``l = (wave - B) / (V - B)`` inside `wave_range`, continued linearly
    (with the derivative at the boundary) outside of it. The linear
    coefficient is fixed so that the law is exactly 1 at V and 0 at B.

    Parameters
    ----------
    wave_range : (float, float)
        Wavelength range over which the polynomial applies.
    coeffs : list of float
        Polynomial coefficients of order 2 and higher.

    Returns the colour law value, which can be interpreted as extinction
    in magnitudes for ``c = 1``, with a flipped sign.
    """

    def __init__(self, wave_range, coeffs, b_wave=B_WAVELENGTH,
                 v_wave=V_WAVELENGTH):
        if len(coeffs) > 6:
            raise ValueError('number of coefficients must be equal to or '
                             'less than 6.')
        self.wave_range = tuple(wave_range)
        self.b_wave = b_wave
        self.v_wave = v_wave
        v_minus_b = v_wave - b_wave

        self._l_lo = (wave_range[0] - b_wave) / v_minus_b
        self._l_hi = (wave_range[1] - b_wave) / v_minus_b

        alpha = 1. - sum(coeffs)
        c = np.zeros(len(coeffs) + 2)
        c[1] = alpha
        c[2:] = coeffs
        self._coeffs = c

        # polynomial coefficients in increasing order, and its derivative
        self._poly = np.polynomial.Polynomial(c)
        deriv = self._poly.deriv()
        self._p_lo = self._poly(self._l_lo)
        self._pprime_lo = deriv(self._l_lo)
        self._p_hi = self._poly(self._l_hi)
        self._pprime_hi = deriv(self._l_hi)

    def __call__(self, wave):
        wave = np.asarray(wave, dtype=np.float64)
        l = (wave - self.b_wave) / (self.v_wave - self.b_wave)

        extinction = np.where(
            l < self._l_lo,
            self._p_lo + self._pprime_lo * (l - self._l_lo),
            np.where(l > self._l_hi,
                     self._p_hi + self._pprime_hi * (l - self._l_hi),
                     self._poly(l)))

        return -extinction

    def __reduce__(self):
        return (self.__class__, (self.wave_range, list(self._coeffs[2:]),
                                 self.b_wave, self.v_wave))


class SALT2ColorLaw0(object):
    """Version 0 of the SALT2 colour law.

    A cubic ``alpha*l + a*l^2 + b*l^3`` in the reduced wavelength, with
    ``alpha = 1 - a - b``. Outside of `wave_range` the value at the nearest
    boundary is used.
    """

    def __init__(self, a, b, wave_range=(2800., 7000.), b_wave=B_WAVELENGTH,
                 v_wave=V_WAVELENGTH):
        self.a = a
        self.b = b
        self.wave_range = tuple(wave_range)
        self.b_wave = b_wave
        self.v_wave = v_wave

    def __call__(self, wave):
        wave = np.clip(np.asarray(wave, dtype=np.float64), *self.wave_range)
        l = (wave - self.b_wave) / (self.v_wave - self.b_wave)
        alpha = 1. - self.a - self.b
        return -(alpha * l + self.a * l**2 + self.b * l**3)


def get_colorlaw(version, params):
    """Return a colour law callable for a model-info parameter vector.

    Parameters
    ----------
    version : int
        0 or 1.
    params : list of float
        ``[B, V, a, b]`` for version 0 and
        ``[B, V, lam_min, lam_max, npoly, c1, ..., c4]`` for version 1.
    """
    if version == 0:
        if len(params) != 4:
            raise ValueError('colour law version 0 needs 4 parameters, '
                             'got {0}'.format(len(params)))
        return SALT2ColorLaw0(params[2], params[3], b_wave=params[0],
                              v_wave=params[1])
    elif version == 1:
        if len(params) != 9:
            raise ValueError('colour law version 1 needs 9 parameters, '
                             'got {0}'.format(len(params)))
        npoly = int(params[4])
        if npoly < 0 or npoly > 4:
            raise ValueError('colour law version 1: number of polynomial '
                             'coefficients must be 0-4, got {0}'
                             .format(npoly))
        return SALT2ColorLaw(params[2:4], params[5:5+npoly],
                             b_wave=params[0], v_wave=params[1])
    else:
        raise ValueError('Invalid COLORLAW_VERSION = {0}: valid versions are '
                         '0,1 only'.format(version))


class ColorLawTable(object):
    """Colour correction tabulated on a (colour, rest wavelength) grid.

    Each entry is the multiplicative flux factor
    ``10**(-0.4 * colorlaw(wave) * (c - color_offset))``.

    Parameters
    ----------
    colorlaw : callable
        Colour law, e.g. from `get_colorlaw`.
    wave : `~numpy.ndarray`
        Uniform rest-frame wavelength bins, the same as the flux surface.
    color_offset : float, optional
    color_range : (float, float), optional
    color_step : float, optional
    """

    def __init__(self, colorlaw, wave, color_offset=0.,
                 color_range=(COLOR_MIN, COLOR_MAX), color_step=COLOR_STEP):
        wave = np.asarray(wave, dtype=np.float64)
        self.wave_step = check_uniform_bins(wave, 'colour table wavelength')

        cmin, cmax = color_range
        ncolor = int(round((cmax - cmin) / color_step)) + 1
        color = np.linspace(cmin, cmax, ncolor)
        if color[0] != cmin or color[-1] != cmax:
            raise ValueError('colour table endpoints {0}, {1} do not match '
                             'requested range {2}, {3}'
                             .format(color[0], color[-1], cmin, cmax))

        self.color = color
        self.color_step = color_step
        self.wave = wave
        self.color_offset = color_offset
        cl = colorlaw(wave)
        self.values = 10.**(-0.4 * np.outer(color - color_offset, cl))

    def lookup(self, c, iwave, fwave):
        """Bilinear lookup at colour `c` and precomputed wavelength indices.

        Parameters
        ----------
        c : float
        iwave : `~numpy.ndarray` of int
            Lower wavelength bin indices.
        fwave : `~numpy.ndarray`
            Fractional offsets from the lower wavelength bins.
        """
        ic, fc = uniform_index(c, self.color[0], self.color_step,
                               len(self.color))
        v = self.values
        ccor0 = v[ic, iwave] + fwave * (v[ic, iwave + 1] - v[ic, iwave])
        ccor1 = (v[ic + 1, iwave] +
                 fwave * (v[ic + 1, iwave + 1] - v[ic + 1, iwave]))
        return ccor0 + fc * (ccor1 - ccor0)

    def __call__(self, c, wave):
        """Bilinear lookup at colour `c` and rest wavelengths `wave`."""
        iwave, fwave = uniform_index(wave, self.wave[0], self.wave_step,
                                     len(self.wave))
        return self.lookup(c, iwave, fwave)
