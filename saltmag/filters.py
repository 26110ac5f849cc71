# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Filter transmission curves and per-bin dust transmission fractions."""

import numpy as np
import extinction

from .constants import H_ERG_S
from .utils import check_uniform_bins

__all__ = ['Filter', 'ab_zeropoint', 'spectrograph_zeropoints',
           'mw_transmission', 'host_transmission']

# wavelength range (Angstroms) over which the dust laws are evaluated;
# outside it the value at the nearest edge is used.
_DUST_WAVE_RANGE = (1000., 33000.)


def ab_zeropoint(wave, trans):
    """AB zero point of a uniformly binned transmission curve.

    The zero point is ``2.5 log10`` of the photon flux (photons / s / cm^2)
    of a 3631 Jy source through the curve.
    """
    wave = np.asarray(wave, dtype=np.float64)
    trans = np.asarray(trans, dtype=np.float64)
    dwave = check_uniform_bins(wave, 'filter wavelength')
    zpbandflux = 3631.e-23 * dwave / H_ERG_S * np.sum(trans / wave)
    return 2.5 * np.log10(zpbandflux)


class Filter(object):
    """Transmission curve of an observer-frame filter.

    Parameters
    ----------
    wave : list_like
        Wavelength in Angstroms. Must be uniformly binned and
        monotonically increasing.
    trans : list_like
        Transmission fraction.
    name : str, optional
        Identifier. Default is `None`.
    zp : float, optional
        Zero point such that ``mag = zp - 2.5 log10(flux)`` where flux is
        the integrated photon flux. Default is the AB zero point of the
        curve.

    Examples
    --------
    >>> f = Filter([4000., 4200., 4400.], [0.5, 1.0, 0.5], name='mine')
    >>> f.wave_mean
    4200.0
    >>> f.wave_step
    200.0
    """

    def __init__(self, wave, trans, name=None, zp=None):
        wave = np.asarray(wave, dtype=np.float64)
        trans = np.asarray(trans, dtype=np.float64)
        if wave.shape != trans.shape:
            raise ValueError('shape of wave and trans must match')
        if wave.ndim != 1:
            raise ValueError('only 1-d arrays supported')

        self.wave_step = check_uniform_bins(wave, 'filter {0!r} wavelength'
                                            .format(name))
        if np.sum(trans) <= 0.:
            raise ValueError('filter {0!r} has no positive transmission'
                             .format(name))

        self.wave = wave
        self.trans = trans
        self.name = name
        self.wave_mean = np.sum(wave * trans) / np.sum(trans)
        self.zp = ab_zeropoint(wave, trans) if zp is None else float(zp)

    def __repr__(self):
        name = ''
        if self.name is not None:
            name = ' {0!r:s}'.format(self.name)
        return "<{0:s}{1:s} at 0x{2:x}>".format(self.__class__.__name__,
                                                 name, id(self))


def spectrograph_zeropoints(lammin, lammax):
    """AB zero point of each top-hat spectrograph bin."""
    lammin = np.asarray(lammin, dtype=np.float64)
    lammax = np.asarray(lammax, dtype=np.float64)
    zpbandflux = 3631.e-23 / H_ERG_S * np.log(lammax / lammin)
    return 2.5 * np.log10(zpbandflux)


def mw_transmission(wave, mwebv, r_v=3.1):
    """Milky Way transmission fraction per observer-frame wavelength bin.

    Uses the O'Donnell (1994) law with ``A_V = r_v * mwebv``.
    """
    wave = np.asarray(wave, dtype=np.float64)
    if mwebv == 0.:
        return np.ones_like(wave)
    w = np.clip(wave, *_DUST_WAVE_RANGE)
    a = extinction.odonnell94(w, r_v * mwebv, r_v)
    return 10.**(-0.4 * a)


def host_transmission(wave, z, a_v, r_v):
    """Host-galaxy transmission fraction per observer-frame wavelength bin.

    Uses the Fitzpatrick (1999) law evaluated at the rest-frame wavelength.
    Unity unless both `a_v` and `r_v` are positive.
    """
    wave = np.asarray(wave, dtype=np.float64)
    if not (r_v > 1.e-9 and a_v > 1.e-9):
        return np.ones_like(wave)
    w = np.clip(wave / (1. + z), *_DUST_WAVE_RANGE)
    a = extinction.fitzpatrick99(w, a_v, r_v)
    return 10.**(-0.4 * a)
