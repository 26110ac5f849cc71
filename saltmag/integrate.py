# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Observer-frame synthetic photometry of the SALT2 flux surface."""

import numpy as np

from .constants import HC_ERG_AA, X0_SCALE
from .utils import uniform_index

__all__ = ['integrate_flux', 'integrate_spectrograph']

# filter bins with transmission below this are skipped when integrating
_TRANS_MIN = 1.e-12


def _sed_flux(surface, cltable, phase, wave, c):
    """Colour-corrected flux of each SED component at rest-frame `phase`
    and rest-frame wavelengths `wave` (all strictly inside the surface
    wavelength range).

    Linear interpolation in wavelength, then in phase.
    """
    ip, fp = uniform_index(phase, surface.phase[0], surface.phase_step,
                           surface.nphase)
    iw, fw = uniform_index(wave, surface.wave[0], surface.wave_step,
                           surface.nwave)
    ccor = cltable.lookup(c, iw, fw)

    result = []
    for f in surface.flux:
        f0 = f[ip, iw] + fw * (f[ip, iw + 1] - f[ip, iw])
        f1 = f[ip + 1, iw] + fw * (f[ip + 1, iw + 1] - f[ip + 1, iw])
        result.append((f0 + fp * (f1 - f0)) * ccor)
    return result


def _smear_factor(magsmear, phase, wave_rest, wave_max):
    """Flux factor ``10**(-0.4*dm)`` from a magnitude-offset callback.

    The callback only sees rest wavelengths below `wave_max`; the
    offset is zero for the remaining bins.
    """
    offsets = np.zeros(len(wave_rest))
    if magsmear is not None:
        below = wave_rest < wave_max
        if np.any(below):
            offsets[below] = magsmear(phase, wave_rest[below])
    return 10.**(-0.4 * offsets)


def integrate_flux(surface, cltable, wave, trans, wave_step, z, tobs, x0,
                   x1, c, mwfrac=None, hostfrac=None, magsmear=None,
                   spectrum=False):
    """Integrate the model through a filter.

    Parameters
    ----------
    surface : `~saltmag.FluxSurface`
    cltable : `~saltmag.ColorLawTable`
        Colour correction on the same wavelength bins as `surface`.
    wave, trans : `~numpy.ndarray`
        Observer-frame filter wavelength bins and transmission.
    wave_step : float
        Filter wavelength bin size.
    z : float
        Redshift.
    tobs : float
        Observer-frame time relative to peak (days).
    x0, x1, c : float
        Model parameters.
    mwfrac, hostfrac : `~numpy.ndarray`, optional
        Milky Way and host transmission fractions on the filter bins.
        Default is 1.
    magsmear : callable, optional
        ``magsmear(phase, wave_rest)`` returns a magnitude offset for each
        rest-frame wavelength; the flux in each bin is scaled by
        ``10**(-0.4 * offset)``.
    spectrum : bool, optional
        If True, also return the flux in each filter bin.

    Returns
    -------
    flux : float
        Integrated photon flux, in units of photons / s / cm^2 for
        a template in erg / s / cm^2 / A.
    fratio : float
        Ratio of the component-1 to component-0 integrals, computed
        without Milky Way extinction. 0 if the component-0 integral
        vanishes.
    fspec : `~numpy.ndarray`
        Only if `spectrum` is True: flux in each filter bin.
    """

    wave = np.asarray(wave, dtype=np.float64)
    trans = np.asarray(trans, dtype=np.float64)
    n = len(wave)
    mwfrac = np.ones(n) if mwfrac is None else np.asarray(mwfrac)
    hostfrac = np.ones(n) if hostfrac is None else np.asarray(hostfrac)

    z1 = 1. + z
    trest = tobs / z1
    wave_rest = wave / z1

    mask = (wave_rest > surface.wave_min) & (wave_rest < surface.wave_max)
    if not spectrum:
        mask &= ~(trans < _TRANS_MIN)

    smear = _smear_factor(magsmear, trest, wave_rest, surface.wave_max)

    lr = wave_rest[mask]
    f0, f1 = _sed_flux(surface, cltable, trest, lr, c)
    ext = hostfrac[mask] * mwfrac[mask] * smear[mask]

    weight = lr * trans[mask]
    sum0 = np.sum(f0 * ext * weight)
    sum1 = np.sum(f1 * ext * weight)
    err0 = np.sum(f0 * ext * weight / mwfrac[mask])
    err1 = np.sum(f1 * ext * weight / mwfrac[mask])

    flux = x0 * (sum0 + x1 * sum1) * wave_step * X0_SCALE / HC_ERG_AA
    fratio = err1 / err0 if sum0 != 0. else 0.

    if not spectrum:
        return flux, fratio

    fspec = np.zeros(n)
    fspec[mask] = x0 * (f0 + x1 * f1) * ext * wave_step * X0_SCALE
    return flux, fratio, fspec


def integrate_spectrograph(surface, cltable, lammin, lammax, z, tobs, x0,
                           x1, c, mwfrac=None, hostfrac=None, magsmear=None):
    """Flux in each bin of a spectrograph.

    Each observer-frame bin ``[lammin[i], lammax[i]]`` is sampled in
    rest-frame steps of the surface wavelength step, the last step being
    truncated at the bin edge.

    Parameters
    ----------
    surface : `~saltmag.FluxSurface`
    cltable : `~saltmag.ColorLawTable`
    lammin, lammax : `~numpy.ndarray`
        Observer-frame bin edges.
    z, tobs, x0, x1, c : float
    mwfrac, hostfrac : `~numpy.ndarray`, optional
        Transmission fractions per spectrograph bin. Default is 1.
    magsmear : callable, optional
        As for `integrate_flux`, evaluated at the bin centres.

    Returns
    -------
    fspec : `~numpy.ndarray`
        Flux in each bin.
    """

    lammin = np.asarray(lammin, dtype=np.float64)
    lammax = np.asarray(lammax, dtype=np.float64)
    n = len(lammin)
    mwfrac = np.ones(n) if mwfrac is None else np.asarray(mwfrac)
    hostfrac = np.ones(n) if hostfrac is None else np.asarray(hostfrac)

    z1 = 1. + z
    trest = tobs / z1
    step = surface.wave_step
    smear = _smear_factor(magsmear, trest, 0.5 * (lammin + lammax) / z1,
                          surface.wave_max)

    # flatten the rest-frame sub-steps of all bins
    lr_list = []
    ibin_list = []
    for i in range(n):
        lo = lammin[i] / z1
        hi = lammax[i] / z1
        lr = lo + step * np.arange(int(np.floor((hi - lo) / step)) + 1)
        lr_list.append(lr)
        ibin_list.append(np.full(len(lr), i))
    lr = np.concatenate(lr_list)
    ibin = np.concatenate(ibin_list)
    width = np.minimum(step, lammax[ibin] / z1 - lr)

    mask = (lr > surface.wave_min) & (lr < surface.wave_max)
    lr = lr[mask]
    ibin = ibin[mask]
    width = width[mask]

    f0, f1 = _sed_flux(surface, cltable, trest, lr, c)
    ext = hostfrac[ibin] * mwfrac[ibin] * smear[ibin]
    fsub = x0 * (f0 + x1 * f1) * ext * width * X0_SCALE

    return np.bincount(ibin, weights=fsub, minlength=n)
