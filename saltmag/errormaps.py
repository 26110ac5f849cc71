# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Model error surfaces and colour dispersion."""

import os
import warnings

import numpy as np
from scipy.interpolate import RectBivariateSpline

from .constants import (INTERP_OFF, INTERP_LINEAR, INTERP_SPLINE,
                        PHASE_READ_RANGE, WAVE_READ_RANGE)
from .io import read_sed_grid, read_colordisp_file
from .utils import check_uniform_bins, uniform_index

__all__ = ['ErrorMap', 'ColorDispersion', 'ErrorMapStore',
           'read_error_maps']

ERRMAP_NAMES = ('VAR0', 'VAR1', 'COVAR', 'ERRSCALE')
ERRMAP_FILES = ('{0}_lc_relative_variance_0.dat',
                '{0}_lc_relative_variance_1.dat',
                '{0}_lc_relative_covariance_01.dat',
                '{0}_lc_dispersion_scaling.dat')
COLORDISP_FILE = '{0}_color_dispersion.dat'

# Guy et al. (2007) colour dispersion: cubic polynomials in wavelength
# below 4400 A and above 5500 A, zero in between.
_G07POLY_UB = (6.2736, -0.43743e-02, 0.10167e-05, -0.78765e-10)
_G07POLY_RI = (0.53882, -0.19852e-03, 0.18285e-07, -0.81849e-16)

# tolerance of the coverage check (days, Angstroms)
_PHASE_COVERAGE_TOL = 1.1
_WAVE_COVERAGE_TOL = 10.


class ErrorMap(object):
    """A model error surface on its own uniform (phase, wavelength) grid.

    Parameters
    ----------
    phase, wave : `~numpy.ndarray`
        Uniform phase and wavelength bins.
    values : `~numpy.ndarray`
        Values of shape ``(len(phase), len(wave))``.
    name : str, optional
    spline : bool, optional
        If True, also fit a 2-d spline to ``log10(values**2)`` over every
        other node in each direction, used by `spline_lookup`.
    """

    def __init__(self, phase, wave, values, name=None, spline=False):
        self.name = name
        self.phase = np.asarray(phase, dtype=np.float64)
        self.wave = np.asarray(wave, dtype=np.float64)
        self.values = np.asarray(values, dtype=np.float64)
        if self.values.shape != (len(self.phase), len(self.wave)):
            raise ValueError('error map {0!r}: values have shape {1}, '
                             'expected {2}'.format(name, self.values.shape,
                                                   (len(self.phase),
                                                    len(self.wave))))
        self.phase_step = check_uniform_bins(self.phase,
                                             '{0} phase'.format(name))
        self.wave_step = check_uniform_bins(self.wave,
                                            '{0} wavelength'.format(name))

        self._spline = None
        if spline:
            self._init_spline()

    def _init_spline(self):
        p = self.phase[::2]
        w = self.wave[::2]
        if len(p) < 2 or len(w) < 2:
            raise ValueError('error map {0!r}: too few nodes ({1}x{2}) for '
                             'spline interpolation'
                             .format(self.name, len(self.phase),
                                     len(self.wave)))
        v = self.values[::2, ::2].copy()
        v[v == 0.] = 1.e-9
        self._spline = RectBivariateSpline(p, w, np.log10(v**2),
                                           kx=min(3, len(p) - 1),
                                           ky=min(3, len(w) - 1), s=0)
        self._spline_bbox = (p[0], p[-1], w[0], w[-1])

    @property
    def phase_range(self):
        return self.phase[0], self.phase[-1]

    @property
    def wave_range(self):
        return self.wave[0], self.wave[-1]

    def linear_lookup(self, phase, wave):
        """Bilinear interpolation; queries outside the grid use the
        nearest node pair without extrapolating."""
        ip, fp = uniform_index(phase, self.phase[0], self.phase_step,
                               len(self.phase), clip_frac=True)
        iw, fw = uniform_index(wave, self.wave[0], self.wave_step,
                               len(self.wave), clip_frac=True)
        v = self.values
        v_lo = v[ip, iw] + fp * (v[ip + 1, iw] - v[ip, iw])
        v_hi = v[ip, iw + 1] + fp * (v[ip + 1, iw + 1] - v[ip, iw + 1])
        return v_lo + fw * (v_hi - v_lo)

    def spline_lookup(self, phase, wave):
        """Spline interpolation of the absolute value, with the sign of
        the bilinear estimate."""
        if self._spline is None:
            raise RuntimeError('error map {0!r} has no spline'
                               .format(self.name))
        pmin, pmax, wmin, wmax = self._spline_bbox
        s = self._spline.ev(np.clip(phase, pmin, pmax),
                            np.clip(wave, wmin, wmax))
        val = np.sqrt(10.**s)
        return np.where(self.linear_lookup(phase, wave) < 0., -val, val)

    def covers(self, phase_range, wave_range):
        """Whether this map covers the given ranges, within tolerance."""
        return not (self.phase[0] - _PHASE_COVERAGE_TOL > phase_range[0] or
                    self.phase[-1] + _PHASE_COVERAGE_TOL < phase_range[1] or
                    self.wave[0] - _WAVE_COVERAGE_TOL > wave_range[0] or
                    self.wave[-1] + _WAVE_COVERAGE_TOL < wave_range[1])


class ColorDispersion(object):
    """Colour dispersion as a function of rest-frame wavelength.

    Linear interpolation between tabulated points. An empty table means
    no colour dispersion (always 0).
    """

    def __init__(self, wave, disp):
        self.wave = np.asarray(wave, dtype=np.float64)
        self.disp = np.asarray(disp, dtype=np.float64)
        if self.wave.shape != self.disp.shape:
            raise ValueError('shape of wave and disp must match')

    @classmethod
    def from_g07(cls, wave):
        """Guy et al. (2007) polynomial colour dispersion on `wave`."""
        wave = np.asarray(wave, dtype=np.float64)
        ub = np.polynomial.polynomial.polyval(wave, _G07POLY_UB)
        ri = np.polynomial.polynomial.polyval(wave, _G07POLY_RI)
        disp = np.where(wave < 4400., ub, np.where(wave < 5500., 0., ri))
        return cls(wave, disp)

    @property
    def nwave(self):
        return len(self.wave)

    def in_range(self, wave):
        return self.nwave > 0 and self.wave[0] <= wave <= self.wave[-1]

    def __call__(self, wave):
        if self.nwave == 0:
            return 0.
        if not (self.wave[0] <= wave <= self.wave[-1]):
            raise ValueError('lam={0:f} outside colour dispersion lookup '
                             'range {1:.1f} to {2:.1f} A'
                             .format(wave, self.wave[0], self.wave[-1]))
        if self.nwave < 2:
            raise ValueError('cannot interpolate colour dispersion with {0} '
                             'wavelength bins'.format(self.nwave))
        return float(np.interp(wave, self.wave, self.disp))


class ErrorMapStore(object):
    """The four error surfaces and the colour dispersion.

    Parameters
    ----------
    maps : list of `ErrorMap`
        Maps in the order variance-0, variance-1, covariance-01 and error
        scale.
    colordisp : `ColorDispersion`
    interp : int, optional
        0 (lookups return zeros), 1 (bilinear) or 2 (spline).
    """

    def __init__(self, maps, colordisp, interp=INTERP_SPLINE):
        if len(maps) != 4:
            raise ValueError('need 4 error maps, got {0}'.format(len(maps)))
        if interp not in (INTERP_OFF, INTERP_LINEAR, INTERP_SPLINE):
            raise ValueError('Invalid ERRMAP_INTERP_OPT = {0}: valid '
                             'options are 0, 1, 2'.format(interp))
        self.maps = list(maps)
        self.colordisp = colordisp
        self.interp = interp

    @property
    def phase_range(self):
        """Phase range of the variance-0 map."""
        return self.maps[0].phase_range

    def lookup(self, phase, wave):
        """Return ``[var0, var1, covar01, scale]`` at (phase, wave)."""
        if self.interp == INTERP_OFF:
            return np.zeros(4)
        elif self.interp == INTERP_LINEAR:
            return np.array([float(m.linear_lookup(phase, wave))
                             for m in self.maps])
        else:
            return np.array([float(m.spline_lookup(phase, wave))
                             for m in self.maps])

    def check_coverage(self, phase_range, wave_range, names=None):
        """Warn for each map that does not cover the given ranges.

        Returns the number of maps with a coverage gap.
        """
        nbad = 0
        for i, m in enumerate(self.maps):
            if not m.covers(phase_range, wave_range):
                nbad += 1
                name = m.name if names is None else names[i]
                warnings.warn(
                    'error map {0}: phase range {1:.1f} to {2:.1f} days '
                    'and wavelength range {3:.1f} to {4:.1f} A do not '
                    'cover the SED ranges {5:.1f} to {6:.1f} days and '
                    '{7:.1f} to {8:.1f} A'
                    .format(name, m.phase[0], m.phase[-1], m.wave[0],
                            m.wave[-1], phase_range[0], phase_range[1],
                            wave_range[0], wave_range[1]))

        cd = self.colordisp
        if cd.nwave > 0 and (cd.wave[0] - _WAVE_COVERAGE_TOL > wave_range[0]
                             or cd.wave[-1] + _WAVE_COVERAGE_TOL <
                             wave_range[1]):
            nbad += 1
            warnings.warn('colour dispersion wavelength range {0:.1f} to '
                          '{1:.1f} A does not cover the SED range {2:.1f} '
                          'to {3:.1f} A'.format(cd.wave[0], cd.wave[-1],
                                                wave_range[0], wave_range[1]))
        return nbad


def read_error_maps(modeldir, prefix, surface, interp=INTERP_SPLINE,
                    colordisp_enabled=True, strict=False):
    """Read error maps and colour dispersion from a model directory.

    Parameters
    ----------
    modeldir : str
    prefix : str
        File name prefix, ``'salt2'`` or ``'salt3'``.
    surface : `~saltmag.FluxSurface`
        Flux surface whose range the maps must cover.
    interp : int, optional
        Error map interpolation option (0, 1 or 2).
    colordisp_enabled : bool, optional
        If False, the colour dispersion is not read and is always 0.
    strict : bool, optional
        If True, raise ValueError after reading all files if any map does
        not cover the flux surface range.

    Returns
    -------
    store : ErrorMapStore
    """

    maps = []
    fnames = []
    for name, tmpl in zip(ERRMAP_NAMES, ERRMAP_FILES):
        fname = os.path.join(modeldir, tmpl.format(prefix))
        phase, wave, values = read_sed_grid(fname, PHASE_READ_RANGE,
                                            WAVE_READ_RANGE)
        maps.append(ErrorMap(phase, wave, values, name=name,
                             spline=(interp == INTERP_SPLINE)))
        fnames.append(os.path.basename(fname))

    if colordisp_enabled:
        fname = os.path.join(modeldir, COLORDISP_FILE.format(prefix))
        wave, disp = read_colordisp_file(fname)
        if len(wave) == 0:
            # older models: hard-wired G07 dispersion on the SED bins
            colordisp = ColorDispersion.from_g07(surface.wave)
        else:
            colordisp = ColorDispersion(wave, disp)
    else:
        colordisp = ColorDispersion([], [])

    store = ErrorMapStore(maps, colordisp, interp=interp)
    nbad = store.check_coverage((surface.phase_min, surface.phase_max),
                                (surface.wave_min, surface.wave_max),
                                names=fnames + [COLORDISP_FILE.format(prefix)])
    if strict and nbad > 0:
        raise ValueError('{0} error maps have invalid phase or wavelength '
                         'range; see warnings for all errors'.format(nbad))

    return store
