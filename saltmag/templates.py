# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Flux surface of the two SALT2 SED components."""

import numpy as np

from .constants import INTERP_LINEAR, INTERP_SPLINE
from .utils import check_uniform_bins, quad_weights

__all__ = ['FluxSurface', 'build_flux_surface']

# number of nodes in each direction used for the quadratic refinement
_NWINDOW = 3


class FluxSurface(object):
    """Uniformly binned flux of the two SED components.

    Parameters
    ----------
    phase : `~numpy.ndarray`
        Uniform phase bins (rest-frame days).
    wave : `~numpy.ndarray`
        Uniform rest-frame wavelength bins (Angstroms).
    flux : list of two `~numpy.ndarray`
        Flux of each component, of shape ``(len(phase), len(wave))``.
    phase_range : (float, float), optional
        Valid phase range. The table may have extra refined bins past the
        last original node; those are not part of the valid range.
        Default is the first and last phase bins.
    wave_range : (float, float), optional
        Valid wavelength range, as for `phase_range`.
    """

    def __init__(self, phase, wave, flux, phase_range=None, wave_range=None):
        self.phase = np.asarray(phase, dtype=np.float64)
        self.wave = np.asarray(wave, dtype=np.float64)
        self.phase_step = check_uniform_bins(self.phase, 'phase')
        self.wave_step = check_uniform_bins(self.wave, 'wavelength')

        if len(flux) != 2:
            raise ValueError('need flux of exactly 2 components, got {0}'
                             .format(len(flux)))
        shape = (len(self.phase), len(self.wave))
        self.flux = []
        for i, f in enumerate(flux):
            f = np.asarray(f, dtype=np.float64)
            if f.shape != shape:
                raise ValueError('component {0} flux has shape {1}, '
                                 'expected {2}'.format(i, f.shape, shape))
            f.flags.writeable = False
            self.flux.append(f)

        if phase_range is None:
            phase_range = (self.phase[0], self.phase[-1])
        if wave_range is None:
            wave_range = (self.wave[0], self.wave[-1])
        self.phase_min, self.phase_max = phase_range
        self.wave_min, self.wave_max = wave_range

    @property
    def nphase(self):
        return len(self.phase)

    @property
    def nwave(self):
        return len(self.wave)

    def __repr__(self):
        return ('<FluxSurface phase={0:.1f}..{1:.1f} step {2:.2f}, '
                'wave={3:.0f}..{4:.0f} step {5:.1f}>'
                .format(self.phase_min, self.phase_max, self.phase_step,
                        self.wave_min, self.wave_max, self.wave_step))


def _refine_weights(x_orig, x_table):
    """Matrix mapping values on `x_orig` to quadratic interpolants at
    `x_table`, using a 3-node window that never leaves the original grid.
    """
    n = len(x_orig)
    step = x_orig[1] - x_orig[0]
    i = ((x_table - x_orig[0] + 1.e-4) / step).astype(int)
    i = np.minimum(i, n - 1)
    frac = (x_table - x_orig[i]) / step
    i = np.where((frac < 0.5) & (i > 0), i - 1, i)
    i = np.minimum(i, n - _NWINDOW)

    w = quad_weights(x_table, x_orig[i], x_orig[i + 1], x_orig[i + 2])
    weights = np.zeros((len(x_table), n))
    rows = np.arange(len(x_table))
    for k in range(_NWINDOW):
        weights[rows, i + k] = w[k]
    return weights


def _validate_refinement(isurf, phase, wave, raw, table, rphase, rwave,
                         relax):
    """Check that the refined table reproduces the original nodes."""

    nphase, nwave = raw.shape
    tol_edge, tol_interior = (1.e-2, 1.e-3) if relax else (1.e-3, 1.e-5)

    # start at the second index of both axes to avoid the sharp rise
    f_orig = raw[1:, 1:]
    f_interp = table[rphase:nphase*rphase:rphase, rwave:nwave*rwave:rwave]
    fsum = f_interp + f_orig
    with np.errstate(divide='ignore', invalid='ignore'):
        fratio = np.where(fsum > 0., (f_interp - f_orig) / fsum, 0.)

    tol = np.full(f_orig.shape, tol_interior)
    tol[-1, :] = tol_edge
    tol[:, -1] = tol_edge

    bad = np.abs(fratio) > tol
    if relax:
        bad &= ~(f_orig < 1.e-25)
    if not np.any(bad):
        return

    ip, iw = np.argwhere(bad)[0] + 1
    lines = []
    lines.append('    LAM\\DAY ' + ' '.join(
        '{0:14.1f}'.format(phase[j])
        for j in range(max(ip - 1, 0), min(ip + 2, nphase))))
    for k in range(max(iw - 1, 0), min(iw + 2, nwave)):
        lines.append('    {0:7.1f} '.format(wave[k]) + ' '.join(
            '{0:14.6e}'.format(raw[j, k])
            for j in range(max(ip - 1, 0), min(ip + 2, nphase))))

    fi = table[ip * rphase, iw * rwave]
    fo = raw[ip, iw]
    raise ValueError(
        'Bad SED-{0} interp at PHASE[{1}]={2:.1f} WAVE[{3}]={4:.1f}\n'
        'F[interp/orig] = {5:e} / {6:e} (tolerance {7:g}); original flux '
        'around this node:\n{8}'
        .format(isurf, ip, phase[ip], iw, wave[iw], fi, fo, tol[ip-1, iw-1],
                '\n'.join(lines)))


def build_flux_surface(raw_grids, interp=INTERP_SPLINE, rebin_phase=5,
                       rebin_wave=2, relax=False):
    """Build a `FluxSurface` from raw template grids.

    Parameters
    ----------
    raw_grids : list of (phase, wave, flux) tuples
        One tuple per SED component, as returned by
        `~saltmag.io.read_griddata_ascii`. Both must be uniformly binned
        with identical phase and wavelength bins.
    interp : int, optional
        ``INTERP_LINEAR`` (1) to copy the raw grid unchanged or
        ``INTERP_SPLINE`` (2) to refine it with local quadratic
        interpolation. Default is 2.
    rebin_phase, rebin_wave : int, optional
        Integer refinement factors used when ``interp == 2``.
    relax : bool, optional
        Use looser tolerances when checking that the refined table
        reproduces the original nodes, and skip nodes with negligible
        flux.

    Returns
    -------
    surface : FluxSurface
    """

    if len(raw_grids) != 2:
        raise ValueError('need exactly 2 SED components, got {0}'
                         .format(len(raw_grids)))

    phase, wave, _ = raw_grids[0]
    phase = np.asarray(phase, dtype=np.float64)
    wave = np.asarray(wave, dtype=np.float64)
    phase_step = check_uniform_bins(phase, 'SED-0 phase')
    wave_step = check_uniform_bins(wave, 'SED-0 wavelength')

    for i, (p, w, _) in enumerate(raw_grids[1:], 1):
        check_uniform_bins(p, 'SED-{0} phase'.format(i))
        check_uniform_bins(w, 'SED-{0} wavelength'.format(i))
        if not (len(p) == len(phase) and np.allclose(p, phase) and
                len(w) == len(wave) and np.allclose(w, wave)):
            raise ValueError('SED-{0} binning differs from SED-0: '
                             'phase {1}..{2} ({3} bins) vs {4}..{5} ({6}), '
                             'wave {7}..{8} ({9}) vs {10}..{11} ({12})'
                             .format(i, p[0], p[-1], len(p), phase[0],
                                     phase[-1], len(phase), w[0], w[-1],
                                     len(w), wave[0], wave[-1], len(wave)))

    if interp == INTERP_SPLINE:
        rphase, rwave = int(rebin_phase), int(rebin_wave)
        if rphase < 1 or rwave < 1:
            raise ValueError('refine factors must be >= 1, got {0}, {1}'
                             .format(rebin_phase, rebin_wave))
        if len(phase) < _NWINDOW or len(wave) < _NWINDOW:
            raise ValueError('need at least {0} phase and wavelength bins '
                             'for refined interpolation, got {1}, {2}'
                             .format(_NWINDOW, len(phase), len(wave)))
    elif interp == INTERP_LINEAR:
        rphase, rwave = 1, 1
    else:
        raise ValueError('Invalid SEDFLUX_INTERP_OPT = {0}: valid options '
                         'are 1 (direct) and 2 (refined)'.format(interp))

    table_phase = phase[0] + np.arange(len(phase) * rphase) * (phase_step /
                                                                rphase)
    table_wave = wave[0] + np.arange(len(wave) * rwave) * (wave_step / rwave)

    fluxes = []
    if interp == INTERP_LINEAR:
        for _, _, raw in raw_grids:
            fluxes.append(np.array(raw, dtype=np.float64))
    else:
        wp = _refine_weights(phase, table_phase)
        ww = _refine_weights(wave, table_wave)
        for i, (_, _, raw) in enumerate(raw_grids):
            raw = np.asarray(raw, dtype=np.float64)
            table = np.dot(np.dot(wp, raw), ww.T)
            _validate_refinement(i, phase, wave, raw, table, rphase, rwave,
                                 relax)
            fluxes.append(table)

    return FluxSurface(table_phase, table_wave, fluxes,
                       phase_range=(phase[0], phase[-1]),
                       wave_range=(wave[0], wave[-1]))
