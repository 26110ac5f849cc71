# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Readers and writers for SALT2 model files."""

import os

import numpy as np

from .constants import (B_WAVELENGTH, V_WAVELENGTH, INTERP_OFF,
                        INTERP_LINEAR, INTERP_SPLINE)

__all__ = ['read_griddata_ascii', 'write_griddata_ascii', 'read_model_info',
           'read_latetime_file', 'ModelInfo']


def _stripcomment(line, char='#'):
    pos = line.find(char)
    if pos == -1:
        return line
    else:
        return line[:pos]


def read_griddata_ascii(name_or_obj):
    """Read 2-d grid data from a text file.

    Each line has values `x0 x1 y`. Space separated.
    x1 values are only read for first x0 value. Others are assumed
    to match.

    Parameters
    ----------
    name_or_obj : str or file-like object

    Returns
    -------
    x0 : numpy.ndarray
        1-d array.
    x1 : numpy.ndarray
        1-d array.
    y : numpy.ndarray
        2-d array of shape (len(x0), len(x1)).
    """

    if isinstance(name_or_obj, str):
        f = open(name_or_obj, 'r')
    else:
        f = name_or_obj

    x0 = []    # x0 values.
    x1 = None  # x1 values for first x0 value, assume others are the same.
    y = []     # 2-d array of internal values

    x0_current = None
    x1_current = []
    y1_current = []
    for line in f:
        stripped_line = _stripcomment(line).strip()
        if len(stripped_line) == 0:
            continue
        x0_tmp, x1_tmp, y_tmp = map(float, stripped_line.split()[:3])
        if x0_current is None:
            x0_current = x0_tmp  # Initialize first time

        # If there is a new x0 value, ingest the old one and reset values
        if x0_tmp != x0_current:
            x0.append(x0_current)
            if x1 is None:
                x1 = x1_current
            elif len(x1_current) != len(x1):
                raise ValueError('grid row at x0={0} has {1} values, '
                                 'expected {2}'.format(
                                     x0_current, len(x1_current), len(x1)))
            y.append(y1_current)

            x0_current = x0_tmp
            x1_current = []
            y1_current = []

        x1_current.append(x1_tmp)
        y1_current.append(y_tmp)

    if isinstance(name_or_obj, str):
        f.close()

    if x0_current is None:
        raise ValueError('no grid data found in {0!r}'.format(name_or_obj))

    # Ingest the last x0 value and y1 array
    x0.append(x0_current)
    if x1 is None:
        x1 = x1_current
    elif len(x1_current) != len(x1):
        raise ValueError('grid row at x0={0} has {1} values, expected {2}'
                         .format(x0_current, len(x1_current), len(x1)))
    y.append(y1_current)

    return np.array(x0), np.array(x1), np.array(y)


def write_griddata_ascii(x0, x1, y, name_or_obj):
    """Write 2-d grid data to a text file.

    Each line has values `x0 x1 y`. Space separated.

    Parameters
    ----------
    x0 : numpy.ndarray
        1-d array.
    x1 : numpy.ndarray
        1-d array.
    y : numpy.ndarray
        2-d array of shape (len(x0), len(x1)).
    name_or_obj : str or file-like object
        Filename to write to or open file.
    """

    if isinstance(name_or_obj, str):
        f = open(name_or_obj, 'w')
    else:
        f = name_or_obj

    for j in range(len(x0)):
        for i in range(len(x1)):
            f.write("{0:.7g} {1:.7g} {2:.9g}\n".format(x0[j], x1[i], y[j, i]))

    if isinstance(name_or_obj, str):
        f.close()


def read_sed_grid(fname, phase_range=None, wave_range=None):
    """Read a (phase, wavelength, value) grid file, keeping only the rows
    and columns inside the given phase and wavelength windows."""

    phase, wave, values = read_griddata_ascii(fname)

    pmask = np.ones(len(phase), dtype=bool)
    wmask = np.ones(len(wave), dtype=bool)
    if phase_range is not None:
        pmask = (phase >= phase_range[0]) & (phase <= phase_range[1])
    if wave_range is not None:
        wmask = (wave >= wave_range[0]) & (wave <= wave_range[1])
    if not (np.any(pmask) and np.any(wmask)):
        raise ValueError('no grid nodes of {0!r} inside phase range {1} '
                         'and wavelength range {2}'
                         .format(fname, phase_range, wave_range))

    return phase[pmask], wave[wmask], values[np.ix_(pmask, wmask)]


def read_colordisp_file(fname):
    """Read the two-column (wavelength, dispersion) file.

    Returns empty arrays if the file does not exist or has no data rows;
    the caller decides what to substitute.
    """
    if not os.path.exists(fname):
        return np.array([]), np.array([])

    wave = []
    disp = []
    with open(fname, 'r') as f:
        for line in f:
            words = _stripcomment(line).split()
            if len(words) < 2:
                continue
            wave.append(float(words[0]))
            disp.append(float(words[1]))

    return np.array(wave), np.array(disp)


class ModelInfo(object):
    """Contents of a model-info (``SALT2.INFO``) file.

    Attributes are initialized to the defaults used when a key is absent.
    """

    _INTERP_NAMES = {INTERP_OFF: 'OFF', INTERP_LINEAR: 'Linear',
                     INTERP_SPLINE: 'Spline'}

    def __init__(self):
        self.restlam_range = (2900., 7000.)
        self.magerr_floor = 0.005
        self.magerr_lamobs = (0., 0., 0.)
        self.magerr_lamrest = (0., 0., 0.)
        self.sedflux_interp = INTERP_SPLINE
        self.sed_rebin = (5, 2)
        self.errmap_interp = INTERP_SPLINE
        self.colordisp_enabled = True
        self.colorlaw_version = 0
        self.colorlaw_params = [B_WAVELENGTH, V_WAVELENGTH, 0., 0.]
        self.color_offset = 0.
        self.mag_offset = 0.
        self.restlam_forcezeroflux = (0., 0.)
        self.latetime_file = None

    def validate(self):
        """Raise ValueError for invalid enumerated options."""
        if self.sedflux_interp not in (INTERP_LINEAR, INTERP_SPLINE):
            raise ValueError('Invalid SEDFLUX_INTERP_OPT = {0}: valid '
                             'options are 1 (direct) and 2 (refined)'
                             .format(self.sedflux_interp))
        if self.errmap_interp not in (INTERP_OFF, INTERP_LINEAR,
                                      INTERP_SPLINE):
            raise ValueError('Invalid ERRMAP_INTERP_OPT = {0}: valid '
                             'options are 0, 1, 2'
                             .format(self.errmap_interp))
        if self.colorlaw_version not in (0, 1):
            raise ValueError('Invalid COLORLAW_VERSION = {0}: valid '
                             'versions are 0,1 only'
                             .format(self.colorlaw_version))
        if min(self.sed_rebin) < 1:
            raise ValueError('Invalid INTERP_SEDREBIN = {0}: refine '
                             'factors must be >= 1'.format(self.sed_rebin))

    def __repr__(self):
        lines = ['ModelInfo:',
                 '  RESTLAMBDA_RANGE: {0:.0f} - {1:.0f} A'
                 .format(*self.restlam_range),
                 '  MAG_OFFSET: {0:.3f}'.format(self.mag_offset),
                 '  COLOR_OFFSET: {0:.3f}'.format(self.color_offset),
                 '  COLORLAW_VERSION: {0}'.format(self.colorlaw_version),
                 '  COLORLAW_PARAMS: {0}'.format(
                     ' '.join(repr(p) for p in self.colorlaw_params)),
                 '  MAGERR_FLOOR: {0:.3f}'.format(self.magerr_floor),
                 '  SEDFLUX_INTERP_OPT: {0} ({1})'.format(
                     self.sedflux_interp,
                     self._INTERP_NAMES[self.sedflux_interp]),
                 '  ERRMAP_INTERP_OPT: {0} ({1})'.format(
                     self.errmap_interp,
                     self._INTERP_NAMES[self.errmap_interp]),
                 '  ERRMAP_KCOR_OPT: {0}'.format(
                     'ON' if self.colordisp_enabled else 'OFF')]
        return '\n'.join(lines)


def read_model_info(name_or_obj):
    """Read a model-info file into a `ModelInfo`.

    The file is a whitespace-separated stream of ``KEY: values`` items.
    Unknown words are skipped.
    """

    if isinstance(name_or_obj, str):
        with open(name_or_obj, 'r') as f:
            words = f.read().split()
    else:
        words = name_or_obj.read().split()

    info = ModelInfo()
    npar = 4

    def floats(i, n):
        return [float(w) for w in words[i+1:i+1+n]]

    for i, word in enumerate(words):
        if word == 'RESTLAMBDA_RANGE:':
            info.restlam_range = tuple(floats(i, 2))
        elif word == 'COLORLAW_VERSION:':
            info.colorlaw_version = int(words[i+1])
            if info.colorlaw_version == 0:
                npar = 4
            elif info.colorlaw_version == 1:
                npar = 9
            else:
                raise ValueError('Invalid COLORLAW_VERSION = {0}: valid '
                                 'versions are 0,1 only'
                                 .format(info.colorlaw_version))
        elif word in ('COLORLAW_PARAMS:', 'COLORCOR_PARAMS:'):
            # reference wavelengths are not in the file
            info.colorlaw_params = ([B_WAVELENGTH, V_WAVELENGTH] +
                                    floats(i, npar - 2))
        elif word == 'COLOR_OFFSET:':
            info.color_offset = float(words[i+1])
        elif word == 'MAG_OFFSET:':
            info.mag_offset = float(words[i+1])
        elif word == 'MAGERR_FLOOR:':
            info.magerr_floor = float(words[i+1])
        elif word == 'MAGERR_LAMOBS:':
            info.magerr_lamobs = tuple(floats(i, 3))
        elif word == 'MAGERR_LAMREST:':
            info.magerr_lamrest = tuple(floats(i, 3))
        elif word == 'ERRMAP_INTERP_OPT:':
            info.errmap_interp = int(words[i+1])
        elif word == 'SEDFLUX_INTERP_OPT:':
            info.sedflux_interp = int(words[i+1])
        elif word == 'INTERP_SEDREBIN:':
            info.sed_rebin = (int(words[i+1]), int(words[i+2]))
        elif word == 'ERRMAP_KCOR_OPT:':
            info.colordisp_enabled = bool(int(words[i+1]))
        elif word == 'RESTLAM_FORCEZEROFLUX:':
            info.restlam_forcezeroflux = tuple(floats(i, 2))
        elif word == 'GENMODEL_EXTRAP_LATETIME:':
            info.latetime_file = words[i+1]

    if len(info.colorlaw_params) != npar:
        raise ValueError('COLORLAW_VERSION {0} needs {1} parameters, got {2}'
                         .format(info.colorlaw_version, npar,
                                 len(info.colorlaw_params)))

    info.validate()
    return info


def read_latetime_file(fname):
    """Read a late-time extrapolation file.

    Returns
    -------
    daymin : float
        Value of the ``EXTRAP_DAYMIN:`` key (0 if absent).
    parlist : `~numpy.ndarray`
        Array of shape (nrows, 4) with columns wave, tau1, tau2, ratio from
        the ``EXTRAP_PARLIST:`` rows.
    """

    with open(os.path.expandvars(fname), 'r') as f:
        words = f.read().split()

    daymin = 0.
    rows = []
    for i, word in enumerate(words):
        if word == 'EXTRAP_DAYMIN:':
            daymin = float(words[i+1])
        elif word == 'EXTRAP_PARLIST:':
            rows.append([float(w) for w in words[i+1:i+5]])

    if len(rows) == 0:
        raise ValueError('no EXTRAP_PARLIST rows in {0!r}'.format(fname))

    return daymin, np.array(rows)
