# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""The SALT2 model: loading, magnitudes, errors and spectra."""

import math
import os
import warnings

import numpy as np
from astropy.table import Table

from . import conf
from .colorlaw import ColorLawTable, get_colorlaw
from .constants import (HC_ERG_AA, MAG_UNDEFINED, MAG_ZEROFLUX, MB_OFFSET,
                        PHASE_READ_RANGE, WAVE_READ_RANGE, X0_SCALE,
                        U_WAVELENGTH, B_WAVELENGTH, V_WAVELENGTH,
                        R_WAVELENGTH)
from .errmodel import ErrorModel
from .errormaps import read_error_maps
from .filters import (Filter, host_transmission, mw_transmission,
                      spectrograph_zeropoints)
from .integrate import integrate_flux, integrate_spectrograph
from .io import read_model_info, read_sed_grid
from .latetime import LateTimeModel
from .templates import build_flux_surface

__all__ = ['SALT2Model', 'load_model', 'get_model_path', 'x0_from_distmod',
           'distmod_from_x0', 'mb_from_x0']

# initialization option bits
OPTMASK_STRICT_ERRMAP = 64

# magnitude option bits
MAGOPT_RETURN_FLUX = 1
MAGOPT_WARN_BADFLUX = 2
MAGOPT_NO_ERROR = 4
MAGOPT_DUMP = 8

# phase tolerance at the template edges
_EPS_PHASE = 1.e-5

# model fluxes at or below this are treated as zero
_FLUX_MIN = 1.e-30

# look-back window (days) for the flux slope used to extrapolate
_NDAY_SLOPE = 3.

# spectra are only computed this far inside the template edges
_SPEC_PHASE_MARGIN = 0.1

_SUMMARY_WAVES = [2000., 2500., 3000., U_WAVELENGTH, 3560., 3900.,
                  B_WAVELENGTH, 4720., V_WAVELENGTH, 6185., R_WAVELENGTH,
                  7500., 8030., 8500., 9210., 9940.]

_MODELS = {}


def x0_from_distmod(alpha, beta, x1, c, dlmag):
    """Amplitude x0 for a distance modulus and standardization
    parameters."""
    arg = 0.4 * (dlmag - alpha * x1 + beta * c)
    return 1. / (X0_SCALE * 10.**arg)


def distmod_from_x0(x0):
    """Distance modulus of amplitude x0 for ``alpha*x1 = beta*c = 0``."""
    return -2.5 * math.log10(x0 * X0_SCALE)


def mb_from_x0(x0):
    """Rest-frame peak B magnitude corresponding to amplitude x0."""
    return MB_OFFSET - 2.5 * math.log10(x0)


def _is_ignored(fname):
    return fname is None or fname == '' or fname.upper() in ('NONE',
                                                             'BLANK')


class SALT2Model(object):
    """The SALT2 light-curve model.

    Parameters
    ----------
    surface : `~saltmag.FluxSurface`
    cltable : `~saltmag.ColorLawTable`
    errmodel : `~saltmag.ErrorModel`
    info : `~saltmag.ModelInfo`
    latetime : `~saltmag.LateTimeModel`, optional
        If given, magnitudes past ``latetime.daymin`` are extrapolated
        analytically instead of from the flux surface.
    colorlaw : callable, optional
        Colour law used for `error_summary`.
    name : str, optional
    magsmear : callable, optional
        ``magsmear(phase, wave_rest)`` returning magnitude offsets that
        are applied to the flux in each filter bin.
    mw_r_v : float, optional
        R_V of the Milky Way dust law. Default is 3.1.

    Notes
    -----
    The tables are only read after construction; the same model can be
    shared by independent callers.
    """

    def __init__(self, surface, cltable, errmodel, info, latetime=None,
                 colorlaw=None, name=None, magsmear=None, mw_r_v=3.1):
        if not np.allclose(cltable.wave, surface.wave):
            raise ValueError('colour table wavelength bins do not match the '
                             'flux surface')
        self.surface = surface
        self.cltable = cltable
        self.errmodel = errmodel
        self.info = info
        self.latetime = latetime
        self.colorlaw = colorlaw
        self.name = name
        self.magsmear = magsmear
        self.mw_r_v = mw_r_v
        self._filters = {}

    @classmethod
    def read(cls, modeldir, version=None, extrap_latetime=None,
             optmask=0):
        """Read a model from a directory.

        Parameters
        ----------
        modeldir : str
            Directory with ``SALT2.INFO``, the templates, the error maps
            and the colour dispersion.
        version : str, optional
            Model version; default is the directory name. Versions
            containing ``'SALT3'`` read files with a ``salt3`` prefix and
            drop the stretch ratio from the error; versions containing
            ``'P18'`` use a relaxed check of the refined templates.
        extrap_latetime : str, optional
            Late-time model file, overriding the one in ``SALT2.INFO``.
        optmask : int, optional
            Bit 64: raise ValueError if any error map does not cover the
            templates.
        """

        if version is None:
            version = os.path.basename(os.path.normpath(modeldir))
        salt3 = 'SALT3' in version
        prefix = 'salt3' if salt3 else 'salt2'
        relax = 'P18' in version

        info = read_model_info(os.path.join(modeldir, 'SALT2.INFO'))
        if not _is_ignored(extrap_latetime):
            info.latetime_file = extrap_latetime

        raw_grids = []
        for i in range(2):
            fname = os.path.join(modeldir,
                                 '{0}_template_{1}.dat'.format(prefix, i))
            raw_grids.append(read_sed_grid(fname, PHASE_READ_RANGE,
                                           WAVE_READ_RANGE))
        rebin_phase, rebin_wave = info.sed_rebin
        surface = build_flux_surface(raw_grids, interp=info.sedflux_interp,
                                     rebin_phase=rebin_phase,
                                     rebin_wave=rebin_wave, relax=relax)

        errmaps = read_error_maps(
            modeldir, prefix, surface, interp=info.errmap_interp,
            colordisp_enabled=info.colordisp_enabled,
            strict=bool(optmask & OPTMASK_STRICT_ERRMAP))

        colorlaw = get_colorlaw(info.colorlaw_version, info.colorlaw_params)
        cltable = ColorLawTable(colorlaw, surface.wave,
                                color_offset=info.color_offset)

        errmodel = ErrorModel(errmaps, floor=info.magerr_floor,
                              lamobs_fudge=info.magerr_lamobs,
                              lamrest_fudge=info.magerr_lamrest,
                              salt3=salt3)

        latetime = None
        if not _is_ignored(info.latetime_file):
            latetime = LateTimeModel.read(os.path.expandvars(
                info.latetime_file))

        return cls(surface, cltable, errmodel, info, latetime=latetime,
                   colorlaw=colorlaw, name=version)

    # ------------------------------------------------------------------
    # filters

    def add_filter(self, ifilt, filt):
        """Register a `~saltmag.Filter` under an observer-filter id."""
        if not isinstance(filt, Filter):
            raise TypeError('filt must be a Filter')
        self._filters[ifilt] = filt

    def get_filter(self, band):
        """Return a registered filter, or `band` itself if it is a
        `~saltmag.Filter`."""
        if isinstance(band, Filter):
            return band
        try:
            return self._filters[band]
        except KeyError:
            raise ValueError('no filter registered with id {0!r}'
                             .format(band))

    def _check_filter_range(self, filt, z):
        wave_rest = filt.wave_mean / (1. + z)
        lo, hi = self.info.restlam_range
        if not (lo <= wave_rest <= hi):
            raise ValueError('filter {0!r}: mean rest-frame wavelength '
                             '{1:.1f} A at z={2:.4f} outside valid range '
                             '{3:.1f} to {4:.1f} A'
                             .format(filt.name, wave_rest, z, lo, hi))

    # ------------------------------------------------------------------
    # photometry

    def _integrate(self, filt, z, tobs, x0, x1, c, mwfrac, hostfrac):
        return integrate_flux(self.surface, self.cltable, filt.wave,
                              filt.trans, filt.wave_step, z, tobs, x0, x1,
                              c, mwfrac=mwfrac, hostfrac=hostfrac,
                              magsmear=self.magsmear)

    def _dust(self, wave, z, mwebv, rv_host, av_host):
        return (mw_transmission(wave, mwebv, self.mw_r_v),
                host_transmission(wave, z, av_host, rv_host))

    def bandmag(self, band, tobs, x0, x1, c, z, mwebv=0., rv_host=0.,
                av_host=0., x1_forerr=None, z_forerr=None, optmask=0):
        """Magnitudes and model errors in a filter.

        Parameters
        ----------
        band : int or `~saltmag.Filter`
            Registered filter id, or a filter.
        tobs : float or list_like
            Observer-frame times relative to peak (days).
        x0, x1, c : float
            Model parameters.
        z : float
            Redshift.
        mwebv : float, optional
            Milky Way E(B-V).
        rv_host, av_host : float, optional
            Host-galaxy dust; ignored unless both are positive.
        x1_forerr, z_forerr : float, optional
            Stretch and redshift used only for the error. Default is
            `x1` and `z`.
        optmask : int, optional
            Bit 1: return ``10**(-0.4*mag)`` instead of magnitudes.
            Bit 2: warn when the model flux is not positive.
            Bit 4: skip the error (errors are 0).
            Bit 8: print a dump for each epoch.

        Returns
        -------
        mag, magerr : `~numpy.ndarray`
        """

        filt = self.get_filter(band)
        ndim = np.ndim(tobs)
        tobs = np.atleast_1d(np.asarray(tobs, dtype=np.float64))
        if x1_forerr is None:
            x1_forerr = x1
        if z_forerr is None:
            z_forerr = z

        z1 = 1. + z
        wave_rest = filt.wave_mean / z1
        self._check_filter_range(filt, z)
        mwfrac, hostfrac = self._dust(filt.wave, z, mwebv, rv_host, av_host)

        surface = self.surface
        latetime = self.latetime
        zerolo, zerohi = self.info.restlam_forcezeroflux

        mags = np.empty(len(tobs))
        magerrs = np.zeros(len(tobs))
        for i, t in enumerate(tobs):
            trest = t / z1

            extrap_flux = 0
            extrap_mag = False
            trest_interp = trest
            if trest <= surface.phase_min + _EPS_PHASE:
                extrap_flux = -1
                trest_interp = surface.phase_min + _EPS_PHASE
            elif trest >= surface.phase_max - _EPS_PHASE:
                extrap_flux = 1
                trest_interp = surface.phase_max - _EPS_PHASE

            if latetime is not None and trest > latetime.daymin:
                trest_interp = latetime.daymin
                extrap_flux = 0
                extrap_mag = True

            flux, fratio = self._integrate(filt, z, trest_interp * z1, x0,
                                           x1, c, mwfrac, hostfrac)

            if extrap_flux != 0:
                # slope from the last few days of the model
                nday = _NDAY_SLOPE * extrap_flux
                flux_edge = flux
                flux_tmp, fratio = self._integrate(
                    filt, z, (trest_interp - nday) * z1, x0, x1, c, mwfrac,
                    hostfrac)
                slope = -(flux_tmp - flux_edge) / nday
                flux = max(flux_edge + slope * (trest - trest_interp), 0.)

            if zerolo < wave_rest < zerohi:
                flux = 0.

            if flux <= _FLUX_MIN or np.isnan(flux):
                if optmask & MAGOPT_WARN_BADFLUX:
                    warnings.warn('Flux({0}) <= 0 at Trest = {1:6.2f}: '
                                  'return mag={2:.0f}'
                                  .format(filt.name, trest, MAG_ZEROFLUX))
                mag = MAG_ZEROFLUX
            else:
                mag = filt.zp - 2.5 * math.log10(flux) + self.info.mag_offset
                if extrap_mag:
                    mag = latetime.extrapolate(mag, trest, wave_rest)

            if optmask & MAGOPT_RETURN_FLUX:
                mag = 10.**(-0.4 * mag)
            mags[i] = mag

            dump = bool(optmask & MAGOPT_DUMP)
            if dump:
                print('bandmag dump: Trest({0}) = {1:6.2f} LAMrest = {2:6.0f}'
                      ' z={3:6.4f}'.format(filt.name, trest, wave_rest, z))
                print('  flux={0:e} mag={1:f} x1={2:6.3f} c={3:6.3f}'
                      .format(flux, mag, x1, c))
                print('  ZP={0:f} mwebv={1:f} colorCor={2:f}'
                      .format(filt.zp, mwebv,
                              float(self.cltable(c, wave_rest))))

            if not (optmask & MAGOPT_NO_ERROR):
                z1_forerr = 1. + z_forerr
                magerrs[i] = self.errmodel.magerr(
                    t / z1_forerr, filt.wave_mean / z1_forerr, z_forerr,
                    x1_forerr, fratio, dump=dump)

        if ndim == 0:
            return mags[0], magerrs[0]
        return mags, magerrs

    def bandflux(self, band, tobs, x0, x1, c, z, mwebv=0., rv_host=0.,
                 av_host=0.):
        """Flux ``10**(-0.4*mag)`` in a filter; see `bandmag`."""
        flux, _ = self.bandmag(band, tobs, x0, x1, c, z, mwebv=mwebv,
                               rv_host=rv_host, av_host=av_host,
                               optmask=MAGOPT_RETURN_FLUX | MAGOPT_NO_ERROR)
        return flux

    def covariance(self, bands, tobs, x0, x1, c, z, mwebv=0., rv_host=0.,
                   av_host=0.):
        """Covariance matrix of model magnitudes (mag^2).

        Parameters
        ----------
        bands : list_like
            Filter id (or `~saltmag.Filter`) of each epoch.
        tobs : list_like
            Observer-frame time of each epoch.
        x0, x1, c, z, mwebv, rv_host, av_host : float
            As for `bandmag`.

        Returns
        -------
        cov : `~numpy.ndarray`
            Symmetric array of shape ``(len(tobs), len(tobs))``.
        """

        dust = {}

        def fratio(band, t):
            filt = self.get_filter(band)
            if band not in dust:
                dust[band] = self._dust(filt.wave, z, mwebv, rv_host,
                                        av_host)
            mwfrac, hostfrac = dust[band]
            return self._integrate(filt, z, t, x0, x1, c, mwfrac,
                                   hostfrac)[1]

        def wave_mean(band):
            return self.get_filter(band).wave_mean

        return self.errmodel.covariance(list(bands), np.asarray(tobs), z, x1,
                                        wave_mean, fratio)

    # ------------------------------------------------------------------
    # spectra

    def spectrum(self, tobs, z, x0, x1, c, lammin, lammax, mwebv=0.,
                 rv_host=0., av_host=0., zp=None):
        """Flux and magnitude in each bin of a spectrograph.

        Parameters
        ----------
        tobs, z, x0, x1, c, mwebv, rv_host, av_host : float
            As for `bandmag`, for a single epoch.
        lammin, lammax : list_like
            Observer-frame wavelength edges of each bin.
        zp : list_like, optional
            Zero point of each bin. Default is the AB zero point of a
            top-hat bin.

        Returns
        -------
        flux : `~numpy.ndarray`
            Flux in each bin; all zero if the rest-frame phase is not
            inside the template range.
        mag : `~numpy.ndarray`
            Magnitude in each bin; 128 where the flux or zero point is not
            positive.
        """

        lammin = np.asarray(lammin, dtype=np.float64)
        lammax = np.asarray(lammax, dtype=np.float64)
        if zp is None:
            zp = spectrograph_zeropoints(lammin, lammax)
        zp = np.asarray(zp, dtype=np.float64)
        z1 = 1. + z
        lam = 0.5 * (lammin + lammax)

        flux = np.zeros(len(lam))
        trest = tobs / z1
        if (self.surface.phase_min + _SPEC_PHASE_MARGIN <= trest <=
                self.surface.phase_max - _SPEC_PHASE_MARGIN):
            mwfrac, hostfrac = self._dust(lam, z, mwebv, rv_host, av_host)
            flux = integrate_spectrograph(self.surface, self.cltable, lammin,
                                          lammax, z, tobs, x0, x1, c,
                                          mwfrac=mwfrac, hostfrac=hostfrac,
                                          magsmear=self.magsmear)
            flux *= 10.**(-0.4 * self.info.mag_offset)

        ftmp = lam / (HC_ERG_AA * z1) * flux
        mag = np.full(len(lam), MAG_UNDEFINED)
        ok = (zp > 0.) & (ftmp > 0.)
        mag[ok] = zp[ok] - 2.5 * np.log10(ftmp[ok])

        return flux, mag

    def band_spectrum(self, band, tobs, z, x0, x1, c, mwebv=0.):
        """Model flux in each wavelength bin of a filter.

        Returns
        -------
        wave, flux : `~numpy.ndarray`
            Filter wavelength bins and flux per bin. Both are empty if the
            rest-frame phase is not strictly inside the template range.
        """

        filt = self.get_filter(band)
        trest = tobs / (1. + z)
        if not (self.surface.phase_min < trest < self.surface.phase_max):
            return np.array([]), np.array([])

        mwfrac = mw_transmission(filt.wave, mwebv, self.mw_r_v)
        _, _, fspec = integrate_flux(self.surface, self.cltable, filt.wave,
                                     filt.trans, filt.wave_step, z, tobs, x0,
                                     x1, c, mwfrac=mwfrac,
                                     magsmear=self.magsmear, spectrum=True)
        return filt.wave.copy(), fspec

    # ------------------------------------------------------------------
    # diagnostics

    def error_summary(self, waves=None):
        """Colour law and model errors at peak versus wavelength.

        Returns
        -------
        summary : `~astropy.table.Table`
            Columns are the wavelength, the colour correction for
            ``c = 1``, the fractional error of component 0 at peak for
            ``x1 = 0`` and the colour dispersion (0 outside its range).
        """
        if waves is None:
            waves = _SUMMARY_WAVES
        errmaps = self.errmodel.errmaps
        colorcor = []
        s0fracerr = []
        colordisp = []
        for wave in waves:
            if self.colorlaw is None:
                colorcor.append(np.nan)
            else:
                cl = float(self.colorlaw(wave))
                colorcor.append(10.**(-0.4 * cl * (1. -
                                                   self.info.color_offset)))
            var0, _, _, errscale = errmaps.lookup(0., wave)
            s0fracerr.append(errscale * math.sqrt(max(var0, 0.)))
            if errmaps.colordisp.in_range(wave):
                colordisp.append(errmaps.colordisp(wave))
            else:
                colordisp.append(0.)
        return Table([np.asarray(waves, dtype=np.float64), colorcor,
                      s0fracerr, colordisp],
                     names=('wave', 'colorcor', 's0fracerr', 'colordisp'))

    def __repr__(self):
        name = ''
        if self.name is not None:
            name = ' {0!r:s}'.format(self.name)
        return "<{0:s}{1:s} at 0x{2:x}>".format(self.__class__.__name__,
                                                 name, id(self))

    def __str__(self):
        s = self.__class__.__name__
        if self.name is not None:
            s += ' ' + self.name
        s += '\n' + repr(self.surface)
        s += '\n' + repr(self.info)
        if self.latetime is not None:
            s += '\nlate-time extrapolation from day {0:.1f}'.format(
                self.latetime.daymin)
        return s


def get_model_path(version):
    """Directory of a model version.

    ``conf.model_dir`` takes precedence. Otherwise a version containing a
    path separator is used as is, and anything else is looked up under
    ``<root>/models/SALT2/``, where root is ``conf.sndata_root`` or the
    ``SNDATA_ROOT`` environment variable.
    """
    name = os.path.basename(os.path.normpath(version))
    if conf.model_dir is not None:
        return os.path.join(conf.model_dir, name)
    if os.sep in version:
        return version
    root = conf.sndata_root
    if root is None:
        root = os.environ.get('SNDATA_ROOT')
    if root is None:
        raise ValueError('cannot locate model {0!r}: set saltmag.conf.'
                         'model_dir, saltmag.conf.sndata_root or the '
                         'SNDATA_ROOT environment variable'.format(version))
    return os.path.join(root, 'models', 'SALT2', name)


def load_model(version, extrap_latetime=None, optmask=0, magsmear=None):
    """Load a model version, reusing an already loaded one.

    Parameters
    ----------
    version : str
        Model version name or directory; see `get_model_path`.
    extrap_latetime : str, optional
        Late-time model file overriding the model's ``SALT2.INFO``.
    optmask : int, optional
        Initialization options; see `SALT2Model.read`.
    magsmear : callable, optional
        Intrinsic scatter callback, set on the returned model.

    Returns
    -------
    model : SALT2Model
    """
    try:
        model = _MODELS[version]
    except KeyError:
        path = get_model_path(version)
        model = SALT2Model.read(path,
                                version=os.path.basename(
                                    os.path.normpath(version)),
                                extrap_latetime=extrap_latetime,
                                optmask=optmask)
        _MODELS[version] = model

    model.magsmear = magsmear
    return model
