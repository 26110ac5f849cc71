# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Fixtures writing a small synthetic SALT2 model to disk."""

import os

import numpy as np
import pytest

from saltmag.io import write_griddata_ascii

INFO_TEMPLATE = """\
RESTLAMBDA_RANGE: 2500 8000
COLORLAW_VERSION: 1
COLORCOR_PARAMS: 2800 7000 4 -0.504294 0.787691 -0.461715 0.0815619
COLOR_OFFSET: 0.0
MAG_OFFSET: 0.27
MAGERR_FLOOR: 0.005
MAGERR_LAMOBS: 0.0 0 0
MAGERR_LAMREST: 0.1 100 200
SEDFLUX_INTERP_OPT: 2
ERRMAP_INTERP_OPT: 1
ERRMAP_KCOR_OPT: 1
{extra}
"""

LATETIME = """\
EXTRAP_DAYMIN: 30.0
EXTRAP_PARLIST: 3000.  10.  40.  0.10
EXTRAP_PARLIST: 6000.  12.  50.  0.05
EXTRAP_PARLIST: 9000.  15.  60.  0.02
"""

TEMPLATE_PHASE = np.arange(-10., 40.1, 2.)
TEMPLATE_WAVE = np.arange(2000., 9200.1, 20.)
ERRMAP_PHASE = np.arange(-10., 40.1, 5.)
ERRMAP_WAVE = np.arange(2000., 9200.1, 400.)


def template_flux(phase, wave):
    """Flux of the two components on a (phase, wave) grid."""
    p, w = np.meshgrid(phase, wave, indexing='ij')
    m0 = ((np.exp(-0.5 * (p / 10.)**2) + 0.05) *
          np.exp(-0.5 * ((w - 5000.) / 2500.)**2))
    m1 = m0 * (0.02 + 0.001 * (p + 10.))
    return m0, m1


def write_model(dirname, extra_info='', prefix='salt2', colordisp=True):
    """Write a complete synthetic model into `dirname`."""
    if not os.path.exists(dirname):
        os.makedirs(dirname)

    m0, m1 = template_flux(TEMPLATE_PHASE, TEMPLATE_WAVE)
    for i, m in enumerate((m0, m1)):
        write_griddata_ascii(TEMPLATE_PHASE, TEMPLATE_WAVE, m,
                             os.path.join(dirname, '{0}_template_{1}.dat'
                                          .format(prefix, i)))

    p, w = np.meshgrid(ERRMAP_PHASE, ERRMAP_WAVE, indexing='ij')
    maps = {'lc_relative_variance_0': 1.e-4 * (1. + (p / 40.)**2),
            'lc_relative_variance_1': 1.e-3 * np.ones_like(p),
            'lc_relative_covariance_01': 1.e-5 * (1. + w / 10000.),
            'lc_dispersion_scaling': np.ones_like(p)}
    for key, values in maps.items():
        write_griddata_ascii(ERRMAP_PHASE, ERRMAP_WAVE, values,
                             os.path.join(dirname, '{0}_{1}.dat'
                                          .format(prefix, key)))

    with open(os.path.join(dirname, '{0}_color_dispersion.dat'
                           .format(prefix)), 'w') as f:
        if colordisp:
            for wave in np.arange(2000., 9201., 100.):
                f.write('{0:.1f} {1:.6f}\n'.format(
                    wave, 0.02 + 0.01 * (wave - 2000.) / 7200.))

    with open(os.path.join(dirname, 'latetime.dat'), 'w') as f:
        f.write(LATETIME)

    with open(os.path.join(dirname, 'SALT2.INFO'), 'w') as f:
        f.write(INFO_TEMPLATE.format(extra=extra_info))

    return dirname


@pytest.fixture(scope='session')
def model_dir(tmpdir_factory):
    """Directory with the default synthetic model."""
    return write_model(str(tmpdir_factory.mktemp('models').join('SALT2.test')))


@pytest.fixture
def make_model_dir(tmpdir):
    """Factory writing a synthetic model with extra SALT2.INFO lines."""
    def make(name='SALT2.test', extra_info='', prefix='salt2',
             colordisp=True):
        return write_model(str(tmpdir.join(name)), extra_info=extra_info,
                           prefix=prefix, colordisp=colordisp)
    return make
