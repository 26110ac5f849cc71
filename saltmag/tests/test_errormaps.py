# Licensed under a 3-clause BSD style license - see LICENSE.rst

import warnings

import numpy as np
from numpy.testing import assert_allclose
import pytest

from saltmag.errormaps import (ErrorMap, ColorDispersion, ErrorMapStore,
                               read_error_maps)
from saltmag.templates import FluxSurface


def make_map(values=None, spline=False, name='VAR0'):
    phase = np.arange(-10., 40.1, 5.)
    wave = np.arange(2000., 9200.1, 400.)
    if values is None:
        p, w = np.meshgrid(phase, wave, indexing='ij')
        values = 1.e-4 * (1. + 0.01 * p + w / 1.e4)
    return ErrorMap(phase, wave, values, name=name, spline=spline)


def make_surface(phase_min=-10., phase_max=40.):
    phase = np.arange(phase_min, phase_max + 0.1, 2.)
    wave = np.arange(2000., 9200.1, 20.)
    zeros = np.zeros((len(phase), len(wave)))
    return FluxSurface(phase, wave, [zeros, zeros])


class TestErrorMap(object):

    def setup_class(self):
        self.errmap = make_map()

    def test_lookup_at_nodes(self):
        m = self.errmap
        assert_allclose(m.linear_lookup(m.phase[3], m.wave[5]),
                        m.values[3, 5])
        assert_allclose(m.linear_lookup(m.phase[-1], m.wave[-1]),
                        m.values[-1, -1])

    def test_lookup_bilinear(self):
        """Exact for a function linear in both coordinates."""
        phase = np.array([-7.3, 0.1, 12.5, 39.9])
        wave = np.array([2100., 4567., 6001., 9150.])
        expected = 1.e-4 * (1. + 0.01 * phase + wave / 1.e4)
        assert_allclose(self.errmap.linear_lookup(phase, wave), expected)

    def test_lookup_outside_grid(self):
        """Queries outside the grid take the edge value."""
        m = self.errmap
        assert_allclose(m.linear_lookup(-30., 1000.), m.values[0, 0])
        assert_allclose(m.linear_lookup(100., 20000.), m.values[-1, -1])

    def test_ranges(self):
        assert self.errmap.phase_range == (-10., 40.)
        assert self.errmap.wave_range == (2000., 9200.)

    def test_no_spline(self):
        with pytest.raises(RuntimeError):
            self.errmap.spline_lookup(0., 5000.)

    def test_covers(self):
        m = self.errmap
        assert m.covers((-10., 40.), (2000., 9200.))
        assert m.covers((-11., 41.), (1991., 9209.))
        assert not m.covers((-12., 40.), (2000., 9200.))
        assert not m.covers((-10., 40.), (2000., 9300.))

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            ErrorMap(np.arange(3.), np.arange(4.), np.ones((4, 3)))


class TestErrorMapSpline(object):

    def setup_class(self):
        self.errmap = make_map(spline=True)

    def test_spline_at_fit_nodes(self):
        """The spline passes through the every-other-node subgrid."""
        m = self.errmap
        assert_allclose(m.spline_lookup(m.phase[2], m.wave[4]),
                        m.values[2, 4], rtol=1e-8)

    def test_spline_close_to_linear(self):
        m = self.errmap
        phase = np.array([-3., 7.5, 22.])
        wave = np.array([3100., 5300., 7700.])
        assert_allclose(m.spline_lookup(phase, wave),
                        m.linear_lookup(phase, wave), rtol=1e-2)

    def test_spline_sign(self):
        m = make_map(values=-1.e-3 * np.ones((11, 19)), spline=True)
        assert_allclose(m.spline_lookup(5., 5000.), -1.e-3)

    def test_zero_values(self):
        m = make_map(values=np.zeros((11, 19)), spline=True)
        assert_allclose(m.spline_lookup(5., 5000.), 1.e-9)


class TestColorDispersion(object):

    def setup_class(self):
        self.cd = ColorDispersion([3000., 4000., 6000.], [0.1, 0.05, 0.03])

    def test_interpolate(self):
        assert_allclose(self.cd(3500.), 0.075)
        assert_allclose(self.cd(6000.), 0.03)

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            self.cd(2999.)
        with pytest.raises(ValueError):
            self.cd(6001.)
        assert not self.cd.in_range(7000.)
        assert self.cd.in_range(4500.)

    def test_empty(self):
        cd = ColorDispersion([], [])
        assert cd(5000.) == 0.
        assert not cd.in_range(5000.)

    def test_single_bin(self):
        cd = ColorDispersion([5000.], [0.1])
        with pytest.raises(ValueError):
            cd(5000.)

    def test_g07(self):
        cd = ColorDispersion.from_g07(np.arange(2000., 9201., 10.))
        assert cd(5000.) == 0.
        assert_allclose(cd(3000.), 0.174345, rtol=1e-4)
        assert cd(7000.) > 0.


def test_store_lookup():
    maps = [make_map(name=name) for name in ('VAR0', 'VAR1', 'COVAR',
                                             'ERRSCALE')]
    store = ErrorMapStore(maps, ColorDispersion([], []), interp=1)
    vals = store.lookup(0., 5000.)
    assert vals.shape == (4,)
    assert_allclose(vals, maps[0].linear_lookup(0., 5000.))
    assert store.phase_range == (-10., 40.)

    store = ErrorMapStore(maps, ColorDispersion([], []), interp=0)
    assert np.all(store.lookup(0., 5000.) == 0.)

    with pytest.raises(ValueError):
        ErrorMapStore(maps, ColorDispersion([], []), interp=3)
    with pytest.raises(ValueError):
        ErrorMapStore(maps[:3], ColorDispersion([], []))


def test_store_coverage_warnings():
    maps = [make_map(name=name) for name in ('VAR0', 'VAR1', 'COVAR',
                                             'ERRSCALE')]
    cd = ColorDispersion([2000., 9200.], [0.1, 0.1])
    store = ErrorMapStore(maps, cd, interp=1)

    with warnings.catch_warnings():
        warnings.simplefilter('error')
        assert store.check_coverage((-10., 40.), (2000., 9200.)) == 0

    with pytest.warns(UserWarning, match='error map VAR1'):
        nbad = store.check_coverage((-20., 40.), (2000., 9200.))
    assert nbad == 4

    with pytest.warns(UserWarning, match='colour dispersion'):
        nbad = store.check_coverage((-10., 40.), (2000., 9500.))
    assert nbad == 5


class TestReadErrorMaps(object):

    def test_read(self, model_dir):
        with warnings.catch_warnings():
            warnings.simplefilter('error')
            store = read_error_maps(model_dir, 'salt2', make_surface(),
                                    interp=1)
        assert [m.name for m in store.maps] == ['VAR0', 'VAR1', 'COVAR',
                                                'ERRSCALE']
        assert_allclose(store.lookup(40., 5000.),
                        [2.e-4, 1.e-3, 1.5e-5, 1.])
        assert_allclose(store.colordisp(2000.), 0.02)
        assert_allclose(store.colordisp(9200.), 0.03)

    def test_read_spline(self, model_dir):
        store = read_error_maps(model_dir, 'salt2', make_surface(),
                                interp=2)
        assert_allclose(store.lookup(0., 5000.)[1], 1.e-3, rtol=1e-8)

    def test_colordisp_disabled(self, model_dir):
        store = read_error_maps(model_dir, 'salt2', make_surface(),
                                colordisp_enabled=False)
        assert store.colordisp(5000.) == 0.

    def test_g07_fallback(self, make_model_dir):
        dirname = make_model_dir(colordisp=False)
        store = read_error_maps(dirname, 'salt2', make_surface(), interp=1)
        assert store.colordisp.nwave == 361
        assert store.colordisp(5000.) == 0.
        assert_allclose(store.colordisp(3000.), 0.174345, rtol=1e-4)

    def test_coverage_gap(self, model_dir):
        surface = make_surface(phase_min=-20.)
        with pytest.warns(UserWarning):
            read_error_maps(model_dir, 'salt2', surface, interp=1)

        with pytest.warns(UserWarning):
            with pytest.raises(ValueError) as excinfo:
                read_error_maps(model_dir, 'salt2', surface, interp=1,
                                strict=True)
        assert '4 error maps' in str(excinfo.value)
