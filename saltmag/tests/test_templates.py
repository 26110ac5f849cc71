# Licensed under a 3-clause BSD style license - see LICENSE.rst

import numpy as np
from numpy.testing import assert_allclose
import pytest

from saltmag.templates import (FluxSurface, build_flux_surface,
                               _validate_refinement)


def raw_grids():
    phase = np.arange(-10., 20.1, 2.)
    wave = np.arange(3000., 7001., 50.)
    p, w = np.meshgrid(phase, wave, indexing='ij')
    m0 = (np.exp(-0.5 * (p / 8.)**2) + 0.1) * (1. + 0.3 * np.sin(w / 700.))
    m1 = 0.05 * m0 * (1. + 0.01 * p)
    return [(phase, wave, m0), (phase, wave, m1)]


class TestRefinedSurface(object):

    def setup_class(self):
        self.raw = raw_grids()
        self.surface = build_flux_surface(self.raw, interp=2, rebin_phase=5,
                                          rebin_wave=2)

    def test_binning(self):
        phase, wave, _ = self.raw[0]
        s = self.surface
        assert s.nphase == 5 * len(phase)
        assert s.nwave == 2 * len(wave)
        assert_allclose(s.phase_step, 0.4)
        assert_allclose(s.wave_step, 25.)
        assert s.phase_min == phase[0]
        assert s.phase_max == phase[-1]
        assert s.wave_min == wave[0]
        assert s.wave_max == wave[-1]
        for f in s.flux:
            assert f.shape == (s.nphase, s.nwave)

    def test_reproduces_original_nodes(self):
        for (phase, wave, raw), table in zip(self.raw, self.surface.flux):
            assert_allclose(table[::5, ::2], raw, rtol=1e-10)

    def test_between_nodes(self):
        """Refined values are close to the underlying smooth function."""
        s = self.surface
        p, w = np.meshgrid(s.phase, s.wave, indexing='ij')
        m0 = ((np.exp(-0.5 * (p / 8.)**2) + 0.1) *
              (1. + 0.3 * np.sin(w / 700.)))
        inside = (p <= s.phase_max) & (w <= s.wave_max)
        assert_allclose(s.flux[0][inside], m0[inside], rtol=5e-3)

    def test_immutable(self):
        with pytest.raises(ValueError):
            self.surface.flux[0][0, 0] = 1.


def test_direct_surface():
    raw = raw_grids()
    s = build_flux_surface(raw, interp=1)
    assert s.nphase == len(raw[0][0])
    assert s.nwave == len(raw[0][1])
    for (_, _, m), f in zip(raw, s.flux):
        assert np.all(f == m)


def test_mismatched_binning():
    raw = raw_grids()
    phase, wave, m1 = raw[1]
    raw[1] = (phase[:-1], wave, m1[:-1])
    with pytest.raises(ValueError) as excinfo:
        build_flux_surface(raw)
    assert 'SED-1' in str(excinfo.value)


def test_nonuniform_binning():
    raw = raw_grids()
    phase, wave, m0 = raw[0]
    phase = phase.copy()
    phase[3] += 0.5
    raw[0] = (phase, wave, m0)
    with pytest.raises(ValueError):
        build_flux_surface(raw)


def test_invalid_interp_option():
    with pytest.raises(ValueError):
        build_flux_surface(raw_grids(), interp=3)


class TestValidateRefinement(object):

    def setup_class(self):
        self.phase, self.wave, self.raw = raw_grids()[0]

    def validate(self, table, relax=False):
        _validate_refinement(0, self.phase, self.wave, self.raw, table, 1, 1,
                             relax)

    def test_exact(self):
        self.validate(self.raw.copy())

    def test_bad_node(self):
        table = self.raw.copy()
        table[4, 6] *= 1.01
        with pytest.raises(ValueError) as excinfo:
            self.validate(table)
        msg = str(excinfo.value)
        assert 'Bad SED-0 interp at PHASE[4]' in msg
        assert 'WAVE[6]' in msg
        assert 'LAM\\DAY' in msg

        with pytest.raises(ValueError):
            self.validate(table, relax=True)

    def test_relaxed_tolerance(self):
        table = self.raw.copy()
        table[4, 6] *= 1.0001
        with pytest.raises(ValueError):
            self.validate(table)
        self.validate(table, relax=True)

    def test_first_nodes_not_checked(self):
        table = self.raw.copy()
        table[0, :] *= 2.
        table[:, 0] *= 2.
        self.validate(table)

    def test_negligible_flux_skipped_when_relaxed(self):
        raw = self.raw.copy()
        raw[4, 6] = 1.e-30
        table = raw.copy()
        table[4, 6] = 2.e-30
        with pytest.raises(ValueError):
            _validate_refinement(0, self.phase, self.wave, raw, table, 1, 1,
                                 False)
        _validate_refinement(0, self.phase, self.wave, raw, table, 1, 1, True)


def test_flux_surface_shape_check():
    phase = np.arange(3.)
    wave = np.arange(4.)
    with pytest.raises(ValueError):
        FluxSurface(phase, wave, [np.ones((3, 4)), np.ones((4, 3))])
    with pytest.raises(ValueError):
        FluxSurface(phase, wave, [np.ones((3, 4))])
