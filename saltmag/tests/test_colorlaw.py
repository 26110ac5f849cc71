# Licensed under a 3-clause BSD style license - see LICENSE.rst

import pickle

import numpy as np
from numpy.testing import assert_allclose
import pytest

from saltmag.colorlaw import (SALT2ColorLaw, SALT2ColorLaw0, ColorLawTable,
                              get_colorlaw)
from saltmag.constants import B_WAVELENGTH, V_WAVELENGTH

COLORLAW_COEFFS = [-0.504294, 0.787691, -0.461715, 0.0815619]
COLORLAW_RANGE = (2800., 7000.)


def colorlaw_python(wave):
    """Direct implementation of the version 1 colour law."""
    v_minus_b = V_WAVELENGTH - B_WAVELENGTH

    l = (wave - B_WAVELENGTH) / v_minus_b
    l_lo = (COLORLAW_RANGE[0] - B_WAVELENGTH) / v_minus_b
    l_hi = (COLORLAW_RANGE[1] - B_WAVELENGTH) / v_minus_b

    alpha = 1. - sum(COLORLAW_COEFFS)
    coeffs = [0., alpha]
    coeffs.extend(COLORLAW_COEFFS)
    coeffs = np.array(coeffs)
    prime_coeffs = (np.arange(len(coeffs)) * coeffs)[1:]

    extinction = np.empty_like(wave)

    # Blue side
    idx_lo = l < l_lo
    p_lo = np.polyval(np.flipud(coeffs), l_lo)
    pprime_lo = np.polyval(np.flipud(prime_coeffs), l_lo)
    extinction[idx_lo] = p_lo + pprime_lo * (l[idx_lo] - l_lo)

    # Red side
    idx_hi = l > l_hi
    p_hi = np.polyval(np.flipud(coeffs), l_hi)
    pprime_hi = np.polyval(np.flipud(prime_coeffs), l_hi)
    extinction[idx_hi] = p_hi + pprime_hi * (l[idx_hi] - l_hi)

    # In between
    idx_between = np.invert(idx_lo | idx_hi)
    extinction[idx_between] = np.polyval(np.flipud(coeffs), l[idx_between])

    return -extinction


def test_salt2colorlaw_vs_python():
    colorlaw = SALT2ColorLaw(COLORLAW_RANGE, COLORLAW_COEFFS)
    wave = np.linspace(2000., 9200., 201)
    assert_allclose(colorlaw(wave), colorlaw_python(wave), rtol=1e-12,
                    atol=1e-12)


def test_salt2colorlaw_reference_points():
    """Colour law is 0 at B and -1 at V."""
    colorlaw = SALT2ColorLaw(COLORLAW_RANGE, COLORLAW_COEFFS)
    assert_allclose(colorlaw([B_WAVELENGTH, V_WAVELENGTH]), [0., -1.],
                    atol=1e-12)


def test_salt2colorlaw_pickle():
    colorlaw = SALT2ColorLaw(COLORLAW_RANGE, COLORLAW_COEFFS)
    colorlaw2 = pickle.loads(pickle.dumps(colorlaw))
    wave = np.linspace(2000., 9200., 201)
    assert np.all(colorlaw(wave) == colorlaw2(wave))


def test_salt2colorlaw_too_many_coeffs():
    with pytest.raises(ValueError):
        SALT2ColorLaw(COLORLAW_RANGE, [0.1] * 7)


class TestColorLaw0(object):

    def setup_class(self):
        self.colorlaw = SALT2ColorLaw0(0.2, -0.1)

    def test_reference_points(self):
        assert_allclose(self.colorlaw([B_WAVELENGTH, V_WAVELENGTH]),
                        [0., -1.], atol=1e-12)

    def test_constant_outside_range(self):
        assert_allclose(self.colorlaw([1000., 2000., 2800.]),
                        self.colorlaw(2800.))
        assert_allclose(self.colorlaw([7000., 8000., 20000.]),
                        self.colorlaw(7000.))


def test_get_colorlaw():
    cl = get_colorlaw(0, [B_WAVELENGTH, V_WAVELENGTH, 0.2, -0.1])
    assert isinstance(cl, SALT2ColorLaw0)

    params = [B_WAVELENGTH, V_WAVELENGTH, 2800., 7000., 4] + COLORLAW_COEFFS
    cl = get_colorlaw(1, params)
    wave = np.linspace(2000., 9200., 201)
    assert_allclose(cl(wave), colorlaw_python(wave), rtol=1e-12, atol=1e-12)

    # fewer polynomial terms than stored coefficients
    cl = get_colorlaw(1, [B_WAVELENGTH, V_WAVELENGTH, 2800., 7000., 2] +
                      COLORLAW_COEFFS)
    ref = SALT2ColorLaw(COLORLAW_RANGE, COLORLAW_COEFFS[:2])
    assert_allclose(cl(wave), ref(wave))


@pytest.mark.parametrize('version,params', [
    (2, [B_WAVELENGTH, V_WAVELENGTH, 0., 0.]),
    (0, [B_WAVELENGTH, V_WAVELENGTH, 0.]),
    (1, [B_WAVELENGTH, V_WAVELENGTH, 2800., 7000.]),
    (1, [B_WAVELENGTH, V_WAVELENGTH, 2800., 7000., 5, 0., 0., 0., 0.])])
def test_get_colorlaw_invalid(version, params):
    with pytest.raises(ValueError):
        get_colorlaw(version, params)


class TestColorLawTable(object):

    def setup_class(self):
        self.colorlaw = SALT2ColorLaw(COLORLAW_RANGE, COLORLAW_COEFFS)
        self.wave = np.arange(2000., 9201., 10.)
        self.table = ColorLawTable(self.colorlaw, self.wave)

    def test_binning(self):
        assert len(self.table.color) == 401
        assert self.table.values.shape == (401, len(self.wave))

    def test_endpoints(self):
        """Colour grid endpoints are exactly the requested range."""
        assert self.table.color[0] == -2.0
        assert self.table.color[-1] == 2.0

    def test_endpoint_values(self):
        cl = self.colorlaw(self.wave)
        assert_allclose(self.table.values[0], 10.**(0.8 * cl))
        assert_allclose(self.table.values[-1], 10.**(-0.8 * cl))

    def test_lookup_at_nodes(self):
        wave = self.wave[[10, 200, 500]]
        for c in (-2., -0.1, 0., 0.25, 2.):
            expected = 10.**(-0.4 * self.colorlaw(wave) * c)
            assert_allclose(self.table(c, wave), expected, rtol=1e-10)

    def test_lookup_between_nodes(self):
        """Bilinear interpolation is close to the exact value."""
        wave = np.array([3005., 5555., 8123.])
        c = 0.123
        expected = 10.**(-0.4 * self.colorlaw(wave) * c)
        assert_allclose(self.table(c, wave), expected, rtol=1e-4)

    def test_color_offset(self):
        table = ColorLawTable(self.colorlaw, self.wave, color_offset=0.1)
        assert_allclose(table(0.1, self.wave[:-1]), 1.)
