# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Constants used elsewhere in saltmag."""

import math

import astropy.constants as const
import astropy.units as u

H_ERG_S = const.h.cgs.value
C_AA_PER_S = const.c.to(u.AA / u.s).value
HC_ERG_AA = H_ERG_S * C_AA_PER_S

# Reference wavelengths of the colour law (Angstroms)
U_WAVELENGTH = 3650.88
B_WAVELENGTH = 4302.57
V_WAVELENGTH = 5428.55
R_WAVELENGTH = 6418.01

# x0 normalization of the template surfaces
X0_SCALE = 1.0e-12

# mB = MB_OFFSET - 2.5 log10(x0)
MB_OFFSET = 10.635

# sentinel magnitudes
MAG_ZEROFLUX = 99.0
MAG_UNDEFINED = 128.0

ZEROPOINT_FLUXCAL = 27.5

# 2.5 / ln(10)
MAGERR_PER_FRACERR = 2.5 / math.log(10.)

# phase / wavelength windows used when reading raw grids
PHASE_READ_RANGE = (-20., 200.)
WAVE_READ_RANGE = (500., 30000.)

# colour-law table binning
COLOR_MIN = -2.0
COLOR_MAX = 2.0
COLOR_STEP = 0.01

# interpolation options in the model info file
INTERP_OFF = 0
INTERP_LINEAR = 1
INTERP_SPLINE = 2
