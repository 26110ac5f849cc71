# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""Small numerical helpers shared by the table builders."""

import numpy as np

__all__ = []


def check_uniform_bins(x, name, rtol=1.e-4):
    """Raise ValueError if the 1-d array `x` is not uniformly spaced.

    Returns the common bin step.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1 or len(x) < 2:
        raise ValueError('{0}: need at least 2 bins, got {1}'
                         .format(name, x.size))
    d = np.ediff1d(x)
    step = d[0]
    if step <= 0.:
        raise ValueError('{0}: bins must be monotonically increasing'
                         .format(name))
    bad = np.flatnonzero(np.abs(d - step) > rtol * step)
    if len(bad) > 0:
        i = bad[0]
        raise ValueError('{0}: non-uniform bins; step between bin {1} '
                         '({2:.4f}) and bin {3} ({4:.4f}) is {5:.4f}, '
                         'expected {6:.4f}'
                         .format(name, i, x[i], i + 1, x[i+1], d[i], step))
    return step


def quad_weights(x, x0, x1, x2):
    """Lagrange weights of a quadratic through three nodes, evaluated at x.

    All arguments broadcast. ``w0*y0 + w1*y1 + w2*y2`` is the interpolated
    value.
    """
    w0 = (x - x1) * (x - x2) / ((x0 - x1) * (x0 - x2))
    w1 = (x - x0) * (x - x2) / ((x1 - x0) * (x1 - x2))
    w2 = (x - x0) * (x - x1) / ((x2 - x0) * (x2 - x1))
    return w0, w1, w2


def uniform_index(x, xmin, xstep, n, clip_frac=False):
    """Lower node index and fractional offset of `x` on a uniform grid.

    The index is clipped to ``[0, n-2]`` so that ``i+1`` is always a valid
    node. The fraction is left unclipped unless `clip_frac` is True.
    """
    x = np.asarray(x, dtype=np.float64)
    i = np.trunc((x - xmin) / xstep).astype(int)
    i = np.clip(i, 0, n - 2)
    frac = (x - (xmin + i * xstep)) / xstep
    if clip_frac:
        frac = np.clip(frac, 0., 1.)
    return i, frac
