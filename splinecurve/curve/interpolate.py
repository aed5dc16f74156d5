"""Construction and structural operations on native B-spline curves.

Native curves are scipy.interpolate.BSpline objects with coefficient arrays
of shape (n, d), where d is the dimension of the space. Functions here raise
ValueError for invalid input, mirroring the FITPACK error conventions of
scipy.interpolate.
"""

import logging

import numpy
from scipy import interpolate

from . import geometry

logger = logging.getLogger(__name__)

def clamped_knots(num_control_points, k, start=0., end=1.):
    """Return a clamped, uniformly-spaced knot vector.

    Parameters:
    num_control_points: number of control points of the spline.
    k: degree of the spline.
    start, end: the parameter range of the resulting spline.

    Returns an array of num_control_points + k + 1 knots, where the first and
    last k+1 knots are equal to start and end respectively."""
    if num_control_points <= k:
        raise ValueError('A degree {} spline needs more than {} control points'.format(k, k))
    interior = numpy.linspace(start, end, num_control_points - k + 1)[1:-1]
    return numpy.concatenate([[start]*(k+1), interior, [end]*(k+1)])


def from_control_points(control_points, k, knots=None):
    """Build a spline of degree k from a set of control points.

    Parameters:
    control_points: array of shape (n, d)
    k: degree of the spline
    knots: knot vector of length n + k + 1, or None to use a clamped uniform
        knot vector over [0, 1].

    Returns a BSpline."""
    control_points = numpy.asarray(control_points, dtype=float)
    if control_points.ndim != 2:
        raise ValueError('control points must be an array of shape (n, d)')
    if not numpy.isfinite(control_points).all():
        raise ValueError('control points must be finite')
    if k < 1:
        raise ValueError('spline degree must be at least 1')
    n = len(control_points)
    if knots is None:
        knots = clamped_knots(n, k)
    else:
        knots = numpy.asarray(knots, dtype=float)
        if len(knots) != n + k + 1:
            raise ValueError('{} control points of degree {} need {} knots, not {}'.format(n, k, n+k+1, len(knots)))
        if numpy.any(numpy.diff(knots) < 0):
            raise ValueError('knots must be non-decreasing')
        if not knots[k] < knots[n]:
            raise ValueError('knot vector spans an empty parameter range')
    return interpolate.BSpline(knots, control_points, k)


def line(start, end, k):
    """Return a degree-k spline tracing the straight segment from start to end.

    The control points are equally spaced along the segment, so the curve's
    parameter on [0, 1] is proportional to the distance traveled."""
    start = numpy.asarray(start, dtype=float)
    end = numpy.asarray(end, dtype=float)
    if start.shape != end.shape or start.ndim != 1:
        raise ValueError('start and end must be points of the same dimension')
    if numpy.allclose(start, end, rtol=0, atol=0):
        raise ValueError('cannot build a line between coincident points')
    fractions = numpy.linspace(0, 1, k+1)[:,numpy.newaxis]
    control_points = start + fractions * (end - start)
    return from_control_points(control_points, k)


def fit_spline(points, smoothing=None, order=None):
    """Fit a parametric smoothing spline to a given set of points.

    Parameters:
    points: array of n points; shape=(n,d)
    smoothing: smoothing factor: 0 requires perfect interpolation of the
        input points, at the cost of potentially high noise. Very large values
        will result in a low-order polynomial fit to the points. If None, an
        appropriate value based on the scale of the points will be selected.
    order: The desired degree of the spline. If None, will be 1 if there are
        three or fewer input points, and otherwise 3.

    Returns a BSpline whose parameter runs over the cumulative distances along
    the input polyline.

    Note: smoothing factor "s" is an upper bound on the sum of all the distances
    between the original points and the matching points on the smoothed
    spline representation."""
    points = geometry.filter_dup_points(points)
    l = len(points)
    if order is None:
        if l < 4:
            k = 1
        else:
            k = 3
    else:
        k = order
    if not 1 <= k <= 5:
        raise ValueError('1<=k={}<=5 must hold'.format(k))
    if l <= k:
        raise ValueError('A degree {} fit needs more than {} distinct points'.format(k, k))
    # choose input parameter values for the curve as the distances along the polyline:
    # this gives something close to the "natural parameterization" of the curve.
    distances = geometry.cumulative_distances(points, unit=False)

    if smoothing is None:
        smoothing = l * distances[-1] / 600.

    (tck, u), fp, ier, msg = interpolate.splprep(points.T, u=distances, s=smoothing, k=k, full_output=True)
    if ier > 3:
        raise ValueError(msg)
    if ier > 0:
        logger.warning('spline fit: %s', msg)
    t, c, k = tck
    c = numpy.transpose(c)
    c[[0,-1]] = points[[0,-1]]
    return interpolate.BSpline(t, c, k)


def copy_spline(spline):
    """Return a deep copy of a BSpline."""
    return interpolate.BSpline(spline.t.copy(), spline.c.copy(), spline.k, extrapolate=spline.extrapolate)


def parameter_range(spline):
    """Return the (start, end) of the parameter domain of a BSpline."""
    t, k = spline.t, spline.k
    n = len(t) - k - 1
    return float(t[k]), float(t[n])


def reverse(spline):
    """Return a spline tracing the same points in the opposite direction, over
    the same parameter range: new(u) == old(start + end - u)."""
    t, k = spline.t, spline.k
    n = len(t) - k - 1
    start, end = parameter_range(spline)
    new_t = start + end - t[::-1]
    new_c = spline.c[:n][::-1].copy()
    return interpolate.BSpline(new_t, new_c, k, extrapolate=spline.extrapolate)


def greville_abscissae(t, k):
    """Return the Greville abscissae of knot vector t for a degree-k spline:
    the averages of each run of k consecutive knots starting at t[1]."""
    n = len(t) - k - 1
    return numpy.array([t[i+1:i+k+1].mean() for i in range(n)])


def extract(spline, start, end):
    """Return a new spline equal to the given one restricted to [start, end].

    The result has knots clamped at start and end, plus the original knots
    strictly between them. Because the restricted curve lies exactly in that
    spline space, interpolating it at the Greville abscissae reproduces it
    exactly (up to round-off)."""
    t, k = spline.t, spline.k
    domain_start, domain_end = parameter_range(spline)
    if not domain_start <= start < end <= domain_end:
        raise ValueError('section [{}, {}] is not within [{}, {}]'.format(start, end, domain_start, domain_end))
    # knots within round-off of a bound would give near-coincident sites
    margin = (end - start) * 1e-9
    interior = t[(t > start + margin) & (t < end - margin)]
    new_t = numpy.concatenate([[start]*(k+1), interior, [end]*(k+1)])
    # the mean of k equal end knots can round past the knot itself
    sites = numpy.clip(greville_abscissae(new_t, k), start, end)
    values = spline(sites)
    section = interpolate.make_interp_spline(sites, values, k=k, t=new_t)
    # the end control points are exactly the end points of a clamped spline
    section.c[[0,-1]] = spline([start, end])
    return section
