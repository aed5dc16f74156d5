"""Geometric queries over native B-spline curves, in native parameter space.

Every query returns its result together with an integer status, in the manner
of the SISL curve routines: 0 means success, a positive status is a warning
(the result is usable), and a negative status is an error (the result is not).
Positions are returned in the world frame, i.e. as 3-vectors, with 2D curves
embedded in the z=0 plane.
"""

import logging

import numpy
from scipy import integrate
from scipy import optimize

from . import geometry
from . import interpolate

logger = logging.getLogger(__name__)

# number of polyline samples per knot span used to seed iterative searches
SAMPLES_PER_SPAN = 16
# minimum total number of polyline samples over a whole curve
MIN_SAMPLES = 128
# iteration bound of every iterative search
MAX_ITER = 200

OK = 0
WARN_BOUNDARY = 1 # closest point lies at an end of the curve
WARN_INACCURATE = 2 # quadrature error estimate above the requested tolerance
WARN_OVERLAP = 3 # curves overlap along a stretch rather than crossing
ERR_NONFINITE = -1
ERR_NO_CONVERGENCE = -2
ERR_OUT_OF_RANGE = -3

def to_world(points):
    """Pad an array of points (or a single point) of dimension 2 or 3 to 3D."""
    points = numpy.asarray(points, dtype=float)
    d = points.shape[-1]
    if d == 3:
        return points
    if d > 3:
        raise ValueError('cannot embed {}-dimensional points in 3D'.format(d))
    pad = [(0, 0)] * (points.ndim - 1) + [(0, 3 - d)]
    return numpy.pad(points, pad, mode='constant')

def evaluate(spline, u, derivative=0):
    """Evaluate a spline (or its derivative) at one or more parameter values.

    Parameters:
        spline: BSpline of shape (n, d)
        u: scalar or array of parameter values
        derivative: order of the derivative to evaluate. Orders above the
            degree of the spline evaluate to zero.

    Returns: values, status
        values has shape (3,) for scalar u, or (len(u), 3).
    """
    u = numpy.asarray(u, dtype=float)
    start, end = interpolate.parameter_range(spline)
    if numpy.any(u < start) or numpy.any(u > end):
        return None, ERR_OUT_OF_RANGE
    if derivative > spline.k:
        values = numpy.zeros(u.shape + (spline.c.shape[1],))
    else:
        values = spline(u, nu=derivative)
    if not numpy.isfinite(values).all():
        return None, ERR_NONFINITE
    return to_world(values), OK

def speed_bound(spline):
    """Return an upper bound on the magnitude of the first derivative.

    The derivative of a B-spline is itself a B-spline, which lies in the
    convex hull of its control points."""
    derivative = spline.derivative()
    n = len(derivative.t) - derivative.k - 1
    return numpy.sqrt((derivative.c[:n]**2).sum(axis=1)).max()

def _speed(spline):
    def speed(u):
        return numpy.sqrt((spline(u, nu=1)**2).sum(axis=-1))
    return speed

def breakpoints(spline):
    """Return the distinct knots inside the parameter domain, inclusive of
    both ends. The curve is polynomial between consecutive breakpoints."""
    start, end = interpolate.parameter_range(spline)
    t = spline.t
    return numpy.unique(t[(t >= start) & (t <= end)])

def span_length(spline, u0, u1, epsge):
    """Integrate the speed of the spline from u0 to u1, which must not cross a
    breakpoint. Returns length, status."""
    if u1 <= u0:
        return 0., OK
    result = integrate.quad(_speed(spline), u0, u1, epsabs=epsge*1e-2, limit=MAX_ITER, full_output=1)
    length, abserr = result[:2]
    if not numpy.isfinite(length):
        return length, ERR_NONFINITE
    # quad appends a message when it could not reach the requested accuracy
    status = WARN_INACCURATE if len(result) > 3 and abserr > epsge else OK
    return length, status

def length_table(spline, epsge):
    """Tabulate the arc length of a spline at each of its breakpoints.

    Returns: breaks, cumulative, status
        breaks: the breakpoints of the spline (see breakpoints())
        cumulative: arc length from the start of the curve to each breakpoint;
            cumulative[-1] is the length of the whole curve.
    """
    breaks = breakpoints(spline)
    cumulative = numpy.zeros(len(breaks))
    status = OK
    for i, (u0, u1) in enumerate(zip(breaks[:-1], breaks[1:])):
        length, span_status = span_length(spline, u0, u1, epsge)
        if span_status < 0:
            return None, None, span_status
        status = max(status, span_status)
        cumulative[i+1] = cumulative[i] + length
    return breaks, cumulative, status

def _span_index(table_values, value):
    i = numpy.searchsorted(table_values, value, side='right') - 1
    return int(numpy.clip(i, 0, len(table_values) - 2))

def length_at_parameter(spline, table, u, epsge):
    """Return the arc length from the start of the curve to parameter u, and a status.

    Parameters:
        table: (breaks, cumulative) as returned by length_table().
    """
    breaks, cumulative = table
    if not breaks[0] <= u <= breaks[-1]:
        return None, ERR_OUT_OF_RANGE
    i = _span_index(breaks, u)
    length, status = span_length(spline, breaks[i], u, epsge)
    if status < 0:
        return None, status
    return cumulative[i] + length, status

def parameter_at_length(spline, table, s, epsge):
    """Return the parameter at which the arc length from the start of the
    curve equals s, and a status. This is the inverse of length_at_parameter().

    Parameters:
        table: (breaks, cumulative) as returned by length_table().
    """
    breaks, cumulative = table
    if not 0 <= s <= cumulative[-1]:
        return None, ERR_OUT_OF_RANGE
    i = _span_index(cumulative, s)
    u0, u1 = breaks[i], breaks[i+1]
    remaining = s - cumulative[i]
    if remaining <= 0:
        return u0, OK
    if s >= cumulative[i+1]:
        return u1, OK
    def residual(u):
        return span_length(spline, u0, u, epsge)[0] - remaining
    # an error of du in the parameter is at most du * speed_bound in meters
    xtol = epsge * 1e-2 / max(speed_bound(spline), 1)
    u, result = optimize.brentq(residual, u0, u1, xtol=xtol, maxiter=MAX_ITER, full_output=True, disp=False)
    if not result.converged:
        return None, ERR_NO_CONVERGENCE
    return u, OK

def sample_parameters(spline, samples_per_span=SAMPLES_PER_SPAN, min_samples=MIN_SAMPLES):
    """Return increasing parameter values covering the domain of the spline,
    with at least samples_per_span samples in each knot span."""
    breaks = breakpoints(spline)
    per_span = max(samples_per_span, int(numpy.ceil(min_samples / (len(breaks) - 1))))
    spans = [numpy.linspace(u0, u1, per_span, endpoint=False) for u0, u1 in zip(breaks[:-1], breaks[1:])]
    return numpy.concatenate(spans + [breaks[-1:]])

def closest_point(spline, point, epsge):
    """Find a point on the spline closest to the given point.

    The search is seeded with the closest point on a polyline approximation of
    the curve, and refined with a bounded scalar minimization around that
    seed. It finds exactly one locally closest point, which is the global
    solution in clear-cut cases but is not guaranteed to be for a query point
    near several parts of the curve at similar distances.

    Parameters:
        spline: BSpline of dimension 2 or 3
        point: 2- or 3-vector in world coordinates
        epsge: geometric tolerance

    Returns: u, distance, status
    """
    point = to_world(point)
    us = sample_parameters(spline)
    points = to_world(spline(us))
    seed_point, seed_u, i = geometry.closest_point_on_polyline(point, points, us)
    lo = us[max(i - 1, 0)]
    hi = us[min(i + 2, len(us) - 1)]
    def distance(u):
        return numpy.sqrt(((to_world(spline(u)) - point)**2).sum())
    xtol = epsge * 1e-2 / max(speed_bound(spline), 1)
    result = optimize.minimize_scalar(distance, bounds=(lo, hi), method='bounded', options={'xatol': xtol, 'maxiter': MAX_ITER})
    if not result.success:
        return None, None, ERR_NO_CONVERGENCE
    u = result.x
    # the bounded search never evaluates the bracket ends themselves
    for candidate in (lo, hi):
        if distance(candidate) < distance(u):
            u = candidate
    d = distance(u)
    if not numpy.isfinite(d):
        return None, None, ERR_NONFINITE
    start, end = interpolate.parameter_range(spline)
    status = WARN_BOUNDARY if u in (start, end) else OK
    return float(u), float(d), status

def _refine_intersection(spline_a, spline_b, seed, bounds, epsge):
    def residual(x):
        return spline_a(x[0]) - spline_b(x[1])
    seed = numpy.clip(seed, bounds[0], bounds[1])
    result = optimize.least_squares(residual, seed, bounds=bounds, xtol=epsge*1e-3, ftol=None, gtol=None, max_nfev=MAX_ITER)
    return result.x, numpy.sqrt((result.fun**2).sum())

def intersect(spline_a, spline_b, epsge):
    """Find the points where two splines of the same dimension meet.

    Candidate crossings are the pairs of segments of polyline approximations
    of the two curves whose (padded) bounding boxes overlap; each candidate is
    refined by bounded least squares on a(u) - b(v) and kept if the curves
    are closer than epsge there. Solutions closer than 10*epsge to each other
    are merged.

    Returns: solutions, status
        solutions: list of (u, v, point) tuples, sorted by u, where u and v
            are the parameters on spline_a and spline_b and point is the
            world-frame intersection point.
    """
    if spline_a.c.shape[1] != spline_b.c.shape[1]:
        raise ValueError('cannot intersect curves of different dimensions')
    us = sample_parameters(spline_a)
    vs = sample_parameters(spline_b)
    points_a = spline_a(us)
    points_b = spline_b(vs)
    if not (numpy.isfinite(points_a).all() and numpy.isfinite(points_b).all()):
        return None, ERR_NONFINITE
    # pad by the polyline resolution, so that curves bulging away from their
    # chords are still paired up
    pad = 0.5 * max(geometry.segment_lengths(points_a).max(), geometry.segment_lengths(points_b).max()) + epsge
    ia, ib = geometry.overlapping_segments(points_a, points_b, pad)
    range_a = interpolate.parameter_range(spline_a)
    range_b = interpolate.parameter_range(spline_b)
    bounds = ([range_a[0], range_b[0]], [range_a[1], range_b[1]])
    solutions = []
    status = OK
    for i, j in zip(ia, ib):
        seed = [(us[i] + us[i+1]) / 2, (vs[j] + vs[j+1]) / 2]
        (u, v), gap = _refine_intersection(spline_a, spline_b, seed, bounds, epsge)
        if not numpy.isfinite(gap):
            return None, ERR_NONFINITE
        if gap > epsge:
            continue
        point = (spline_a(u) + spline_b(v)) / 2
        if any(numpy.sqrt(((point - other)**2).sum()) < 10*epsge for _, _, other in solutions):
            continue
        tangent_a = to_world(spline_a(u, nu=1))
        tangent_b = to_world(spline_b(v, nu=1))
        if numpy.linalg.norm(numpy.cross(tangent_a, tangent_b)) <= epsge * numpy.linalg.norm(tangent_a) * numpy.linalg.norm(tangent_b):
            status = WARN_OVERLAP
        solutions.append((float(u), float(v), point))
    solutions.sort(key=lambda solution: solution[0])
    return [(u, v, to_world(point)) for u, v, point in solutions], status
