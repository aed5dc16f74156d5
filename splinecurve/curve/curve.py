"""Curves parametrized by arc length.

A Curve wraps a native B-spline (a scipy.interpolate.BSpline) and exposes it
in "meters": every abscissa taken or returned by a Curve is a distance along
the curve, converted internally to and from the spline's own parameter.
Positions and vectors are always returned in the world frame, as 3-vectors.
"""

import copy
import logging
import numbers

import numpy

from . import interpolate
from . import spline_geometry
from .. import errors

logger = logging.getLogger(__name__)

DEFAULT_EPSGE = 1e-6

WORLD_Z = numpy.array([0., 0., 1.])

_STATUS_ERRORS = {
    spline_geometry.ERR_NO_CONVERGENCE: errors.NoSolutionError,
    spline_geometry.ERR_OUT_OF_RANGE: errors.OutOfRangeError,
}

class Curve:
    def __init__(self, native=None, dimension=3, order=3, epsge=None, name='', meter_start=0., proportional=False):
        """Wrap a native spline curve.

        Parameters:
            native: a scipy.interpolate.BSpline with coefficients of shape
                (n, dimension) and degree order-1, or None to create an empty
                curve that must not be queried. The spline is copied; the
                Curve never shares it with the caller.
            dimension: number of spatial components (2 or 3).
            order: polynomial order of the spline (degree + 1).
            epsge: geometric tolerance used by all numeric queries; if None,
                DEFAULT_EPSGE is used.
            name: free-form label.
            meter_start: arc-length abscissa assigned to the start of the curve.
            proportional: if True, the native parameter of the spline is known
                to be proportional to arc length (as for a straight line), and
                conversions use a direct scale instead of arc-length integration.
        """
        if dimension not in (2, 3):
            raise errors.ConstructionError('curve dimension must be 2 or 3, not {}'.format(dimension))
        if order < 2:
            raise errors.ConstructionError('curve order must be at least 2, not {}'.format(order))
        if epsge is None:
            epsge = DEFAULT_EPSGE
        if not epsge > 0:
            raise errors.ConstructionError('geometric tolerance must be positive')
        self._dimension = dimension
        self._order = order
        self._epsge = float(epsge)
        self._proportional = proportional
        self.name = name
        self._status_flag = spline_geometry.OK
        self._native = None
        self._length = None
        self._table = None
        self._native_start = self._native_end = None
        self._meter_start = float(meter_start)
        self._meter_end = None
        self._start_point = self._end_point = None
        if native is not None:
            if native.k != order - 1:
                raise errors.ConstructionError('spline of degree {} does not have order {}'.format(native.k, order))
            if native.c.ndim != 2 or native.c.shape[1] != dimension:
                raise errors.ConstructionError('spline coefficients of shape {} are not {}-dimensional'.format(native.c.shape, dimension))
            self._native = interpolate.copy_spline(native)
            self._refresh()

    def _refresh(self):
        """Recompute the parametrization state from the native spline."""
        self._native_start, self._native_end = interpolate.parameter_range(self._native)
        breaks, cumulative, status = spline_geometry.length_table(self._native, self._epsge)
        self._check_status(status, errors.ConstructionError, 'arc length')
        self._table = breaks, cumulative
        self._length = float(cumulative[-1])
        if self._length <= self._epsge:
            raise errors.ConstructionError('curve has zero length')
        self._meter_end = self._meter_start + self._length
        self._start_point = self.position_at_native(self._native_start)
        self._end_point = self.position_at_native(self._native_end)
        logger.debug('refreshed %s', self)

    def _check_status(self, status, error_class, what):
        """Record the status of an engine call and raise if it is an error."""
        self._status_flag = status
        if status < 0:
            error_class = _STATUS_ERRORS.get(status, error_class)
            raise error_class('{} failed on curve "{}" (status {})'.format(what, self.name, status))
        if status > 0:
            logger.warning('%s on curve "%s" returned warning status %d', what, self.name, status)

    def _require_native(self):
        if self._native is None:
            raise errors.ConstructionError('curve "{}" has no native spline'.format(self.name))

    def _in_range(self, value, start, end, what):
        """Return value if it lies within [start, end], snapping values within
        epsge of a bound onto it; raise OutOfRangeError otherwise."""
        if not isinstance(value, numbers.Real) or not numpy.isfinite(value):
            raise errors.OutOfRangeError('{} {!r} is not a finite number'.format(what, value))
        if start - self._epsge <= value < start:
            return start
        if end < value <= end + self._epsge:
            return end
        if not start <= value <= end:
            raise errors.OutOfRangeError('{} {} is outside [{}, {}]'.format(what, value, start, end))
        return float(value)

    def __copy__(self):
        return self.__deepcopy__({})

    def __deepcopy__(self, memo):
        new = Curve.__new__(Curve)
        new.__dict__.update(self.__dict__)
        if self._native is not None:
            new._native = interpolate.copy_spline(self._native)
            new._table = tuple(a.copy() for a in self._table)
            new._start_point = self._start_point.copy()
            new._end_point = self._end_point.copy()
        return new

    def __str__(self):
        return ('Curve name: {} | Length: {} | In meters parametrization interval: [{}, {}]'
                ' | Native parametrization interval: [{}, {}]').format(self.name, self._length,
                self._meter_start, self._meter_end, self._native_start, self._native_end)

    def __repr__(self):
        return 'Curve(name={!r}, dimension={}, order={}, length={})'.format(self.name, self._dimension, self._order, self._length)

    dimension = property(lambda self: self._dimension)
    order = property(lambda self: self._order)
    epsge = property(lambda self: self._epsge)
    native = property(lambda self: self._native)
    status_flag = property(lambda self: self._status_flag)
    length = property(lambda self: self._length)
    native_range = property(lambda self: (self._native_start, self._native_end))
    meter_range = property(lambda self: (self._meter_start, self._meter_end))

    @property
    def start_point(self):
        return None if self._start_point is None else self._start_point.copy()

    @property
    def end_point(self):
        return None if self._end_point is None else self._end_point.copy()

    def meter_abs_to_native_abs(self, abscissa_m):
        """Convert an abscissa in meters to the native parameter of the spline.

        Raises OutOfRangeError if abscissa_m is outside meter_range."""
        self._require_native()
        abscissa_m = self._in_range(abscissa_m, self._meter_start, self._meter_end, 'abscissa')
        s = abscissa_m - self._meter_start
        if self._proportional:
            self._status_flag = spline_geometry.OK
            return self._native_start + s / self._length * (self._native_end - self._native_start)
        u, status = spline_geometry.parameter_at_length(self._native, self._table, min(s, self._length), self._epsge)
        self._check_status(status, errors.NoSolutionError, 'arc length reparametrization')
        return float(u)

    def native_abs_to_meter_abs(self, abscissa_s):
        """Convert a native spline parameter to an abscissa in meters.

        Raises OutOfRangeError if abscissa_s is outside native_range."""
        self._require_native()
        abscissa_s = self._in_range(abscissa_s, self._native_start, self._native_end, 'native abscissa')
        if self._proportional:
            self._status_flag = spline_geometry.OK
            fraction = (abscissa_s - self._native_start) / (self._native_end - self._native_start)
            return self._meter_start + fraction * self._length
        s, status = spline_geometry.length_at_parameter(self._native, self._table, abscissa_s, self._epsge)
        self._check_status(status, errors.EvaluationError, 'arc length')
        return self._meter_start + min(s, self._length)

    def position_at_native(self, abscissa_s):
        """Return the world-frame position at a native spline parameter."""
        self._require_native()
        abscissa_s = self._in_range(abscissa_s, self._native_start, self._native_end, 'native abscissa')
        position, status = spline_geometry.evaluate(self._native, abscissa_s)
        self._check_status(status, errors.EvaluationError, 'evaluation')
        return position

    def position_at(self, abscissa_m):
        """Return the world-frame position at an abscissa in meters."""
        return self.position_at_native(self.meter_abs_to_native_abs(abscissa_m))

    def at(self, abscissa_m):
        return self.position_at(abscissa_m)

    def derivate(self, order, abscissa_m):
        """Return the derivatives of orders 1 up to order at abscissa_m.

        The derivatives are taken with respect to the native parameter.

        Returns: list of order world-frame vectors."""
        if not isinstance(order, numbers.Integral) or order < 1:
            raise errors.InvalidArgumentError('derivative order must be an integer >= 1, not {!r}'.format(order))
        u = self.meter_abs_to_native_abs(abscissa_m)
        derivatives = []
        for nu in range(1, order + 1):
            derivative, status = spline_geometry.evaluate(self._native, u, derivative=nu)
            self._check_status(status, errors.EvaluationError, 'derivative evaluation')
            derivatives.append(derivative)
        return derivatives

    def curvature(self, abscissa_m):
        """Return the curvature |r' x r''| / |r'|^3 at abscissa_m.

        Raises DegenerateCurveError where the first derivative vanishes."""
        d1, d2 = self.derivate(2, abscissa_m)
        speed = numpy.linalg.norm(d1)
        if speed <= self._epsge:
            raise errors.DegenerateCurveError('curvature is undefined at {} m: zero first derivative'.format(abscissa_m))
        return float(numpy.linalg.norm(numpy.cross(d1, d2)) / speed**3)

    def eval_tangent_frame(self, abscissa_m):
        """Return the (tangent, normal, binormal) frame at abscissa_m.

        The tangent follows the direction of the curve. The normal is the cross
        product of the tangent and the world z axis, and the binormal is the
        cross product of the tangent and the normal. The frame is undefined
        (DegenerateCurveError) where the curve is stationary or runs parallel
        to the z axis.
        """
        d1, = self.derivate(1, abscissa_m)
        speed = numpy.linalg.norm(d1)
        if speed <= self._epsge:
            raise errors.DegenerateCurveError('tangent is undefined at {} m: zero first derivative'.format(abscissa_m))
        tangent = d1 / speed
        normal = numpy.cross(tangent, WORLD_Z)
        normal_norm = numpy.linalg.norm(normal)
        if normal_norm <= self._epsge:
            raise errors.DegenerateCurveError('normal is undefined at {} m: tangent is parallel to z'.format(abscissa_m))
        normal /= normal_norm
        binormal = numpy.cross(tangent, normal)
        return tangent, normal, binormal

    def sampling(self, samples):
        """Return an array of shape (samples, 3) of positions evenly spaced in
        arc length, from the start point to the end point inclusive. A single
        sample is the start point."""
        if not isinstance(samples, numbers.Integral) or samples <= 0:
            raise errors.InvalidArgumentError('number of samples must be a positive integer, not {!r}'.format(samples))
        self._require_native()
        if samples == 1:
            return self._start_point[numpy.newaxis].copy()
        abscissas = numpy.linspace(self._meter_start, self._meter_end, samples)
        us = [self.meter_abs_to_native_abs(abscissa) for abscissa in abscissas]
        positions, status = spline_geometry.evaluate(self._native, us)
        self._check_status(status, errors.EvaluationError, 'sampling')
        return positions

    def find_closest_point(self, world_position):
        """Find the point of the curve closest to a given position.

        This is a local search: it finds exactly one solution, which is the
        right one in clear-cut cases, but may be only a local optimum for a
        position roughly equidistant from several parts of the curve.

        Parameters:
            world_position: 3-vector, or 2-vector taken to lie in the z=0 plane.

        Returns: abscissa_m, distance
        """
        self._require_native()
        world_position = numpy.asarray(world_position, dtype=float)
        if world_position.shape not in ((2,), (3,)):
            raise errors.InvalidArgumentError('position must be a 2- or 3-vector, not shape {}'.format(world_position.shape))
        u, distance, status = spline_geometry.closest_point(self._native, spline_geometry.to_world(world_position), self._epsge)
        self._check_status(status, errors.NoSolutionError, 'closest point search')
        return self.native_abs_to_meter_abs(u), distance

    def extract_section(self, start_m, end_m):
        """Return a new curve covering [start_m, end_m] of this one.

        The section owns a new native spline and its meters domain starts at 0,
        so abscissa x on the section corresponds to start_m + x on this curve.
        This curve is not modified."""
        self._require_native()
        if start_m >= end_m:
            raise errors.InvalidArgumentError('section start {} must be before its end {}'.format(start_m, end_m))
        u0 = self.meter_abs_to_native_abs(start_m)
        u1 = self.meter_abs_to_native_abs(end_m)
        if not u0 < u1:
            raise errors.InvalidArgumentError('section [{}, {}] is shorter than the geometric tolerance'.format(start_m, end_m))
        try:
            section = interpolate.extract(self._native, u0, u1)
        except (ValueError, numpy.linalg.LinAlgError) as e:
            self._status_flag = spline_geometry.ERR_NONFINITE
            raise errors.EvaluationError('could not extract section [{}, {}] of curve "{}": {}'.format(start_m, end_m, self.name, e))
        self._status_flag = spline_geometry.OK
        name = '{}[{}:{}]'.format(self.name, start_m, end_m)
        logger.debug('extracting section %s', name)
        return Curve(section, self._dimension, self._order, self._epsge, name=name, proportional=self._proportional)

    def reverse(self):
        """Reverse the direction of the curve in place.

        The start and end points are swapped and arc length still increases
        from the (new) start; the length is unchanged."""
        self._require_native()
        original = self._native
        self._native = interpolate.reverse(original)
        try:
            self._refresh()
        except errors.CurveError:
            self._native = original
            self._refresh()
            raise
        logger.debug('reversed curve "%s"', self.name)

    def intersection(self, other):
        """Return the world-frame points where this curve meets another one.

        The points are sorted by increasing abscissa along this curve. Curves
        that do not meet give an empty list."""
        self._require_native()
        other._require_native()
        if other.dimension != self._dimension:
            raise errors.InvalidArgumentError('cannot intersect a {}D curve with a {}D curve'.format(self._dimension, other.dimension))
        epsge = max(self._epsge, other.epsge)
        solutions, status = spline_geometry.intersect(self._native, other.native, epsge)
        self._check_status(status, errors.EvaluationError, 'intersection')
        return [point for u, v, point in solutions]

def copy_curve(curve):
    """Return an independent copy of a curve, including its native spline."""
    return copy.deepcopy(curve)
