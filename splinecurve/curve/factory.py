"""Build Curves from geometric descriptions.

Each kind of curve is described by a small construction strategy (a
namedtuple), and build_curve() turns any strategy into a Curve:

    line = build_curve(StraightLine(start=(0, 0, 0), end=(10, 0, 0)))
    spline = build_curve(Interpolated(points, order=4), name='path')

The convenience functions straight_line(), from_control_points() and
interpolate_points() do the same in one call.
"""

import collections
import logging

import numpy
from scipy.interpolate import BSpline

from . import curve
from . import interpolate
from .. import errors

logger = logging.getLogger(__name__)

ControlPoints = collections.namedtuple('ControlPoints', ['points', 'order', 'knots'], defaults=[3, None])
ControlPoints.__doc__ = """Raw control data: control points of shape (n, d), the spline order,
and optionally a knot vector of n + order knots (clamped uniform if None)."""

Interpolated = collections.namedtuple('Interpolated', ['points', 'order', 'smoothing'], defaults=[4, 0])
Interpolated.__doc__ = """A spline of the given order fitted through points of shape (n, d), with
chord-length parametrization and the given smoothing (0 to interpolate)."""

StraightLine = collections.namedtuple('StraightLine', ['start', 'end', 'order'], defaults=[3])
StraightLine.__doc__ = """The segment between two points, as a spline of the given order."""

Wrapped = collections.namedtuple('Wrapped', ['native'])
Wrapped.__doc__ = """An already-built scipy.interpolate.BSpline."""

def _build_control_points(strategy):
    return interpolate.from_control_points(strategy.points, strategy.order - 1, strategy.knots), False

def _build_interpolated(strategy):
    return interpolate.fit_spline(strategy.points, smoothing=strategy.smoothing, order=strategy.order - 1), False

def _build_straight_line(strategy):
    return interpolate.line(strategy.start, strategy.end, strategy.order - 1), True

def _build_wrapped(strategy):
    if not isinstance(strategy.native, BSpline):
        raise TypeError('expected a scipy.interpolate.BSpline, not {!r}'.format(type(strategy.native).__name__))
    return strategy.native, False

_BUILDERS = {
    ControlPoints: _build_control_points,
    Interpolated: _build_interpolated,
    StraightLine: _build_straight_line,
    Wrapped: _build_wrapped,
}

def build_curve(strategy, dimension=None, epsge=None, name=''):
    """Build a Curve according to a construction strategy.

    Parameters:
        strategy: a ControlPoints, Interpolated, StraightLine or Wrapped tuple.
        dimension: expected dimension of the curve, or None to accept the
            dimension of the built spline.
        epsge: geometric tolerance of the curve; None for the default.
        name: name of the curve.

    Returns: a Curve, whose dimension and order are those of the built spline.

    Raises ConstructionError if the geometry is invalid."""
    try:
        builder = _BUILDERS[type(strategy)]
    except KeyError:
        raise TypeError('unknown curve construction strategy: {!r}'.format(strategy))
    try:
        native, proportional = builder(strategy)
    except (ValueError, TypeError, numpy.linalg.LinAlgError) as e:
        raise errors.ConstructionError('cannot build {}: {}'.format(type(strategy).__name__, e)) from e
    built_dimension = native.c.shape[1] if native.c.ndim == 2 else 1
    if dimension is None:
        dimension = built_dimension
    elif dimension != built_dimension:
        raise errors.ConstructionError('{} builds a {}D curve, not {}D'.format(type(strategy).__name__, built_dimension, dimension))
    logger.debug('building %s curve "%s" of dimension %d and order %d', type(strategy).__name__, name, dimension, native.k + 1)
    return curve.Curve(native, dimension=dimension, order=native.k + 1, epsge=epsge, name=name, proportional=proportional)

def straight_line(start, end, order=3, epsge=None, name=''):
    """Return a Curve tracing the segment from start to end."""
    return build_curve(StraightLine(start, end, order), epsge=epsge, name=name)

def from_control_points(points, order=3, knots=None, epsge=None, name=''):
    """Return a Curve defined by control points (and optionally knots)."""
    return build_curve(ControlPoints(points, order, knots), epsge=epsge, name=name)

def interpolate_points(points, order=4, smoothing=0, epsge=None, name=''):
    """Return a Curve passing through (or, with smoothing > 0, near) points."""
    return build_curve(Interpolated(points, order, smoothing), epsge=epsge, name=name)
