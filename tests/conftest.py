"""Shared curve fixtures.

    - line: straight segment from (0,0,0) to (10,0,0), order 3
    - arc: quarter circle of radius 5 in the z=0 plane, interpolated cubic spline
    - quadratic_line: straight segment of length 10 whose native parameter is
      NOT proportional to arc length
"""

import numpy
import pytest

from splinecurve.curve import factory

RADIUS = 5.0

@pytest.fixture
def line():
    return factory.straight_line((0, 0, 0), (10, 0, 0), name='line')

@pytest.fixture
def arc():
    theta = numpy.linspace(0, numpy.pi / 2, 50)
    points = RADIUS * numpy.transpose([numpy.cos(theta), numpy.sin(theta), numpy.zeros_like(theta)])
    return factory.interpolate_points(points, order=4, name='arc')

@pytest.fixture
def quadratic_line():
    # x(u) = 2u + 8u^2: a straight segment traversed with increasing speed
    return factory.from_control_points([(0, 0, 0), (1, 0, 0), (10, 0, 0)], order=3, name='quadratic')
