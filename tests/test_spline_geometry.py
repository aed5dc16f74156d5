"""Tests for the native spline layer: splinecurve.curve.{geometry, interpolate, spline_geometry}.

Run:
    pytest tests/test_spline_geometry.py -v
"""

import numpy
import pytest
from numpy.testing import assert_allclose

from splinecurve.curve import geometry
from splinecurve.curve import interpolate
from splinecurve.curve import spline_geometry

EPSGE = 1e-6


@pytest.fixture
def parabola():
    # y = x^2 for x in [-1, 1], as a quadratic Bezier over u in [0, 1]
    return interpolate.from_control_points([(-1, 1), (0, -1), (1, 1)], k=2)


# ---------------------------------------------------------------------------
# Polylines
# ---------------------------------------------------------------------------


class TestPolylines:
    def test_cumulative_distances(self):
        points = [(0, 0), (3, 4), (3, 10)]
        assert_allclose(geometry.cumulative_distances(points, unit=False), [0, 5, 11])
        assert_allclose(geometry.cumulative_distances(points), [0, 5/11, 1])

    def test_filter_dup_points(self):
        points = [(0, 0), (0, 0), (1, 0), (1, 1e-12), (2, 0)]
        assert_allclose(geometry.filter_dup_points(points), [(0, 0), (1, 0), (2, 0)])

    def test_closest_point_on_polyline(self):
        points = numpy.array([(0, 0), (2, 0), (2, 2)])
        point, u, index = geometry.closest_point_on_polyline(numpy.array([3, 1]), points)
        assert_allclose(point, [2, 1])
        assert u == pytest.approx(3)
        assert index == 1

    def test_degenerate_segment(self):
        closest, fractions = geometry.closest_point_to_line_segments(numpy.array([1, 1]), numpy.array([[0, 0]]), numpy.array([[0, 0]]))
        assert_allclose(closest, [[0, 0]])
        assert_allclose(fractions, [0])

    def test_overlapping_segments(self):
        a = [(0, 0), (1, 0), (2, 0)]
        b = [(1.5, -1), (1.5, 1)]
        ia, ib = geometry.overlapping_segments(a, b)
        assert list(ia) == [1]
        assert list(ib) == [0]
        ia, ib = geometry.overlapping_segments(a, [(5, -1), (5, 1)], pad=1)
        assert len(ia) == 0


# ---------------------------------------------------------------------------
# Construction and structural operations
# ---------------------------------------------------------------------------


class TestInterpolate:
    def test_clamped_knots(self):
        assert_allclose(interpolate.clamped_knots(5, 2), [0, 0, 0, 1/3, 2/3, 1, 1, 1])
        with pytest.raises(ValueError):
            interpolate.clamped_knots(2, 2)

    def test_from_control_points_knots(self):
        with pytest.raises(ValueError, match='knots'):
            interpolate.from_control_points([(0, 0), (1, 0), (2, 0)], k=2, knots=[0, 0, 1, 1])
        with pytest.raises(ValueError, match='non-decreasing'):
            interpolate.from_control_points([(0, 0), (1, 0)], k=1, knots=[0, 1, 0.5, 1])
        with pytest.raises(ValueError, match='finite'):
            interpolate.from_control_points([(0, 0), (numpy.nan, 0)], k=1)

    def test_line(self):
        spline = interpolate.line((1, 1, 1), (3, 1, 1), k=3)
        assert interpolate.parameter_range(spline) == (0, 1)
        assert_allclose(spline(0.25), [1.5, 1, 1])
        with pytest.raises(ValueError):
            interpolate.line((1, 1), (1, 1), k=2)

    def test_fit_spline_interpolates(self):
        points = numpy.array([(0, 0), (1, 2), (3, 3), (4, 1), (6, 0)], dtype=float)
        spline = interpolate.fit_spline(points, smoothing=0, order=3)
        distances = geometry.cumulative_distances(points, unit=False)
        assert_allclose(spline(distances), points, atol=1e-9)

    def test_fit_spline_needs_enough_points(self):
        with pytest.raises(ValueError):
            interpolate.fit_spline([(0, 0), (1, 1), (1, 1), (2, 0)], smoothing=0, order=3)

    def test_copy_spline(self, parabola):
        duplicate = interpolate.copy_spline(parabola)
        duplicate.c[:] = 0
        assert_allclose(parabola(0.5), [0, 0])

    def test_reverse(self, parabola):
        reversed_spline = interpolate.reverse(parabola)
        assert interpolate.parameter_range(reversed_spline) == (0, 1)
        us = numpy.linspace(0, 1, 7)
        assert_allclose(reversed_spline(us), parabola(1 - us), atol=1e-12)

    def test_reverse_nonuniform_knots(self):
        spline = interpolate.from_control_points([(0, 0), (1, 2), (2, -1), (4, 0), (5, 1)], k=2, knots=[1, 1, 1, 1.5, 3, 4, 4, 4])
        reversed_spline = interpolate.reverse(spline)
        us = numpy.linspace(1, 4, 9)
        assert_allclose(reversed_spline(us), spline(5 - us), atol=1e-12)

    def test_extract(self, parabola):
        section = interpolate.extract(parabola, 0.25, 0.75)
        assert interpolate.parameter_range(section) == (0.25, 0.75)
        us = numpy.linspace(0.25, 0.75, 7)
        assert_allclose(section(us), parabola(us), atol=1e-12)

    def test_extract_with_interior_knots(self):
        spline = interpolate.from_control_points([(0, 0), (1, 2), (2, -1), (4, 0), (5, 1), (6, 3)], k=3)
        section = interpolate.extract(spline, 0.1, 0.8)
        us = numpy.linspace(0.1, 0.8, 11)
        assert_allclose(section(us), spline(us), atol=1e-10)

    def test_extract_out_of_domain(self, parabola):
        with pytest.raises(ValueError):
            interpolate.extract(parabola, -0.5, 0.5)
        with pytest.raises(ValueError):
            interpolate.extract(parabola, 0.5, 0.5)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_to_world(self):
        assert_allclose(spline_geometry.to_world([1, 2]), [1, 2, 0])
        assert_allclose(spline_geometry.to_world([[1, 2], [3, 4]]), [[1, 2, 0], [3, 4, 0]])
        assert_allclose(spline_geometry.to_world([1, 2, 3]), [1, 2, 3])
        with pytest.raises(ValueError):
            spline_geometry.to_world([1, 2, 3, 4])

    def test_evaluate(self, parabola):
        values, status = spline_geometry.evaluate(parabola, [0, 0.5, 1])
        assert status == spline_geometry.OK
        assert_allclose(values, [(-1, 1, 0), (0, 0, 0), (1, 1, 0)])

    def test_evaluate_out_of_range(self, parabola):
        values, status = spline_geometry.evaluate(parabola, 1.5)
        assert values is None
        assert status == spline_geometry.ERR_OUT_OF_RANGE

    def test_evaluate_high_derivative(self, parabola):
        values, status = spline_geometry.evaluate(parabola, 0.5, derivative=5)
        assert status == spline_geometry.OK
        assert_allclose(values, [0, 0, 0])

    def test_speed_bound(self, parabola):
        # derivative control points are 2*(1, -2) and 2*(1, 2)
        assert spline_geometry.speed_bound(parabola) == pytest.approx(2 * numpy.sqrt(5))

    def test_arc_length(self, parabola):
        # length of y = x^2 on [-1, 1]
        expected = numpy.sqrt(5) + numpy.arcsinh(2) / 2
        breaks, cumulative, status = spline_geometry.length_table(parabola, EPSGE)
        assert status == spline_geometry.OK
        assert cumulative[-1] == pytest.approx(expected, abs=EPSGE)

    def test_no_whole_curve_length_helper(self):
        # the cumulative table is the single source of curve lengths
        assert not hasattr(spline_geometry, 'arc_length')

    def test_length_table(self):
        spline = interpolate.from_control_points([(0, 0), (1, 0), (2, 0), (3, 0)], k=1)
        breaks, cumulative, status = spline_geometry.length_table(spline, EPSGE)
        assert status == spline_geometry.OK
        assert_allclose(breaks, [0, 1/3, 2/3, 1])
        assert_allclose(cumulative, [0, 1, 2, 3])

    def test_parameter_at_length_inverts_length_at_parameter(self, parabola):
        breaks, cumulative, status = spline_geometry.length_table(parabola, EPSGE)
        table = breaks, cumulative
        for u in [0, 0.1, 0.5, 0.9, 1]:
            s, status = spline_geometry.length_at_parameter(parabola, table, u, EPSGE)
            assert status == spline_geometry.OK
            u_back, status = spline_geometry.parameter_at_length(parabola, table, s, EPSGE)
            assert status == spline_geometry.OK
            assert u_back == pytest.approx(u, abs=1e-8)

    def test_parameter_at_length_out_of_range(self, parabola):
        breaks, cumulative, status = spline_geometry.length_table(parabola, EPSGE)
        u, status = spline_geometry.parameter_at_length(parabola, (breaks, cumulative), cumulative[-1] + 1, EPSGE)
        assert u is None
        assert status == spline_geometry.ERR_OUT_OF_RANGE

    def test_sample_parameters(self):
        spline = interpolate.from_control_points([(0, 0), (1, 0), (2, 0), (3, 0)], k=1)
        us = spline_geometry.sample_parameters(spline, samples_per_span=4, min_samples=6)
        assert len(us) == 3*4 + 1
        assert us[0] == 0
        assert us[-1] == 1
        assert numpy.all(numpy.diff(us) > 0)

    def test_closest_point(self, parabola):
        # the vertex of the parabola is the closest point to (0, -1)
        u, distance, status = spline_geometry.closest_point(parabola, [0, -1], EPSGE)
        assert status == spline_geometry.OK
        assert u == pytest.approx(0.5, abs=1e-6)
        assert distance == pytest.approx(1, abs=1e-9)

    def test_closest_point_at_boundary(self, parabola):
        u, distance, status = spline_geometry.closest_point(parabola, [3, 1, 0], EPSGE)
        assert u == pytest.approx(1, abs=1e-7)
        assert distance == pytest.approx(2, abs=1e-6)

    def test_intersect(self, parabola):
        chord = interpolate.line((-2, 0.25), (2, 0.25), k=1)
        solutions, status = spline_geometry.intersect(parabola, chord, EPSGE)
        assert status == spline_geometry.OK
        assert len(solutions) == 2
        points = [point for u, v, point in solutions]
        assert_allclose(points, [(-0.5, 0.25, 0), (0.5, 0.25, 0)], atol=EPSGE)
        # x(u) = 2u - 1 on the parabola
        assert_allclose([u for u, v, point in solutions], [0.25, 0.75], atol=EPSGE)

    def test_intersect_dimension_mismatch(self, parabola):
        with pytest.raises(ValueError):
            spline_geometry.intersect(parabola, interpolate.line((0, 0, 0), (1, 1, 1), k=1), EPSGE)
