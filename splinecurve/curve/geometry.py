import numpy

def cumulative_distances(points, unit=True):
    """Return cumulative distances along a polyline.

    Parameters:
    points: array of shape (n,m) consisting of n points in m dimensions
    unit: if True, return distances divided by total length of the curve,
          if False, return actual arc lengths."""
    points = numpy.asarray(points, dtype=float)
    distances = numpy.concatenate([[0], numpy.add.accumulate(numpy.sqrt(((points[:-1] - points[1:])**2).sum(axis=1)))])
    if unit:
        distances /= distances[-1]
    return distances

def filter_dup_points(points, atol=1e-8):
    """Return a polyline with no duplicate or near-duplicate consecutive points."""
    points = numpy.asarray(points, dtype=float)
    points_out = [points[0]]
    for point in points[1:]:
        if not numpy.allclose(point, points_out[-1], rtol=0, atol=atol):
            points_out.append(point)
    return numpy.array(points_out)

def closest_point_to_line_segments(point, lines_start, lines_end):
    """Given a point and a set of line segments (specified by starting
    and ending points), return the point on each line segment that is closest to the
    given point, and the parametric position along each line of that point."""
    v = lines_end - lines_start
    w = point - lines_start
    c1 = (v*w).sum(axis=1)
    c2 = (v*v).sum(axis=1)
    # zero-length segments: every position is equally close
    with numpy.errstate(invalid='ignore', divide='ignore'):
        fractional_positions = numpy.where(c2 > 0, c1 / c2, 0)
    fractional_positions = fractional_positions.clip(0, 1)
    closest_points = lines_start + fractional_positions[:,numpy.newaxis]*v
    return closest_points, fractional_positions

def closest_point_on_polyline(point, points, parameters=None):
    """Return the point along a polyline nearest the given point, the parametric
    position of that point along the polyline, and the index of the segment
    containing it. If no input parameter values are given, then the cumulative
    distance along the polyline will be taken as the parameter."""
    points = numpy.asarray(points, dtype=float)
    closest_points, fractions = closest_point_to_line_segments(point, points[:-1], points[1:])
    distances = numpy.sqrt(((point - closest_points)**2).sum(axis=1))
    point_idx = distances.argmin()
    closest_point = closest_points[point_idx]
    if parameters is None:
        parameters = cumulative_distances(points, unit=False)
    start_u, stop_u = parameters[point_idx:point_idx+2]
    u_val = start_u + fractions[point_idx]*(stop_u - start_u)
    return closest_point, u_val, point_idx

def segment_lengths(points):
    """Return the lengths of each segment of a polyline of shape (n,m)."""
    points = numpy.asarray(points, dtype=float)
    return numpy.sqrt(((points[1:] - points[:-1])**2).sum(axis=1))

def overlapping_segments(points_a, points_b, pad=0):
    """Find pairs of segments from two polylines whose axis-aligned bounding
    boxes overlap, after growing each box by pad in every direction.

    Parameters:
    points_a, points_b: arrays of shape (n,m) and (p,m) describing two polylines.
    pad: amount by which to enlarge the bounding boxes.

    Returns: (i, j) index arrays, such that segment i of polyline a
        (points_a[i] to points_a[i+1]) overlaps segment j of polyline b."""
    points_a = numpy.asarray(points_a, dtype=float)
    points_b = numpy.asarray(points_b, dtype=float)
    lo_a = numpy.minimum(points_a[:-1], points_a[1:]) - pad
    hi_a = numpy.maximum(points_a[:-1], points_a[1:]) + pad
    lo_b = numpy.minimum(points_b[:-1], points_b[1:])
    hi_b = numpy.maximum(points_b[:-1], points_b[1:])
    # shape (n-1, p-1, m): boxes overlap only if they overlap along every axis
    overlaps = (lo_a[:,numpy.newaxis] <= hi_b[numpy.newaxis]) & (lo_b[numpy.newaxis] <= hi_a[:,numpy.newaxis])
    return numpy.nonzero(overlaps.all(axis=2))
