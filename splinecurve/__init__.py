'''
# splinecurve

Curves parametrized by arc length, on top of scipy's B-splines.

Curve
-----
Spline curves whose user-facing coordinate is the distance along the curve, in meters.
 - curve.curve: the Curve class, converting between meters and the native spline parameter, and
   answering position, derivative, curvature, tangent frame, sampling, closest point, section,
   reversal and intersection queries in meters.
 - curve.factory: build Curves from control points, fitted points, two-point lines or existing splines.
 - curve.interpolate: construction, extraction and reversal of native splines (using scipy.interpolate).
 - curve.spline_geometry: arc length, reparametrization, closest point and intersection searches over
   native splines (using scipy.integrate and scipy.optimize).
 - curve.geometry: basic algorithms for polyline curves.

Errors
------
 - errors: the CurveError hierarchy raised by all of the above.

'''
