'''
Curve
-----
Spline curves parametrized by arc length.
 - curve.curve: the Curve class, exposing a native spline in meters.
 - curve.factory: construction strategies producing Curves.
 - curve.interpolate: construction, extraction and reversal of native splines (using scipy.interpolate).
 - curve.spline_geometry: arc length, closest point and intersection over native splines.
 - curve.geometry: basic algorithms for polyline curves.
 '''
