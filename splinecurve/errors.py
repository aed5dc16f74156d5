"""Exceptions raised by curve construction and curve queries.

All errors derive from CurveError, and each also derives from the builtin
exception a generic caller would expect (ValueError for bad input, RuntimeError
for numeric failures), so code that only knows about the builtins still works.
"""

class CurveError(Exception):
    """Base class for all curve errors."""
    pass

class OutOfRangeError(CurveError, ValueError):
    """An abscissa (native or in meters) is outside the curve's domain."""
    pass

class InvalidArgumentError(CurveError, ValueError):
    """A structurally invalid argument, e.g. a non-positive sample count."""
    pass

class EvaluationError(CurveError, RuntimeError):
    """The spline engine reported a non-recoverable status."""
    pass

class DegenerateCurveError(CurveError, ArithmeticError):
    """A geometric quantity is undefined at the requested point."""
    pass

class NoSolutionError(CurveError, RuntimeError):
    """An iterative search did not converge."""
    pass

class ConstructionError(CurveError, ValueError):
    """The native spline could not be built, or an unbuilt curve was queried."""
    pass
