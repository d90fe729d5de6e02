"""Per-scalar-type constants.

Tolerances are keyed by numpy dtype. Floating dtypes get their own table
entry; ``object`` dtype (used for automatic-differentiation scalars such as
dual numbers or jets) falls back to the float64 values, since such scalars
carry a float64 real part.
"""

import numpy as np

_EPSILON = {
    np.dtype(np.float64): 1e-10,
    np.dtype(np.float32): 1e-5,
}

# Headroom of the saturation floor above epsilon, in units of the last place.
# Rounding the components of a clamped element costs at most about 3 ulps.
_FLOOR_ULPS = 8

# One e-fold below the largest finite value, so exp() cannot round up to inf.
_MAX_LOG_SCALE = {
    np.dtype(np.float64): float(np.log(np.finfo(np.float64).max)) - 1.0,
    np.dtype(np.float32): float(np.log(np.finfo(np.float32).max)) - 1.0,
}


def as_dtype(dtype) -> np.dtype:
    """Normalize ``dtype`` (``None`` means float64)."""
    if dtype is None:
        return np.dtype(np.float64)
    return np.dtype(dtype)


def is_floating(dtype) -> bool:
    """True if ``dtype`` is an ordered floating type (fitting routines allowed)."""
    return np.issubdtype(as_dtype(dtype), np.floating)


def epsilon(dtype=None):
    """Smallest scale regarded as nonzero, also the orthogonality tolerance.

    A scalar of ``dtype`` for floating dtypes, so comparisons against stored
    parameters happen in that dtype. A Python float otherwise.
    """
    d = as_dtype(dtype)
    eps = _EPSILON.get(d, _EPSILON[np.dtype(np.float64)])
    if is_floating(d):
        return d.type(eps)
    return eps


def min_scale(dtype=None) -> float:
    """Saturation floor: epsilon rounded up by a few units in the last place.

    Products and exponentials clamped to this scale keep a norm of at least
    ``epsilon(dtype)`` after their components are rounded to ``dtype``, so
    the close-to-zero check accepts them.
    """
    d = as_dtype(dtype)
    ftype = d.type if is_floating(d) else np.float64
    floor = ftype(_EPSILON.get(d, _EPSILON[np.dtype(np.float64)]))
    for _ in range(_FLOOR_ULPS):
        floor = np.nextafter(floor, ftype(np.inf))
    return float(floor)


def epsilon_sqrt(dtype=None) -> float:
    return float(np.sqrt(epsilon(dtype)))


def pi(dtype=None):
    d = as_dtype(dtype)
    if is_floating(d):
        return d.type(np.pi)
    return np.pi


def min_log_scale(dtype=None) -> float:
    """log of :func:`min_scale`: below this the exponential map saturates."""
    return float(np.log(min_scale(dtype)))


def max_log_scale(dtype=None) -> float:
    """log of the largest finite scale representable in ``dtype``."""
    return _MAX_LOG_SCALE.get(as_dtype(dtype), _MAX_LOG_SCALE[np.dtype(np.float64)])
