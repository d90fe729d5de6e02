"""Scalar helpers shared by the SO2 and RxSO2 object API.

numpy ufuncs dispatch to same-named methods on ``object`` arrays and
scalars (``np.cos(x)`` calls ``x.cos()``), so autodiff scalars only need to
implement arithmetic, comparisons and ``cos/sin/exp/log/sqrt/arctan2``.
"""

import numpy as np

from rxsolie.constants import as_dtype, is_floating


def norm(re, im, dtype):
    """Euclidean norm of (re, im); overflow/underflow safe for floats."""
    if is_floating(dtype):
        return np.hypot(re, im)
    return np.sqrt(re * re + im * im)


def as_pair(z, dtype=None) -> np.ndarray:
    """Copy a 2-vector into a fresh (2,) array of ``dtype``.

    Without an explicit dtype, floating inputs keep theirs and anything
    else becomes float64, except ``object`` arrays which stay ``object``.
    """
    arr = np.asarray(z)
    if dtype is None:
        dtype = arr.dtype if (is_floating(arr.dtype) or arr.dtype == object) else np.float64
    out = np.array(arr, dtype=as_dtype(dtype)).reshape(-1)
    if out.shape != (2,):
        raise ValueError(f"expected 2 elements, got shape {arr.shape}")
    return out


def as_matrix2(M, dtype=None) -> np.ndarray:
    arr = np.asarray(M)
    if dtype is None:
        dtype = arr.dtype if (is_floating(arr.dtype) or arr.dtype == object) else np.float64
    out = np.array(arr, dtype=as_dtype(dtype))
    if out.shape != (2, 2):
        raise ValueError(f"expected a 2x2 matrix, got shape {arr.shape}")
    return out


def require_floating(dtype, what: str) -> None:
    """Reject non-floating dtypes for routines that need ordered scalars."""
    if not is_floating(dtype):
        raise TypeError(f"{what} requires a floating dtype, got {as_dtype(dtype)}")
