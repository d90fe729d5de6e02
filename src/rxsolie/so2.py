"""SO(2), the group of planar rotations, as unit complex numbers.

This is the rotation subgroup that :class:`rxsolie.RxSO2` composes with:
exponential/logarithm, composition and matrix form, plus the same
``try_from_*`` validation pattern one dimension down.
"""

import logging

import numpy as np

from rxsolie import numba_rxso2 as kernels
from rxsolie._scalar import as_matrix2, as_pair, norm, require_floating
from rxsolie.constants import as_dtype, epsilon
from rxsolie.expected import Expected, OrthogonalMatrixError, SO2FromComplexError

log = logging.getLogger(__name__)


class SO2:
    """Planar rotation stored as ``[cos, sin]``."""

    __slots__ = ("_unit_complex",)

    def __init__(self, unit_complex=None, dtype=None):
        """Identity by default; a given pair is normalized.

        Raises:
            ValueError: if ``unit_complex`` is (close to) zero
        """
        if unit_complex is None:
            self._unit_complex = np.array([1, 0], dtype=as_dtype(dtype))
            return
        z = as_pair(unit_complex, dtype)
        n = norm(z[0], z[1], z.dtype)
        if n < epsilon(z.dtype):
            raise ValueError("complex number is close to zero")
        self._unit_complex = z / n

    @classmethod
    def _wrap(cls, z: np.ndarray) -> "SO2":
        out = cls.__new__(cls)
        out._unit_complex = z
        return out

    @classmethod
    def exp(cls, theta, dtype=None) -> "SO2":
        """Rotation by ``theta`` radians (no reduction beyond cos/sin's own)."""
        d = as_dtype(dtype if dtype is not None else _dtype_of(theta))
        return cls._wrap(np.array([np.cos(theta), np.sin(theta)], dtype=d))

    def log(self):
        """Rotation angle in (-pi, pi]."""
        return np.arctan2(self._unit_complex[1], self._unit_complex[0])

    angle = log

    @property
    def dtype(self) -> np.dtype:
        return self._unit_complex.dtype

    def unit_complex(self) -> np.ndarray:
        return self._unit_complex.copy()

    params = unit_complex

    def matrix(self) -> np.ndarray:
        c, s = self._unit_complex
        return np.array([[c, -s], [s, c]], dtype=self.dtype)

    def inverse(self) -> "SO2":
        c, s = self._unit_complex
        return SO2._wrap(np.array([c, -s], dtype=self.dtype))

    def __mul__(self, other):
        if isinstance(other, SO2):
            a0, a1 = self._unit_complex
            b0, b1 = other._unit_complex
            z = np.array([a0 * b0 - a1 * b1, a0 * b1 + a1 * b0], dtype=self.dtype)
            # Renormalize to stop drift over long products.
            return SO2._wrap(z / norm(z[0], z[1], z.dtype))
        points = np.asarray(other)
        return points @ self.matrix().T

    def __eq__(self, other):
        if not isinstance(other, SO2):
            return NotImplemented
        return bool(np.all(self._unit_complex == other._unit_complex))

    __hash__ = None

    def is_approx(self, other: "SO2", tol=None) -> bool:
        tol = epsilon(self.dtype) if tol is None else tol
        diff = self._unit_complex - other._unit_complex
        return bool(norm(diff[0], diff[1], self.dtype) <= tol)

    def __repr__(self) -> str:
        return f"SO2(unit_complex={self._unit_complex!r})"

    @classmethod
    def try_from_complex(cls, z) -> Expected:
        """Normalize ``z``; fails with CLOSE_TO_ZERO if ``|z| < epsilon``."""
        zz = as_pair(z)
        require_floating(zz.dtype, "SO2.try_from_complex")
        out = np.zeros(2, dtype=zz.dtype)
        code = kernels.so2_try_from_complex(zz, epsilon(zz.dtype), out)
        if code != kernels.OK:
            log.debug("SO2.try_from_complex rejected %s", zz)
            return Expected.failure(SO2FromComplexError(code))
        return Expected.success(cls._wrap(out))

    @classmethod
    def try_from_matrix(cls, R, tolerance=None) -> Expected:
        """Validate a rotation matrix; the determinant sign is checked first."""
        M = as_matrix2(R)
        require_floating(M.dtype, "SO2.try_from_matrix")
        tol = epsilon(M.dtype) if tolerance is None else tolerance
        out = np.zeros(2, dtype=M.dtype)
        code = kernels.so2_try_from_matrix(M, tol, out)
        if code != kernels.OK:
            log.debug("SO2.try_from_matrix rejected matrix, error code %d", code)
            return Expected.failure(OrthogonalMatrixError(code))
        return Expected.success(cls._wrap(out))

    @classmethod
    def fit(cls, M) -> "SO2":
        """Closest rotation to an arbitrary 2x2 matrix."""
        return cls.try_from_matrix(make_rotation_matrix(M)).unwrap()


def make_rotation_matrix(M) -> np.ndarray:
    """Return the rotation matrix closest to ``M`` in Frobenius norm."""
    A = as_matrix2(M)
    require_floating(A.dtype, "make_rotation_matrix")
    out = np.zeros((2, 2), dtype=A.dtype)
    kernels.so2_fit_matrix(A, out)
    return out


def _dtype_of(x):
    arr = np.asarray(x)
    if arr.dtype == object or np.issubdtype(arr.dtype, np.floating):
        return arr.dtype
    return np.float64
