"""RxSO(2): the group of scaled planar rotations.

An element is a nonzero complex number ``z = scale * (cos theta, sin theta)``
stored as a 2-element numpy array ``[re, im]``. The group product is the
complex product, the inverse the complex reciprocal. The tangent space is
``(sigma, theta)`` with ``sigma`` the log-scale.

Elements are generic over the numpy dtype of their storage: ``float64``,
``float32``, or ``object`` holding autodiff scalars. The fitting routines
(``try_from_matrix``, ``try_from_complex``) need ordered floating scalars
and raise ``TypeError`` for any other dtype.

Composition saturates: if a product's scale drops below
``constants.min_scale(dtype)`` (epsilon rounded up by a few units in the last
place) it is raised to that floor with the angle untouched, so ``log`` and
``inverse`` stay defined and the result still passes the close-to-zero check.
This is a clamping policy, not a validation failure.
"""

import logging

import numpy as np

from rxsolie import numba_rxso2 as kernels
from rxsolie._scalar import as_matrix2, as_pair, norm, require_floating
from rxsolie.constants import as_dtype, epsilon, max_log_scale, min_scale
from rxsolie.expected import Expected, RxSO2FromComplexError, ScaledOrthogonalMatrixError
from rxsolie.so2 import SO2

log = logging.getLogger(__name__)


def _product(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Complex product of two parameter pairs followed by saturation."""
    dtype = np.result_type(a.dtype, b.dtype)
    a0, a1 = a
    b0, b1 = b
    z = np.array([a0 * b0 - a1 * b1, a0 * b1 + a1 * b0], dtype=dtype)
    return _saturate(z, a, b)


def _saturate(z: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Clamp the scale of ``z = a * b`` up to ``min_scale``, keeping its angle.

    The angle is rebuilt from the unit parts of ``a`` and ``b`` since the
    raw product may have underflowed to zero.
    """
    floor = min_scale(z.dtype)
    if norm(z[0], z[1], z.dtype) >= floor:
        return z
    log.debug("saturating product scale %s to %s", norm(z[0], z[1], z.dtype), floor)
    ua = a / norm(a[0], a[1], a.dtype)
    ub = b / norm(b[0], b[1], b.dtype)
    return np.array(
        [(ua[0] * ub[0] - ua[1] * ub[1]) * floor, (ua[0] * ub[1] + ua[1] * ub[0]) * floor],
        dtype=z.dtype,
    )


def _relative_log(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """``log(a^-1 * b)`` as a difference of log-scales.

    The product ``a^-1 * b`` is never formed, so it cannot saturate or
    underflow when the scales of ``a`` and ``b`` are far apart.
    """
    na = norm(a[0], a[1], a.dtype)
    nb = norm(b[0], b[1], b.dtype)
    ua = a / na
    ub = b / nb
    theta = np.arctan2(ua[0] * ub[1] - ua[1] * ub[0], ua[0] * ub[0] + ua[1] * ub[1])
    return np.array([np.log(nb) - np.log(na), theta], dtype=np.result_type(a.dtype, b.dtype))


def _unclamped_exp(tangent: np.ndarray) -> np.ndarray:
    """``exp(tangent)`` without the scale clamp, for relative steps."""
    sigma, theta = tangent
    s = np.exp(sigma)
    return np.array([s * np.cos(theta), s * np.sin(theta)], dtype=tangent.dtype)


class _RxSO2Base:
    """Read-only RxSO2 API over a 2-slot parameter array ``_complex``."""

    __slots__ = ("_complex",)

    DoF = 2
    num_parameters = 2
    N = 2

    @property
    def dtype(self) -> np.dtype:
        return self._complex.dtype

    @property
    def data(self) -> np.ndarray:
        """The live parameter storage (not a copy)."""
        return self._complex

    def complex(self) -> np.ndarray:
        """``[re, im]`` as a fresh array."""
        return self._complex.copy()

    params = complex

    def scale(self):
        return norm(self._complex[0], self._complex[1], self.dtype)

    def angle(self):
        """Rotation angle in (-pi, pi]."""
        return np.arctan2(self._complex[1], self._complex[0])

    def so2(self) -> SO2:
        """The normalized rotation part."""
        return SO2._wrap(self._complex / self.scale())

    def matrix(self) -> np.ndarray:
        """2x2 matrix ``scale * R(theta)``."""
        re, im = self._complex
        return np.array([[re, -im], [im, re]], dtype=self.dtype)

    def rotation_matrix(self) -> np.ndarray:
        """2x2 rotation matrix ``R(theta)`` without the scale."""
        return self.so2().matrix()

    def log(self) -> np.ndarray:
        """Logarithm map: ``[log(scale), angle]``."""
        return np.array([np.log(self.scale()), self.angle()], dtype=self.dtype)

    def inverse(self) -> "RxSO2":
        n = self.scale()
        re, im = self._complex
        return RxSO2._wrap(np.array([(re / n) / n, -(im / n) / n], dtype=self.dtype))

    def adj(self) -> np.ndarray:
        """Adjoint matrix; the identity, since the group is abelian."""
        return np.eye(2, dtype=self.dtype)

    def act(self, points) -> np.ndarray:
        """Scale and rotate a point of shape (2,) or points of shape (N, 2)."""
        p = np.asarray(points)
        if p.shape[-1] != 2:
            raise ValueError(f"points must have trailing dimension 2, got shape {p.shape}")
        return p @ self.matrix().T

    def __mul__(self, other):
        if isinstance(other, _RxSO2Base):
            return RxSO2._wrap(_product(self._complex, other._complex))
        return self.act(other)

    def Dx_this_mul_exp_x_at_0(self) -> np.ndarray:
        """Jacobian of ``(self * exp(x)).params()`` w.r.t. ``x`` at ``x = 0``."""
        return self.matrix()

    def Dx_log_this_inv_by_x_at_this(self) -> np.ndarray:
        """Jacobian of ``log(self^-1 * x)`` w.r.t. the parameters of ``x`` at ``x = self``."""
        return self.inverse().matrix()

    def __eq__(self, other):
        if not isinstance(other, _RxSO2Base):
            return NotImplemented
        return bool(self._complex[0] == other._complex[0] and self._complex[1] == other._complex[1])

    def is_approx(self, other: "_RxSO2Base", tol=None) -> bool:
        """Parameters equal within ``tol`` (default ``epsilon(dtype)``)."""
        tol = epsilon(self.dtype) if tol is None else tol
        diff = self._complex - other._complex
        return bool(norm(diff[0], diff[1], diff.dtype) <= tol)

    def cast(self, dtype) -> "RxSO2":
        return RxSO2(self._complex, dtype=dtype)

    def copy(self) -> "RxSO2":
        return RxSO2(self._complex)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(complex={self._complex!r})"


class _MutableRxSO2Mixin:
    """Setters that write into ``_complex`` in place."""

    __slots__ = ()

    def set_complex(self, z) -> None:
        """Overwrite the parameters.

        Raises:
            ValueError: if ``|z|`` is below epsilon
        """
        zz = as_pair(z, self.dtype)
        if norm(zz[0], zz[1], zz.dtype) < epsilon(self.dtype):
            raise ValueError("scale factor must be greater than epsilon")
        self._complex[:] = zz

    def try_set_complex(self, z) -> Expected:
        """Like :meth:`set_complex`, but reports CLOSE_TO_ZERO instead of raising.

        On failure the storage is left untouched.
        """
        zz = as_pair(z, self.dtype)
        if norm(zz[0], zz[1], zz.dtype) < epsilon(self.dtype):
            log.debug("try_set_complex rejected %s", zz)
            return Expected.failure(RxSO2FromComplexError.CLOSE_TO_ZERO)
        self._complex[:] = zz
        return Expected.success(self)

    def set_scale(self, scale) -> None:
        """Rescale to ``scale`` keeping the angle.

        Raises:
            ValueError: if ``scale`` is below epsilon
        """
        if scale < epsilon(self.dtype):
            raise ValueError("scale factor must be greater than epsilon")
        unit = self._complex / self.scale()
        self._complex[:] = unit * scale

    def set_angle(self, theta) -> None:
        """Rotate to ``theta`` keeping the scale."""
        s = self.scale()
        self._complex[:] = [s * np.cos(theta), s * np.sin(theta)]

    def set_so2(self, so2: SO2) -> None:
        """Take the rotation from ``so2`` keeping the scale."""
        s = self.scale()
        self._complex[:] = s * so2._unit_complex

    def set_rotation_matrix(self, R) -> None:
        """Take the rotation from ``R`` (assumed orthogonal) keeping the scale."""
        s = self.scale()
        M = as_matrix2(R, self.dtype)
        self._complex[:] = s * M[:, 0]

    def set_scaled_rotation_matrix(self, sR) -> None:
        """Take scale and rotation from ``sR`` (assumed ``scale * R``)."""
        M = as_matrix2(sR, self.dtype)
        self._complex[:] = M[:, 0]

    def __imul__(self, other: _RxSO2Base):
        self._complex[:] = _product(self._complex, other._complex)
        return self


class RxSO2(_MutableRxSO2Mixin, _RxSO2Base):
    """Owning RxSO2 element.

    ``RxSO2()`` is the identity. ``RxSO2(z)`` copies the pair ``z`` without
    validation; use :meth:`try_from_complex` for untrusted input.
    """

    __slots__ = ()

    def __init__(self, z=None, dtype=None):
        if z is None:
            self._complex = np.array([1, 0], dtype=as_dtype(dtype))
        else:
            self._complex = as_pair(z, dtype)

    @classmethod
    def _wrap(cls, z: np.ndarray) -> "RxSO2":
        out = cls.__new__(cls)
        out._complex = z
        return out

    # Construction

    @classmethod
    def identity(cls, dtype=None) -> "RxSO2":
        return cls(dtype=dtype)

    @classmethod
    def from_complex(cls, z, dtype=None) -> "RxSO2":
        """Trusting constructor from ``[re, im]``."""
        return cls(z, dtype=dtype)

    @classmethod
    def from_scale_and_so2(cls, scale, so2: SO2) -> "RxSO2":
        """``scale * so2``; the caller guarantees ``scale > 0``."""
        return cls._wrap(as_pair(scale * so2._unit_complex))

    @classmethod
    def from_scale_and_rotation_matrix(cls, scale, R) -> "RxSO2":
        """``scale * R``; ``R`` is not checked to be a rotation."""
        M = as_matrix2(R)
        return cls._wrap(as_pair(scale * M[:, 0]))

    @classmethod
    def from_scaled_rotation_matrix(cls, sR) -> "RxSO2":
        """Trusting constructor from ``scale * R``."""
        M = as_matrix2(sR)
        return cls._wrap(M[:, 0].copy())

    @classmethod
    def try_from_complex(cls, z) -> Expected:
        """Build from ``[re, im]``, failing with CLOSE_TO_ZERO if ``|z| < epsilon``."""
        zz = as_pair(z)
        require_floating(zz.dtype, "RxSO2.try_from_complex")
        out = np.zeros(2, dtype=zz.dtype)
        code = kernels.rxso2_try_from_complex(zz, epsilon(zz.dtype), out)
        if code != kernels.OK:
            log.debug("RxSO2.try_from_complex rejected %s", zz)
            return Expected.failure(RxSO2FromComplexError(code))
        return Expected.success(cls._wrap(out))

    @classmethod
    def try_from_matrix(cls, M, tolerance=None) -> Expected:
        """Recover an element from a matrix that should be ``scale * R``.

        A negative determinant fails with NEGATIVE_DETERMINANT regardless of
        orthogonality. Otherwise, unless ``M / sqrt(det M)`` is orthogonal
        within ``tolerance`` (default ``epsilon(dtype)``), it fails with
        POSITIVE_DETERMINANT_BUT_NOT_SCALED_ORTHOGONAL.
        """
        A = as_matrix2(M)
        require_floating(A.dtype, "RxSO2.try_from_matrix")
        tol = epsilon(A.dtype) if tolerance is None else tolerance
        out = np.zeros(2, dtype=A.dtype)
        code = kernels.rxso2_try_from_matrix(A, tol, out)
        if code != kernels.OK:
            error = ScaledOrthogonalMatrixError(code)
            log.debug("RxSO2.try_from_matrix rejected matrix: %s", error.name)
            return Expected.failure(error)
        return Expected.success(cls._wrap(out))

    # Lie algebra

    @classmethod
    def exp(cls, tangent, dtype=None) -> "RxSO2":
        """Exponential map ``[sigma, theta] -> exp(sigma) * (cos theta, sin theta)``.

        The scale is clamped to ``[min_scale, exp(max_log_scale)]`` for the
        dtype, so a very negative ``sigma`` yields an element at the
        saturation floor. ``theta`` is not reduced; cos/sin handle large
        angles with their native precision.
        """
        t = as_pair(tangent, dtype)
        sigma, theta = t
        hi = max_log_scale(t.dtype)
        if sigma > hi:
            sigma = hi
        s = np.exp(sigma)
        floor = min_scale(t.dtype)
        if s < floor:
            s = floor
        return cls._wrap(np.array([s * np.cos(theta), s * np.sin(theta)], dtype=t.dtype))

    @staticmethod
    def hat(tangent) -> np.ndarray:
        """Lie algebra matrix ``[[sigma, -theta], [theta, sigma]]``."""
        t = as_pair(tangent)
        sigma, theta = t
        return np.array([[sigma, -theta], [theta, sigma]], dtype=t.dtype)

    @staticmethod
    def vee(Omega) -> np.ndarray:
        """Inverse of :meth:`hat`."""
        M = as_matrix2(Omega)
        return np.array([M[0, 0], M[1, 0]], dtype=M.dtype)

    @classmethod
    def generator(cls, i: int, dtype=None) -> np.ndarray:
        """i-th infinitesimal generator: 0 is scaling, 1 is rotation."""
        if i not in (0, 1):
            raise ValueError(f"generator index must be 0 or 1, got {i}")
        e = np.zeros(2, dtype=as_dtype(dtype))
        e[i] = 1
        return cls.hat(e)

    @staticmethod
    def lie_bracket(a, b) -> np.ndarray:
        """Always zero; the algebra is abelian."""
        ta = as_pair(a)
        tb = as_pair(b)
        return np.zeros(2, dtype=np.result_type(ta.dtype, tb.dtype))

    @classmethod
    def Dx_exp_x(cls, tangent) -> np.ndarray:
        """Jacobian of ``exp(x).params()`` w.r.t. ``x``."""
        return cls.exp(tangent).matrix()

    @staticmethod
    def Dx_exp_x_at_0(dtype=None) -> np.ndarray:
        return np.eye(2, dtype=as_dtype(dtype))

    # Curves and means

    @classmethod
    def interpolate(cls, a: _RxSO2Base, b: _RxSO2Base, t) -> "RxSO2":
        """Geodesic ``a * exp(t * log(a^-1 * b))``; ``t`` in [0, 1].

        The relative step is neither saturated nor clamped, so the endpoints
        are reached even when the scales of ``a`` and ``b`` differ by more
        than the saturation floor. Only the final product saturates.
        """
        step = _unclamped_exp(t * _relative_log(a._complex, b._complex))
        return cls._wrap(_product(a._complex, step))

    @classmethod
    def average(cls, elements) -> "RxSO2":
        """Bi-invariant mean.

        Closed form since the group is abelian: the mean of the logs taken
        relative to the first element. Like :meth:`interpolate`, the
        relative logs and the mean step skip saturation.
        """
        elements = list(elements)
        if not elements:
            raise ValueError("cannot average an empty sequence")
        g0 = elements[0]
        tangents = np.array([_relative_log(g0._complex, g._complex) for g in elements])
        step = _unclamped_exp(tangents.mean(axis=0))
        return cls._wrap(_product(g0._complex, step))


def is_scaled_orthogonal_and_positive(sR, tolerance=None) -> bool:
    """True if ``sR`` is ``scale * R`` with ``scale > 0`` and ``R`` a rotation."""
    A = as_matrix2(sR)
    require_floating(A.dtype, "is_scaled_orthogonal_and_positive")
    tol = epsilon(A.dtype) if tolerance is None else tolerance
    return bool(kernels.rxso2_is_scaled_orthogonal_and_positive(A, tol))
