"""Zero-allocation RxSO2/SO2 kernels for tight estimation loops.

This module provides numba-compiled operations on the raw complex
parameters of RxSO2 elements. They exist alongside the :class:`RxSO2`
object API because every method on the object allocates a fresh numpy
array for its result. Inside filters and solvers that compose thousands of
elements per cycle this churn dominates; these kernels never allocate and
instead require the caller to provide output buffers.

Conventions:
    - An element is a 2-element array ``[re, im]`` = ``scale * (cos, sin)``
    - A tangent is a 2-element array ``[sigma, theta]`` (log-scale, angle)
    - Matrices are 2x2, ``scale * R(theta)``
    - Output buffers may alias inputs
    - Tolerances are arguments, taken from :mod:`rxsolie.constants` for the
      dtype of the buffers (``min_scale(dtype)``, ``max_log_scale(dtype)``,
      ``epsilon(dtype)``)

Kernels are compiled per floating dtype; they have no typing for
``object`` arrays, which is why fitting is unavailable for autodiff
scalars.
"""

import logging

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from rxsolie.constants import epsilon, max_log_scale, min_scale

log = logging.getLogger(__name__)

# Kernel return codes, mirrored by the enums in rxsolie.expected
OK = 0
ERR_NEGATIVE_DETERMINANT = 1
ERR_NOT_SCALED_ORTHOGONAL = 2
ERR_CLOSE_TO_ZERO = 1


@njit(cache=True)
def complex_equal_2(a: np.ndarray, b: np.ndarray) -> bool:
    """Exact comparison of two parameter pairs without np.array_equal dispatch."""
    return a[0] == b[0] and a[1] == b[1]


@njit(cache=True)
def _mul_saturated(a0: float, a1: float, b0: float, b1: float, floor: float):
    """Complex product, with the scale clamped up to floor.

    When the product's magnitude falls below floor the result is rebuilt
    from the product of the two unit parts, so the angle is kept even if the
    raw product underflowed to zero.
    """
    re = a0 * b0 - a1 * b1
    im = a0 * b1 + a1 * b0
    if np.hypot(re, im) < floor:
        na = np.hypot(a0, a1)
        nb = np.hypot(b0, b1)
        u0 = a0 / na
        u1 = a1 / na
        v0 = b0 / nb
        v1 = b1 / nb
        re = (u0 * v0 - u1 * v1) * floor
        im = (u0 * v1 + u1 * v0) * floor
    return re, im


# =============================================================================
# Basic RxSO2 operations
# =============================================================================


@njit(cache=True)
def rxso2_identity(out: np.ndarray) -> None:
    """Set out to the identity element [1, 0]."""
    out[0] = 1.0
    out[1] = 0.0


@njit(cache=True)
def rxso2_mul(a: np.ndarray, b: np.ndarray, floor: float, out: np.ndarray) -> None:
    """Group product: out = a * b (complex multiply, saturating).

    Args:
        a: First element [re, im]
        b: Second element [re, im]
        floor: Saturation scale, ``min_scale(dtype)`` of the buffers
        out: 2-element output array (may alias a or b)
    """
    re, im = _mul_saturated(a[0], a[1], b[0], b[1], floor)
    out[0] = re
    out[1] = im


@njit(cache=True)
def rxso2_inverse(z: np.ndarray, out: np.ndarray) -> None:
    """Group inverse: complex reciprocal conj(z) / |z|^2.

    Divides by the norm twice instead of by the squared norm so tiny
    scales do not underflow.

    Args:
        z: Element [re, im] with nonzero scale
        out: 2-element output array (may alias z)
    """
    n = np.hypot(z[0], z[1])
    re = (z[0] / n) / n
    im = -(z[1] / n) / n
    out[0] = re
    out[1] = im


@njit(cache=True)
def rxso2_matrix(z: np.ndarray, out: np.ndarray) -> None:
    """2x2 scaled rotation matrix [[re, -im], [im, re]].

    Args:
        z: Element [re, im]
        out: 2x2 output matrix
    """
    out[0, 0] = z[0]
    out[0, 1] = -z[1]
    out[1, 0] = z[1]
    out[1, 1] = z[0]


@njit(cache=True)
def rxso2_act(z: np.ndarray, p: np.ndarray, out: np.ndarray) -> None:
    """Apply an element to a 2D point: out = scale * R(theta) @ p.

    Args:
        z: Element [re, im]
        p: 2D point
        out: 2-element output point (may alias p)
    """
    x = z[0] * p[0] - z[1] * p[1]
    y = z[1] * p[0] + z[0] * p[1]
    out[0] = x
    out[1] = y


@njit(cache=True)
def batch_rxso2_act(z: np.ndarray, points: np.ndarray, out: np.ndarray) -> None:
    """Apply one element to an (N, 2) array of points.

    Args:
        z: Element [re, im]
        points: (N, 2) input points
        out: (N, 2) output points (may alias points)
    """
    re = z[0]
    im = z[1]
    for i in range(points.shape[0]):
        x = re * points[i, 0] - im * points[i, 1]
        y = im * points[i, 0] + re * points[i, 1]
        out[i, 0] = x
        out[i, 1] = y


# =============================================================================
# Exponential and logarithm maps
# =============================================================================


@njit(cache=True)
def rxso2_exp(
    tangent: np.ndarray, floor: float, max_log: float, out: np.ndarray
) -> None:
    """Exponential map [sigma, theta] -> exp(sigma) * (cos theta, sin theta).

    The scale is clamped to [floor, exp(max_log)] so it neither drops below
    the saturation floor nor overflows. theta is passed to cos/sin
    unreduced.

    Args:
        tangent: 2-element tangent [sigma, theta]
        floor: Saturation scale, ``min_scale(dtype)`` of out
        max_log: Largest log-scale, ``max_log_scale(dtype)`` of out
        out: 2-element output element
    """
    sigma = tangent[0]
    theta = tangent[1]
    if sigma > max_log:
        sigma = max_log
    s = np.exp(sigma)
    if s < floor:
        s = floor
    out[0] = s * np.cos(theta)
    out[1] = s * np.sin(theta)


@njit(cache=True)
def rxso2_log(z: np.ndarray, out: np.ndarray) -> None:
    """Logarithm map: out = [log(scale), atan2(im, re)], angle in (-pi, pi].

    Args:
        z: Element [re, im] with nonzero scale
        out: 2-element output tangent [sigma, theta]
    """
    sigma = np.log(np.hypot(z[0], z[1]))
    theta = np.arctan2(z[1], z[0])
    out[0] = sigma
    out[1] = theta


@njit(cache=True)
def rxso2_interp(
    a: np.ndarray, b: np.ndarray, s: float, floor: float, out: np.ndarray
) -> None:
    """Interpolate between two elements along the group geodesic.

    Computes: a * exp(s * log(a^-1 * b))

    The relative log is taken as a difference of log-scales and the step
    exp(s * ...) is not clamped, so endpoints whose scale ratio lies below
    the saturation floor are still reached. Only the final product
    saturates.

    Args:
        a: Start element
        b: End element
        s: Interpolation factor [0, 1]
        floor: Saturation scale, ``min_scale(dtype)`` of out
        out: 2-element output element
    """
    na = np.hypot(a[0], a[1])
    nb = np.hypot(b[0], b[1])
    ua0 = a[0] / na
    ua1 = a[1] / na
    ub0 = b[0] / nb
    ub1 = b[1] / nb

    # log(a^-1 * b), scaled by s
    sigma = s * (np.log(nb) - np.log(na))
    theta = s * np.arctan2(ua0 * ub1 - ua1 * ub0, ua0 * ub0 + ua1 * ub1)

    scale = np.exp(sigma)
    re, im = _mul_saturated(a[0], a[1], scale * np.cos(theta), scale * np.sin(theta), floor)
    out[0] = re
    out[1] = im


# =============================================================================
# Fitting and validation (floating dtypes only)
# =============================================================================


@njit(cache=True)
def so2_fit_matrix(M: np.ndarray, out: np.ndarray) -> None:
    """Closest rotation matrix to an arbitrary 2x2 matrix (Frobenius norm).

    Maximizes trace(R^T M), whose optimum angle is
    atan2(M10 - M01, M00 + M11). A matrix with no rotational part maps to
    the identity.

    Args:
        M: 2x2 input matrix
        out: 2x2 output rotation matrix
    """
    theta = np.arctan2(M[1, 0] - M[0, 1], M[0, 0] + M[1, 1])
    c = np.cos(theta)
    s = np.sin(theta)
    out[0, 0] = c
    out[0, 1] = -s
    out[1, 0] = s
    out[1, 1] = c


@njit(cache=True)
def _normalized_entries(M: np.ndarray):
    """Entries of M divided by its largest magnitude.

    The determinant of the result can neither overflow nor underflow, and
    has the sign of det(M). A zero matrix stays zero.
    """
    m = max(abs(M[0, 0]), abs(M[0, 1]), abs(M[1, 0]), abs(M[1, 1]))
    if m == 0.0:
        m = 1.0
    return M[0, 0] / m, M[0, 1] / m, M[1, 0] / m, M[1, 1] / m


@njit(cache=True)
def _orthogonality_residual(r00: float, r01: float, r10: float, r11: float) -> float:
    """Frobenius norm of R @ R^T - I."""
    e00 = r00 * r00 + r01 * r01 - 1.0
    e01 = r00 * r10 + r01 * r11
    e11 = r10 * r10 + r11 * r11 - 1.0
    return np.sqrt(e00 * e00 + 2.0 * e01 * e01 + e11 * e11)


@njit(cache=True)
def rxso2_is_scaled_orthogonal_and_positive(sR: np.ndarray, eps: float) -> bool:
    """True if sR = scale * R with scale > 0 and R orthogonal within eps.

    The residual is measured on sR / sqrt(det(sR)), so eps does not depend
    on the scale. The division happens after normalizing by the largest
    entry, which keeps det finite for any finite sR.

    Args:
        sR: 2x2 matrix
        eps: Orthogonality tolerance, ``epsilon(dtype)`` by default

    Returns:
        True if sR is a positive multiple of a rotation
    """
    m00, m01, m10, m11 = _normalized_entries(sR)
    det = m00 * m11 - m01 * m10
    if det <= 0.0:
        return False
    scale = np.sqrt(det)
    residual = _orthogonality_residual(m00 / scale, m01 / scale, m10 / scale, m11 / scale)
    return residual < eps


@njit(cache=True)
def rxso2_try_from_matrix(M: np.ndarray, eps: float, out: np.ndarray) -> int:
    """Recover an element from a 2x2 matrix.

    The sign of the determinant is checked before orthogonality.

    Args:
        M: 2x2 matrix expected to be scale * R
        eps: Orthogonality tolerance
        out: 2-element output element

    Returns:
        OK and out set to the first column of M, or
        ERR_NEGATIVE_DETERMINANT / ERR_NOT_SCALED_ORTHOGONAL with out
        untouched
    """
    m00, m01, m10, m11 = _normalized_entries(M)
    if m00 * m11 - m01 * m10 < 0.0:
        return ERR_NEGATIVE_DETERMINANT
    if not rxso2_is_scaled_orthogonal_and_positive(M, eps):
        return ERR_NOT_SCALED_ORTHOGONAL
    out[0] = M[0, 0]
    out[1] = M[1, 0]
    return OK


@njit(cache=True)
def rxso2_try_from_complex(z: np.ndarray, eps: float, out: np.ndarray) -> int:
    """Copy z into out unless |z| < eps (ERR_CLOSE_TO_ZERO, out untouched)."""
    if np.hypot(z[0], z[1]) < eps:
        return ERR_CLOSE_TO_ZERO
    out[0] = z[0]
    out[1] = z[1]
    return OK


@njit(cache=True)
def so2_try_from_matrix(M: np.ndarray, eps: float, out: np.ndarray) -> int:
    """Recover a unit complex number from a rotation matrix.

    Returns OK, ERR_NEGATIVE_DETERMINANT or ERR_NOT_SCALED_ORTHOGONAL (which
    here means "not orthogonal"). On success out is the normalized first
    column.
    """
    m00, m01, m10, m11 = _normalized_entries(M)
    if m00 * m11 - m01 * m10 < 0.0:
        return ERR_NEGATIVE_DETERMINANT
    if _orthogonality_residual(M[0, 0], M[0, 1], M[1, 0], M[1, 1]) >= eps:
        return ERR_NOT_SCALED_ORTHOGONAL
    n = np.hypot(M[0, 0], M[1, 0])
    out[0] = M[0, 0] / n
    out[1] = M[1, 0] / n
    return OK


@njit(cache=True)
def so2_try_from_complex(z: np.ndarray, eps: float, out: np.ndarray) -> int:
    """Normalize z into out unless |z| < eps (ERR_CLOSE_TO_ZERO)."""
    n = np.hypot(z[0], z[1])
    if n < eps:
        return ERR_CLOSE_TO_ZERO
    out[0] = z[0] / n
    out[1] = z[1] / n
    return OK


def warmup_numba_rxso2() -> None:
    """Pre-compile all numba kernels with dummy data.

    Call this during app startup to avoid JIT compilation lag during the
    first hot path execution. Kernels are compiled for both float64 and
    float32 buffers.
    """
    log.info("Compiling RxSO2 kernels")
    for dtype in (np.float64, np.float32):
        eps = epsilon(dtype)
        floor = min_scale(dtype)
        max_log = max_log_scale(dtype)
        z = np.array([1.0, 0.0], dtype=dtype)
        z_b = np.array([1.0, 0.0], dtype=dtype)
        z_out = np.zeros(2, dtype=dtype)
        M = np.eye(2, dtype=dtype)
        M_out = np.zeros((2, 2), dtype=dtype)
        points = np.zeros((1, 2), dtype=dtype)
        points_out = np.zeros((1, 2), dtype=dtype)

        complex_equal_2(z, z_b)

        rxso2_identity(z_out)
        rxso2_mul(z, z_b, floor, z_out)
        rxso2_inverse(z, z_out)
        rxso2_matrix(z, M_out)
        rxso2_act(z, z_b, z_out)
        batch_rxso2_act(z, points, points_out)

        rxso2_exp(z, floor, max_log, z_out)
        rxso2_log(z, z_out)
        rxso2_interp(z, z_b, 0.5, floor, z_out)

        so2_fit_matrix(M, M_out)
        rxso2_is_scaled_orthogonal_and_positive(M, eps)
        rxso2_try_from_matrix(M, eps, z_out)
        rxso2_try_from_complex(z, eps, z_out)
        so2_try_from_matrix(M, eps, z_out)
        so2_try_from_complex(z, eps, z_out)
    log.info("RxSO2 kernels compiled")
