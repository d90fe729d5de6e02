from rxsolie.constants import (
    epsilon,
    epsilon_sqrt,
    is_floating,
    max_log_scale,
    min_log_scale,
    min_scale,
    pi,
)
from rxsolie.expected import (
    Expected,
    OrthogonalMatrixError,
    RxSO2FromComplexError,
    ScaledOrthogonalMatrixError,
    SO2FromComplexError,
)
from rxsolie.numba_rxso2 import (
    # Batch
    batch_rxso2_act,
    # Comparison
    complex_equal_2,
    # Basic RxSO2 operations
    rxso2_act,
    rxso2_exp,
    rxso2_identity,
    rxso2_interp,
    rxso2_inverse,
    # Fitting
    rxso2_is_scaled_orthogonal_and_positive,
    rxso2_log,
    rxso2_matrix,
    rxso2_mul,
    rxso2_try_from_complex,
    rxso2_try_from_matrix,
    so2_fit_matrix,
    so2_try_from_complex,
    so2_try_from_matrix,
    # Warmup
    warmup_numba_rxso2,
)
from rxsolie.rxso2 import RxSO2, is_scaled_orthogonal_and_positive
from rxsolie.so2 import SO2, make_rotation_matrix
from rxsolie.views import RxSO2ConstMap, RxSO2Map

__all__ = [
    "RxSO2",
    "RxSO2Map",
    "RxSO2ConstMap",
    "SO2",
    "make_rotation_matrix",
    "is_scaled_orthogonal_and_positive",
    # Results and errors
    "Expected",
    "ScaledOrthogonalMatrixError",
    "RxSO2FromComplexError",
    "OrthogonalMatrixError",
    "SO2FromComplexError",
    # Per-dtype constants
    "epsilon",
    "epsilon_sqrt",
    "pi",
    "is_floating",
    "min_log_scale",
    "min_scale",
    "max_log_scale",
    # Zero-allocation kernels
    "complex_equal_2",
    "rxso2_identity",
    "rxso2_mul",
    "rxso2_inverse",
    "rxso2_matrix",
    "rxso2_act",
    "batch_rxso2_act",
    "rxso2_exp",
    "rxso2_log",
    "rxso2_interp",
    "so2_fit_matrix",
    "rxso2_is_scaled_orthogonal_and_positive",
    "rxso2_try_from_matrix",
    "rxso2_try_from_complex",
    "so2_try_from_matrix",
    "so2_try_from_complex",
    "warmup_numba_rxso2",
]
