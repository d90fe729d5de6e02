import numpy as np
import pytest

from rxsolie import RxSO2

TANGENTS = [
    (0.0, 0.0),
    (1.0, 0.0),
    (1.0, 0.1),
    (0.0, 0.1),
    (0.0, -0.1),
    (-1.0, -0.1),
    (20.0, 2.0),
]

POINTS = [(1.0, 4.0), (1.0, -3.0)]


@pytest.fixture(params=[np.float64, np.float32], ids=["float64", "float32"])
def dtype(request):
    return np.dtype(request.param)


@pytest.fixture
def tol(dtype):
    """Comparison tolerance for values computed through several operations."""
    return 1e-9 if dtype == np.float64 else 1e-4


@pytest.fixture
def elements(dtype):
    pi = np.pi
    return [
        RxSO2.exp([0.2, 1.0], dtype=dtype),
        RxSO2.exp([0.2, 1.1], dtype=dtype),
        RxSO2.exp([0.0, 1.1], dtype=dtype),
        RxSO2.exp([0.00001, 0.0], dtype=dtype),
        RxSO2.exp([0.00001, 0.00001], dtype=dtype),
        RxSO2.exp([pi, 0.9], dtype=dtype),
        RxSO2.exp([0.2, 0.0], dtype=dtype)
        * RxSO2.exp([pi, 0.0], dtype=dtype)
        * RxSO2.exp([-0.2, 0.0], dtype=dtype),
        RxSO2.exp([0.3, 0.0], dtype=dtype)
        * RxSO2.exp([pi, 0.001], dtype=dtype)
        * RxSO2.exp([-0.3, 0.0], dtype=dtype),
    ]


@pytest.fixture
def tangents(dtype):
    return [np.array(t, dtype=dtype) for t in TANGENTS]


@pytest.fixture
def points(dtype):
    return [np.array(p, dtype=dtype) for p in POINTS]
