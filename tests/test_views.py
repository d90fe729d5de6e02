"""Tests for zero-copy RxSO2 views over caller-owned buffers."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from rxsolie import RxSO2, RxSO2ConstMap, RxSO2FromComplexError, RxSO2Map, epsilon


class TestRawDataAccess:
    """Views alias the caller's memory."""

    def test_const_map(self, dtype):
        raw = np.array([0, 1], dtype=dtype)
        view = RxSO2ConstMap(raw)
        assert_allclose(view.complex(), raw, atol=epsilon(dtype))
        assert view.data.ctypes.data == raw.ctypes.data
        assert view.dtype == dtype

    def test_const_map_shallow_copy(self, dtype):
        raw = np.array([0, 1], dtype=dtype)
        view = RxSO2ConstMap(raw)
        other = RxSO2ConstMap(view.data)
        np.testing.assert_array_equal(other.complex(), view.complex())
        assert other.data.ctypes.data == raw.ctypes.data

    def test_const_map_is_read_only(self):
        raw = np.array([0.0, 1.0])
        view = RxSO2ConstMap(raw)
        with pytest.raises(ValueError):
            view.data[0] = 5.0
        assert not hasattr(view, "set_complex")
        assert raw.flags.writeable

    def test_map(self, dtype):
        raw = np.array([1, 0], dtype=dtype)
        view = RxSO2Map(raw)
        assert_allclose(view.complex(), raw, atol=epsilon(dtype))
        assert view.data.ctypes.data == raw.ctypes.data

    def test_owning_data(self, dtype):
        raw = np.array([0, 1], dtype=dtype)
        raw2 = np.array([1, 0], dtype=dtype)
        g = RxSO2(raw2)
        for i in range(2):
            assert g.data[i] == raw2[i]
        for i in range(2):
            g.data[i] = raw[i]
        for i in range(2):
            assert g.data[i] == raw[i]
        # The owning element copied its input
        np.testing.assert_array_equal(raw2, [1, 0])

    def test_try_set_complex(self, dtype):
        raw2 = np.array([1, 0], dtype=dtype)
        view = RxSO2Map(np.array([0, 1], dtype=dtype))

        result = view.try_set_complex(raw2)
        assert result
        assert_allclose(view.complex(), raw2, atol=epsilon(dtype))

        result = view.try_set_complex(np.array([0.0, 0.0]))
        assert not result
        assert result.error == RxSO2FromComplexError.CLOSE_TO_ZERO
        assert_allclose(view.complex(), raw2, atol=epsilon(dtype))

    def test_try_set_complex_leaves_buffer(self):
        buffer = np.array([0.5, -0.5, 9.0])
        view = RxSO2Map(buffer)
        assert not view.try_set_complex([1e-12, 1e-12])
        np.testing.assert_array_equal(buffer, [0.5, -0.5, 9.0])


class TestAliasing:
    """Writes through one view are seen by every other view of the buffer."""

    def test_mutable_write_seen_by_const_view(self):
        buffer = np.array([1.0, 0.0])
        writer = RxSO2Map(buffer)
        reader = RxSO2ConstMap(buffer)

        writer.set_angle(np.pi / 2)
        writer.set_scale(3.0)

        assert_allclose(reader.complex(), [0.0, 3.0], atol=1e-12)
        assert_allclose(reader.scale(), 3.0)
        assert_allclose(buffer, [0.0, 3.0], atol=1e-12)

    def test_in_place_compose_writes_buffer(self):
        buffer = np.array([0.0, 2.0])
        view = RxSO2Map(buffer)
        view *= RxSO2([0.0, 3.0])
        assert isinstance(view, RxSO2Map)
        assert_allclose(buffer, [-6.0, 0.0], atol=1e-12)

    def test_offset_slot(self):
        storage = np.zeros(6)
        storage[2:4] = [0.0, 1.0]
        view = RxSO2Map(storage[2:4])
        view.set_scale(2.0)
        assert_allclose(storage, [0.0, 0.0, 0.0, 2.0, 0.0, 0.0])

    def test_operations_return_owning_elements(self):
        buffer = np.array([0.0, 2.0])
        view = RxSO2ConstMap(buffer)
        product = view * view
        assert type(product) is RxSO2
        assert type(view.inverse()) is RxSO2
        product.set_scale(1.0)
        assert_allclose(buffer, [0.0, 2.0])

    def test_view_equals_owning(self):
        buffer = np.array([0.3, 0.4])
        assert RxSO2ConstMap(buffer) == RxSO2([0.3, 0.4])
        assert RxSO2Map(buffer).is_approx(RxSO2([0.3, 0.4]))


class TestViewValidation:
    """Views require a contiguous numpy buffer with two slots."""

    def test_rejects_list(self):
        with pytest.raises(TypeError):
            RxSO2Map([1.0, 0.0])

    def test_rejects_short(self):
        with pytest.raises(ValueError):
            RxSO2ConstMap(np.array([1.0]))

    def test_rejects_strided(self):
        with pytest.raises(ValueError):
            RxSO2Map(np.arange(6.0)[::2])

    def test_mutable_rejects_read_only_buffer(self):
        buffer = np.array([1.0, 0.0])
        buffer.flags.writeable = False
        with pytest.raises(ValueError):
            RxSO2Map(buffer)
        assert RxSO2ConstMap(buffer).scale() == 1.0
