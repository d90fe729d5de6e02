"""Zero-copy RxSO2 views over caller-owned buffers.

A view reads and writes the first two slots of a numpy array the caller
owns, laid out as ``[re, im]``. Nothing is copied, so several views (and
the owner) observe each other's writes. The buffer must stay alive and
must not be resized for as long as the view is used; concurrent writes
through views of the same buffer need external synchronization.

:class:`RxSO2ConstMap` holds a non-writeable numpy view over the same
memory and exposes no setters. :class:`RxSO2Map` has the full mutable API.
Operations producing new elements (``*``, ``inverse``, ``exp``) always
return owning :class:`rxsolie.RxSO2` objects.
"""

import numpy as np

from rxsolie.rxso2 import _MutableRxSO2Mixin, _RxSO2Base


def _slots(buffer, writeable: bool) -> np.ndarray:
    if not isinstance(buffer, np.ndarray):
        raise TypeError(f"expected a numpy array, got {type(buffer).__name__}")
    if buffer.ndim != 1 or buffer.shape[0] < 2:
        raise ValueError(f"expected a 1-D buffer with at least 2 slots, got shape {buffer.shape}")
    if not buffer.flags.c_contiguous:
        raise ValueError("buffer slots must be contiguous")
    if writeable and not buffer.flags.writeable:
        raise ValueError("RxSO2Map needs a writeable buffer, use RxSO2ConstMap")
    return buffer[:2]


class RxSO2Map(_MutableRxSO2Mixin, _RxSO2Base):
    """Mutable RxSO2 over ``buffer[0:2]``."""

    __slots__ = ()

    def __init__(self, buffer: np.ndarray):
        self._complex = _slots(buffer, writeable=True)


class RxSO2ConstMap(_RxSO2Base):
    """Read-only RxSO2 over ``buffer[0:2]``."""

    __slots__ = ()

    def __init__(self, buffer: np.ndarray):
        view = _slots(buffer, writeable=False).view()
        view.flags.writeable = False
        self._complex = view
