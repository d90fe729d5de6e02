"""Typed success-or-error results for the validating constructors.

Validation never raises: ``try_*`` functions return an :class:`Expected`
which is truthy on success and carries one member of a closed error enum on
failure. Error codes are ``IntEnum`` so the numba kernels can report them as
plain integers.
"""

import dataclasses
from enum import IntEnum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=IntEnum)

# Kernel return code for success; error enums start at 1.
OK = 0


class ScaledOrthogonalMatrixError(IntEnum):
    NEGATIVE_DETERMINANT = 1
    POSITIVE_DETERMINANT_BUT_NOT_SCALED_ORTHOGONAL = 2


class RxSO2FromComplexError(IntEnum):
    CLOSE_TO_ZERO = 1


class OrthogonalMatrixError(IntEnum):
    NEGATIVE_DETERMINANT = 1
    POSITIVE_DETERMINANT_BUT_NOT_ORTHOGONAL = 2


class SO2FromComplexError(IntEnum):
    CLOSE_TO_ZERO = 1


@dataclasses.dataclass(frozen=True)
class Expected(Generic[T, E]):
    """Either a value or an error, never both."""

    value: Optional[T] = None
    error: Optional[E] = None

    @classmethod
    def success(cls, value: T) -> "Expected[T, E]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: E) -> "Expected[T, E]":
        return cls(error=error)

    def __bool__(self) -> bool:
        return self.error is None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising ``ValueError`` if this is a failure."""
        if self.error is not None:
            raise ValueError(f"{type(self.error).__name__}.{self.error.name}")
        return self.value
