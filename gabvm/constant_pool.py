"""Runtime values and the per-chunk constant pool."""

from __future__ import annotations

import enum
import math
import struct
from dataclasses import dataclass

INITIAL_CAPACITY = 4

_FLOAT32 = struct.Struct("<f")


def _to_float32(value: float) -> float:
    try:
        return _FLOAT32.unpack(_FLOAT32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


class VariantType(enum.Enum):
    """Kinds of runtime values."""

    NUMBER = enum.auto()
    BOOL = enum.auto()


@dataclass(frozen=True)
class Variant:
    """A runtime value: a single-precision number or a boolean."""

    type: VariantType
    value: float | bool

    @staticmethod
    def number(value: float) -> Variant:
        """Make a number, rounded to single precision."""
        return Variant(VariantType.NUMBER, _to_float32(float(value)))

    @staticmethod
    def boolean(value: bool) -> Variant:
        """Make a boolean."""
        return Variant(VariantType.BOOL, bool(value))


class ConstantPool:
    """Growable list of constants with a fixed upper bound."""

    def __init__(self, max_capacity: int) -> None:
        self.max_capacity = max_capacity
        self._capacity = INITIAL_CAPACITY
        self._constants: list[Variant] = []

    @property
    def capacity(self) -> int:
        """Current reserved size; doubles when full, capped at max_capacity."""
        return self._capacity

    def add(self, value: Variant) -> int:
        """Store a constant and return its index."""
        count = len(self._constants)
        if count >= self.max_capacity:
            raise OverflowError(f"constant pool is full ({self.max_capacity} entries)")
        if count == self._capacity:
            self._capacity = min(self._capacity * 2, self.max_capacity)
        self._constants.append(value)
        return count

    def get(self, index: int) -> Variant:
        """Return the constant at an index."""
        if not 0 <= index < len(self._constants):
            raise IndexError(f"constant index {index} out of range")
        return self._constants[index]

    def __len__(self) -> int:
        return len(self._constants)