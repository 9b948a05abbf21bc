"""
Fallback math primitives implemented on the IEEE 754 bit pattern.

Installed for whatever the target lacks natively (see core.math_table).
Classification constants match the Linux FP_* values.
"""
import math
import struct
from enum import IntEnum, unique

_EXP_MASK = 0x7FF
_MANT_MASK = (1 << 52) - 1


@unique
class FpClass(IntEnum):
    NAN = 0
    INFINITE = 1
    ZERO = 2
    SUBNORMAL = 3
    NORMAL = 4


def double_bits(x: float) -> int:
    return struct.unpack(">Q", struct.pack(">d", x))[0]


def classify_float(x: float) -> FpClass:
    bits = double_bits(x)
    exp = (bits >> 52) & _EXP_MASK
    mant = bits & _MANT_MASK
    if exp == _EXP_MASK:
        return FpClass.NAN if mant else FpClass.INFINITE
    if exp == 0:
        return FpClass.SUBNORMAL if mant else FpClass.ZERO
    return FpClass.NORMAL


def sign_bit(x: float) -> bool:
    return bool(double_bits(x) >> 63)


def is_finite(x: float) -> bool:
    return ((double_bits(x) >> 52) & _EXP_MASK) != _EXP_MASK


def is_nan(x: float) -> bool:
    return classify_float(x) == FpClass.NAN


def fmin(a: float, b: float) -> float:
    """C99 fmin: a NaN argument is ignored; -0.0 sorts below +0.0."""
    if is_nan(a):
        return b
    if is_nan(b):
        return a
    if a == b:
        return a if sign_bit(a) else b
    return a if a < b else b


def fmax(a: float, b: float) -> float:
    """C99 fmax: a NaN argument is ignored; +0.0 sorts above -0.0."""
    if is_nan(a):
        return b
    if is_nan(b):
        return a
    if a == b:
        return b if sign_bit(a) else a
    return a if a > b else b


def round_half_away(x: float) -> float:
    """C99 round: halfway cases away from zero, sign of zero preserved."""
    if not is_finite(x) or x == 0.0:
        return x
    mag = abs(x)
    if mag >= 2.0 ** 52:
        return x
    whole = math.floor(mag)
    if mag - whole >= 0.5:
        whole += 1
    return math.copysign(float(whole), x)
