"""
Math table: one capability-checked function table per configuration.

Downstream code calls the same names (classify_float, sign_bit, is_finite,
is_nan, fmin, fmax, round) whether a native or a fallback implementation
backs them.  The choice is made once, from the configuration's native_*
flags, when the table is built.
"""
import logging
import math
import sys
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Mapping

from feature_resolver.core import fallback_math
from feature_resolver.core.fallback_math import FpClass
from feature_resolver.core.resolved import ResolvedConfiguration
from feature_resolver.errors import MissingCapabilityError
from feature_resolver.policy.flags import MATH_FLAGS

logger = logging.getLogger(__name__)


def _native_fpclassify(x: float) -> FpClass:
    if math.isnan(x):
        return FpClass.NAN
    if math.isinf(x):
        return FpClass.INFINITE
    if x == 0.0:
        return FpClass.ZERO
    if abs(x) < sys.float_info.min:
        return FpClass.SUBNORMAL
    return FpClass.NORMAL


def _native_fmin(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    if a == b == 0.0:
        return a if math.copysign(1.0, a) < 0 else b
    return min(a, b)


def _native_fmax(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    if a == b == 0.0:
        return b if math.copysign(1.0, a) < 0 else a
    return max(a, b)


def _native_round(x: float) -> float:
    if not math.isfinite(x) or abs(x) >= 2.0 ** 52:
        return x
    return float(Decimal(x).quantize(Decimal(1), rounding=ROUND_HALF_UP))


NATIVE: Mapping[str, Callable] = MappingProxyType({
    "fpclassify": _native_fpclassify,
    "signbit": lambda x: math.copysign(1.0, x) < 0,
    "isfinite": math.isfinite,
    "isnan": math.isnan,
    "fmin": _native_fmin,
    "fmax": _native_fmax,
    "round": _native_round,
})

FALLBACK: Mapping[str, Callable] = MappingProxyType({
    "fpclassify": fallback_math.classify_float,
    "signbit": fallback_math.sign_bit,
    "isfinite": fallback_math.is_finite,
    "isnan": fallback_math.is_nan,
    "fmin": fallback_math.fmin,
    "fmax": fallback_math.fmax,
    "round": fallback_math.round_half_away,
})


@dataclass(frozen=True)
class MathTable:
    classify_float: Callable[[float], FpClass]
    sign_bit: Callable[[float], bool]
    is_finite: Callable[[float], bool]
    is_nan: Callable[[float], bool]
    fmin: Callable[[float, float], float]
    fmax: Callable[[float, float], float]
    round: Callable[[float], float]
    backing: Mapping[str, str]


def native_primitive(primitive: str, available: FrozenSet[str]) -> Callable:
    """Native implementation of *primitive*; MissingCapabilityError if absent."""
    if primitive not in available:
        raise MissingCapabilityError(primitive)
    return NATIVE[primitive]


def build_math_table(config: ResolvedConfiguration) -> MathTable:
    available = frozenset(p for p, flag in MATH_FLAGS.items() if config[flag])
    chosen: Dict[str, Callable] = {}
    backing: Dict[str, str] = {}
    for primitive in MATH_FLAGS:
        try:
            chosen[primitive] = native_primitive(primitive, available)
            backing[primitive] = "native"
        except MissingCapabilityError as e:
            logger.info("%s; installing bit-pattern fallback", e)
            chosen[primitive] = FALLBACK[primitive]
            backing[primitive] = "fallback"

    return MathTable(
        classify_float=chosen["fpclassify"],
        sign_bit=chosen["signbit"],
        is_finite=chosen["isfinite"],
        is_nan=chosen["isnan"],
        fmin=chosen["fmin"],
        fmax=chosen["fmax"],
        round=chosen["round"],
        backing=MappingProxyType(dict(sorted(backing.items()))),
    )
