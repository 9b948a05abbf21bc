"""
Facts: typed platform signals and the facts derived from them.

Two layers:
  1. RawSignals: already-typed compiler/platform identifiers as some
     external source reports them (host probe, ELF probe,
     a JSON facts file).  Any field may be missing.
  2. PlatformFacts: the classified facts the rest of the pipeline consumes.
     Produced once by the Signal Collector, immutable.
"""
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import FrozenSet, Optional, Tuple


@unique
class ByteOrder(str, Enum):
    LITTLE = "little"
    BIG = "big"
    UNKNOWN = "unknown"


@unique
class CStandardLevel(str, Enum):
    LEGACY = "legacy"    # pre-C99
    MODERN = "modern"    # C99 or later


MATH_PRIMITIVES: Tuple[str, ...] = (
    "fmin",
    "fmax",
    "round",
    "fpclassify",
    "signbit",
    "isfinite",
    "isnan",
)


@dataclass(frozen=True)
class DateProvider:
    """Platform primitives backing the Date built-in."""

    now: str = "gettimeofday"          # gettimeofday | time
    tzo: str = "gmtime"
    prs: str = "strptime"              # strptime | none
    fmt: str = "strftime"              # strftime | none


@dataclass(frozen=True)
class RawSignals:
    """Compiler/platform identifiers as reported by a signal source."""

    arch: str = "unknown"                  # e.g. "x86_64", "i386", "arm", "m68k"
    os_family: str = "unknown"             # linux, darwin, bsd, unix, posix, tos, amigaos, windows
    compiler_family: str = "unknown"       # gcc, clang, vbcc, purec, msvc
    compiler_version: Tuple[int, int] = (0, 0)

    stdc_version: Optional[int] = None     # value of __STDC_VERSION__

    # endian headers (__BYTE_ORDER / __FLOAT_WORD_ORDER or equivalents)
    byte_order: Optional[str] = None       # "little" | "big"
    float_word_order: Optional[str] = None

    word_size: Optional[int] = None        # __WORDSIZE
    uint_max: Optional[int] = None         # UINT_MAX
    int_max: Optional[int] = None          # INT_MAX

    libc: str = "unknown"                  # glibc, musl, uclibc, ...
    fp_classify_macros: bool = True        # FP_NAN .. FP_NORMAL all defined
    infinity_literal: bool = True          # INFINITY usable
    nan_literal: bool = True               # NAN usable

    source: str = "unknown"                # host | elf | file


@dataclass(frozen=True)
class PlatformFacts:
    """Classified platform facts.  Determined once, never mutated."""

    byte_order: ByteOrder
    float_word_order: ByteOrder
    word_size_bits: int
    unsigned_int_range_bits: int = 32
    c_standard: CStandardLevel = CStandardLevel.MODERN
    compiler_family: str = "gcc"
    compiler_version: Tuple[int, int] = (9, 0)

    arch: str = "unknown"
    os_family: str = "linux"
    libc: str = "glibc"
    math_available: FrozenSet[str] = field(default_factory=lambda: frozenset(MATH_PRIMITIVES))
    unaligned_access_safe: bool = True
    cycle_counter_available: bool = False
    computed_infinity_required: bool = False
    computed_nan_required: bool = False
    date_provider: DateProvider = field(default_factory=DateProvider)

    @property
    def math_missing(self) -> FrozenSet[str]:
        return frozenset(MATH_PRIMITIVES) - self.math_available
