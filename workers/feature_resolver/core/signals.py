"""
Signal Collector: classify RawSignals into PlatformFacts.

Responsibilities:
  - Byte order and IEEE double word order, detected independently.
  - Word size, unsigned int range, int width sanity.
  - C standard level, cycle counter, literal INFINITY/NAN availability.
  - Native math primitive completeness (missing ones are recorded, never fatal).
  - Unaligned access safety (heuristic, see detect_unaligned_access_safety).
  - Date built-in provider per OS family.

Platform specifics live in small ordered rule tables; the first matching row
wins.  Supporting a new platform means adding a row.

This module performs no I/O.  It raises UnsupportedPlatformError only when a
fact cannot be classified at all.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Tuple

from feature_resolver.core.facts import (
    ByteOrder,
    CStandardLevel,
    DateProvider,
    PlatformFacts,
    RawSignals,
)
from feature_resolver.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)

C99_STDC_VERSION = 199901
MIN_INT_MAX = 2147483647

GNU_COMPATIBLE = frozenset({"gcc", "clang"})

# vbcc folds 1.0/0.0 and 0.0/0.0 to 0.0 with a warning
_NO_IEEE_CONSTANT_FOLDING = frozenset({"vbcc"})

_ARM32 = re.compile(r"^(arm(?!64)\w*|thumb\w*)$")
_X86 = re.compile(r"^(i[3-6]86|x86|x86_64|amd64)$")
_UNALIGNED_FAULTING = re.compile(r"^(arm(?!64)\w*|thumb\w*|sparc\w*|mips\w*|alpha\w*)$")


def _is_vbcc_amiga(raw: RawSignals) -> bool:
    return raw.compiler_family == "vbcc" and raw.os_family == "amigaos"


def _order(value: Optional[str]) -> ByteOrder:
    if value is None:
        return ByteOrder.UNKNOWN
    try:
        return ByteOrder(value.lower())
    except ValueError:
        return ByteOrder.UNKNOWN


# ── Platform rule table (explicit double byte order) ─────────────────────────

@dataclass(frozen=True)
class PlatformRule:
    """Row of PLATFORM_RULES: platforms whose byte order is known a priori."""

    name: str
    matches: Callable[[RawSignals], bool]
    byte_order: ByteOrder
    float_word_order: ByteOrder


PLATFORM_RULES: Tuple[PlatformRule, ...] = (
    PlatformRule(
        name="atari-tos",
        matches=lambda r: r.os_family == "tos",
        byte_order=ByteOrder.BIG,
        float_word_order=ByteOrder.BIG,
    ),
    PlatformRule(
        name="amigaos-m68k",
        matches=lambda r: r.os_family == "amigaos" or r.compiler_family == "vbcc",
        byte_order=ByteOrder.BIG,
        float_word_order=ByteOrder.BIG,
    ),
)


def match_platform(raw: RawSignals) -> Optional[PlatformRule]:
    """Return the first PLATFORM_RULES row matching *raw*, or None."""
    for rule in PLATFORM_RULES:
        if rule.matches(raw):
            return rule
    return None


# ── Float word order heuristics (when the headers do not say) ────────────────

@dataclass(frozen=True)
class WordOrderRule:
    name: str
    matches: Callable[[RawSignals, ByteOrder], bool]
    derive: Callable[[ByteOrder], ByteOrder]


WORD_ORDER_RULES: Tuple[WordOrderRule, ...] = (
    # old ARM FPA: little-endian words stored high word first
    WordOrderRule(
        name="gnu-arm-fpa",
        matches=lambda r, bo: (
            r.compiler_family in GNU_COMPATIBLE
            and bool(_ARM32.match(r.arch))
            and bo == ByteOrder.LITTLE
        ),
        derive=lambda bo: ByteOrder.BIG,
    ),
    WordOrderRule(
        name="gnu-non-arm",
        matches=lambda r, bo: (
            r.compiler_family in GNU_COMPATIBLE
            and not _ARM32.match(r.arch)
            and bo != ByteOrder.UNKNOWN
        ),
        derive=lambda bo: bo,
    ),
)


# ── Date provider table ──────────────────────────────────────────────────────

_POSIX_DATE = DateProvider()
_TIME_ONLY_DATE = DateProvider(now="time", tzo="gmtime", prs="none", fmt="strftime")

DATE_PROVIDER_RULES: Tuple[Tuple[FrozenSet[str], Optional[DateProvider]], ...] = (
    (frozenset({"windows"}), None),
    (frozenset({"darwin", "linux", "bsd", "unix", "posix"}), _POSIX_DATE),
    (frozenset({"tos", "amigaos"}), _TIME_ONLY_DATE),
)


# ── Detectors ────────────────────────────────────────────────────────────────

def detect_byte_order(raw: RawSignals) -> ByteOrder:
    """Integer byte order.  Raises UnsupportedPlatformError if unclassifiable."""
    rule = match_platform(raw)
    if rule is not None:
        logger.debug("byte order from platform rule %s: %s", rule.name, rule.byte_order.value)
        return rule.byte_order

    order = _order(raw.byte_order)
    if order == ByteOrder.UNKNOWN:
        raise UnsupportedPlatformError(
            f"cannot determine byte order (reported {raw.byte_order!r})"
        )
    return order


def detect_float_word_order(raw: RawSignals) -> ByteOrder:
    """
    Word order of an IEEE double, independent of detect_byte_order.

    The two may disagree; see core.numeric for the mixed layout.
    """
    rule = match_platform(raw)
    if rule is not None:
        return rule.float_word_order

    order = _order(raw.float_word_order)
    if order != ByteOrder.UNKNOWN:
        return order

    byte_order = _order(raw.byte_order)
    for wrule in WORD_ORDER_RULES:
        if wrule.matches(raw, byte_order):
            derived = wrule.derive(byte_order)
            logger.debug("float word order from heuristic %s: %s", wrule.name, derived.value)
            return derived

    raise UnsupportedPlatformError(
        f"byte order is {byte_order.value} but cannot determine IEEE double word order"
    )


def detect_word_size_bits(raw: RawSignals) -> int:
    """Machine word size in bits; 0 when the source did not report it."""
    if not raw.word_size:
        logger.warning("word size not reported; packed representation will be ruled out")
        return 0
    return int(raw.word_size)


def detect_unsigned_int_range_bits(raw: RawSignals) -> int:
    """Bits covered by UINT_MAX; 0 when unknown or not of the form 2**n - 1."""
    if raw.uint_max is None:
        logger.warning("UINT_MAX not reported; unsigned int range unknown")
        return 0
    n = raw.uint_max + 1
    if raw.uint_max <= 0 or n & (n - 1):
        logger.warning("UINT_MAX=%d is not of the form 2**n - 1", raw.uint_max)
        return 0
    return raw.uint_max.bit_length()


def check_int_width(raw: RawSignals) -> None:
    """Reject platforms whose int is narrower than 32 bits."""
    if raw.int_max is None:
        logger.warning("INT_MAX not reported; assuming int is at least 32 bits")
        return
    if raw.int_max < MIN_INT_MAX:
        raise UnsupportedPlatformError(
            f"INT_MAX={raw.int_max} too small, expected int to be 32 bits at least"
        )


def detect_c_standard(raw: RawSignals) -> CStandardLevel:
    if raw.stdc_version is not None and raw.stdc_version >= C99_STDC_VERSION:
        return CStandardLevel.MODERN
    return CStandardLevel.LEGACY


def detect_math_library_completeness(raw: RawSignals) -> FrozenSet[str]:
    """Math primitives available natively.  Anything absent gets a fallback."""
    available = set()
    if raw.fp_classify_macros and not _is_vbcc_amiga(raw):
        available |= {"fpclassify", "signbit", "isfinite", "isnan"}
    # C99-only functions; uclibc may be configured without them
    if (
        detect_c_standard(raw) == CStandardLevel.MODERN
        and raw.libc != "uclibc"
        and not _is_vbcc_amiga(raw)
    ):
        available |= {"fmin", "fmax", "round"}
    return frozenset(available)


def detect_unaligned_access_safety(raw: RawSignals) -> bool:
    """
    Best-effort guess whether unaligned 32-bit loads are safe.

    Heuristic only: architecture families known to fault (32-bit ARM/Thumb,
    SPARC, MIPS, Alpha) and unreported architectures are treated as unsafe.
    A True result is not a hardware guarantee.
    """
    arch = raw.arch.lower()
    if arch == "unknown":
        return False
    return not _UNALIGNED_FAULTING.match(arch)


def detect_cycle_counter(raw: RawSignals) -> bool:
    """rdtsc-style inline assembly available (GNU-compatible compiler on x86)."""
    return raw.compiler_family in GNU_COMPATIBLE and bool(_X86.match(raw.arch.lower()))


def detect_literal_constants(raw: RawSignals) -> Tuple[bool, bool]:
    """
    Return (computed_infinity_required, computed_nan_required).

    A computed constant is needed only when the literal is missing and the
    compiler cannot be trusted to fold 1.0/0.0 or 0.0/0.0 either.
    """
    no_folding = raw.compiler_family in _NO_IEEE_CONSTANT_FOLDING
    # gcc < 4.6 uses __builtin_inf() and never needs a computed infinity
    old_gcc = raw.compiler_family == "gcc" and raw.compiler_version < (4, 6)
    computed_inf = not raw.infinity_literal and no_folding and not old_gcc
    computed_nan = not raw.nan_literal and no_folding
    return computed_inf, computed_nan


def detect_date_provider(raw: RawSignals) -> DateProvider:
    for families, provider in DATE_PROVIDER_RULES:
        if raw.os_family in families:
            if provider is None:
                raise UnsupportedPlatformError(f"platform {raw.os_family!r} not supported")
            return provider
    raise UnsupportedPlatformError(f"platform {raw.os_family!r} not supported")


# ── Collector ────────────────────────────────────────────────────────────────

def collect_facts(raw: RawSignals) -> PlatformFacts:
    """Run every detector once and return the immutable PlatformFacts."""
    check_int_width(raw)

    computed_inf, computed_nan = detect_literal_constants(raw)
    facts = PlatformFacts(
        byte_order=detect_byte_order(raw),
        float_word_order=detect_float_word_order(raw),
        word_size_bits=detect_word_size_bits(raw),
        unsigned_int_range_bits=detect_unsigned_int_range_bits(raw),
        c_standard=detect_c_standard(raw),
        compiler_family=raw.compiler_family,
        compiler_version=tuple(raw.compiler_version),
        arch=raw.arch,
        os_family=raw.os_family,
        libc=raw.libc,
        math_available=detect_math_library_completeness(raw),
        unaligned_access_safe=detect_unaligned_access_safety(raw),
        cycle_counter_available=detect_cycle_counter(raw),
        computed_infinity_required=computed_inf,
        computed_nan_required=computed_nan,
        date_provider=detect_date_provider(raw),
    )

    logger.info(
        "Collected facts (%s): %s/%s word=%d uint=%d %s %s %d.%d",
        raw.source,
        facts.byte_order.value,
        facts.float_word_order.value,
        facts.word_size_bits,
        facts.unsigned_int_range_bits,
        facts.c_standard.value,
        facts.compiler_family,
        *facts.compiler_version,
    )
    if facts.math_missing:
        logger.info("Math primitives missing natively: %s", sorted(facts.math_missing))
    return facts
