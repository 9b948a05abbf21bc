"""
Override & Detection Layer: refine dynamic flags against platform facts.

Refinements run in a fixed order.  Each declares the flags it writes; the
sets are disjoint and dynamic only, so the order never changes the result.
For requestable flags the incoming table value (profile default or caller
override) is the request and the refinement AND-s it with the capability.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Mapping, Tuple

from feature_resolver.core.facts import CStandardLevel, PlatformFacts
from feature_resolver.policy.flags import (
    FLAG_CATALOG,
    MATH_FLAGS,
    FlagSpec,
    FlagValue,
    Mutability,
)

logger = logging.getLogger(__name__)

# pragma inside a function breaks before gcc 4.6; only 4.6 .. 4.x is known good
GCC_PRAGMA_WINDOW: Tuple[Tuple[int, int], Tuple[int, int]] = ((4, 6), (5, 0))

Refine = Callable[[Mapping[str, FlagValue], PlatformFacts], Dict[str, FlagValue]]


@dataclass(frozen=True)
class Refinement:
    name: str
    writes: FrozenSet[str]
    apply: Refine


def _granted(table: Mapping[str, FlagValue], flag: str, capable: bool, why: str) -> bool:
    requested = bool(table[flag])
    if requested and not capable:
        logger.info("%s requested but unavailable (%s); turning off", flag, why)
    return requested and capable


def _cycle_counter(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    return {
        "dprint_rdtsc": _granted(table, "dprint_rdtsc", facts.cycle_counter_available, "no cycle counter"),
    }


def _variadic_macros(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    modern = facts.c_standard == CStandardLevel.MODERN
    return {"variadic_macros": _granted(table, "variadic_macros", modern, "pre-C99 compiler")}


def _flexible_array_member(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    legacy = facts.c_standard == CStandardLevel.LEGACY
    if legacy:
        logger.warning("Pre-C99 compiler: falling back to non-portable zero-length trailing arrays")
    return {"struct_hack": legacy}


def _gcc_pragmas(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    low, high = GCC_PRAGMA_WINDOW
    in_window = facts.compiler_family == "gcc" and low <= tuple(facts.compiler_version) < high
    return {"gcc_pragmas": _granted(table, "gcc_pragmas", in_window, "compiler outside known-good window")}


def _unaligned_access(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    safe = facts.unaligned_access_safe
    return {
        "hashbytes_unaligned_u32_access": _granted(
            table, "hashbytes_unaligned_u32_access", safe, "unaligned loads may fault"
        ),
        "hobject_unaligned_layout": _granted(
            table, "hobject_unaligned_layout", safe, "unaligned loads may fault"
        ),
    }


def _math_capabilities(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    updates: Dict[str, FlagValue] = {
        flag: primitive in facts.math_available for primitive, flag in MATH_FLAGS.items()
    }
    updates["computed_infinity"] = facts.computed_infinity_required
    updates["computed_nan"] = facts.computed_nan_required
    # old uclibc memcpy is broken; memmove is not
    updates["memcpy_via_memmove"] = facts.libc == "uclibc"
    return updates


def _date_provider(table, facts: PlatformFacts) -> Dict[str, FlagValue]:
    dp = facts.date_provider
    return {"date_now": dp.now, "date_tzo": dp.tzo, "date_prs": dp.prs, "date_fmt": dp.fmt}


REFINEMENTS: Tuple[Refinement, ...] = (
    Refinement("cycle_counter", frozenset({"dprint_rdtsc"}), _cycle_counter),
    Refinement("variadic_macros", frozenset({"variadic_macros"}), _variadic_macros),
    Refinement("flexible_array_member", frozenset({"struct_hack"}), _flexible_array_member),
    Refinement("gcc_pragmas", frozenset({"gcc_pragmas"}), _gcc_pragmas),
    Refinement(
        "unaligned_access",
        frozenset({"hashbytes_unaligned_u32_access", "hobject_unaligned_layout"}),
        _unaligned_access,
    ),
    Refinement(
        "math_capabilities",
        frozenset(MATH_FLAGS.values()) | {"computed_infinity", "computed_nan", "memcpy_via_memmove"},
        _math_capabilities,
    ),
    Refinement("date_provider", frozenset({"date_now", "date_tzo", "date_prs", "date_fmt"}), _date_provider),
)


def refine_dynamic_flags(
    table: Mapping[str, FlagValue],
    facts: PlatformFacts,
    catalog: Mapping[str, FlagSpec] = FLAG_CATALOG,
) -> Dict[str, FlagValue]:
    """Return a new table with every refinement applied in order."""
    refined = dict(table)
    for refinement in REFINEMENTS:
        updates = refinement.apply(refined, facts)
        stray = set(updates) - refinement.writes
        if stray:
            raise RuntimeError(f"Refinement {refinement.name} wrote undeclared flags {sorted(stray)}")
        fixed = [n for n in updates if catalog[n].mutability != Mutability.DYNAMIC]
        if fixed:
            raise RuntimeError(f"Refinement {refinement.name} touched fixed flags {sorted(fixed)}")
        for name, value in updates.items():
            if refined[name] != value:
                logger.debug("%s: %s %s -> %s", refinement.name, name, refined[name], value)
            refined[name] = value
    return refined
