"""
Rules: the validator's fixed rule table.

Two rule shapes:
  RequiresRule: if ``flag`` is on (non-zero), every flag in ``requires``
                must be on.  One per declared depends_on edge.
  PredicateRule: an arbitrary predicate over the whole table.
"""
from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable, Mapping, Tuple, Union

from feature_resolver.policy.flags import FlagValue


@unique
class Rule(str, Enum):
    # structural
    FLAG_GRAPH_ACYCLIC = "FLAG_GRAPH_ACYCLIC"
    FLAGS_TOTAL = "FLAGS_TOTAL"
    FLAG_VALUE_VALID = "FLAG_VALUE_VALID"
    # declared dependencies
    REFERENCE_COUNTING_REQUIRES_DOUBLE_LINKED_HEAP = "REFERENCE_COUNTING_REQUIRES_DOUBLE_LINKED_HEAP"
    GC_TORTURE_REQUIRES_MARK_AND_SWEEP = "GC_TORTURE_REQUIRES_MARK_AND_SWEEP"
    DDEBUG_REQUIRES_DEBUG = "DDEBUG_REQUIRES_DEBUG"
    DDDEBUG_REQUIRES_DEBUG = "DDDEBUG_REQUIRES_DEBUG"
    DDDEBUG_REQUIRES_DDEBUG = "DDDEBUG_REQUIRES_DDEBUG"
    TRACEBACK_DEPTH_REQUIRES_TRACEBACKS = "TRACEBACK_DEPTH_REQUIRES_TRACEBACKS"
    # cross-flag predicates
    TRACEBACKS_REQUIRE_DEPTH = "TRACEBACKS_REQUIRE_DEPTH"
    GC_STRATEGY_PRESENT = "GC_STRATEGY_PRESENT"
    PACKED_TVAL_REQUIRES_POSSIBLE = "PACKED_TVAL_REQUIRES_POSSIBLE"
    PACKED_TVAL_REQUIRES_PREFERENCE = "PACKED_TVAL_REQUIRES_PREFERENCE"
    SINGLE_TVAL_REPRESENTATION = "SINGLE_TVAL_REPRESENTATION"


@dataclass(frozen=True)
class RequiresRule:
    rule: Rule
    flag: str
    requires: Tuple[str, ...]

    def holds(self, table: Mapping[str, FlagValue]) -> bool:
        if not table[self.flag]:
            return True
        return all(table[r] for r in self.requires)

    def describe(self) -> str:
        return f"{self.flag} requires {', '.join(self.requires)}"


@dataclass(frozen=True)
class PredicateRule:
    rule: Rule
    description: str
    predicate: Callable[[Mapping[str, FlagValue]], bool]

    def holds(self, table: Mapping[str, FlagValue]) -> bool:
        return bool(self.predicate(table))

    def describe(self) -> str:
        return self.description


AnyRule = Union[RequiresRule, PredicateRule]


RULE_TABLE: Tuple[AnyRule, ...] = (
    RequiresRule(Rule.REFERENCE_COUNTING_REQUIRES_DOUBLE_LINKED_HEAP, "reference_counting", ("double_linked_heap",)),
    RequiresRule(Rule.GC_TORTURE_REQUIRES_MARK_AND_SWEEP, "gc_torture", ("mark_and_sweep",)),
    RequiresRule(Rule.DDEBUG_REQUIRES_DEBUG, "ddebug", ("debug",)),
    RequiresRule(Rule.DDDEBUG_REQUIRES_DEBUG, "dddebug", ("debug",)),
    RequiresRule(Rule.DDDEBUG_REQUIRES_DDEBUG, "dddebug", ("ddebug",)),
    RequiresRule(Rule.TRACEBACK_DEPTH_REQUIRES_TRACEBACKS, "traceback_depth", ("tracebacks",)),
    PredicateRule(
        Rule.TRACEBACKS_REQUIRE_DEPTH,
        "tracebacks require traceback_depth > 0",
        lambda t: not t["tracebacks"] or t["traceback_depth"] > 0,
    ),
    PredicateRule(
        Rule.GC_STRATEGY_PRESENT,
        "at least one of reference_counting, mark_and_sweep must be on",
        lambda t: bool(t["reference_counting"] or t["mark_and_sweep"]),
    ),
    PredicateRule(
        Rule.PACKED_TVAL_REQUIRES_POSSIBLE,
        "packed_tval requires packed_tval_possible",
        lambda t: not t["packed_tval"] or bool(t["packed_tval_possible"]),
    ),
    PredicateRule(
        Rule.PACKED_TVAL_REQUIRES_PREFERENCE,
        "packed_tval requires prefer_packed_tval",
        lambda t: not t["packed_tval"] or bool(t["prefer_packed_tval"]),
    ),
    PredicateRule(
        Rule.SINGLE_TVAL_REPRESENTATION,
        "packed_tval must agree with tval_representation",
        lambda t: bool(t["packed_tval"]) == (t["tval_representation"] == "packed"),
    ),
)
