"""
Validator: last stage: check the flag table and freeze it.

Order of checks:
  1. The depends_on graph of the catalog is acyclic.
  2. The table is total over the catalog and every value fits its kind.
  3. Every RULE_TABLE rule holds.

Any failure raises DependencyViolationError naming the first failing rule;
nothing is returned, so no partially valid configuration escapes.
"""
import logging
from graphlib import CycleError, TopologicalSorter
from typing import List, Mapping, Optional, Sequence, Tuple

from feature_resolver.core.facts import PlatformFacts
from feature_resolver.core.resolved import ResolvedConfiguration
from feature_resolver.errors import DependencyViolationError
from feature_resolver.policy.flags import FLAG_CATALOG, FlagSpec, FlagValue
from feature_resolver.policy.rules import RULE_TABLE, AnyRule, Rule

logger = logging.getLogger(__name__)


def check_acyclic(catalog: Mapping[str, FlagSpec] = FLAG_CATALOG) -> None:
    graph = {name: set(spec.depends_on) for name, spec in catalog.items()}
    dangling = sorted(d for deps in graph.values() for d in deps if d not in catalog)
    if dangling:
        raise DependencyViolationError(
            Rule.FLAG_GRAPH_ACYCLIC.value, f"dependencies on unknown flags: {dangling}"
        )
    try:
        tuple(TopologicalSorter(graph).static_order())
    except CycleError as e:
        cycle = e.args[1] if len(e.args) > 1 else []
        raise DependencyViolationError(
            Rule.FLAG_GRAPH_ACYCLIC.value, f"dependency cycle: {' -> '.join(cycle)}"
        ) from e


def check_rules(
    table: Mapping[str, FlagValue],
    catalog: Mapping[str, FlagSpec] = FLAG_CATALOG,
    rules: Sequence[AnyRule] = RULE_TABLE,
) -> List[Tuple[str, str]]:
    """
    Return every (rule_id, message) that fails for *table*.

    Structural failures (totality, value kinds) short-circuit the rule table,
    since rule predicates assume a well-formed table.
    """
    missing = sorted(set(catalog) - set(table))
    unknown = sorted(set(table) - set(catalog))
    if missing or unknown:
        return [(Rule.FLAGS_TOTAL.value, f"missing={missing} unknown={unknown}")]

    bad = [
        f"{name}={table[name]!r} ({spec.kind.value})"
        for name, spec in catalog.items()
        if not spec.accepts(table[name])
    ]
    if bad:
        return [(Rule.FLAG_VALUE_VALID.value, f"invalid values: {', '.join(bad)}")]

    failures = []
    for rule in rules:
        if rule.holds(table):
            logger.debug("rule %s ok", rule.rule.value)
        else:
            failures.append((rule.rule.value, rule.describe()))
    return failures


def validate(
    table: Mapping[str, FlagValue],
    profile_id: str,
    facts: PlatformFacts,
    overrides: Optional[Mapping[str, bool]] = None,
    catalog: Mapping[str, FlagSpec] = FLAG_CATALOG,
    rules: Sequence[AnyRule] = RULE_TABLE,
) -> ResolvedConfiguration:
    """Check *table* and return it frozen, or raise DependencyViolationError."""
    check_acyclic(catalog)

    failures = check_rules(table, catalog, rules)
    if failures:
        for rule_id, message in failures:
            logger.error("RULE %s violated: %s", rule_id, message)
        rule_id, message = failures[0]
        raise DependencyViolationError(rule_id, message, [r for r, _ in failures])

    logger.info("All %d rules passed for profile %s", len(rules), profile_id)
    return ResolvedConfiguration(
        profile_id=profile_id,
        facts=facts,
        overrides=tuple(sorted((overrides or {}).items())),
        flags=dict(table),
    )
