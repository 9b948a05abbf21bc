"""
Resolver runner: top-level orchestration: signals → resolved configuration.

Stages run strictly forward, each exactly once per derivation:

    Signal Collector → Profile Resolver → Override & Detection Layer
        → Numeric Representation Selector → Validator

``derive_configuration`` is pure: identical (facts, selector, overrides)
give an equal configuration with an identical fingerprint.  ``run_resolver``
adds fact collection and output writing, and can be called from the API,
from the CLI, or programmatically.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional, Union

from elftools.common.exceptions import ELFError

from feature_resolver.core.detection import refine_dynamic_flags
from feature_resolver.core.elf_probe import probe_elf
from feature_resolver.core.facts import PlatformFacts, RawSignals
from feature_resolver.core.host_probe import probe_host
from feature_resolver.core.numeric import packed_representation_possible, select_representation
from feature_resolver.core.resolved import ConfigurationSlot, ResolvedConfiguration
from feature_resolver.core.signals import collect_facts
from feature_resolver.errors import FeatureResolverError
from feature_resolver.io.loader import load_facts
from feature_resolver.io.writer import DEFAULT_MACRO_PREFIX, write_outputs
from feature_resolver.policy.overrides import normalize_overrides, parse_override_items
from feature_resolver.policy.profile import ProfileSelector, resolve_profile, select_profile
from feature_resolver.policy.validator import validate

logger = logging.getLogger(__name__)

Selector = Union[ProfileSelector, str, int]


def derive_configuration(
    facts: PlatformFacts,
    selector: Optional[Selector] = None,
    overrides: Optional[Mapping[str, bool]] = None,
) -> ResolvedConfiguration:
    """
    Derive and validate the configuration for *facts*.

    Raises
    ------
    InvalidOverrideError, UnknownProfileError
        Before any stage runs.
    UnsupportedPlatformError
        From the numeric representation selector.
    DependencyViolationError
        From the validator.
    """
    clean = normalize_overrides(overrides)

    # ── Step 1: profile defaults (+ fixed overrides) ─────────────────
    profile = select_profile(selector, packed_representation_possible(facts))
    table = resolve_profile(profile, clean)

    # ── Step 2: dynamic refinements ──────────────────────────────────
    table = refine_dynamic_flags(table, facts)

    # ── Step 3: numeric representation ───────────────────────────────
    table = select_representation(table, facts)

    # ── Step 4: validate + freeze ────────────────────────────────────
    config = validate(table, profile_id=profile.profile_id, facts=facts, overrides=clean)
    logger.info("Derived %s configuration %s", config.profile_id, config.fingerprint[:12])
    return config


def run_resolver(
    raw: Optional[RawSignals] = None,
    facts: Optional[PlatformFacts] = None,
    selector: Optional[Selector] = None,
    overrides: Optional[Mapping[str, bool]] = None,
    output_dir: Optional[Path] = None,
    slot: Optional[ConfigurationSlot] = None,
    macro_prefix: str = DEFAULT_MACRO_PREFIX,
) -> ResolvedConfiguration:
    """
    Collect facts (unless given), derive, optionally write and publish.

    Parameters
    ----------
    raw : RawSignals, optional
        Signals to classify.  Defaults to probing the host.  Ignored when
        *facts* is given.
    facts : PlatformFacts, optional
        Already-classified facts (e.g. loaded from a recorded facts file).
    output_dir : Path, optional
        Directory for resolved_config.json and features.h.  If None,
        nothing is written.
    slot : ConfigurationSlot, optional
        Publish the result here.  Publication happens only after every
        stage and the write succeeded.
    """
    if facts is None:
        facts = collect_facts(raw if raw is not None else probe_host())

    config = derive_configuration(facts, selector=selector, overrides=overrides)

    if output_dir:
        write_outputs(config, output_dir, prefix=macro_prefix)
        logger.info("Outputs written to %s", output_dir)

    if slot is not None:
        slot.publish(config)
    return config


# ── CLI ──────────────────────────────────────────────────────────────────────

def main():
    """CLI entry point for feature_resolver."""
    parser = argparse.ArgumentParser(
        description="feature_resolver: derive the resolved feature-flag table",
    )
    parser.add_argument(
        "-p", "--profile",
        default=None,
        help="Profile name or code (default: FULL if packing is possible, else PORTABLE)",
    )
    parser.add_argument(
        "-s", "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="FLAG=on|off",
        help="Boolean flag override (repeatable)",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--facts",
        type=Path,
        default=None,
        help="Recorded facts JSON (or a previous resolved_config.json)",
    )
    source.add_argument(
        "--elf",
        default=None,
        help="Derive for the target of this ELF binary instead of the host",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory to write resolved_config.json and features.h",
    )
    parser.add_argument(
        "--macro-prefix",
        default=DEFAULT_MACRO_PREFIX,
        help="Prefix for generated header macros",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        overrides = parse_override_items(args.overrides)
        facts = None
        raw = None
        if args.facts:
            if not args.facts.exists():
                logger.error("File not found: %s", args.facts)
                sys.exit(1)
            facts = load_facts(args.facts)
        elif args.elf:
            try:
                raw = probe_elf(args.elf)
            except (FileNotFoundError, ELFError) as e:
                logger.error("Cannot probe %s: %s", args.elf, e)
                sys.exit(1)

        config = run_resolver(
            raw=raw,
            facts=facts,
            selector=args.profile,
            overrides=overrides,
            output_dir=args.output_dir,
            macro_prefix=args.macro_prefix,
        )
    except FeatureResolverError as e:
        logger.error("Derivation failed: %s", e)
        sys.exit(2)

    # Print summary
    enabled = sum(1 for v in config.flags.values() if v is True)
    print(f"Profile: {config.profile_id}")
    print(f"Representation: {config['tval_representation']} (double layout {config['double_layout']})")
    print(f"Flags: {len(config.flags)} ({enabled} enabled)")
    fallbacks = [k for k, v in config.backing.items() if v != "native" and v != "literal"]
    print(f"Fallbacks: {', '.join(fallbacks) if fallbacks else 'none'}")
    print(f"Fingerprint: {config.fingerprint}")

    if args.output_dir:
        print(f"Outputs written to: {args.output_dir}")


if __name__ == "__main__":
    main()
