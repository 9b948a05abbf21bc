"""
Profile: named presets over the flag catalog.

Every profile starts from the FULL baseline (each flag at its catalog
default) and applies a small documented override subset.  Changing what a
profile means is a change to PROFILES, not to the resolver.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, Mapping, Optional, Union

from feature_resolver.errors import UnknownProfileError
from feature_resolver.policy.flags import FLAG_CATALOG, FlagSpec, FlagValue, baseline_table

logger = logging.getLogger(__name__)


@unique
class ProfileSelector(str, Enum):
    FULL = "FULL"
    FULL_DEBUG = "FULL_DEBUG"
    MINIMAL = "MINIMAL"
    MINIMAL_DEBUG = "MINIMAL_DEBUG"
    TINY = "TINY"
    TINY_DEBUG = "TINY_DEBUG"
    PORTABLE = "PORTABLE"
    PORTABLE_DEBUG = "PORTABLE_DEBUG"
    TORTURE = "TORTURE"
    TORTURE_DEBUG = "TORTURE_DEBUG"


PROFILE_CODES: Mapping[ProfileSelector, int] = {
    ProfileSelector.FULL: 100,
    ProfileSelector.FULL_DEBUG: 101,
    ProfileSelector.MINIMAL: 200,
    ProfileSelector.MINIMAL_DEBUG: 201,
    ProfileSelector.TINY: 300,
    ProfileSelector.TINY_DEBUG: 301,
    ProfileSelector.PORTABLE: 400,
    ProfileSelector.PORTABLE_DEBUG: 401,
    ProfileSelector.TORTURE: 500,
    ProfileSelector.TORTURE_DEBUG: 501,
}


@dataclass(frozen=True)
class ProfileDefinition:
    """A named preset: the flags it changes relative to the FULL baseline."""

    selector: ProfileSelector
    description: str
    overrides: Mapping[str, FlagValue] = field(default_factory=dict)

    @property
    def profile_id(self) -> str:
        return self.selector.value

    @property
    def code(self) -> int:
        return PROFILE_CODES[self.selector]


_DEBUG = {"debug": True, "ddebug": False, "dddebug": False}

_MINIMAL = {"verbose_errors": False}

_TINY = {
    "self_test_tval": False,
    "reference_counting": False,
    "double_linked_heap": False,
    "mark_and_sweep": True,
    "augment_errors": False,
    "tracebacks": False,
    "traceback_depth": 0,
    "verbose_errors": False,
}

_PORTABLE = {"prefer_packed_tval": False, "explicit_null_init": True}

_TORTURE = {"prefer_packed_tval": False, "gc_torture": True}


def _define(selector: ProfileSelector, description: str, *parts: Mapping[str, FlagValue]) -> ProfileDefinition:
    merged: Dict[str, FlagValue] = {}
    for part in parts:
        merged.update(part)
    return ProfileDefinition(selector=selector, description=description, overrides=merged)


PROFILES: Mapping[ProfileSelector, ProfileDefinition] = {
    d.selector: d
    for d in (
        _define(ProfileSelector.FULL, "All features, packed values where possible"),
        _define(ProfileSelector.FULL_DEBUG, "FULL with debug prints and assertions",
                _DEBUG, {"assertions": True}),
        _define(ProfileSelector.MINIMAL, "FULL without verbose error messages", _MINIMAL),
        _define(ProfileSelector.MINIMAL_DEBUG, "MINIMAL with debug prints and assertions",
                _MINIMAL, _DEBUG, {"assertions": True}),
        _define(ProfileSelector.TINY, "Mark-and-sweep only, no tracebacks or verbose errors", _TINY),
        _define(ProfileSelector.TINY_DEBUG, "TINY with debug prints and assertions",
                _TINY, _DEBUG, {"assertions": True}),
        _define(ProfileSelector.PORTABLE, "Unpacked values, explicit pointer initialization", _PORTABLE),
        _define(ProfileSelector.PORTABLE_DEBUG, "PORTABLE with debug prints and assertions",
                _PORTABLE, _DEBUG, {"gc_torture": False, "assertions": True}),
        _define(ProfileSelector.TORTURE, "Unpacked values, stress-test collection", _TORTURE),
        _define(ProfileSelector.TORTURE_DEBUG, "TORTURE with debug prints, no assertions",
                _TORTURE, _DEBUG, {"assertions": False}),
    )
}


def parse_selector(selector: Union[ProfileSelector, str, int]) -> ProfileSelector:
    """Accept a ProfileSelector, a name (any case) or a numeric profile code."""
    if isinstance(selector, ProfileSelector):
        return selector
    known = [s.value for s in ProfileSelector]
    if isinstance(selector, bool):
        raise UnknownProfileError(selector, known)
    if isinstance(selector, int):
        for sel, code in PROFILE_CODES.items():
            if code == selector:
                return sel
        raise UnknownProfileError(selector, known)
    if isinstance(selector, str):
        text = selector.strip()
        if text.isdigit():
            return parse_selector(int(text))
        try:
            return ProfileSelector(text.upper())
        except ValueError:
            pass
    raise UnknownProfileError(selector, known)


def default_selector(packed_possible: bool) -> ProfileSelector:
    """FULL when the packed representation is possible, PORTABLE otherwise."""
    return ProfileSelector.FULL if packed_possible else ProfileSelector.PORTABLE


def select_profile(
    selector: Optional[Union[ProfileSelector, str, int]],
    packed_possible: bool,
) -> ProfileDefinition:
    if selector is None:
        chosen = default_selector(packed_possible)
        logger.info("No profile given; defaulting to %s (packed possible=%s)", chosen.value, packed_possible)
    else:
        chosen = parse_selector(selector)
    return PROFILES[chosen]


def resolve_profile(
    profile: ProfileDefinition,
    overrides: Optional[Mapping[str, bool]] = None,
    catalog: Mapping[str, FlagSpec] = FLAG_CATALOG,
) -> Dict[str, FlagValue]:
    """
    FULL baseline → profile subset → caller overrides.

    *overrides* must already be normalized (policy.overrides).  The result
    defines every catalog flag.
    """
    table = baseline_table(catalog)
    table.update(profile.overrides)
    for name, value in (overrides or {}).items():
        if table.get(name) != value:
            logger.info("Override %s: %s -> %s", name, table.get(name), value)
        table[name] = value

    missing = sorted(set(catalog) - set(table))
    if missing:
        raise RuntimeError(f"Profile {profile.profile_id} left flags undefined: {missing}")
    unknown = sorted(set(table) - set(catalog))
    if unknown:
        raise RuntimeError(f"Profile {profile.profile_id} sets unknown flags: {unknown}")

    logger.debug("Resolved profile %s: %d flags", profile.profile_id, len(table))
    return table
