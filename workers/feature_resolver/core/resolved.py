"""
ResolvedConfiguration, the frozen and validated flag table, and the
write-once slot it is published through.
"""
import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from feature_resolver.core.facts import PlatformFacts
from feature_resolver.errors import (
    ConfigurationAlreadyPublishedError,
    ConfigurationNotPublishedError,
)
from feature_resolver.policy.flags import MATH_FLAGS, FlagValue

logger = logging.getLogger(__name__)


def facts_to_dict(facts: PlatformFacts) -> Dict[str, Any]:
    """JSON-ready view of *facts* with stable ordering."""
    out: Dict[str, Any] = {}
    for key, value in asdict(facts).items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (set, frozenset)):
            value = sorted(value)
        elif isinstance(value, tuple):
            value = list(value)
        out[key] = value
    return out


def backing_from_flags(flags: Mapping[str, FlagValue]) -> Dict[str, str]:
    """Which capabilities are backed natively and which by a fallback."""
    backing = {
        primitive: "native" if flags[flag] else "fallback"
        for primitive, flag in MATH_FLAGS.items()
    }
    backing["infinity"] = "computed" if flags["computed_infinity"] else "literal"
    backing["nan"] = "computed" if flags["computed_nan"] else "literal"
    return dict(sorted(backing.items()))


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Validated flag table.  Consumers only read it."""

    profile_id: str
    facts: PlatformFacts
    overrides: Tuple[Tuple[str, bool], ...]
    flags: Mapping[str, FlagValue]

    def __post_init__(self) -> None:
        # freeze a private sorted copy so the caller's dict cannot leak in
        object.__setattr__(self, "flags", MappingProxyType(dict(sorted(self.flags.items()))))

    def __getitem__(self, name: str) -> FlagValue:
        return self.flags[name]

    def __contains__(self, name: object) -> bool:
        return name in self.flags

    def get(self, name: str, default: Optional[FlagValue] = None) -> Optional[FlagValue]:
        return self.flags.get(name, default)

    def enabled(self, name: str) -> bool:
        """True for an on bool flag or a non-zero int flag.  Raises KeyError if unknown."""
        return bool(self.flags[name])

    @property
    def backing(self) -> Dict[str, str]:
        return backing_from_flags(self.flags)

    def canonical(self) -> Dict[str, Any]:
        return {
            "profile_id": self.profile_id,
            "facts": facts_to_dict(self.facts),
            "overrides": dict(self.overrides),
            "flags": dict(self.flags),
        }

    @property
    def fingerprint(self) -> str:
        """sha256 over the canonical JSON form; equal inputs, equal fingerprint."""
        blob = json.dumps(self.canonical(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(blob.encode("utf-8")).hexdigest()


class ConfigurationSlot:
    """
    Write-once holder for the process's published configuration.

    The embedding application owns one slot and hands it (or the
    configuration read from it) to its consumers explicitly.
    """

    def __init__(self) -> None:
        self._config: Optional[ResolvedConfiguration] = None

    @property
    def published(self) -> bool:
        return self._config is not None

    def publish(self, config: ResolvedConfiguration) -> ResolvedConfiguration:
        if self._config is not None:
            raise ConfigurationAlreadyPublishedError(
                f"configuration already published ({self._config.profile_id}, "
                f"{self._config.fingerprint[:12]})"
            )
        self._config = config
        logger.info("Published configuration %s (%s)", config.profile_id, config.fingerprint[:12])
        return config

    def get(self) -> ResolvedConfiguration:
        if self._config is None:
            raise ConfigurationNotPublishedError("no configuration has been published")
        return self._config
