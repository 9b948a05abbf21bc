"""
Errors: the failure vocabulary of a derivation.

Fatal errors abort the whole derivation before anything is published.
MissingCapabilityError is the one non-fatal member: it is raised by native
lookups and always handled where it is raised, by installing a fallback.
"""
from typing import List, Optional


class FeatureResolverError(Exception):
    """Base class for everything this package raises on purpose."""


# ── Fatal ────────────────────────────────────────────────────────────────────

class UnsupportedPlatformError(FeatureResolverError):
    """Byte order, float word order, or their combination is unclassifiable."""


class UnknownProfileError(FeatureResolverError, ValueError):
    """Profile selector outside the fixed catalog."""

    def __init__(self, selector: object, known: List[str]):
        self.selector = selector
        self.known = known
        super().__init__(
            f"Unknown profile {selector!r}. Available: {', '.join(known)}"
        )


class DependencyViolationError(FeatureResolverError):
    """A validator rule failed.  ``rule`` names the first failing rule."""

    def __init__(self, rule: str, message: str, violations: Optional[List[str]] = None):
        self.rule = rule
        self.violations = violations or [rule]
        super().__init__(f"{rule}: {message}")


class InvalidOverrideError(FeatureResolverError, ValueError):
    """Override names an unknown flag, a derived flag, or is not a boolean."""

    def __init__(self, flag: str, reason: str):
        self.flag = flag
        self.reason = reason
        super().__init__(f"Invalid override {flag!r}: {reason}")


# ── Non-fatal ────────────────────────────────────────────────────────────────

class MissingCapabilityError(FeatureResolverError):
    """A math primitive or literal constant is absent natively."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"No native implementation for {capability!r}")


# ── Publication ──────────────────────────────────────────────────────────────

class ConfigurationAlreadyPublishedError(FeatureResolverError, RuntimeError):
    """A ConfigurationSlot was written a second time."""


class ConfigurationNotPublishedError(FeatureResolverError, RuntimeError):
    """A ConfigurationSlot was read before anything was published."""
