"""
Overrides: caller-supplied boolean flag overrides.

Overrides are checked before derivation starts.  A fixed flag override
replaces the profile value; a requestable dynamic flag override is a
request the detection layer may still turn down.  Derived flags cannot be
overridden.
"""
from typing import Dict, Iterable, Mapping, Optional

from feature_resolver.errors import InvalidOverrideError
from feature_resolver.policy.flags import FLAG_CATALOG, FlagSpec

_TRUE = {"1", "on", "true", "yes"}
_FALSE = {"0", "off", "false", "no"}


def normalize_overrides(
    overrides: Optional[Mapping[str, object]],
    catalog: Mapping[str, FlagSpec] = FLAG_CATALOG,
) -> Dict[str, bool]:
    """Validate *overrides* and return them as a sorted plain dict."""
    result: Dict[str, bool] = {}
    for name, value in sorted((overrides or {}).items()):
        spec = catalog.get(name)
        if spec is None:
            raise InvalidOverrideError(name, "unknown flag")
        if not spec.overridable:
            raise InvalidOverrideError(name, f"{spec.kind.value} flag derived by detection")
        if not isinstance(value, bool):
            raise InvalidOverrideError(name, f"expected a boolean, got {type(value).__name__}")
        result[name] = value
    return result


def parse_override_items(items: Iterable[str]) -> Dict[str, bool]:
    """Parse ``flag=on`` / ``flag=off`` strings (CLI ``--set``, env lists)."""
    result: Dict[str, bool] = {}
    for item in items:
        item = item.strip()
        if not item:
            continue
        name, sep, raw = item.partition("=")
        name = name.strip()
        raw = raw.strip().lower()
        if not sep or not name:
            raise InvalidOverrideError(item, "expected flag=on|off")
        if raw in _TRUE:
            result[name] = True
        elif raw in _FALSE:
            result[name] = False
        else:
            raise InvalidOverrideError(name, f"cannot parse {raw!r} as on/off")
    return result
