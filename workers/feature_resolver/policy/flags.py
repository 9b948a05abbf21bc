"""
Flags: the catalog of every flag a resolved configuration carries.

Each FlagSpec declares its kind, its FULL-baseline default, who may write
it (fixed: profile resolution only; dynamic: detection / numeric stages),
and the flags it depends on.  The dependency edges feed the validator's
acyclicity check and are mirrored one-to-one by requires-rules in
policy.rules.
"""
from dataclasses import dataclass
from enum import Enum, unique
from typing import Dict, FrozenSet, Mapping, Tuple, Union

FlagValue = Union[bool, int, str]


@unique
class FlagKind(str, Enum):
    BOOL = "bool"
    ENUM = "enum"
    INT = "int"


@unique
class Mutability(str, Enum):
    FIXED = "fixed"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class FlagSpec:
    name: str
    kind: FlagKind
    default: FlagValue
    mutability: Mutability = Mutability.FIXED
    depends_on: FrozenSet[str] = frozenset()
    choices: Tuple[str, ...] = ()
    requestable: bool = False   # dynamic flag whose table value is a request
    description: str = ""

    @property
    def overridable(self) -> bool:
        """Callers may supply a boolean override for this flag."""
        if self.kind != FlagKind.BOOL:
            return False
        return self.mutability == Mutability.FIXED or self.requestable

    def accepts(self, value: object) -> bool:
        if self.kind == FlagKind.BOOL:
            return isinstance(value, bool)
        if self.kind == FlagKind.INT:
            return isinstance(value, int) and not isinstance(value, bool) and value >= 0
        return isinstance(value, str) and value in self.choices


def _fixed(name: str, default: FlagValue, description: str, depends_on=(), kind=FlagKind.BOOL) -> FlagSpec:
    return FlagSpec(
        name=name,
        kind=kind,
        default=default,
        depends_on=frozenset(depends_on),
        description=description,
    )


def _request(name: str, default: bool, description: str) -> FlagSpec:
    return FlagSpec(
        name=name,
        kind=FlagKind.BOOL,
        default=default,
        mutability=Mutability.DYNAMIC,
        requestable=True,
        description=description,
    )


def _derived(name: str, default: FlagValue, description: str, choices: Tuple[str, ...] = ()) -> FlagSpec:
    return FlagSpec(
        name=name,
        kind=FlagKind.ENUM if choices else FlagKind.BOOL,
        default=default,
        mutability=Mutability.DYNAMIC,
        choices=choices,
        description=description,
    )


_SPECS: Tuple[FlagSpec, ...] = (
    # ── Fixed: value representation ──────────────────────────────────
    _fixed("self_test_tval", True, "Run the value-layout self test at startup"),
    _fixed("prefer_packed_tval", True, "Use the packed value representation when possible"),
    # ── Fixed: memory management ─────────────────────────────────────
    _fixed("reference_counting", True, "Reference counting GC", depends_on=("double_linked_heap",)),
    _fixed("double_linked_heap", True, "Doubly-linked heap object tracking"),
    _fixed("mark_and_sweep", True, "Mark-and-sweep GC"),
    _fixed("gc_torture", False, "Stress-test collection on every allocation", depends_on=("mark_and_sweep",)),
    _fixed("provide_default_alloc_functions", True, "Provide default malloc-based allocators"),
    _fixed("explicit_null_init", False, "Initialize pointers explicitly instead of via memset"),
    # ── Fixed: errors and diagnostics ────────────────────────────────
    _fixed("augment_errors", True, "Augment errors at creation"),
    _fixed("tracebacks", True, "Record tracebacks in errors"),
    _fixed("traceback_depth", 10, "Maximum traceback depth", depends_on=("tracebacks",), kind=FlagKind.INT),
    _fixed("verbose_errors", True, "Verbose error messages"),
    _fixed("debug", False, "Debug build"),
    _fixed("ddebug", False, "Debug verbosity level 2", depends_on=("debug",)),
    _fixed("dddebug", False, "Debug verbosity level 3", depends_on=("debug", "ddebug")),
    _fixed("assertions", False, "Internal assertions"),
    _fixed("dprint_colors", True, "ANSI colors in debug prints"),
    # ── Fixed: language features ─────────────────────────────────────
    _fixed("regexp_support", True, "RegExp built-in"),
    _fixed("strict_utf8_source", True, "Reject invalid UTF-8 in source text"),
    _fixed("octal_support", True, "Octal number literals"),
    _fixed("source_nonbmp", True, "Non-BMP characters in identifiers"),
    _fixed("browser_like", True, "Browser-like global bindings"),
    _fixed("section_b", True, "Annex B features"),
    # ── Dynamic: requested, refined against capability ───────────────
    _request("dprint_rdtsc", False, "Print cycle counter in debug prints (opt-in)"),
    _request("variadic_macros", True, "Variadic preprocessor macros"),
    _request("gcc_pragmas", True, "Pragma-based warning suppression"),
    _request("hashbytes_unaligned_u32_access", True, "Unaligned 32-bit reads when hashing"),
    _request("hobject_unaligned_layout", True, "Unaligned object property layout"),
    # ── Dynamic: derived from facts ──────────────────────────────────
    _derived("struct_hack", False, "Zero-length trailing array (non-portable)"),
    _derived("native_fpclassify", True, "Native fpclassify()"),
    _derived("native_signbit", True, "Native signbit()"),
    _derived("native_isfinite", True, "Native isfinite()"),
    _derived("native_isnan", True, "Native isnan()"),
    _derived("native_fmin", True, "Native fmin()"),
    _derived("native_fmax", True, "Native fmax()"),
    _derived("native_round", True, "Native round()"),
    _derived("computed_infinity", False, "Infinity computed at runtime init"),
    _derived("computed_nan", False, "NaN computed at runtime init"),
    _derived("memcpy_via_memmove", False, "Route memcpy through memmove"),
    _derived("date_now", "gettimeofday", "Current time primitive", choices=("gettimeofday", "time")),
    _derived("date_tzo", "gmtime", "Local time offset primitive", choices=("gmtime",)),
    _derived("date_prs", "strptime", "Date parsing primitive", choices=("strptime", "none")),
    _derived("date_fmt", "strftime", "Date formatting primitive", choices=("strftime", "none")),
    # ── Dynamic: numeric representation ──────────────────────────────
    _derived("packed_tval_possible", False, "Platform allows the packed representation"),
    _derived("packed_tval", False, "Packed representation active"),
    _derived("tval_representation", "unpacked", "Active value representation", choices=("packed", "unpacked")),
    _derived("double_layout", "little", "In-memory IEEE double layout", choices=("little", "big", "mixed")),
)

FLAG_CATALOG: Mapping[str, FlagSpec] = {spec.name: spec for spec in _SPECS}

MATH_FLAGS: Mapping[str, str] = {
    primitive: f"native_{primitive}"
    for primitive in ("fpclassify", "signbit", "isfinite", "isnan", "fmin", "fmax", "round")
}


def baseline_table(catalog: Mapping[str, FlagSpec] = FLAG_CATALOG) -> Dict[str, FlagValue]:
    """The FULL baseline: every flag at its declared default."""
    return {name: spec.default for name, spec in catalog.items()}


def fixed_flags(catalog: Mapping[str, FlagSpec] = FLAG_CATALOG) -> FrozenSet[str]:
    return frozenset(n for n, s in catalog.items() if s.mutability == Mutability.FIXED)


def dynamic_flags(catalog: Mapping[str, FlagSpec] = FLAG_CATALOG) -> FrozenSet[str]:
    return frozenset(n for n, s in catalog.items() if s.mutability == Mutability.DYNAMIC)
