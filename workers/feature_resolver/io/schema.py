"""
Schema: Pydantic models for resolver JSON inputs and outputs.

  1. PlatformFactsModel: recorded facts (facts files, API requests).
  2. ResolvedConfigReport: resolved_config.json.
  3. ProfileInfo / FlagInfo: catalog listings.

Runtime contract fields (present in every report):
  package_name, resolver_version, schema_version, profile_id.
"""
from datetime import datetime, timezone
from typing import Dict, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from feature_resolver import PACKAGE_NAME, RESOLVER_VERSION, SCHEMA_VERSION
from feature_resolver.core.facts import (
    MATH_PRIMITIVES,
    ByteOrder,
    CStandardLevel,
    DateProvider,
    PlatformFacts,
)
from feature_resolver.core.resolved import ResolvedConfiguration
from feature_resolver.policy.flags import FlagSpec
from feature_resolver.policy.profile import ProfileDefinition


# ── Facts ────────────────────────────────────────────────────────────────────

class DateProviderModel(BaseModel):
    now: str = "gettimeofday"
    tzo: str = "gmtime"
    prs: str = "strptime"
    fmt: str = "strftime"


class PlatformFactsModel(BaseModel):
    """Classified platform facts as recorded in JSON."""

    model_config = ConfigDict(extra="forbid")

    byte_order: ByteOrder
    float_word_order: ByteOrder
    word_size_bits: int
    unsigned_int_range_bits: int = 32
    c_standard: CStandardLevel = CStandardLevel.MODERN
    compiler_family: str = "gcc"
    compiler_version: Tuple[int, int] = (9, 0)

    arch: str = "unknown"
    os_family: str = "linux"
    libc: str = "glibc"
    math_available: List[str] = Field(default_factory=lambda: sorted(MATH_PRIMITIVES))
    unaligned_access_safe: bool = True
    cycle_counter_available: bool = False
    computed_infinity_required: bool = False
    computed_nan_required: bool = False
    date_provider: DateProviderModel = Field(default_factory=DateProviderModel)

    @classmethod
    def from_facts(cls, facts: PlatformFacts) -> "PlatformFactsModel":
        return cls(
            byte_order=facts.byte_order,
            float_word_order=facts.float_word_order,
            word_size_bits=facts.word_size_bits,
            unsigned_int_range_bits=facts.unsigned_int_range_bits,
            c_standard=facts.c_standard,
            compiler_family=facts.compiler_family,
            compiler_version=facts.compiler_version,
            arch=facts.arch,
            os_family=facts.os_family,
            libc=facts.libc,
            math_available=sorted(facts.math_available),
            unaligned_access_safe=facts.unaligned_access_safe,
            cycle_counter_available=facts.cycle_counter_available,
            computed_infinity_required=facts.computed_infinity_required,
            computed_nan_required=facts.computed_nan_required,
            date_provider=DateProviderModel(
                now=facts.date_provider.now,
                tzo=facts.date_provider.tzo,
                prs=facts.date_provider.prs,
                fmt=facts.date_provider.fmt,
            ),
        )

    def to_facts(self) -> PlatformFacts:
        return PlatformFacts(
            byte_order=self.byte_order,
            float_word_order=self.float_word_order,
            word_size_bits=self.word_size_bits,
            unsigned_int_range_bits=self.unsigned_int_range_bits,
            c_standard=self.c_standard,
            compiler_family=self.compiler_family,
            compiler_version=tuple(self.compiler_version),
            arch=self.arch,
            os_family=self.os_family,
            libc=self.libc,
            math_available=frozenset(self.math_available),
            unaligned_access_safe=self.unaligned_access_safe,
            cycle_counter_available=self.cycle_counter_available,
            computed_infinity_required=self.computed_infinity_required,
            computed_nan_required=self.computed_nan_required,
            date_provider=DateProvider(**self.date_provider.model_dump()),
        )


# ── Resolved configuration report ────────────────────────────────────────────

class ResolvedConfigReport(BaseModel):
    """resolved_config.json"""

    package_name: str = PACKAGE_NAME
    resolver_version: str = RESOLVER_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    fingerprint: str
    facts: PlatformFactsModel
    overrides: Dict[str, bool] = Field(default_factory=dict)
    flags: Dict[str, Union[bool, int, str]] = Field(default_factory=dict)
    backing: Dict[str, str] = Field(default_factory=dict)

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @classmethod
    def from_config(cls, config: ResolvedConfiguration) -> "ResolvedConfigReport":
        return cls(
            profile_id=config.profile_id,
            fingerprint=config.fingerprint,
            facts=PlatformFactsModel.from_facts(config.facts),
            overrides=dict(config.overrides),
            flags=dict(config.flags),
            backing=config.backing,
        )


# ── Catalog listings ─────────────────────────────────────────────────────────

class ProfileInfo(BaseModel):
    profile_id: str
    code: int
    description: str
    overrides: Dict[str, Union[bool, int, str]] = Field(default_factory=dict)

    @classmethod
    def from_definition(cls, definition: ProfileDefinition) -> "ProfileInfo":
        return cls(
            profile_id=definition.profile_id,
            code=definition.code,
            description=definition.description,
            overrides=dict(sorted(definition.overrides.items())),
        )


class FlagInfo(BaseModel):
    name: str
    kind: str
    mutability: str
    default: Union[bool, int, str]
    depends_on: List[str] = Field(default_factory=list)
    choices: List[str] = Field(default_factory=list)
    overridable: bool = False
    description: str = ""

    @classmethod
    def from_spec(cls, spec: FlagSpec) -> "FlagInfo":
        return cls(
            name=spec.name,
            kind=spec.kind.value,
            mutability=spec.mutability.value,
            default=spec.default,
            depends_on=sorted(spec.depends_on),
            choices=list(spec.choices),
            overridable=spec.overridable,
            description=spec.description,
        )
