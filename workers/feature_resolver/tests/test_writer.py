"""Tests for report and header serialization, and loading facts back."""
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from feature_resolver.core.facts import PlatformFacts
from feature_resolver.io.loader import load_facts
from feature_resolver.io.schema import FlagInfo, PlatformFactsModel, ProfileInfo
from feature_resolver.io.writer import HEADER_GUARD, render_header, write_outputs
from feature_resolver.policy.flags import FLAG_CATALOG
from feature_resolver.policy.profile import PROFILES, ProfileSelector
from feature_resolver.runner import derive_configuration


class TestRenderHeader:

    def test_guard_and_fingerprint(self, facts_le32: PlatformFacts):
        config = derive_configuration(facts_le32, "FULL")
        header = render_header(config)
        assert f"#ifndef {HEADER_GUARD}" in header
        assert config.fingerprint in header
        assert header.endswith("\n")

    def test_bool_flags(self, facts_le32: PlatformFacts):
        header = render_header(derive_configuration(facts_le32, "FULL"))
        assert "#define USE_PACKED_TVAL\n" in header
        assert "#undef  USE_DEBUG\n" in header

    def test_int_flag(self, facts_le32: PlatformFacts):
        header = render_header(derive_configuration(facts_le32, "FULL"))
        assert "#define USE_TRACEBACK_DEPTH 10\n" in header

    def test_enum_flag_one_define(self, facts_le32: PlatformFacts):
        header = render_header(derive_configuration(facts_le32, "FULL"))
        assert "#define USE_DOUBLE_LAYOUT_LITTLE\n" in header
        assert "#undef  USE_DOUBLE_LAYOUT_BIG\n" in header
        assert "#undef  USE_DOUBLE_LAYOUT_MIXED\n" in header

    def test_none_choice_skipped(self, facts_legacy_be: PlatformFacts):
        header = render_header(derive_configuration(facts_legacy_be))
        assert "USE_DATE_PRS_NONE" not in header
        assert "#undef  USE_DATE_PRS_STRPTIME\n" in header

    def test_custom_prefix(self, facts_le32: PlatformFacts):
        header = render_header(derive_configuration(facts_le32), prefix="DUK_USE_")
        assert "DUK_USE_REGEXP_SUPPORT" in header
        assert "#define USE_" not in header


class TestWriteOutputs:

    def test_creates_directory(self, facts_le32: PlatformFacts, tmp_path: Path):
        out = tmp_path / "nested" / "out"
        assert write_outputs(derive_configuration(facts_le32), out) == out
        assert (out / "features.h").exists()

    def test_report_fields(self, facts_le32: PlatformFacts, tmp_path: Path):
        config = derive_configuration(facts_le32, "MINIMAL", {"assertions": True})
        write_outputs(config, tmp_path)
        data = json.loads((tmp_path / "resolved_config.json").read_text())
        assert data["overrides"] == {"assertions": True}
        assert data["facts"]["byte_order"] == "little"
        assert data["backing"]["round"] == "native"
        assert set(data["flags"]) == set(FLAG_CATALOG)
        assert "timestamp" in data


class TestLoader:

    def test_bare_facts(self, facts_file: Path):
        facts = load_facts(facts_file)
        assert facts.word_size_bits == 32
        assert facts.compiler_version == (4, 8)
        assert "round" in facts.math_available

    def test_facts_model_round_trip(self, facts_legacy_be: PlatformFacts):
        assert PlatformFactsModel.from_facts(facts_legacy_be).to_facts() == facts_legacy_be

    def test_unknown_field_rejected(self, tmp_path: Path):
        path = tmp_path / "facts.json"
        path.write_text('{"byte_order": "little", "float_word_order": "little", '
                        '"word_size_bits": 32, "endianness": "little"}')
        with pytest.raises(ValidationError):
            load_facts(path)


class TestListings:

    def test_profile_info(self):
        info = ProfileInfo.from_definition(PROFILES[ProfileSelector.TINY])
        assert info.code == 300
        assert info.overrides["traceback_depth"] == 0

    def test_flag_info(self):
        info = FlagInfo.from_spec(FLAG_CATALOG["dddebug"])
        assert info.depends_on == ["ddebug", "debug"]
        assert info.overridable is True
