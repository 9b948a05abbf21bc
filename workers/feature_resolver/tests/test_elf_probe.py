"""
test_elf_probe: raw signals read from an ELF binary.

Tests verify:
  - A gcc-built binary reports the host's byte order, word size and gcc.
  - The signals classify and derive a configuration.
  - Hand-built headers: EABI ARM and comment-less binaries take the
    double word order from the byte order, old-ABI ARM is FPA.
  - Missing files and non-ELF files raise.
"""
import struct
import sys
from pathlib import Path

import pytest
from elftools.common.exceptions import ELFError

from feature_resolver.core.elf_probe import probe_elf
from feature_resolver.core.signals import collect_facts
from feature_resolver.runner import run_resolver

EM_ARM = 40
EM_X86_64 = 62


class TestProbeElf:
    """ELF header and .comment mapping."""

    def test_signals(self, elf_binary: Path):
        raw = probe_elf(str(elf_binary))
        assert raw.source == "elf"
        assert raw.byte_order == sys.byteorder
        assert raw.word_size == struct.calcsize("P") * 8
        assert raw.compiler_family == "gcc"
        assert raw.compiler_version >= (4, 0)
        assert raw.os_family == "linux"

    def test_derives(self, elf_binary: Path):
        """An ELF target derives end to end."""
        raw = probe_elf(str(elf_binary))
        facts = collect_facts(raw)
        config = run_resolver(facts=facts)
        assert config.facts.byte_order.value == sys.byteorder
        assert config["double_layout"] == sys.byteorder

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            probe_elf(str(tmp_path / "nope"))

    def test_not_elf(self, not_elf: Path):
        with pytest.raises(ELFError):
            probe_elf(str(not_elf))


class TestHandBuiltHeaders:
    """Word order and compiler mapping on headers built byte by byte."""

    def test_arm_eabi_uses_byte_order(self, make_elf):
        path = make_elf(
            "arm_eabi5", EM_ARM, 32,
            flags=0x05000400,
            comment="GCC: (Debian 12.2.0-14) 12.2.0",
        )
        raw = probe_elf(str(path))
        assert raw.arch == "arm"
        assert raw.compiler_family == "gcc"
        assert raw.compiler_version == (12, 2)
        assert raw.float_word_order == "little"

        config = run_resolver(raw=raw, selector="FULL")
        assert config["double_layout"] == "little"
        assert config["packed_tval"] is True

    def test_arm_old_abi_is_fpa(self, make_elf):
        path = make_elf("arm_oabi", EM_ARM, 32, flags=0, comment="GCC: (GNU) 3.4.6")
        raw = probe_elf(str(path))
        assert raw.float_word_order == "big"
        assert run_resolver(raw=raw)["double_layout"] == "mixed"

    def test_no_comment_section(self, make_elf):
        """A stripped or non-GNU binary still derives from the header alone."""
        raw = probe_elf(str(make_elf("x86_64_bare", EM_X86_64, 64)))
        assert raw.arch == "x86_64"
        assert raw.word_size == 64
        assert raw.compiler_family == "unknown"
        assert raw.float_word_order == "little"

        config = run_resolver(raw=raw)
        assert config["double_layout"] == "little"
        assert config.profile_id == "PORTABLE"
