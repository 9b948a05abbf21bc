"""Tests for the host probe."""
import struct
import sys

import pytest

from feature_resolver.core.host_probe import (
    float_word_order_of,
    os_family_for,
    parse_compiler,
    probe_host,
)
from feature_resolver.core.signals import collect_facts


class TestParseCompiler:

    @pytest.mark.parametrize("banner,expected", [
        ("GCC 11.4.0", ("gcc", (11, 4))),
        ("Clang 14.0.3 (clang-1403.0.22.14.1)", ("clang", (14, 0))),
        ("MSC v.1937 64 bit (AMD64)", ("msvc", (19, 37))),
        ("something else", ("unknown", (0, 0))),
    ])
    def test_banners(self, banner, expected):
        assert parse_compiler(banner) == expected


class TestOsFamily:

    @pytest.mark.parametrize("platform_name,family", [
        ("linux", "linux"),
        ("darwin", "darwin"),
        ("freebsd13", "bsd"),
        ("win32", "windows"),
        ("emscripten", "unknown"),
    ])
    def test_families(self, platform_name, family):
        assert os_family_for(platform_name) == family


class TestFloatWordOrder:

    def test_little(self):
        assert float_word_order_of(struct.pack("<d", 1.0), "little") == "little"

    def test_big(self):
        assert float_word_order_of(struct.pack(">d", 1.0), "big") == "big"

    def test_mixed(self):
        """Little-endian words, high word first."""
        image = bytes([0x00, 0x00, 0xF0, 0x3F, 0, 0, 0, 0])
        assert float_word_order_of(image, "little") == "big"

    def test_unrecognized(self):
        assert float_word_order_of(b"\x01" * 8, "little") is None
        assert float_word_order_of(b"\x00" * 4, "little") is None


class TestProbeHost:

    def test_host_signals(self):
        raw = probe_host()
        assert raw.source == "host"
        assert raw.byte_order == sys.byteorder
        assert raw.float_word_order == sys.byteorder
        assert raw.word_size == struct.calcsize("P") * 8
        assert raw.int_max >= 2 ** 31 - 1

    def test_host_classifies(self):
        """The host this suite runs on is a supported platform."""
        raw = probe_host()
        if raw.os_family not in ("linux", "darwin", "bsd", "unix"):
            pytest.skip(f"host OS family {raw.os_family!r} has no date provider")
        facts = collect_facts(raw)
        assert facts.byte_order.value == sys.byteorder
