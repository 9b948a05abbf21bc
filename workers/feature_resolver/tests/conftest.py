"""
Shared pytest fixtures for feature_resolver tests.

Provides RawSignals and PlatformFacts for a handful of representative
targets, so every stage can be exercised without probing the host.

  - 32-bit little-endian Linux/gcc   (packing possible)
  - 64-bit little-endian Linux/gcc   (packing impossible)
  - old ARM FPA                      (mixed double layout)
  - AmigaOS m68k with vbcc           (big-endian, legacy C, no math)

ELF fixtures are compiled on the fly with gcc and skipped when gcc is
missing or does not produce ELF.
"""
import shutil
import struct
import subprocess
import textwrap
from pathlib import Path
from typing import Optional

import pytest

from feature_resolver.core.facts import (
    ByteOrder,
    CStandardLevel,
    PlatformFacts,
    RawSignals,
)


@pytest.fixture
def raw_linux32() -> RawSignals:
    return RawSignals(
        arch="i686",
        os_family="linux",
        compiler_family="gcc",
        compiler_version=(4, 8),
        stdc_version=199901,
        byte_order="little",
        float_word_order="little",
        word_size=32,
        uint_max=2 ** 32 - 1,
        int_max=2 ** 31 - 1,
        libc="glibc",
        source="test",
    )


@pytest.fixture
def raw_linux64() -> RawSignals:
    return RawSignals(
        arch="x86_64",
        os_family="linux",
        compiler_family="gcc",
        compiler_version=(11, 4),
        stdc_version=201112,
        byte_order="little",
        float_word_order="little",
        word_size=64,
        uint_max=2 ** 32 - 1,
        int_max=2 ** 31 - 1,
        libc="glibc",
        source="test",
    )


@pytest.fixture
def raw_arm_fpa() -> RawSignals:
    """Old ARM: headers do not report the float word order."""
    return RawSignals(
        arch="armv4l",
        os_family="linux",
        compiler_family="gcc",
        compiler_version=(3, 4),
        stdc_version=199901,
        byte_order="little",
        word_size=32,
        uint_max=2 ** 32 - 1,
        int_max=2 ** 31 - 1,
        libc="uclibc",
        source="test",
    )


@pytest.fixture
def raw_amiga_vbcc() -> RawSignals:
    return RawSignals(
        arch="m68k",
        os_family="amigaos",
        compiler_family="vbcc",
        compiler_version=(0, 9),
        stdc_version=None,
        word_size=32,
        uint_max=2 ** 32 - 1,
        int_max=2 ** 31 - 1,
        infinity_literal=False,
        nan_literal=False,
        source="test",
    )


@pytest.fixture
def facts_le32() -> PlatformFacts:
    """32-bit little-endian, modern C, full math: packing possible."""
    return PlatformFacts(
        byte_order=ByteOrder.LITTLE,
        float_word_order=ByteOrder.LITTLE,
        word_size_bits=32,
        unsigned_int_range_bits=32,
        c_standard=CStandardLevel.MODERN,
        compiler_family="gcc",
        compiler_version=(4, 8),
        arch="i686",
        cycle_counter_available=True,
    )


@pytest.fixture
def facts_le64() -> PlatformFacts:
    """64-bit little-endian: packing impossible."""
    return PlatformFacts(
        byte_order=ByteOrder.LITTLE,
        float_word_order=ByteOrder.LITTLE,
        word_size_bits=64,
        unsigned_int_range_bits=32,
        compiler_family="gcc",
        compiler_version=(11, 4),
        arch="x86_64",
        cycle_counter_available=True,
    )


@pytest.fixture
def facts_legacy_be() -> PlatformFacts:
    """Big-endian legacy-C target with no native math."""
    return PlatformFacts(
        byte_order=ByteOrder.BIG,
        float_word_order=ByteOrder.BIG,
        word_size_bits=32,
        unsigned_int_range_bits=32,
        c_standard=CStandardLevel.LEGACY,
        compiler_family="vbcc",
        compiler_version=(0, 9),
        arch="m68k",
        os_family="amigaos",
        libc="unknown",
        math_available=frozenset(),
        unaligned_access_safe=False,
        computed_infinity_required=True,
        computed_nan_required=True,
    )


@pytest.fixture
def facts_file(tmp_path: Path) -> Path:
    """A recorded facts JSON file (32-bit little-endian)."""
    path = tmp_path / "facts.json"
    path.write_text(
        '{"byte_order": "little", "float_word_order": "little", '
        '"word_size_bits": 32, "unsigned_int_range_bits": 32, '
        '"compiler_family": "gcc", "compiler_version": [4, 8], "arch": "i686"}\n'
    )
    return path


# ── ELF fixtures ─────────────────────────────────────────────────────

MINIMAL_C = textwrap.dedent("""\
    double half(double x) {
        return x / 2.0;
    }

    int main(void) {
        return (int) half(4.0);
    }
""")


def _gcc_produces_elf(workdir: Path) -> bool:
    if shutil.which("gcc") is None:
        return False
    src = workdir / "probe.c"
    out = workdir / "probe"
    src.write_text("int main(void) { return 0; }\n")
    try:
        subprocess.run(["gcc", str(src), "-o", str(out)], check=True, capture_output=True, timeout=30)
    except (OSError, subprocess.SubprocessError):
        return False
    return out.exists() and out.read_bytes()[:4] == b"\x7fELF"


@pytest.fixture(scope="session")
def elf_binary(tmp_path_factory) -> Path:
    """MINIMAL_C compiled by the host gcc."""
    d = tmp_path_factory.mktemp("elf_fixtures")
    if not _gcc_produces_elf(d):
        pytest.skip("gcc not available or does not produce ELF binaries")
    src = d / "minimal.c"
    out = d / "minimal"
    src.write_text(MINIMAL_C)
    subprocess.run(["gcc", "-O0", "-std=c11", str(src), "-o", str(out)], check=True, capture_output=True, timeout=30)
    return out


@pytest.fixture
def not_elf(tmp_path: Path) -> Path:
    """A file that is not an ELF binary."""
    p = tmp_path / "not_an_elf"
    p.write_bytes(b"This is not an ELF file.\x00\x00\x00")
    return p


def _elf_image(machine: int, elfclass: int, flags: int = 0, comment: Optional[str] = None) -> bytes:
    """Little-endian ELF with a section string table and an optional .comment."""
    is64 = elfclass == 64
    ehsize = 64 if is64 else 52
    shentsize = 64 if is64 else 40

    names = b"\x00.shstrtab\x00"
    comment_name = len(names)
    data = b""
    if comment is not None:
        names += b".comment\x00"
        data = comment.encode() + b"\x00"

    shstr_off = ehsize
    comment_off = shstr_off + len(names)
    body = names + data
    shoff = (ehsize + len(body) + 7) & ~7
    padding = b"\x00" * (shoff - ehsize - len(body))

    # (name, type, flags, offset, size, entsize)
    sections = [(0, 0, 0, 0, 0, 0), (1, 3, 0, shstr_off, len(names), 0)]
    if comment is not None:
        sections.append((comment_name, 1, 0x30, comment_off, len(data), 1))

    headers = b""
    for name, sh_type, sh_flags, offset, size, entsize in sections:
        if is64:
            headers += struct.pack("<IIQQQQIIQQ", name, sh_type, sh_flags, 0, offset, size, 0, 0, 1, entsize)
        else:
            headers += struct.pack("<10I", name, sh_type, sh_flags, 0, offset, size, 0, 0, 1, entsize)

    ident = b"\x7fELF" + bytes([2 if is64 else 1, 1, 1, 0]) + bytes(8)
    if is64:
        fields = struct.pack(
            "<HHIQQQIHHHHHH",
            2, machine, 1, 0, 0, shoff, flags, ehsize, 0, 0, shentsize, len(sections), 1,
        )
    else:
        fields = struct.pack(
            "<HHIIIIIHHHHHH",
            2, machine, 1, 0, 0, shoff, flags, ehsize, 0, 0, shentsize, len(sections), 1,
        )
    return ident + fields + body + padding + headers


@pytest.fixture
def make_elf(tmp_path: Path):
    """Factory writing a hand-built ELF header to a file and returning its path."""
    def _make(name: str, machine: int, elfclass: int, flags: int = 0, comment: Optional[str] = None) -> Path:
        p = tmp_path / name
        p.write_bytes(_elf_image(machine, elfclass, flags=flags, comment=comment))
        return p
    return _make
