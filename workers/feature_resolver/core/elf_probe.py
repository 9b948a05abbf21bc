"""
ELF probe: RawSignals for the target a binary was built for.

Responsibilities:
  - Validate that the file is an ELF binary.
  - Map e_machine / EI_OSABI / ELF class / data encoding to raw signals.
  - Read the compiler banner from the .comment section if present.
  - Report the double word order: the byte order, except old-ABI ARM
    (FPA doubles, high word first).

ELF carries no C standard or libc configuration; those are inferred from the
compiler banner and are heuristics.
"""
from pathlib import Path
from typing import Optional, Tuple

from elftools.elf.elffile import ELFFile

from feature_resolver.core.facts import RawSignals
from feature_resolver.core.host_probe import parse_compiler

_MACHINES = {
    "EM_X86_64": "x86_64",
    "EM_386": "i386",
    "EM_ARM": "arm",
    "EM_AARCH64": "aarch64",
    "EM_MIPS": "mips",
    "EM_PPC": "ppc",
    "EM_PPC64": "ppc64",
    "EM_68K": "m68k",
    "EM_SPARC": "sparc",
    "EM_SPARCV9": "sparc64",
    "EM_RISCV": "riscv",
    "EM_S390": "s390",
    "EM_ALPHA": "alpha",
}

_OSABI = {
    "ELFOSABI_SYSV": "linux",
    "ELFOSABI_LINUX": "linux",
    "ELFOSABI_FREEBSD": "bsd",
    "ELFOSABI_NETBSD": "bsd",
    "ELFOSABI_OPENBSD": "bsd",
    "ELFOSABI_SOLARIS": "unix",
    "ELFOSABI_AIX": "unix",
}

EF_ARM_EABIMASK = 0xFF000000


def _read_comment(elffile: ELFFile) -> str:
    section = elffile.get_section_by_name(".comment")
    if section is None:
        return ""
    return section.data().replace(b"\x00", b"\n").decode("utf-8", errors="replace")


def _compiler_from_comment(comment: str) -> Tuple[str, Tuple[int, int]]:
    # "GCC: (Ubuntu 11.4.0-1ubuntu1) 11.4.0" / "clang version 14.0.0"
    for line in comment.splitlines():
        if line.startswith("GCC:"):
            version = line.rsplit(" ", 1)[-1]
            return parse_compiler(f"gcc {version}")
        if "clang version" in line:
            return parse_compiler(line.replace("clang version", "clang"))
    return "unknown", (0, 0)


def _stdc_for(family: str, version: Tuple[int, int]) -> Optional[int]:
    # default dialects: gcc >= 5 and clang >= 3.6 compile as gnu11
    if family == "gcc" and version >= (5, 0):
        return 201112
    if family == "clang" and version >= (3, 6):
        return 201112
    return None


def probe_elf(path: str) -> RawSignals:
    """
    Open *path* as an ELF file and return the target's raw signals.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ELFError
        If the file is not a valid ELF binary.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Binary not found: {path}")

    with open(p, "rb") as f:
        elffile = ELFFile(f)

        arch = _MACHINES.get(elffile.header.e_machine, str(elffile.header.e_machine).lower())
        os_family = _OSABI.get(elffile.header.e_ident["EI_OSABI"], "unknown")
        word_size = elffile.elfclass
        byte_order = "little" if elffile.little_endian else "big"

        float_word_order = byte_order
        if arch == "arm" and not (elffile.header.e_flags & EF_ARM_EABIMASK):
            # pre-EABI ARM stores doubles in FPA order
            float_word_order = "big"

        family, version = _compiler_from_comment(_read_comment(elffile))

    return RawSignals(
        arch=arch,
        os_family=os_family,
        compiler_family=family,
        compiler_version=version,
        stdc_version=_stdc_for(family, version),
        byte_order=byte_order,
        float_word_order=float_word_order,
        word_size=word_size,
        # ILP32 and LP64 targets both have a 32-bit unsigned int
        uint_max=2 ** 32 - 1,
        int_max=2 ** 31 - 1,
        source="elf",
    )
