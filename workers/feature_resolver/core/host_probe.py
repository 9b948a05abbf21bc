"""
Host probe: RawSignals for the machine running this interpreter.

Reads only static facts: sys/platform identifiers, C type widths via
ctypes, and the in-memory image of a known double (for the float word
order, which is determined separately from sys.byteorder).
"""
import ctypes
import platform
import re
import struct
import sys
from typing import Optional, Tuple

from feature_resolver.core.facts import RawSignals

# CPython 3.11+ requires a C11 compiler
_ASSUMED_STDC_VERSION = 201112

_COMPILER_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("clang", re.compile(r"clang\s+(\d+)\.(\d+)", re.IGNORECASE)),
    ("gcc", re.compile(r"gcc\s+(\d+)\.(\d+)", re.IGNORECASE)),
    ("msvc", re.compile(r"msc\s+v\.(\d\d)(\d\d)", re.IGNORECASE)),
)

_OS_FAMILIES: Tuple[Tuple[str, str], ...] = (
    ("linux", "linux"),
    ("darwin", "darwin"),
    ("freebsd", "bsd"),
    ("openbsd", "bsd"),
    ("netbsd", "bsd"),
    ("dragonfly", "bsd"),
    ("win32", "windows"),
    ("cygwin", "windows"),
    ("sunos", "unix"),
    ("aix", "unix"),
)


def parse_compiler(banner: str) -> Tuple[str, Tuple[int, int]]:
    """Parse a compiler banner such as ``GCC 11.4.0`` into (family, (major, minor))."""
    for family, pattern in _COMPILER_PATTERNS:
        m = pattern.search(banner)
        if m:
            return family, (int(m.group(1)), int(m.group(2)))
    return "unknown", (0, 0)


def os_family_for(sys_platform: str) -> str:
    for prefix, family in _OS_FAMILIES:
        if sys_platform.startswith(prefix):
            return family
    return "unknown"


def float_word_order_of(image: bytes, byte_order: str) -> Optional[str]:
    """
    Word order of a double given the native byte image of 1.0.

    1.0 is 0x3FF00000_00000000: the high word is the one that is not zero.
    """
    if len(image) != 8:
        return None
    hi = struct.pack("<I" if byte_order == "little" else ">I", 0x3FF00000)
    if image[:4] == hi and image[4:] == b"\x00" * 4:
        return "big"
    if image[4:] == hi and image[:4] == b"\x00" * 4:
        return "little"
    return None


def _libc() -> str:
    name, _version = platform.libc_ver()
    return name or "unknown"


def probe_host() -> RawSignals:
    """RawSignals describing the running host."""
    family, version = parse_compiler(platform.python_compiler())
    byte_order = sys.byteorder
    stdc = _ASSUMED_STDC_VERSION if family in ("gcc", "clang") else None

    return RawSignals(
        arch=platform.machine().lower() or "unknown",
        os_family=os_family_for(sys.platform),
        compiler_family=family,
        compiler_version=version,
        stdc_version=stdc,
        byte_order=byte_order,
        float_word_order=float_word_order_of(struct.pack("=d", 1.0), byte_order),
        word_size=struct.calcsize("P") * 8,
        uint_max=2 ** (ctypes.sizeof(ctypes.c_uint) * 8) - 1,
        int_max=2 ** (ctypes.sizeof(ctypes.c_int) * 8 - 1) - 1,
        libc=_libc(),
        source="host",
    )
