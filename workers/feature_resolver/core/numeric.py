"""
Numeric Representation Selector: value layout and IEEE double byte order.

Two independent decisions:
  1. Packed (NaN-boxed, one 64-bit word) vs unpacked (tag + full value)
     representation.  Packing needs 32-bit pointers and 32-bit unsigned ints.
  2. The in-memory layout of a double: little, big, or mixed (words in
     big-endian order, bytes within each word little-endian, as on old ARM).
"""
import logging
import struct
from enum import Enum, unique
from typing import Dict, Mapping

from feature_resolver.core.facts import ByteOrder, PlatformFacts
from feature_resolver.errors import UnsupportedPlatformError
from feature_resolver.policy.flags import FlagValue

logger = logging.getLogger(__name__)


@unique
class DoubleLayout(str, Enum):
    LITTLE = "little"
    BIG = "big"
    MIXED = "mixed"


@unique
class Representation(str, Enum):
    PACKED = "packed"
    UNPACKED = "unpacked"


_LAYOUTS: Mapping[tuple, DoubleLayout] = {
    (ByteOrder.LITTLE, ByteOrder.LITTLE): DoubleLayout.LITTLE,
    (ByteOrder.BIG, ByteOrder.BIG): DoubleLayout.BIG,
    (ByteOrder.LITTLE, ByteOrder.BIG): DoubleLayout.MIXED,
    (ByteOrder.BIG, ByteOrder.LITTLE): DoubleLayout.MIXED,
}

# byte positions of the big-endian image, per layout
_PERMUTATIONS: Mapping[DoubleLayout, tuple] = {
    DoubleLayout.BIG: (0, 1, 2, 3, 4, 5, 6, 7),
    DoubleLayout.LITTLE: (7, 6, 5, 4, 3, 2, 1, 0),
    DoubleLayout.MIXED: (3, 2, 1, 0, 7, 6, 5, 4),
}


def packed_representation_possible(facts: PlatformFacts) -> bool:
    return facts.word_size_bits == 32 and facts.unsigned_int_range_bits == 32


def classify_double_layout(facts: PlatformFacts) -> DoubleLayout:
    """Combine byte order and float word order.  Anything else is fatal."""
    layout = _LAYOUTS.get((facts.byte_order, facts.float_word_order))
    if layout is None:
        raise UnsupportedPlatformError(
            "cannot determine IEEE double byte order variant "
            f"(byte order={facts.byte_order.value}, float word order={facts.float_word_order.value})"
        )
    return layout


def encode_double(value: float, layout: DoubleLayout) -> bytes:
    """In-memory image of *value* under *layout*."""
    be = struct.pack(">d", value)
    return bytes(be[i] for i in _PERMUTATIONS[layout])


def decode_double(data: bytes, layout: DoubleLayout) -> float:
    if len(data) != 8:
        raise ValueError(f"expected 8 bytes, got {len(data)}")
    be = bytearray(8)
    for pos, i in enumerate(_PERMUTATIONS[layout]):
        be[i] = data[pos]
    return struct.unpack(">d", bytes(be))[0]


def select_representation(
    table: Mapping[str, FlagValue],
    facts: PlatformFacts,
) -> Dict[str, FlagValue]:
    """Return a new table with the numeric representation flags set."""
    layout = classify_double_layout(facts)
    possible = packed_representation_possible(facts)
    packed = possible and bool(table["prefer_packed_tval"])
    if table["prefer_packed_tval"] and not possible:
        logger.info(
            "Packed representation preferred but impossible (word=%d, uint=%d); using unpacked",
            facts.word_size_bits,
            facts.unsigned_int_range_bits,
        )
    representation = Representation.PACKED if packed else Representation.UNPACKED

    selected = dict(table)
    selected.update(
        packed_tval_possible=possible,
        packed_tval=packed,
        tval_representation=representation.value,
        double_layout=layout.value,
    )
    logger.info("Numeric representation: %s, double layout %s", representation.value, layout.value)
    return selected
