"""
Computed constants: infinity and NaN for targets without usable literals.

The values are built from their IEEE bit patterns by ``initialize()``,
which populates them exactly once; later calls are no-ops.  Reading before
initialization is an error, so a runtime that forgets the hook fails loudly
instead of reading garbage.
"""
import logging
import struct
from typing import Optional

from feature_resolver.core.resolved import ResolvedConfiguration

logger = logging.getLogger(__name__)

INFINITY_BITS = 0x7FF0000000000000
NAN_BITS = 0x7FF8000000000000


def _from_bits(bits: int) -> float:
    return struct.unpack(">d", struct.pack(">Q", bits))[0]


class ComputedConstants:
    def __init__(self) -> None:
        self._infinity: Optional[float] = None
        self._nan: Optional[float] = None

    @property
    def initialized(self) -> bool:
        return self._infinity is not None

    def initialize(self) -> bool:
        """Populate the constants.  Returns False if they already were."""
        if self.initialized:
            return False
        self._infinity = _from_bits(INFINITY_BITS)
        self._nan = _from_bits(NAN_BITS)
        logger.debug("Computed constants initialized")
        return True

    @property
    def infinity(self) -> float:
        if self._infinity is None:
            raise RuntimeError("computed infinity read before initialization")
        return self._infinity

    @property
    def nan(self) -> float:
        if self._nan is None:
            raise RuntimeError("computed NaN read before initialization")
        return self._nan


# process-wide instance, populated by the runtime initializer
COMPUTED = ComputedConstants()


def initialize_runtime_constants(
    config: ResolvedConfiguration,
    constants: ComputedConstants = COMPUTED,
) -> ComputedConstants:
    """
    Runtime construction hook.

    Must run before any consumer reads the constants; calling it when the
    embedding runtime is first constructed satisfies that.
    """
    if constants.initialize():
        logger.info(
            "Runtime constants ready (infinity=%s, nan=%s)",
            "computed" if config["computed_infinity"] else "literal",
            "computed" if config["computed_nan"] else "literal",
        )
    return constants
