"""Tests for the computed runtime constants."""
import math

import pytest

from feature_resolver.core.constants import (
    ComputedConstants,
    initialize_runtime_constants,
)
from feature_resolver.core.facts import PlatformFacts
from feature_resolver.runner import derive_configuration


class TestComputedConstants:

    def test_read_before_init_fails(self):
        constants = ComputedConstants()
        with pytest.raises(RuntimeError):
            _ = constants.infinity
        with pytest.raises(RuntimeError):
            _ = constants.nan

    def test_initialize_once(self):
        constants = ComputedConstants()
        assert constants.initialize() is True
        assert constants.initialize() is False
        assert constants.initialized

    def test_values(self):
        constants = ComputedConstants()
        constants.initialize()
        assert math.isinf(constants.infinity) and constants.infinity > 0
        assert math.isnan(constants.nan)


class TestRuntimeHook:

    def test_hook_initializes(self, facts_legacy_be: PlatformFacts):
        config = derive_configuration(facts_legacy_be)
        constants = ComputedConstants()
        returned = initialize_runtime_constants(config, constants)
        assert returned is constants
        assert math.isinf(constants.infinity)

    def test_hook_idempotent(self, facts_le32: PlatformFacts):
        config = derive_configuration(facts_le32)
        constants = ComputedConstants()
        initialize_runtime_constants(config, constants)
        first = constants.infinity
        initialize_runtime_constants(config, constants)
        assert constants.infinity == first
