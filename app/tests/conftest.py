"""
Shared pytest fixtures for the API tests.

The app lifespan reads a recorded facts file instead of probing the host,
so every test sees the same 32-bit little-endian configuration.
"""
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app

FACTS_JSON = (
    '{"byte_order": "little", "float_word_order": "little", '
    '"word_size_bits": 32, "unsigned_int_range_bits": 32, '
    '"compiler_family": "gcc", "compiler_version": [4, 8], "arch": "i686"}\n'
)


@pytest.fixture
def facts_payload() -> dict:
    return {
        "byte_order": "little",
        "float_word_order": "little",
        "word_size_bits": 64,
        "unsigned_int_range_bits": 32,
        "compiler_family": "gcc",
        "compiler_version": [11, 4],
        "arch": "x86_64",
    }


@pytest.fixture
def client(tmp_path: Path, monkeypatch):
    """TestClient with the lifespan run against a recorded facts file."""
    facts_file = tmp_path / "facts.json"
    facts_file.write_text(FACTS_JSON)
    monkeypatch.setattr(settings, "FEATURES_FACTS_FILE", str(facts_file))
    monkeypatch.setattr(settings, "FEATURES_PROFILE", "FULL")
    monkeypatch.setattr(settings, "FEATURES_OVERRIDES", "assertions=on")
    monkeypatch.setattr(settings, "FEATURES_OUTPUT_DIR", str(tmp_path / "out"))
    with TestClient(app) as c:
        yield c
