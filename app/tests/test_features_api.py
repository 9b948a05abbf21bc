"""Tests for the /features router and the startup derivation."""
from pathlib import Path


class TestStartup:
    """Lifespan derives and publishes once."""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_outputs_written(self, client, tmp_path: Path):
        assert (tmp_path / "out" / "resolved_config.json").exists()
        assert (tmp_path / "out" / "features.h").exists()

    def test_resolved(self, client):
        r = client.get("/features/resolved")
        assert r.status_code == 200
        data = r.json()
        assert data["profile_id"] == "FULL"
        assert data["overrides"] == {"assertions": True}
        assert data["flags"]["assertions"] is True
        assert data["flags"]["packed_tval"] is True
        assert len(data["fingerprint"]) == 64


class TestCatalogs:

    def test_profiles(self, client):
        r = client.get("/features/profiles")
        assert r.status_code == 200
        ids = [p["profile_id"] for p in r.json()]
        assert len(ids) == 10
        assert "TORTURE_DEBUG" in ids

    def test_flags(self, client):
        r = client.get("/features/flags")
        assert r.status_code == 200
        by_name = {f["name"]: f for f in r.json()}
        assert by_name["reference_counting"]["depends_on"] == ["double_linked_heap"]
        assert by_name["packed_tval"]["overridable"] is False


class TestDerive:

    def test_default_profile(self, client, facts_payload):
        r = client.post("/features/derive", json={"facts": facts_payload})
        assert r.status_code == 200
        data = r.json()
        assert data["profile_id"] == "PORTABLE"
        assert data["flags"]["tval_representation"] == "unpacked"

    def test_does_not_touch_published(self, client, facts_payload):
        before = client.get("/features/resolved").json()["fingerprint"]
        client.post("/features/derive", json={"facts": facts_payload, "profile": "TINY"})
        assert client.get("/features/resolved").json()["fingerprint"] == before

    def test_dependency_violation(self, client, facts_payload):
        r = client.post("/features/derive", json={
            "facts": facts_payload,
            "profile": "FULL",
            "overrides": {"double_linked_heap": False},
        })
        assert r.status_code == 422
        detail = r.json()["detail"]
        assert detail["error"] == "DependencyViolationError"
        assert detail["rule"] == "REFERENCE_COUNTING_REQUIRES_DOUBLE_LINKED_HEAP"

    def test_unknown_profile(self, client, facts_payload):
        r = client.post("/features/derive", json={"facts": facts_payload, "profile": "HUGE"})
        assert r.status_code == 422
        assert r.json()["detail"]["error"] == "UnknownProfileError"

    def test_unsupported_platform(self, client, facts_payload):
        facts_payload["byte_order"] = "unknown"
        r = client.post("/features/derive", json={"facts": facts_payload})
        assert r.status_code == 422
        assert r.json()["detail"]["error"] == "UnsupportedPlatformError"

    def test_malformed_facts(self, client):
        r = client.post("/features/derive", json={"facts": {"byte_order": "little"}})
        assert r.status_code == 422
