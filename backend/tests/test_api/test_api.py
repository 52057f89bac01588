"""Tests for API endpoints (no LLM calls, the orchestrator gets a fake model)."""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from layoutsvg.config import Settings
from layoutsvg.dependencies import get_orchestrator
from layoutsvg.engine.config import GenerationConfig
from layoutsvg.engine.orchestrator import GenerationOrchestrator
from layoutsvg.main import app, configure_logging
from tests.conftest import sun_document_json


client = TestClient(app)


async def _no_sleep(seconds):
    return None


def _use_model(generate):
    orchestrator = GenerationOrchestrator(
        generate,
        config=GenerationConfig(max_retries=2, timeout_s=5),
        sleep=_no_sleep,
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator


def teardown_function():
    app.dependency_overrides.clear()


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["regionsAvailable"] == 10


def test_regions():
    response = client.get("/api/regions")
    assert response.status_code == 200
    data = response.json()
    names = [r["name"] for r in data["regions"]]
    assert len(names) == 10
    assert "full_canvas" in names
    assert data["anchors"]["bottom_right"] == [1.0, 1.0]


def test_prompts():
    response = client.get("/api/prompts")
    assert response.status_code == 200
    assert "REGIONS" in response.json()["system"]


def test_generate_unified():
    async def model(prompt):
        return sun_document_json(fenced=True)

    _use_model(model)
    response = client.post("/api/generate", json={"prompt": "a sun over a field"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["metadata"]["method"] == "unified"
    assert data["metadata"]["fallbackUsed"] is False
    assert data["metadata"]["regionsUsed"] == ["top_right"]
    assert data["markup"].startswith("<svg ")


def test_generate_falls_back_when_model_fails():
    async def model(prompt):
        raise RuntimeError("service unavailable")

    _use_model(model)
    response = client.post("/api/generate", json={"prompt": "a blue star", "aspectRatio": "16:9"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["metadata"]["method"] == "rule-based-fallback"
    assert data["metadata"]["fallbackReason"] == "Unified generation failed: service unavailable"
    assert data["metadata"]["attempts"] == 2
    assert data["metadata"]["canvas"] == [512, 288]
    assert len(data["errors"]) == 2


def test_generate_rule_based_with_debug():
    async def model(prompt):
        raise AssertionError("model must not be called")

    _use_model(model)
    response = client.post("/api/generate", json={"prompt": "a heart", "model": "rule-based", "debug": True})
    assert response.status_code == 200
    data = response.json()
    assert data["metadata"]["method"] == "rule-based-fallback"
    assert data["debug"]["statistics"]["layers"] == 1


def test_generate_rejects_empty_prompt():
    response = client.post("/api/generate", json={"prompt": ""})
    assert response.status_code == 422


def test_generate_rejects_unknown_aspect_ratio():
    response = client.post("/api/generate", json={"prompt": "a sun", "aspectRatio": "5:4"})
    assert response.status_code == 422


def test_generate_rejects_unknown_grounding_kind():
    response = client.post("/api/generate", json={"prompt": "a sun", "grounding": [{"kind": "mood"}]})
    assert response.status_code == 422


def test_configure_logging_uses_settings_level():
    package_logger = logging.getLogger("layoutsvg")
    previous = package_logger.level
    try:
        assert configure_logging(Settings(layoutsvg_log_level="warning")) == logging.WARNING
        assert package_logger.level == logging.WARNING
        assert configure_logging(Settings(layoutsvg_log_level="nonsense")) == logging.DEBUG
    finally:
        package_logger.setLevel(previous)
