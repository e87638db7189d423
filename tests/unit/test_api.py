"""Tests for the REST pre-flight inspector, including property-based fuzzing.

Validates that:
 1. No 500s from malformed input (validation catches everything)
 2. Error responses always have ``error`` + ``detail``
 3. Live analysis goes through the workflow only when no snapshot is given
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from hypothesis import given, settings
from hypothesis import strategies as st

from kubecascade.api.app import create_app
from kubecascade.api.routes import _identity
from kubecascade.models.config import KubeCascadeConfig, PolicyConfig
from kubecascade.models.findings import DeletionDecision

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

_CONFIGMAP = {"kind": "ConfigMap", "metadata": {"name": "app-config", "namespace": "default"}}
_POD = {
    "kind": "Pod",
    "metadata": {"name": "nginx-pod", "namespace": "default"},
    "spec": {"volumes": [{"name": "cfg", "configMap": {"name": "app-config"}}]},
}


def _make_workflow(decision: DeletionDecision | None = None) -> MagicMock:
    workflow = MagicMock()
    workflow.analyze_deletion = AsyncMock(return_value=decision or DeletionDecision(False, False))
    workflow.force_permitted = MagicMock(return_value=True)
    return workflow


def _make_app(workflow: MagicMock | None = None, config: KubeCascadeConfig | None = None) -> TestClient:
    app = create_app(workflow=workflow, config=config or KubeCascadeConfig(cluster_id="test-cluster"))
    return TestClient(app, raise_server_exceptions=False)


def _assert_valid_json_response(resp, allowed_status_codes: set[int] | None = None):
    """Assert universal invariants on every API response."""
    assert resp.headers.get("content-type", "").startswith("application/json")
    body = resp.json()
    assert isinstance(body, dict)
    if allowed_status_codes is not None:
        assert resp.status_code in allowed_status_codes, f"Unexpected status {resp.status_code}, body={body}"
    if resp.status_code >= 400:
        assert "error" in body, f"Error response missing 'error': {body}"
        assert "detail" in body, f"Error response missing 'detail': {body}"


# ===========================================================================
# A. Endpoint behaviour
# ===========================================================================


class TestHealth:
    def test_snapshot_only_mode(self) -> None:
        """Health reports not live when no workflow is configured."""
        resp = _make_app().get("/api/v1/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["cluster_id"] == "test-cluster"
        assert body["live"] is False

    def test_live_mode(self) -> None:
        """Health reports live when a workflow is configured."""
        assert _make_app(workflow=_make_workflow()).get("/api/v1/health").json()["live"] is True


class TestInspect:
    def test_findings_for_snapshot(self) -> None:
        """Inspect returns findings for a caller-supplied snapshot."""
        resp = _make_app().post(
            "/api/v1/deletions/inspect",
            json={"kind": "cm", "target": _CONFIGMAP, "candidates": [_POD]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["cascading"] == []
        assert body["findings"][0]["related_name"] == "nginx-pod"
        assert body["findings"][0]["severity"] == "error"
        assert body["findings"][0]["relation_kind"] == "mount"

    def test_missing_target_is_invalid_request(self) -> None:
        """A body without a target is rejected with INVALID_REQUEST."""
        resp = _make_app().post("/api/v1/deletions/inspect", json={"kind": "ConfigMap"})
        _assert_valid_json_response(resp, allowed_status_codes={400})
        assert resp.json()["error"] == "INVALID_REQUEST"


class TestAnalyze:
    def test_blocked_snapshot(self) -> None:
        """Analyze blocks a ConfigMap mounted by a Pod."""
        resp = _make_app().post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP, "candidates": [_POD]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["decision"]["blocking"] is True
        assert body["decision"]["state"] == "blocked"
        assert body["confirmation"]["confirm_enabled"] is False
        assert body["confirmation"]["title"] == 'Delete ConfigMap "app-config" from "default"'

    def test_force_unblocks(self) -> None:
        """Force unblocks the same snapshot."""
        resp = _make_app().post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP, "candidates": [_POD], "force": True},
        )
        body = resp.json()
        assert body["decision"]["blocking"] is False
        assert body["confirmation"]["confirm_label"] == "Force Delete"

    def test_force_denied_kind_stays_blocked(self) -> None:
        """Force is ignored for kinds configured as force-denied."""
        config = KubeCascadeConfig(policy=PolicyConfig(force_denied_kinds=frozenset({"ConfigMap"})))
        resp = _make_app(config=config).post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP, "candidates": [_POD], "force": True},
        )
        body = resp.json()
        assert body["decision"]["blocking"] is True
        assert body["confirmation"]["footer"] == "Force deletion is disabled for configmap resources."

    def test_live_analysis_uses_workflow(self) -> None:
        """Without candidates, analysis goes through the workflow."""
        workflow = _make_workflow()
        resp = _make_app(workflow=workflow).post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP},
        )
        assert resp.status_code == 200
        workflow.analyze_deletion.assert_awaited_once()
        assert resp.json()["decision"]["state"] == "clean"

    def test_snapshot_bypasses_workflow(self) -> None:
        """With candidates, the workflow is not consulted."""
        workflow = _make_workflow()
        _make_app(workflow=workflow).post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP, "candidates": []},
        )
        workflow.analyze_deletion.assert_not_awaited()

    def test_workflow_error_is_internal_error(self) -> None:
        """An unexpected workflow error becomes INTERNAL_ERROR without details."""
        workflow = _make_workflow()
        workflow.analyze_deletion = AsyncMock(side_effect=RuntimeError("boom"))
        resp = _make_app(workflow=workflow).post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP},
        )
        _assert_valid_json_response(resp, allowed_status_codes={500})
        assert resp.json() == {"error": "INTERNAL_ERROR", "detail": "An unexpected error occurred."}


# ===========================================================================
# B. Fuzzing
# ===========================================================================

_json = st.recursive(
    st.none() | st.booleans() | st.integers() | st.floats(allow_nan=False, allow_infinity=False) | st.text(max_size=20),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=10), children, max_size=4),
    max_leaves=25,
)


class TestAnalyzeFuzz:
    @given(kind=st.text(max_size=30), target=_json, candidates=_json, force=_json)
    @settings(max_examples=100)
    def test_arbitrary_bodies_never_500(self, kind: str, target: object, candidates: object, force: object) -> None:
        """Arbitrary JSON bodies never produce a 500."""
        client = _make_app()
        body = {"kind": kind, "target": target, "candidates": candidates, "force": force}
        resp = client.post("/api/v1/deletions/analyze", json=body)
        _assert_valid_json_response(resp, allowed_status_codes={200, 400})

    @given(
        kind=st.sampled_from(["ConfigMap", "secret", "pvc", "svc", "Ingress", "Deployment", "Widget"]),
        target=st.dictionaries(st.text(max_size=10), _json, max_size=5),
        candidates=st.lists(_json, max_size=6),
    )
    @settings(max_examples=100)
    def test_valid_shaped_bodies_return_200(self, kind: str, target: dict, candidates: list) -> None:
        """Well-shaped bodies always analyze successfully."""
        client = _make_app()
        resp = client.post(
            "/api/v1/deletions/inspect",
            json={"kind": kind, "target": target, "candidates": candidates},
        )
        _assert_valid_json_response(resp, allowed_status_codes={200})

    @given(
        body=st.sampled_from(["", "null", "[]", "42", '"string"', "true", "{"]),
    )
    @settings(max_examples=10)
    def test_non_object_json_returns_400(self, body: str) -> None:
        """Non-object JSON bodies are invalid requests."""
        client = _make_app()
        resp = client.post(
            "/api/v1/deletions/analyze",
            content=body.encode(),
            headers={"content-type": "application/json"},
        )
        _assert_valid_json_response(resp, allowed_status_codes={400})


class TestMetricsEndpoint:
    def test_metrics_exposed(self) -> None:
        """Analysis counters are exposed on /metrics."""
        client = _make_app()
        client.post(
            "/api/v1/deletions/analyze",
            json={"kind": "ConfigMap", "target": _CONFIGMAP, "candidates": [_POD]},
        )
        resp = client.get("/metrics/")
        assert resp.status_code == 200
        assert "kubecascade_deletion_analyses_total" in resp.text


class TestTargetIdentity:
    def test_target_without_kind_raises(self) -> None:
        """A target with neither its own kind nor a request kind is rejected with ValueError."""
        with pytest.raises(ValueError, match="no kind"):
            _identity("", {"metadata": {"name": "app-config"}})

    def test_request_kind_names_target(self) -> None:
        """The request kind is used when the target omits its own."""
        identity = _identity("ConfigMap", {"metadata": {"name": "app-config", "namespace": "default"}})
        assert str(identity) == "ConfigMap/default/app-config"
