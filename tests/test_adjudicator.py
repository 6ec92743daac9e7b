from __future__ import annotations

import json
from typing import Any, Dict, Optional

import pytest

from ns_guard.adjudicator import DECODE_ERROR_PREFIX, Adjudicator
from ns_guard.engine import BYPASS_ANNOTATION_KEY, KINDS, DecisionEngine


def _review(
    operation: str = "DELETE",
    resource: Optional[Dict[str, str]] = None,
    name: str = "test-namespace",
) -> bytes:
    return json.dumps({
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": "705ab4f5-6393-11e8-b7cc-42010a800002",
            "resource": resource or {"group": "", "version": "v1", "resource": "namespaces"},
            "name": name,
            "namespace": "",
            "operation": operation,
            "userInfo": {"username": "admin", "groups": ["system:masters"]},
        },
    }).encode("utf-8")


def _post(adj: Adjudicator, body: bytes):
    status, content, media_type = adj.adjudicate("POST", "/", body)
    return status, json.loads(content)


def _response(payload: Dict[str, Any]) -> Dict[str, Any]:
    return payload["response"]


def test_wrong_method(adjudicator) -> None:
    status, content, media_type = adjudicator.adjudicate("GET", "/", b"")
    assert status == 405
    assert content == b"Incoming request method GET is not supported, only POST is supported"
    assert media_type.startswith("text/plain")


def test_wrong_path(adjudicator) -> None:
    status, content, _ = adjudicator.adjudicate("POST", "/foo", _review())
    assert status == 404
    assert content == b"/foo 404 Not Found"


@pytest.mark.parametrize("body", [b"", b"not-json", b"{}", b'{"request": {"operation": "DESTROY"}}'])
def test_malformed_body(adjudicator, body) -> None:
    status, payload = _post(adjudicator, body)
    assert status == 400
    assert _response(payload)["allowed"] is False
    assert _response(payload)["status"]["message"].startswith(DECODE_ERROR_PREFIX)


def test_admit_all_overrides_everything(cluster) -> None:
    cluster.counts["pods"] = 5
    cluster.lookup_error = RuntimeError("boom")
    adj = Adjudicator(DecisionEngine(cluster.counters()), cluster.get_namespace, admit_all=True)

    for body in (_review(), _review(operation="CREATE"), _review(resource={"version": "v1", "resource": "pods"})):
        status, payload = _post(adj, body)
        assert status == 200
        assert _response(payload) == {
            "uid": "705ab4f5-6393-11e8-b7cc-42010a800002",
            "allowed": True,
            "status": {"message": ""},
        }
    assert cluster.listed == []


def test_non_namespace_resource_denied(adjudicator) -> None:
    _, payload = _post(adjudicator, _review(resource={"group": "", "version": "v1", "resource": "pods"}))
    assert _response(payload)["allowed"] is False
    assert _response(payload)["status"]["message"] == "Incoming resource is not a Namespace: /v1/pods"


def test_wrong_operation_denied(adjudicator) -> None:
    _, payload = _post(adjudicator, _review(operation="CREATE"))
    assert _response(payload)["allowed"] is False
    assert _response(payload)["status"]["message"] == (
        "Incoming operation is CREATE on namespace test-namespace. Only DELETE is currently supported."
    )


def test_missing_namespace_allowed(adjudicator, cluster) -> None:
    _, payload = _post(adjudicator, _review(name="gone"))
    assert _response(payload)["allowed"] is True
    assert cluster.listed == []


def test_lookup_failure_denied_without_listing(adjudicator, cluster) -> None:
    cluster.lookup_error = RuntimeError("connection refused")
    _, payload = _post(adjudicator, _review())
    assert _response(payload)["allowed"] is False
    assert _response(payload)["status"]["message"] == (
        "Error occurred while retrieving the namespace test-namespace: connection refused"
    )
    assert cluster.listed == []


def test_bypass_annotation_true_allows(adjudicator, cluster) -> None:
    cluster.add_namespace("test-namespace", {BYPASS_ANNOTATION_KEY: "true"})
    cluster.counts["pods"] = 1
    _, payload = _post(adjudicator, _review())
    assert _response(payload)["allowed"] is True
    assert cluster.listed == []


@pytest.mark.parametrize("value", ["false", "True", "TRUE", "yes", " true", ""])
def test_bypass_annotation_other_values_evaluate(adjudicator, cluster, value) -> None:
    cluster.add_namespace("test-namespace", {BYPASS_ANNOTATION_KEY: value})
    cluster.counts["pods"] = 1
    _, payload = _post(adjudicator, _review())
    assert _response(payload)["allowed"] is False
    assert (
        "The namespace test-namespace you are trying to remove contains one or more of these "
        "resources: [pods(1)]. Please delete them and try again."
    ) in _response(payload)["status"]["message"]


def test_empty_namespace_allowed(adjudicator) -> None:
    status, payload = _post(adjudicator, _review())
    assert status == 200
    assert _response(payload)["allowed"] is True
    assert _response(payload)["status"]["message"] == ""


def test_every_kind_present(adjudicator, cluster) -> None:
    for kind in KINDS:
        cluster.counts[kind] = 1
    _, payload = _post(adjudicator, _review())
    message = _response(payload)["status"]["message"]
    assert _response(payload)["allowed"] is False
    assert "[pods(1) services(1) replicasets(1) deployments(1) statefulsets(1) " \
        "daemonsets(1) ingresses(1) horizontalpodautoscalers(1)]" in message


def test_same_request_same_verdict(adjudicator, cluster) -> None:
    cluster.counts["statefulsets"] = 2
    cluster.list_errors["ingresses"] = RuntimeError("forbidden")
    first = _post(adjudicator, _review())
    second = _post(adjudicator, _review())
    assert first == second


def test_response_echoes_envelope(adjudicator) -> None:
    _, payload = _post(adjudicator, _review())
    assert payload["apiVersion"] == "admission.k8s.io/v1"
    assert payload["kind"] == "AdmissionReview"
    assert "request" not in payload


def test_interrupted_evaluation_writes_no_response(adjudicator, cluster, monkeypatch) -> None:
    cluster.list_errors["services"] = KeyboardInterrupt()
    responses = []
    monkeypatch.setattr(adjudicator, "respond", lambda review, verdict: responses.append(verdict))
    with pytest.raises(KeyboardInterrupt):
        adjudicator.adjudicate("POST", "/", _review())
    assert responses == []
