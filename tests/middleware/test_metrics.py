"""Prometheus metrics: HTTP middleware and registration counters.

The default registry is global and counters never reset, so every
assertion is on the delta around the action.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "route": "health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "route": "health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_requests_labelled_by_route_name(
    auth_client: TestClient, valid_form: dict[str, str]
) -> None:
    labels = {"method": "POST", "route": "users.store", "status_code": "303"}
    before = _get_sample("http_requests_total", labels)
    auth_client.post("/users", data=valid_form)
    assert _get_sample("http_requests_total", labels) == before + 1


def test_unknown_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "route": "unmatched", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)

    client.get("/wp-admin")
    client.get("/no-such-page/12345")

    assert _get_sample("http_requests_total", labels) == before + 2
    assert _get_sample(
        "http_requests_total",
        {"method": "GET", "route": "/wp-admin", "status_code": "404"},
    ) == 0


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "users_registered_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "route": "metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_successful_store_counts_registration_and_cache_write(
    auth_client: TestClient, valid_form: dict[str, str]
) -> None:
    registered = _get_sample("users_registered_total")
    writes = _get_sample("cache_operations_total", {"operation": "write"})

    auth_client.post("/users", data=valid_form)

    assert _get_sample("users_registered_total") == registered + 1
    assert _get_sample("cache_operations_total", {"operation": "write"}) == writes + 1


def test_rejected_store_counts_offending_field(
    auth_client: TestClient, valid_form: dict[str, str]
) -> None:
    labels = {"field": "country"}
    registered = _get_sample("users_registered_total")
    before = _get_sample("registration_rejections_total", labels)

    valid_form["country"] = "abs"
    auth_client.post("/users", data=valid_form)

    assert _get_sample("registration_rejections_total", labels) == before + 1
    assert _get_sample("users_registered_total") == registered
