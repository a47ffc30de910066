"""
Tests for health, readiness, and metrics endpoints.
"""


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "HealthVault API"
    assert data["version"] == "1.0.0"
    assert "health" in data
    assert "ready" in data
    assert "metrics" in data


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["timestamp"].endswith("Z")


def test_ready_endpoint(client):
    response = client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    names = {dep["name"]: dep["status"] for dep in data["dependencies"]}
    assert names == {"database": "ok", "attachment_store": "ok"}


def test_ready_reports_missing_upload_directory(client, upload_dir):
    for category_dir in upload_dir.iterdir():
        category_dir.rmdir()
    upload_dir.rmdir()

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_request_id_header(client):
    response = client.get("/health")
    assert len(response.headers["X-Request-ID"]) == 8


def test_metrics_prometheus_format(client):
    client.get("/health")
    client.get("/api/records")  # 401

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    body = response.text
    assert "http_requests_total 2" in body
    assert 'http_requests_by_status{status="2xx"} 1' in body
    assert 'http_requests_by_status{status="4xx"} 1' in body
    assert 'http_request_duration_ms{quantile="0.5"}' in body


def test_metrics_json(client):
    client.get("/health")

    response = client.get("/metrics/json")

    assert response.status_code == 200
    data = response.json()
    assert data["http_requests_total"] == 1
    assert data["http_requests_2xx_total"] == 1
    assert data["http_requests_5xx_total"] == 0
