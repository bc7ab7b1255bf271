from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import backend, config
from app.main import app

from conftest import FakeElasticsearch, product_line


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def wired_es(monkeypatch: pytest.MonkeyPatch):
    es = FakeElasticsearch()
    monkeypatch.setattr(backend, "es_client", es)
    return es


@pytest.fixture
def feed(monkeypatch: pytest.MonkeyPatch, write_feed):
    def _feed(lines):
        path = write_feed(lines)
        monkeypatch.setattr(config, "SOURCE_PATH", path)
        monkeypatch.setattr(config, "BATCH_SIZE", 2)
        monkeypatch.setattr(config, "RECORD_LIMIT", "")
        monkeypatch.setattr(config, "MAX_IN_FLIGHT", 1)
        return path

    return _feed


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_index_products_reports_count(client, wired_es, feed):
    feed([product_line(i) for i in range(5)])
    r = client.get("/index-products")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["message"] == "Successfully indexed 5 products"
    assert body["result"]["submitted"] == 5
    assert wired_es.batch_sizes == [2, 2, 1]


def test_index_products_limit_param(client, wired_es, feed):
    feed([product_line(i) for i in range(5)])
    r = client.get("/index-products", params={"limit": 0})
    assert r.status_code == 200
    assert r.json()["result"]["submitted"] == 0
    assert wired_es.bulk_calls == []


def test_empty_source_is_not_an_error(client, wired_es, feed):
    feed([""])
    r = client.get("/index-products")
    assert r.status_code == 200
    assert r.json()["message"] == "Successfully indexed 0 products"


def test_missing_source_is_an_error(client, wired_es, monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setattr(config, "SOURCE_PATH", str(tmp_path / "missing.json"))
    r = client.get("/index-products")
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Failed to index products")


def test_transport_failure_reports_partial(client, monkeypatch: pytest.MonkeyPatch, feed):
    monkeypatch.setattr(backend, "es_client", FakeElasticsearch(fail_on_call=2))
    feed([product_line(i) for i in range(5)])
    r = client.get("/index-products")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "partial"
    assert body["result"]["submitted"] == 2
    assert body["result"]["aborted"] is True


def test_uninitialised_backend(client, monkeypatch: pytest.MonkeyPatch, feed):
    monkeypatch.setattr(backend, "es_client", None)
    feed([product_line(1)])
    assert client.get("/index-products").status_code == 500
    assert client.get("/index-health").status_code == 503


def test_index_health(client, wired_es):
    r = client.get("/index-health")
    assert r.status_code == 200
    assert r.json() == {"status": "green", "message": "Search backend status: green"}


def test_index_health_unreachable(client, monkeypatch: pytest.MonkeyPatch):
    es = FakeElasticsearch(health_status=ConnectionError("refused"))
    monkeypatch.setattr(backend, "es_client", es)
    r = client.get("/index-health")
    assert r.status_code == 503
    assert "Cannot connect" in r.json()["detail"]
