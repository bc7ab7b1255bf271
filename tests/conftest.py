"""Shared fixtures: an in-memory stand-in for the Elasticsearch client and feed files."""

import json
import threading

import pytest

from app.schemas import IngestConfig


class FakeElasticsearch:
    """
    Records bulk calls and answers them like the bulk API does.
    Documents whose id is in reject_ids come back with an item-level error;
    fail_on_call (1-based) makes that bulk call raise instead.
    """

    def __init__(self, reject_ids=(), fail_on_call=None, health_status="green"):
        self.reject_ids = set(reject_ids)
        self.fail_on_call = fail_on_call
        self.health_status = health_status
        self.bulk_calls = []
        self.options_calls = []
        self.cluster = _FakeCluster(self)
        self._lock = threading.Lock()

    def options(self, **kwargs):
        self.options_calls.append(kwargs)
        return self

    def bulk(self, operations):
        with self._lock:
            self.bulk_calls.append(operations)
            call_no = len(self.bulk_calls)
        if call_no == self.fail_on_call:
            raise ConnectionError("connection refused")
        items = []
        for action in operations[0::2]:
            meta = action["index"]
            if meta["_id"] in self.reject_ids:
                items.append({"index": {"_id": meta["_id"], "status": 400,
                                        "error": {"type": "mapper_parsing_exception",
                                                  "reason": "failed to parse field [price]"}}})
            else:
                items.append({"index": {"_id": meta["_id"], "status": 201, "result": "created"}})
        return {"took": 3, "errors": any("error" in i["index"] for i in items), "items": items}

    @property
    def batch_sizes(self):
        return [len(ops) // 2 for ops in self.bulk_calls]

    def indexed_docs(self):
        return [doc for ops in self.bulk_calls for doc in ops[1::2]]


class _FakeCluster:
    def __init__(self, es):
        self.es = es

    def health(self):
        if isinstance(self.es.health_status, Exception):
            raise self.es.health_status
        return {"cluster_name": "test", "status": self.es.health_status}


@pytest.fixture
def fake_es():
    return FakeElasticsearch()


def product_line(i, **extra):
    record = {"asin": f"B{i:05d}", "title": f"Product {i}", "price": f"${i}.99"}
    record.update(extra)
    return json.dumps(record)


@pytest.fixture
def write_feed(tmp_path):
    """Write lines to a feed file and return its path."""

    def _write(lines, name="products.json"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def make_config():
    def _make(source_path, **overrides):
        values = {"source_path": source_path, "batch_size": 2, "index_name": "products"}
        values.update(overrides)
        return IngestConfig(**values)

    return _make
