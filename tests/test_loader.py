import logging

import pytest

from app.errors import BulkTransportFailure
from app.loader import BulkLoader, build_operations
from app.schemas import Product

from conftest import FakeElasticsearch


def _batch(*ids):
    return [Product(id=i, title=f"title {i}") for i in ids]


def test_empty_batch_makes_no_call(fake_es):
    loader = BulkLoader(fake_es, "products")
    for batch in (None, []):
        result = loader.load(batch)
        assert result.submitted == 0
        assert result.item_errors == []
    assert fake_es.bulk_calls == []


def test_one_bulk_call_per_batch(fake_es):
    result = BulkLoader(fake_es, "products").load(_batch("a", "b", "c"))
    assert len(fake_es.bulk_calls) == 1
    assert fake_es.batch_sizes == [3]
    assert result.submitted == 3
    assert result.indexed == 3


def test_operations_keyed_on_product_id():
    ops = build_operations(_batch("a"), "products")
    assert ops == [{"index": {"_index": "products", "_id": "a"}}, {"id": "a", "title": "title a"}]


def test_item_errors_reported_but_still_submitted(caplog):
    es = FakeElasticsearch(reject_ids={"b"})
    with caplog.at_level(logging.ERROR, logger="app.loader"):
        result = BulkLoader(es, "products").load(_batch("a", "b", "c"))
    assert result.submitted == 3
    assert result.indexed == 2
    assert [(e.id, e.reason) for e in result.item_errors] == [("b", "failed to parse field [price]")]
    assert "Document b rejected" in caplog.text


def test_transport_failure_wraps_cause():
    es = FakeElasticsearch(fail_on_call=1)
    with pytest.raises(BulkTransportFailure) as excinfo:
        BulkLoader(es, "products").load(_batch("a", "b"))
    assert excinfo.value.batch_size == 2
    assert isinstance(excinfo.value.cause, ConnectionError)
    assert "2 documents" in str(excinfo.value)
    assert len(es.bulk_calls) == 1


def test_request_timeout_applied_per_call(fake_es):
    BulkLoader(fake_es, "products", request_timeout=5).load(_batch("a"))
    assert fake_es.options_calls == [{"request_timeout": 5}]
