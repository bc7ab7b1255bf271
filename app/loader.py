# app/loader.py
import logging
from typing import Dict, List, Optional

from .errors import BulkTransportFailure
from .schemas import ItemError, LoadResult, Product

logger = logging.getLogger(__name__)


def build_operations(batch: List[Product], index_name: str) -> List[Dict]:
    """Action/body pairs for the bulk API, keyed on the product id."""
    ops = []
    for product in batch:
        ops.append({"index": {"_index": index_name, "_id": product.id}})
        ops.append(product.to_document())
    return ops


def item_errors_from_response(resp) -> List[ItemError]:
    """
    Collect per-item rejections from a bulk response.
    Items look like {"index": {"_id": ..., "status": 400, "error": {"type": ..., "reason": ...}}}
    """
    errors = []
    for item in resp.get("items", []):
        for result in item.values():
            err = result.get("error")
            if not err:
                continue
            if isinstance(err, dict):
                reason = err.get("reason") or err.get("type") or str(err)
            else:
                reason = str(err)
            errors.append(ItemError(id=result.get("_id"), reason=reason))
    return errors


class BulkLoader:
    """
    Sends one batch per bulk call to the search backend.

    submitted counts every document handed over in a call that completed at the
    transport level, whether or not the backend accepted it; indexed leaves out
    the items the backend rejected.
    """

    def __init__(self, client, index_name: str, request_timeout: Optional[float] = None):
        self.client = client
        self.index_name = index_name
        self.request_timeout = request_timeout

    def load(self, batch: Optional[List[Product]]) -> LoadResult:
        if not batch:
            logger.warning("Attempted to bulk index an empty batch")
            return LoadResult()

        size = len(batch)
        logger.debug("Starting bulk index of %d documents into %s", size, self.index_name)
        client = self.client
        if self.request_timeout is not None:
            client = client.options(request_timeout=self.request_timeout)
        try:
            resp = client.bulk(operations=build_operations(batch, self.index_name))
        except Exception as e:
            failure = BulkTransportFailure(size, e)
            logger.error(str(failure))
            raise failure from e

        item_errors = item_errors_from_response(resp) if resp.get("errors") else []
        if item_errors:
            logger.error("Bulk had errors: %d of %d documents rejected", len(item_errors), size)
            for err in item_errors:
                logger.error("Document %s rejected: %s", err.id, err.reason)
        else:
            logger.debug("Bulk indexing completed in %sms", resp.get("took"))

        return LoadResult(submitted=size, indexed=size - len(item_errors), item_errors=item_errors)
