#!/usr/bin/env python3
"""
scripts/index_products.py
Bulk index a line-delimited JSON product feed -> Elasticsearch index "products".

Usage (example):
python -m scripts.index_products --input data/products.json --batch-size 500 --limit 10000
"""
import argparse
import logging
import sys

from elasticsearch import Elasticsearch

from app import config
from app.errors import SourceUnavailable
from app.pipeline import run_ingestion


def main(argv=None):
    parser = argparse.ArgumentParser(description="Normalize a JSONL product feed and bulk-index it.")
    parser.add_argument("--input", default=config.SOURCE_PATH, help="Path to the product feed (JSONL)")
    parser.add_argument("--es-host", default=config.ES_HOST)
    parser.add_argument("--index", default=config.ES_INDEX)
    parser.add_argument("--batch-size", type=int, default=config.BATCH_SIZE)
    parser.add_argument("--limit", type=int, default=None, help="Stop after this many records")
    parser.add_argument("--max-in-flight", type=int, default=config.MAX_IN_FLIGHT,
                        help="Bulk calls allowed in flight at once")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = config.ingest_config(
        source_path=args.input,
        index_name=args.index,
        batch_size=args.batch_size,
        record_limit=args.limit,
        max_in_flight=args.max_in_flight,
    )

    print("Connecting to Elasticsearch at", args.es_host)
    client = Elasticsearch(args.es_host, request_timeout=config.ES_REQUEST_TIMEOUT)
    try:
        print(f"Bulk-indexing feed: {cfg.source_path} -> index: {cfg.index_name}")
        try:
            result = run_ingestion(client, cfg)
        except SourceUnavailable as e:
            print(f"Cannot read feed: {e}", file=sys.stderr)
            return 2
    finally:
        client.close()

    print(f"Finished. submitted={result.submitted} indexed={result.indexed} "
          f"failed={result.failed_items} malformed={result.malformed_lines} "
          f"price_errors={result.price_failures} batches={result.batches}")
    for err in result.item_errors[:5]:
        print(f"  rejected {err.id}: {err.reason}", file=sys.stderr)
    if result.aborted:
        print(f"Aborted: {result.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
