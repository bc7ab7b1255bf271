# app/config.py
from os import getenv

from .schemas import IngestConfig

# Elasticsearch
ES_HOST = getenv("ES_HOST", "http://localhost:9200")
ES_INDEX = getenv("ES_INDEX", "products")
ES_REQUEST_TIMEOUT = float(getenv("ES_REQUEST_TIMEOUT", "30"))

# Product feed (line-delimited JSON)
SOURCE_PATH = getenv("SOURCE_PATH", "data/products.json")

# Ingestion defaults
BATCH_SIZE = int(getenv("BATCH_SIZE", "500"))
# empty means no limit
RECORD_LIMIT = getenv("RECORD_LIMIT", "")
MAX_IN_FLIGHT = int(getenv("MAX_IN_FLIGHT", "1"))

LOG_LEVEL = getenv("LOG_LEVEL", "INFO")


def ingest_config(**overrides) -> IngestConfig:
    """
    Validated ingestion settings from the environment defaults above.
    Keyword overrides win over the environment; raises pydantic.ValidationError.
    """
    values = {
        "source_path": SOURCE_PATH,
        "batch_size": BATCH_SIZE,
        "index_name": ES_INDEX,
        "record_limit": int(RECORD_LIMIT) if RECORD_LIMIT.strip() else None,
        "max_in_flight": MAX_IN_FLIGHT,
        "request_timeout": ES_REQUEST_TIMEOUT,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return IngestConfig(**values)
