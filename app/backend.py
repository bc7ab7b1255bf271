# app/backend.py
import logging
from elasticsearch import Elasticsearch

from . import config
from .errors import BackendUnavailable
from .schemas import HealthStatus

logger = logging.getLogger(__name__)

# Initialize global client in startup
es_client: Elasticsearch = None


def init_clients():
    global es_client
    es_client = Elasticsearch(config.ES_HOST, request_timeout=config.ES_REQUEST_TIMEOUT)
    logger.info("Elasticsearch client created for %s", config.ES_HOST)


def close_clients():
    global es_client
    if es_client is not None:
        es_client.close()
        es_client = None


def get_client() -> Elasticsearch:
    if es_client is None:
        raise BackendUnavailable("Elasticsearch client is not initialised")
    return es_client


def cluster_health(client) -> HealthStatus:
    """Coarse cluster status; any failure to get one is BackendUnavailable."""
    try:
        resp = client.cluster.health()
        return HealthStatus(resp["status"])
    except Exception as e:
        logger.error("Cluster health query failed: %s", e)
        raise BackendUnavailable(f"Cannot connect to search backend: {e}") from e
