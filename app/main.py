# app/main.py
import logging
from fastapi import FastAPI, Query, HTTPException
from typing import Optional
from pydantic import ValidationError
import uvicorn

from . import backend, config
from .errors import BackendUnavailable, SourceUnavailable
from .pipeline import run_ingestion
from .schemas import HealthResponse, IngestResponse

logging.basicConfig(level=config.LOG_LEVEL,
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Product Feed Indexer")

@app.on_event("startup")
def startup_event():
    backend.init_clients()

@app.on_event("shutdown")
def shutdown_event():
    backend.close_clients()

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/index-products", response_model=IngestResponse)
def index_products(limit: Optional[int] = Query(None, ge=0)):
    logger.info("Starting product indexing process")
    try:
        cfg = config.ingest_config(record_limit=limit)
        result = run_ingestion(backend.get_client(), cfg)
    except (SourceUnavailable, BackendUnavailable, ValidationError) as e:
        logger.error("Failed to index products: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to index products: {e}")

    if result.aborted:
        message = f"Indexing stopped after {result.submitted} products: {result.error}"
        logger.warning(message)
        return IngestResponse(status="partial", message=message, result=result)

    message = f"Successfully indexed {result.submitted} products"
    logger.info(message)
    return IngestResponse(status="ok", message=message, result=result)

@app.get("/index-health", response_model=HealthResponse)
def index_health():
    try:
        status = backend.cluster_health(backend.get_client())
    except BackendUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return HealthResponse(status=status, message=f"Search backend status: {status.value}")

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="127.0.0.1", port=8000, reload=True)
