# app/schemas.py
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer


class Product(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[List[str]] = Field(default=None, max_length=5)
    price: Optional[Decimal] = Field(default=None, ge=0)
    image: Optional[List[str]] = None

    @field_serializer("price")
    def _price_as_number(self, price: Optional[Decimal]):
        return float(price) if price is not None else None

    def to_document(self) -> dict:
        """Body sent to the index; absent fields are left out rather than written as null."""
        return self.model_dump(exclude_none=True)


class ItemError(BaseModel):
    id: Optional[str] = None
    reason: str


class LoadResult(BaseModel):
    submitted: int = 0
    indexed: int = 0
    item_errors: List[ItemError] = []


class IngestConfig(BaseModel):
    source_path: str
    batch_size: int = Field(gt=0)
    index_name: str = Field(min_length=1)
    record_limit: Optional[int] = Field(default=None, ge=0)
    max_in_flight: int = Field(default=1, ge=1)
    request_timeout: Optional[float] = Field(default=None, gt=0)


class IngestResult(BaseModel):
    submitted: int = 0
    indexed: int = 0
    failed_items: int = 0
    lines_read: int = 0
    records: int = 0
    malformed_lines: int = 0
    price_failures: int = 0
    missing_ids: int = 0
    batches: int = 0
    item_errors: List[ItemError] = []
    aborted: bool = False
    error: Optional[str] = None


class HealthStatus(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class IngestResponse(BaseModel):
    status: str
    message: str
    result: IngestResult


class HealthResponse(BaseModel):
    status: HealthStatus
    message: str
