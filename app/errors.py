# app/errors.py
"""
Error types raised while reading, normalizing and loading the product feed.
Per-item rejections reported by the backend are not exceptions; they come back
as ItemError entries on the load result.
"""


class IngestError(Exception):
    """Base class for ingestion failures."""


class MalformedLine(IngestError):
    def __init__(self, line_no: int, cause):
        self.line_no = line_no
        self.cause = cause
        super().__init__(f"line {line_no}: {cause}")


class InvalidPriceFormat(IngestError):
    def __init__(self, raw):
        self.raw = raw
        super().__init__(f"Unable to parse price: {raw!r}")


class MissingIdentifier(IngestError):
    """Record carries neither of the identifier fields."""


class RecordLimitReached(IngestError):
    pass


class BulkTransportFailure(IngestError):
    def __init__(self, batch_size: int, cause: Exception):
        self.batch_size = batch_size
        self.cause = cause
        super().__init__(f"Bulk indexing failed for {batch_size} documents: {cause}")


class IOFailure(IngestError):
    """Reading the source failed or was cancelled."""


class SourceUnavailable(IOFailure):
    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot open source {path}: {cause}")


class BackendUnavailable(IngestError):
    pass
