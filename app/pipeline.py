# app/pipeline.py
"""
Ingestion run: read the feed line by line, normalize each record, batch the
products and bulk-load every full batch, then flush the remainder.

Bad lines, records without an identifier and unparsable prices are logged and
skipped. A failed bulk call, a read error or a cancellation stops the run; the
result still carries the counts of every batch that completed before it, with
aborted set and the cause in error.
"""
import json
import logging
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from .batching import BatchAccumulator
from .errors import (BulkTransportFailure, IOFailure, MalformedLine,
                     MissingIdentifier, SourceUnavailable)
from .loader import BulkLoader
from .normalize import normalize_record
from .schemas import IngestConfig, IngestResult, LoadResult

logger = logging.getLogger(__name__)

# cap on per-item errors kept on the result; all of them are logged
MAX_REPORTED_ITEM_ERRORS = 100


class PipelineState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    NORMALIZING = "normalizing"
    ACCUMULATING = "accumulating"
    LOADING = "loading"
    DRAINING = "draining"
    DONE = "done"
    ABORTED = "aborted"


class IngestionPipeline:
    def __init__(self, loader: BulkLoader, config: IngestConfig):
        self.loader = loader
        self.config = config
        self.state = PipelineState.IDLE
        self._executor: Optional[ThreadPoolExecutor] = None
        self._in_flight = deque()
        self._result = IngestResult()

    def _set_state(self, state: PipelineState):
        if state != self.state:
            logger.debug("pipeline %s -> %s", self.state.value, state.value)
            self.state = state

    def run(self, cancel: Optional[threading.Event] = None) -> IngestResult:
        """
        Execute one ingestion run over config.source_path.
        Raises SourceUnavailable if the source cannot be opened; every later
        failure ends the run with a partial, aborted result.

        cancel is checked before each line is read. It does not interrupt a
        bulk call already in flight; that call is bounded only by
        config.request_timeout.
        """
        cfg = self.config
        self._result = result = IngestResult()
        accumulator = BatchAccumulator(cfg.batch_size, cfg.record_limit)

        self._set_state(PipelineState.READING)
        try:
            fh = open(cfg.source_path, "r", encoding="utf-8")
        except OSError as e:
            self._set_state(PipelineState.ABORTED)
            logger.error("Cannot open source %s: %s", cfg.source_path, e)
            raise SourceUnavailable(cfg.source_path, e) from e

        if cfg.max_in_flight > 1:
            self._executor = ThreadPoolExecutor(max_workers=cfg.max_in_flight,
                                                thread_name_prefix="bulk")
        logger.info("Indexing %s into %s (batch_size=%d, limit=%s)",
                    cfg.source_path, cfg.index_name, cfg.batch_size, cfg.record_limit)
        try:
            with fh:
                for record in self._records(fh, accumulator, cancel):
                    self._set_state(PipelineState.NORMALIZING)
                    try:
                        product = normalize_record(record, on_price_error=self._count_price_error)
                    except MissingIdentifier as e:
                        result.missing_ids += 1
                        logger.warning("Skipping record: %s", e)
                        continue
                    self._set_state(PipelineState.ACCUMULATING)
                    self._dispatch(accumulator.add(product))

                self._set_state(PipelineState.DRAINING)
                self._dispatch(accumulator.flush())
                while self._in_flight:
                    self._collect(self._in_flight.popleft())
        except (BulkTransportFailure, IOFailure) as e:
            self._abort(e)
        finally:
            result.records = accumulator.accepted
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

        if not result.aborted:
            self._set_state(PipelineState.DONE)
        logger.info("Indexed %d of %d products in %d batches (%d rejected, %d malformed lines)",
                    result.indexed, result.submitted, result.batches,
                    result.failed_items, result.malformed_lines)
        return result

    def _records(self, fh, accumulator: BatchAccumulator,
                 cancel: Optional[threading.Event]) -> Iterator[Dict[str, Any]]:
        line_no = 0
        while not accumulator.exhausted:
            if cancel is not None and cancel.is_set():
                raise IOFailure(f"ingestion cancelled after line {line_no}")
            try:
                line = fh.readline()
            except (OSError, UnicodeDecodeError) as e:
                raise IOFailure(f"read failed after line {line_no}: {e}") from e
            if not line:
                return
            line_no += 1
            line = line.strip()
            if not line:
                continue
            self._result.lines_read += 1
            try:
                record = self._decode(line_no, line)
            except MalformedLine as e:
                self._result.malformed_lines += 1
                logger.warning("Skipping malformed %s", e)
                continue
            yield record

    @staticmethod
    def _decode(line_no: int, line: str) -> Dict[str, Any]:
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise MalformedLine(line_no, e) from e
        if not isinstance(record, dict):
            raise MalformedLine(line_no, f"expected a JSON object, got {type(record).__name__}")
        return record

    def _count_price_error(self, product_id, error):
        self._result.price_failures += 1

    def _dispatch(self, batch):
        if not batch:
            return
        self._set_state(PipelineState.LOADING)
        if self._executor is None:
            self._record(self.loader.load(batch))
            return
        while len(self._in_flight) >= self.config.max_in_flight:
            self._collect(self._in_flight.popleft())
        self._in_flight.append(self._executor.submit(self.loader.load, batch))

    def _collect(self, future):
        self._record(future.result())

    def _record(self, load: LoadResult):
        result = self._result
        result.batches += 1
        result.submitted += load.submitted
        result.indexed += load.indexed
        result.failed_items += len(load.item_errors)
        room = MAX_REPORTED_ITEM_ERRORS - len(result.item_errors)
        if room > 0:
            result.item_errors.extend(load.item_errors[:room])

    def _abort(self, error: Exception):
        # batches already in flight still count if they complete
        while self._in_flight:
            try:
                self._collect(self._in_flight.popleft())
            except BulkTransportFailure as e:
                logger.error("In-flight batch also failed: %s", e)
        self._set_state(PipelineState.ABORTED)
        self._result.aborted = True
        self._result.error = f"{type(error).__name__}: {error}"
        logger.error("Ingestion aborted after %d submitted products: %s",
                     self._result.submitted, error)


def run_ingestion(client, config: IngestConfig,
                  cancel: Optional[threading.Event] = None) -> IngestResult:
    loader = BulkLoader(client, config.index_name, request_timeout=config.request_timeout)
    return IngestionPipeline(loader, config).run(cancel=cancel)
