"""
IngestionService: runs one uploaded file through the pipeline.

Flow for a single upload:
  1. Size guard (files over settings.max_upload_bytes are rejected)
  2. decode()    → SessionMetadata + DecodedRecord tuple
  3. summarize() → PartialSummary
  4. validate()  → unsaved WorkoutSummary
  5. store.create() → persisted row

The first failing stage short-circuits the rest and comes back as an
IngestError tagged with that stage. Nothing is written unless every earlier
stage succeeded, and store.create() is called at most once per ingest().
ingest() never raises: every outcome is an IngestResult.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from fitlog.config import Settings, get_settings
from fitlog.ingest.decoder import decode
from fitlog.ingest.errors import (
    DecodeError,
    FileTooLarge,
    IngestError,
    IngestStage,
    StoreError,
    WorkoutValidationError,
)
from fitlog.ingest.summarizer import summarize
from fitlog.ingest.types import RawActivityFile
from fitlog.ingest.validator import validate
from fitlog.models.workout import WorkoutSummary

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Exactly one of summary / error is set."""

    summary: Optional[WorkoutSummary] = None
    error: Optional[IngestError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IngestionService:
    """Decodes, summarizes, validates and persists uploaded .fit files."""

    def __init__(self, store, settings: Optional[Settings] = None):
        """
        Args:
            store: WorkoutStore (or any object with a compatible create()).
            settings: defaults to get_settings().
        """
        self.store = store
        self.settings = settings or get_settings()

    def ingest(self, raw_file: RawActivityFile) -> IngestResult:
        """Run raw_file through the pipeline and persist the summary on success."""
        try:
            summary = self._run(raw_file)
        except IngestError as err:
            if isinstance(err.cause, (DecodeError, WorkoutValidationError, FileTooLarge)):
                logger.warning("Rejected %s at %s: %s", raw_file.filename, err.stage.value, err.cause)
            else:
                logger.error("Failed to ingest %s at %s: %s", raw_file.filename, err.stage.value, err.cause)
            return IngestResult(error=err)

        logger.info(
            "Ingested %s as workout %s (%s, %ss)",
            raw_file.filename, summary.id, summary.sport, summary.duration,
        )
        return IngestResult(summary=summary)

    def _run(self, raw_file: RawActivityFile) -> WorkoutSummary:
        limit = self.settings.max_upload_bytes
        if raw_file.size > limit:
            raise IngestError(IngestStage.UPLOAD, FileTooLarge(raw_file.size, limit))

        ceiling = self.settings.max_heart_rate_bpm

        with _stage(IngestStage.DECODE, DecodeError):
            metadata, records = decode(raw_file.data)

        # summarize() has no expected failures
        with _stage(IngestStage.SUMMARIZE, ()):
            partial = summarize(metadata, records, heart_rate_ceiling=ceiling)

        with _stage(IngestStage.VALIDATE, WorkoutValidationError):
            summary = validate(partial, filename=raw_file.filename, heart_rate_ceiling=ceiling)

        with _stage(IngestStage.PERSIST, StoreError):
            self.store.create(summary)

        return summary


class _stage:
    """Context manager that wraps any exception raised inside in IngestError."""

    def __init__(self, stage: IngestStage, expected: Union[type, Tuple[type, ...]]):
        self.stage = stage
        self.expected = expected

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is None or not isinstance(exc, Exception):
            return False
        if not isinstance(exc, self.expected):
            logger.exception("Unexpected error during %s stage", self.stage.value, exc_info=exc)
        raise IngestError(self.stage, exc) from exc
