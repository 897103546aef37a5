"""
Error taxonomy for the ingestion pipeline.

Stage-level errors are ordinary exceptions raised by the decoder, validator
and store. The orchestrator catches them and wraps each one in an
IngestError tagged with the stage that failed; IngestError is the only error
type callers outside the pipeline ever see.
"""
from enum import Enum


# ─── Decoder ───────────────────────────────────────────────────────────────────

class DecodeError(Exception):
    """Raised when the uploaded bytes cannot be read as a FIT activity file."""

    reason = "unreadable file"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.reason}: {detail}" if detail else self.reason)


class InvalidFormat(DecodeError):
    reason = "not a FIT activity file"


class Truncated(DecodeError):
    reason = "file is truncated"


class ChecksumMismatch(DecodeError):
    reason = "checksum mismatch"


# ─── Validator ─────────────────────────────────────────────────────────────────

class WorkoutValidationError(Exception):
    """Raised when a summary cannot be turned into a valid WorkoutSummary."""


class InvariantViolated(WorkoutValidationError):
    def __init__(self, field: str, detail: str = ""):
        self.field = field
        self.detail = detail
        message = f"invariant violated for '{field}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


# ─── Store ─────────────────────────────────────────────────────────────────────

class StoreError(Exception):
    """Raised by WorkoutStore when the database operation fails."""


# ─── Upload guard ──────────────────────────────────────────────────────────────

class FileTooLarge(Exception):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"file is {size} bytes, limit is {limit} bytes")


# ─── Orchestrator ──────────────────────────────────────────────────────────────

class IngestStage(str, Enum):
    UPLOAD = "upload"
    DECODE = "decode"
    SUMMARIZE = "summarize"
    VALIDATE = "validate"
    PERSIST = "persist"


class IngestError(Exception):
    """
    The single externally visible ingestion error.

    Attributes:
        stage: which pipeline stage failed
        cause: the stage-specific exception
    """

    def __init__(self, stage: IngestStage, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """User-facing description of the failure."""
        if self.stage == IngestStage.UPLOAD:
            return f"file rejected: {self.cause}"
        if self.stage == IngestStage.DECODE:
            return f"could not read file: {self.cause}"
        if self.stage == IngestStage.VALIDATE:
            field = getattr(self.cause, "field", None)
            if field:
                return f"invalid workout data in field '{field}'"
            return f"invalid workout data: {self.cause}"
        if self.stage == IngestStage.SUMMARIZE:
            return "could not summarize workout"
        return "could not save workout"

    @property
    def persistence_failed(self) -> bool:
        return self.stage == IngestStage.PERSIST

    @property
    def server_fault(self) -> bool:
        """True when the upload was fine and our own code or storage failed."""
        return self.stage in (IngestStage.SUMMARIZE, IngestStage.PERSIST)
