"""Pipeline-related data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from cuetrim.errors import MetadataUpdateRejected
from cuetrim.models.markers import TimerMarkerSet


class StageStatus(str, Enum):
    """Status of a pipeline stage execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StageResult(BaseModel):
    """Result of a pipeline stage execution."""

    status: StageStatus = Field(..., description="Execution status")
    message: str | None = Field(None, description="Status message or error description")
    error_kind: str | None = Field(None, description="Exception class name on failure")
    data: dict[str, Any] | None = Field(None, description="Stage output data")

    @classmethod
    def success(cls, message: str | None = None, data: dict[str, Any] | None = None) -> "StageResult":
        """Create a successful result."""
        return cls(status=StageStatus.COMPLETED, message=message, data=data)

    @classmethod
    def failure(cls, message: str, error: BaseException | None = None) -> "StageResult":
        """Create a failed result."""
        kind = type(error).__name__ if error is not None else None
        return cls(status=StageStatus.FAILED, message=message, error_kind=kind)

    @classmethod
    def skipped(cls, message: str | None = None) -> "StageResult":
        """Create a skipped result."""
        return cls(status=StageStatus.SKIPPED, message=message, data=None)


class TrimDecision(BaseModel):
    """Outcome of planning a trim for one asset."""

    needs_trim: bool
    cue_offset_ms: int = 0
    adjusted_markers: TimerMarkerSet | None = None
    reason: str | None = None

    @classmethod
    def no_trim_needed(cls, reason: str = "no cue point set") -> "TrimDecision":
        """Create a decision that leaves the asset alone."""
        return cls(needs_trim=False, reason=reason)

    @classmethod
    def trim(cls, cue_offset_ms: int, adjusted_markers: TimerMarkerSet) -> "TrimDecision":
        """Create a decision to trim ``cue_offset_ms`` of leading audio."""
        return cls(needs_trim=True, cue_offset_ms=cue_offset_ms, adjusted_markers=adjusted_markers)


class UpdateResult(BaseModel):
    """Result of pushing a record back to the inventory API."""

    accepted: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> "UpdateResult":
        return cls(accepted=True)

    @classmethod
    def rejected(cls, reason: str) -> "UpdateResult":
        return cls(accepted=False, reason=reason)


class BatchPolicy(BaseModel):
    """When a failed job should stop the rest of the batch."""

    abort_on_update_rejection: bool = Field(
        True, description="Stop the batch when the server rejects a metadata update"
    )
    abort_on_any_failure: bool = Field(
        False, description="Stop the batch on the first failed job of any kind"
    )

    @classmethod
    def continue_on_error(cls) -> "BatchPolicy":
        return cls(abort_on_update_rejection=False, abort_on_any_failure=False)

    def should_abort(self, error_kind: str | None) -> bool:
        """Check whether a job failure of ``error_kind`` aborts the batch."""
        if self.abort_on_any_failure:
            return True
        return self.abort_on_update_rejection and error_kind == MetadataUpdateRejected.__name__
