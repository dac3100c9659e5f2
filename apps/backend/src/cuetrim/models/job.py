"""Per-asset trim job model."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from cuetrim.errors import InvalidStageTransition
from cuetrim.models.asset import AssetId, MediaAssetRecord
from cuetrim.models.markers import TimerMarkerSet


class JobStage(str, Enum):
    """Lifecycle stage of a trim job."""

    PENDING = "pending"
    FETCHED = "fetched"
    PLANNED = "planned"
    SKIPPED = "skipped"
    TRANSCODING = "transcoding"
    REIMPORTED = "reimported"
    METADATA_PUSHED = "metadata_pushed"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS: dict[JobStage, set[JobStage]] = {
    JobStage.PENDING: {JobStage.FETCHED},
    JobStage.FETCHED: {JobStage.PLANNED},
    JobStage.PLANNED: {JobStage.SKIPPED, JobStage.TRANSCODING},
    JobStage.TRANSCODING: {JobStage.REIMPORTED},
    JobStage.REIMPORTED: {JobStage.METADATA_PUSHED, JobStage.SKIPPED},
    JobStage.METADATA_PUSHED: {JobStage.COMPLETED},
    JobStage.SKIPPED: set(),
    JobStage.COMPLETED: set(),
    JobStage.FAILED: set(),
}

TERMINAL_STAGES = frozenset({JobStage.SKIPPED, JobStage.COMPLETED, JobStage.FAILED})


class StageTransition(BaseModel):
    """A single recorded stage change."""

    stage: JobStage
    message: str | None = None
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CueTrimJob(BaseModel):
    """Working state for trimming one asset.

    Created when the pipeline picks up an asset id and dropped when it
    moves on to the next one.
    """

    asset_id: AssetId
    stage: JobStage = JobStage.PENDING

    record: MediaAssetRecord | None = None
    original_markers: TimerMarkerSet | None = None
    cue_offset_ms: int = 0
    adjusted_markers: TimerMarkerSet | None = None

    source_path: Path | None = None
    temp_path: Path | None = None
    import_path: Path | None = None

    failure_reason: str | None = None
    failure_kind: str | None = None
    history: list[StageTransition] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def advance(self, stage: JobStage, message: str | None = None) -> None:
        """Move to ``stage``, enforcing the allowed transitions."""
        if stage is JobStage.FAILED:
            raise InvalidStageTransition("Use fail() to move a job to the failed stage")
        if stage not in _TRANSITIONS[self.stage]:
            raise InvalidStageTransition(
                f"{self.asset_id}: cannot move from {self.stage.value} to {stage.value}"
            )
        self.stage = stage
        self.history.append(StageTransition(stage=stage, message=message))

    def fail(self, reason: str, kind: str | None = None) -> None:
        """Move to the failed stage from any non-terminal stage."""
        if self.is_terminal:
            raise InvalidStageTransition(
                f"{self.asset_id}: cannot fail a job already {self.stage.value}"
            )
        self.stage = JobStage.FAILED
        self.failure_reason = reason
        self.failure_kind = kind
        self.history.append(StageTransition(stage=JobStage.FAILED, message=reason))
