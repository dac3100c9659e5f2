"""Batch outcome models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from cuetrim.models.asset import AssetId
from cuetrim.models.job import JobStage
from cuetrim.models.markers import TimerMarkerSet


class AssetOutcome(BaseModel):
    """How one asset left the pipeline."""

    asset_id: AssetId
    stage: JobStage
    message: str | None = None
    error_kind: str | None = None
    cue_offset_ms: int = 0
    original_markers: TimerMarkerSet | None = None
    adjusted_markers: TimerMarkerSet | None = None
    elapsed_seconds: float = 0.0


class BatchReport(BaseModel):
    """Summary of a batch run."""

    outcomes: list[AssetOutcome] = Field(default_factory=list)
    not_processed: list[AssetId] = Field(default_factory=list)
    aborted: bool = False
    abort_reason: str | None = None
    dry_run: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    def _with_stage(self, stage: JobStage) -> list[AssetOutcome]:
        return [o for o in self.outcomes if o.stage == stage]

    @property
    def completed(self) -> list[AssetOutcome]:
        return self._with_stage(JobStage.COMPLETED)

    @property
    def skipped(self) -> list[AssetOutcome]:
        return self._with_stage(JobStage.SKIPPED)

    @property
    def failed(self) -> list[AssetOutcome]:
        return self._with_stage(JobStage.FAILED)

    @property
    def ok(self) -> bool:
        """True when nothing failed and the batch ran to the end."""
        return not self.aborted and not self.failed
