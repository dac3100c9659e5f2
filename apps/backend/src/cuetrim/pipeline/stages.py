"""Concrete stages of the cue trim pipeline."""

import logging
from pathlib import Path

from cuetrim.errors import MetadataUpdateRejected, PipelineError
from cuetrim.models.job import CueTrimJob, JobStage
from cuetrim.models.pipeline import StageResult
from cuetrim.pipeline.base import PipelineStage, SideEffectGate
from cuetrim.services.inventory import InventoryClient
from cuetrim.services.planner import CueTrimPlanner
from cuetrim.services.transcode import AudioTranscodeRunner
from cuetrim.services.updater import MetadataUpdater

logger = logging.getLogger(__name__)


class FetchStage(PipelineStage):
    """Fetch the asset record and locate its audio."""

    def __init__(self, client: InventoryClient, audio_root: Path):
        self.client = client
        self.audio_root = Path(audio_root)

    @property
    def name(self) -> str:
        return "fetch"

    @property
    def display_name(self) -> str:
        return "Fetch record"

    async def execute(self, job: CueTrimJob) -> StageResult:
        record = await self.client.fetch(job.asset_id)
        job.record = record
        job.original_markers = record.markers
        job.source_path = self.audio_root / job.asset_id.source_relpath
        job.advance(JobStage.FETCHED, record.title or None)
        return StageResult.success(
            f"fetched '{record.title}'",
            data={"markers": record.markers.as_dict()},
        )


class PlanStage(PipelineStage):
    """Decide whether the asset needs trimming."""

    def __init__(self, planner: CueTrimPlanner):
        self.planner = planner

    @property
    def name(self) -> str:
        return "plan"

    @property
    def display_name(self) -> str:
        return "Plan trim"

    async def execute(self, job: CueTrimJob) -> StageResult:
        if job.original_markers is None:
            raise PipelineError(f"{job.asset_id}: no markers fetched to plan from")
        decision = self.planner.plan(job.original_markers)
        job.advance(JobStage.PLANNED)

        if not decision.needs_trim:
            job.advance(JobStage.SKIPPED, decision.reason)
            return StageResult.skipped(decision.reason)

        job.cue_offset_ms = decision.cue_offset_ms
        job.adjusted_markers = decision.adjusted_markers
        return StageResult.success(
            f"trim {decision.cue_offset_ms} ms",
            data={"adjusted": decision.adjusted_markers.as_dict()},
        )


class TranscodeStage(PipelineStage):
    """Trim the audio and drop it into the import directory."""

    def __init__(
        self,
        runner: AudioTranscodeRunner,
        temp_dir: Path,
        import_dir: Path,
        gate: SideEffectGate | None = None,
    ):
        self.runner = runner
        self.temp_dir = Path(temp_dir)
        self.import_dir = Path(import_dir)
        self.gate = gate or SideEffectGate()

    @property
    def name(self) -> str:
        return "transcode"

    @property
    def display_name(self) -> str:
        return "Trim and reimport audio"

    @property
    def has_side_effects(self) -> bool:
        return True

    async def execute(self, job: CueTrimJob) -> StageResult:
        if job.source_path is None:
            raise PipelineError(f"{job.asset_id}: no source audio located")
        action = f"trim {job.cue_offset_ms} ms from {job.source_path.name} and reimport"
        if not await self.gate.allow(job, action):
            message = f"dry run: {action}"
            job.advance(JobStage.SKIPPED, message)
            return StageResult.skipped(message)

        job.advance(JobStage.TRANSCODING)
        job.temp_path = self.temp_dir
        job.import_path = self.import_dir / job.asset_id.import_filename
        try:
            await self.runner.run(
                job.source_path,
                job.cue_offset_ms,
                self.temp_dir,
                self.import_dir,
                job.asset_id,
            )
        except Exception:
            await self.rollback(job)
            raise

        job.advance(JobStage.REIMPORTED, str(job.import_path))
        return StageResult.success(f"reimported as {job.import_path.name}")

    async def rollback(self, job: CueTrimJob) -> None:
        # A file still sitting in the import directory was never ingested
        if job.import_path is not None and job.import_path.exists():
            logger.warning("Removing unimported file %s", job.import_path)
            self.runner.cleanup(job.import_path)


class MetadataPushStage(PipelineStage):
    """Push the adjusted markers back to the server."""

    def __init__(self, updater: MetadataUpdater, gate: SideEffectGate | None = None):
        self.updater = updater
        self.gate = gate or SideEffectGate()

    @property
    def name(self) -> str:
        return "push"

    @property
    def display_name(self) -> str:
        return "Push metadata"

    @property
    def has_side_effects(self) -> bool:
        return True

    async def execute(self, job: CueTrimJob) -> StageResult:
        if job.record is None or job.adjusted_markers is None:
            raise PipelineError(f"{job.asset_id}: no planned markers to push")
        action = f"update markers to {job.adjusted_markers.as_dict()}"
        if not await self.gate.allow(job, action):
            message = f"dry run: {action}"
            job.advance(JobStage.SKIPPED, message)
            return StageResult.skipped(message)

        result = await self.updater.push(job.record, job.adjusted_markers)
        if not result.accepted:
            error = MetadataUpdateRejected(result.reason or "unknown reason")
            return StageResult.failure(str(error), error)

        job.advance(JobStage.METADATA_PUSHED)
        job.advance(JobStage.COMPLETED)
        return StageResult.success("markers updated")
