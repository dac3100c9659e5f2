"""Runs the pipeline stages for a single job."""

import logging

from cuetrim.errors import CueTrimError
from cuetrim.models.job import CueTrimJob
from cuetrim.models.pipeline import StageResult, StageStatus
from cuetrim.pipeline.base import PipelineStage, ProgressCallback

logger = logging.getLogger(__name__)


class StageExecutor:
    """Executes pipeline stages in sequence for one job."""

    def __init__(self, stages: list[PipelineStage] | None = None) -> None:
        self._stages: list[PipelineStage] = []
        for stage in stages or []:
            self.register_stage(stage)

    def register_stage(self, stage: PipelineStage) -> None:
        """Append a stage to the run order."""
        if any(s.name == stage.name for s in self._stages):
            raise ValueError(f"Stage already registered: {stage.name}")
        self._stages.append(stage)
        logger.debug("Registered pipeline stage: %s", stage.name)

    def list_stages(self) -> list[tuple[str, str]]:
        """List all registered stages as (name, display_name) tuples."""
        return [(s.name, s.display_name) for s in self._stages]

    async def execute(
        self,
        job: CueTrimJob,
        progress_callback: ProgressCallback | None = None,
    ) -> dict[str, StageResult]:
        """Run stages until the job completes, is skipped or fails.

        Args:
            job: Job to drive; mutated in place
            progress_callback: Optional callback (asset_id, stage, message)

        Returns:
            Dictionary mapping stage names to their results
        """
        results: dict[str, StageResult] = {}
        completed_stages: list[PipelineStage] = []

        for stage in self._stages:
            if job.is_terminal:
                break

            try:
                result = await stage.execute(job)
            except CueTrimError as e:
                logger.error("%s: %s failed: %s", job.asset_id, stage.display_name, e)
                result = StageResult.failure(str(e), e)
            except Exception as e:
                logger.exception("%s: unexpected error in stage %s", job.asset_id, stage.name)
                result = StageResult.failure(str(e), e)

            results[stage.name] = result

            if result.status == StageStatus.FAILED:
                job.fail(result.message or "stage failed", result.error_kind)
                await self._rollback(job, completed_stages)
                self._report_progress(progress_callback, job, result.message or "")
                break

            if result.status == StageStatus.COMPLETED:
                completed_stages.append(stage)
            self._report_progress(progress_callback, job, result.message or "")

        return results

    async def _rollback(self, job: CueTrimJob, stages: list[PipelineStage]) -> None:
        """Rollback completed side-effecting stages in reverse order."""
        for stage in reversed(stages):
            if not stage.has_side_effects:
                continue
            try:
                await stage.rollback(job)
            except Exception:
                logger.exception("Rollback failed for stage: %s", stage.name)

    def _report_progress(
        self,
        callback: ProgressCallback | None,
        job: CueTrimJob,
        message: str,
    ) -> None:
        """Helper to safely report progress."""
        if callback:
            callback(job.asset_id, job.stage, message)
