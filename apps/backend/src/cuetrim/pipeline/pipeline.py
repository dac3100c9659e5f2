"""Batch orchestration of cue trim jobs."""

import logging
import time
from collections.abc import Iterable
from datetime import datetime, timezone

from cuetrim.config import Settings
from cuetrim.models.asset import AssetId
from cuetrim.models.batch import AssetOutcome, BatchReport
from cuetrim.models.job import CueTrimJob, JobStage
from cuetrim.models.pipeline import BatchPolicy
from cuetrim.pipeline.base import ConfirmCallback, ProgressCallback, SideEffectGate
from cuetrim.pipeline.executor import StageExecutor
from cuetrim.pipeline.stages import FetchStage, MetadataPushStage, PlanStage, TranscodeStage
from cuetrim.services.ingest import ImportWatcher
from cuetrim.services.inventory import InventoryClient
from cuetrim.services.planner import CueTrimPlanner
from cuetrim.services.transcode import AudioTranscodeRunner
from cuetrim.services.updater import MetadataUpdater

logger = logging.getLogger(__name__)


class CueTrimPipeline:
    """Trim a list of assets one after another.

    Each asset gets its own :class:`CueTrimJob`, driven through the
    fetch, plan, transcode and push stages. Skipped and failed jobs do not
    stop the batch, except where ``policy`` says so; by default a rejected
    metadata update aborts everything that is left.
    """

    def __init__(
        self,
        executor: StageExecutor,
        policy: BatchPolicy | None = None,
        dry_run: bool = False,
    ):
        self.executor = executor
        self.policy = policy or BatchPolicy()
        self.dry_run = dry_run

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: InventoryClient | None = None,
        policy: BatchPolicy | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> "CueTrimPipeline":
        """Wire the standard stages from ``settings``."""
        client = client or InventoryClient(
            base_url=settings.api_url,
            client_id=settings.client_id,
            path=settings.api_path,
            timeout=settings.http_timeout,
        )
        watcher = ImportWatcher(
            poll_interval=settings.import_poll_interval,
            timeout=settings.import_timeout,
            retries=settings.import_retries,
            backoff=settings.import_backoff,
            settle_seconds=settings.import_settle_seconds,
        )
        runner = AudioTranscodeRunner(
            watcher=watcher,
            ffmpeg_path=settings.ffmpeg_path,
            timeout=settings.transcode_timeout,
        )
        gate = SideEffectGate(dry_run=settings.dry_run, confirm=confirm)
        executor = StageExecutor([
            FetchStage(client, settings.audio_root),
            PlanStage(CueTrimPlanner(settings.negative_markers)),
            TranscodeStage(runner, settings.temp_dir, settings.import_dir, gate),
            MetadataPushStage(MetadataUpdater(client), gate),
        ])
        if policy is None:
            policy = BatchPolicy(abort_on_update_rejection=settings.abort_on_update_rejection)
        return cls(executor, policy=policy, dry_run=settings.dry_run)

    async def run_one(
        self,
        asset_id: AssetId | str,
        progress_callback: ProgressCallback | None = None,
    ) -> CueTrimJob:
        """Run all stages for a single asset and return its finished job."""
        if isinstance(asset_id, str):
            asset_id = AssetId.parse(asset_id)
        job = CueTrimJob(asset_id=asset_id)
        logger.info("Processing %s", asset_id)
        await self.executor.execute(job, progress_callback)
        return job

    async def run_batch(
        self,
        asset_ids: Iterable[AssetId | str],
        progress_callback: ProgressCallback | None = None,
    ) -> BatchReport:
        """Process ``asset_ids`` strictly in order.

        Raises:
            InvalidAssetId: If any id cannot be parsed; nothing is processed
        """
        ids = [a if isinstance(a, AssetId) else AssetId.parse(a) for a in asset_ids]
        report = BatchReport(dry_run=self.dry_run)

        for index, asset_id in enumerate(ids):
            started = time.monotonic()
            job = await self.run_one(asset_id, progress_callback)
            report.outcomes.append(self._outcome(job, time.monotonic() - started))

            if job.stage is JobStage.FAILED:
                logger.warning("%s failed: %s", asset_id, job.failure_reason)
                if self.policy.should_abort(job.failure_kind):
                    report.aborted = True
                    report.abort_reason = f"{asset_id}: {job.failure_reason}"
                    report.not_processed = ids[index + 1:]
                    logger.error(
                        "Batch aborted at %s, %d asset(s) not processed",
                        asset_id,
                        len(report.not_processed),
                    )
                    break
            else:
                logger.info("%s %s", asset_id, job.stage.value)

        report.finished_at = datetime.now(timezone.utc)
        return report

    @staticmethod
    def _outcome(job: CueTrimJob, elapsed: float) -> AssetOutcome:
        last = job.history[-1].message if job.history else None
        return AssetOutcome(
            asset_id=job.asset_id,
            stage=job.stage,
            message=job.failure_reason if job.stage is JobStage.FAILED else last,
            error_kind=job.failure_kind,
            cue_offset_ms=job.cue_offset_ms,
            original_markers=job.original_markers,
            adjusted_markers=job.adjusted_markers,
            elapsed_seconds=elapsed,
        )
