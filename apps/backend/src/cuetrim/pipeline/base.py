"""Base class for pipeline stages."""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from cuetrim.models.asset import AssetId
from cuetrim.models.job import CueTrimJob, JobStage
from cuetrim.models.pipeline import StageResult

logger = logging.getLogger(__name__)

# (asset id, stage reached, message)
ProgressCallback = Callable[[AssetId, JobStage, str], None]

# Asked before a side effect in dry-run mode; True lets it happen
ConfirmCallback = Callable[[CueTrimJob, str], bool | Awaitable[bool]]


class SideEffectGate:
    """Decides whether a side-effecting action may run.

    Outside dry-run mode everything is allowed. In dry-run mode each action
    needs an explicit yes from ``confirm``; without a callback nothing
    with side effects runs.
    """

    def __init__(self, dry_run: bool = False, confirm: ConfirmCallback | None = None):
        self.dry_run = dry_run
        self.confirm = confirm

    async def allow(self, job: CueTrimJob, action: str) -> bool:
        if not self.dry_run:
            return True
        if self.confirm is None:
            logger.info("[dry run] %s: would %s", job.asset_id, action)
            return False
        answer = self.confirm(job, action)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)


class PipelineStage(ABC):
    """Abstract base class for trim pipeline stages.

    A stage moves a job forward by one or more lifecycle stages. Expected
    failures are raised as ``CueTrimError`` subclasses and turned into a
    failed job by the executor.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this stage."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name for progress output."""
        ...

    @property
    def has_side_effects(self) -> bool:
        """Whether this stage mutates files or server state."""
        return False

    @abstractmethod
    async def execute(self, job: CueTrimJob) -> StageResult:
        """Execute this stage for ``job``.

        Returns:
            StageResult; ``skipped`` ends the job without error
        """
        ...

    async def rollback(self, job: CueTrimJob) -> None:
        """Undo what this stage did after a later stage failed.

        Override in stages that leave something behind.
        """
        pass
