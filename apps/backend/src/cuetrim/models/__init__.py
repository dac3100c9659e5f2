"""Data models for cuetrim."""

from cuetrim.models.asset import AssetId, MediaAssetRecord
from cuetrim.models.batch import AssetOutcome, BatchReport
from cuetrim.models.job import CueTrimJob, JobStage, StageTransition
from cuetrim.models.markers import MarkerName, TimerMarkerSet
from cuetrim.models.pipeline import (
    BatchPolicy,
    StageResult,
    StageStatus,
    TrimDecision,
    UpdateResult,
)

__all__ = [
    # Markers
    "MarkerName",
    "TimerMarkerSet",
    # Asset
    "AssetId",
    "MediaAssetRecord",
    # Job
    "CueTrimJob",
    "JobStage",
    "StageTransition",
    # Pipeline
    "StageStatus",
    "StageResult",
    "TrimDecision",
    "UpdateResult",
    "BatchPolicy",
    # Batch
    "AssetOutcome",
    "BatchReport",
]
