"""Pipeline module for cuetrim."""

from cuetrim.pipeline.base import PipelineStage, SideEffectGate
from cuetrim.pipeline.executor import StageExecutor
from cuetrim.pipeline.pipeline import CueTrimPipeline
from cuetrim.pipeline.stages import FetchStage, MetadataPushStage, PlanStage, TranscodeStage

__all__ = [
    "PipelineStage",
    "SideEffectGate",
    "StageExecutor",
    "CueTrimPipeline",
    "FetchStage",
    "PlanStage",
    "TranscodeStage",
    "MetadataPushStage",
]
