"""Data Transfer Objects for the application layer."""

from .pipeline import BatchResult, DocumentPipelineResult, PipelineStage

__all__ = [
    "BatchResult",
    "DocumentPipelineResult",
    "PipelineStage",
]
