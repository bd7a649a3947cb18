"""HTTP pipeline: policies chained in front of a transport."""

from sdk_core.pipeline.base import AsyncPipeline, Pipeline
from sdk_core.pipeline.builder import PipelineOptions, build_async_pipeline, build_pipeline

__all__ = [
    "AsyncPipeline",
    "Pipeline",
    "PipelineOptions",
    "build_async_pipeline",
    "build_pipeline",
]
