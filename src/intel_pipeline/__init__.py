"""Intel Pipeline.

Orchestrates one daily competitive-momentum run: load sources, score,
persist history, detect trends, correlate across sources and write the
output documents.

Example:
    from src.intel_pipeline import IntelPipeline, PipelineConfig

    pipeline = IntelPipeline(PipelineConfig(data_dir="data"))
    result = pipeline.run("2026-10-18")
"""

from src.intel_pipeline.config import PipelineConfig
from src.intel_pipeline.orchestrator import (
    IntelPipeline,
    RunResult,
    end_of_day,
    run_daily,
    write_json,
)

__all__ = [
    "PipelineConfig",
    "IntelPipeline",
    "RunResult",
    "end_of_day",
    "run_daily",
    "write_json",
]
