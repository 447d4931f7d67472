"""External profiler plugins for benchmark harness trials."""

from .config import ProfilerSettings, load_settings
from .layout import CONFIGS_ROOT, ROOTS
from .lifecycle import ProfilerSession
from .profilers import (
    ExternalProfiler,
    FlightRecordingProfiler,
    ProfilerConfigurationError,
    TrialParams,
    TrialResult,
    VTuneProfiler,
    available_profilers,
    build_profiler,
)
from .results import AggregationPolicy, InformationalResult, ResultRole, aggregate_results, merge_results

__all__ = [
    "AggregationPolicy",
    "CONFIGS_ROOT",
    "ExternalProfiler",
    "FlightRecordingProfiler",
    "InformationalResult",
    "ProfilerConfigurationError",
    "ProfilerSession",
    "ProfilerSettings",
    "ROOTS",
    "ResultRole",
    "TrialParams",
    "TrialResult",
    "VTuneProfiler",
    "aggregate_results",
    "available_profilers",
    "build_profiler",
    "load_settings",
    "merge_results",
]
