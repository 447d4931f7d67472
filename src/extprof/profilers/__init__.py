"""Profiler registry exported for harness configuration and Hydra configs."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type

from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

from ..config import ProfilerSettings
from .base import ExternalProfiler, ProfilerConfigurationError, TrialParams, TrialResult
from .flight_recorder import FlightRecordingProfiler
from .vtune import VTuneProfiler

_PROFILERS: Dict[str, Type[ExternalProfiler]] = {
    FlightRecordingProfiler.label: FlightRecordingProfiler,
    VTuneProfiler.label: VTuneProfiler,
}


def available_profilers() -> List[str]:
    return sorted(_PROFILERS)


def find_profiler(label: str) -> Type[ExternalProfiler]:
    try:
        return _PROFILERS[label]
    except KeyError:
        available = ", ".join(available_profilers())
        raise KeyError(f"Unknown profiler '{label}' (available: {available})") from None


def build_profiler(spec: Any, settings: Optional[ProfilerSettings] = None) -> ExternalProfiler:
    """Create a profiler from a registry label or a Hydra ``_target_`` node."""
    if isinstance(spec, ExternalProfiler):
        return spec
    if isinstance(spec, str):
        return find_profiler(spec)(settings)
    if isinstance(spec, DictConfig):
        spec = OmegaConf.to_container(spec, resolve=True)
    if isinstance(spec, Mapping):
        node = dict(spec)
        if "_target_" not in node:
            label = node.get("label") or node.get("name")
            if not label:
                raise ValueError(f"Profiler config needs `_target_` or `label`: {node}")
            return find_profiler(str(label))(settings)
        # Settings stay a plain object; merging them into the node would turn them into a DictConfig.
        factory = instantiate(node, _partial_=True, _convert_="all")
        profiler = factory(settings=settings)
        if not isinstance(profiler, ExternalProfiler):
            raise TypeError(f"{node['_target_']} did not produce an ExternalProfiler")
        return profiler
    raise TypeError(f"Unsupported profiler spec: {spec!r}")


__all__ = [
    "ExternalProfiler",
    "FlightRecordingProfiler",
    "ProfilerConfigurationError",
    "TrialParams",
    "TrialResult",
    "VTuneProfiler",
    "available_profilers",
    "build_profiler",
    "find_profiler",
]
