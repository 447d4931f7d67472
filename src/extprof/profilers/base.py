"""Base interfaces for external profilers attached to benchmark trials."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..config import ProfilerSettings
from ..results import InformationalResult


class ProfilerConfigurationError(RuntimeError):
    """Raised when a profiler cannot build a usable launch option set."""


@dataclass(frozen=True)
class TrialParams:
    """What the harness knows about a trial before it starts."""

    benchmark: str
    params: Mapping[str, str] = field(default_factory=dict)
    runtime: str = "java"
    runtime_args: List[str] = field(default_factory=list)

    def param_keys(self) -> List[str]:
        return list(self.params)

    def param(self, key: str) -> Optional[str]:
        return self.params.get(key)


@dataclass(frozen=True)
class TrialResult:
    params: TrialParams
    returncode: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)


class ExternalProfiler(ABC):
    """Contract between the harness and a wrapped profiling tool.

    Per trial the harness calls, in order: :meth:`check_support`,
    :meth:`add_invoke_options`, :meth:`add_runtime_options`,
    :meth:`before_trial`, then :meth:`after_trial` once the trial process has
    exited. ``allow_print_out``/``allow_print_err`` tell the harness whether the
    tool's own console output may be shown.
    """

    label: str = ""
    description: str = ""
    allow_print_out: bool = True
    allow_print_err: bool = True

    def __init__(self, settings: Optional[ProfilerSettings] = None) -> None:
        self.settings = settings if settings is not None else ProfilerSettings()

    @abstractmethod
    def check_support(self, msgs: List[str]) -> bool:
        """Return True if the profiler can run here; may append explanations to *msgs*."""

    @abstractmethod
    def add_invoke_options(self, params: TrialParams) -> List[str]:
        """Tokens prefixed to the command line that launches the trial process."""

    @abstractmethod
    def add_runtime_options(self, params: TrialParams) -> List[str]:
        """Tokens appended to the measured runtime's own invocation."""

    def before_trial(self, params: TrialParams) -> None:
        return None

    @abstractmethod
    def after_trial(
        self,
        result: TrialResult,
        elapsed_ns: int,
        stdout_path: Optional[Path],
        stderr_path: Optional[Path],
    ) -> List[InformationalResult]:
        """Collect the artifact and report it; must not raise on collection failure."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(label={self.label!r})"


__all__ = ["ExternalProfiler", "ProfilerConfigurationError", "TrialParams", "TrialResult"]
