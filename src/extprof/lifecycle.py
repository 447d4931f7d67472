"""Harness-side dispatch of the external profiler lifecycle."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import ProfilerSettings
from .profilers import ExternalProfiler, TrialParams, TrialResult, build_profiler
from .results import InformationalResult, merge_results


class ProfilerSession:
    """Drives a fixed set of supported profilers through each trial."""

    def __init__(self, profilers: Sequence[ExternalProfiler]) -> None:
        self.profilers: List[ExternalProfiler] = list(profilers)

    @classmethod
    def select(
        cls,
        candidates: Iterable[object],
        settings: Optional[ProfilerSettings] = None,
    ) -> "ProfilerSession":
        """Build each candidate and keep those whose support check passes."""
        selected: List[ExternalProfiler] = []
        for candidate in candidates:
            profiler = build_profiler(candidate, settings)
            msgs: List[str] = []
            supported = profiler.check_support(msgs)
            if supported:
                for msg in msgs:
                    print(f"[INFO] {profiler.label}: {msg}")
                selected.append(profiler)
            else:
                print(f"[WARN] Profiler '{profiler.label}' is not supported in this environment; skipping.")
                for msg in msgs:
                    print(f"[WARN]   {msg}")
        return cls(selected)

    @property
    def labels(self) -> List[str]:
        return [profiler.label for profiler in self.profilers]

    @property
    def allow_print_out(self) -> bool:
        return all(profiler.allow_print_out for profiler in self.profilers)

    @property
    def allow_print_err(self) -> bool:
        return all(profiler.allow_print_err for profiler in self.profilers)

    def invoke_options(self, params: TrialParams) -> List[str]:
        options: List[str] = []
        for profiler in self.profilers:
            options.extend(profiler.add_invoke_options(params))
        return options

    def runtime_options(self, params: TrialParams) -> List[str]:
        options: List[str] = []
        for profiler in self.profilers:
            options.extend(profiler.add_runtime_options(params))
        return options

    def build_command(self, params: TrialParams, workload_args: Sequence[str] = ()) -> List[str]:
        """Assemble ``<wrapper tokens> <runtime> <runtime tokens> <runtime args> <workload>``."""
        command = self.invoke_options(params)
        command.append(params.runtime)
        command.extend(self.runtime_options(params))
        command.extend(params.runtime_args)
        command.extend(str(arg) for arg in workload_args)
        return command

    def before_trial(self, params: TrialParams) -> None:
        for profiler in self.profilers:
            profiler.before_trial(params)

    def after_trial(
        self,
        result: TrialResult,
        elapsed_ns: int,
        stdout_path: Optional[Path] = None,
        stderr_path: Optional[Path] = None,
    ) -> List[InformationalResult]:
        collected: List[InformationalResult] = []
        for profiler in self.profilers:
            try:
                collected.extend(profiler.after_trial(result, elapsed_ns, stdout_path, stderr_path))
            except Exception as exc:
                print(f"[WARN] Profiler '{profiler.label}' failed after trial: {exc}")
                collected.append(
                    InformationalResult(
                        label=profiler.label,
                        output=f"{profiler.label} profiler failed after trial: {exc}\n",
                    )
                )
        return collected

    @staticmethod
    def merge(results: Iterable[InformationalResult]) -> List[InformationalResult]:
        return merge_results(results)


__all__ = ["ProfilerSession"]
