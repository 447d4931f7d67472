"""Intel VTune integration: the trial process is launched through the VTune CLI."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import ProfilerSettings
from ..layout import next_free_path, trial_basename
from ..results import InformationalResult
from .base import ExternalProfiler, TrialParams, TrialResult

RESULT_LABEL = "VTune"
DIAGNOSTIC_RUNTIME_OPTIONS = ("-XX:+UnlockDiagnosticVMOptions", "-XX:+DebugNonSafepoints")


class VTuneProfiler(ExternalProfiler):
    """Wraps every trial in ``amplxe-cl -collect <analysis>``.

    The result directory is chosen before launch and VTune writes straight
    into it, so nothing is moved after the trial. Indices only grow within one
    profiler instance; two instances sharing a directory may still race between
    the existence check and VTune creating the directory.
    """

    label = "vtune"
    description = "VTune profiler runs for every benchmark."
    allow_print_out = True
    allow_print_err = True

    def __init__(
        self,
        settings: Optional[ProfilerSettings] = None,
        *,
        exists: Callable[[Path], bool] = os.path.exists,
    ) -> None:
        super().__init__(settings)
        self._exists = exists
        # One entry per distinct basename for the lifetime of the instance.
        self._next_index: Dict[str, int] = {}
        self._lock = threading.Lock()
        self.target: Optional[Path] = None

    def check_support(self, msgs: List[str]) -> bool:
        return True

    def add_invoke_options(self, params: TrialParams) -> List[str]:
        settings = self.settings
        analysis = settings.vtune_analysis_type
        basename = trial_basename(params.benchmark, params.params, prefix=settings.vtune_file_prefix)
        with self._lock:
            target, idx = next_free_path(
                settings.vtune_save_to,
                basename,
                analysis,
                start=self._next_index.get(basename, 0),
                exists=self._exists,
            )
            self._next_index[basename] = idx + 1
            self.target = target

        options = [settings.vtune_command, "-collect", analysis, "-r", str(target)]
        if settings.vtune_quiet:
            options.append("-q")
        if settings.vtune_extra_options:
            options.extend(settings.vtune_extra_options.split())
        return options

    def add_runtime_options(self, params: TrialParams) -> List[str]:
        return list(DIAGNOSTIC_RUNTIME_OPTIONS)

    def after_trial(
        self,
        result: TrialResult,
        elapsed_ns: int,
        stdout_path: Optional[Path],
        stderr_path: Optional[Path],
    ) -> List[InformationalResult]:
        if self.target is None:
            output = "No VTune experiment path was resolved for this trial.\n"
        else:
            output = f"VTune experiment saved to {self.target}\n"
        return [InformationalResult(label=RESULT_LABEL, output=output)]


__all__ = ["DIAGNOSTIC_RUNTIME_OPTIONS", "VTuneProfiler"]
