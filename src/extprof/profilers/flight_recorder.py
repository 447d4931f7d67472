"""Java Flight Recorder integration.

Recording is switched on through runtime flags so it starts together with the
measured process and writes into one temporary file owned by this profiler.
After each trial that file is copied to ``<jfr.saveTo>/<benchmark>-<n>.jfr``.
"""

from __future__ import annotations

import atexit
import contextlib
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

from ..config import ProfilerSettings
from ..layout import numbered_artifact_path
from ..results import InformationalResult
from .base import ExternalProfiler, ProfilerConfigurationError, TrialParams, TrialResult

UNLOCK_FLAG = "-XX:+UnlockCommercialFeatures"
SUPPORT_MESSAGE = "Commercial features of the JVM need to be enabled for this profiler."
RESULT_LABEL = "JFR"


class FlightRecordingProfiler(ExternalProfiler):
    """Enables flight recording for every trial and starts it right away."""

    label = "jfr"
    description = "Java Flight Recording profiler runs for every benchmark."
    allow_print_out = True
    allow_print_err = False

    def __init__(
        self,
        settings: Optional[ProfilerSettings] = None,
        *,
        temp_path: Optional[os.PathLike] = None,
        process_args: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(settings)
        if temp_path is None:
            fd, name = tempfile.mkstemp(prefix="jfrData", suffix=".jfr")
            os.close(fd)
            self.jfr_data = Path(name).absolute()
            atexit.register(_discard, self.jfr_data)
        else:
            self.jfr_data = Path(temp_path).absolute()
        self._process_args = list(process_args) if process_args is not None else None
        self._current_id = 0
        self._lock = threading.Lock()

    def check_support(self, msgs: List[str]) -> bool:
        msgs.append(SUPPORT_MESSAGE)
        try:
            args = self._harness_arguments()
        except psutil.Error as exc:
            msgs.append(f"Unable to inspect the harness command line: {exc}")
            return False
        return UNLOCK_FLAG in args

    def add_invoke_options(self, params: TrialParams) -> List[str]:
        return []

    def add_runtime_options(self, params: TrialParams) -> List[str]:
        jfc_path = self.settings_file_path(params.runtime)
        start_options = ",".join(
            [
                f"duration={self.settings.jfr_duration}",
                "name=profile",
                f"filename={self.jfr_data}",
                f"settings={jfc_path}",
            ]
        )
        return [
            "-XX:+FlightRecorder",
            f"-XX:StartFlightRecording={start_options}",
            "-XX:FlightRecorderOptions=samplethreads=true",
        ]

    def settings_file_path(self, runtime: str) -> Path:
        """Locate the recording settings file shipped with *runtime*'s installation."""
        if not runtime or "\0" in runtime:
            raise ProfilerConfigurationError(f"Cannot resolve runtime executable {runtime!r} for flight recording.")
        binary = Path(runtime).expanduser()
        if binary.parent == Path(".") and not binary.exists():
            located = shutil.which(runtime)
            if located is None:
                raise ProfilerConfigurationError(
                    f"Runtime {runtime!r} is not on PATH; cannot locate lib/jfr/{self.settings.jfr_settings_file}."
                )
            binary = Path(located).resolve()
        elif not binary.exists():
            raise ProfilerConfigurationError(f"Runtime executable does not exist: {binary}")
        install_root = binary.absolute().parent.parent
        return Path(os.path.normpath(install_root / "lib" / "jfr" / self.settings.jfr_settings_file))

    def before_trial(self, params: TrialParams) -> None:
        # Each trial starts without a recording; a killed trial then reports it as missing.
        _discard(self.jfr_data)

    def after_trial(
        self,
        result: TrialResult,
        elapsed_ns: int,
        stdout_path: Optional[Path],
        stderr_path: Optional[Path],
    ) -> List[InformationalResult]:
        benchmark = result.params.benchmark
        target = Path(self.settings.jfr_save_to) / f"{benchmark}-<n>.jfr"
        lines: List[str] = []
        try:
            target = self._next_target(benchmark)
            self._copy_recording(target)
        except OSError as exc:
            print(f"[WARN] Failed to save flight recording to {target}: {exc}")
            lines.append(f"Unable to save flight output to {target}")
            lines.append("Did you miss the setting jfr.saveTo ?")
            lines.append(f"Reason: {exc}")
        else:
            lines.append(f"Flight Recording output saved to {target}")
        output = "".join(f"{line}\n" for line in lines)
        return [InformationalResult(label=RESULT_LABEL, output=output)]

    def _next_target(self, benchmark: str) -> Path:
        with self._lock:
            while True:
                target = numbered_artifact_path(self.settings.jfr_save_to, benchmark, self._current_id, ".jfr")
                self._current_id += 1
                if not target.exists():
                    return target

    def _copy_recording(self, target: Path) -> None:
        source = self.jfr_data
        if not source.exists():
            raise FileNotFoundError(f"flight recording was not written: {source}")
        if source.stat().st_size == 0:
            raise OSError(f"flight recording is empty: {source}")
        shutil.copyfile(source, target)

    def _harness_arguments(self) -> List[str]:
        if self._process_args is not None:
            return self._process_args
        return psutil.Process().cmdline()


def _discard(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        path.unlink()


__all__ = ["FlightRecordingProfiler", "SUPPORT_MESSAGE", "UNLOCK_FLAG"]
