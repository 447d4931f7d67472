from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from extprof.profilers import ExternalProfiler, TrialParams, TrialResult
from extprof.results import InformationalResult


class DummyProfiler(ExternalProfiler):
    """Minimal profiler recording the order of lifecycle calls."""

    label = "dummy"
    description = "Records lifecycle calls for tests."

    def __init__(self, settings=None, *, supported: bool = True, fail_after: bool = False) -> None:
        super().__init__(settings)
        self.supported = supported
        self.fail_after = fail_after
        self.calls: List[str] = []

    def check_support(self, msgs: List[str]) -> bool:
        self.calls.append("check_support")
        msgs.append("dummy prerequisite")
        return self.supported

    def add_invoke_options(self, params: TrialParams) -> List[str]:
        self.calls.append("add_invoke_options")
        return ["wrap", "--"]

    def add_runtime_options(self, params: TrialParams) -> List[str]:
        self.calls.append("add_runtime_options")
        return ["-Ddummy=1"]

    def before_trial(self, params: TrialParams) -> None:
        self.calls.append("before_trial")

    def after_trial(
        self,
        result: TrialResult,
        elapsed_ns: int,
        stdout_path: Optional[Path],
        stderr_path: Optional[Path],
    ) -> List[InformationalResult]:
        self.calls.append("after_trial")
        if self.fail_after:
            raise RuntimeError("boom")
        return [InformationalResult(label="Dummy", output=f"rc={result.returncode};")]


class PassthroughProfiler(DummyProfiler):
    """Contributes no launch tokens so the workload runs unwrapped."""

    label = "passthrough"

    def add_invoke_options(self, params: TrialParams) -> List[str]:
        self.calls.append("add_invoke_options")
        return []

    def add_runtime_options(self, params: TrialParams) -> List[str]:
        self.calls.append("add_runtime_options")
        return []


def fake_runtime(install_root: Path) -> Path:
    """Create ``<install_root>/bin/java`` so runtime-relative paths can resolve."""
    binary = install_root / "bin" / "java"
    binary.parent.mkdir(parents=True, exist_ok=True)
    binary.write_text("#!/bin/sh\n")
    return binary


def sample_params(benchmark: str = "sort", **params: str) -> TrialParams:
    return TrialParams(benchmark=benchmark, params=dict(params))
