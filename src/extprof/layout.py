from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, Tuple

PACKAGE_ROOT = Path(__file__).resolve().parent
CONFIGS_ROOT = PACKAGE_ROOT / "configs"

DEFAULT_OUTPUT_ROOT = Path(".")
LOGS_SUBDIR = "logs"

PathExists = Callable[[Path], bool]


@dataclass(frozen=True)
class OutputRoots:
    """Resolved directories used for profiler artifacts and trial logs."""

    artifacts: Path
    logs: Path

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "OutputRoots":
        env = os.environ if environ is None else environ
        root_env = env.get("EXTPROF_OUTPUT_ROOT")
        artifacts = Path(root_env).expanduser() if root_env else DEFAULT_OUTPUT_ROOT
        return cls(artifacts=artifacts, logs=artifacts / LOGS_SUBDIR)


def sanitize_basename(name: str) -> str:
    """Replace path separators so *name* stays a single path component."""
    for sep in (os.sep, os.altsep):
        if sep:
            name = name.replace(sep, "_")
    return name


def trial_basename(benchmark: str, params: Mapping[str, str], prefix: Optional[str] = None) -> str:
    """Build the artifact basename for one trial.

    A forced *prefix* replaces the benchmark-derived name entirely. Otherwise the
    benchmark identity is followed by ``-<value>`` for each parameter, in key
    order; parameters with an empty value are left out.
    """
    if prefix:
        return sanitize_basename(prefix)
    parts = [benchmark]
    for key in params:
        value = params[key]
        if value is None:
            continue
        value = str(value)
        if value:
            parts.append(value)
    return sanitize_basename("-".join(parts))


def next_free_path(
    directory: Path,
    basename: str,
    suffix: str = "",
    *,
    start: int = 0,
    exists: PathExists = os.path.exists,
) -> Tuple[Path, int]:
    """Return the first ``<directory>/<basename>-r<i><suffix>`` that does not exist.

    Probing starts at *start* and the chosen index is returned with the path.
    The check and the later write by the profiling tool are not atomic.
    """
    idx = start
    while True:
        candidate = (Path(directory) / f"{basename}-r{idx}{suffix}").absolute()
        if not exists(candidate):
            return candidate, idx
        idx += 1


def numbered_artifact_path(directory: Path, stem: str, idx: int, extension: str) -> Path:
    return (Path(directory) / f"{sanitize_basename(stem)}-{idx}{extension}").absolute()


ROOTS = OutputRoots.from_environment()

__all__ = [
    "CONFIGS_ROOT",
    "DEFAULT_OUTPUT_ROOT",
    "LOGS_SUBDIR",
    "OutputRoots",
    "PACKAGE_ROOT",
    "ROOTS",
    "next_free_path",
    "numbered_artifact_path",
    "sanitize_basename",
    "trial_basename",
]
