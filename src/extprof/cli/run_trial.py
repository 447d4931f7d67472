#!/usr/bin/env python3
"""Run a trial command under the configured external profilers (Hydra entry point)."""

from __future__ import annotations

import math
import os
import re
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from hydra import main as hydra_main
from omegaconf import DictConfig, ListConfig, OmegaConf
from tqdm import tqdm

from extprof.config import load_settings
from extprof.layout import ROOTS
from extprof.lifecycle import ProfilerSession
from extprof.profilers import TrialParams, TrialResult
from extprof.results import InformationalResult

TIMEOUT_EXIT_CODE = 124
MISSING_COMMAND_EXIT_CODE = 127


def _plain(value: Any) -> Any:
    if isinstance(value, (DictConfig, ListConfig)):
        return OmegaConf.to_container(value, resolve=True)
    return value


def _slugify(value: str, *, max_length: int = 64) -> str:
    slug = re.sub(r"[^A-Za-z0-9_.-]+", "_", value).strip("_")
    return slug[:max_length] or "trial"


def _parse_timeout(raw: Any) -> Optional[float]:
    if raw is None:
        return None
    try:
        timeout_sec = float(raw)
    except (TypeError, ValueError):
        print(f"[WARN] Ignoring invalid timeout_sec={raw!r}")
        return None
    return timeout_sec if timeout_sec > 0 else None


def _tail_output(path: Path, *, lines: int = 15) -> Optional[str]:
    if not path.exists():
        return None
    text = path.read_text(errors="replace")
    chunks = text.strip().splitlines()
    if not chunks:
        return None
    return "\n".join(chunks[-lines:])


def _kill_process_group(proc: subprocess.Popen, *, grace_sec: float = 10.0) -> None:
    try:
        os.killpg(proc.pid, signal.SIGTERM)
    except ProcessLookupError:
        return
    except PermissionError:
        proc.terminate()
    try:
        proc.wait(timeout=grace_sec)
        return
    except subprocess.TimeoutExpired:
        pass
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        return
    except PermissionError:
        proc.kill()
    proc.wait(timeout=grace_sec)


def run_command(
    command: List[str],
    stdout_path: Path,
    stderr_path: Path,
    timeout_sec: Optional[float] = None,
) -> Tuple[Optional[int], int]:
    """Run *command* with output redirected to files; return (returncode, elapsed ns).

    The returncode is ``None`` when the process had to be killed.
    """
    started = time.perf_counter_ns()
    with stdout_path.open("w") as out_handle, stderr_path.open("w") as err_handle:
        try:
            proc = subprocess.Popen(
                command,
                stdout=out_handle,
                stderr=err_handle,
                start_new_session=True,
            )
        except FileNotFoundError as exc:
            err_handle.write(f"{exc}\n")
            print(f"[ERROR] Cannot launch trial: {exc}")
            return MISSING_COMMAND_EXIT_CODE, time.perf_counter_ns() - started
        try:
            proc.wait(timeout=timeout_sec)
        except subprocess.TimeoutExpired:
            print(f"[ERROR] Trial exceeded {timeout_sec}s; killing process group {proc.pid}")
            _kill_process_group(proc)
            return None, time.perf_counter_ns() - started
    return proc.returncode, time.perf_counter_ns() - started


def _forward_output(session: ProfilerSession, stdout_path: Path, stderr_path: Path) -> None:
    if session.allow_print_out:
        tail = _tail_output(stdout_path)
        if tail:
            print("STDOUT:\n" + tail)
    if session.allow_print_err:
        tail = _tail_output(stderr_path)
        if tail:
            print("STDERR:\n" + tail)


def _result_as_dict(result: InformationalResult) -> Dict[str, Any]:
    return {
        "label": result.label,
        "role": result.role.value,
        "value": None if math.isnan(result.value) else result.value,
        "units": result.units,
        "policy": result.policy.value,
        "output": result.output,
    }


def write_summary(
    path: Path,
    params: TrialParams,
    session: ProfilerSession,
    results: List[InformationalResult],
    returncodes: List[Optional[int]],
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "benchmark": params.benchmark,
        "params": dict(params.params),
        "profilers": session.labels,
        "returncodes": returncodes,
        "results": [_result_as_dict(result) for result in results],
    }
    path.write_text(yaml.safe_dump(payload, sort_keys=False))
    return path


def _trial_params(cfg: DictConfig) -> TrialParams:
    raw_params = _plain(cfg.get("params")) or {}
    params = {str(key): "" if value is None else str(value) for key, value in raw_params.items()}
    runtime_args = [str(arg) for arg in (_plain(cfg.get("runtime_args")) or [])]
    return TrialParams(
        benchmark=str(cfg.get("benchmark") or "trial"),
        params=params,
        runtime=str(cfg.get("runtime") or ""),
        runtime_args=runtime_args,
    )


def run_trials(cfg: DictConfig) -> int:
    settings_file = cfg.get("settings_file")
    settings = load_settings(settings_file, _plain(cfg.get("settings")) or None)
    session = ProfilerSession.select(_plain(cfg.get("profilers")) or [], settings)
    params = _trial_params(cfg)
    workload = [str(arg) for arg in (_plain(cfg.get("workload")) or [])]

    logs_dir = Path(cfg.get("logs_dir") or ROOTS.logs)
    logs_dir.mkdir(parents=True, exist_ok=True)
    repeats = max(int(cfg.get("repeats") or 1), 1)
    timeout_sec = _parse_timeout(cfg.get("timeout_sec"))
    slug = _slugify(params.benchmark)

    header = f"[{params.benchmark}] profilers={','.join(session.labels) or '(none)'}"
    print("\n" + "=" * len(header))
    print(header)
    print("=" * len(header))

    collected: List[InformationalResult] = []
    returncodes: List[Optional[int]] = []
    exit_code = 0
    for repeat in tqdm(range(repeats), desc=slug, unit="trial", disable=repeats == 1):
        command = session.build_command(params, workload)
        print("CMD:", " ".join(command))
        session.before_trial(params)
        stdout_path = logs_dir / f"{slug}-{repeat}.out"
        stderr_path = logs_dir / f"{slug}-{repeat}.err"
        returncode: Optional[int] = None
        elapsed_ns = 0
        try:
            returncode, elapsed_ns = run_command(command, stdout_path, stderr_path, timeout_sec)
        finally:
            result = TrialResult(params=params, returncode=returncode, meta={"repeat": repeat})
            collected.extend(session.after_trial(result, elapsed_ns, stdout_path, stderr_path))
        returncodes.append(returncode)
        _forward_output(session, stdout_path, stderr_path)
        if returncode is None:
            exit_code = TIMEOUT_EXIT_CODE
        elif returncode != 0:
            print(f"[WARN] Trial {repeat} exited with code {returncode}")
            exit_code = returncode

    merged = session.merge(collected)
    for result in merged:
        print(result.extended_info())
    summary = cfg.get("summary")
    if summary:
        written = write_summary(Path(summary), params, session, merged, returncodes)
        print(f"[INFO] Wrote profiler summary to {written}")
    return exit_code


@hydra_main(config_path="../configs", config_name="run_trial", version_base=None)
def hydra_entry(cfg: DictConfig) -> None:
    rc = run_trials(cfg)
    if rc:
        raise SystemExit(rc)


def main() -> int:
    hydra_entry()
    return 0


if __name__ == "__main__":
    sys.exit(main())
