from __future__ import annotations

import threading
from pathlib import Path

from extprof.config import ProfilerSettings
from extprof.profilers import TrialResult, VTuneProfiler
from extprof.profilers.vtune import DIAGNOSTIC_RUNTIME_OPTIONS
from extprof.results import aggregate_results
from tests.helpers import sample_params


def test_sort_twice_in_empty_directory():
    created = set()
    profiler = VTuneProfiler(
        ProfilerSettings(vtune_save_to=Path("/out"), vtune_analysis_type="hotspots"),
        exists=lambda path: str(path) in created,
    )

    first = profiler.add_invoke_options(sample_params("sort"))
    created.add(first[4])
    second = profiler.add_invoke_options(sample_params("sort"))

    assert first[4] == "/out/sort-r0hotspots"
    assert second[4] == "/out/sort-r1hotspots"


def test_indices_strictly_increase_even_if_tool_never_writes(settings):
    profiler = VTuneProfiler(settings, exists=lambda path: False)
    targets = [profiler.add_invoke_options(sample_params("sort"))[4] for _ in range(5)]
    assert len(set(targets)) == 5
    indices = [int(target.rsplit("-r", 1)[1].replace("hotspots", "")) for target in targets]
    assert indices == sorted(indices) == list(range(5))


def test_existing_experiments_are_skipped(settings, out_dir: Path):
    (out_dir / "sort-r0hotspots").mkdir()
    (out_dir / "sort-r1hotspots").mkdir()
    profiler = VTuneProfiler(settings)
    options = profiler.add_invoke_options(sample_params("sort"))
    assert options[4] == str(out_dir / "sort-r2hotspots")


def test_params_with_empty_values_are_left_out(settings, out_dir: Path):
    profiler = VTuneProfiler(settings)
    params = sample_params("org.bench.Sort.run", size="1000", mode="", order="desc")
    options = profiler.add_invoke_options(params)
    assert options[4] == str(out_dir / "org.bench.Sort.run-1000-desc-r0hotspots")


def test_distinct_parameterisations_do_not_share_indices(settings, out_dir: Path):
    profiler = VTuneProfiler(settings, exists=lambda path: False)
    small = profiler.add_invoke_options(sample_params("sort", size="10"))[4]
    large = profiler.add_invoke_options(sample_params("sort", size="20"))[4]
    assert small == str(out_dir / "sort-10-r0hotspots")
    assert large == str(out_dir / "sort-20-r0hotspots")


def test_path_separators_are_replaced(settings, out_dir: Path):
    profiler = VTuneProfiler(settings)
    options = profiler.add_invoke_options(sample_params("suite/sort", path="a/b"))
    assert options[4] == str(out_dir / "suite_sort-a_b-r0hotspots")


def test_command_layout_with_quiet_and_extra_options(out_dir: Path):
    settings = ProfilerSettings(
        vtune_save_to=out_dir,
        vtune_analysis_type="memory-access",
        vtune_extra_options="  -knob   sampling-interval=5 ",
        vtune_quiet=True,
    )
    options = VTuneProfiler(settings).add_invoke_options(sample_params("sort"))
    assert options == [
        "amplxe-cl",
        "-collect",
        "memory-access",
        "-r",
        str(out_dir / "sort-r0memory-access"),
        "-q",
        "-knob",
        "sampling-interval=5",
    ]


def test_quiet_disabled_and_custom_command(out_dir: Path):
    settings = ProfilerSettings(vtune_save_to=out_dir, vtune_quiet=False, vtune_command="vtune")
    options = VTuneProfiler(settings).add_invoke_options(sample_params("sort"))
    assert options[0] == "vtune"
    assert "-q" not in options


def test_forced_prefix_replaces_benchmark_name(out_dir: Path):
    settings = ProfilerSettings(vtune_save_to=out_dir, vtune_file_prefix="nightly")
    options = VTuneProfiler(settings).add_invoke_options(sample_params("sort", size="10"))
    assert options[4] == str(out_dir / "nightly-r0hotspots")


def test_runtime_options_and_support(settings):
    profiler = VTuneProfiler(settings)
    msgs = []
    assert profiler.check_support(msgs) is True
    assert msgs == []
    assert profiler.add_runtime_options(sample_params()) == list(DIAGNOSTIC_RUNTIME_OPTIONS)
    assert profiler.allow_print_out and profiler.allow_print_err


def test_after_trial_reports_resolved_path(settings, out_dir: Path):
    profiler = VTuneProfiler(settings)
    params = sample_params("sort")
    profiler.add_invoke_options(params)
    results = profiler.after_trial(TrialResult(params=params, returncode=0), 10, None, None)
    assert len(results) == 1
    assert results[0].label == "VTune"
    assert results[0].output == f"VTune experiment saved to {out_dir / 'sort-r0hotspots'}\n"


def test_after_trial_without_contribution_does_not_raise(settings):
    results = VTuneProfiler(settings).after_trial(TrialResult(params=sample_params()), 0, None, None)
    assert "No VTune experiment path" in results[0].output


def test_concurrent_contributions_get_unique_paths(settings):
    profiler = VTuneProfiler(settings, exists=lambda path: False)
    targets = []
    lock = threading.Lock()

    def _contribute():
        target = profiler.add_invoke_options(sample_params("sort"))[4]
        with lock:
            targets.append(target)

    threads = [threading.Thread(target=_contribute) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(set(targets)) == 8


def test_merged_repeats_keep_one_line_per_experiment(settings, out_dir: Path):
    profiler = VTuneProfiler(settings, exists=lambda path: False)
    params = sample_params("sort")
    collected = []
    for _ in range(2):
        profiler.add_invoke_options(params)
        collected.extend(profiler.after_trial(TrialResult(params=params, returncode=0), 1, None, None))

    merged = aggregate_results(collected)

    assert merged.output.splitlines() == [
        f"VTune experiment saved to {out_dir / 'sort-r0hotspots'}",
        f"VTune experiment saved to {out_dir / 'sort-r1hotspots'}",
    ]
