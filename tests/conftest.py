from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the extprof package is importable without an editable install.
TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parents[0]
PACKAGE_SRC = REPO_ROOT / "src"
if str(PACKAGE_SRC) not in sys.path:
    sys.path.insert(0, str(PACKAGE_SRC))

from extprof.config import ProfilerSettings  # noqa: E402

from .helpers import fake_runtime  # noqa: E402


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def settings(out_dir: Path) -> ProfilerSettings:
    """Settings pointing both profilers at an empty output directory."""
    return ProfilerSettings(jfr_save_to=out_dir, vtune_save_to=out_dir)


@pytest.fixture
def runtime_binary(tmp_path: Path) -> Path:
    return fake_runtime(tmp_path / "jdk")
