from pathlib import Path

import pytest

from framecheck.io import MemoryFileSystem


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def golden_path() -> Path:
    return Path("goldens/animation.png")


@pytest.fixture
def delta_path() -> Path:
    return Path("deltas/delta-animation.png")
