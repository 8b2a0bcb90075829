"""
Pytest configuration and fixtures for file_sorter tests.
"""

from pathlib import Path
from typing import Dict, List

import pytest

from file_sorter.core.config import OrganizerSettings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the user's home config and FILE_SORTER_* env."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    for var in ("BATCH_SIZE", "BATCH_DELAY", "MAX_RETRIES", "RETRY_BACKOFF"):
        monkeypatch.delenv(f"FILE_SORTER_{var}", raising=False)
    # OrganizerSettings also reads .env from the working directory
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def categories() -> Dict[str, List[str]]:
    """Small category map used across tests."""
    return {
        "Images": [".jpg", ".png"],
        "Documents": [".txt", ".pdf"],
    }


@pytest.fixture
def fast_settings() -> OrganizerSettings:
    """Settings without sleeps so tests run quickly."""
    return OrganizerSettings(batch_size=10, batch_delay=0, max_retries=3, retry_backoff=0)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "source"
    directory.mkdir()
    return directory


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def make_files(source_dir: Path):
    """Create files in the source directory; content defaults to the name."""

    def _make(*names: str) -> List[Path]:
        paths = []
        for name in names:
            path = source_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"content of {name}")
            paths.append(path)
        return paths

    return _make
