import os
import stat
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("YTLIVE_SKIP_DOTENV", "1")

from PyQt6.QtCore import QCoreApplication  # noqa: E402

from ytlive.config import AppConfig  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        tool_name="yt-dlp",
        install_dir=tmp_path / "install",
        download_url="https://example.com/yt-dlp_linux",
        extract_timeout=5.0,
        download_timeout=5.0,
        log_level="DEBUG",
        log_file=None,
        source_url=None,
    )


def make_executable(path: Path, content: str = "#!/bin/sh\necho ok\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def executable():
    return make_executable
