"""Configuration helpers that read runtime defaults from the environment."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

APP_NAME = "ytlive"
RELEASE_BASE_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download"

USER_ROOT = Path.cwd().resolve()

if os.getenv("YTLIVE_SKIP_DOTENV") != "1":
    load_dotenv(dotenv_path=USER_ROOT / ".env")


def _env_path(env_var: str, fallback: Path) -> Path:
    value = os.getenv(env_var)
    if not value:
        return fallback
    candidate = Path(value).expanduser()
    if candidate.is_absolute():
        return candidate
    return (USER_ROOT / candidate).resolve()


def _env_float(env_var: str, default: float) -> float:
    value = os.getenv(env_var)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_optional(env_var: str) -> Optional[str]:
    value = (os.getenv(env_var) or "").strip()
    return value or None


def user_data_dir() -> Path:
    """Per-user application data root for the current platform."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    if sys.platform.startswith("win"):
        appdata = os.getenv("APPDATA")
        return Path(appdata) if appdata else home / "AppData" / "Roaming"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else home / ".local" / "share"


def default_tool_name() -> str:
    return "yt-dlp.exe" if sys.platform.startswith("win") else "yt-dlp"


def release_asset_name() -> str:
    """Name of the standalone yt-dlp build published for this platform."""
    if sys.platform == "darwin":
        return "yt-dlp_macos"
    if sys.platform.startswith("win"):
        return "yt-dlp.exe"
    machine = platform.machine().lower()
    if machine in ("aarch64", "arm64"):
        return "yt-dlp_linux_aarch64"
    return "yt-dlp_linux"


@dataclass(frozen=True)
class AppConfig:
    tool_name: str
    install_dir: Path
    download_url: str
    extract_timeout: float
    download_timeout: float
    log_level: str
    log_file: Optional[Path]
    source_url: Optional[str]

    @property
    def install_path(self) -> Path:
        return self.install_dir / self.tool_name


def load_config() -> AppConfig:
    log_file = _env_optional("YTLIVE_LOG_FILE")
    return AppConfig(
        tool_name=os.getenv("YTLIVE_TOOL_NAME", default_tool_name()),
        install_dir=_env_path("YTLIVE_INSTALL_DIR", user_data_dir() / APP_NAME),
        download_url=os.getenv(
            "YTLIVE_DOWNLOAD_URL", f"{RELEASE_BASE_URL}/{release_asset_name()}"
        ),
        extract_timeout=_env_float("YTLIVE_EXTRACT_TIMEOUT", 60.0),
        download_timeout=_env_float("YTLIVE_DOWNLOAD_TIMEOUT", 120.0),
        log_level=os.getenv("YTLIVE_LOG_LEVEL", "INFO").upper(),
        log_file=_env_path("YTLIVE_LOG_FILE", Path(log_file)) if log_file else None,
        source_url=_env_optional("YTLIVE_URL"),
    )
