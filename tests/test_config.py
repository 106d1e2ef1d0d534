import importlib
from pathlib import Path

import ytlive.config as config_module

ENV_VARS = (
    "YTLIVE_TOOL_NAME",
    "YTLIVE_INSTALL_DIR",
    "YTLIVE_DOWNLOAD_URL",
    "YTLIVE_EXTRACT_TIMEOUT",
    "YTLIVE_DOWNLOAD_TIMEOUT",
    "YTLIVE_LOG_LEVEL",
    "YTLIVE_LOG_FILE",
    "YTLIVE_URL",
)


def _reload_config(monkeypatch):
    monkeypatch.setenv("YTLIVE_SKIP_DOTENV", "1")
    importlib.reload(config_module)
    return config_module


def _clear_env(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_config_respects_env(monkeypatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("YTLIVE_TOOL_NAME", "yt-dlp-nightly")
    monkeypatch.setenv("YTLIVE_INSTALL_DIR", str(tmp_path / "bin"))
    monkeypatch.setenv("YTLIVE_DOWNLOAD_URL", "https://mirror.example.com/yt-dlp")
    monkeypatch.setenv("YTLIVE_EXTRACT_TIMEOUT", "15")
    monkeypatch.setenv("YTLIVE_LOG_LEVEL", "debug")
    monkeypatch.setenv("YTLIVE_LOG_FILE", str(tmp_path / "ytlive.log"))
    monkeypatch.setenv("YTLIVE_URL", " https://youtu.be/abc ")

    config = _reload_config(monkeypatch).load_config()

    assert config.tool_name == "yt-dlp-nightly"
    assert config.install_dir == tmp_path / "bin"
    assert config.install_path == tmp_path / "bin" / "yt-dlp-nightly"
    assert config.download_url == "https://mirror.example.com/yt-dlp"
    assert config.extract_timeout == 15.0
    assert config.log_level == "DEBUG"
    assert config.log_file == tmp_path / "ytlive.log"
    assert config.source_url == "https://youtu.be/abc"


def test_load_config_falls_back_to_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)
    reloaded = _reload_config(monkeypatch)
    config = reloaded.load_config()

    assert config.tool_name == reloaded.default_tool_name()
    assert config.install_dir == reloaded.user_data_dir() / "ytlive"
    assert config.download_url.startswith(reloaded.RELEASE_BASE_URL + "/yt-dlp")
    assert config.extract_timeout == 60.0
    assert config.download_timeout == 120.0
    assert config.log_level == "INFO"
    assert config.log_file is None
    assert config.source_url is None


def test_invalid_timeout_uses_default(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("YTLIVE_DOWNLOAD_TIMEOUT", "soon")
    config = _reload_config(monkeypatch).load_config()
    assert config.download_timeout == 120.0


def test_relative_install_dir_is_resolved_against_working_dir(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("YTLIVE_INSTALL_DIR", "tools")
    reloaded = _reload_config(monkeypatch)
    config = reloaded.load_config()
    assert config.install_dir == (reloaded.USER_ROOT / "tools").resolve()


def test_linux_release_asset_follows_machine(monkeypatch) -> None:
    monkeypatch.setattr(config_module.sys, "platform", "linux")
    monkeypatch.setattr(config_module.platform, "machine", lambda: "aarch64")
    assert config_module.release_asset_name() == "yt-dlp_linux_aarch64"
    monkeypatch.setattr(config_module.platform, "machine", lambda: "x86_64")
    assert config_module.release_asset_name() == "yt-dlp_linux"


def test_macos_release_asset(monkeypatch) -> None:
    monkeypatch.setattr(config_module.sys, "platform", "darwin")
    assert config_module.release_asset_name() == "yt-dlp_macos"
    assert config_module.default_tool_name() == "yt-dlp"
