import errno
import http.client
import os
import tempfile
import urllib.error
from dataclasses import replace
from pathlib import Path

import pytest

from ytlive.errors import DownloadFailedError, InstallFailedError
from ytlive.installer import InstallStatus, ToolInstaller
from ytlive.resolver import ExecutableResolver

PAYLOAD = b"#!/bin/sh\necho https://audio.example.com/stream\n"


class FakeResponse:
    def __init__(self, body: bytes, *, content_length: bool = True) -> None:
        self._body = body
        self._offset = 0
        self._content_length = content_length

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def getheader(self, name):
        if name == "Content-Length" and self._content_length:
            return str(len(self._body))
        return None

    def read(self, size=-1):
        if size < 0:
            size = len(self._body)
        chunk = self._body[self._offset:self._offset + size]
        self._offset += len(chunk)
        return chunk


def _serve(monkeypatch, body: bytes = PAYLOAD, requests=None):
    def fake_urlopen(request, timeout=None):
        if requests is not None:
            requests.append((request.full_url, timeout))
        return FakeResponse(body)

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)


def _installer(app_config) -> ToolInstaller:
    resolver = ExecutableResolver(
        app_config, search_paths=[app_config.install_path], use_path_lookup=False
    )
    return ToolInstaller(app_config, resolver)


def test_install_downloads_and_marks_executable(app_config, monkeypatch) -> None:
    requests = []
    _serve(monkeypatch, requests=requests)
    installer = _installer(app_config)
    progress = []

    assert installer.is_installed() is False
    result = installer.install(progress.append)

    assert result.success is True
    assert result.path == app_config.install_path
    assert app_config.install_path.read_bytes() == PAYLOAD
    assert os.access(app_config.install_path, os.X_OK)
    assert installer.is_installed() is True
    assert installer.record.status is InstallStatus.COMPLETE
    assert requests == [(app_config.download_url, app_config.download_timeout)]
    assert progress[0] == "Downloading yt-dlp..."
    assert "Installing yt-dlp..." in progress
    assert progress[-1] == "Installation complete!"
    assert any(text.endswith("100%") for text in progress)


def test_install_leaves_no_staging_files(app_config, monkeypatch) -> None:
    _serve(monkeypatch)
    _installer(app_config).install()
    assert sorted(p.name for p in app_config.install_dir.iterdir()) == ["yt-dlp"]


def test_install_overwrites_previous_file(app_config, monkeypatch, executable) -> None:
    executable(app_config.install_path, "#!/bin/sh\necho old\n")
    _serve(monkeypatch)
    result = _installer(app_config).install()
    assert result.success is True
    assert app_config.install_path.read_bytes() == PAYLOAD


def test_network_failure_keeps_previous_install(app_config, monkeypatch, executable) -> None:
    executable(app_config.install_path, "#!/bin/sh\necho old\n")

    def failing_urlopen(request, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr("urllib.request.urlopen", failing_urlopen)
    installer = _installer(app_config)
    result = installer.install()

    assert result.success is False
    assert result.reason == "network"
    assert "connection refused" in result.message
    assert app_config.install_path.read_text() == "#!/bin/sh\necho old\n"
    assert installer.record.status is InstallStatus.FAILED


def test_empty_download_is_reported_as_no_data(app_config, monkeypatch) -> None:
    _serve(monkeypatch, body=b"")
    installer = _installer(app_config)
    result = installer.install()
    assert result.success is False
    assert result.reason == "no_data"
    assert not app_config.install_path.exists()
    assert installer.is_installed() is False


def test_directory_failure_is_reported(app_config, monkeypatch, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    config = replace(app_config, install_dir=blocker / "sub")
    _serve(monkeypatch)
    result = _installer(config).install()
    assert result.success is False
    assert result.reason == "directory"
    assert result.message.startswith("Could not create directory")


def test_replace_failure_keeps_previous_install(app_config, monkeypatch, executable) -> None:
    executable(app_config.install_path, "#!/bin/sh\necho old\n")
    _serve(monkeypatch)

    def failing_replace(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr("ytlive.installer.os.replace", failing_replace)
    result = _installer(app_config).install()

    assert result.success is False
    assert result.reason == "replace"
    assert app_config.install_path.read_text() == "#!/bin/sh\necho old\n"
    assert sorted(p.name for p in app_config.install_dir.iterdir()) == ["yt-dlp"]


def test_concurrent_install_is_refused(app_config, monkeypatch) -> None:
    _serve(monkeypatch)
    installer = _installer(app_config)
    installer._install_lock.acquire()
    try:
        assert installer.is_installing is True
        result = installer.install()
    finally:
        installer._install_lock.release()
    assert result.success is False
    assert result.reason == "busy"
    assert not app_config.install_path.exists()


def test_ensure_installed_skips_download_when_present(app_config, monkeypatch, executable) -> None:
    executable(app_config.install_path)

    def unexpected(*args, **kwargs):
        raise AssertionError("should not download")

    monkeypatch.setattr("urllib.request.urlopen", unexpected)
    location = _installer(app_config).ensure_installed()
    assert location.path == str(app_config.install_path)


def test_ensure_installed_downloads_when_missing(app_config, monkeypatch) -> None:
    _serve(monkeypatch)
    progress = []
    location = _installer(app_config).ensure_installed(progress.append)
    assert location.path == str(app_config.install_path)
    assert progress


def test_ensure_installed_raises_download_error(app_config, monkeypatch) -> None:
    _serve(monkeypatch, body=b"")
    with pytest.raises(DownloadFailedError) as info:
        _installer(app_config).ensure_installed()
    assert info.value.reason == "no_data"


def test_ensure_installed_raises_install_error(app_config, monkeypatch) -> None:
    _serve(monkeypatch)

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("ytlive.installer.os.replace", failing_replace)
    with pytest.raises(InstallFailedError) as info:
        _installer(app_config).ensure_installed()
    assert info.value.reason == "replace"


@pytest.fixture
def private_tmp(monkeypatch, tmp_path: Path) -> Path:
    directory = tmp_path / "tmp"
    directory.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(directory))
    return directory


class TruncatedResponse(FakeResponse):
    def read(self, size=-1):
        if self._offset:
            raise http.client.IncompleteRead(b"partial", 100)
        return super().read(7)


def test_truncated_download_is_a_network_failure(app_config, monkeypatch, private_tmp) -> None:
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout=None: TruncatedResponse(PAYLOAD)
    )
    installer = _installer(app_config)
    progress = []

    result = installer.install(progress.append)

    assert result.success is False
    assert result.reason == "network"
    assert result.message.startswith("Download failed:")
    assert installer.record.status is InstallStatus.FAILED
    assert list(private_tmp.iterdir()) == []
    assert not app_config.install_path.exists()


def test_truncated_download_raises_from_ensure_installed(app_config, monkeypatch, private_tmp) -> None:
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout=None: TruncatedResponse(PAYLOAD)
    )
    with pytest.raises(DownloadFailedError) as info:
        _installer(app_config).ensure_installed()
    assert info.value.reason == "network"


def test_malformed_download_url_is_a_network_failure(app_config, private_tmp) -> None:
    config = replace(app_config, download_url="not a url")
    result = _installer(config).install()
    assert result.success is False
    assert result.reason == "network"
    assert list(private_tmp.iterdir()) == []


class FullDiskFile:
    def __init__(self, path: Path) -> None:
        path.write_bytes(b"")
        self.name = str(path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def close(self) -> None:
        pass

    def write(self, data) -> int:
        raise OSError(errno.ENOSPC, "No space left on device")


def test_local_write_failure_is_not_reported_as_network(app_config, monkeypatch, private_tmp) -> None:
    _serve(monkeypatch)
    monkeypatch.setattr(
        "ytlive.installer.tempfile.NamedTemporaryFile",
        lambda **kwargs: FullDiskFile(private_tmp / "ytlive-full.download"),
    )
    installer = _installer(app_config)

    result = installer.install()

    assert result.success is False
    assert result.reason == "directory"
    assert "No space left on device" in result.message
    assert installer.record.status is InstallStatus.FAILED
    assert list(private_tmp.iterdir()) == []
