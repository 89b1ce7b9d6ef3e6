"""Tests for candidate socket discovery."""

import glob
import os
from pathlib import Path

import pytest

from nvim_discovery.config import EnvironmentConfig
from nvim_discovery.discovery.socket_locator import SocketLocator
from nvim_discovery.exceptions import ConfigurationMissing


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch()
    return path


class TestSocketLocator:
    def test_finds_sockets_under_runtime_dir(self, tmp_path):
        sock = _touch(tmp_path / "nvim.100.0" / "nvim.100.0")
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == [sock]

    def test_tmpdir_user_fallback(self, tmp_path):
        sock = _touch(tmp_path / "nvim.me" / "Xa1b2c" / "nvim.4242.0")
        locator = SocketLocator(EnvironmentConfig(tmp_dir=str(tmp_path), user="me"))
        assert locator.locate() == [sock]

    def test_results_in_sorted_order(self, tmp_path):
        c = _touch(tmp_path / "c" / "nvim.3.0")
        a = _touch(tmp_path / "a" / "nvim.1.0")
        b2 = _touch(tmp_path / "b" / "nvim.2.0")
        b1 = _touch(tmp_path / "b" / "nvim.1.0")
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == [a, b1, b2, c]

    def test_ignores_non_matching_names(self, tmp_path):
        _touch(tmp_path / "a" / "nvim.1.1")
        _touch(tmp_path / "a" / "vim.1.0")
        _touch(tmp_path / "nvim.1.0")  # not nested under a directory
        _touch(tmp_path / "a" / "b" / "nvim.1.0")  # nested too deep
        match = _touch(tmp_path / "a" / "nvim.abc.0")
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == [match]

    def test_matches_hidden_directories(self, tmp_path):
        sock = _touch(tmp_path / ".hidden" / "nvim.7.0")
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == [sock]

    def test_missing_base_dir_is_empty(self, tmp_path):
        locator = SocketLocator(EnvironmentConfig(tmp_dir=str(tmp_path), user="nobody"))
        assert locator.locate() == []

    def test_empty_base_dir(self, tmp_path):
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == []

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_unreadable_directory_skipped(self, tmp_path, caplog):
        locked = tmp_path / "locked"
        _touch(locked / "nvim.1.0")
        sock = _touch(tmp_path / "open" / "nvim.2.0")
        locked.chmod(0)
        try:
            locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
            assert locator.locate() == [sock]
        finally:
            locked.chmod(0o755)
        assert "unreadable" in caplog.text

    def test_missing_configuration_raises(self):
        with pytest.raises(ConfigurationMissing):
            SocketLocator(EnvironmentConfig()).locate()


class TestUnreadableEntries:
    def test_unreadable_directory_logged_and_skipped(self, tmp_path, monkeypatch, caplog):
        _touch(tmp_path / "locked" / "nvim.1.0")
        sock = _touch(tmp_path / "open" / "nvim.2.0")
        real_scandir = os.scandir

        def scandir(path):
            if Path(path).name == "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == [sock]
        assert "Skipping unreadable socket directory" in caplog.text
        assert "locked" in caplog.text

    def test_unstatable_entry_logged_and_skipped(self, tmp_path, monkeypatch, caplog):
        _touch(tmp_path / "broken" / "nvim.1.0")
        sock = _touch(tmp_path / "open" / "nvim.2.0")
        real_is_dir = Path.is_dir

        def is_dir(self, *args, **kwargs):
            if self.name == "broken":
                raise PermissionError(13, "Permission denied", str(self))
            return real_is_dir(self, *args, **kwargs)

        monkeypatch.setattr(Path, "is_dir", is_dir)
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == [sock]
        assert "Skipping unreadable candidate" in caplog.text

    def test_unreadable_base_directory_is_empty(self, tmp_path, monkeypatch):
        def scandir(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(os, "scandir", scandir)
        locator = SocketLocator(EnvironmentConfig(runtime_dir=str(tmp_path)))
        assert locator.locate() == []


class TestSocketPattern:
    def test_scan_agrees_with_reported_glob(self, tmp_path):
        for rel in ("a/nvim.1.0", "b/nvim.x.0", "b/nvim.1.1", "c/other.0"):
            _touch(tmp_path / rel)
        env = EnvironmentConfig(runtime_dir=str(tmp_path))
        assert SocketLocator(env).locate() == sorted(Path(p) for p in glob.glob(env.socket_pattern()))
