import os
import subprocess
from urllib.error import URLError

import pytest

from appimagify.bundler import (
    APPIMAGETOOL_URL, appimage_arch, build_appimage, fetch_appimagetool, tool_name,
)
from appimagify.errors import BundleToolError


@pytest.mark.parametrize("portage_arch, expected", [
    ("amd64", "x86_64"),
    ("x86", "i386"),
    ("arm64", "aarch64"),
    ("arm", "armhf"),
    ("riscv", "riscv64"),
    ("", "riscv64"),
])
def test_appimage_arch(portage_arch, expected):
    assert appimage_arch(portage_arch, "riscv64") == expected


def test_fetch_downloads_once(tmp_path):
    urls = []

    def fake_download(url, dest):
        urls.append(url)
        with open(dest, "wb") as f:
            f.write(b"tool")

    tool = fetch_appimagetool(tmp_path, "x86_64", download=fake_download)
    assert tool == tmp_path / "appimagetool-x86_64.AppImage"
    assert os.access(tool, os.X_OK)
    assert urls == [APPIMAGETOOL_URL.format(arch="x86_64")]

    fetch_appimagetool(tmp_path, "x86_64", download=fake_download)
    assert len(urls) == 1


def test_fetch_failure(tmp_path):
    def broken_download(url, dest):
        with open(dest, "wb") as f:
            f.write(b"partial")
        raise URLError("no network")

    with pytest.raises(BundleToolError):
        fetch_appimagetool(tmp_path, "aarch64", download=broken_download)
    assert not (tmp_path / tool_name("aarch64")).exists()


def test_build_returns_artifacts(paths):
    paths.appdir.mkdir(parents=True)
    tool = paths.workdir / tool_name("x86_64")
    tool.write_bytes(b"tool")
    calls = []

    def fake_run(cmd, env=None, cwd=None, **kwargs):
        calls.append((cmd, env, cwd))
        (paths.workdir / "JQ-x86_64.AppImage").write_bytes(b"AI")
        return subprocess.CompletedProcess(cmd, 0)

    artifacts = build_appimage(paths, tool, "x86_64", run=fake_run)
    assert artifacts == [paths.workdir / "JQ-x86_64.AppImage"]
    cmd, env, cwd = calls[0]
    assert cmd == [str(tool), "JQ.AppDir"]
    assert env == {"ARCH": "x86_64"}
    assert cwd == str(paths.workdir)


def test_build_failure_propagates_exit_code(paths):
    paths.appdir.mkdir(parents=True)

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 3)

    with pytest.raises(BundleToolError) as excinfo:
        build_appimage(paths, paths.workdir / tool_name("x86_64"), "x86_64", run=fake_run)
    assert excinfo.value.exit_code == 3
