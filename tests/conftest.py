import logging
import os
import subprocess
from pathlib import Path

import pytest

from appimagify.config import InstallMode, WorkPaths, resolve_config


class FakeRunner:
    """Stands in for util.run; records commands and fakes the tools."""

    def __init__(self, on_emerge=None, emerge_rc=0, tool_rc=0, convert_rc=1):
        self.calls = []
        self.on_emerge = on_emerge
        self.emerge_rc = emerge_rc
        self.tool_rc = tool_rc
        self.convert_rc = convert_rc

    def __call__(self, cmd, env=None, cwd=None, check=False, capture_output=False):
        cmd = [str(c) for c in cmd]
        self.calls.append((cmd, env, cwd))
        name = os.path.basename(cmd[0])
        rc = 0
        if name == "emerge":
            if self.on_emerge and self.emerge_rc == 0:
                root = next(a.split("=", 1)[1] for a in cmd if a.startswith("--root="))
                self.on_emerge(Path(root))
            rc = self.emerge_rc
        elif name == "convert":
            rc = self.convert_rc
        elif name.startswith("appimagetool-"):
            if self.tool_rc == 0:
                (Path(cwd) / "JQ-x86_64.AppImage").write_bytes(b"AI")
            rc = self.tool_rc
        return subprocess.CompletedProcess(cmd, rc, "", "")

    def commands(self, name):
        return [c for c, _env, _cwd in self.calls if os.path.basename(c[0]) == name]


def make_executable(path, content=b"\x7fELF"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    path.chmod(0o755)
    return path


@pytest.fixture
def jq_config():
    return resolve_config("app-misc/jq", "jq", "JQ", "x86-64", host_arch="x86_64", sudo_command="")


@pytest.fixture
def leaf_config():
    return resolve_config(
        "app-misc/jq", "jq", "JQ", "x86-64",
        host_arch="x86_64", install_mode=InstallMode.LEAF, sudo_command="",
    )


@pytest.fixture
def paths(tmp_path, jq_config):
    return WorkPaths.for_config(jq_config, base=tmp_path)


@pytest.fixture(autouse=True)
def _propagating_logger():
    # cli.main() detaches the logger from the root; caplog needs it attached
    logger = logging.getLogger("appimagify")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
