import os
import shutil
import urllib.request
from pathlib import Path
from urllib.error import URLError

from appimagify.errors import BundleToolError
from appimagify.util import log, run as run_cmd

APPIMAGETOOL_URL = (
    "https://github.com/AppImage/AppImageKit/releases/download/continuous/appimagetool-{arch}.AppImage"
)

# Portage ARCH -> appimagetool ARCH
ARCH_MAP = {
    "amd64": "x86_64",
    "x86": "i386",
    "arm64": "aarch64",
    "arm": "armhf",
}


def appimage_arch(portage_arch, host_arch):
    return ARCH_MAP.get(portage_arch, host_arch)


def tool_name(host_arch):
    return f"appimagetool-{host_arch}.AppImage"


def download(url, dest, timeout=60):
    req = urllib.request.Request(url, headers={"User-Agent": "appimagify/1.0"})
    with urllib.request.urlopen(req, timeout=timeout) as response, open(dest, "wb") as f:
        shutil.copyfileobj(response, f)


def fetch_appimagetool(workdir, host_arch, download=download):
    """Return the appimagetool in ``workdir``, downloading it when absent."""
    log("Fetching appimagetool...")
    tool = Path(workdir) / tool_name(host_arch)
    if tool.is_file() and os.access(tool, os.X_OK):
        return tool

    url = APPIMAGETOOL_URL.format(arch=host_arch)
    try:
        download(url, tool)
    except (URLError, OSError) as e:
        if tool.exists():
            tool.unlink()
        raise BundleToolError(f"Could not download {url}: {e}") from e
    tool.chmod(0o755)
    return tool


def build_appimage(paths, tool, arch, run=run_cmd):
    """Run appimagetool on the AppDir and return the AppImages it produced."""
    log("Building AppImage...")
    workdir = Path(paths.workdir)
    try:
        result = run([str(tool), paths.appdir.name], env={"ARCH": arch}, cwd=str(workdir))
    except OSError as e:
        raise BundleToolError(f"Could not run {tool}: {e}") from e
    if result.returncode != 0:
        raise BundleToolError("appimagetool failed", exit_code=result.returncode)

    tool = Path(tool)
    return sorted(p for p in workdir.glob("*.AppImage") if p.name != tool.name)
