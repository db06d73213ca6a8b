import os
import shutil
from pathlib import Path

from appimagify.config import LAUNCHER_LIB_DIRS
from appimagify.util import log, run as run_cmd

APPRUN_TEMPLATE = """#!/bin/sh
# Use $APPDIR set by AppImage runtime
HERE="$(dirname "$(readlink -f "$0")")"
export APPDIR="$HERE"
# Prefer our libs
export LD_LIBRARY_PATH="__LIBPATH__:$LD_LIBRARY_PATH"
# Add our bin first
export PATH="$APPDIR/usr/bin:$PATH"
exec "$APPDIR/usr/bin/__BIN__" "$@"
"""

DESKTOP_TEMPLATE = """[Desktop Entry]
Name={name}
Exec={exec_name}
Icon={name}
Type=Application
Categories=Utility;
Terminal=false
"""

ICON_SIZE = 256


def write_apprun(appdir, binary_name, lib_dirs=LAUNCHER_LIB_DIRS):
    log("Creating AppRun...")
    apprun = Path(appdir) / "AppRun"
    libpath = ":".join(f"$APPDIR/{d}" for d in lib_dirs)
    apprun.write_text(APPRUN_TEMPLATE.replace("__LIBPATH__", libpath).replace("__BIN__", binary_name))
    apprun.chmod(0o755)
    return apprun


def write_desktop_entry(appdir, app_name, binary_name):
    log("Creating desktop file and icon...")
    appdir = Path(appdir)
    applications = appdir / "usr" / "share" / "applications"
    applications.mkdir(parents=True, exist_ok=True)

    desktop = appdir / f"{app_name}.desktop"
    desktop.write_text(DESKTOP_TEMPLATE.format(name=app_name, exec_name=binary_name))
    shutil.copyfile(desktop, applications / desktop.name)
    return desktop


def write_icon(appdir, app_name, run=run_cmd):
    """Render a placeholder icon with ImageMagick. Failures are ignored."""
    appdir = Path(appdir)
    (appdir / "usr" / "share" / "icons" / "hicolor" / f"{ICON_SIZE}x{ICON_SIZE}" / "apps").mkdir(
        parents=True, exist_ok=True
    )
    icon = appdir / f"{app_name}.png"
    cmd = [
        "convert", "-size", f"{ICON_SIZE}x{ICON_SIZE}", "xc:white",
        "-gravity", "center", "-pointsize", "64",
        "-draw", f"text 0,0 '{app_name[:2]}'",
        str(icon),
    ]
    try:
        run(cmd, capture_output=True)
    except OSError:
        pass
    return icon if icon.exists() else None


def generate_launcher(appdir, app_name, binary_path, lib_dirs=LAUNCHER_LIB_DIRS, run=run_cmd):
    """Write AppRun, the desktop entry and the icon for the located binary."""
    binary_name = os.path.basename(binary_path)
    write_apprun(appdir, binary_name, lib_dirs)
    write_desktop_entry(appdir, app_name, binary_name)
    write_icon(appdir, app_name, run=run)
    return binary_name
