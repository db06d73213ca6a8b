"""Shared library auditing for the AppDir.

The binary's transitive dependencies are listed by an external tool, and
each library is either left to the target system, skipped because the
bundle already has it, or copied into ``usr/lib64`` / ``usr/lib``.
Everything here is best effort: a library that cannot be copied is
reported and the run goes on.
"""

import fnmatch
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from appimagify.config import LAUNCHER_LIB_DIRS
from appimagify.util import log, logger, run as run_cmd, warn

# Libraries every compatible target already has. Bundling them risks ABI
# mismatches with the host's dynamic linker.
DENYLIST = (
    "ld-linux*",
    "ld64.so*",
    "libc.so.*",
    "libm.so.*",
    "libdl.so.*",
    "libpthread.so.*",
    "librt.so.*",
    "libnsl.so.*",
    "libresolv.so.*",
    "libcrypt.so.*",
    "linux-vdso.so*",
    "linux-gate.so*",
    "libasound_module_*",
)

# Host library directory -> AppDir library directory
LIB_DIR_MAP = {
    "lib64": "usr/lib64",
    "usr/lib64": "usr/lib64",
    "lib": "usr/lib",
    "usr/lib": "usr/lib",
}
FALLBACK_LIB_DIR = "usr/lib"


class Action(Enum):
    EXCLUDED = "excluded"
    PRESENT = "present"
    BUNDLE = "bundle"
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class LibraryEntry:
    source: Path
    action: Action
    target_dir: Path = None
    real_path: Path = None
    link_name: str = None
    note: str = ""


class DependencyLister:
    """Lists the shared libraries a binary needs, transitively."""

    available = False

    def list_dependencies(self, path):
        return []


class NullLister(DependencyLister):
    pass


class LddtreeLister(DependencyLister):
    """``lddtree -l`` from app-misc/pax-utils."""

    available = True

    def __init__(self, command="lddtree", run=run_cmd):
        self.command = command
        self.run = run

    def list_dependencies(self, path):
        result = self.run([self.command, "-l", str(path)], capture_output=True)
        if result.returncode != 0:
            warn(f"{self.command} failed for {path}: {(result.stderr or '').strip()}")
            return []
        return sorted(set(result.stdout.split()))


def find_lister():
    if shutil.which("lddtree"):
        return LddtreeLister()
    return NullLister()


def is_denied(name):
    return any(fnmatch.fnmatch(name, pattern) for pattern in DENYLIST)


def target_dir_for(source, appdir, sysroot="/"):
    """Map a host library's directory to its place in the AppDir.

    Returns ``(directory, note)``; the note is set when the library comes
    from a non-standard location and is being relocated.
    """
    parent = Path(os.path.dirname(source))
    try:
        rel = parent.relative_to(sysroot).as_posix()
    except ValueError:
        rel = None
    if rel in LIB_DIR_MAP:
        return Path(appdir) / LIB_DIR_MAP[rel], ""
    return Path(appdir) / FALLBACK_LIB_DIR, f"relocating from non-standard {parent}"


def _index_names(appdir, lib_dirs):
    """Names of the files in the directories the launcher searches."""
    names = set()
    for sub in lib_dirs:
        d = appdir / sub
        if d.is_dir():
            names.update(p.name for p in d.iterdir() if not p.is_dir())
    return names


def _bundle(entry):
    entry.target_dir.mkdir(parents=True, exist_ok=True)
    if entry.real_path is not None:
        real_target = entry.target_dir / entry.real_path.name
        if not real_target.exists():
            shutil.copy2(entry.real_path, real_target)
        if entry.link_name == entry.real_path.name:
            return
        link = entry.target_dir / entry.link_name
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(entry.real_path.name)
    else:
        shutil.copy2(entry.source, entry.target_dir / entry.source.name)


def audit_libraries(binary, appdir, lister, sysroot="/", lib_dirs=LAUNCHER_LIB_DIRS):
    """Copy the binary's non-system library dependencies into ``appdir``.

    A library counts as already bundled only when a file of that name sits
    in one of ``lib_dirs``, the AppDir directories the launcher puts on
    LD_LIBRARY_PATH. Returns one ``LibraryEntry`` per listed path.
    """
    log("Auditing shared libraries...")
    if not lister.available:
        warn("Install pax-utils for lddtree to auto-bundle libs: emerge -v app-misc/pax-utils")
        return []

    appdir = Path(appdir)
    usr = appdir / "usr"
    for sub in ("lib", "lib64"):
        (usr / sub).mkdir(parents=True, exist_ok=True)
    present = _index_names(appdir, lib_dirs)
    binary = Path(binary)

    entries = []
    for listed in lister.list_dependencies(binary):
        source = Path(listed)
        if source == binary or source.name == binary.name:
            continue
        if not source.exists():
            logger.debug(f"    Skipping {source}: not on disk")
            entries.append(LibraryEntry(source, Action.MISSING))
            continue
        if is_denied(source.name):
            entries.append(LibraryEntry(source, Action.EXCLUDED))
            continue
        if source.name in present:
            logger.debug(f"    Already bundled: {source.name}")
            entries.append(LibraryEntry(source, Action.PRESENT))
            continue

        target_dir, note = target_dir_for(source, appdir, sysroot)
        entry = LibraryEntry(source, Action.BUNDLE, target_dir=target_dir, note=note)
        if source.is_symlink():
            entry.real_path = Path(os.path.realpath(source))
            entry.link_name = source.name
        if note:
            logger.info(f"    Note: {source.name}: {note}")
        try:
            _bundle(entry)
        except OSError as e:
            warn(f"Could not bundle {source}: {e}")
            entry.action = Action.FAILED
            entries.append(entry)
            continue

        logger.info(f"    Bundling: {source.name}")
        present.add(source.name)
        if entry.real_path is not None and entry.link_name != entry.real_path.name:
            present.add(entry.real_path.name)
            logger.info(f"    Creating symlink: {entry.link_name} -> {entry.real_path.name}")
        entries.append(entry)

    bundled = sum(1 for e in entries if e.action is Action.BUNDLE)
    if bundled:
        log(f"Bundled {bundled} libraries")
    else:
        logger.info("  No additional libraries needed")
    return entries
