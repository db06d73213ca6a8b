import os
import shutil
from pathlib import Path

from appimagify.errors import BinaryNotFoundError
from appimagify.util import log

# Top-level directories of the staging root that belong inside usr/ once
# the nested usr/ tree has been hoisted.
MERGED_DIRS = ("bin", "sbin", "lib", "lib64")


def _merge_tree(src, dst):
    """Move entries of ``src`` into ``dst`` without replacing existing ones."""
    dst.mkdir(parents=True, exist_ok=True)
    for entry in sorted(src.iterdir()):
        target = dst / entry.name
        if entry.is_dir() and not entry.is_symlink() and target.is_dir() and not target.is_symlink():
            _merge_tree(entry, target)
        elif not target.exists() and not target.is_symlink():
            shutil.move(str(entry), str(target))


def normalize_layout(staging):
    """Hoist ``staging/usr`` up one level so files sit at ``staging/bin``,
    ``staging/lib64`` and so on.

    emerge with ``--root=<AppDir>/usr`` installs into ``<AppDir>/usr/usr``.
    The old root is moved aside, its ``usr`` becomes the new root, loose
    ``bin``/``sbin``/``lib``/``lib64`` directories are merged in and the
    rest of the old root is dropped. Returns False, doing nothing, when
    there is no nested ``usr``.
    """
    staging = Path(staging)
    nested = staging / "usr"
    if not nested.is_dir() or nested.is_symlink():
        return False

    log("Hoisting installed usr/ tree into the AppDir layout...")
    aside = staging.with_name(staging.name + ".staging")
    if aside.exists():
        shutil.rmtree(aside)
    staging.rename(aside)
    (aside / "usr").rename(staging)

    for name in MERGED_DIRS:
        leftover = aside / name
        if leftover.is_dir() and not leftover.is_symlink():
            _merge_tree(leftover, staging / name)

    shutil.rmtree(aside)
    return True


def find_binary(root, name):
    """Return the first regular executable file called ``name`` under ``root``.

    Paths are visited in sorted order; symlinks are not considered.
    """
    root = Path(root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if name in filenames:
            candidate = Path(dirpath) / name
            if candidate.is_symlink() or not candidate.is_file():
                continue
            if candidate.stat().st_mode & 0o100:
                return candidate
    raise BinaryNotFoundError(name, root)


def link_into_bin(appdir, binary):
    """Make sure ``usr/bin/<name>`` exists for the launcher to exec."""
    bin_dir = Path(appdir) / "usr" / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    binary = Path(binary)
    link = bin_dir / binary.name
    if binary.parent == bin_dir:
        return link

    log("Ensuring binary is in usr/bin...")
    if link.is_symlink() or link.exists():
        link.unlink()
    link.symlink_to(os.path.relpath(binary, bin_dir))
    return link
