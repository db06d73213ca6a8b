import os
import platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# AppDir directories the launcher puts on LD_LIBRARY_PATH
LAUNCHER_LIB_DIRS = ("usr/lib", "usr/lib64")


class InstallMode(Enum):
    """How emerge materializes the package into the staging root.

    ``rdeps`` lets Portage pull runtime dependencies into the staging root
    and leaves the installed layout as is. ``leaf`` installs only the
    requested package, expects its runtime dependencies on the host, and
    hoists the nested ``usr`` tree afterwards.
    """

    RDEPS = "rdeps"
    LEAF = "leaf"

    @property
    def emerge_flag(self):
        if self is InstallMode.LEAF:
            return "--nodeps"
        return "--root-deps=rdeps"

    @property
    def hoist(self):
        return self is InstallMode.LEAF

    @property
    def lib_dirs(self):
        # rdeps leaves Portage's own libraries under usr/usr
        if self is InstallMode.RDEPS:
            return LAUNCHER_LIB_DIRS + ("usr/usr/lib", "usr/usr/lib64")
        return LAUNCHER_LIB_DIRS


def default_march(host_arch):
    if host_arch == "x86_64":
        return "x86-64"
    return "detect"


@dataclass(frozen=True)
class InvocationConfig:
    package: str
    binary: str
    app_name: str
    march: str
    host_arch: str
    install_mode: InstallMode = InstallMode.RDEPS
    sudo_command: str = "sudo"
    verbose: bool = False


def resolve_config(package, binary, app_name=None, march=None, host_arch=None,
                   install_mode=InstallMode.RDEPS, sudo_command="sudo", verbose=False):
    """Fill in defaults and return the immutable config for one run."""
    host_arch = host_arch or platform.machine()
    return InvocationConfig(
        package=package,
        binary=binary,
        app_name=app_name or binary.upper(),
        march=march or default_march(host_arch),
        host_arch=host_arch,
        install_mode=InstallMode(install_mode),
        sudo_command=sudo_command,
        verbose=verbose,
    )


@dataclass(frozen=True)
class WorkPaths:
    workdir: Path
    appdir: Path

    @property
    def staging(self):
        return self.appdir / "usr"

    @classmethod
    def for_config(cls, config, base=None):
        workdir = Path(base or os.getcwd()) / f"_appimg_{config.binary}"
        return cls(workdir=workdir, appdir=workdir / f"{config.app_name}.AppDir")
