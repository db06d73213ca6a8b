import os

from appimagify.errors import InstallError, ToolMissingError
from appimagify.util import log, privileged, run as run_cmd, need

EMERGE_OPTS = ["-v", "--oneshot", "--buildpkg=n", "--binpkg-respect-use=y"]


def emerge_command(config, staging, overrides=None):
    """Build the emerge invocation that installs the package into ``staging``.

    Returns ``(cmd, env)``; ``env`` is only non-empty when no privilege
    command is in use.
    """
    emerge_env = {"ROOT": str(staging)}
    emerge_env.update(overrides or {})
    cmd = ["emerge"] + EMERGE_OPTS + [
        f"--root={staging}",
        config.install_mode.emerge_flag,
        config.package,
    ]
    return privileged(config.sudo_command, cmd, emerge_env)


def materialize(config, paths, overrides=None, run=run_cmd):
    staging = paths.staging
    staging.mkdir(parents=True, exist_ok=True)

    if config.install_mode.hoist:
        log(f"Installing {config.package} into {staging} via Portage (package only, no dependencies)...")
    else:
        log(f"Installing {config.package} into {staging} via Portage...")

    cmd, env = emerge_command(config, staging, overrides)
    try:
        result = run(cmd, env=env)
    except FileNotFoundError as e:
        raise InstallError(f"Could not run emerge: {e}") from e
    if result.returncode != 0:
        raise InstallError(
            f"emerge failed for {config.package}. Check the emerge output above for details.",
            exit_code=result.returncode,
        )

    # emerge ran privileged; later steps write into the tree as the user
    if config.sudo_command and os.geteuid() != 0:
        chown = [config.sudo_command, "chown", "-R", f"{os.getuid()}:{os.getgid()}", str(paths.appdir)]
        if run(chown).returncode != 0:
            raise InstallError(f"Could not take ownership of {paths.appdir}")


def check_tools(config):
    if config.sudo_command and os.geteuid() != 0:
        need(config.sudo_command)
    try:
        need("emerge")
    except ToolMissingError as e:
        raise InstallError(str(e)) from e
