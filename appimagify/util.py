import logging
import os
import shlex
import shutil
import subprocess

from appimagify.errors import ToolMissingError

logger = logging.getLogger("appimagify")


def log(message):
    logger.info(f"==> {message}")


def warn(message):
    logger.warning(f"Warning: {message}")


def need(command):
    if shutil.which(command) is None:
        raise ToolMissingError(f"'{command}' not found. Please install it first.")


def run(cmd, env=None, cwd=None, check=False, capture_output=False):
    """Run an external command and return the CompletedProcess.

    ``env`` entries are added on top of the current process environment.
    Output is passed through unless ``capture_output`` is set.
    """
    logger.debug(f"    $ {shlex.join(str(c) for c in cmd)}")
    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)
    return subprocess.run(
        [str(c) for c in cmd],
        env=full_env,
        cwd=cwd,
        check=check,
        capture_output=capture_output,
        text=capture_output,
    )


def privileged(sudo_command, cmd, env=None):
    """Prefix ``cmd`` with the privilege command and ``K=V`` assignments.

    The assignments go after the privilege command so they survive its
    environment reset. Without a privilege command, or when already root,
    the assignments are passed through ``env`` instead.
    """
    env = env or {}
    if sudo_command and os.geteuid() != 0:
        return [sudo_command] + [f"{k}={v}" for k, v in env.items()] + list(cmd), {}
    return list(cmd), dict(env)
