"""Compiler flag policy applied before emerge runs.

emerge reads CFLAGS and CXXFLAGS from its environment, so the policy
produces overrides for both. Every mode except ``detect`` strips whatever
``-march=`` the flags already carry before appending its own.
"""

import os
import re
from dataclasses import dataclass, field

from appimagify import portageq
from appimagify.util import log, warn

FLAG_VARS = ("CFLAGS", "CXXFLAGS")
PORTABLE_LEVELS = ("x86-64", "x86-64-v2", "x86-64-v3", "x86-64-v4")

_MARCH_RE = re.compile(r"(?:^|\s)-march=(\S+)")
_STRIP_MARCH_RE = re.compile(r"(?:^|\s)-march=\S+")
_STRIP_MTUNE_RE = re.compile(r"(?:^|\s)-mtune=\S+")


@dataclass(frozen=True)
class MarchPolicy:
    mode: str
    detected: str = ""
    overrides: dict = field(default_factory=dict)
    portable: bool = True


def find_march(flags):
    match = _MARCH_RE.search(flags or "")
    return match.group(1) if match else ""


def strip_march(flags, tune=False):
    flags = _STRIP_MARCH_RE.sub("", flags or "")
    if tune:
        flags = _STRIP_MTUNE_RE.sub("", flags)
    return " ".join(flags.split())


def _append(flags, extra):
    return f"{flags} {extra}".strip()


def apply_march_policy(mode, environ=None, query=portageq.envvar):
    """Resolve the instruction-set mode into CFLAGS/CXXFLAGS overrides.

    ``environ`` defaults to the process environment; a variable missing
    there falls back to Portage's configured value so the rest of the
    host's flags are kept.
    """
    environ = os.environ if environ is None else environ

    if mode == "detect":
        detected = find_march(query("CFLAGS"))
        if detected:
            log(f"Detected current -march={detected} from system CFLAGS")
            if detected == "native":
                warn("-march=native detected. AppImage may not be portable!")
        else:
            log("No specific -march detected in system CFLAGS")
        return MarchPolicy(mode=mode, detected=detected, portable=detected != "native")

    def current(var):
        if var in environ:
            return environ[var]
        return query(var)

    if mode == "native":
        log("Forcing -march=native compilation (not portable!)")
        overrides = {
            var: _append(strip_march(current(var), tune=True), "-march=native -mtune=native")
            for var in FLAG_VARS
        }
        return MarchPolicy(mode=mode, overrides=overrides, portable=False)

    if mode in PORTABLE_LEVELS:
        log(f"Forcing -march={mode} compilation")
    else:
        log(f"Using custom -march={mode} compilation")
    overrides = {var: _append(strip_march(current(var)), f"-march={mode}") for var in FLAG_VARS}
    return MarchPolicy(mode=mode, overrides=overrides)
