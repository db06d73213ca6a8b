"""Command line interface for appimagify."""

import argparse
import logging
import sys

from appimagify.config import InstallMode, WorkPaths, resolve_config
from appimagify.emerge import check_tools
from appimagify.errors import AppimagifyError, UsageError
from appimagify.pipeline import run_pipeline

USAGE_EXAMPLES = """\
Example: appimagify app-misc/jq jq JQ
         appimagify app-misc/jq jq JQ native    # Force -march=native
         appimagify app-misc/jq jq JQ x86-64    # Force -march=x86-64
         appimagify app-misc/jq jq JQ detect    # Auto-detect from system"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(f"{self.format_usage()}{self.prog}: error: {message}\n{USAGE_EXAMPLES}")


def _configure_logging(verbose=False):
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger("appimagify")
    logger.setLevel(level)
    logger.propagate = False

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def build_parser():
    parser = _ArgumentParser(
        prog="appimagify",
        description="Package an installed Gentoo package into a portable AppImage",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("package", nargs="?", help="Package atom, e.g. app-misc/jq")
    parser.add_argument("binary", nargs="?", help="Name of the executable to launch")
    parser.add_argument("app_name", nargs="?", metavar="AppName",
                        help="Display name (default: binary name in upper case)")
    parser.add_argument("march", nargs="?",
                        help="detect, native, x86-64, x86-64-v2, x86-64-v3, x86-64-v4 or a custom -march value")
    parser.add_argument("--install-mode", choices=[m.value for m in InstallMode], default=InstallMode.RDEPS.value,
                        help="rdeps: also install runtime dependencies into the AppDir (default); "
                             "leaf: install only the package, dependencies must be on the host")
    parser.add_argument("--sudo-command", default="sudo",
                        help="Privilege escalation command (default: sudo, empty to run emerge directly)")
    parser.add_argument("--verbose", action="store_true", help="Show every external command")
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.package or not args.binary:
        raise UsageError(f"{parser.format_usage()}{USAGE_EXAMPLES}")
    return resolve_config(
        package=args.package,
        binary=args.binary,
        app_name=args.app_name,
        march=args.march,
        install_mode=args.install_mode,
        sudo_command=args.sudo_command,
        verbose=args.verbose,
    )


def main(argv=None):
    try:
        config = parse_args(argv)
    except UsageError as e:
        print(str(e), file=sys.stderr)
        return e.exit_code

    logger = _configure_logging(verbose=config.verbose)
    paths = WorkPaths.for_config(config)
    try:
        check_tools(config)
        run_pipeline(config, paths)
    except AppimagifyError as e:
        logger.error(f"ERROR: {e}")
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
