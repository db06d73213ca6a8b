import os
import shutil

from appimagify import bundler, emerge, launcher, layout, libs, portageq
from appimagify.march import apply_march_policy
from appimagify.util import log, logger, run as run_cmd, warn


def check_host_rdeps(package):
    from appimagify.rdeps import check_runtime_deps

    return check_runtime_deps(package)


def prepare_workdir(paths):
    shutil.rmtree(paths.workdir, ignore_errors=True)
    paths.staging.mkdir(parents=True, exist_ok=True)


def _warn_missing_rdeps(package, rdeps_check):
    try:
        deps = rdeps_check(package)
    except (RuntimeError, ImportError) as e:
        warn(f"Failed to check runtime dependencies for {package}: {e}")
        return
    if deps.missing:
        warn(f"Runtime dependencies of {package} missing on this host: {' '.join(deps.missing)}")
        logger.warning("    The AppImage will not bundle them; install them or use --install-mode=rdeps")
    if deps.orphaned:
        warn(f"Installed dependencies without ebuilds: {' '.join(deps.orphaned)}")


def run_pipeline(config, paths, run=run_cmd, query=portageq.envvar, lister=None,
                 download=bundler.download, rdeps_check=check_host_rdeps, environ=None):
    """Build the AppImage for ``config`` and return the produced files.

    The external collaborators (command runner, Portage query, library
    lister, downloader, runtime dependency check) are parameters so each
    can be replaced.
    """
    if lister is None:
        lister = libs.find_lister()

    prepare_workdir(paths)

    policy = apply_march_policy(config.march, environ=environ, query=query)

    if config.install_mode.hoist:
        _warn_missing_rdeps(config.package, rdeps_check)

    emerge.materialize(config, paths, policy.overrides, run=run)

    if config.install_mode.hoist:
        layout.normalize_layout(paths.staging)

    binary = layout.find_binary(paths.staging, config.binary)
    logger.info(f"    Main binary: {binary}")

    launcher.generate_launcher(paths.appdir, config.app_name, binary,
                                lib_dirs=config.install_mode.lib_dirs, run=run)

    libs.audit_libraries(binary, paths.appdir, lister, lib_dirs=config.install_mode.lib_dirs)

    layout.link_into_bin(paths.appdir, binary)

    tool = bundler.fetch_appimagetool(paths.workdir, config.host_arch, download=download)
    arch = bundler.appimage_arch(query("ARCH"), config.host_arch)
    artifacts = bundler.build_appimage(paths, tool, arch, run=run)

    log("Done.")
    for artifact in artifacts:
        logger.info(os.fspath(artifact))
    return artifacts
