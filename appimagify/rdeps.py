#!/usr/bin/env python3
# Unknown author and license
# Modified by Stefan Cristian B. <stefan.cristian@rogentos.ro>
# Purpose of the script:
# Check the first-level runtime dependencies of a package against the host.
# A package installed without its dependencies only runs from the AppImage
# when the host already provides them.

import sys
from dataclasses import dataclass, field

import portage
from portage.dep import Atom, use_reduce
from portage.exception import InvalidAtom, InvalidDependString


@dataclass
class RuntimeDeps:
    installed: list = field(default_factory=list)
    orphaned: list = field(default_factory=list)
    missing: list = field(default_factory=list)


def _resolve_atom(portdb, pkg_atom_str):
    try:
        return Atom(pkg_atom_str)
    except InvalidAtom:
        if "/" not in pkg_atom_str:
            matches = portdb.xmatch("match-all", pkg_atom_str)
            if matches:
                return Atom(f"={matches[-1]}")
            raise ValueError(f"Package not found: {pkg_atom_str}")
        raise


def _flatten(dep_list, out):
    for item in dep_list:
        if isinstance(item, Atom):
            out.append(item)
        elif isinstance(item, list):
            _flatten(item, out)
    return out


def check_runtime_deps(pkg_atom_str):
    """Classify the RDEPEND atoms of the best visible match of an atom.

    Installed atoms are returned as ``=category/package-version`` strings,
    orphaned ones (installed, but with no ebuild left) as bare cpvs and
    missing ones as the atom text.
    """
    try:
        portdb = portage.db[portage.root]["porttree"].dbapi
        vardb = portage.db[portage.root]["vartree"].dbapi

        pkg_atom = _resolve_atom(portdb, pkg_atom_str)
        cpv = portdb.xmatch("bestmatch-visible", pkg_atom)
        if not cpv:
            raise ValueError(f"No visible package found for: {pkg_atom}")

        rdepend_raw = portdb.aux_get(cpv, ["RDEPEND"])[0]
        result = RuntimeDeps()
        if not rdepend_raw:
            return result

        deps = use_reduce(
            rdepend_raw,
            uselist=portage.settings["USE"].split(),
            matchall=True,
            token_class=Atom,
        )

        seen = set()
        for dep_atom in _flatten(deps, []):
            if dep_atom.blocker or str(dep_atom) in seen:
                continue
            seen.add(str(dep_atom))

            installed_matches = vardb.match(dep_atom)
            if not installed_matches:
                result.missing.append(str(dep_atom))
                continue

            best_installed = portage.best(installed_matches)
            if portdb.cpv_exists(best_installed):
                result.installed.append(f"={best_installed}")
            else:
                result.orphaned.append(best_installed)
        return result

    except (InvalidAtom, InvalidDependString, KeyError, ValueError) as e:
        raise RuntimeError(f"Error processing {pkg_atom_str}: {e}") from e


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: appimagify-check-rdeps <category/package>", file=sys.stderr)
        print("Examples:", file=sys.stderr)
        print("  appimagify-check-rdeps app-misc/jq", file=sys.stderr)
        return 1

    pkg_atom = argv[0]
    try:
        deps = check_runtime_deps(pkg_atom)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if deps.missing:
        print("\nWARNING: The following runtime dependencies are not installed on this host:", file=sys.stderr)
        for atom in deps.missing:
            print(f"  {atom}", file=sys.stderr)

    if deps.orphaned:
        print("\nERROR: The following installed dependencies have no available ebuilds:", file=sys.stderr)
        for orphan in deps.orphaned:
            print(f"  {orphan}", file=sys.stderr)
        return 1

    if not deps.installed:
        print("No installed runtime dependencies found.", file=sys.stderr)
        return 0

    for dep in deps.installed:
        print(dep)
    return 0


if __name__ == "__main__":
    sys.exit(main())
