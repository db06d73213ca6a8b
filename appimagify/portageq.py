"""Read Portage's view of configuration variables.

The equivalent of ``portageq envvar NAME``: the value comes from the merged
make.conf, profile and environment that emerge itself would see. Without a
usable Portage the value is empty and the caller falls back to its own
defaults.
"""

from appimagify.util import warn


def envvar(name):
    try:
        import portage
        from portage.exception import PortageException
    except ImportError as e:
        warn(f"Could not read {name} from Portage: {e}")
        return ""

    try:
        value = portage.settings.get(name, "")
    except (PortageException, OSError) as e:
        warn(f"Could not read {name} from Portage: {e}")
        return ""
    return value or ""
