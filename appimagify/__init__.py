"""Package a single Gentoo package into a portable AppImage."""

__version__ = "0.1.0"
