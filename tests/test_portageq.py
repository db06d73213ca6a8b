import sys
import types

from appimagify import portageq


def fake_portage(monkeypatch, settings):
    portage = types.ModuleType("portage")
    exception = types.ModuleType("portage.exception")

    class PortageException(Exception):
        pass

    exception.PortageException = PortageException
    portage.exception = exception
    portage.settings = settings
    monkeypatch.setitem(sys.modules, "portage", portage)
    monkeypatch.setitem(sys.modules, "portage.exception", exception)
    return PortageException


def test_envvar_reads_portage_settings(monkeypatch):
    fake_portage(monkeypatch, {"CFLAGS": "-O2 -pipe", "ARCH": "amd64"})
    assert portageq.envvar("CFLAGS") == "-O2 -pipe"
    assert portageq.envvar("ARCH") == "amd64"
    assert portageq.envvar("CXXFLAGS") == ""


def test_envvar_without_portage_is_empty(monkeypatch, caplog):
    monkeypatch.setitem(sys.modules, "portage", None)
    assert portageq.envvar("CFLAGS") == ""
    assert "Could not read CFLAGS from Portage" in caplog.text


def test_envvar_on_broken_configuration_is_empty(monkeypatch, caplog):
    class BrokenSettings:
        def get(self, name, default=None):
            raise error("make.profile is not a symlink")

    error = fake_portage(monkeypatch, BrokenSettings())
    assert portageq.envvar("ARCH") == ""
    assert "make.profile" in caplog.text
