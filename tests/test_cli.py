import pytest

from appimagify import cli
from appimagify.config import InstallMode
from appimagify.errors import BinaryNotFoundError, BundleToolError, UsageError


@pytest.fixture
def no_tools(monkeypatch):
    monkeypatch.setattr(cli, "check_tools", lambda config: None)


def test_defaults(monkeypatch):
    monkeypatch.setattr("platform.machine", lambda: "x86_64")
    config = cli.parse_args(["app-misc/jq", "jq"])
    assert config.app_name == "JQ"
    assert config.march == "x86-64"
    assert config.install_mode is InstallMode.RDEPS
    assert config.sudo_command == "sudo"


def test_default_march_off_x86(monkeypatch):
    monkeypatch.setattr("platform.machine", lambda: "aarch64")
    assert cli.parse_args(["app-misc/jq", "jq"]).march == "detect"


def test_all_positionals():
    config = cli.parse_args(["app-misc/jq", "jq", "Jq Tool", "native", "--install-mode", "leaf"])
    assert config.app_name == "Jq Tool"
    assert config.march == "native"
    assert config.install_mode is InstallMode.LEAF


def test_missing_binary_name_is_usage_error():
    with pytest.raises(UsageError):
        cli.parse_args(["app-misc/jq"])


def test_main_usage_exit_code(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert cli.main(["app-misc/jq"]) == 1
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "app-misc/jq jq JQ" in err
    assert list(tmp_path.iterdir()) == []


def test_main_no_arguments(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cli.main([]) == 1


def test_main_unknown_option_is_usage_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cli.main(["app-misc/jq", "jq", "--install-mode", "bogus"]) == 1


def test_main_binary_not_found(tmp_path, monkeypatch, no_tools, capsys):
    monkeypatch.chdir(tmp_path)

    def missing(config, paths):
        raise BinaryNotFoundError("jq", paths.staging)

    monkeypatch.setattr(cli, "run_pipeline", missing)
    assert cli.main(["app-misc/jq", "jq"]) == 2
    assert "Could not find jq" in capsys.readouterr().err


def test_main_propagates_tool_exit_code(tmp_path, monkeypatch, no_tools):
    monkeypatch.chdir(tmp_path)

    def broken(config, paths):
        raise BundleToolError("appimagetool failed", exit_code=127)

    monkeypatch.setattr(cli, "run_pipeline", broken)
    assert cli.main(["app-misc/jq", "jq"]) == 127


def test_main_success(tmp_path, monkeypatch, no_tools):
    monkeypatch.chdir(tmp_path)
    seen = {}

    def ok(config, paths):
        seen["config"] = config
        seen["paths"] = paths
        return []

    monkeypatch.setattr(cli, "run_pipeline", ok)
    assert cli.main(["app-misc/jq", "jq", "JQ", "x86-64", "--sudo-command", ""]) == 0
    assert seen["config"].sudo_command == ""
    assert seen["paths"].appdir == tmp_path / "_appimg_jq" / "JQ.AppDir"
