"""Tests for the nob command line."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from nob import __main__ as cli
from nob import __version__
from nob.config.schemas import Mode
from nob.config.store import Credentials, CredentialStore


def inputs(*values):
    it = iter(values)
    return lambda prompt="": next(it)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in list(os.environ):
        if key.startswith("NOB_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestParser:
    def test_verb_and_options(self) -> None:
        args = cli.create_parser().parse_args(["--log-level", "DEBUG", "config", "show"])
        assert args.command == "config"
        assert args.subcommand == "show"
        assert args.log_level == "DEBUG"

    def test_version_flag(self, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Tests for verb dispatch."""

    def test_unknown_command(self, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["frobnicate"]) == 1
        out = capsys.readouterr().out
        assert "Unknown command: frobnicate" in out
        assert "Run 'nob help' for usage information." in out

    def test_version(self, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["version"]) == 0
        assert f"nob v{__version__}" in capsys.readouterr().out

    def test_help(self, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["help"]) == 0
        assert "set-api-key" in capsys.readouterr().out

    def test_unknown_config_subcommand(self, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["config", "frobnicate"]) == 1
        assert "Usage: nob config" in capsys.readouterr().err

    def test_exit_starts_shell(self) -> None:
        """`nob exit` is accepted and starts the terminal like a bare `nob`."""
        with patch.object(cli, "cmd_interactive_shell", return_value=0) as start:
            assert cli.main(["exit"]) == 0
        start.assert_called_once_with(None, None)

    @pytest.mark.parametrize(
        "argv,target",
        [
            (["config"], "cmd_set_api_key"),
            (["config-show"], "cmd_show_config"),
            (["config-remove"], "cmd_remove_api_key"),
        ],
    )
    def test_legacy_aliases(self, argv: list, target: str) -> None:
        with patch.object(cli, target, return_value=0) as handler:
            assert cli.main(argv) == 0
        handler.assert_called_once()

    @pytest.mark.parametrize("verb,mode", [("on", Mode.ON), ("off", Mode.OFF)])
    def test_mode_verbs_start_shell(self, verb: str, mode: Mode) -> None:
        with patch.object(cli, "cmd_interactive_shell", return_value=0) as start:
            assert cli.main([verb]) == 0
        start.assert_called_once_with(None, None, mode)

    def test_no_verb_starts_shell(self) -> None:
        with patch.object(cli, "cmd_interactive_shell", return_value=0) as start:
            cli.main([])
        start.assert_called_once_with(None, None)


class TestApiKeyCommands:
    """Tests for set-api-key and remove-api-key."""

    def test_set_api_key(self, credential_store: CredentialStore, capsys: pytest.CaptureFixture) -> None:
        code = cli.cmd_set_api_key(
            credential_store,
            input_func=inputs("", "acct-123"),
            secret_func=inputs("tok-456"),
        )

        assert code == 0
        assert credential_store.load() == Credentials("acct-123", "tok-456")
        out = capsys.readouterr().out
        assert "Account ID is required" in out
        assert "tok-456" not in out

    def test_set_api_key_cancelled(self, credential_store: CredentialStore) -> None:
        def cancelled(prompt: str = "") -> str:
            raise KeyboardInterrupt

        assert cli.cmd_set_api_key(credential_store, input_func=cancelled) == 1
        assert credential_store.load() == Credentials()

    def test_remove_api_key(self, credential_store: CredentialStore) -> None:
        credential_store.save(Credentials("acct", "tok"))

        assert cli.cmd_remove_api_key(credential_store, input_func=inputs("y")) == 0
        assert credential_store.load() == Credentials()

    def test_remove_api_key_declined(self, credential_store: CredentialStore) -> None:
        credential_store.save(Credentials("acct", "tok"))

        assert cli.cmd_remove_api_key(credential_store, input_func=inputs("")) == 0
        assert credential_store.load().has_personal_key is True

    def test_remove_without_key(self, credential_store: CredentialStore, capsys: pytest.CaptureFixture) -> None:
        assert cli.cmd_remove_api_key(credential_store, input_func=inputs()) == 0
        assert "No API key configured" in capsys.readouterr().out


class TestConfigCommands:
    """Tests for show-config and config show/init."""

    def test_show_config(self, credential_store: CredentialStore, capsys: pytest.CaptureFixture) -> None:
        credential_store.save(Credentials("abcdefghijk", "secret"))

        assert cli.cmd_show_config(None, credential_store) == 0
        out = capsys.readouterr().out
        assert "Account ID: abcdefgh..." in out
        assert "secret" not in out

    def test_config_show_masks(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture,
    ) -> None:
        monkeypatch.setenv("NOB_CLOUDFLARE_API_TOKEN", "very-secret")
        assert cli.cmd_config_show(None) == 0
        out = capsys.readouterr().out
        assert "very-secret" not in out
        assert "max_steps" in out

    def test_config_init(self, tmp_path: Path) -> None:
        target = tmp_path / "conf" / "config.yaml"
        assert cli.main(["--config", str(target), "config", "init"]) == 0
        assert target.exists()

    def test_config_show_missing_file(self, tmp_path: Path) -> None:
        assert cli.cmd_config_show(tmp_path / "missing.yaml") == 1


class TestInteractiveShell:
    """Tests for cmd_interactive_shell wiring."""

    def test_starts_wrapper_with_controller(self, tmp_path: Path, temp_config_file: Path) -> None:
        shell = MagicMock()
        with patch("nob.shell.wrapper.ShellWrapper", return_value=shell) as wrapper_cls, \
                patch("nob.agent.factory.create_controller") as create_controller, \
                patch.object(cli, "setup_logging"):
            code = cli.cmd_interactive_shell(temp_config_file, "INFO", Mode.ON)

        assert code == 0
        session = wrapper_cls.call_args.kwargs["session"]
        assert session.mode == Mode.ON
        create_controller.assert_called_once()
        shell.set_controller.assert_called_once_with(create_controller.return_value)
        shell.run.assert_called_once()

    def test_controller_failure_still_starts(self, temp_config_file: Path) -> None:
        shell = MagicMock()
        with patch("nob.shell.wrapper.ShellWrapper", return_value=shell), \
                patch("nob.agent.factory.create_controller", side_effect=ValueError("no backend")), \
                patch.object(cli, "setup_logging"):
            code = cli.cmd_interactive_shell(temp_config_file, None)

        assert code == 0
        shell.set_controller.assert_not_called()
        shell.run.assert_called_once()
