"""
Tests for the hostaudit CLI facade, handlers and entry point.
"""

import argparse
import os
from unittest.mock import patch

import pytest

from hostaudit.cli import EXIT_CANCELLED, AuditorCLI, build_parser
from hostaudit.cli.handlers.firewall import FirewallHandler
from hostaudit.cli.handlers.integrity import IntegrityHandler
from hostaudit.cli.handlers.packages import PackageHandler
from hostaudit.cli.handlers.permissions import LastWordPathCompleter, PermissionHandler
from hostaudit.cli_main import main, setup_logging
from hostaudit.exceptions import (
    ConfigError,
    EnvironmentFatalError,
    InvalidInputError,
    MissingDirectoryError,
    OperationCancelled,
)
from hostaudit.integrity import IntegrityResult


class TestParser:
    def test_no_command_runs_menu(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_permissions_arguments(self):
        args = build_parser().parse_args(["--verbose", "permissions", "/etc", "/usr/bin", "--strict"])
        assert args.verbose is True
        assert args.directories == ["/etc", "/usr/bin"]
        assert args.strict is True

    def test_firewall_arguments(self):
        args = build_parser().parse_args(["firewall", "--ports", "22", "80", "--no-rate-limit", "--logging", "low"])
        assert args.ports == ["22", "80"]
        assert args.rate_limit is False
        assert args.reset is None


class TestAuditorCLI:
    def test_menu_exit(self, audit_config):
        cli = AuditorCLI(audit_config)
        with patch("hostaudit.cli.Prompt.ask", return_value="6"):
            assert cli.run_menu(pause=False) == 0

    def test_menu_runs_selected_task(self, audit_config):
        cli = AuditorCLI(audit_config)
        with patch("hostaudit.cli.Prompt.ask", side_effect=["4", "6"]):
            with patch.object(cli._user_handler, "run", return_value=0) as run:
                assert cli.run_menu(pause=False) == 0
        run.assert_called_once_with(None)

    def test_menu_survives_failed_task(self, audit_config):
        cli = AuditorCLI(audit_config)
        with patch("hostaudit.cli.Prompt.ask", side_effect=["3", "3", "6"]):
            with patch.object(cli._permission_handler, "run", side_effect=MissingDirectoryError(["/nope"])) as run:
                assert cli.run_menu(pause=False) == 0
        assert run.call_count == 2

    def test_menu_stops_on_environment_failure(self, audit_config):
        cli = AuditorCLI(audit_config)
        with patch("hostaudit.cli.Prompt.ask", return_value="1"):
            with patch.object(cli._package_handler, "run", side_effect=EnvironmentFatalError("Unable to detect OS")):
                with pytest.raises(EnvironmentFatalError):
                    cli.run_menu(pause=False)

    @pytest.mark.parametrize(
        "error,code",
        [
            (MissingDirectoryError(["/nope"]), 1),
            (OperationCancelled("Scanning cancelled"), EXIT_CANCELLED),
            (KeyboardInterrupt(), EXIT_CANCELLED),
            (InvalidInputError("Invalid port: x"), 2),
        ],
    )
    def test_operation_errors_become_exit_codes(self, audit_config, error, code):
        cli = AuditorCLI(audit_config)
        with patch.object(cli._firewall_handler, "run", side_effect=error):
            assert cli.firewall(argparse.Namespace()) == code

    def test_dispatch(self, audit_config):
        cli = AuditorCLI(audit_config)
        with patch.object(cli._integrity_handler, "run", return_value=0) as run:
            args = argparse.Namespace(command="integrity")
            assert cli.dispatch(args) == 0
        run.assert_called_once_with(args)


class TestPermissionHandler:
    def test_scans_given_directories(self, audit_config, tmp_path):
        target = tmp_path / "srv"
        target.mkdir()
        (target / "open").write_text("x")
        os.chmod(target / "open", 0o777)

        args = argparse.Namespace(directories=[str(target)], strict=False)
        assert PermissionHandler(audit_config).run(args) == 0
        assert audit_config.reports.path_for("permissions_report.txt").exists()

    def test_warns_about_skipped_paths(self, audit_config, tmp_path, monkeypatch, capsys):
        target = tmp_path / "srv"
        locked = target / "private"
        locked.mkdir(parents=True)
        real_scandir = os.scandir

        def fake_scandir(path="."):
            if os.fspath(path) == str(locked):
                raise PermissionError(13, "Permission denied", path)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)
        args = argparse.Namespace(directories=[str(target)], strict=False)
        assert PermissionHandler(audit_config).run(args) == 0

        out = capsys.readouterr().out
        assert "1 unreadable path(s) were skipped" in out
        saved = audit_config.reports.path_for("permissions_report.txt").read_text()
        assert f"Skipped (unreadable):\n{locked}\n" in saved

    def test_prompts_for_directories(self, audit_config, tmp_path):
        handler = PermissionHandler(audit_config)
        with patch("hostaudit.cli.handlers.permissions.prompt", return_value=f" {tmp_path}  {tmp_path} "):
            assert handler.ask_directories() == [str(tmp_path), str(tmp_path)]

    def test_empty_prompt(self, audit_config):
        handler = PermissionHandler(audit_config)
        with patch("hostaudit.cli.handlers.permissions.prompt", return_value="   "):
            with pytest.raises(InvalidInputError):
                handler.ask_directories()

    def test_completer_uses_last_word(self, tmp_path):
        (tmp_path / "alpha").mkdir()
        from prompt_toolkit.completion import CompleteEvent
        from prompt_toolkit.document import Document

        text = f"/etc {tmp_path}/al"
        completions = list(LastWordPathCompleter().get_completions(Document(text, len(text)), CompleteEvent()))
        assert [c.text for c in completions] == ["pha"]


class TestUserHandler:
    def test_reports_new_accounts(self, audit_config, capsys):
        cli = AuditorCLI(audit_config)
        assert cli.users() == 0
        with open(audit_config.accounts.passwd_file, "a") as f:
            f.write("eve:x:1001:1001::/home/eve:/bin/sh\n")

        assert cli.users() == 0
        out = capsys.readouterr().out
        assert "Security issues detected!" in out
        assert "eve:x:1001" in out

    def test_no_issues(self, audit_config, capsys):
        cli = AuditorCLI(audit_config)
        cli.users()
        capsys.readouterr()
        cli.users()
        assert "No new issues detected since last check." in capsys.readouterr().out

    def test_missing_shadow_is_operation_failure(self, audit_config, tmp_path):
        (tmp_path / "shadow").unlink()
        assert AuditorCLI(audit_config).users() == 1


class TestPackageHandler:
    @patch("hostaudit.cli.handlers.packages.detect_package_manager")
    @patch("hostaudit.cli.handlers.packages.AideIntegrityChecker")
    def test_snapshot_offered_when_aide_installed(self, mock_checker_cls, mock_detect, audit_config, tmp_path):
        checker = mock_checker_cls.return_value
        checker.is_installed.return_value = True
        checker.update_snapshot.return_value = IntegrityResult(0, tmp_path / "aideupdate_report.txt")

        with patch("hostaudit.cli.handlers.packages.Confirm.ask", return_value=True):
            assert PackageHandler(audit_config).run() == 0

        mock_detect.return_value.run_maintenance.assert_called_once()
        checker.update_snapshot.assert_called_once()

    @patch("hostaudit.cli.handlers.packages.detect_package_manager")
    @patch("hostaudit.cli.handlers.packages.AideIntegrityChecker")
    def test_no_snapshot_without_aide(self, mock_checker_cls, mock_detect, audit_config):
        mock_checker_cls.return_value.is_installed.return_value = False
        with patch("hostaudit.cli.handlers.packages.Confirm.ask") as confirm:
            assert PackageHandler(audit_config).run(argparse.Namespace(aide_snapshot=None)) == 0
        confirm.assert_not_called()
        mock_checker_cls.return_value.update_snapshot.assert_not_called()


class TestIntegrityHandler:
    @patch("hostaudit.cli.handlers.integrity.detect_package_manager")
    @patch("hostaudit.cli.handlers.integrity.AideIntegrityChecker")
    def test_initializes_missing_database(self, mock_checker_cls, mock_detect, audit_config, tmp_path):
        checker = mock_checker_cls.return_value
        checker.database_exists.return_value = False
        checker.initialize.return_value = tmp_path / "aideinit_report.txt"
        checker.check.return_value = IntegrityResult(4, tmp_path / "aidecheck_report.txt")

        assert IntegrityHandler(audit_config).run() == 0

        checker.ensure_installed.assert_called_once()
        checker.initialize.assert_called_once()
        checker.check.assert_called_once()

    @patch("hostaudit.cli.handlers.integrity.detect_package_manager")
    @patch("hostaudit.cli.handlers.integrity.AideIntegrityChecker")
    def test_existing_database_only_checks(self, mock_checker_cls, mock_detect, audit_config, tmp_path):
        checker = mock_checker_cls.return_value
        checker.database_exists.return_value = True
        checker.check.return_value = IntegrityResult(0, tmp_path / "aidecheck_report.txt")

        assert IntegrityHandler(audit_config).run() == 0
        checker.initialize.assert_not_called()


class TestFirewallHandler:
    @pytest.fixture
    def firewall(self):
        with patch("hostaudit.cli.handlers.firewall.UfwFirewallManager") as cls:
            cls.return_value.is_installed.return_value = True
            cls.return_value.status.return_value = "Status: active"
            yield cls.return_value

    def test_non_interactive(self, audit_config, firewall):
        args = argparse.Namespace(ports=["22", "443"], rate_limit=True, reset=False, logging="medium")

        assert FirewallHandler(audit_config).run(args) == 0

        firewall.reset.assert_not_called()
        firewall.enable.assert_called_once()
        firewall.set_default_policies.assert_called_once_with("deny", "allow")
        firewall.open_ports.assert_called_once_with([22, 443], rate_limit=True)
        firewall.set_logging.assert_called_once_with("medium")
        firewall.reload.assert_called_once()

    def test_reprompts_for_ports(self, audit_config, firewall):
        handler = FirewallHandler(audit_config)
        with patch("hostaudit.cli.handlers.firewall.Prompt.ask", side_effect=["99999", "", "22 80"]):
            assert handler._ports(None) == [22, 80]

    def test_none_opens_nothing(self, audit_config, firewall):
        args = argparse.Namespace(ports=["none"], rate_limit=None, reset=True, logging="low")

        assert FirewallHandler(audit_config).run(args) == 0

        firewall.reset.assert_called_once()
        firewall.open_ports.assert_not_called()

    def test_installs_missing_ufw(self, audit_config, firewall):
        firewall.is_installed.return_value = False
        args = argparse.Namespace(ports=["none"], rate_limit=None, reset=None, logging="low")

        with patch("hostaudit.cli.handlers.firewall.detect_package_manager") as detect:
            assert FirewallHandler(audit_config).run(args) == 0

        assert firewall.package_manager is detect.return_value
        firewall.install.assert_called_once()

    def test_invalid_logging_level(self, audit_config, firewall):
        args = argparse.Namespace(ports=["none"], rate_limit=None, reset=False, logging="loud")
        with pytest.raises(InvalidInputError):
            FirewallHandler(audit_config).run(args)

    def test_prompt_default_is_a_configured_level(self, audit_config):
        audit_config.firewall.logging_levels = ["off", "high"]
        with patch("hostaudit.cli.handlers.firewall.Prompt.ask", return_value="off") as ask:
            assert FirewallHandler(audit_config)._logging_level(None) == "off"
        ask.assert_called_once_with("Choose the logging level", choices=["off", "high"], default="off")

    def test_prompt_defaults_to_low(self, audit_config):
        with patch("hostaudit.cli.handlers.firewall.Prompt.ask", return_value="low") as ask:
            FirewallHandler(audit_config)._logging_level(None)
        assert ask.call_args.kwargs["default"] == "low"


class TestMain:
    @pytest.fixture(autouse=True)
    def online(self):
        with patch("hostaudit.cli_main.preflight", return_value=True) as mock:
            yield mock

    def test_subcommand(self, audit_config):
        with patch("hostaudit.cli_main.load_config", return_value=audit_config):
            assert main(["users"]) == 0

    def test_config_error(self):
        with patch("hostaudit.cli_main.load_config", side_effect=ConfigError("bad")):
            assert main(["users"]) == 1

    def test_environment_failure(self, audit_config, online):
        online.side_effect = EnvironmentFatalError("Please run as root.")
        with patch("hostaudit.cli_main.load_config", return_value=audit_config):
            assert main(["users"]) == 1

    def test_interrupt_at_menu(self, audit_config):
        with patch("hostaudit.cli_main.load_config", return_value=audit_config):
            with patch("hostaudit.cli.Prompt.ask", side_effect=KeyboardInterrupt):
                assert main([]) == EXIT_CANCELLED


def test_setup_logging_file_is_private(tmp_path):
    log_file = tmp_path / "hostaudit.log"
    logger = setup_logging(verbose=True, log_file=str(log_file))
    logger.debug("hello")

    assert oct(log_file.stat().st_mode & 0o777) == oct(0o600)
    assert len(logger.handlers) == 2

    logger = setup_logging()
    assert len(logger.handlers) == 1
