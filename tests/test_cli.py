"""
Tests for CLI module.
"""

import argparse
import json
from unittest.mock import MagicMock, patch

import pytest

from tp_to_github_migrator.cli import main, parse_arguments, parse_types
from tp_to_github_migrator.exceptions import ConfigError, MigrationError
from tp_to_github_migrator.models import ISSUE_LEVELS, EntityType
from tp_to_github_migrator.orchestrator import IssuePreview, MigrationResult, MigrationStats
from tp_to_github_migrator.utils import PassError


@pytest.mark.unit
class TestParseTypes:
    def test_case_insensitive(self) -> None:
        assert parse_types("epic, userstory") == [EntityType.EPIC, EntityType.USER_STORY]

    def test_tasks_are_not_a_level(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="Unknown entity type 'Task'"):
            parse_types("Task")

    def test_empty(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_types(" , ")


@pytest.mark.unit
class TestParseArguments:
    def test_defaults(self) -> None:
        args = parse_arguments([])

        assert args.types == list(ISSUE_LEVELS)
        assert args.dry_run is False
        assert args.verbose is False

    def test_options(self) -> None:
        args = parse_arguments(
            ["--team-id", "5", "--repo", "o/r", "--project-board", "Roadmap", "--types", "Feature", "--dry-run", "-v"]
        )

        assert args.team_id == "5"
        assert args.repo == "o/r"
        assert args.project_board == "Roadmap"
        assert args.types == [EntityType.FEATURE]
        assert args.dry_run is True
        assert args.verbose is True


@pytest.mark.unit
class TestMain:
    @patch("tp_to_github_migrator.cli.setup_logging")
    @patch("tp_to_github_migrator.cli.Settings.load")
    def test_config_error_exits_before_network(self, mock_load: MagicMock, _mock_logging: MagicMock) -> None:
        mock_load.side_effect = ConfigError("TP_BASE_URL is required")

        with patch("tp_to_github_migrator.cli.build_orchestrator") as mock_build:
            with pytest.raises(SystemExit) as exc_info:
                main([])
            mock_build.assert_not_called()

        assert exc_info.value.code == 2

    @patch("tp_to_github_migrator.cli.setup_logging")
    @patch("tp_to_github_migrator.cli.build_orchestrator")
    @patch("tp_to_github_migrator.cli.Settings.load")
    def test_dry_run_prints_previews(
        self,
        _mock_load: MagicMock,
        mock_build: MagicMock,
        _mock_logging: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        preview = IssuePreview(type="Epic", id=2, parent=None, title="Checkout", body="<!--tp:Epic:2-->\n")
        mock_build.return_value.run.return_value = MigrationResult(
            success=True, stats=MigrationStats(), previews=[preview]
        )

        with pytest.raises(SystemExit) as exc_info:
            main(["--dry-run", "--types", "Epic"])

        assert exc_info.value.code == 0
        mock_build.return_value.run.assert_called_once_with(dry_run=True, types=[EntityType.EPIC])
        printed = json.loads(capsys.readouterr().out)
        assert printed == [{"type": "Epic", "id": 2, "parent": None, "title": "Checkout", "body": "<!--tp:Epic:2-->\n"}]

    @patch("tp_to_github_migrator.cli.setup_logging")
    @patch("tp_to_github_migrator.cli.build_orchestrator")
    @patch("tp_to_github_migrator.cli.Settings.load")
    def test_report_is_printed(
        self,
        _mock_load: MagicMock,
        mock_build: MagicMock,
        _mock_logging: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_build.return_value.run.return_value = MigrationResult(
            success=True, stats=MigrationStats(issues_created=4)
        )

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "PASSED" in out
        assert "Issues created: 4" in out

    @patch("tp_to_github_migrator.cli.setup_logging")
    @patch("tp_to_github_migrator.cli.build_orchestrator")
    @patch("tp_to_github_migrator.cli.Settings.load")
    def test_migration_error_exits_with_failure(
        self, _mock_load: MagicMock, mock_build: MagicMock, _mock_logging: MagicMock
    ) -> None:
        mock_build.return_value.run.side_effect = MigrationError("boom")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1

    @patch("tp_to_github_migrator.cli.setup_logging")
    @patch("tp_to_github_migrator.config.utils.get_pass_value")
    def test_pass_failure_exits_as_config_error(
        self, mock_pass: MagicMock, _mock_logging: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for name, value in {
            "TP_BASE_URL": "https://example.tpondemand.com",
            "TP_USERNAME": "user",
            "GITHUB_ACCESS_TOKEN": "ghp_token",
            "GITHUB_REPO": "octo-org/octo-repo",
        }.items():
            monkeypatch.setenv(name, value)
        monkeypatch.delenv("TP_TEAM_ID", raising=False)
        mock_pass.side_effect = PassError("The 'pass' utility is not installed")

        with patch("tp_to_github_migrator.cli.build_orchestrator") as mock_build:
            with pytest.raises(SystemExit) as exc_info:
                main(["--tp-pass-password", "tp/password"])
            mock_build.assert_not_called()

        assert exc_info.value.code == 2

    @patch("tp_to_github_migrator.cli.setup_logging")
    @patch("tp_to_github_migrator.cli.build_orchestrator")
    @patch("tp_to_github_migrator.cli.Settings.load")
    def test_unexpected_error_exits_with_failure(
        self, _mock_load: MagicMock, mock_build: MagicMock, _mock_logging: MagicMock
    ) -> None:
        mock_build.return_value.run.side_effect = RuntimeError("unexpected")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
