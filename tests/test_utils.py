"""
Tests for utility functions.
"""

import logging
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from tp_to_github_migrator.utils import InvalidPassPathError, PassError, debug_enabled, get_pass_value, setup_logging


@pytest.mark.unit
class TestDebugEnabled:
    @pytest.mark.parametrize(("value", "expected"), [("1", True), ("TRUE", True), ("yes", True), ("0", False), ("", False)])
    def test_values(self, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
        monkeypatch.setenv("TP_TO_GITHUB_DEBUG", value)
        assert debug_enabled() is expected

    def test_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TP_TO_GITHUB_DEBUG", raising=False)
        assert debug_enabled() is False


@pytest.mark.unit
class TestSetupLogging:
    @patch("tp_to_github_migrator.utils.logging.FileHandler")
    @patch("tp_to_github_migrator.utils.logging.basicConfig")
    def test_debug_from_environment(
        self, mock_basic_config: MagicMock, _mock_file_handler: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TP_TO_GITHUB_DEBUG", "1")

        setup_logging(verbose=False)

        assert mock_basic_config.call_args.kwargs["level"] == logging.DEBUG

    @patch("tp_to_github_migrator.utils.logging.FileHandler")
    @patch("tp_to_github_migrator.utils.logging.basicConfig")
    def test_info_by_default(
        self, mock_basic_config: MagicMock, _mock_file_handler: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("TP_TO_GITHUB_DEBUG", raising=False)

        setup_logging()

        assert mock_basic_config.call_args.kwargs["level"] == logging.INFO


@pytest.mark.unit
class TestGetPassValue:
    def test_invalid_path(self) -> None:
        with pytest.raises(ValueError, match="Invalid pass path"):
            get_pass_value("../etc/passwd; rm")

    @patch("tp_to_github_migrator.utils.subprocess.run")
    def test_value_is_stripped(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(["pass"], 0, stdout="secret\n", stderr="")

        assert get_pass_value("tp/password") == "secret"

    @patch("tp_to_github_migrator.utils.subprocess.run")
    def test_missing_entry(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["pass"], output="", stderr="Error: tp/password is not in the password store."
        )

        with pytest.raises(InvalidPassPathError):
            get_pass_value("tp/password")

    @patch("tp_to_github_migrator.utils.subprocess.run")
    def test_pass_not_installed(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError("pass")

        with pytest.raises(PassError, match="not installed"):
            get_pass_value("tp/password")
