"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from hangulfinder.cli import _setup_logging, app

runner = CliRunner()


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    (root / "한글.md").write_text("한글 문서", encoding="utf-8")
    (root / "영어.md").write_text("english", encoding="utf-8")
    return root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("hangulfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("hangulfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestIndexCommand:
    """Tests for the index command."""

    def test_index_reports_count(self, vault: Path) -> None:
        """Reports how many documents were indexed."""
        result = runner.invoke(app, ["index", str(vault)])
        assert result.exit_code == 0
        assert "Indexed: 2 documents" in result.stdout

    def test_index_empty_vault(self, tmp_path: Path) -> None:
        """Shows warning when no markdown files are found."""
        result = runner.invoke(app, ["index", str(tmp_path)])
        assert result.exit_code == 0
        assert "No markdown documents found" in result.stdout

    def test_index_missing_vault(self, tmp_path: Path) -> None:
        """Fails for a missing vault directory."""
        result = runner.invoke(app, ["index", str(tmp_path / "missing")])
        assert result.exit_code != 0


class TestSearchCommand:
    """Tests for the search command."""

    def test_search_partial_syllable(self, vault: Path) -> None:
        """Finds documents from a partially typed syllable."""
        result = runner.invoke(app, ["search", "한ㄱ", "--vault", str(vault)])
        assert result.exit_code == 0
        assert "한글.md" in result.stdout

    def test_search_no_matches(self, vault: Path) -> None:
        """Shows a message when nothing matches."""
        result = runner.invoke(app, ["search", "zzzzzz", "--vault", str(vault)])
        assert result.exit_code == 0
        assert "No matches found" in result.stdout

    def test_search_empty_query(self, vault: Path) -> None:
        """Rejects a blank query."""
        result = runner.invoke(app, ["search", "  ", "--vault", str(vault)])
        assert result.exit_code != 0

    def test_search_bad_threshold(self, vault: Path) -> None:
        """Rejects thresholds outside zero to one."""
        result = runner.invoke(app, ["search", "한글", "--vault", str(vault), "--threshold", "2"])
        assert result.exit_code != 0


class TestWatchCommand:
    """Tests for the watch command."""

    @patch("hangulfinder.cli.VaultWatcher")
    def test_watch_answers_queries(self, mock_watcher_class: MagicMock, vault: Path) -> None:
        """Applies queued changes before each query and stops on a blank line."""
        mock_watcher = MagicMock()
        mock_watcher_class.return_value = mock_watcher

        result = runner.invoke(app, ["watch", "--vault", str(vault)], input="한글\n\n")

        assert result.exit_code == 0
        assert "Indexed 2 documents" in result.stdout
        assert "한글.md" in result.stdout
        mock_watcher.start.assert_called_once()
        mock_watcher.drain.assert_called_once()
        mock_watcher.stop.assert_called_once()


class TestWebCommand:
    """Tests for the web command."""

    def test_web_starts_server(self, vault: Path) -> None:
        """Starts uvicorn server with correct parameters."""
        with patch("uvicorn.run") as mock_uvicorn_run:
            result = runner.invoke(
                app, ["web", "--host", "0.0.0.0", "--port", "9000", "--vault", str(vault)]
            )
            assert result.exit_code == 0
            mock_uvicorn_run.assert_called_once()
            call_kwargs = mock_uvicorn_run.call_args[1]
            assert call_kwargs["host"] == "0.0.0.0"
            assert call_kwargs["port"] == 9000

    def test_web_missing_vault(self, tmp_path: Path) -> None:
        """Fails for a missing vault directory."""
        with patch("uvicorn.run") as mock_uvicorn_run:
            result = runner.invoke(app, ["web", "--vault", str(tmp_path / "missing")])
            assert result.exit_code != 0
            mock_uvicorn_run.assert_not_called()
