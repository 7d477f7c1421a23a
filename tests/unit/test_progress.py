from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from gestionale.services.progress import ProgressTracker, SheetProgressIndicator, is_tty_enabled


def test_is_tty_enabled_follows_stdout():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


@patch("gestionale.services.progress.is_tty_enabled", return_value=False)
def test_tracker_disabled_without_tty(_tty):
    tracker = ProgressTracker(3)
    assert tracker.enabled is False
    assert tracker.pbar is None

    tracker.start_file(Path("clienti.xlsx"))
    tracker.set_postfix(success=1)
    tracker.finish_file(success=True)
    tracker.close()
    assert tracker.current_file == 1


@patch("gestionale.services.progress.tqdm")
@patch("gestionale.services.progress.is_tty_enabled", return_value=True)
def test_tracker_drives_tqdm_on_tty(_tty, mock_tqdm):
    pbar = MagicMock()
    mock_tqdm.return_value = pbar

    with ProgressTracker(2, description="Import") as tracker:
        mock_tqdm.assert_called_once_with(
            total=2, desc="Import", unit="file", leave=True, position=0, ncols=80, ascii=True
        )
        tracker.start_file(Path("operatori.xlsx"))
        pbar.set_description.assert_called_with("Import (operatori.xlsx)")
        tracker.set_postfix(success=1, failed=0)
        pbar.set_postfix.assert_called_once_with(success=1, failed=0)
        tracker.finish_file(success=False)
        pbar.update.assert_called_once_with(1)
        pbar.set_description.assert_called_with("Import")

    pbar.close.assert_called_once()
    assert tracker.pbar is None


@patch("gestionale.services.progress.tqdm")
@patch("gestionale.services.progress.is_tty_enabled", return_value=True)
def test_tracker_close_is_idempotent(_tty, mock_tqdm):
    tracker = ProgressTracker(1)
    tracker.close()
    tracker.close()
    mock_tqdm.return_value.close.assert_called_once()


@patch("gestionale.services.progress.is_tty_enabled", return_value=True)
def test_sheet_indicator_prints_on_tty(_tty, capsys):
    indicator = SheetProgressIndicator("clienti.xlsx", total_sheets=2)
    indicator.start_sheet("Clienti")
    indicator.finish_sheet(success=True, rows_processed=10, rows_rejected=1)
    indicator.start_sheet("Rubrica Clienti")
    indicator.finish_sheet(success=False)

    out = capsys.readouterr().out.splitlines()
    assert out == [
        "  Sheet 1/2: Clienti - 10 rows, 1 rejected ok",
        "  Sheet 2/2: Rubrica Clienti FAILED",
    ]


@patch("gestionale.services.progress.is_tty_enabled", return_value=False)
def test_sheet_indicator_silent_without_tty(_tty, capsys):
    indicator = SheetProgressIndicator("clienti.xlsx", total_sheets=1)
    indicator.start_sheet("Clienti")
    indicator.finish_sheet(success=True, rows_processed=3)
    assert capsys.readouterr().out == ""
    assert indicator.current_sheet == 1
