"""Tests for the `python -m syncpanel` entrypoint."""
from unittest.mock import MagicMock, patch

import pytest

from syncpanel import __main__ as cli
from syncpanel.core.status import DisplayStatus
from syncpanel.panel.screen import AccountsPanel, PanelState


@pytest.fixture(name="panel")
def panel_fixture(manager, monkeypatch):
    panel = AccountsPanel(manager)
    monkeypatch.setattr(cli, "_build_panel", lambda account_type=None: panel)
    return panel


class TestCommands:
    def test_status_prints_rows(self, panel, capsys):
        with patch("sys.argv", ["syncpanel", "status"]):
            cli.main()
        out = capsys.readouterr().out
        assert "alice@example.com" in out
        assert "bob@other.com" in out
        assert DisplayStatus.ENABLED.value in out

    def test_default_command_is_status(self, panel, capsys):
        with patch("sys.argv", ["syncpanel"]):
            cli.main()
        assert "alice@example.com" in capsys.readouterr().out

    def test_status_shows_error_banner(self, panel, manager, bob, capsys):
        manager.record_sync_finished(bob, "mail", success=False, error_code=2, at_ms=100)
        with patch("sys.argv", ["syncpanel", "status"]):
            cli.main()
        assert "experiencing problems" in capsys.readouterr().out

    def test_sync_marks_pending(self, panel, state_of, alice):
        with patch("sys.argv", ["syncpanel", "sync"]):
            cli.main()
        assert state_of(alice, "contacts").pending is True

    def test_cancel(self, panel, manager, alice):
        manager.record_sync_started(alice, "contacts")
        with patch("sys.argv", ["syncpanel", "cancel"]):
            cli.main()
        assert manager.get_current_syncs() == []

    def test_unknown_command_exits(self):
        with patch("sys.argv", ["syncpanel", "bogus"]):
            with pytest.raises(SystemExit):
                cli.main()


class TestPrintState:
    def test_no_accounts(self, capsys):
        cli._print_state(PanelState())
        assert "No accounts." in capsys.readouterr().out

    def test_passes_account_type(self, monkeypatch):
        build = MagicMock()
        monkeypatch.setattr(cli, "_build_panel", build)
        build.return_value.refresh.return_value = PanelState()
        with patch("sys.argv", ["syncpanel", "status", "--account-type", "com.other"]):
            cli.main()
        build.assert_called_once_with("com.other")
