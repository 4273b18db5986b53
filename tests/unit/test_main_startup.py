"""Unit tests for main.py startup wiring.

Verifies that the entry point wires the monitoring cycle to the scheduler,
shuts down cleanly, and exits when required config is missing.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gitscope.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "github_token": "gh-token",
        "telegram_bot_token": "tg-token",
        "telegram_chat_id": "-100",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _stop_immediately(stop_event) -> None:
    stop_event.set()


class TestMainStartup:
    """Tests for main() wiring and shutdown."""

    @pytest.mark.asyncio
    @patch("gitscope.main._install_signal_handlers", side_effect=_stop_immediately)
    @patch("gitscope.main.CycleScheduler")
    @patch("gitscope.main.TelegramNotifier")
    @patch("gitscope.main.GitHubClient")
    async def test_runs_first_cycle_and_shuts_down(
        self,
        mock_github_cls,
        mock_notifier_cls,
        mock_scheduler_cls,
        mock_signals,
        tmp_path,
    ) -> None:
        """The scheduler starts, runs once, stops, and clients are closed."""
        from gitscope.main import main

        mock_github = mock_github_cls.return_value
        mock_github.close = AsyncMock()
        mock_notifier = mock_notifier_cls.return_value
        mock_notifier.close = AsyncMock()
        mock_scheduler = mock_scheduler_cls.return_value
        mock_scheduler.run_once = AsyncMock()
        mock_scheduler.stats.to_dict.return_value = {}

        state_path = tmp_path / "state.json"
        settings = _settings(state_file_path=str(state_path), monitor_cron="*/15 * * * *")

        await main(settings)

        mock_github_cls.assert_called_once()
        assert mock_github_cls.call_args.kwargs["token"] == "gh-token"
        assert mock_notifier_cls.call_args.kwargs["chat_id"] == "-100"
        assert mock_scheduler_cls.call_args.args[1] == "*/15 * * * *"
        mock_scheduler.start.assert_called_once()
        mock_scheduler.run_once.assert_awaited_once()
        mock_scheduler.stop.assert_called_once()
        mock_github.close.assert_awaited_once()
        mock_notifier.close.assert_awaited_once()
        assert state_path.exists()

    @pytest.mark.asyncio
    @patch("gitscope.main._install_signal_handlers", side_effect=_stop_immediately)
    @patch("gitscope.main.CycleScheduler")
    @patch("gitscope.main.TelegramNotifier")
    @patch("gitscope.main.GitHubClient")
    async def test_run_on_start_disabled(
        self,
        mock_github_cls,
        mock_notifier_cls,
        mock_scheduler_cls,
        mock_signals,
        tmp_path,
    ) -> None:
        """No cycle runs at startup when disabled."""
        from gitscope.main import main

        mock_github_cls.return_value.close = AsyncMock()
        mock_notifier_cls.return_value.close = AsyncMock()
        mock_scheduler = mock_scheduler_cls.return_value
        mock_scheduler.run_once = AsyncMock()
        mock_scheduler.stats.to_dict.return_value = {}

        settings = _settings(
            state_file_path=str(tmp_path / "state.json"), monitor_run_on_start=False
        )

        await main(settings)

        mock_scheduler.run_once.assert_not_awaited()
        mock_scheduler.start.assert_called_once()


class TestRun:
    """Tests for the run() console entry point."""

    @patch("gitscope.main.asyncio.run")
    @patch("gitscope.main.setup_logging")
    @patch("gitscope.main.get_settings")
    def test_invalid_config_exits(self, mock_get_settings, mock_setup_logging, mock_run):
        """A configuration error exits with status 1 before starting."""
        from gitscope.main import run

        mock_get_settings.side_effect = lambda: _settings(cooldown_days=0)

        with pytest.raises(SystemExit) as exc_info:
            run()

        assert exc_info.value.code == 1
        mock_setup_logging.assert_not_called()
        mock_run.assert_not_called()

    @patch("gitscope.main.main", new_callable=MagicMock)
    @patch("gitscope.main.asyncio.run")
    @patch("gitscope.main.setup_logging")
    @patch("gitscope.main.get_settings")
    def test_valid_config_starts(
        self, mock_get_settings, mock_setup_logging, mock_run, mock_main
    ):
        """Valid settings configure logging and start the event loop."""
        from gitscope.main import run

        settings = _settings()
        mock_get_settings.return_value = settings

        run()

        mock_setup_logging.assert_called_once_with(settings)
        mock_main.assert_called_once_with(settings)
        mock_run.assert_called_once_with(mock_main.return_value)
