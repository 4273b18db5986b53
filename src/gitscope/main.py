"""Main entry point for GitScope."""

import asyncio
import contextlib
import signal
import sys

from pydantic import ValidationError

from gitscope.config import Settings, get_settings
from gitscope.github.client import GitHubClient
from gitscope.github.search import RepositorySearcher
from gitscope.logging import get_logger, setup_logging
from gitscope.monitor.cycle import MonitorCycle
from gitscope.notifications.telegram import TelegramNotifier
from gitscope.scheduler.cron import CycleScheduler
from gitscope.state.store import StateStore


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set ``stop_event`` on SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform (e.g. Windows event loops)
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)


async def main(settings: Settings) -> None:
    """Main application entry point."""
    log = get_logger("gitscope.main")
    log.info(
        "starting_gitscope",
        environment=settings.environment,
        keywords=settings.monitor_keywords,
        schedule=settings.monitor_cron,
    )

    store = StateStore(settings.state_file_path)
    state = store.load()
    log.info("state_initialized", repos=len(state.repos), version=state.meta.version)

    github = GitHubClient(
        token=settings.github_token.get_secret_value(),
        timeout=settings.github_api_timeout,
        rate_limit_max_wait=settings.github_rate_limit_max_wait,
    )
    notifier = TelegramNotifier(
        bot_token=settings.telegram_bot_token.get_secret_value(),
        chat_id=settings.telegram_chat_id,
        timeout=settings.telegram_api_timeout,
        max_retries=settings.telegram_max_retries,
    )
    cycle = MonitorCycle(
        searcher=RepositorySearcher(github, max_pages=settings.github_search_pages),
        notifier=notifier,
        store=store,
        config=settings.monitor_config(),
        thresholds=settings.threshold_config(),
    )
    scheduler = CycleScheduler(cycle.run, settings.monitor_cron)

    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    try:
        scheduler.start()
        if settings.monitor_run_on_start:
            await scheduler.run_once()
        await stop_event.wait()
        log.info("shutdown_requested")
    finally:
        scheduler.stop()
        try:
            store.save()
        except OSError as e:
            log.error("state_save_failed", path=str(store.path), error=str(e))
        await github.close()
        await notifier.close()
        log.info("gitscope_stopped", **scheduler.stats.to_dict())


def run() -> None:
    """Run the application."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "settings"
            print(f"  - {field}: {error['msg']}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main(settings))


if __name__ == "__main__":
    run()
