"""The monitoring cycle.

Each run:
1. Searches GitHub for repositories matching the configured keywords
2. Computes star velocity and severity for every repository found
3. Suppresses repositories still inside their alert cooldown
4. Sends the queued alerts, individually or as a single digest
5. Records a snapshot per repository and persists the state once
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Protocol

from gitscope.github.models import RepositoryRecord
from gitscope.logging import get_logger
from gitscope.monitor.classifier import (
    DEFAULT_THRESHOLDS,
    AlertTier,
    ThresholdConfig,
    classify_severity,
    should_alert_new_repo,
)
from gitscope.monitor.config import DispatchMode, MonitorConfig
from gitscope.monitor.velocity import VelocityResult, compute_velocity
from gitscope.notifications.base import NotificationChannel
from gitscope.notifications.formatter import (
    AlertData,
    DigestEntry,
    format_alert,
    format_digest,
    format_new_repo_alert,
)
from gitscope.state.schema import AppState, NotificationRecord, Snapshot, TrackedRepository
from gitscope.state.store import StateStore

log = get_logger("gitscope.monitor.cycle")


class CycleStage(Enum):
    """Where a monitoring cycle currently is."""

    IDLE = "idle"
    FETCHING = "fetching"
    EVALUATING = "evaluating"
    DISPATCHING = "dispatching"
    PERSISTING = "persisting"


class RepositorySource(Protocol):
    """Anything that can search for repositories by keyword."""

    async def search(self, keywords: list[str]) -> list[RepositoryRecord]: ...


@dataclass
class PendingAlert:
    """An alert queued during evaluation, awaiting dispatch."""

    repo_key: str
    message: str
    digest_entry: DigestEntry


@dataclass
class CycleReport:
    """Outcome of one monitoring cycle."""

    started_at: datetime
    finished_at: datetime | None = None
    repos_seen: int = 0
    alerts_queued: int = 0
    alerts_sent: int = 0
    suppressed: int = 0
    digest: bool = False
    persisted: bool = False
    failed_stage: CycleStage | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the cycle ran through to a successful save."""
        return self.error is None and self.persisted

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "repos_seen": self.repos_seen,
            "alerts_queued": self.alerts_queued,
            "alerts_sent": self.alerts_sent,
            "suppressed": self.suppressed,
            "digest": self.digest,
            "persisted": self.persisted,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": self.error,
        }


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def is_within_cooldown(state: AppState, key: str, cooldown_days: float, now: datetime) -> bool:
    """Whether ``key`` was alerted less than ``cooldown_days`` ago."""
    record = state.notifications.get(key)
    if record is None:
        return False
    return now - record.last_alert_at < timedelta(days=cooldown_days)


def record_snapshot(state: AppState, repo: RepositoryRecord, now: datetime) -> None:
    """Append a snapshot for ``repo``, creating its history on first sighting."""
    tracked = state.repos.get(repo.key)
    if tracked is None:
        tracked = TrackedRepository(
            owner=repo.owner,
            name=repo.name,
            description=repo.description,
            language=repo.language,
            topics=list(repo.topics),
            added_at=now,
        )
        state.repos[repo.key] = tracked
    tracked.add_snapshot(Snapshot(timestamp=now, stars=repo.stars, forks=repo.forks))


def _render_combined(alerts: list[PendingAlert]) -> str:
    return "\n\n".join(alert.message for alert in alerts)


def _render_digest(alerts: list[PendingAlert]) -> str:
    return format_digest([alert.digest_entry for alert in alerts])


def _fit_alerts(
    pending: list[PendingAlert],
    render: Callable[[list[PendingAlert]], str],
    limit: int,
) -> list[PendingAlert]:
    """Longest prefix of ``pending`` whose rendered message fits in ``limit``.

    At least one alert is always kept; an oversized single alert is left to
    the channel to split.
    """
    count = len(pending)
    while count > 1 and len(render(pending[:count])) > limit:
        count -= 1
    return pending[:count]


class MonitorCycle:
    """Runs monitoring cycles against one state store.

    Cycles never raise: failures are logged with the stage they happened
    in and reported through the returned CycleReport.
    """

    def __init__(
        self,
        searcher: RepositorySource,
        notifier: NotificationChannel,
        store: StateStore,
        config: MonitorConfig,
        thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the monitoring cycle.

        Args:
            searcher: Repository search collaborator.
            notifier: Channel alerts are delivered to.
            store: State store, already loaded.
            config: Keywords, cooldown and dispatch settings.
            thresholds: Severity thresholds.
            clock: Source of the current time.
        """
        self._searcher = searcher
        self._notifier = notifier
        self._store = store
        self._config = config
        self._thresholds = thresholds
        self._clock = clock
        self._stage = CycleStage.IDLE
        self._current_repo: str | None = None

    @property
    def stage(self) -> CycleStage:
        """Current stage of the running cycle."""
        return self._stage

    async def run(self) -> CycleReport:
        """Run one monitoring cycle.

        Returns:
            Report describing what the cycle did.
        """
        now = self._clock()
        report = CycleReport(started_at=now)

        try:
            self._stage = CycleStage.FETCHING
            try:
                repos = await self._searcher.search(self._config.keywords)
            except Exception as e:
                log.error("search_failed", stage=self._stage.value, error=str(e))
                report.failed_stage = self._stage
                report.error = str(e)
                return report

            report.repos_seen = len(repos)
            log.info("search_returned_repos", count=len(repos))

            try:
                self._stage = CycleStage.EVALUATING
                pending = self._evaluate(repos, now, report)

                self._stage = CycleStage.DISPATCHING
                await self._dispatch(pending, report)
            except Exception as e:
                log.error(
                    "monitor_cycle_failed",
                    stage=self._stage.value,
                    repo=self._current_repo,
                    error=str(e),
                )
                report.failed_stage = self._stage
                report.error = str(e)
                return report

            self._stage = CycleStage.PERSISTING

            def stamp_cycle(state: AppState) -> None:
                state.meta.last_cycle_at = now

            self._store.update_state(stamp_cycle)
            try:
                self._store.save()
                report.persisted = True
            except OSError as e:
                log.error(
                    "state_save_failed",
                    stage=self._stage.value,
                    path=str(self._store.path),
                    error=str(e),
                )
                report.failed_stage = self._stage
                report.error = str(e)

            log.info(
                "monitor_cycle_complete",
                repos=report.repos_seen,
                alerts_queued=report.alerts_queued,
                alerts_sent=report.alerts_sent,
                suppressed=report.suppressed,
            )
            return report
        finally:
            report.finished_at = self._clock()
            self._stage = CycleStage.IDLE
            self._current_repo = None

    def _evaluate(
        self,
        repos: list[RepositoryRecord],
        now: datetime,
        report: CycleReport,
    ) -> list[PendingAlert]:
        """Classify every repository and record its snapshot."""
        state = self._store.get_state()
        pending: list[PendingAlert] = []

        for repo in repos:
            key = repo.key
            tracked = state.repos.get(key)
            last_snapshot = tracked.last_snapshot if tracked else None

            self._current_repo = key
            velocity = compute_velocity(repo.stars, repo.created_at, last_snapshot, now)

            if is_within_cooldown(state, key, self._config.cooldown_days, now):
                report.suppressed += 1
                log.debug("repo_within_cooldown", repo=key)
            elif self._config.max_stars is not None and repo.stars > self._config.max_stars:
                log.debug("repo_above_max_stars", repo=key, stars=repo.stars)
            else:
                alert = self._build_alert(repo, velocity)
                if alert is not None:
                    pending.append(alert)
                    log.debug(
                        "alert_queued",
                        repo=key,
                        tier=alert.digest_entry.tier.value,
                        stars_per_day=round(velocity.stars_per_day, 1),
                    )

            self._store.update_state(lambda s, r=repo: record_snapshot(s, r, now))

        self._current_repo = None
        report.alerts_queued = len(pending)
        return pending

    def _build_alert(self, repo: RepositoryRecord, velocity: VelocityResult) -> PendingAlert | None:
        """Build the alert for one repository, if it warrants one."""
        if velocity.is_new:
            if not should_alert_new_repo(repo.stars, self._thresholds):
                return None
            data = AlertData(
                owner=repo.owner,
                name=repo.name,
                description=repo.description,
                stars=repo.stars,
                language=repo.language,
                repo_age_days=velocity.repo_age_days,
            )
            return PendingAlert(
                repo_key=repo.key,
                message=format_new_repo_alert(data),
                digest_entry=DigestEntry(
                    owner=repo.owner, name=repo.name, stars=repo.stars, tier=AlertTier.NEW
                ),
            )

        tier = classify_severity(velocity.stars_per_day, velocity.repo_age_days, self._thresholds)
        if tier is None:
            return None
        data = AlertData(
            owner=repo.owner,
            name=repo.name,
            description=repo.description,
            stars=repo.stars,
            language=repo.language,
            repo_age_days=velocity.repo_age_days,
            tier=tier,
            stars_per_day=velocity.stars_per_day,
        )
        return PendingAlert(
            repo_key=repo.key,
            message=format_alert(data),
            digest_entry=DigestEntry(
                owner=repo.owner,
                name=repo.name,
                stars=repo.stars,
                tier=tier,
                stars_per_day=velocity.stars_per_day,
            ),
        )

    async def _dispatch(self, pending: list[PendingAlert], report: CycleReport) -> None:
        """Deliver queued alerts and start cooldowns for delivered ones."""
        if not pending:
            return

        if self._config.dispatch_mode is DispatchMode.COMBINED:
            await self._send_together(pending, _render_combined, report)
            return

        if len(pending) > self._config.batch_threshold:
            report.digest = True
            await self._send_together(pending, _render_digest, report)
            return

        for alert in pending:
            if await self._deliver(alert.message, alert.repo_key):
                self._mark_notified(alert.repo_key)
                report.alerts_sent += 1
                log.info("alert_sent", repo=alert.repo_key)

    async def _send_together(
        self,
        pending: list[PendingAlert],
        render: Callable[[list[PendingAlert]], str],
        report: CycleReport,
    ) -> None:
        """Send one message covering as many pending alerts as fit.

        Only the alerts included in the delivered message start a cooldown;
        the rest are queued again by the next cycle.
        """
        included = _fit_alerts(pending, render, self._config.max_message_length)
        if len(included) < len(pending):
            log.warning(
                "digest_truncated",
                included=len(included),
                deferred=len(pending) - len(included),
                limit=self._config.max_message_length,
            )

        if not await self._deliver(render(included), None):
            return
        for alert in included:
            self._mark_notified(alert.repo_key)
        report.alerts_sent = len(included)
        log.info("digest_sent", alerts=len(included), mode=self._config.dispatch_mode.value)

    async def _deliver(self, message: str, repo_key: str | None) -> bool:
        """Send one message; a raising channel counts as a failed send."""
        try:
            sent = await self._notifier.send(message)
        except Exception as e:
            log.error("alert_send_error", repo=repo_key, stage=self._stage.value, error=str(e))
            return False
        if not sent:
            log.warning("alert_not_delivered", repo=repo_key)
        return sent

    def _mark_notified(self, key: str) -> None:
        """Start the cooldown for ``key``."""
        record = NotificationRecord(last_alert_at=self._clock())

        def set_record(state: AppState) -> None:
            state.notifications[key] = record

        self._store.update_state(set_record)
