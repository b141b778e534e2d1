"""DigestOrchestrator - syncs channels and produces the digest."""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from src.config import DigestConfig
from src.delivery import DigestMailer, build_subject
from src.digest import DigestSummarizer, PromptAssembler, merge
from src.llm import OpenAIAdapter
from src.slack import (
    Channel,
    ChannelResolver,
    HistoryFetcher,
    RetryPolicy,
    SlackGateway,
    SlackSyncError,
    SyncWindow,
    Update,
)
from src.storage import (
    DigestRepository,
    PersistenceError,
    PostgresRepository,
    WatermarkStore,
)

from .models import ChannelSyncResult, RunResult, StepResult

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DigestOrchestrator:
    """Runs one digest: per-channel sync, prompt assembly, summary, delivery.

    Channels are processed one at a time. A failing channel is logged and
    skipped; the run continues with the rest. The watermark of a channel
    only advances after its fetch succeeded and every fetched message was
    stored.

    Example:
        orchestrator = DigestOrchestrator.from_config(DigestConfig.from_env())
        result = orchestrator.run(["general", "support-tier1"])
        print(f"Success: {result.success}")
    """

    def __init__(
        self,
        resolver: ChannelResolver,
        fetcher: HistoryFetcher,
        repository: DigestRepository,
        watermarks: WatermarkStore,
        assembler: PromptAssembler,
        summarizer: DigestSummarizer,
        mailer: Optional[DigestMailer] = None,
        recipients: Optional[list[str]] = None,
        history_window: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._resolver = resolver
        self._fetcher = fetcher
        self._repository = repository
        self._watermarks = watermarks
        self._assembler = assembler
        self._summarizer = summarizer
        self._mailer = mailer
        self._recipients = recipients or []
        self._history_window = history_window
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: DigestConfig,
        repository: Optional[DigestRepository] = None,
    ) -> "DigestOrchestrator":
        """Wire production components from ``config``."""
        retry = RetryPolicy(
            page_delay=config.page_delay,
            rate_limit_delay=config.rate_limit_delay,
            max_retries=config.rate_limit_retries,
        )
        gateway = SlackGateway(token=config.slack_token)
        if repository is None:
            repository = PostgresRepository(
                host=config.db_host,
                port=config.db_port,
                dbname=config.db_name,
                user=config.db_user,
                password=config.db_password,
            )
        window = timedelta(days=config.history_window_days)
        return cls(
            resolver=ChannelResolver(gateway, repository, retry),
            fetcher=HistoryFetcher(gateway, retry),
            repository=repository,
            watermarks=WatermarkStore(repository, default_lookback=window),
            assembler=PromptAssembler(token_budget=config.token_budget),
            summarizer=DigestSummarizer(
                OpenAIAdapter(api_key=config.openai_api_key, model=config.openai_model)
            ),
            mailer=DigestMailer(),
            recipients=config.email_to,
            history_window=window,
        )

    def _get_mailer(self) -> DigestMailer:
        if self._mailer is None:
            self._mailer = DigestMailer()
        return self._mailer

    @staticmethod
    def _skip_step(name: str, reason: str) -> StepResult:
        """Record a step as skipped."""
        return StepResult(
            name=name,
            success=False,
            duration_seconds=0.0,
            details={"reason": reason},
            skipped=True,
        )

    def _run_step(
        self, name: str, fn: Callable[[], dict], focus: Optional[str] = None
    ) -> StepResult:
        """Run a pipeline step with timing and error isolation."""
        context = {"step": name, "focus": focus}
        start = time.monotonic()
        try:
            details = fn()
            duration = time.monotonic() - start
            logger.info("Step '%s' finished in %.2fs", name, duration, extra=context)
            return StepResult(
                name=name,
                success=True,
                duration_seconds=round(duration, 2),
                details=details,
            )
        except Exception as e:
            duration = time.monotonic() - start
            logger.exception("Step '%s' failed", name, extra=context)
            return StepResult(
                name=name,
                success=False,
                duration_seconds=round(duration, 2),
                details={},
                error=str(e),
            )

    def _save_fresh(
        self, channel: Channel, fresh: list[Update], context: dict
    ) -> tuple[int, int]:
        """Persist fetched updates; returns (saved, failed)."""
        saved = 0
        failed = 0
        for update in merge(fresh, []):
            try:
                self._repository.upsert_message(channel.local_id, update)
                saved += 1
            except PersistenceError as e:
                failed += 1
                logger.error(
                    "Failed to save message %s in %s: %s",
                    update.ts,
                    channel.name,
                    e,
                    extra=context,
                )
        return saved, failed

    def sync_channel(
        self,
        name: str,
        since_override: Optional[datetime] = None,
        focus: Optional[str] = None,
    ) -> tuple[ChannelSyncResult, list[Update]]:
        """Resolve, fetch, merge and persist one channel.

        Args:
            name: Channel display name.
            since_override: Explicit fetch start used instead of the
                watermark. The watermark is only advanced afterwards when
                the override does not start later than it, so no gap is
                left behind the stored value.
            focus: Focus of the current run, attached to log records.

        Returns:
            The channel's result and its deduplicated updates (empty when
            the channel was skipped).
        """
        context = {"channel": name, "focus": focus}
        result = ChannelSyncResult(channel_name=name)

        try:
            channel = self._resolver.resolve(name)
        except (SlackSyncError, PersistenceError) as e:
            result.error = str(e)
            logger.error("Failed to get channel ID for %s: %s", name, e, extra=context)
            return result, []
        result.remote_id = channel.remote_id

        if since_override is not None:
            since = since_override
            logger.info(
                "Using explicit start time for %s: %s",
                name,
                since.isoformat(),
                extra=context,
            )
        else:
            since = self._watermarks.get(channel)
            logger.info(
                "Using last fetch time for %s: %s", name, since.isoformat(), extra=context
            )
        window = SyncWindow(channel=channel, since=since, until=self._clock())

        try:
            fresh = list(self._fetcher.fetch(channel.remote_id, window.since, channel.name))
        except SlackSyncError as e:
            result.error = str(e)
            logger.error("Failed to fetch history for %s: %s", name, e, extra=context)
            return result, []
        result.fetched = len(fresh)

        persisted: list[Update] = []
        if channel.is_persisted:
            try:
                persisted = self._repository.query_recent_messages(
                    channel.local_id, window.until - self._history_window
                )
            except PersistenceError as e:
                result.error = str(e)
                logger.error(
                    "Failed to get messages from database for %s: %s",
                    name,
                    e,
                    extra=context,
                )
                return result, []
        result.persisted_loaded = len(persisted)

        updates = merge(fresh, persisted)
        result.merged = len(updates)

        if channel.is_persisted:
            result.saved, result.save_failures = self._save_fresh(channel, fresh, context)
            if result.save_failures:
                logger.warning(
                    "Not advancing last fetch time for %s: %d of %d messages failed to save",
                    name,
                    result.save_failures,
                    result.saved + result.save_failures,
                    extra=context,
                )
            elif since_override is not None and since_override > self._watermarks.get(
                channel
            ):
                logger.info(
                    "Keeping last fetch time for %s: explicit start is later than it",
                    name,
                    extra=context,
                )
            else:
                result.watermark_advanced = self._watermarks.set(channel, window.until)
        else:
            logger.warning(
                "Channel %s has no local id; messages are digested but not stored",
                name,
                extra=context,
            )

        logger.info(
            "Processed channel %s: new=%d stored=%d total=%d saved=%d",
            name,
            result.fetched,
            result.persisted_loaded,
            result.merged,
            result.saved,
            extra=context,
        )
        result.success = True
        return result, updates

    def run(
        self,
        channels: list[str],
        focus: str = "default",
        since_override: Optional[datetime] = None,
        dry_run: bool = False,
    ) -> RunResult:
        """Execute a full digest run.

        Steps:
            1. Sync every channel (isolated per channel)
            2. Assemble the prompt and generate the digest
            3. Deliver the digest (suppressed in dry-run mode)

        Returns:
            RunResult with per-channel and per-step outcomes.
        """
        result = RunResult(started_at=self._clock(), focus=focus, dry_run=dry_run)
        updates: list[Update] = []

        def sync_step() -> dict:
            for raw_name in channels:
                name = raw_name.strip()
                if not name:
                    continue
                channel_result, channel_updates = self.sync_channel(
                    name, since_override, focus
                )
                result.channels.append(channel_result)
                updates.extend(channel_updates)

            saved = sum(c.saved for c in result.channels)
            logger.info(
                "Finished processing channels: processed=%d skipped=%d saved=%d updates=%d",
                result.channels_processed,
                result.channels_skipped,
                saved,
                len(updates),
            )
            return {
                "channels_processed": result.channels_processed,
                "channels_skipped": result.channels_skipped,
                "messages_saved": saved,
                "updates": len(updates),
            }

        sync_result = self._run_step("sync", sync_step, focus)
        result.steps.append(sync_result)

        if not sync_result.success:
            result.steps.append(self._skip_step("digest", "sync failed"))
            result.steps.append(self._skip_step("deliver", "sync failed"))
            result.finished_at = self._clock()
            return result

        if not updates:
            logger.info("No updates found across monitored channels")
            result.steps.append(self._skip_step("digest", "no updates"))
            result.steps.append(self._skip_step("deliver", "no updates"))
            result.finished_at = self._clock()
            return result

        def digest_step() -> dict:
            bundle = self._assembler.assemble(updates, focus)
            result.bundle = bundle
            details = {
                "messages_included": bundle.included_message_count,
                "messages_total": bundle.total_message_count,
                "truncated": bundle.truncated,
            }
            if not bundle.is_renderable:
                logger.info("Nothing renderable within the prompt budget")
                return details
            result.digest_text = self._summarizer.summarize(bundle)
            details["summary_chars"] = len(result.digest_text)
            return details

        digest_result = self._run_step("digest", digest_step, focus)
        result.steps.append(digest_result)

        if not digest_result.success:
            result.steps.append(self._skip_step("deliver", "digest failed"))
            result.finished_at = self._clock()
            return result
        if result.digest_text is None:
            result.steps.append(self._skip_step("deliver", "nothing renderable"))
            result.finished_at = self._clock()
            return result

        def deliver_step() -> dict:
            result.subject = build_subject(focus, self._clock().astimezone().date())
            if dry_run:
                logger.info("Dry run enabled, skipping email send")
                return {"dry_run": True, "email_sent": False}
            message_id = self._get_mailer().send(
                result.subject, result.digest_text, self._recipients
            )
            return {
                "email_sent": message_id is not None,
                "recipients": len(self._recipients),
            }

        result.steps.append(self._run_step("deliver", deliver_step, focus))
        result.finished_at = self._clock()
        return result
