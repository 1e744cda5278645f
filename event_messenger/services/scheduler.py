"""
Background scheduling for notifications and retention cleanup.

Two independent asyncio tasks:

* notifications - one catch-up run at start, then daily at ``notification_hour``
  (local time), sending the email of every event dated today;
* cleanup - every ``cleanup_interval_days`` at ``cleanup_hour`` (local time),
  deleting events notified more than ``grace_days`` ago.

Run bodies are blocking (database, SMTP) and execute in a worker thread under
``task_timeout`` seconds. A failed or timed-out run is logged and the loop
waits for its next slot; only ``stop()`` ends a loop.
Runs never overlap: a manual run started during a scheduled one waits for it
and then sees the events it already notified.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from event_messenger.core.errors import MessengerError, PersistenceError, StateUpdateError
from event_messenger.services.lifecycle import EventLifecycle, is_due_for_notification
from event_messenger.services.notifier import NotificationOutcome, Notifier
from event_messenger.services.repositories import EventStore

logger = logging.getLogger(__name__)


def next_daily_run(now: datetime, hour: int) -> datetime:
    """Today at ``hour``:00, or tomorrow if that has already passed"""
    run_at = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now > run_at:
        run_at += timedelta(days=1)
    return run_at


def next_periodic_run(now: datetime, hour: int, interval_days: int) -> datetime:
    """Today at ``hour``:00, or ``interval_days`` later if that has already passed"""
    run_at = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now > run_at:
        run_at += timedelta(days=interval_days)
    return run_at


@dataclass
class RunSummary:
    task: str
    aborted: bool = False
    processed: int = 0
    sent: int = 0
    empty: int = 0
    skipped: int = 0
    deleted: int = 0
    failed: int = 0


class Scheduler:
    """Owns the notification and cleanup loops"""

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        lifecycle: EventLifecycle,
        notification_hour: int = 8,
        grace_days: int = 30,
        cleanup_hour: int = 2,
        cleanup_interval_days: int = 7,
        task_timeout: Optional[float] = 600,
        clock: Callable[[], datetime] = datetime.now,
        utc_clock: Callable[[], datetime] = datetime.utcnow,
    ):
        if not 0 <= notification_hour <= 23:
            raise ValueError(f"notification_hour must be between 0 and 23, got {notification_hour}")
        if not 0 <= cleanup_hour <= 23:
            raise ValueError(f"cleanup_hour must be between 0 and 23, got {cleanup_hour}")
        if cleanup_interval_days < 1:
            raise ValueError(f"cleanup_interval_days must be at least 1, got {cleanup_interval_days}")

        self.store = store
        self.notifier = notifier
        self.lifecycle = lifecycle
        self.notification_hour = notification_hour
        self.grace_days = grace_days
        self.cleanup_hour = cleanup_hour
        self.cleanup_interval_days = cleanup_interval_days
        self.task_timeout = task_timeout
        self.clock = clock
        self.utc_clock = utc_clock

        self._stop_event: Optional[asyncio.Event] = None
        self._tasks: List[asyncio.Task] = []
        # Manual and scheduled runs share one worker slot
        self._run_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    # -------- lifecycle --------

    async def start(self) -> None:
        """Start both loops on the running event loop"""
        if self.running:
            return

        self._stop_event = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._notification_loop(), name="notification-scheduler"),
            asyncio.create_task(self._cleanup_loop(), name="cleanup-scheduler"),
        ]
        logger.info(
            f"Scheduler started - notifications daily at {self.notification_hour}:00, "
            f"cleanup every {self.cleanup_interval_days} days at {self.cleanup_hour}:00 "
            f"with {self.grace_days} day grace period"
        )

    async def stop(self) -> None:
        """Interrupt pending waits and wait for both loops to finish"""
        if not self._tasks:
            return

        self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        logger.info("Scheduler stopped")

    # -------- loops --------

    async def _notification_loop(self) -> None:
        logger.debug("Running initial notification check on startup...")
        await self._execute("notification", self.run_notifications)

        while not self._stop_event.is_set():
            next_run = next_daily_run(self.clock(), self.notification_hour)
            if not await self._wait_until(next_run, "notification check"):
                break
            logger.debug("Running scheduled notification check...")
            await self._execute("notification", self.run_notifications)

    async def _cleanup_loop(self) -> None:
        while not self._stop_event.is_set():
            next_run = next_periodic_run(self.clock(), self.cleanup_hour, self.cleanup_interval_days)
            if not await self._wait_until(next_run, "cleanup"):
                break
            logger.debug("Running scheduled cleanup...")
            await self._execute("cleanup", self.run_cleanup)

    async def _wait_until(self, run_at: datetime, label: str) -> bool:
        """Sleep until ``run_at``; False when stopped first"""
        delay = max((run_at - self.clock()).total_seconds(), 0.0)
        logger.debug(f"Next {label} scheduled for: {run_at:%Y-%m-%d %H:%M:%S} (in {timedelta(seconds=int(delay))})")
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def _execute(self, label: str, body: Callable[[], RunSummary]) -> Optional[RunSummary]:
        try:
            return await asyncio.wait_for(asyncio.to_thread(body), timeout=self.task_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Scheduled {label} run exceeded {self.task_timeout}s and was abandoned")
        except Exception:
            logger.exception(f"Scheduled {label} run failed")
        return None

    # -------- run bodies --------

    def run_notifications(self) -> RunSummary:
        """Notify every event due today; one event failing never stops the others"""
        with self._run_lock:
            return self._notify_due_events()

    def run_cleanup(self) -> RunSummary:
        """Delete every event whose grace period after notification has elapsed"""
        with self._run_lock:
            return self._delete_expired_events()

    def _notify_due_events(self) -> RunSummary:
        summary = RunSummary(task="notification")
        today = self.clock().date()

        try:
            events = self.store.list_due_today(today)
        except PersistenceError as e:
            logger.error(f"Scheduler could not retrieve events: {e}")
            summary.aborted = True
            return summary

        if not events:
            logger.debug("No events dated for today")
            return summary

        for event in events:
            summary.processed += 1
            if not is_due_for_notification(event, today):
                logger.info(f"Skipping event {event.name} - email already sent")
                summary.skipped += 1
                continue

            try:
                outcome = self.notifier.notify(event)
            except StateUpdateError as e:
                # Already logged as critical by the notifier
                summary.failed += 1
                logger.error(f"Notification state for event {event.name} is stale: {e}")
                continue
            except MessengerError as e:
                summary.failed += 1
                logger.error(f"Could not send notification for event {event.name} to {event.recipient_email}: {e}")
                continue
            except Exception:
                summary.failed += 1
                logger.exception(f"Unexpected error notifying event {event.name}")
                continue

            if outcome is NotificationOutcome.SENT:
                summary.sent += 1
            else:
                summary.empty += 1

        logger.info(
            f"Notification run finished: {summary.sent} sent, {summary.empty} empty, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary

    def _delete_expired_events(self) -> RunSummary:
        summary = RunSummary(task="cleanup")
        now = self.utc_clock()

        try:
            events = self.store.list_deletion_eligible(self.grace_days, now)
        except PersistenceError as e:
            logger.error(f"Error retrieving events for cleanup: {e}")
            summary.aborted = True
            return summary

        if not events:
            logger.debug("No events ready for cleanup")
            return summary

        logger.debug(f"Found {len(events)} events ready for cleanup")

        for event in events:
            summary.processed += 1
            days_since = (now - event.email_sent_at).days if event.email_sent_at else 0
            logger.info(f"Deleting event: {event.name} (sent {days_since} days ago)")
            try:
                self.lifecycle.delete(event, self.grace_days, now)
            except MessengerError as e:
                summary.failed += 1
                logger.error(f"Failed to delete event {event.name}: {e}")
                continue
            except Exception:
                summary.failed += 1
                logger.exception(f"Unexpected error deleting event {event.name}")
                continue
            summary.deleted += 1

        return summary
