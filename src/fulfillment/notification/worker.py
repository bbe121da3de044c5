"""Notification queue worker: sends due emails with bounded retries.

Each tick picks up to ``batch_size`` pending items whose ``scheduled_at``
has passed. Every item is flipped to ``processing`` with its attempt count
incremented and persisted before the send, then completed, rescheduled or
failed. One item's failure never stops the rest of the batch.
"""

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog
from protean.utils.globals import current_domain

from fulfillment.errors import QueueSendFailed
from fulfillment.notification.queue_item import NotificationQueueItem, QueueItemStatus, as_utc
from fulfillment.notification.sender import NotificationSender

logger = structlog.get_logger(__name__)


@dataclass
class QueueRunSummary:
    processed: int = 0
    completed: int = 0
    retried: int = 0
    failed: int = 0


class NotificationQueueWorker:
    def __init__(
        self,
        sender: NotificationSender,
        batch_size: int = 5,
        retry_delay: timedelta = timedelta(minutes=1),
        interval_seconds: float = 60.0,
    ) -> None:
        self.sender = sender
        self.batch_size = batch_size
        self.retry_delay = retry_delay
        self.interval_seconds = interval_seconds

    def due_items(self, now: datetime) -> list[NotificationQueueItem]:
        repo = current_domain.repository_for(NotificationQueueItem)
        pending = repo._dao.query.filter(status=QueueItemStatus.PENDING.value).all().items
        due = [item for item in pending if item.is_due(now)]
        due.sort(key=lambda item: as_utc(item.scheduled_at))
        return due[: self.batch_size]

    def process_due(self, now: datetime | None = None) -> QueueRunSummary:
        """Run one tick of the queue."""
        now = now or datetime.now(UTC)
        summary = QueueRunSummary()

        for item in self.due_items(now):
            summary.processed += 1
            try:
                outcome = self._process(item, now)
            except Exception as exc:
                logger.error("notification.processing_error", item_id=str(item.id), error=str(exc))
                continue
            if outcome == QueueItemStatus.COMPLETED:
                summary.completed += 1
            elif outcome == QueueItemStatus.FAILED:
                summary.failed += 1
            else:
                summary.retried += 1

        if summary.processed:
            logger.info(
                "notification.queue_processed",
                processed=summary.processed,
                completed=summary.completed,
                retried=summary.retried,
                failed=summary.failed,
            )
        return summary

    def _process(self, item: NotificationQueueItem, now: datetime) -> QueueItemStatus:
        repo = current_domain.repository_for(NotificationQueueItem)

        item.start_attempt(now)
        repo.add(item)

        try:
            self.sender.send(item.recipient, item.template, item.data)
        except QueueSendFailed as exc:
            return self._fail(item, exc.reason, now)
        except Exception as exc:
            # Anything else must not leave the item stuck in processing
            return self._fail(item, str(exc) or exc.__class__.__name__, now)

        item.mark_completed(now)
        repo.add(item)
        return QueueItemStatus.COMPLETED

    def _fail(self, item: NotificationQueueItem, reason: str, now: datetime) -> QueueItemStatus:
        item.record_failure(reason, self.retry_delay, now)
        current_domain.repository_for(NotificationQueueItem).add(item)
        logger.warning(
            "notification.send_failed",
            item_id=str(item.id),
            template=item.template,
            attempts=item.attempts,
            status=item.status,
            error=reason,
        )
        return QueueItemStatus(item.status)

    def run_forever(self, stop_event: threading.Event) -> None:
        """Tick immediately, then every ``interval_seconds`` until ``stop_event`` is set."""
        logger.info("notification.worker_started", interval_seconds=self.interval_seconds)
        while True:
            try:
                self.process_due()
            except Exception as exc:
                logger.error("notification.tick_failed", error=str(exc))
            if stop_event.wait(self.interval_seconds):
                break
        logger.info("notification.worker_stopped")
