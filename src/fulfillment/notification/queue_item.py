"""NotificationQueueItem aggregate: one durable, retryable outbound email.

State Machine:
    pending → processing → completed
    pending → processing → pending     (send failed, attempts left)
    pending → processing → failed      (send failed, attempts exhausted)

``attempts`` is incremented and persisted before each send, so a crash
mid-send is visible as a spent attempt. Delivery is at-least-once.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String, Text

from fulfillment.domain import fulfillment


class QueueItemStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    QueueItemStatus.PENDING: {QueueItemStatus.PROCESSING},
    QueueItemStatus.PROCESSING: {
        QueueItemStatus.COMPLETED,
        QueueItemStatus.PENDING,  # Retry
        QueueItemStatus.FAILED,
    },
    QueueItemStatus.COMPLETED: set(),  # Terminal
    QueueItemStatus.FAILED: set(),  # Terminal
}


def as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


@fulfillment.aggregate
class NotificationQueueItem:
    recipient: String(required=True, max_length=254)
    template: String(required=True, max_length=50)
    template_data: Text()  # JSON
    status: String(choices=QueueItemStatus, default=QueueItemStatus.PENDING.value)
    scheduled_at: DateTime(required=True)
    attempts: Integer(default=0, min_value=0)
    max_attempts: Integer(default=3, min_value=1)
    last_error: Text()

    created_at: DateTime()
    updated_at: DateTime()
    completed_at: DateTime()
    failed_at: DateTime()

    @classmethod
    def enqueue(cls, recipient, template, data=None, delay=None, max_attempts=3, now=None):
        """Queue an email, optionally delayed by ``delay``."""
        now = now or datetime.now(UTC)
        return cls(
            recipient=recipient,
            template=template,
            template_data=json.dumps(data or {}, default=str),
            status=QueueItemStatus.PENDING.value,
            scheduled_at=now + (delay or timedelta(0)),
            attempts=0,
            max_attempts=max_attempts,
            created_at=now,
            updated_at=now,
        )

    @property
    def data(self) -> dict:
        return json.loads(self.template_data) if self.template_data else {}

    def is_due(self, now=None) -> bool:
        now = now or datetime.now(UTC)
        return self.status == QueueItemStatus.PENDING.value and as_utc(self.scheduled_at) <= as_utc(now)

    def _assert_can_transition(self, target_status):
        current = QueueItemStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def start_attempt(self, now=None):
        """Claim the item for sending and spend one attempt."""
        self._assert_can_transition(QueueItemStatus.PROCESSING)

        self.status = QueueItemStatus.PROCESSING.value
        self.attempts = self.attempts + 1
        self.updated_at = now or datetime.now(UTC)

    def mark_completed(self, now=None):
        self._assert_can_transition(QueueItemStatus.COMPLETED)

        now = now or datetime.now(UTC)
        self.status = QueueItemStatus.COMPLETED.value
        self.completed_at = now
        self.updated_at = now

    def record_failure(self, error, retry_delay, now=None):
        """Reschedule after a failed send, or give up once attempts are exhausted."""
        exhausted = self.attempts >= self.max_attempts
        self._assert_can_transition(QueueItemStatus.FAILED if exhausted else QueueItemStatus.PENDING)

        now = now or datetime.now(UTC)
        self.last_error = error
        self.updated_at = now

        if exhausted:
            self.status = QueueItemStatus.FAILED.value
            self.failed_at = now
        else:
            self.status = QueueItemStatus.PENDING.value
            self.scheduled_at = now + retry_delay
