"""Tests for StockItem consumption and the NotificationQueueItem lifecycle."""

from datetime import UTC, datetime, timedelta

import pytest
from fulfillment.notification.queue_item import NotificationQueueItem, QueueItemStatus
from fulfillment.stock.stock import StockItem
from protean.exceptions import ValidationError


class TestStockItem:
    def test_loaded_item_is_unused(self):
        item = StockItem.load("netflix-premium", {"username": "a@mail.com", "password": "pw"})
        assert item.used is False
        assert item.payload_data == {"username": "a@mail.com", "password": "pw"}

    def test_consume_assigns_order(self):
        item = StockItem.load("netflix-premium", {"code": "X"})
        item.consume("JMB20240101ABCDEFGHIJ", "budi@example.com")
        assert item.used is True
        assert item.used_by == "JMB20240101ABCDEFGHIJ"
        assert item.used_by_email == "budi@example.com"
        assert item.used_at is not None

    def test_used_item_is_never_reassigned(self):
        item = StockItem.load("netflix-premium", {"code": "X"})
        item.consume("order-1", "a@example.com")
        with pytest.raises(ValidationError):
            item.consume("order-2", "b@example.com")
        assert item.used_by == "order-1"


class TestNotificationQueueItem:
    NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def _item(self, **kwargs):
        return NotificationQueueItem.enqueue("budi@example.com", "order_created", {"orderId": "O1"}, now=self.NOW, **kwargs)

    def test_enqueue_defaults(self):
        item = self._item()
        assert item.status == QueueItemStatus.PENDING.value
        assert item.attempts == 0
        assert item.max_attempts == 3
        assert item.scheduled_at == self.NOW
        assert item.data == {"orderId": "O1"}

    def test_delay_pushes_schedule(self):
        item = self._item(delay=timedelta(minutes=3))
        assert item.scheduled_at == self.NOW + timedelta(minutes=3)
        assert not item.is_due(self.NOW)
        assert item.is_due(self.NOW + timedelta(minutes=3))

    def test_start_attempt_spends_an_attempt(self):
        item = self._item()
        item.start_attempt(self.NOW)
        assert item.status == QueueItemStatus.PROCESSING.value
        assert item.attempts == 1
        assert not item.is_due(self.NOW)

    def test_failure_with_attempts_left_reschedules(self):
        item = self._item()
        item.start_attempt(self.NOW)
        item.record_failure("SMTP down", timedelta(minutes=1), self.NOW)
        assert item.status == QueueItemStatus.PENDING.value
        assert item.scheduled_at == self.NOW + timedelta(minutes=1)
        assert item.last_error == "SMTP down"

    def test_failure_on_last_attempt_is_final(self):
        item = self._item()
        for _ in range(3):
            item.start_attempt(self.NOW)
            item.record_failure("SMTP down", timedelta(minutes=1), self.NOW)
        assert item.status == QueueItemStatus.FAILED.value
        assert item.attempts == 3
        assert item.failed_at == self.NOW

    def test_completed_is_terminal(self):
        item = self._item()
        item.start_attempt(self.NOW)
        item.mark_completed(self.NOW)
        assert item.status == QueueItemStatus.COMPLETED.value
        with pytest.raises(ValidationError):
            item.start_attempt(self.NOW)

    def test_cannot_complete_without_starting(self):
        item = self._item()
        with pytest.raises(ValidationError):
            item.mark_completed(self.NOW)
