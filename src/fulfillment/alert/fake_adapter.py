"""Fake admin alert adapter: records alerts for test assertions."""

from fulfillment.alert.port import AdminAlertPort, ManualDeliveryAlert
from fulfillment.errors import AdminAlertFailed


class FakeAlertAdapter(AdminAlertPort):
    def __init__(self):
        self.alerts: list[ManualDeliveryAlert] = []
        self.should_succeed = True
        self.failure_reason = "Webhook unreachable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Webhook unreachable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def manual_delivery_needed(self, alert: ManualDeliveryAlert) -> None:
        if not self.should_succeed:
            raise AdminAlertFailed(self.failure_reason)
        self.alerts.append(alert)

    def reset(self):
        self.alerts.clear()
        self.should_succeed = True
        self.failure_reason = "Webhook unreachable"
