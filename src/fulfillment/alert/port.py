"""Admin alert port: tells the shop staff an order needs manual delivery."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ManualDeliveryAlert:
    order_id: str
    product_name: str
    customer_name: str | None
    customer_email: str | None
    amount: int
    status: str = "AWAITING_ADMIN"


class AdminAlertPort(ABC):
    @abstractmethod
    def manual_delivery_needed(self, alert: ManualDeliveryAlert) -> None:
        """Post the alert. Raises AdminAlertFailed when it cannot be delivered."""
        ...
