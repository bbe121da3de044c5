"""Discord webhook adapter: posts an embed for each order awaiting an admin."""

import httpx
import structlog

from fulfillment.alert.port import AdminAlertPort, ManualDeliveryAlert
from fulfillment.errors import AdminAlertFailed
from fulfillment.notification.templates.formatting import format_rupiah

logger = structlog.get_logger(__name__)

_ORANGE = 16753920


class DiscordAlertAdapter(AdminAlertPort):
    def __init__(self, webhook_url: str, client: httpx.Client | None = None, timeout: float = 30.0):
        self.webhook_url = webhook_url
        self.client = client or httpx.Client(timeout=timeout)

    @staticmethod
    def build_embed(alert: ManualDeliveryAlert) -> dict:
        fields = [
            ("Order ID", alert.order_id),
            ("Product", alert.product_name),
            ("Customer", alert.customer_name or alert.customer_email or "-"),
            ("Email", alert.customer_email or "-"),
            ("Amount", format_rupiah(alert.amount)),
            ("Status", alert.status),
        ]
        return {
            "content": "**New Manual Delivery Required**",
            "embeds": [
                {
                    "title": "Manual Delivery Needed",
                    "color": _ORANGE,
                    "fields": [{"name": name, "value": str(value), "inline": True} for name, value in fields],
                }
            ],
        }

    def manual_delivery_needed(self, alert: ManualDeliveryAlert) -> None:
        try:
            response = self.client.post(self.webhook_url, json=self.build_embed(alert))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AdminAlertFailed(f"Discord webhook failed: {exc}") from exc

        logger.info("alert.manual_delivery_posted", order_id=alert.order_id)
