"""Wiring of the fulfillment services.

Provides get_services() / set_services() the same way the adapter
factories do: one process-wide container built from the environment, which
tests replace with one built around fakes.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from fulfillment.alert import build_alert_adapter
from fulfillment.alert.port import AdminAlertPort
from fulfillment.config import FulfillmentSettings
from fulfillment.delivery.api_deliverer import RetryingAPIDeliverer
from fulfillment.delivery.dispatcher import DeliveryDispatcher
from fulfillment.delivery.strategies import ApiStrategy, ManualStrategy, PreloadedStrategy
from fulfillment.notification.channel import get_email_channel
from fulfillment.notification.channel.email_port import EmailPort
from fulfillment.notification.queue import NotificationQueue
from fulfillment.notification.sender import NotificationSender
from fulfillment.notification.worker import NotificationQueueWorker
from fulfillment.order.settlement import SettlementService
from fulfillment.stock.ledger import StockLedger
from payments.gateway import get_registry
from payments.gateway.registry import GatewayRegistry


@dataclass
class FulfillmentServices:
    settings: FulfillmentSettings
    registry: GatewayRegistry
    ledger: StockLedger
    queue: NotificationQueue
    alerts: AdminAlertPort
    deliverer: RetryingAPIDeliverer
    dispatcher: DeliveryDispatcher
    settlement: SettlementService
    sender: NotificationSender
    worker: NotificationQueueWorker


def build_services(
    settings: FulfillmentSettings | None = None,
    registry: GatewayRegistry | None = None,
    email_channel: EmailPort | None = None,
    alerts: AdminAlertPort | None = None,
    api_client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> FulfillmentServices:
    """Assemble every service; anything not passed in comes from the environment."""
    settings = settings or FulfillmentSettings.from_env()
    registry = registry or get_registry()
    email_channel = email_channel or get_email_channel()
    alerts = alerts or build_alert_adapter(settings.alert_webhook_url, timeout=settings.http_timeout_seconds)

    ledger = StockLedger()
    queue = NotificationQueue(
        max_attempts=settings.queue_max_attempts,
        review_request_delay=settings.review_request_delay,
    )
    deliverer = RetryingAPIDeliverer(client=api_client, timeout=settings.http_timeout_seconds, sleep=sleep)
    dispatcher = DeliveryDispatcher(
        {
            "preloaded": PreloadedStrategy(ledger, queue),
            "api": ApiStrategy(deliverer, queue),
            "manual": ManualStrategy(queue, alerts),
        },
        api_retry_attempts=settings.api_retry_attempts,
        api_retry_base_delay_ms=settings.api_retry_base_delay_ms,
    )
    sender = NotificationSender(email_channel, settings.site_name, settings.site_url)

    return FulfillmentServices(
        settings=settings,
        registry=registry,
        ledger=ledger,
        queue=queue,
        alerts=alerts,
        deliverer=deliverer,
        dispatcher=dispatcher,
        settlement=SettlementService(registry, dispatcher, settings),
        sender=sender,
        worker=NotificationQueueWorker(
            sender,
            batch_size=settings.queue_batch_size,
            retry_delay=settings.queue_retry_delay,
            interval_seconds=settings.worker_interval_seconds,
        ),
    )


_services: FulfillmentServices | None = None


def get_services() -> FulfillmentServices:
    """Return the process-wide services (singleton)."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: FulfillmentServices) -> None:
    """Override the active services (useful for tests)."""
    global _services
    _services = services


def reset_services() -> None:
    """Reset the services singleton."""
    global _services
    _services = None
