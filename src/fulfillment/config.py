"""Runtime settings for the fulfillment core.

Every retry, backoff and scheduling constant is read from the environment
once and passed around as a frozen ``FulfillmentSettings``.
"""

import os
from dataclasses import dataclass
from datetime import timedelta


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


@dataclass(frozen=True)
class FulfillmentSettings:
    # Delivery
    review_request_delay: timedelta = timedelta(minutes=3)
    api_retry_attempts: int = 3
    api_retry_base_delay_ms: int = 1000
    http_timeout_seconds: float = 30.0

    # Notification queue
    queue_batch_size: int = 5
    queue_max_attempts: int = 3
    queue_retry_delay: timedelta = timedelta(minutes=1)
    worker_interval_seconds: float = 60.0

    # Payments
    default_gateway: str = "pakasir"
    backup_gateway: str | None = None
    payment_amount_tolerance: float = 0.01

    # Branding used in emails and alerts
    site_name: str = "Digital Store"
    site_url: str = "http://localhost:3000"

    # Admin alerting
    alert_webhook_url: str | None = None

    @classmethod
    def from_env(cls) -> "FulfillmentSettings":
        return cls(
            review_request_delay=timedelta(seconds=_env_int("REVIEW_REQUEST_DELAY_SECONDS", 180)),
            api_retry_attempts=_env_int("DELIVERY_API_RETRY_ATTEMPTS", 3),
            api_retry_base_delay_ms=_env_int("DELIVERY_API_RETRY_DELAY_MS", 1000),
            http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", 30.0),
            queue_batch_size=_env_int("MAIL_QUEUE_BATCH_SIZE", 5),
            queue_max_attempts=_env_int("MAIL_QUEUE_MAX_ATTEMPTS", 3),
            queue_retry_delay=timedelta(seconds=_env_int("MAIL_QUEUE_RETRY_DELAY_SECONDS", 60)),
            worker_interval_seconds=_env_float("MAIL_QUEUE_INTERVAL_SECONDS", 60.0),
            default_gateway=os.getenv("DEFAULT_PAYMENT_GATEWAY", "pakasir"),
            backup_gateway=os.getenv("BACKUP_PAYMENT_GATEWAY") or None,
            site_name=os.getenv("SITE_NAME", "Digital Store"),
            site_url=os.getenv("SITE_URL", "http://localhost:3000"),
            alert_webhook_url=os.getenv("ADMIN_ALERT_WEBHOOK_URL") or None,
        )
