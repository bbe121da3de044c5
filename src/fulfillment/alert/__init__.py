"""Admin alert adapter factory.

Posts to a Discord webhook when ``ADMIN_ALERT_WEBHOOK_URL`` is set,
otherwise records alerts in memory.
"""

from fulfillment.alert.port import AdminAlertPort


def build_alert_adapter(webhook_url: str | None, timeout: float = 30.0) -> AdminAlertPort:
    if webhook_url:
        from fulfillment.alert.discord_adapter import DiscordAlertAdapter

        return DiscordAlertAdapter(webhook_url, timeout=timeout)

    from fulfillment.alert.fake_adapter import FakeAlertAdapter

    return FakeAlertAdapter()
