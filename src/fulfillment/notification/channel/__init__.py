"""Email channel registry.

Uses the fake adapter by default; ``EMAIL_ADAPTER=resend`` switches to the
Resend HTTP adapter in production.
"""

import os

from fulfillment.notification.channel.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _email_channel
    if _email_channel is None:
        adapter = os.getenv("EMAIL_ADAPTER", "fake").lower()
        if adapter == "resend":
            from fulfillment.notification.channel.resend_email import ResendEmailAdapter

            _email_channel = ResendEmailAdapter()
        elif adapter == "fake":
            from fulfillment.notification.channel.fake_email import FakeEmailAdapter

            _email_channel = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown email adapter: {adapter}")

    return _email_channel


def reset_channels():
    """Reset the channel singleton (useful for testing)."""
    global _email_channel
    _email_channel = None
