"""Renders queued templates and hands them to the email channel."""

import structlog

from fulfillment.errors import QueueSendFailed
from fulfillment.notification.channel.email_port import EmailMessage, EmailPort
from fulfillment.notification.templates import get_template

logger = structlog.get_logger(__name__)


class NotificationSender:
    def __init__(self, channel: EmailPort, site_name: str, site_url: str) -> None:
        self.channel = channel
        self.site_name = site_name
        self.site_url = site_url

    def render(self, recipient: str, template: str, data: dict) -> EmailMessage:
        rendered = get_template(template).render(data, self.site_name, self.site_url)
        return EmailMessage(
            to=recipient,
            subject=rendered["subject"],
            body=rendered["body"],
            html=rendered.get("html"),
        )

    def send(self, recipient: str, template: str, data: dict) -> dict:
        """Render and send one email.

        Raises:
            QueueSendFailed: the template could not be rendered, or the channel
                raised or reported a failure.
        """
        try:
            message = self.render(recipient, template, data)
        except (ValueError, KeyError, TypeError) as exc:
            raise QueueSendFailed(template, recipient, str(exc)) from exc

        try:
            result = self.channel.send(message)
        except Exception as exc:
            logger.warning("email.channel_error", template=template, recipient=recipient, error=str(exc))
            raise QueueSendFailed(template, recipient, str(exc) or exc.__class__.__name__) from exc

        if result.get("status") != "sent":
            raise QueueSendFailed(template, recipient, result.get("error") or "Unknown send error")

        logger.debug("email.sent", template=template, recipient=recipient, message_id=result.get("message_id"))
        return result
