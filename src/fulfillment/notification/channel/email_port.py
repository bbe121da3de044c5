"""Email channel port: the boundary the notification sender talks to."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    html: str | None = None


class EmailPort(ABC):
    @abstractmethod
    def send(self, message: EmailMessage) -> dict:
        """Send a rendered email.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
