"""Mail provider base class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: str
    mime_subtype: str = "plain"


@dataclass
class MailMessage:
    subject: str
    body: str
    attachments: list[Attachment] = field(default_factory=list)


class Mailer(ABC):
    @abstractmethod
    async def send(self, message: MailMessage) -> bool:
        """Deliver `message`.

        Returns:
            True when handed to the transport, False when delivery is disabled.

        Raises:
            ProviderError: The transport rejected the message.
        """
        ...
