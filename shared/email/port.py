"""Email sender port, the abstract interface for transactional email."""

from abc import ABC, abstractmethod


class EmailSender(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(self, to: str, subject: str, html: str) -> str:
        """Send an HTML email and return the provider's message id.

        Raises:
            EmailDeliveryError: the message could not be handed to the provider.
        """
        ...
