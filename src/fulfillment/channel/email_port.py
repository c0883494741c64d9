"""Customer email port used for shipping confirmations."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Plain-text transactional email to a customer.

    ``reference`` names the order a message is about so the provider can
    thread follow-ups and drop a resend of the same confirmation.
    """

    @abstractmethod
    def send(self, to: str, subject: str, body: str, reference: str | None = None) -> dict:
        """Deliver one message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error
            (only when failed). Transport problems may raise instead.
        """
        ...
