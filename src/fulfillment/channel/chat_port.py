"""Team chat port for operational alerts (orders shipped, labels voided)."""

from abc import ABC, abstractmethod


class ChatPort(ABC):
    @abstractmethod
    def send(self, channel: str, message: str) -> dict:
        """Post a message to a team channel.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
