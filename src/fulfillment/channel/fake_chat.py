"""In-memory team chat adapter."""

from uuid import uuid4

from fulfillment.channel.chat_port import ChatPort


class FakeChatAdapter(ChatPort):
    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Chat delivery failed"
        self.raise_on_send: Exception | None = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Chat delivery failed",
        raise_on_send: Exception | None = None,
    ):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_on_send = raise_on_send

    def send(self, channel: str, message: str) -> dict:
        if self.raise_on_send is not None:
            raise self.raise_on_send
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"chat-{uuid4().hex[:12]}"
        self.sent_messages.append({"message_id": message_id, "channel": channel, "message": message})
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Chat delivery failed"
        self.raise_on_send = None
