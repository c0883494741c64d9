"""Notification channel registry.

One adapter instance per channel type. Fakes are used unless a real adapter
has been installed with ``set_channel`` (the app does this at startup when
provider credentials are present).
"""

EMAIL = "email"
CHAT = "chat"

_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str):
    """Return the adapter for ``channel_type`` ("email" or "chat")."""
    if channel_type not in _channel_instances:
        if channel_type == EMAIL:
            from fulfillment.channel.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        elif channel_type == CHAT:
            from fulfillment.channel.fake_chat import FakeChatAdapter

            _channel_instances[channel_type] = FakeChatAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
