"""MessageBus module."""

from .bus import IMessageBus, MessageBus, MessageHandler, parse_message, serialize_message

__all__ = [
    "IMessageBus",
    "MessageBus",
    "MessageHandler",
    "parse_message",
    "serialize_message",
]
