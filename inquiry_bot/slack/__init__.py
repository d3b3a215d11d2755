"""Slack integration: request verification, event decoding and Web API client."""

from .client import ChatMessage, SlackClient
from .events import (
    EventCallback,
    MessagePayload,
    ReactionPayload,
    UnhandledEvent,
    UnsupportedEnvelope,
    UrlVerification,
    decode_envelope,
)
from .signature import SignatureVerifier

__all__ = [
    "ChatMessage",
    "EventCallback",
    "MessagePayload",
    "ReactionPayload",
    "SignatureVerifier",
    "SlackClient",
    "UnhandledEvent",
    "UnsupportedEnvelope",
    "UrlVerification",
    "decode_envelope",
]
