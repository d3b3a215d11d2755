"""Typed Slack Events API envelopes.

Payloads are decoded once at the HTTP boundary; the rest of the bot works with
these models instead of raw dictionaries.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from inquiry_bot.errors import RequestValidationError


class ReactionItem(BaseModel):
    """The item a reaction was attached to."""

    model_config = ConfigDict(extra="ignore")

    type: str = ""
    channel: str = ""
    ts: str = ""


class ReactionPayload(BaseModel):
    """``reaction_added`` or ``reaction_removed`` event."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["reaction_added", "reaction_removed"]
    user: str = ""
    reaction: str = ""
    item: ReactionItem = ReactionItem()
    event_ts: str = ""

    @property
    def event_type(self) -> str:
        """``added`` or ``removed``."""
        return "added" if self.type == "reaction_added" else "removed"

    @property
    def is_message_reaction(self) -> bool:
        return self.item.type == "message"


class MessagePayload(BaseModel):
    """``message`` event; received but not acted upon."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["message"]
    channel: str = ""
    user: str = ""
    text: str = ""
    ts: str = ""


class UnhandledEvent(BaseModel):
    """Any inner event type the bot does not handle."""

    model_config = ConfigDict(extra="allow")

    type: str = ""


InnerEvent = ReactionPayload | MessagePayload | UnhandledEvent


class UrlVerification(BaseModel):
    """Handshake Slack sends when the request URL is configured."""

    type: Literal["url_verification"]
    challenge: str
    token: str = ""


class EventCallback(BaseModel):
    """Wrapper around a workspace event."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["event_callback"]
    event: InnerEvent = UnhandledEvent()
    team_id: str = ""
    event_id: str = ""


class UnsupportedEnvelope(BaseModel):
    """Envelope types other than the two above, e.g. ``app_rate_limited``."""

    model_config = ConfigDict(extra="allow")

    type: str = ""


Envelope = UrlVerification | EventCallback | UnsupportedEnvelope

_INNER_EVENT_TYPES: dict[str, type[BaseModel]] = {
    "reaction_added": ReactionPayload,
    "reaction_removed": ReactionPayload,
    "message": MessagePayload,
}


def decode_inner_event(payload: Any) -> InnerEvent:
    """Decode the ``event`` object of an ``event_callback`` envelope."""
    if not isinstance(payload, dict):
        raise RequestValidationError("Event payload must be an object")

    model = _INNER_EVENT_TYPES.get(payload.get("type", ""), UnhandledEvent)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(f"Invalid {payload.get('type')} event: {e}") from e


def decode_envelope(payload: Any) -> Envelope:
    """Decode a Slack Events API request body.

    Raises:
        RequestValidationError: If the payload is not a valid envelope
    """
    if not isinstance(payload, dict):
        raise RequestValidationError("Envelope must be a JSON object")

    envelope_type = payload.get("type")
    try:
        if envelope_type == "url_verification":
            return UrlVerification.model_validate(payload)
        if envelope_type == "event_callback":
            inner = decode_inner_event(payload.get("event"))
            fields = {key: value for key, value in payload.items() if key != "event"}
            return EventCallback.model_validate(fields).model_copy(update={"event": inner})
        return UnsupportedEnvelope.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(f"Invalid {envelope_type} envelope: {e}") from e
