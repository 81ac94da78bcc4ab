"""Discord interaction data models (API v10)."""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InteractionType(IntEnum):
    """Kinds of interaction Discord sends to the webhook."""

    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class InteractionResponseType(IntEnum):
    """Kinds of reply the webhook can return."""

    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8
    MODAL = 9


class ApplicationCommandOptionType(IntEnum):
    """Slash command option value types."""

    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9
    NUMBER = 10
    ATTACHMENT = 11


# Message flag that makes a reply visible to the invoking user only
EPHEMERAL_FLAG = 64


class InteractionState(str, Enum):
    """Lifecycle of a single interaction."""

    AWAITING_HANDSHAKE = "awaiting_handshake"
    ACKNOWLEDGED_IMMEDIATE = "acknowledged_immediate"
    ACKNOWLEDGED_DEFERRED = "acknowledged_deferred"
    COMPLETED = "completed"


class InteractionDataOption(BaseModel):
    """One option supplied with a slash command."""

    name: str
    type: int
    value: str | int | float | bool | None = None
    options: list["InteractionDataOption"] | None = None


class InteractionData(BaseModel):
    """Command data attached to an application command interaction."""

    id: str | None = None
    name: str = ""
    type: int | None = None
    options: list[InteractionDataOption] | None = None


class Interaction(BaseModel):
    """Incoming interaction payload."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: int
    application_id: str | None = None
    token: str | None = None
    version: int | None = None
    data: InteractionData | None = None
    guild_id: str | None = None
    channel_id: str | None = None

    @property
    def command_name(self) -> str | None:
        if self.data is None or not self.data.name:
            return None
        return self.data.name.lower()


class InteractionResponseData(BaseModel):
    content: str | None = None
    flags: int | None = None


class InteractionResponse(BaseModel):
    """Synchronous reply returned from the webhook."""

    type: InteractionResponseType
    data: InteractionResponseData | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InteractionSession(BaseModel):
    """Correlates a deferred acknowledgment with its single completion edit."""

    application_id: str
    token: str = Field(..., description="Single-use completion token")
    command: str
    options: dict[str, str] = Field(default_factory=dict)
    state: InteractionState = InteractionState.ACKNOWLEDGED_DEFERRED


def create_pong_response() -> InteractionResponse:
    """Reply to Discord's PING handshake."""
    return InteractionResponse(type=InteractionResponseType.PONG)


def create_ephemeral_response(content: str) -> InteractionResponse:
    """Reply with a message only the invoking user can see."""
    return InteractionResponse(
        type=InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
        data=InteractionResponseData(content=content, flags=EPHEMERAL_FLAG),
    )


def create_deferred_response() -> InteractionResponse:
    """Acknowledge now ("thinking..."), edit the original message later."""
    return InteractionResponse(
        type=InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE
    )


def get_string_option(interaction: Interaction, name: str) -> str | None:
    """Return a command option value as a string, or None if not supplied."""
    if interaction.data is None or not interaction.data.options:
        return None
    for option in interaction.data.options:
        if option.name == name and option.value is not None:
            return str(option.value)
    return None
