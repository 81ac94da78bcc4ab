"""Discord slash command handling with deferred completion.

Discord requires a reply within 3 seconds, but answering a question or
building a digest needs a knowledge base round trip. Commands are therefore
handled in two phases:

1. ``handle`` replies synchronously: PONG for a handshake, an ephemeral
   message for invalid input, or a DEFERRED acknowledgment together with an
   ``InteractionSession`` for real work.
2. ``complete`` runs later (worker Lambda or background task), computes the
   reply and edits the original message exactly once, with an apology if
   the work failed.
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from models.interaction import (
    ApplicationCommandOptionType,
    Interaction,
    InteractionResponse,
    InteractionSession,
    InteractionState,
    InteractionType,
    create_deferred_response,
    create_ephemeral_response,
    create_pong_response,
    get_string_option,
)
from services.discord_client import DiscordClient
from services.errors import InputError
from services.insights_service import FeedbackInsightsService, parse_digest_date

logger = logging.getLogger(__name__)

ASK_COMMAND = "ask"
DIGEST_COMMAND = "digest"

MISSING_QUERY_MESSAGE = "Please provide a query using the `query` option."
MISSING_TOKEN_MESSAGE = "This interaction cannot be completed (missing token)."
UNSUPPORTED_TYPE_MESSAGE = "Unsupported interaction type"

COMMAND_ERROR_MESSAGES = {
    ASK_COMMAND: "Sorry, I encountered an error while searching. Please try again.",
    DIGEST_COMMAND: (
        "Sorry, I encountered an error generating the digest. Please try again."
    ),
}

# Slash command definitions registered with Discord
COMMANDS: list[dict[str, Any]] = [
    {
        "name": ASK_COMMAND,
        "description": "Ask a question about customer feedback",
        "type": 1,
        "options": [
            {
                "name": "query",
                "description": "Your question about the feedback",
                "type": ApplicationCommandOptionType.STRING.value,
                "required": True,
            }
        ],
    },
    {
        "name": DIGEST_COMMAND,
        "description": "Get a summary of feedback for a specific date",
        "type": 1,
        "options": [
            {
                "name": "date",
                "description": "Date in YYYY-MM-DD format (defaults to today)",
                "type": ApplicationCommandOptionType.STRING.value,
                "required": False,
            }
        ],
    },
]


@dataclass(frozen=True)
class InteractionOutcome:
    """Synchronous reply plus the session to complete later, if any."""

    response: InteractionResponse
    state: InteractionState
    session: InteractionSession | None = None

    @property
    def deferred(self) -> bool:
        return self.session is not None


def _reply_immediately(content: str) -> InteractionOutcome:
    """Private reply that completes the interaction with no background work."""
    return InteractionOutcome(
        response=create_ephemeral_response(content),
        state=InteractionState.ACKNOWLEDGED_IMMEDIATE,
    )


class InteractionService:
    """State machine for Discord interactions."""

    def __init__(
        self,
        insights_service: FeedbackInsightsService,
        discord_client: DiscordClient,
    ):
        self.insights_service = insights_service
        self.discord_client = discord_client

    def handle(self, payload: dict[str, Any]) -> InteractionOutcome:
        """Produce the synchronous reply for an incoming interaction.

        Raises:
            InputError: If the payload is not an interaction
        """
        try:
            interaction = Interaction.model_validate(payload)
        except ValidationError as e:
            raise InputError(f"Invalid interaction payload: {e.error_count()} errors")

        if interaction.type == InteractionType.PING:
            return InteractionOutcome(
                response=create_pong_response(),
                state=InteractionState.AWAITING_HANDSHAKE,
            )

        if interaction.type == InteractionType.APPLICATION_COMMAND:
            return self._handle_command(interaction)

        return _reply_immediately(UNSUPPORTED_TYPE_MESSAGE)

    def complete(self, session: InteractionSession) -> InteractionSession:
        """Run a deferred command and send its single completion edit."""
        if session.state == InteractionState.COMPLETED:
            logger.warning(
                "Interaction for /%s already completed, skipping edit",
                session.command,
            )
            return session

        try:
            content = self.run_command(session)
        except Exception as e:
            logger.error("%s command error: %s", session.command, e, exc_info=True)
            content = COMMAND_ERROR_MESSAGES.get(
                session.command, "Sorry, something went wrong. Please try again."
            )

        session.state = InteractionState.COMPLETED
        self.discord_client.edit_original_response(
            session.application_id, session.token, content
        )
        return session

    def run_command(self, session: InteractionSession) -> str:
        """Compute the reply text for a deferred command."""
        if session.command == ASK_COMMAND:
            _, answer = self.insights_service.ask(session.options["query"])
            return answer
        if session.command == DIGEST_COMMAND:
            return self.insights_service.digest_message(session.options.get("date"))
        raise ValueError(f"Unknown command: {session.command}")

    def _handle_command(self, interaction: Interaction) -> InteractionOutcome:
        command = interaction.command_name

        if command == ASK_COMMAND:
            query = get_string_option(interaction, "query")
            if not query or not query.strip():
                return _reply_immediately(MISSING_QUERY_MESSAGE)
            return self._defer(interaction, command, {"query": query.strip()})

        if command == DIGEST_COMMAND:
            try:
                day = parse_digest_date(get_string_option(interaction, "date"))
            except InputError as e:
                return _reply_immediately(str(e))
            return self._defer(interaction, command, {"date": day})

        return _reply_immediately(f"Unknown command: {command}")

    def _defer(
        self, interaction: Interaction, command: str, options: dict[str, str]
    ) -> InteractionOutcome:
        if not interaction.application_id or not interaction.token:
            return _reply_immediately(MISSING_TOKEN_MESSAGE)

        session = InteractionSession(
            application_id=interaction.application_id,
            token=interaction.token,
            command=command,
            options=options,
        )
        logger.info("Deferring /%s for application %s", command, session.application_id)
        return InteractionOutcome(
            response=create_deferred_response(), state=session.state, session=session
        )
