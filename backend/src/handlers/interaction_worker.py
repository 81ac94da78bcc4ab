"""Interaction worker Lambda handler.

Invoked asynchronously by the API Lambda after it has acknowledged a Discord
slash command with a deferred response. Runs the command and edits the
original Discord message exactly once.

The handler never raises: a raised error would make Lambda retry the async
invocation and send a second edit for the same token. A timeout still counts
as a function error, so the function must also be deployed with async retries
disabled (see ``configure_async_invoke``).
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

import boto3
from pydantic import ValidationError
from sqlalchemy import create_engine

from models.interaction import InteractionSession, InteractionState
from services.discord_client import DISCORD_API_BASE, DiscordClient
from services.feedback_repository import FeedbackRepository
from services.insights_service import FeedbackInsightsService
from services.interaction_service import InteractionService
from services.normalization_service import DEFAULT_MODEL_ID
from services.search_service import SearchService

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment variables
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")
AWS_REGION = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:////tmp/feedback-analyzer.db")
KNOWLEDGE_BASE_ID = os.environ.get("KNOWLEDGE_BASE_ID", "")
KNOWLEDGE_BASE_MODEL_ARN = os.environ.get("KNOWLEDGE_BASE_MODEL_ARN", DEFAULT_MODEL_ID)

# Async invoke settings; a completion is never retried
ASYNC_INVOKE_CONFIG = {"MaximumRetryAttempts": 0}

# Lazy-initialized service
_interaction_service = None


def get_interaction_service() -> InteractionService:
    """Get or create InteractionService (lazy init for Lambda reuse)."""
    global _interaction_service
    if _interaction_service is None:
        repository = FeedbackRepository(
            create_engine(DATABASE_URL, future=True, pool_pre_ping=True)
        )
        search_service = SearchService(
            knowledge_base_id=KNOWLEDGE_BASE_ID,
            model_arn=KNOWLEDGE_BASE_MODEL_ARN,
            agent_runtime_client=boto3.client(
                "bedrock-agent-runtime", region_name=AWS_REGION
            ),
        )
        _interaction_service = InteractionService(
            insights_service=FeedbackInsightsService(search_service, repository),
            discord_client=DiscordClient(
                api_base=os.environ.get("DISCORD_API_BASE", DISCORD_API_BASE)
            ),
        )
    return _interaction_service


def interaction_worker_handler(event: dict[str, Any], context) -> dict[str, Any]:
    """Lambda handler that completes one deferred interaction.

    Args:
        event: Serialized InteractionSession
        context: Lambda context

    Returns:
        Summary of the completion
    """
    logger.info(f"Interaction worker started at {datetime.now(UTC).isoformat()}")
    logger.info(f"Environment: {ENVIRONMENT}")

    try:
        session = InteractionSession.model_validate(event)
    except ValidationError as e:
        logger.error(f"Invalid interaction session event: {e}")
        return {"statusCode": 400, "body": {"error": "Invalid interaction session"}}

    try:
        session = get_interaction_service().complete(session)
    except Exception as e:
        logger.error(f"Error completing /{session.command}: {e}", exc_info=True)
        return {
            "statusCode": 500,
            "body": {"error": str(e), "command": session.command},
        }

    logger.info(f"Completed /{session.command} interaction")
    return {
        "statusCode": 200,
        "body": {
            "command": session.command,
            "completed": session.state == InteractionState.COMPLETED,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    }


def configure_async_invoke(lambda_client, function_name: str) -> dict[str, Any]:
    """Disable async invoke retries for the worker function.

    Args:
        lambda_client: boto3 Lambda client
        function_name: Deployed name of the interaction worker

    Returns:
        The function's event invoke configuration
    """
    response = lambda_client.put_function_event_invoke_config(
        FunctionName=function_name, **ASYNC_INVOKE_CONFIG
    )
    logger.info(
        f"Set MaximumRetryAttempts={response['MaximumRetryAttempts']} on {function_name}"
    )
    return response
