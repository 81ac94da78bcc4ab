"""Main FastAPI application handler for Lambda deployment."""

import json
import logging
import os
import time
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError
from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum
from sqlalchemy import create_engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from models.feedback import RawFeedbackInput
from models.interaction import InteractionSession
from services.discord_client import DISCORD_API_BASE, DiscordClient
from services.errors import DependencyFailure, InputError, UpstreamParseError
from services.feedback_repository import FeedbackRepository
from services.ingestion_service import IngestionService
from services.insights_service import FeedbackInsightsService, parse_digest_date
from services.interaction_service import InteractionService
from services.normalization_service import DEFAULT_MODEL_ID, NormalizationService
from services.object_store import FeedbackObjectStore
from services.search_service import SearchService

logger = logging.getLogger(__name__)

SERVICE_NAME = "feedback-analyzer"
ENDPOINTS = ["/interactions", "/ingest", "/ask", "/digest"]

# Initialize FastAPI app
app = FastAPI(
    title="Feedback Analyzer API",
    description="Ingest, analyze and query customer feedback",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log all API requests with timing for CloudWatch monitoring."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    # Log slow requests (>1s) at WARNING level for monitoring
    path = request.url.path
    if duration_ms > 1000:
        logger.warning(
            "[SLOW] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 500:
        logger.error(
            "[ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 400:
        logger.info(
            "[CLIENT_ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )

    return response


# Lazy-initialized AWS clients and services
# Required for Lambda SnapStart - connections must be re-established after restore
_s3_client = None
_lambda_client = None
_feedback_repository = None
_ingestion_service = None
_search_service = None
_insights_service = None
_interaction_service = None


def reset_services():
    """Reset all lazy-initialized services. Useful for testing.

    Also resets boto3's default session so that subsequent calls to
    boto3.client() create fresh sessions within the current mock context
    (e.g., moto's mock_aws).
    """
    global _s3_client, _lambda_client, _feedback_repository, _ingestion_service
    global _search_service, _insights_service, _interaction_service
    _s3_client = None
    _lambda_client = None
    _feedback_repository = None
    _ingestion_service = None
    _search_service = None
    _insights_service = None
    _interaction_service = None
    # Reset boto3's default session so new clients use the moto mock context
    boto3.DEFAULT_SESSION = None


def _region() -> str:
    return os.environ.get("AWS_DEFAULT_REGION", "us-west-2")


def _environment() -> str:
    return os.environ.get("ENVIRONMENT", "dev")


def get_s3_client():
    """Get or create S3 client (lazy init for SnapStart)."""
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client("s3", region_name=_region())
    return _s3_client


def get_lambda_client():
    """Get or create Lambda client used to hand off deferred interactions."""
    global _lambda_client
    if _lambda_client is None:
        _lambda_client = boto3.client("lambda", region_name=_region())
    return _lambda_client


def get_feedback_repository():
    """Get or create FeedbackRepository (lazy init for SnapStart)."""
    global _feedback_repository
    if _feedback_repository is None:
        engine = create_engine(
            os.environ.get("DATABASE_URL", "sqlite:////tmp/feedback-analyzer.db"),
            future=True,
            pool_pre_ping=True,
        )
        _feedback_repository = FeedbackRepository(engine)
        _feedback_repository.create_schema()
    return _feedback_repository


def get_ingestion_service():
    """Get or create IngestionService (lazy init for SnapStart)."""
    global _ingestion_service
    if _ingestion_service is None:
        bucket = os.environ.get(
            "FEEDBACK_BUCKET", f"feedback-analyzer-feedback-{_environment()}"
        )
        _ingestion_service = IngestionService(
            normalization_service=NormalizationService(
                bedrock_client=boto3.client("bedrock-runtime", region_name=_region()),
                model_id=os.environ.get("NORMALIZE_MODEL_ID", DEFAULT_MODEL_ID),
            ),
            object_store=FeedbackObjectStore(get_s3_client(), bucket),
            repository=get_feedback_repository(),
        )
    return _ingestion_service


def get_search_service():
    """Get or create SearchService (lazy init for SnapStart)."""
    global _search_service
    if _search_service is None:
        _search_service = SearchService(
            knowledge_base_id=os.environ.get("KNOWLEDGE_BASE_ID", ""),
            model_arn=os.environ.get("KNOWLEDGE_BASE_MODEL_ARN", DEFAULT_MODEL_ID),
            agent_runtime_client=boto3.client(
                "bedrock-agent-runtime", region_name=_region()
            ),
        )
    return _search_service


def get_insights_service():
    """Get or create FeedbackInsightsService (lazy init for SnapStart)."""
    global _insights_service
    if _insights_service is None:
        _insights_service = FeedbackInsightsService(
            search_service=get_search_service(),
            repository=get_feedback_repository(),
        )
    return _insights_service


def get_interaction_service():
    """Get or create InteractionService (lazy init for SnapStart)."""
    global _interaction_service
    if _interaction_service is None:
        _interaction_service = InteractionService(
            insights_service=get_insights_service(),
            discord_client=DiscordClient(
                api_base=os.environ.get("DISCORD_API_BASE", DISCORD_API_BASE)
            ),
        )
    return _interaction_service


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object (empty body -> {})."""
    body = await request.body()
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        raise InputError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise InputError("Request body must be a JSON object")
    return payload


def dispatch_interaction(
    session: InteractionSession, background_tasks: BackgroundTasks
) -> None:
    """Hand a deferred interaction to the worker Lambda or a background task.

    With INTERACTION_WORKER_LAMBDA set, the session is sent to the worker
    with an async invoke so completion does not depend on this request.
    Otherwise (local development) it runs as a FastAPI background task after
    the response is sent.
    """
    worker_lambda = os.environ.get("INTERACTION_WORKER_LAMBDA")
    if worker_lambda:
        try:
            get_lambda_client().invoke(
                FunctionName=worker_lambda,
                InvocationType="Event",  # Async invocation
                Payload=session.model_dump_json(),
            )
            return
        except Exception as e:
            logger.error(
                "Failed to invoke interaction worker %s, completing in-process: %s",
                worker_lambda,
                e,
            )

    background_tasks.add_task(get_interaction_service().complete, session)


# MARK: - Health Check


@app.get("/")
async def root():
    """Service description and available endpoints."""
    return {"status": "ok", "service": SERVICE_NAME, "endpoints": ENDPOINTS}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": "1.0.0",
    }


# MARK: - Discord Interactions


@app.post("/interactions")
async def handle_interaction(request: Request, background_tasks: BackgroundTasks):
    """Discord interactions webhook (PING and slash commands).

    Slow commands are acknowledged with a deferred response and finished
    out of band to stay inside Discord's 3-second reply window.
    """
    payload = await _read_json_object(request)
    outcome = get_interaction_service().handle(payload)

    if outcome.session is not None:
        dispatch_interaction(outcome.session, background_tasks)

    return outcome.response.to_payload()


# MARK: - Feedback Endpoints


@app.post("/ingest")
async def ingest_feedback(request: Request):
    """Normalize raw feedback and store it in S3 and the feedback table."""
    payload = await _read_json_object(request)
    raw = RawFeedbackInput.model_validate(payload)
    result = get_ingestion_service().ingest(raw)
    feedback = result.feedback

    return {
        "success": True,
        "id": feedback.id,
        "created_at": feedback.created_at,
        "r2_key": result.r2_key,
        "analytics_stored": result.analytics_stored,
        "normalized": {
            "source": feedback.source.value,
            "product_area": feedback.product_area.value,
            "sentiment": feedback.sentiment.value,
            "urgency": feedback.urgency.value,
            "title": feedback.title,
            "tags": feedback.tags,
        },
    }


@app.post("/ask")
async def ask_feedback(request: Request):
    """Answer a free-text question about the feedback corpus."""
    payload = await _read_json_object(request)
    query = payload.get("query")
    if not isinstance(query, str) or not query.strip():
        raise InputError("Missing required field: query")

    search_result, answer = get_insights_service().ask(query.strip())

    return {
        "query": query,
        "answer": answer,
        "citations": [c.model_dump() for c in search_result.citations],
        "debug": {"raw_response": search_result.raw},
    }


@app.post("/digest")
async def daily_digest(request: Request):
    """Build the daily digest (defaults to today, UTC)."""
    payload = await _read_json_object(request)
    day = payload.get("date")
    if day is not None and not isinstance(day, str):
        raise InputError("Field 'date' must be a YYYY-MM-DD string")

    report = get_insights_service().build_digest(parse_digest_date(day))
    return report.model_dump()


# MARK: - Error Handlers


@app.exception_handler(InputError)
async def input_error_handler(request, exc: InputError):
    """Handle missing or malformed request input."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)}
    )


@app.exception_handler(UpstreamParseError)
async def upstream_parse_error_handler(request, exc: UpstreamParseError):
    """Handle unparseable model output during ingestion."""
    logger.error("Normalization failed: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "Failed to normalize feedback", "details": str(exc)},
    )


@app.exception_handler(DependencyFailure)
async def dependency_failure_handler(request, exc: DependencyFailure):
    """Handle failures of external stores and services."""
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "Upstream dependency failed", "details": str(exc)},
    )


@app.exception_handler(ClientError)
async def aws_client_error_handler(request, exc: ClientError):
    """Handle AWS client errors."""
    error_message = exc.response["Error"]["Message"]
    logger.error("AWS error on %s: %s", request.url.path, error_message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": f"AWS error: {error_message}"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Render routing errors (404, 405) in the API's error shape."""
    message = "Not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request, exc: Exception):
    """Last-resort handler so no request ends in an unhandled crash."""
    logger.error("Request error on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)},
    )


# MARK: - Lambda Handler

# Create the Lambda handler
api_handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
