"""Semantic search over the feedback corpus using a Bedrock Knowledge Base."""

import logging
from typing import Any

import boto3

from models.search import Citation, SearchResult
from utils.constants import (
    ASK_MAX_RESULTS,
    CITATION_EXCERPT_CHARS,
    DIGEST_MAX_RESULTS,
)

logger = logging.getLogger(__name__)

NO_RESULTS_ANSWER = "No results found."
SEARCH_UNAVAILABLE_ANSWER = "Unable to search feedback at this time."

DIGEST_QUERY_TEMPLATE = """Summarize the most important customer feedback for {date}.
Emphasize any high urgency or p1 items.
Group insights by product area when possible.
Include representative examples and highlight common themes."""


def _reference_url(reference: dict[str, Any]) -> str | None:
    """Best source pointer for a retrieved reference (S3 URI or web URL)."""
    location = reference.get("location", {})
    for key, field in (("s3Location", "uri"), ("webLocation", "url")):
        value = location.get(key, {}).get(field)
        if value:
            return value
    return None


class SearchService:
    """Queries the knowledge base that indexes the feedback bucket."""

    def __init__(
        self,
        knowledge_base_id: str,
        model_arn: str,
        agent_runtime_client=None,
    ):
        """Initialize the search service.

        Args:
            knowledge_base_id: Bedrock Knowledge Base over the feedback bucket
            model_arn: Model used to generate the answer from retrieved chunks
            agent_runtime_client: boto3 bedrock-agent-runtime client
        """
        self.knowledge_base_id = knowledge_base_id
        self.model_arn = model_arn
        self.client = agent_runtime_client or boto3.client(
            "bedrock-agent-runtime", region_name="us-west-2"
        )

    def query(self, query: str, max_results: int = ASK_MAX_RESULTS) -> SearchResult:
        """Run one retrieve-and-generate call.

        Never raises: a failed call returns a fixed fallback answer.
        """
        try:
            response = self.client.retrieve_and_generate(
                input={"text": query},
                retrieveAndGenerateConfiguration={
                    "type": "KNOWLEDGE_BASE",
                    "knowledgeBaseConfiguration": {
                        "knowledgeBaseId": self.knowledge_base_id,
                        "modelArn": self.model_arn,
                        "retrievalConfiguration": {
                            "vectorSearchConfiguration": {
                                "numberOfResults": max_results,
                            }
                        },
                    },
                },
            )
        except Exception as e:
            logger.error("Knowledge base search error: %s", e)
            return SearchResult(
                answer=SEARCH_UNAVAILABLE_ANSWER,
                citations=[],
                raw={"error": str(e)},
            )

        answer = response.get("output", {}).get("text") or NO_RESULTS_ANSWER

        citations = []
        for citation in response.get("citations", []):
            for reference in citation.get("retrievedReferences", []):
                text = reference.get("content", {}).get("text", "")
                citations.append(
                    Citation(
                        text=text[:CITATION_EXCERPT_CHARS],
                        source_url=_reference_url(reference),
                    )
                )

        raw = {k: v for k, v in response.items() if k != "ResponseMetadata"}
        return SearchResult(answer=answer, citations=citations[:max_results], raw=raw)

    def generate_digest(self, date: str) -> SearchResult:
        """Search with the digest template for one day."""
        return self.query(
            DIGEST_QUERY_TEMPLATE.format(date=date), max_results=DIGEST_MAX_RESULTS
        )
