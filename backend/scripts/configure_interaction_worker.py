#!/usr/bin/env python3
"""
Disable async invoke retries on the interaction worker Lambda.

Run once after each deployment of the worker function.

Usage:
    python scripts/configure_interaction_worker.py --function feedback-analyzer-interaction-worker-dev
"""

import argparse
import logging
import os
import sys

import boto3
from botocore.exceptions import ClientError

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from handlers.interaction_worker import configure_async_invoke

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Disable async retries on the interaction worker"
    )
    parser.add_argument(
        "--function",
        default=os.environ.get("INTERACTION_WORKER_LAMBDA"),
        help="Worker function name (defaults to INTERACTION_WORKER_LAMBDA)",
    )
    parser.add_argument(
        "--region", default=os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
    )
    args = parser.parse_args()

    if not args.function:
        logger.error("--function or INTERACTION_WORKER_LAMBDA is required")
        sys.exit(1)

    try:
        configure_async_invoke(
            boto3.client("lambda", region_name=args.region), args.function
        )
    except ClientError as e:
        logger.error(f"Failed to configure {args.function}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
