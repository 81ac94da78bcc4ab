#!/usr/bin/env python3
"""
Register the /ask and /digest slash commands with Discord.

Usage:
    DISCORD_APP_ID=xxx DISCORD_BOT_TOKEN=xxx python scripts/register_discord_commands.py

For guild-specific commands (faster updates during development):
    DISCORD_APP_ID=xxx DISCORD_BOT_TOKEN=xxx DISCORD_GUILD_ID=xxx \
        python scripts/register_discord_commands.py
"""

import argparse
import logging
import os
import sys

import requests

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from services.discord_client import DiscordClient
from services.interaction_service import COMMANDS

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Register Discord slash commands")
    parser.add_argument(
        "--guild-id",
        default=os.environ.get("DISCORD_GUILD_ID"),
        help="Register for one guild instead of globally",
    )
    args = parser.parse_args()

    app_id = os.environ.get("DISCORD_APP_ID")
    bot_token = os.environ.get("DISCORD_BOT_TOKEN")
    if not app_id or not bot_token:
        logger.error(
            "DISCORD_APP_ID and DISCORD_BOT_TOKEN environment variables are required"
        )
        sys.exit(1)

    scope = f"guild {args.guild_id}" if args.guild_id else "global"
    logger.info(f"Registering {len(COMMANDS)} commands ({scope})")

    try:
        registered = DiscordClient().register_commands(
            app_id, bot_token, COMMANDS, guild_id=args.guild_id
        )
    except requests.RequestException as e:
        logger.error(f"Failed to register commands: {e}")
        sys.exit(1)

    for command in registered:
        logger.info(f"  /{command['name']} (ID: {command['id']})")

    if not args.guild_id:
        logger.info("Global commands can take up to 1 hour to propagate")


if __name__ == "__main__":
    main()
