"""
CommunityOS Bot - Main Entry Point
Builds the services, starts metrics and the dashboard, then runs the Discord client.
"""

import asyncio
import logging
import sys

# Suppress verbose logging from all libraries
logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logging.getLogger('discord').setLevel(logging.WARNING)
logging.getLogger('discord.http').setLevel(logging.WARNING)
logging.getLogger('discord.gateway').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('openai').setLevel(logging.WARNING)
logging.getLogger('openai._base_client').setLevel(logging.WARNING)
logging.getLogger('anthropic').setLevel(logging.WARNING)

from config import DISCORD_TOKEN, BOT_NAME, METRICS_PORT, DASHBOARD_HOST, DASHBOARD_PORT
from bot_instance import BotInstance
from prometheus_metrics import MetricsManager
from services import build_services
import logger as log


async def run_bot():
    """Run the bot until it disconnects or is interrupted."""
    if not DISCORD_TOKEN:
        log.error("No DISCORD_TOKEN configured!")
        return

    log.startup(f"Starting {BOT_NAME}...")
    log.divider()

    metrics = MetricsManager(BOT_NAME, METRICS_PORT)
    metrics.start_metrics_server()

    services = build_services(metrics=metrics)
    bot = BotInstance(BOT_NAME, DISCORD_TOKEN, services)

    # Start web dashboard
    try:
        from dashboard import start_dashboard
        start_dashboard(shared_services=services, bot=bot, host=DASHBOARD_HOST, port=DASHBOARD_PORT)
        log.online(f"Dashboard running at http://{DASHBOARD_HOST}:{DASHBOARD_PORT}")
    except OSError as e:
        log.warn(f"Dashboard failed to start: {e}")

    try:
        await bot.start()
    finally:
        log.info("Shutting down...")
        await bot.close()


# --- Entry Point ---

if __name__ == "__main__":
    # Run startup validation first
    from startup import validate_startup

    if not validate_startup(interactive=True):
        log.error("Startup validation failed. Please fix the issues above.")
        sys.exit(1)

    log.divider()
    try:
        asyncio.run(run_bot())
    except KeyboardInterrupt:
        log.info("Stopped")
