"""Main application entry point."""

import asyncio
import logging
import os
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from telegram.ext import Application

from hrbot.api.webhook import app, setup_webhook_route
from hrbot.bot import create_bot_app
from hrbot.services.logging import setup_server_logging

# Load environment variables
load_dotenv()

# Configure logging (with file logging)
setup_server_logging()
logger = logging.getLogger(__name__)

# Global bot application instance
bot_app: Optional[Application] = None


def _uvicorn_server(host: str, port: int) -> uvicorn.Server:
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    return uvicorn.Server(config)


async def run_webhook_mode(host: str = "0.0.0.0", port: int = 8000):
    """Run application in webhook mode (production)."""
    logger.info("Starting bot in webhook mode on %s:%d", host, port)

    global bot_app
    bot_app = await create_bot_app()
    await setup_webhook_route(bot_app)

    async def init_bot_on_startup():
        logger.info("Initializing bot Application on FastAPI startup...")
        await bot_app.initialize()
        await bot_app.start()

        webhook_url = os.getenv("WEBHOOK_URL", "").strip()
        if webhook_url:
            logger.info("Setting Telegram webhook to %s", webhook_url)
            try:
                await bot_app.bot.set_webhook(url=webhook_url, drop_pending_updates=True)
                logger.info("Webhook registered successfully with Telegram")
            except Exception as e:
                logger.error("Failed to set webhook: %s", e, exc_info=True)
        else:
            logger.warning("WEBHOOK_URL not set in environment")

    async def shutdown_bot():
        try:
            await bot_app.stop()
            await bot_app.shutdown()
            logger.info("Bot Application shutdown complete")
        except Exception as e:
            logger.error("Error shutting down bot: %s", e)

    app.add_event_handler("startup", init_bot_on_startup)
    app.add_event_handler("shutdown", shutdown_bot)

    await _uvicorn_server(host, port).serve()


async def run_polling_mode(host: str = "0.0.0.0", port: int = 8000):
    """Run bot in polling mode alongside the keep-alive HTTP server."""
    logger.info("Starting bot in polling mode with keep-alive server on %s:%d...", host, port)
    global bot_app
    bot_app = await create_bot_app()

    logger.info("Initializing bot...")
    await bot_app.initialize()
    await setup_webhook_route(bot_app)
    await bot_app.start()

    async def run_bot_polling():
        await bot_app.updater.start_polling(allowed_updates=None, drop_pending_updates=False)
        logger.info("Bot started (polling)")

    try:
        await asyncio.gather(_uvicorn_server(host, port).serve(), run_bot_polling())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (KeyboardInterrupt)")
    finally:
        await bot_app.updater.stop()
        await bot_app.stop()
        await bot_app.shutdown()
        logger.info("Bot stopped")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="HR Access Bot")
    parser.add_argument(
        "--mode",
        choices=["webhook", "polling"],
        default=None,  # Auto-detect based on WEBHOOK_URL
        help="Run mode (default: auto-detect)",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("PORT", "8000")), help="Port to bind to"
    )

    args = parser.parse_args()

    mode = args.mode
    if mode is None:
        webhook_url = os.getenv("WEBHOOK_URL", "").strip()
        is_local = not webhook_url or "localhost" in webhook_url or "127.0.0.1" in webhook_url
        mode = "polling" if is_local else "webhook"
        logger.info("Auto-detected mode: %s (webhook_url=%s)", mode, webhook_url)

    if mode == "webhook":
        asyncio.run(run_webhook_mode(args.host, args.port))
    else:
        asyncio.run(run_polling_mode(args.host, args.port))


if __name__ == "__main__":
    main()
