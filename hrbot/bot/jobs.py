"""Periodic jobs scheduled on the application's JobQueue."""

import logging

from telegram.ext import Application, ContextTypes

from hrbot.bot.config import bot_config
from hrbot.bot.handlers.common import build_channel_service
from hrbot.services import SessionLocal
from hrbot.services.invite_service import run_invite_cleanup
from hrbot.services.platform import TelegramGateway
from hrbot.services.sweep_service import is_within_nightly_window, run_nightly_sweep

logger = logging.getLogger(__name__)


async def invite_cleanup_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Delete expired invite records."""
    db = SessionLocal()
    try:
        run_invite_cleanup(db)
    except Exception as e:
        logger.error("Invite cleanup failed: %s", e, exc_info=True)
    finally:
        db.close()


async def nightly_sweep_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Run the nightly sweep when local time is inside the window."""
    if not is_within_nightly_window(
        start_hour=bot_config.night_window_start_hour,
        end_hour=bot_config.night_window_end_hour,
        utc_offset_hours=bot_config.org_utc_offset_hours,
    ):
        return

    db = SessionLocal()
    try:
        news_channel_id = build_channel_service(db).get_news_channel_id()
        await run_nightly_sweep(db, TelegramGateway(context.bot), news_channel_id)
    except Exception as e:
        logger.error("Nightly sweep failed: %s", e, exc_info=True)
        db.rollback()
    finally:
        db.close()


def schedule_jobs(app: Application) -> None:
    jq = app.job_queue
    if jq is None:
        logger.warning("JobQueue unavailable, periodic jobs disabled")
        return

    jq.run_repeating(
        invite_cleanup_job,
        interval=bot_config.invite_cleanup_interval_minutes * 60,
        first=60,
        name="invite_cleanup",
    )
    jq.run_repeating(
        nightly_sweep_job,
        interval=bot_config.sweep_interval_minutes * 60,
        first=120,
        name="nightly_sweep",
    )
    logger.info("Periodic jobs scheduled")


__all__ = ["invite_cleanup_job", "nightly_sweep_job", "schedule_jobs"]
