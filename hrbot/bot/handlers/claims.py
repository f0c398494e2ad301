"""Claim decision handler for claim:allow:<id> / claim:block:<id> buttons."""

import logging
import re

from telegram import Update
from telegram.ext import ContextTypes

from hrbot.bot.handlers.common import build_verification_service, get_claim_sessions
from hrbot.services import SessionLocal
from hrbot.services.claim_service import ClaimService
from hrbot.services.localizer import t
from hrbot.services.platform import TelegramGateway

logger = logging.getLogger(__name__)

CLAIM_CALLBACK_PATTERN = r"^claim:(allow|block):([0-9a-f]+)$"


async def handle_claim_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Apply the holder's allow/block decision and show the result in place."""
    query = update.callback_query
    if not query:
        return

    try:
        await query.answer()

        match = re.match(CLAIM_CALLBACK_PATTERN, query.data or "")
        if not match:
            logger.warning("Invalid claim callback data: %s", query.data)
            return
        decision, session_id = match.group(1), match.group(2)

        db = SessionLocal()
        try:
            service = ClaimService(
                db,
                TelegramGateway(context.bot),
                get_claim_sessions(context),
                build_verification_service(db, context),
            )
            resolution = await service.resolve_claim(session_id, decision, query.from_user.id)
        finally:
            db.close()

        logger.info(
            "Claim %s %s by %s: %s",
            session_id,
            decision,
            query.from_user.id,
            resolution.status.value,
        )
        await query.edit_message_text(resolution.reply)

    except Exception as e:
        logger.error("Error in claim callback: %s", e, exc_info=True)
        if update.effective_chat:
            await update.effective_chat.send_message(t("errors.try_later"))


__all__ = ["handle_claim_callback", "CLAIM_CALLBACK_PATTERN"]
