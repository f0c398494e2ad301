"""Notification service for messages sent outside the current chat reply."""

import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from hrbot.services.errors import PlatformError
from hrbot.services.localizer import t

logger = logging.getLogger(__name__)

CLAIM_CALLBACK_PREFIX = "claim"


def build_claim_keyboard(session_id: str) -> InlineKeyboardMarkup:
    """[Allow] [Block] buttons carrying the claim session id."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(
                    text=t("buttons.allow"),
                    callback_data=f"{CLAIM_CALLBACK_PREFIX}:allow:{session_id}",
                ),
                InlineKeyboardButton(
                    text=t("buttons.block"),
                    callback_data=f"{CLAIM_CALLBACK_PREFIX}:block:{session_id}",
                ),
            ]
        ]
    )


class NotificationService:
    """Sends messages to requesters and current account holders."""

    def __init__(self, gateway):
        self.gateway = gateway

    async def send_message(self, chat_id: int | str, text: str, reply_markup=None) -> bool:
        """Send a message; failures are logged and reported as False."""
        try:
            await self.gateway.send_message(chat_id, text, reply_markup=reply_markup)
            return True
        except PlatformError as e:
            logger.error("Error sending message to %s: %s", chat_id, e.description)
            return False

    async def send_claim_request_to_holder(
        self, holder_id: int, session_id: str, requester_id: int, requester_username: str | None
    ) -> bool:
        """Ask the currently linked account to allow or block a takeover."""
        requester = f"@{requester_username}" if requester_username else str(requester_id)
        return await self.send_message(
            holder_id,
            t("claims.prompt_holder", requester=requester),
            reply_markup=build_claim_keyboard(session_id),
        )


__all__ = ["NotificationService", "build_claim_keyboard", "CLAIM_CALLBACK_PREFIX"]
