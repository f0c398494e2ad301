"""Messaging platform boundary: thin wrapper around the Telegram Bot API.

Every telegram.error.TelegramError is converted here, once, into a
PlatformError carrying a FailureReason. Call sites decide what is benign by
reason, never by re-parsing error text.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from telegram import Bot
from telegram.error import TelegramError

from hrbot.services.errors import FailureReason, PlatformError

logger = logging.getLogger(__name__)

# Substring -> reason, checked in order against the lowercased description
_REASON_PATTERNS: list[tuple[str, FailureReason]] = [
    ("private chat", FailureReason.PRIVATE_CHAT_RESTRICTION),
    ("chat owner", FailureReason.OWNER_RESTRICTION),
    ("not in the chat", FailureReason.NOT_IN_CHAT),
    ("not a member", FailureReason.NOT_IN_CHAT),
    ("user_not_participant", FailureReason.NOT_IN_CHAT),
    ("participant_id_invalid", FailureReason.NOT_IN_CHAT),
    ("not found", FailureReason.NOT_FOUND),
]


def classify_error(description: str) -> FailureReason:
    """Map a platform error description to a FailureReason.

    Example:
        >>> classify_error("Bad Request: can't remove chat owner")
        <FailureReason.OWNER_RESTRICTION: 'owner_restriction'>
    """
    text = (description or "").lower()
    for pattern, reason in _REASON_PATTERNS:
        if pattern in text:
            return reason
    return FailureReason.OTHER


def to_platform_error(error: TelegramError) -> PlatformError:
    description = getattr(error, "message", None) or str(error)
    return PlatformError(classify_error(description), description)


@dataclass
class CreatedInvite:
    url: str
    invite_link_id: str | None


@dataclass
class ChatInfo:
    title: str | None
    username: str | None

    @property
    def display_name(self) -> str | None:
        return self.title or self.username


class TelegramGateway:
    """Platform client used by the services (send, invite, ban, unban, lookup)."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(self, chat_id: int | str, text: str, reply_markup=None) -> None:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup)
        except TelegramError as e:
            raise to_platform_error(e) from e

    async def create_invite_link(
        self,
        channel_id: str,
        expire_at: datetime,
        label: str,
        member_limit: int = 1,
    ) -> CreatedInvite:
        """Create a chat invite link.

        Returns:
            CreatedInvite with the URL; the link id is the last URL segment
            (the Bot API identifies links by URL)
        """
        try:
            link = await self.bot.create_chat_invite_link(
                chat_id=channel_id,
                expire_date=expire_at,
                member_limit=member_limit,
                name=label,
            )
        except TelegramError as e:
            raise to_platform_error(e) from e
        return CreatedInvite(url=link.invite_link, invite_link_id=link.invite_link.rsplit("/", 1)[-1])

    async def ban_member(self, channel_id: str, user_id: int) -> None:
        try:
            await self.bot.ban_chat_member(chat_id=channel_id, user_id=user_id)
        except TelegramError as e:
            raise to_platform_error(e) from e

    async def unban_member(self, channel_id: str, user_id: int, only_if_banned: bool = True) -> None:
        try:
            await self.bot.unban_chat_member(
                chat_id=channel_id, user_id=user_id, only_if_banned=only_if_banned
            )
        except TelegramError as e:
            raise to_platform_error(e) from e

    async def get_chat_info(self, channel_id: str) -> ChatInfo:
        try:
            chat = await self.bot.get_chat(chat_id=channel_id)
        except TelegramError as e:
            raise to_platform_error(e) from e
        return ChatInfo(title=chat.title, username=chat.username)

    async def get_chat_member_status(self, channel_id: str, user_id: int) -> str:
        try:
            member = await self.bot.get_chat_member(chat_id=channel_id, user_id=user_id)
        except TelegramError as e:
            raise to_platform_error(e) from e
        return str(member.status)


__all__ = ["TelegramGateway", "CreatedInvite", "ChatInfo", "classify_error", "to_platform_error"]
