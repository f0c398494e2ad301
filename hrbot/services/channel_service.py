"""Channel resolution and channel membership enforcement."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from hrbot.models.admin_config import SETTINGS_ROW_ID, AdminSettings
from hrbot.models.department_channel import DepartmentChannel
from hrbot.services.errors import ChannelNotConfiguredError, FailureReason, PlatformError

logger = logging.getLogger(__name__)

# Ban failures that mean "nothing to do": private chat, owner, user not in chat
BAN_TOLERATED = frozenset(
    {
        FailureReason.PRIVATE_CHAT_RESTRICTION,
        FailureReason.OWNER_RESTRICTION,
        FailureReason.NOT_IN_CHAT,
    }
)
# Unban failures that mean "was not banned"
UNBAN_TOLERATED = frozenset({FailureReason.NOT_FOUND, FailureReason.NOT_IN_CHAT})


@dataclass
class BindResult:
    bound: bool
    channel_id: str
    previous_channel_id: str | None = None


class ChannelService:
    """Resolves department and news channels.

    Department bindings live in the metadata store; CHANNEL_ID and
    NEWS_CHANNEL_ID from config are fallbacks.
    """

    def __init__(
        self,
        db_session: Session,
        default_channel_id: str | None = None,
        default_news_channel_id: str | None = None,
    ):
        self.db = db_session
        self.default_channel_id = default_channel_id or None
        self.default_news_channel_id = default_news_channel_id or None

    def get_binding(self, department: str) -> DepartmentChannel | None:
        return self.db.execute(
            select(DepartmentChannel).where(DepartmentChannel.department == str(department))
        ).scalar_one_or_none()

    def resolve_department_channel(self, department_id: int | str) -> str:
        """Channel for a department, falling back to the default channel.

        Raises:
            ChannelNotConfiguredError: No binding and no default channel
        """
        binding = self.get_binding(str(department_id))
        if binding and binding.channel_id:
            return binding.channel_id
        if self.default_channel_id:
            return self.default_channel_id
        raise ChannelNotConfiguredError(f"No channel configured for department {department_id}")

    def get_news_channel_id(self) -> str | None:
        settings = self.db.get(AdminSettings, SETTINGS_ROW_ID)
        if settings and settings.news_channel_id:
            return settings.news_channel_id
        return self.default_news_channel_id

    def set_news_channel_id(self, channel_id: str | None) -> None:
        settings = self.db.get(AdminSettings, SETTINGS_ROW_ID)
        if settings is None:
            settings = AdminSettings(id=SETTINGS_ROW_ID)
            self.db.add(settings)
        settings.news_channel_id = str(channel_id) if channel_id else None
        self.db.commit()
        logger.info("News channel set to %s", channel_id)

    def relevant_channels(self, department_id: int | str) -> list[str]:
        """Department channel (if resolvable) plus news channel (if configured)."""
        channels: list[str] = []
        try:
            channels.append(self.resolve_department_channel(department_id))
        except ChannelNotConfiguredError:
            logger.warning("No channel for department %s", department_id)
        news_channel_id = self.get_news_channel_id()
        if news_channel_id and news_channel_id not in channels:
            channels.append(news_channel_id)
        return channels

    def bind_department(self, department: str, channel_id: str, is_owner: bool) -> BindResult:
        """Bind a department to a channel.

        The first binding wins; only the owner may overwrite an existing one.
        """
        binding = self.get_binding(department)
        if binding and binding.channel_id and not is_owner:
            return BindResult(bound=False, channel_id=binding.channel_id)

        previous = binding.channel_id if binding else None
        if binding is None:
            binding = DepartmentChannel(department=str(department), channel_id=str(channel_id))
            self.db.add(binding)
        else:
            binding.channel_id = str(channel_id)
        self.db.commit()
        logger.info("Department %s bound to channel %s (was %s)", department, channel_id, previous)
        return BindResult(bound=True, channel_id=str(channel_id), previous_channel_id=previous)


class ChannelAccessService:
    """Ban/unban primitives shared by verification, the sweep and admin commands.

    Tolerated failures are logged at info level; any other platform failure is
    logged as an error and reported as False. Nothing propagates.
    """

    def __init__(self, gateway):
        self.gateway = gateway

    async def ban(self, channel_id: str, user_id: int) -> bool:
        try:
            await self.gateway.ban_member(channel_id, user_id)
            logger.info("Banned %s in %s", user_id, channel_id)
            return True
        except PlatformError as e:
            if e.reason in BAN_TOLERATED:
                logger.info("Ban of %s in %s skipped: %s", user_id, channel_id, e.description)
            else:
                logger.error("Failed to ban %s in %s: %s", user_id, channel_id, e.description)
            return False

    async def unban(self, channel_id: str, user_id: int) -> bool:
        try:
            await self.gateway.unban_member(channel_id, user_id, only_if_banned=True)
            logger.info("Unbanned %s in %s", user_id, channel_id)
            return True
        except PlatformError as e:
            if e.reason in UNBAN_TOLERATED:
                logger.info("Unban of %s in %s skipped: %s", user_id, channel_id, e.description)
            else:
                logger.error("Failed to unban %s in %s: %s", user_id, channel_id, e.description)
            return False

    async def ban_everywhere(self, channel_ids: list[str], user_id: int) -> int:
        return sum([await self.ban(channel_id, user_id) for channel_id in channel_ids])

    async def unban_everywhere(self, channel_ids: list[str], user_id: int) -> int:
        return sum([await self.unban(channel_id, user_id) for channel_id in channel_ids])


__all__ = [
    "ChannelService",
    "ChannelAccessService",
    "BindResult",
    "BAN_TOLERATED",
    "UNBAN_TOLERATED",
]
