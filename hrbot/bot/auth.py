"""Bot handler authorization utilities.

Owner is configured by OWNER_ID; admins are kept in the administrators table.
"""

import logging

from telegram import Update

from hrbot.bot.config import bot_config

logger = logging.getLogger(__name__)


def is_owner(update: Update) -> bool:
    user = update.effective_user
    owner_id = bot_config.owner_id
    return bool(user and owner_id and user.id == int(owner_id))


def has_admin_access(update: Update) -> bool:
    """Owner or allowlisted administrator."""
    if is_owner(update):
        return True

    user = update.effective_user
    if user is None:
        return False

    # Deferred imports to avoid circular dependency with hrbot.services
    from hrbot.services import SessionLocal
    from hrbot.services.admin_service import AdminService

    db = SessionLocal()
    try:
        allowed = AdminService(db).is_admin(user.id, user.username)
    except Exception as e:
        logger.error("Error verifying admin authorization: %s", e, exc_info=True)
        return False
    finally:
        db.close()

    if not allowed:
        logger.warning("Non-admin attempted admin operation: telegram_id=%s", user.id)
    return allowed


__all__ = ["is_owner", "has_admin_access"]
