"""Telegram bot application factory."""

from datetime import timedelta

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from hrbot.bot.config import bot_config
from hrbot.bot.handlers import (
    CLAIM_CALLBACK_PATTERN,
    handle_add_admin_command,
    handle_bind_department_command,
    handle_check_hist_command,
    handle_list_employees_command,
    handle_claim_callback,
    handle_registration_callback,
    handle_registration_text,
    handle_remove_admin_command,
    handle_remove_user_command,
    handle_reset_command,
    handle_reset_invites_command,
    handle_set_admin_log_chat_command,
    handle_set_news_channel_command,
    handle_start_command,
    handle_user_status_command,
)
from hrbot.bot.handlers.common import CLAIM_SESSIONS_KEY, DIALOGUE_KEY
from hrbot.bot.jobs import schedule_jobs
from hrbot.services.dialogue import RegistrationDialogue
from hrbot.services.session_store import ClaimSessionStore

_ADMIN_COMMANDS = {
    "add_admin": handle_add_admin_command,
    "remove_admin": handle_remove_admin_command,
    "set_admin_log_chat": handle_set_admin_log_chat_command,
    "set_news_channel": handle_set_news_channel_command,
    "reset_invites": handle_reset_invites_command,
    "list_employees": handle_list_employees_command,
    "bind_department": handle_bind_department_command,
    "user_status": handle_user_status_command,
    "check_hist": handle_check_hist_command,
    "remove_user": handle_remove_user_command,
}


async def create_bot_app() -> Application:
    """Create and return Telegram bot application with async handlers."""
    app = Application.builder().token(bot_config.telegram_bot_token).build()

    app.bot_data[DIALOGUE_KEY] = RegistrationDialogue()
    app.bot_data[CLAIM_SESSIONS_KEY] = ClaimSessionStore(
        ttl=timedelta(minutes=bot_config.claim_session_ttl_minutes)
    )

    private = filters.ChatType.PRIVATE

    app.add_handler(CommandHandler("start", handle_start_command, filters=private))
    app.add_handler(CommandHandler("reset", handle_reset_command, filters=private))

    # Admin commands work in groups and channels too (/bind_department, /set_admin_log_chat)
    for command, handler in _ADMIN_COMMANDS.items():
        app.add_handler(CommandHandler(command, handler))

    app.add_handler(CallbackQueryHandler(handle_registration_callback, pattern="^reg:"))
    app.add_handler(CallbackQueryHandler(handle_claim_callback, pattern=CLAIM_CALLBACK_PATTERN))

    # Free text in private chats feeds the registration dialogue
    app.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND & private, handle_registration_text)
    )

    schedule_jobs(app)

    return app


__all__ = ["create_bot_app"]
