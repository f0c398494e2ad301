"""Bot handlers package - registration, claim and admin handlers."""

from hrbot.bot.handlers.admin import (
    handle_add_admin_command,
    handle_bind_department_command,
    handle_check_hist_command,
    handle_list_employees_command,
    handle_remove_admin_command,
    handle_remove_user_command,
    handle_reset_invites_command,
    handle_set_admin_log_chat_command,
    handle_set_news_channel_command,
    handle_user_status_command,
)
from hrbot.bot.handlers.claims import CLAIM_CALLBACK_PATTERN, handle_claim_callback
from hrbot.bot.handlers.registration import (
    handle_registration_callback,
    handle_registration_text,
    handle_reset_command,
    handle_start_command,
)

__all__ = [
    # Registration
    "handle_start_command",
    "handle_reset_command",
    "handle_registration_text",
    "handle_registration_callback",
    # Claims
    "handle_claim_callback",
    "CLAIM_CALLBACK_PATTERN",
    # Admin
    "handle_add_admin_command",
    "handle_remove_admin_command",
    "handle_set_admin_log_chat_command",
    "handle_set_news_channel_command",
    "handle_reset_invites_command",
    "handle_list_employees_command",
    "handle_bind_department_command",
    "handle_user_status_command",
    "handle_check_hist_command",
    "handle_remove_user_command",
]
