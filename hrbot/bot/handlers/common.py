"""Shared handler helpers: bot_data access, service wiring and keyboards."""

import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from hrbot.bot.config import bot_config
from hrbot.services.channel_service import ChannelService
from hrbot.services.dialogue import DialogueReply, FormField, RegistrationDialogue, ReplyMarkup
from hrbot.services.localizer import t
from hrbot.services.platform import TelegramGateway
from hrbot.services.session_store import ClaimSessionStore
from hrbot.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

DIALOGUE_KEY = "registration_dialogue"
CLAIM_SESSIONS_KEY = "claim_sessions"

REG_CALLBACK_PREFIX = "reg"

_FIELD_BUTTON_KEYS = {
    FormField.LAST_NAME: "buttons.field_last_name",
    FormField.FIRST_NAME: "buttons.field_first_name",
    FormField.MIDDLE_NAME: "buttons.field_middle_name",
    FormField.DEPARTMENT_ID: "buttons.field_department_id",
    FormField.POSITION_ID: "buttons.field_position_id",
    FormField.PHONE: "buttons.field_phone",
}


def get_dialogue(context: ContextTypes.DEFAULT_TYPE) -> RegistrationDialogue:
    dialogue = context.application.bot_data.get(DIALOGUE_KEY)
    if dialogue is None:
        dialogue = RegistrationDialogue()
        context.application.bot_data[DIALOGUE_KEY] = dialogue
    return dialogue


def get_claim_sessions(context: ContextTypes.DEFAULT_TYPE) -> ClaimSessionStore:
    sessions = context.application.bot_data.get(CLAIM_SESSIONS_KEY)
    if sessions is None:
        sessions = ClaimSessionStore()
        context.application.bot_data[CLAIM_SESSIONS_KEY] = sessions
    return sessions


def build_channel_service(db) -> ChannelService:
    return ChannelService(
        db,
        default_channel_id=bot_config.channel_id,
        default_news_channel_id=bot_config.news_channel_id,
    )


def build_verification_service(db, context: ContextTypes.DEFAULT_TYPE) -> VerificationService:
    return VerificationService(
        db,
        TelegramGateway(context.bot),
        get_claim_sessions(context),
        channel_service=build_channel_service(db),
        link_ttl_hours=bot_config.link_ttl_hours,
        utc_offset_hours=bot_config.org_utc_offset_hours,
    )


def build_confirm_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(t("buttons.confirm"), callback_data=f"{REG_CALLBACK_PREFIX}:confirm"),
                InlineKeyboardButton(t("buttons.edit"), callback_data=f"{REG_CALLBACK_PREFIX}:edit"),
            ]
        ]
    )


def build_edit_menu_keyboard() -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                t(_FIELD_BUTTON_KEYS[form_field]),
                callback_data=f"{REG_CALLBACK_PREFIX}:field:{form_field.value}",
            )
        ]
        for form_field in FormField
    ]
    rows.append(
        [InlineKeyboardButton(t("buttons.back"), callback_data=f"{REG_CALLBACK_PREFIX}:back")]
    )
    return InlineKeyboardMarkup(rows)


def keyboard_for(markup: ReplyMarkup) -> InlineKeyboardMarkup | None:
    if markup == ReplyMarkup.CONFIRM:
        return build_confirm_keyboard()
    if markup == ReplyMarkup.EDIT_MENU:
        return build_edit_menu_keyboard()
    return None


def is_private_chat(update: Update) -> bool:
    chat = update.effective_chat
    return chat is not None and chat.type == "private"


async def send_dialogue_reply(update: Update, reply: DialogueReply) -> None:
    """Send a dialogue reply to the chat the update came from."""
    chat = update.effective_chat
    if chat is None:
        logger.warning("Dialogue reply without chat")
        return
    await chat.send_message(reply.text, reply_markup=keyboard_for(reply.markup))


__all__ = [
    "DIALOGUE_KEY",
    "CLAIM_SESSIONS_KEY",
    "get_dialogue",
    "get_claim_sessions",
    "build_channel_service",
    "build_verification_service",
    "build_confirm_keyboard",
    "build_edit_menu_keyboard",
    "keyboard_for",
    "is_private_chat",
    "send_dialogue_reply",
]
