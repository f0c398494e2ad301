"""Registration handlers: /start, /reset, free text and the reg:* buttons."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from hrbot.bot.handlers.common import (
    build_verification_service,
    get_dialogue,
    is_private_chat,
    send_dialogue_reply,
)
from hrbot.services import SessionLocal
from hrbot.services.dialogue import FormField
from hrbot.services.localizer import t

logger = logging.getLogger(__name__)


async def handle_start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start: begin (or restart) the registration dialogue."""
    try:
        if not update.message or not is_private_chat(update):
            return

        user_id = update.message.from_user.id
        reply = get_dialogue(context).start(user_id)
        await send_dialogue_reply(update, reply)
        logger.info("Registration started for user %s", user_id)

    except Exception as e:
        logger.error("Error in start command handler: %s", e, exc_info=True)


async def handle_reset_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reset: drop collected data and start over."""
    try:
        if not update.message or not is_private_chat(update):
            return

        reply = get_dialogue(context).reset(update.message.from_user.id)
        await send_dialogue_reply(update, reply)

    except Exception as e:
        logger.error("Error in reset command handler: %s", e, exc_info=True)


async def handle_registration_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Feed a private text message into the dialogue."""
    try:
        if not update.message or not update.message.text or not is_private_chat(update):
            return

        reply = get_dialogue(context).handle_text(update.message.from_user.id, update.message.text)
        await send_dialogue_reply(update, reply)

    except Exception as e:
        logger.error("Error handling registration text: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))


async def handle_registration_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle reg:confirm, reg:edit, reg:field:<field> and reg:back buttons."""
    query = update.callback_query
    if not query:
        return

    try:
        await query.answer()
        user_id = query.from_user.id
        parts = (query.data or "").split(":")
        action = parts[1] if len(parts) > 1 else ""
        dialogue = get_dialogue(context)

        if action == "confirm":
            await _confirm(update, context, user_id)
            return

        if action == "edit":
            reply = dialogue.request_edit(user_id)
        elif action == "back":
            reply = dialogue.back(user_id)
        elif action == "field" and len(parts) > 2:
            try:
                form_field = FormField(parts[2])
            except ValueError:
                logger.warning("Unknown form field in callback: %s", query.data)
                return
            reply = dialogue.choose_field(user_id, form_field)
        else:
            logger.warning("Unknown registration callback: %s", query.data)
            return

        await send_dialogue_reply(update, reply)

    except Exception as e:
        logger.error("Error in registration callback: %s", e, exc_info=True)
        if update.effective_chat:
            await update.effective_chat.send_message(t("errors.try_later"))


async def _confirm(update: Update, context: ContextTypes.DEFAULT_TYPE, user_id: int) -> None:
    dialogue = get_dialogue(context)
    state = dialogue.begin_confirmation(user_id)
    chat = update.effective_chat

    if state is None:
        current = dialogue.get_state(user_id)
        key = (
            "registration.already_processing"
            if current is not None and current.processing
            else "registration.action_unavailable"
        )
        await chat.send_message(t(key))
        return

    try:
        await update.callback_query.edit_message_reply_markup(reply_markup=None)
    except Exception as e:
        logger.debug("Could not remove confirm keyboard: %s", e)

    await chat.send_message(t("verification.checking"))

    db = SessionLocal()
    try:
        service = build_verification_service(db, context)
        result = await service.run_verification(
            user_id, update.callback_query.from_user.username, state.form
        )
        logger.info("Verification for user %s finished: %s", user_id, result.outcome.value)
        await chat.send_message(result.reply)
    finally:
        dialogue.finish(user_id, state)
        db.close()


__all__ = [
    "handle_start_command",
    "handle_reset_command",
    "handle_registration_text",
    "handle_registration_callback",
]
