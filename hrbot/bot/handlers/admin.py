"""Admin command handlers.

Owner only: /add_admin, /remove_admin, /set_admin_log_chat, /set_news_channel,
/reset_invites, /list_employees. Owner or admin: /bind_department, /user_status,
/check_hist, /remove_user. Targets are "123456789", "@username" or a reply to
the user's message.
"""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from hrbot.bot.auth import has_admin_access, is_owner
from hrbot.bot.config import bot_config
from hrbot.bot.handlers.common import build_channel_service
from hrbot.services import SessionLocal
from hrbot.services.admin_service import AdminService, RemoveStatus, Target, parse_target
from hrbot.services.audit_service import AdminLogEntry, AdminLogService, format_admin_log_line
from hrbot.services.employee_service import EmployeeService
from hrbot.services.errors import ChannelNotConfiguredError, PlatformError
from hrbot.services.invite_service import InviteService
from hrbot.services.localizer import t
from hrbot.services.platform import TelegramGateway

logger = logging.getLogger(__name__)

LIST_EMPLOYEES_LIMIT = 200
LIST_CHUNK_SIZE = 40


def _reply_target(update: Update) -> Target | None:
    reply = update.message.reply_to_message if update.message else None
    if reply and reply.from_user:
        return Target(telegram_id=reply.from_user.id, username=reply.from_user.username)
    return None


def resolve_target(update: Update, args: list[str]) -> tuple[Target | None, list[str]]:
    """Target from the first argument, else from the replied-to message.

    Returns:
        (target, remaining args)
    """
    if args:
        target = parse_target(args[0])
        if target is not None:
            return target, args[1:]
    return _reply_target(update), args


def _services(db, context: ContextTypes.DEFAULT_TYPE) -> tuple[AdminService, AdminLogService]:
    gateway = TelegramGateway(context.bot)
    admin_log = AdminLogService(db, gateway, fallback_chat_id=bot_config.admin_log_chat_id)
    admin_service = AdminService(
        db, gateway, channel_service=build_channel_service(db), admin_log=admin_log
    )
    return admin_service, admin_log


def _entry(update: Update, action: str, **kwargs) -> AdminLogEntry:
    actor = update.effective_user
    return AdminLogEntry(action=action, actor_id=actor.id, actor_username=actor.username, **kwargs)


async def _deny(update: Update, owner_only: bool = False) -> None:
    key = "admin.owner_only" if owner_only else "admin.no_rights"
    await update.message.reply_text(t(key))


async def handle_add_admin_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    if not is_owner(update):
        await _deny(update, owner_only=True)
        return

    target, _ = resolve_target(update, context.args or [])
    if target is None:
        await update.message.reply_text(t("admin.add_admin_usage"))
        return

    db = SessionLocal()
    try:
        admin_service, admin_log = _services(db, context)
        admin_service.add_admin(target)
        await admin_log.log_admin_action(
            _entry(update, "add_admin", target_id=target.telegram_id, target_username=target.username)
        )
        await update.message.reply_text(t("admin.admin_added", target=str(target)))
    except Exception as e:
        logger.error("Error adding admin: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_remove_admin_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    if not is_owner(update):
        await _deny(update, owner_only=True)
        return

    target, _ = resolve_target(update, context.args or [])
    if target is None:
        await update.message.reply_text(t("admin.remove_admin_usage"))
        return

    db = SessionLocal()
    try:
        admin_service, admin_log = _services(db, context)
        removed = admin_service.remove_admin(target)
        if not removed:
            await update.message.reply_text(t("admin.admin_not_found"))
            return
        await admin_log.log_admin_action(
            _entry(update, "remove_admin", target_id=target.telegram_id, target_username=target.username)
        )
        await update.message.reply_text(t("admin.admin_removed", target=str(target)))
    except Exception as e:
        logger.error("Error removing admin: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_set_admin_log_chat_command(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Make the current chat the admin-log destination."""
    if not update.message:
        return
    if not is_owner(update):
        await _deny(update, owner_only=True)
        return

    chat_id = str(update.effective_chat.id)
    db = SessionLocal()
    try:
        _, admin_log = _services(db, context)
        admin_log.set_admin_log_chat_id(chat_id)
        await update.message.reply_text(t("admin.log_chat_set", chat_id=chat_id))
    except Exception as e:
        logger.error("Error setting admin log chat: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_set_news_channel_command(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """/set_news_channel [chat_id]; without an argument the current chat is used."""
    if not update.message:
        return
    if not is_owner(update):
        await _deny(update, owner_only=True)
        return

    args = context.args or []
    channel_id = args[0] if args else str(update.effective_chat.id)
    db = SessionLocal()
    try:
        _, admin_log = _services(db, context)
        build_channel_service(db).set_news_channel_id(channel_id)
        await admin_log.log_admin_action(_entry(update, "set_news_channel", channel_id=channel_id))
        await update.message.reply_text(t("admin.news_channel_set", channel_id=channel_id))
    except Exception as e:
        logger.error("Error setting news channel: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_reset_invites_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    if not is_owner(update):
        await _deny(update, owner_only=True)
        return

    db = SessionLocal()
    try:
        _, admin_log = _services(db, context)
        removed = InviteService(db).reset_all()
        await admin_log.log_admin_action(
            _entry(update, "reset_invites", reason=f"removed={removed}")
        )
        await update.message.reply_text(t("admin.invites_reset", count=removed))
    except Exception as e:
        logger.error("Error resetting invites: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_list_employees_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Active employees by department and name, numbered, in chunks of 40 lines."""
    if not update.message:
        return
    if not is_owner(update):
        await _deny(update, owner_only=True)
        return

    db = SessionLocal()
    try:
        employees = EmployeeService(db).list_active(limit=LIST_EMPLOYEES_LIMIT)
        if not employees:
            await update.message.reply_text(t("admin.employees_empty"))
            return
        lines = [
            t(
                "admin.employee_line",
                index=index,
                full_name=employee.full_name,
                position=employee.position_id,
                department=employee.department_id,
            )
            for index, employee in enumerate(employees, start=1)
        ]
        for start in range(0, len(lines), LIST_CHUNK_SIZE):
            await update.message.reply_text("\n".join(lines[start : start + LIST_CHUNK_SIZE]))
    except Exception as e:
        logger.error("Error listing employees: %s", e, exc_info=True)
        await update.message.reply_text(t("admin.employees_failed"))
    finally:
        db.close()


async def handle_bind_department_command(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """/bind_department <department_id> [chat_id]; the current chat by default."""
    if not update.message:
        return
    if not has_admin_access(update):
        await _deny(update)
        return

    args = context.args or []
    if not args:
        await update.message.reply_text(t("admin.bind_usage"))
        return
    department = args[0]
    channel_id = args[1] if len(args) > 1 else str(update.effective_chat.id)

    db = SessionLocal()
    try:
        _, admin_log = _services(db, context)
        result = build_channel_service(db).bind_department(
            department, channel_id, is_owner=is_owner(update)
        )
        if not result.bound:
            await update.message.reply_text(
                t("admin.bind_exists", department=department, channel_id=result.channel_id)
            )
            return

        await admin_log.log_admin_action(
            _entry(
                update,
                "bind_department",
                department=department,
                channel_id=channel_id,
                reason=f"previous={result.previous_channel_id}" if result.previous_channel_id else None,
            )
        )
        await update.message.reply_text(
            t("admin.bind_done", department=department, channel_id=channel_id)
        )
    except Exception as e:
        logger.error("Error binding department: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_user_status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    if not has_admin_access(update):
        await _deny(update)
        return

    target, _ = resolve_target(update, context.args or [])
    if target is None:
        await update.message.reply_text(t("admin.user_status_usage"))
        return

    db = SessionLocal()
    try:
        admin_service, _ = _services(db, context)
        user = admin_service.find_verified_user(target)
        if user is None:
            await update.message.reply_text(t("admin.user_not_found"))
            return

        try:
            _, status = await admin_service.get_member_status(user)
        except ChannelNotConfiguredError:
            await update.message.reply_text(t("admin.no_department_channel"))
            return
        except PlatformError as e:
            await update.message.reply_text(t("admin.status_failed", error=e.description))
            return

        await update.message.reply_text(
            t(
                "admin.user_status",
                full_name=user.full_name,
                telegram_id=user.telegram_id,
                position=user.position,
                department=user.department,
                status=status,
            )
        )
    except Exception as e:
        logger.error("Error in user_status: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_check_hist_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Last 10 admin log entries, optionally filtered by target."""
    if not update.message:
        return
    if not has_admin_access(update):
        await _deny(update)
        return

    target, _ = resolve_target(update, context.args or [])
    db = SessionLocal()
    try:
        admin_service, _ = _services(db, context)
        records = admin_service.history(target)
        if not records:
            await update.message.reply_text(t("admin.history_empty"))
            return
        await update.message.reply_text("\n".join(format_admin_log_line(r) for r in records))
    except Exception as e:
        logger.error("Error in check_hist: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


async def handle_remove_user_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/remove_user <target> <reason>: ban from the department channel."""
    if not update.message:
        return
    if not has_admin_access(update):
        await _deny(update)
        return

    target, rest = resolve_target(update, context.args or [])
    if target is None:
        await update.message.reply_text(t("admin.remove_user_usage"))
        return
    reason = " ".join(rest).strip()
    if not reason:
        await update.message.reply_text(t("admin.remove_user_reason_required"))
        return

    actor = update.effective_user
    db = SessionLocal()
    try:
        admin_service, _ = _services(db, context)
        result = await admin_service.remove_user(target, reason, actor.id, actor.username)

        if result.status == RemoveStatus.USER_NOT_FOUND:
            await update.message.reply_text(t("admin.user_not_found"))
        elif result.status == RemoveStatus.NO_CHANNEL:
            await update.message.reply_text(t("admin.no_department_channel"))
        elif result.status == RemoveStatus.FAILED:
            await update.message.reply_text(t("admin.remove_user_failed", error=result.error))
        else:
            await update.message.reply_text(
                t(
                    "admin.user_removed",
                    full_name=result.user.full_name,
                    telegram_id=result.user.telegram_id,
                    reason=reason,
                )
            )
    except Exception as e:
        logger.error("Error in remove_user: %s", e, exc_info=True)
        await update.message.reply_text(t("errors.try_later"))
    finally:
        db.close()


__all__ = [
    "resolve_target",
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
