"""Nightly reconciliation of blacklist flags and news channel membership."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from hrbot.services.audit_service import AuditService
from hrbot.services.channel_service import ChannelAccessService
from hrbot.services.employee_service import EmployeeService
from hrbot.services.locale_service import ensure_utc, fixed_offset

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_START_HOUR = 0
DEFAULT_WINDOW_END_HOUR = 5
DEFAULT_UTC_OFFSET_HOURS = 3


def is_within_nightly_window(
    now: datetime | None = None,
    start_hour: int = DEFAULT_WINDOW_START_HOUR,
    end_hour: int = DEFAULT_WINDOW_END_HOUR,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> bool:
    """True when local time (UTC + fixed offset) is in [start_hour, end_hour).

    The offset is fixed, so DST changes are not followed. A window with
    start_hour > end_hour wraps around midnight.
    """
    now = ensure_utc(now or datetime.now(timezone.utc))
    local_hour = now.astimezone(fixed_offset(utc_offset_hours)).hour

    if start_hour <= end_hour:
        return start_hour <= local_hour < end_hour
    return local_hour >= start_hour or local_hour < end_hour


@dataclass
class SweepReport:
    unblacklisted: int = 0
    unbanned: int = 0
    blocked: int = 0
    banned: int = 0


class NightlySweepService:
    """Batch version of the on-demand employment checks.

    Active linked employees lose a stale blacklist flag and are unbanned from
    the news channel; terminated linked employees are flagged and banned.
    """

    def __init__(self, db_session: Session, gateway, news_channel_id: str | None):
        self.db = db_session
        self.employees = EmployeeService(db_session)
        self.access = ChannelAccessService(gateway)
        self.news_channel_id = news_channel_id

    async def run(self) -> SweepReport:
        report = SweepReport()
        if not self.news_channel_id:
            logger.warning("Nightly sweep: news channel not configured, flags only")

        for employee in self.employees.list_linked(terminated=False):
            was_blacklisted = employee.blacklisted
            if was_blacklisted:
                self.employees.set_blacklist(employee, False)
                report.unblacklisted += 1
            if self.news_channel_id and await self.access.unban(
                self.news_channel_id, employee.telegram_id
            ):
                report.unbanned += 1
            if was_blacklisted:
                AuditService.log(
                    self.db,
                    "night_auto_unblacklist",
                    employee.telegram_id,
                    {"employee_id": employee.id},
                )

        for employee in self.employees.list_linked(terminated=True):
            if self.employees.set_blacklist(employee, True):
                report.blocked += 1
            if self.news_channel_id and await self.access.ban(
                self.news_channel_id, employee.telegram_id
            ):
                report.banned += 1
            AuditService.log(
                self.db,
                "night_auto_block",
                employee.telegram_id,
                {"employee_id": employee.id},
            )

        logger.info(
            "Nightly sweep done: unblacklisted=%d unbanned=%d blocked=%d banned=%d",
            report.unblacklisted,
            report.unbanned,
            report.blocked,
            report.banned,
        )
        return report


async def run_nightly_sweep(db_session: Session, gateway, news_channel_id: str | None) -> SweepReport:
    return await NightlySweepService(db_session, gateway, news_channel_id).run()


__all__ = [
    "NightlySweepService",
    "SweepReport",
    "is_within_nightly_window",
    "run_nightly_sweep",
]
