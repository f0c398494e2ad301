"""Integration tests for the nightly blacklist/news-channel sweep."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from hrbot.bot.jobs import nightly_sweep_job
from hrbot.models import AuditLog
from hrbot.services.errors import FailureReason, PlatformError
from hrbot.services.sweep_service import run_nightly_sweep

NEWS = "-100news"
TERMINATED = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _audit(db) -> list[tuple[str, int | None]]:
    rows = db.execute(select(AuditLog).order_by(AuditLog.id)).scalars()
    return [(a.action, a.telegram_id) for a in rows]


@pytest.mark.asyncio
async def test_active_blacklisted_employee_is_restored(db_session, gateway, make_employee):
    employee = make_employee(telegram_id=301, blacklisted=True)

    report = await run_nightly_sweep(db_session, gateway, NEWS)

    db_session.refresh(employee)
    assert employee.blacklisted is False
    gateway.unban_member.assert_awaited_once_with(NEWS, 301, only_if_banned=True)
    assert report.unblacklisted == 1
    assert report.unbanned == 1
    assert _audit(db_session) == [("night_auto_unblacklist", 301)]


@pytest.mark.asyncio
async def test_active_employee_without_flag_is_only_unbanned(db_session, gateway, make_employee):
    make_employee(telegram_id=302)

    report = await run_nightly_sweep(db_session, gateway, NEWS)

    gateway.unban_member.assert_awaited_once()
    assert report.unblacklisted == 0
    assert _audit(db_session) == []


@pytest.mark.asyncio
async def test_terminated_employee_is_blocked(db_session, gateway, make_employee):
    employee = make_employee(telegram_id=303, termination_date=TERMINATED)

    report = await run_nightly_sweep(db_session, gateway, NEWS)

    db_session.refresh(employee)
    assert employee.blacklisted is True
    gateway.ban_member.assert_awaited_once_with(NEWS, 303)
    assert (report.blocked, report.banned) == (1, 1)
    assert _audit(db_session) == [("night_auto_block", 303)]


@pytest.mark.asyncio
async def test_already_blacklisted_terminated_employee_is_audited_again(
    db_session, gateway, make_employee
):
    make_employee(telegram_id=304, termination_date=TERMINATED, blacklisted=True)

    report = await run_nightly_sweep(db_session, gateway, NEWS)

    assert report.blocked == 0
    assert _audit(db_session) == [("night_auto_block", 304)]


@pytest.mark.asyncio
async def test_unlinked_records_are_skipped(db_session, gateway, make_employee):
    make_employee(termination_date=TERMINATED)
    make_employee(last_name="Петров", blacklisted=True)

    report = await run_nightly_sweep(db_session, gateway, NEWS)

    assert report == type(report)()
    gateway.ban_member.assert_not_called()
    gateway.unban_member.assert_not_called()


@pytest.mark.asyncio
async def test_without_news_channel_only_flags_change(db_session, gateway, make_employee):
    fired = make_employee(telegram_id=305, termination_date=TERMINATED)

    await run_nightly_sweep(db_session, gateway, None)

    db_session.refresh(fired)
    assert fired.blacklisted is True
    gateway.ban_member.assert_not_called()


@pytest.mark.asyncio
async def test_tolerated_ban_failure_still_blocks(db_session, gateway, make_employee):
    fired = make_employee(telegram_id=306, termination_date=TERMINATED)
    gateway.ban_member.side_effect = PlatformError(
        FailureReason.OWNER_RESTRICTION, "Can't remove chat owner"
    )

    report = await run_nightly_sweep(db_session, gateway, NEWS)

    db_session.refresh(fired)
    assert fired.blacklisted is True
    assert report.banned == 0


class TestNightlySweepJob:
    @pytest.mark.asyncio
    async def test_outside_window_does_nothing(self):
        context = MagicMock()
        with patch("hrbot.bot.jobs.is_within_nightly_window", return_value=False), patch(
            "hrbot.bot.jobs.run_nightly_sweep"
        ) as sweep, patch("hrbot.bot.jobs.SessionLocal") as session_local:
            await nightly_sweep_job(context)

        sweep.assert_not_called()
        session_local.assert_not_called()

    @pytest.mark.asyncio
    async def test_inside_window_runs_with_news_channel(self, db_session):
        context = MagicMock()
        channels = MagicMock()
        channels.get_news_channel_id.return_value = NEWS
        db = MagicMock()

        with patch("hrbot.bot.jobs.is_within_nightly_window", return_value=True), patch(
            "hrbot.bot.jobs.run_nightly_sweep"
        ) as sweep, patch("hrbot.bot.jobs.SessionLocal", return_value=db), patch(
            "hrbot.bot.jobs.build_channel_service", return_value=channels
        ):
            await nightly_sweep_job(context)

        sweep.assert_awaited_once()
        assert sweep.call_args.args[0] is db
        assert sweep.call_args.args[2] == NEWS
        db.close.assert_called_once()
