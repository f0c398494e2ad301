"""Employee service: personnel store access and identity matching.

Matching is two-phase. A broad SQL filter (substring on names, equality on
department/position) fetches candidates; match_identity then applies exact,
case-insensitive comparison and phone disambiguation in memory. The in-memory
step is the authoritative gate since string comparison semantics of the store
differ between deployments.
"""

import logging
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from hrbot.models.employee import Employee
from hrbot.models.verified_user import VerifiedUser
from hrbot.services.phone import normalize_phone

logger = logging.getLogger(__name__)

# Stored values meaning "no middle name"
_ABSENT_MIDDLE_NAMES = {"", "-"}


def _norm(value: str | None) -> str:
    return (value or "").strip().casefold()


def _middle_name_matches(entered: str | None, stored: str | None) -> bool:
    entered_norm, stored_norm = _norm(entered), _norm(stored)
    if entered_norm in _ABSENT_MIDDLE_NAMES:
        return stored_norm in _ABSENT_MIDDLE_NAMES
    return entered_norm == stored_norm


def match_identity(
    candidates: Iterable[Employee],
    last_name: str,
    first_name: str,
    middle_name: str | None,
    phone: str | None = None,
) -> Employee | None:
    """Pick the matching personnel record from broad-filter candidates.

    Args:
        candidates: Records returned by the broad filter (store order)
        last_name: Entered last name
        first_name: Entered first name
        middle_name: Entered middle name, None if the employee has none
        phone: Canonical phone; when given it must match the stored phone

    Returns:
        First exact match, or None. Namesakes without a phone are not
        disambiguated: the first one in store order wins.
    """
    exact = [
        c
        for c in candidates
        if _norm(c.last_name) == _norm(last_name)
        and _norm(c.first_name) == _norm(first_name)
        and _middle_name_matches(middle_name, c.middle_name)
    ]
    if not exact:
        return None

    if phone:
        wanted = normalize_phone(phone)
        exact = [c for c in exact if c.phone and normalize_phone(c.phone) == wanted]
        if not exact:
            return None

    return exact[0]


class EmployeeService:
    """Repository over the personnel table.

    Used by verification and the nightly sweep; never deletes personnel records.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def find_candidates(
        self,
        last_name: str | None,
        first_name: str | None,
        middle_name: str | None,
        department_id: int | None,
        position_id: int | None,
    ) -> list[Employee]:
        """Broad filter: equality on ids in SQL, case-insensitive substring on names.

        Name parts are compared after casefold in Python (SQL LIKE folds ASCII
        only). None values are skipped.
        """
        query = select(Employee)
        if department_id is not None:
            query = query.where(Employee.department_id == department_id)
        if position_id is not None:
            query = query.where(Employee.position_id == position_id)
        rows = self.db.execute(query.order_by(Employee.id)).scalars().all()

        wanted = [
            (attr, _norm(value))
            for attr, value in (
                ("last_name", last_name),
                ("first_name", first_name),
                ("middle_name", middle_name),
            )
            if value and value.strip()
        ]
        return [
            e for e in rows if all(part in _norm(getattr(e, attr)) for attr, part in wanted)
        ]

    def find_by_identity(
        self,
        last_name: str,
        first_name: str,
        middle_name: str | None,
        department_id: int | None,
        position_id: int | None,
        phone: str | None = None,
    ) -> Employee | None:
        """Find the personnel record for entered identity fields.

        Returns:
            Matching Employee or None
        """
        candidates = self.find_candidates(
            last_name, first_name, middle_name, department_id, position_id
        )
        employee = match_identity(candidates, last_name, first_name, middle_name, phone)
        logger.debug(
            "Identity match: %d candidate(s), matched=%s",
            len(candidates),
            employee.id if employee else None,
        )
        return employee

    def get_by_id(self, employee_id: int) -> Employee | None:
        return self.db.get(Employee, employee_id)

    def get_by_telegram_id(self, telegram_id: int) -> Employee | None:
        return self.db.execute(
            select(Employee).where(Employee.telegram_id == telegram_id)
        ).scalar_one_or_none()

    def find_linked_elsewhere(self, telegram_id: int, employee_id: int) -> Employee | None:
        """Record other than employee_id already linked to telegram_id."""
        return self.db.execute(
            select(Employee).where(
                Employee.telegram_id == telegram_id,
                Employee.id != employee_id,
            )
        ).scalar_one_or_none()

    def update_linkage(
        self, employee: Employee, telegram_id: int, telegram_username: str | None
    ) -> None:
        """Link a Telegram account to the record if not fully linked yet.

        An existing telegram_id is never overwritten here; relinking goes
        through the claim flow (release_linkage first).
        """
        if employee.telegram_id and employee.telegram_username:
            return
        if employee.telegram_id is None:
            employee.telegram_id = telegram_id
        employee.telegram_username = telegram_username
        self.db.commit()
        logger.info("Linked telegram_id=%s to employee %d", employee.telegram_id, employee.id)

    def release_linkage(self, employee: Employee) -> None:
        """Unlink the Telegram account and drop its verified-user row for this record."""
        logger.info(
            "Releasing telegram_id=%s from employee %d", employee.telegram_id, employee.id
        )
        if employee.telegram_id is not None:
            self.db.execute(
                delete(VerifiedUser).where(
                    VerifiedUser.telegram_id == employee.telegram_id,
                    VerifiedUser.employee_id == employee.id,
                )
            )
        employee.telegram_id = None
        employee.telegram_username = None
        self.db.commit()

    def set_blacklist(self, employee: Employee, blacklisted: bool) -> bool:
        """Set the blacklist flag.

        Returns:
            True if the flag changed
        """
        if employee.blacklisted == blacklisted:
            return False
        employee.blacklisted = blacklisted
        self.db.commit()
        logger.info("Employee %d blacklisted=%s", employee.id, blacklisted)
        return True

    def list_linked(self, terminated: bool) -> list[Employee]:
        """Records with a linked Telegram account, split by employment status."""
        query = select(Employee).where(Employee.telegram_id.is_not(None))
        if terminated:
            query = query.where(Employee.termination_date.is_not(None))
        else:
            query = query.where(Employee.termination_date.is_(None))
        return list(self.db.execute(query.order_by(Employee.id)).scalars().all())

    def list_active(self, limit: int = 200) -> list[Employee]:
        """Currently employed records ordered by department, then name."""
        query = (
            select(Employee)
            .where(Employee.termination_date.is_(None))
            .order_by(
                Employee.department_id,
                Employee.last_name,
                Employee.first_name,
                Employee.middle_name,
                Employee.id,
            )
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())


__all__ = ["EmployeeService", "match_identity"]
