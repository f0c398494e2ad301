"""Cross-account claim resolution (allow/block buttons sent to the current holder)."""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session

from hrbot.services.audit_service import AuditService
from hrbot.services.employee_service import EmployeeService
from hrbot.services.localizer import t
from hrbot.services.notification_service import NotificationService
from hrbot.services.session_store import ClaimSessionStore
from hrbot.services.verification_service import VerificationResult, VerificationService

logger = logging.getLogger(__name__)


class ClaimDecision(str, Enum):
    ALLOW = "allow"
    BLOCK = "block"


class ClaimStatus(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    ALLOWED = "allowed"
    BLOCKED = "blocked"


@dataclass
class ClaimResolution:
    status: ClaimStatus
    reply: str
    """Text shown to the account holder who pressed the button."""
    verification: VerificationResult | None = None


class ClaimService:
    def __init__(
        self,
        db_session: Session,
        gateway,
        claim_sessions: ClaimSessionStore,
        verification_service: VerificationService,
    ):
        self.db = db_session
        self.claim_sessions = claim_sessions
        self.employees = EmployeeService(db_session)
        self.notifications = NotificationService(gateway)
        self.verification = verification_service

    async def resolve_claim(
        self, session_id: str, decision: ClaimDecision | str, actor_id: int
    ) -> ClaimResolution:
        """Apply the holder's decision on a pending claim session.

        Block: the requester gets a generic failure. Allow: the holder's
        linkage is released and the stored form is verified again for the
        requester, who receives the resulting reply.
        """
        decision = ClaimDecision(decision)
        session = self.claim_sessions.get(session_id)
        if session is None:
            logger.info("Claim session %s not found or expired", session_id)
            return ClaimResolution(ClaimStatus.NOT_FOUND, t("claims.session_expired"))

        if session.holder_id != actor_id:
            logger.warning(
                "User %s tried to decide claim %s held by %s",
                actor_id,
                session_id,
                session.holder_id,
            )
            return ClaimResolution(ClaimStatus.FORBIDDEN, t("claims.not_holder"))

        self.claim_sessions.delete(session_id)
        payload = {
            "employee_id": session.employee_id,
            "holder_id": session.holder_id,
            "session_id": session_id,
        }

        if decision == ClaimDecision.BLOCK:
            AuditService.log(self.db, "claim_blocked", session.requester_id, payload)
            await self.notifications.send_message(
                session.requester_id, t("verification.denied")
            )
            return ClaimResolution(ClaimStatus.BLOCKED, t("claims.blocked"))

        employee = self.employees.get_by_id(session.employee_id)
        if employee is not None and employee.telegram_id == session.holder_id:
            self.employees.release_linkage(employee)
        AuditService.log(self.db, "claim_allowed", session.requester_id, payload)

        result = await self.verification.run_verification(
            session.requester_id, session.requester_username, session.form
        )
        await self.notifications.send_message(session.requester_id, result.reply)
        logger.info(
            "Claim %s allowed, replay outcome for requester %s: %s",
            session_id,
            session.requester_id,
            result.outcome.value,
        )
        return ClaimResolution(ClaimStatus.ALLOWED, t("claims.allowed"), result)


__all__ = ["ClaimService", "ClaimDecision", "ClaimStatus", "ClaimResolution"]
