"""Check-in service - QR issuance, scanning and attendance transitions.

Every attendance transition writes a CheckInLog row and an audit log record.
"""

import dataclasses
import logging
from datetime import datetime

from django.utils import timezone

from seminars.domain import AttendanceStatus, OrderStatus, Participant, QRKind, qr
from seminars.domain.errors import (
    ExpiredPayload,
    InvalidCheckInCodeError,
    InvalidCheckInTransitionError,
    MalformedPayload,
    OrderNotFoundError,
    OrderNotPaidError,
    ParticipantNotFoundError,
)
from seminars.stores.interfaces import OrderStore, ParticipantStore

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("seminars.audit")

CHECK_IN = "CHECK_IN"
UNDO = "UNDO"


class CheckInService:
    """Service for participant check-in."""

    def __init__(self, participants: ParticipantStore, orders: OrderStore) -> None:
        self._participants = participants
        self._orders = orders

    def issue_participant_code(self, participant_id: str, now: datetime | None = None) -> str:
        participant = self._get_participant(participant_id)
        return qr.encode(QRKind.PARTICIPANT, participant.id, participant.session_id, issued_at=now)

    def issue_order_code(self, order_id: str, now: datetime | None = None) -> str:
        order = self._orders.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return qr.encode(QRKind.ORDER, order.id, order.session_id, issued_at=now)

    def scan(
        self,
        encoded: str,
        operator_id: int | None,
        session_id: str | None = None,
        now: datetime | None = None,
        ip_address: str | None = None,
        user_agent: str = "",
    ) -> Participant:
        """Check in the participant a scanned code points to.

        Any decode or lookup failure is reported as InvalidCheckInCodeError so
        operators never learn which part of a code was wrong.

        Raises:
            InvalidCheckInCodeError: If the code is malformed, expired, for another
                session or for an unknown subject.
            OrderNotPaidError: If the order has not been paid.
            InvalidCheckInTransitionError: If the participant is already checked in.
        """
        now = now or timezone.now()
        try:
            payload = qr.decode(encoded, now)
        except (MalformedPayload, ExpiredPayload) as exc:
            logger.info("Rejected check-in code", extra={"extra_data": {"reason": exc.code.value}})
            raise InvalidCheckInCodeError() from None

        if session_id is not None and payload.session_id != session_id:
            raise InvalidCheckInCodeError()

        if payload.kind is QRKind.PARTICIPANT:
            participant = self._participants.get_participant(payload.subject_id)
            if participant is None:
                raise InvalidCheckInCodeError()
        else:
            order = self._orders.get_order(payload.subject_id)
            if order is None:
                raise InvalidCheckInCodeError()
            if order.status is not OrderStatus.PAID:
                raise OrderNotPaidError(order.id)
            participant = self._participants.first_unchecked_participant(order.id)
            if participant is None:
                raise InvalidCheckInTransitionError("Everyone on this order is already checked in")

        if participant.session_id != payload.session_id:
            raise InvalidCheckInCodeError()

        return self._transition(participant, CHECK_IN, operator_id, now, ip_address, user_agent)

    def check_in(
        self,
        participant_id: str,
        operator_id: int | None,
        now: datetime | None = None,
        ip_address: str | None = None,
        user_agent: str = "",
    ) -> Participant:
        participant = self._get_participant(participant_id)
        return self._transition(participant, CHECK_IN, operator_id, now or timezone.now(), ip_address, user_agent)

    def undo_check_in(
        self,
        participant_id: str,
        operator_id: int | None,
        now: datetime | None = None,
        ip_address: str | None = None,
        user_agent: str = "",
    ) -> Participant:
        participant = self._get_participant(participant_id)
        return self._transition(participant, UNDO, operator_id, now or timezone.now(), ip_address, user_agent)

    def _get_participant(self, participant_id: str) -> Participant:
        participant = self._participants.get_participant(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return participant

    def _transition(
        self,
        participant: Participant,
        action: str,
        operator_id: int | None,
        now: datetime,
        ip_address: str | None,
        user_agent: str,
    ) -> Participant:
        if participant.order_status is not OrderStatus.PAID:
            raise OrderNotPaidError(participant.order_id)

        if action == CHECK_IN:
            source, target = AttendanceStatus.NOT_CHECKED_IN, AttendanceStatus.CHECKED_IN
            conflict = "Already checked in"
        else:
            source, target = AttendanceStatus.CHECKED_IN, AttendanceStatus.NOT_CHECKED_IN
            conflict = "Participant is not checked in"

        if not self._participants.transition_attendance(participant.id, source, target, operator_id, now):
            raise InvalidCheckInTransitionError(conflict)

        self._participants.record_check_in_log(participant, action, operator_id, ip_address, user_agent)
        audit_logger.info(
            f"AUDIT: PARTICIPANT_{action}",
            extra={
                "extra_data": {
                    "operator_id": operator_id,
                    "participant_id": participant.id,
                    "session_id": participant.session_id,
                }
            },
        )
        return dataclasses.replace(
            participant,
            attendance=target,
            checked_in_at=now if target is AttendanceStatus.CHECKED_IN else None,
        )
