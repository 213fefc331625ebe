# salonbook/services/reminder/reminder_service.py
"""
Appointment reminder dispatch.

Each scan re-reads today's and tomorrow's active appointments that have not
had a reminder yet, and sends one SMS per booking whose reminder window
[start - reminder_minutes, start) contains the current time.

The reminder_sent flag is claimed with a single conditional UPDATE
(... WHERE reminder_sent = false) before the SMS goes out. Whoever gets a
non-zero row count owns the reminder; everybody else sends nothing. A failed
send leaves the flag set: at most one attempt, never a duplicate.
"""
import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from salonbook.config.database import SessionLocal
from salonbook.config.settings import get_settings
from salonbook.core.exceptions import (
    AppointmentNotFoundError,
    ReminderAlreadySentError,
    SMSNotEnabledError,
)
from salonbook.models.appointment import Appointment, ACTIVE_STATUSES
from salonbook.schemas.business import BusinessContext
from salonbook.schemas.reminder import ReminderCandidate, ReminderScanResult
from salonbook.services.sms.sms_settings_service import SMSSettingsService
from salonbook.utils.text_processing import clean_turkish_chars, format_sms_date
from salonbook.utils.time_utils import combine

logger = logging.getLogger(__name__)
settings = get_settings()


def is_reminder_due(appointment_start: datetime, reminder_minutes: int, now: datetime) -> bool:
    """True while now is in [appointment_start - reminder_minutes, appointment_start)"""
    reminder_time = appointment_start - timedelta(minutes=reminder_minutes)
    return reminder_time <= now < appointment_start


def build_reminder_message(appointment_date, reminder_minutes: int) -> str:
    return clean_turkish_chars(
        f"Randevu hatirlatmasi: {format_sms_date(appointment_date)} tarihli randevunuza "
        f"{reminder_minutes} dakika kalmistir. {settings.SMS_SIGNATURE}"
    )


class ReminderDispatcher:
    """
    Scans for due reminders and sends them through an SMS transport.

    Args:
        session_factory: Callable returning a new SQLAlchemy session
        sms_transport: Object with send_reminder_sms(phone, message, business_id) -> bool
        clock: Callable returning the current local datetime
    """

    def __init__(
            self,
            session_factory: Callable[[], Session] = SessionLocal,
            sms_transport=None,
            clock: Callable[[], datetime] = datetime.now
    ):
        if sms_transport is None:
            from salonbook.services.sms.sms_service import SMSService
            sms_transport = SMSService(session_factory=session_factory)

        self.session_factory = session_factory
        self.sms_transport = sms_transport
        self.clock = clock

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def collect_candidates(self, db: Session, now: datetime) -> "OrderedDict[UUID, List[ReminderCandidate]]":
        """Unreminded active bookings for today and tomorrow, grouped by business"""
        today = now.date()
        tomorrow = today + timedelta(days=1)

        rows = db.query(Appointment).options(
            selectinload(Appointment.customer)
        ).filter(
            Appointment.appointment_date.in_([today, tomorrow]),
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.reminder_sent.is_(False)
        ).order_by(
            Appointment.appointment_date.asc(),
            Appointment.start_time.asc()
        ).all()

        by_business: "OrderedDict[UUID, List[ReminderCandidate]]" = OrderedDict()
        seen = set()
        for row in rows:
            if row.group_key in seen or row.customer is None:
                continue
            seen.add(row.group_key)

            by_business.setdefault(row.business_id, []).append(ReminderCandidate(
                appointment_id=row.id,
                appointment_group_id=row.appointment_group_id,
                business_id=row.business_id,
                appointment_date=row.appointment_date,
                start_time=row.start_time,
                customer_phone=row.customer.phone,
            ))

        return by_business

    # ------------------------------------------------------------------
    # Claim and send
    # ------------------------------------------------------------------

    def claim(self, db: Session, candidate: ReminderCandidate, now: datetime) -> bool:
        """
        Atomically flip reminder_sent false -> true for the booking.

        Returns False when another scan already flipped it.
        """
        key = candidate.claim_key
        query = db.query(Appointment).filter(
            Appointment.reminder_sent.is_(False),
            or_(Appointment.appointment_group_id == key, Appointment.id == key)
        )

        updated = query.update(
            {Appointment.reminder_sent: True, Appointment.reminder_sent_at: now},
            synchronize_session=False
        )
        db.commit()
        return updated > 0

    def dispatch(
            self,
            db: Session,
            candidate: ReminderCandidate,
            reminder_minutes: int,
            now: datetime,
            result: Optional[ReminderScanResult] = None
    ) -> bool:
        """Claim and send one due reminder; True only if the SMS went out"""
        result = result or ReminderScanResult()

        try:
            claimed = self.claim(db, candidate, now)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Could not claim reminder for appointment {candidate.appointment_id}: {e}")
            result.errors += 1
            return False

        if not claimed:
            logger.info(f"Reminder already sent for appointment {candidate.appointment_id}")
            result.already_claimed += 1
            return False

        sent = self._send(candidate, reminder_minutes)
        if sent:
            result.sent += 1
        else:
            result.failed += 1
        return bool(sent)

    def _send(self, candidate: ReminderCandidate, reminder_minutes: int) -> bool:
        message = build_reminder_message(candidate.appointment_date, reminder_minutes)
        try:
            return bool(self.sms_transport.send_reminder_sms(
                candidate.customer_phone, message, candidate.business_id
            ))
        except Exception as e:
            logger.error(f"SMS reminder error for appointment {candidate.appointment_id}: {e}")
            return False

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def run_scan(self, now: Optional[datetime] = None) -> ReminderScanResult:
        """One full pass; never raises"""
        now = now or self.clock()
        result = ReminderScanResult()

        with self.session_factory() as db:
            try:
                by_business = self.collect_candidates(db, now)
            except SQLAlchemyError as e:
                logger.error(f"Error loading appointments for reminders: {e}")
                result.errors += 1
                return result

            result.selected = sum(len(c) for c in by_business.values())

            for business_id, candidates in by_business.items():
                try:
                    self._process_business(db, business_id, candidates, now, result)
                except SQLAlchemyError as e:
                    db.rollback()
                    logger.error(f"Error processing business {business_id}: {e}")
                    result.errors += 1

        logger.info(
            f"Reminder scan at {now.isoformat(timespec='minutes')}: "
            f"selected={result.selected} due={result.due} sent={result.sent} "
            f"failed={result.failed} already_claimed={result.already_claimed}"
        )
        return result

    def _process_business(
            self,
            db: Session,
            business_id: UUID,
            candidates: List[ReminderCandidate],
            now: datetime,
            result: ReminderScanResult
    ):
        sms_settings = SMSSettingsService.get_settings(db, business_id)
        if not sms_settings or not sms_settings.is_enabled or not sms_settings.reminder_enabled:
            result.skipped_businesses += 1
            return

        reminder_minutes = sms_settings.reminder_minutes or settings.DEFAULT_REMINDER_MINUTES

        for candidate in candidates:
            start = combine(candidate.appointment_date, candidate.start_time)
            if not is_reminder_due(start, reminder_minutes, now):
                continue
            result.due += 1
            self.dispatch(db, candidate, reminder_minutes, now, result)

    # ------------------------------------------------------------------
    # Manual resend
    # ------------------------------------------------------------------

    def send_manual_reminder(self, context: BusinessContext, appointment_id: UUID) -> bool:
        """
        Send a booking's reminder now, regardless of its window.

        Raises:
            AppointmentNotFoundError: No such booking in the caller's business
            SMSNotEnabledError: SMS is switched off for the business
            ReminderAlreadySentError: The reminder flag is already set
        """
        now = self.clock()

        with self.session_factory() as db:
            row = db.query(Appointment).filter(
                Appointment.business_id == context.business_id,
                or_(
                    Appointment.id == appointment_id,
                    Appointment.appointment_group_id == appointment_id
                )
            ).first()
            if not row:
                raise AppointmentNotFoundError("Appointment not found")

            sms_settings = SMSSettingsService.get_settings(db, context.business_id)
            if not sms_settings or not sms_settings.is_enabled:
                raise SMSNotEnabledError("SMS integration not enabled")

            candidate = ReminderCandidate(
                appointment_id=row.id,
                appointment_group_id=row.appointment_group_id,
                business_id=row.business_id,
                appointment_date=row.appointment_date,
                start_time=row.start_time,
                customer_phone=row.customer.phone,
            )
            reminder_minutes = sms_settings.reminder_minutes or settings.DEFAULT_REMINDER_MINUTES

            if not self.claim(db, candidate, now):
                raise ReminderAlreadySentError("Reminder already sent for this appointment")

        sent = self._send(candidate, reminder_minutes)

        logger.info(f"Manual reminder for appointment {appointment_id}: sent={sent}")
        return sent
