import unittest
from datetime import date, datetime, timedelta
from unittest import mock

from sqlalchemy.exc import SQLAlchemyError
from twilio.base.exceptions import TwilioException

from salonbook.models import SMSLog
from salonbook.services.sms.sms_service import SMSService, format_phone_number, get_daily_count
from salonbook.services.sms.sms_settings_service import SMSSettingsService
from salonbook.services.sms.verification_service import PhoneVerificationService
from tests.helpers import DatabaseTestCase, FakeTwilioClient


class TestFormatPhoneNumber(unittest.TestCase):

    def test_national_number(self):
        self.assertEqual(format_phone_number("0532 123 45 67", "+90"), "+905321234567")
        self.assertEqual(format_phone_number("532 123 45 67", "+90"), "+905321234567")

    def test_international_forms(self):
        self.assertEqual(format_phone_number("+1 (415) 555-0100", "+90"), "+14155550100")
        self.assertEqual(format_phone_number("0090 532 123 45 67", "+90"), "+905321234567")
        self.assertEqual(format_phone_number("905321234567", "+90"), "+905321234567")

    def test_empty_number_rejected(self):
        with self.assertRaises(ValueError):
            format_phone_number("--", "+90")


class TestSMSService(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.business = self.make_business()
        self.client = FakeTwilioClient()
        self.sms = SMSService(session_factory=self.SessionLocal, client=self.client)

    def logs(self):
        with self.SessionLocal() as db:
            return [(log.sms_type, log.status) for log in db.query(SMSLog).all()]

    def test_reminder_sent_and_logged(self):
        self.assertTrue(self.sms.send_reminder_sms("05321234567", "Randevunuz yaklaşıyor", self.business.id))

        self.assertEqual(self.client.created[0]["to"], "+905321234567")
        self.assertEqual(self.client.created[0]["body"], "Randevunuz yaklasiyor")
        self.assertEqual(self.logs(), [("reminder", "sent")])

    def test_provider_error_reported_as_failure(self):
        sms = SMSService(session_factory=self.SessionLocal, client=FakeTwilioClient(TwilioException("boom")))

        self.assertFalse(sms.send_reminder_sms("05321234567", "hi", self.business.id))
        self.assertEqual(self.logs(), [("reminder", "failed")])

    def test_missing_client_is_a_failure(self):
        sms = SMSService(session_factory=self.SessionLocal, client=None)
        self.assertFalse(sms.send_reminder_sms("05321234567", "hi", self.business.id))

    def test_confirmation_not_logged(self):
        result = self.sms.send_customer_confirmation("05321234567", "Tamam", self.business.id)
        self.assertTrue(result["success"])
        self.assertEqual(self.logs(), [])

    def test_business_notifications_beyond_free_quota_are_billed(self):
        today = date(2024, 3, 15)
        sources = [
            self.sms.send_business_notification("02121234567", "Yeni randevu", self.business.id, today)["source"]
            for _ in range(4)
        ]

        self.assertEqual(sources, ["system", "system", "system", "business"])
        self.assertEqual(get_daily_count(self.db, self.business.id, today), 4)
        self.assertEqual(get_daily_count(self.db, self.business.id, today + timedelta(days=1)), 0)

    def test_notification_sent_when_usage_cannot_be_recorded(self):
        with mock.patch(
            "salonbook.services.sms.sms_service.increment_daily_usage",
            side_effect=SQLAlchemyError("usage table locked")
        ):
            result = self.sms.send_business_notification(
                "02121234567", "Yeni randevu", self.business.id, date(2024, 3, 15)
            )

        self.assertTrue(result["success"])
        self.assertIsNone(result["daily_count"])
        self.assertEqual(result["source"], "system")


class TestSMSSettingsService(DatabaseTestCase):

    def test_update_creates_then_changes(self):
        business = self.make_business()

        created = SMSSettingsService.update_settings(self.db, business.id, reminder_minutes=45)
        self.assertEqual(created.reminder_minutes, 45)
        self.assertTrue(created.is_enabled)

        updated = SMSSettingsService.update_settings(self.db, business.id, is_enabled=False, reminder_minutes=None)
        self.assertFalse(updated.is_enabled)
        self.assertEqual(updated.reminder_minutes, 45)

    def test_stats(self):
        business = self.make_business()
        sms = SMSService(session_factory=self.SessionLocal, client=FakeTwilioClient())
        sms.send_reminder_sms("05321234567", "a", business.id)
        sms.send_reminder_sms("", "b", business.id)

        self.assertEqual(SMSSettingsService.get_stats(self.db, business.id), {"total": 2, "sent": 1, "failed": 1})
        self.assertEqual(len(SMSSettingsService.get_logs(self.db, business.id)), 2)


class RecordingSMS:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.codes = []

    def send_verification_code(self, phone, code, business_id):
        self.codes.append(code)
        return self.succeed


class TestPhoneVerification(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.business = self.make_business()
        self.now = datetime(2024, 3, 15, 12, 0)

    def test_code_verifies_once(self):
        sms = RecordingSMS()
        verification = PhoneVerificationService.create_verification(
            self.db, sms, "05321234567", self.business.id, self.now
        )

        self.assertIsNotNone(verification)
        self.assertEqual(len(sms.codes[0]), 6)
        self.assertFalse(PhoneVerificationService.verify_code(
            self.db, "05321234567", "xxxxxx", self.business.id, self.now))
        self.assertTrue(PhoneVerificationService.verify_code(
            self.db, "05321234567", sms.codes[0], self.business.id, self.now))
        self.assertFalse(PhoneVerificationService.verify_code(
            self.db, "05321234567", sms.codes[0], self.business.id, self.now))
        self.assertTrue(PhoneVerificationService.is_phone_verified(self.db, "05321234567", self.business.id))

    def test_expired_code_rejected(self):
        sms = RecordingSMS()
        PhoneVerificationService.create_verification(self.db, sms, "05321234567", self.business.id, self.now)

        later = self.now + timedelta(minutes=11)
        self.assertFalse(PhoneVerificationService.verify_code(
            self.db, "05321234567", sms.codes[0], self.business.id, later))

    def test_undelivered_code_discarded(self):
        sms = RecordingSMS(succeed=False)

        self.assertIsNone(PhoneVerificationService.create_verification(
            self.db, sms, "05321234567", self.business.id, self.now))
        self.assertFalse(PhoneVerificationService.verify_code(
            self.db, "05321234567", sms.codes[0], self.business.id, self.now))
