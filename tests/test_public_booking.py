from datetime import date, datetime

from salonbook.models import Customer
from salonbook.schemas.appointment import PublicBookingRequest
from salonbook.services.appointment.public_booking_service import PublicBookingService
from salonbook.services.sms.verification_service import PhoneVerificationService
from tests.helpers import DatabaseTestCase

DAY = date(2024, 1, 1)


class FakeNotifier:
    def __init__(self):
        self.notifications = []
        self.codes = []

    def send_business_notification(self, phone, message, business_id, today=None):
        self.notifications.append((phone, message))
        return {"success": True, "source": "system", "daily_count": len(self.notifications)}

    def send_verification_code(self, phone, code, business_id):
        self.codes.append(code)
        return True


class TestPublicBooking(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.business = self.make_business(slug="kuafor")
        self.ali = self.make_staff(self.business, "Ali")
        self.bora = self.make_staff(self.business, "Bora")
        self.kesim = self.make_service(self.business, "Kesim", 30, 80)
        self.notifier = FakeNotifier()

    def request(self, start_time="14:00", phone="05321234567", staff=None):
        return PublicBookingRequest(
            first_name="Zeynep",
            last_name="Kaya",
            phone=phone,
            service_ids=[self.kesim.id],
            appointment_date=DAY,
            start_time=start_time,
            staff_id=staff.id if staff else None,
        )

    def test_slug_lookup(self):
        self.assertEqual(PublicBookingService.get_business_by_slug(self.db, "kuafor").id, self.business.id)
        self.assertIsNone(PublicBookingService.get_business_by_slug(self.db, "missing"))

    def test_first_free_staff_assigned(self):
        first = PublicBookingService.create_public_booking(self.db, self.business, self.request())
        second = PublicBookingService.create_public_booking(
            self.db, self.business, self.request(phone="05329876543")
        )

        self.assertEqual(first.staff_id, self.ali.id)
        self.assertEqual(second.staff_id, self.bora.id)
        self.assertEqual(first.customer_name, "Zeynep Kaya")

    def test_fully_booked_slot_rejected(self):
        PublicBookingService.create_public_booking(self.db, self.business, self.request())
        PublicBookingService.create_public_booking(self.db, self.business, self.request())

        with self.assertRaises(ValueError):
            PublicBookingService.create_public_booking(self.db, self.business, self.request())

    def test_returning_customer_reused(self):
        PublicBookingService.create_public_booking(self.db, self.business, self.request("10:00"))
        PublicBookingService.create_public_booking(self.db, self.business, self.request("12:00"))

        self.assertEqual(self.db.query(Customer).count(), 1)

    def test_business_notified(self):
        self.make_sms_settings(self.business)

        PublicBookingService.create_public_booking(self.db, self.business, self.request(), self.notifier)

        self.assertEqual(len(self.notifier.notifications), 1)
        phone, message = self.notifier.notifications[0]
        self.assertEqual(phone, "02121234567")
        self.assertIn("Zeynep Kaya", message)
        self.assertIn("01.01.2024 14:00", message)

    def test_notification_off(self):
        self.make_sms_settings(self.business, business_notification_enabled=False)
        PublicBookingService.create_public_booking(self.db, self.business, self.request(), self.notifier)
        self.assertEqual(self.notifier.notifications, [])

    def test_verification_required(self):
        self.make_sms_settings(self.business, verification_enabled=True)

        with self.assertRaises(ValueError):
            PublicBookingService.create_public_booking(self.db, self.business, self.request())

        PhoneVerificationService.create_verification(self.db, self.notifier, "05321234567", self.business.id)
        PhoneVerificationService.verify_code(self.db, "05321234567", self.notifier.codes[0], self.business.id)

        group = PublicBookingService.create_public_booking(self.db, self.business, self.request())
        self.assertEqual(group.start_time, "14:00")
