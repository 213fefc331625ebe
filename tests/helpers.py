import os
import tempfile
import unittest
import uuid
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from salonbook.models import (
    Appointment,
    Base,
    Business,
    Customer,
    SMSSettings,
    Service,
    Staff,
    WorkingHours,
)


class FakeTransport:
    """Records reminder SMS instead of sending them"""

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []

    def send_reminder_sms(self, phone, message, business_id):
        self.sent.append((phone, message, business_id))
        return self.succeed


class FakeTwilioClient:
    def __init__(self, error=None):
        self.error = error
        self.created = []
        self.messages = self

    def create(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.created.append(kwargs)
        return SimpleNamespace(sid=f"SM{len(self.created):04d}")


class DatabaseTestCase(unittest.TestCase):
    """Fresh SQLite database file per test"""

    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False}
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.SessionLocal()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()
        os.remove(self.db_path)

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def make_business(self, slug="studio", phone="02121234567"):
        return self._save(Business(
            owner_id=uuid.uuid4(),
            name="Studio",
            slug=slug,
            phone=phone,
            country_code="+90",
        ))

    def make_customer(self, business, phone="05321234567", first_name="Ayse", last_name="Yilmaz"):
        return self._save(Customer(
            business_id=business.id,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
        ))

    def make_staff(self, business, name, is_active=True):
        return self._save(Staff(business_id=business.id, name=name, is_active=is_active))

    def make_service(self, business, name, duration_minutes, price):
        return self._save(Service(
            business_id=business.id,
            name=name,
            duration_minutes=duration_minutes,
            price=Decimal(str(price)),
        ))

    def make_working_hours(self, business, day_of_week, start_time="09:00", end_time="18:00",
                           is_closed=False, staff=None):
        return self._save(WorkingHours(
            business_id=business.id,
            staff_id=staff.id if staff else None,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_closed=is_closed,
        ))

    def make_sms_settings(self, business, **overrides):
        values = dict(
            is_enabled=True,
            reminder_enabled=True,
            reminder_minutes=30,
            business_notification_enabled=True,
            verification_enabled=False,
        )
        values.update(overrides)
        return self._save(SMSSettings(business_id=business.id, **values))

    def make_appointment(self, business, customer, service, day, start_time, end_time,
                         staff=None, group_id=None, status="scheduled", reminder_sent=False):
        return self._save(Appointment(
            business_id=business.id,
            customer_id=customer.id,
            service_id=service.id,
            staff_id=staff.id if staff else None,
            appointment_group_id=group_id,
            appointment_date=day,
            start_time=start_time,
            end_time=end_time,
            total_price=service.price,
            status=status,
            reminder_sent=reminder_sent,
        ))
