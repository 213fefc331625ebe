import uuid
from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient
from jose import jwt

from salonbook.api.dependencies import get_reminder_dispatcher, get_sms_service
from salonbook.config.database import get_db
from salonbook.config.settings import get_settings
from salonbook.core.exceptions import ReminderAlreadySentError
from salonbook.main import app
from salonbook.models import StaffPermission, StaffRoleAssignment
from tests.helpers import DatabaseTestCase

settings = get_settings()


def token_for(claims):
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


class AlreadySentDispatcher:
    def send_manual_reminder(self, context, appointment_id):
        raise ReminderAlreadySentError("Reminder already sent for this appointment")


class SentDispatcher:
    def __init__(self):
        self.calls = []

    def send_manual_reminder(self, context, appointment_id):
        self.calls.append((context.business_id, appointment_id))
        return True


class NullSMS:
    def send_business_notification(self, phone, message, business_id, today=None):
        return {"success": True}


class APITestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_sms_service] = lambda: NullSMS()
        self.client = TestClient(app)

        self.business = self.make_business(slug="salon")
        self.owner_headers = {"Authorization": f"Bearer {token_for({'sub': str(self.business.owner_id)})}"}
        self.customer = self.make_customer(self.business)
        self.staff = self.make_staff(self.business, "Ali")
        self.kesim = self.make_service(self.business, "Kesim", 30, 80)
        self.fon = self.make_service(self.business, "Fon", 20, 50)
        self.make_working_hours(self.business, 1, "09:00", "12:00")

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def staff_headers(self, *permissions):
        for name in permissions:
            permission = self._save(StaffPermission(name=name))
            self._save(StaffRoleAssignment(staff_id=self.staff.id, permission_id=permission.id))
        token = token_for({"sub": str(uuid.uuid4()), "staff_id": str(self.staff.id)})
        return {"Authorization": f"Bearer {token}"}

    def booking_body(self, start_time="10:00"):
        return {
            "customer_id": str(self.customer.id),
            "service_ids": [str(self.kesim.id), str(self.fon.id)],
            "appointment_date": "2024-01-01",
            "start_time": start_time,
        }


class TestDashboardAPI(APITestCase):

    def test_requires_token(self):
        response = self.client.get("/api/v1/dashboard/appointments", params={"date": "2024-01-01"})
        self.assertIn(response.status_code, (401, 403))

    def test_invalid_token(self):
        response = self.client.get(
            "/api/v1/dashboard/appointments",
            params={"date": "2024-01-01"},
            headers={"Authorization": "Bearer not-a-jwt"}
        )
        self.assertEqual(response.status_code, 401)

    def test_owner_books_and_lists(self):
        created = self.client.post("/api/v1/dashboard/appointments", json=self.booking_body(), headers=self.owner_headers)
        self.assertEqual(created.status_code, 201)
        body = created.json()
        self.assertEqual(body["end_time"], "10:50")
        self.assertEqual(Decimal(body["total_price"]), Decimal("130"))
        self.assertEqual(body["staff_id"], str(self.staff.id))

        listed = self.client.get(
            "/api/v1/dashboard/appointments", params={"date": "2024-01-01"}, headers=self.owner_headers
        ).json()
        self.assertEqual(listed["total_appointments"], 1)
        self.assertEqual(listed["appointments"][0]["group_key"], body["group_key"])

        fetched = self.client.get(f"/api/v1/dashboard/appointments/{body['group_key']}", headers=self.owner_headers)
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(len(fetched.json()["services"]), 2)

    def test_edit_and_status(self):
        group_key = self.client.post(
            "/api/v1/dashboard/appointments", json=self.booking_body(), headers=self.owner_headers
        ).json()["group_key"]

        edited = self.client.put(
            f"/api/v1/dashboard/appointments/{group_key}",
            json={**self.booking_body("11:00"), "service_ids": [str(self.kesim.id)]},
            headers=self.owner_headers
        )
        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["start_time"], "11:00")
        self.assertEqual(edited.json()["group_key"], group_key)

        status_response = self.client.patch(
            f"/api/v1/dashboard/appointments/{group_key}/status",
            json={"status": "confirmed"},
            headers=self.owner_headers
        )
        self.assertEqual(status_response.status_code, 200)
        self.assertEqual(status_response.json()["updated"], 1)

        invalid = self.client.patch(
            f"/api/v1/dashboard/appointments/{group_key}/status",
            json={"status": "lost"},
            headers=self.owner_headers
        )
        self.assertEqual(invalid.status_code, 422)

    def test_unknown_group_is_404(self):
        response = self.client.get(f"/api/v1/dashboard/appointments/{uuid.uuid4()}", headers=self.owner_headers)
        self.assertEqual(response.status_code, 404)

    def test_bad_booking_is_400(self):
        body = self.booking_body()
        body["service_ids"] = [str(uuid.uuid4())]
        response = self.client.post("/api/v1/dashboard/appointments", json=body, headers=self.owner_headers)
        self.assertEqual(response.status_code, 400)

    def test_staff_needs_permission(self):
        headers = self.staff_headers()
        response = self.client.post("/api/v1/dashboard/appointments", json=self.booking_body(), headers=headers)
        self.assertEqual(response.status_code, 403)

        listed = self.client.get("/api/v1/dashboard/appointments", params={"date": "2024-01-01"}, headers=headers)
        self.assertEqual(listed.status_code, 200)

    def test_staff_with_permission_books(self):
        headers = self.staff_headers("appointments.create")
        response = self.client.post("/api/v1/dashboard/appointments", json=self.booking_body(), headers=headers)
        self.assertEqual(response.status_code, 201)

    def test_manual_reminder(self):
        dispatcher = SentDispatcher()
        app.dependency_overrides[get_reminder_dispatcher] = lambda: dispatcher
        group_key = uuid.uuid4()

        response = self.client.post(f"/api/v1/dashboard/appointments/{group_key}/reminder", headers=self.owner_headers)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["sent"])
        self.assertEqual(dispatcher.calls[0][1], group_key)

    def test_manual_reminder_already_sent(self):
        app.dependency_overrides[get_reminder_dispatcher] = lambda: AlreadySentDispatcher()

        response = self.client.post(
            f"/api/v1/dashboard/appointments/{uuid.uuid4()}/reminder", headers=self.owner_headers
        )
        self.assertEqual(response.status_code, 409)

    def test_calendar(self):
        self.client.post("/api/v1/dashboard/appointments", json=self.booking_body(), headers=self.owner_headers)

        calendar = self.client.get(
            "/api/v1/dashboard/appointments/calendar", params={"date": "2024-01-01"}, headers=self.owner_headers
        ).json()

        self.assertEqual(len(calendar["rows"]), 6)
        kinds = {row["time"]: [c["kind"] for c in row["cells"]] for row in calendar["rows"]}
        self.assertEqual(kinds["10:00"], ["free", "start"])
        self.assertEqual(kinds["10:30"], ["free", "continuation"])
        self.assertEqual(kinds["11:00"], ["free", "free"])

    def test_working_hours_round_trip(self):
        response = self.client.put(
            "/api/v1/dashboard/working-hours",
            json=[{"day_of_week": 2, "start_time": "10:00", "end_time": "13:00"}],
            headers=self.owner_headers
        )
        self.assertEqual(response.status_code, 200)

        slots = self.client.get(
            "/api/v1/dashboard/working-hours/slots", params={"date": "2024-01-02"}, headers=self.owner_headers
        ).json()["slots"]
        self.assertEqual([s["time"] for s in slots], ["10:00", "10:30", "11:00", "11:30", "12:00", "12:30"])

    def test_working_hours_validation(self):
        response = self.client.put(
            "/api/v1/dashboard/working-hours",
            json=[{"day_of_week": 2, "start_time": "13:00", "end_time": "10:00"}],
            headers=self.owner_headers
        )
        self.assertEqual(response.status_code, 422)

    def test_sms_settings(self):
        response = self.client.put(
            "/api/v1/dashboard/sms/settings", json={"reminder_minutes": 60}, headers=self.owner_headers
        )
        self.assertEqual(response.status_code, 200)

        fetched = self.client.get("/api/v1/dashboard/sms/settings", headers=self.owner_headers).json()
        self.assertEqual(fetched["reminder_minutes"], 60)

    def test_customer_history(self):
        self.client.post("/api/v1/dashboard/appointments", json=self.booking_body(), headers=self.owner_headers)

        response = self.client.get(
            f"/api/v1/dashboard/customers/{self.customer.id}/appointments", headers=self.owner_headers
        )
        self.assertEqual(response.status_code, 200)


class TestPublicAPI(APITestCase):

    def test_unknown_slug(self):
        self.assertEqual(self.client.get("/api/v1/public/nope").status_code, 404)

    def test_booking_page(self):
        page = self.client.get("/api/v1/public/salon").json()
        self.assertEqual(sorted(s["name"] for s in page["services"]), ["Fon", "Kesim"])
        self.assertEqual([m["name"] for m in page["staff"]], ["Ali"])

    def test_public_booking_and_slots(self):
        response = self.client.post("/api/v1/public/salon/bookings", json={
            "first_name": "Zeynep",
            "last_name": "Kaya",
            "phone": "05329876543",
            "service_ids": [str(self.kesim.id)],
            "appointment_date": "2024-01-01",
            "start_time": "09:00",
        })
        self.assertEqual(response.status_code, 201)

        slots = self.client.get(
            "/api/v1/public/salon/slots", params={"date": "2024-01-01", "staff_id": str(self.staff.id)}
        ).json()["slots"]
        self.assertEqual([s["time"] for s in slots if not s["available"]], ["09:00"])

    def test_health(self):
        self.assertEqual(self.client.get("/health/").json()["status"], "healthy")

    def test_correlation_id_echoed(self):
        response = self.client.get("/health/", headers={"X-Correlation-ID": "req-123"})
        self.assertEqual(response.headers["X-Correlation-ID"], "req-123")
        self.assertTrue(self.client.get("/health/").headers["X-Correlation-ID"])
