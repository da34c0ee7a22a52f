from datetime import date, timedelta

from portal.errors import ApiError
from portal.models import Appointment, Doctor, PaymentOrder

TODAY = date(2026, 3, 10)


def appointment(id, status="pending", days=1, **extra):
    fields = dict(
        id=id,
        doctor_id=1,
        patient_id=7,
        date=TODAY + timedelta(days=days),
        time="10:00",
        reason="Checkup",
        status=status,
    )
    fields.update(extra)
    return Appointment(**fields)


class FakeAPI:
    """Records every call; ``fail`` maps a method name to the ApiError it raises."""

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.appointments = []
        self.doctors = [Doctor(id=1, name="Anil Mehta", specialization="Cardiology", consultation_fee=800)]
        self.stats_payload = {"pendingAppointments": 0, "prescriptions": 0, "activeConsultation": False}
        self.next_id = 100

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    def count(self, name):
        return sum(1 for c in self.calls if c[0] == name)

    async def list_appointments(self, limit=20, **params):
        self._record("list_appointments", limit)
        return list(self.appointments)

    async def list_doctors(self, limit=50, **params):
        self._record("list_doctors", limit)
        return list(self.doctors)

    async def create_appointment(self, request, payment=None):
        self._record("create_appointment", request, payment)
        self.next_id += 1
        created = Appointment(
            id=self.next_id,
            doctor_id=request.doctor_id,
            patient_id=request.patient_id,
            date=request.date,
            time=request.time,
            reason=request.reason,
            status="pending",
            payment_mode=request.payment_mode,
        )
        self.appointments.append(created)
        return created

    async def update_status(self, appointment_id, status, cancel_reason=""):
        self._record("update_status", appointment_id, status, cancel_reason)
        current = next(a for a in self.appointments if a.id == appointment_id)
        return Appointment(**{**current.__dict__, "status": status, "cancel_reason": cancel_reason or None})

    async def stats(self):
        self._record("stats")
        return dict(self.stats_payload)

    async def create_payment_order(self, doctor_id):
        self._record("create_payment_order", doctor_id)
        return PaymentOrder(order_id="order_1", amount=80000, currency="INR", key="rzp_test_key")

    async def verify_payment(self, confirmation):
        self._record("verify_payment", confirmation)
        return {"verified": True}


class FakeCheckout:
    """Stands in for the payment widget; resolves immediately with ``outcome``."""

    def __init__(self, outcome="success", response=None):
        self.outcome = outcome
        self.response = response
        self.opened = []

    def open(self, options, *, on_success, on_failure, on_dismiss):
        self.opened.append(options)
        if self.outcome == "success":
            on_success(self.response or {
                "razorpay_order_id": options["order_id"],
                "razorpay_payment_id": "pay_1",
                "razorpay_signature": "sig",
            })
        elif self.outcome == "failure":
            on_failure(self.response or {"error": {"code": "BAD_REQUEST_ERROR", "description": "Card declined"}})
        elif self.outcome == "dismiss":
            on_dismiss()


def fill(form, payment_mode="offline", days=1):
    form.update_doctor(doctor_id=1, reason="Checkup")
    assert form.advance()
    form.update_schedule(date=TODAY + timedelta(days=days), time="10:00")
    assert form.advance()
    form.update_payment(payment_mode=payment_mode)
    return form


def api_error(message="boom", status=400):
    return ApiError(message, status=status)
