"""Typed records parsed from backend payloads."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

ONLINE = "online"
OFFLINE = "offline"


def _full_name(user: dict[str, Any]) -> str:
    name = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
    return name or user.get("name") or ""


@dataclass(frozen=True)
class Doctor:
    id: int
    name: str
    specialization: str
    email: str = ""
    consultation_fee: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Doctor":
        user = data.get("user") or {}
        return cls(
            id=data["id"],
            name=_full_name(user),
            specialization=data.get("specialization") or "",
            email=user.get("email") or "",
            consultation_fee=data.get("consultationFee") or 0,
        )


@dataclass(frozen=True)
class Appointment:
    id: int
    doctor_id: int
    patient_id: int
    date: date
    time: str
    reason: str
    status: str
    type: str = "in-person"
    payment_mode: str = OFFLINE
    notes: str = ""
    doctor_name: str = ""
    specialization: str = ""
    cancel_reason: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Appointment":
        doctor = data.get("doctor") or {}
        return cls(
            id=data["id"],
            doctor_id=data.get("doctorId") or doctor.get("id"),
            patient_id=data.get("patientId") or (data.get("patient") or {}).get("id"),
            date=date.fromisoformat(str(data["appointmentDate"])[:10]),
            time=data.get("appointmentTime") or "",
            reason=data.get("reason") or "",
            status=data["status"],
            type=data.get("type") or "in-person",
            payment_mode=data.get("paymentMode") or OFFLINE,
            notes=data.get("notes") or "",
            doctor_name=_full_name(doctor.get("user") or {}),
            specialization=doctor.get("specialization") or "",
            cancel_reason=data.get("cancelReason") if data.get("status") == "cancelled" else None,
        )


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    amount: int
    currency: str
    key: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PaymentOrder":
        return cls(order_id=data["id"], amount=int(data["amount"]), currency=data["currency"], key=data.get("key") or "")


@dataclass(frozen=True)
class PaymentConfirmation:
    """Signed success payload handed back by the checkout."""
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str

    @classmethod
    def from_callback(cls, response: dict[str, Any]) -> "PaymentConfirmation":
        return cls(
            razorpay_order_id=response["razorpay_order_id"],
            razorpay_payment_id=response["razorpay_payment_id"],
            razorpay_signature=response["razorpay_signature"],
        )

    def as_payload(self) -> dict[str, str]:
        return {
            "razorpay_order_id": self.razorpay_order_id,
            "razorpay_payment_id": self.razorpay_payment_id,
            "razorpay_signature": self.razorpay_signature,
        }


@dataclass(frozen=True)
class BookingRequest:
    patient_id: int
    doctor_id: int
    date: date
    time: str
    reason: str
    notes: str = ""
    payment_mode: str = OFFLINE
    type: str = "in-person"

    def as_payload(self, payment: Optional[PaymentConfirmation] = None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "patient": self.patient_id,
            "doctor": self.doctor_id,
            "appointmentDate": self.date.isoformat(),
            "appointmentTime": self.time,
            "reason": self.reason,
            "notes": self.notes,
            "type": self.type,
            "paymentMode": self.payment_mode,
        }
        if payment is not None:
            body["paymentDetails"] = payment.as_payload()
        return body


@dataclass(frozen=True)
class Notice:
    """Transient message shown to the user."""
    level: str
    message: str
    link: Optional[str] = None
    dismissible: bool = True
    meta: dict[str, Any] = field(default_factory=dict)
