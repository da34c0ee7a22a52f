"""
Payment gateway orders and signature verification.

The gateway is Razorpay's orders API, called over HTTPS with ``requests``.
A verified order is later consumed by exactly one appointment; verified
orders that never get one are listed by :func:`unreconciled_orders` for
manual follow-up (no refund is triggered automatically).
"""
import hashlib
import hmac
import logging

import requests
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from clinic.models import Doctor, PaymentOrder, PatientProfile
from clinic.services.accounts import patient_profile
from clinic.services.audit import log_action
from clinic.services.notifications import notify, send_receipt_email

logger = logging.getLogger(__name__)


class PaymentGatewayError(RuntimeError):
    """The gateway could not be reached or returned an unusable answer."""


def order_amount(doctor: Doctor) -> int:
    """Consultation fee in the smallest currency unit."""
    return (doctor.consultation_fee or settings.DEFAULT_CONSULTATION_FEE) * 100


def gateway_create_order(amount: int, currency: str, receipt: str) -> dict:
    if not settings.PAYMENT_ENABLE:
        raise PaymentGatewayError('Payment gateway not enabled on server')
    url = f"{settings.PAYMENT_API_URL}/orders"
    body = {
        'amount': amount,
        'currency': currency,
        'receipt': receipt,
        'payment_capture': 1,
    }
    try:
        r = requests.post(
            url,
            json=body,
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            timeout=settings.PAYMENT_TIMEOUT,
        )
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as exc:
        raise PaymentGatewayError(f'Gateway order request failed: {exc}') from exc
    if not data.get('id'):
        raise PaymentGatewayError('Invalid response from gateway: missing order id')
    return data


def create_order(user, doctor: Doctor) -> PaymentOrder:
    patient = patient_profile(user)
    if patient is None:
        raise PermissionError('Only patients can pay for appointments')
    amount = order_amount(doctor)
    currency = settings.PAYMENT_CURRENCY
    receipt = f"receipt_{int(timezone.now().timestamp() * 1000)}"
    data = gateway_create_order(amount, currency, receipt)
    order = PaymentOrder.objects.create(
        order_id=data['id'],
        doctor=doctor,
        patient=patient,
        amount=int(data.get('amount') or amount),
        currency=data.get('currency') or currency,
        receipt=receipt,
    )
    log_action(user=user, action='payment_order', object_type='payment_order', object_id=order.id,
               detail={'orderId': order.order_id, 'doctorId': doctor.id, 'amount': order.amount})
    logger.info("payment order %s created for doctor %s (%s %s)", order.order_id, doctor.id, order.amount, order.currency)
    return order


def format_order(order: PaymentOrder) -> dict:
    return {
        'id': order.order_id,
        'amount': order.amount,
        'currency': order.currency,
        'receipt': order.receipt,
        'status': order.status,
    }


def expected_signature(order_id: str, payment_id: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(settings.RAZORPAY_KEY_SECRET.encode(), message, hashlib.sha256).hexdigest()


def signature_matches(order_id: str, payment_id: str, signature: str) -> bool:
    if not settings.RAZORPAY_KEY_SECRET:
        return False
    return hmac.compare_digest(expected_signature(order_id, payment_id), signature or '')


def verify_payment(user, *, order_id: str, payment_id: str, signature: str) -> PaymentOrder:
    """Check the gateway signature and mark the order paid.

    Also sends the receipt (in-app notification and email) once the order
    is recorded as paid.  Re-verifying an already paid order with the same
    payment id is a no-op.
    """
    order = PaymentOrder.objects.select_related('doctor__user', 'patient__user').get(order_id=order_id)
    if order.patient.user_id != getattr(user, 'id', None):
        raise PermissionError('Order belongs to another patient')
    if order.status == PaymentOrder.STATUS_PAID:
        if order.payment_id == payment_id:
            return order
        raise ValueError('Order already paid with a different payment')
    if not signature_matches(order_id, payment_id, signature):
        logger.warning("signature mismatch for order %s payment %s", order_id, payment_id)
        log_action(user=user, action='payment_verify', object_type='payment_order', object_id=order.id,
                   detail={'result': 'fail', 'orderId': order_id, 'paymentId': payment_id})
        raise ValueError('Payment verification failed')

    with transaction.atomic():
        locked = PaymentOrder.objects.select_for_update().get(pk=order.pk)
        # a concurrent verify may have won the lock first
        if locked.status == PaymentOrder.STATUS_PAID:
            if locked.payment_id != payment_id:
                raise ValueError('Order already paid with a different payment')
            order.refresh_from_db()
            return order
        locked.status = PaymentOrder.STATUS_PAID
        locked.payment_id = payment_id
        locked.signature = signature
        locked.verified_at = timezone.now()
        locked.save(update_fields=['status', 'payment_id', 'signature', 'verified_at'])
    order.refresh_from_db()

    log_action(user=user, action='payment_verify', object_type='payment_order', object_id=order.id,
               detail={'result': 'ok', 'orderId': order_id, 'paymentId': payment_id})
    doctor_name = order.doctor.user.get_full_name() or order.doctor.user.username
    notify(
        order.patient.user,
        'payment_received',
        f"Payment of {order.amount / 100:.2f} {order.currency} received for your consultation with Dr. {doctor_name}",
        related_id=order.order_id,
        link='/patient/appointments',
    )
    send_receipt_email(order)
    return order


def consume_verified_order(patient: PatientProfile, doctor: Doctor, details: dict) -> PaymentOrder:
    """Lock and return the verified order an online booking pays with.

    Must run inside the transaction that creates the appointment.
    """
    order_id = details.get('razorpay_order_id')
    payment_id = details.get('razorpay_payment_id')
    order = PaymentOrder.objects.select_for_update().filter(order_id=order_id).first()
    if order is None or order.status != PaymentOrder.STATUS_PAID:
        raise ValueError('Payment has not been verified')
    if order.patient_id != patient.id or order.doctor_id != doctor.id:
        raise ValueError('Payment does not match this booking')
    if payment_id and order.payment_id != payment_id:
        raise ValueError('Payment does not match this booking')
    if order.appointment_id:
        raise ValueError('Payment already used for another appointment')
    return order


def unreconciled_orders():
    return (
        PaymentOrder.objects.filter(status=PaymentOrder.STATUS_PAID, appointment__isnull=True)
        .select_related('doctor__user', 'patient__user')
        .order_by('verified_at', 'id')
    )


def format_unreconciled(order: PaymentOrder) -> dict:
    return {
        **format_order(order),
        'paymentId': order.payment_id,
        'patientId': order.patient_id,
        'patientName': order.patient.user.get_full_name() or order.patient.user.username,
        'doctorId': order.doctor_id,
        'verifiedAt': order.verified_at.isoformat() if order.verified_at else None,
    }
