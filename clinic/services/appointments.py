"""
Appointment booking, listing and status transitions.

Every state change is recorded as an :class:`AppointmentTransition`, stored
as a notification for the patient and pushed to the patient and doctor
after the database transaction has finished.
"""
import logging
from datetime import date
from typing import Optional

import bleach
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from clinic.models import Appointment, AppointmentTransition, Doctor, PatientProfile
from clinic.services.accounts import (
    format_user_summary,
    is_admin,
    is_doctor,
    is_patient,
    patient_profile,
)
from clinic.services.audit import log_action
from clinic.services.notifications import notify
from clinic.services.payments import consume_verified_order
from clinic.services.push import (
    APPOINTMENT_CREATED,
    APPOINTMENT_UPDATED,
    CONSULTATION_ENDED,
    CONSULTATION_STARTED,
    push_event,
)

logger = logging.getLogger(__name__)

User = get_user_model()

_TRANSITIONS = {
    Appointment.STATUS_PENDING: [Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED, Appointment.STATUS_CANCELLED],
    Appointment.STATUS_SCHEDULED: [Appointment.STATUS_CONFIRMED, Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELLED, Appointment.STATUS_NO_SHOW],
    Appointment.STATUS_CONFIRMED: [Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELLED, Appointment.STATUS_NO_SHOW],
    Appointment.STATUS_COMPLETED: [],
    Appointment.STATUS_CANCELLED: [],
    Appointment.STATUS_NO_SHOW: [],
}

_STARTABLE = {Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED}


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in _TRANSITIONS.get(current, [])


def _clean(text: Optional[str]) -> str:
    return bleach.clean((text or '').strip(), tags=set(), strip=True)


def format_appointment(a: Appointment) -> dict:
    doctor_user = a.doctor.user
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'doctorId': a.doctor_id,
        'patient': {'id': a.patient_id, 'user': format_user_summary(a.patient.user)},
        'doctor': {
            'id': a.doctor_id,
            'specialization': a.doctor.specialization,
            'user': format_user_summary(doctor_user),
        },
        'appointmentDate': a.appointment_date.isoformat(),
        'appointmentTime': a.appointment_time,
        'reason': a.reason,
        'notes': a.notes,
        'type': a.type,
        'paymentMode': a.payment_mode,
        'paymentStatus': a.payment_status,
        'transactionId': a.transaction_id or None,
        'status': a.status,
        'cancelReason': a.cancel_reason if a.status == Appointment.STATUS_CANCELLED else None,
        'duration': a.duration,
        'startedAt': a.started_at.isoformat() if a.started_at else None,
        'completedAt': a.completed_at.isoformat() if a.completed_at else None,
        'createdAt': a.created_at.isoformat() if a.created_at else None,
    }


def scoped_queryset(user):
    qs = Appointment.objects.select_related('doctor__user', 'patient__user')
    if is_admin(user):
        return qs
    if is_doctor(user):
        return qs.filter(doctor__user=user)
    if is_patient(user):
        return qs.filter(patient__user=user)
    return qs.none()


def list_appointments(user, *, status: Optional[str] = None, start_date: Optional[date] = None,
                      end_date: Optional[date] = None, page: int = 1, limit: int = 10):
    qs = scoped_queryset(user)
    if status:
        qs = qs.filter(status=status)
    if start_date and end_date:
        qs = qs.filter(appointment_date__gte=start_date, appointment_date__lte=end_date)
    total = qs.count()
    page = max(1, int(page or 1))
    limit = min(100, max(1, int(limit or 10)))
    start = (page - 1) * limit
    items = qs.order_by('-appointment_date', '-appointment_time', '-id')[start:start + limit]
    return [format_appointment(a) for a in items], total


def get_appointment_for(user, pk: int) -> Appointment:
    """Fetch an appointment the user may see; raises ``Appointment.DoesNotExist`` otherwise."""
    return scoped_queryset(user).get(pk=pk)


def create_appointment(user, *, doctor: Doctor, appointment_date: date, appointment_time: str, reason: str,
                       patient: Optional[PatientProfile] = None, notes: str = '',
                       type: str = Appointment.TYPE_IN_PERSON,
                       payment_mode: str = Appointment.PAYMENT_OFFLINE,
                       payment_details: Optional[dict] = None) -> Appointment:
    if is_patient(user):
        own = patient_profile(user)
        if own is None:
            raise PermissionError('Patient profile not found')
        if patient is not None and patient.id != own.id:
            raise PermissionError('Patients can only book for themselves')
        patient = own
    elif not is_admin(user):
        raise PermissionError('Only patients and administrators can book appointments')
    if patient is None:
        raise ValueError('Patient is required')

    reason = _clean(reason)
    if not reason:
        raise ValueError('Reason for visit is required')
    if appointment_date < timezone.localdate():
        raise ValueError('Appointment date cannot be in the past')

    with transaction.atomic():
        order = None
        if payment_mode == Appointment.PAYMENT_ONLINE:
            if not payment_details:
                raise ValueError('Online payment requires payment details')
            order = consume_verified_order(patient, doctor, payment_details)
        appointment = Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            reason=reason,
            notes=_clean(notes),
            type=type,
            payment_mode=payment_mode,
            payment_status=Appointment.PAYMENT_STATUS_PAID if order else Appointment.PAYMENT_STATUS_PENDING,
            transaction_id=order.payment_id if order else '',
        )
        if order is not None:
            order.appointment = appointment
            order.save(update_fields=['appointment'])
        AppointmentTransition.objects.create(
            appointment=appointment, from_status=None, to_status=appointment.status,
            operator=user, reason='created',
        )

    appointment = Appointment.objects.select_related('doctor__user', 'patient__user').get(pk=appointment.pk)
    log_action(user=user, action='appointment_create', object_type='appointment', object_id=appointment.id,
               detail={'doctorId': doctor.id, 'paymentMode': payment_mode})
    logger.info("appointment %s booked with doctor %s (%s)", appointment.id, doctor.id, payment_mode)

    patient_name = appointment.patient.user.get_full_name() or appointment.patient.user.username
    notify(
        doctor.user,
        'appointment_created',
        f"New appointment request from {patient_name} on {appointment.appointment_date} at {appointment.appointment_time}",
        sender=user,
        related_id=appointment.id,
        link=f"/doctor/appointments/{appointment.id}",
    )
    push_event(APPOINTMENT_CREATED, format_appointment(appointment),
               user_ids=[doctor.user_id], roles=[User.ROLE_ADMIN])
    return appointment


def _check_can_change(user, appointment: Appointment, new_status: str) -> None:
    if is_admin(user):
        return
    if is_doctor(user):
        if appointment.doctor.user_id != user.id:
            raise PermissionError('Not your appointment')
        return
    if is_patient(user):
        if appointment.patient.user_id != user.id:
            raise PermissionError('Not your appointment')
        if new_status != Appointment.STATUS_CANCELLED:
            raise PermissionError('Patients can only cancel appointments')
        return
    raise PermissionError('Forbidden')


def _announce_update(user, appointment: Appointment, ntype: str, message: str, link: str) -> None:
    notify(appointment.patient.user, ntype, message, sender=user, related_id=appointment.id, link=link)
    push_event(APPOINTMENT_UPDATED, format_appointment(appointment),
               user_ids=[appointment.patient.user_id, appointment.doctor.user_id])


def transition_status(user, appointment: Appointment, new_status: str, *, cancel_reason: str = '',
                      reason: str = '', **fields) -> Appointment:
    """Move ``appointment`` to ``new_status``.

    Extra model ``fields`` (e.g. diagnosis) are written in the same
    transaction.  The row is locked while the transition is applied.
    """
    _check_can_change(user, appointment, new_status)
    if not can_transition(appointment.status, new_status):
        raise ValueError(f'Cannot change status from {appointment.status} to {new_status}')

    with transaction.atomic():
        locked = Appointment.objects.select_for_update().get(pk=appointment.pk)
        if not can_transition(locked.status, new_status):
            raise ValueError(f'Cannot change status from {locked.status} to {new_status}')
        old_status = locked.status
        locked.status = new_status
        if new_status == Appointment.STATUS_CANCELLED:
            locked.cancel_reason = _clean(cancel_reason)
        if new_status == Appointment.STATUS_COMPLETED:
            locked.completed_at = timezone.now()
        for name, value in fields.items():
            setattr(locked, name, value)
        locked.save()
        AppointmentTransition.objects.create(
            appointment=locked, from_status=old_status, to_status=new_status,
            operator=user, reason=_clean(reason or cancel_reason) or 'status update',
        )

    appointment = Appointment.objects.select_related('doctor__user', 'patient__user').get(pk=appointment.pk)
    log_action(user=user, action='appointment_status', object_type='appointment', object_id=appointment.id,
               detail={'from': old_status, 'to': new_status})

    if new_status == Appointment.STATUS_CANCELLED:
        ntype, message = 'appointment_cancelled', f"Your appointment on {appointment.appointment_date} was cancelled"
    elif new_status == Appointment.STATUS_CONFIRMED:
        ntype, message = 'appointment_confirmed', f"Your appointment on {appointment.appointment_date} at {appointment.appointment_time} is confirmed"
    else:
        ntype, message = 'appointment_updated', f"Your appointment on {appointment.appointment_date} is now {new_status}"
    _announce_update(user, appointment, ntype, message, f"/patient/appointments/{appointment.id}")
    return appointment


def _check_treating_doctor(user, appointment: Appointment) -> None:
    if is_admin(user):
        return
    if not is_doctor(user) or appointment.doctor.user_id != user.id:
        raise PermissionError('Only the treating doctor can run the consultation')


def start_consultation(user, appointment: Appointment) -> Appointment:
    _check_treating_doctor(user, appointment)
    if appointment.status not in _STARTABLE:
        raise ValueError(f'Cannot start a consultation for a {appointment.status} appointment')
    if appointment.started_at is None:
        appointment.started_at = timezone.now()
        appointment.save(update_fields=['started_at', 'updated_at'])
    log_action(user=user, action='consultation_start', object_type='appointment', object_id=appointment.id)

    notify(appointment.patient.user, 'consultation_started', 'Your doctor has started the consultation',
           sender=user, related_id=appointment.id, link=f"/patient/consultations/{appointment.id}")
    push_event(CONSULTATION_STARTED, {
        'consultationId': appointment.id,
        'appointmentId': appointment.id,
        'startedAt': appointment.started_at.isoformat(),
    }, user_ids=[appointment.patient.user_id])
    return appointment


def complete_consultation(user, appointment: Appointment, *, consultation_notes: str = '',
                          diagnosis: str = '') -> Appointment:
    _check_treating_doctor(user, appointment)
    fields = {
        'consultation_notes': _clean(consultation_notes),
        'diagnosis': _clean(diagnosis),
    }
    if appointment.started_at is None:
        fields['started_at'] = timezone.now()
    appointment = transition_status(user, appointment, Appointment.STATUS_COMPLETED,
                                    reason='consultation completed', **fields)
    log_action(user=user, action='consultation_complete', object_type='appointment', object_id=appointment.id)

    notify(appointment.patient.user, 'consultation_completed', 'Your consultation results are ready',
           sender=user, related_id=appointment.id, link=f"/patient/consultations/{appointment.id}")
    push_event(CONSULTATION_ENDED, {
        'consultationId': appointment.id,
        'appointmentId': appointment.id,
        'completedAt': appointment.completed_at.isoformat() if appointment.completed_at else None,
    }, user_ids=[appointment.patient.user_id])
    return appointment
