import logging
from typing import Optional

import bleach

from clinic.models import Appointment, PatientProfile, Prescription
from clinic.services.accounts import doctor_profile, format_user_summary, is_admin, is_doctor, is_patient
from clinic.services.audit import log_action
from clinic.services.notifications import notify
from clinic.services.push import PRESCRIPTION_CREATED, push_event

logger = logging.getLogger(__name__)

_MEDICATION_FIELDS = ('name', 'dosage', 'frequency', 'duration', 'instructions')


def _clean(text) -> str:
    return bleach.clean(str(text or '').strip(), tags=set(), strip=True)


def format_prescription(p: Prescription) -> dict:
    return {
        'id': p.id,
        'patientId': p.patient_id,
        'doctorId': p.doctor_id,
        'appointmentId': p.appointment_id,
        'doctor': {'id': p.doctor_id, 'specialization': p.doctor.specialization,
                   'user': format_user_summary(p.doctor.user)},
        'patient': {'id': p.patient_id, 'user': format_user_summary(p.patient.user)},
        'medications': p.medications,
        'diagnosis': p.diagnosis,
        'instructions': p.instructions,
        'createdAt': p.created_at.isoformat(),
    }


def list_prescriptions(user, *, patient_id: Optional[int] = None, page: int = 1, page_size: int = 20):
    qs = Prescription.objects.select_related('doctor__user', 'patient__user')
    if is_doctor(user):
        qs = qs.filter(doctor__user=user)
    elif is_patient(user):
        qs = qs.filter(patient__user=user)
    elif not is_admin(user):
        qs = qs.none()
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page - 1) * page_size
    items = qs.order_by('-created_at', '-id')[start:start + page_size]
    return [format_prescription(p) for p in items], total


def create_prescription(user, *, patient: PatientProfile, medications: list,
                        appointment: Optional[Appointment] = None, diagnosis: str = '',
                        instructions: str = '') -> Prescription:
    doctor = doctor_profile(user)
    if not is_doctor(user) or doctor is None:
        raise PermissionError('Only doctors can write prescriptions')
    if appointment is not None and (appointment.doctor_id != doctor.id or appointment.patient_id != patient.id):
        raise PermissionError('Appointment belongs to another doctor or patient')
    if not medications:
        raise ValueError('At least one medication is required')

    cleaned = [{k: _clean(m.get(k)) for k in _MEDICATION_FIELDS} for m in medications]
    p = Prescription.objects.create(
        patient=patient,
        doctor=doctor,
        appointment=appointment,
        medications=cleaned,
        diagnosis=_clean(diagnosis),
        instructions=_clean(instructions),
    )
    p = Prescription.objects.select_related('doctor__user', 'patient__user').get(pk=p.pk)
    log_action(user=user, action='prescription_create', object_type='prescription', object_id=p.id,
               detail={'patientId': patient.id, 'appointmentId': getattr(appointment, 'id', None)})
    logger.info("prescription %s written by doctor %s for patient %s", p.id, doctor.id, patient.id)

    notify(patient.user, 'prescription_created', 'A new prescription has been added to your records',
           sender=user, related_id=p.id, link=f"/patient/prescriptions/{p.id}")
    push_event(PRESCRIPTION_CREATED, {
        'prescriptionId': p.id,
        'appointmentId': p.appointment_id,
        'doctorId': doctor.id,
    }, user_ids=[patient.user_id])
    return p
