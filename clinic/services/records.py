"""
Medical records.

Doctors write one record per visit and may amend the records they wrote.
Patients read their own records; doctors read the records they wrote and,
per patient, the history of patients they have seen.  Creating or amending
a record notifies the patient and pushes ``medical_record_updated``.
"""
import logging
from datetime import date
from typing import Optional

import bleach

from clinic.models import Appointment, MedicalRecord, PatientProfile
from clinic.services.accounts import doctor_profile, format_user_summary, is_admin, is_doctor, is_patient
from clinic.services.audit import log_action
from clinic.services.notifications import notify
from clinic.services.push import MEDICAL_RECORD_UPDATED, push_event

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ('chief_complaint', 'diagnosis', 'treatment', 'notes')
_EDITABLE = _TEXT_FIELDS + ('symptoms', 'vital_signs', 'lab_results', 'visit_date', 'follow_up_date')


def _clean(text) -> str:
    return bleach.clean(str(text or '').strip(), tags=set(), strip=True)


def _clean_lab_results(results) -> list:
    return [
        {
            'testName': _clean(r.get('testName')),
            'result': _clean(r.get('result')),
            'date': r['date'].isoformat() if isinstance(r.get('date'), date) else r.get('date'),
        }
        for r in results or []
    ]


def format_record(r: MedicalRecord) -> dict:
    return {
        'id': r.id,
        'patientId': r.patient_id,
        'doctorId': r.doctor_id,
        'appointmentId': r.appointment_id,
        'patient': {'id': r.patient_id, 'user': format_user_summary(r.patient.user)},
        'doctor': {'id': r.doctor_id, 'specialization': r.doctor.specialization,
                   'user': format_user_summary(r.doctor.user)},
        'visitDate': r.visit_date.isoformat(),
        'chiefComplaint': r.chief_complaint,
        'symptoms': r.symptoms,
        'diagnosis': r.diagnosis,
        'treatment': r.treatment,
        'vitalSigns': r.vital_signs,
        'labResults': r.lab_results,
        'notes': r.notes,
        'followUpDate': r.follow_up_date.isoformat() if r.follow_up_date else None,
        'createdAt': r.created_at.isoformat(),
        'updatedAt': r.updated_at.isoformat(),
    }


def scoped_queryset(user):
    qs = MedicalRecord.objects.select_related('doctor__user', 'patient__user')
    if is_admin(user):
        return qs
    if is_doctor(user):
        return qs.filter(doctor__user=user)
    if is_patient(user):
        return qs.filter(patient__user=user)
    return qs.none()


def _page(qs, page: int, limit: int):
    total = qs.count()
    page = max(1, int(page or 1))
    limit = min(100, max(1, int(limit or 10)))
    start = (page - 1) * limit
    items = qs.order_by('-visit_date', '-id')[start:start + limit]
    return [format_record(r) for r in items], total


def list_records(user, *, page: int = 1, limit: int = 10):
    return _page(scoped_queryset(user), page, limit)


def get_record_for(user, pk: int) -> MedicalRecord:
    """Fetch a record the user may see; raises ``MedicalRecord.DoesNotExist`` otherwise."""
    return scoped_queryset(user).get(pk=pk)


def list_patient_records(user, patient: PatientProfile, *, page: int = 1, limit: int = 10):
    """Full history of one patient, for administrators and doctors who have seen them."""
    if is_doctor(user):
        doctor = doctor_profile(user)
        seen = doctor is not None and (
            Appointment.objects.filter(doctor=doctor, patient=patient).exists()
            or MedicalRecord.objects.filter(doctor=doctor, patient=patient).exists()
        )
        if not seen:
            raise PermissionError('You have not treated this patient')
    elif not is_admin(user):
        raise PermissionError('Only doctors and administrators can read patient history')
    qs = MedicalRecord.objects.select_related('doctor__user', 'patient__user').filter(patient=patient)
    return _page(qs, page, limit)


def _announce(user, record: MedicalRecord, action: str) -> None:
    doctor_name = record.doctor.user.get_full_name() or record.doctor.user.username
    if action == 'created':
        ntype, message = 'medical_record_created', f"Dr. {doctor_name} added a new medical record for you"
    else:
        ntype, message = 'medical_record_updated', f"Dr. {doctor_name} updated your medical record"
    notify(record.patient.user, ntype, message, sender=user, related_id=record.id, link='/patient/records')
    push_event(MEDICAL_RECORD_UPDATED, {
        'recordId': record.id,
        'patientId': record.patient_id,
        'appointmentId': record.appointment_id,
        'action': action,
    }, user_ids=[record.patient.user_id])


def create_record(user, *, patient: PatientProfile, chief_complaint: str, diagnosis: str, treatment: str,
                  appointment: Optional[Appointment] = None, visit_date: Optional[date] = None,
                  symptoms: Optional[list] = None, vital_signs: Optional[dict] = None,
                  lab_results: Optional[list] = None, notes: str = '',
                  follow_up_date: Optional[date] = None) -> MedicalRecord:
    doctor = doctor_profile(user)
    if not is_doctor(user) or doctor is None:
        raise PermissionError('Only doctors can create medical records')
    if appointment is not None and (appointment.doctor_id != doctor.id or appointment.patient_id != patient.id):
        raise PermissionError('Appointment belongs to another doctor or patient')

    fields = {
        'chief_complaint': _clean(chief_complaint),
        'diagnosis': _clean(diagnosis),
        'treatment': _clean(treatment),
        'notes': _clean(notes),
    }
    for name in ('chief_complaint', 'diagnosis', 'treatment'):
        if not fields[name]:
            raise ValueError(f"{name.replace('_', ' ').capitalize()} is required")

    record = MedicalRecord(
        patient=patient,
        doctor=doctor,
        appointment=appointment,
        symptoms=[_clean(s) for s in symptoms or [] if _clean(s)],
        vital_signs=dict(vital_signs or {}),
        lab_results=_clean_lab_results(lab_results),
        follow_up_date=follow_up_date,
        **fields,
    )
    if visit_date is not None:
        record.visit_date = visit_date
    elif appointment is not None:
        record.visit_date = appointment.appointment_date
    record.save()

    record = MedicalRecord.objects.select_related('doctor__user', 'patient__user').get(pk=record.pk)
    log_action(user=user, action='medical_record_create', object_type='medical_record', object_id=record.id,
               detail={'patientId': patient.id, 'appointmentId': getattr(appointment, 'id', None)})
    logger.info("medical record %s written by doctor %s for patient %s", record.id, doctor.id, patient.id)
    _announce(user, record, 'created')
    return record


def update_record(user, record: MedicalRecord, **changes) -> MedicalRecord:
    """Amend a record; only its author may change it."""
    if not is_doctor(user) or record.doctor.user_id != user.id:
        raise PermissionError('Only the doctor who wrote this record can change it')
    unknown = set(changes) - set(_EDITABLE)
    if unknown:
        raise ValueError(f"Cannot change {', '.join(sorted(unknown))}")

    for name, value in changes.items():
        if name in _TEXT_FIELDS:
            value = _clean(value)
            if not value and name != 'notes':
                raise ValueError(f"{name.replace('_', ' ').capitalize()} is required")
        elif name == 'symptoms':
            value = [_clean(s) for s in value or [] if _clean(s)]
        elif name == 'lab_results':
            value = _clean_lab_results(value)
        elif name == 'vital_signs':
            value = {**record.vital_signs, **(value or {})}
        setattr(record, name, value)
    record.save()

    log_action(user=user, action='medical_record_update', object_type='medical_record', object_id=record.id,
               detail={'fields': sorted(changes)})
    _announce(user, record, 'updated')
    return record
