"""Aggregate dashboard statistics, scoped by role."""
from django.db.models import Count, Q, Sum
from django.utils import timezone

from clinic.models import Appointment, Doctor, MedicalRecord, PatientProfile, PaymentOrder, Prescription
from clinic.services.accounts import doctor_profile, is_admin, is_doctor, is_patient, patient_profile
from clinic.services.appointments import scoped_queryset

_UPCOMING = [Appointment.STATUS_PENDING, Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED]
_CANCELLED = [Appointment.STATUS_CANCELLED, Appointment.STATUS_NO_SHOW]


def appointment_counts(qs) -> dict:
    today = timezone.localdate()
    agg = qs.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=Appointment.STATUS_PENDING)),
        upcoming=Count('id', filter=Q(status__in=_UPCOMING, appointment_date__gte=today)),
        completed=Count('id', filter=Q(status=Appointment.STATUS_COMPLETED)),
        cancelled=Count('id', filter=Q(status__in=_CANCELLED)),
        today=Count('id', filter=Q(appointment_date=today)),
        active=Count('id', filter=Q(started_at__isnull=False, completed_at__isnull=True,
                                    status__in=_UPCOMING)),
    )
    return {
        'totalAppointments': agg['total'],
        'pendingAppointments': agg['pending'],
        'upcomingAppointments': agg['upcoming'],
        'completedAppointments': agg['completed'],
        'cancelledAppointments': agg['cancelled'],
        'todayAppointments': agg['today'],
        'activeConsultation': agg['active'] > 0,
    }


def doctor_stats(user) -> dict:
    doctor = doctor_profile(user)
    data = appointment_counts(scoped_queryset(user))
    data['prescriptions'] = Prescription.objects.filter(doctor=doctor).count() if doctor else 0
    data['patients'] = (
        Appointment.objects.filter(doctor=doctor).values('patient').distinct().count() if doctor else 0
    )
    data['records'] = MedicalRecord.objects.filter(doctor=doctor).count() if doctor else 0
    return data


def patient_stats(user) -> dict:
    patient = patient_profile(user)
    data = appointment_counts(scoped_queryset(user))
    data['prescriptions'] = Prescription.objects.filter(patient=patient).count() if patient else 0
    data['records'] = MedicalRecord.objects.filter(patient=patient).count() if patient else 0
    return data


def admin_stats(user) -> dict:
    data = appointment_counts(scoped_queryset(user))
    data['prescriptions'] = Prescription.objects.count()
    data['records'] = MedicalRecord.objects.count()
    data['doctors'] = Doctor.objects.count()
    data['patients'] = PatientProfile.objects.count()
    paid = PaymentOrder.objects.filter(status=PaymentOrder.STATUS_PAID)
    data['revenue'] = paid.aggregate(total=Sum('amount'))['total'] or 0
    data['unreconciledPayments'] = paid.filter(appointment__isnull=True).count()
    return data


def stats_for(user) -> dict:
    if is_admin(user):
        return admin_stats(user)
    if is_doctor(user):
        return doctor_stats(user)
    if is_patient(user):
        return patient_stats(user)
    raise PermissionError('Forbidden')
