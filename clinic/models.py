"""
Database models for the patient records backend.

These models capture users and their role profiles (doctor, patient),
appointments with their status history, payment orders issued by the
gateway, prescriptions, medical records and in-app notifications.
Field names on the wire are camelCase (see ``clinic.services``); the
models keep Django's snake_case.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Custom user model with a role.

    Roles mirror the three dashboards: 'admin', 'doctor' and 'patient'.
    Role specific data lives in :class:`Doctor` and :class:`PatientProfile`.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_PATIENT, 'Patient'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    """Professional profile of a user with role 'doctor'."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    specialization = models.CharField(max_length=128, db_index=True)
    license_number = models.CharField(max_length=64, unique=True)
    experience = models.PositiveIntegerField(default=0, help_text="Years of experience")
    department = models.CharField(max_length=128, blank=True)
    consultation_fee = models.PositiveIntegerField(default=0, help_text="Whole currency units")
    bio = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Dr. {self.user.get_full_name() or self.user.username} ({self.specialization})"


class PatientProfile(models.Model):
    """Demographic information for a user with role 'patient'."""
    GENDER_CHOICES = [('M', 'Male'), ('F', 'Female'), ('O', 'Other')]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient_profile')
    gender = models.CharField(max_length=1, choices=GENDER_CHOICES, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    blood_group = models.CharField(max_length=5, blank=True)
    address = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.user.get_full_name() or self.user.username


class Appointment(models.Model):
    """A scheduled patient-doctor encounter with a lifecycle status.

    Appointments are created by a patient submission and afterwards only
    move between statuses (see ``clinic.services.appointments``).  They are
    never deleted through the API.
    """
    STATUS_PENDING = 'pending'
    STATUS_SCHEDULED = 'scheduled'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_NO_SHOW = 'no-show'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_NO_SHOW, 'No show'),
    ]
    # Only reachable through a status transition
    TRANSITION_ONLY_STATUSES = {STATUS_COMPLETED, STATUS_CANCELLED}

    TYPE_IN_PERSON = 'in-person'
    TYPE_VIDEO = 'video'
    TYPE_PHONE = 'phone'
    TYPE_CHOICES = [
        (TYPE_IN_PERSON, 'In person'),
        (TYPE_VIDEO, 'Video'),
        (TYPE_PHONE, 'Phone'),
    ]

    PAYMENT_ONLINE = 'online'
    PAYMENT_OFFLINE = 'offline'
    PAYMENT_MODE_CHOICES = [
        (PAYMENT_ONLINE, 'Online'),
        (PAYMENT_OFFLINE, 'Offline'),
    ]

    PAYMENT_STATUS_PENDING = 'pending'
    PAYMENT_STATUS_PAID = 'paid'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_STATUS_PENDING, 'Pending'),
        (PAYMENT_STATUS_PAID, 'Paid'),
    ]

    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateField()
    appointment_time = models.CharField(max_length=5, help_text="HH:MM")
    reason = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_IN_PERSON)
    payment_mode = models.CharField(max_length=10, choices=PAYMENT_MODE_CHOICES, default=PAYMENT_OFFLINE)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_STATUS_PENDING)
    transaction_id = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    cancel_reason = models.CharField(max_length=255, blank=True)
    duration = models.PositiveIntegerField(default=30, help_text="Minutes")
    consultation_notes = models.TextField(blank=True)
    diagnosis = models.TextField(blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'appointment_date'], name='appt_doctor_date_idx'),
            models.Index(fields=['patient', 'appointment_date'], name='appt_patient_date_idx'),
        ]

    def save(self, *args, **kwargs):
        if self._state.adding:
            if self.status in self.TRANSITION_ONLY_STATUSES:
                raise ValueError(f"appointment cannot be created as {self.status}")
        else:
            stored = type(self).objects.filter(pk=self.pk).values_list('payment_mode', flat=True).first()
            if stored is not None and stored != self.payment_mode:
                raise ValueError("payment mode cannot change after creation")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"Appointment #{self.pk} {self.appointment_date} {self.appointment_time} ({self.status})"


class AppointmentTransition(models.Model):
    """Records a status transition for an appointment."""
    appointment = models.ForeignKey(Appointment, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=10, null=True, blank=True)
    to_status = models.CharField(max_length=10)
    operator = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointment_transitions')
    reason = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.appointment_id}: {self.from_status} → {self.to_status}"


class PaymentOrder(models.Model):
    """An order issued by the payment gateway for one consultation fee.

    ``appointment`` stays empty until an appointment is booked against the
    verified order; a paid order without one needs manual reconciliation.
    """
    STATUS_CREATED = 'created'
    STATUS_PAID = 'paid'
    STATUS_CHOICES = [
        (STATUS_CREATED, 'Created'),
        (STATUS_PAID, 'Paid'),
    ]

    order_id = models.CharField(max_length=64, unique=True)
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='payment_orders')
    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name='payment_orders')
    amount = models.PositiveIntegerField(help_text="Smallest currency unit")
    currency = models.CharField(max_length=3, default='INR')
    receipt = models.CharField(max_length=64)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_CREATED, db_index=True)
    payment_id = models.CharField(max_length=64, blank=True)
    signature = models.CharField(max_length=128, blank=True)
    appointment = models.OneToOneField(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='payment_order'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.order_id} {self.amount} {self.currency} ({self.status})"


class Prescription(models.Model):
    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name='prescriptions')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='prescriptions')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    medications = models.JSONField(default=list)
    diagnosis = models.TextField(blank=True)
    instructions = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'created_at'], name='rx_patient_created_idx')]

    def __str__(self) -> str:
        return f"Prescription #{self.pk} p={self.patient_id} d={self.doctor_id}"


class MedicalRecord(models.Model):
    """Clinical record of one visit, written by the treating doctor."""
    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name='medical_records')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='medical_records')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='medical_records'
    )
    visit_date = models.DateField(default=timezone.localdate)
    chief_complaint = models.CharField(max_length=255)
    symptoms = models.JSONField(default=list, blank=True)
    diagnosis = models.TextField()
    treatment = models.TextField()
    # bloodPressure, heartRate, temperature, weight, height, oxygenSaturation
    vital_signs = models.JSONField(default=dict, blank=True)
    # [{testName, result, date}]
    lab_results = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'visit_date'], name='mr_patient_visit_idx'),
            models.Index(fields=['doctor', 'visit_date'], name='mr_doctor_visit_idx'),
        ]

    def __str__(self) -> str:
        return f"Record #{self.pk} p={self.patient_id} {self.visit_date}"


class Notification(models.Model):
    """In-app notification shown in the dashboard bell."""
    TYPE_CHOICES = [
        ('appointment_created', 'appointment_created'),
        ('appointment_cancelled', 'appointment_cancelled'),
        ('appointment_confirmed', 'appointment_confirmed'),
        ('appointment_updated', 'appointment_updated'),
        ('consultation_started', 'consultation_started'),
        ('consultation_completed', 'consultation_completed'),
        ('prescription_created', 'prescription_created'),
        ('payment_received', 'payment_received'),
        ('medical_record_created', 'medical_record_created'),
        ('medical_record_updated', 'medical_record_updated'),
    ]
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    sender = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='sent_notifications')
    type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    message = models.CharField(max_length=255)
    related_id = models.CharField(max_length=64, blank=True)
    link = models.CharField(max_length=255, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['recipient', 'read', 'created_at'], name='notif_recipient_read_idx')]

    def __str__(self) -> str:
        return f"{self.type} -> {self.recipient_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_idx'),
        ]
