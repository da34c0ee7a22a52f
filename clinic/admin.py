"""
Django admin registrations for the clinic models.

Superusers use ``/admin/`` to inspect bookings, payment orders and
notifications, and to follow up on paid orders that never got an
appointment (filter payment orders by status and appointment).
"""

from django.contrib import admin

from .models import (
    Appointment,
    AppointmentTransition,
    AuditEvent,
    Doctor,
    MedicalRecord,
    Notification,
    PatientProfile,
    PaymentOrder,
    Prescription,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'email', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('user', 'specialization', 'department', 'consultation_fee')
    list_filter = ('specialization', 'department')
    search_fields = ('user__username', 'user__first_name', 'user__last_name', 'license_number')


@admin.register(PatientProfile)
class PatientProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'gender', 'date_of_birth', 'phone', 'blood_group')
    search_fields = ('user__username', 'user__first_name', 'phone')


class AppointmentTransitionInline(admin.TabularInline):
    model = AppointmentTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'reason', 'timestamp')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'appointment_date', 'appointment_time', 'status', 'payment_mode', 'payment_status')
    list_filter = ('status', 'type', 'payment_mode', 'payment_status')
    search_fields = ('id', 'reason', 'patient__user__username', 'doctor__user__username')
    inlines = [AppointmentTransitionInline]


@admin.register(PaymentOrder)
class PaymentOrderAdmin(admin.ModelAdmin):
    list_display = ('order_id', 'patient', 'doctor', 'amount', 'currency', 'status', 'appointment', 'verified_at')
    list_filter = ('status', ('appointment', admin.EmptyFieldListFilter))
    search_fields = ('order_id', 'payment_id', 'receipt')


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'appointment', 'created_at')
    search_fields = ('id', 'patient__user__username', 'doctor__user__username')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'visit_date', 'diagnosis', 'follow_up_date')
    list_filter = ('visit_date',)
    search_fields = ('patient__user__username', 'doctor__user__username', 'diagnosis')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'recipient', 'type', 'read', 'created_at')
    list_filter = ('type', 'read')
    search_fields = ('recipient__username', 'message')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'action', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('user__username', 'action')
