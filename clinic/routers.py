"""
URL mappings for the patient records API.

Paths mirror the ones the dashboards call, without trailing slashes
(``APPEND_SLASH`` is off).
"""
from django.urls import include, path

from .auth_views import jwt_refresh_view, login_view
from .views import health
from .views.appointments import (
    appointment_complete,
    appointment_detail,
    appointment_start,
    appointment_stats,
    appointment_status,
    appointments,
)
from .views.doctors import doctors
from .views.notifications import notification_read, notifications, notifications_read_all
from .views.payment import payment_order, payment_unreconciled, payment_verify
from .views.prescriptions import prescriptions
from .views.records import medical_record_detail, medical_records, patient_medical_records


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view),
    path('api/auth/refresh', jwt_refresh_view),
    # Appointments
    path('api/appointments', appointments),
    path('api/appointments/stats', appointment_stats),
    path('api/appointments/<int:pk>', appointment_detail),
    path('api/appointments/<int:pk>/status', appointment_status),
    path('api/appointments/<int:pk>/start', appointment_start),
    path('api/appointments/<int:pk>/complete', appointment_complete),
    # Doctors
    path('api/doctors', doctors),
    # Payments
    path('api/payment/order', payment_order),
    path('api/payment/verify', payment_verify),
    path('api/payment/unreconciled', payment_unreconciled),
    # Prescriptions
    path('api/prescriptions', prescriptions),
    # Medical records
    path('api/medical-records', medical_records),
    path('api/medical-records/<int:pk>', medical_record_detail),
    path('api/medical-records/patient/<int:patient_id>', patient_medical_records),
    # Notifications
    path('api/notifications', notifications),
    path('api/notifications/read-all', notifications_read_all),
    path('api/notifications/<int:pk>/read', notification_read),
]
