import re

import bleach
from rest_framework import serializers

from clinic.models import Appointment

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class PaymentDetailsSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(max_length=64)
    razorpay_payment_id = serializers.CharField(max_length=64)
    razorpay_signature = serializers.CharField(max_length=128, required=False, allow_blank=True)


class AppointmentCreateSerializer(serializers.Serializer):
    patient = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    doctor = serializers.IntegerField(min_value=1)
    appointmentDate = serializers.DateField()
    appointmentTime = serializers.CharField(max_length=5)
    reason = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    type = serializers.ChoiceField(choices=[c for c, _ in Appointment.TYPE_CHOICES], required=False)
    paymentMode = serializers.ChoiceField(choices=[c for c, _ in Appointment.PAYMENT_MODE_CHOICES], required=False)
    paymentDetails = PaymentDetailsSerializer(required=False, allow_null=True)

    def validate_appointmentTime(self, v):
        v = (v or '').strip()
        if not _TIME_RE.match(v):
            raise serializers.ValidationError('Time must be HH:MM')
        return v

    def validate_reason(self, v):
        v = bleach.clean((v or '').strip(), tags=set(), strip=True)
        if not v:
            raise serializers.ValidationError('Reason for visit is required')
        return v

    def validate(self, attrs):
        if 'status' in self.initial_data:
            raise serializers.ValidationError({'status': 'Status is set by the server'})
        if attrs.get('paymentMode') == Appointment.PAYMENT_ONLINE and not attrs.get('paymentDetails'):
            raise serializers.ValidationError({'paymentDetails': 'Online payment requires payment details'})
        return attrs


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES])
    cancelReason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class AppointmentListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES], required=False)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)


class ConsultationCompleteSerializer(serializers.Serializer):
    consultationNotes = serializers.CharField(required=False, allow_blank=True, max_length=5000)
    diagnosis = serializers.CharField(required=False, allow_blank=True, max_length=2000)
