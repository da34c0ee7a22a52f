from rest_framework import serializers


class MedicationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    dosage = serializers.CharField(max_length=64, required=False, allow_blank=True)
    frequency = serializers.CharField(max_length=64, required=False, allow_blank=True)
    duration = serializers.CharField(max_length=64, required=False, allow_blank=True)
    instructions = serializers.CharField(max_length=255, required=False, allow_blank=True)


class PrescriptionCreateSerializer(serializers.Serializer):
    patient = serializers.IntegerField(min_value=1)
    appointment = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    medications = MedicationSerializer(many=True, allow_empty=False)
    diagnosis = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    instructions = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class PrescriptionListQuerySerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)
