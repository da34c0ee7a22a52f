from rest_framework import serializers


class VitalSignsSerializer(serializers.Serializer):
    bloodPressure = serializers.RegexField(r'^\d{2,3}/\d{2,3}$', required=False)
    heartRate = serializers.IntegerField(min_value=20, max_value=300, required=False)
    temperature = serializers.FloatField(min_value=25, max_value=45, required=False)
    weight = serializers.FloatField(min_value=0, max_value=500, required=False)
    height = serializers.FloatField(min_value=0, max_value=300, required=False)
    oxygenSaturation = serializers.IntegerField(min_value=0, max_value=100, required=False)


class LabResultSerializer(serializers.Serializer):
    testName = serializers.CharField(max_length=128)
    result = serializers.CharField(max_length=255)
    date = serializers.DateField(required=False, allow_null=True)


class MedicalRecordSerializer(serializers.Serializer):
    """Record fields; used with ``partial=True`` for amendments."""
    visitDate = serializers.DateField(required=False)
    chiefComplaint = serializers.CharField(max_length=255)
    symptoms = serializers.ListField(child=serializers.CharField(max_length=128), required=False)
    diagnosis = serializers.CharField(max_length=2000)
    treatment = serializers.CharField(max_length=2000)
    vitalSigns = VitalSignsSerializer(required=False)
    labResults = LabResultSerializer(many=True, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=4000)
    followUpDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        visit, follow_up = attrs.get('visitDate'), attrs.get('followUpDate')
        if visit and follow_up and follow_up < visit:
            raise serializers.ValidationError({'followUpDate': 'Follow-up cannot be before the visit'})
        return attrs


class MedicalRecordCreateSerializer(MedicalRecordSerializer):
    patient = serializers.IntegerField(min_value=1)
    appointment = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class MedicalRecordListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
