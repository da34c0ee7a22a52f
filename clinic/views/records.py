from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Appointment, MedicalRecord, PatientProfile
from clinic.permissions import IsStaffRole
from clinic.serializers.record import (
    MedicalRecordCreateSerializer,
    MedicalRecordListQuerySerializer,
    MedicalRecordSerializer,
)
from clinic.services.records import (
    create_record,
    format_record,
    get_record_for,
    list_patient_records,
    list_records,
    update_record,
)

_FIELD_NAMES = {
    'visitDate': 'visit_date',
    'chiefComplaint': 'chief_complaint',
    'symptoms': 'symptoms',
    'diagnosis': 'diagnosis',
    'treatment': 'treatment',
    'vitalSigns': 'vital_signs',
    'labResults': 'lab_results',
    'notes': 'notes',
    'followUpDate': 'follow_up_date',
}


def _record_fields(validated: dict) -> dict:
    return {_FIELD_NAMES[k]: v for k, v in validated.items() if k in _FIELD_NAMES}


def _page_params(request):
    q = MedicalRecordListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return q.validated_data.get('page', 1), q.validated_data.get('limit', 10)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def medical_records(request):
    """List the caller's records (GET) or write a new one (POST, doctors)."""
    if request.method == 'POST':
        s = MedicalRecordCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        try:
            patient = PatientProfile.objects.select_related('user').get(id=vd['patient'])
        except PatientProfile.DoesNotExist:
            return Response({'ok': False, 'detail': 'Patient not found'}, status=404)
        appointment = None
        if vd.get('appointment'):
            try:
                appointment = Appointment.objects.get(id=vd['appointment'])
            except Appointment.DoesNotExist:
                return Response({'ok': False, 'detail': 'Appointment not found'}, status=404)
        try:
            record = create_record(request.user, patient=patient, appointment=appointment, **_record_fields(vd))
        except PermissionError as e:
            return Response({'ok': False, 'detail': str(e)}, status=403)
        except ValueError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
        return Response({'ok': True, 'data': format_record(record)}, status=201)

    page, limit = _page_params(request)
    data, total = list_records(request.user, page=page, limit=limit)
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': limit}})


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def medical_record_detail(request, pk: int):
    try:
        record = get_record_for(request.user, pk)
    except MedicalRecord.DoesNotExist:
        return Response({'ok': False, 'detail': 'Medical record not found'}, status=404)
    if request.method == 'GET':
        return Response({'ok': True, 'data': format_record(record)})

    s = MedicalRecordSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    changes = _record_fields(s.validated_data)
    if not changes:
        return Response({'ok': False, 'detail': 'Nothing to update'}, status=400)
    try:
        record = update_record(request.user, record, **changes)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'data': format_record(record)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_medical_records(request, patient_id: int):
    try:
        patient = PatientProfile.objects.get(id=patient_id)
    except PatientProfile.DoesNotExist:
        return Response({'ok': False, 'detail': 'Patient not found'}, status=404)
    page, limit = _page_params(request)
    try:
        data, total = list_patient_records(request.user, patient, page=page, limit=limit)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': limit}})
