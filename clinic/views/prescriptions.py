from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Appointment, PatientProfile
from clinic.serializers.prescription import PrescriptionCreateSerializer, PrescriptionListQuerySerializer
from clinic.services.prescriptions import create_prescription, format_prescription, list_prescriptions


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def prescriptions(request):
    if request.method == 'POST':
        s = PrescriptionCreateSerializer(data=request.data)
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
            p = create_prescription(
                request.user,
                patient=patient,
                appointment=appointment,
                medications=vd['medications'],
                diagnosis=vd.get('diagnosis', ''),
                instructions=vd.get('instructions', ''),
            )
        except PermissionError as e:
            return Response({'ok': False, 'detail': str(e)}, status=403)
        except ValueError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
        return Response({'ok': True, 'data': format_prescription(p)}, status=201)

    q = PrescriptionListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    data, total = list_prescriptions(request.user, patient_id=q.validated_data.get('patientId'),
                                     page=page, page_size=page_size)
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})
