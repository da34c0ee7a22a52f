"""
Appointment endpoints.

Listing and detail are scoped by role: doctors see their own schedule,
patients their own bookings and admins everything.  Status changes go
through ``clinic.services.appointments`` which validates the transition,
records it and pushes the change to both parties.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Appointment, Doctor, PatientProfile
from clinic.permissions import IsStaffRole
from clinic.serializers.appointment import (
    AppointmentCreateSerializer,
    AppointmentListQuerySerializer,
    AppointmentStatusSerializer,
    ConsultationCompleteSerializer,
)
from clinic.services.appointments import (
    complete_consultation,
    create_appointment,
    format_appointment,
    get_appointment_for,
    list_appointments,
    start_consultation,
    transition_status,
)
from clinic.services.stats import stats_for


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    if request.method == 'POST':
        return _create(request)
    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    limit = q.validated_data.get('limit', 10)
    data, total = list_appointments(
        request.user,
        status=q.validated_data.get('status'),
        start_date=q.validated_data.get('startDate'),
        end_date=q.validated_data.get('endDate'),
        page=page,
        limit=limit,
    )
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': limit}})


def _create(request):
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    try:
        doctor = Doctor.objects.select_related('user').get(id=vd['doctor'])
    except Doctor.DoesNotExist:
        return Response({'ok': False, 'detail': 'Doctor not found'}, status=404)
    patient = None
    if vd.get('patient'):
        try:
            patient = PatientProfile.objects.select_related('user').get(id=vd['patient'])
        except PatientProfile.DoesNotExist:
            return Response({'ok': False, 'detail': 'Patient not found'}, status=404)
    try:
        appt = create_appointment(
            request.user,
            doctor=doctor,
            patient=patient,
            appointment_date=vd['appointmentDate'],
            appointment_time=vd['appointmentTime'],
            reason=vd['reason'],
            notes=vd.get('notes', ''),
            type=vd.get('type') or Appointment.TYPE_IN_PERSON,
            payment_mode=vd.get('paymentMode') or Appointment.PAYMENT_OFFLINE,
            payment_details=vd.get('paymentDetails'),
        )
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'data': format_appointment(appt)}, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    try:
        appt = get_appointment_for(request.user, pk)
    except Appointment.DoesNotExist:
        return Response({'ok': False, 'detail': 'Appointment not found'}, status=404)
    return Response({'ok': True, 'data': format_appointment(appt)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def appointment_status(request, pk: int):
    """Transition an appointment; body ``{status, cancelReason?}``."""
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        appt = Appointment.objects.select_related('doctor__user', 'patient__user').get(id=pk)
    except Appointment.DoesNotExist:
        return Response({'ok': False, 'detail': 'Appointment not found'}, status=404)
    try:
        appt = transition_status(
            request.user,
            appt,
            s.validated_data['status'],
            cancel_reason=s.validated_data.get('cancelReason', ''),
        )
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'data': format_appointment(appt)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_start(request, pk: int):
    try:
        appt = Appointment.objects.select_related('doctor__user', 'patient__user').get(id=pk)
    except Appointment.DoesNotExist:
        return Response({'ok': False, 'detail': 'Appointment not found'}, status=404)
    try:
        appt = start_consultation(request.user, appt)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'data': format_appointment(appt)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_complete(request, pk: int):
    s = ConsultationCompleteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        appt = Appointment.objects.select_related('doctor__user', 'patient__user').get(id=pk)
    except Appointment.DoesNotExist:
        return Response({'ok': False, 'detail': 'Appointment not found'}, status=404)
    try:
        appt = complete_consultation(
            request.user,
            appt,
            consultation_notes=s.validated_data.get('consultationNotes', ''),
            diagnosis=s.validated_data.get('diagnosis', ''),
        )
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'data': format_appointment(appt)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_stats(request):
    """Role-aware dashboard counters; clients re-fetch this on ``appointment_updated``."""
    try:
        data = stats_for(request.user)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    return Response({'ok': True, 'data': data})
