"""
Authentication views.

Login hands out both a DRF token (used by the dashboards and the push
channel's ``?token=`` query) and a JWT pair for clients that prefer
bearer tokens.  The profile ids returned alongside spare the client an
extra request before it can book or list appointments.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.serializers.auth import LoginSerializer, RefreshSerializer
from clinic.services.accounts import doctor_profile, patient_profile
from clinic.services.audit import log_action
from clinic.throttling import LoginRateThrottle


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """Username/password login."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    user = authenticate(request, username=username, password=password)
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'username': username, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'detail': 'Invalid username or password'}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    doctor = doctor_profile(user)
    patient = patient_profile(user)

    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'name': user.get_full_name() or user.username,
            'email': user.email,
            'role': user.role,
            'doctorId': doctor.id if doctor else None,
            'patientId': patient.id if patient else None,
        },
    }, status=200)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        refresh = RefreshToken(s.validated_data['refresh'])
    except TokenError as e:
        return Response({'ok': False, 'detail': str(e)}, status=401)
    return Response({'ok': True, 'jwt_access': str(refresh.access_token)})
