"""
Payment gateway endpoints.

``order`` asks the gateway for an order covering the doctor's fee;
``verify`` checks the signed confirmation the checkout returns.  An
appointment can only be booked online against an order that passed
``verify`` (see ``clinic.services.payments.consume_verified_order``).
"""
from __future__ import annotations

import logging

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Doctor, PaymentOrder
from clinic.permissions import IsAdminRole, IsPatientRole
from clinic.serializers.payment import PaymentOrderSerializer, PaymentVerifySerializer
from clinic.services.payments import (
    PaymentGatewayError,
    create_order,
    format_order,
    format_unreconciled,
    unreconciled_orders,
    verify_payment,
)
from clinic.throttling import PaymentRateThrottle

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
@throttle_classes([PaymentRateThrottle])
def payment_order(request):
    s = PaymentOrderSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        doctor = Doctor.objects.select_related('user').get(id=s.validated_data['doctorId'])
    except Doctor.DoesNotExist:
        return Response({'ok': False, 'detail': 'Doctor not found'}, status=404)
    try:
        order = create_order(request.user, doctor)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except PaymentGatewayError as e:
        logger.warning("payment order for doctor %s failed: %s", doctor.id, e)
        return Response({'ok': False, 'detail': 'Unable to create order'}, status=502)
    return Response({'ok': True, 'data': {**format_order(order), 'key': settings.RAZORPAY_KEY_ID}})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
@throttle_classes([PaymentRateThrottle])
def payment_verify(request):
    s = PaymentVerifySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    try:
        order = verify_payment(
            request.user,
            order_id=vd['razorpay_order_id'],
            payment_id=vd['razorpay_payment_id'],
            signature=vd['razorpay_signature'],
        )
    except PaymentOrder.DoesNotExist:
        return Response({'ok': False, 'detail': 'Order not found'}, status=404)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'data': {**format_order(order), 'paymentId': order.payment_id, 'verified': True}})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payment_unreconciled(request):
    """Paid orders that never got an appointment; resolved by staff by hand."""
    data = [format_unreconciled(o) for o in unreconciled_orders()]
    return Response({'ok': True, 'data': data, 'pagination': {'total': len(data), 'page': 1, 'pageSize': len(data)}})
