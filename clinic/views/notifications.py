from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Notification
from clinic.serializers.notification import NotificationListQuerySerializer
from clinic.services.notifications import format_notification, list_notifications, mark_all_read, mark_read


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications(request):
    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    items, total, unread = list_notifications(
        request.user,
        unread_only=q.validated_data.get('unread', False),
        page=page,
        page_size=page_size,
    )
    return Response({
        'ok': True,
        'data': items,
        'unread': unread,
        'pagination': {'total': total, 'page': page, 'pageSize': page_size},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_read(request, pk: int):
    try:
        n = mark_read(request.user, pk)
    except Notification.DoesNotExist:
        return Response({'ok': False, 'detail': 'Notification not found'}, status=404)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    return Response({'ok': True, 'data': format_notification(n)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notifications_read_all(request):
    return Response({'ok': True, 'updated': mark_all_read(request.user)})
