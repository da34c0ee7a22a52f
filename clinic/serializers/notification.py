from rest_framework import serializers


class NotificationListQuerySerializer(serializers.Serializer):
    unread = serializers.BooleanField(required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)
