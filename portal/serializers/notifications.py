from rest_framework import serializers


class NotificationListQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    unreadOnly = serializers.BooleanField(required=False, default=False)
    group = serializers.BooleanField(required=False, default=False)


class MarkReadSerializer(serializers.Serializer):
    notificationId = serializers.CharField(max_length=64)
    type = serializers.CharField(max_length=32)


class NotificationActionSerializer(serializers.Serializer):
    action = serializers.CharField(max_length=32)
    notificationId = serializers.CharField(max_length=64, required=False)


class CommunicationListQuerySerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    type = serializers.CharField(max_length=32, required=False)
    read = serializers.BooleanField(required=False, allow_null=True, default=None)
