from rest_framework import serializers

from .models import AdminNotification


class AdminNotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.SerializerMethodField()

    class Meta:
        model = AdminNotification
        fields = ["id", "type", "title", "message", "data", "is_read", "created_at"]
        read_only_fields = fields

    def get_is_read(self, obj):
        request = self.context.get("request")
        if request is None or not request.user.is_authenticated:
            return False
        return obj.is_read_by(request.user)
