from rest_framework import serializers

from audit.models import AuditLogEntry


class AuditLogEntrySerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source="actor.get_display_name", read_only=True)

    class Meta:
        model = AuditLogEntry
        fields = [
            "id",
            "actor",
            "actor_name",
            "action",
            "details",
            "booking",
            "payment",
            "created_at",
        ]
        read_only_fields = fields


class RecentActivityQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=200, required=False, default=50)
