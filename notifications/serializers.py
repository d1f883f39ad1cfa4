from rest_framework import serializers


class SourceSerializer(serializers.Serializer):
    post_id = serializers.IntegerField(allow_null=True)
    content = serializers.CharField(allow_blank=True)
    user_image = serializers.CharField(allow_null=True)
    friend_id = serializers.IntegerField(allow_null=True)


class NotificationRecordSerializer(serializers.Serializer):
    id = serializers.CharField()
    subject_key = serializers.CharField()
    alert_type = serializers.CharField()
    message = serializers.CharField()
    actors = serializers.SerializerMethodField()
    source = SourceSerializer()
    created_at = serializers.CharField()
    updated_at = serializers.CharField()

    def get_actors(self, record):
        return [{"first_name": actor.first_name, "last_name": actor.last_name} for actor in record.actors]


class LedgerSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    records = NotificationRecordSerializer(many=True)
