from rest_framework import serializers

from friends.serializers import UserSummarySerializer
from .models import Chat, ChatMessage


class ChatMessageSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = ChatMessage
        fields = ['id', 'user', 'message', 'created_at']


class ChatSummarySerializer(serializers.ModelSerializer):
    members = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()

    class Meta:
        model = Chat
        fields = ['id', 'members', 'last_message', 'updated_at']

    def get_members(self, obj):
        users = [member.user for member in obj.members.select_related('user', 'user__profile').order_by('joined_at', 'id')]
        return UserSummarySerializer(users, many=True).data

    def get_last_message(self, obj):
        message = obj.messages.select_related('user', 'user__profile').order_by('-created_at', '-id').first()
        return ChatMessageSerializer(message).data if message else None


class ChatDetailSerializer(ChatSummarySerializer):
    messages = serializers.SerializerMethodField()

    class Meta(ChatSummarySerializer.Meta):
        fields = ChatSummarySerializer.Meta.fields + ['messages']

    def get_messages(self, obj):
        messages = obj.messages.select_related('user', 'user__profile')
        return ChatMessageSerializer(messages, many=True).data


class StartChatSerializer(serializers.Serializer):
    recipients = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    message = serializers.CharField()


class DirectMessageSerializer(serializers.Serializer):
    friend_id = serializers.IntegerField()
    message = serializers.CharField()


class NewMessageSerializer(serializers.Serializer):
    message = serializers.CharField()
