from django.contrib.auth.models import User
from rest_framework import serializers

from .models import FriendRequest

PROFILE_FRIENDS_PREVIEW = 12


class UserSummarySerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField()
    profile_picture = serializers.CharField(source='profile.profile_picture_url', read_only=True)
    occupation = serializers.CharField(source='profile.occupation', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'full_name', 'profile_picture', 'occupation']

    def get_full_name(self, obj):
        return f"{obj.first_name} {obj.last_name}".strip()


class PublicProfileSerializer(UserSummarySerializer):
    about = serializers.CharField(source='profile.about', read_only=True)
    gender = serializers.CharField(source='profile.gender', read_only=True)
    banner_image = serializers.CharField(source='profile.banner_image_url', read_only=True)
    friends = serializers.SerializerMethodField()
    friends_count = serializers.SerializerMethodField()
    is_friend = serializers.SerializerMethodField()
    request_sent = serializers.SerializerMethodField()
    request_received = serializers.SerializerMethodField()

    class Meta(UserSummarySerializer.Meta):
        fields = UserSummarySerializer.Meta.fields + [
            'about', 'gender', 'banner_image', 'friends', 'friends_count',
            'is_friend', 'request_sent', 'request_received',
        ]

    def _viewer(self):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return None
        return request.user

    def get_friends(self, obj):
        friends = User.objects.filter(profile__friends__user=obj).select_related('profile')[:PROFILE_FRIENDS_PREVIEW]
        return UserSummarySerializer(friends, many=True).data

    def get_friends_count(self, obj):
        return obj.profile.friends.count()

    def get_is_friend(self, obj):
        viewer = self._viewer()
        return bool(viewer) and obj.profile.is_friends_with(viewer)

    def get_request_sent(self, obj):
        viewer = self._viewer()
        return bool(viewer) and FriendRequest.objects.filter(sender=viewer, receiver=obj).exists()

    def get_request_received(self, obj):
        viewer = self._viewer()
        return bool(viewer) and FriendRequest.objects.filter(sender=obj, receiver=viewer).exists()


class FriendRequestSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = FriendRequest
        fields = ['id', 'sender', 'created_at']


class FriendTargetSerializer(serializers.Serializer):
    friend_id = serializers.IntegerField()
