from django.utils.translation import gettext as _
from rest_framework import serializers

from .models import Comment, Post, Reply


class AuthorSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    profile_picture = serializers.SerializerMethodField()

    def get_profile_picture(self, user):
        profile = getattr(user, 'profile', None)
        return profile.profile_picture_url if profile else None


def _require_content_or_image(serializer, attrs):
    instance = getattr(serializer, 'instance', None)
    content = attrs.get('content', getattr(instance, 'content', ''))
    image = attrs.get('image', getattr(instance, 'image', None))
    if not (content or '').strip() and not image:
        raise serializers.ValidationError(_("Content or an image is required."))
    return attrs


class ReplySerializer(serializers.ModelSerializer):
    user = AuthorSerializer(read_only=True)
    likes_count = serializers.SerializerMethodField()

    class Meta:
        model = Reply
        fields = ['id', 'comment', 'user', 'content', 'image', 'likes_count', 'created_at', 'edited_at']
        read_only_fields = ['id', 'comment', 'user', 'created_at', 'edited_at']

    def get_likes_count(self, obj):
        return obj.likes.count()

    def validate(self, attrs):
        return _require_content_or_image(self, attrs)


class CommentSerializer(serializers.ModelSerializer):
    user = AuthorSerializer(read_only=True)
    replies = ReplySerializer(many=True, read_only=True)
    likes_count = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = ['id', 'post', 'user', 'content', 'image', 'likes_count', 'replies', 'created_at', 'edited_at']
        read_only_fields = ['id', 'post', 'user', 'created_at', 'edited_at']

    def get_likes_count(self, obj):
        return obj.likes.count()

    def validate(self, attrs):
        return _require_content_or_image(self, attrs)


class PostSerializer(serializers.ModelSerializer):
    creator = AuthorSerializer(read_only=True)
    likes_count = serializers.SerializerMethodField()
    comments_count = serializers.SerializerMethodField()
    liked = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id', 'creator', 'content', 'image', 'privacy', 'likes_count', 'comments_count',
            'liked', 'created_at', 'updated_at', 'edited_at',
        ]
        read_only_fields = ['id', 'creator', 'created_at', 'updated_at', 'edited_at']

    def get_likes_count(self, obj):
        return obj.likes.count()

    def get_comments_count(self, obj):
        return obj.comments.count()

    def get_liked(self, obj):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return False
        return obj.likes.filter(user=request.user).exists()

    def validate(self, attrs):
        return _require_content_or_image(self, attrs)


class PostDetailSerializer(PostSerializer):
    comments = CommentSerializer(many=True, read_only=True)

    class Meta(PostSerializer.Meta):
        fields = PostSerializer.Meta.fields + ['comments']
