import logging

from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from authentication.permissions import IsOwnerOrReadOnly
from notifications.broadcast import FEED_TOPIC, publish_on_commit
from notifications.ledger import Action
from notifications.services import get_broadcaster, get_dispatcher
from notifications.store import SubjectKind
from socialnet.api.exceptions import UnprocessableEntity
from .models import Comment, CommentLike, Post, PostLike, Reply, ReplyLike
from .serializers import CommentSerializer, PostDetailSerializer, PostSerializer, ReplySerializer

logger = logging.getLogger(__name__)


def publish_feed_event(payload):
    publish_on_commit(get_broadcaster(), FEED_TOPIC, payload)


def toggle_like(request, subject, like_model, lookup, subject_kind):
    """Adds or removes the caller's like and reports it to the subject owner."""
    dispatcher = get_dispatcher()
    with transaction.atomic():
        if request.method == 'POST':
            _like, created = like_model.objects.get_or_create(**{lookup: subject, 'user': request.user})
            if not created:
                return Response({"already_liked": True}, status=status.HTTP_200_OK)
            dispatcher.like(subject_kind, subject.pk, request.user.id, Action.ADD)
            response_status = status.HTTP_201_CREATED
        else:
            like = like_model.objects.filter(**{lookup: subject, 'user': request.user}).first()
            if like is None:
                raise UnprocessableEntity(_("You have not liked this yet."))
            like.delete()
            dispatcher.like(subject_kind, subject.pk, request.user.id, Action.REMOVE)
            response_status = status.HTTP_200_OK

        likes_count = like_model.objects.filter(**{lookup: subject}).count()
        publish_feed_event({
            "action": f"{subject_kind}_{'liked' if request.method == 'POST' else 'unliked'}",
            f"{subject_kind}_id": subject.pk,
            "likes_count": likes_count,
        })

    return Response({"liked": request.method == 'POST', "likes_count": likes_count}, status=response_status)


class PostViewSet(viewsets.ModelViewSet):
    serializer_class = PostSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsOwnerOrReadOnly]
    filterset_fields = ['creator', 'privacy']
    http_method_names = ['get', 'post', 'patch', 'delete']

    def get_queryset(self):
        return (
            Post.objects.visible_to(self.request.user)
            .select_related('creator', 'creator__profile')
            .order_by('-updated_at', '-id')
        )

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return PostDetailSerializer
        if self.action == 'comments':
            return CommentSerializer
        return super().get_serializer_class()

    def perform_create(self, serializer):
        post = serializer.save(creator=self.request.user)
        logger.info(f"User {self.request.user.id} created post {post.id}")
        publish_feed_event({"action": "post_created", "post_id": post.id})

    def perform_update(self, serializer):
        post = serializer.save(edited_at=timezone.now())
        publish_feed_event({"action": "post_updated", "post_id": post.id})

    def perform_destroy(self, instance):
        post_id = instance.id
        instance.delete()
        publish_feed_event({"action": "post_deleted", "post_id": post_id})

    @action(detail=True, methods=['post', 'delete'], permission_classes=[permissions.IsAuthenticated])
    def like(self, request, pk=None):
        return toggle_like(request, self.get_object(), PostLike, 'post', SubjectKind.POST)

    @action(detail=True, methods=['get', 'post'], permission_classes=[permissions.IsAuthenticatedOrReadOnly])
    def comments(self, request, pk=None):
        post = self.get_object()
        if request.method == 'GET':
            queryset = post.comments.select_related('user', 'user__profile').prefetch_related('replies')
            page = self.paginate_queryset(queryset)
            if page is not None:
                return self.get_paginated_response(CommentSerializer(page, many=True).data)
            return Response(CommentSerializer(queryset, many=True).data)

        serializer = CommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            comment = serializer.save(post=post, user=request.user)
            get_dispatcher().comment(post.id, request.user.id, Action.ADD)
            publish_feed_event({"action": "comment_created", "post_id": post.id, "comment_id": comment.id})
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentViewSet(mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    serializer_class = CommentSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsOwnerOrReadOnly]
    http_method_names = ['get', 'post', 'patch', 'delete']

    def get_queryset(self):
        visible_posts = Post.objects.visible_to(self.request.user)
        return Comment.objects.filter(post__in=visible_posts).select_related('user', 'user__profile', 'post')

    def perform_update(self, serializer):
        comment = serializer.save(edited_at=timezone.now())
        publish_feed_event({"action": "comment_updated", "post_id": comment.post_id, "comment_id": comment.id})

    def perform_destroy(self, instance):
        post_id, comment_id = instance.post_id, instance.id
        with transaction.atomic():
            instance.delete()
            get_dispatcher().comment(post_id, self.request.user.id, Action.REMOVE)
            publish_feed_event({"action": "comment_deleted", "post_id": post_id, "comment_id": comment_id})

    @action(detail=True, methods=['post', 'delete'], permission_classes=[permissions.IsAuthenticated])
    def like(self, request, pk=None):
        return toggle_like(request, self.get_object(), CommentLike, 'comment', SubjectKind.COMMENT)

    @action(detail=True, methods=['post'], permission_classes=[permissions.IsAuthenticated])
    def replies(self, request, pk=None):
        comment = self.get_object()
        serializer = ReplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            reply = serializer.save(comment=comment, user=request.user)
            get_dispatcher().reply(comment.id, request.user.id, Action.ADD)
            publish_feed_event({"action": "reply_created", "post_id": comment.post_id, "reply_id": reply.id})
        return Response(ReplySerializer(reply).data, status=status.HTTP_201_CREATED)


class ReplyViewSet(mixins.RetrieveModelMixin,
                   mixins.UpdateModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    serializer_class = ReplySerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsOwnerOrReadOnly]
    http_method_names = ['get', 'post', 'patch', 'delete']

    def get_queryset(self):
        visible_posts = Post.objects.visible_to(self.request.user)
        return Reply.objects.filter(comment__post__in=visible_posts).select_related('user', 'user__profile', 'comment')

    def perform_update(self, serializer):
        reply = serializer.save(edited_at=timezone.now())
        publish_feed_event({"action": "reply_updated", "post_id": reply.comment.post_id, "reply_id": reply.id})

    def perform_destroy(self, instance):
        comment_id, post_id, reply_id = instance.comment_id, instance.comment.post_id, instance.id
        with transaction.atomic():
            instance.delete()
            get_dispatcher().reply(comment_id, self.request.user.id, Action.REMOVE)
            publish_feed_event({"action": "reply_deleted", "post_id": post_id, "reply_id": reply_id})

    @action(detail=True, methods=['post', 'delete'], permission_classes=[permissions.IsAuthenticated])
    def like(self, request, pk=None):
        return toggle_like(request, self.get_object(), ReplyLike, 'reply', SubjectKind.REPLY)
