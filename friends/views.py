import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext as _
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.models import UserProfile
from feed.models import Post
from feed.serializers import PostSerializer
from notifications.broadcast import publish_on_commit, user_topic
from notifications.services import get_broadcaster, get_dispatcher
from socialnet.api.exceptions import UnprocessableEntity
from socialnet.utils import api_response
from .models import FriendRequest
from .serializers import (
    FriendRequestSerializer,
    FriendTargetSerializer,
    PublicProfileSerializer,
    UserSummarySerializer,
)

logger = logging.getLogger(__name__)


def _change_unseen_requests(user_id, delta):
    profile = UserProfile.objects.select_for_update().get(user_id=user_id)
    profile.unseen_requests = max(0, profile.unseen_requests + delta)
    profile.save(update_fields=['unseen_requests', 'updated_at'])
    return profile.unseen_requests


def _notify_user(user_id, payload):
    publish_on_commit(get_broadcaster(), user_topic(user_id), payload)


def _target_user(request):
    serializer = FriendTargetSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    target = User.objects.filter(pk=serializer.validated_data['friend_id']).select_related('profile').first()
    if target is None:
        raise NotFound(_("No user found."))
    return target


class FriendRequestViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def list(self, request):
        incoming = (
            FriendRequest.objects.filter(receiver=request.user)
            .select_related('sender', 'sender__profile')
        )
        return Response({
            "unseen_requests": request.user.profile.unseen_requests,
            "requests": FriendRequestSerializer(incoming, many=True).data,
        })

    def create(self, request):
        target = _target_user(request)
        me = request.user

        if target.pk == me.pk:
            raise UnprocessableEntity(_("You cannot send a friend request to yourself."))
        if me.profile.is_friends_with(target):
            raise UnprocessableEntity(_("You are already friends."))
        if FriendRequest.objects.filter(Q(sender=me, receiver=target) | Q(sender=target, receiver=me)).exists():
            raise UnprocessableEntity(_("A friend request between you already exists."))

        with transaction.atomic():
            friend_request = FriendRequest.objects.create(sender=me, receiver=target)
            unseen = _change_unseen_requests(target.pk, +1)
            _notify_user(target.pk, {"action": "friend_request", "count": unseen})

        logger.info(f"User {me.id} sent a friend request to user {target.id}")
        return Response(
            {"id": friend_request.id, "receiver": target.id, "created_at": friend_request.created_at},
            status=status.HTTP_201_CREATED
        )

    def _incoming(self, request, pk):
        return get_object_or_404(FriendRequest.objects.select_related('sender'), pk=pk, receiver=request.user)

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        friend_request = self._incoming(request, pk)
        sender = friend_request.sender

        with transaction.atomic():
            request.user.profile.friends.add(sender.profile)
            friend_request.delete()
            _change_unseen_requests(request.user.id, -1)
            get_dispatcher().friend_accepted(request.user.id, sender.id)
            _notify_user(sender.id, {"action": "friend_request_accepted", "friend_id": request.user.id})

        logger.info(f"User {request.user.id} accepted the friend request of user {sender.id}")
        return Response(UserSummarySerializer(sender).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        friend_request = self._incoming(request, pk)
        with transaction.atomic():
            friend_request.delete()
            _change_unseen_requests(request.user.id, -1)
        return api_response(True, status.HTTP_200_OK, _("Friend request declined."))

    @action(detail=False, methods=['post'])
    def cancel(self, request):
        target = _target_user(request)
        friend_request = FriendRequest.objects.filter(sender=request.user, receiver=target).first()
        if friend_request is None:
            raise NotFound(_("No pending friend request to this user."))

        with transaction.atomic():
            friend_request.delete()
            unseen = _change_unseen_requests(target.pk, -1)
            _notify_user(target.pk, {"action": "friend_request_cancelled", "count": unseen})
        return api_response(True, status.HTTP_200_OK, _("Friend request cancelled."))

    @action(detail=False, methods=['post'], url_path='clear-count')
    def clear_count(self, request):
        UserProfile.objects.filter(user=request.user).update(unseen_requests=0)
        return api_response(True, status.HTTP_200_OK, _("Friend request count cleared."), {"unseen_requests": 0})


class UnfriendView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, user_id):
        friend = get_object_or_404(User.objects.select_related('profile'), pk=user_id)
        if not request.user.profile.is_friends_with(friend):
            raise UnprocessableEntity(_("You are not friends with this user."))

        with transaction.atomic():
            request.user.profile.friends.remove(friend.profile)
            _notify_user(friend.pk, {"action": "unfriended", "friend_id": request.user.id})
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PublicProfileSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        return User.objects.filter(is_active=True).select_related('profile').order_by('first_name', 'last_name', 'id')

    def get_permissions(self):
        if self.action == 'list':
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action in ('list', 'friends'):
            return UserSummarySerializer
        if self.action == 'posts':
            return PostSerializer
        return super().get_serializer_class()

    def list(self, request, *args, **kwargs):
        search = request.query_params.get('search', '').strip()
        queryset = self.get_queryset().exclude(pk=request.user.pk)
        for term in search.split():
            queryset = queryset.filter(Q(first_name__icontains=term) | Q(last_name__icontains=term))
        page = self.paginate_queryset(queryset)
        serializer = UserSummarySerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=True, methods=['get'])
    def friends(self, request, pk=None):
        user = self.get_object()
        queryset = self.get_queryset().filter(profile__friends__user=user)
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(UserSummarySerializer(page, many=True).data)

    @action(detail=True, methods=['get'])
    def posts(self, request, pk=None):
        user = self.get_object()
        queryset = (
            Post.objects.visible_to(request.user)
            .filter(creator=user)
            .select_related('creator', 'creator__profile')
            .order_by('-updated_at', '-id')
        )
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(PostSerializer(page, many=True, context={'request': request}).data)
