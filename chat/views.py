import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.db.models import F
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.response import Response

from authentication.models import UserProfile
from friends.serializers import FriendTargetSerializer
from notifications.broadcast import publish_on_commit, user_topic
from notifications.services import get_broadcaster
from socialnet.api.exceptions import UnprocessableEntity
from socialnet.utils import api_response
from .models import Chat, ChatMember, ChatMessage
from .serializers import (
    ChatDetailSerializer,
    ChatSummarySerializer,
    DirectMessageSerializer,
    NewMessageSerializer,
    StartChatSerializer,
)

logger = logging.getLogger(__name__)


def _notify_members(member_ids, payload):
    broadcaster = get_broadcaster()
    for user_id in member_ids:
        publish_on_commit(broadcaster, user_topic(user_id), payload)


def find_chat_with_members(user, member_ids):
    """Returns the chat whose member set is exactly ``member_ids``, if any."""
    for membership in ChatMember.objects.filter(user=user).select_related('chat'):
        if membership.chat.member_ids() == member_ids:
            return membership.chat
    return None


def post_message(chat, user, text):
    """Stores a message and moves the chat to the top of every member's inbox."""
    now = timezone.now()
    message = ChatMessage.objects.create(chat=chat, user=user, message=text)
    member_ids = chat.member_ids()
    ChatMember.objects.filter(chat=chat).update(last_activity_at=now)
    UserProfile.objects.filter(user_id__in=member_ids - {user.id}).update(unseen_messages=F('unseen_messages') + 1)
    chat.save(update_fields=['updated_at'])
    _notify_members(member_ids, {"action": "message", "chat_id": chat.id, "message_id": message.id})
    return message


class ChatViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def _member_chat(self, request, pk):
        chat = get_object_or_404(Chat, pk=pk)
        if not chat.has_member(request.user):
            raise PermissionDenied(_("You are not a member of this chat."))
        return chat

    def _friend(self, request):
        serializer = FriendTargetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        friend = User.objects.filter(pk=serializer.validated_data['friend_id']).select_related('profile').first()
        if friend is None:
            raise NotFound(_("No user found."))
        return friend

    def list(self, request):
        memberships = ChatMember.objects.filter(user=request.user).select_related('chat')
        chats = [membership.chat for membership in memberships]
        return Response({
            "unseen_messages": request.user.profile.unseen_messages,
            "chats": ChatSummarySerializer(chats, many=True).data,
        })

    def create(self, request):
        serializer = StartChatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        recipient_ids = set(serializer.validated_data['recipients']) - {request.user.id}
        if not recipient_ids:
            raise UnprocessableEntity(_("A chat needs at least one other member."))
        found = set(User.objects.filter(pk__in=recipient_ids).values_list('id', flat=True))
        if found != recipient_ids:
            raise NotFound(_("No user found."))
        return self._send(request, recipient_ids | {request.user.id}, serializer.validated_data['message'])

    @action(detail=False, methods=['post'])
    def direct(self, request):
        serializer = DirectMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        friend = get_object_or_404(User.objects.select_related('profile'), pk=serializer.validated_data['friend_id'])
        if not request.user.profile.is_friends_with(friend):
            raise UnprocessableEntity(_("You can only message your friends."))
        return self._send(request, {request.user.id, friend.id}, serializer.validated_data['message'])

    def _send(self, request, member_ids, text):
        with transaction.atomic():
            chat = find_chat_with_members(request.user, member_ids)
            created = chat is None
            if created:
                chat = Chat.objects.create()
                ChatMember.objects.bulk_create([ChatMember(chat=chat, user_id=user_id) for user_id in member_ids])
            post_message(chat, request.user, text)

        if created:
            logger.info(f"User {request.user.id} started chat {chat.id} with {len(member_ids) - 1} members")
        return Response(
            ChatDetailSerializer(chat).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def retrieve(self, request, pk=None):
        chat = self._member_chat(request, pk)
        return Response(ChatDetailSerializer(chat).data)

    @action(detail=True, methods=['post'])
    def messages(self, request, pk=None):
        chat = self._member_chat(request, pk)
        serializer = NewMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            message = post_message(chat, request.user, serializer.validated_data['message'])
        return Response({"id": message.id, "chat_id": chat.id, "message": message.message}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post', 'delete'])
    def members(self, request, pk=None):
        chat = self._member_chat(request, pk)
        friend = self._friend(request)

        with transaction.atomic():
            if request.method == 'POST':
                if not request.user.profile.is_friends_with(friend):
                    raise UnprocessableEntity(_("You can only add your friends to a chat."))
                if chat.has_member(friend):
                    raise UnprocessableEntity(_("This user is already in the chat."))
                ChatMember.objects.create(chat=chat, user=friend)
                _notify_members(chat.member_ids(), {"action": "member_added", "chat_id": chat.id, "user_id": friend.id})
                response_status = status.HTTP_201_CREATED
            else:
                membership = ChatMember.objects.filter(chat=chat, user=friend).first()
                if membership is None:
                    raise NotFound(_("User not currently in chat."))
                membership.delete()
                _notify_members(
                    chat.member_ids() | {friend.id},
                    {"action": "member_removed", "chat_id": chat.id, "user_id": friend.id}
                )
                response_status = status.HTTP_200_OK

        return Response(ChatSummarySerializer(chat).data, status=response_status)

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        chat = self._member_chat(request, pk)
        chat_id = chat.id
        with transaction.atomic():
            ChatMember.objects.filter(chat=chat, user=request.user).delete()
            remaining = chat.member_ids()
            if not remaining:
                chat.delete()
                logger.info(f"Chat {chat_id} deleted after its last member left")
            _notify_members(remaining, {"action": "leave_chat", "chat_id": chat_id, "user_id": request.user.id})
        return api_response(True, status.HTTP_200_OK, _("You have left the chat."), {"chat_deleted": not remaining})

    @action(detail=False, methods=['post'], url_path='clear-count')
    def clear_count(self, request):
        UserProfile.objects.filter(user=request.user).update(unseen_messages=0)
        return api_response(True, status.HTTP_200_OK, _("Message count cleared."), {"unseen_messages": 0})
