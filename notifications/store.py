"""
Database-backed collaborators of the notification dispatcher: subject
aggregates, per-user ledgers and actor identities.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.db import DatabaseError
from django.utils.text import Truncator

from feed.models import Comment, CommentLike, Post, PostLike, Reply, ReplyLike
from .exceptions import ActorNotFound, LedgerWriteFailed, RecipientNotFound, SubjectNotFound
from .ledger import Ledger
from .composer import ActorName
from .models import NotificationLedger

logger = logging.getLogger(__name__)


class SubjectKind:
    POST = "post"
    COMMENT = "comment"
    REPLY = "reply"


class Bucket:
    LIKES = "likes"
    COMMENTS = "comments"
    REPLIES = "replies"


@dataclass
class Identity:
    user_id: int
    first_name: str
    last_name: str
    image_url: Optional[str] = None

    @property
    def name(self) -> ActorName:
        return ActorName(self.first_name, self.last_name)


@dataclass
class SubjectSnapshot:
    kind: str
    pk: int
    owner_id: int
    post_id: int
    content: str
    actors: List[ActorName] = field(default_factory=list)


def _distinct_actors(users) -> List[ActorName]:
    seen = {}
    for user in users:
        if user.pk not in seen:
            seen[user.pk] = ActorName(user.first_name, user.last_name)
    return list(seen.values())


def excerpt(content: str) -> str:
    return Truncator(content or "").chars(settings.NOTIFICATION_EXCERPT_LENGTH)


class LedgerStore:
    def _subject(self, kind: str, pk):
        try:
            if kind == SubjectKind.POST:
                subject = Post.objects.get(pk=pk)
                return subject, subject.creator_id, subject.pk
            if kind == SubjectKind.COMMENT:
                subject = Comment.objects.get(pk=pk)
                return subject, subject.user_id, subject.post_id
            if kind == SubjectKind.REPLY:
                subject = Reply.objects.select_related("comment").get(pk=pk)
                return subject, subject.user_id, subject.comment.post_id
        except (Post.DoesNotExist, Comment.DoesNotExist, Reply.DoesNotExist):
            raise SubjectNotFound()
        raise SubjectNotFound()

    def load_subject_owner(self, kind: str, pk) -> int:
        _subject, owner_id, _post_id = self._subject(kind, pk)
        return owner_id

    def load_subject_with_actors(self, kind: str, pk, bucket: str) -> SubjectSnapshot:
        """Read a subject and its actors; call after ``load_ledger`` so the actor list is current."""
        subject, owner_id, post_id = self._subject(kind, pk)
        return SubjectSnapshot(
            kind=kind,
            pk=subject.pk,
            owner_id=owner_id,
            post_id=post_id,
            content=excerpt(subject.content),
            actors=self._actors(kind, subject, bucket),
        )

    def _actors(self, kind, subject, bucket) -> List[ActorName]:
        if bucket == Bucket.LIKES:
            like_model, lookup = {
                SubjectKind.POST: (PostLike, "post"),
                SubjectKind.COMMENT: (CommentLike, "comment"),
                SubjectKind.REPLY: (ReplyLike, "reply"),
            }[kind]
            likes = like_model.objects.filter(**{lookup: subject}).select_related("user").order_by("id")
            return _distinct_actors(like.user for like in likes)
        if bucket == Bucket.COMMENTS:
            comments = subject.comments.select_related("user").order_by("created_at", "id")
            return _distinct_actors(comment.user for comment in comments)
        if bucket == Bucket.REPLIES:
            replies = subject.replies.select_related("user").order_by("created_at", "id")
            return _distinct_actors(reply.user for reply in replies)
        return []

    def load_ledger(self, user_id) -> Ledger:
        """Lock and read a user's ledger; call inside ``transaction.atomic``."""
        row = NotificationLedger.objects.select_for_update().filter(user_id=user_id).first()
        if row is None:
            if not User.objects.filter(pk=user_id).exists():
                raise RecipientNotFound()
            row, _ = NotificationLedger.objects.get_or_create(user_id=user_id)
        return Ledger.from_document(row.count, row.records)

    def save_ledger(self, user_id, ledger: Ledger):
        try:
            updated = NotificationLedger.objects.filter(user_id=user_id).update(
                count=ledger.count, records=ledger.to_document()
            )
        except DatabaseError as e:
            logger.error(f"Failed to save notification ledger for user {user_id}: {e}")
            raise LedgerWriteFailed()
        if not updated:
            raise RecipientNotFound()


class IdentityDirectory:
    def resolve(self, user_id, missing=ActorNotFound) -> Identity:
        user = User.objects.select_related("profile").filter(pk=user_id).first()
        if user is None:
            raise missing()
        profile = getattr(user, "profile", None)
        return Identity(
            user_id=user.pk,
            first_name=user.first_name,
            last_name=user.last_name,
            image_url=profile.profile_picture_url if profile else settings.DEFAULT_PROFILE_IMAGE_URL,
        )
