"""
Tests for the database-backed ledger store and identity directory.
"""

import pytest
from django.db import DatabaseError

from feed.models import Comment, Post, PostLike, Reply
from notifications.exceptions import ActorNotFound, LedgerWriteFailed, RecipientNotFound, SubjectNotFound
from notifications.ledger import Action, AlertType, SourceReference
from notifications.models import NotificationLedger
from notifications.store import Bucket, IdentityDirectory, LedgerStore, SubjectKind


@pytest.mark.django_db
class TestLedgerStore:
    def test_ledger_is_created_with_the_user(self, amy):
        row = NotificationLedger.objects.get(user=amy)
        assert row.count == 0
        assert row.records == []

    def test_likers_in_like_order(self, amy, bo, cy):
        post = Post.objects.create(creator=amy, content="Hi")
        PostLike.objects.create(post=post, user=cy)
        PostLike.objects.create(post=post, user=bo)

        snapshot = LedgerStore().load_subject_with_actors(SubjectKind.POST, post.id, Bucket.LIKES)

        assert snapshot.owner_id == amy.id
        assert snapshot.post_id == post.id
        assert [actor.first_name for actor in snapshot.actors] == ["Cy", "Bo"]

    def test_commenters_are_distinct(self, amy, bo, cy):
        post = Post.objects.create(creator=amy, content="Hi")
        Comment.objects.create(post=post, user=bo, content="one")
        Comment.objects.create(post=post, user=cy, content="two")
        Comment.objects.create(post=post, user=bo, content="three")

        snapshot = LedgerStore().load_subject_with_actors(SubjectKind.POST, post.id, Bucket.COMMENTS)

        assert [actor.first_name for actor in snapshot.actors] == ["Bo", "Cy"]

    def test_reply_subject_points_at_post(self, amy, bo):
        post = Post.objects.create(creator=amy, content="Hi")
        comment = Comment.objects.create(post=post, user=amy, content="c")
        reply = Reply.objects.create(comment=comment, user=bo, content="r")

        snapshot = LedgerStore().load_subject_with_actors(SubjectKind.COMMENT, comment.id, Bucket.REPLIES)
        assert snapshot.post_id == post.id
        assert [actor.first_name for actor in snapshot.actors] == ["Bo"]

        reply_snapshot = LedgerStore().load_subject_with_actors(SubjectKind.REPLY, reply.id, Bucket.LIKES)
        assert reply_snapshot.owner_id == bo.id
        assert reply_snapshot.post_id == post.id

    def test_excerpt_is_truncated(self, amy, settings):
        settings.NOTIFICATION_EXCERPT_LENGTH = 10
        post = Post.objects.create(creator=amy, content="x" * 50)
        snapshot = LedgerStore().load_subject_with_actors(SubjectKind.POST, post.id, Bucket.LIKES)
        assert len(snapshot.content) <= 10

    def test_missing_subject(self, db):
        with pytest.raises(SubjectNotFound):
            LedgerStore().load_subject_with_actors(SubjectKind.POST, 12345, Bucket.LIKES)

    def test_subject_owner(self, amy, bo):
        post = Post.objects.create(creator=amy, content="Hi")
        comment = Comment.objects.create(post=post, user=bo, content="c")

        store = LedgerStore()
        assert store.load_subject_owner(SubjectKind.POST, post.id) == amy.id
        assert store.load_subject_owner(SubjectKind.COMMENT, comment.id) == bo.id
        with pytest.raises(SubjectNotFound):
            store.load_subject_owner(SubjectKind.REPLY, 4321)

    def test_save_and_load_round_trip(self, amy):
        store = LedgerStore()
        ledger = store.load_ledger(amy.id)
        ledger.upsert("post:1", AlertType.LIKE, SourceReference(post_id=1), [("Bo", "Kim")], Action.ADD)
        store.save_ledger(amy.id, ledger)

        row = NotificationLedger.objects.get(user=amy)
        assert row.count == 1
        assert row.records[0]["message"] == "Bo Kim liked your post"
        assert store.load_ledger(amy.id).get("post:1", AlertType.LIKE).actors == [("Bo", "Kim")]

    def test_missing_ledger_row_is_recreated_for_existing_user(self, amy):
        NotificationLedger.objects.filter(user=amy).delete()
        ledger = LedgerStore().load_ledger(amy.id)
        assert ledger.count == 0
        assert NotificationLedger.objects.filter(user=amy).exists()

    def test_unknown_recipient(self, db):
        with pytest.raises(RecipientNotFound):
            LedgerStore().load_ledger(987654)

    def test_database_error_becomes_ledger_write_failed(self, amy, monkeypatch):
        store = LedgerStore()
        ledger = store.load_ledger(amy.id)

        def broken_update(self, **kwargs):
            raise DatabaseError("disk full")

        monkeypatch.setattr("django.db.models.query.QuerySet.update", broken_update)
        with pytest.raises(LedgerWriteFailed):
            store.save_ledger(amy.id, ledger)


@pytest.mark.django_db
class TestIdentityDirectory:
    def test_resolves_names_and_image(self, amy, settings):
        identity = IdentityDirectory().resolve(amy.id)
        assert (identity.first_name, identity.last_name) == ("Amy", "Lee")
        assert identity.image_url == amy.profile.profile_picture_url

    def test_missing_actor(self, db):
        with pytest.raises(ActorNotFound):
            IdentityDirectory().resolve(424242)

    def test_missing_recipient_error_kind(self, db):
        with pytest.raises(RecipientNotFound):
            IdentityDirectory().resolve(424242, missing=RecipientNotFound)
