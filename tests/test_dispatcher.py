"""
Tests for the notification dispatcher with in-memory collaborators.
"""

import pytest

from notifications.composer import ActorName
from notifications.dispatcher import NotificationDispatcher, SubjectEvent
from notifications.exceptions import (
    ActorNotFound,
    InvalidActionForAlertType,
    LedgerWriteFailed,
    RecipientNotFound,
    SubjectNotFound,
)
from notifications.ledger import Action, AlertType, Ledger
from notifications.store import Identity, SubjectSnapshot

OWNER = 1
AMY = 2
BO = 3


class FakeStore:
    def __init__(self):
        self.subjects = {}
        self.documents = {OWNER: (0, []), AMY: (0, []), BO: (0, [])}
        self.fail_save = False
        self.loads = 0
        self.saves = 0
        self.on_lock = None

    def set_subject(self, kind, pk, owner_id, actors, post_id=10):
        self.subjects[(kind, pk)] = SubjectSnapshot(
            kind=kind, pk=pk, owner_id=owner_id, post_id=post_id, content="Hello", actors=list(actors)
        )

    def load_subject_owner(self, kind, pk):
        try:
            return self.subjects[(kind, pk)].owner_id
        except KeyError:
            raise SubjectNotFound()

    def load_subject_with_actors(self, kind, pk, bucket):
        try:
            return self.subjects[(kind, pk)]
        except KeyError:
            raise SubjectNotFound()

    def load_ledger(self, user_id):
        self.loads += 1
        if user_id not in self.documents:
            raise RecipientNotFound()
        if self.on_lock is not None:
            self.on_lock()
        count, records = self.documents[user_id]
        return Ledger.from_document(count, records)

    def save_ledger(self, user_id, ledger):
        if self.fail_save:
            raise LedgerWriteFailed()
        self.saves += 1
        self.documents[user_id] = (ledger.count, ledger.to_document())

    def ledger(self, user_id):
        count, records = self.documents[user_id]
        return Ledger.from_document(count, records)


class FakeIdentities:
    people = {
        OWNER: Identity(OWNER, "Olive", "Owner", "http://img/owner"),
        AMY: Identity(AMY, "Amy", "Lee", "http://img/amy"),
        BO: Identity(BO, "Bo", "Kim", "http://img/bo"),
    }

    def resolve(self, user_id, missing=ActorNotFound):
        try:
            return self.people[user_id]
        except KeyError:
            raise missing()


class FakeBroadcaster:
    def __init__(self):
        self.events = []

    def publish(self, topic, payload):
        self.events.append((topic, payload))


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def broadcaster():
    return FakeBroadcaster()


@pytest.fixture
def dispatcher(store, broadcaster):
    return NotificationDispatcher(store, FakeIdentities(), broadcaster)


@pytest.mark.django_db
class TestDispatch:
    """Routing, self-suppression and persistence of subject events."""

    def test_like_creates_notification_and_pushes_after_commit(self, dispatcher, store, broadcaster, django_capture_on_commit_callbacks):
        store.set_subject("post", 5, OWNER, [ActorName("Amy", "Lee")])

        with django_capture_on_commit_callbacks(execute=True):
            record = dispatcher.like("post", 5, AMY)

        assert record.message == "Amy Lee liked your post"
        assert record.subject_key == "post:5"
        assert record.source.user_image == "http://img/amy"
        assert store.ledger(OWNER).count == 1
        assert broadcaster.events == [("user_1", {"action": "notification", "count": 1})]

    def test_comment_uses_commented_on(self, dispatcher, store, django_capture_on_commit_callbacks):
        store.set_subject("post", 5, OWNER, [ActorName("Amy", "Lee"), ActorName("Bo", "Kim")])

        with django_capture_on_commit_callbacks(execute=True):
            record = dispatcher.comment(5, BO)

        assert record.alert_type == AlertType.COMMENT.value
        assert record.message == "Bo Kim and Amy Lee commented on your post"

    def test_reply_aggregates_in_comment_bucket(self, dispatcher, store, django_capture_on_commit_callbacks):
        store.set_subject("comment", 8, OWNER, [ActorName("Amy", "Lee")])

        with django_capture_on_commit_callbacks(execute=True):
            record = dispatcher.reply(8, AMY)

        assert record.subject_key == "comment:8"
        assert record.alert_type == AlertType.COMMENT.value
        assert record.message == "Amy Lee replied to your post"

    def test_self_event_touches_nothing(self, dispatcher, store, broadcaster, django_capture_on_commit_callbacks):
        store.set_subject("post", 5, OWNER, [ActorName("Olive", "Owner")])

        with django_capture_on_commit_callbacks(execute=True):
            assert dispatcher.like("post", 5, OWNER) is None

        assert store.loads == 0
        assert store.saves == 0
        assert broadcaster.events == []

    def test_remove_retires_record(self, dispatcher, store, django_capture_on_commit_callbacks):
        store.set_subject("post", 5, OWNER, [ActorName("Amy", "Lee")])
        with django_capture_on_commit_callbacks(execute=True):
            dispatcher.like("post", 5, AMY)

        store.set_subject("post", 5, OWNER, [])
        with django_capture_on_commit_callbacks(execute=True):
            assert dispatcher.like("post", 5, AMY, Action.REMOVE) is None

        ledger = store.ledger(OWNER)
        assert len(ledger) == 0
        assert ledger.count == 0

    def test_actors_are_read_after_the_ledger_lock(self, dispatcher, store, django_capture_on_commit_callbacks):
        store.set_subject("post", 5, OWNER, [ActorName("Bo", "Kim")])

        def other_like_commits():
            store.set_subject("post", 5, OWNER, [ActorName("Amy", "Lee"), ActorName("Bo", "Kim")])

        store.on_lock = other_like_commits
        with django_capture_on_commit_callbacks(execute=True):
            record = dispatcher.like("post", 5, BO)

        assert record.message == "Bo Kim and Amy Lee liked your post"
        assert len(record.actors) == 2

    def test_missing_subject(self, dispatcher):
        with pytest.raises(SubjectNotFound):
            dispatcher.like("post", 404, AMY)

    def test_missing_actor(self, dispatcher, store):
        store.set_subject("post", 5, OWNER, [ActorName("Amy", "Lee")])
        with pytest.raises(ActorNotFound):
            dispatcher.like("post", 5, 999)

    def test_missing_recipient(self, dispatcher, store):
        store.set_subject("post", 5, 42, [ActorName("Amy", "Lee")])
        with pytest.raises(RecipientNotFound):
            dispatcher.like("post", 5, AMY)

    @pytest.mark.parametrize("event", [
        SubjectEvent("comment", "reply", 1, AMY),
        SubjectEvent("reply", "post", 1, AMY),
        SubjectEvent("share", "post", 1, AMY),
        SubjectEvent("like", "post", 1, AMY, "toggle"),
    ])
    def test_unsupported_events(self, dispatcher, event):
        with pytest.raises(InvalidActionForAlertType):
            dispatcher.dispatch(event)

    def test_failed_save_suppresses_push(self, dispatcher, store, broadcaster, django_capture_on_commit_callbacks):
        store.set_subject("post", 5, OWNER, [ActorName("Amy", "Lee")])
        store.fail_save = True

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(LedgerWriteFailed):
                dispatcher.like("post", 5, AMY)

        assert callbacks == []
        assert broadcaster.events == []
        assert store.ledger(OWNER).count == 0


@pytest.mark.django_db
class TestFriendAccepted:
    def test_both_sides_get_one_record(self, dispatcher, store, broadcaster, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            created = dispatcher.friend_accepted(AMY, BO)

        assert len(created) == 2
        assert store.ledger(AMY).records[0].message == "You and Bo Kim are now friends"
        assert store.ledger(BO).records[0].message == "You and Amy Lee are now friends"
        assert sorted(topic for topic, _ in broadcaster.events) == ["user_2", "user_3"]

    def test_repeated_accept_is_idempotent(self, dispatcher, store, broadcaster, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            dispatcher.friend_accepted(AMY, BO)
        with django_capture_on_commit_callbacks(execute=True):
            assert dispatcher.friend_accepted(BO, AMY) == []

        assert len(store.ledger(AMY)) == 1
        assert len(store.ledger(BO)) == 1
        assert len(broadcaster.events) == 2

    def test_unknown_friend(self, dispatcher):
        with pytest.raises(RecipientNotFound):
            dispatcher.friend_accepted(AMY, 999)
