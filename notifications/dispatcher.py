"""
Entry point of the notification engine.

The application reports domain events (a like, a comment, a reply, an
accepted friend request) and the dispatcher turns each of them into exactly
one ledger mutation on the recipient's side, persists it and announces the
new unseen count once the surrounding transaction has committed.
"""
import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from django.db import transaction

from .broadcast import publish_on_commit, user_topic
from .exceptions import InvalidActionForAlertType, RecipientNotFound
from .ledger import Action, AlertType, NotificationRecord, REPLY_VERB, SourceReference, VERBS, subject_key
from .store import Bucket, SubjectKind

logger = logging.getLogger(__name__)


class EventKind:
    LIKE = "like"
    COMMENT = "comment"
    REPLY = "reply"


class Route(NamedTuple):
    bucket: str
    alert_type: AlertType
    verb: str


ROUTES = {
    (EventKind.LIKE, SubjectKind.POST): Route(Bucket.LIKES, AlertType.LIKE, VERBS[AlertType.LIKE]),
    (EventKind.LIKE, SubjectKind.COMMENT): Route(Bucket.LIKES, AlertType.LIKE, VERBS[AlertType.LIKE]),
    (EventKind.LIKE, SubjectKind.REPLY): Route(Bucket.LIKES, AlertType.LIKE, VERBS[AlertType.LIKE]),
    (EventKind.COMMENT, SubjectKind.POST): Route(Bucket.COMMENTS, AlertType.COMMENT, VERBS[AlertType.COMMENT]),
    (EventKind.REPLY, SubjectKind.COMMENT): Route(Bucket.REPLIES, AlertType.COMMENT, REPLY_VERB),
}


@dataclass(frozen=True)
class SubjectEvent:
    kind: str
    subject_kind: str
    subject_id: int
    actor_id: int
    action: str = Action.ADD


def _route_for(event: SubjectEvent) -> Route:
    route = ROUTES.get((event.kind, event.subject_kind))
    if route is None:
        raise InvalidActionForAlertType()
    return route


def _action_for(event: SubjectEvent) -> Action:
    try:
        return Action(event.action)
    except ValueError:
        raise InvalidActionForAlertType()


class NotificationDispatcher:
    def __init__(self, store, identities, broadcaster):
        self.store = store
        self.identities = identities
        self.broadcaster = broadcaster

    def like(self, subject_kind, subject_id, actor_id, action=Action.ADD):
        return self.dispatch(SubjectEvent(EventKind.LIKE, subject_kind, subject_id, actor_id, action))

    def comment(self, post_id, actor_id, action=Action.ADD):
        return self.dispatch(SubjectEvent(EventKind.COMMENT, SubjectKind.POST, post_id, actor_id, action))

    def reply(self, comment_id, actor_id, action=Action.ADD):
        return self.dispatch(SubjectEvent(EventKind.REPLY, SubjectKind.COMMENT, comment_id, actor_id, action))

    def dispatch(self, event: SubjectEvent) -> Optional[NotificationRecord]:
        """
        Apply one domain event to the subject owner's ledger.

        Returns the stored record, or ``None`` when the event was a
        self-notification or the record was retired.
        """
        route = _route_for(event)
        action = _action_for(event)

        owner_id = self.store.load_subject_owner(event.subject_kind, event.subject_id)
        if owner_id == event.actor_id:
            logger.debug(f"Skipping self notification for user {event.actor_id} on {event.subject_kind} {event.subject_id}")
            return None

        actor = self.identities.resolve(event.actor_id)
        key = subject_key(event.subject_kind, event.subject_id)

        with transaction.atomic():
            ledger = self.store.load_ledger(owner_id)
            # Actors must be read while the ledger row lock is held.
            snapshot = self.store.load_subject_with_actors(event.subject_kind, event.subject_id, route.bucket)
            source = SourceReference(
                post_id=snapshot.post_id,
                content=snapshot.content,
                user_image=actor.image_url,
            )
            record = ledger.upsert(key, route.alert_type, source, snapshot.actors, action, verb=route.verb)
            self.store.save_ledger(owner_id, ledger)
            count = ledger.count
            self._push_after_commit(owner_id, count)

        logger.info(
            f"Notification {action.value} {route.alert_type.value} on {key} for user {owner_id} "
            f"({'retired' if record is None else len(record.actors)} actors, count={count})"
        )
        return record

    def friend_accepted(self, user_id, friend_id) -> List[NotificationRecord]:
        user = self.identities.resolve(user_id, missing=RecipientNotFound)
        friend = self.identities.resolve(friend_id, missing=RecipientNotFound)

        created = []
        with transaction.atomic():
            for owner, other in ((user, friend), (friend, user)):
                ledger = self.store.load_ledger(owner.user_id)
                record = ledger.add_friend(other.user_id, other.first_name, other.last_name, other.image_url)
                if record is None:
                    continue
                self.store.save_ledger(owner.user_id, ledger)
                created.append(record)
                self._push_after_commit(owner.user_id, ledger.count)

        if created:
            logger.info(f"Friendship notifications created for users {user_id} and {friend_id}")
        return created

    def _push_after_commit(self, user_id, count):
        publish_on_commit(self.broadcaster, user_topic(user_id), {"action": "notification", "count": count})
