"""
Per-user notification ledger.

A ledger holds an unseen ``count`` and the user's notification records, newest
relevant change first. Records are keyed by ``(subject_key, alert_type)`` so
that every subject/alert pair owns at most one record, which is merged on each
new event and retired once its last actor is gone.
"""
import uuid
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .composer import ActorName, compose, compose_friendship


class AlertType(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    FRIEND_REQUEST = "friend_request"


class Action(str, Enum):
    ADD = "add"
    REMOVE = "remove"


VERBS = {
    AlertType.LIKE: "liked",
    AlertType.COMMENT: "commented on",
}
REPLY_VERB = "replied to"


def verb_for(alert_type) -> str:
    return VERBS[AlertType(alert_type)]


def subject_key(kind: str, pk) -> str:
    return f"{kind}:{pk}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SourceReference:
    post_id: Optional[int] = None
    content: str = ""
    user_image: Optional[str] = None
    friend_id: Optional[int] = None


@dataclass
class NotificationRecord:
    subject_key: str
    alert_type: str
    message: str
    actors: List[ActorName]
    source: SourceReference
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    @property
    def key(self) -> Tuple[str, str]:
        return self.subject_key, self.alert_type

    def to_dict(self) -> dict:
        data = asdict(self)
        data["actors"] = [list(actor) for actor in self.actors]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationRecord":
        return cls(
            subject_key=data["subject_key"],
            alert_type=data["alert_type"],
            message=data["message"],
            actors=[ActorName(*actor) for actor in data.get("actors", [])],
            source=SourceReference(**data.get("source", {})),
            id=data.get("id") or uuid.uuid4().hex,
            created_at=data.get("created_at") or _now(),
            updated_at=data.get("updated_at") or data.get("created_at") or _now(),
        )


class Ledger:
    def __init__(self, count: int = 0, records: Iterable[NotificationRecord] = ()):
        self.count = max(0, int(count))
        self._records: "OrderedDict[Tuple[str, str], NotificationRecord]" = OrderedDict()
        for record in records:
            # Later duplicates of a key are dropped; the first one is the newest.
            self._records.setdefault(record.key, record)

    @classmethod
    def from_document(cls, count: int, records: Sequence[dict]) -> "Ledger":
        return cls(count=count, records=(NotificationRecord.from_dict(item) for item in records or ()))

    def to_document(self) -> List[dict]:
        return [record.to_dict() for record in self._records.values()]

    def __len__(self):
        return len(self._records)

    def __iter__(self) -> Iterator[NotificationRecord]:
        return iter(self._records.values())

    @property
    def records(self) -> List[NotificationRecord]:
        return list(self._records.values())

    def get(self, subject_key: str, alert_type) -> Optional[NotificationRecord]:
        return self._records.get((subject_key, AlertType(alert_type).value))

    def upsert(
        self,
        subject_key: str,
        alert_type,
        source: SourceReference,
        actors: Sequence[ActorName],
        action,
        verb: Optional[str] = None,
    ) -> Optional[NotificationRecord]:
        """
        Merge the current aggregate of a subject into the ledger.

        ``actors`` is the full distinct actor list of the subject after the
        triggering event. Returns the stored record, or ``None`` when the
        record was retired because no actor is left.
        """
        alert_type = AlertType(alert_type).value
        action = Action(action)
        key = (subject_key, alert_type)
        actors = [ActorName(*actor) for actor in actors]

        composed = compose(actors, len(actors), verb or verb_for(alert_type))

        if composed.count <= 0:
            retired = self._records.pop(key, None)
            if retired is not None and action is Action.REMOVE:
                self._decrement()
            return None

        record = self._records.get(key)
        if record is None:
            record = NotificationRecord(
                subject_key=subject_key,
                alert_type=alert_type,
                message=composed.message,
                actors=actors,
                source=source,
            )
            self._records[key] = record
            if action is Action.ADD:
                self.count += 1
        else:
            record.actors = actors
            record.message = composed.message
            record.source = source
            record.updated_at = _now()
            if action is Action.ADD:
                self.count += 1
            else:
                self._decrement()

        self._records.move_to_end(key, last=False)
        return record

    def add_friend(self, friend_id, first_name: str, last_name: str, image_url: Optional[str]) -> Optional[NotificationRecord]:
        key = (subject_key("user", friend_id), AlertType.FRIEND_REQUEST.value)
        if key in self._records:
            return None

        record = NotificationRecord(
            subject_key=key[0],
            alert_type=key[1],
            message=compose_friendship(first_name, last_name),
            actors=[ActorName(first_name, last_name)],
            source=SourceReference(user_image=image_url, friend_id=friend_id),
        )
        self._records[key] = record
        self._records.move_to_end(key, last=False)
        self.count += 1
        return record

    def mark_all_read(self):
        self._records.clear()
        self.count = 0

    def mark_seen(self):
        self.count = 0

    def prune(self, keep: Callable[[NotificationRecord], bool]) -> int:
        """Drop records rejected by ``keep``. The unseen count is left as it is."""
        stale = [key for key, record in self._records.items() if not record.message or not keep(record)]
        for key in stale:
            del self._records[key]
        return len(stale)

    def _decrement(self):
        self.count = max(0, self.count - 1)
