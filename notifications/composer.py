"""
Renders the human readable sentence of an aggregated notification.

Actors are given oldest first. The two most recently merged actors (the last
two of the sequence) are named, the rest are summarised as "N others".
"""
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence


class ActorName(NamedTuple):
    first_name: str
    last_name: str

    def __str__(self):
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class ComposedMessage:
    message: Optional[str]
    count: int


def compose(actors: Sequence[ActorName], count: int, verb: str) -> ComposedMessage:
    """
    Build the summary line for ``count`` actors performing ``verb``.

    A zero count yields ``ComposedMessage(None, 0)``; the ledger retires the
    record when this follows a remove.
    """
    if count <= 0 or not actors:
        return ComposedMessage(message=None, count=0)

    latest = ActorName(*actors[-1])
    if count == 1:
        message = f"{latest} {verb} your post"
    elif count == 2:
        previous = ActorName(*actors[-2])
        message = f"{latest} and {previous} {verb} your post"
    else:
        previous = ActorName(*actors[-2])
        message = f"{latest}, {previous} and {count - 2} others {verb} your post"

    return ComposedMessage(message=message, count=count)


def compose_friendship(first_name: str, last_name: str) -> str:
    return f"You and {first_name} {last_name} are now friends"
