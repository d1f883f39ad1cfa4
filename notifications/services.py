from .broadcast import ChannelsBroadcaster
from .dispatcher import NotificationDispatcher
from .store import IdentityDirectory, LedgerStore


def get_broadcaster():
    return ChannelsBroadcaster()


def get_dispatcher():
    return NotificationDispatcher(LedgerStore(), IdentityDirectory(), get_broadcaster())
