import logging

from django.db import transaction
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .pruning import prune_orphans
from .serializers import LedgerSerializer
from .broadcast import publish_on_commit, user_topic
from .services import get_broadcaster
from .store import LedgerStore

logger = logging.getLogger(__name__)


class NotificationViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def list(self, request):
        store = LedgerStore()
        with transaction.atomic():
            ledger = store.load_ledger(request.user.id)
            pruned = prune_orphans(ledger)
            if pruned:
                store.save_ledger(request.user.id, ledger)
                logger.info(f"Pruned {pruned} stale notifications for user {request.user.id}")
        return Response(LedgerSerializer(ledger).data)

    @action(detail=False, methods=['post'], url_path='mark-seen')
    def mark_seen(self, request):
        return self._update(request, lambda ledger: ledger.mark_seen())

    @action(detail=False, methods=['post'], url_path='mark-all-read')
    def mark_all_read(self, request):
        return self._update(request, lambda ledger: ledger.mark_all_read())

    def _update(self, request, change):
        store = LedgerStore()
        with transaction.atomic():
            ledger = store.load_ledger(request.user.id)
            change(ledger)
            store.save_ledger(request.user.id, ledger)
            publish_on_commit(
                get_broadcaster(), user_topic(request.user.id), {"action": "notification", "count": ledger.count}
            )
        return Response(LedgerSerializer(ledger).data, status=status.HTTP_200_OK)
