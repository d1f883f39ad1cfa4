from django.db import models
from django.conf import settings


class NotificationLedger(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notification_ledger')
    count = models.PositiveIntegerField(default=0)
    records = models.JSONField(default=list, blank=True, help_text="Aggregated notification records, newest first.")
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Notifications for {self.user.username} ({self.count} unseen)"
