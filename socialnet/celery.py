import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'socialnet.settings')

app = Celery('socialnet')

app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()

app.conf.beat_schedule = {
    'prune-orphaned-notifications-daily': {
        'task': 'notifications.tasks.prune_orphaned_notifications_task',
        'schedule': crontab(minute=0, hour=3),
    },
}
