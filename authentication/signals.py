from django.contrib.auth.models import User
from django.db.models.signals import post_save
from django.dispatch import receiver

from notifications.models import NotificationLedger
from .models import UserProfile


@receiver(post_save, sender=User)
def create_user_relationships(sender, instance, created, **kwargs):
    if created:
        UserProfile.objects.get_or_create(user=instance)
        NotificationLedger.objects.get_or_create(user=instance)


@receiver(post_save, sender=User)
def save_user_profile(sender, instance, **kwargs):
    if hasattr(instance, 'profile'):
        instance.profile.save()
