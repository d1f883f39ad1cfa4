from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
import uuid
from django.conf import settings


class UserProfile(models.Model):
    GENDER_CHOICES = (
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    )

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    date_of_birth = models.DateField(blank=True, null=True)
    gender = models.CharField(max_length=20, choices=GENDER_CHOICES, blank=True, default='')
    about = models.TextField(blank=True, default='No info')
    occupation = models.CharField(max_length=150, blank=True, default='No info')
    profile_picture = models.ImageField(upload_to='profile_pictures/', blank=True, null=True)
    banner_image = models.ImageField(upload_to='banners/', blank=True, null=True)
    friends = models.ManyToManyField('self', blank=True)
    unseen_requests = models.PositiveIntegerField(default=0)
    unseen_messages = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.user.username

    @property
    def full_name(self):
        return f"{self.user.first_name} {self.user.last_name}".strip()

    @property
    def profile_picture_url(self):
        return _file_url(self.profile_picture) or settings.DEFAULT_PROFILE_IMAGE_URL

    @property
    def banner_image_url(self):
        return _file_url(self.banner_image) or settings.DEFAULT_BANNER_IMAGE_URL

    def is_friends_with(self, user):
        return self.friends.filter(user=user).exists()


def _file_url(field_file):
    if field_file and hasattr(field_file, 'url'):
        if settings.USE_S3_STORAGE:
            return field_file.url
        return f"{settings.BACKEND_BASE_URL}{field_file.url}"
    return None


class AuthToken(models.Model):
    TOKEN_TYPES = (
        ('password_reset', 'Password Reset'),
    )

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='auth_tokens')
    token_type = models.CharField(max_length=20, choices=TOKEN_TYPES, default='password_reset')
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    is_used = models.BooleanField(default=False)
    token = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    def __str__(self):
        return f"{self.user.username} - {self.token_type} Token"

    def save(self, *args, **kwargs):
        if not self.expires_at:
            self.expires_at = timezone.now() + timezone.timedelta(hours=settings.PASSWORD_RESET_TIMEOUT_HOURS)
        super().save(*args, **kwargs)

    def is_valid(self):
        return not self.is_used and self.expires_at > timezone.now()
