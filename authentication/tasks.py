import logging

from celery import shared_task
from django.contrib.auth.models import User

from .utils import send_email

logger = logging.getLogger(__name__)


@shared_task
def send_password_reset_email_task(user_id, reset_url):
    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        logger.warning(f"Could not send password reset email: user with id={user_id} not found.")
        return

    send_email(
        'Password Reset Request',
        f'Hi {user.first_name}, click the link to reset your password: {reset_url}\n'
        f'The link expires in one hour.',
        [user.email]
    )
    logger.info(f"Password reset email sent to user {user_id}")
