from rest_framework import status
from rest_framework.exceptions import APIException
from django.utils.translation import gettext_lazy as _


class NotificationError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("The notification could not be processed.")
    default_code = 'notification_error'


class RecipientNotFound(NotificationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("The user to notify could not be found.")
    default_code = 'recipient_not_found'


class ActorNotFound(NotificationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("No user found.")
    default_code = 'actor_not_found'


class SubjectNotFound(NotificationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("The post, comment or reply no longer exists.")
    default_code = 'subject_not_found'


class LedgerWriteFailed(NotificationError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("Notifications could not be saved. Please try again.")
    default_code = 'ledger_write_failed'


class InvalidActionForAlertType(NotificationError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("This action is not supported for this kind of notification.")
    default_code = 'invalid_action_for_alert_type'
