"""
Best-effort notification delivery.

A notification is a stored row plus a push to the recipient's websocket
group. Neither part may break the operation that triggered it: failures
are logged and swallowed here.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from .models import Notification

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user_{user_id}"


def serialize(notification):
    return {
        'id': notification.pk,
        'kind': notification.kind,
        'title': notification.title,
        'message': notification.message,
        'isRead': notification.is_read,
        'relatedChildId': notification.related_child_id,
        'relatedAppointmentId': notification.related_appointment_id,
        'relatedVaccineId': notification.related_vaccine_id,
        'createdAt': notification.created_at.isoformat() if notification.created_at else None,
    }


def _push(user_id, payload):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(
            user_group(user_id),
            {'type': 'notification_message', 'notification': payload}
        )
    except Exception:
        logger.warning("Could not push notification to user %s", user_id, exc_info=True)


def notify(user_id, kind, title, message, related_child_id=None,
           related_appointment_id=None, related_vaccine_id=None):
    """
    Record a notification for user_id and push it once the surrounding
    transaction commits. Returns the Notification, or None if it could not
    be stored.
    """
    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                user_id=user_id,
                kind=kind,
                title=title,
                message=message,
                related_child_id=related_child_id,
                related_appointment_id=related_appointment_id,
                related_vaccine_id=related_vaccine_id,
            )
    except Exception:
        logger.exception("Failed to store %s notification for user %s", kind, user_id)
        return None

    payload = serialize(notification)
    transaction.on_commit(lambda: _push(user_id, payload))
    logger.debug("Queued %s notification %s for user %s", kind, notification.pk, user_id)
    return notification


def unread_counts(user_ids):
    return Notification.objects.unread_counts(user_ids)
