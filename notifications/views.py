from django.http import JsonResponse

from common.api import api_view
from common.exceptions import NotFound
from .dispatch import serialize, unread_counts
from .models import Notification

RECENT_LIMIT = 50


def _own_notification(actor, notification_id):
    try:
        return Notification.objects.get(pk=notification_id, user_id=actor.id)
    except Notification.DoesNotExist:
        raise NotFound('Notification not found.')


@api_view(['GET'])
def notification_list(request, actor):
    notifications = Notification.objects.filter(user_id=actor.id)[:RECENT_LIMIT]
    return JsonResponse({
        'status': 'success',
        'notifications': [serialize(n) for n in notifications],
        'unreadCount': unread_counts([actor.id])[actor.id],
    })


@api_view(['PUT', 'POST'])
def mark_read(request, actor, notification_id):
    notification = _own_notification(actor, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])
    return JsonResponse({'status': 'success', 'notification': serialize(notification)})


@api_view(['PUT', 'POST'])
def mark_all_read(request, actor):
    updated = Notification.objects.filter(user_id=actor.id, is_read=False).update(is_read=True)
    return JsonResponse({'status': 'success', 'updated': updated})


@api_view(['DELETE'])
def delete_notification(request, actor, notification_id):
    _own_notification(actor, notification_id).delete()
    return JsonResponse({'status': 'success'})
