from collections import Counter

from django.db import models
from django.conf import settings
from django.db.models import Count


class NotificationQuerySet(models.QuerySet):
    def unread(self):
        return self.filter(is_read=False)

    def unread_counts(self, user_ids):
        """
        Unread notifications per user.

        Every requested id is present in the result; users with nothing
        unread map to 0, as does any id looked up afterwards.
        """
        user_ids = list(user_ids)
        counts = Counter({user_id: 0 for user_id in user_ids})
        rows = (
            self.unread()
            .filter(user_id__in=user_ids)
            .values('user_id')
            .annotate(total=Count('id'))
        )
        for row in rows:
            counts[row['user_id']] = row['total']
        return counts


class Notification(models.Model):
    KIND_CHOICES = [
        ('reminder', 'Reminder'),
        ('delay', 'Delay'),
        ('confirmation', 'Confirmation'),
        ('cancellation', 'Cancellation'),
        ('info', 'Information'),
        ('alert', 'Alert'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    kind = models.CharField(max_length=20, choices=KIND_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)

    related_child = models.ForeignKey('children.Child', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    related_appointment = models.ForeignKey('appointments.Appointment', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    related_vaccine = models.ForeignKey('immunization.Vaccine', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')

    created_at = models.DateTimeField(auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_kind_display()} for {self.user_id}: {self.title}"
