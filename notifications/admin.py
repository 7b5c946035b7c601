from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'kind', 'is_read', 'created_at']
    list_filter = ['kind', 'is_read']
    search_fields = ['title', 'message', 'user__email', 'user__name']
    raw_id_fields = ['user', 'related_child', 'related_appointment', 'related_vaccine']
