from django.contrib import admin
from .models import DoctorSchedule, AvailabilitySlot, Appointment


class AvailabilitySlotInline(admin.TabularInline):
    model = AvailabilitySlot
    extra = 0
    fields = ['start_time', 'end_time', 'is_booked', 'booked_by']
    # Bookings only change through the booking endpoints
    readonly_fields = ['is_booked', 'booked_by']


@admin.register(DoctorSchedule)
class DoctorScheduleAdmin(admin.ModelAdmin):
    list_display = ['id', 'doctor', 'date', 'is_available']
    list_filter = ['is_available', 'date']
    search_fields = ['doctor__name', 'doctor__email']
    inlines = [AvailabilitySlotInline]


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'child', 'parent', 'doctor', 'scheduled_date', 'scheduled_time', 'type', 'status']
    list_filter = ['status', 'type', 'scheduled_date']
    search_fields = ['child__name', 'parent__name', 'doctor__name']
    raw_id_fields = ['child', 'parent', 'doctor', 'slot']
    filter_horizontal = ['vaccines']
    readonly_fields = ['created_at', 'updated_at']
