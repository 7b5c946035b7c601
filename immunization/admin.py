from django.contrib import admin
from .models import Vaccine, DoseRecord


@admin.register(Vaccine)
class VaccineAdmin(admin.ModelAdmin):
    list_display = ['name', 'total_doses', 'recommended_ages', 'is_mandatory', 'is_active']
    list_filter = ['is_mandatory', 'is_active']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(DoseRecord)
class DoseRecordAdmin(admin.ModelAdmin):
    list_display = ['child', 'vaccine', 'dose_number', 'scheduled_date', 'administered_date', 'status', 'doctor']
    list_filter = ['status', 'vaccine', 'scheduled_date']
    search_fields = ['child__name', 'vaccine__name', 'batch_number']
    raw_id_fields = ['child', 'doctor']
    readonly_fields = ['created_at', 'updated_at']
