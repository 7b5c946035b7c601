from django.contrib import admin
from immunization.models import DoseRecord
from .models import Child


class DoseRecordInline(admin.TabularInline):
    model = DoseRecord
    extra = 0
    fields = ['vaccine', 'dose_number', 'scheduled_date', 'administered_date', 'status']
    readonly_fields = ['vaccine', 'dose_number', 'scheduled_date']


@admin.register(Child)
class ChildAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'birth_date', 'gender', 'parent', 'is_active']
    list_filter = ['gender', 'is_active']
    search_fields = ['name', 'parent__name', 'parent__email']
    raw_id_fields = ['parent']
    inlines = [DoseRecordInline]
