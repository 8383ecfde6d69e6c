from django.contrib import admin

from .models import Assignment, Discharge


class DischargeInline(admin.TabularInline):
    model = Discharge
    extra = 0
    fields = ('customer', 'start_marker', 'end_marker', 'total_discharged', 'recorded_at', 'notes')
    readonly_fields = ('start_marker', 'end_marker', 'total_discharged', 'recorded_at')
    raw_id_fields = ('customer',)
    can_delete = False


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    """Read-mostly view; fuel accounting is owned by the ledger service."""
    list_display = ('id', 'truck', 'driver', 'fuel_type', 'total_loaded', 'total_remaining', 'is_completed', 'date')
    list_filter = ('is_completed', 'fuel_type', 'date')
    search_fields = ('truck__plate', 'driver__name', 'driver__lastname')
    readonly_fields = ('fuel_type', 'total_loaded', 'total_remaining', 'is_completed', 'created_at', 'updated_at')
    raw_id_fields = ('truck', 'driver')
    date_hierarchy = 'date'
    inlines = [DischargeInline]

    def has_add_permission(self, request):
        return False
