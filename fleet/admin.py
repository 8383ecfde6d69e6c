from django.contrib import admin
from .models import Truck


@admin.register(Truck)
class TruckAdmin(admin.ModelAdmin):
    list_display = ('plate', 'fuel_type', 'capacity', 'state', 'brand', 'model', 'updated_at')
    list_filter = ('state', 'fuel_type')
    search_fields = ('plate', 'brand', 'model')
    readonly_fields = ('selected_by', 'created_at', 'updated_at')

    fieldsets = (
        ('Basic Information', {
            'fields': ('plate', 'brand', 'model', 'year', 'state', 'selected_by')
        }),
        ('Specifications', {
            'fields': ('capacity', 'fuel_type')
        }),
        ('Notes', {
            'fields': ('notes',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
