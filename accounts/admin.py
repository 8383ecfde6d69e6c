from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('dni', 'name', 'lastname', 'email', 'role', 'state', 'license_number')
    list_filter = ('role', 'state')
    search_fields = ('dni', 'name', 'lastname', 'email', 'identity_subject')
    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        ('Identity', {
            'fields': ('dni', 'name', 'lastname', 'email', 'identity_subject')
        }),
        ('Access', {
            'fields': ('role', 'state')
        }),
        ('License', {
            'fields': ('license_number', 'license_type', 'license_expiry')
        }),
        ('Contact', {
            'fields': ('phone', 'address')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
