from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        'company_name',
        'tax_id',
        'address',
        'get_contact',
        'created_at'
    )
    search_fields = ('company_name', 'tax_id', 'contact_name')
    ordering = ('company_name',)

    @admin.display(description="Contact")
    def get_contact(self, obj):
        parts = [p for p in (obj.contact_name, obj.contact_phone) if p]
        return ", ".join(parts) if parts else "N/A"
