from rest_framework import serializers

from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            'id',
            'company_name',
            'tax_id',
            'address',
            'contact_name',
            'contact_phone',
            'contact_email',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_tax_id(self, value):
        value = value.strip()
        if len(value) != 11 or not value.isdigit():
            raise serializers.ValidationError('Tax id must be exactly 11 digits.')
        return value
