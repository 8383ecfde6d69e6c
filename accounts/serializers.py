from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'dni',
            'name',
            'lastname',
            'full_name',
            'email',
            'role',
            'state',
            'identity_subject',
            'license_number',
            'license_type',
            'license_expiry',
            'phone',
            'address',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        role = attrs.get('role', getattr(self.instance, 'role', User.ROLE_DRIVER))
        license_number = attrs.get('license_number', getattr(self.instance, 'license_number', ''))
        if role == User.ROLE_DRIVER and self.instance is None and not license_number:
            raise serializers.ValidationError({'license_number': ['Drivers must have a license number.']})
        return attrs


class DriverSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'lastname', 'license_number', 'state']
