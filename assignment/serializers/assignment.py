from rest_framework import serializers

from accounts.serializers import DriverSummarySerializer
from assignment.models import Assignment
from assignment.serializers.discharge import DischargeSerializer
from fleet.models import Truck


class TruckSerializerForAssignment(serializers.ModelSerializer):
    class Meta:
        model = Truck
        fields = ['id', 'plate', 'fuel_type', 'capacity', 'state']


class AssignmentSerializer(serializers.ModelSerializer):
    truck = TruckSerializerForAssignment(read_only=True)
    driver = DriverSummarySerializer(read_only=True)
    discharges = DischargeSerializer(many=True, read_only=True)

    class Meta:
        model = Assignment
        fields = [
            'id', 'truck', 'driver', 'fuel_type', 'total_loaded', 'total_remaining',
            'is_completed', 'date', 'notes', 'created_at', 'updated_at', 'discharges',
        ]
        read_only_fields = fields


class AssignmentCreateSerializer(serializers.Serializer):
    truck_id = serializers.IntegerField(min_value=1)
    driver_id = serializers.IntegerField(min_value=1)
    total_loaded = serializers.DecimalField(max_digits=10, decimal_places=2)
    fuel_type = serializers.ChoiceField(choices=Truck.FUEL_TYPE_CHOICES, required=False)
    customers = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    date = serializers.DateField(required=False)

    def validate_total_loaded(self, value):
        if value <= 0:
            raise serializers.ValidationError('Loaded fuel must be greater than zero.')
        return value

    def validate_customers(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError('Customers must not repeat.')
        return value
