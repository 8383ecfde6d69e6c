from rest_framework import serializers
from fleet.models import Truck


class TruckSerializer(serializers.ModelSerializer):
    is_available = serializers.BooleanField(read_only=True)

    class Meta:
        model = Truck
        fields = [
            'id',
            'plate',
            'fuel_type',
            'capacity',
            'state',
            'selected_by',
            'brand',
            'model',
            'year',
            'notes',
            'created_at',
            'updated_at',
            'is_available',
        ]
        read_only_fields = ['selected_by', 'created_at', 'updated_at']

    def validate_plate(self, value):
        return value.strip().upper()

    def validate_state(self, value):
        if self.instance is None:
            if value not in Truck.INITIAL_STATES:
                raise serializers.ValidationError(
                    f"A new truck must start in one of {list(Truck.INITIAL_STATES)}."
                )
            return value
        # State changes on existing trucks go through the change_state action
        if value != self.instance.state:
            raise serializers.ValidationError('Use the change_state action to change a truck state.')
        return value

    def validate(self, attrs):
        truck = self.instance
        if truck is not None and truck.has_open_assignment:
            for field in ('fuel_type', 'capacity'):
                if field in attrs and attrs[field] != getattr(truck, field):
                    raise serializers.ValidationError(
                        {field: [f"Cannot change {field} while the truck has an open assignment."]}
                    )
        return attrs


class TruckStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=Truck.STATE_CHOICES)
