from decimal import Decimal

from rest_framework import serializers

from assignment.models import Discharge
from customers.models import Customer
from dispatch_core.exceptions import InvalidRange


class CustomerSerializerForDischarge(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'company_name', 'tax_id', 'address']


class DischargeSerializer(serializers.ModelSerializer):
    customer = CustomerSerializerForDischarge(read_only=True)
    is_recorded = serializers.BooleanField(read_only=True)

    class Meta:
        model = Discharge
        fields = [
            'id', 'assignment', 'customer', 'start_marker', 'end_marker',
            'total_discharged', 'is_recorded', 'notes', 'recorded_at',
        ]
        read_only_fields = fields


class MarkerReadingSerializer(serializers.Serializer):
    """
    Meter readings submitted by a driver. The same rules apply to a first
    recording and to a correction.
    """
    start_marker = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    end_marker = serializers.DecimalField(max_digits=12, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs['end_marker'] <= attrs['start_marker']:
            raise InvalidRange()
        return attrs


class RecordDischargeSerializer(MarkerReadingSerializer):
    assignment_id = serializers.IntegerField(min_value=1)
    customer_id = serializers.IntegerField(min_value=1)
