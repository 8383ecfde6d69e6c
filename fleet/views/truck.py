import logging
from decimal import Decimal, InvalidOperation

from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from accounts.permissions import CapabilityPermission
from dispatch_core.exceptions import ConflictOnDelete
from fleet.models import Truck
from fleet.serializers import TruckSerializer, TruckStateSerializer
from fleet.services.status_services import change_truck_state, select_truck

logger = logging.getLogger(__name__)


class TruckViewSet(viewsets.ModelViewSet):
    """
    API endpoint for managing trucks.
    """
    queryset = Truck.objects.all()
    serializer_class = TruckSerializer
    permission_classes = [CapabilityPermission]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['state', 'fuel_type']
    search_fields = ['plate', 'brand', 'model']
    ordering_fields = ['plate', 'capacity', 'state', 'created_at', 'updated_at']
    ordering = ['plate']

    capability_map = {
        'change_state': 'change_state',
        'select': 'select_truck',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        if min_cap := params.get('min_capacity'):
            try:
                queryset = queryset.filter(capacity__gte=Decimal(min_cap))
            except InvalidOperation:
                pass
        if params.get('available') == 'true':
            queryset = queryset.filter(state=Truck.STATE_ACTIVE)
        return queryset

    def perform_destroy(self, instance):
        if instance.assignments.exists():
            raise ConflictOnDelete('Cannot delete truck with assignments')
        logger.info(f"Deleting truck {instance.plate}")
        instance.delete()

    # Admin only
    @action(detail=True, methods=['post'])
    def change_state(self, request, pk=None):
        """
        Administrative state override, validated by the state machine.
        POST /api/fleet/trucks/{id}/change_state/
        """
        truck = self.get_object()
        serializer = TruckStateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        change_truck_state(truck, serializer.validated_data['state'])
        return Response({'id': truck.id, 'plate': truck.plate, 'state': truck.state})

    @action(detail=True, methods=['post'])
    def select(self, request, pk=None):
        """
        A driver claims an active truck.
        POST /api/fleet/trucks/{id}/select/
        """
        truck = self.get_object()
        select_truck(truck, request.user)
        return Response({
            'id': truck.id,
            'plate': truck.plate,
            'state': truck.state,
            'selected_by': truck.selected_by_id,
        })
