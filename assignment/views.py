import logging

from drf_yasg import openapi
from drf_yasg.utils import no_body, swagger_auto_schema
from rest_framework import mixins, status, viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from accounts.permissions import CapabilityPermission
from assignment.filters import AssignmentFilter, DischargeFilter
from assignment.models import Assignment, Discharge
from assignment.serializers import (
    AssignmentCreateSerializer,
    AssignmentSerializer,
    DischargeSerializer,
    MarkerReadingSerializer,
    RecordDischargeSerializer,
)
from assignment.services import ledger

logger = logging.getLogger(__name__)

LEDGER_ERRORS = {
    400: openapi.Response("Invalid data, invalid marker range, not enough fuel, or a conflicting state."),
    404: openapi.Response("Referenced record not found."),
    500: openapi.Response("Persistence failure. No changes were made."),
}


def _assignment_queryset():
    return Assignment.objects.select_related('truck', 'driver').prefetch_related('discharges__customer')


class AssignmentViewSet(mixins.CreateModelMixin,
                        mixins.ListModelMixin,
                        mixins.RetrieveModelMixin,
                        viewsets.GenericViewSet):
    """
    Dispatches of a loaded truck to a list of customers.

    Remaining fuel and completion are derived by the ledger, so assignments
    are never edited directly.
    """
    queryset = _assignment_queryset()
    serializer_class = AssignmentSerializer
    permission_classes = [CapabilityPermission]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AssignmentFilter
    ordering_fields = ['created_at', 'date', 'total_remaining']
    ordering = ['-created_at']

    capability_map = {
        'complete': 'complete',
        'start_discharge': 'start_discharge',
        'mine': 'view',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if user is not None and not user.is_admin:
            queryset = queryset.filter(driver=user)
        return queryset

    @swagger_auto_schema(
        request_body=AssignmentCreateSerializer,
        responses={201: AssignmentSerializer, **LEDGER_ERRORS},
        operation_description="Create an assignment with one pending discharge per customer and mark the truck as assigned.",
        tags=['Assignments']
    )
    def create(self, request, *args, **kwargs):
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        assignment = ledger.create_assignment(
            truck_id=data['truck_id'],
            driver_id=data['driver_id'],
            total_loaded=data['total_loaded'],
            customer_ids=data['customers'],
            fuel_type=data.get('fuel_type'),
            notes=data.get('notes', ''),
            date=data.get('date'),
        )
        assignment = _assignment_queryset().get(pk=assignment.pk)
        return Response(AssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        request_body=no_body,
        responses={200: AssignmentSerializer, **LEDGER_ERRORS},
        operation_description="Confirm an assignment whose discharges are all recorded and release its truck.",
        tags=['Assignments']
    )
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """
        POST /api/assignments/{id}/complete/
        """
        assignment = self.get_object()
        ledger.complete_assignment(assignment.pk)
        return Response(AssignmentSerializer(_assignment_queryset().get(pk=assignment.pk)).data)

    @action(detail=True, methods=['post'])
    def start_discharge(self, request, pk=None):
        """
        Driver signals the truck is pumping at a customer site.
        POST /api/assignments/{id}/start_discharge/
        """
        assignment = self.get_object()
        ledger.start_discharge(assignment.pk)
        assignment = _assignment_queryset().get(pk=assignment.pk)
        return Response({
            'assignment': assignment.pk,
            'truck': assignment.truck.plate,
            'truck_state': assignment.truck.state,
        })

    @action(detail=False, methods=['get'])
    def mine(self, request):
        """
        Open assignments of the signed-in driver.
        GET /api/assignments/mine/
        """
        queryset = _assignment_queryset().filter(driver=request.user, is_completed=False)
        return Response(AssignmentSerializer(queryset, many=True).data)


class DischargeViewSet(mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       viewsets.GenericViewSet):
    """
    Fuel delivered to each customer of an assignment.
    """
    queryset = Discharge.objects.select_related('assignment', 'customer')
    serializer_class = DischargeSerializer
    permission_classes = [CapabilityPermission]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = DischargeFilter
    ordering_fields = ['id', 'recorded_at']
    ordering = ['id']

    capability_map = {
        'create': 'record',
        'update': 'correct',
        'partial_update': 'correct',
        'destroy': 'delete',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if user is not None and not user.is_admin:
            queryset = queryset.filter(assignment__driver=user)
        return queryset

    def _ledger_response(self, discharge, assignment):
        assignment = _assignment_queryset().get(pk=assignment.pk)
        discharge = Discharge.objects.select_related('customer').get(pk=discharge.pk)
        return Response({
            'discharge': DischargeSerializer(discharge).data,
            'assignment': AssignmentSerializer(assignment).data,
        })

    @swagger_auto_schema(
        request_body=RecordDischargeSerializer,
        responses={200: openapi.Response("Recorded discharge and the updated assignment."), **LEDGER_ERRORS},
        operation_description="Record the meter readings for a pending customer discharge.",
        tags=['Discharges']
    )
    def create(self, request, *args, **kwargs):
        serializer = RecordDischargeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        target = (
            Discharge.objects.select_related('assignment')
            .filter(assignment_id=data['assignment_id'], customer_id=data['customer_id'])
            .first()
        )
        if target is not None:
            self.check_object_permissions(request, target)

        discharge, assignment = ledger.record_discharge(
            assignment_id=data['assignment_id'],
            customer_id=data['customer_id'],
            start_marker=data['start_marker'],
            end_marker=data['end_marker'],
            notes=data.get('notes'),
        )
        return self._ledger_response(discharge, assignment)

    @swagger_auto_schema(
        request_body=MarkerReadingSerializer,
        responses={200: openapi.Response("Corrected discharge and the updated assignment."), **LEDGER_ERRORS},
        operation_description="Correct the meter readings of a discharge; only the difference is applied to the assignment.",
        tags=['Discharges']
    )
    def update(self, request, *args, **kwargs):
        discharge = self.get_object()
        partial = kwargs.pop('partial', False)
        payload = request.data
        if partial:
            payload = {
                'start_marker': request.data.get('start_marker', discharge.start_marker),
                'end_marker': request.data.get('end_marker', discharge.end_marker),
                **({'notes': request.data['notes']} if 'notes' in request.data else {}),
            }
        serializer = MarkerReadingSerializer(data=payload)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        discharge, assignment = ledger.correct_discharge(
            discharge_id=discharge.pk,
            start_marker=data['start_marker'],
            end_marker=data['end_marker'],
            notes=data.get('notes'),
        )
        return self._ledger_response(discharge, assignment)

    def partial_update(self, request, *args, **kwargs):
        kwargs['partial'] = True
        return self.update(request, *args, **kwargs)

    @swagger_auto_schema(
        responses={200: openapi.Response("Discharge removed."), **LEDGER_ERRORS},
        operation_description="Delete a discharge that has not been recorded yet.",
        tags=['Discharges']
    )
    def destroy(self, request, *args, **kwargs):
        discharge = self.get_object()
        ledger.delete_discharge(discharge.pk)
        return Response({'success': True}, status=status.HTTP_200_OK)
