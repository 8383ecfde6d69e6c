import logging

from rest_framework import viewsets, filters
from django_filters.rest_framework import DjangoFilterBackend

from accounts.permissions import CapabilityPermission
from dispatch_core.exceptions import ConflictOnDelete
from .models import Customer
from .serializers import CustomerSerializer

logger = logging.getLogger(__name__)


class CustomerViewSet(viewsets.ModelViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [CapabilityPermission]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['company_name', 'tax_id', 'contact_name']
    ordering_fields = ['company_name', 'created_at']

    def perform_destroy(self, instance):
        if instance.discharges.exists():
            raise ConflictOnDelete('Cannot delete customer with discharge records')
        logger.info(f"Deleting customer {instance.pk} ({instance.company_name})")
        instance.delete()
