import logging

from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from dispatch_core.exceptions import ConflictOnDelete
from .models import User
from .permissions import CapabilityPermission
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


class UserViewSet(viewsets.ModelViewSet):
    """
    API endpoint for managing administrators and drivers.
    """
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [CapabilityPermission]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['role', 'state']
    search_fields = ['dni', 'name', 'lastname', 'email']
    ordering_fields = ['name', 'lastname', 'created_at']
    ordering = ['name']

    capability_map = {
        'me': 'view',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if user is not None and not user.is_admin:
            queryset = queryset.filter(pk=user.pk)
        return queryset

    def perform_destroy(self, instance):
        if instance.assignments.exists():
            raise ConflictOnDelete('Cannot delete a user with assignments')
        logger.info(f"Deleting user {instance.pk} ({instance.email})")
        instance.delete()

    @action(detail=False, methods=['get'])
    def me(self, request):
        """
        Return the signed-in user.
        GET /api/accounts/users/me/
        """
        return Response(self.get_serializer(request.user).data)
