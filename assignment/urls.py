from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AssignmentViewSet, DischargeViewSet

router = DefaultRouter()
router.register(r'assignments', AssignmentViewSet)
router.register(r'discharges', DischargeViewSet)

urlpatterns = [
    path('', include(router.urls)),
]
