from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ProductionRecordViewSet

router = DefaultRouter()
router.register(r"production-records", ProductionRecordViewSet, basename="production-record")

urlpatterns = [
    path("", include(router.urls)),
]
