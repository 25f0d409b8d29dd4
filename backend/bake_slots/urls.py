from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BakeSlotViewSet

router = DefaultRouter()
router.register(r"bake-slots", BakeSlotViewSet, basename="bake-slot")

urlpatterns = [
    path("", include(router.urls)),
]
