from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import PrepSheetViewSet

router = DefaultRouter()
router.register(r"prep-sheets", PrepSheetViewSet, basename="prep-sheet")

urlpatterns = [
    path("", include(router.urls)),
]
