from rest_framework import permissions, viewsets

from .models import Flavor
from .serializers import FlavorSerializer


class FlavorViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Public, read-only flavor catalog for the order form.
    Staff also see inactive flavors.
    """

    serializer_class = FlavorSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        queryset = Flavor.objects.select_related("recipe")
        user = self.request.user
        if not (user and user.is_staff):
            queryset = queryset.filter(is_active=True)
        return queryset
