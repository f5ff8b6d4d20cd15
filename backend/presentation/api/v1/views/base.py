"""
Base Views.

Common view mixins and base classes.
"""

from rest_framework import viewsets
from rest_framework.permissions import AllowAny


class SerializerPerActionMixin:
    """
    Mixin that picks the request serializer from the current action.

    Override `serializer_classes` dict in subclass:
    serializer_classes = {
        'add_child': AddChildSerializer,
        'default': TreeSerializer,
    }
    """

    serializer_classes = {}

    def get_serializer_class(self):
        return self.serializer_classes.get(
            self.action,
            self.serializer_classes.get('default'),
        )

    def get_serializer(self, *args, **kwargs):
        kwargs.setdefault('context', {'request': self.request, 'view': self})
        return self.get_serializer_class()(*args, **kwargs)

    def get_validated_data(self, request):
        """Validate request.data with the action's serializer (400 on failure)."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


class BaseTreeViewSet(SerializerPerActionMixin, viewsets.ViewSet):
    """
    Base viewset for stateless tree endpoints.

    Nothing is stored between requests: the client sends the current
    tree and receives the new one.
    """
    permission_classes = [AllowAny]
