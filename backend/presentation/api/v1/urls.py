"""
API v1 URL Configuration.

All API endpoints for version 1.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views.bom import (
    BOMTreeViewSet,
    ComplianceForestViewSet,
)

# Create router
router = DefaultRouter()

# BOM
router.register(r'bom-tree', BOMTreeViewSet, basename='bom-tree')
router.register(r'compliance-forest', ComplianceForestViewSet, basename='compliance-forest')

app_name = 'api_v1'

urlpatterns = [
    path('', include(router.urls)),
]
