"""
URL configuration for the BOM engine project.
"""

from django.urls import path, include

urlpatterns = [
    # API v1
    path('api/v1/', include('presentation.api.v1.urls')),
]
